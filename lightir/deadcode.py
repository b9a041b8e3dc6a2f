"""Dead code elimination by mark and sweep."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from .funcinfo import FuncInfo
from .instructions import Instruction

if TYPE_CHECKING:
    from .function import Function
    from .module import Module

_log = logging.getLogger(__name__)


class DeadCode:
    """Removes unreachable blocks and instructions whose results are unused."""

    def __init__(self, module: Module):
        self.module = module
        self.func_info = FuncInfo(module)
        self.ins_count = 0
        self._marked: set[Instruction] = set()
        self._work_list: deque[Instruction] = deque()

    def run(self) -> None:
        self.func_info.run()
        changed = True
        while changed:
            changed = False
            for func in self.module.functions:
                changed |= self.clear_basic_blocks(func)
                self._mark_function(func)
                changed |= self._sweep(func)
        _log.info("dead code pass erased %d instructions", self.ins_count)

    def clear_basic_blocks(self, func: Function) -> bool:
        """Erase blocks with no predecessors other than the entry block."""
        if not func.basic_blocks:
            return False
        entry = func.entry_block()
        to_erase = [
            bb for bb in func.basic_blocks if not bb.pre_basic_blocks and bb is not entry
        ]
        for bb in to_erase:
            bb.erase_from_parent()
            for inst in bb.instructions:
                inst.detach()
        return bool(to_erase)

    def _mark_function(self, func: Function) -> None:
        self._marked.clear()
        self._work_list.clear()
        for bb in func.basic_blocks:
            for inst in bb.instructions:
                if self.is_critical(inst):
                    self._marked.add(inst)
                    self._work_list.append(inst)
        while self._work_list:
            self._mark_operands(self._work_list.popleft())

    def _mark_operands(self, inst: Instruction) -> None:
        for op in inst.operands:
            if not isinstance(op, Instruction) or op in self._marked:
                continue
            if op.function() is not inst.function():
                continue
            self._marked.add(op)
            self._work_list.append(op)

    def _sweep(self, func: Function) -> bool:
        dead = [
            inst
            for bb in func.basic_blocks
            for inst in bb.instructions
            if inst not in self._marked
        ]
        for inst in dead:
            inst.remove_all_operands()
        for inst in dead:
            inst.parent.remove_instr(inst)
        self.ins_count += len(dead)
        return bool(dead)

    def is_critical(self, inst: Instruction) -> bool:
        """Whether ``inst`` must be kept regardless of its uses."""
        if inst.is_call():
            return not self.func_info.is_pure_function(inst.get_operand(0))
        return inst.is_br() or inst.is_ret() or inst.is_store()

    def sweep_globally(self) -> None:
        """Drop unused functions (except ``main``) and unused globals."""
        unused_funcs = [
            f for f in self.module.functions if not f.use_list and f.name != "main"
        ]
        unused_globals = [g for g in self.module.global_variables if not g.use_list]
        for func in unused_funcs:
            self.module.functions.remove(func)
            for bb in func.basic_blocks:
                for inst in bb.instructions:
                    inst.remove_all_operands()
        for var in unused_globals:
            self.module.global_variables.remove(var)