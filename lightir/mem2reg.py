"""Promotion of stack variables to SSA registers."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from .dominators import Dominators
from .globalvar import GlobalVariable
from .instructions import Instruction, LoadInst, PhiInst, StoreInst

if TYPE_CHECKING:
    from .basicblock import BasicBlock
    from .function import Function
    from .module import Module
    from .values import Value


class Mem2Reg:
    """Replaces loads and stores of local variables by SSA values and phis.

    The now unused allocas are left for dead code elimination.
    """

    def __init__(self, module: Module):
        self.module = module
        self.dominators: Dominators | None = None
        self.func: Function | None = None
        self._var_val_stack: defaultdict[Value, list[Value]] = defaultdict(list)
        self._phi_lval: dict[PhiInst, Value] = {}

    @staticmethod
    def is_valid_ptr(value: Value) -> bool:
        """Whether ``value`` is an address this pass may promote."""
        if isinstance(value, GlobalVariable):
            return False
        if isinstance(value, Instruction) and value.is_gep():
            return False
        return True

    def run(self) -> None:
        self.dominators = Dominators(self.module)
        self.dominators.run()
        for func in self.module.functions:
            if func.is_declaration():
                continue
            self.func = func
            self._var_val_stack.clear()
            self._phi_lval.clear()
            if func.basic_blocks:
                self._generate_phi()
                self._rename(func.entry_block())

    def _generate_phi(self) -> None:
        """Place phis at the iterated dominance frontier of every store."""
        live_var_blocks: dict[Value, dict[BasicBlock, None]] = {}
        for bb in self.func.basic_blocks:
            for instr in bb.instructions:
                if isinstance(instr, StoreInst):
                    lval = instr.lval()
                    if self.is_valid_ptr(lval):
                        live_var_blocks.setdefault(lval, {})[bb] = None

        has_phi: set[tuple[BasicBlock, Value]] = set()
        for var, blocks in live_var_blocks.items():
            work_list = list(blocks)
            for bb in work_list:
                for frontier_bb in self.dominators.dominance_frontier(bb):
                    if (frontier_bb, var) in has_phi:
                        continue
                    phi = PhiInst.create_phi(
                        var.type.pointer_element_type(), frontier_bb
                    )
                    self._phi_lval[phi] = var
                    frontier_bb.add_instr_begin(phi)
                    work_list.append(frontier_bb)
                    has_phi.add((frontier_bb, var))

    def _top(self, lval: Value) -> Value | None:
        stack = self._var_val_stack.get(lval)
        return stack[-1] if stack else None

    def _rename(self, bb: BasicBlock) -> None:
        wait_delete: list[Instruction] = []
        vars_to_pop: list[Value] = []

        for instr in bb.instructions:
            if not isinstance(instr, PhiInst):
                break
            lval = self._phi_lval.get(instr)
            if lval is not None:
                self._var_val_stack[lval].append(instr)
                vars_to_pop.append(lval)

        for instr in bb.instructions:
            if isinstance(instr, PhiInst):
                continue
            if isinstance(instr, LoadInst):
                lval = instr.lval()
                new_val = self._top(lval) if self.is_valid_ptr(lval) else None
                if new_val is not None:
                    instr.replace_all_use_with(new_val)
                    wait_delete.append(instr)
            elif isinstance(instr, StoreInst):
                lval = instr.lval()
                if self.is_valid_ptr(lval):
                    self._var_val_stack[lval].append(instr.rval())
                    vars_to_pop.append(lval)
                    wait_delete.append(instr)

        for succ in bb.succ_basic_blocks:
            for instr in succ.instructions:
                if not isinstance(instr, PhiInst):
                    break
                lval = self._phi_lval.get(instr)
                if lval is None:
                    continue
                new_val = self._top(lval)
                if new_val is not None:
                    instr.add_phi_pair_operand(new_val, bb)

        for child in self.dominators.dom_tree_succ_blocks(bb):
            self._rename(child)

        for lval in reversed(vars_to_pop):
            stack = self._var_val_stack[lval]
            if stack:
                stack.pop()

        for instr in wait_delete:
            bb.erase_instr(instr)