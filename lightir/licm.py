"""Loop-invariant code motion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .basicblock import BasicBlock
from .funcinfo import FuncInfo
from .function import Function
from .globalvar import GlobalVariable
from .instructions import BranchInst, Instruction, OpID
from .loops import Loop, LoopDetection

if TYPE_CHECKING:
    from .module import Module
    from .values import Value


class LoopInvariantCodeMotion:
    """Moves instructions whose operands are all defined outside a loop
    into a preheader placed in front of the loop header."""

    def __init__(self, module: Module):
        self.module = module
        self.loop_detection: LoopDetection | None = None
        self.func_info: FuncInfo | None = None
        self._is_loop_done: dict[Loop, bool] = {}

    def run(self) -> None:
        self.loop_detection = LoopDetection(self.module)
        self.loop_detection.run()
        self.func_info = FuncInfo(self.module)
        self.func_info.run()
        self._is_loop_done = {loop: False for loop in self.loop_detection.loops}
        for loop in self.loop_detection.loops:
            self._traverse_loop(loop)

    def _traverse_loop(self, loop: Loop) -> None:
        """Handle inner loops before the loop that contains them."""
        if self._is_loop_done.get(loop, False):
            return
        self._is_loop_done[loop] = True
        for sub_loop in loop.sub_loops:
            self._traverse_loop(sub_loop)
        self.run_on_loop(loop)

    def _collect_loop_info(
        self, loop: Loop
    ) -> tuple[dict[Value, None], set[Value], bool]:
        """Instructions of the loop, globals it stores to, and whether it
        calls an impure function."""
        if self.func_info is None:
            self.func_info = FuncInfo(self.module)
            self.func_info.run()
        loop_instructions: dict[Value, None] = {}
        updated_global: set[Value] = set()
        contains_impure_call = False
        for bb in loop.blocks:
            for inst in bb.instructions:
                loop_instructions[inst] = None
                if inst.is_store():
                    target = inst.get_operand(1)
                    if isinstance(target, GlobalVariable):
                        updated_global.add(target)
                if inst.is_call():
                    callee = inst.get_operand(0)
                    if not isinstance(callee, Function):
                        contains_impure_call = True
                    elif callee.name == "input":
                        contains_impure_call = True
                    elif not self.func_info.is_pure_function(callee):
                        contains_impure_call = True
        return loop_instructions, updated_global, contains_impure_call

    def _find_invariants(self, loop: Loop) -> list[Instruction]:
        loop_instructions, updated_global, contains_impure_call = (
            self._collect_loop_info(loop)
        )
        invariants: dict[Instruction, None] = {}
        changed = True
        while changed:
            changed = False
            for inst in loop_instructions:
                if inst in invariants or not isinstance(inst, Instruction):
                    continue
                if (
                    inst.is_store()
                    or inst.is_ret()
                    or inst.is_br()
                    or inst.is_phi()
                    or contains_impure_call
                ):
                    continue
                if inst.is_load() and isinstance(inst.lval(), GlobalVariable):
                    updated_global.add(inst.lval())
                if all(op not in loop_instructions for op in inst.operands):
                    invariants[inst] = None
                    changed = True
        return list(invariants)

    def run_on_loop(self, loop: Loop) -> None:
        """Hoist the invariant instructions of ``loop`` into its preheader."""
        invariants = self._find_invariants(loop)
        header = loop.header

        if loop.preheader is None:
            loop.preheader = BasicBlock.create(self.module, "", header.parent)

        if not invariants:
            return

        preheader = loop.preheader

        for phi in header.instructions:
            if phi.op_id is not OpID.PHI:
                break
            for index in range(0, phi.num_operands, 2):
                incoming = phi.get_operand(index + 1)
                if not isinstance(incoming, BasicBlock) or incoming in loop.latches:
                    continue
                phi.set_operand(index + 1, preheader)

        for pred in list(header.pre_basic_blocks):
            if pred not in loop.latches:
                pred.remove_succ_basic_block(header)
                pred.add_succ_basic_block(preheader)
                preheader.add_pre_basic_block(pred)
            preheader.add_succ_basic_block(header)
            for pre in preheader.pre_basic_blocks:
                for inst in pre.instructions:
                    if not inst.is_br():
                        continue
                    for index, target in enumerate(inst.operands):
                        if target is header:
                            inst.set_operand(index, preheader)

        for inst in invariants:
            inst.parent.remove_instr(inst)
            preheader.add_instruction(inst)

        BranchInst.create_br(header, preheader)

        if loop.parent is not None:
            loop.parent.add_block(preheader)