"""Basic blocks: straight-line instruction sequences with CFG edges."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .values import Value, print_as_op

if TYPE_CHECKING:
    from .function import Function
    from .instructions import Instruction
    from .module import Module


_PREDS_PREFIX = "                                                ; preds = "


class BasicBlock(Value):
    """A labelled block of instructions inside a function."""

    def __init__(self, module: Module, name: str = "", parent: Function | None = None):
        if parent is None:
            raise ValueError("a basic block needs a parent function")
        super().__init__(module.label_type, name)
        self.parent = parent
        self.instructions: list[Instruction] = []
        self.pre_basic_blocks: list[BasicBlock] = []
        self.succ_basic_blocks: list[BasicBlock] = []
        parent.add_basic_block(self)

    @classmethod
    def create(cls, module: Module, name: str = "", parent: Function | None = None) -> BasicBlock:
        return cls(module, name, parent)

    def module(self) -> Module:
        return self.parent.parent

    def erase_from_parent(self) -> None:
        """Remove the block from its function, dropping its CFG edges."""
        self.parent.remove(self)

    def is_terminated(self) -> bool:
        if not self.instructions:
            return False
        last = self.instructions[-1]
        return last.is_ret() or last.is_br()

    def terminator(self) -> Instruction:
        if not self.is_terminated():
            raise ValueError("trying to get terminator from a block which is not terminated")
        return self.instructions[-1]

    def add_instruction(self, instr: Instruction) -> None:
        if self.is_terminated():
            raise ValueError("inserting instruction to terminated block")
        self.instructions.append(instr)
        instr.parent = self

    def add_instr_begin(self, instr: Instruction) -> None:
        self.instructions.insert(0, instr)
        instr.parent = self

    def remove_instr(self, instr: Instruction) -> None:
        """Unlink ``instr`` from the block; its operands stay in place."""
        self.instructions.remove(instr)

    def erase_instr(self, instr: Instruction) -> None:
        """Unlink ``instr`` and drop everything it refers to."""
        self.remove_instr(instr)
        instr.detach()

    def add_pre_basic_block(self, bb: BasicBlock) -> None:
        self.pre_basic_blocks.append(bb)

    def remove_pre_basic_block(self, bb: BasicBlock) -> None:
        self.pre_basic_blocks[:] = [b for b in self.pre_basic_blocks if b is not bb]

    def add_succ_basic_block(self, bb: BasicBlock) -> None:
        self.succ_basic_blocks.append(bb)

    def remove_succ_basic_block(self, bb: BasicBlock) -> None:
        self.succ_basic_blocks[:] = [b for b in self.succ_basic_blocks if b is not bb]

    def __str__(self) -> str:
        text = f"{self.name}:"
        preds = self.pre_basic_blocks
        if preds:
            text += _PREDS_PREFIX
            first = preds[0]
            for bb in preds:
                if bb is not first:
                    text += ", "
                text += print_as_op(bb, False)
        if self.parent is None:
            text += "\n; Error: Block without parent!"
        text += "\n"
        text += "".join(f"  {instr}\n" for instr in self.instructions)
        return text