"""Functions and their formal arguments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .values import Value, print_as_op

if TYPE_CHECKING:
    from .basicblock import BasicBlock
    from .module import Module
    from .types import FunctionType, Type


class Argument(Value):
    """A formal parameter of a function."""

    def __init__(self, type: Type, name: str = "", parent: Function | None = None, arg_no: int = 0):
        super().__init__(type, name)
        self.parent = parent
        self.arg_no = arg_no

    def __str__(self) -> str:
        return f"{self.type} %{self.name}"


class Function(Value):
    """A function; a declaration while it has no basic blocks."""

    def __init__(self, type: FunctionType, name: str, module: Module):
        super().__init__(type, name)
        self.parent = module
        self.seq_cnt = 0
        self.basic_blocks: list[BasicBlock] = []
        module.add_function(self)
        self.arguments = [
            Argument(param, "", self, index) for index, param in enumerate(type.params)
        ]

    @classmethod
    def create(cls, type: FunctionType, name: str, module: Module) -> Function:
        return cls(type, name, module)

    def function_type(self) -> FunctionType:
        return self.type

    def return_type(self) -> Type:
        return self.type.return_type

    def num_of_args(self) -> int:
        return self.type.num_of_args()

    def is_declaration(self) -> bool:
        return not self.basic_blocks

    def entry_block(self) -> BasicBlock:
        if not self.basic_blocks:
            raise IndexError(f"function @{self.name} has no basic blocks")
        return self.basic_blocks[0]

    def add_basic_block(self, bb: BasicBlock) -> None:
        self.basic_blocks.append(bb)

    def remove(self, bb: BasicBlock) -> None:
        """Remove ``bb`` and the CFG edges that touch it."""
        self.basic_blocks.remove(bb)
        for pre in list(bb.pre_basic_blocks):
            pre.remove_succ_basic_block(bb)
        for succ in list(bb.succ_basic_blocks):
            succ.remove_pre_basic_block(bb)

    def set_instr_name(self) -> None:
        """Name every unnamed argument, block and value-producing instruction."""
        named: set[Value] = set()

        def name(value: Value, prefix: str) -> None:
            if value in named:
                return
            number = len(named) + self.seq_cnt
            if value.set_name(f"{prefix}{number}"):
                named.add(value)

        for arg in self.arguments:
            name(arg, "arg")
        for bb in self.basic_blocks:
            name(bb, "label")
            for instr in bb.instructions:
                if not instr.is_void():
                    name(instr, "op")
        self.seq_cnt += len(named)

    def reference(self) -> str:
        return "@" + self.name

    def __str__(self) -> str:
        self.set_instr_name()
        declaration = self.is_declaration()
        head = "declare " if declaration else "define "
        if declaration:
            args = ", ".join(str(param) for param in self.type.params)
        else:
            args = ", ".join(str(arg) for arg in self.arguments)
        text = f"{head}{self.return_type()} {print_as_op(self, False)}({args})"
        if declaration:
            return text + "\n"
        body = "".join(str(bb) for bb in self.basic_blocks)
        return f"{text} {{\n{body}}}"