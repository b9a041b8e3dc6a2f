"""Values, users and the def-use links between them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .types import Type


@dataclass(frozen=True)
class Use:
    """A reference to a value: operand ``arg_no`` of ``user``."""

    user: "User"
    arg_no: int


class Value:
    """Anything that can be used as an operand."""

    def __init__(self, type: Type, name: str = ""):
        self.type = type
        self.name = name
        self.use_list: list[Use] = []

    def set_name(self, name: str) -> bool:
        """Name the value unless it already has a name; report whether it did."""
        if self.name == "":
            self.name = name
            return True
        return False

    def add_use(self, user: User, arg_no: int) -> None:
        self.use_list.append(Use(user, arg_no))

    def remove_use(self, user: User, arg_no: int) -> None:
        target = Use(user, arg_no)
        self.use_list[:] = [use for use in self.use_list if use != target]

    def replace_all_use_with(self, new_val: Value) -> None:
        """Make every user refer to ``new_val`` instead of this value."""
        if self is new_val:
            return
        while self.use_list:
            use = self.use_list[0]
            use.user.set_operand(use.arg_no, new_val)

    def replace_use_with_if(
        self, new_val: Value, should_replace: Callable[[Use], bool]
    ) -> None:
        """Replace the uses for which ``should_replace`` holds."""
        if self is new_val:
            return
        for use in list(self.use_list):
            if should_replace(use):
                use.user.set_operand(use.arg_no, new_val)

    def reference(self) -> str:
        """How the value is written when used as an operand."""
        return "%" + self.name

    def __str__(self) -> str:
        return self.reference()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.reference()}>"


class User(Value):
    """A value that holds operands."""

    def __init__(self, type: Type, name: str = ""):
        super().__init__(type, name)
        self._operands: list[Value | None] = []

    @property
    def operands(self) -> tuple[Value | None, ...]:
        return tuple(self._operands)

    @property
    def num_operands(self) -> int:
        return len(self._operands)

    def get_operand(self, index: int) -> Value | None:
        return self._operands[index]

    def set_operand(self, index: int, value: Value | None) -> None:
        if not 0 <= index < len(self._operands):
            raise IndexError("set_operand out of index")
        old = self._operands[index]
        if old is not None:
            old.remove_use(self, index)
        if value is not None:
            value.add_use(self, index)
        self._operands[index] = value

    def add_operand(self, value: Value) -> None:
        if value is None:
            raise ValueError("add_operand() requires a value")
        value.add_use(self, len(self._operands))
        self._operands.append(value)

    def remove_all_operands(self) -> None:
        for index, operand in enumerate(self._operands):
            if operand is not None:
                operand.remove_use(self, index)
        self._operands.clear()

    def remove_operand(self, index: int) -> None:
        if not 0 <= index < len(self._operands):
            raise IndexError("remove_operand out of index")
        for later in range(index + 1, len(self._operands)):
            operand = self._operands[later]
            operand.remove_use(self, later)
            operand.add_use(self, later - 1)
        self._operands[index].remove_use(self, index)
        del self._operands[index]


def print_as_op(value: Value, with_type: bool) -> str:
    """Render ``value`` as an operand, optionally prefixed by its type."""
    prefix = f"{value.type} " if with_type else ""
    return prefix + value.reference()