"""Global variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .values import User, print_as_op

if TYPE_CHECKING:
    from .constants import Constant
    from .module import Module
    from .types import Type


class GlobalVariable(User):
    """A module-level variable; its value is a pointer to its storage."""

    def __init__(
        self,
        name: str,
        module: Module,
        type: Type,
        is_const: bool,
        init: Constant | None = None,
    ):
        super().__init__(type, name)
        self.is_const = is_const
        self.init = init
        module.add_global_variable(self)
        if init is not None:
            self.add_operand(init)

    @classmethod
    def create(
        cls,
        name: str,
        module: Module,
        type: Type,
        is_const: bool,
        init: Constant | None = None,
    ) -> GlobalVariable:
        """Create a global holding a value of ``type``."""
        return cls(name, module, type.module.pointer_type(type), is_const, init)

    def reference(self) -> str:
        return "@" + self.name

    def __str__(self) -> str:
        if self.init is None:
            raise ValueError(f"global variable @{self.name} has no initializer")
        kind = "constant " if self.is_const else "global "
        return (
            f"{print_as_op(self, False)} = {kind}"
            f"{self.type.pointer_element_type()} {self.init}"
        )