"""Constant values."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING, Sequence

from .values import User

if TYPE_CHECKING:
    from .module import Module
    from .types import ArrayType, Type


class Constant(User):
    """A value known at compile time; written inline as an operand."""

    def __init__(self, type: Type, name: str = ""):
        super().__init__(type, name)

    def reference(self) -> str:
        return str(self)


class ConstantInt(Constant):
    """An i32 or i1 constant."""

    def __init__(self, type: Type, value: int):
        super().__init__(type)
        self.value = value

    @classmethod
    def get(cls, value: int, module: Module) -> ConstantInt:
        """The interned i32 constant ``value`` of ``module``."""
        key = ("i32", int(value))
        if key not in module.constants:
            module.constants[key] = cls(module.int32_type, int(value))
        return module.constants[key]

    @classmethod
    def get_bool(cls, value: bool, module: Module) -> ConstantInt:
        """The interned i1 constant ``value`` of ``module``."""
        key = ("i1", bool(value))
        if key not in module.constants:
            module.constants[key] = cls(module.int1_type, 1 if value else 0)
        return module.constants[key]

    def __str__(self) -> str:
        if self.type.is_int1_type():
            return "false" if self.value == 0 else "true"
        return str(self.value)


class ConstantFP(Constant):
    """A single-precision floating point constant."""

    def __init__(self, type: Type, value: float):
        super().__init__(type)
        self.value = struct.unpack("<f", struct.pack("<f", value))[0]

    @classmethod
    def get(cls, value: float, module: Module) -> ConstantFP:
        """The interned float constant ``value`` of ``module``."""
        single = struct.unpack("<f", struct.pack("<f", value))[0]
        key = ("float", single)
        if key not in module.constants:
            module.constants[key] = cls(module.float_type, single)
        return module.constants[key]

    def __str__(self) -> str:
        bits = struct.unpack("<Q", struct.pack("<d", self.value))[0]
        return f"0x{bits:x}"


class ConstantArray(Constant):
    """An array constant made of other constants."""

    def __init__(self, type: ArrayType, values: Sequence[Constant]):
        super().__init__(type)
        for value in values:
            self.add_operand(value)
        self.elements: list[Constant] = list(values)

    def element(self, index: int) -> Constant:
        return self.elements[index]

    @property
    def size_of_array(self) -> int:
        return len(self.elements)

    def __str__(self) -> str:
        parts = []
        for element in self.elements:
            if isinstance(element, ConstantArray):
                parts.append(f"{element}, ")
            else:
                parts.append(f"{element.type}{element}, ")
        return f"{self.type} [{''.join(parts)}]"


class ConstantZero(Constant):
    """The all-zero initializer of a type."""

    @classmethod
    def get(cls, type: Type, module: Module) -> ConstantZero:
        key = ("zero", type)
        if key not in module.constants:
            module.constants[key] = cls(type)
        return module.constants[key]

    def __str__(self) -> str:
        return "zeroinitializer"