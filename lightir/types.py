"""Types of the intermediate representation."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .module import Module


class TypeID(enum.Enum):
    """Kind of an IR type."""

    VOID = enum.auto()
    LABEL = enum.auto()
    INTEGER = enum.auto()
    FUNCTION = enum.auto()
    ARRAY = enum.auto()
    POINTER = enum.auto()
    FLOAT = enum.auto()


class Type:
    """An IR type. Types are interned by their module and compared by identity."""

    def __init__(self, tid: TypeID, module: Module | None):
        self.type_id = tid
        self.module = module

    def is_void_type(self) -> bool:
        return self.type_id is TypeID.VOID

    def is_label_type(self) -> bool:
        return self.type_id is TypeID.LABEL

    def is_integer_type(self) -> bool:
        return self.type_id is TypeID.INTEGER

    def is_function_type(self) -> bool:
        return self.type_id is TypeID.FUNCTION

    def is_array_type(self) -> bool:
        return self.type_id is TypeID.ARRAY

    def is_pointer_type(self) -> bool:
        return self.type_id is TypeID.POINTER

    def is_float_type(self) -> bool:
        return self.type_id is TypeID.FLOAT

    def is_int1_type(self) -> bool:
        return isinstance(self, IntegerType) and self.num_bits == 1

    def is_int32_type(self) -> bool:
        return isinstance(self, IntegerType) and self.num_bits == 32

    def pointer_element_type(self) -> Type:
        """Type pointed to; only valid on pointer types."""
        if isinstance(self, PointerType):
            return self.element_type
        raise TypeError("pointer_element_type() called on non-pointer type")

    def array_element_type(self) -> Type:
        """Element type; only valid on array types."""
        if isinstance(self, ArrayType):
            return self.element_type
        raise TypeError("array_element_type() called on non-array type")

    def size(self) -> int:
        """Storage size in bytes."""
        if self.type_id is TypeID.FLOAT:
            return 4
        raise TypeError(f"bad use on size() for type {self}")

    def __str__(self) -> str:
        return {
            TypeID.VOID: "void",
            TypeID.LABEL: "label",
            TypeID.FLOAT: "float",
        }.get(self.type_id, "")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"


class IntegerType(Type):
    """Integer type of a fixed bit width."""

    def __init__(self, num_bits: int, module: Module | None):
        super().__init__(TypeID.INTEGER, module)
        self.num_bits = num_bits

    def size(self) -> int:
        if self.num_bits == 1:
            return 1
        if self.num_bits == 32:
            return 4
        raise TypeError(f"unexpected integer width {self.num_bits} in size()")

    def __str__(self) -> str:
        return f"i{self.num_bits}"


class FloatType(Type):
    """32-bit floating point type."""

    def __init__(self, module: Module | None):
        super().__init__(TypeID.FLOAT, module)


class FunctionType(Type):
    """Signature of a function."""

    def __init__(self, result: Type, params: Iterable[Type]):
        if not self.is_valid_return_type(result):
            raise TypeError(f"invalid return type for function: {result}")
        params = tuple(params)
        for param in params:
            if not self.is_valid_argument_type(param):
                raise TypeError(f"not a valid type for function argument: {param}")
        super().__init__(TypeID.FUNCTION, result.module)
        self.return_type = result
        self.params = params

    @staticmethod
    def is_valid_return_type(ty: Type) -> bool:
        return ty.is_integer_type() or ty.is_void_type() or ty.is_float_type()

    @staticmethod
    def is_valid_argument_type(ty: Type) -> bool:
        return ty.is_integer_type() or ty.is_pointer_type() or ty.is_float_type()

    def num_of_args(self) -> int:
        return len(self.params)

    def param_type(self, index: int) -> Type:
        return self.params[index]

    def size(self) -> int:
        raise TypeError("bad use on size() for a function type")

    def __str__(self) -> str:
        args = ", ".join(str(p) for p in self.params)
        return f"{self.return_type} ({args})"


class ArrayType(Type):
    """Fixed-length array of elements of one type."""

    def __init__(self, contained: Type, num_elements: int):
        if not self.is_valid_element_type(contained):
            raise TypeError(f"not a valid type for array element: {contained}")
        super().__init__(TypeID.ARRAY, contained.module)
        self.element_type = contained
        self.num_elements = num_elements

    @staticmethod
    def is_valid_element_type(ty: Type) -> bool:
        return ty.is_integer_type() or ty.is_array_type() or ty.is_float_type()

    def size(self) -> int:
        return self.element_type.size() * self.num_elements

    def __str__(self) -> str:
        return f"[{self.num_elements} x {self.element_type}]"


_POINTEE_KINDS = frozenset(
    {TypeID.INTEGER, TypeID.FLOAT, TypeID.ARRAY, TypeID.POINTER}
)


class PointerType(Type):
    """Pointer to a value of another type."""

    def __init__(self, contained: Type):
        if contained.type_id not in _POINTEE_KINDS:
            raise TypeError(f"not allowed type for pointer: {contained}")
        super().__init__(TypeID.POINTER, contained.module)
        self.element_type = contained

    def size(self) -> int:
        return 8

    def __str__(self) -> str:
        return f"{self.element_type}*"