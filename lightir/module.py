"""The module: owner of types, functions and global variables."""

from __future__ import annotations

from typing import Any, Iterable

from .types import ArrayType, FloatType, FunctionType, IntegerType, PointerType, Type, TypeID


class Module:
    """A translation unit of IR."""

    def __init__(self):
        self.void_type = Type(TypeID.VOID, self)
        self.label_type = Type(TypeID.LABEL, self)
        self.int1_type = IntegerType(1, self)
        self.int32_type = IntegerType(32, self)
        self.float_type = FloatType(self)
        self._pointer_types: dict[Type, PointerType] = {}
        self._array_types: dict[tuple[Type, int], ArrayType] = {}
        self._function_types: dict[tuple[Type, tuple[Type, ...]], FunctionType] = {}
        # Interned constants, keyed by kind and value.
        self.constants: dict[Any, Any] = {}
        self.functions: list = []
        self.global_variables: list = []

    def pointer_type(self, contained: Type) -> PointerType:
        if contained not in self._pointer_types:
            self._pointer_types[contained] = PointerType(contained)
        return self._pointer_types[contained]

    def array_type(self, contained: Type, num_elements: int) -> ArrayType:
        key = (contained, num_elements)
        if key not in self._array_types:
            self._array_types[key] = ArrayType(contained, num_elements)
        return self._array_types[key]

    def function_type(self, return_type: Type, params: Iterable[Type]) -> FunctionType:
        key = (return_type, tuple(params))
        if key not in self._function_types:
            self._function_types[key] = FunctionType(return_type, key[1])
        return self._function_types[key]

    def int32_ptr_type(self) -> PointerType:
        return self.pointer_type(self.int32_type)

    def float_ptr_type(self) -> PointerType:
        return self.pointer_type(self.float_type)

    def add_function(self, func) -> None:
        self.functions.append(func)

    def add_global_variable(self, var) -> None:
        self.global_variables.append(var)

    def set_print_name(self) -> None:
        """Give every unnamed value in every function a printable name."""
        for func in self.functions:
            func.set_instr_name()

    def __str__(self) -> str:
        self.set_print_name()
        lines = [f"{var}\n" for var in self.global_variables]
        lines.extend(f"{func}\n" for func in self.functions)
        return "".join(lines)