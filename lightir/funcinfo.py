"""Purity analysis: which functions have no observable side effects."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from .instructions import Instruction, LoadInst, StoreInst

if TYPE_CHECKING:
    from .function import Function
    from .module import Module
    from .values import Value

_log = logging.getLogger(__name__)


class FuncInfo:
    """Marks each function of a module as pure or impure.

    A function is impure if it is a declaration, is ``main``, takes a
    non-scalar argument, writes or reads non-local memory, or calls an
    impure function.
    """

    def __init__(self, module: Module):
        self.module = module
        self._pure: dict[Function, bool] = {}
        self._worklist: deque[Function] = deque()

    def run(self) -> None:
        for func in self.module.functions:
            self._trivial_mark(func)
            if not self._pure[func]:
                self._worklist.append(func)
        while self._worklist:
            self._process(self._worklist.popleft())
        for func, pure in self._pure.items():
            _log.info("%s is pure? %d", func.name, pure)

    def is_pure_function(self, func: Function | None) -> bool:
        """Whether ``func`` was found to be pure; unknown functions are not."""
        return self._pure.get(func, False)

    def _trivial_mark(self, func: Function) -> None:
        if func.is_declaration() or func.name == "main":
            self._pure[func] = False
            return
        for param in func.function_type().params:
            if not (param.is_integer_type() or param.is_float_type()):
                self._pure[func] = False
                return
        for bb in func.basic_blocks:
            for inst in bb.instructions:
                if self.is_side_effect_inst(inst):
                    self._pure[func] = False
                    return
        self._pure[func] = True

    def _process(self, func: Function) -> None:
        for use in list(func.use_list):
            user = use.user
            if isinstance(user, Instruction):
                _log.info("%s uses func: %s", user, func.name)
                caller = user.function()
                if self._pure.get(caller, False):
                    self._pure[caller] = False
                    self._worklist.append(caller)
            else:
                _log.warning("Value besides instruction uses a function")

    def is_side_effect_inst(self, inst: Instruction) -> bool:
        """Whether ``inst`` touches memory outside the function's own stack.

        Calls are handled by propagation and are not reported here.
        """
        if inst.is_store():
            return not self._is_local(inst.lval())
        if inst.is_load():
            return not self._is_local(inst.get_operand(0))
        return False

    def _is_local(self, address: Value) -> bool:
        base = self.first_addr(address)
        return isinstance(base, Instruction) and base.is_alloca()

    def first_addr(self, value: Value) -> Value:
        """The base address that ``value`` is derived from."""
        if isinstance(value, Instruction):
            if value.is_alloca():
                return value
            if value.is_gep():
                return self.first_addr(value.get_operand(0))
            if value.is_load():
                return value
            _log.warning("FuncInfo: try to determine addr in operands")
            for op in value.operands:
                if op is not None and op.type.is_pointer_type():
                    return self.first_addr(op)
        return value


__all__ = ["FuncInfo", "LoadInst", "StoreInst"]