"""Instructions of the intermediate representation and their textual form."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Iterable, Sequence

from .types import ArrayType, Type, TypeID
from .values import User, Value, print_as_op

if TYPE_CHECKING:
    from .module import Module


class OpID(enum.Enum):
    """Operation of an instruction; the value is its mnemonic."""

    RET = "ret"
    BR = "br"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    SDIV = "sdiv"
    FADD = "fadd"
    FSUB = "fsub"
    FMUL = "fmul"
    FDIV = "fdiv"
    ALLOCA = "alloca"
    LOAD = "load"
    STORE = "store"
    GE = "sge"
    GT = "sgt"
    LE = "sle"
    LT = "slt"
    EQ = "eq"
    NE = "ne"
    FGE = "uge"
    FGT = "ugt"
    FLE = "ule"
    FLT = "ult"
    FEQ = "ueq"
    FNE = "une"
    PHI = "phi"
    CALL = "call"
    GETELEMENTPTR = "getelementptr"
    ZEXT = "zext"
    FPTOSI = "fptosi"
    SITOFP = "sitofp"


_ICMP_OPS = frozenset({OpID.GE, OpID.GT, OpID.LE, OpID.LT, OpID.EQ, OpID.NE})
_FCMP_OPS = frozenset({OpID.FGE, OpID.FGT, OpID.FLE, OpID.FLT, OpID.FEQ, OpID.FNE})


def op_name(op_id: OpID) -> str:
    """The mnemonic an operation is printed with."""
    if not isinstance(op_id, OpID):
        raise ValueError(f"unknown operation: {op_id!r}")
    return op_id.value


class Instruction(User):
    """An instruction, appended to its basic block when one is given."""

    def __init__(self, type: Type, op_id: OpID, parent=None):
        super().__init__(type, "")
        self.op_id = op_id
        self.parent = parent
        if parent is not None:
            parent.add_instruction(self)

    def function(self):
        """The function holding this instruction."""
        return self.parent.parent

    def module(self) -> Module:
        return self.parent.module()

    def is_void(self) -> bool:
        """Whether the instruction produces no value."""
        return self.op_id in (OpID.RET, OpID.BR, OpID.STORE) or (
            self.op_id is OpID.CALL and self.type.is_void_type()
        )

    def op_name(self) -> str:
        return op_name(self.op_id)

    def is_call(self) -> bool:
        return self.op_id is OpID.CALL

    def is_br(self) -> bool:
        return self.op_id is OpID.BR

    def is_ret(self) -> bool:
        return self.op_id is OpID.RET

    def is_store(self) -> bool:
        return self.op_id is OpID.STORE

    def is_load(self) -> bool:
        return self.op_id is OpID.LOAD

    def is_alloca(self) -> bool:
        return self.op_id is OpID.ALLOCA

    def is_gep(self) -> bool:
        return self.op_id is OpID.GETELEMENTPTR

    def is_phi(self) -> bool:
        return self.op_id is OpID.PHI

    def is_cmp(self) -> bool:
        return self.op_id in _ICMP_OPS

    def is_fcmp(self) -> bool:
        return self.op_id in _FCMP_OPS

    def detach(self) -> None:
        """Drop every use this instruction holds on its operands."""
        self.remove_all_operands()

    def _lhs(self) -> str:
        return f"%{self.name} = {self.op_name()} "


def _print_two_operands(inst: Instruction) -> str:
    lhs, rhs = inst.get_operand(0), inst.get_operand(1)
    same_type = lhs.type is rhs.type
    return f"{lhs.type} {print_as_op(lhs, False)}, {print_as_op(rhs, not same_type)}"


def _print_cast(inst: Instruction) -> str:
    value = inst.get_operand(0)
    return f"{inst._lhs()}{value.type} {print_as_op(value, False)} to {inst.type}"


def _block_module(bb) -> Module:
    return bb.module()


class IBinaryInst(Instruction):
    """Integer arithmetic on two i32 values."""

    def __init__(self, op_id: OpID, lhs: Value, rhs: Value, bb):
        if not (lhs.type.is_int32_type() and rhs.type.is_int32_type()):
            raise TypeError("IBinaryInst operands are not both i32")
        super().__init__(_block_module(bb).int32_type, op_id, bb)
        self.add_operand(lhs)
        self.add_operand(rhs)

    @classmethod
    def create_add(cls, lhs, rhs, bb) -> IBinaryInst:
        return cls(OpID.ADD, lhs, rhs, bb)

    @classmethod
    def create_sub(cls, lhs, rhs, bb) -> IBinaryInst:
        return cls(OpID.SUB, lhs, rhs, bb)

    @classmethod
    def create_mul(cls, lhs, rhs, bb) -> IBinaryInst:
        return cls(OpID.MUL, lhs, rhs, bb)

    @classmethod
    def create_sdiv(cls, lhs, rhs, bb) -> IBinaryInst:
        return cls(OpID.SDIV, lhs, rhs, bb)

    def __str__(self) -> str:
        return self._lhs() + _print_two_operands(self)


class FBinaryInst(Instruction):
    """Floating point arithmetic on two float values."""

    def __init__(self, op_id: OpID, lhs: Value, rhs: Value, bb):
        if not (lhs.type.is_float_type() and rhs.type.is_float_type()):
            raise TypeError("FBinaryInst operands are not both float")
        super().__init__(_block_module(bb).float_type, op_id, bb)
        self.add_operand(lhs)
        self.add_operand(rhs)

    @classmethod
    def create_fadd(cls, lhs, rhs, bb) -> FBinaryInst:
        return cls(OpID.FADD, lhs, rhs, bb)

    @classmethod
    def create_fsub(cls, lhs, rhs, bb) -> FBinaryInst:
        return cls(OpID.FSUB, lhs, rhs, bb)

    @classmethod
    def create_fmul(cls, lhs, rhs, bb) -> FBinaryInst:
        return cls(OpID.FMUL, lhs, rhs, bb)

    @classmethod
    def create_fdiv(cls, lhs, rhs, bb) -> FBinaryInst:
        return cls(OpID.FDIV, lhs, rhs, bb)

    def __str__(self) -> str:
        return self._lhs() + _print_two_operands(self)


class _CmpMixin:
    def _cmp_str(self, kind: str) -> str:
        return f"%{self.name} = {kind} {self.op_name()} " + _print_two_operands(self)


class ICmpInst(_CmpMixin, Instruction):
    """Signed integer comparison yielding i1."""

    def __init__(self, op_id: OpID, lhs: Value, rhs: Value, bb):
        if not (lhs.type.is_int32_type() and rhs.type.is_int32_type()):
            raise TypeError("CmpInst operands are not both i32")
        super().__init__(_block_module(bb).int1_type, op_id, bb)
        self.add_operand(lhs)
        self.add_operand(rhs)

    @classmethod
    def create_ge(cls, lhs, rhs, bb) -> ICmpInst:
        return cls(OpID.GE, lhs, rhs, bb)

    @classmethod
    def create_gt(cls, lhs, rhs, bb) -> ICmpInst:
        return cls(OpID.GT, lhs, rhs, bb)

    @classmethod
    def create_le(cls, lhs, rhs, bb) -> ICmpInst:
        return cls(OpID.LE, lhs, rhs, bb)

    @classmethod
    def create_lt(cls, lhs, rhs, bb) -> ICmpInst:
        return cls(OpID.LT, lhs, rhs, bb)

    @classmethod
    def create_eq(cls, lhs, rhs, bb) -> ICmpInst:
        return cls(OpID.EQ, lhs, rhs, bb)

    @classmethod
    def create_ne(cls, lhs, rhs, bb) -> ICmpInst:
        return cls(OpID.NE, lhs, rhs, bb)

    def __str__(self) -> str:
        return self._cmp_str("icmp")


class FCmpInst(_CmpMixin, Instruction):
    """Unordered floating point comparison yielding i1."""

    def __init__(self, op_id: OpID, lhs: Value, rhs: Value, bb):
        if not (lhs.type.is_float_type() and rhs.type.is_float_type()):
            raise TypeError("FCmpInst operands are not both float")
        super().__init__(_block_module(bb).int1_type, op_id, bb)
        self.add_operand(lhs)
        self.add_operand(rhs)

    @classmethod
    def create_fge(cls, lhs, rhs, bb) -> FCmpInst:
        return cls(OpID.FGE, lhs, rhs, bb)

    @classmethod
    def create_fgt(cls, lhs, rhs, bb) -> FCmpInst:
        return cls(OpID.FGT, lhs, rhs, bb)

    @classmethod
    def create_fle(cls, lhs, rhs, bb) -> FCmpInst:
        return cls(OpID.FLE, lhs, rhs, bb)

    @classmethod
    def create_flt(cls, lhs, rhs, bb) -> FCmpInst:
        return cls(OpID.FLT, lhs, rhs, bb)

    @classmethod
    def create_feq(cls, lhs, rhs, bb) -> FCmpInst:
        return cls(OpID.FEQ, lhs, rhs, bb)

    @classmethod
    def create_fne(cls, lhs, rhs, bb) -> FCmpInst:
        return cls(OpID.FNE, lhs, rhs, bb)

    def __str__(self) -> str:
        return self._cmp_str("fcmp")


class CallInst(Instruction):
    """Call of a function; operand 0 is the callee, the rest are arguments."""

    def __init__(self, func, args: Sequence[Value], bb):
        if not func.type.is_function_type():
            raise TypeError("Not a function")
        args = list(args)
        func_type = func.type
        if func_type.num_of_args() != len(args):
            raise ValueError("Wrong number of args")
        for param, arg in zip(func_type.params, args):
            if param is not arg.type:
                raise TypeError("CallInst: Wrong arg type")
        super().__init__(func_type.return_type, OpID.CALL, bb)
        self.add_operand(func)
        for arg in args:
            self.add_operand(arg)

    @classmethod
    def create_call(cls, func, args, bb) -> CallInst:
        return cls(func, args, bb)

    def function_type(self):
        return self.get_operand(0).type

    def __str__(self) -> str:
        callee = self.get_operand(0)
        if not callee.type.is_function_type():
            raise TypeError("Wrong call operand function")
        head = "" if self.is_void() else f"%{self.name} = "
        args = ", ".join(
            f"{arg.type} {print_as_op(arg, False)}" for arg in self.operands[1:]
        )
        return (
            f"{head}{self.op_name()} {self.function_type().return_type} "
            f"{print_as_op(callee, False)}({args})"
        )


class BranchInst(Instruction):
    """Conditional or unconditional jump; keeps the CFG edges up to date."""

    def __init__(self, cond: Value | None, if_true, if_false, bb):
        module = _block_module(bb)
        if cond is None:
            if if_false is not None:
                raise ValueError("Given false-bb on conditionless jump")
            super().__init__(module.void_type, OpID.BR, bb)
            self.add_operand(if_true)
            if_true.add_pre_basic_block(bb)
            bb.add_succ_basic_block(if_true)
        else:
            if not cond.type.is_int1_type():
                raise TypeError("BranchInst condition is not i1")
            super().__init__(module.void_type, OpID.BR, bb)
            self.add_operand(cond)
            self.add_operand(if_true)
            self.add_operand(if_false)
            if_true.add_pre_basic_block(bb)
            if_false.add_pre_basic_block(bb)
            bb.add_succ_basic_block(if_true)
            bb.add_succ_basic_block(if_false)

    @classmethod
    def create_cond_br(cls, cond, if_true, if_false, bb) -> BranchInst:
        return cls(cond, if_true, if_false, bb)

    @classmethod
    def create_br(cls, if_true, bb) -> BranchInst:
        return cls(None, if_true, None, bb)

    def is_cond_br(self) -> bool:
        return self.num_operands == 3

    def detach(self) -> None:
        """Remove the CFG edges this branch created, then drop its operands."""
        targets = self.operands[1:] if self.is_cond_br() else self.operands[:1]
        for succ in targets:
            if succ is not None:
                succ.remove_pre_basic_block(self.parent)
                self.parent.remove_succ_basic_block(succ)
        super().detach()

    def __str__(self) -> str:
        text = f"{self.op_name()} {print_as_op(self.get_operand(0), True)}"
        if self.is_cond_br():
            text += (
                f", {print_as_op(self.get_operand(1), True)}"
                f", {print_as_op(self.get_operand(2), True)}"
            )
        return text


class ReturnInst(Instruction):
    """Return from the enclosing function, with or without a value."""

    def __init__(self, value: Value | None, bb):
        return_type = bb.parent.return_type()
        if value is None:
            if not return_type.is_void_type():
                raise TypeError("Non-void function returning nothing")
        else:
            if return_type.is_void_type():
                raise TypeError("Void function returning a value")
            if return_type is not value.type:
                raise TypeError(
                    "ReturnInst type is different from function return type"
                )
        super().__init__(_block_module(bb).void_type, OpID.RET, bb)
        if value is not None:
            self.add_operand(value)

    @classmethod
    def create_ret(cls, value, bb) -> ReturnInst:
        return cls(value, bb)

    @classmethod
    def create_void_ret(cls, bb) -> ReturnInst:
        return cls(None, bb)

    def is_void_ret(self) -> bool:
        return self.num_operands == 0

    def __str__(self) -> str:
        if self.is_void_ret():
            return f"{self.op_name()} void"
        value = self.get_operand(0)
        return f"{self.op_name()} {value.type} {print_as_op(value, False)}"


class GetElementPtrInst(Instruction):
    """Address computation into an array or scalar pointer."""

    def __init__(self, ptr: Value, indices: Iterable[Value], bb):
        indices = list(indices)
        element = self.compute_element_type(ptr, indices)
        for idx in indices:
            if not idx.type.is_integer_type():
                raise TypeError("Index is not integer")
        super().__init__(
            _block_module(bb).pointer_type(element), OpID.GETELEMENTPTR, bb
        )
        self.add_operand(ptr)
        for idx in indices:
            self.add_operand(idx)

    @classmethod
    def create_gep(cls, ptr, indices, bb) -> GetElementPtrInst:
        return cls(ptr, indices, bb)

    @staticmethod
    def compute_element_type(ptr: Value, indices: Sequence[Value]) -> Type:
        """Type reached by indexing through ``ptr`` with ``indices``."""
        if not ptr.type.is_pointer_type():
            raise TypeError("GetElementPtrInst ptr is not a pointer")
        ty = ptr.type.pointer_element_type()
        if ty.type_id not in (TypeID.ARRAY, TypeID.INTEGER, TypeID.FLOAT):
            raise TypeError("GetElementPtrInst ptr is wrong type")
        if isinstance(ty, ArrayType):
            array = ty
            steps = len(indices) - 1
            for step in range(1, steps + 1):
                ty = array.element_type
                if step < steps and not ty.is_array_type():
                    raise IndexError("Index error!")
                if isinstance(ty, ArrayType):
                    array = ty
        return ty

    def element_type(self) -> Type:
        return self.type.pointer_element_type()

    def __str__(self) -> str:
        base = self.get_operand(0)
        if not base.type.is_pointer_type():
            raise TypeError("GetElementPtrInst base is not a pointer")
        operands = ", ".join(
            f"{op.type} {print_as_op(op, False)}" for op in self.operands
        )
        return f"{self._lhs()}{base.type.pointer_element_type()}, {operands}"


class StoreInst(Instruction):
    """Write a value through a pointer."""

    def __init__(self, value: Value, ptr: Value, bb):
        if not ptr.type.is_pointer_type() or (
            ptr.type.pointer_element_type() is not value.type
        ):
            raise TypeError("StoreInst ptr is not a pointer to val type")
        super().__init__(_block_module(bb).void_type, OpID.STORE, bb)
        self.add_operand(value)
        self.add_operand(ptr)

    @classmethod
    def create_store(cls, value, ptr, bb) -> StoreInst:
        return cls(value, ptr, bb)

    def rval(self) -> Value:
        return self.get_operand(0)

    def lval(self) -> Value:
        return self.get_operand(1)

    def __str__(self) -> str:
        value = self.get_operand(0)
        return (
            f"{self.op_name()} {value.type} {print_as_op(value, False)}, "
            f"{print_as_op(self.get_operand(1), True)}"
        )


class LoadInst(Instruction):
    """Read a scalar or pointer value through a pointer."""

    def __init__(self, ptr: Value, bb):
        if not ptr.type.is_pointer_type():
            raise TypeError("LoadInst operand is not a pointer")
        loaded = ptr.type.pointer_element_type()
        if not (
            loaded.is_integer_type()
            or loaded.is_float_type()
            or loaded.is_pointer_type()
        ):
            raise TypeError("Should not load value with type except int/float")
        super().__init__(loaded, OpID.LOAD, bb)
        self.add_operand(ptr)

    @classmethod
    def create_load(cls, ptr, bb) -> LoadInst:
        return cls(ptr, bb)

    def lval(self) -> Value:
        return self.get_operand(0)

    def __str__(self) -> str:
        ptr = self.get_operand(0)
        return (
            f"{self._lhs()}{ptr.type.pointer_element_type()}, "
            f"{print_as_op(ptr, True)}"
        )


_ALLOCA_KINDS = frozenset({TypeID.INTEGER, TypeID.FLOAT, TypeID.ARRAY, TypeID.POINTER})


class AllocaInst(Instruction):
    """Stack slot for a local variable."""

    def __init__(self, type: Type, bb):
        if type.type_id not in _ALLOCA_KINDS:
            raise TypeError("Not allowed type for alloca")
        super().__init__(_block_module(bb).pointer_type(type), OpID.ALLOCA, bb)

    @classmethod
    def create_alloca(cls, type, bb) -> AllocaInst:
        return cls(type, bb)

    def alloca_type(self) -> Type:
        return self.type.pointer_element_type()

    def __str__(self) -> str:
        return f"{self._lhs()}{self.alloca_type()}"


class ZextInst(Instruction):
    """Zero extension to a wider integer."""

    def __init__(self, value: Value, type: Type, bb):
        if not value.type.is_integer_type():
            raise TypeError("ZextInst operand is not integer")
        if not type.is_integer_type():
            raise TypeError("ZextInst destination type is not integer")
        if value.type.num_bits >= type.num_bits:
            raise TypeError(
                "ZextInst operand bit size is not smaller than destination type bit size"
            )
        super().__init__(type, OpID.ZEXT, bb)
        self.add_operand(value)

    @classmethod
    def create_zext(cls, value, type, bb) -> ZextInst:
        return cls(value, type, bb)

    @classmethod
    def create_zext_to_i32(cls, value, bb) -> ZextInst:
        return cls(value, _block_module(bb).int32_type, bb)

    def __str__(self) -> str:
        return _print_cast(self)


class FpToSiInst(Instruction):
    """Conversion of a float to a signed integer."""

    def __init__(self, value: Value, type: Type, bb):
        if not value.type.is_float_type():
            raise TypeError("FpToSiInst operand is not float")
        if not type.is_integer_type():
            raise TypeError("FpToSiInst destination type is not integer")
        super().__init__(type, OpID.FPTOSI, bb)
        self.add_operand(value)

    @classmethod
    def create_fptosi(cls, value, type, bb) -> FpToSiInst:
        return cls(value, type, bb)

    @classmethod
    def create_fptosi_to_i32(cls, value, bb) -> FpToSiInst:
        return cls(value, _block_module(bb).int32_type, bb)

    def __str__(self) -> str:
        return _print_cast(self)


class SiToFpInst(Instruction):
    """Conversion of a signed integer to a float."""

    def __init__(self, value: Value, type: Type, bb):
        if not value.type.is_integer_type():
            raise TypeError("SiToFpInst operand is not integer")
        if not type.is_float_type():
            raise TypeError("SiToFpInst destination type is not float")
        super().__init__(type, OpID.SITOFP, bb)
        self.add_operand(value)

    @classmethod
    def create_sitofp(cls, value, bb) -> SiToFpInst:
        return cls(value, _block_module(bb).float_type, bb)

    def __str__(self) -> str:
        return _print_cast(self)


class PhiInst(Instruction):
    """SSA merge; operands alternate value, incoming block.

    The block is recorded as parent but the phi is not appended to it;
    callers place it themselves.
    """

    def __init__(
        self,
        type: Type,
        values: Sequence[Value],
        blocks: Sequence,
        bb,
    ):
        values, blocks = list(values), list(blocks)
        if len(values) != len(blocks):
            raise ValueError("Unmatched vals and bbs")
        for value in values:
            if value.type is not type:
                raise TypeError("Bad type for phi")
        super().__init__(type, OpID.PHI, None)
        for value, block in zip(values, blocks):
            self.add_operand(value)
            self.add_operand(block)
        self.parent = bb

    @classmethod
    def create_phi(cls, type, bb, values=(), blocks=()) -> PhiInst:
        return cls(type, values, blocks, bb)

    def add_phi_pair_operand(self, value: Value, block) -> None:
        self.add_operand(value)
        self.add_operand(block)

    def __str__(self) -> str:
        operands = self.operands
        pairs = ", ".join(
            f"[ {print_as_op(value, False)}, {print_as_op(block, False)} ]"
            for value, block in zip(operands[0::2], operands[1::2])
        )
        text = f"{self._lhs()}{self.type} {pairs}"
        preds = list(self.parent.pre_basic_blocks)
        if len(operands) // 2 < len(preds):
            for pred in preds:
                if not any(op is pred for op in operands):
                    text += f", [ undef, {print_as_op(pred, False)} ]"
        return text