import pytest

from lightir.constants import ConstantFP, ConstantInt
from lightir.instructions import (
    AllocaInst,
    BranchInst,
    CallInst,
    FBinaryInst,
    FCmpInst,
    FpToSiInst,
    GetElementPtrInst,
    IBinaryInst,
    ICmpInst,
    LoadInst,
    OpID,
    PhiInst,
    ReturnInst,
    SiToFpInst,
    StoreInst,
    ZextInst,
    op_name,
)
from lightir.module import Module
from lightir.values import Value


class _Function(Value):
    def __init__(self, module, ret, params=(), name="f"):
        super().__init__(module.function_type(ret, params), name)
        self.owner = module

    def return_type(self):
        return self.type.return_type

    def num_of_args(self):
        return self.type.num_of_args()

    def reference(self):
        return "@" + self.name


class _Block(Value):
    def __init__(self, func, name):
        super().__init__(func.owner.label_type, name)
        self.parent = func
        self.instructions = []
        self.pre_basic_blocks = []
        self.succ_basic_blocks = []

    def module(self):
        return self.parent.owner

    def add_instruction(self, inst):
        self.instructions.append(inst)

    def add_pre_basic_block(self, bb):
        self.pre_basic_blocks.append(bb)

    def remove_pre_basic_block(self, bb):
        self.pre_basic_blocks.remove(bb)

    def add_succ_basic_block(self, bb):
        self.succ_basic_blocks.append(bb)

    def remove_succ_basic_block(self, bb):
        self.succ_basic_blocks.remove(bb)


@pytest.fixture
def m():
    return Module()


@pytest.fixture
def func(m):
    return _Function(m, m.int32_type)


@pytest.fixture
def bb(func):
    return _Block(func, "entry")


def test_op_names_fixed_by_printer():
    assert op_name(OpID.GE) == "sge"
    assert op_name(OpID.FEQ) == "ueq"
    assert op_name(OpID.GETELEMENTPTR) == "getelementptr"


def test_add_records_operands_and_uses(m, bb):
    a, b = Value(m.int32_type, "a"), Value(m.int32_type, "b")
    inst = IBinaryInst.create_add(a, b, bb)
    assert inst.type is m.int32_type
    assert bb.instructions == [inst]
    assert inst.operands == (a, b)
    assert [u.user for u in a.use_list] == [inst]
    assert b.use_list[0].arg_no == 1
    assert inst.parent is bb
    assert inst.function() is bb.parent
    assert inst.module() is m
    inst.set_name("x")
    assert str(inst) == "%x = add i32 %a, %b"


def test_integer_ops_have_their_mnemonics(m, bb):
    a = ConstantInt.get(1, m)
    for create, op in [
        (IBinaryInst.create_sub, OpID.SUB),
        (IBinaryInst.create_mul, OpID.MUL),
        (IBinaryInst.create_sdiv, OpID.SDIV),
    ]:
        inst = create(a, a, bb)
        assert inst.op_id is op
        assert inst.op_name() == op.value
        assert not inst.is_void()


def test_binary_rejects_wrong_types(m, bb):
    f = ConstantFP.get(1.0, m)
    i = ConstantInt.get(1, m)
    with pytest.raises(TypeError):
        IBinaryInst.create_add(f, i, bb)
    with pytest.raises(TypeError):
        FBinaryInst.create_fadd(i, f, bb)
    assert bb.instructions == []


def test_float_binary(m, bb):
    x, y = Value(m.float_type, "x"), Value(m.float_type, "y")
    inst = FBinaryInst.create_fmul(x, y, bb)
    assert inst.type is m.float_type
    inst.set_name("r")
    assert str(inst).startswith("%r = fmul float %x, %y")


def test_icmp(m, bb):
    a, b = Value(m.int32_type, "a"), Value(m.int32_type, "b")
    inst = ICmpInst.create_lt(a, b, bb)
    assert inst.type is m.int1_type
    assert inst.is_cmp() and not inst.is_fcmp()
    inst.set_name("c")
    assert str(inst) == "%c = icmp slt i32 %a, %b"


def test_fcmp(m, bb):
    x = Value(m.float_type, "x")
    inst = FCmpInst.create_fne(x, x, bb)
    assert inst.is_fcmp() and not inst.is_cmp()
    assert inst.type is m.int1_type
    with pytest.raises(TypeError):
        FCmpInst.create_fge(ConstantInt.get(0, m), x, bb)
    with pytest.raises(TypeError):
        ICmpInst.create_eq(x, x, bb)


def test_call_void_and_value(m, bb):
    a = Value(m.int32_type, "a")
    g = _Function(m, m.void_type, [m.int32_type], name="g")
    call = CallInst.create_call(g, [a], bb)
    assert call.is_void() and call.is_call()
    assert call.function_type() is g.type
    assert call.operands == (g, a)
    assert str(call) == "call void @g(i32 %a)"
    h = _Function(m, m.int32_type, [], name="h")
    value_call = CallInst.create_call(h, [], bb)
    assert not value_call.is_void()
    value_call.set_name("r")
    assert str(value_call).startswith("%r = call i32 @h(")


def test_call_argument_checks(m, bb):
    g = _Function(m, m.void_type, [m.int32_type], name="g")
    with pytest.raises(ValueError):
        CallInst.create_call(g, [], bb)
    with pytest.raises(TypeError):
        CallInst.create_call(g, [ConstantFP.get(1.0, m)], bb)


def test_unconditional_branch_links_cfg(func, bb):
    target = _Block(func, "next")
    br = BranchInst.create_br(target, bb)
    assert br.is_br() and br.is_void()
    assert not br.is_cond_br()
    assert target.pre_basic_blocks == [bb]
    assert bb.succ_basic_blocks == [target]
    assert str(br) == "br label %next"
    br.detach()
    assert target.pre_basic_blocks == []
    assert bb.succ_basic_blocks == []
    assert target.use_list == []


def test_conditional_branch(m, func, bb):
    t, f = _Block(func, "t"), _Block(func, "f")
    cond = ConstantInt.get_bool(True, m)
    br = BranchInst.create_cond_br(cond, t, f, bb)
    assert br.is_cond_br()
    assert br.num_operands == 3
    assert bb.succ_basic_blocks == [t, f]
    assert t.pre_basic_blocks == [bb] and f.pre_basic_blocks == [bb]
    assert "br i1 true, label %t, label %f" == str(br)


def test_conditional_branch_needs_i1(m, func, bb):
    t, f = _Block(func, "t"), _Block(func, "f")
    with pytest.raises(TypeError):
        BranchInst.create_cond_br(ConstantInt.get(1, m), t, f, bb)
    assert t.pre_basic_blocks == []


def test_return_value(m, bb):
    value = ConstantInt.get(7, m)
    ret = ReturnInst.create_ret(value, bb)
    assert ret.is_ret() and not ret.is_void_ret()
    assert str(ret) == "ret i32 7"
    with pytest.raises(TypeError):
        ReturnInst.create_ret(ConstantFP.get(1.0, m), bb)
    with pytest.raises(TypeError):
        ReturnInst.create_void_ret(bb)


def test_void_return(m):
    func = _Function(m, m.void_type)
    block = _Block(func, "entry")
    ret = ReturnInst.create_void_ret(block)
    assert ret.is_void_ret()
    assert str(ret) == "ret void"
    with pytest.raises(TypeError):
        ReturnInst.create_ret(ConstantInt.get(1, m), block)


def test_alloca_load_store(m, bb):
    slot = AllocaInst.create_alloca(m.int32_type, bb)
    assert slot.type is m.int32_ptr_type()
    assert slot.alloca_type() is m.int32_type
    assert slot.is_alloca()
    value = ConstantInt.get(3, m)
    store = StoreInst.create_store(value, slot, bb)
    assert store.rval() is value and store.lval() is slot
    assert store.is_void()
    load = LoadInst.create_load(slot, bb)
    assert load.type is m.int32_type
    assert load.lval() is slot
    slot.set_name("p")
    load.set_name("v")
    assert str(load) == "%v = load i32, i32* %p"
    assert str(store) == "store i32 3, i32* %p"
    assert bb.instructions == [slot, store, load]


def test_store_type_mismatch(m, bb):
    slot = AllocaInst.create_alloca(m.float_type, bb)
    with pytest.raises(TypeError):
        StoreInst.create_store(ConstantInt.get(1, m), slot, bb)


def test_alloca_rejects_void(m, bb):
    with pytest.raises(TypeError):
        AllocaInst.create_alloca(m.void_type, bb)


def test_load_rejects_array(m, bb):
    arr = AllocaInst.create_alloca(m.array_type(m.int32_type, 4), bb)
    with pytest.raises(TypeError):
        LoadInst.create_load(arr, bb)


def test_gep_element_types(m, bb):
    arr_ty = m.array_type(m.int32_type, 10)
    arr = AllocaInst.create_alloca(arr_ty, bb)
    zero = ConstantInt.get(0, m)
    gep = GetElementPtrInst.create_gep(arr, [zero, zero], bb)
    assert gep.is_gep()
    assert gep.type is m.int32_ptr_type()
    assert gep.element_type() is m.int32_type
    whole = GetElementPtrInst.create_gep(arr, [zero], bb)
    assert whole.element_type() is arr_ty
    assert GetElementPtrInst.compute_element_type(arr, [zero, zero]) is m.int32_type


def test_gep_errors(m, bb):
    zero = ConstantInt.get(0, m)
    arr = AllocaInst.create_alloca(m.array_type(m.int32_type, 2), bb)
    with pytest.raises(IndexError):
        GetElementPtrInst.create_gep(arr, [zero, zero, zero, zero], bb)
    with pytest.raises(TypeError):
        GetElementPtrInst.create_gep(zero, [zero], bb)
    with pytest.raises(TypeError):
        GetElementPtrInst.create_gep(arr, [ConstantFP.get(0.0, m)], bb)


def test_casts(m, bb):
    flag = ConstantInt.get_bool(False, m)
    wide = ZextInst.create_zext_to_i32(flag, bb)
    assert wide.type is m.int32_type
    wide.set_name("w")
    assert str(wide) == "%w = zext i1 false to i32"
    with pytest.raises(TypeError):
        ZextInst.create_zext(wide, m.int1_type, bb)
    f = Value(m.float_type, "f")
    to_int = FpToSiInst.create_fptosi_to_i32(f, bb)
    assert to_int.type is m.int32_type
    with pytest.raises(TypeError):
        FpToSiInst.create_fptosi(wide, m.int32_type, bb)
    to_float = SiToFpInst.create_sitofp(wide, bb)
    assert to_float.type is m.float_type
    assert to_float.operands == (wide,)
    with pytest.raises(TypeError):
        SiToFpInst.create_sitofp(f, bb)


def test_phi_is_not_appended_and_prints_undef(m, func):
    entry, body = _Block(func, "entry"), _Block(func, "body")
    loop = _Block(func, "loop")
    BranchInst.create_br(loop, entry)
    BranchInst.create_br(loop, body)
    a = Value(m.int32_type, "a")
    phi = PhiInst.create_phi(m.int32_type, loop, [a], [entry])
    assert phi.parent is loop
    assert loop.instructions == []
    assert phi.is_phi()
    phi.set_name("p")
    assert str(phi) == "%p = phi i32 [ %a, %entry ], [ undef, %body ]"
    phi.add_phi_pair_operand(a, body)
    assert phi.num_operands == 4
    assert "undef" not in str(phi)


def test_phi_checks(m, func):
    loop = _Block(func, "loop")
    with pytest.raises(ValueError):
        PhiInst.create_phi(m.int32_type, loop, [ConstantInt.get(1, m)], [])
    with pytest.raises(TypeError):
        PhiInst.create_phi(m.float_type, loop, [ConstantInt.get(1, m)], [loop])


def test_replace_all_use_with_rewrites_operands(m, bb):
    a, b = Value(m.int32_type, "a"), Value(m.int32_type, "b")
    first = IBinaryInst.create_add(a, a, bb)
    second = IBinaryInst.create_mul(first, a, bb)
    first.replace_all_use_with(b)
    assert second.get_operand(0) is b
    assert first.use_list == []
    second.detach()
    assert second.operands == ()
    assert all(u.user is not second for u in a.use_list)