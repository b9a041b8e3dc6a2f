import pytest

from lightir.constants import ConstantInt
from lightir.globalvar import GlobalVariable
from lightir.module import Module
from lightir.types import TypeID


class _StubFunction:
    def __init__(self, text):
        self.text = text
        self.named = 0

    def set_instr_name(self):
        self.named += 1

    def __str__(self):
        return self.text


@pytest.fixture
def module():
    return Module()


def test_builtin_types(module):
    assert module.void_type.type_id is TypeID.VOID
    assert module.label_type.type_id is TypeID.LABEL
    assert module.int1_type.num_bits == 1
    assert module.int32_type.num_bits == 32
    assert module.float_type.module is module


def test_pointer_types_are_interned(module):
    p1 = module.pointer_type(module.int32_type)
    assert module.pointer_type(module.int32_type) is p1
    assert module.int32_ptr_type() is p1
    assert module.float_ptr_type() is module.pointer_type(module.float_type)
    assert module.float_ptr_type() is not p1


def test_array_types_are_interned(module):
    a = module.array_type(module.int32_type, 3)
    assert module.array_type(module.int32_type, 3) is a
    assert module.array_type(module.int32_type, 4) is not a
    assert a.num_elements == 3


def test_function_types_are_interned(module):
    params = [module.int32_type, module.float_type]
    ft = module.function_type(module.void_type, params)
    assert module.function_type(module.void_type, tuple(params)) is ft
    assert module.function_type(module.int32_type, params) is not ft
    assert ft.params == tuple(params)


def test_invalid_types_raise(module):
    with pytest.raises(TypeError):
        module.pointer_type(module.void_type)
    with pytest.raises(TypeError):
        module.function_type(module.label_type, [])


def test_set_print_name_visits_functions(module):
    stubs = [_StubFunction("a"), _StubFunction("b")]
    for stub in stubs:
        module.add_function(stub)
    module.set_print_name()
    assert [s.named for s in stubs] == [1, 1]
    assert module.functions == stubs


def test_str_prints_globals_then_functions(module):
    init = ConstantInt.get(5, module)
    GlobalVariable.create("g", module, module.int32_type, False, init)
    stub = _StubFunction("define void @f() {}")
    module.add_function(stub)
    text = str(module)
    assert text == "@g = global i32 5\n" + str(stub) + "\n"
    assert stub.named == 1


def test_str_of_empty_module(module):
    assert str(module) == ""