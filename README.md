# lightir

`lightir` is a small SSA intermediate representation in the style of LLVM,
made for a small C-like language. It comes with the analyses and optimisation
passes that usually run on such an IR. It uses only the standard library.

## Building IR

- `lightir.module.Module` owns types, functions and global variables. Its
  attributes `void_type`, `label_type`, `int1_type`, `int32_type` and
  `float_type` hold the basic types. `pointer_type()`, `array_type()`,
  `function_type()`, `int32_ptr_type()` and `float_ptr_type()` create derived
  types. Each derived type is created once per module, so types can be
  compared by identity.
- `lightir.types` defines `Type`, `IntegerType`, `FloatType`, `FunctionType`,
  `ArrayType` and `PointerType`. `Type.size()` returns the storage size in
  bytes. An invalid type combination raises `TypeError`.
- `lightir.values` defines `Value`, `User` and `Use`. Def-use links are kept
  up to date by `set_operand`, `add_operand`, `remove_operand` and
  `remove_all_operands`. `replace_all_use_with` and `replace_use_with_if`
  redirect uses from one value to another.
- `lightir.constants` provides constants:
  - `ConstantInt.get` returns an interned `i32` constant and
    `ConstantInt.get_bool` an interned `i1` constant.
  - `ConstantFP.get` returns an interned single-precision float constant. It
    is printed as the hexadecimal bit pattern of the value widened to a
    double.
  - `ConstantZero.get` returns the zero initialiser of a type.
  - `ConstantArray` builds an array constant.
- `lightir.globalvar.GlobalVariable.create` makes a global of a given value
  type. The global itself has pointer type. Printing a global that has no
  initialiser raises `ValueError`.
- `lightir.function` defines `Function` and `Argument`. A function with no
  basic blocks is a declaration.
- `lightir.basicblock.BasicBlock` holds instructions and its predecessor and
  successor blocks. Adding an instruction to a block that already ends in
  `ret` or `br` raises `ValueError`.
- `lightir.instructions` provides the instruction classes:
  - `IBinaryInst`, `FBinaryInst`, `ICmpInst` and `FCmpInst`.
  - `CallInst`, `BranchInst` and `ReturnInst`.
  - `GetElementPtrInst`, `LoadInst`, `StoreInst` and `AllocaInst`.
  - `ZextInst`, `FpToSiInst`, `SiToFpInst` and `PhiInst`.

  Each class is built through its `create_*` class methods. Operands of the
  wrong type raise `TypeError`. Branches add and remove the CFG edges between
  blocks themselves.

`str()` on a module, function, block or instruction gives LLVM-style text.
Values that have no name are numbered (`%arg0`, `%label1`, `%op2`, ...) when
they are printed.

## Passes

Each pass is constructed with a `Module` and started with `run()`.

- `lightir.dominators.Dominators` computes immediate dominators
  (`idom`), dominance frontiers (`dominance_frontier`), the dominator tree
  (`dom_tree_succ_blocks`, `dom_dfs_order`, `dom_post_order`) and
  `is_dominate`.
  - `format_idom` and `format_dominance_frontier` return readable summaries.
    `print_idom` and `print_dominance_frontier` write the same summaries to
    standard output.
  - `cfg_dot` and `dominator_tree_dot` return Graphviz DOT source.
  - `dump_cfg` and `dump_dominator_tree` write that source to
    `<function>_cfg.dot` or `<function>_dom_tree.dot` in the current
    directory. They then call the `dot` program to render a PNG. If `dot`
    is not installed, only the `.dot` file is written.
- `lightir.funcinfo.FuncInfo` decides which functions are pure
  (`is_pure_function`). A function is impure if any of these hold:
  - it is a declaration;
  - it is `main`;
  - it takes a non-scalar argument;
  - it loads or stores memory that is not derived from an `alloca`;
  - it calls an impure function.
- `lightir.deadcode.DeadCode` removes blocks that have no predecessors,
  except the entry block. It also removes instructions whose results are
  never needed. Calls to pure functions count as removable.
  `sweep_globally()` drops unused functions (other than `main`) and unused
  globals.
- `lightir.loops.LoopDetection` finds natural loops and how they nest, and
  stores them as `Loop` objects in `loops`. `run()` writes a summary
  (`report()`) to standard error.
- `lightir.licm.LoopInvariantCodeMotion` moves loop-invariant instructions
  into a preheader block placed in front of the loop header. It does nothing
  in a loop that calls an impure function or a function named `input`.
- `lightir.mem2reg.Mem2Reg` promotes loads and stores of local stack slots to
  SSA values, inserting `phi` instructions where needed. The `alloca`
  instructions that are left over are removed by `DeadCode`.

`FuncInfo` and `DeadCode` report what they do through the standard `logging`
module.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from lightir.module import Module
from lightir.function import Function
from lightir.basicblock import BasicBlock
from lightir.constants import ConstantInt
from lightir.instructions import AllocaInst, StoreInst, LoadInst, IBinaryInst, ReturnInst
from lightir.mem2reg import Mem2Reg
from lightir.deadcode import DeadCode

m = Module()
i32 = m.int32_type
main = Function.create(m.function_type(i32, []), "main", m)
entry = BasicBlock.create(m, "entry", main)

slot = AllocaInst.create_alloca(i32, entry)
StoreInst.create_store(ConstantInt.get(40, m), slot, entry)
loaded = LoadInst.create_load(slot, entry)
total = IBinaryInst.create_add(loaded, ConstantInt.get(2, m), entry)
ReturnInst.create_ret(total, entry)

Mem2Reg(m).run()
DeadCode(m).run()
print(m)
```

This prints:

```
define i32 @main() {
entry:
  %op0 = add i32 40, 2
  ret i32 %op0
}
```

## What it does not do

`lightir` is a library only. It has no command-line program. It has no lexer
or parser for a source language, so IR must be built through the Python API.
It does not generate machine code, and it does not read IR back from text.