from unittest import mock

from lightir.basicblock import BasicBlock
from lightir.constants import ConstantInt
from lightir.dominators import Dominators
from lightir.function import Function
from lightir.instructions import BranchInst, ICmpInst, ReturnInst
from lightir.module import Module


def _func(module, name="main"):
    return Function(module.function_type(module.void_type, []), name, module)


def _cond(module, bb):
    one = ConstantInt.get(1, module)
    return ICmpInst.create_lt(one, one, bb)


def _diamond():
    module = Module()
    func = _func(module)
    entry = BasicBlock(module, "entry", func)
    then = BasicBlock(module, "then", func)
    other = BasicBlock(module, "other", func)
    merge = BasicBlock(module, "merge", func)
    BranchInst.create_cond_br(_cond(module, entry), then, other, entry)
    BranchInst.create_br(merge, then)
    BranchInst.create_br(merge, other)
    ReturnInst.create_void_ret(merge)
    dom = Dominators(module)
    dom.run()
    return module, func, dom, entry, then, other, merge


def _loop():
    module = Module()
    func = _func(module)
    entry = BasicBlock(module, "entry", func)
    header = BasicBlock(module, "header", func)
    body = BasicBlock(module, "body", func)
    exit_bb = BasicBlock(module, "exit", func)
    BranchInst.create_br(header, entry)
    BranchInst.create_cond_br(_cond(module, header), body, exit_bb, header)
    BranchInst.create_br(header, body)
    ReturnInst.create_void_ret(exit_bb)
    dom = Dominators(module)
    dom.run()
    return module, func, dom, entry, header, body, exit_bb


def test_diamond_idom():
    _, _, dom, entry, then, other, merge = _diamond()
    assert dom.idom(entry) is entry
    assert dom.idom(then) is entry
    assert dom.idom(other) is entry
    assert dom.idom(merge) is entry


def test_diamond_frontier():
    _, _, dom, entry, then, other, merge = _diamond()
    assert dom.dominance_frontier(then) == [merge]
    assert dom.dominance_frontier(other) == [merge]
    assert dom.dominance_frontier(entry) == []
    assert dom.dominance_frontier(merge) == []


def test_diamond_tree_and_dominance():
    _, _, dom, entry, then, other, merge = _diamond()
    assert set(dom.dom_tree_succ_blocks(entry)) == {then, other, merge}
    assert dom.dom_tree_succ_blocks(merge) == []
    assert dom.is_dominate(entry, merge) is True
    assert dom.is_dominate(then, merge) is False
    assert dom.is_dominate(merge, merge) is True
    assert dom.intersect(then, other) is entry


def test_dfs_orders():
    _, _, dom, entry, then, other, merge = _diamond()
    dfs = dom.dom_dfs_order()
    assert dfs[0] is entry
    assert set(dfs) == {entry, then, other, merge}
    assert dom.dom_post_order() == list(reversed(dfs))


def test_post_order_entry_is_last():
    _, _, dom, entry, then, other, merge = _diamond()
    numbers = [dom.post_order(bb) for bb in (entry, then, other, merge)]
    assert dom.post_order(entry) == max(numbers)
    assert dom.post_order(merge) < dom.post_order(then) or dom.post_order(merge) < dom.post_order(other)


def test_loop_dominance():
    _, _, dom, entry, header, body, exit_bb = _loop()
    assert dom.idom(header) is entry
    assert dom.idom(body) is header
    assert dom.idom(exit_bb) is header
    assert dom.is_dominate(header, body) is True
    assert dom.is_dominate(body, header) is False
    assert dom.dominance_frontier(body) == [header]


def test_unreachable_block():
    module = Module()
    func = _func(module)
    entry = BasicBlock(module, "entry", func)
    ReturnInst.create_void_ret(entry)
    lost = BasicBlock(module, "lost", func)
    ReturnInst.create_void_ret(lost)
    dom = Dominators(module)
    dom.run()
    assert dom.idom(lost) is None
    assert dom.is_dominate(entry, lost) is False
    assert lost not in dom.dom_dfs_order()


def test_run_skips_declarations():
    module = Module()
    Function(module.function_type(module.int32_type, []), "input", module)
    func = _func(module)
    entry = BasicBlock(module, "entry", func)
    ReturnInst.create_void_ret(entry)
    dom = Dominators(module)
    dom.run()
    assert dom.dom_dfs_order() == [entry]


def test_format_idom():
    _, func, dom, entry, then, other, merge = _diamond()
    lines = dom.format_idom(func).splitlines()
    assert lines[0] == "Immediate dominance of function main:"
    assert f"{then.name}: {entry.name}" in lines
    assert f"{merge.name}: {entry.name}" in lines
    assert len(lines) == 5


def test_format_dominance_frontier(capsys):
    _, func, dom, entry, then, other, merge = _diamond()
    text = dom.format_dominance_frontier(func)
    assert text.splitlines()[0] == "Dominance Frontier of function main:"
    assert f"{entry.name}: null" in text.splitlines()
    assert f"{then.name}: {merge.name}" in text.splitlines()
    dom.print_dominance_frontier(func)
    assert capsys.readouterr().out == text


def test_cfg_dot_edges():
    _, func, dom, entry, then, other, merge = _diamond()
    text = dom.cfg_dot(func)
    assert text.startswith("digraph G {\n")
    assert text.endswith("}\n")
    assert f"\t{entry.name}->{then.name};\n" in text
    assert f"\t{other.name}->{merge.name};\n" in text


def test_cfg_dot_single_block():
    module = Module()
    func = _func(module)
    entry = BasicBlock(module, "entry", func)
    ReturnInst.create_void_ret(entry)
    dom = Dominators(module)
    dom.run()
    assert dom.cfg_dot(func) == "digraph G {\n\tentry;\n}\n"


def test_dominator_tree_dot():
    _, func, dom, entry, then, other, merge = _diamond()
    text = dom.dominator_tree_dot(func)
    assert f"\t{entry.name}->{merge.name};\n" in text
    assert f"\t{then.name}->{merge.name};\n" not in text


def test_dump_cfg_writes_file_and_runs_dot(tmp_path, monkeypatch):
    _, func, dom, *_ = _diamond()
    monkeypatch.chdir(tmp_path)
    with mock.patch("subprocess.run") as run:
        dom.dump_cfg(func)
    assert (tmp_path / "main_cfg.dot").read_text() == dom.cfg_dot(func)
    args = run.call_args[0][0]
    assert args == ["dot", "-Tpng", "main_cfg.dot", "-o", "main_cfg.png"]


def test_dump_dominator_tree_skips_declaration(tmp_path, monkeypatch):
    module = Module()
    decl = _func(module, "input")
    func = _func(module)
    entry = BasicBlock(module, "entry", func)
    ReturnInst.create_void_ret(entry)
    dom = Dominators(module)
    dom.run()
    monkeypatch.chdir(tmp_path)
    with mock.patch("subprocess.run") as run:
        dom.dump_dominator_tree(decl)
        dom.dump_dominator_tree(func)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["main_dom_tree.dot"]
    assert (tmp_path / "main_dom_tree.dot").read_text() == dom.dominator_tree_dot(func)
    assert run.call_count == 1
    assert run.call_args[0][0] == [
        "dot", "-Tpng", "main_dom_tree.dot", "-o", "main_dom_tree.png"
    ]