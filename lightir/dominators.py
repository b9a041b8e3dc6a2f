"""Dominator analysis: immediate dominators, frontiers and the dominator tree."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .basicblock import BasicBlock
    from .function import Function
    from .module import Module


class Dominators:
    """Computes dominance information for every defined function of a module."""

    def __init__(self, module: Module):
        self.module = module
        self._idom: dict[BasicBlock, BasicBlock | None] = {}
        self._post_order: dict[BasicBlock, int] = {}
        self._post_order_vec: list[BasicBlock] = []
        self._frontier: dict[BasicBlock, dict[BasicBlock, None]] = {}
        self._tree_succ: dict[BasicBlock, dict[BasicBlock, None]] = {}
        self._tree_l: dict[BasicBlock, int] = {}
        self._tree_r: dict[BasicBlock, int] = {}
        self._dom_dfs_order: list[BasicBlock] = []
        self._dom_post_order: list[BasicBlock] = []

    def run(self) -> None:
        for func in self.module.functions:
            if not func.is_declaration():
                self.run_on_func(func)

    def run_on_func(self, func: Function) -> None:
        self._dom_dfs_order = []
        self._dom_post_order = []
        for bb in func.basic_blocks:
            self._idom[bb] = None
            self._frontier[bb] = {}
            self._tree_succ[bb] = {}
        self._create_reverse_post_order(func)
        self._create_idom(func)
        self._create_dominance_frontier(func)
        self._create_dom_tree_succ(func)
        self._create_dom_dfs_order(func)

    def intersect(self, b1: BasicBlock, b2: BasicBlock) -> BasicBlock:
        """Deepest block that dominates both ``b1`` and ``b2``."""
        while b1 is not b2:
            while self.post_order(b1) < self.post_order(b2):
                b1 = self.idom(b1)
            while self.post_order(b2) < self.post_order(b1):
                b2 = self.idom(b2)
        return b1

    def idom(self, bb: BasicBlock) -> BasicBlock | None:
        return self._idom[bb]

    def post_order(self, bb: BasicBlock) -> int:
        return self._post_order[bb]

    def dominance_frontier(self, bb: BasicBlock) -> list[BasicBlock]:
        return list(self._frontier.get(bb, {}))

    def dom_tree_succ_blocks(self, bb: BasicBlock) -> list[BasicBlock]:
        return list(self._tree_succ.get(bb, {}))

    def dom_post_order(self) -> list[BasicBlock]:
        return list(self._dom_post_order)

    def dom_dfs_order(self) -> list[BasicBlock]:
        return list(self._dom_dfs_order)

    def is_dominate(self, a: BasicBlock, b: BasicBlock) -> bool:
        """Whether ``a`` dominates ``b``."""
        if a not in self._tree_l or b not in self._tree_l:
            return False
        return self._tree_l[a] <= self._tree_l[b] <= self._tree_r[a]

    def _create_reverse_post_order(self, func: Function) -> None:
        self._post_order_vec = []
        entry = func.entry_block()
        visited = {entry}
        stack = [(entry, iter(entry.succ_basic_blocks))]
        while stack:
            bb, succs = stack[-1]
            for succ in succs:
                if succ not in visited:
                    visited.add(succ)
                    stack.append((succ, iter(succ.succ_basic_blocks)))
                    break
            else:
                stack.pop()
                self._post_order[bb] = len(self._post_order_vec)
                self._post_order_vec.append(bb)

    def _create_idom(self, func: Function) -> None:
        entry = func.entry_block()
        for bb in func.basic_blocks:
            self._idom[bb] = None
        self._idom[entry] = entry
        reverse_post_order = list(reversed(self._post_order_vec))
        changed = True
        while changed:
            changed = False
            for bb in reverse_post_order:
                if bb is entry:
                    continue
                new_idom = None
                for pred in bb.pre_basic_blocks:
                    if self._idom.get(pred) is not None:
                        new_idom = pred if new_idom is None else self.intersect(new_idom, pred)
                if self._idom[bb] is not new_idom:
                    self._idom[bb] = new_idom
                    changed = True

    def _create_dominance_frontier(self, func: Function) -> None:
        for bb in func.basic_blocks:
            if len(bb.pre_basic_blocks) < 2:
                continue
            for pred in bb.pre_basic_blocks:
                runner = pred
                while runner is not self._idom[bb] and runner is not bb:
                    self._frontier.setdefault(runner, {})[bb] = None
                    up = self._idom.get(runner)
                    if up is runner or up is None:
                        break
                    runner = up

    def _create_dom_tree_succ(self, func: Function) -> None:
        for bb in func.basic_blocks:
            parent = self._idom[bb]
            if parent is not None and parent is not bb:
                self._tree_succ.setdefault(parent, {})[bb] = None

    def _create_dom_dfs_order(self, func: Function) -> None:
        entry = func.entry_block()
        order = 1
        self._tree_l[entry] = order
        self._dom_dfs_order.append(entry)
        stack = [(entry, iter(self.dom_tree_succ_blocks(entry)))]
        while stack:
            bb, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                self._tree_r[bb] = order
            else:
                order += 1
                self._tree_l[child] = order
                self._dom_dfs_order.append(child)
                stack.append((child, iter(self.dom_tree_succ_blocks(child))))
        self._dom_post_order = list(reversed(self._dom_dfs_order))

    @staticmethod
    def _block_ids(func: Function) -> dict[BasicBlock, str]:
        func.parent.set_print_name()
        return {
            bb: bb.name if bb.name else f"bb{counter}"
            for counter, bb in enumerate(func.basic_blocks)
        }

    def format_idom(self, func: Function) -> str:
        """Immediate dominator of every block, one per line."""
        ids = self._block_ids(func)
        lines = [f"Immediate dominance of function {func.name}:"]
        for bb in func.basic_blocks:
            dom = self._idom.get(bb)
            lines.append(f"{ids[bb]}: {ids.get(dom, dom.name) if dom else 'null'}")
        return "\n".join(lines) + "\n"

    def format_dominance_frontier(self, func: Function) -> str:
        """Dominance frontier of every block, one per line."""
        ids = self._block_ids(func)
        lines = [f"Dominance Frontier of function {func.name}:"]
        for bb in func.basic_blocks:
            frontier = self.dominance_frontier(bb)
            shown = ", ".join(ids.get(df, df.name) for df in frontier) if frontier else "null"
            lines.append(f"{ids[bb]}: {shown}")
        return "\n".join(lines) + "\n"

    def print_idom(self, func: Function) -> None:
        print(self.format_idom(func), end="")

    def print_dominance_frontier(self, func: Function) -> None:
        print(self.format_dominance_frontier(func), end="")

    @staticmethod
    def _digraph(func: Function, edges: list[str]) -> str:
        text = "digraph G {\n"
        if not edges and func.basic_blocks:
            text += f"\t{func.basic_blocks[0].name};\n"
        else:
            text += "".join(edges)
        return text + "}\n"

    def cfg_dot(self, func: Function) -> str:
        """The control flow graph in DOT form."""
        func.parent.set_print_name()
        edges = [
            f"\t{bb.name}->{succ.name};\n"
            for bb in func.basic_blocks
            for succ in bb.succ_basic_blocks
        ]
        return self._digraph(func, edges)

    def dominator_tree_dot(self, func: Function) -> str:
        """The dominator tree in DOT form."""
        func.parent.set_print_name()
        edges = []
        for bb in func.basic_blocks:
            dom = self._idom.get(bb)
            if dom is not None and dom is not bb:
                edges.append(f"\t{dom.name}->{bb.name};\n")
        return self._digraph(func, edges)

    @staticmethod
    def _render(stem: str, text: str) -> None:
        dot_path = Path(f"{stem}.dot")
        dot_path.write_text(text)
        try:
            subprocess.run(
                ["dot", "-Tpng", f"{stem}.dot", "-o", f"{stem}.png"], check=False
            )
        except FileNotFoundError:
            pass

    def dump_cfg(self, func: Function) -> None:
        """Write ``<name>_cfg.dot`` and render it to PNG with graphviz."""
        if func.is_declaration():
            return
        self._render(f"{func.name}_cfg", self.cfg_dot(func))

    def dump_dominator_tree(self, func: Function) -> None:
        """Write ``<name>_dom_tree.dot`` and render it to PNG with graphviz."""
        if func.is_declaration():
            return
        self._render(f"{func.name}_dom_tree", self.dominator_tree_dot(func))