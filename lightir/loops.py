"""Natural loop detection based on the dominator tree."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from .dominators import Dominators

if TYPE_CHECKING:
    from .basicblock import BasicBlock
    from .function import Function
    from .module import Module


class Loop:
    """A natural loop: its header, body blocks, latches and nesting."""

    def __init__(self, header: BasicBlock):
        self.header = header
        self.blocks: list[BasicBlock] = [header]
        self.latches: set[BasicBlock] = set()
        self.sub_loops: list[Loop] = []
        self.parent: Loop | None = None
        self.preheader: BasicBlock | None = None

    def add_block(self, bb: BasicBlock) -> None:
        if bb not in self.blocks:
            self.blocks.append(bb)

    def add_latch(self, bb: BasicBlock) -> None:
        self.latches.add(bb)

    def add_sub_loop(self, loop: Loop) -> None:
        if loop not in self.sub_loops:
            self.sub_loops.append(loop)

    def __repr__(self) -> str:
        return f"<Loop header={self.header.name!r} blocks={len(self.blocks)}>"


class LoopDetection:
    """Finds every natural loop in the defined functions of a module."""

    def __init__(self, module: Module):
        self.module = module
        self.loops: list[Loop] = []
        self.bb_to_loop: dict[BasicBlock, Loop] = {}
        self.dominators: Dominators | None = None
        self.func: Function | None = None

    def run(self) -> None:
        self.dominators = Dominators(self.module)
        for func in self.module.functions:
            if func.is_declaration():
                continue
            self.func = func
            self.run_on_func(func)
        sys.stderr.write(self.report())

    def run_on_func(self, func: Function) -> None:
        if self.dominators is None:
            self.dominators = Dominators(self.module)
        self.dominators.run_on_func(func)
        for bb in self.dominators.dom_post_order():
            latches = [
                pred
                for pred in dict.fromkeys(bb.pre_basic_blocks)
                if self.dominators.is_dominate(bb, pred)
            ]
            if not latches:
                continue
            loop = Loop(bb)
            self.bb_to_loop[bb] = loop
            for latch in latches:
                loop.add_latch(latch)
            self.loops.append(loop)
            self._discover_loop_and_sub_loops(latches, loop)

    def _discover_loop_and_sub_loops(self, latches: list[BasicBlock], loop: Loop) -> None:
        work_list = list(latches)
        while work_list:
            bb = work_list.pop()
            owner = self.bb_to_loop.get(bb)
            if owner is None:
                loop.add_block(bb)
                self.bb_to_loop[bb] = loop
                work_list.extend(bb.pre_basic_blocks)
            elif owner is not loop:
                ancestor = owner
                while ancestor.parent is not None:
                    ancestor = ancestor.parent
                if ancestor is loop:
                    continue
                loop.add_sub_loop(ancestor)
                ancestor.parent = loop
                for block in list(ancestor.blocks):
                    loop.add_block(block)
                    self.bb_to_loop[block] = loop
                work_list.extend(ancestor.header.pre_basic_blocks)

    def report(self) -> str:
        """Text describing every detected loop."""
        self.module.set_print_name()
        lines = ["Loop Detection Result:\n"]
        for loop in self.loops:
            lines.append(f"Loop header: {loop.header.name}\n")
            lines.append("Loop blocks: " + "".join(f"{bb.name} " for bb in loop.blocks) + "\n")
            lines.append(
                "Sub loops: " + "".join(f"{sub.header.name} " for sub in loop.sub_loops) + "\n"
            )
        return "".join(lines)