"""A small SSA intermediate representation with dominator analysis, loop detection and optimisation passes."""

__version__ = "0.1.0"

__all__ = [
    "basicblock",
    "constants",
    "deadcode",
    "dominators",
    "funcinfo",
    "function",
    "globalvar",
    "instructions",
    "licm",
    "loops",
    "mem2reg",
    "module",
    "types",
    "values",
]