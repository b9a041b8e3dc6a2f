[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lightir"
version = "0.1.0"
description = "A small SSA intermediate representation with dominator analysis, loop detection and optimisation passes"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "ir", "ssa", "mem2reg", "licm", "dominators", "dead-code-elimination"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lightir"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
