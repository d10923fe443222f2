[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bytegraph"
version = "0.1.0"
description = "Disassemble EVM bytecode, lift basic blocks to symbolic form and build a control-flow graph."
requires-python = ">=3.10"
dependencies = [
    "cbor2",
]
keywords = ["evm", "bytecode", "disassembler", "control-flow-graph", "ethereum", "symbolic"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Disassemblers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["bytegraph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
