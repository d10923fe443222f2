"""Disassemble EVM bytecode, lift it to symbolic blocks, build a control-flow graph and label its loops."""

__version__ = "0.1.0"