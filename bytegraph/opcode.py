"""EVM opcodes: decoding from bytes and their static properties."""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import NamedTuple, Optional

from . import evm_math

EvalFunction = Callable[[Sequence[int]], int]


class OpcodeKind(enum.Enum):
    """The family an opcode belongs to; sized families carry an argument."""

    STOP = enum.auto()
    ADD = enum.auto()
    MUL = enum.auto()
    SUB = enum.auto()
    DIV = enum.auto()
    SDIV = enum.auto()
    MOD = enum.auto()
    SMOD = enum.auto()
    ADDMOD = enum.auto()
    MULMOD = enum.auto()
    EXP = enum.auto()
    SIGNEXTEND = enum.auto()
    LT = enum.auto()
    GT = enum.auto()
    SLT = enum.auto()
    SGT = enum.auto()
    EQ = enum.auto()
    ISZERO = enum.auto()
    AND = enum.auto()
    OR = enum.auto()
    XOR = enum.auto()
    NOT = enum.auto()
    BYTE = enum.auto()
    SHL = enum.auto()
    SHR = enum.auto()
    SAR = enum.auto()
    SHA3 = enum.auto()
    ADDRESS = enum.auto()
    BALANCE = enum.auto()
    ORIGIN = enum.auto()
    CALLER = enum.auto()
    CALLVALUE = enum.auto()
    CALLDATALOAD = enum.auto()
    CALLDATASIZE = enum.auto()
    CALLDATACOPY = enum.auto()
    CODESIZE = enum.auto()
    CODECOPY = enum.auto()
    GASPRICE = enum.auto()
    EXTCODESIZE = enum.auto()
    EXTCODECOPY = enum.auto()
    RETURNDATASIZE = enum.auto()
    RETURNDATACOPY = enum.auto()
    EXTCODEHASH = enum.auto()
    BLOCKHASH = enum.auto()
    COINBASE = enum.auto()
    TIMESTAMP = enum.auto()
    NUMBER = enum.auto()
    DIFFICULTY = enum.auto()
    GASLIMIT = enum.auto()
    CHAINID = enum.auto()
    SELFBALANCE = enum.auto()
    BASEFEE = enum.auto()
    POP = enum.auto()
    MLOAD = enum.auto()
    MSTORE = enum.auto()
    MSTORE8 = enum.auto()
    SLOAD = enum.auto()
    SSTORE = enum.auto()
    JUMP = enum.auto()
    JUMPI = enum.auto()
    PC = enum.auto()
    MSIZE = enum.auto()
    GAS = enum.auto()
    JUMPDEST = enum.auto()
    PUSH = enum.auto()
    DUP = enum.auto()
    SWAP = enum.auto()
    LOG = enum.auto()
    CREATE = enum.auto()
    CALL = enum.auto()
    CALLCODE = enum.auto()
    RETURN = enum.auto()
    DELEGATECALL = enum.auto()
    CREATE2 = enum.auto()
    STATICCALL = enum.auto()
    REVERT = enum.auto()
    SELFDESTRUCT = enum.auto()
    INVALID = enum.auto()


_SIZED_KINDS = {
    OpcodeKind.PUSH: "item_size",
    OpcodeKind.DUP: "depth",
    OpcodeKind.SWAP: "depth",
    OpcodeKind.LOG: "topic_count",
    OpcodeKind.INVALID: "code",
}


class _Info(NamedTuple):
    code: int
    stack_input: int
    stack_output: int
    effect: bool
    function: Optional[EvalFunction] = None


K = OpcodeKind

# Properties of the opcodes that take no argument. XOR reports 0x17 as its
# code here, while the byte 0x18 is what decodes to it.
_PLAIN_INFO: dict[OpcodeKind, _Info] = {
    K.STOP: _Info(0x00, 0, 0, True),
    K.ADD: _Info(0x01, 2, 1, False, evm_math.eval_add),
    K.MUL: _Info(0x02, 2, 1, False, evm_math.eval_mul),
    K.SUB: _Info(0x03, 2, 1, False, evm_math.eval_sub),
    K.DIV: _Info(0x04, 2, 1, False, evm_math.eval_div),
    K.SDIV: _Info(0x05, 2, 1, False, evm_math.eval_sdiv),
    K.MOD: _Info(0x06, 2, 1, False, evm_math.eval_mod),
    K.SMOD: _Info(0x07, 2, 1, False, evm_math.eval_smod),
    K.ADDMOD: _Info(0x08, 3, 1, False, evm_math.eval_addmod),
    K.MULMOD: _Info(0x09, 3, 1, False, evm_math.eval_mulmod),
    K.EXP: _Info(0x0A, 2, 1, False, evm_math.eval_exp),
    K.SIGNEXTEND: _Info(0x0B, 2, 1, False, evm_math.eval_signextend),
    K.LT: _Info(0x10, 2, 1, False, evm_math.eval_lt),
    K.GT: _Info(0x11, 2, 1, False, evm_math.eval_gt),
    K.SLT: _Info(0x12, 2, 1, False, evm_math.eval_slt),
    K.SGT: _Info(0x13, 2, 1, False, evm_math.eval_sgt),
    K.EQ: _Info(0x14, 2, 1, False, evm_math.eval_eq),
    K.ISZERO: _Info(0x15, 1, 1, False, evm_math.eval_iszero),
    K.AND: _Info(0x16, 2, 1, False, evm_math.eval_and),
    K.OR: _Info(0x17, 2, 1, False, evm_math.eval_or),
    K.XOR: _Info(0x17, 2, 1, False, evm_math.eval_xor),
    K.NOT: _Info(0x19, 1, 1, False, evm_math.eval_not),
    K.BYTE: _Info(0x1A, 2, 1, False),
    K.SHL: _Info(0x1B, 2, 1, False, evm_math.eval_shl),
    K.SHR: _Info(0x1C, 2, 1, False, evm_math.eval_shr),
    K.SAR: _Info(0x1D, 2, 1, False, evm_math.eval_sar),
    K.SHA3: _Info(0x20, 2, 1, True),
    K.ADDRESS: _Info(0x30, 0, 1, False),
    K.BALANCE: _Info(0x31, 1, 1, True),
    K.ORIGIN: _Info(0x32, 0, 1, False),
    K.CALLER: _Info(0x33, 0, 1, False),
    K.CALLVALUE: _Info(0x34, 0, 1, False),
    K.CALLDATALOAD: _Info(0x35, 1, 1, False),
    K.CALLDATASIZE: _Info(0x36, 0, 1, False),
    K.CALLDATACOPY: _Info(0x37, 3, 0, True),
    K.CODESIZE: _Info(0x38, 0, 1, True),
    K.CODECOPY: _Info(0x39, 3, 0, True),
    K.GASPRICE: _Info(0x3A, 0, 1, False),
    K.EXTCODESIZE: _Info(0x3B, 1, 1, True),
    K.EXTCODECOPY: _Info(0x3C, 4, 0, True),
    K.RETURNDATASIZE: _Info(0x3D, 0, 1, True),
    K.RETURNDATACOPY: _Info(0x3E, 3, 0, True),
    K.EXTCODEHASH: _Info(0x3F, 1, 1, True),
    K.BLOCKHASH: _Info(0x40, 1, 1, False),
    K.COINBASE: _Info(0x41, 0, 1, False),
    K.TIMESTAMP: _Info(0x42, 0, 1, False),
    K.NUMBER: _Info(0x43, 0, 1, False),
    K.DIFFICULTY: _Info(0x44, 0, 1, False),
    K.GASLIMIT: _Info(0x45, 0, 1, False),
    K.CHAINID: _Info(0x46, 0, 1, False),
    K.SELFBALANCE: _Info(0x47, 0, 1, True),
    K.BASEFEE: _Info(0x48, 0, 1, False),
    K.POP: _Info(0x50, 1, 0, False),
    K.MLOAD: _Info(0x51, 1, 1, True),
    K.MSTORE: _Info(0x52, 2, 0, True),
    K.MSTORE8: _Info(0x53, 2, 0, True),
    K.SLOAD: _Info(0x54, 1, 1, True),
    K.SSTORE: _Info(0x55, 2, 0, True),
    K.JUMP: _Info(0x56, 1, 0, True),
    K.JUMPI: _Info(0x57, 2, 0, True),
    K.PC: _Info(0x58, 0, 1, False),
    K.MSIZE: _Info(0x59, 0, 1, True),
    K.GAS: _Info(0x5A, 0, 1, True),
    K.JUMPDEST: _Info(0x5B, 0, 0, False),
    K.CREATE: _Info(0xF0, 3, 1, True),
    K.CALL: _Info(0xF1, 7, 1, True),
    K.CALLCODE: _Info(0xF2, 7, 1, True),
    K.RETURN: _Info(0xF3, 2, 0, True),
    K.DELEGATECALL: _Info(0xF4, 6, 1, True),
    K.CREATE2: _Info(0xF5, 4, 1, True),
    K.STATICCALL: _Info(0xFA, 6, 1, True),
    K.REVERT: _Info(0xFD, 2, 0, True),
    K.SELFDESTRUCT: _Info(0xFF, 1, 0, True),
}

_PLAIN_BY_BYTE: dict[int, OpcodeKind] = {
    info.code: kind for kind, info in _PLAIN_INFO.items() if kind is not K.XOR
}
_PLAIN_BY_BYTE[0x18] = K.XOR

_EXITING = frozenset({K.STOP, K.RETURN, K.REVERT, K.SELFDESTRUCT})
_JUMPS = frozenset({K.JUMP, K.JUMPI})


@dataclass(frozen=True)
class Opcode:
    """An opcode: its kind, and for sized kinds the size, depth, count or raw byte."""

    kind: OpcodeKind
    arg: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind in _SIZED_KINDS:
            if self.arg is None:
                raise ValueError(f"{self.kind.name} needs a {_SIZED_KINDS[self.kind]}")
        elif self.arg is not None:
            raise ValueError(f"{self.kind.name} takes no argument")

    @classmethod
    def push(cls, item_size: int) -> Opcode:
        return cls(OpcodeKind.PUSH, item_size)

    @classmethod
    def dup(cls, depth: int) -> Opcode:
        return cls(OpcodeKind.DUP, depth)

    @classmethod
    def swap(cls, depth: int) -> Opcode:
        return cls(OpcodeKind.SWAP, depth)

    @classmethod
    def log(cls, topic_count: int) -> Opcode:
        return cls(OpcodeKind.LOG, topic_count)

    @classmethod
    def invalid(cls, code: int) -> Opcode:
        return cls(OpcodeKind.INVALID, code)

    @staticmethod
    def from_byte(code: int) -> Opcode:
        """Decode one byte of bytecode into an opcode."""
        if not 0 <= code <= 0xFF:
            raise ValueError(f"opcode byte out of range: {code}")
        if 0x60 <= code <= 0x7F:
            return Opcode.push(code - 0x5F)
        if 0x80 <= code <= 0x8F:
            return Opcode.dup(code - 0x7F)
        if 0x90 <= code <= 0x9F:
            return Opcode.swap(code - 0x8F)
        if 0xA0 <= code <= 0xA4:
            return Opcode.log(code - 0xA0)
        kind = _PLAIN_BY_BYTE.get(code)
        if kind is None:
            return Opcode.invalid(code)
        return Opcode(kind)

    def _info(self) -> _Info:
        kind, arg = self.kind, self.arg
        if kind is K.PUSH:
            return _Info(0x5F + arg, 0, 1, False)
        if kind is K.DUP:
            return _Info(0x7F + arg, arg, arg + 1, False)
        if kind is K.SWAP:
            return _Info(0x8F + arg, arg + 1, arg + 1, False)
        if kind is K.LOG:
            return _Info(0xA0 + arg, arg + 2, 0, True)
        if kind is K.INVALID:
            return _Info(arg, 0, 0, False)
        return _PLAIN_INFO[kind]

    def code(self) -> int:
        return self._info().code

    def name(self) -> str:
        if self.kind in (K.PUSH, K.DUP, K.SWAP, K.LOG):
            return f"{self.kind.name}{self.arg}"
        return self.kind.name

    def stack_input(self) -> int:
        return self._info().stack_input

    def stack_output(self) -> int:
        return self._info().stack_output

    def has_effect(self) -> bool:
        """Whether the moment the opcode runs matters (memory, storage, calls...)."""
        return self._info().effect

    def function(self) -> Optional[EvalFunction]:
        """The word-level evaluation function, for pure arithmetic opcodes."""
        return self._info().function

    def to_hex(self) -> str:
        return f"0x{self.code() & 0xFF:02x}"

    def is_push(self) -> bool:
        return self.kind is K.PUSH

    def is_swap(self) -> bool:
        return self.kind is K.SWAP

    def is_dup(self) -> bool:
        return self.kind is K.DUP

    def is_log(self) -> bool:
        return self.kind is K.LOG

    def is_invalid(self) -> bool:
        return self.kind is K.INVALID

    def is_exiting(self) -> bool:
        return self.kind in _EXITING

    def is_jump(self) -> bool:
        return self.kind in _JUMPS

    def delta(self) -> int:
        """Net change of the stack height."""
        return self.stack_output() - self.stack_input()

    def __str__(self) -> str:
        if self.kind in _SIZED_KINDS:
            return f"{self.kind.name} {{ {_SIZED_KINDS[self.kind]}: {self.arg} }}"
        return self.kind.name