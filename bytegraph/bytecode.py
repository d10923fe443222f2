"""Splitting raw bytecode into a sequence of vopcodes indexed by program counter."""

from __future__ import annotations

import binascii
from collections.abc import Iterable, Iterator, Sequence
from typing import Optional

from .opcode import Opcode
from .vopcode import Vopcode


class InvalidBytecodeError(ValueError):
    """The text given is not valid hex-encoded bytecode."""


class Bytecode:
    """Vopcodes in program order, with lookup by program counter."""

    def __init__(self, vopcodes: Iterable[Vopcode] = ()) -> None:
        self._vopcodes: list[Vopcode] = []
        self._pc_to_index: dict[int, int] = {}
        for vopcode in vopcodes:
            self.insert_vopcode(vopcode)

    @classmethod
    def from_hex(cls, raw_bytecode: str) -> Bytecode:
        """Decode hex bytecode, with or without a ``0x`` prefix."""
        text = raw_bytecode[2:] if raw_bytecode.startswith("0x") else raw_bytecode
        try:
            data = binascii.unhexlify(text)
        except (binascii.Error, ValueError) as error:
            raise InvalidBytecodeError(f"invalid bytecode: {error}") from error

        bytecode = cls()
        pc = 0
        length = len(data)
        while pc < length:
            origin = pc
            opcode = Opcode.from_byte(data[pc])
            pc += 1
            value = None
            if opcode.is_push():
                end = min(pc + opcode.arg, length)
                value = int.from_bytes(data[pc:end], "big")
                pc = end
            bytecode.insert_vopcode(Vopcode(opcode, value, origin))
        return bytecode

    def insert_vopcode(self, vopcode: Vopcode) -> None:
        self._pc_to_index[vopcode.pc] = len(self._vopcodes)
        self._vopcodes.append(vopcode)

    @property
    def vopcodes(self) -> tuple[Vopcode, ...]:
        return tuple(self._vopcodes)

    def _index(self, pc: int) -> int:
        try:
            return self._pc_to_index[pc]
        except KeyError:
            raise KeyError(f"no opcode at pc {pc:#x}") from None

    def vopcode_at(self, pc: int) -> Vopcode:
        return self._vopcodes[self._index(pc)]

    def last_pc(self) -> int:
        if not self._vopcodes:
            raise ValueError("empty bytecode has no last pc")
        return self._vopcodes[-1].pc

    def slice_code(self, pc_start: int, pc_end: int) -> list[Vopcode]:
        """The vopcodes from ``pc_start`` to ``pc_end``, both included."""
        return self._vopcodes[self._index(pc_start):self._index(pc_end) + 1]

    def iter_range(self, pc_start: int, pc_end: int) -> Iterator[Vopcode]:
        return iter(self.slice_code(pc_start, pc_end))

    def previous_pc(self, pc: int) -> Optional[int]:
        """The pc of the opcode before ``pc``, or ``None`` at the first one."""
        index = self._index(pc)
        if index == 0:
            return None
        return self._vopcodes[index - 1].pc

    def __iter__(self) -> Iterator[Vopcode]:
        return iter(self._vopcodes)

    def __len__(self) -> int:
        return len(self._vopcodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bytecode):
            return NotImplemented
        return self._vopcodes == other._vopcodes

    def __str__(self) -> str:
        return stringify_vopcodes(self._vopcodes)

    def __repr__(self) -> str:
        return f"Bytecode({len(self._vopcodes)} vopcodes)"


def stringify_vopcodes(vopcodes: Sequence[Vopcode]) -> str:
    """One line per vopcode, each ending with a newline."""
    return "".join(f"{vopcode}\n" for vopcode in vopcodes)