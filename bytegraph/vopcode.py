"""An opcode placed in the bytecode: its position and, for pushes, its value."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from .opcode import Opcode, OpcodeKind

_LINE_RE = re.compile(
    r"([A-Fa-f0-9]+)[^\w\d]+([A-Fa-f0-9]{1,2})[^\w\d]+([\w\d]+)"
    r"(?:[^\w\d]*(?:0x)?([A-Fa-f0-9]*))?"
)


@dataclass(frozen=True)
class Vopcode:
    """An opcode at program counter ``pc``, with the pushed value for PUSH opcodes."""

    opcode: Opcode
    value: Optional[int]
    pc: int

    def __post_init__(self) -> None:
        opcode, value = self.opcode, self.value
        if value is None:
            if opcode.is_push():
                raise ValueError("Vopcode with an empty value should not be a push")
            return
        if not opcode.is_push():
            raise ValueError("Vopcode with non empty value should be a push opcode.")
        n_bytes = opcode.arg
        if n_bytes < 1:
            raise ValueError("PUSH(n) must verify 1 <= n")
        if n_bytes > 32:
            raise ValueError("PUSH(n) must verify n <= 32")
        if not 0 <= value < 1 << (8 * n_bytes):
            raise ValueError("The value after PUSH(n) should be less than (2^8)^n")

    def next_pc(self) -> int:
        """Program counter of the opcode that follows this one."""
        extra = self.opcode.arg if self.opcode.is_push() else 0
        return self.pc + 1 + extra

    def to_dict(self) -> dict[str, Any]:
        """A JSON-friendly representation."""
        return {
            "opcode": {"kind": self.opcode.kind.name, "arg": self.opcode.arg},
            "value": None if self.value is None else f"0x{self.value:x}",
            "pc": self.pc,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Vopcode:
        """Rebuild a vopcode from the output of :meth:`to_dict`."""
        opcode_data = data["opcode"]
        opcode = Opcode(OpcodeKind[opcode_data["kind"]], opcode_data.get("arg"))
        raw_value = data.get("value")
        value = None if raw_value is None else int(raw_value, 16)
        return Vopcode(opcode, value, int(data["pc"]))

    def __str__(self) -> str:
        text = f"{self.pc:04x} {self.opcode.name()}"
        if self.opcode.is_push():
            if self.value is None:
                text += " invalid"
            else:
                text += f" 0x{self.value:0{self.opcode.arg * 2}x}"
        return text


def parse_vopcode_line(line: str) -> Optional[Vopcode]:
    """Parse a disassembly line such as ``0000 60 PUSH1 0x80``.

    Returns ``None`` when the line does not describe an opcode or when the
    name disagrees with the opcode byte.
    """
    match = _LINE_RE.search(line)
    if match is None:
        return None
    pc_text, code_text, name, item_text = match.groups()
    opcode = Opcode.from_byte(int(code_text, 16))
    if name.upper() != opcode.name().upper():
        return None
    value = None
    if opcode.is_push() and item_text:
        value = int(item_text, 16)
    return Vopcode(opcode, value, int(pc_text, 16))