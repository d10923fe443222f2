"""A reduced EVM state: a stack of known words or unknown values, and a run state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Unknown:
    """A stack value that is not a known constant."""

    def __str__(self) -> str:
        return "◻"


UNKNOWN = Unknown()

StackItem = Union[int, Unknown]


@dataclass(frozen=True)
class Running:
    """Execution continues with the next block."""


@dataclass(frozen=True)
class Stop:
    """Execution has ended."""


@dataclass(frozen=True)
class Jump:
    """Execution continues at one of the given destinations."""

    destinations: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "destinations", tuple(self.destinations))


State = Union[Running, Stop, Jump]


@dataclass(frozen=True)
class SimpleContext:
    """A stack (top at the end) and the state reached with it."""

    stack: tuple[StackItem, ...] = ()
    state: State = field(default_factory=Running)

    def __post_init__(self) -> None:
        object.__setattr__(self, "stack", tuple(self.stack))


def stack_item_to_str(item: StackItem) -> str:
    """Render a stack item: a hex word, or a box for an unknown value."""
    if isinstance(item, Unknown):
        return str(item)
    return f"0x{item:x}"