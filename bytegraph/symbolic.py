"""Symbolic execution of a straight-line block of opcodes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, Union

from .opcode import Opcode, OpcodeKind
from .vopcode import Vopcode


@dataclass(frozen=True)
class BytesExpr:
    """A constant word."""

    value: int


@dataclass(frozen=True)
class ArgExpr:
    """The ``index``-th value found on the stack when the block starts (1 = top)."""

    index: int


@dataclass(frozen=True)
class ComposeExpr:
    """The result of ``opcode`` applied to ``args`` (top of the stack first)."""

    opcode: Opcode
    args: tuple[SymbolicExpression, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


StackExpression = Union[BytesExpr, ArgExpr, ComposeExpr]


@dataclass(frozen=True)
class Effect:
    """An opcode whose execution matters beyond the stack, with its operands."""

    opcode: Opcode
    symbolic_expressions: tuple[SymbolicExpression, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbolic_expressions", tuple(self.symbolic_expressions))


@dataclass(frozen=True)
class SymbolicExpression:
    """A stack expression, with the effect that produced it if any."""

    stack_expression: StackExpression
    origin_effect: Optional[Effect] = None

    def compute_value(self) -> Optional[int]:
        return compute_value(self.stack_expression)


def compute_value(stack_expression: StackExpression) -> Optional[int]:
    """Evaluate an expression to a word, or ``None`` if it is not constant."""
    if isinstance(stack_expression, BytesExpr):
        return stack_expression.value
    if isinstance(stack_expression, ArgExpr):
        return None
    function = stack_expression.opcode.function()
    if function is None:
        return None
    params = []
    for expression in stack_expression.args:
        value = compute_value(expression.stack_expression)
        if value is None:
            return None
        params.append(value)
    return function(params)


@dataclass
class SymbolicBlock:
    """The symbolic stack (bottom first) and effects left by a run of opcodes."""

    symbolic_expressions: list[SymbolicExpression] = field(default_factory=list)
    effects: list[Effect] = field(default_factory=list)
    n_args: int = 0

    @classmethod
    def from_code(cls, code: Iterable[Vopcode]) -> SymbolicBlock:
        block = cls()
        for vopcode in code:
            block.apply_vopcode(vopcode)
        return block

    def delta(self) -> int:
        """Net change of the stack height over the block."""
        return self.n_outputs() - self.n_args

    def n_outputs(self) -> int:
        return len(self.symbolic_expressions)

    def final_effect(self) -> Optional[Effect]:
        """The last effect when it is a jump or ends execution."""
        if self.effects:
            last = self.effects[-1]
            if last.opcode.is_jump() or last.opcode.is_exiting():
                return last
        return None

    def _fill_with_place_holders(self, required: int) -> None:
        while len(self.symbolic_expressions) < required:
            self.n_args += 1
            self.symbolic_expressions.insert(0, SymbolicExpression(ArgExpr(self.n_args)))

    def _multi_pop(self, count: int) -> list[SymbolicExpression]:
        return [self.symbolic_expressions.pop() for _ in range(count)]

    def apply_vopcode(self, vopcode: Vopcode) -> None:
        opcode = vopcode.opcode
        self._fill_with_place_holders(opcode.stack_input())
        stack = self.symbolic_expressions

        if opcode.kind is OpcodeKind.DUP:
            stack.append(stack[-opcode.arg])
        elif opcode.kind is OpcodeKind.SWAP:
            depth = opcode.arg
            stack[-1], stack[-1 - depth] = stack[-1 - depth], stack[-1]
        elif opcode.kind is OpcodeKind.POP:
            stack.pop()
        elif opcode.is_push():
            stack.append(SymbolicExpression(BytesExpr(vopcode.value)))
        else:
            consumed = tuple(self._multi_pop(opcode.stack_input()))
            effect = None
            if opcode.has_effect():
                effect = Effect(opcode, consumed)
                self.effects.append(effect)
            if opcode.stack_output() > 0:
                stack.append(SymbolicExpression(ComposeExpr(opcode, consumed), effect))