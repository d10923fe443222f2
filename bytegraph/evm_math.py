"""Word-level arithmetic of the EVM on 256-bit unsigned integers.

Every ``eval_*`` function takes the operands of an opcode, in stack order
(top of the stack first), and returns the resulting 256-bit word.
"""

from __future__ import annotations

from collections.abc import Sequence

WORD_BITS = 256
MODULUS = 1 << WORD_BITS
MAX_U256 = MODULUS - 1
SIGN_BIT = 1 << (WORD_BITS - 1)
SIGN_BIT_MASK = SIGN_BIT - 1
MIN_I256 = -SIGN_BIT


def _operands(args: Sequence[int], count: int) -> tuple[int, ...]:
    values = tuple(args)
    if len(values) != count:
        raise ValueError(f"expected {count} operands, got {len(values)}")
    return values


def to_signed(value: int) -> int:
    """Read a 256-bit word as a two's complement signed integer."""
    return value - MODULUS if value & SIGN_BIT else value


def from_signed(value: int) -> int:
    """Encode a signed integer as a 256-bit two's complement word."""
    return value % MODULUS


def byte(a: int, b: int) -> int:
    """Return the ``a``-th byte of ``b``, counting from the most significant one."""
    if a >= 32:
        return 0
    return (b >> (8 * (31 - a))) & 0xFF


def eval_add(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return (a + b) & MAX_U256


def eval_mul(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return (a * b) & MAX_U256


def eval_sub(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return (a - b) & MAX_U256


def eval_div(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return 0 if b == 0 else a // b


def eval_sdiv(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    signed_a, signed_b = to_signed(a), to_signed(b)
    if signed_b == 0:
        return 0
    if signed_a == MIN_I256 and abs(signed_b) == 1:
        return from_signed(MIN_I256)
    quotient = (abs(signed_a) // abs(signed_b)) & SIGN_BIT_MASK
    if (signed_a < 0) != (signed_b < 0):
        quotient = -quotient
    return from_signed(quotient)


def eval_mod(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return 0 if b == 0 else a % b


def eval_smod(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    if b == 0:
        return 0
    signed_a, signed_b = to_signed(a), to_signed(b)
    remainder = (abs(signed_a) % abs(signed_b)) & SIGN_BIT_MASK
    return from_signed(-remainder if signed_a < 0 else remainder)


def eval_addmod(args: Sequence[int]) -> int:
    a, b, n = _operands(args, 3)
    return 0 if n == 0 else (a + b) % n


def eval_mulmod(args: Sequence[int]) -> int:
    a, b, n = _operands(args, 3)
    return 0 if n == 0 else (a * b) % n


def eval_exp(args: Sequence[int]) -> int:
    base, exponent = _operands(args, 2)
    return pow(base, exponent, MODULUS)


def eval_signextend(args: Sequence[int]) -> int:
    size, value = _operands(args, 2)
    if size >= 32:
        return value
    bit_index = 8 * size + 7
    mask = (1 << bit_index) - 1
    if (value >> bit_index) & 1:
        return value | (MAX_U256 ^ mask)
    return value & mask


def _flag(condition: bool) -> int:
    return 1 if condition else 0


def eval_lt(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return _flag(a < b)


def eval_gt(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return _flag(a > b)


def eval_slt(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return _flag(to_signed(a) < to_signed(b))


def eval_sgt(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return _flag(to_signed(a) > to_signed(b))


def eval_eq(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return _flag(a == b)


def eval_iszero(args: Sequence[int]) -> int:
    (a,) = _operands(args, 1)
    return _flag(a == 0)


def eval_and(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return a & b


def eval_or(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return a | b


def eval_xor(args: Sequence[int]) -> int:
    a, b = _operands(args, 2)
    return a ^ b


def eval_not(args: Sequence[int]) -> int:
    (a,) = _operands(args, 1)
    return MAX_U256 ^ a


def eval_shl(args: Sequence[int]) -> int:
    shift, value = _operands(args, 2)
    if value == 0 or shift >= WORD_BITS:
        return 0
    return (value << shift) & MAX_U256


def eval_shr(args: Sequence[int]) -> int:
    shift, value = _operands(args, 2)
    if value == 0 or shift >= WORD_BITS:
        return 0
    return value >> shift


def eval_sar(args: Sequence[int]) -> int:
    shift, value = _operands(args, 2)
    signed_value = to_signed(value)
    if signed_value == 0 or shift >= WORD_BITS:
        return MAX_U256 if signed_value < 0 else 0
    return from_signed(signed_value >> shift)