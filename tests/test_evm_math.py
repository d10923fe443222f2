import pytest

from bytegraph import evm_math as m

MAX = (1 << 256) - 1
MIN_SIGNED = 1 << 255


def test_signed_round_trip():
    for value in (0, 1, -1, MIN_SIGNED - 1, -MIN_SIGNED, 12345, -12345):
        assert m.to_signed(m.from_signed(value)) == value


def test_signed_extremes():
    assert m.to_signed(MAX) == -1
    assert m.to_signed(MIN_SIGNED) == -MIN_SIGNED
    assert m.from_signed(-1) == MAX


def test_add_sub_mul_wrap():
    assert m.eval_add([MAX, 1]) == 0
    assert m.eval_sub([0, 1]) == MAX
    assert m.eval_mul([MIN_SIGNED, 2]) == 0


def test_div_and_mod_by_zero():
    assert m.eval_div([5, 0]) == 0
    assert m.eval_mod([5, 0]) == 0
    assert m.eval_sdiv([5, 0]) == 0
    assert m.eval_smod([5, 0]) == 0


@pytest.mark.parametrize("a,b", [(100, 7), (MAX, 3), (MIN_SIGNED, 12345), (6, 6)])
def test_div_mod_invariant(a, b):
    assert m.eval_div([a, b]) * b + m.eval_mod([a, b]) == a


@pytest.mark.parametrize("a,b", [(-7, 2), (7, -2), (-7, -2), (100, 9), (-MIN_SIGNED + 1, 3)])
def test_signed_div_mod_invariant(a, b):
    q = m.to_signed(m.eval_sdiv([m.from_signed(a), m.from_signed(b)]))
    r = m.to_signed(m.eval_smod([m.from_signed(a), m.from_signed(b)]))
    assert q * b + r == a
    assert abs(r) < abs(b)
    assert r == 0 or (r < 0) == (a < 0)


def test_sdiv_min_value_overflow():
    assert m.eval_sdiv([MIN_SIGNED, m.from_signed(-1)]) == MIN_SIGNED
    assert m.eval_sdiv([MIN_SIGNED, 1]) == MIN_SIGNED


def test_addmod_mulmod():
    assert m.eval_addmod([MAX, MAX, MAX]) == 0
    assert m.eval_mulmod([MAX, MAX, MAX]) == 0
    assert m.eval_addmod([1, 2, 0]) == 0
    assert m.eval_mulmod([1, 2, 0]) == 0
    assert m.eval_addmod([MAX, 1, 1 << 255]) == (MAX + 1) % (1 << 255)


def test_exp():
    assert m.eval_exp([3, 5]) == 3 ** 5
    assert m.eval_exp([2, 256]) == 0
    assert m.eval_exp([MAX, 0]) == 1


def test_signextend():
    assert m.eval_signextend([0, 0xFF]) == MAX
    assert m.eval_signextend([0, 0x7F]) == 0x7F
    assert m.eval_signextend([32, 0xFF]) == 0xFF
    assert m.to_signed(m.eval_signextend([1, 0xFFFE])) == -2


def test_comparisons():
    assert m.eval_lt([1, 2]) == 1
    assert m.eval_lt([2, 1]) == 0
    assert m.eval_gt([2, 1]) == 1
    assert m.eval_gt([1, 1]) == 0
    assert m.eval_slt([MAX, 0]) == 1
    assert m.eval_sgt([MAX, 0]) == 0
    assert m.eval_sgt([0, MAX]) == 1
    assert m.eval_eq([7, 7]) == 1
    assert m.eval_eq([7, 8]) == 0
    assert m.eval_iszero([0]) == 1
    assert m.eval_iszero([3]) == 0


def test_bitwise():
    assert m.eval_and([0b1100, 0b1010]) == 0b1000
    assert m.eval_or([0b1100, 0b1010]) == 0b1110
    assert m.eval_xor([0b1100, 0b1010]) == 0b0110
    assert m.eval_not([0]) == MAX
    assert m.eval_not([m.eval_not([12345])]) == 12345


def test_shifts():
    assert m.eval_shl([1, 1]) == 2
    assert m.eval_shl([256, 1]) == 0
    assert m.eval_shl([1, MIN_SIGNED]) == 0
    assert m.eval_shr([255, MIN_SIGNED]) == 1
    assert m.eval_shr([256, MAX]) == 0


def test_sar():
    assert m.eval_sar([1, MAX]) == MAX
    assert m.eval_sar([256, m.from_signed(-5)]) == MAX
    assert m.eval_sar([256, 5]) == 0
    assert m.eval_sar([0, 0]) == 0
    assert m.eval_sar([4, 1 << 8]) == 1 << 4
    assert m.to_signed(m.eval_sar([1, m.from_signed(-3)])) == -2


def test_byte():
    assert m.byte(31, 0xAB) == 0xAB
    assert m.byte(0, 0xAB << 248) == 0xAB
    assert m.byte(32, MAX) == 0
    assert m.byte(30, 0xAB) == 0


@pytest.mark.parametrize(
    "func,args",
    [
        (m.eval_add, [1]),
        (m.eval_addmod, [1, 2]),
        (m.eval_not, [1, 2]),
        (m.eval_iszero, []),
    ],
)
def test_wrong_operand_count(func, args):
    with pytest.raises(ValueError):
        func(args)