import pytest

from bytegraph import evm_math
from bytegraph.opcode import Opcode, OpcodeKind

ALL_BYTES = range(256)


def test_from_byte_plain_opcodes():
    assert Opcode.from_byte(0x00) == Opcode(OpcodeKind.STOP)
    assert Opcode.from_byte(0x01) == Opcode(OpcodeKind.ADD)
    assert Opcode.from_byte(0x56) == Opcode(OpcodeKind.JUMP)
    assert Opcode.from_byte(0x5B) == Opcode(OpcodeKind.JUMPDEST)
    assert Opcode.from_byte(0xF1) == Opcode(OpcodeKind.CALL)
    assert Opcode.from_byte(0xFD) == Opcode(OpcodeKind.REVERT)


def test_from_byte_sized_opcodes():
    assert Opcode.from_byte(0x60) == Opcode.push(1)
    assert Opcode.from_byte(0x7F) == Opcode.push(32)
    assert Opcode.from_byte(0x80) == Opcode.dup(1)
    assert Opcode.from_byte(0x8F) == Opcode.dup(16)
    assert Opcode.from_byte(0x90) == Opcode.swap(1)
    assert Opcode.from_byte(0x9F) == Opcode.swap(16)
    assert Opcode.from_byte(0xA0) == Opcode.log(0)
    assert Opcode.from_byte(0xA4) == Opcode.log(4)


@pytest.mark.parametrize("code", [0x0C, 0x1E, 0x21, 0x49, 0xA5, 0xF6, 0xFE])
def test_unknown_bytes_are_invalid(code):
    opcode = Opcode.from_byte(code)
    assert opcode.is_invalid()
    assert opcode.code() == code
    assert opcode.name() == "INVALID"


@pytest.mark.parametrize("code", [-1, 256])
def test_from_byte_rejects_out_of_range(code):
    with pytest.raises(ValueError):
        Opcode.from_byte(code)


@pytest.mark.parametrize("code", [c for c in ALL_BYTES if c != 0x18])
def test_code_round_trip(code):
    assert Opcode.from_byte(code).code() == code


def test_xor_reports_code_of_or():
    assert Opcode.from_byte(0x18).kind is OpcodeKind.XOR
    assert Opcode.from_byte(0x18).code() == 0x17


@pytest.mark.parametrize("code", ALL_BYTES)
def test_delta_is_output_minus_input(code):
    opcode = Opcode.from_byte(code)
    assert opcode.delta() == opcode.stack_output() - opcode.stack_input()


def test_names():
    assert Opcode.from_byte(0x00).name() == "STOP"
    assert Opcode.push(2).name() == "PUSH2"
    assert Opcode.dup(3).name() == "DUP3"
    assert Opcode.swap(4).name() == "SWAP4"
    assert Opcode.log(1).name() == "LOG1"


def test_stack_sizes():
    assert Opcode(OpcodeKind.CALL).stack_input() == 7
    assert Opcode(OpcodeKind.CALL).stack_output() == 1
    assert Opcode.dup(4).stack_input() == 4
    assert Opcode.dup(4).stack_output() == 5
    assert Opcode.swap(4).stack_input() == 5
    assert Opcode.swap(4).stack_output() == 5
    assert Opcode.log(3).stack_input() == 5
    assert Opcode.push(5).stack_output() == 1


def test_predicates():
    assert Opcode.push(1).is_push()
    assert not Opcode.dup(1).is_push()
    assert Opcode.swap(1).is_swap()
    assert Opcode.dup(1).is_dup()
    assert Opcode.log(0).is_log()
    assert Opcode(OpcodeKind.JUMPI).is_jump()
    assert not Opcode(OpcodeKind.JUMPDEST).is_jump()
    exiting = {Opcode.from_byte(c).kind for c in ALL_BYTES if Opcode.from_byte(c).is_exiting()}
    assert exiting == {
        OpcodeKind.STOP,
        OpcodeKind.RETURN,
        OpcodeKind.REVERT,
        OpcodeKind.SELFDESTRUCT,
    }


def test_effects():
    assert Opcode(OpcodeKind.SSTORE).has_effect()
    assert Opcode(OpcodeKind.JUMP).has_effect()
    assert Opcode.log(2).has_effect()
    assert not Opcode(OpcodeKind.ADD).has_effect()
    assert not Opcode.push(1).has_effect()


def test_functions():
    assert Opcode.from_byte(0x01).function() is evm_math.eval_add
    assert Opcode.from_byte(0x18).function() is evm_math.eval_xor
    assert Opcode(OpcodeKind.BYTE).function() is None
    assert Opcode(OpcodeKind.SLOAD).function() is None
    assert Opcode.from_byte(0x02).function()([3, 4]) == 12


def test_to_hex():
    assert Opcode.push(1).to_hex() == "0x60"
    assert Opcode(OpcodeKind.SELFDESTRUCT).to_hex() == "0xff"
    assert Opcode(OpcodeKind.STOP).to_hex() == "0x00"


def test_str_form():
    assert str(Opcode(OpcodeKind.ADD)) == "ADD"
    assert str(Opcode.push(2)) == "PUSH { item_size: 2 }"
    assert str(Opcode.invalid(254)) == "INVALID { code: 254 }"


def test_argument_validation():
    with pytest.raises(ValueError):
        Opcode(OpcodeKind.PUSH)
    with pytest.raises(ValueError):
        Opcode(OpcodeKind.ADD, 1)


def test_opcodes_are_hashable_values():
    assert {Opcode.from_byte(0x60), Opcode.push(1)} == {Opcode.push(1)}