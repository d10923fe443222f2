import random

import pytest

from bytegraph.bytecode import Bytecode, InvalidBytecodeError, stringify_vopcodes
from bytegraph.opcode import Opcode, OpcodeKind
from bytegraph.vopcode import Vopcode, parse_vopcode_line

FIRST_BLOCK_HEX = "608060405234801561001057"

FIRST_BLOCK_OPCODES = """0000 60 PUSH1 0x80
0002 60 PUSH1 0x40
0004 52 MSTORE
0005 34 CALLVALUE
0006 80 DUP1
0007 15 ISZERO
0008 61 PUSH2 0x0010
000b 57 JUMPI

"""


def _read_opcodes(text):
    bytecode = Bytecode()
    for line in text.split("\n"):
        vopcode = parse_vopcode_line(line)
        if vopcode is not None:
            bytecode.insert_vopcode(vopcode)
    return bytecode


def test_bytecode_split_matches_listing():
    assert _read_opcodes(FIRST_BLOCK_OPCODES) == Bytecode.from_hex(FIRST_BLOCK_HEX)


def test_0x_support():
    rng = random.Random(0)
    raw = bytes(rng.randrange(256) for _ in range(200)).hex()
    assert Bytecode.from_hex(raw) == Bytecode.from_hex("0x" + raw)


@pytest.mark.parametrize("raw", ["abc", "0xabc", "abcg", "0xabcg"])
def test_invalid_bytecode(raw):
    with pytest.raises(InvalidBytecodeError):
        Bytecode.from_hex(raw)


def test_decoded_vopcodes():
    bytecode = Bytecode.from_hex("6080604052")
    assert list(bytecode) == [
        Vopcode(Opcode.push(1), 0x80, 0),
        Vopcode(Opcode.push(1), 0x40, 2),
        Vopcode(Opcode(OpcodeKind.MSTORE), None, 4),
    ]


def test_truncated_push():
    bytecode = Bytecode.from_hex("61ff")
    assert bytecode.vopcode_at(0) == Vopcode(Opcode.push(2), 0xFF, 0)
    assert len(bytecode) == 1


def test_stringify():
    bytecode = Bytecode.from_hex("6080604052")
    expected = "0000 PUSH1 0x80\n0002 PUSH1 0x40\n0004 MSTORE\n"
    assert str(bytecode) == expected
    assert stringify_vopcodes(bytecode.vopcodes) == expected


def test_last_pc_and_previous_pc():
    bytecode = Bytecode.from_hex(FIRST_BLOCK_HEX)
    assert bytecode.last_pc() == 11
    assert bytecode.previous_pc(0) is None
    assert bytecode.previous_pc(2) == 0
    assert bytecode.previous_pc(11) == 8


def test_slice_and_iter_range():
    bytecode = Bytecode.from_hex(FIRST_BLOCK_HEX)
    assert [v.pc for v in bytecode.slice_code(2, 6)] == [2, 4, 5, 6]
    assert [v.pc for v in bytecode.iter_range(8, 11)] == [8, 11]


def test_vopcode_at_missing_pc():
    bytecode = Bytecode.from_hex(FIRST_BLOCK_HEX)
    with pytest.raises(KeyError):
        bytecode.vopcode_at(1)


def test_last_pc_of_empty_bytecode():
    with pytest.raises(ValueError):
        Bytecode.from_hex("").last_pc()