import json

import pytest

from bytegraph.opcode import Opcode, OpcodeKind
from bytegraph.vopcode import Vopcode, parse_vopcode_line


@pytest.mark.parametrize(
    "vopcode",
    [
        Vopcode(Opcode.push(2), 0x11AA, 5),
        Vopcode(Opcode(OpcodeKind.ADD), None, 10),
    ],
)
def test_serialize_vopcode(vopcode):
    text = json.dumps(vopcode.to_dict())
    assert Vopcode.from_dict(json.loads(text)) == vopcode


def test_to_dict_value_is_hex():
    assert Vopcode(Opcode.push(2), 0x11AA, 5).to_dict()["value"] == "0x11aa"


def test_next_pc():
    assert Vopcode(Opcode.push(2), 0x11AA, 5).next_pc() == 8
    assert Vopcode(Opcode(OpcodeKind.ADD), None, 10).next_pc() == 11


def test_str():
    assert str(Vopcode(Opcode.push(2), 0x11AA, 5)) == "0005 PUSH2 0x11aa"
    assert str(Vopcode(Opcode.push(2), 0xFF, 0)) == "0000 PUSH2 0x00ff"
    assert str(Vopcode(Opcode(OpcodeKind.ADD), None, 10)) == "000a ADD"


def test_push_without_value_rejected():
    with pytest.raises(ValueError):
        Vopcode(Opcode.push(1), None, 0)


def test_value_on_non_push_rejected():
    with pytest.raises(ValueError):
        Vopcode(Opcode(OpcodeKind.ADD), 1, 0)


def test_push_value_too_large_rejected():
    with pytest.raises(ValueError):
        Vopcode(Opcode.push(1), 256, 0)


def test_push_size_too_large_rejected():
    with pytest.raises(ValueError):
        Vopcode(Opcode.push(33), 0, 0)


def test_push32_max_value_accepted():
    vopcode = Vopcode(Opcode.push(32), (1 << 256) - 1, 0)
    assert vopcode.next_pc() == 33


def test_parse_push_line():
    vopcode = parse_vopcode_line("0000 60 PUSH1 0x80")
    assert vopcode == Vopcode(Opcode.push(1), 0x80, 0)


def test_parse_plain_line():
    assert parse_vopcode_line("000b 57 JUMPI") == Vopcode(Opcode(OpcodeKind.JUMPI), None, 11)


def test_parse_name_mismatch():
    assert parse_vopcode_line("0004 52 ADD") is None


def test_parse_no_match():
    assert parse_vopcode_line("") is None