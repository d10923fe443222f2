"""High-level textual rendering of the calculation an opcode performs."""

from __future__ import annotations

from collections.abc import Callable

from .opcode import Opcode, OpcodeKind

OFFSET_SIZE_SEP = "::"

ArgsGetter = Callable[[int, bool], str]

K = OpcodeKind

# Each entry: a template with positional "{}" fields (and "{sep}" for the
# offset/size separator) and, in field order, the (stack index, nested) pairs
# passed to the argument getter. A nested argument is meant to be wrapped in
# parentheses by the getter when it is a non-trivial expression.
_TEMPLATES: dict[OpcodeKind, tuple[str, tuple[tuple[int, bool], ...]]] = {
    K.STOP: ("stop", ()),
    K.ADD: ("{} + {}", ((0, True), (1, True))),
    K.MUL: ("{} * {}", ((0, True), (1, True))),
    K.SUB: ("{} - {}", ((0, True), (1, True))),
    K.DIV: ("{} / {}", ((0, True), (1, True))),
    K.SDIV: ("{} / {} (signed)", ((0, True), (1, True))),
    K.MOD: ("{} % {}", ((0, True), (1, True))),
    K.SMOD: ("{} % {} (signed)", ((0, True), (1, True))),
    K.ADDMOD: ("{} % {} mod {}", ((0, True), (1, True), (2, True))),
    K.MULMOD: ("{} * {} mod {}", ((0, True), (1, True), (2, True))),
    K.EXP: ("{} ** {}", ((0, True), (1, True))),
    K.SIGNEXTEND: ("signextend({}, {})", ((0, True), (1, True))),
    K.LT: ("{} < {}", ((0, True), (1, True))),
    K.GT: ("{} > {}", ((0, True), (1, True))),
    K.SLT: ("{} < {} (signed)", ((0, True), (1, True))),
    K.SGT: ("{} > {} (signed)", ((0, True), (1, True))),
    K.EQ: ("{} == {}", ((0, True), (1, True))),
    K.ISZERO: ("!{}", ((0, True),)),
    K.AND: ("{} & {}", ((0, True), (1, True))),
    K.OR: ("{} | {}", ((0, True), (1, True))),
    K.XOR: ("{} ^ {}", ((0, True), (1, True))),
    K.NOT: ("~{}", ((0, True),)),
    K.BYTE: ("{}-th byte of {}", ((0, True), (1, True))),
    K.SHL: ("{} << {}", ((1, True), (0, True))),
    K.SHR: ("{} >> {}", ((1, True), (0, True))),
    K.SAR: ("{} >> {} (signed)", ((1, True), (0, True))),
    K.SHA3: ("sha3[{}{sep}{}]", ((0, True), (1, True))),
    K.ADDRESS: ("address(this)", ()),
    K.BALANCE: ("address({}).balance", ((0, False),)),
    K.ORIGIN: ("tx.origin", ()),
    K.CALLER: ("msg.sender", ()),
    K.CALLVALUE: ("msg.value", ()),
    K.CALLDATALOAD: ("calldata[{}]", ((0, False),)),
    K.CALLDATASIZE: ("calldatasize", ()),
    K.CALLDATACOPY: (
        "memory[{}..] = calldata[{}{sep}{}]",
        ((0, False), (1, True), (2, True)),
    ),
    K.CODESIZE: ("codesize", ()),
    K.CODECOPY: (
        "memory[{}..] = code(this)[{}{sep}{}]",
        ((0, False), (1, True), (2, True)),
    ),
    K.GASPRICE: ("gasprice", ()),
    K.EXTCODESIZE: ("extcodesize({})", ((0, True),)),
    K.EXTCODECOPY: (
        "memory[{}..] = code({})[{}{sep}{}]",
        ((1, False), (0, False), (2, True), (3, True)),
    ),
    K.RETURNDATASIZE: ("returndatasize", ()),
    K.RETURNDATACOPY: (
        "memory[{}..] = returndata[{}{sep}{}]",
        ((0, True), (1, True), (2, True)),
    ),
    K.EXTCODEHASH: ("codehash({})", ((0, True),)),
    K.BLOCKHASH: ("blockhash({})", ((0, True),)),
    K.COINBASE: ("coinbase", ()),
    K.TIMESTAMP: ("block.timestamp", ()),
    K.NUMBER: ("block.number", ()),
    K.DIFFICULTY: ("block.difficulty", ()),
    K.GASLIMIT: ("gasLeft()", ()),
    K.CHAINID: ("block.chainid", ()),
    K.SELFBALANCE: ("address(this).balance", ()),
    K.BASEFEE: ("block.basefee", ()),
    K.MLOAD: ("memory[{}]", ((0, False),)),
    K.MSTORE: ("memory[{}] = {}", ((0, False), (1, False))),
    K.MSTORE8: ("memory[{}] = {} (1 byte)", ((0, False), (1, False))),
    K.SLOAD: ("storage[{}]", ((0, False),)),
    K.SSTORE: ("storage[{}] = {}", ((0, False), (1, False))),
    K.PC: ("PC", ()),
    K.MSIZE: ("msize", ()),
    K.GAS: ("gasleft()", ()),
    K.CREATE: (
        "create(value: {}, code: [{}{sep}{}])",
        ((0, False), (1, True), (2, True)),
    ),
    K.CALL: (
        "call(gas: {}, address: {}, value: {}, args: [{}{sep}{}]), res: [{}{sep}{}])",
        ((0, False), (1, False), (2, False), (3, True), (4, True), (5, True), (6, True)),
    ),
    K.CALLCODE: (
        "callcode(gas: {}, address: {}, value: {}, args: [{}{sep}{}]), res: [{}{sep}{}]",
        ((0, False), (1, False), (2, False), (3, True), (4, True), (5, True), (6, True)),
    ),
    K.RETURN: ("return[{}{sep}{}]", ((0, True), (1, True))),
    K.DELEGATECALL: (
        "delegatecall(gas: {}, address: {}, args: [{}{sep}{}], res: [{}{sep}{}] )",
        ((0, False), (1, False), (2, True), (3, True), (4, True), (5, True)),
    ),
    K.CREATE2: (
        "create(value: {}, code: [{}{sep}{}], salt: {})",
        ((0, False), (1, True), (2, True), (3, False)),
    ),
    K.STATICCALL: (
        "staticcall(gas: {}, address: {}, args: [{}{sep}{}], res: [{}{sep}{}] )",
        ((0, False), (1, False), (2, True), (3, True), (4, True), (5, True)),
    ),
    K.REVERT: ("revert[{}{sep}{}]", ((0, True), (1, True))),
    K.SELFDESTRUCT: ("seldestruct({})", ((0, False),)),
}

_NOT_DISPLAYABLE = frozenset(
    {K.POP, K.JUMP, K.JUMPI, K.JUMPDEST, K.PUSH, K.DUP, K.SWAP, K.INVALID}
)


def calculation_to_str(opcode: Opcode, get_args: ArgsGetter) -> str:
    """Describe what ``opcode`` computes, rendering its operands with ``get_args``.

    ``get_args(index, nested)`` returns the text of the operand at stack
    position ``index``; ``nested`` asks for parentheses around non-trivial
    expressions. Stack-shuffling and control opcodes have no such rendering
    and raise ``ValueError``.
    """
    kind = opcode.kind
    if kind in _NOT_DISPLAYABLE:
        raise ValueError(f"{kind.name} should not be displayed at a high level.")
    if kind is K.LOG:
        text = f"log[{get_args(0, True)}{OFFSET_SIZE_SEP}{get_args(1, True)}]"
        topics = "".join(f", {get_args(2 + index, True)}" for index in range(opcode.arg))
        return f"{text}{topics})"
    template, spec = _TEMPLATES[kind]
    args = [get_args(index, nested) for index, nested in spec]
    return template.format(*args, sep=OFFSET_SIZE_SEP)