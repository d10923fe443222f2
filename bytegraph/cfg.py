"""Blocks of straight-line code and the nodes that run them in given contexts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Optional

from .bytecode import Bytecode
from .opcode import OpcodeKind
from .simple_evm import UNKNOWN, Jump, Running, SimpleContext, StackItem, State, Stop, Unknown
from .symbolic import ArgExpr, BytesExpr, Effect, SymbolicBlock, compute_value
from .vopcode import Vopcode

logger = logging.getLogger(__name__)

DuplicationInfo = tuple[int, "Block"]


class Block:
    """A run of opcodes with a single entry, and the nodes executing it."""

    def __init__(
        self,
        code: Sequence[Vopcode],
        duplication_info: Optional[DuplicationInfo] = None,
    ) -> None:
        self.code: tuple[Vopcode, ...] = tuple(code)
        if not self.code:
            raise ValueError("a block needs at least one opcode")
        self.symbolic_block = SymbolicBlock.from_code(self.code)
        self.duplication_info = duplication_info
        self._nodes: list[Node] = []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return (
            self.pc_start() == other.pc_start()
            and self.duplication_info == other.duplication_info
        )

    def __hash__(self) -> int:
        return hash((self.pc_start(), self.duplication_info))

    def __repr__(self) -> str:
        duplication = None if self.duplication_info is None else self.duplication_info[0]
        return (
            f"Block(start={self.pc_start():#x}, duplication={duplication}, "
            f"n_nodes={len(self._nodes)})"
        )

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    def add_node(self, node: Node) -> None:
        self._nodes.append(node)

    def pc_start(self) -> int:
        return self.code[0].pc

    def pc_end(self) -> int:
        return self.code[-1].pc

    def next_pc_start(self) -> int:
        """Program counter right after the last opcode of the block."""
        return self.code[-1].next_pc()

    def n_args(self) -> int:
        """How many stack values the block consumes from before it."""
        return self.symbolic_block.n_args

    def node_starting_with(self, initial_context: SimpleContext) -> Optional[Node]:
        return next(
            (node for node in self._nodes if node.initial_context == initial_context),
            None,
        )

    def child_blocks(self) -> set[Block]:
        return {child.block for node in self._nodes for child in node.children}

    def parent_blocks(self) -> set[Block]:
        return {parent.block for node in self._nodes for parent in node.parents}

    def child_pc_starts(self) -> set[int]:
        return {block.pc_start() for block in self.child_blocks()}

    def parent_pc_starts(self) -> set[int]:
        return {block.pc_start() for block in self.parent_blocks()}

    def has_some_children(self) -> bool:
        return any(node.children for node in self._nodes)

    def final_effect(self) -> Optional[Effect]:
        return self.symbolic_block.final_effect()

    def is_dead_end(self) -> bool:
        return not self.child_blocks()

    def apply_on_simple_context(self, initial_context: SimpleContext) -> SimpleContext:
        """Run the block on a context; the result holds the stack and next destinations."""
        if not isinstance(initial_context.state, Running):
            raise ValueError("a block can only run from a running context")
        n_args = self.n_args()
        stack = list(initial_context.stack)
        if n_args > len(stack):
            return replace(initial_context, state=Stop())

        args: list[StackItem] = [stack.pop() for _ in range(n_args)]
        for expression in self.symbolic_block.symbolic_expressions:
            stack_expression = expression.stack_expression
            if isinstance(stack_expression, BytesExpr):
                stack.append(stack_expression.value)
            elif isinstance(stack_expression, ArgExpr):
                stack.append(args[stack_expression.index - 1])
            else:
                stack.append(UNKNOWN)

        state = self.compute_final_state(self.final_effect(), args)
        return SimpleContext(tuple(stack), state)

    def compute_final_state(
        self, final_effect: Optional[Effect], args: Sequence[StackItem]
    ) -> State:
        """The state reached after the block, given its final effect and its arguments."""
        if final_effect is None:
            return Running()
        opcode = final_effect.opcode
        if opcode.is_jump():
            destinations: list[int] = []
            if opcode.kind is OpcodeKind.JUMPI:
                destinations.append(self.next_pc_start())
            target = final_effect.symbolic_expressions[0].stack_expression
            if isinstance(target, BytesExpr):
                destinations.append(target.value)
            elif isinstance(target, ArgExpr):
                item = args[target.index - 1]
                if isinstance(item, Unknown):
                    raise ValueError("JUMP destination is not a constant")
                destinations.append(item)
            else:
                value = compute_value(target)
                if value is None:
                    raise ValueError("cannot compute jump dest")
                logger.info("Jumpdest required a computation")
                destinations.append(value)
            return Jump(tuple(destinations))
        if opcode.is_exiting():
            return Stop()
        return Running()

    def has_deterministic_child_blocks(self) -> bool:
        final_opcode = self.code[-1].opcode
        if not final_opcode.is_jump():
            return True
        if len(self.code) == 2 and self.code[0].opcode.is_push():
            return True
        if final_opcode.kind is OpcodeKind.JUMPI:
            return len(self.child_blocks()) == 2
        return len(self.child_blocks()) == 1

    def next_conditional_dests(self) -> Optional[tuple[Block, Block]]:
        """(block jumped to, block right after the JUMPI), when both are known."""
        children = list(self.child_blocks())
        if len(children) != 2 or not self.has_deterministic_child_blocks():
            return None
        fallthrough_pc = self.code[-1].next_pc()
        first, second = children
        if first.pc_start() == fallthrough_pc:
            return second, first
        if second.pc_start() != fallthrough_pc:
            raise ValueError("no child block follows the JUMPI")
        return first, second

    def remove_node(self, node: Node) -> None:
        try:
            self._nodes.remove(node)
        except ValueError:
            raise ValueError(f"{node!r} is not in {self!r}") from None


def all_nodes_of_blocks(blocks: Iterable[Block]) -> set[Node]:
    return {node for block in blocks for node in block.nodes}


def all_orphan_nodes(blocks: Iterable[Block]) -> set[Node]:
    return {node for node in all_nodes_of_blocks(blocks) if node.is_orphan()}


class Node:
    """A block executed from one initial context, linked to the nodes around it."""

    def __init__(
        self,
        block: Block,
        initial_context: SimpleContext,
        final_context: SimpleContext,
    ) -> None:
        self._block = block
        self.initial_context = initial_context
        self.final_context = final_context
        self._parents: list[Node] = []
        self._children: list[Node] = []

    @classmethod
    def create_and_attach(cls, block: Block, initial_context: SimpleContext) -> Node:
        """Run ``block`` from ``initial_context`` and register the new node in it."""
        final_context = block.apply_on_simple_context(initial_context)
        node = cls(block, initial_context, final_context)
        block.add_node(node)
        return node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._block == other._block and self.initial_context == other.initial_context

    def __hash__(self) -> int:
        return hash((self._block, self.initial_context))

    def __repr__(self) -> str:
        return (
            f"Node(block={self._block!r}, index={self.index_in_block()}, "
            f"n_parents={len(self._parents)}, n_children={len(self._children)})"
        )

    @property
    def block(self) -> Block:
        return self._block

    @property
    def parents(self) -> list[Node]:
        return list(self._parents)

    @property
    def children(self) -> list[Node]:
        return list(self._children)

    def is_orphan(self) -> bool:
        return not self._parents

    def block_parents(self) -> set[Block]:
        return {parent.block for parent in self._parents}

    def block_children(self) -> set[Block]:
        return {child.block for child in self._children}

    def add_child(self, child: Node) -> None:
        self._children.append(child)
        child._parents.append(self)

    def add_parent(self, parent: Node) -> None:
        self._parents.append(parent)
        parent._children.append(self)

    def remove_child(self, child: Node) -> None:
        """Drop one link to ``child`` (the child's parent link is left alone)."""
        try:
            self._children.remove(child)
        except ValueError:
            raise ValueError(f"Couldn't remove child {child!r} of {self!r}") from None

    def remove_parent(self, parent: Node) -> None:
        """Drop one link to ``parent`` (the parent's child link is left alone)."""
        try:
            self._parents.remove(parent)
        except ValueError:
            raise ValueError(f"Couldn't remove parent {parent!r} of {self!r}") from None

    def index_in_block(self) -> int:
        return next(
            (index for index, node in enumerate(self._block.nodes) if node == self), 0
        )

    def switch_block(self, new_block: Block) -> None:
        self._block.remove_node(self)
        self._block = new_block
        new_block.add_node(self)


def find_block_locations(bytecode: Bytecode) -> list[tuple[int, int]]:
    """The (first pc, last pc) of every block, in program order."""
    locations: list[tuple[int, int]] = []
    last_pc = bytecode.last_pc()
    pc_start: Optional[int] = 0

    for vopcode in bytecode.iter_range(0, last_pc):
        opcode, pc = vopcode.opcode, vopcode.pc
        if pc_start is None:
            if opcode.kind is OpcodeKind.JUMPDEST:
                pc_start = pc
            continue
        if pc == last_pc or opcode.is_exiting() or opcode.kind is OpcodeKind.JUMP:
            locations.append((pc_start, pc))
            pc_start = None
        elif opcode.kind is OpcodeKind.JUMPI:
            locations.append((pc_start, pc))
            pc_start = pc + 1
        elif opcode.kind is OpcodeKind.JUMPDEST:
            previous = bytecode.previous_pc(pc)
            locations.append((pc_start, pc_start if previous is None else previous))
            pc_start = pc
    return locations


def find_blocks(bytecode: Bytecode) -> dict[int, Block]:
    """Split the bytecode into blocks keyed by their first pc."""
    return {
        pc_start: Block(bytecode.slice_code(pc_start, pc_end))
        for pc_start, pc_end in find_block_locations(bytecode)
    }