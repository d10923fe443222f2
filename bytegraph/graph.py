"""The control-flow graph of a contract: blocks, and nodes linked by the jumps between them."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace
from typing import Optional

from .bytecode import Bytecode
from .cfg import Block, Node, find_blocks
from .simple_evm import Jump, Running, SimpleContext, Stop

logger = logging.getLogger(__name__)

_duplication_counter = itertools.count()


class Graph:
    """Blocks keyed by their first pc, plus every duplicate made while cleaning the graph."""

    def __init__(self, origin_blocks: dict[int, Block]) -> None:
        self.origin_blocks: dict[int, Block] = dict(origin_blocks)
        self.all_blocks: set[Block] = set(self.origin_blocks.values())

    def __repr__(self) -> str:
        return (
            f"Graph({len(self.origin_blocks)} origin blocks, "
            f"{len(self.all_blocks)} blocks in total)"
        )

    @classmethod
    def from_bytecode(cls, bytecode: Bytecode) -> Graph:
        """Build the graph by running the blocks from the start of the code."""
        graph = cls(find_blocks(bytecode))
        initial_node = Node.create_and_attach(graph.block(0), SimpleContext())
        graph.explore_from(initial_node)
        remove_looping_blocks(graph)
        return graph

    def _expand(self, node: Node) -> Iterator[Node]:
        """Link ``node`` to its successors, yielding those created on the way."""
        final_context = node.final_context
        state = final_context.state
        if isinstance(state, Running):
            destinations: tuple[int, ...] = (node.block.next_pc_start(),)
        elif isinstance(state, Stop):
            destinations = ()
        elif isinstance(state, Jump):
            destinations = state.destinations
        else:
            raise TypeError(f"unexpected state {state!r}")

        next_context = replace(final_context, state=Running())
        for destination in destinations:
            block_dest = self.origin_blocks.get(destination)
            if block_dest is None:
                continue
            existing = block_dest.node_starting_with(next_context)
            if existing is not None:
                node.add_child(existing)
            else:
                new_node = Node.create_and_attach(block_dest, next_context)
                node.add_child(new_node)
                yield new_node

    def explore_from(self, node_origin: Node) -> None:
        """Create, depth first, every node reachable from ``node_origin``."""
        pending = [self._expand(node_origin)]
        while pending:
            new_node = next(pending[-1], None)
            if new_node is None:
                pending.pop()
            else:
                pending.append(self._expand(new_node))

    def duplicate_block(self, block: Block) -> Block:
        """Add an empty copy of ``block`` to the graph and return it."""
        if block not in self.all_blocks:
            raise ValueError(f"{block!r} is not part of the graph")
        duplicated = Block(block.code, (next(_duplication_counter), block))
        self.all_blocks.add(duplicated)
        return duplicated

    def block(self, pc_start: int) -> Block:
        return self.origin_blocks[pc_start]

    def all_pc_starts(self) -> list[int]:
        return list(self.origin_blocks)

    def edges(self) -> list[tuple[int, int]]:
        """Every link between nodes, as (origin block pc start, destination block pc start)."""
        return [
            (pc_start, child.block.pc_start())
            for pc_start, block in self.origin_blocks.items()
            for node in block.nodes
            for child in node.children
        ]

    def pc_end_of_block(self, block_pc_start: int) -> int:
        return self.origin_blocks[block_pc_start].pc_end()

    def all_nodes(self) -> set[Node]:
        return {node for block in self.all_blocks for node in block.nodes}

    def disconnect_nodes(self, parent: Node, child: Node) -> None:
        parent.remove_child(child)
        child.remove_parent(parent)

    def pc_ends(self) -> set[int]:
        return {block.pc_end() for block in self.origin_blocks.values()}

    def initial_node(self) -> Node:
        return self.origin_blocks[0].nodes[0]


def blocks_of_nodes(nodes: Iterable[Node]) -> set[Block]:
    return {node.block for node in nodes}


def _clear_orphan_nodes(node: Node) -> set[Node]:
    """Drop ``node`` if it has no parent left, then whatever that leaves orphaned."""
    deleted: set[Node] = set()
    pending = [node]
    while pending:
        current = pending.pop()
        if current in deleted or not current.is_orphan():
            continue
        if current not in current.block.nodes:
            continue
        current.block.remove_node(current)
        deleted.add(current)
        for child in current.children:
            current.remove_child(child)
            child.remove_parent(current)
            pending.append(child)
    return deleted


def _handle_infinite_loop_block(block: Block) -> None:
    logger.warning("Infinite looping block")
    for parent_node in block.nodes:
        for child_node in parent_node.children:
            if child_node.block == block:
                parent_node.remove_child(child_node)
                child_node.remove_parent(parent_node)
                _clear_orphan_nodes(child_node)


def _find_looping_node(graph: Graph) -> Optional[Node]:
    for node in graph.all_nodes():
        if any(child.block == node.block for child in node.children):
            return node
    return None


def _loop_entry(node: Node, block: Block) -> Node:
    """Walk up the nodes of ``block`` to the first one entered from another block."""
    visited: set[Node] = set()
    while block in node.block_parents():
        grand_parent = next(parent for parent in node.parents if parent.block == block)
        if node in visited:
            _handle_infinite_loop_block(block)
            break
        visited.add(node)
        node = grand_parent
    return node


def remove_looping_blocks(graph: Graph) -> None:
    """Duplicate blocks so that no node links to a node of its own block."""
    while (looping_node := _find_looping_node(graph)) is not None:
        block = looping_node.block
        entry = _loop_entry(looping_node, block)
        if entry not in block.nodes:
            continue
        duplicated = graph.duplicate_block(block)
        entry.switch_block(duplicated)
        logger.debug("Duplicated a looping block")