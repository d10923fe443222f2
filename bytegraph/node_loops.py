"""Labelling the nodes of a graph with the loops they belong to."""

from __future__ import annotations

from typing import Optional

from .cfg import Block, Node
from .graph import Graph


class NodeLoops:
    """Loops found by a depth-first walk of the nodes, each loop under an integer label."""

    def __init__(self, graph: Graph) -> None:
        self.graph = graph
        self.visited: set[Node] = set()
        self.parent_of: dict[Node, Optional[Node]] = {}
        self.current_parents: set[Node] = set()
        self.current_loop_origins: set[int] = set()
        self.labels: dict[Node, set[int]] = {node: set() for node in graph.all_nodes()}
        self.free_label = 0
        self.loop_entries: dict[int, Node] = {}
        self.loop_starting_at: dict[Node, int] = {}

    @classmethod
    def from_graph(cls, graph: Graph) -> NodeLoops:
        node_loops = cls(graph)
        node_loops.explore_dfs(None, graph.block(0).nodes[0])
        return node_loops

    def _enter(self, prev_node: Optional[Node], node: Node) -> bool:
        """Visit ``node`` from ``prev_node``; true if its children are to be explored."""
        if node in self.visited:
            if prev_node is None:
                raise ValueError("an already visited node needs the node it is reached from")
            if node in self.current_parents:
                self.on_loop_found(prev_node, node)
            self.on_junction_found(prev_node, node)
            return False
        self.visited.add(node)
        self.parent_of[node] = prev_node
        self.current_parents.add(node)
        return True

    def _leave(self, node: Node) -> None:
        self.current_parents.discard(node)
        label = self.loop_starting_at.get(node)
        if label is not None:
            self.current_loop_origins.discard(label)

    def explore_dfs(self, prev_node: Optional[Node], current_node: Node) -> None:
        """Walk the nodes below ``current_node``, labelling the loops met."""
        if not self._enter(prev_node, current_node):
            return
        pending = [(current_node, iter(current_node.children))]
        while pending:
            node, children = pending[-1]
            child = next(children, None)
            if child is None:
                pending.pop()
                self._leave(node)
            elif self._enter(node, child):
                pending.append((child, iter(child.children)))

    def on_loop_found(self, last_node: Node, first_node: Node) -> None:
        """Label the nodes from ``first_node`` down to ``last_node`` as a new loop."""
        existing = self.loop_starting_at.get(first_node)
        if existing is not None:
            if existing in self.current_loop_origins:
                return
            raise ValueError("a loop already starts at this node")

        label = self.free_label
        self.free_label += 1
        self.loop_entries[label] = first_node
        self.loop_starting_at[first_node] = label
        self.current_loop_origins.add(label)

        moving_node = last_node
        while True:
            if moving_node == first_node:
                self.add_label(moving_node, label)
                break
            other_label = self.loop_starting_at.get(moving_node)
            if other_label is not None:
                for other_node in self._nodes_with_label(other_label):
                    self.add_label(other_node, label)
            else:
                self.add_label(moving_node, label)
            moving_node = self.parent(moving_node)

    def on_junction_found(self, prev_node: Node, common_node: Node) -> None:
        """Extend the loops we are in to the path that joins one of their nodes."""
        joining_labels = self.current_loop_origins & self.labels[common_node]
        for label in sorted(joining_labels):
            moving_node = prev_node
            while label not in self.labels[moving_node]:
                self.add_label(moving_node, label)
                moving_node = self.parent(moving_node)

    def _nodes_with_label(self, label: int) -> set[Node]:
        matching: set[Node] = set()
        pending = [self.loop_entries[label]]
        while pending:
            current = pending.pop()
            matching.add(current)
            pending.extend(
                child
                for child in current.children
                if child not in matching and label in self.labels[child]
            )
        return matching

    def parent(self, node: Node) -> Node:
        parent = self.parent_of[node]
        if parent is None:
            raise ValueError(f"{node!r} has no parent in the walk")
        return parent

    def add_label(self, node: Node, label: int) -> None:
        node_labels = self.labels[node]
        if label in node_labels:
            raise ValueError(f"{node!r} already has label {label}")
        node_labels.add(label)

    def labels_at_block(self, block: Block) -> set[int]:
        return {label for node in block.nodes for label in self.labels[node]}