"""
Module 03 - Tree Nodes
Leaf and node types plus the flat arena that holds a tree's layers.

Nodes never point at each other. Internal nodes reference their children
by NodeRef (layer, position) and parent links live in the arena, so a
tree has no reference cycles and every lookup is O(1).

A node promoted unchanged to the next layer is the same object in both
layers. The parent of the lower slot is the slot it was promoted into.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, Optional, TypeVar, Union

M = TypeVar("M")


@dataclass(frozen=True)
class Leaf(Generic[M]):
    """
    A canonical leaf value with optional caller metadata.

    Attributes:
        data: Canonical leaf bytes; this is what gets hashed and proven
        meta: Arbitrary caller metadata carried alongside the leaf
    """
    data: bytes
    meta: Optional[M] = None


@dataclass(frozen=True)
class NodeRef:
    """Position of a node in the arena."""
    layer: int
    position: int


@dataclass(frozen=True)
class LeafNode(Generic[M]):
    """Layer-0 node wrapping a Leaf. Its digest is the leaf data."""
    leaf: Leaf[M]

    @property
    def digest(self) -> bytes:
        return self.leaf.data

    @property
    def is_leaf(self) -> bool:
        return True


@dataclass(frozen=True)
class InternalNode:
    """
    Node computed from two children.

    A self-paired node (odd-layer duplication) has ``left == right``.
    """
    left: NodeRef
    right: NodeRef
    digest: bytes

    @property
    def is_leaf(self) -> bool:
        return False

    @property
    def is_self_paired(self) -> bool:
        return self.left == self.right


Node = Union[LeafNode, InternalNode]


class NodeArena:
    """Layers of nodes indexed by (layer, position) with parent links."""

    def __init__(self) -> None:
        self.layers: list[list[Node]] = []
        self._parents: dict[NodeRef, NodeRef] = {}

    def ensure_layer(self, layer: int) -> list[Node]:
        while len(self.layers) <= layer:
            self.layers.append([])
        return self.layers[layer]

    def append(self, layer: int, node: Node) -> NodeRef:
        nodes = self.ensure_layer(layer)
        nodes.append(node)
        return NodeRef(layer, len(nodes) - 1)

    def link(self, child: NodeRef, parent: NodeRef) -> None:
        self._parents[child] = parent

    def node(self, ref: NodeRef) -> Node:
        return self.layers[ref.layer][ref.position]

    def parent_of(self, ref: NodeRef) -> Optional[NodeRef]:
        return self._parents.get(ref)

    def children_of(self, ref: NodeRef) -> tuple[NodeRef, ...]:
        """
        Child references of the node at ``ref``.

        Leaves have none. A self-paired node reports its single child once.
        """
        node = self.node(ref)
        if isinstance(node, LeafNode):
            return ()
        if node.is_self_paired:
            return (node.left,)
        return (node.left, node.right)

    @property
    def parents(self) -> dict[NodeRef, NodeRef]:
        return dict(self._parents)

    @property
    def depth(self) -> int:
        return len(self.layers)

    def digests(self) -> list[list[bytes]]:
        return [[node.digest for node in layer] for layer in self.layers]

    def copy_layers(self) -> list[list[Node]]:
        """Shallow copy of the layer lists, safe to hand to observers."""
        return [list(layer) for layer in self.layers]

    def __iter__(self) -> Iterator[tuple[NodeRef, Node]]:
        for i, layer in enumerate(self.layers):
            for j, node in enumerate(layer):
                yield NodeRef(i, j), node


__all__ = [
    "Leaf",
    "NodeRef",
    "LeafNode",
    "InternalNode",
    "Node",
    "NodeArena",
]
