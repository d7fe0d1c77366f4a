"""
Module 04 - Incremental Tree Builder
Step-wise construction of the same tree TreeBuilder produces, one node
per advance() call.

Traversal Rules:
1. Layers are walked bottom-up, each left to right
2. AWAIT_LEFT: the left member of a pair is emitted
3. AWAIT_RIGHT: the right member triggers the parent digest computation
   (appended to the next layer and linked), then is emitted
4. A lone trailing node of an odd layer is emitted and self-paired under
   is_bitcoin_tree / duplicate_odd; under the default policy it is
   promoted into the next layer without being emitted at this layer
5. EMIT_ROOT: the root is the final emitted node; the builder is DONE

A perfect tree of n leaves takes 2n - 1 steps; every promotion saves one.

Bounded traversal: with ``stop_at=(layer, position)`` the builder stops
when its cursor reaches that position, emitting a TraversalExit marker
carrying the partially built layers instead of finishing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Union

from hashtree.config.runtime import TreeOptions
from hashtree.crypto.hashing import HashAdapter, HashFunction
from hashtree.merkle.merkle_tree import LeafFactory, MerkleTree, TreeBuilder
from hashtree.merkle.nodes import InternalNode, LeafNode, Node, NodeArena, NodeRef
from hashtree.merkle.pairing import merkle_parent, self_pair, self_pairs_odd_nodes
from hashtree.schemas.errors import BuilderStateException

logger = logging.getLogger(__name__)


class BuilderState(str, Enum):
    """Position of the incremental builder in its traversal."""
    AWAIT_LEFT = "await_left"
    AWAIT_RIGHT = "await_right"
    EMIT_ROOT = "emit_root"
    DONE = "done"


@dataclass(frozen=True)
class TraversalStep:
    """A node emitted by the incremental builder."""
    node: Node
    layer: int
    position: int

    @property
    def ref(self) -> NodeRef:
        return NodeRef(self.layer, self.position)

    @property
    def digest(self) -> bytes:
        return self.node.digest

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.node, LeafNode)


@dataclass(frozen=True)
class TraversalExit:
    """Marker emitted when a bounded traversal reaches its checkpoint."""
    layers: list[list[Node]]
    layer: int
    position: int


Emitted = Union[TraversalStep, TraversalExit]


class IncrementalTreeBuilder:
    """
    Resumable tree construction.

    Example:
        >>> builder = IncrementalTreeBuilder(leaves, sha256)
        >>> for step in builder:
        ...     print(step.layer, step.position, step.digest.hex())
        >>> builder.result().root == build_merkle_root(leaves, sha256)
        True
    """

    def __init__(
        self,
        leaves: Iterable[Any],
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
        leaf_factory: Optional[LeafFactory] = None,
        stop_at: Optional[NodeRef | tuple[int, int]] = None,
        **flags: Any,
    ) -> None:
        builder = TreeBuilder(hash_fn, options, leaf_factory=leaf_factory, **flags)
        self.hash_fn = builder.hash_fn
        self.options = builder.options

        self._arena = NodeArena()
        self._arena.ensure_layer(0)
        for leaf in builder.prepare(leaves):
            self._arena.append(0, LeafNode(leaf))

        if stop_at is not None and not isinstance(stop_at, NodeRef):
            stop_at = NodeRef(*stop_at)
        self._stop_at: Optional[NodeRef] = stop_at

        self._layer = 0
        self._position = 0
        self._steps = 0
        self._completed = False
        self._exited = False
        self._advancing = False

        leaf_count = len(self._arena.layers[0])
        if leaf_count == 0:
            self._state = BuilderState.DONE
            self._completed = True
        elif leaf_count == 1:
            self._state = BuilderState.EMIT_ROOT
        else:
            self._state = BuilderState.AWAIT_LEFT

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def cursor(self) -> NodeRef:
        return NodeRef(self._layer, self._position)

    @property
    def steps_taken(self) -> int:
        return self._steps

    @property
    def is_done(self) -> bool:
        return self._state is BuilderState.DONE

    @property
    def exited_early(self) -> bool:
        return self._exited

    @property
    def layers(self) -> list[list[bytes]]:
        """Digest view of the layers built so far."""
        return self._arena.digests()

    # ------------------------------------------------------------------ #
    # Stepping
    # ------------------------------------------------------------------ #

    def advance(self) -> Optional[Emitted]:
        """
        Run the traversal up to the next emitted node.

        Returns:
            The next TraversalStep, a TraversalExit when the checkpoint is
            reached, or None once the traversal is over
        """
        if self._advancing:
            raise BuilderStateException("advance() called while another advance() is running")
        self._advancing = True
        try:
            return self._advance()
        finally:
            self._advancing = False

    def _advance(self) -> Optional[Emitted]:
        while True:
            if self._state is BuilderState.DONE:
                return None

            if self._stop_at is not None and self.cursor == self._stop_at:
                return self._exit()

            if self._state is BuilderState.EMIT_ROOT:
                return self._emit_root()

            if self._state is BuilderState.AWAIT_RIGHT:
                return self._emit_right()

            step = self._visit_left()
            if step is not None:
                return step
            # promoted without emitting; continue on the next layer

    def _emit(self, node: Node, ref: NodeRef) -> TraversalStep:
        self._steps += 1
        return TraversalStep(node=node, layer=ref.layer, position=ref.position)

    def _enter_layer(self, layer: int) -> None:
        self._layer = layer
        self._position = 0
        if len(self._arena.layers[layer]) == 1:
            self._state = BuilderState.EMIT_ROOT
        else:
            self._state = BuilderState.AWAIT_LEFT

    def _visit_left(self) -> Optional[TraversalStep]:
        nodes = self._arena.layers[self._layer]
        ref = NodeRef(self._layer, self._position)
        node = nodes[ref.position]
        next_layer = self._layer + 1

        if ref.position + 1 == len(nodes):
            # lone trailing node of an odd layer
            if self_pairs_odd_nodes(self.options):
                digest = self_pair(node.digest, self.hash_fn, self.options)
                parent = self._arena.append(next_layer, InternalNode(ref, ref, digest))
                self._arena.link(ref, parent)
                self._enter_layer(next_layer)
                return self._emit(node, ref)

            parent = self._arena.append(next_layer, node)
            self._arena.link(ref, parent)
            self._enter_layer(next_layer)
            return None

        self._position += 1
        self._state = BuilderState.AWAIT_RIGHT
        return self._emit(node, ref)

    def _emit_right(self) -> TraversalStep:
        nodes = self._arena.layers[self._layer]
        left_ref = NodeRef(self._layer, self._position - 1)
        right_ref = NodeRef(self._layer, self._position)
        left, right = nodes[left_ref.position], nodes[right_ref.position]

        digest = merkle_parent(left.digest, right.digest, self.hash_fn, self.options)
        parent = self._arena.append(self._layer + 1, InternalNode(left_ref, right_ref, digest))
        self._arena.link(left_ref, parent)
        self._arena.link(right_ref, parent)

        if right_ref.position + 1 == len(nodes):
            self._enter_layer(self._layer + 1)
        else:
            self._position += 1
            self._state = BuilderState.AWAIT_LEFT

        return self._emit(right, right_ref)

    def _emit_root(self) -> TraversalStep:
        ref = self.cursor
        node = self._arena.node(ref)
        self._state = BuilderState.DONE
        self._completed = True
        logger.debug(f"Incremental build finished after {self._steps + 1} steps")
        return self._emit(node, ref)

    def _exit(self) -> TraversalExit:
        ref = self.cursor
        self._state = BuilderState.DONE
        self._exited = True
        logger.debug(f"Incremental build stopped at checkpoint ({ref.layer}, {ref.position})")
        return TraversalExit(
            layers=self._arena.copy_layers(),
            layer=ref.layer,
            position=ref.position,
        )

    # ------------------------------------------------------------------ #
    # Iteration and results
    # ------------------------------------------------------------------ #

    def __iter__(self) -> "IncrementalTreeBuilder":
        return self

    def __next__(self) -> Emitted:
        emitted = self.advance()
        if emitted is None:
            raise StopIteration
        return emitted

    def result(self) -> MerkleTree:
        """
        The finished tree.

        Raises:
            BuilderStateException: If the traversal has not completed or
                                   was stopped at a checkpoint
        """
        if not self._completed:
            raise BuilderStateException(
                "Tree is not complete",
                details={"state": self._state.value, "exited_early": self._exited},
            )
        return MerkleTree(self._arena, self.hash_fn, self.options)

    def run(self) -> MerkleTree:
        """Advance to completion and return the tree."""
        for _ in self:
            pass
        return self.result()


__all__ = [
    "BuilderState",
    "TraversalStep",
    "TraversalExit",
    "Emitted",
    "IncrementalTreeBuilder",
]
