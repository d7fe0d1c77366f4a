"""
Module 03 - Merkle Tree Implementation
Eager tree construction and the MerkleTree facade.

This module provides:
- prepare_leaves: canonicalize, optionally hash, augment and sort leaves
- build_arena: build every layer from layer 0 up to the root
- TreeBuilder: configured builder producing MerkleTree objects
- MerkleTree: root, layers, proofs, verification and snapshot export
- build_merkle_root / compute_tree_depth convenience functions

Construction Rules:
1. Leaves are canonicalized to bytes (see hashtree.crypto.encoding)
2. hash_leaves: every leaf is hashed before entering layer 0
3. leaf_factory: every leaf is mapped to a Leaf carrying caller metadata
   (not applied to Bitcoin trees)
4. sort_leaves: layer 0 is sorted byte-lexicographically by leaf data
5. Consecutive nodes (0,1), (2,3), ... are combined with merkle_parent
6. An odd trailing node is self-paired under is_bitcoin_tree or
   duplicate_odd, and promoted unchanged otherwise
7. Empty leaf list: layers == [[]] and root == b""
8. Single leaf: root = the (possibly pre-hashed) leaf itself

Construction is atomic: the arena is assembled locally and a MerkleTree
is only created once every layer is complete, so a hash function that
returns malformed output never leaves a partially built tree behind.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Generic, Iterable, Optional, Sequence

from hashtree.config.runtime import TreeOptions, get_default_config
from hashtree.crypto.encoding import bufferify, to_hex
from hashtree.crypto.hashing import HashAdapter, HashFunction, bufferify_fn
from hashtree.merkle.nodes import (
    InternalNode,
    Leaf,
    LeafNode,
    M,
    Node,
    NodeArena,
    NodeRef,
)
from hashtree.merkle.pairing import merkle_parent, self_pair, self_pairs_odd_nodes
from hashtree.schemas.errors import InputException
from hashtree.schemas.proof import ProofEntry

logger = logging.getLogger(__name__)

# Root of a tree without leaves
EMPTY_TREE_ROOT: bytes = b""

LeafFactory = Callable[[bytes], Leaf]


def _resolve_hash_fn(hash_fn: Optional[HashFunction | HashAdapter]) -> HashAdapter:
    if hash_fn is None:
        return get_default_config().hash_function()
    return bufferify_fn(hash_fn)


def _resolve_options(options: Optional[TreeOptions], flags: dict[str, Any]) -> TreeOptions:
    if options is not None and flags:
        raise TypeError("Pass either a TreeOptions instance or option keywords, not both")
    if options is not None:
        return options
    if flags:
        return TreeOptions.from_dict(flags)
    return copy.copy(get_default_config().options)


def prepare_leaves(
    values: Iterable[Any],
    hash_fn: Callable[[bytes], bytes],
    options: TreeOptions,
    leaf_factory: Optional[LeafFactory] = None,
) -> list[Leaf]:
    """
    Turn raw leaf inputs into the ordered layer-0 Leaf list.

    Values may be anything bufferify accepts, or Leaf instances that
    already carry metadata.

    Raises:
        InputException: If a value or a leaf_factory result is malformed
    """
    staged: list[Leaf] = []
    for value in values:
        if isinstance(value, Leaf):
            staged.append(Leaf(bufferify(value.data), value.meta))
        else:
            staged.append(Leaf(bufferify(value)))

    if options.hash_leaves:
        staged = [Leaf(hash_fn(leaf.data), leaf.meta) for leaf in staged]

    if leaf_factory is not None:
        if options.is_bitcoin_tree:
            logger.warning("leaf_factory is ignored for Bitcoin trees")
        else:
            augmented: list[Leaf] = []
            for leaf in staged:
                created = leaf_factory(leaf.data)
                if not isinstance(created, Leaf):
                    raise InputException(
                        f"leaf_factory must return a Leaf, got {type(created).__name__}",
                        value_type=type(created).__name__,
                    )
                augmented.append(Leaf(bufferify(created.data), created.meta))
            staged = augmented

    if options.sort_leaves:
        staged.sort(key=lambda leaf: leaf.data)

    return staged


def build_arena(
    leaves: Sequence[Leaf],
    hash_fn: Callable[[bytes], bytes],
    options: TreeOptions,
) -> NodeArena:
    """
    Build all layers eagerly.

    Args:
        leaves: Prepared layer-0 leaves, in order
        hash_fn: bytes -> bytes hash function
        options: Tree policy

    Returns:
        Fully populated NodeArena
    """
    arena = NodeArena()
    arena.ensure_layer(0)
    for leaf in leaves:
        arena.append(0, LeafNode(leaf))

    level = 0
    while len(arena.layers[level]) > 1:
        nodes = arena.layers[level]
        next_level = level + 1
        arena.ensure_layer(next_level)

        for i in range(0, len(nodes), 2):
            left_ref = NodeRef(level, i)

            if i + 1 == len(nodes):
                # lone trailing node of an odd layer
                if self_pairs_odd_nodes(options):
                    digest = self_pair(nodes[i].digest, hash_fn, options)
                    parent_ref = arena.append(
                        next_level, InternalNode(left_ref, left_ref, digest)
                    )
                else:
                    parent_ref = arena.append(next_level, nodes[i])
                arena.link(left_ref, parent_ref)
                continue

            right_ref = NodeRef(level, i + 1)
            digest = merkle_parent(nodes[i].digest, nodes[i + 1].digest, hash_fn, options)
            parent_ref = arena.append(next_level, InternalNode(left_ref, right_ref, digest))
            arena.link(left_ref, parent_ref)
            arena.link(right_ref, parent_ref)

        level = next_level

    return arena


class MerkleTree(Generic[M]):
    """
    A built tree: leaves, layers, root, proofs and verification.

    Instances are created by TreeBuilder, IncrementalTreeBuilder or
    TreeReconstructor; use MerkleTree.from_leaves for the common case.

    Example:
        >>> tree = MerkleTree.from_leaves([b"a", b"b", b"c"], sha256, hash_leaves=True)
        >>> proof = tree.get_proof(sha256(b"c"))
        >>> tree.verify(proof, sha256(b"c"), tree.root)
        True
    """

    def __init__(
        self,
        arena: NodeArena,
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
    ) -> None:
        if not arena.layers:
            arena.ensure_layer(0)
        self._arena = arena
        self.hash_fn = _resolve_hash_fn(hash_fn)
        self.options = options if options is not None else TreeOptions()

    @classmethod
    def from_leaves(
        cls,
        leaves: Iterable[Any],
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
        leaf_factory: Optional[LeafFactory] = None,
        **flags: Any,
    ) -> "MerkleTree":
        """Build a tree eagerly; option flags may be given as keywords."""
        builder = TreeBuilder(hash_fn, options, leaf_factory=leaf_factory, **flags)
        return builder.build(leaves)

    # ------------------------------------------------------------------ #
    # Structure
    # ------------------------------------------------------------------ #

    @property
    def arena(self) -> NodeArena:
        return self._arena

    @property
    def leaves(self) -> list[Leaf]:
        return [node.leaf for node in self._arena.layers[0]]

    @property
    def leaf_values(self) -> list[bytes]:
        return [leaf.data for leaf in self.leaves]

    @property
    def leaf_count(self) -> int:
        return len(self._arena.layers[0])

    @property
    def layers(self) -> list[list[bytes]]:
        return self._arena.digests()

    @property
    def hex_layers(self) -> list[list[str]]:
        return [[to_hex(d) for d in layer] for layer in self.layers]

    @property
    def depth(self) -> int:
        """Number of layers, leaves and root included (0 for an empty tree)."""
        if self.leaf_count == 0:
            return 0
        return self._arena.depth

    @property
    def root(self) -> bytes:
        top = self._arena.layers[-1]
        return top[0].digest if top else EMPTY_TREE_ROOT

    @property
    def hex_root(self) -> str:
        return to_hex(self.root)

    def node_at(self, layer: int, position: int) -> Node:
        return self._arena.node(NodeRef(layer, position))

    def parent_of(self, layer: int, position: int) -> Optional[NodeRef]:
        return self._arena.parent_of(NodeRef(layer, position))

    def get_leaf_index(self, value: Any) -> int:
        """Index of the first leaf byte-equal to ``value``, or -1."""
        try:
            target = bufferify(value)
        except InputException:
            return -1
        for i, leaf in enumerate(self.leaves):
            if leaf.data == target:
                return i
        return -1

    # ------------------------------------------------------------------ #
    # Proofs
    # ------------------------------------------------------------------ #

    def get_proof(self, leaf: Any, index: Optional[int] = None) -> list[ProofEntry]:
        """Authentication path for ``leaf`` (see ProofGenerator)."""
        from hashtree.merkle.merkle_proofs import ProofGenerator
        return ProofGenerator(self).generate(leaf, index)

    def get_hex_proof(self, leaf: Any, index: Optional[int] = None) -> list[str]:
        """Authentication path as bare 0x-hex sibling digests."""
        return [entry.hex_digest for entry in self.get_proof(leaf, index)]

    def verify(self, proof: Any, leaf: Any, root: Any) -> bool:
        """Check ``proof`` links ``leaf`` to ``root`` under this tree's policy."""
        from hashtree.merkle.merkle_proofs import ProofVerifier
        return ProofVerifier(self.hash_fn, self.options).verify(proof, leaf, root)

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def to_snapshot(self) -> Optional[dict[str, Any]]:
        """Nested layer export rooted at the root digest."""
        from hashtree.merkle.snapshot import export_layers
        return export_layers(self)

    def to_layer_snapshot(self):
        """Snapshot wrapped in a versioned LayerSnapshot envelope."""
        from hashtree.merkle.snapshot import export_layer_snapshot
        return export_layer_snapshot(self)

    def to_json(self) -> str:
        from hashtree.merkle.snapshot import dumps_snapshot
        return dumps_snapshot(self.to_layer_snapshot())

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Any,
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
    ) -> "MerkleTree":
        from hashtree.merkle.snapshot import TreeReconstructor
        return TreeReconstructor(hash_fn, options).reconstruct(snapshot)

    @classmethod
    def from_json(
        cls,
        data: str,
        hash_fn: Optional[HashFunction | HashAdapter] = None,
    ) -> "MerkleTree":
        from hashtree.merkle.snapshot import TreeReconstructor
        return TreeReconstructor(hash_fn).reconstruct_json(data)

    def __repr__(self) -> str:
        return (
            f"MerkleTree(leaves={self.leaf_count}, depth={self.depth}, "
            f"root={self.hex_root})"
        )


class TreeBuilder:
    """
    Eager tree builder.

    Example:
        >>> builder = TreeBuilder(sha256, TreeOptions(duplicate_odd=True))
        >>> tree = builder.build([sha256(b"a"), sha256(b"b"), sha256(b"c")])
        >>> len(tree.layers)
        3
    """

    def __init__(
        self,
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
        leaf_factory: Optional[LeafFactory] = None,
        **flags: Any,
    ) -> None:
        self.hash_fn = _resolve_hash_fn(hash_fn)
        self.options = _resolve_options(options, flags)
        self.leaf_factory = leaf_factory

    def prepare(self, leaves: Iterable[Any]) -> list[Leaf]:
        return prepare_leaves(leaves, self.hash_fn, self.options, self.leaf_factory)

    def build(self, leaves: Iterable[Any]) -> MerkleTree:
        """
        Build every layer and return the finished tree.

        Raises:
            InputException: If a leaf or a hash output is malformed
        """
        prepared = self.prepare(leaves)
        arena = build_arena(prepared, self.hash_fn, self.options)
        tree = MerkleTree(arena, self.hash_fn, self.options)
        logger.debug(
            f"Built tree with {tree.leaf_count} leaves and {len(arena.layers)} layers"
        )
        return tree


def build_merkle_root(
    leaves: Iterable[Any],
    hash_fn: Optional[HashFunction | HashAdapter] = None,
    options: Optional[TreeOptions] = None,
    **flags: Any,
) -> bytes:
    """
    Compute the root of ``leaves`` without keeping the tree.

    Example:
        >>> build_merkle_root([sha256(b"a")]) == sha256(b"a")
        True
    """
    return TreeBuilder(hash_fn, options, **flags).build(leaves).root


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of layers, leaves and root included, for ``num_leaves`` leaves.

    Every odd-node policy yields ceil(n / 2) nodes in the next layer, so
    the depth does not depend on the policy.

    Returns:
        Tree depth (0 for an empty tree)
    """
    if num_leaves <= 0:
        return 0

    depth = 1
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1

    return depth


__all__ = [
    "EMPTY_TREE_ROOT",
    "LeafFactory",
    "prepare_leaves",
    "build_arena",
    "MerkleTree",
    "TreeBuilder",
    "build_merkle_root",
    "compute_tree_depth",
]
