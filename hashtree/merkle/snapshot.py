"""
Module 05 - Layer Snapshots
Export of a tree's layers as a nested digest mapping and reconstruction of
a tree from such a mapping without hashing.

Export (queue pairing):
Layers are walked leaves first. Every node above layer 0 takes the next
one or two entries from the front of a FIFO holding the layer below, so a
promoted node nests under itself and a self-paired node has a single
child. The last remaining entry is the root.

    {"0x<root>": {"0x<left>": {...}, "0x<right>": {...}}}

Reconstruction:
The mapping is walked breadth-first. Leaves must all sit at the deepest
level; each level becomes one layer, bottom-up. A node with a single
child whose digest equals its own is a promotion and reuses the child
node; a single child with a different digest is a self-pair.

Two siblings with the same digest would collapse into one mapping key, so
exporting such a tree raises SnapshotStructureException.

Keys are read with or without the 0x prefix and always written with it.
"""
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from hashtree.config.runtime import TreeOptions
from hashtree.crypto.encoding import from_hex, is_hex_string, to_hex
from hashtree.crypto.hashing import HashAdapter, HashFunction
from hashtree.merkle.merkle_tree import MerkleTree
from hashtree.merkle.nodes import InternalNode, Leaf, LeafNode, Node, NodeArena, NodeRef
from hashtree.schemas.canonical import canonicalize_value, dumps_canonical, loads_canonical
from hashtree.schemas.errors import InputException, SnapshotStructureException
from hashtree.schemas.snapshot import META_KEY, LayerSnapshot

logger = logging.getLogger(__name__)


# =============================================================================
# Export
# =============================================================================

def _leaf_value(node: Node) -> Optional[dict[str, Any]]:
    meta = node.leaf.meta if isinstance(node, LeafNode) else None
    if meta is None:
        return None
    return {META_KEY: canonicalize_value(meta, path=META_KEY)}


def export_layers(tree: MerkleTree) -> Optional[dict[str, Any]]:
    """
    Nested mapping of the tree rooted at its root digest.

    Returns:
        ``{"0x<root>": {...}}``, or None for an empty tree

    Raises:
        CanonicalizationException: If leaf metadata is not JSON-representable
        SnapshotStructureException: If two sibling nodes share a digest
    """
    if tree.leaf_count == 0:
        return None

    queue: deque[tuple[str, Any]] = deque()
    for level, layer in enumerate(tree.arena.layers):
        current: list[tuple[str, Any]] = []
        for node in layer:
            key = to_hex(node.digest)
            if level == 0:
                current.append((key, _leaf_value(node)))
                continue

            children: dict[str, Any] = {}
            for _ in range(2):
                if not queue:
                    break
                child_key, child_value = queue.popleft()
                if child_key in children:
                    raise SnapshotStructureException(
                        f"Sibling nodes share digest {child_key}; the layers cannot be "
                        "exported as a nested mapping",
                        path=f"layers[{level - 1}]",
                    )
                children[child_key] = child_value
            current.append((key, children))

        queue.extend(current)

    root_key, root_value = queue[0]
    return {root_key: root_value}


def export_layer_snapshot(tree: MerkleTree) -> LayerSnapshot:
    """Snapshot of ``tree`` in the versioned envelope."""
    return LayerSnapshot(
        is_bitcoin_tree=tree.options.is_bitcoin_tree,
        sort_pairs=tree.options.sort_pairs,
        duplicate_odd=tree.options.duplicate_odd,
        tree=export_layers(tree),
    )


def dumps_snapshot(snapshot: LayerSnapshot) -> str:
    """Compact JSON for a snapshot. Child order is preserved."""
    return dumps_canonical(snapshot.model_dump(), preserve_order=True)


# =============================================================================
# Reconstruction
# =============================================================================

@dataclass
class _Entry:
    """One node of the snapshot as seen during the breadth-first walk."""
    digest: bytes
    path: str
    child_count: int = 0
    is_leaf: bool = False
    meta: Any = None


def _parse_key(key: Any, path: str) -> bytes:
    """Digest for a snapshot key, with or without the 0x prefix."""
    if not isinstance(key, str) or not is_hex_string(key):
        raise SnapshotStructureException(
            f"Snapshot key is not valid hex: {key!r}",
            path=path,
        )
    try:
        digest = from_hex(key)
    except InputException as e:
        raise SnapshotStructureException(
            f"Snapshot key is not valid hex: {key!r}",
            path=path,
        ) from e
    if not digest:
        raise SnapshotStructureException("Snapshot key is an empty digest", path=path)
    return digest


def _is_meta_value(value: Mapping) -> bool:
    return META_KEY in value


class TreeReconstructor:
    """
    Rebuild a MerkleTree from a layer snapshot.

    The snapshot may be a LayerSnapshot, its dict form, or a bare nested
    mapping. Explicit options take precedence over the envelope's flags.

    Example:
        >>> rebuilt = TreeReconstructor(sha256).reconstruct(tree.to_snapshot())
        >>> rebuilt.layers == tree.layers
        True
    """

    def __init__(
        self,
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
    ) -> None:
        self.hash_fn = hash_fn
        self.options = options

    def reconstruct_json(self, data: str) -> MerkleTree:
        """Rebuild from snapshot JSON (envelope or bare mapping)."""
        return self.reconstruct(loads_canonical(data))

    def reconstruct(self, snapshot: Any) -> MerkleTree:
        """
        Rebuild leaves, arena and layers from ``snapshot``.

        Raises:
            SnapshotStructureException: If the nesting is malformed
        """
        envelope = self._as_envelope(snapshot)
        tree_data = envelope.tree if envelope is not None else snapshot

        if tree_data is None:
            arena = NodeArena()
        else:
            arena = self._build_arena(self._walk(tree_data))

        options = self.options
        if options is None:
            flags = envelope if envelope is not None else LayerSnapshot()
            # a self-paired node can only come from duplicate_odd or Bitcoin rules
            self_paired = any(
                isinstance(node, InternalNode) and node.is_self_paired
                for _, node in arena
            )
            options = TreeOptions(
                is_bitcoin_tree=flags.is_bitcoin_tree,
                sort_pairs=flags.sort_pairs,
                duplicate_odd=flags.duplicate_odd or self_paired,
            )

        tree = MerkleTree(arena, self.hash_fn, options)

        logger.debug(
            f"Reconstructed tree with {tree.leaf_count} leaves and {arena.depth} layers"
        )
        return tree

    @staticmethod
    def _as_envelope(snapshot: Any) -> Optional[LayerSnapshot]:
        if isinstance(snapshot, LayerSnapshot):
            return snapshot
        if isinstance(snapshot, Mapping) and "tree" in snapshot:
            try:
                return LayerSnapshot.model_validate(dict(snapshot))
            except ValidationError as e:
                raise SnapshotStructureException(
                    "Invalid snapshot envelope",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                ) from e
        return None

    def _walk(self, tree_data: Any) -> list[list[_Entry]]:
        """Breadth-first walk returning the entries of each depth, root first."""
        if not isinstance(tree_data, Mapping):
            raise SnapshotStructureException(
                f"Snapshot root must be a mapping, got {type(tree_data).__name__}",
                path="$",
            )
        if len(tree_data) != 1:
            raise SnapshotStructureException(
                f"Snapshot root must have exactly one key, got {len(tree_data)}",
                path="$",
            )

        levels: list[list[_Entry]] = []
        frontier: list[tuple[Any, Any, str]] = [
            (key, value, f"$.{key}") for key, value in tree_data.items()
        ]
        leaf_depth: Optional[int] = None

        while frontier:
            depth = len(levels)
            entries: list[_Entry] = []
            next_frontier: list[tuple[Any, Any, str]] = []

            for key, value, path in frontier:
                entry = _Entry(digest=_parse_key(key, path), path=path)

                if value is None or (isinstance(value, Mapping) and _is_meta_value(value)):
                    if value is not None and len(value) != 1:
                        raise SnapshotStructureException(
                            f"Metadata leaf must only hold {META_KEY!r}",
                            path=path,
                        )
                    entry.is_leaf = True
                    entry.meta = value[META_KEY] if value is not None else None
                    if leaf_depth is None:
                        leaf_depth = depth
                    elif leaf_depth != depth:
                        raise SnapshotStructureException(
                            f"Leaves at unequal depths ({leaf_depth} and {depth})",
                            path=path,
                        )
                elif isinstance(value, Mapping):
                    if not 1 <= len(value) <= 2:
                        raise SnapshotStructureException(
                            f"Internal node must have one or two children, got {len(value)}",
                            path=path,
                        )
                    entry.child_count = len(value)
                    next_frontier.extend(
                        (child_key, child_value, f"{path}.{child_key}")
                        for child_key, child_value in value.items()
                    )
                else:
                    raise SnapshotStructureException(
                        f"Unexpected snapshot value of type {type(value).__name__}",
                        path=path,
                    )

                entries.append(entry)

            if leaf_depth is not None and leaf_depth < depth:
                # an internal node below the first leaf level
                raise SnapshotStructureException(
                    f"Leaves at unequal depths ({leaf_depth} and {depth})",
                    path=entries[0].path,
                )

            levels.append(entries)
            frontier = next_frontier

        return levels

    @staticmethod
    def _build_arena(levels: list[list[_Entry]]) -> NodeArena:
        """Assemble layers bottom-up from the breadth-first levels."""
        arena = NodeArena()
        leaf_level = levels[-1]
        arena.ensure_layer(0)
        for entry in leaf_level:
            arena.append(0, LeafNode(Leaf(entry.digest, entry.meta)))

        for layer, entries in enumerate(reversed(levels[:-1]), start=1):
            below = layer - 1
            cursor = 0
            for entry in entries:
                if entry.child_count == 2:
                    left_ref = NodeRef(below, cursor)
                    right_ref = NodeRef(below, cursor + 1)
                    node: Node = InternalNode(left_ref, right_ref, entry.digest)
                    children = (left_ref, right_ref)
                else:
                    child_ref = NodeRef(below, cursor)
                    child = arena.node(child_ref)
                    if child.digest == entry.digest:
                        node = child
                    else:
                        node = InternalNode(child_ref, child_ref, entry.digest)
                    children = (child_ref,)

                parent_ref = arena.append(layer, node)
                for child_ref in children:
                    arena.link(child_ref, parent_ref)
                cursor += entry.child_count

        return arena


__all__ = [
    "export_layers",
    "export_layer_snapshot",
    "dumps_snapshot",
    "TreeReconstructor",
]
