"""
Module 03 - Merkle Proofs
Authentication path generation and verification.

This module provides:
- generate_proof: sibling path for a leaf index over digest layers
- verify_proof: fold a path back up to a root
- ProofGenerator: leaf lookup + generation against a MerkleTree
- ProofVerifier: verification under a hash function and tree policy

Path Rules (non-Bitcoin):
1. At every layer below the root, the sibling of index i is i-1 when i is
   odd (side "left") and i+1 when i is even (side "right")
2. A sibling past the end of the layer means the node was promoted; the
   layer contributes no entry
3. Under duplicate_odd that node was paired with itself instead, so the
   entry is the node's own digest on the right
4. index = index // 2 between layers

Path Rules (Bitcoin):
Only the last leaf index is supported. Its path runs along the right edge
of the tree: the sibling is i-1 when i is odd and the node itself (the
self-paired lonely node) when i is even.

Boundary behavior: an unknown leaf yields an empty proof and a proof that
does not check out yields False. Neither raises.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Sequence

from hashtree.config.runtime import TreeOptions
from hashtree.crypto.encoding import bufferify
from hashtree.crypto.hashing import HashAdapter, HashFunction, bufferify_fn
from hashtree.merkle.pairing import fold_step
from hashtree.schemas.errors import InputException, UnsupportedProofException
from hashtree.schemas.proof import LEFT, RIGHT, ProofEntry

logger = logging.getLogger(__name__)


def generate_proof(
    layers: Sequence[Sequence[bytes]],
    index: int,
    options: TreeOptions,
) -> list[ProofEntry]:
    """
    Build the authentication path for the leaf at ``index``.

    Args:
        layers: Digest layers, leaves first, root last
        index: 0-based leaf index
        options: Tree policy the layers were built with

    Returns:
        Proof entries, leaf-adjacent first; empty for an out-of-range index

    Raises:
        UnsupportedProofException: Bitcoin tree and index is not the last leaf
    """
    if not layers or index < 0 or index >= len(layers[0]):
        return []

    if options.is_bitcoin_tree:
        return _generate_bitcoin_proof(layers, index)

    proof: list[ProofEntry] = []
    for layer in layers[:-1]:
        is_right_node = index % 2 == 1
        pair_index = index - 1 if is_right_node else index + 1

        if pair_index < len(layer):
            proof.append(
                ProofEntry(digest=layer[pair_index], side=LEFT if is_right_node else RIGHT)
            )
        elif options.duplicate_odd:
            proof.append(ProofEntry(digest=layer[index], side=RIGHT))

        index //= 2

    return proof


def _generate_bitcoin_proof(
    layers: Sequence[Sequence[bytes]],
    index: int,
) -> list[ProofEntry]:
    """
    Path for the last leaf of a Bitcoin tree.

    Entries record a side, unlike the side-less Bitcoin output of merkletreejs,
    so that verify() accepts the path it is given.
    """
    last_index = len(layers[0]) - 1
    if index != last_index:
        raise UnsupportedProofException(
            f"Bitcoin proofs are only defined for the last leaf (index {last_index})",
            leaf_index=index,
        )

    proof: list[ProofEntry] = []
    for layer in layers[:-1]:
        is_right_node = index % 2 == 1
        pair_index = index - 1 if is_right_node else index
        proof.append(
            ProofEntry(digest=layer[pair_index], side=LEFT if is_right_node else RIGHT)
        )
        index //= 2

    return proof


def _parse_entry(entry: Any) -> Optional[tuple[bytes, bool]]:
    """
    Read one proof entry as (sibling digest, sibling is left).

    Bare hex strings and bytes are treated as left siblings. Returns None
    for entries that cannot be read.
    """
    if isinstance(entry, ProofEntry):
        return entry.digest, entry.is_left

    try:
        if isinstance(entry, (str, bytes, bytearray)):
            return bufferify(entry), True

        if isinstance(entry, Mapping):
            raw = entry.get("digest", entry.get("data"))
            side = entry.get("side", entry.get("position"))
            if raw is None or side not in (None, LEFT, RIGHT):
                return None
            return bufferify(raw), side == LEFT
    except InputException:
        return None

    return None


def verify_proof(
    proof: Any,
    target: Any,
    root: Any,
    hash_fn: Callable[[bytes], bytes],
    options: TreeOptions,
) -> bool:
    """
    Recompute the root from ``target`` and ``proof`` and compare.

    Args:
        proof: Sequence of ProofEntry, mappings with digest/side
               (or data/position), or bare hex strings
        target: Leaf value (anything bufferify accepts)
        root: Expected root (anything bufferify accepts)
        hash_fn: bytes -> bytes hash function
        options: Tree policy

    Returns:
        True if the recomputed root equals ``root``
    """
    if not isinstance(proof, (list, tuple)) or not proof:
        return False
    if target is None or root is None or target == "" or root == "":
        return False

    try:
        accumulator = bufferify(target)
        expected = bufferify(root)
    except InputException:
        logger.debug("Rejecting proof: target or root cannot be canonicalized")
        return False

    for position, entry in enumerate(proof):
        parsed = _parse_entry(entry)
        if parsed is None:
            logger.debug(f"Rejecting proof: malformed entry at position {position}")
            return False
        sibling, sibling_is_left = parsed
        accumulator = fold_step(accumulator, sibling, sibling_is_left, hash_fn, options)

    return accumulator == expected


class ProofGenerator:
    """
    Generate proofs against a built tree.

    Example:
        >>> proof = ProofGenerator(tree).generate(leaves[2])
        >>> [entry.side for entry in proof]
        ['left']
    """

    def __init__(self, tree: Any) -> None:
        self.tree = tree

    def generate(self, leaf: Any = None, index: Optional[int] = None) -> list[ProofEntry]:
        """
        Proof for ``leaf``, or for the leaf at ``index`` when given.

        ``index`` disambiguates duplicate leaf values; without it the first
        byte-equal leaf is used. No match gives an empty proof.
        """
        if index is None:
            index = self.tree.get_leaf_index(leaf)
        if isinstance(index, bool) or not isinstance(index, int):
            return []
        return generate_proof(self.tree.layers, index, self.tree.options)


class ProofVerifier:
    """
    Verify proofs without access to the tree.

    Example:
        >>> verifier = ProofVerifier(sha256, TreeOptions(sort_pairs=True))
        >>> verifier.verify(proof, leaf, root)
        True
    """

    def __init__(
        self,
        hash_fn: Optional[HashFunction | HashAdapter] = None,
        options: Optional[TreeOptions] = None,
    ) -> None:
        if hash_fn is None:
            from hashtree.config.runtime import get_default_config
            hash_fn = get_default_config().hash_function()
        self.hash_fn = bufferify_fn(hash_fn)
        self.options = options if options is not None else TreeOptions()

    def verify(self, proof: Any, target: Any, root: Any) -> bool:
        return verify_proof(proof, target, root, self.hash_fn, self.options)


__all__ = [
    "generate_proof",
    "verify_proof",
    "ProofGenerator",
    "ProofVerifier",
]
