"""
Module 03 - Pairing Rules
Parent digest computation shared by the eager builder, the incremental
builder and the proof verifier, so all three agree byte for byte.

Combination Rules:
1. Positional: parent = H(left || right)
2. sort_pairs: the two operands are concatenated in ascending byte order
3. is_bitcoin_tree: each operand is byte-reversed before concatenation
   (and before sorting, if sort_pairs is also set), the result is hashed a
   second time and the final digest is reversed:
   parent = reverse(H(H(reverse(left) || reverse(right))))
4. Self-pairing of an odd trailing node is merkle_parent(node, node)
"""
from __future__ import annotations

from typing import Callable

from hashtree.config.runtime import TreeOptions
from hashtree.crypto.hashing import reverse_bytes


def merkle_parent(
    left: bytes,
    right: bytes,
    hash_fn: Callable[[bytes], bytes],
    options: TreeOptions,
) -> bytes:
    """
    Compute the parent digest of two child digests.

    Args:
        left: Left child digest
        right: Right child digest
        hash_fn: bytes -> bytes hash function
        options: Tree policy

    Returns:
        Parent digest
    """
    if options.is_bitcoin_tree:
        combined = [reverse_bytes(left), reverse_bytes(right)]
    else:
        combined = [left, right]

    if options.sort_pairs:
        combined.sort()

    digest = hash_fn(b"".join(combined))

    if options.is_bitcoin_tree:
        digest = reverse_bytes(hash_fn(digest))

    return digest


def self_pair(
    digest: bytes,
    hash_fn: Callable[[bytes], bytes],
    options: TreeOptions,
) -> bytes:
    """Parent digest of a trailing odd node paired with itself."""
    return merkle_parent(digest, digest, hash_fn, options)


def fold_step(
    accumulator: bytes,
    sibling: bytes,
    sibling_is_left: bool,
    hash_fn: Callable[[bytes], bytes],
    options: TreeOptions,
) -> bytes:
    """
    Advance a proof verification by one sibling.

    The sibling goes first when it sits on the left. Under sort_pairs the
    recorded side has no effect.
    """
    if sibling_is_left:
        return merkle_parent(sibling, accumulator, hash_fn, options)
    return merkle_parent(accumulator, sibling, hash_fn, options)


def self_pairs_odd_nodes(options: TreeOptions) -> bool:
    """True if the policy pairs an odd trailing node with itself."""
    return options.is_bitcoin_tree or options.duplicate_odd


__all__ = [
    "merkle_parent",
    "self_pair",
    "fold_step",
    "self_pairs_odd_nodes",
]
