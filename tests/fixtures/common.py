"""
Common test fixtures shared by all modules.

Provides factory functions for core hashtree objects:
- raw and pre-hashed leaf lists
- MerkleTree instances under a given policy
- the Bitcoin block 100000 reference vector

These are the building blocks used by the unit tests.
"""

from typing import Any, Optional

from hashtree.config.runtime import TreeOptions
from hashtree.crypto.hashing import sha256
from hashtree.merkle.merkle_tree import MerkleTree, TreeBuilder
from hashtree.merkle.nodes import Leaf


# =============================================================================
# Leaf Factories
# =============================================================================

def make_leaves(count: int, prefix: str = "leaf") -> list[bytes]:
    """
    Create distinct raw leaf values.

    Args:
        count: Number of leaves
        prefix: Text prefix of every leaf

    Returns:
        List of UTF-8 encoded leaves, e.g. b"leaf-0", b"leaf-1", ...
    """
    return [f"{prefix}-{i}".encode("utf-8") for i in range(count)]


def make_hashed_leaves(count: int, prefix: str = "leaf") -> list[bytes]:
    """Create distinct 32-byte leaves (sha256 of make_leaves)."""
    return [sha256(leaf) for leaf in make_leaves(count, prefix)]


def make_meta_leaves(count: int) -> list[Leaf]:
    """Create hashed leaves carrying a small metadata dict each."""
    return [
        Leaf(leaf, {"index": i, "label": f"item-{i}"})
        for i, leaf in enumerate(make_hashed_leaves(count))
    ]


# =============================================================================
# Tree Factories
# =============================================================================

def make_tree(
    count: int = 4,
    options: Optional[TreeOptions] = None,
    leaves: Optional[list[Any]] = None,
    **flags: Any,
) -> MerkleTree:
    """
    Build a sha256 tree over ``count`` hashed leaves.

    Args:
        count: Number of leaves (ignored when ``leaves`` is given)
        options: Tree policy; keyword flags are used when omitted
        leaves: Explicit leaf values

    Returns:
        Built MerkleTree
    """
    if leaves is None:
        leaves = make_hashed_leaves(count)
    if options is None:
        options = TreeOptions.from_dict(flags)
    return TreeBuilder(sha256, options).build(leaves)


# =============================================================================
# Bitcoin Reference Vector (block 100000)
# =============================================================================

# Transaction ids in display (big-endian) order
BITCOIN_BLOCK_100000_TXIDS = [
    "8c14f0db3df150123e6f3dbbf30f8b955a8249b62ac1d1ff16284aefa3d06d87",
    "fff2525b8931402dd09222c50775608f75787bd2b87e56995a7bdd30f79702c4",
    "6359f0868171b1d194cbee1af2f16ea598ae8fad666d9b012c8ed2b79a236ec4",
    "e9a66845e05d5abc0ad04ec80f774a7e585c6e8db975962d069a522137b80c1d",
]

BITCOIN_BLOCK_100000_ROOT = (
    "f3e94742aca4b5ef85488dc37c06c3282295ffec960994b2c0d5ac2a25a95766"
)


def make_bitcoin_block_tree() -> MerkleTree:
    """Bitcoin tree over the block 100000 transaction ids."""
    leaves = [bytes.fromhex(txid) for txid in BITCOIN_BLOCK_100000_TXIDS]
    return TreeBuilder(sha256, TreeOptions(is_bitcoin_tree=True)).build(leaves)
