"""
Test fixtures package for hashtree tests.

This package provides factory functions for creating test objects:
- common.py: leaf and tree factories plus reference vectors

Usage:
    from fixtures import make_tree, make_hashed_leaves

    def test_something():
        tree = make_tree(5, duplicate_odd=True)
"""

from .common import (
    BITCOIN_BLOCK_100000_ROOT,
    BITCOIN_BLOCK_100000_TXIDS,
    make_bitcoin_block_tree,
    make_hashed_leaves,
    make_leaves,
    make_meta_leaves,
    make_tree,
)

__all__ = [
    # Leaves
    "make_leaves",
    "make_hashed_leaves",
    "make_meta_leaves",
    # Trees
    "make_tree",
    # Bitcoin
    "BITCOIN_BLOCK_100000_TXIDS",
    "BITCOIN_BLOCK_100000_ROOT",
    "make_bitcoin_block_tree",
]
