"""
hashtree - Merkle hash trees with proofs, Bitcoin-compatible hashing,
incremental construction and layer snapshots.

Usage:
    from hashtree import MerkleTree, sha256

    tree = MerkleTree.from_leaves(["a", "b", "c"], sha256, hash_leaves=True)
    print(tree.hex_root)
"""
# schemas first: schemas.proof depends on crypto.encoding, which depends on schemas.errors
from hashtree.schemas import (
    HashTreeException,
    InputException,
    LayerSnapshot,
    ProofEntry,
    SnapshotStructureException,
    UnsupportedProofException,
    BuilderStateException,
)
from hashtree.config import RuntimeConfig, TreeOptions, configure_logging
from hashtree.crypto import HashAdapter, bufferify, double_sha256, sha256, to_hex
from hashtree.merkle import (
    IncrementalTreeBuilder,
    Leaf,
    MerkleTree,
    ProofGenerator,
    ProofVerifier,
    TraversalExit,
    TraversalStep,
    TreeBuilder,
    TreeReconstructor,
    build_merkle_root,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "HashTreeException",
    "InputException",
    "SnapshotStructureException",
    "UnsupportedProofException",
    "BuilderStateException",
    # Schemas
    "LayerSnapshot",
    "ProofEntry",
    # Config
    "RuntimeConfig",
    "TreeOptions",
    "configure_logging",
    # Crypto
    "HashAdapter",
    "bufferify",
    "double_sha256",
    "sha256",
    "to_hex",
    # Trees
    "IncrementalTreeBuilder",
    "Leaf",
    "MerkleTree",
    "ProofGenerator",
    "ProofVerifier",
    "TraversalExit",
    "TraversalStep",
    "TreeBuilder",
    "TreeReconstructor",
    "build_merkle_root",
]
