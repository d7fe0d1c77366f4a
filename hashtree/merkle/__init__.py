"""
Module 03 - Merkle Tree Engine
Tree construction (eager and incremental), proofs, verification and layer
snapshots.

This module provides:
- MerkleTree: built tree with root, layers, proofs and snapshot export
- TreeBuilder / build_merkle_root: eager construction
- IncrementalTreeBuilder: step-wise construction with optional checkpoint
- ProofGenerator / ProofVerifier: authentication paths
- TreeReconstructor: tree from a layer snapshot, no hashing

Usage:
    from hashtree.merkle import MerkleTree
    from hashtree.crypto import sha256

    tree = MerkleTree.from_leaves([b"a", b"b", b"c"], sha256, hash_leaves=True)
    proof = tree.get_proof(sha256(b"b"))
    assert tree.verify(proof, sha256(b"b"), tree.root)
"""
from .nodes import (
    InternalNode,
    Leaf,
    LeafNode,
    Node,
    NodeArena,
    NodeRef,
)

from .pairing import (
    fold_step,
    merkle_parent,
    self_pair,
    self_pairs_odd_nodes,
)

from .merkle_tree import (
    EMPTY_TREE_ROOT,
    LeafFactory,
    MerkleTree,
    TreeBuilder,
    build_arena,
    build_merkle_root,
    compute_tree_depth,
    prepare_leaves,
)

from .merkle_proofs import (
    ProofGenerator,
    ProofVerifier,
    generate_proof,
    verify_proof,
)

from .incremental import (
    BuilderState,
    Emitted,
    IncrementalTreeBuilder,
    TraversalExit,
    TraversalStep,
)

from .snapshot import (
    TreeReconstructor,
    dumps_snapshot,
    export_layer_snapshot,
    export_layers,
)


__all__ = [
    # Nodes
    "InternalNode",
    "Leaf",
    "LeafNode",
    "Node",
    "NodeArena",
    "NodeRef",
    # Pairing rules
    "fold_step",
    "merkle_parent",
    "self_pair",
    "self_pairs_odd_nodes",
    # Eager construction
    "EMPTY_TREE_ROOT",
    "LeafFactory",
    "MerkleTree",
    "TreeBuilder",
    "build_arena",
    "build_merkle_root",
    "compute_tree_depth",
    "prepare_leaves",
    # Proofs
    "ProofGenerator",
    "ProofVerifier",
    "generate_proof",
    "verify_proof",
    # Incremental construction
    "BuilderState",
    "Emitted",
    "IncrementalTreeBuilder",
    "TraversalExit",
    "TraversalStep",
    # Snapshots
    "TreeReconstructor",
    "dumps_snapshot",
    "export_layer_snapshot",
    "export_layers",
]
