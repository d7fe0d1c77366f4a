"""
Module 03 - Merkle Tree Unit Tests
Tests for hashtree/merkle/merkle_tree.py

Covers:
1. Empty and single-leaf trees
2. Root determinism and layer shape
3. Odd-node policies (promotion vs duplicate_odd)
4. Leaf preparation (hash_leaves, sort_leaves, sort, leaf_factory)
5. Hash function adaptation and atomic construction
6. Arena structure (parent links, node variants)
"""
import hashlib

import pytest

from hashtree.config.runtime import RuntimeConfig, TreeOptions
from hashtree.crypto.hashing import sha256
from hashtree.merkle.merkle_tree import (
    EMPTY_TREE_ROOT,
    MerkleTree,
    TreeBuilder,
    build_merkle_root,
    compute_tree_depth,
    prepare_leaves,
)
from hashtree.merkle.nodes import InternalNode, Leaf, LeafNode, NodeRef
from hashtree.schemas.errors import InputException

from fixtures import make_hashed_leaves, make_leaves, make_tree


class TestEmptyTree:
    """Tests for empty tree behavior."""

    def test_empty_leaves_root_is_empty_bytes(self):
        """build_merkle_root([]) returns the empty root."""
        assert build_merkle_root([], sha256) == EMPTY_TREE_ROOT
        assert EMPTY_TREE_ROOT == b""

    def test_empty_tree_layers(self):
        tree = MerkleTree.from_leaves([], sha256)

        assert tree.layers == [[]]
        assert tree.leaf_count == 0
        assert tree.depth == 0
        assert tree.hex_root == "0x"

    def test_empty_tree_proof_is_empty(self):
        tree = MerkleTree.from_leaves([], sha256)

        assert tree.get_proof(sha256(b"a")) == []


class TestSingleLeaf:
    """Tests for single leaf tree behavior."""

    def test_single_leaf_root_equals_leaf(self):
        """Root of single-leaf tree equals the leaf itself."""
        leaf = sha256(b"single leaf")

        assert build_merkle_root([leaf], sha256) == leaf

    def test_single_leaf_root_equals_hashed_leaf(self):
        """With hash_leaves the root is the pre-hashed leaf, not hashed again."""
        root = build_merkle_root([b"single leaf"], sha256, hash_leaves=True)

        assert root == sha256(b"single leaf")

    def test_single_leaf_under_every_policy(self):
        leaf = sha256(b"only one")
        for flags in ({}, {"duplicate_odd": True}, {"is_bitcoin_tree": True}, {"sort": True}):
            assert build_merkle_root([leaf], sha256, **flags) == leaf

    def test_single_leaf_has_one_layer(self):
        tree = make_tree(1)

        assert len(tree.layers) == 1
        assert tree.depth == 1


class TestConcreteScenario:
    """The a/b/c tree under the default policy."""

    def test_layers(self):
        ha, hb, hc = sha256(b"a"), sha256(b"b"), sha256(b"c")
        tree = MerkleTree.from_leaves([ha, hb, hc], sha256)

        layer1 = [sha256(ha + hb), hc]
        assert tree.layers == [[ha, hb, hc], layer1, [sha256(layer1[0] + layer1[1])]]

    def test_hash_leaves_gives_same_tree(self):
        hashed = MerkleTree.from_leaves([b"a", b"b", b"c"], sha256, hash_leaves=True)
        prehashed = MerkleTree.from_leaves(
            [sha256(b"a"), sha256(b"b"), sha256(b"c")], sha256
        )

        assert hashed.root == prehashed.root

    def test_odd_node_is_promoted_unhashed(self):
        hc = sha256(b"c")
        tree = MerkleTree.from_leaves([sha256(b"a"), sha256(b"b"), hc], sha256)

        assert tree.layers[1][1] == hc
        assert tree.node_at(1, 1) is tree.node_at(0, 2)


class TestRootDeterminism:
    """Tests for deterministic root computation."""

    def test_same_leaves_same_root(self):
        leaves = make_hashed_leaves(7)

        assert build_merkle_root(leaves, sha256) == build_merkle_root(leaves, sha256)

    def test_different_order_different_root(self):
        leaves = make_hashed_leaves(4)

        assert build_merkle_root(leaves, sha256) != build_merkle_root(leaves[::-1], sha256)

    def test_root_is_32_bytes(self):
        assert len(make_tree(6).root) == 32

    def test_hex_root(self):
        tree = make_tree(3)

        assert tree.hex_root == "0x" + tree.root.hex()

    def test_hex_layers(self):
        tree = make_tree(3)

        assert tree.hex_layers[0] == ["0x" + leaf.hex() for leaf in tree.leaf_values]


class TestLayerShape:
    """Layer sizes shrink to a single root."""

    @pytest.mark.parametrize("count", [2, 3, 4, 5, 7, 8, 9, 16, 17])
    def test_layer_sizes_strictly_decrease(self, count):
        for flags in ({}, {"duplicate_odd": True}, {"is_bitcoin_tree": True}):
            tree = make_tree(count, **flags)
            sizes = [len(layer) for layer in tree.layers]

            assert sizes[0] == count
            assert sizes[-1] == 1
            assert all(a > b for a, b in zip(sizes, sizes[1:]))

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 8, 9, 33])
    def test_depth_matches_compute_tree_depth(self, count):
        assert make_tree(count).depth == compute_tree_depth(count)

    def test_compute_tree_depth(self):
        assert compute_tree_depth(0) == 0
        assert compute_tree_depth(1) == 1
        assert compute_tree_depth(2) == 2
        assert compute_tree_depth(3) == 3
        assert compute_tree_depth(4) == 3
        assert compute_tree_depth(5) == 4


class TestOddNodePolicy:
    """Promotion vs duplicate_odd."""

    def test_toggling_duplicate_odd_changes_root(self):
        leaves = make_hashed_leaves(3)

        promoted = build_merkle_root(leaves, sha256)
        duplicated = build_merkle_root(leaves, sha256, duplicate_odd=True)

        assert promoted != duplicated

    def test_duplicate_odd_self_pairs(self):
        ha, hb, hc = make_hashed_leaves(3)
        tree = MerkleTree.from_leaves([ha, hb, hc], sha256, duplicate_odd=True)

        assert tree.layers[1] == [sha256(ha + hb), sha256(hc + hc)]
        node = tree.node_at(1, 1)
        assert isinstance(node, InternalNode)
        assert node.is_self_paired

    def test_even_layers_unaffected_by_duplicate_odd(self):
        leaves = make_hashed_leaves(4)

        assert build_merkle_root(leaves, sha256) == build_merkle_root(
            leaves, sha256, duplicate_odd=True
        )


class TestLeafPreparation:
    """hash_leaves, sort_leaves, sort and leaf_factory."""

    def test_sort_leaves(self):
        leaves = make_hashed_leaves(5)
        tree = MerkleTree.from_leaves(leaves, sha256, sort_leaves=True)

        assert tree.leaf_values == sorted(leaves)

    def test_sort_implies_sort_leaves_and_pairs(self):
        options = TreeOptions(sort=True)

        assert options.sort_leaves
        assert options.sort_pairs

    def test_sort_makes_root_order_independent(self):
        leaves = make_hashed_leaves(6)

        assert build_merkle_root(leaves, sha256, sort=True) == build_merkle_root(
            leaves[::-1], sha256, sort=True
        )

    def test_leaf_values_are_canonicalized(self):
        tree = MerkleTree.from_leaves(["0x" + "ab" * 32, bytearray(b"\x01\x02")], sha256)

        assert tree.leaf_values == [b"\xab" * 32, b"\x01\x02"]

    def test_unsupported_leaf_type_raises(self):
        with pytest.raises(InputException):
            MerkleTree.from_leaves([1, 2, 3], sha256)

    def test_leaf_factory_attaches_metadata(self):
        def factory(data: bytes) -> Leaf:
            return Leaf(data, {"size": len(data)})

        tree = MerkleTree.from_leaves(make_leaves(3), sha256, hash_leaves=True, leaf_factory=factory)

        assert [leaf.meta for leaf in tree.leaves] == [{"size": 32}] * 3

    def test_leaf_factory_must_return_leaf(self):
        with pytest.raises(InputException):
            MerkleTree.from_leaves(make_leaves(2), sha256, leaf_factory=lambda data: data)

    def test_leaf_factory_ignored_for_bitcoin(self, caplog):
        leaves = make_hashed_leaves(3)
        with caplog.at_level("WARNING"):
            tree = MerkleTree.from_leaves(
                leaves,
                sha256,
                is_bitcoin_tree=True,
                leaf_factory=lambda data: Leaf(data, "ignored"),
            )

        assert all(leaf.meta is None for leaf in tree.leaves)
        assert "leaf_factory is ignored" in caplog.text

    def test_leaf_instances_keep_metadata(self):
        leaves = prepare_leaves([Leaf(b"x" * 32, 1), b"y" * 32], sha256, TreeOptions())

        assert leaves == [Leaf(b"x" * 32, 1), Leaf(b"y" * 32, None)]


class TestHashFunctions:
    """Hash function adaptation during construction."""

    def test_hashlib_constructor_accepted(self):
        leaves = make_hashed_leaves(4)

        assert build_merkle_root(leaves, hashlib.sha256) == build_merkle_root(leaves, sha256)

    def test_hexdigest_output_accepted(self):
        leaves = make_hashed_leaves(4)

        def hex_sha256(data: bytes) -> str:
            return hashlib.sha256(data).hexdigest()

        assert build_merkle_root(leaves, hex_sha256) == build_merkle_root(leaves, sha256)

    def test_default_hash_comes_from_config(self, default_config):
        leaves = make_hashed_leaves(4)

        assert build_merkle_root(leaves) == build_merkle_root(leaves, sha256)

    def test_config_options_used_when_none_given(self):
        from hashtree.config.runtime import set_default_config

        set_default_config(RuntimeConfig(options=TreeOptions(duplicate_odd=True)))
        leaves = make_hashed_leaves(3)

        assert build_merkle_root(leaves, sha256) == build_merkle_root(
            leaves, sha256, options=TreeOptions(duplicate_odd=True)
        )

    def test_config_options_not_shared_between_trees(self):
        from hashtree.config.runtime import get_default_config

        leaves = make_hashed_leaves(3)
        tree = MerkleTree.from_leaves(leaves, sha256)
        tree.options.duplicate_odd = True

        assert get_default_config().options.duplicate_odd is False
        assert MerkleTree.from_leaves(leaves, sha256).options is not tree.options

    def test_options_and_flags_together_rejected(self):
        with pytest.raises(TypeError):
            TreeBuilder(sha256, TreeOptions(), sort=True)

    def test_malformed_hash_output_fails_construction(self):
        calls = []

        def broken(data: bytes):
            calls.append(data)
            return 42

        with pytest.raises(InputException):
            MerkleTree.from_leaves(make_hashed_leaves(4), broken)
        assert len(calls) == 1


class TestArena:
    """Node variants and parent links."""

    def test_leaf_nodes_in_layer_zero(self):
        tree = make_tree(4)

        assert all(isinstance(tree.node_at(0, i), LeafNode) for i in range(4))
        assert all(isinstance(node, InternalNode) for node in tree.arena.layers[1])

    def test_internal_node_children(self):
        tree = make_tree(4)
        node = tree.node_at(1, 1)

        assert node.left == NodeRef(0, 2)
        assert node.right == NodeRef(0, 3)
        assert tree.arena.children_of(NodeRef(1, 1)) == (NodeRef(0, 2), NodeRef(0, 3))

    def test_parent_links(self):
        tree = make_tree(5)

        assert tree.parent_of(0, 0) == NodeRef(1, 0)
        assert tree.parent_of(0, 3) == NodeRef(1, 1)
        assert tree.parent_of(0, 4) == NodeRef(1, 2)
        assert tree.parent_of(tree.depth - 1, 0) is None

    def test_every_non_root_node_has_parent(self):
        tree = make_tree(9, duplicate_odd=True)
        root_ref = NodeRef(tree.depth - 1, 0)

        for ref, _ in tree.arena:
            if ref != root_ref:
                assert tree.arena.parent_of(ref) is not None

    def test_get_leaf_index(self):
        leaves = make_hashed_leaves(4)
        tree = make_tree(leaves=leaves)

        assert tree.get_leaf_index(leaves[2]) == 2
        assert tree.get_leaf_index("0x" + leaves[3].hex()) == 3
        assert tree.get_leaf_index(sha256(b"absent")) == -1

    def test_repr(self):
        assert "leaves=4" in repr(make_tree(4))
