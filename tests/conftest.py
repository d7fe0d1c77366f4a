"""
Pytest configuration and shared fixtures for hashtree tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_leaves = _common.make_leaves
make_hashed_leaves = _common.make_hashed_leaves
make_meta_leaves = _common.make_meta_leaves
make_tree = _common.make_tree
make_bitcoin_block_tree = _common.make_bitcoin_block_tree

from hashtree.config.runtime import RuntimeConfig, set_default_config


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture(autouse=True)
def default_config():
    """Isolate every test from HASHTREE_* variables and .env files."""
    config = RuntimeConfig()
    set_default_config(config)
    yield config
    set_default_config(None)


@pytest.fixture
def hashed_leaves():
    """Provide five distinct 32-byte leaves."""
    return make_hashed_leaves(5)


@pytest.fixture
def abc_leaves():
    """Provide the raw a/b/c leaves."""
    return [b"a", b"b", b"c"]


@pytest.fixture
def tree():
    """Provide a default four-leaf sha256 tree."""
    return make_tree(4)


@pytest.fixture
def bitcoin_tree():
    """Provide the Bitcoin block 100000 tree."""
    return make_bitcoin_block_tree()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_all_proofs_verify():
    """Helper to assert every leaf of a tree has a verifying proof."""
    def _assert(tree):
        for i, leaf in enumerate(tree.leaf_values):
            proof = tree.get_proof(leaf, index=i)
            assert tree.verify(proof, leaf, tree.root), f"Proof for leaf {i} did not verify"
    return _assert
