"""
Module 01 - Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
    is_compatible_schema_version,
)

# Error models and exceptions
from .errors import (
    BuilderStateException,
    CanonicalizationException,
    ErrorCodes,
    HashTreeError,
    HashTreeException,
    InputException,
    SnapshotStructureException,
    UnsupportedProofException,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    loads_canonical,
)

from .proof import LEFT, RIGHT, ProofEntry, ProofSide
from .snapshot import META_KEY, LayerSnapshot

__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    "is_compatible_schema_version",
    # Errors
    "BuilderStateException",
    "CanonicalizationException",
    "ErrorCodes",
    "HashTreeError",
    "HashTreeException",
    "InputException",
    "SnapshotStructureException",
    "UnsupportedProofException",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "loads_canonical",
    # Proof
    "LEFT",
    "RIGHT",
    "ProofEntry",
    "ProofSide",
    # Snapshot
    "META_KEY",
    "LayerSnapshot",
]
