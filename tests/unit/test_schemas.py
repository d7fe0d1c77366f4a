"""
Module 01 - Schemas Unit Tests
Tests for hashtree/schemas/errors.py, versioning.py, proof.py and snapshot.py
"""
import pytest
from pydantic import ValidationError

from hashtree.crypto.hashing import sha256
from hashtree.schemas import (
    SCHEMA_VERSION,
    BuilderStateException,
    CanonicalizationException,
    ErrorCodes,
    HashTreeError,
    HashTreeException,
    InputException,
    LayerSnapshot,
    ProofEntry,
    SnapshotStructureException,
    UnsupportedProofException,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
    is_compatible_schema_version,
)


class TestErrors:
    """Exception hierarchy and error models."""

    @pytest.mark.parametrize(
        "exc, code",
        [
            (InputException("bad"), ErrorCodes.INVALID_INPUT),
            (CanonicalizationException("bad"), ErrorCodes.CANONICALIZATION_ERROR),
            (SnapshotStructureException("bad"), ErrorCodes.SNAPSHOT_STRUCTURE_INVALID),
            (UnsupportedProofException("bad"), ErrorCodes.PROOF_UNSUPPORTED),
            (BuilderStateException("bad"), ErrorCodes.BUILDER_STATE_ERROR),
        ],
    )
    def test_codes(self, exc, code):
        assert isinstance(exc, HashTreeException)
        assert exc.code == code
        assert str(exc) == "bad"

    def test_details(self):
        assert InputException("bad", value_type="int").details == {"value_type": "int"}
        assert SnapshotStructureException("bad", path="$.x").details == {"path": "$.x"}
        assert UnsupportedProofException("bad", leaf_index=2).details == {"leaf_index": 2}

    def test_error_model_round_trip(self):
        exc = InputException("bad input", value_type="float")

        model = exc.to_error_model()
        restored = model.to_exception()

        assert isinstance(model, HashTreeError)
        assert model.code == ErrorCodes.INVALID_INPUT
        assert restored.code == exc.code
        assert restored.message == exc.message
        assert restored.details == {"value_type": "float"}

    def test_error_model_forbids_extra_fields(self):
        with pytest.raises(ValidationError):
            HashTreeError(code="X", message="m", unexpected=True)

    def test_repr(self):
        assert "PROOF_UNSUPPORTED" in repr(UnsupportedProofException("no"))


class TestVersioning:
    """Schema version checks."""

    def test_current_version_supported(self):
        assert_supported_schema_version(SCHEMA_VERSION)
        assert is_compatible_schema_version(SCHEMA_VERSION)

    def test_unknown_version(self):
        with pytest.raises(UnsupportedSchemaVersionError):
            assert_supported_schema_version("v99")
        assert not is_compatible_schema_version("v99")


class TestProofEntry:
    """ProofEntry validation and serialization."""

    def test_digest_from_hex(self):
        digest = sha256(b"a")
        entry = ProofEntry(digest="0x" + digest.hex(), side="left")

        assert entry.digest == digest
        assert entry.is_left

    def test_side_optional(self):
        entry = ProofEntry(digest=sha256(b"a"))

        assert entry.side is None
        assert not entry.is_left

    def test_serializes_hex(self):
        digest = sha256(b"a")
        entry = ProofEntry(digest=digest, side="right")

        assert entry.model_dump() == {"digest": "0x" + digest.hex(), "side": "right"}
        assert entry.hex_digest == "0x" + digest.hex()

    def test_json_round_trip(self):
        entry = ProofEntry(digest=sha256(b"a"), side="left")

        assert ProofEntry.model_validate_json(entry.model_dump_json()) == entry

    def test_invalid_side(self):
        with pytest.raises(ValidationError):
            ProofEntry(digest=sha256(b"a"), side="up")

    def test_invalid_digest(self):
        with pytest.raises(ValidationError):
            ProofEntry(digest="0xzz")

    def test_frozen(self):
        entry = ProofEntry(digest=sha256(b"a"))

        with pytest.raises(ValidationError):
            entry.side = "left"


class TestLayerSnapshot:
    """Snapshot envelope."""

    def test_defaults(self):
        snapshot = LayerSnapshot()

        assert snapshot.schema_version == SCHEMA_VERSION
        assert snapshot.tree is None
        assert snapshot.root_hex is None

    def test_unsupported_version(self):
        with pytest.raises(ValidationError):
            LayerSnapshot(schema_version="v99")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            LayerSnapshot(layers=[])
