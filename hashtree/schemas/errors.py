"""
Module 01 - Schemas & Canonicalization
File: errors.py

Purpose: Error taxonomy for tree construction, proofs and reconstruction.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Boundary operations (proof generation, verification) never raise on
data-shape mismatches: a missing leaf is an empty proof and a failed
verification is ``False``. The exceptions below cover the cases that must
surface to the caller.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the package."""

    # Input Errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_HASH_OUTPUT = "INVALID_HASH_OUTPUT"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Schema Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"
    SNAPSHOT_STRUCTURE_INVALID = "SNAPSHOT_STRUCTURE_INVALID"

    # Proof Errors
    PROOF_UNSUPPORTED = "PROOF_UNSUPPORTED"

    # Builder Errors
    BUILDER_STATE_ERROR = "BUILDER_STATE_ERROR"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class HashTreeError(BaseModel):
    """
    Base error model for structured error reporting.

    Used when an error has to be passed around or serialized instead of
    being raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INVALID_INPUT],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )

    def to_exception(self) -> "HashTreeException":
        """Convert this error model to a raisable exception."""
        return HashTreeException(
            code=self.code,
            message=self.message,
            details=self.details,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class HashTreeException(Exception):
    """
    Base exception for all hashtree errors.

    Carries structured error information and can be converted to a
    HashTreeError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "HASHTREE_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_error_model(self) -> HashTreeError:
        """Convert this exception to a HashTreeError model."""
        return HashTreeError(
            code=self.code,
            message=self.message,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InputException(HashTreeException):
    """Raised when a leaf or a hash function output is malformed."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.INVALID_INPUT,
        value_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if value_type:
            full_details["value_type"] = value_type
        super().__init__(
            message=message,
            code=code,
            details=full_details,
        )


class CanonicalizationException(HashTreeException):
    """Raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
        )


class SnapshotStructureException(HashTreeException):
    """Raised when a layer snapshot does not have the expected nesting."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if path:
            full_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCodes.SNAPSHOT_STRUCTURE_INVALID,
            details=full_details,
        )


class UnsupportedProofException(HashTreeException):
    """Raised when a proof is requested that the tree policy cannot produce."""

    def __init__(
        self,
        message: str,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.PROOF_UNSUPPORTED,
            details=full_details,
        )


class BuilderStateException(HashTreeException):
    """Raised when an incremental builder is used out of order."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.BUILDER_STATE_ERROR,
            details=details,
        )
