"""
Module 01 - Schemas & Canonicalization
File: proof.py

Purpose: Authentication path schema.

A proof is an ordered list of ProofEntry items, leaf-adjacent entry first.
Each entry carries the sibling digest and, where the verifier needs it,
the side the sibling sits on relative to the running hash.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from hashtree.crypto.encoding import bufferify, to_hex

from .errors import InputException

ProofSide = Literal["left", "right"]

LEFT: ProofSide = "left"
RIGHT: ProofSide = "right"


class ProofEntry(BaseModel):
    """
    One sibling step of an authentication path.

    ``digest`` accepts bytes or a hex string and always serializes to
    ``0x``-prefixed hex.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    digest: bytes = Field(..., description="Sibling digest")
    side: ProofSide | None = Field(
        default=None,
        description="Position of the sibling relative to the running hash",
    )

    @field_validator("digest", mode="before")
    @classmethod
    def _coerce_digest(cls, value: Any) -> bytes:
        try:
            return bufferify(value)
        except InputException as e:
            raise ValueError(e.message) from e

    @field_serializer("digest")
    def _serialize_digest(self, digest: bytes) -> str:
        return to_hex(digest)

    @property
    def hex_digest(self) -> str:
        return to_hex(self.digest)

    @property
    def is_left(self) -> bool:
        return self.side == LEFT


__all__ = [
    "ProofSide",
    "LEFT",
    "RIGHT",
    "ProofEntry",
]
