"""
Module 01 - Schemas & Canonicalization
File: snapshot.py

Purpose: Envelope for exported tree layers.

Snapshot node schema (``tree`` field):
- every key is a ``0x``-prefixed hex digest
- a leaf maps to ``None``
- a leaf carrying caller metadata maps to ``{"meta": <json>}``; ``meta`` is a
  reserved key and can never be mistaken for a digest key
- an internal node maps to an object with one or two child keys, left child
  first
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .versioning import SCHEMA_VERSION, assert_supported_schema_version

META_KEY = "meta"


class LayerSnapshot(BaseModel):
    """Nested layer export plus the options needed to verify against it."""

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(default=SCHEMA_VERSION)
    is_bitcoin_tree: bool = Field(default=False)
    sort_pairs: bool = Field(default=False)
    duplicate_odd: bool = Field(default=False)
    tree: dict[str, Any] | None = Field(
        default=None,
        description="Nested digest mapping rooted at the tree root; None for an empty tree",
    )

    @field_validator("schema_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        assert_supported_schema_version(value)
        return value

    @property
    def root_hex(self) -> str | None:
        if not self.tree:
            return None
        return next(iter(self.tree))


__all__ = [
    "META_KEY",
    "LayerSnapshot",
]
