"""
Module 01 - Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic JSON serialization for layer snapshots and leaf
metadata.

Two orderings are needed:
- Leaf metadata is free-form, so its mapping keys are sorted.
- Snapshot node mappings encode left/right child order in key order, so
  they must be serialized exactly as produced (``preserve_order=True``).
"""

import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import CanonicalizationException

# Canonical JSON separators - no whitespace
CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")


def _validate_float(value: float, path: str = "") -> None:
    """Reject NaN and Infinity, which have no JSON representation."""
    if not math.isfinite(value):
        raise CanonicalizationException(
            message=f"Non-finite float value encountered: {value}",
            details={"path": path, "value": str(value)},
        )


def canonicalize_value(value: Any, path: str = "", preserve_order: bool = False) -> Any:
    """
    Recursively convert a value into a JSON-serializable canonical form.

    Args:
        value: Any Python value to canonicalize.
        path: Current path for error reporting.
        preserve_order: Keep mapping keys in insertion order instead of
            sorting them.

    Returns:
        A JSON-serializable representation. Bytes become ``0x``-prefixed hex.

    Raises:
        CanonicalizationException: If the value cannot be represented.
    """
    if value is None:
        return None

    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        _validate_float(value, path)
        return value

    if isinstance(value, str):
        return value

    if isinstance(value, Enum):
        return canonicalize_value(value.value, path, preserve_order)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()

    if isinstance(value, BaseModel):
        dumped = value.model_dump(mode="json", by_alias=True)
        return canonicalize_value(dumped, path, preserve_order)

    if isinstance(value, dict):
        for key in value:
            if not isinstance(key, str):
                raise CanonicalizationException(
                    message=f"Mapping keys must be strings, got {type(key).__name__}",
                    details={"path": path, "key": repr(key)},
                )
        keys = list(value) if preserve_order else sorted(value)
        return {
            k: canonicalize_value(value[k], f"{path}.{k}" if path else k, preserve_order)
            for k in keys
        }

    if isinstance(value, (list, tuple)):
        return [
            canonicalize_value(item, f"{path}[{i}]", preserve_order)
            for i, item in enumerate(value)
        ]

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_canonical(obj: Any, preserve_order: bool = False) -> str:
    """
    Serialize an object to a compact, deterministic JSON string.

    Example:
        >>> dumps_canonical({"b": 2, "a": b"\\x01"})
        '{"a":"0x01","b":2}'
    """
    try:
        canonicalized = canonicalize_value(obj, preserve_order=preserve_order)
        return json.dumps(
            canonicalized,
            separators=CANONICAL_JSON_SEPARATORS,
            ensure_ascii=False,
            allow_nan=False,
        )
    except CanonicalizationException:
        raise
    except (TypeError, ValueError) as e:
        raise CanonicalizationException(
            message=f"Failed to serialize to canonical JSON: {e}",
            details={"type": type(obj).__name__, "error": str(e)},
        ) from e


def loads_canonical(json_str: str) -> Any:
    """Parse a canonical JSON string. Key order is preserved."""
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise CanonicalizationException(
            message=f"Invalid JSON: {e.msg}",
            details={"position": e.pos},
        ) from e
