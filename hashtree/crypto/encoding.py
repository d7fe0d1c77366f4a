"""
Module 02 - Leaf Encoding
Conversion of heterogeneous leaf inputs into canonical byte sequences.

This module provides:
- bufferify: canonicalize a leaf value to bytes
- is_hex_string: hex detection used by bufferify and the hash adapter
- to_hex / from_hex: 0x-prefixed hex encoding

Canonicalization Rules:
1. bytes, bytearray, memoryview -> bytes (unchanged content)
2. "0x"-prefixed strings -> hex decoded; must be valid, even-length hex
3. Unprefixed, non-empty, even-length hex strings -> hex decoded
4. Any other string -> UTF-8 encoded text
5. hashlib-style objects (anything with a digest() method) -> digest()
6. Anything else -> InputException

Rule 3 means a text leaf that happens to look like hex ("cafe") is read as
hex. Pass bytes when that matters.
"""
from __future__ import annotations

import re
from typing import Any

from hashtree.schemas.errors import InputException

_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]*$")


def is_hex_string(value: Any) -> bool:
    """
    Check whether ``value`` is a string made only of hex digits.

    An optional ``0x`` prefix is allowed. Length parity is not checked.

    Example:
        >>> is_hex_string("0xdeadbeef")
        True
        >>> is_hex_string("hello")
        False
    """
    return isinstance(value, str) and bool(_HEX_RE.match(value))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert a hexadecimal string to bytes. The 0x prefix is optional.

    Raises:
        InputException: If the string has odd length or contains
                        invalid hex characters
    """
    hex_content = hex_string[2:] if hex_string.startswith("0x") else hex_string

    if len(hex_content) % 2 != 0:
        raise InputException(
            f"Hex string must have even length, got length {len(hex_content)}",
            value_type="str",
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise InputException(
            f"Invalid hex characters in string: {e}",
            value_type="str",
        ) from e


def bufferify(value: Any) -> bytes:
    """
    Canonicalize a leaf value to bytes.

    Idempotent: canonical bytes come back unchanged.

    Args:
        value: bytes-like, str, or an object exposing ``digest()``

    Returns:
        Canonical bytes

    Raises:
        InputException: If the value cannot be canonicalized

    Example:
        >>> bufferify("0x0102")
        b'\\x01\\x02'
        >>> bufferify("hello")
        b'hello'
    """
    if isinstance(value, bytes):
        return value

    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)

    if isinstance(value, str):
        if value.startswith("0x"):
            return from_hex(value)
        if value and len(value) % 2 == 0 and is_hex_string(value):
            return bytes.fromhex(value)
        return value.encode("utf-8")

    digest = getattr(value, "digest", None)
    if callable(digest):
        try:
            result = digest()
        except TypeError as e:
            # variable-length digests (shake_*) need an explicit length
            raise InputException(
                f"digest() of {type(value).__name__} needs arguments: {e}",
                value_type=type(value).__name__,
            ) from e
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)

    raise InputException(
        f"Cannot canonicalize leaf of type {type(value).__name__}",
        value_type=type(value).__name__,
    )


__all__ = [
    "is_hex_string",
    "to_hex",
    "from_hex",
    "bufferify",
]
