"""
Module 02 - Hashing Utilities
Hash function adaptation and the byte helpers used by the pairing rules.

This module provides:
- HashAdapter: wraps a caller-supplied hash function so it always
  consumes and returns bytes
- sha256 / double_sha256 for raw bytes
- reverse_bytes for Bitcoin byte-order handling
- resolve_hash_function: HashAdapter for a hashlib algorithm name

Accepted hash function outputs:
1. bytes / bytearray
2. Hex strings, optionally 0x-prefixed (e.g. from hexdigest())
3. hashlib-style objects exposing digest(), so hashlib.sha256 itself can
   be passed as the hash function

Anything else is rejected with InputException. The adapter is applied to
every hash call, so a malformed output surfaces on the first call.
"""
from __future__ import annotations

import hashlib
from typing import Any, Callable

from hashtree.crypto.encoding import from_hex, is_hex_string
from hashtree.schemas.errors import ErrorCodes, InputException

HashFunction = Callable[[bytes], Any]


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def double_sha256(data: bytes) -> bytes:
    """SHA-256 applied twice, as used for Bitcoin transaction and node hashes."""
    return sha256(sha256(data))


def reverse_bytes(data: bytes) -> bytes:
    """Return ``data`` with its byte order reversed."""
    return data[::-1]


def hash_concat(hash_fn: Callable[[bytes], bytes], left: bytes, right: bytes) -> bytes:
    """Hash the concatenation ``left || right`` with ``hash_fn``."""
    return hash_fn(left + right)


def normalize_hash_output(output: Any) -> bytes:
    """
    Convert a raw hash function output to bytes.

    Raises:
        InputException: If the output is neither bytes, a hex string,
                        nor a digest object
    """
    if isinstance(output, bytes):
        return output

    if isinstance(output, bytearray):
        return bytes(output)

    if isinstance(output, str):
        if not is_hex_string(output):
            raise InputException(
                f"Hash function returned a non-hex string: {output[:16]!r}",
                code=ErrorCodes.INVALID_HASH_OUTPUT,
                value_type="str",
            )
        try:
            return from_hex(output)
        except InputException as e:
            raise InputException(
                f"Hash function returned malformed hex: {e.message}",
                code=ErrorCodes.INVALID_HASH_OUTPUT,
                value_type="str",
            ) from e

    digest = getattr(output, "digest", None)
    if callable(digest):
        try:
            result = digest()
        except TypeError:
            result = None
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)

    raise InputException(
        f"Hash function returned unsupported type {type(output).__name__}",
        code=ErrorCodes.INVALID_HASH_OUTPUT,
        value_type=type(output).__name__,
    )


class HashAdapter:
    """
    Callable wrapper that normalizes a hash function to bytes -> bytes.

    Example:
        >>> adapter = HashAdapter(lambda data: hashlib.sha256(data).hexdigest())
        >>> adapter(b"a") == sha256(b"a")
        True
    """

    def __init__(self, fn: HashFunction, name: str | None = None) -> None:
        if not callable(fn):
            raise InputException(
                f"Hash function must be callable, got {type(fn).__name__}",
                value_type=type(fn).__name__,
            )
        self._fn = fn
        self.name = name or getattr(fn, "__name__", repr(fn))

    def __call__(self, data: bytes) -> bytes:
        return normalize_hash_output(self._fn(bytes(data)))

    def __repr__(self) -> str:
        return f"HashAdapter({self.name!r})"


def bufferify_fn(fn: HashFunction | HashAdapter) -> HashAdapter:
    """Wrap ``fn`` in a HashAdapter unless it already is one."""
    if isinstance(fn, HashAdapter):
        return fn
    return HashAdapter(fn)


def resolve_hash_function(name: str) -> HashAdapter:
    """
    Build a HashAdapter for a hashlib algorithm name.

    Raises:
        InputException: If hashlib does not provide the algorithm
    """
    normalized = name.lower().replace("-", "")
    if normalized not in hashlib.algorithms_available:
        raise InputException(f"Unknown hash algorithm: {name}")
    if normalized.startswith("shake"):
        raise InputException(f"Variable-length hash algorithm not supported: {name}")

    def _digest(data: bytes) -> bytes:
        return hashlib.new(normalized, data).digest()

    return HashAdapter(_digest, name=normalized)


__all__ = [
    "HashFunction",
    "sha256",
    "double_sha256",
    "reverse_bytes",
    "hash_concat",
    "normalize_hash_output",
    "HashAdapter",
    "bufferify_fn",
    "resolve_hash_function",
]
