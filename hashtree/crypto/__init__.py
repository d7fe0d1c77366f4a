"""
Cryptographic helpers: leaf canonicalization and hash function adaptation.
"""
from .encoding import (
    bufferify,
    is_hex_string,
    to_hex,
    from_hex,
)
from .hashing import (
    HashAdapter,
    HashFunction,
    bufferify_fn,
    double_sha256,
    hash_concat,
    normalize_hash_output,
    resolve_hash_function,
    reverse_bytes,
    sha256,
)

__all__ = [
    "bufferify",
    "is_hex_string",
    "to_hex",
    "from_hex",
    "HashAdapter",
    "HashFunction",
    "bufferify_fn",
    "double_sha256",
    "hash_concat",
    "normalize_hash_output",
    "resolve_hash_function",
    "reverse_bytes",
    "sha256",
]
