"""Shared utilities: canonical fingerprints for decisions and snapshots."""

from .hashing import (
    canonicalize,
    canonicalize_and_hash,
    verify_hash,
    extract_hash_digest
)

__all__ = [
    "canonicalize",
    "canonicalize_and_hash",
    "verify_hash",
    "extract_hash_digest"
]
