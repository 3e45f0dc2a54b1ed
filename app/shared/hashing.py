"""
Canonical Hashing Layer
Single source of truth for decision and snapshot fingerprints.

A fingerprint is "sha256:<64-char-hex>" over a canonical JSON rendering:
sorted keys, no whitespace, datetimes as ISO strings, enums by value,
pydantic models dumped by alias.
"""

import hashlib
import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel

HASH_PREFIX = "sha256:"

# Transport metadata that never belongs in a fingerprint
VOLATILE_FIELDS = frozenset([
    "generatedAt",
    "generated_at",
    "audit",
])


def _clean(obj: Any, exclude_volatile: bool) -> Any:
    if isinstance(obj, BaseModel):
        return _clean(obj.model_dump(mode="json", by_alias=True, exclude_none=True), exclude_volatile)
    if isinstance(obj, dict):
        return {
            str(k): _clean(v, exclude_volatile)
            for k, v in sorted(obj.items(), key=lambda kv: str(kv[0]))
            if not (exclude_volatile and k in VOLATILE_FIELDS) and v is not None
        }
    if isinstance(obj, (list, tuple)):
        return [_clean(i, exclude_volatile) for i in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        if obj.tzinfo is not None:
            obj = obj.astimezone(timezone.utc)
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, float):
        # 5 and 5.0 hash the same
        return int(obj) if obj.is_integer() else round(obj, 10)
    return obj


def canonicalize(obj: Any, exclude_volatile: bool = True) -> str:
    """
    Convert object to canonical JSON string.
    Deterministic: same input always produces same output.
    """
    cleaned = _clean(obj, exclude_volatile)
    return json.dumps(cleaned, sort_keys=True, separators=(',', ':'), ensure_ascii=True)


def canonicalize_and_hash(obj: Any, exclude_volatile: bool = True) -> str:
    """
    Fingerprint an object.
    Returns: "sha256:<64-char-hex>"
    """
    canonical = canonicalize(obj, exclude_volatile)
    digest = hashlib.sha256(canonical.encode('utf-8')).hexdigest()
    return f"{HASH_PREFIX}{digest}"


def verify_hash(obj: Any, expected_hash: str, exclude_volatile: bool = True) -> bool:
    """Check an object against a previously computed fingerprint."""
    return canonicalize_and_hash(obj, exclude_volatile) == expected_hash


def extract_hash_digest(full_hash: str) -> str:
    """
    Extract raw digest from prefixed hash.
    "sha256:abc123..." -> "abc123..."
    """
    if full_hash.startswith(HASH_PREFIX):
        return full_hash[len(HASH_PREFIX):]
    return full_hash
