"""
Canonical JSON Serialization

Provides deterministic JSON serialization for hashing and comparison.
Based on RFC 8785 (JSON Canonicalization Scheme) principles:
- Sorted keys (lexicographic)
- No whitespace
- Consistent number formatting
- UTF-8 encoding

Engine results are plain dataclasses; this module turns them into
JSON-ready data and stable fingerprints, and fingerprints the rule
catalogs so a result can be tied to the rules that produced it.
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


# Wall-clock fields left out of fingerprints
TIMESTAMP_FIELDS = frozenset({
    "last_updated",
    "verification_date",
    "next_check_due",
    "next_review",
    "next_review_date",
    "assessment_date",
    "deadline",
})


def _default_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for non-standard types.

    Handles:
    - datetime/date: ISO 8601 format
    - Decimal: string (preserves precision)
    - Enum: value
    - dataclass: dict
    - set/frozenset: sorted list
    """
    if isinstance(obj, datetime):
        if obj.tzinfo is not None:
            return obj.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        return obj.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    return json.dumps(
        _stringify_keys(obj),
        sort_keys=True,
        separators=(",", ":"),
        default=_default_serializer,
        ensure_ascii=False,
    )


def canonical_json_bytes(obj: Any) -> bytes:
    return canonical_json(obj).encode("utf-8")


def to_dict(obj: Any) -> Any:
    """
    Convert a result (dataclass, enum, date, ...) to plain JSON data.

    Tuples become lists, enums their values and dates ISO strings.
    """
    return json.loads(canonical_json(obj))


def content_hash(obj: Any) -> str:
    """
    Compute SHA-256 hash of canonical JSON representation.

    Returns:
        Hex-encoded SHA-256 hash string (64 characters)
    """
    return hashlib.sha256(canonical_json_bytes(obj)).hexdigest()


def content_hash_short(obj: Any, length: int = 12) -> str:
    """Truncated SHA-256 hash for display purposes."""
    return content_hash(obj)[:length]


def _stringify_keys(obj: Any) -> Any:
    """Make mapping keys JSON-safe (enum members and ints become strings)."""
    if is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)
    if isinstance(obj, dict):
        return {_key(k): _stringify_keys(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_stringify_keys(v) for v in obj]
    return obj


def _key(key: Any) -> str:
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def _strip(data: Any, fields: frozenset[str]) -> Any:
    if isinstance(data, dict):
        return {k: _strip(v, fields) for k, v in data.items() if k not in fields}
    if isinstance(data, list):
        return [_strip(v, fields) for v in data]
    return data


def assessment_fingerprint(result: Any, exclude: frozenset[str] = TIMESTAMP_FIELDS) -> str:
    """
    SHA-256 of a result with its wall-clock fields removed.

    Two evaluations of identical inputs produce the same fingerprint even
    though their timestamps differ.
    """
    return content_hash(_strip(to_dict(result), exclude))


def compute_catalog_hash(catalog: Any) -> str:
    """
    SHA-256 of a rule catalog's content.

    Accepts a single catalog or the RuleCatalog aggregate. The load
    location is not part of the hash, so the same rules produce the same
    hash wherever they were loaded from.
    """
    data = to_dict(catalog)
    if isinstance(data, dict):
        data.pop("source", None)
    return content_hash(data)
