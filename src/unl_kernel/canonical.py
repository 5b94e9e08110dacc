"""
Canonical JSON serialization for signed blobs.

The signature over a blob covers its exact bytes, so the signer must
produce them deterministically.

Rules:
- Object keys keep the order the caller built them in (the record types
  fix that order)
- No whitespace between tokens
- Only integers are allowed as numbers; floats, NaN and Infinity are rejected
- Strings: minimal escaping (control chars, backslash, double-quote)
- null, true, false as literals
"""

import json
from typing import Any


def canonical_json(value: Any) -> str:
    """
    Serialize a value to canonical JSON.

    Args:
        value: JSON-serializable value built from dict, list, str, int,
            bool and None

    Returns:
        Compact JSON string with a stable key order

    Raises:
        TypeError: If the value contains an unsupported type
    """
    return _serialize_value(value)


def canonical_bytes(value: Any) -> bytes:
    """UTF-8 encoding of ``canonical_json(value)``."""
    return canonical_json(value).encode("utf-8")


def _serialize_value(value: Any) -> str:
    """Internal: serialize any value to canonical JSON."""
    if value is None:
        return "null"

    if isinstance(value, bool):
        # Must check bool before int (bool is subclass of int in Python)
        return "true" if value else "false"

    if isinstance(value, int):
        return str(value)

    if isinstance(value, str):
        return _serialize_string(value)

    if isinstance(value, (list, tuple)):
        return _serialize_array(value)

    if isinstance(value, dict):
        return _serialize_object(value)

    raise TypeError(f"cannot canonicalize value of type {type(value).__name__}")


def _serialize_string(text: str) -> str:
    """
    Serialize string with proper JSON escaping.

    Uses json.dumps which handles control characters, backslash,
    and double-quote escaping correctly.
    """
    return json.dumps(text, ensure_ascii=False)


def _serialize_array(arr: list | tuple) -> str:
    """Serialize array with no whitespace."""
    items = [_serialize_value(item) for item in arr]
    return "[" + ",".join(items) + "]"


def _serialize_object(obj: dict) -> str:
    """Serialize object with no whitespace, keys in insertion order."""
    pairs = []
    for key, val in obj.items():
        if not isinstance(key, str):
            raise TypeError(f"object keys must be strings, got {type(key).__name__}")
        pairs.append(_serialize_string(key) + ":" + _serialize_value(val))

    return "{" + ",".join(pairs) + "}"
