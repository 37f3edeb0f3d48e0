# stowage/core/jsonutils.py
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = ["safeJsonDumps", "tryJSONify"]



def safeJsonDumps(obj: object) -> str:
    """
    Serializes an object to a compact JSON string.
    Uses deterministic separators (",", ":") and disallows NaN/infinity.
    If direct JSON encoding fails, falls back to tryJSONify and retries.
    """
    try:
        return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return json.dumps(tryJSONify(obj), ensure_ascii=False, allow_nan=False, separators=(",", ":"))



def tryJSONify(value: Any, _depth: int = 0, _maxDepth: int = 32) -> Any:
    """
    Coerces `value` into JSON-safe primitives. Paths and enums become strings,
    sets and tuples become lists, anything unknown becomes its repr().
    """
    if _depth > _maxDepth:
        return "<max depth>"
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if value == value and value not in (float("inf"), float("-inf")) else str(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return tryJSONify(value.value, _depth + 1, _maxDepth)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): tryJSONify(item, _depth + 1, _maxDepth) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [tryJSONify(item, _depth + 1, _maxDepth) for item in value]
    return repr(value)
