"""
hashing.py – Canonical, byte-stable serialisation for audit digests.

``stable_stringify`` output rules
──────────────────────────────────
* object keys sorted at every nesting level (non-string keys → ``str``);
  keys that collide once stringified raise ``TypeError``
* floats rounded HALF_UP to ``max_decimals``; integral values written
  without a decimal point, trailing zeros dropped; ``-0`` written as ``0``
* NaN / ±inf written as ``null``
* arrays (lists, tuples) keep element order
* dataclasses, pydantic models, enums, ``date`` / ``datetime`` (ISO text)
  are converted before serialisation
* compact separators, no whitespace

The same logical value therefore serialises to the same bytes regardless of
key insertion order.
"""
from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel

from carbon_conversion.arithmetic import round_stable
from carbon_conversion.constants import DEFAULT_DIGEST_DECIMALS, ROUND_HALF_UP


def _format_number(num: float, max_decimals: int) -> int | float | None:
    if not math.isfinite(num):
        return None
    rounded = round_stable(num, max_decimals, ROUND_HALF_UP)
    if rounded.is_integer():
        return int(rounded)
    return rounded


def _normalize(obj: Any, max_decimals: int) -> Any:
    if obj is None or isinstance(obj, bool):
        return obj
    if isinstance(obj, Enum):
        return _normalize(obj.value, max_decimals)
    if isinstance(obj, str):
        return obj
    if isinstance(obj, int):
        return obj
    if isinstance(obj, (float, Decimal)):
        return _format_number(float(obj), max_decimals)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, BaseModel):
        return _normalize(obj.model_dump(), max_decimals)
    if is_dataclass(obj) and not isinstance(obj, type):
        return _normalize(asdict(obj), max_decimals)
    if isinstance(obj, Mapping):
        items = sorted(((str(k), v) for k, v in obj.items()), key=lambda kv: kv[0])
        normalized = {k: _normalize(v, max_decimals) for k, v in items}
        if len(normalized) != len(items):
            raise TypeError("Mapping keys collide once converted to strings")
        return normalized
    if isinstance(obj, (list, tuple)):
        return [_normalize(item, max_decimals) for item in obj]
    raise TypeError(f"Cannot canonically serialise object of type {type(obj).__name__}")


def stable_stringify(obj: Any, max_decimals: int = DEFAULT_DIGEST_DECIMALS) -> str:
    """
    Deterministic JSON text for *obj*.

    Raises
    ------
    TypeError
        For values with no canonical form (sets, arbitrary objects).
    """
    normalized = _normalize(obj, max_decimals)
    return json.dumps(
        normalized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def to_hash_string(obj: Any) -> str:
    return stable_stringify(obj)


def stable_equal(a: Any, b: Any) -> bool:
    """True when *a* and *b* have the same canonical form."""
    return stable_stringify(a) == stable_stringify(b)


def _trim_strings(obj: Any) -> Any:
    if isinstance(obj, str):
        return obj.strip()
    if isinstance(obj, Mapping):
        return {k: _trim_strings(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_trim_strings(item) for item in obj]
    return obj


def create_digest(payload: Mapping[str, Any]) -> str:
    """Canonical digest payload: strings trimmed, then ``stable_stringify``."""
    return stable_stringify(_trim_strings(payload))


def fingerprint(obj: Any, max_decimals: int = DEFAULT_DIGEST_DECIMALS) -> str:
    """SHA-256 hex digest of the canonical form of *obj*."""
    return hashlib.sha256(stable_stringify(obj, max_decimals).encode("utf-8")).hexdigest()
