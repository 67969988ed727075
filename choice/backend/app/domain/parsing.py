# app/domain/parsing.py
from __future__ import annotations

import math
import re
from typing import Any

_YEARS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:years?|yrs?)\b", re.IGNORECASE)
_MONTHS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:months?|mos?)\b", re.IGNORECASE)

_TRUE = {"true", "yes", "y", "1"}
_FALSE = {"false", "no", "n", "0"}


def to_float(x: Any) -> float | None:
    """Numbers, numeric strings and money-ish strings ("$4,500") -> float. NaN/inf -> None."""
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        f = float(x)
    elif isinstance(x, str):
        s = x.strip().replace(",", "").replace("$", "")
        if not s:
            return None
        try:
            f = float(s)
        except ValueError:
            return None
    else:
        return None
    return f if math.isfinite(f) else None


def to_bool(x: Any) -> bool | None:
    """Loose booleans from forms: True/False, "yes"/"no", "1"/"0". Unknown -> None."""
    if isinstance(x, bool):
        return x
    if isinstance(x, (int, float)) and x in (0, 1):
        return bool(x)
    if isinstance(x, str):
        s = x.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    return None


def _whole_years(f: float | None) -> int:
    if f is None or not math.isfinite(f):
        return 0
    return max(0, int(f))


def parse_duration_years(value: Any) -> int:
    """
    Whole years from loosely formatted text: "3 years", "2 yrs", "18 months", "4".

    Anything we can't read falls back to 0. That silently pushes a typo like
    "two years" into the lowest bracket, which is existing behavior.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return _whole_years(float(value))
    if not isinstance(value, str):
        return 0

    m = _YEARS_RE.search(value)
    if m:
        return _whole_years(float(m.group(1)))

    m = _MONTHS_RE.search(value)
    if m:
        return _whole_years(float(m.group(1)) / 12)

    return _whole_years(to_float(value))


def get_first(payload: dict[str, Any], *keys: str) -> Any:
    """Return first non-empty key from payload."""
    for k in keys:
        v = payload.get(k)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def as_dict(x: Any) -> dict[str, Any]:
    return x if isinstance(x, dict) else {}


def as_list(x: Any) -> list[Any]:
    return x if isinstance(x, list) else []
