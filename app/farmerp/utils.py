from __future__ import annotations

import math
from datetime import date


def clean_str(value) -> str | None:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def parse_date(s: str | date | None) -> date | None:
    """Parse YYYY-MM-DD date string. Raises ValueError on malformed input."""
    if isinstance(s, date):
        return s
    s = (s or "").strip()
    if not s:
        return None
    return date.fromisoformat(s)


def parse_int(s: str | int | None) -> int | None:
    """Parse integer string. Raises ValueError on malformed input."""
    if isinstance(s, int) and not isinstance(s, bool):
        return s
    s = (s or "").strip()
    if not s:
        return None
    return int(s)


def parse_number(s: str | float | int | None) -> float | None:
    """Parse a finite number. Raises ValueError on malformed input, NaN or infinity."""
    if isinstance(s, (int, float)) and not isinstance(s, bool):
        value = float(s)
    else:
        s = (s or "").strip().replace(",", "")
        if not s:
            return None
        value = float(s)
    if not math.isfinite(value):
        raise ValueError(f"Not a finite number: {s!r}")
    return value


def parse_bool(s) -> bool:
    if isinstance(s, bool):
        return s
    return (s or "").strip().lower() in ("1", "true", "on", "yes")
