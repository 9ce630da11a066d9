from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any


def filter_rows(rows: Iterable[Mapping[str, Any]], term: str | None, fields: Sequence[str]) -> list:
    """
    Case-insensitive substring search over already-fetched rows.
    A blank term returns every row; a row matches when any of `fields` contains the term.
    """
    rows = list(rows)
    needle = (term or "").strip().lower()
    if not needle:
        return rows
    out = []
    for row in rows:
        for f in fields:
            value = row.get(f)
            if value is not None and needle in str(value).lower():
                out.append(row)
                break
    return out
