from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.farmerp.modules.production.models import FLOCK_STATUSES, FLOCK_TYPES
from app.farmerp.search import filter_rows
from app.farmerp.utils import clean_str, parse_date, parse_int

if TYPE_CHECKING:
    from app.farmerp.data_service import DataService
    from app.farmerp.query_cache import QueryCache

logger = logging.getLogger(__name__)

FLOCKS_KEY = ("flocks",)
SEARCH_FIELDS = ("flock_number", "breed")
DEFAULT_BREED = "Ross 308"

FLOCK_TYPE_LABELS = {"layers": "Layers", "broilers": "Broilers"}
FLOCK_STATUS_LABELS = {"active": "Active", "completed": "Completed", "closed": "Closed"}

EGG_CLASSES = (
    "eggs_jumbo",
    "eggs_extra_large",
    "eggs_large",
    "eggs_medium",
    "eggs_small",
    "eggs_dirty",
    "eggs_broken",
)


# ---------- flocks ----------
def validate_flock_payload(form: dict) -> tuple[dict[str, Any], dict[str, str]]:
    """
    Validate flock form input. Returns (clean payload, field errors).
    The payload never contains current_quantity; create seeds it, edit leaves it alone.
    """
    errors: dict[str, str] = {}
    payload: dict[str, Any] = {}

    for name in ("flock_number", "breed"):
        value = clean_str(form.get(name))
        if not value:
            errors[name] = "Required."
        payload[name] = value

    flock_type = clean_str(form.get("flock_type")) or "layers"
    if flock_type not in FLOCK_TYPES:
        errors["flock_type"] = f"Must be one of: {', '.join(FLOCK_TYPES)}."
    payload["flock_type"] = flock_type

    status = clean_str(form.get("status"))
    if status is not None:
        if status not in FLOCK_STATUSES:
            errors["status"] = f"Must be one of: {', '.join(FLOCK_STATUSES)}."
        payload["status"] = status

    try:
        quantity = parse_int(form.get("initial_quantity"))
    except ValueError:
        quantity = None
        errors["initial_quantity"] = "Must be a whole number."
    else:
        if quantity is None or quantity < 1:
            errors["initial_quantity"] = "Must be greater than 0."
    payload["initial_quantity"] = quantity

    for name, required in (("entry_date", True), ("birth_date", False), ("expected_end_date", False)):
        try:
            value = parse_date(form.get(name))
        except ValueError:
            errors[name] = "Use the YYYY-MM-DD format."
            continue
        if required and value is None:
            errors[name] = "Required."
        payload[name] = value

    payload["notes"] = clean_str(form.get("notes"))
    return payload, errors


def list_flocks(data: "DataService", cache: "QueryCache") -> list[dict]:
    return cache.get_or_fetch(
        FLOCKS_KEY,
        lambda: data.select("flocks", order_by="entry_date", descending=True).rows,
    )


def search_flocks(rows: list[dict], term: str | None) -> list[dict]:
    return filter_rows(rows, term, SEARCH_FIELDS)


def _invalidate(cache: "QueryCache") -> None:
    cache.invalidate("flocks")
    cache.invalidate("dashboard-stats")


def create_flock(data: "DataService", cache: "QueryCache", payload: dict, user_id: str | None) -> dict:
    values = dict(payload)
    values["current_quantity"] = values["initial_quantity"]
    values["created_by"] = user_id
    row = data.insert("flocks", values)
    _invalidate(cache)
    logger.info("Flock created id=%s number=%s", row["id"], row["flock_number"])
    return row


def update_flock(data: "DataService", cache: "QueryCache", flock_id: str, payload: dict) -> dict | None:
    values = {k: v for k, v in payload.items() if k != "current_quantity"}
    rows = data.update("flocks", values, eq={"id": flock_id})
    _invalidate(cache)
    return rows[0] if rows else None


def delete_flock(data: "DataService", cache: "QueryCache", flock_id: str) -> bool:
    deleted = data.delete("flocks", eq={"id": flock_id})
    _invalidate(cache)
    return deleted > 0


# ---------- daily production ----------
def production_totals(counts: dict[str, int], hen_count: int) -> tuple[int, float]:
    """Total eggs over every size class, and the laying percentage (eggs per 100 hens)."""
    total = sum(int(counts.get(k) or 0) for k in EGG_CLASSES)
    if not hen_count:
        return total, 0.0
    return total, round(total / hen_count * 100, 2)


def validate_production_payload(form: dict) -> tuple[dict[str, Any], dict[str, str]]:
    errors: dict[str, str] = {}
    payload: dict[str, Any] = {}

    try:
        payload["production_date"] = parse_date(form.get("production_date"))
    except ValueError:
        errors["production_date"] = "Use the YYYY-MM-DD format."
    else:
        if payload["production_date"] is None:
            errors["production_date"] = "Required."

    for name in EGG_CLASSES:
        try:
            value = parse_int(form.get(name)) or 0
        except ValueError:
            errors[name] = "Must be a whole number."
            continue
        if value < 0:
            errors[name] = "Cannot be negative."
        payload[name] = value

    try:
        hens = parse_int(form.get("hen_count"))
    except ValueError:
        hens = None
        errors["hen_count"] = "Must be a whole number."
    else:
        if hens is None or hens < 1:
            errors["hen_count"] = "Must be greater than 0."
    payload["hen_count"] = hens
    payload["notes"] = clean_str(form.get("notes"))
    return payload, errors


def record_daily_production(
    data: "DataService", cache: "QueryCache", flock_id: str, payload: dict, user_id: str | None
) -> dict:
    total, pct = production_totals(payload, payload["hen_count"])
    values = dict(payload)
    values.update(flock_id=flock_id, total_eggs=total, laying_percentage=pct, created_by=user_id)
    row = data.insert("daily_production", values)
    cache.invalidate("daily_production")
    cache.invalidate("dashboard-stats")
    return row


def list_production(data: "DataService", cache: "QueryCache", flock_id: str, limit: int = 30) -> list[dict]:
    return cache.get_or_fetch(
        ("daily_production", flock_id),
        lambda: data.select(
            "daily_production",
            eq={"flock_id": flock_id},
            order_by="production_date",
            descending=True,
            limit=limit,
        ).rows,
    )
