from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from app.farmerp.search import filter_rows
from app.farmerp.utils import clean_str, parse_bool, parse_number

if TYPE_CHECKING:
    from app.farmerp.data_service import DataService
    from app.farmerp.query_cache import QueryCache

logger = logging.getLogger(__name__)

ITEMS_KEY = ("inventory_items", "active")
SEARCH_FIELDS = ("item_name", "sku")
LIST_COLUMNS = ("*", "category.category_name")


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"

    @property
    def label(self) -> str:
        return STOCK_STATUS_LABELS[self]


STOCK_STATUS_LABELS = {
    StockStatus.OUT_OF_STOCK: "Out of stock",
    StockStatus.LOW_STOCK: "Low stock",
    StockStatus.IN_STOCK: "In stock",
}


def stock_status(current: float, minimum: float) -> StockStatus:
    if current == 0:
        return StockStatus.OUT_OF_STOCK
    if current <= minimum:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def is_low_stock(item: dict) -> bool:
    return (item.get("current_stock") or 0) <= (item.get("min_stock") or 0)


def validate_item_payload(form: dict) -> tuple[dict[str, Any], dict[str, str]]:
    errors: dict[str, str] = {}
    payload: dict[str, Any] = {}

    for name in ("sku", "item_name", "unit_of_measure"):
        value = clean_str(form.get(name))
        if not value:
            errors[name] = "Required."
        payload[name] = value

    for name, default in (("min_stock", 0.0), ("current_stock", 0.0), ("unit_cost", 0.0), ("max_stock", None)):
        try:
            value = parse_number(form.get(name))
        except ValueError:
            errors[name] = "Must be a number."
            continue
        if value is None:
            value = default
        if value is not None and value < 0:
            errors[name] = "Cannot be negative."
        payload[name] = value

    max_stock = payload.get("max_stock")
    if max_stock is not None and "min_stock" in payload and max_stock < payload["min_stock"]:
        errors["max_stock"] = "Must be at least the minimum stock."

    payload["category_id"] = clean_str(form.get("category_id"))
    payload["description"] = clean_str(form.get("description"))
    payload["barcode"] = clean_str(form.get("barcode"))
    payload["notes"] = clean_str(form.get("notes"))
    payload["requires_batch"] = parse_bool(form.get("requires_batch"))
    return payload, errors


def list_items(data: "DataService", cache: "QueryCache") -> list[dict]:
    return cache.get_or_fetch(
        ITEMS_KEY,
        lambda: data.select(
            "inventory_items",
            columns=LIST_COLUMNS,
            eq={"is_active": True},
            order_by="item_name",
        ).rows,
    )


def search_items(rows: list[dict], term: str | None) -> list[dict]:
    return filter_rows(rows, term, SEARCH_FIELDS)


def list_categories(data: "DataService", cache: "QueryCache") -> list[dict]:
    return cache.get_or_fetch(
        ("inventory_categories",),
        lambda: data.select("inventory_categories", order_by="category_name").rows,
    )


def _invalidate(cache: "QueryCache") -> None:
    cache.invalidate("inventory_items")
    cache.invalidate("dashboard-stats")


def create_item(data: "DataService", cache: "QueryCache", payload: dict) -> dict:
    row = data.insert("inventory_items", payload)
    _invalidate(cache)
    logger.info("Inventory item created id=%s sku=%s", row["id"], row["sku"])
    return row


def update_item(data: "DataService", cache: "QueryCache", item_id: str, payload: dict) -> dict | None:
    rows = data.update("inventory_items", payload, eq={"id": item_id})
    _invalidate(cache)
    return rows[0] if rows else None


def delete_item(data: "DataService", cache: "QueryCache", item_id: str) -> bool:
    deleted = data.delete("inventory_items", eq={"id": item_id})
    _invalidate(cache)
    return deleted > 0
