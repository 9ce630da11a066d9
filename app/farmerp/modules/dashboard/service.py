from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from app.farmerp.modules.inventory.service import is_low_stock

if TYPE_CHECKING:
    from app.farmerp.data_service import DataService
    from app.farmerp.query_cache import QueryCache

logger = logging.getLogger(__name__)

STATS_KEY = ("dashboard-stats",)
RECENT_PRODUCTION_DAYS = 7


def _round_half_up(value: float, places: int = 0) -> Decimal:
    return Decimal(str(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DashboardStats:
    active_flocks: int
    low_stock_items: int
    avg_production: int
    avg_laying_percentage: str


def compute_dashboard_stats(data: "DataService") -> DashboardStats:
    """
    Headline numbers for the dashboard.

    Low stock is counted over every item row (`current_stock <= min_stock`),
    and the production averages cover the most recent daily records.
    """
    flocks = data.select("flocks", columns=("id",), eq={"status": "active"}, count=True)
    items = data.select("inventory_items", columns=("current_stock", "min_stock"))
    recent = data.select(
        "daily_production",
        columns=("total_eggs", "laying_percentage"),
        order_by="production_date",
        descending=True,
        limit=RECENT_PRODUCTION_DAYS,
    )

    low_stock = sum(1 for item in items.rows if is_low_stock(item))
    records = recent.rows
    total_eggs = sum(r.get("total_eggs") or 0 for r in records)
    avg_production = int(_round_half_up(total_eggs / max(len(records), 1)))
    if records:
        avg_laying = sum(r.get("laying_percentage") or 0 for r in records) / len(records)
    else:
        avg_laying = 0.0

    return DashboardStats(
        active_flocks=flocks.count or 0,
        low_stock_items=low_stock,
        avg_production=avg_production,
        avg_laying_percentage=str(_round_half_up(avg_laying, 1)),
    )


def dashboard_stats(data: "DataService", cache: "QueryCache") -> DashboardStats:
    return cache.get_or_fetch(STATS_KEY, lambda: compute_dashboard_stats(data))
