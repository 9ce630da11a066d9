from datetime import date, timedelta

from app.farmerp.modules.dashboard.service import DashboardStats, compute_dashboard_stats, dashboard_stats
from app.farmerp.modules.production.service import create_flock


def _flock(data, number, status="active"):
    return data.insert(
        "flocks",
        {
            "flock_number": number,
            "flock_type": "layers",
            "breed": "Hy-Line Brown",
            "entry_date": date(2026, 1, 1),
            "initial_quantity": 1000,
            "current_quantity": 1000,
            "status": status,
        },
    )


def _item(data, sku, current, minimum):
    data.insert(
        "inventory_items",
        {"sku": sku, "item_name": sku, "unit_of_measure": "kg", "current_stock": current, "min_stock": minimum},
    )


def test_empty_database(data):
    assert compute_dashboard_stats(data) == DashboardStats(
        active_flocks=0, low_stock_items=0, avg_production=0, avg_laying_percentage="0.0"
    )


def test_stats(data):
    flock = _flock(data, "L-01")
    _flock(data, "L-02")
    _flock(data, "L-03", status="closed")

    for sku, current, minimum in (("A", 0, 5), ("B", 3, 5), ("C", 5, 5), ("D", 10, 5)):
        _item(data, sku, current, minimum)

    start = date(2026, 3, 1)
    # The oldest record falls outside the seven most recent and is ignored.
    data.insert(
        "daily_production",
        {"flock_id": flock["id"], "production_date": start, "total_eggs": 10, "hen_count": 1000, "laying_percentage": 1.0},
    )
    totals = [700, 710, 690, 700, 705, 695, 700]
    percentages = [70.5, 71.0, 69.5, 70.0, 70.25, 69.75, 70.0]
    for i, (total, pct) in enumerate(zip(totals, percentages), start=1):
        data.insert(
            "daily_production",
            {
                "flock_id": flock["id"],
                "production_date": start + timedelta(days=i),
                "total_eggs": total,
                "hen_count": 1000,
                "laying_percentage": pct,
            },
        )

    stats = compute_dashboard_stats(data)
    assert stats.active_flocks == 2
    assert stats.low_stock_items == 3
    assert stats.avg_production == 700
    assert stats.avg_laying_percentage == "70.1"


def test_averages_round_half_up(data):
    flock = _flock(data, "L-01")
    for day, total in ((1, 2), (2, 3)):
        data.insert(
            "daily_production",
            {
                "flock_id": flock["id"],
                "production_date": date(2026, 3, day),
                "total_eggs": total,
                "hen_count": 4,
                "laying_percentage": 70.25,
            },
        )

    stats = compute_dashboard_stats(data)
    assert stats.avg_production == 3
    assert stats.avg_laying_percentage == "70.3"


def test_cached_until_a_mutation_invalidates(data, cache):
    assert dashboard_stats(data, cache).active_flocks == 0
    _flock(data, "L-01")
    # Direct writes bypass invalidation, so the cached value is served.
    assert dashboard_stats(data, cache).active_flocks == 0

    create_flock(
        data,
        cache,
        {"flock_number": "L-02", "flock_type": "layers", "breed": "Ross 308", "entry_date": date(2026, 2, 1), "initial_quantity": 10},
        None,
    )
    assert dashboard_stats(data, cache).active_flocks == 2


def test_dashboard_page(client, login, data):
    _flock(data, "L-01")
    login("operator")
    r = client.get("/app/dashboard")
    assert r.status_code == 200
    assert b"Active flocks" in r.data
    assert b"0.0%" in r.data
