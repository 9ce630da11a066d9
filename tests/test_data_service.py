from datetime import date

import pytest

from app.farmerp.errors import DataServiceError, UnknownResourceError


def _flock(number: str, status: str = "active", entry: date = date(2026, 1, 1)) -> dict:
    return {
        "flock_number": number,
        "flock_type": "layers",
        "breed": "Hy-Line Brown",
        "entry_date": entry,
        "initial_quantity": 500,
        "current_quantity": 500,
        "status": status,
    }


def test_insert_returns_row_with_id(data):
    row = data.insert("flocks", _flock("L-01"))
    assert row["id"]
    assert row["flock_number"] == "L-01"
    assert data.get("flocks", row["id"])["breed"] == "Hy-Line Brown"


def test_select_eq_order_limit_count(data):
    data.insert("flocks", _flock("L-01", entry=date(2026, 1, 1)))
    data.insert("flocks", _flock("L-02", entry=date(2026, 2, 1)))
    data.insert("flocks", _flock("L-03", status="closed", entry=date(2026, 3, 1)))

    result = data.select("flocks", eq={"status": "active"}, order_by="entry_date", descending=True, limit=1, count=True)
    assert [r["flock_number"] for r in result.rows] == ["L-02"]
    # count ignores limit
    assert result.count == 2


def test_select_joined_column_path(data):
    cat = data.insert("inventory_categories", {"category_name": "Feed"})
    data.insert(
        "inventory_items",
        {"sku": "F-1", "item_name": "Layer mash", "unit_of_measure": "kg", "category_id": cat["id"]},
    )
    data.insert("inventory_items", {"sku": "F-2", "item_name": "Grit", "unit_of_measure": "kg"})

    rows = data.select("inventory_items", columns=("sku", "category.category_name"), order_by="sku").rows
    assert rows == [
        {"sku": "F-1", "category.category_name": "Feed"},
        {"sku": "F-2", "category.category_name": None},
    ]


def test_numeric_columns_come_back_as_float(data):
    row = data.insert(
        "inventory_items",
        {"sku": "M-1", "item_name": "Vitamins", "unit_of_measure": "l", "current_stock": 2.5, "min_stock": 1},
    )
    assert isinstance(data.get("inventory_items", row["id"])["current_stock"], float)


def test_update_and_delete(data):
    row = data.insert("flocks", _flock("L-01"))
    updated = data.update("flocks", {"breed": "Lohmann"}, eq={"id": row["id"]})
    assert updated[0]["breed"] == "Lohmann"

    assert data.delete("flocks", eq={"id": row["id"]}) == 1
    assert data.get("flocks", row["id"]) is None
    assert data.delete("flocks", eq={"id": row["id"]}) == 0


def test_update_requires_filter(data):
    with pytest.raises(DataServiceError):
        data.update("flocks", {"breed": "x"}, eq={})


def test_unknown_resource_and_column(data):
    with pytest.raises(UnknownResourceError):
        data.select("eggs")
    with pytest.raises(UnknownResourceError):
        data.select("flocks", eq={"colour": "brown"})
    with pytest.raises(UnknownResourceError):
        data.select("inventory_items", columns=("supplier.name",))


def test_constraint_violation_is_wrapped(data):
    data.insert("flocks", _flock("L-01"))
    with pytest.raises(DataServiceError) as exc:
        data.insert("flocks", _flock("L-01"))
    assert exc.value.resource == "flocks"
    assert exc.value.operation == "insert"
