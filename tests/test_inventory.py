import pytest

from app.farmerp.modules.inventory.service import StockStatus, stock_status, validate_item_payload

NEW_ITEM = {
    "sku": "FEED-001",
    "item_name": "Layer mash",
    "unit_of_measure": "kg",
    "current_stock": "1,250.5",
    "min_stock": "500",
    "max_stock": "5000",
    "unit_cost": "8.75",
}


@pytest.mark.parametrize(
    "current, expected",
    [(0, StockStatus.OUT_OF_STOCK), (3, StockStatus.LOW_STOCK), (5, StockStatus.LOW_STOCK), (10, StockStatus.IN_STOCK)],
)
def test_stock_status(current, expected):
    assert stock_status(current, 5) is expected


def test_stock_status_labels():
    assert StockStatus.OUT_OF_STOCK.label == "Out of stock"
    assert StockStatus.LOW_STOCK.label == "Low stock"
    assert StockStatus.IN_STOCK.label == "In stock"


def test_validate_item_payload():
    payload, errors = validate_item_payload(NEW_ITEM)
    assert errors == {}
    assert payload["current_stock"] == 1250.5
    assert payload["requires_batch"] is False


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"sku": ""}, "sku"),
        ({"unit_of_measure": ""}, "unit_of_measure"),
        ({"min_stock": "-1"}, "min_stock"),
        ({"unit_cost": "cheap"}, "unit_cost"),
        ({"max_stock": "100"}, "max_stock"),
        ({"min_stock": "nan"}, "min_stock"),
        ({"current_stock": "inf"}, "current_stock"),
        ({"unit_cost": "-Infinity"}, "unit_cost"),
    ],
)
def test_validate_item_payload_errors(changes, field):
    _, errors = validate_item_payload({**NEW_ITEM, **changes})
    assert field in errors


def test_list_shows_category_and_status(client, login, data):
    feed = data.insert("inventory_categories", {"category_name": "Feed"})
    data.insert(
        "inventory_items",
        {"sku": "FEED-001", "item_name": "Layer mash", "unit_of_measure": "kg", "category_id": feed["id"], "current_stock": 3, "min_stock": 5},
    )
    data.insert("inventory_items", {"sku": "PKG-001", "item_name": "Egg trays", "unit_of_measure": "pc", "current_stock": 0})
    data.insert("inventory_items", {"sku": "OLD-001", "item_name": "Retired", "unit_of_measure": "pc", "is_active": False})

    login("operator")
    r = client.get("/app/inventory/items")
    assert r.status_code == 200
    assert b"Inventory" in r.data
    assert b"Feed" in r.data
    assert b"Low stock" in r.data
    assert b"Out of stock" in r.data
    assert b"Retired" not in r.data

    r = client.get("/app/inventory/items?q=pkg")
    assert b"Egg trays" in r.data
    assert b"Layer mash" not in r.data


def test_operator_cannot_edit_items(client, login, post):
    login("operator")
    assert client.get("/app/inventory/items/new").status_code == 403
    assert post("/app/inventory/items/new", NEW_ITEM).status_code == 403


def test_create_edit_delete(client, login, post, data):
    login("manager")
    r = post("/app/inventory/items/new", NEW_ITEM)
    assert r.status_code == 302
    item = data.select("inventory_items", eq={"sku": "FEED-001"}).first()
    assert item["current_stock"] == 1250.5

    r = post(f"/app/inventory/items/{item['id']}/edit", {**NEW_ITEM, "item_name": "Layer mash 17%"})
    assert r.status_code == 302
    assert data.get("inventory_items", item["id"])["item_name"] == "Layer mash 17%"

    r = post(f"/app/inventory/items/{item['id']}/delete")
    assert r.status_code == 302
    assert data.get("inventory_items", item["id"]) is None


def test_create_invalid(client, login, post):
    login("admin")
    r = post("/app/inventory/items/new", {**NEW_ITEM, "max_stock": "10"})
    assert r.status_code == 400
    assert b"Must be at least the minimum stock." in r.data


def test_duplicate_sku_is_reported(client, login, post):
    login("admin")
    post("/app/inventory/items/new", NEW_ITEM)
    r = post("/app/inventory/items/new", NEW_ITEM)
    assert r.status_code == 400
    assert b"Could not save item" in r.data
