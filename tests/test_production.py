from datetime import date

import pytest

from app.farmerp.errors import DataServiceError
from app.farmerp.modules.production import admin as production_admin
from app.farmerp.modules.production.service import production_totals, validate_flock_payload, validate_production_payload

NEW_FLOCK = {
    "flock_number": "L-2026-01",
    "flock_type": "layers",
    "breed": "Hy-Line Brown",
    "entry_date": "2026-01-15",
    "initial_quantity": "1000",
}


def _flock_row(data, number="L-2026-01"):
    return data.select("flocks", eq={"flock_number": number}).first()


def test_validate_flock_payload_ok():
    payload, errors = validate_flock_payload(NEW_FLOCK)
    assert errors == {}
    assert payload["initial_quantity"] == 1000
    assert payload["entry_date"] == date(2026, 1, 15)
    assert "current_quantity" not in payload


@pytest.mark.parametrize(
    "field, value",
    [
        ("flock_number", ""),
        ("breed", "  "),
        ("entry_date", ""),
        ("entry_date", "15/01/2026"),
        ("initial_quantity", "0"),
        ("initial_quantity", "many"),
        ("flock_type", "ducks"),
    ],
)
def test_validate_flock_payload_errors(field, value):
    _, errors = validate_flock_payload({**NEW_FLOCK, field: value})
    assert field in errors


def test_production_totals():
    counts = {"eggs_jumbo": 10, "eggs_large": 700, "eggs_medium": 100, "eggs_broken": 3}
    assert production_totals(counts, 1000) == (813, 81.3)
    assert production_totals(counts, 0) == (813, 0.0)


def test_validate_production_payload():
    payload, errors = validate_production_payload({"production_date": "2026-03-01", "hen_count": "950", "eggs_large": "800"})
    assert errors == {}
    assert payload["eggs_large"] == 800
    assert payload["eggs_small"] == 0

    _, errors = validate_production_payload({"production_date": "", "hen_count": "0", "eggs_large": "-1"})
    assert set(errors) == {"production_date", "hen_count", "eggs_large"}


def test_list_and_search(client, login, post):
    login("operator")
    post("/app/production/flocks/new", NEW_FLOCK)
    post("/app/production/flocks/new", {**NEW_FLOCK, "flock_number": "B-2026-02", "flock_type": "broilers", "breed": "Ross 308"})

    r = client.get("/app/production/flocks")
    assert r.status_code == 200
    assert b"Flocks" in r.data
    assert b"L-2026-01" in r.data and b"B-2026-02" in r.data

    r = client.get("/app/production/flocks?q=ross")
    assert b"B-2026-02" in r.data
    assert b"L-2026-01" not in r.data


def test_create_seeds_current_quantity(client, login, post, data):
    login("operator")
    r = post("/app/production/flocks/new", NEW_FLOCK)
    assert r.status_code == 302

    row = _flock_row(data)
    assert row["initial_quantity"] == 1000
    assert row["current_quantity"] == 1000
    assert row["status"] == "active"


def test_create_invalid_rerenders_with_errors(client, login, post, data):
    login("operator")
    r = post("/app/production/flocks/new", {**NEW_FLOCK, "initial_quantity": "0"})
    assert r.status_code == 400
    assert b"Must be greater than 0." in r.data
    assert _flock_row(data) is None


def test_edit_keeps_current_quantity(client, login, post, data):
    login("operator")
    post("/app/production/flocks/new", NEW_FLOCK)
    flock = _flock_row(data)
    data.update("flocks", {"current_quantity": 940}, eq={"id": flock["id"]})

    r = post(
        f"/app/production/flocks/{flock['id']}/edit",
        {**NEW_FLOCK, "initial_quantity": "1200", "breed": "Lohmann", "status": "completed"},
    )
    assert r.status_code == 302

    row = _flock_row(data)
    assert row["initial_quantity"] == 1200
    assert row["current_quantity"] == 940
    assert row["breed"] == "Lohmann"
    assert row["status"] == "completed"


def test_operator_cannot_delete(client, login, post, data):
    login("operator")
    post("/app/production/flocks/new", NEW_FLOCK)
    flock = _flock_row(data)

    r = post(f"/app/production/flocks/{flock['id']}/delete")
    assert r.status_code == 403
    assert _flock_row(data) is not None


def test_manager_can_delete(client, login, post, data):
    login("manager")
    post("/app/production/flocks/new", NEW_FLOCK)
    flock = _flock_row(data)

    r = post(f"/app/production/flocks/{flock['id']}/delete")
    assert r.status_code == 302
    assert _flock_row(data) is None
    assert post(f"/app/production/flocks/{flock['id']}/delete").status_code == 404


def test_deleted_flock_disappears_from_list(client, login, post, data):
    login("admin")
    post("/app/production/flocks/new", NEW_FLOCK)
    assert b"L-2026-01" in client.get("/app/production/flocks").data

    flock = _flock_row(data)
    post(f"/app/production/flocks/{flock['id']}/delete")
    assert b"L-2026-01" not in client.get("/app/production/flocks").data


def test_record_daily_production(client, login, post, data):
    login("operator")
    post("/app/production/flocks/new", NEW_FLOCK)
    flock = _flock_row(data)

    r = post(
        f"/app/production/flocks/{flock['id']}/production",
        {"production_date": "2026-03-01", "hen_count": "1000", "eggs_large": "700", "eggs_medium": "150", "eggs_dirty": "5"},
    )
    assert r.status_code == 302

    record = data.select("daily_production", eq={"flock_id": flock["id"]}).first()
    assert record["total_eggs"] == 855
    assert record["laying_percentage"] == 85.5

    r = client.get(f"/app/production/flocks/{flock['id']}")
    assert r.status_code == 200
    assert b"85.50" in r.data


def test_record_production_database_error_is_flashed(client, login, post, data, monkeypatch):
    login("operator")
    post("/app/production/flocks/new", NEW_FLOCK)
    flock = _flock_row(data)

    def fail(*args, **kwargs):
        raise DataServiceError("daily_production", "insert", "disk full")

    monkeypatch.setattr(production_admin, "record_daily_production", fail)
    r = post(
        f"/app/production/flocks/{flock['id']}/production",
        {"production_date": "2026-03-01", "hen_count": "1000", "eggs_large": "700"},
    )
    assert r.status_code == 400
    assert b"Could not record production" in r.data
    assert data.select("daily_production", eq={"flock_id": flock["id"]}).rows == []


def test_unknown_flock_is_404(client, login):
    login("operator")
    assert client.get("/app/production/flocks/does-not-exist").status_code == 404
