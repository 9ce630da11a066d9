def test_admin_sees_all_modules(client, login):
    login("admin")
    r = client.get("/app/settings/modules")
    assert r.status_code == 200
    assert b"Purchasing" in r.data
    assert b"Not enabled: purchasing" in r.data


def test_manager_cannot_toggle(client, login, post):
    login("manager")
    assert client.get("/app/settings/modules").status_code == 403
    assert post("/app/settings/modules/inventory/toggle", {"enabled": "0"}).status_code == 403


def test_disabling_a_module_hides_its_views(client, login, post, data):
    login("admin")
    r = post("/app/settings/modules/inventory/toggle", {"enabled": "0"})
    assert r.status_code == 302
    assert data.select("system_modules", eq={"module_key": "inventory"}).first()["is_enabled"] is False

    assert client.get("/app/inventory/items").status_code == 404
    assert client.get("/app/inventory").status_code == 404

    post("/app/settings/modules/inventory/toggle", {"enabled": "1"})
    assert client.get("/app/inventory/items").status_code == 200


def test_settings_survive_disabling_settings(client, login, post):
    login("admin")
    post("/app/settings/modules/settings/toggle", {"enabled": "0"})
    assert client.get("/app/settings/modules").status_code == 200


def test_toggle_unknown_module(client, login, post):
    login("admin")
    assert post("/app/settings/modules/nonexistent/toggle", {"enabled": "1"}).status_code == 404
