def test_bootstrap_whitelists_localhost(client, admin_headers):
    entries = client.get("/api/ip-whitelist", headers=admin_headers).json()["data"]
    assert [(e["ip_address"], e["description"]) for e in entries] == [("127.0.0.1", "Localhost")]


def test_list_requires_session(client):
    response = client.get("/api/ip-whitelist")
    assert response.status_code == 401


def test_create_and_duplicate(client, admin_headers):
    body = {"ip_address": " 192.0.2.20 ", "description": "partner", "expires_at": "2099-01-01T00:00:00Z"}
    created = client.post("/api/ip-whitelist", json=body, headers=admin_headers)
    assert created.status_code == 201
    entry = created.json()["data"]
    assert entry["ip_address"] == "192.0.2.20"
    assert entry["is_active"] is True
    assert entry["created_by"] == 1
    assert entry["expires_at"].startswith("2099-01-01T00:00:00")

    duplicate = client.post("/api/ip-whitelist", json={"ip_address": "192.0.2.20", "description": "again"},
                            headers=admin_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error_code"] == "WHITELIST_IP_EXISTS"

    ips = [e["ip_address"] for e in client.get("/api/ip-whitelist", headers=admin_headers).json()["data"]]
    assert ips.count("192.0.2.20") == 1


def test_create_validates_input(client, admin_headers):
    response = client.post("/api/ip-whitelist", json={"ip_address": "", "description": "x"}, headers=admin_headers)
    assert response.status_code == 422


def test_update_partial_and_clear_expiry(client, admin_headers):
    created = client.post("/api/ip-whitelist",
                          json={"ip_address": "192.0.2.30", "description": "temp", "expires_at": "2000-01-01T00:00:00Z"},
                          headers=admin_headers).json()["data"]
    whitelist = client.app.state.whitelist
    assert not whitelist.is_ip_whitelisted("192.0.2.30")

    renamed = client.put(f"/api/ip-whitelist/{created['id']}", json={"description": "renamed"}, headers=admin_headers)
    assert renamed.status_code == 200
    assert renamed.json()["data"]["description"] == "renamed"
    assert renamed.json()["data"]["expires_at"] is not None

    cleared = client.put(f"/api/ip-whitelist/{created['id']}", json={"expires_at": None}, headers=admin_headers)
    assert cleared.status_code == 200
    assert "expires_at" not in cleared.json()["data"]
    assert whitelist.is_ip_whitelisted("192.0.2.30")


def test_update_and_delete_missing(client, admin_headers):
    update = client.put("/api/ip-whitelist/999", json={"description": "x"}, headers=admin_headers)
    assert update.status_code == 404
    assert update.json()["error_code"] == "WHITELIST_ENTRY_NOT_FOUND"

    delete = client.delete("/api/ip-whitelist/999", headers=admin_headers)
    assert delete.status_code == 404


def test_delete_revokes_access(client, admin_headers, headers_for, upload_script):
    upload_script()
    created = client.post("/api/ip-whitelist", json={"ip_address": "192.0.2.40", "description": "x"},
                          headers=admin_headers).json()["data"]
    assert client.get("/VIP.js", headers=headers_for("192.0.2.40")).status_code == 200

    assert client.delete(f"/api/ip-whitelist/{created['id']}", headers=admin_headers).status_code == 200
    assert client.get("/VIP.js", headers=headers_for("192.0.2.40")).status_code == 403


def test_regular_user_cannot_manage_whitelist(client, create_user, login, headers_for):
    create_user("bob")
    token = login("bob", "secret123", ip="10.0.0.5", endpoint="user-login")
    headers = headers_for("10.0.0.5", token)

    assert client.get("/api/ip-whitelist", headers=headers).status_code == 200
    response = client.post("/api/ip-whitelist", json={"ip_address": "192.0.2.50", "description": "x"}, headers=headers)
    assert response.status_code == 403
    assert client.delete("/api/ip-whitelist/1", headers=headers).status_code == 403


def test_add_my_ip(client, create_user, login, headers_for):
    create_user("bob")
    # legacy login does not auto-whitelist
    token = login("bob", "secret123", ip="192.0.2.60", endpoint="login")
    headers = headers_for("::ffff:192.0.2.60", token)

    first = client.post("/api/add-my-ip", headers=headers)
    assert first.status_code == 201
    data = first.json()["data"]
    assert data["already_exists"] is False
    assert data["ip_address"] == "192.0.2.60"
    assert data["entry"]["description"] == "Added by user: bob"

    second = client.post("/api/add-my-ip", headers=headers)
    assert second.status_code == 200
    assert second.json()["data"]["already_exists"] is True
    assert second.json()["data"]["ip_address"] == "192.0.2.60"


def test_add_my_ip_requires_session(client, headers_for):
    assert client.post("/api/add-my-ip", headers=headers_for("192.0.2.61")).status_code == 401


def test_add_my_ip_with_token_of_deleted_user(client, create_user, login, headers_for, admin_headers):
    user = create_user("ghost")
    token = login("ghost", "secret123", ip="192.0.2.62", endpoint="login")
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200

    response = client.post("/api/add-my-ip", headers=headers_for("192.0.2.62", token))
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"
    assert client.app.state.whitelist.get_by_ip("192.0.2.62") is None
