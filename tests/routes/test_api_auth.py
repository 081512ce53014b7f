from schemas.access_logs import EventType, LogStatus


def test_admin_login_returns_token_and_logs(client, headers_for):
    response = client.post("/api/auth/admin-login", json={"username": "admin", "password": "adminpass"},
                           headers=headers_for("::ffff:10.0.0.8"))
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["user"] == {"id": 1, "username": "admin", "role": "admin"}
    assert "password_hash" not in body["data"]["user"]

    [entry] = client.app.state.audit_log.list()
    assert entry.event_type == EventType.ADMIN_LOGIN
    assert entry.status == LogStatus.SUCCESSFUL
    assert entry.ip_address == "10.0.0.8"


def test_admin_login_rejects_bad_password(client):
    response = client.post("/api/auth/admin-login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "AUTH_INVALID_ADMIN_CREDENTIALS"
    assert client.app.state.audit_log.count() == 0


def test_admin_login_rejects_regular_user(client, create_user):
    create_user("bob")
    response = client.post("/api/auth/admin-login", json={"username": "bob", "password": "secret123"})
    assert response.status_code == 401


def test_user_login_whitelists_caller_once(client, create_user, headers_for):
    create_user("bob")
    whitelist = client.app.state.whitelist

    first = client.post("/api/auth/user-login", json={"username": "bob", "password": "secret123"},
                        headers=headers_for("198.51.100.7"))
    assert first.status_code == 200
    data = first.json()["data"]
    assert data["ip_added"] is True
    assert data["user_ip"] == "198.51.100.7"
    assert data["user"]["role"] == "user"

    entry = whitelist.get_by_ip("198.51.100.7")
    assert entry.description == "Auto-added for user: bob"
    assert entry.is_active is True
    assert entry.expires_at is None

    second = client.post("/api/auth/user-login", json={"username": "bob", "password": "secret123"},
                         headers=headers_for("198.51.100.7"))
    assert second.json()["data"]["ip_added"] is False
    assert len([e for e in whitelist.list() if e.ip_address == "198.51.100.7"]) == 1

    logins = client.app.state.audit_log.list()
    user_logins = [e for e in logins if e.event_type == EventType.USER_LOGIN]
    assert len(user_logins) == 2
    assert user_logins[0].details == "User bob logged in, IP automatically whitelisted"


def test_user_login_keeps_inactive_entry(client, create_user, headers_for, admin_headers):
    create_user("bob")
    created = client.post("/api/ip-whitelist", json={"ip_address": "198.51.100.9", "description": "blocked"},
                          headers=admin_headers).json()["data"]
    client.put(f"/api/ip-whitelist/{created['id']}", json={"is_active": False}, headers=admin_headers)

    response = client.post("/api/auth/user-login", json={"username": "bob", "password": "secret123"},
                           headers=headers_for("198.51.100.9"))
    assert response.json()["data"]["ip_added"] is False
    assert client.app.state.whitelist.is_ip_whitelisted("198.51.100.9") is False


def test_user_login_rejects_admin(client):
    response = client.post("/api/auth/user-login", json={"username": "admin", "password": "adminpass"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTH_INVALID_USER_CREDENTIALS"


def test_legacy_login_accepts_any_role(client, create_user):
    create_user("bob")
    for username, password in (("admin", "adminpass"), ("bob", "secret123")):
        response = client.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200
        assert response.json()["data"]["user"]["username"] == username


def test_status_and_logout(client, admin_token):
    anonymous = client.get("/api/auth/status").json()["data"]
    assert anonymous == {"authenticated": False}

    status = client.get("/api/auth/status", headers={"X-Auth-Token": admin_token}).json()["data"]
    assert status["authenticated"] is True
    assert status["username"] == "admin"
    assert status["role"] == "admin"

    bearer = client.get("/api/auth/status", headers={"Authorization": f"Bearer {admin_token}"}).json()["data"]
    assert bearer["authenticated"] is True

    assert client.post("/api/auth/logout", headers={"X-Auth-Token": admin_token}).status_code == 200
    after = client.get("/api/auth/status", headers={"X-Auth-Token": admin_token}).json()["data"]
    assert after["authenticated"] is False
    assert client.get("/api/ip-whitelist", headers={"X-Auth-Token": admin_token}).status_code == 401


def test_status_for_deleted_user_is_unauthenticated(client, create_user, login, admin_headers):
    user = create_user("ghost")
    token = login("ghost", "secret123", endpoint="login")
    assert client.delete(f"/api/users/{user['id']}", headers=admin_headers).status_code == 200

    status = client.get("/api/auth/status", headers={"X-Auth-Token": token}).json()["data"]
    assert status == {"authenticated": False}


def test_logout_requires_session(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 401
    assert response.json()["error_code"] == "COMMON_UNAUTHORIZED"


def test_login_validation_error(client):
    response = client.post("/api/auth/admin-login", json={"username": "admin"})
    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "COMMON_VALIDATION_ERROR"
    assert body["error_details"]["errors"][0]["field"] == "password"
