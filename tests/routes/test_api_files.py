from schemas.access_logs import AccessLogFilter, EventType, LogStatus


def test_upload_lists_and_logs(client, upload_script):
    uploaded = upload_script("premium.vip.js", b"window.VIP = 1;")
    assert uploaded["original_filename"] == "premium.vip.js"
    assert uploaded["url"] == f"/api/files/{uploaded['id']}/download"
    assert uploaded["uploaded_by"] == 1

    listed = client.get("/api/files").json()["data"]
    assert [f["id"] for f in listed] == [uploaded["id"]]

    [entry] = client.app.state.audit_log.list(AccessLogFilter(event_type=EventType.FILE_UPLOAD))
    assert entry.status == LogStatus.UPLOAD
    assert entry.file_id == uploaded["id"]
    assert entry.details == "File uploaded by admin: admin"


def test_upload_rejects_non_vip_names(client, admin_headers):
    response = client.post("/api/files/upload", files={"file": ("plain.js", b"1", "application/javascript")},
                           headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "FILE_REJECTED"
    assert response.json()["message"] == "Only VIP.js files are allowed"
    assert client.get("/api/files").json()["data"] == []


def test_upload_rejects_oversized_files(client, admin_headers):
    payload = b"x" * (1024 * 1024 + 1)
    response = client.post("/api/files/upload", files={"file": ("big.vip.js", payload, "application/javascript")},
                           headers=admin_headers)
    assert response.status_code == 413
    assert response.json()["error_code"] == "FILE_TOO_LARGE"


def test_upload_requires_admin(client, create_user, login, headers_for):
    create_user("bob")
    user_token = login("bob", "secret123", ip="10.0.0.5", endpoint="user-login")

    anonymous = client.post("/api/files/upload", files={"file": ("a.vip.js", b"1", "application/javascript")})
    assert anonymous.status_code == 401

    as_user = client.post("/api/files/upload", files={"file": ("a.vip.js", b"1", "application/javascript")},
                          headers=headers_for("10.0.0.5", user_token))
    assert as_user.status_code == 403
    assert as_user.json()["error_code"] == "AUTH_ADMIN_REQUIRED"


def test_download_from_whitelisted_ip(client, admin_headers, upload_script):
    uploaded = upload_script("premium.vip.js", b"window.VIP = 1;")

    response = client.get(f"/api/files/{uploaded['id']}/download", headers=admin_headers)
    assert response.status_code == 200
    assert response.content == b"window.VIP = 1;"
    assert "attachment" in response.headers["content-disposition"]
    assert "premium.vip.js" in response.headers["content-disposition"]

    [entry] = client.app.state.audit_log.list(AccessLogFilter(event_type=EventType.FILE_ACCESS))
    assert entry.status == LogStatus.SUCCESSFUL
    assert entry.file_id == uploaded["id"]
    assert entry.details == "File downloaded by admin: admin"


def test_download_from_unlisted_ip_is_denied(client, admin_token, headers_for, upload_script):
    uploaded = upload_script()

    response = client.get(f"/api/files/{uploaded['id']}/download", headers=headers_for("203.0.113.9", admin_token))
    assert response.status_code == 403
    assert response.json()["ip_address"] == "203.0.113.9"

    [entry] = client.app.state.audit_log.list(AccessLogFilter(status=LogStatus.DENIED))
    assert entry.file_id == uploaded["id"]
    assert entry.filename == "premium.vip.js"


def test_download_missing_file(client, admin_headers):
    response = client.get("/api/files/999/download", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "FILE_NOT_FOUND"


def test_delete_file(client, admin_headers, upload_script):
    uploaded = upload_script()

    assert client.delete(f"/api/files/{uploaded['id']}", headers=admin_headers).status_code == 200
    assert client.get("/api/files").json()["data"] == []

    again = client.delete(f"/api/files/{uploaded['id']}", headers=admin_headers)
    assert again.status_code == 404
    assert again.json()["error_code"] == "FILE_NOT_FOUND"

    logs = client.get("/api/access-logs", params={"event_type": "file_upload"}, headers=admin_headers).json()["data"]
    assert logs[0]["file_id"] == uploaded["id"]
    assert logs[0]["filename"] is None
