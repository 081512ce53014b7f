from datetime import timedelta

from schemas.access_logs import AccessLogFilter, EventType, LogStatus
from schemas.whitelist import WhitelistEntryCreate
from utils.timeutils import utc_now


def _whitelist(client, ip, **kwargs):
    return client.app.state.whitelist.create(WhitelistEntryCreate(ip_address=ip, description="test", **kwargs))


def test_unlisted_ip_is_denied_with_one_log_entry(client, headers_for):
    response = client.get("/VIP.js", headers=headers_for("203.0.113.5"))

    assert response.status_code == 403
    assert response.json() == {
        "error": "Access denied",
        "message": "Your IP address is not authorized to access this file",
        "ip_address": "203.0.113.5",
    }
    [entry] = client.app.state.audit_log.list()
    assert entry.ip_address == "203.0.113.5"
    assert entry.status == LogStatus.DENIED
    assert entry.event_type == EventType.FILE_ACCESS
    assert entry.details == "IP not whitelisted"


def test_bare_mapped_prefix_is_denied_not_rejected(client, headers_for):
    response = client.get("/VIP.js", headers=headers_for("::ffff:"))

    assert response.status_code == 403
    assert response.json()["ip_address"] == "unknown"
    assert client.app.state.audit_log.count(status=LogStatus.DENIED) == 1


def test_whitelisted_ip_gets_script(client, headers_for, upload_script):
    upload_script("premium.vip.js", b"window.VIP = 'premium';")
    _whitelist(client, "10.0.0.2")

    response = client.get("/VIP.js", headers=headers_for("::ffff:10.0.0.2"))

    assert response.status_code == 200
    assert response.text == "window.VIP = 'premium';"
    assert response.headers["content-type"].startswith("application/javascript")
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["access-control-allow-origin"] == "*"

    audit_log = client.app.state.audit_log
    accesses = audit_log.list(AccessLogFilter(event_type=EventType.FILE_ACCESS))
    assert len(accesses) == 1
    assert accesses[0].status == LogStatus.SUCCESSFUL
    assert accesses[0].ip_address == "10.0.0.2"
    assert accesses[0].details == "VIP.js accessed: premium.vip.js"
    assert accesses[0].filename == "premium.vip.js"


def test_newest_vip_script_is_served(client, headers_for, upload_script):
    upload_script("first.vip.js", b"1")
    upload_script("second.vip.js", b"2")
    _whitelist(client, "10.0.0.2")
    assert client.get("/VIP.js", headers=headers_for("10.0.0.2")).text == "2"


def test_missing_script_is_404_javascript(client, headers_for):
    _whitelist(client, "10.0.0.2")
    response = client.get("/VIP.js", headers=headers_for("10.0.0.2"))
    assert response.status_code == 404
    assert response.text == "// VIP.js file not found"
    assert client.app.state.audit_log.count() == 0


def test_script_missing_on_disk(client, headers_for, upload_script):
    uploaded = upload_script()
    file_store = client.app.state.file_store
    file_store.resolve_path(file_store.get(uploaded["id"])).unlink()
    _whitelist(client, "10.0.0.2")

    response = client.get("/VIP.js", headers=headers_for("10.0.0.2"))
    assert response.status_code == 404
    assert response.text == "// VIP.js file not found on disk"


def test_expired_and_inactive_entries_are_denied(client, headers_for, upload_script):
    upload_script()
    _whitelist(client, "10.0.0.3", expires_at=utc_now() - timedelta(minutes=1))
    _whitelist(client, "10.0.0.4", is_active=False)

    assert client.get("/VIP.js", headers=headers_for("10.0.0.3")).status_code == 403
    assert client.get("/VIP.js", headers=headers_for("10.0.0.4")).status_code == 403
    assert client.app.state.audit_log.count(status=LogStatus.DENIED) == 2


def test_preflight(client):
    response = client.options("/VIP.js")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, OPTIONS"
    assert response.headers["access-control-max-age"] == "86400"
