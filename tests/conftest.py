import io
from typing import Any, Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from core.audit.log import AuditLog
from core.auth.ip_filter import AccessGate
from core.config import ConfigManager, DictConfigLoader
from core.database import DatabaseFactory
from core.files.store import FileStore
from core.users.service import UserService
from core.whitelist.store import WhitelistStore
from main import create_app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "adminpass"
ADMIN_IP = "127.0.0.1"


@pytest.fixture
def config_data(tmp_path) -> Dict[str, Any]:
    return {
        "server": {"log_level": "warning", "trust_proxy_headers": True},
        "database": {"type": "memory"},
        "storage": {"upload_dir": str(tmp_path / "uploads"), "max_file_size_mb": 1},
        "auth": {"jwt_secret_key": "test-secret-key", "session_expire_minutes": 30},
        "bootstrap": {"admin_username": ADMIN_USERNAME, "admin_password": ADMIN_PASSWORD, "whitelist_localhost": True},
        "logging": {"file": {"path": None}},
    }


@pytest.fixture
def config_manager(config_data: Dict[str, Any]) -> ConfigManager:
    manager = ConfigManager(loader=DictConfigLoader(config_data))
    assert manager.initialized
    return manager


# --- Service-level fixtures ---

@pytest.fixture
def db():
    database = DatabaseFactory.create_database({"type": "memory"})
    assert database.connect()
    yield database
    database.disconnect()


@pytest.fixture
def whitelist(db) -> WhitelistStore:
    return WhitelistStore(db)


@pytest.fixture
def file_store(db, config_manager) -> FileStore:
    return FileStore(db, config_manager)


@pytest.fixture
def audit_log(db, file_store) -> AuditLog:
    return AuditLog(db, resolve_filename=file_store.resolve_original_name)


@pytest.fixture
def gate(whitelist, audit_log) -> AccessGate:
    return AccessGate(whitelist, audit_log)


@pytest.fixture
def user_service(db, config_manager) -> UserService:
    return UserService(db, config_manager)


@pytest.fixture
def vip_upload() -> Callable[..., io.BytesIO]:
    def _make(content: bytes = b"window.VIP = true;\n") -> io.BytesIO:
        return io.BytesIO(content)
    return _make


# --- API fixtures ---

@pytest.fixture
def client(config_manager):
    app = create_app(config_manager)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers_for() -> Callable[..., Dict[str, str]]:
    """Request headers for a caller at the given IP, optionally with a session token."""
    def _headers(ip: str, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"X-Forwarded-For": ip}
        if token:
            headers["X-Auth-Token"] = token
        return headers
    return _headers


@pytest.fixture
def login(client, headers_for) -> Callable[..., str]:
    def _login(username: str, password: str, ip: str = ADMIN_IP, endpoint: str = "admin-login") -> str:
        response = client.post(f"/api/auth/{endpoint}", json={"username": username, "password": password},
                               headers=headers_for(ip))
        assert response.status_code == 200, response.text
        return response.json()["data"]["access_token"]
    return _login


@pytest.fixture
def admin_token(login) -> str:
    return login(ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def admin_headers(headers_for, admin_token) -> Dict[str, str]:
    return headers_for(ADMIN_IP, admin_token)


@pytest.fixture
def create_user(client, admin_headers) -> Callable[..., Dict[str, Any]]:
    def _create(username: str, password: str = "secret123", role: str = "user") -> Dict[str, Any]:
        response = client.post("/api/users", json={"username": username, "password": password, "role": role},
                               headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def upload_script(client, admin_headers) -> Callable[..., Dict[str, Any]]:
    def _upload(name: str = "premium.vip.js", content: bytes = b"window.VIP = true;\n") -> Dict[str, Any]:
        response = client.post("/api/files/upload", files={"file": (name, content, "application/javascript")},
                               headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _upload
