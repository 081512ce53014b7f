# vipgate/api/dependencies.py
from typing import Optional

from fastapi import Request, Depends

from core.audit.log import AuditLog
from core.auth.ip_filter import AccessGate
from core.auth.service import AuthService
from core.auth.token import TokenService
from core.config import ConfigManager
from core.database.base import DatabaseService
from core.files.store import FileStore
from core.stats import DashboardService
from core.users.service import UserService
from core.whitelist.store import WhitelistStore
from schemas.auth import AuthResult, GateDecision
from schemas.users import Role
from utils.errors import ErrorCode
from utils.exceptions import APIError


class AccessDeniedError(Exception):
    """Raised by the gate dependency on DENY; rendered as the 403 deny body."""
    def __init__(self, decision: GateDecision):
        self.decision = decision
        super().__init__(decision.reason or "Access denied")


def _state(request: Request, name: str, label: str):
    if not hasattr(request.app.state, name):
        raise APIError(error=ErrorCode.COMMON_SERVICE_UNAVAILABLE, override_message=f"{label} not available.")
    return getattr(request.app.state, name)


# --- Service Getters ---
def get_db_service(request: Request) -> DatabaseService:
    return _state(request, "db", "Database service")

def get_config(request: Request) -> ConfigManager:
    return _state(request, "config", "Configuration service")

def get_whitelist_store(request: Request) -> WhitelistStore:
    return _state(request, "whitelist", "Whitelist store")

def get_audit_log(request: Request) -> AuditLog:
    return _state(request, "audit_log", "Audit log")

def get_file_store(request: Request) -> FileStore:
    return _state(request, "file_store", "File store")

def get_user_service(request: Request) -> UserService:
    return _state(request, "user_service", "User service")

def get_token_svc_dependency(request: Request) -> TokenService:
    return _state(request, "token_service", "Token service")

def get_auth_svc_dependency(request: Request) -> AuthService:
    return _state(request, "auth_service", "Auth service")

def get_access_gate(request: Request) -> AccessGate:
    return _state(request, "access_gate", "Access gate")

def get_dashboard_service(request: Request) -> DashboardService:
    return _state(request, "dashboard", "Dashboard service")


def get_client_ip(request: Request, auth_service: AuthService = Depends(get_auth_svc_dependency)) -> str:
    return auth_service.get_client_ip(request)


# --- Authentication Dependencies ---

def get_optional_auth_result(
    request: Request,
    auth_service: AuthService = Depends(get_auth_svc_dependency)
) -> AuthResult:
    return auth_service.authenticate_request(request)

def get_current_user(auth_result: AuthResult = Depends(get_optional_auth_result)) -> AuthResult:
    """Any logged-in user, admin or regular."""
    if not auth_result.is_authenticated:
        raise APIError(
            error=ErrorCode.COMMON_UNAUTHORIZED,
            override_message=auth_result.error_message or "Not authenticated",
        )
    return auth_result

def require_admin_user(
    auth_result: AuthResult = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> AuthResult:
    """
    The role is re-read from the database so a demoted or deleted account
    loses access before its token expires.
    """
    user = users.get(auth_result.user_id)
    if user is None or user.role != Role.ADMIN:
        raise APIError(error=ErrorCode.AUTH_ADMIN_REQUIRED)
    return auth_result

def require_main_admin(
    auth_result: AuthResult = Depends(require_admin_user),
    users: UserService = Depends(get_user_service),
) -> AuthResult:
    if not users.is_main_admin(auth_result.username):
        raise APIError(error=ErrorCode.AUTH_MAIN_ADMIN_REQUIRED)
    return auth_result


# --- Access-Control Gate ---

def _path_file_id(request: Request) -> Optional[int]:
    raw = request.path_params.get("file_id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None

def verify_client_ip(
    request: Request,
    client_ip: str = Depends(get_client_ip),
    gate: AccessGate = Depends(get_access_gate),
) -> GateDecision:
    """
    Runs the gate for the current request. DENY raises AccessDeniedError;
    a store failure propagates as StoreUnavailableError (HTTP 500).
    """
    decision = gate.check(client_ip, _path_file_id(request))
    if not decision.allowed:
        raise AccessDeniedError(decision)
    return decision
