# vipgate/api/internal/auth.py
import logging

from fastapi import APIRouter, Depends, Body, Request

from core.audit.log import AuditLog
from core.auth.ip_filter import normalize_ip
from core.auth.service import AuthService
from core.auth.token import TokenService
from core.users.service import UserService
from core.whitelist.store import WhitelistStore
from schemas.access_logs import AccessLogCreate, EventType, LogStatus
from schemas.auth import AuthResult, AuthStatus, LoginRequest, LoginResponse, UserLoginResponse
from schemas.common import UnifiedAPIResponse
from schemas.users import Role, UserInDB, UserInfo
from schemas.whitelist import WhitelistEntryCreate
from utils.errors import ErrorCode
from utils.exceptions import APIError, DuplicateKeyError
from api.dependencies import (
    get_audit_log,
    get_auth_svc_dependency,
    get_client_ip,
    get_current_user,
    get_optional_auth_result,
    get_token_svc_dependency,
    get_user_service,
    get_whitelist_store,
)

logger = logging.getLogger(f"vipgate.{__name__}")
router = APIRouter()


def _login_response(user: UserInDB, token_service: TokenService) -> LoginResponse:
    access_token, expires_in = token_service.generate_session_token(user)
    return LoginResponse(access_token=access_token, expires_in=expires_in, user=UserInfo.model_validate(user))


@router.post("/admin-login", response_model=UnifiedAPIResponse[LoginResponse], response_model_exclude_none=True, summary="Admin Login")
async def admin_login(
    login_request: LoginRequest = Body(...),
    client_ip: str = Depends(get_client_ip),
    users: UserService = Depends(get_user_service),
    token_service: TokenService = Depends(get_token_svc_dependency),
    audit_log: AuditLog = Depends(get_audit_log),
):
    logger.info(f"Admin login attempt for username: {login_request.username}")
    user = users.authenticate(login_request.username, login_request.password, role=Role.ADMIN)
    if user is None:
        raise APIError(error=ErrorCode.AUTH_INVALID_ADMIN_CREDENTIALS)

    response = _login_response(user, token_service)
    audit_log.append(AccessLogCreate(
        ip_address=normalize_ip(client_ip),
        event_type=EventType.ADMIN_LOGIN,
        status=LogStatus.SUCCESSFUL,
        details=f"Admin {user.username} logged in",
    ))
    logger.info(f"Admin user '{user.username}' logged in.")
    return UnifiedAPIResponse(success=True, message="Admin login successful.", data=response)


@router.post("/user-login", response_model=UnifiedAPIResponse[UserLoginResponse], response_model_exclude_none=True, summary="User Login")
async def user_login(
    login_request: LoginRequest = Body(...),
    client_ip: str = Depends(get_client_ip),
    users: UserService = Depends(get_user_service),
    token_service: TokenService = Depends(get_token_svc_dependency),
    whitelist: WhitelistStore = Depends(get_whitelist_store),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """
    Logs a regular user in and whitelists the address they logged in from,
    unless an entry for it already exists (active or not).
    """
    logger.info(f"User login attempt for username: {login_request.username}")
    user = users.authenticate(login_request.username, login_request.password, role=Role.USER)
    if user is None:
        raise APIError(error=ErrorCode.AUTH_INVALID_USER_CREDENTIALS)

    user_ip = normalize_ip(client_ip)
    ip_added = False
    if whitelist.get_by_ip(user_ip) is None:
        try:
            whitelist.create(WhitelistEntryCreate(
                ip_address=user_ip,
                description=f"Auto-added for user: {user.username}",
                created_by=user.id,
            ))
            ip_added = True
        except DuplicateKeyError:
            # another request whitelisted it in the meantime
            logger.info(f"IP {user_ip} was whitelisted concurrently; keeping the existing entry.")

    base = _login_response(user, token_service)
    audit_log.append(AccessLogCreate(
        ip_address=user_ip,
        event_type=EventType.USER_LOGIN,
        status=LogStatus.SUCCESSFUL,
        details=f"User {user.username} logged in, IP automatically whitelisted",
    ))
    logger.info(f"User '{user.username}' logged in from {user_ip} (ip_added={ip_added}).")
    return UnifiedAPIResponse(
        success=True,
        message="Login successful.",
        data=UserLoginResponse(**base.model_dump(), ip_added=ip_added, user_ip=user_ip),
    )


@router.post("/login", response_model=UnifiedAPIResponse[LoginResponse], response_model_exclude_none=True, summary="Login (any role)")
async def login(
    login_request: LoginRequest = Body(...),
    users: UserService = Depends(get_user_service),
    token_service: TokenService = Depends(get_token_svc_dependency),
):
    user = users.authenticate(login_request.username, login_request.password)
    if user is None:
        raise APIError(error=ErrorCode.AUTH_INVALID_CREDENTIALS)
    logger.info(f"User '{user.username}' logged in via legacy endpoint.")
    return UnifiedAPIResponse(success=True, message="Login successful.", data=_login_response(user, token_service))


@router.get("/status", response_model=UnifiedAPIResponse[AuthStatus], response_model_exclude_none=True, summary="Session Status")
async def auth_status(
    auth_result: AuthResult = Depends(get_optional_auth_result),
    users: UserService = Depends(get_user_service),
):
    user = users.get(auth_result.user_id) if auth_result.is_authenticated else None
    if user is None:
        return UnifiedAPIResponse(success=True, message="Not authenticated.", data=AuthStatus(authenticated=False))
    return UnifiedAPIResponse(
        success=True,
        message="Authenticated.",
        data=AuthStatus(
            authenticated=True,
            user_id=user.id,
            username=user.username,
            role=user.role,
        ),
    )


@router.post("/logout", response_model=UnifiedAPIResponse, response_model_exclude_none=True, summary="Logout")
async def logout(
    request: Request,
    auth_result: AuthResult = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_svc_dependency),
    token_service: TokenService = Depends(get_token_svc_dependency),
):
    payload = token_service.validate_session_token(auth_service.extract_token(request) or "")
    if not payload or not token_service.revoke_session_token(payload):
        raise APIError(error=ErrorCode.AUTH_INVALID_TOKEN)
    logger.info(f"User '{auth_result.username}' logged out.")
    return UnifiedAPIResponse(success=True, message="Logout successful.")
