# vipgate/core/auth/service.py
import logging
from typing import Optional

from fastapi import Request as FastAPIRequest

from core.config import ConfigManager
from schemas.auth import AuthResult
from schemas.users import Role
from .token import TokenService

logger = logging.getLogger(f"vipgate.{__name__}")

AUTH_HEADER = "X-Auth-Token"


class AuthService:
    """
    Resolves the caller of a request: the client IP and, when a session
    token is presented, the authenticated user.
    """
    def __init__(self, token_service: TokenService, config_manager: ConfigManager):
        self.token_service: TokenService = token_service
        self.trust_proxy_headers: bool = bool(config_manager.get_config("server.trust_proxy_headers", False))

    def extract_token(self, request: FastAPIRequest) -> Optional[str]:
        token = request.headers.get(AUTH_HEADER.lower())
        if token:
            return token
        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return None

    def get_client_ip(self, request: FastAPIRequest) -> str:
        """
        Raw client address. With trust_proxy_headers the first
        X-Forwarded-For hop wins; the result is not normalized.
        """
        if self.trust_proxy_headers:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                first_hop = forwarded.split(",")[0].strip()
                if first_hop:
                    return first_hop
        return request.client.host if request.client else "0.0.0.0"

    def authenticate_request(self, request: FastAPIRequest) -> AuthResult:
        token_str = self.extract_token(request)
        if not token_str:
            return AuthResult(error_message=f"{AUTH_HEADER} missing or token not provided.", status_code=401)

        payload = self.token_service.validate_session_token(token_str)
        if not payload:
            logger.warning(f"Invalid or expired session token from IP: {self.get_client_ip(request)}")
            return AuthResult(error_message="Invalid or expired session token.", status_code=401)

        try:
            user_id = int(payload["sub"])
            role = Role(payload.get("role"))
        except (KeyError, TypeError, ValueError):
            logger.warning("Session token carried malformed claims.")
            return AuthResult(error_message="Invalid session token.", status_code=401)

        return AuthResult(
            is_authenticated=True,
            user_id=user_id,
            username=payload.get("username"),
            role=role,
            token_id=payload.get("jti"),
        )
