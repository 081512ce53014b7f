# vipgate/core/auth/__init__.py
from .service import AuthService
from .token import TokenService
from .ip_filter import AccessGate, normalize_ip

__all__ = [
    "AuthService",
    "TokenService",
    "AccessGate",
    "normalize_ip",
]
