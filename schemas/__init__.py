# vipgate/schemas/__init__.py
from .common import UnifiedAPIResponse, HealthStatus
from .users import Role, UserCreate, UserUpdate, UserInDB, UserInfo
from .auth import AuthResult, GateDecision, AccessDenied, LoginRequest, LoginResponse, UserLoginResponse, AuthStatus
from .whitelist import (
    WhitelistEntryBase,
    WhitelistEntryCreate,
    WhitelistEntryUpdate,
    WhitelistEntry,
    WhitelistCreateRequest,
    AddMyIpResult,
)
from .access_logs import EventType, LogStatus, AccessLogCreate, AccessLogEntry, AccessLogView, AccessLogFilter
from .files import FileRecord, FileView
from .stats import DashboardStats

__all__ = [
    "UnifiedAPIResponse",
    "HealthStatus",
    "Role",
    "UserCreate",
    "UserUpdate",
    "UserInDB",
    "UserInfo",
    "AuthResult",
    "GateDecision",
    "AccessDenied",
    "LoginRequest",
    "LoginResponse",
    "UserLoginResponse",
    "AuthStatus",
    "WhitelistEntryBase",
    "WhitelistEntryCreate",
    "WhitelistEntryUpdate",
    "WhitelistEntry",
    "WhitelistCreateRequest",
    "AddMyIpResult",
    "EventType",
    "LogStatus",
    "AccessLogCreate",
    "AccessLogEntry",
    "AccessLogView",
    "AccessLogFilter",
    "FileRecord",
    "FileView",
    "DashboardStats",
]
