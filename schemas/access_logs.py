# vipgate/schemas/access_logs.py
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.timeutils import ensure_utc


class EventType(str, Enum):
    FILE_ACCESS = "file_access"
    FILE_UPLOAD = "file_upload"
    USER_LOGIN = "user_login"
    ADMIN_LOGIN = "admin_login"


class LogStatus(str, Enum):
    SUCCESSFUL = "successful"
    DENIED = "denied"
    UPLOAD = "upload"


class AccessLogCreate(BaseModel):
    ip_address: str = Field(..., min_length=1, description="Normalized client IP")
    file_id: Optional[int] = Field(None, description="File the event refers to, if any")
    event_type: EventType
    status: LogStatus
    details: Optional[str] = None


class AccessLogEntry(AccessLogCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class AccessLogView(AccessLogEntry):
    filename: Optional[str] = Field(None, description="Original name of the referenced file, null when it no longer resolves")


class AccessLogFilter(BaseModel):
    """All supplied fields must match (AND)."""
    event_type: Optional[EventType] = None
    status: Optional[LogStatus] = None
