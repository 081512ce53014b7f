# vipgate/schemas/whitelist.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.timeutils import ensure_utc


class WhitelistEntryBase(BaseModel):
    ip_address: str = Field(..., min_length=1, max_length=45, description="Client IP address, unique across all entries")
    description: str = Field(..., min_length=1, max_length=255)
    is_active: bool = Field(True, description="Inactive entries never grant access")
    expires_at: Optional[datetime] = Field(None, description="Entries stop granting access after this instant")

    @field_validator("ip_address")
    @classmethod
    def strip_ip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("ip_address must not be blank")
        return value

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class WhitelistEntryCreate(WhitelistEntryBase):
    """
    Input for WhitelistStore.create. created_at is never accepted from callers.
    """
    created_by: Optional[int] = Field(None, description="User that owns the entry")


class WhitelistEntryUpdate(BaseModel):
    """
    Partial update. Only fields the caller actually sent are applied; an
    explicit null for expires_at clears the expiry.
    """
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        # description and is_active are NOT NULL columns; null means "leave as is"
        return {k: v for k, v in changes.items() if v is not None or k == "expires_at"}


class WhitelistEntry(WhitelistEntryBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    created_at: datetime
    created_by: Optional[int] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class WhitelistCreateRequest(BaseModel):
    """Body of the admin create endpoint."""
    ip_address: str = Field(..., min_length=1, max_length=45)
    description: str = Field(..., min_length=1, max_length=255)
    expires_at: Optional[datetime] = None


class AddMyIpResult(BaseModel):
    ip_address: str
    already_exists: bool
    entry: Optional[WhitelistEntry] = None
