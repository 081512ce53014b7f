# vipgate/schemas/users.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)
    role: Role = Role.USER


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    password: Optional[str] = Field(None, min_length=6, max_length=100)


class UserInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    password_hash: str
    role: Role


class UserInfo(BaseModel):
    """Public view of a user; never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    role: Role
