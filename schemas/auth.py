# vipgate/schemas/auth.py
from pydantic import BaseModel, Field
from typing import Optional

from .users import Role, UserInfo


class AuthResult(BaseModel):
    """
    Represents the result of an authentication attempt.
    """
    is_authenticated: bool = Field(False, description="True if authentication was successful.")
    user_id: Optional[int] = Field(None, description="ID of the authenticated user, if available.")
    username: Optional[str] = Field(None, description="Username carried by the session token.")
    role: Optional[Role] = Field(None, description="Role carried by the session token.")
    token_id: Optional[str] = Field(None, description="jti of the session token used for authentication.")
    error_message: Optional[str] = Field(None, description="Error message if authentication failed.")
    status_code: Optional[int] = Field(None, description="HTTP status code associated with the auth result (e.g., 401, 403).")


class GateDecision(BaseModel):
    """Outcome of one Access-Control Gate check."""
    allowed: bool
    ip_address: str = Field(..., description="The normalized client IP that was checked")
    file_id: Optional[int] = None
    reason: Optional[str] = Field(None, description="Why the request was denied")


class AccessDenied(BaseModel):
    error: str = "Access denied"
    message: str = "Your IP address is not authorized to access this file"
    ip_address: str


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str = Field(description="Session token for the X-Auth-Token header")
    token_type: str = "bearer"
    expires_in: int = Field(description="Token validity period in seconds")
    user: UserInfo


class UserLoginResponse(LoginResponse):
    ip_added: bool = Field(description="Whether the caller's IP was added to the whitelist by this login")
    user_ip: str


class AuthStatus(BaseModel):
    authenticated: bool
    user_id: Optional[int] = None
    username: Optional[str] = None
    role: Optional[Role] = None
