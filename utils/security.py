# vipgate/utils/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from passlib.context import CryptContext
from jose import JWTError, jwt

logger = logging.getLogger(f"vipgate.{__name__}")

# Password Hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

DEFAULT_JWT_SECRET_KEY = "a_default_fallback_secret_key_please_change"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain password against a hashed password."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # unrecognized or corrupt hash
        logger.warning("Stored password hash could not be parsed.")
        return False

def get_password_hash(password: str) -> str:
    """Hashes a plain password."""
    return pwd_context.hash(password)


def create_access_token(data: dict, secret_key: str, algorithm: str = "HS256",
                        expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a JWT access token.
    Args:
        data (dict): Claims to encode in the token (e.g., subject/user_id).
        secret_key (str): HMAC key.
        algorithm (str): JWT signing algorithm.
        expires_delta (Optional[timedelta]): Expiration time from now. Defaults to one day.
    Returns:
        str: The encoded JWT access token.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({
        "exp": now + (expires_delta or timedelta(days=1)),
        "iat": now,
        "nbf": now,
    })
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)

def decode_access_token(token: str, secret_key: str, algorithm: str = "HS256") -> Optional[Dict[str, Any]]:
    """
    Decodes a JWT access token.
    Returns:
        Optional[Dict[str, Any]]: The decoded token payload if valid, else None.
    """
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        logger.debug(f"JWT rejected: {e}")
        return None
