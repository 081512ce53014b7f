# vipgate/core/auth/token.py
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, Dict, Any

from core.config import ConfigManager
from core.database.base import DatabaseService
from schemas.users import UserInDB
from utils import security
from utils.exceptions import DuplicateKeyError
from utils.timeutils import to_db_timestamp, utc_now

logger = logging.getLogger(f"vipgate.{__name__}")

SESSION_TOKEN_TYPE = "session"


class TokenService:
    """
    Issues and validates signed session tokens (JWT). Logout records the
    token's jti in revoked_tokens; a revoked jti is rejected until it expires.
    """
    def __init__(self, db_service: DatabaseService, config_manager: ConfigManager):
        self.db: DatabaseService = db_service
        self.secret_key: str = config_manager.get_config("auth.jwt_secret_key", security.DEFAULT_JWT_SECRET_KEY)
        self.algorithm: str = config_manager.get_config("auth.jwt_algorithm", "HS256")
        self.expire_minutes: int = config_manager.get_config("auth.session_expire_minutes", 1440)
        if self.secret_key == security.DEFAULT_JWT_SECRET_KEY:
            logger.warning("WARNING: Using default JWT secret key. Please set auth.jwt_secret_key in your configuration.")

    def _generate_id(self) -> str:
        return str(uuid.uuid4())

    def generate_session_token(self, user: UserInDB) -> Tuple[str, int]:
        """
        Returns: (token, expires_in_seconds)
        """
        expires_delta = timedelta(minutes=self.expire_minutes)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "type": SESSION_TOKEN_TYPE,
            "jti": self._generate_id(),
        }
        token = security.create_access_token(payload, self.secret_key, self.algorithm, expires_delta)
        logger.info(f"Session token issued for user {user.id} ({user.username}).")
        return token, int(expires_delta.total_seconds())

    def validate_session_token(self, token: str) -> Optional[Dict[str, Any]]:
        payload = security.decode_access_token(token, self.secret_key, self.algorithm)
        if not payload or payload.get("type") != SESSION_TOKEN_TYPE:
            return None
        jti = payload.get("jti")
        if not jti or self.db.find_one("revoked_tokens", {"jti": jti}):
            logger.info(f"Rejected revoked or unidentified session token (jti={jti}).")
            return None
        return payload

    def revoke_session_token(self, payload: Dict[str, Any]) -> bool:
        jti = payload.get("jti")
        if not jti:
            return False
        exp = payload.get("exp")
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
        try:
            self.db.insert("revoked_tokens", {
                "jti": jti,
                "revoked_at": to_db_timestamp(utc_now()),
                "expires_at": to_db_timestamp(expires_at),
            })
        except DuplicateKeyError:
            logger.debug(f"Session token {jti} was already revoked.")
        logger.info(f"Session token {jti} revoked for user {payload.get('sub')}.")
        return True

    def purge_expired_revocations(self) -> int:
        """Drops revocation rows whose tokens could no longer validate anyway."""
        removed = self.db.delete("revoked_tokens", {"expires_at__lt": to_db_timestamp(utc_now())})
        if removed:
            logger.info(f"Purged {removed} expired token revocations.")
        return removed
