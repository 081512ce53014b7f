# vipgate/core/users/service.py
import logging
from typing import List, Optional

from core.config import ConfigManager
from core.database.base import DatabaseService
from schemas.users import Role, UserCreate, UserInDB, UserUpdate
from utils import security
from utils.exceptions import DuplicateKeyError, RecordNotFoundError, RecordValidationError

logger = logging.getLogger(f"vipgate.{__name__}")

TABLE = "users"


class AdminLimitReachedError(RecordValidationError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Maximum {limit} admin users allowed")


class UserService:
    def __init__(self, db_service: DatabaseService, config_manager: ConfigManager):
        self.db: DatabaseService = db_service
        self.max_admins: int = config_manager.get_config("auth.max_admins", 3)
        self.main_admin_username: str = config_manager.get_config("bootstrap.admin_username", "admin")

    def list(self) -> List[UserInDB]:
        return [UserInDB.model_validate(row) for row in self.db.find(TABLE, order_by="id ASC")]

    def get(self, user_id: int) -> Optional[UserInDB]:
        row = self.db.find_one(TABLE, {"id": user_id})
        return UserInDB.model_validate(row) if row else None

    def get_by_username(self, username: str) -> Optional[UserInDB]:
        row = self.db.find_one(TABLE, {"username": username})
        return UserInDB.model_validate(row) if row else None

    def authenticate(self, username: str, password: str, role: Optional[Role] = None) -> Optional[UserInDB]:
        """Returns the user when the password matches and, if given, the role too."""
        user = self.get_by_username(username)
        if user is None or not security.verify_password(password, user.password_hash):
            logger.warning(f"Failed login for username '{username}'.")
            return None
        if role is not None and user.role != role:
            logger.warning(f"Login for '{username}' refused: role {user.role.value} is not {role.value}.")
            return None
        return user

    def is_main_admin(self, username: Optional[str]) -> bool:
        return username is not None and username == self.main_admin_username

    def create(self, user: UserCreate) -> UserInDB:
        """
        Raises AdminLimitReachedError when creating one admin too many and
        DuplicateKeyError when the username is taken.
        """
        if user.role == Role.ADMIN and self.db.count(TABLE, {"role": Role.ADMIN.value}) >= self.max_admins:
            raise AdminLimitReachedError(self.max_admins)

        new_id = self.db.insert(TABLE, {
            "username": user.username,
            "password_hash": security.get_password_hash(user.password),
            "role": user.role.value,
        })
        logger.info(f"Created {user.role.value} user '{user.username}' (id {new_id}).")
        return self._require(new_id)

    def update(self, user_id: int, changes: UserUpdate) -> UserInDB:
        updates = {}
        if changes.username is not None:
            existing = self.get_by_username(changes.username)
            if existing is not None and existing.id != user_id:
                raise DuplicateKeyError(TABLE, "Username already exists")
            updates["username"] = changes.username
        if changes.password is not None:
            updates["password_hash"] = security.get_password_hash(changes.password)

        if not updates:
            return self._require(user_id)
        if self.db.update(TABLE, {"id": user_id}, updates) == 0:
            raise RecordNotFoundError(TABLE, user_id)
        logger.info(f"Updated user {user_id}: {sorted(updates)}")
        return self._require(user_id)

    def delete(self, user_id: int) -> None:
        if self.db.delete(TABLE, {"id": user_id}) == 0:
            raise RecordNotFoundError(TABLE, user_id)
        logger.info(f"Deleted user {user_id}.")

    def ensure_bootstrap_admin(self, password: str) -> Optional[UserInDB]:
        """Creates the main admin when the users table is empty."""
        if self.db.count(TABLE) > 0:
            return None
        admin = self.create(UserCreate(username=self.main_admin_username, password=password, role=Role.ADMIN))
        logger.warning(f"Bootstrap admin '{admin.username}' created. Change its password.")
        return admin

    def _require(self, user_id: int) -> UserInDB:
        user = self.get(user_id)
        if user is None:
            raise RecordNotFoundError(TABLE, user_id)
        return user
