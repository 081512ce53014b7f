# vipgate/core/whitelist/store.py
import logging
from datetime import datetime
from typing import List, Optional

from core.database.base import DatabaseService
from schemas.whitelist import WhitelistEntry, WhitelistEntryCreate, WhitelistEntryUpdate
from utils.exceptions import RecordNotFoundError
from utils.timeutils import to_db_timestamp, utc_now

logger = logging.getLogger(f"vipgate.{__name__}")

TABLE = "ip_whitelist"


def is_entry_active(entry: Optional[WhitelistEntry], now: Optional[datetime] = None) -> bool:
    """
    The one whitelist rule: an entry grants access when it exists, is active,
    and has no expiry or an expiry that has not passed yet.
    """
    if entry is None or not entry.is_active:
        return False
    if entry.expires_at is not None and entry.expires_at < (now or utc_now()):
        return False
    return True


class WhitelistStore:
    """
    CRUD over whitelist entries keyed by surrogate id, with a unique lookup
    by IP address. Uniqueness is enforced by the database; a second create for
    the same IP raises DuplicateKeyError.
    """
    def __init__(self, db_service: DatabaseService):
        self.db: DatabaseService = db_service

    def list(self) -> List[WhitelistEntry]:
        rows = self.db.find(TABLE, order_by="created_at DESC, id DESC")
        return [WhitelistEntry.model_validate(row) for row in rows]

    def get(self, entry_id: int) -> Optional[WhitelistEntry]:
        row = self.db.find_one(TABLE, {"id": entry_id})
        return WhitelistEntry.model_validate(row) if row else None

    def get_by_ip(self, ip_address: str) -> Optional[WhitelistEntry]:
        row = self.db.find_one(TABLE, {"ip_address": ip_address})
        return WhitelistEntry.model_validate(row) if row else None

    def create(self, entry: WhitelistEntryCreate) -> WhitelistEntry:
        data = {
            "ip_address": entry.ip_address,
            "description": entry.description,
            "is_active": entry.is_active,
            "created_at": to_db_timestamp(utc_now()),
            "expires_at": to_db_timestamp(entry.expires_at),
            "created_by": entry.created_by,
        }
        new_id = self.db.insert(TABLE, data)
        logger.info(f"Whitelisted IP {entry.ip_address} (entry {new_id}, active={entry.is_active}, expires_at={entry.expires_at})")
        return self._require(new_id)

    def update(self, entry_id: int, changes: WhitelistEntryUpdate) -> WhitelistEntry:
        updates = changes.changes()
        if "expires_at" in updates:
            updates["expires_at"] = to_db_timestamp(updates["expires_at"])

        if not updates:
            return self._require(entry_id)

        if self.db.update(TABLE, {"id": entry_id}, updates) == 0:
            raise RecordNotFoundError(TABLE, entry_id)
        logger.info(f"Updated whitelist entry {entry_id}: {sorted(updates)}")
        return self._require(entry_id)

    def delete(self, entry_id: int) -> None:
        if self.db.delete(TABLE, {"id": entry_id}) == 0:
            raise RecordNotFoundError(TABLE, entry_id)
        logger.info(f"Deleted whitelist entry {entry_id}")

    def is_ip_whitelisted(self, ip_address: str) -> bool:
        return is_entry_active(self.get_by_ip(ip_address))

    def count(self, created_since: Optional[datetime] = None) -> int:
        filters = {"created_at__gt": to_db_timestamp(created_since)} if created_since else None
        return self.db.count(TABLE, filters)

    def _require(self, entry_id: int) -> WhitelistEntry:
        entry = self.get(entry_id)
        if entry is None:
            raise RecordNotFoundError(TABLE, entry_id)
        return entry
