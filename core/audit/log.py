# vipgate/core/audit/log.py
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from core.database.base import DatabaseService
from schemas.access_logs import AccessLogCreate, AccessLogEntry, AccessLogFilter, AccessLogView, LogStatus
from utils.timeutils import to_db_timestamp, utc_now

logger = logging.getLogger(f"vipgate.{__name__}")

TABLE = "access_logs"

FilenameResolver = Callable[[int], Optional[str]]


class AuditLog:
    """
    Append-only sink for access, upload and login events.
    Entries are never updated or deleted through this class.
    """
    def __init__(self, db_service: DatabaseService, resolve_filename: Optional[FilenameResolver] = None):
        self.db: DatabaseService = db_service
        self._resolve_filename = resolve_filename

    def append(self, entry: AccessLogCreate) -> AccessLogEntry:
        data = {
            "ip_address": entry.ip_address,
            "file_id": entry.file_id,
            "timestamp": to_db_timestamp(utc_now()),
            "event_type": entry.event_type.value,
            "status": entry.status.value,
            "details": entry.details,
        }
        new_id = self.db.insert(TABLE, data)
        logger.info(f"Audit {entry.event_type.value}/{entry.status.value} from {entry.ip_address} (file={entry.file_id})")
        return AccessLogEntry.model_validate({**data, "id": new_id})

    def get(self, entry_id: int) -> Optional[AccessLogEntry]:
        row = self.db.find_one(TABLE, {"id": entry_id})
        return AccessLogEntry.model_validate(row) if row else None

    def list(self, log_filter: Optional[AccessLogFilter] = None) -> List[AccessLogView]:
        """Newest first, each entry carrying the original name of its file or None."""
        filters: Dict[str, str] = {}
        if log_filter is not None:
            if log_filter.event_type is not None:
                filters["event_type"] = log_filter.event_type.value
            if log_filter.status is not None:
                filters["status"] = log_filter.status.value

        rows = self.db.find(TABLE, filters, order_by="timestamp DESC, id DESC")

        # one lookup per distinct file id
        names: Dict[int, Optional[str]] = {}
        views = []
        for row in rows:
            entry = AccessLogEntry.model_validate(row)
            filename = None
            if entry.file_id is not None and self._resolve_filename is not None:
                if entry.file_id not in names:
                    names[entry.file_id] = self._resolve_filename(entry.file_id)
                filename = names[entry.file_id]
            views.append(AccessLogView(**entry.model_dump(), filename=filename))
        return views

    def count(self, status: Optional[LogStatus] = None, since: Optional[datetime] = None) -> int:
        filters: Dict[str, str] = {}
        if status is not None:
            filters["status"] = status.value
        if since is not None:
            filters["timestamp__gt"] = to_db_timestamp(since)
        return self.db.count(TABLE, filters)
