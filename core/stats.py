# vipgate/core/stats.py
import logging
from datetime import timedelta

from core.audit.log import AuditLog
from core.files.store import FileStore
from core.whitelist.store import WhitelistStore
from schemas.access_logs import LogStatus
from schemas.stats import DashboardStats
from utils.timeutils import utc_now

logger = logging.getLogger(f"vipgate.{__name__}")


class DashboardService:
    """Aggregate counters for the admin dashboard."""
    def __init__(self, files: FileStore, whitelist: WhitelistStore, audit_log: AuditLog):
        self.files = files
        self.whitelist = whitelist
        self.audit_log = audit_log

    def get_stats(self) -> DashboardStats:
        now = utc_now()
        one_week_ago = now - timedelta(days=7)
        last_24h = now - timedelta(hours=24)

        stats = DashboardStats(
            total_files=self.files.count(),
            total_access_requests=self.audit_log.count(),
            total_whitelisted_ips=self.whitelist.count(),
            new_files_this_week=self.files.count(uploaded_since=one_week_ago),
            denied_requests_last_24h=self.audit_log.count(status=LogStatus.DENIED, since=last_24h),
            recently_added_ips=self.whitelist.count(created_since=one_week_ago),
        )
        logger.debug(f"Dashboard stats computed: {stats.model_dump()}")
        return stats
