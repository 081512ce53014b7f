# vipgate/core/auth/ip_filter.py
import logging
from typing import Optional

from core.audit.log import AuditLog
from core.whitelist.store import WhitelistStore, is_entry_active
from schemas.access_logs import AccessLogCreate, AccessLogEntry, EventType, LogStatus
from schemas.auth import GateDecision

logger = logging.getLogger(f"vipgate.{__name__}")

IPV4_MAPPED_PREFIX = "::ffff:"
DENY_REASON = "IP not whitelisted"
# recorded when the client address is empty after normalization
UNKNOWN_IP = "unknown"


def normalize_ip(raw_ip: str) -> str:
    """
    Strips the IPv4-mapped IPv6 prefix ("::ffff:203.0.113.5" -> "203.0.113.5").
    Anything else is returned unchanged; no syntax validation is done here.
    """
    if IPV4_MAPPED_PREFIX in raw_ip:
        return raw_ip.split(IPV4_MAPPED_PREFIX, 1)[1]
    return raw_ip


class AccessGate:
    """
    Decides whether a client IP may fetch a protected file.

    check() performs a fresh whitelist lookup on every call and writes one
    "denied" audit entry per DENY. It writes nothing on ALLOW; the handler
    calls record_access() once the file has actually been delivered, so both
    audit placements stay in this class.

    Store failures propagate as StoreUnavailableError and are never turned
    into a DENY.
    """
    def __init__(self, whitelist: WhitelistStore, audit_log: AuditLog):
        self.whitelist: WhitelistStore = whitelist
        self.audit_log: AuditLog = audit_log

    def check(self, raw_ip: str, file_id: Optional[int] = None) -> GateDecision:
        ip_address = normalize_ip(raw_ip) or UNKNOWN_IP
        entry = self.whitelist.get_by_ip(ip_address)

        if is_entry_active(entry):
            logger.debug(f"Gate ALLOW for {ip_address} (file={file_id})")
            return GateDecision(allowed=True, ip_address=ip_address, file_id=file_id)

        logger.warning(f"Gate DENY for {ip_address} (file={file_id})")
        self.audit_log.append(AccessLogCreate(
            ip_address=ip_address,
            file_id=file_id,
            event_type=EventType.FILE_ACCESS,
            status=LogStatus.DENIED,
            details=DENY_REASON,
        ))
        return GateDecision(allowed=False, ip_address=ip_address, file_id=file_id, reason=DENY_REASON)

    def record_access(self, decision: GateDecision, file_id: Optional[int], details: str) -> AccessLogEntry:
        """Logs a successful delivery that followed an ALLOW decision."""
        if not decision.allowed:
            raise ValueError("record_access requires an ALLOW decision")
        return self.audit_log.append(AccessLogCreate(
            ip_address=decision.ip_address,
            file_id=file_id,
            event_type=EventType.FILE_ACCESS,
            status=LogStatus.SUCCESSFUL,
            details=details,
        ))
