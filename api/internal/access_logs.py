# vipgate/api/internal/access_logs.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.audit.log import AuditLog
from schemas.access_logs import AccessLogFilter, AccessLogView, EventType, LogStatus
from schemas.auth import AuthResult
from schemas.common import UnifiedAPIResponse
from api.dependencies import get_audit_log, require_admin_user

logger = logging.getLogger(f"vipgate.{__name__}")
router = APIRouter()


@router.get("", response_model=UnifiedAPIResponse[List[AccessLogView]], summary="List Access Logs")
async def list_access_logs(
    event_type: Optional[EventType] = Query(None, description="Only entries of this event type"),
    log_status: Optional[LogStatus] = Query(None, alias="status", description="Only entries with this status"),
    admin_auth: AuthResult = Depends(require_admin_user),
    audit_log: AuditLog = Depends(get_audit_log),
):
    entries = audit_log.list(AccessLogFilter(event_type=event_type, status=log_status))
    logger.debug(f"Returning {len(entries)} access log entries (event_type={event_type}, status={log_status})")
    return UnifiedAPIResponse(success=True, message=f"{len(entries)} access log entries.", data=entries)
