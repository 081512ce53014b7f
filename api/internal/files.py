# vipgate/api/internal/files.py
import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from core.audit.log import AuditLog
from core.auth.ip_filter import AccessGate, normalize_ip
from core.files.store import FileStore
from schemas.access_logs import AccessLogCreate, EventType, LogStatus
from schemas.auth import AuthResult, GateDecision
from schemas.common import UnifiedAPIResponse
from schemas.files import FileView
from utils.errors import ErrorCode
from utils.exceptions import APIError, FileTooLargeError, RecordValidationError
from api.dependencies import (
    get_access_gate,
    get_audit_log,
    get_client_ip,
    get_file_store,
    require_admin_user,
    verify_client_ip,
)

logger = logging.getLogger(f"vipgate.{__name__}")
router = APIRouter()


@router.get("", response_model=UnifiedAPIResponse[List[FileView]], response_model_exclude_none=True, summary="List Files")
async def list_files(file_store: FileStore = Depends(get_file_store)):
    files = [FileView.from_record(record) for record in file_store.list()]
    return UnifiedAPIResponse(success=True, message=f"{len(files)} files.", data=files)


@router.post(
        "/upload",
        status_code=status.HTTP_201_CREATED,
        response_model=UnifiedAPIResponse[FileView],
        response_model_exclude_none=True,
        summary="Upload VIP Script"
)
def upload_file(
    file: UploadFile = File(...),
    admin_auth: AuthResult = Depends(require_admin_user),
    client_ip: str = Depends(get_client_ip),
    file_store: FileStore = Depends(get_file_store),
    audit_log: AuditLog = Depends(get_audit_log),
):
    logger.info(f"Upload of '{file.filename}' by admin '{admin_auth.username}'")
    try:
        record = file_store.save(file.file, file.filename, file.content_type, uploaded_by=admin_auth.user_id)
    except FileTooLargeError as e:
        raise APIError(error=ErrorCode.FILE_TOO_LARGE, override_message=str(e))
    except RecordValidationError as e:
        raise APIError(error=ErrorCode.FILE_REJECTED, override_message=str(e))

    audit_log.append(AccessLogCreate(
        ip_address=normalize_ip(client_ip),
        file_id=record.id,
        event_type=EventType.FILE_UPLOAD,
        status=LogStatus.UPLOAD,
        details=f"File uploaded by admin: {admin_auth.username}",
    ))
    return UnifiedAPIResponse(success=True, message="File uploaded successfully.", data=FileView.from_record(record))


@router.delete("/{file_id}", response_model=UnifiedAPIResponse, response_model_exclude_none=True, summary="Delete File")
async def delete_file(
    file_id: int,
    admin_auth: AuthResult = Depends(require_admin_user),
    file_store: FileStore = Depends(get_file_store),
):
    if file_store.get(file_id) is None:
        raise APIError(error=ErrorCode.FILE_NOT_FOUND)
    file_store.delete(file_id)
    logger.info(f"File {file_id} deleted by admin '{admin_auth.username}'")
    return UnifiedAPIResponse(success=True, message="File deleted successfully.")


@router.get("/{file_id}/download", summary="Download File")
async def download_file(
    file_id: int,
    admin_auth: AuthResult = Depends(require_admin_user),
    decision: GateDecision = Depends(verify_client_ip),
    gate: AccessGate = Depends(get_access_gate),
    file_store: FileStore = Depends(get_file_store),
):
    """
    Admin download, still subject to the IP whitelist. The successful access
    is recorded once the response body has been sent.
    """
    record = file_store.get(file_id)
    if record is None:
        raise APIError(error=ErrorCode.FILE_NOT_FOUND)
    path = file_store.resolve_path(record)
    if path is None:
        raise APIError(error=ErrorCode.FILE_NOT_ON_DISK)

    return FileResponse(
        path,
        media_type=record.mime_type,
        filename=record.original_filename,
        background=BackgroundTask(
            gate.record_access, decision, record.id, f"File downloaded by admin: {admin_auth.username}"
        ),
    )
