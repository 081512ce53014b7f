# vipgate/api/internal/whitelist.py
import logging
from typing import List

from fastapi import APIRouter, Depends, Body, Response, status

from core.auth.ip_filter import normalize_ip
from core.users.service import UserService
from core.whitelist.store import WhitelistStore
from schemas.auth import AuthResult
from schemas.common import UnifiedAPIResponse
from schemas.whitelist import (
    AddMyIpResult,
    WhitelistCreateRequest,
    WhitelistEntry,
    WhitelistEntryCreate,
    WhitelistEntryUpdate,
)
from utils.errors import ErrorCode
from utils.exceptions import APIError, DuplicateKeyError, RecordNotFoundError
from api.dependencies import get_client_ip, get_current_user, get_user_service, get_whitelist_store, require_admin_user

logger = logging.getLogger(f"vipgate.{__name__}")

router = APIRouter()
# mounted at /api, for endpoints outside the /api/ip-whitelist prefix
self_service_router = APIRouter()


@router.get("", response_model=UnifiedAPIResponse[List[WhitelistEntry]], response_model_exclude_none=True, summary="List Whitelist")
async def list_whitelist(
    auth_result: AuthResult = Depends(get_current_user),
    whitelist: WhitelistStore = Depends(get_whitelist_store),
):
    entries = whitelist.list()
    return UnifiedAPIResponse(success=True, message=f"{len(entries)} whitelist entries.", data=entries)


@router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=UnifiedAPIResponse[WhitelistEntry],
        response_model_exclude_none=True,
        summary="Add Whitelist Entry"
)
async def create_whitelist_entry(
    create_request: WhitelistCreateRequest = Body(...),
    admin_auth: AuthResult = Depends(require_admin_user),
    whitelist: WhitelistStore = Depends(get_whitelist_store),
):
    try:
        entry = whitelist.create(WhitelistEntryCreate(
            ip_address=normalize_ip(create_request.ip_address.strip()),
            description=create_request.description,
            expires_at=create_request.expires_at,
            created_by=admin_auth.user_id,
        ))
    except DuplicateKeyError:
        raise APIError(error=ErrorCode.WHITELIST_IP_EXISTS)
    logger.info(f"Admin '{admin_auth.username}' whitelisted {entry.ip_address}")
    return UnifiedAPIResponse(success=True, message="IP address added to whitelist.", data=entry)


@router.put("/{entry_id}", response_model=UnifiedAPIResponse[WhitelistEntry], response_model_exclude_none=True, summary="Update Whitelist Entry")
async def update_whitelist_entry(
    entry_id: int,
    changes: WhitelistEntryUpdate = Body(...),
    admin_auth: AuthResult = Depends(require_admin_user),
    whitelist: WhitelistStore = Depends(get_whitelist_store),
):
    try:
        entry = whitelist.update(entry_id, changes)
    except RecordNotFoundError:
        raise APIError(error=ErrorCode.WHITELIST_ENTRY_NOT_FOUND)
    return UnifiedAPIResponse(success=True, message="Whitelist entry updated.", data=entry)


@router.delete("/{entry_id}", response_model=UnifiedAPIResponse, response_model_exclude_none=True, summary="Delete Whitelist Entry")
async def delete_whitelist_entry(
    entry_id: int,
    admin_auth: AuthResult = Depends(require_admin_user),
    whitelist: WhitelistStore = Depends(get_whitelist_store),
):
    try:
        whitelist.delete(entry_id)
    except RecordNotFoundError:
        raise APIError(error=ErrorCode.WHITELIST_ENTRY_NOT_FOUND)
    logger.info(f"Admin '{admin_auth.username}' removed whitelist entry {entry_id}")
    return UnifiedAPIResponse(success=True, message="Whitelist entry deleted.")


@self_service_router.post("/add-my-ip", response_model=UnifiedAPIResponse[AddMyIpResult], response_model_exclude_none=True, summary="Whitelist My IP")
async def add_my_ip(
    response: Response,
    auth_result: AuthResult = Depends(get_current_user),
    client_ip: str = Depends(get_client_ip),
    whitelist: WhitelistStore = Depends(get_whitelist_store),
    users: UserService = Depends(get_user_service),
):
    """
    200 with already_exists when the caller's address has an entry (even an
    inactive one), 201 with the new entry otherwise.
    """
    user = users.get(auth_result.user_id)
    if user is None:
        raise APIError(error=ErrorCode.COMMON_UNAUTHORIZED, override_message="User not found")
    ip_address = normalize_ip(client_ip)
    existing = whitelist.get_by_ip(ip_address)
    if existing is None:
        try:
            entry = whitelist.create(WhitelistEntryCreate(
                ip_address=ip_address,
                description=f"Added by user: {user.username}",
                created_by=user.id,
            ))
        except DuplicateKeyError:
            existing = whitelist.get_by_ip(ip_address)
        else:
            response.status_code = status.HTTP_201_CREATED
            return UnifiedAPIResponse(
                success=True,
                message="Your IP address has been whitelisted.",
                data=AddMyIpResult(ip_address=ip_address, already_exists=False, entry=entry),
            )

    return UnifiedAPIResponse(
        success=True,
        message="Your IP address is already whitelisted.",
        data=AddMyIpResult(ip_address=ip_address, already_exists=True, entry=existing),
    )
