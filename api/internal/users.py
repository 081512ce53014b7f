# vipgate/api/internal/users.py
import logging
from typing import List

from fastapi import APIRouter, Depends, Body, status

from core.users.service import AdminLimitReachedError, UserService
from schemas.auth import AuthResult
from schemas.common import UnifiedAPIResponse
from schemas.users import UserCreate, UserInfo, UserUpdate
from utils.errors import ErrorCode
from utils.exceptions import APIError, DuplicateKeyError, RecordNotFoundError
from api.dependencies import get_user_service, require_admin_user, require_main_admin

logger = logging.getLogger(f"vipgate.{__name__}")
router = APIRouter()


@router.get("", response_model=UnifiedAPIResponse[List[UserInfo]], response_model_exclude_none=True, summary="List Users")
async def list_users(
    admin_auth: AuthResult = Depends(require_main_admin),
    users: UserService = Depends(get_user_service),
):
    data = [UserInfo.model_validate(user) for user in users.list()]
    return UnifiedAPIResponse(success=True, message=f"{len(data)} users.", data=data)


@router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=UnifiedAPIResponse[UserInfo],
        response_model_exclude_none=True,
        summary="Create User"
)
async def create_user(
    user_create: UserCreate = Body(...),
    admin_auth: AuthResult = Depends(require_admin_user),
    users: UserService = Depends(get_user_service),
):
    try:
        user = users.create(user_create)
    except AdminLimitReachedError as e:
        raise APIError(error=ErrorCode.AUTH_ADMIN_LIMIT_REACHED, override_message=str(e))
    except DuplicateKeyError:
        raise APIError(error=ErrorCode.AUTH_USER_EXISTS)
    logger.info(f"Admin '{admin_auth.username}' created {user.role.value} '{user.username}'")
    return UnifiedAPIResponse(success=True, message="User created successfully.", data=UserInfo.model_validate(user))


@router.put("/{user_id}", response_model=UnifiedAPIResponse[UserInfo], response_model_exclude_none=True, summary="Update User")
async def update_user(
    user_id: int,
    user_update: UserUpdate = Body(...),
    admin_auth: AuthResult = Depends(require_main_admin),
    users: UserService = Depends(get_user_service),
):
    try:
        user = users.update(user_id, user_update)
    except DuplicateKeyError:
        raise APIError(error=ErrorCode.AUTH_USER_EXISTS)
    except RecordNotFoundError:
        raise APIError(error=ErrorCode.AUTH_USER_NOT_FOUND)
    return UnifiedAPIResponse(success=True, message="User updated successfully.", data=UserInfo.model_validate(user))


@router.delete("/{user_id}", response_model=UnifiedAPIResponse, response_model_exclude_none=True, summary="Delete User")
async def delete_user(
    user_id: int,
    admin_auth: AuthResult = Depends(require_main_admin),
    users: UserService = Depends(get_user_service),
):
    if user_id == admin_auth.user_id:
        raise APIError(error=ErrorCode.COMMON_BAD_REQUEST, override_message="The main administrator cannot delete itself.")
    try:
        users.delete(user_id)
    except RecordNotFoundError:
        raise APIError(error=ErrorCode.AUTH_USER_NOT_FOUND)
    logger.info(f"Main admin removed user {user_id}")
    return UnifiedAPIResponse(success=True, message="User deleted successfully.")
