"""Admin user-management API: /api/v1/users.

Every endpoint requires an admin caller; anyone else gets 403 (4030).
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.database import get_db_session
from src.oc_common.response import ApiResponse, respond
from src.oc_gateway.auth.dependencies import get_admin_caller
from src.oc_gateway.user.admin_service import UserAdminService
from src.oc_gateway.user.schemas import (
    CreateUserRequest,
    PasswordChangeRequest,
    UpdateUserRequest,
    UserListQuery,
)
from src.oc_order.domain.access import Caller

router = APIRouter(prefix="/users", tags=["users"])
_service = UserAdminService()


def get_user_admin_service() -> UserAdminService:
    return _service


AdminDep = Annotated[Caller, Depends(get_admin_caller)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
ServiceDep = Annotated[UserAdminService, Depends(get_user_admin_service)]


@router.get("", response_model=ApiResponse, summary="List users (admin)")
async def list_users(
    request: Request,
    caller: AdminDep,
    db: DbDep,
    svc: ServiceDep,
    query: Annotated[UserListQuery, Query()],
) -> ApiResponse:
    result = await svc.list_users(db, query)
    return respond(request, result.model_dump(mode="json"))


@router.get("/{user_id}", response_model=ApiResponse, summary="Get user (admin)")
async def get_user(
    request: Request, user_id: uuid.UUID, caller: AdminDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    user = await svc.get_user(db, user_id)
    return respond(request, user.model_dump(mode="json"))


@router.post(
    "", response_model=ApiResponse, status_code=status.HTTP_201_CREATED,
    summary="Create user (admin)",
)
async def create_user(
    request: Request, body: CreateUserRequest, caller: AdminDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    user = await svc.create_user(db, caller, body)
    return respond(request, user.model_dump(mode="json"), message="User created successfully")


@router.patch("/{user_id}", response_model=ApiResponse, summary="Update user (admin)")
async def update_user(
    request: Request,
    user_id: uuid.UUID,
    body: UpdateUserRequest,
    caller: AdminDep,
    db: DbDep,
    svc: ServiceDep,
) -> ApiResponse:
    user = await svc.update_user(db, caller, user_id, body)
    return respond(request, user.model_dump(mode="json"), message="User updated successfully")


@router.patch(
    "/{user_id}/password", response_model=ApiResponse, summary="Reset user password (admin)"
)
async def set_password(
    request: Request,
    user_id: uuid.UUID,
    body: PasswordChangeRequest,
    caller: AdminDep,
    db: DbDep,
    svc: ServiceDep,
) -> ApiResponse:
    await svc.set_password(db, caller, user_id, body.new_password)
    return respond(request, {"id": str(user_id)}, message="Password updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse, summary="Delete user (admin)")
async def delete_user(
    request: Request, user_id: uuid.UUID, caller: AdminDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    await svc.delete_user(db, caller, user_id)
    return respond(request, {"id": str(user_id)}, message="User deleted successfully")
