"""Auth API router: register, login, refresh, me.

All endpoints return ApiResponse. request_id is read from
request.state (injected by RequestLogMiddleware).
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.oc_common.database import get_db_session
from src.oc_common.response import ApiResponse, respond
from src.oc_gateway.auth.dependencies import get_current_user
from src.oc_gateway.user.db_models import UserModel
from src.oc_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.oc_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


def _user_info(user: UserModel) -> UserInfo:
    return UserInfo(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
    )


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    async with db.begin():
        user = await _service.register(
            body.username, body.email, body.password, db, full_name=body.full_name
        )

    data = RegisterResponse(
        **_user_info(user).model_dump(), created_at=user.created_at.isoformat()
    )
    return respond(request, data.model_dump(), message="User registered successfully")


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=_user_info(user),
    )
    return respond(request, data.model_dump(), message="Login successful")


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token, db)

    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return respond(request, data.model_dump(), message="Token refreshed")


@router.get("/me", response_model=ApiResponse, summary="Current user profile")
async def me(
    request: Request,
    current_user: UserModel = Depends(get_current_user),
) -> ApiResponse:
    return respond(request, _user_info(current_user).model_dump())
