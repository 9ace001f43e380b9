"""Auth and user-management bodies. Routers wrap responses in ApiResponse."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from src.oc_common.enums import Role
from src.oc_gateway.user.db_models import UserModel
from src.oc_order.application.schemas import PageMetaResponse

_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a digit"),
)

USER_PAGE_DEFAULT_LIMIT = 10
USER_PAGE_MAX_LIMIT = 100


def _check_password(v: str) -> str:
    missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(v)]
    if missing:
        raise ValueError(f"Password must contain {', '.join(missing)}")
    return v


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    full_name: str | None = Field(None, min_length=2, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email address")
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    username: str
    email: str
    full_name: str | None = None
    role: str


class RegisterResponse(UserInfo):
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int


# ---------------------------------------------------------------------------
# Admin user management
# ---------------------------------------------------------------------------


class CreateUserRequest(RegisterRequest):
    """Admin-created account; unlike self-registration the role may be chosen."""

    role: Role = Role.USER
    is_active: bool = True


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    role: Role | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "UpdateUserRequest":
        for name in ("email", "role", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, object]:
        data: dict[str, object] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            data[name] = value.value if isinstance(value, Role) else value
        return data


class PasswordChangeRequest(BaseModel):
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return _check_password(v)


class UserListQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(USER_PAGE_DEFAULT_LIMIT, ge=1, le=USER_PAGE_MAX_LIMIT)
    search: str | None = Field(None, min_length=1, max_length=255)
    role: Role | None = None
    is_active: bool | None = None


class UserDetail(UserInfo):
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, user: UserModel) -> "UserDetail":
        return cls(
            user_id=str(user.id),
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserListResponse(BaseModel):
    data: list[UserDetail]
    meta: PageMetaResponse
