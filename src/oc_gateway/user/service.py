"""User domain service: register, login, refresh.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
Self-registration always yields role "user"; admins are provisioned out of band.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.enums import Role
from src.oc_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.oc_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
    parse_user_id,
)
from src.oc_gateway.auth.password import hash_password, verify_password
from src.oc_gateway.user.db_models import UserModel


async def ensure_identity_available(db: AsyncSession, username: str, email: str) -> None:
    """Raise if the username or email is already taken (username reported first)."""
    # One lookup for both unique keys; the DB UNIQUE constraints are the final guard
    result = await db.execute(
        select(UserModel.username, UserModel.email).where(
            or_(UserModel.username == username, UserModel.email == email)
        )
    )
    taken = result.all()
    if any(row.username == username for row in taken):
        raise UsernameExistsError()
    if taken:
        raise EmailExistsError()


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
        full_name: str | None = None,
    ) -> UserModel:
        """Register a new user. The caller must wrap this in `async with db.begin()`."""
        await ensure_identity_available(db, username, email)

        user = UserModel(
            username=username,
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            role=Role.USER.value,
            is_active=True,
        )
        db.add(user)
        await db.flush()  # Get user.id / created_at without committing
        await db.refresh(user)
        return user

    async def login(
        self,
        login: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate by username or email; return (user, access_token, refresh_token).

        Note: "User not found" and "Wrong password" both raise InvalidCredentialsError
        intentionally — prevents username enumeration attacks.
        """
        result = await db.execute(
            select(UserModel).where(or_(UserModel.username == login, UserModel.email == login))
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id), user.role),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Validate refresh token and return a new access token with the user's current role."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = parse_user_id(payload.get("sub"))
        if user_id is None:
            raise InvalidRefreshTokenError()
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidRefreshTokenError()
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(str(user.id), user.role)
