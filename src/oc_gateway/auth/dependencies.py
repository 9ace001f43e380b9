"""FastAPI dependencies: get_current_user / get_current_caller.

Usage in any protected router:
    from src.oc_gateway.auth.dependencies import get_current_caller

    @router.get("/protected")
    async def protected(caller: Caller = Depends(get_current_caller)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.database import get_db_session
from src.oc_common.enums import Role
from src.oc_common.errors import AccountDisabledError, InvalidCredentialsError
from src.oc_gateway.auth.jwt_handler import decode_token, parse_user_id
from src.oc_gateway.user.db_models import UserModel
from src.oc_order.domain.access import Caller, require_admin

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    Raises HTTP 403 (AccountDisabledError) if the user account is disabled.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = parse_user_id(payload.get("sub"))
    if user_id is None:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def get_current_caller(
    current_user: UserModel = Depends(get_current_user),
) -> Caller:
    """Identity handed to the order engine. Role comes from the DB, not the token."""
    return Caller(user_id=str(current_user.id), role=Role(current_user.role))


async def get_admin_caller(caller: Caller = Depends(get_current_caller)) -> Caller:
    """``get_current_caller`` restricted to admins; anyone else gets 403 (4030)."""
    require_admin(caller)
    return caller
