"""JWT token creation and verification.

HS256 with a single shared JWT_SECRET. Access tokens carry the user's role
so the order engine can build a Caller without guessing; the role is
re-read from the users table on every request anyway (see dependencies.py),
so a demoted admin loses privileges immediately.

No token revocation: once issued, tokens are valid until expiry.
"""

import uuid
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.oc_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def create_access_token(user_id: str, role: str) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_refresh_token(user_id: str) -> str:
    """Issue a long-lived refresh token (default: 7 days). Not rotated on use."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "refresh",
        "iat": now,
        "exp": now + _REFRESH_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh". Strictly enforced to prevent
                       token type confusion attacks.

    Raises:
        InvalidCredentialsError: Token invalid/expired and expected_type="access".
        InvalidRefreshTokenError: Token invalid/expired and expected_type="refresh".
    """
    payload: dict[str, str] = {}
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        _raise_auth_error(expected_type)

    if payload.get("type") != expected_type:
        _raise_auth_error(expected_type)

    return payload


def _raise_auth_error(expected_type: str) -> None:
    """Raise the appropriate error based on which token type was expected."""
    if expected_type == "access":
        raise InvalidCredentialsError()
    raise InvalidRefreshTokenError()


def parse_user_id(sub: str | None) -> uuid.UUID | None:
    """Token subject as a UUID, or None when missing or malformed."""
    if not sub:
        return None
    try:
        return uuid.UUID(sub)
    except ValueError:
        return None
