"""bcrypt password hashing (bcrypt>=4 directly; passlib does not support it)."""

import bcrypt

from config.settings import settings


def hash_password(plain: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """False on mismatch and on hashes bcrypt cannot parse."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
