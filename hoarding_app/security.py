"""Password hashing and JWT helpers.

Tokens are HS256 JWTs carrying ``{sub, role, exp, type}``; they travel in the
httpOnly ``token`` cookie set at login, or in an ``Authorization: Bearer``
header for API clients.
"""
from datetime import timedelta
from typing import Optional, Dict, Any

import bcrypt
from jose import JWTError, jwt

from hoarding_app.config import AUTH_SETTINGS
from hoarding_app.models.db.enums import UserRole
from hoarding_app.utils import utc_now


class InvalidTokenError(Exception):
    """Raised when a token cannot be decoded or is not an access token."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=int(AUTH_SETTINGS["bcrypt_rounds"])))
    return hashed.decode("utf-8")


def create_access_token(user_id: int, role: UserRole, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    expire = utc_now() + (expires_delta or timedelta(days=int(AUTH_SETTINGS["token_expire_days"])))
    to_encode = {
        "sub": str(user_id),
        "role": role.value,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, str(AUTH_SETTINGS["jwt_secret"]), algorithm=str(AUTH_SETTINGS["jwt_algorithm"]))


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate an access token; raises InvalidTokenError."""
    try:
        payload = jwt.decode(token, str(AUTH_SETTINGS["jwt_secret"]), algorithms=[str(AUTH_SETTINGS["jwt_algorithm"])])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError("Not an access token")
    return payload


__all__ = ["verify_password", "get_password_hash", "create_access_token", "decode_token", "InvalidTokenError"]
