"""Token and password utilities plus FastAPI auth dependencies.

Provides:
- bcrypt password hashing
- HS256 access tokens issued on login and verified per request
- FastAPI dependencies for authenticated routes

Access token payload:
    {"sub": <user_id>, "org": <organization_id|null>, "role": <role>,
     "iat": <issued_at>, "exp": <expires_at>}
"""

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request

from core.config import get_settings
from core.logger import bind_contextvars, get_logger

logger = get_logger(__name__)

_BEARER_PREFIX = "bearer "


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(
    user_id: str, *, organization_id: str | None = None, role: str = "USER"
) -> str:
    """Sign an access token for a user."""
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "org": organization_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry.

    Raises jwt.InvalidTokenError (or a subclass such as ExpiredSignatureError).
    """
    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["sub", "exp"]},
    )


def get_user_id_from_request(req: Request) -> str | None:
    """Get authenticated user ID from the Authorization header, or None."""
    header = req.headers.get("authorization", "")
    if not header.lower().startswith(_BEARER_PREFIX):
        return None

    token = header[len(_BEARER_PREFIX) :].strip()
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        logger.info("auth.token.expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug("auth.token.invalid", error=str(e))
        return None

    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None


def require_auth(request: Request) -> str:
    """Raises 401 if not authenticated. Sets request.state.user_id."""
    user_id = get_user_id_from_request(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    request.state.user_id = user_id
    bind_contextvars(user_id=user_id)
    return user_id


def optional_auth(request: Request) -> str | None:
    """Returns user_id or None. Does not raise."""
    user_id = get_user_id_from_request(request)
    if user_id:
        request.state.user_id = user_id
        bind_contextvars(user_id=user_id)
    return user_id


UserId = Annotated[str, Depends(require_auth)]
OptionalUserId = Annotated[str | None, Depends(optional_auth)]
