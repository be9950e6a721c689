"""
Bearer token verification (HS256 JWT issued by the account service).

The token carries the user id and the is_admin flag; both are read once here
into an Identity, which is the only place the administrative capability is derived.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.errors import InvalidCredential, Unauthenticated
from app.schemas.auth import Identity

logger = logging.getLogger("auth")

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str | int,
    is_admin: bool = False,
    email: str | None = None,
    expires_in: int | None = None,
) -> str:
    ttl = expires_in if expires_in is not None else settings.access_token_ttl_seconds
    payload = {
        "id": str(user_id),
        "is_admin": bool(is_admin),
        "exp": datetime.now(timezone.utc) + timedelta(seconds=ttl),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def resolve_identity(token: str | None) -> Identity:
    """Verify token and build Identity. Raises Unauthenticated / InvalidCredential."""
    if not token:
        raise Unauthenticated()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise InvalidCredential("Token expired")
    except jwt.InvalidTokenError as e:
        logger.info("invalid_token", extra={"error": str(e)})
        raise InvalidCredential()

    user_id = payload.get("id", payload.get("sub"))
    if user_id is None or str(user_id) == "":
        raise InvalidCredential()
    # MySQL-era tokens carry is_admin as 0/1
    return Identity(id=str(user_id), administrative=bool(payload.get("is_admin", False)))


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    return resolve_identity(credentials.credentials if credentials else None)
