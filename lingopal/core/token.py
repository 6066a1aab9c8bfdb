"""
Token validation logic.

Tokens are issued by the upstream auth service; this module only verifies
them and exposes the caller's user id to routes.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from lingopal.core.config import settings
from lingopal.core.errors import AuthenticationError
from lingopal.core.logging import bind_user

# HTTP Bearer scheme (Only shows a token input box in Swagger)
# auto_error is off so a missing header maps to 401 through AuthenticationError
security_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate JWT token string"""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def verify_token(token: str) -> Optional[str]:
    """Verify token and extract user ID (sub claim)"""
    payload = decode_token(token)
    if payload is None:
        return None

    user_id: Optional[str] = payload.get("sub")
    return user_id


async def get_current_user_id(
    request: Request,
    auth: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security_scheme)],
) -> str:
    """
    FastAPI dependency to validate token and return current user ID.
    Used in protected routes.
    """
    if auth is None:
        raise AuthenticationError("Not authenticated")
    user_id = verify_token(auth.credentials)
    if not user_id:
        raise AuthenticationError("Could not validate credentials")
    bind_user(request.scope, user_id)
    return user_id


# Frequently used Dependency Annotation
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
