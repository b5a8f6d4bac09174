"""
Authentication utilities - Supabase access token handling.

Supabase signs user access tokens with the project's JWT secret (HS256,
audience "authenticated"). Each client without a token is served under its
own server-issued anonymous namespace, like the logged-out chat page.
"""

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ANONYMOUS_ID_HEADER = "X-Anonymous-Id"
ANONYMOUS_ID_COOKIE = "larun_anonymous_id"
ANONYMOUS_ID_MAX_AGE = 365 * 24 * 3600

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """
    Create a token shaped like a Supabase access token.
    Used by tests and local tooling.

    Args:
        user_id: Value of the ``sub`` claim
        expires_delta: Lifetime (default one hour)
        **claims: Extra claims (email, role, ...)

    Returns:
        str: Encoded JWT
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    to_encode = {"sub": user_id, "exp": expire, **claims}
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[str]:
    """
    Verify a token and return its user id.

    Returns:
        Optional[str]: The ``sub`` claim, or None if the token is invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not _USER_ID_PATTERN.match(user_id):
        return None
    return user_id


def _read_anonymous_id(request: Request) -> Optional[str]:
    """The anonymous id the client presented, if it is one we could have issued."""
    candidate = request.headers.get(ANONYMOUS_ID_HEADER) or request.cookies.get(ANONYMOUS_ID_COOKIE)
    if not candidate or not candidate.startswith(f"{settings.anonymous_id_prefix}-"):
        return None
    return candidate if _USER_ID_PATTERN.match(candidate) else None


def issue_anonymous_id() -> str:
    return f"{settings.anonymous_id_prefix}-{uuid.uuid4().hex}"


async def get_current_user_id(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    FastAPI dependency resolving the caller's user id.

    Callers without a token get their own anonymous namespace. The id is
    returned in the ``X-Anonymous-Id`` header and a cookie; clients send
    either back to keep their conversations, like a browser's local storage.

    Raises:
        HTTPException: 401 if a token is present but invalid
    """
    if credentials is None:
        anonymous_id = _read_anonymous_id(request)
        if anonymous_id is None:
            anonymous_id = issue_anonymous_id()
            logger.debug(f"Issued anonymous id {anonymous_id}")
        response.headers[ANONYMOUS_ID_HEADER] = anonymous_id
        response.set_cookie(
            ANONYMOUS_ID_COOKIE,
            anonymous_id,
            max_age=ANONYMOUS_ID_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
        return anonymous_id

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
