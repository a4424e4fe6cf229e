from typing import Optional

from fastapi import Header

from app.core.errors import Unauthorized

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Returns the raw token from an `Authorization: Bearer <token>` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise Unauthorized("Unauthorized - No token provided")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Unauthorized - No token provided")
    return token


async def require_bearer(authorization: Optional[str] = Header(default=None)) -> str:
    """FastAPI dependency: rejects the request before any upstream call is made."""
    return extract_bearer_token(authorization)
