"""
Caller identity for FastAPI.

Login and token issuance live in the upstream auth gateway. The gateway
authenticates the request and forwards the username (the user's email) in
the `X-Authenticated-User` header; this module only reads it.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request

logger = logging.getLogger(__name__)

AUTHENTICATED_USER_HEADER = "X-Authenticated-User"


def get_current_username(request: Request) -> str | None:
    """
    Get the username forwarded by the auth gateway.

    Returns None if the header is missing or blank.
    """
    username = (request.headers.get(AUTHENTICATED_USER_HEADER) or "").strip()
    return username or None


def require_username(request: Request) -> str:
    """
    Dependency that requires an authenticated caller.

    Raises 401 if the gateway did not identify the user.
    """
    username = get_current_username(request)
    if not username:
        logger.warning(f"Rejected request to {request.url.path} without {AUTHENTICATED_USER_HEADER}")
        raise HTTPException(
            status_code=401,
            detail="Authentication required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return username


# Type alias for dependency injection
CurrentUsername = Annotated[str, Depends(require_username)]
