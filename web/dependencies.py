"""
FastAPI dependencies shared by the routers.
"""

import secrets

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import get_db_session


async def db_session() -> AsyncSession:
    """Request-scoped database session (overridden in tests)."""
    async with get_db_session() as session:
        yield session


async def cart_owner(x_user_id: int | None = Header(default=None)) -> int | None:
    """
    Cart owner for the request.

    Logged-in clients send X-User-Id, anonymous visitors share the cart
    rows without a user.
    """
    return x_user_id


async def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    """
    Guard for admin writes.

    Open when ADMIN_API_TOKEN is not configured (local development).
    """
    if not config.ADMIN_API_TOKEN:
        return
    # Security: Use timing-safe comparison to prevent timing attacks
    if x_admin_token is None or not secrets.compare_digest(x_admin_token, config.ADMIN_API_TOKEN):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
