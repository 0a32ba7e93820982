"""
Request dependencies shared by the routers.

Authentication is handled upstream; the gateway forwards the caller's id
in the X-User-Id header.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stickerswap.db.database import get_session, get_session_factory
from stickerswap.db.store import SqlMarketplaceStore, SqlNotificationEmitter


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """The authenticated caller. Missing header means unauthenticated."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


async def get_optional_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str | None:
    """The caller if known, for endpoints that also serve anonymous users."""
    if not x_user_id or not x_user_id.strip():
        return None
    return x_user_id.strip()


async def get_store(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SqlMarketplaceStore:
    return SqlMarketplaceStore(session)


async def get_emitter(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> SqlNotificationEmitter:
    return SqlNotificationEmitter(session_factory)


CurrentUser = Annotated[str, Depends(get_current_user_id)]
OptionalUser = Annotated[str | None, Depends(get_optional_user_id)]
Store = Annotated[SqlMarketplaceStore, Depends(get_store)]
Emitter = Annotated[SqlNotificationEmitter, Depends(get_emitter)]
