"""
SQLAlchemy implementation of the marketplace storage contracts.

One store wraps one AsyncSession, so it lives for a single request.
"""

import logging
from collections.abc import AsyncIterator, Collection
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stickerswap.db import operations as ops
from stickerswap.db.protocols import TradeRole
from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.notification import Notification
from stickerswap.models.rating import Rating
from stickerswap.models.sticker import Sticker
from stickerswap.models.trade import Trade, TradeStatus
from stickerswap.models.user import UserProfile

logger = logging.getLogger(__name__)


class SqlMarketplaceStore:
    """MarketplaceStore backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Commit everything written inside the block, or nothing.

        The session's current unit of work is committed on a clean exit and
        rolled back on any exception, which is then re-raised.
        """
        try:
            yield
            await self._session.commit()
        except BaseException:
            await self._session.rollback()
            raise

    # --- Users ---

    async def get_user(self, user_id: str) -> UserProfile | None:
        user = await ops.get_user(self._session, user_id)
        return ops.user_to_model(user) if user else None

    async def average_rating(self, user_id: str) -> float:
        return await ops.get_average_rating(self._session, user_id)

    async def get_trade_rating(self, trade_id: str, rater_id: str) -> Rating | None:
        rating = await ops.get_trade_rating(self._session, trade_id, rater_id)
        return ops.rating_to_model(rating) if rating else None

    async def add_rating(self, rating: Rating) -> Rating:
        row = await ops.add_rating(
            self._session,
            rating.rater_id,
            rating.rated_id,
            rating.score,
            trade_id=rating.trade_id,
            comment=rating.comment,
        )
        return ops.rating_to_model(row)

    # --- Inventory ---

    async def get_sticker(self, sticker_id: str) -> Sticker | None:
        sticker = await ops.get_sticker(self._session, sticker_id)
        return ops.sticker_to_model(sticker) if sticker else None

    async def get_owned(
        self, user_id: str, sticker_id: str, *, for_update: bool = False
    ) -> OwnedEntry | None:
        owned = await ops.get_owned_sticker(
            self._session, user_id, sticker_id, for_update=for_update
        )
        return ops.owned_to_model(owned) if owned else None

    async def list_owned(
        self,
        user_id: str,
        *,
        album_id: str | None = None,
        sticker_ids: Collection[str] | None = None,
        for_trade_only: bool = False,
        for_sale_only: bool = False,
    ) -> list[OwnedEntry]:
        rows = await ops.list_owned_stickers(
            self._session,
            user_id,
            album_id=album_id,
            sticker_ids=sticker_ids,
            for_trade_only=for_trade_only,
            for_sale_only=for_sale_only,
        )
        return [ops.owned_to_model(row) for row in rows]

    async def list_tradable_holders(
        self,
        sticker_ids: Collection[str],
        *,
        exclude_user_id: str | None = None,
        city: str | None = None,
        state: str | None = None,
    ) -> list[tuple[UserProfile, OwnedEntry]]:
        rows = await ops.list_tradable_holders(
            self._session,
            sticker_ids,
            exclude_user_id=exclude_user_id,
            city=city,
            state=state,
        )
        return [(ops.user_to_model(row.user), ops.owned_to_model(row)) for row in rows]

    async def save_owned(self, entry: OwnedEntry) -> OwnedEntry:
        row = await ops.upsert_owned_sticker(
            self._session,
            entry.user_id,
            entry.sticker_id,
            quantity=entry.quantity,
            for_trade=entry.for_trade,
            for_sale=entry.for_sale,
            price=entry.price,
        )
        return ops.owned_to_model(row)

    async def delete_owned(self, user_id: str, sticker_id: str) -> bool:
        return await ops.delete_owned_sticker(self._session, user_id, sticker_id)

    async def get_wanted(self, user_id: str, sticker_id: str) -> WantedEntry | None:
        wanted = await ops.get_wanted_sticker(self._session, user_id, sticker_id)
        return ops.wanted_to_model(wanted) if wanted else None

    async def list_wanted(
        self,
        user_id: str,
        *,
        album_id: str | None = None,
        sticker_ids: Collection[str] | None = None,
    ) -> list[WantedEntry]:
        rows = await ops.list_wanted_stickers(
            self._session, user_id, album_id=album_id, sticker_ids=sticker_ids
        )
        return [ops.wanted_to_model(row) for row in rows]

    async def save_wanted(self, entry: WantedEntry) -> WantedEntry:
        row = await ops.upsert_wanted_sticker(
            self._session, entry.user_id, entry.sticker_id, priority=entry.priority
        )
        return ops.wanted_to_model(row)

    async def delete_wanted(self, user_id: str, sticker_id: str) -> bool:
        return await ops.delete_wanted_sticker(self._session, user_id, sticker_id)

    # --- Trades ---

    async def add_trade(self, trade: Trade) -> Trade:
        row = await ops.create_trade(
            self._session,
            trade.sender_id,
            trade.receiver_id,
            trade.lines,
            message=trade.message,
        )
        return ops.trade_to_model(row)

    async def get_trade(self, trade_id: str, *, for_update: bool = False) -> Trade | None:
        row = await ops.get_trade(self._session, trade_id, for_update=for_update)
        return ops.trade_to_model(row) if row else None

    async def save_trade(self, trade: Trade) -> None:
        if trade.id is None:
            msg = "Cannot save a trade that was never added"
            raise ValueError(msg)
        await ops.update_trade(
            self._session,
            trade.id,
            status=trade.status,
            response_message=trade.response_message,
            completed_at=trade.completed_at,
        )

    async def list_trades(
        self,
        user_id: str,
        *,
        role: TradeRole = "all",
        status: TradeStatus | None = None,
    ) -> list[Trade]:
        rows = await ops.list_trades(self._session, user_id, role=role, status=status)
        return [ops.trade_to_model(row) for row in rows]


class SqlNotificationEmitter:
    """
    Persists notifications in their own session.

    Notifications are emitted after the triggering transaction committed,
    so they must never share (or roll back) the request's unit of work.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def emit(self, notification: Notification) -> None:
        async with self._session_factory() as session:
            await ops.create_notification(
                session,
                notification.user_id,
                notification.type,
                notification.title,
                notification.message,
                notification.data,
            )
            await session.commit()
        logger.debug(
            "Stored %s notification for user %s", notification.type.value, notification.user_id
        )
