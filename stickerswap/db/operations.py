"""
Database CRUD operations.

Provides async functions for reading and writing users, the sticker
catalog, owned/wanted inventories, trades, ratings and notifications,
plus converters from ORM rows to domain models.
"""

from collections.abc import Collection, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from stickerswap.models.db import (
    AlbumDB,
    NotificationDB,
    OwnedStickerDB,
    RatingDB,
    SectionDB,
    StickerDB,
    TradeDB,
    TradeItemDB,
    UserDB,
    WantedStickerDB,
)
from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.notification import NotificationType
from stickerswap.models.rating import Rating
from stickerswap.models.sticker import Rarity, Section, Sticker
from stickerswap.models.trade import Trade, TradeLine, TradeStatus
from stickerswap.models.user import UserProfile

# --- User Operations ---


async def create_user(
    session: AsyncSession,
    nickname: str,
    *,
    city: str | None = None,
    state: str | None = None,
    avatar_url: str | None = None,
    is_active: bool = True,
) -> UserDB:
    """
    Create a user profile.

    Raises IntegrityError if the nickname is taken.
    """
    user = UserDB(
        nickname=nickname,
        city=city,
        state=state,
        avatar_url=avatar_url,
        is_active=is_active,
    )
    session.add(user)
    await session.flush()
    return user


async def get_user(session: AsyncSession, user_id: str) -> UserDB | None:
    """Get a user by id. Returns None if not found."""
    return await session.get(UserDB, user_id)


def user_to_model(user: UserDB) -> UserProfile:
    """Convert a database user to a public profile."""
    return UserProfile(
        id=user.id,
        nickname=user.nickname,
        avatar_url=user.avatar_url,
        city=user.city,
        state=user.state,
        is_active=user.is_active,
    )


async def add_rating(
    session: AsyncSession,
    rater_id: str,
    rated_id: str,
    score: int,
    *,
    trade_id: str | None = None,
    comment: str | None = None,
) -> RatingDB:
    """Record a rating one user gave another."""
    rating = RatingDB(
        rater_id=rater_id,
        rated_id=rated_id,
        score=score,
        trade_id=trade_id,
        comment=comment,
    )
    session.add(rating)
    await session.flush()
    return rating


async def get_trade_rating(
    session: AsyncSession, trade_id: str, rater_id: str
) -> RatingDB | None:
    """The rating a party gave for a trade, if any."""
    result = await session.execute(
        select(RatingDB).where(RatingDB.trade_id == trade_id, RatingDB.rater_id == rater_id)
    )
    return result.scalar_one_or_none()


def rating_to_model(rating: RatingDB) -> Rating:
    return Rating(
        id=rating.id,
        rater_id=rating.rater_id,
        rated_id=rating.rated_id,
        trade_id=rating.trade_id,
        score=rating.score,
        comment=rating.comment,
        created_at=rating.created_at,
    )


async def get_average_rating(session: AsyncSession, user_id: str) -> float:
    """Average score a user received. Returns 0.0 if never rated."""
    result = await session.execute(
        select(func.avg(RatingDB.score)).where(RatingDB.rated_id == user_id)
    )
    average = result.scalar_one_or_none()
    return float(average) if average is not None else 0.0


# --- Catalog Operations ---


async def create_album(session: AsyncSession, name: str, year: int) -> AlbumDB:
    """Create an album."""
    album = AlbumDB(name=name, year=year)
    session.add(album)
    await session.flush()
    return album


async def create_section(
    session: AsyncSession, album_id: str, name: str, code: str, order_index: int = 0
) -> SectionDB:
    """Create an album section."""
    section = SectionDB(album_id=album_id, name=name, code=code, order_index=order_index)
    session.add(section)
    await session.flush()
    return section


async def create_sticker(
    session: AsyncSession,
    section: SectionDB,
    code: str,
    name: str,
    number: int,
    rarity: Rarity = Rarity.COMMON,
    is_special: bool = False,
) -> StickerDB:
    """Create a catalog sticker inside a section."""
    sticker = StickerDB(
        album_id=section.album_id,
        section_id=section.id,
        code=code,
        name=name,
        number=number,
        rarity=rarity,
        is_special=is_special,
    )
    session.add(sticker)
    await session.flush()
    # Load the joined section so conversion needs no lazy load
    await session.refresh(sticker, attribute_names=["section"])
    return sticker


async def get_sticker(session: AsyncSession, sticker_id: str) -> StickerDB | None:
    """Get a catalog sticker by id. Returns None if not found."""
    return await session.get(StickerDB, sticker_id)


def sticker_to_model(sticker: StickerDB) -> Sticker:
    """Convert a database sticker to a domain model."""
    return Sticker(
        id=sticker.id,
        album_id=sticker.album_id,
        section=Section(
            id=sticker.section.id,
            name=sticker.section.name,
            code=sticker.section.code,
        ),
        code=sticker.code,
        name=sticker.name,
        number=sticker.number,
        rarity=sticker.rarity,
        is_special=sticker.is_special,
    )


# --- Owned Sticker Operations ---


def _owned_query(for_update: bool = False) -> Select[tuple[OwnedStickerDB]]:
    query = select(OwnedStickerDB).join(StickerDB, OwnedStickerDB.sticker_id == StickerDB.id)
    if for_update:
        query = query.with_for_update(of=OwnedStickerDB).execution_options(
            populate_existing=True
        )
    return query


async def get_owned_sticker(
    session: AsyncSession, user_id: str, sticker_id: str, *, for_update: bool = False
) -> OwnedStickerDB | None:
    """
    Get a user's holding of one sticker.

    With for_update=True the row stays locked until the transaction ends.
    """
    result = await session.execute(
        _owned_query(for_update).where(
            OwnedStickerDB.user_id == user_id,
            OwnedStickerDB.sticker_id == sticker_id,
        )
    )
    return result.scalar_one_or_none()


async def list_owned_stickers(
    session: AsyncSession,
    user_id: str,
    *,
    album_id: str | None = None,
    sticker_ids: Collection[str] | None = None,
    for_trade_only: bool = False,
    for_sale_only: bool = False,
) -> list[OwnedStickerDB]:
    """Get a user's holdings, ordered by album number."""
    if sticker_ids is not None and not sticker_ids:
        return []

    query = _owned_query().where(OwnedStickerDB.user_id == user_id)
    if album_id is not None:
        query = query.where(StickerDB.album_id == album_id)
    if sticker_ids is not None:
        query = query.where(OwnedStickerDB.sticker_id.in_(list(sticker_ids)))
    if for_trade_only:
        query = query.where(OwnedStickerDB.for_trade.is_(True), OwnedStickerDB.quantity > 0)
    if for_sale_only:
        query = query.where(OwnedStickerDB.for_sale.is_(True))

    result = await session.execute(query.order_by(StickerDB.number))
    return list(result.scalars().all())


async def list_tradable_holders(
    session: AsyncSession,
    sticker_ids: Collection[str],
    *,
    exclude_user_id: str | None = None,
    city: str | None = None,
    state: str | None = None,
) -> list[OwnedStickerDB]:
    """
    Get every active user's tradable holding of the given stickers.

    Holdings come back with their owner loaded, largest quantity first.
    """
    if not sticker_ids:
        return []

    query = (
        _owned_query()
        .join(OwnedStickerDB.user)
        .options(contains_eager(OwnedStickerDB.user))
        .where(
            OwnedStickerDB.sticker_id.in_(list(sticker_ids)),
            OwnedStickerDB.for_trade.is_(True),
            OwnedStickerDB.quantity > 0,
            UserDB.is_active.is_(True),
        )
    )
    if exclude_user_id is not None:
        query = query.where(OwnedStickerDB.user_id != exclude_user_id)
    if city is not None:
        query = query.where(UserDB.city == city)
    if state is not None:
        query = query.where(UserDB.state == state)

    result = await session.execute(
        query.order_by(OwnedStickerDB.quantity.desc(), StickerDB.number)
    )
    return list(result.scalars().all())


async def upsert_owned_sticker(
    session: AsyncSession,
    user_id: str,
    sticker_id: str,
    *,
    quantity: int,
    for_trade: bool = True,
    for_sale: bool = False,
    price: Decimal | None = None,
) -> OwnedStickerDB:
    """
    Insert or update a user's holding of one sticker.

    The given quantity replaces the stored one.
    """
    existing = await get_owned_sticker(session, user_id, sticker_id)

    if existing:
        existing.quantity = quantity
        existing.for_trade = for_trade
        existing.for_sale = for_sale
        existing.price = price
        await session.flush()
        return existing

    owned = OwnedStickerDB(
        user_id=user_id,
        sticker_id=sticker_id,
        quantity=quantity,
        for_trade=for_trade,
        for_sale=for_sale,
        price=price,
    )
    session.add(owned)
    await session.flush()
    await session.refresh(owned, attribute_names=["sticker"])
    return owned


async def delete_owned_sticker(session: AsyncSession, user_id: str, sticker_id: str) -> bool:
    """
    Delete a user's holding of one sticker.

    Returns True if deleted, False if not found.
    """
    owned = await get_owned_sticker(session, user_id, sticker_id)
    if not owned:
        return False

    await session.delete(owned)
    await session.flush()
    return True


def owned_to_model(owned: OwnedStickerDB) -> OwnedEntry:
    """Convert a database holding to a domain model."""
    return OwnedEntry(
        user_id=owned.user_id,
        sticker=sticker_to_model(owned.sticker),
        quantity=owned.quantity,
        for_trade=owned.for_trade,
        for_sale=owned.for_sale,
        price=owned.price,
    )


# --- Wanted Sticker Operations ---


def _wanted_query() -> Select[tuple[WantedStickerDB]]:
    return select(WantedStickerDB).join(StickerDB, WantedStickerDB.sticker_id == StickerDB.id)


async def get_wanted_sticker(
    session: AsyncSession, user_id: str, sticker_id: str
) -> WantedStickerDB | None:
    """Get a user's wish for one sticker. Returns None if not wanted."""
    result = await session.execute(
        _wanted_query().where(
            WantedStickerDB.user_id == user_id,
            WantedStickerDB.sticker_id == sticker_id,
        )
    )
    return result.scalar_one_or_none()


async def list_wanted_stickers(
    session: AsyncSession,
    user_id: str,
    *,
    album_id: str | None = None,
    sticker_ids: Collection[str] | None = None,
) -> list[WantedStickerDB]:
    """Get a user's wanted list, highest priority first, then by album number."""
    if sticker_ids is not None and not sticker_ids:
        return []

    query = _wanted_query().where(WantedStickerDB.user_id == user_id)
    if album_id is not None:
        query = query.where(StickerDB.album_id == album_id)
    if sticker_ids is not None:
        query = query.where(WantedStickerDB.sticker_id.in_(list(sticker_ids)))

    result = await session.execute(
        query.order_by(WantedStickerDB.priority.desc(), StickerDB.number)
    )
    return list(result.scalars().all())


async def upsert_wanted_sticker(
    session: AsyncSession, user_id: str, sticker_id: str, *, priority: int = 1
) -> WantedStickerDB:
    """Insert or update a user's wish for one sticker."""
    existing = await get_wanted_sticker(session, user_id, sticker_id)

    if existing:
        existing.priority = priority
        await session.flush()
        return existing

    wanted = WantedStickerDB(user_id=user_id, sticker_id=sticker_id, priority=priority)
    session.add(wanted)
    await session.flush()
    await session.refresh(wanted, attribute_names=["sticker"])
    return wanted


async def delete_wanted_sticker(session: AsyncSession, user_id: str, sticker_id: str) -> bool:
    """
    Delete a user's wish for one sticker.

    Returns True if deleted, False if not found.
    """
    wanted = await get_wanted_sticker(session, user_id, sticker_id)
    if not wanted:
        return False

    await session.delete(wanted)
    await session.flush()
    return True


def wanted_to_model(wanted: WantedStickerDB) -> WantedEntry:
    """Convert a database wish to a domain model."""
    return WantedEntry(
        user_id=wanted.user_id,
        sticker=sticker_to_model(wanted.sticker),
        priority=wanted.priority,
    )


# --- Trade Operations ---


async def create_trade(
    session: AsyncSession,
    sender_id: str,
    receiver_id: str,
    lines: Sequence[TradeLine],
    message: str | None = None,
) -> TradeDB:
    """Create a pending trade with its lines."""
    trade = TradeDB(
        sender_id=sender_id,
        receiver_id=receiver_id,
        message=message,
        status=TradeStatus.PENDING,
        items=[
            TradeItemDB(
                offered_id=line.offered_sticker_id,
                requested_id=line.requested_sticker_id,
                quantity=line.quantity,
            )
            for line in lines
        ],
    )
    session.add(trade)
    await session.flush()
    return trade


async def get_trade(
    session: AsyncSession, trade_id: str, *, for_update: bool = False
) -> TradeDB | None:
    """
    Get a trade with its lines.

    With for_update=True the trade row is re-read and locked until the
    transaction ends.
    """
    query = select(TradeDB).where(TradeDB.id == trade_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def update_trade(
    session: AsyncSession,
    trade_id: str,
    *,
    status: TradeStatus,
    response_message: str | None = None,
    completed_at: datetime | None = None,
) -> TradeDB:
    """Write a trade's lifecycle fields."""
    trade = await get_trade(session, trade_id)
    if not trade:
        msg = f"Trade {trade_id} not found"
        raise LookupError(msg)

    trade.status = status
    trade.response_message = response_message
    trade.completed_at = completed_at
    await session.flush()
    return trade


async def list_trades(
    session: AsyncSession,
    user_id: str,
    *,
    role: Literal["all", "sent", "received"] = "all",
    status: TradeStatus | None = None,
) -> list[TradeDB]:
    """Get a user's trades, newest first."""
    query = select(TradeDB)
    if role == "sent":
        query = query.where(TradeDB.sender_id == user_id)
    elif role == "received":
        query = query.where(TradeDB.receiver_id == user_id)
    else:
        query = query.where(or_(TradeDB.sender_id == user_id, TradeDB.receiver_id == user_id))
    if status is not None:
        query = query.where(TradeDB.status == status)

    result = await session.execute(query.order_by(TradeDB.created_at.desc()))
    return list(result.scalars().all())


def trade_to_model(trade: TradeDB) -> Trade:
    """Convert a database trade to a domain model."""
    return Trade(
        id=trade.id,
        sender_id=trade.sender_id,
        receiver_id=trade.receiver_id,
        status=trade.status,
        message=trade.message,
        response_message=trade.response_message,
        created_at=trade.created_at,
        completed_at=trade.completed_at,
        lines=[
            TradeLine(
                id=item.id,
                offered_sticker_id=item.offered_id,
                requested_sticker_id=item.requested_id,
                quantity=item.quantity,
            )
            for item in trade.items
        ],
    )


# --- Notification Operations ---


async def create_notification(
    session: AsyncSession,
    user_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
) -> NotificationDB:
    """Store a notification for a user."""
    notification = NotificationDB(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        data=data or {},
    )
    session.add(notification)
    await session.flush()
    return notification


async def list_notifications(session: AsyncSession, user_id: str) -> list[NotificationDB]:
    """Get a user's notifications, newest first."""
    result = await session.execute(
        select(NotificationDB)
        .where(NotificationDB.user_id == user_id)
        .order_by(NotificationDB.created_at.desc())
    )
    return list(result.scalars().all())
