"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from stickerswap.models.notification import NotificationType
from stickerswap.models.sticker import Rarity
from stickerswap.models.trade import TradeStatus


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserDB(Base):
    """
    A marketplace user.

    Only the public profile fields the trading core reads are stored here;
    credentials live with the authentication service.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    nickname: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, nickname={self.nickname})>"


class AlbumDB(Base):
    """A sticker album, e.g. the 2026 World Cup album."""

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    year: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    sections: Mapped[list["SectionDB"]] = relationship(
        back_populates="album", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<AlbumDB(name={self.name}, year={self.year})>"


class SectionDB(Base):
    """A section of an album, usually one national team."""

    __tablename__ = "sections"
    __table_args__ = (UniqueConstraint("album_id", "code", name="uq_album_section_code"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    album_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    code: Mapped[str] = mapped_column(String(10))
    order_index: Mapped[int] = mapped_column(Integer, default=0)

    album: Mapped["AlbumDB"] = relationship(back_populates="sections")

    def __repr__(self) -> str:
        return f"<SectionDB(code={self.code})>"


class StickerDB(Base):
    """
    Catalog entry for one sticker.

    Seeded with the album and never mutated by user actions.
    """

    __tablename__ = "stickers"
    __table_args__ = (UniqueConstraint("album_id", "code", name="uq_album_sticker_code"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    album_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="CASCADE"), index=True
    )
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="CASCADE"), index=True
    )
    code: Mapped[str] = mapped_column(String(20))
    name: Mapped[str] = mapped_column(String(255))
    number: Mapped[int] = mapped_column(Integer)
    rarity: Mapped[Rarity] = mapped_column(Enum(Rarity), default=Rarity.COMMON)
    is_special: Mapped[bool] = mapped_column(Boolean, default=False)

    section: Mapped["SectionDB"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<StickerDB(code={self.code}, name={self.name})>"


class OwnedStickerDB(Base):
    """
    A user's holding of one sticker.

    Rows are deleted rather than left at quantity zero.
    """

    __tablename__ = "user_stickers"
    __table_args__ = (
        UniqueConstraint("user_id", "sticker_id", name="uq_user_owned_sticker"),
        CheckConstraint("quantity > 0", name="ck_owned_quantity_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    sticker_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("stickers.id", ondelete="CASCADE"), index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    for_trade: Mapped[bool] = mapped_column(Boolean, default=True)
    for_sale: Mapped[bool] = mapped_column(Boolean, default=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    user: Mapped["UserDB"] = relationship()
    sticker: Mapped["StickerDB"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<OwnedStickerDB(user={self.user_id}, sticker={self.sticker_id}, qty={self.quantity})>"


class WantedStickerDB(Base):
    """A sticker a user is looking for."""

    __tablename__ = "user_wanted_stickers"
    __table_args__ = (UniqueConstraint("user_id", "sticker_id", name="uq_user_wanted_sticker"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    sticker_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("stickers.id", ondelete="CASCADE"), index=True
    )
    priority: Mapped[int] = mapped_column(Integer, default=1)

    sticker: Mapped["StickerDB"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<WantedStickerDB(user={self.user_id}, sticker={self.sticker_id})>"


class TradeDB(Base):
    """A trade proposal between two users."""

    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    sender_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    receiver_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[TradeStatus] = mapped_column(
        Enum(TradeStatus), default=TradeStatus.PENDING, index=True
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["TradeItemDB"]] = relationship(
        back_populates="trade", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<TradeDB(id={self.id}, status={self.status})>"


class TradeItemDB(Base):
    """
    One line of a trade.

    Exactly one of offered_id / requested_id is set.
    """

    __tablename__ = "trade_items"
    __table_args__ = (
        CheckConstraint(
            "(offered_id IS NULL) != (requested_id IS NULL)",
            name="ck_trade_item_one_side",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    trade_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("trades.id", ondelete="CASCADE"), index=True
    )
    offered_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("stickers.id"), nullable=True
    )
    requested_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("stickers.id"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)

    trade: Mapped["TradeDB"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<TradeItemDB(offered={self.offered_id}, requested={self.requested_id})>"


class RatingDB(Base):
    """A score one user gave another after trading."""

    __tablename__ = "ratings"
    __table_args__ = (
        CheckConstraint("score BETWEEN 1 AND 5", name="ck_rating_score"),
        UniqueConstraint("trade_id", "rater_id", name="uq_rating_trade_rater"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    rater_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    rated_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    trade_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trades.id", ondelete="SET NULL"), nullable=True, index=True
    )
    score: Mapped[int] = mapped_column(Integer)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class NotificationDB(Base):
    """A persisted notification, polled by the client."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    type: Mapped[NotificationType] = mapped_column(Enum(NotificationType))
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"<NotificationDB(user={self.user_id}, type={self.type})>"
