"""Response models shared by several routers."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.sticker import Rarity, Sticker
from stickerswap.models.trade import Trade, TradeStatus
from stickerswap.models.user import UserProfile


class SectionResponse(BaseModel):
    name: str
    code: str


class StickerResponse(BaseModel):
    """A catalog sticker as shown in lists."""

    id: str
    code: str
    name: str
    number: int
    rarity: Rarity
    is_special: bool = False
    section: SectionResponse

    @classmethod
    def from_model(cls, sticker: Sticker) -> "StickerResponse":
        return cls(
            id=sticker.id,
            code=sticker.code,
            name=sticker.name,
            number=sticker.number,
            rarity=sticker.rarity,
            is_special=sticker.is_special,
            section=SectionResponse(name=sticker.section.name, code=sticker.section.code),
        )


class UserResponse(BaseModel):
    """Public profile fields."""

    id: str
    nickname: str
    avatar_url: str | None = None
    city: str | None = None
    state: str | None = None

    @classmethod
    def from_model(cls, user: UserProfile) -> "UserResponse":
        return cls(
            id=user.id,
            nickname=user.nickname,
            avatar_url=user.avatar_url,
            city=user.city,
            state=user.state,
        )


class OwnedStickerResponse(BaseModel):
    sticker: StickerResponse
    quantity: int
    for_trade: bool
    for_sale: bool
    price: Decimal | None = None

    @classmethod
    def from_model(cls, entry: OwnedEntry) -> "OwnedStickerResponse":
        return cls(
            sticker=StickerResponse.from_model(entry.sticker),
            quantity=entry.quantity,
            for_trade=entry.for_trade,
            for_sale=entry.for_sale,
            price=entry.price,
        )


class WantedStickerResponse(BaseModel):
    sticker: StickerResponse
    priority: int

    @classmethod
    def from_model(cls, entry: WantedEntry) -> "WantedStickerResponse":
        return cls(sticker=StickerResponse.from_model(entry.sticker), priority=entry.priority)


class TradeLineResponse(BaseModel):
    offered_sticker_id: str | None = None
    requested_sticker_id: str | None = None
    quantity: int = 1


class TradeResponse(BaseModel):
    """A trade with its lines."""

    id: str
    sender_id: str
    receiver_id: str
    status: TradeStatus
    message: str | None = None
    response_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    lines: list[TradeLineResponse] = Field(default_factory=list)

    @classmethod
    def from_model(cls, trade: Trade) -> "TradeResponse":
        return cls(
            id=trade.id or "",
            sender_id=trade.sender_id,
            receiver_id=trade.receiver_id,
            status=trade.status,
            message=trade.message,
            response_message=trade.response_message,
            created_at=trade.created_at,
            completed_at=trade.completed_at,
            lines=[
                TradeLineResponse(
                    offered_sticker_id=line.offered_sticker_id,
                    requested_sticker_id=line.requested_sticker_id,
                    quantity=line.quantity,
                )
                for line in trade.lines
            ],
        )
