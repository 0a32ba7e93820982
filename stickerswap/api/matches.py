"""
Match API endpoints.

Finds trade partners for the caller, holders of a sticker, and what two
specific users can exchange.
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from stickerswap.api.deps import CurrentUser, OptionalUser, Store
from stickerswap.api.schemas import StickerResponse, UserResponse
from stickerswap.config import settings
from stickerswap.models.match import MatchFilters
from stickerswap.services.matching import (
    find_compatible_with,
    find_holders_of_sticker,
    find_matches,
)

router = APIRouter(prefix="/matches", tags=["matches"])


def _blank_to_none(value: str | None) -> str | None:
    """`?city=` means no city filter."""
    if value is None or not value.strip():
        return None
    return value.strip()


class MatchResponse(BaseModel):
    """A single ranked trade partner."""

    user: UserResponse
    can_offer: list[StickerResponse] = Field(
        default_factory=list,
        description="Stickers they hold for trade that you want",
    )
    wants: list[StickerResponse] = Field(
        default_factory=list,
        description="Stickers you hold for trade that they want",
    )
    match_score: int


class MatchMeta(BaseModel):
    total_matches: int
    your_wanted_count: int
    your_tradable_count: int


class MatchListResponse(BaseModel):
    matches: list[MatchResponse]
    meta: MatchMeta
    message: str | None = None


class HolderResponse(BaseModel):
    user: UserResponse
    quantity: int
    for_sale: bool
    price: Decimal | None = None
    rating: float = Field(0.0, description="Average received rating, 0 if never rated")


class HoldersResponse(BaseModel):
    sticker: StickerResponse
    users: list[HolderResponse]


class CompatibleStickerResponse(BaseModel):
    sticker: StickerResponse
    quantity: int


class CompatibilityResponse(BaseModel):
    i_can_offer: list[CompatibleStickerResponse]
    they_can_offer: list[CompatibleStickerResponse]


@router.get("/find", response_model=MatchListResponse)
async def find(
    caller: CurrentUser,
    store: Store,
    album_id: str | None = None,
    city: str | None = None,
    state: str | None = None,
    limit: Annotated[int | None, Query(ge=1, le=settings.max_match_limit)] = None,
) -> MatchListResponse:
    """
    Find users to trade with, best matches first.

    Score: one point per sticker they can give you, two per sticker they
    want from you.
    """
    filters = MatchFilters(
        album_id=_blank_to_none(album_id),
        city=_blank_to_none(city),
        state=_blank_to_none(state),
        limit=limit or settings.default_match_limit,
    )
    result = await find_matches(store, caller, filters)

    return MatchListResponse(
        matches=[
            MatchResponse(
                user=UserResponse.from_model(m.user),
                can_offer=[StickerResponse.from_model(s) for s in m.can_offer],
                wants=[StickerResponse.from_model(s) for s in m.wants],
                match_score=m.match_score,
            )
            for m in result.matches
        ],
        meta=MatchMeta(
            total_matches=len(result.matches),
            your_wanted_count=result.wanted_count,
            your_tradable_count=result.tradable_count,
        ),
        message=result.message,
    )


@router.get("/sticker/{sticker_id}", response_model=HoldersResponse)
async def sticker_holders(
    sticker_id: str,
    caller: OptionalUser,
    store: Store,
    city: str | None = None,
    state: str | None = None,
) -> HoldersResponse:
    """
    Who has this sticker available for trade.

    Returns 404 if the sticker is not in the catalog.
    """
    filters = MatchFilters(city=_blank_to_none(city), state=_blank_to_none(state))
    result = await find_holders_of_sticker(store, sticker_id, filters, exclude_user_id=caller)
    return HoldersResponse(
        sticker=StickerResponse.from_model(result.sticker),
        users=[
            HolderResponse(
                user=UserResponse.from_model(h.user),
                quantity=h.quantity,
                for_sale=h.for_sale,
                price=h.price,
                rating=h.rating,
            )
            for h in result.holders
        ],
    )


@router.get("/user/{user_id}/compatible", response_model=CompatibilityResponse)
async def compatible(user_id: str, caller: CurrentUser, store: Store) -> CompatibilityResponse:
    """What you and another user can exchange with each other."""
    result = await find_compatible_with(store, caller, user_id)
    return CompatibilityResponse(
        i_can_offer=[
            CompatibleStickerResponse(sticker=StickerResponse.from_model(c.sticker), quantity=c.quantity)
            for c in result.i_can_offer
        ],
        they_can_offer=[
            CompatibleStickerResponse(sticker=StickerResponse.from_model(c.sticker), quantity=c.quantity)
            for c in result.they_can_offer
        ],
    )
