"""
Collection API endpoints.

Owned and wanted stickers of the calling user.
"""

from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from stickerswap.api.deps import CurrentUser, Store
from stickerswap.api.schemas import OwnedStickerResponse, WantedStickerResponse
from stickerswap.services import inventory

router = APIRouter(prefix="/collection", tags=["collection"])


class OwnedStickerRequest(BaseModel):
    """Request model for adding a sticker to the collection."""

    sticker_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    for_trade: bool = True
    for_sale: bool = False
    price: Decimal | None = Field(default=None, ge=0)


class OwnedStickerUpdateRequest(BaseModel):
    """Fields left out are unchanged. quantity=0 removes the sticker."""

    quantity: int | None = Field(default=None, ge=0)
    for_trade: bool | None = None
    for_sale: bool | None = None
    price: Decimal | None = Field(default=None, ge=0)
    clear_price: bool = Field(default=False, description="Remove the asking price")


class WantedStickerRequest(BaseModel):
    sticker_id: str = Field(..., min_length=1)
    priority: int = Field(default=1, ge=1, le=5)


class BulkAddRequest(BaseModel):
    """Request model for adding many stickers at once."""

    sticker_ids: list[str] = Field(..., description="One unit per sticker id")
    type: Literal["owned", "wanted"]


class BulkAddResponse(BaseModel):
    success: bool = True
    count: int


class OwnedListResponse(BaseModel):
    stickers: list[OwnedStickerResponse]
    total: int


class WantedListResponse(BaseModel):
    stickers: list[WantedStickerResponse]
    total: int


@router.get("/owned", response_model=OwnedListResponse)
async def list_owned(
    caller: CurrentUser,
    store: Store,
    album_id: str | None = None,
    for_trade: bool = False,
    for_sale: bool = False,
) -> OwnedListResponse:
    """Your stickers, in album order."""
    entries = await inventory.list_owned_stickers(
        store, caller, album_id=album_id, for_trade_only=for_trade, for_sale_only=for_sale
    )
    return OwnedListResponse(
        stickers=[OwnedStickerResponse.from_model(e) for e in entries],
        total=len(entries),
    )


@router.post("/owned", response_model=OwnedStickerResponse, status_code=status.HTTP_201_CREATED)
async def add_owned(
    request: OwnedStickerRequest, caller: CurrentUser, store: Store
) -> OwnedStickerResponse:
    """Add units of a sticker; also takes it off your wanted list."""
    entry = await inventory.add_owned_sticker(
        store,
        caller,
        request.sticker_id,
        quantity=request.quantity,
        for_trade=request.for_trade,
        for_sale=request.for_sale,
        price=request.price,
    )
    return OwnedStickerResponse.from_model(entry)


@router.put(
    "/owned/{sticker_id}",
    response_model=OwnedStickerResponse | None,
    responses={204: {"description": "Quantity set to 0, sticker removed"}},
)
async def update_owned(
    sticker_id: str,
    request: OwnedStickerUpdateRequest,
    caller: CurrentUser,
    store: Store,
) -> OwnedStickerResponse | Response:
    entry = await inventory.update_owned_sticker(
        store,
        caller,
        sticker_id,
        quantity=request.quantity,
        for_trade=request.for_trade,
        for_sale=request.for_sale,
        price=request.price,
        clear_price=request.clear_price,
    )
    if entry is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return OwnedStickerResponse.from_model(entry)


@router.delete("/owned/{sticker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_owned(sticker_id: str, caller: CurrentUser, store: Store) -> None:
    await inventory.remove_owned_sticker(store, caller, sticker_id)


@router.get("/wanted", response_model=WantedListResponse)
async def list_wanted(
    caller: CurrentUser, store: Store, album_id: str | None = None
) -> WantedListResponse:
    """Your wanted list, highest priority first."""
    entries = await inventory.list_wanted_stickers(store, caller, album_id=album_id)
    return WantedListResponse(
        stickers=[WantedStickerResponse.from_model(e) for e in entries],
        total=len(entries),
    )


@router.post("/wanted", response_model=WantedStickerResponse, status_code=status.HTTP_201_CREATED)
async def add_wanted(
    request: WantedStickerRequest, caller: CurrentUser, store: Store
) -> WantedStickerResponse:
    entry = await inventory.add_wanted_sticker(
        store, caller, request.sticker_id, priority=request.priority
    )
    return WantedStickerResponse.from_model(entry)


@router.delete("/wanted/{sticker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_wanted(sticker_id: str, caller: CurrentUser, store: Store) -> None:
    await inventory.remove_wanted_sticker(store, caller, sticker_id)


@router.post("/bulk", response_model=BulkAddResponse)
async def bulk_add(request: BulkAddRequest, caller: CurrentUser, store: Store) -> BulkAddResponse:
    """Add many stickers to the collection or the wanted list in one go."""
    count = await inventory.bulk_add(store, caller, request.sticker_ids, request.type)
    return BulkAddResponse(count=count)
