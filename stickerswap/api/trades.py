"""
Trade API endpoints.

Proposals and their lifecycle: accept, reject, cancel and complete.
Completing a trade moves the stickers between the two collections.
"""

from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from stickerswap.api.deps import CurrentUser, Emitter, Store
from stickerswap.api.schemas import TradeResponse
from stickerswap.db.protocols import TradeRole
from stickerswap.models.trade import TradeStatus
from stickerswap.services import trades as trade_service

router = APIRouter(prefix="/trades", tags=["trades"])


class TradeCreateRequest(BaseModel):
    """Request model for proposing a trade."""

    receiver_id: str = Field(..., min_length=1)
    offered_sticker_ids: list[str] = Field(
        default_factory=list,
        description="Stickers you give; one unit per occurrence",
    )
    requested_sticker_ids: list[str] = Field(
        default_factory=list,
        description="Stickers you ask for; one unit per occurrence",
    )
    message: str | None = Field(default=None, max_length=500)


class TradeRejectRequest(BaseModel):
    response_message: str | None = Field(default=None, max_length=500)


class TransferResponse(BaseModel):
    sticker_id: str
    from_user_id: str
    to_user_id: str
    quantity: int


class TradeCompletedResponse(BaseModel):
    trade: TradeResponse
    transfers: list[TransferResponse]


class TradeListResponse(BaseModel):
    trades: list[TradeResponse]
    total: int


@router.get("", response_model=TradeListResponse)
async def list_trades(
    caller: CurrentUser,
    store: Store,
    role: Annotated[TradeRole, Query(alias="type")] = "all",
    trade_status: Annotated[TradeStatus | None, Query(alias="status")] = None,
) -> TradeListResponse:
    """Your trades, newest first. `type` selects sent, received or all."""
    trades = await trade_service.list_trades(store, caller, role=role, status=trade_status)
    return TradeListResponse(
        trades=[TradeResponse.from_model(t) for t in trades],
        total=len(trades),
    )


@router.get("/{trade_id}", response_model=TradeResponse)
async def get_trade(trade_id: str, caller: CurrentUser, store: Store) -> TradeResponse:
    trade = await trade_service.get_trade(store, trade_id, caller)
    return TradeResponse.from_model(trade)


@router.post("", response_model=TradeResponse, status_code=status.HTTP_201_CREATED)
async def create_trade(
    request: TradeCreateRequest,
    caller: CurrentUser,
    store: Store,
    emitter: Emitter,
) -> TradeResponse:
    """
    Propose a trade to another user.

    Every offered sticker must be in your collection marked for trade, and
    every requested sticker in theirs.
    """
    trade = await trade_service.create_trade(
        store,
        emitter,
        sender_id=caller,
        receiver_id=request.receiver_id,
        offered_sticker_ids=request.offered_sticker_ids,
        requested_sticker_ids=request.requested_sticker_ids,
        message=request.message,
    )
    return TradeResponse.from_model(trade)


@router.put("/{trade_id}/accept", response_model=TradeResponse)
async def accept_trade(
    trade_id: str, caller: CurrentUser, store: Store, emitter: Emitter
) -> TradeResponse:
    trade = await trade_service.accept_trade(store, emitter, trade_id, caller)
    return TradeResponse.from_model(trade)


@router.put("/{trade_id}/reject", response_model=TradeResponse)
async def reject_trade(
    trade_id: str,
    caller: CurrentUser,
    store: Store,
    emitter: Emitter,
    request: TradeRejectRequest | None = None,
) -> TradeResponse:
    trade = await trade_service.reject_trade(
        store,
        emitter,
        trade_id,
        caller,
        response_message=request.response_message if request else None,
    )
    return TradeResponse.from_model(trade)


@router.put("/{trade_id}/cancel", response_model=TradeResponse)
async def cancel_trade(trade_id: str, caller: CurrentUser, store: Store) -> TradeResponse:
    trade = await trade_service.cancel_trade(store, trade_id, caller)
    return TradeResponse.from_model(trade)


@router.put("/{trade_id}/complete", response_model=TradeCompletedResponse)
async def complete_trade(
    trade_id: str, caller: CurrentUser, store: Store, emitter: Emitter
) -> TradeCompletedResponse:
    """
    Mark an accepted trade as done and swap the stickers.

    Fails without changing anything if either side no longer has a sticker.
    """
    result = await trade_service.complete_trade(store, emitter, trade_id, caller)
    return TradeCompletedResponse(
        trade=TradeResponse.from_model(result.trade),
        transfers=[
            TransferResponse(
                sticker_id=t.sticker_id,
                from_user_id=t.from_user_id,
                to_user_id=t.to_user_id,
                quantity=t.quantity,
            )
            for t in result.transfers
        ],
    )
