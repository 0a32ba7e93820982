"""
Trade proposals and their lifecycle operations.

Who may do what:
- create: the sender
- accept / reject: the receiver, while PENDING
- cancel: the sender, while PENDING
- complete: either party, while ACCEPTED (runs settlement)

A caller who is not allowed to act on a trade gets the same error as for an
unknown trade id, so the existence of other people's trades never leaks.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from typing import Literal

from stickerswap.db.protocols import MarketplaceStore, TradeRole
from stickerswap.models.failure import (
    FailureKind,
    KnownError,
    NotFoundError,
    StateConflictError,
    StickerUnavailableError,
)
from stickerswap.models.trade import Trade, TradeLine, TradeStatus
from stickerswap.models.user import UserProfile
from stickerswap.services import notifications
from stickerswap.services.notifications import NotificationEmitter, notify
from stickerswap.services.settlement import SettlementResult, settle_trade

logger = logging.getLogger(__name__)

TRADE_NOT_FOUND = "Trade not found or you do not have permission"

Actor = Literal["sender", "receiver", "party"]


async def _require_active_user(store: MarketplaceStore, user_id: str) -> UserProfile:
    user = await store.get_user(user_id)
    if user is None or not user.is_active:
        raise NotFoundError("User not found", detail=user_id)
    return user


async def _load_for(
    store: MarketplaceStore,
    trade_id: str,
    caller_id: str,
    actor: Actor,
    *,
    for_update: bool = False,
) -> Trade:
    trade = await store.get_trade(trade_id, for_update=for_update)
    if trade is None:
        raise NotFoundError(TRADE_NOT_FOUND, detail=trade_id)

    allowed = {
        "sender": caller_id == trade.sender_id,
        "receiver": caller_id == trade.receiver_id,
        "party": trade.is_party(caller_id),
    }[actor]
    if not allowed:
        raise NotFoundError(TRADE_NOT_FOUND, detail=trade_id)
    return trade


async def _validate_availability(
    store: MarketplaceStore,
    owner_id: str,
    sticker_ids: Sequence[str],
    owner_label: str,
) -> None:
    """Every sticker must be held for trade, with one unit per occurrence."""
    for sticker_id, count in Counter(sticker_ids).items():
        entry = await store.get_owned(owner_id, sticker_id)
        if entry is None or not entry.is_tradable(count):
            code = entry.sticker.code if entry else None
            raise StickerUnavailableError(sticker_id, owner_label, code=code)


async def create_trade(
    store: MarketplaceStore,
    emitter: NotificationEmitter,
    sender_id: str,
    receiver_id: str,
    offered_sticker_ids: Sequence[str],
    requested_sticker_ids: Sequence[str],
    message: str | None = None,
) -> Trade:
    """
    Propose a trade.

    Availability is checked against live inventory, sticker by sticker.
    The receiver is notified once the trade is stored.

    Raises:
        KnownError: Self-trade or a proposal with no stickers at all
        NotFoundError: Sender or receiver missing or inactive
        StickerUnavailableError: A sticker is not available from its owner
    """
    if sender_id == receiver_id:
        raise KnownError(
            kind=FailureKind.SELF_TRADE,
            message="You cannot propose a trade with yourself",
        )
    if not offered_sticker_ids and not requested_sticker_ids:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="A trade must include at least one sticker",
        )

    sender = await _require_active_user(store, sender_id)
    await _require_active_user(store, receiver_id)

    await _validate_availability(store, sender_id, offered_sticker_ids, "you")
    await _validate_availability(store, receiver_id, requested_sticker_ids, "the other user")

    lines = [TradeLine(offered_sticker_id=sid) for sid in offered_sticker_ids] + [
        TradeLine(requested_sticker_id=sid) for sid in requested_sticker_ids
    ]

    async with store.transaction():
        trade = await store.add_trade(
            Trade(sender_id=sender_id, receiver_id=receiver_id, lines=lines, message=message)
        )

    logger.info(
        "Trade %s proposed by %s to %s (%d lines)", trade.id, sender_id, receiver_id, len(lines)
    )
    await notify(emitter, notifications.trade_received(trade, sender.nickname))
    return trade


async def accept_trade(
    store: MarketplaceStore, emitter: NotificationEmitter, trade_id: str, caller_id: str
) -> Trade:
    """
    Receiver accepts a pending trade; the sender is notified.

    The trade is read under a row lock inside the transaction, so a
    concurrent cancel or reject is seen before the status is written.
    """
    async with store.transaction():
        trade = await _load_for(store, trade_id, caller_id, "receiver", for_update=True)
        receiver = await _require_active_user(store, caller_id)
        trade.transition_to(TradeStatus.ACCEPTED)
        await store.save_trade(trade)

    logger.info("Trade %s accepted", trade_id)
    await notify(emitter, notifications.trade_accepted(trade, receiver.nickname))
    return trade


async def reject_trade(
    store: MarketplaceStore,
    emitter: NotificationEmitter,
    trade_id: str,
    caller_id: str,
    response_message: str | None = None,
) -> Trade:
    """Receiver rejects a pending trade with an optional reply."""
    async with store.transaction():
        trade = await _load_for(store, trade_id, caller_id, "receiver", for_update=True)
        receiver = await _require_active_user(store, caller_id)
        trade.transition_to(TradeStatus.REJECTED)
        trade.response_message = response_message
        await store.save_trade(trade)

    logger.info("Trade %s rejected", trade_id)
    await notify(emitter, notifications.trade_rejected(trade, receiver.nickname))
    return trade


async def cancel_trade(store: MarketplaceStore, trade_id: str, caller_id: str) -> Trade:
    """Sender withdraws a pending trade. Nobody is notified."""
    async with store.transaction():
        trade = await _load_for(store, trade_id, caller_id, "sender", for_update=True)
        trade.transition_to(TradeStatus.CANCELLED)
        await store.save_trade(trade)

    logger.info("Trade %s cancelled", trade_id)
    return trade


async def complete_trade(
    store: MarketplaceStore, emitter: NotificationEmitter, trade_id: str, caller_id: str
) -> SettlementResult:
    """
    Either party marks an accepted trade as done; stickers change hands.

    The status check is repeated inside the settlement transaction, so of
    two concurrent completions only one settles.
    """
    trade = await _load_for(store, trade_id, caller_id, "party")
    actor = await _require_active_user(store, caller_id)
    if trade.status != TradeStatus.ACCEPTED:
        raise StateConflictError("Only accepted trades can be completed", detail=trade_id)

    result = await settle_trade(store, trade_id, caller_id)

    await notify(emitter, notifications.trade_completed(result.trade, caller_id, actor.nickname))
    return result


async def get_trade(store: MarketplaceStore, trade_id: str, caller_id: str) -> Trade:
    """A trade, visible to its two parties only."""
    return await _load_for(store, trade_id, caller_id, "party")


async def list_trades(
    store: MarketplaceStore,
    caller_id: str,
    role: TradeRole = "all",
    status: TradeStatus | None = None,
) -> list[Trade]:
    """The caller's trades, newest first."""
    return await store.list_trades(caller_id, role=role, status=status)
