"""
Trade settlement.

Moves every sticker of an accepted trade between the two inventories inside
a single store transaction:

- offered lines: sender -> receiver
- requested lines: receiver -> sender

The giver's entry is decremented (and deleted at zero); the taker's entry
is incremented or created with for_trade=True; the taker's wanted entry for
the sticker is removed. Units are only moved, so the total quantity of each
sticker across all users is unchanged.

INVARIANT: all-or-nothing. On any failure the transaction rolls back and the
trade stays ACCEPTED.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime

from stickerswap.db.protocols import InventoryStore, MarketplaceStore
from stickerswap.models.failure import (
    KnownError,
    NotFoundError,
    SettlementError,
    StateConflictError,
    StickerUnavailableError,
)
from stickerswap.models.inventory import OwnedEntry
from stickerswap.models.trade import Trade, TradeStatus

logger = logging.getLogger(__name__)


@dataclass
class Transfer:
    """Units of one sticker moved from one user to another."""

    sticker_id: str
    from_user_id: str
    to_user_id: str
    quantity: int = 1


@dataclass
class SettlementResult:
    trade: Trade
    transfers: list[Transfer] = field(default_factory=list)


def plan_transfers(trade: Trade) -> list[Transfer]:
    """Turn trade lines into directed transfers."""
    transfers: list[Transfer] = []
    for line in trade.lines:
        if line.is_offer:
            giver, taker = trade.sender_id, trade.receiver_id
        else:
            giver, taker = trade.receiver_id, trade.sender_id
        transfers.append(Transfer(line.sticker_id, giver, taker, line.quantity))
    return transfers


def _owner_label(giver_id: str, caller_id: str | None) -> str:
    if caller_id is None:
        return "its owner"
    return "you" if giver_id == caller_id else "the other user"


async def _revalidate(
    store: InventoryStore, transfers: list[Transfer], caller_id: str | None
) -> None:
    """
    Check that every giver still holds enough units.

    Inventory may have changed since the trade was proposed; settling
    anyway would drive a quantity below zero.
    """
    needed: Counter[tuple[str, str]] = Counter()
    for transfer in transfers:
        needed[(transfer.from_user_id, transfer.sticker_id)] += transfer.quantity

    for (giver_id, sticker_id), quantity in needed.items():
        entry = await store.get_owned(giver_id, sticker_id, for_update=True)
        if entry is None or entry.quantity < quantity:
            code = entry.sticker.code if entry else None
            raise StickerUnavailableError(sticker_id, _owner_label(giver_id, caller_id), code=code)


async def _move(store: InventoryStore, transfer: Transfer) -> None:
    giver = await store.get_owned(transfer.from_user_id, transfer.sticker_id, for_update=True)
    if giver is None or giver.quantity < transfer.quantity:
        # Re-validated above; reaching this means the store changed under the lock
        raise StickerUnavailableError(transfer.sticker_id, "its owner")

    if giver.quantity == transfer.quantity:
        await store.delete_owned(transfer.from_user_id, transfer.sticker_id)
    else:
        giver.quantity -= transfer.quantity
        await store.save_owned(giver)

    taker = await store.get_owned(transfer.to_user_id, transfer.sticker_id, for_update=True)
    if taker is None:
        taker = OwnedEntry(
            user_id=transfer.to_user_id,
            sticker=giver.sticker,
            quantity=transfer.quantity,
            for_trade=True,
        )
    else:
        taker.quantity += transfer.quantity
    await store.save_owned(taker)

    await store.delete_wanted(transfer.to_user_id, transfer.sticker_id)


async def settle_trade(
    store: MarketplaceStore, trade_id: str, caller_id: str | None = None
) -> SettlementResult:
    """
    Complete an accepted trade and transfer its stickers atomically.

    Args:
        store: Marketplace storage
        trade_id: Trade to settle
        caller_id: Party completing the trade; unavailable stickers are
            described relative to them

    Returns:
        The completed trade and the transfers applied

    Raises:
        NotFoundError: If the trade disappeared
        StateConflictError: If the trade is no longer ACCEPTED
        StickerUnavailableError: If a giver no longer holds a sticker
        SettlementError: On any storage failure; nothing was applied
    """
    try:
        async with store.transaction():
            trade = await store.get_trade(trade_id, for_update=True)
            if trade is None:
                raise NotFoundError("Trade not found", detail=trade_id)
            if trade.status != TradeStatus.ACCEPTED:
                raise StateConflictError(
                    "Only accepted trades can be completed", detail=trade_id
                )

            transfers = plan_transfers(trade)
            await _revalidate(store, transfers, caller_id)

            trade.transition_to(TradeStatus.COMPLETED)
            trade.completed_at = datetime.now(UTC)
            await store.save_trade(trade)

            for transfer in transfers:
                await _move(store, transfer)
    except KnownError:
        raise
    except Exception as e:
        logger.exception("Settlement of trade %s failed", trade_id)
        raise SettlementError(trade_id, detail=type(e).__name__) from e

    logger.info("Settled trade %s: %d transfers", trade_id, len(transfers))
    return SettlementResult(trade=trade, transfers=transfers)
