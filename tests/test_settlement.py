"""Tests for trade completion and sticker settlement."""

import pytest

from stickerswap.models.failure import (
    NotFoundError,
    SettlementError,
    StateConflictError,
    StickerUnavailableError,
)
from stickerswap.models.notification import NotificationType
from stickerswap.models.trade import Trade, TradeLine, TradeStatus
from stickerswap.services.settlement import plan_transfers, settle_trade
from stickerswap.services.trades import accept_trade, complete_trade, create_trade


@pytest.fixture
def stocked(store):
    store.own("alice", "bra-2", quantity=2)
    store.want("alice", "bra-1")
    store.own("bob", "bra-1")
    store.want("bob", "bra-2")
    return store


async def _accepted_trade(store, emitter, offered=("bra-2",), requested=("bra-1",)):
    trade = await create_trade(
        store, emitter, "alice", "bob", list(offered), list(requested)
    )
    await accept_trade(store, emitter, trade.id, "bob")
    return trade


class TestPlanTransfers:
    def test_directions(self) -> None:
        """Offered stickers go sender -> receiver, requested ones come back."""
        trade = Trade(
            sender_id="a",
            receiver_id="b",
            lines=[
                TradeLine(offered_sticker_id="s1"),
                TradeLine(requested_sticker_id="s2", quantity=2),
            ],
        )

        transfers = plan_transfers(trade)

        assert [(t.sticker_id, t.from_user_id, t.to_user_id, t.quantity) for t in transfers] == [
            ("s1", "a", "b", 1),
            ("s2", "b", "a", 2),
        ]


class TestCompleteTrade:
    async def test_full_exchange(self, stocked, emitter) -> None:
        """Stickers change hands and fulfilled wishes disappear."""
        trade = await _accepted_trade(stocked, emitter)

        result = await complete_trade(stocked, emitter, trade.id, "alice")

        assert result.trade.status == TradeStatus.COMPLETED
        assert result.trade.completed_at is not None
        assert stocked.trades[trade.id].status == TradeStatus.COMPLETED
        assert len(result.transfers) == 2

        assert stocked.quantity("alice", "bra-2") == 1
        assert stocked.quantity("bob", "bra-2") == 1
        assert stocked.quantity("bob", "bra-1") == 0
        assert ("bob", "bra-1") not in stocked.owned
        assert stocked.quantity("alice", "bra-1") == 1

        assert ("alice", "bra-1") not in stocked.wanted
        assert ("bob", "bra-2") not in stocked.wanted

    async def test_units_are_conserved(self, stocked, emitter) -> None:
        before = {sid: stocked.total_units(sid) for sid in ("bra-1", "bra-2")}
        trade = await _accepted_trade(stocked, emitter)

        await complete_trade(stocked, emitter, trade.id, "bob")

        assert {sid: stocked.total_units(sid) for sid in ("bra-1", "bra-2")} == before

    async def test_received_sticker_is_tradable(self, stocked, emitter) -> None:
        trade = await _accepted_trade(stocked, emitter)

        await complete_trade(stocked, emitter, trade.id, "alice")

        assert stocked.owned[("alice", "bra-1")].for_trade is True

    async def test_taker_with_existing_entry_is_incremented(self, stocked, emitter) -> None:
        stocked.own("bob", "bra-2", quantity=1, for_trade=False)
        stocked.wanted.pop(("bob", "bra-2"))
        trade = await _accepted_trade(stocked, emitter)

        await complete_trade(stocked, emitter, trade.id, "alice")

        entry = stocked.owned[("bob", "bra-2")]
        assert entry.quantity == 2
        assert entry.for_trade is False

    async def test_notifies_other_party(self, stocked, emitter) -> None:
        trade = await _accepted_trade(stocked, emitter)

        await complete_trade(stocked, emitter, trade.id, "bob")

        notification = emitter.sent[-1]
        assert notification.type == NotificationType.TRADE_COMPLETED
        assert notification.user_id == "alice"
        assert "Bob" in notification.message

    async def test_second_completion_fails(self, stocked, emitter) -> None:
        """Completing is not repeatable; inventory moves once."""
        trade = await _accepted_trade(stocked, emitter)
        await complete_trade(stocked, emitter, trade.id, "alice")

        with pytest.raises(StateConflictError):
            await complete_trade(stocked, emitter, trade.id, "bob")

        assert stocked.quantity("alice", "bra-2") == 1
        assert stocked.quantity("bob", "bra-2") == 1

    async def test_pending_trade_cannot_complete(self, stocked, emitter) -> None:
        trade = await create_trade(stocked, emitter, "alice", "bob", ["bra-2"], ["bra-1"])

        with pytest.raises(StateConflictError):
            await complete_trade(stocked, emitter, trade.id, "alice")

        assert stocked.quantity("bob", "bra-1") == 1

    async def test_stranger_cannot_complete(self, stocked, emitter) -> None:
        trade = await _accepted_trade(stocked, emitter)

        with pytest.raises(NotFoundError):
            await complete_trade(stocked, emitter, trade.id, "carol")

    async def test_giver_lost_sticker_since_proposal(self, stocked, emitter) -> None:
        """Nothing moves and the trade stays ACCEPTED."""
        trade = await _accepted_trade(stocked, emitter)
        stocked.owned.pop(("bob", "bra-1"))

        with pytest.raises(StickerUnavailableError) as exc_info:
            await complete_trade(stocked, emitter, trade.id, "alice")

        assert exc_info.value.sticker_id == "bra-1"
        assert exc_info.value.message.endswith("from the other user")
        assert stocked.trades[trade.id].status == TradeStatus.ACCEPTED
        assert stocked.quantity("alice", "bra-2") == 2
        assert ("bob", "bra-2") not in stocked.owned

    async def test_caller_is_told_their_own_sticker_is_gone(self, stocked, emitter) -> None:
        """The missing sticker is described relative to whoever completes."""
        trade = await _accepted_trade(stocked, emitter)
        stocked.owned.pop(("bob", "bra-1"))

        with pytest.raises(StickerUnavailableError) as exc_info:
            await complete_trade(stocked, emitter, trade.id, "bob")

        assert exc_info.value.message == "Sticker bra-1 is not available for trade from you"

    async def test_storage_failure_rolls_back(self, stocked, emitter) -> None:
        """A write failing halfway leaves inventories and status as before."""
        trade = await _accepted_trade(stocked, emitter)
        owned_before = dict(stocked.owned)
        wanted_before = dict(stocked.wanted)
        stocked.failures["delete_wanted"] = RuntimeError("connection lost")

        with pytest.raises(SettlementError) as exc_info:
            await complete_trade(stocked, emitter, trade.id, "alice")

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "RuntimeError"
        assert stocked.trades[trade.id].status == TradeStatus.ACCEPTED
        assert stocked.owned == owned_before
        assert stocked.wanted == wanted_before
        assert emitter.sent[-1].type == NotificationType.TRADE_ACCEPTED

    async def test_retry_after_failure_succeeds(self, stocked, emitter) -> None:
        trade = await _accepted_trade(stocked, emitter)
        stocked.failures["save_owned"] = RuntimeError("timeout")
        with pytest.raises(SettlementError):
            await complete_trade(stocked, emitter, trade.id, "alice")

        stocked.failures.clear()
        result = await complete_trade(stocked, emitter, trade.id, "alice")

        assert result.trade.status == TradeStatus.COMPLETED


class TestSettleTrade:
    async def test_locks_trade_and_givers(self, stocked, emitter) -> None:
        """The trade and every giver entry are read with a row lock."""
        trade = await _accepted_trade(stocked, emitter)
        stocked.locked_reads = 0

        await settle_trade(stocked, trade.id)

        # trade + two givers during re-validation, then giver + taker per transfer
        assert stocked.locked_reads == 1 + 2 + 2 * 2

    async def test_missing_trade(self, stocked) -> None:
        with pytest.raises(NotFoundError):
            await settle_trade(stocked, "trade-404")

    async def test_one_sided_gift(self, stocked, emitter) -> None:
        trade = await _accepted_trade(stocked, emitter, requested=())

        result = await settle_trade(stocked, trade.id)

        assert len(result.transfers) == 1
        assert stocked.quantity("bob", "bra-2") == 1
        assert stocked.quantity("bob", "bra-1") == 1

    async def test_same_sticker_twice(self, stocked, emitter) -> None:
        """Two lines of one sticker move two units."""
        trade = await _accepted_trade(stocked, emitter, offered=("bra-2", "bra-2"), requested=())

        await settle_trade(stocked, trade.id)

        assert ("alice", "bra-2") not in stocked.owned
        assert stocked.quantity("bob", "bra-2") == 2
