import copy
from collections import defaultdict
from collections.abc import AsyncIterator, Collection
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from stickerswap.db.protocols import TradeRole
from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.notification import Notification
from stickerswap.models.rating import Rating
from stickerswap.models.sticker import Rarity, Section, Sticker
from stickerswap.models.trade import Trade, TradeStatus
from stickerswap.models.user import UserProfile

ALBUM = "wc-2026"
OTHER_ALBUM = "club-2025"

BRAZIL = Section(id="sec-bra", name="Brazil", code="BRA")
ARGENTINA = Section(id="sec-arg", name="Argentina", code="ARG")


class InMemoryStore:
    """
    MarketplaceStore kept in dicts.

    Reads return copies, so callers only change state through save/delete,
    as with the SQL store. `transaction()` snapshots every table and puts it
    back on error. Set `failures["save_owned"] = SomeError()` to make a
    write method raise.
    """

    def __init__(self) -> None:
        self.users: dict[str, UserProfile] = {}
        self.stickers: dict[str, Sticker] = {}
        self.owned: dict[tuple[str, str], OwnedEntry] = {}
        self.wanted: dict[tuple[str, str], WantedEntry] = {}
        self.trades: dict[str, Trade] = {}
        self.ratings: dict[str, list[int]] = defaultdict(list)
        self.rating_log: list[Rating] = []
        self.failures: dict[str, Exception] = {}
        self.locked_reads = 0
        self.commits = 0
        self._seq = 0

    # --- seeding helpers ---

    def add_user(self, user_id: str, city: str | None = None, state: str | None = None,
                 is_active: bool = True, nickname: str | None = None) -> UserProfile:
        user = UserProfile(
            id=user_id,
            nickname=nickname or user_id.capitalize(),
            city=city,
            state=state,
            is_active=is_active,
        )
        self.users[user_id] = user
        return user

    def add_sticker(self, sticker_id: str, number: int, album_id: str = ALBUM,
                    section: Section = BRAZIL) -> Sticker:
        sticker = Sticker(
            id=sticker_id,
            album_id=album_id,
            section=section,
            code=f"{section.code} {number}",
            name=f"Player {number}",
            number=number,
            rarity=Rarity.COMMON,
        )
        self.stickers[sticker_id] = sticker
        return sticker

    def own(self, user_id: str, sticker_id: str, quantity: int = 1, for_trade: bool = True,
            for_sale: bool = False) -> None:
        self.owned[(user_id, sticker_id)] = OwnedEntry(
            user_id=user_id,
            sticker=self.stickers[sticker_id],
            quantity=quantity,
            for_trade=for_trade,
            for_sale=for_sale,
        )

    def want(self, user_id: str, sticker_id: str, priority: int = 1) -> None:
        self.wanted[(user_id, sticker_id)] = WantedEntry(
            user_id=user_id, sticker=self.stickers[sticker_id], priority=priority
        )

    def quantity(self, user_id: str, sticker_id: str) -> int:
        entry = self.owned.get((user_id, sticker_id))
        return entry.quantity if entry else 0

    def total_units(self, sticker_id: str) -> int:
        return sum(e.quantity for (_, sid), e in self.owned.items() if sid == sticker_id)

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    # --- MarketplaceStore ---

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        snapshot = copy.deepcopy(
            (self.owned, self.wanted, self.trades, self.ratings, self.rating_log)
        )
        try:
            yield
        except BaseException:
            self.owned, self.wanted, self.trades, self.ratings, self.rating_log = snapshot
            raise
        self.commits += 1

    async def get_user(self, user_id: str) -> UserProfile | None:
        return self.users.get(user_id)

    async def average_rating(self, user_id: str) -> float:
        scores = self.ratings.get(user_id)
        return sum(scores) / len(scores) if scores else 0.0

    async def get_trade_rating(self, trade_id: str, rater_id: str) -> Rating | None:
        for rating in self.rating_log:
            if rating.trade_id == trade_id and rating.rater_id == rater_id:
                return rating
        return None

    async def add_rating(self, rating: Rating) -> Rating:
        self._maybe_fail("add_rating")
        stored = replace(
            rating,
            id=f"rating-{len(self.rating_log) + 1}",
            created_at=datetime(2026, 7, 1, tzinfo=UTC),
        )
        self.rating_log.append(stored)
        self.ratings[rating.rated_id].append(rating.score)
        return stored

    async def get_sticker(self, sticker_id: str) -> Sticker | None:
        return self.stickers.get(sticker_id)

    async def get_owned(self, user_id: str, sticker_id: str, *,
                        for_update: bool = False) -> OwnedEntry | None:
        if for_update:
            self.locked_reads += 1
        entry = self.owned.get((user_id, sticker_id))
        return replace(entry) if entry else None

    async def list_owned(self, user_id: str, *, album_id: str | None = None,
                         sticker_ids: Collection[str] | None = None,
                         for_trade_only: bool = False,
                         for_sale_only: bool = False) -> list[OwnedEntry]:
        entries = [
            replace(e)
            for (uid, sid), e in self.owned.items()
            if uid == user_id
            and (album_id is None or e.sticker.album_id == album_id)
            and (sticker_ids is None or sid in sticker_ids)
            and (not for_trade_only or e.for_trade)
            and (not for_sale_only or e.for_sale)
        ]
        return sorted(entries, key=lambda e: e.sticker.number)

    async def list_tradable_holders(self, sticker_ids: Collection[str], *,
                                    exclude_user_id: str | None = None,
                                    city: str | None = None,
                                    state: str | None = None,
                                    ) -> list[tuple[UserProfile, OwnedEntry]]:
        rows = []
        for (uid, sid), entry in self.owned.items():
            user = self.users[uid]
            if (
                sid in sticker_ids
                and entry.for_trade
                and entry.quantity > 0
                and user.is_active
                and uid != exclude_user_id
                and (city is None or user.city == city)
                and (state is None or user.state == state)
            ):
                rows.append((user, replace(entry)))
        return sorted(rows, key=lambda r: (-r[1].quantity, r[1].sticker.number))

    async def save_owned(self, entry: OwnedEntry) -> OwnedEntry:
        self._maybe_fail("save_owned")
        self.owned[(entry.user_id, entry.sticker_id)] = replace(entry)
        return replace(entry)

    async def delete_owned(self, user_id: str, sticker_id: str) -> bool:
        self._maybe_fail("delete_owned")
        return self.owned.pop((user_id, sticker_id), None) is not None

    async def get_wanted(self, user_id: str, sticker_id: str) -> WantedEntry | None:
        entry = self.wanted.get((user_id, sticker_id))
        return replace(entry) if entry else None

    async def list_wanted(self, user_id: str, *, album_id: str | None = None,
                          sticker_ids: Collection[str] | None = None) -> list[WantedEntry]:
        entries = [
            replace(e)
            for (uid, sid), e in self.wanted.items()
            if uid == user_id
            and (album_id is None or e.sticker.album_id == album_id)
            and (sticker_ids is None or sid in sticker_ids)
        ]
        return sorted(entries, key=lambda e: (-e.priority, e.sticker.number))

    async def save_wanted(self, entry: WantedEntry) -> WantedEntry:
        self._maybe_fail("save_wanted")
        self.wanted[(entry.user_id, entry.sticker_id)] = replace(entry)
        return replace(entry)

    async def delete_wanted(self, user_id: str, sticker_id: str) -> bool:
        self._maybe_fail("delete_wanted")
        return self.wanted.pop((user_id, sticker_id), None) is not None

    async def add_trade(self, trade: Trade) -> Trade:
        self._maybe_fail("add_trade")
        self._seq += 1
        stored = copy.deepcopy(trade)
        stored.id = f"trade-{self._seq}"
        stored.created_at = datetime(2026, 6, 1, tzinfo=UTC) + timedelta(minutes=self._seq)
        self.trades[stored.id] = stored
        return copy.deepcopy(stored)

    async def get_trade(self, trade_id: str, *, for_update: bool = False) -> Trade | None:
        if for_update:
            self.locked_reads += 1
        trade = self.trades.get(trade_id)
        return copy.deepcopy(trade) if trade else None

    async def save_trade(self, trade: Trade) -> None:
        self._maybe_fail("save_trade")
        assert trade.id in self.trades
        self.trades[trade.id] = copy.deepcopy(trade)

    async def list_trades(self, user_id: str, *, role: TradeRole = "all",
                          status: TradeStatus | None = None) -> list[Trade]:
        def matches_role(t: Trade) -> bool:
            if role == "sent":
                return t.sender_id == user_id
            if role == "received":
                return t.receiver_id == user_id
            return t.is_party(user_id)

        trades = [
            copy.deepcopy(t)
            for t in self.trades.values()
            if matches_role(t) and (status is None or t.status == status)
        ]
        return sorted(trades, key=lambda t: t.created_at, reverse=True)


class RecordingEmitter:
    """Collects notifications instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def emit(self, notification: Notification) -> None:
        self.sent.append(notification)


class FailingEmitter:
    async def emit(self, notification: Notification) -> None:
        raise ConnectionError("notification backend down")


@pytest.fixture
def store() -> InMemoryStore:
    """
    A small marketplace.

    Users: alice and bob in Sao Paulo/SP, carol in Rio de Janeiro/RJ,
    dave inactive. Catalog: bra-1..bra-6 (numbers 1-6) and arg-1 (number 20)
    in the main album, club-1 in another album. No holdings yet.
    """
    s = InMemoryStore()
    s.add_user("alice", city="Sao Paulo", state="SP")
    s.add_user("bob", city="Sao Paulo", state="SP")
    s.add_user("carol", city="Rio de Janeiro", state="RJ")
    s.add_user("dave", city="Sao Paulo", state="SP", is_active=False)
    for n in range(1, 7):
        s.add_sticker(f"bra-{n}", n)
    s.add_sticker("arg-1", 20, section=ARGENTINA)
    s.add_sticker("club-1", 1, album_id=OTHER_ALBUM)
    return s


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def failing_emitter() -> FailingEmitter:
    return FailingEmitter()
