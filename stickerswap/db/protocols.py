"""
Storage contracts used by the trading core.

Services depend on these Protocols, never on SQLAlchemy. The SQL
implementation lives in `stickerswap.db.store`; tests provide an in-memory
one with the same operations.

Conventions:
    - `sticker_ids=None` means "no restriction"; an empty collection matches nothing
    - Writes become durable only when the enclosing `transaction()` exits cleanly
    - `for_update=True` asks the backend to lock the row until the transaction ends
"""

from collections.abc import Collection
from contextlib import AbstractAsyncContextManager
from typing import Literal, Protocol

from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.rating import Rating
from stickerswap.models.sticker import Sticker
from stickerswap.models.trade import Trade, TradeStatus
from stickerswap.models.user import UserProfile

TradeRole = Literal["all", "sent", "received"]


class UserDirectory(Protocol):
    """Contract for user lookups and ratings."""

    async def get_user(self, user_id: str) -> UserProfile | None: ...

    async def average_rating(self, user_id: str) -> float: ...

    async def get_trade_rating(self, trade_id: str, rater_id: str) -> Rating | None: ...

    async def add_rating(self, rating: Rating) -> Rating: ...


class InventoryStore(Protocol):
    """Contract for catalog reads and owned/wanted persistence."""

    async def get_sticker(self, sticker_id: str) -> Sticker | None: ...

    async def get_owned(
        self, user_id: str, sticker_id: str, *, for_update: bool = False
    ) -> OwnedEntry | None: ...

    async def list_owned(
        self,
        user_id: str,
        *,
        album_id: str | None = None,
        sticker_ids: Collection[str] | None = None,
        for_trade_only: bool = False,
        for_sale_only: bool = False,
    ) -> list[OwnedEntry]: ...

    async def list_tradable_holders(
        self,
        sticker_ids: Collection[str],
        *,
        exclude_user_id: str | None = None,
        city: str | None = None,
        state: str | None = None,
    ) -> list[tuple[UserProfile, OwnedEntry]]: ...

    async def save_owned(self, entry: OwnedEntry) -> OwnedEntry: ...

    async def delete_owned(self, user_id: str, sticker_id: str) -> bool: ...

    async def get_wanted(self, user_id: str, sticker_id: str) -> WantedEntry | None: ...

    async def list_wanted(
        self,
        user_id: str,
        *,
        album_id: str | None = None,
        sticker_ids: Collection[str] | None = None,
    ) -> list[WantedEntry]: ...

    async def save_wanted(self, entry: WantedEntry) -> WantedEntry: ...

    async def delete_wanted(self, user_id: str, sticker_id: str) -> bool: ...


class TradeStore(Protocol):
    """Contract for trade persistence."""

    async def add_trade(self, trade: Trade) -> Trade: ...

    async def get_trade(self, trade_id: str, *, for_update: bool = False) -> Trade | None: ...

    async def save_trade(self, trade: Trade) -> None: ...

    async def list_trades(
        self,
        user_id: str,
        *,
        role: TradeRole = "all",
        status: TradeStatus | None = None,
    ) -> list[Trade]: ...


class MarketplaceStore(UserDirectory, InventoryStore, TradeStore, Protocol):
    """Everything the core needs, plus an all-or-nothing write scope."""

    def transaction(self) -> AbstractAsyncContextManager[None]: ...
