"""
Owned and wanted sticker management.

INVARIANT: a user never has both an owned entry and a wanted entry for the
same sticker. Acquiring a sticker clears the wish; wishing for a sticker
already owned is refused.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Literal

from stickerswap.db.protocols import MarketplaceStore
from stickerswap.models.failure import FailureKind, KnownError, NotFoundError
from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.sticker import Sticker

logger = logging.getLogger(__name__)

BulkKind = Literal["owned", "wanted"]


async def _require_sticker(store: MarketplaceStore, sticker_id: str) -> Sticker:
    sticker = await store.get_sticker(sticker_id)
    if sticker is None:
        raise NotFoundError("Sticker not found", detail=sticker_id)
    return sticker


def _check_quantity(quantity: int, allow_zero: bool = False) -> None:
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Quantity must be positive",
        )


async def list_owned_stickers(
    store: MarketplaceStore,
    user_id: str,
    album_id: str | None = None,
    for_trade_only: bool = False,
    for_sale_only: bool = False,
) -> list[OwnedEntry]:
    return await store.list_owned(
        user_id,
        album_id=album_id,
        for_trade_only=for_trade_only,
        for_sale_only=for_sale_only,
    )


async def add_owned_sticker(
    store: MarketplaceStore,
    user_id: str,
    sticker_id: str,
    quantity: int = 1,
    for_trade: bool = True,
    for_sale: bool = False,
    price: Decimal | None = None,
) -> OwnedEntry:
    """
    Add units of a sticker to a user's collection.

    An existing entry gets the quantity added and its flags replaced.
    A new entry also removes the sticker from the wanted list.
    """
    _check_quantity(quantity)
    sticker = await _require_sticker(store, sticker_id)

    async with store.transaction():
        entry = await store.get_owned(user_id, sticker_id)
        if entry is None:
            entry = OwnedEntry(user_id=user_id, sticker=sticker, quantity=0)
        entry.quantity += quantity
        entry.for_trade = for_trade
        entry.for_sale = for_sale
        entry.price = price
        saved = await store.save_owned(entry)
        await store.delete_wanted(user_id, sticker_id)

    return saved


async def update_owned_sticker(
    store: MarketplaceStore,
    user_id: str,
    sticker_id: str,
    quantity: int | None = None,
    for_trade: bool | None = None,
    for_sale: bool | None = None,
    price: Decimal | None = None,
    clear_price: bool = False,
) -> OwnedEntry | None:
    """
    Change an owned entry in place.

    Setting quantity to 0 removes the entry; None is returned in that case.
    A price of None leaves the stored price alone; clear_price removes it.

    Raises:
        KnownError: A new price and clear_price given together
        NotFoundError: If the user does not own the sticker
    """
    if quantity is not None:
        _check_quantity(quantity, allow_zero=True)
    if clear_price and price is not None:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Set a new price or clear it, not both",
        )

    async with store.transaction():
        entry = await store.get_owned(user_id, sticker_id)
        if entry is None:
            raise NotFoundError("Sticker not found in your collection", detail=sticker_id)

        if quantity == 0:
            await store.delete_owned(user_id, sticker_id)
            return None

        if quantity is not None:
            entry.quantity = quantity
        if for_trade is not None:
            entry.for_trade = for_trade
        if for_sale is not None:
            entry.for_sale = for_sale
        if price is not None:
            entry.price = price
        elif clear_price:
            entry.price = None
        return await store.save_owned(entry)


async def remove_owned_sticker(store: MarketplaceStore, user_id: str, sticker_id: str) -> None:
    """
    Remove a sticker from a user's collection.

    Raises:
        NotFoundError: If the user does not own the sticker
    """
    async with store.transaction():
        if not await store.delete_owned(user_id, sticker_id):
            raise NotFoundError("Sticker not found in your collection", detail=sticker_id)


async def list_wanted_stickers(
    store: MarketplaceStore, user_id: str, album_id: str | None = None
) -> list[WantedEntry]:
    return await store.list_wanted(user_id, album_id=album_id)


async def add_wanted_sticker(
    store: MarketplaceStore, user_id: str, sticker_id: str, priority: int = 1
) -> WantedEntry:
    """
    Put a sticker on a user's wanted list.

    Raises:
        NotFoundError: If the sticker is not in the catalog
        KnownError: If the sticker is already owned or already wanted
    """
    sticker = await _require_sticker(store, sticker_id)

    if await store.get_owned(user_id, sticker_id) is not None:
        raise KnownError(
            kind=FailureKind.ALREADY_OWNED,
            message="You already have this sticker in your collection",
            detail=sticker_id,
        )
    if await store.get_wanted(user_id, sticker_id) is not None:
        raise KnownError(
            kind=FailureKind.ALREADY_WANTED,
            message="Sticker is already on your wanted list",
            detail=sticker_id,
        )

    async with store.transaction():
        return await store.save_wanted(
            WantedEntry(user_id=user_id, sticker=sticker, priority=priority)
        )


async def remove_wanted_sticker(store: MarketplaceStore, user_id: str, sticker_id: str) -> None:
    """
    Take a sticker off a user's wanted list.

    Raises:
        NotFoundError: If the sticker is not on the list
    """
    async with store.transaction():
        if not await store.delete_wanted(user_id, sticker_id):
            raise NotFoundError("Sticker not found in your wanted list", detail=sticker_id)


async def bulk_add(
    store: MarketplaceStore,
    user_id: str,
    sticker_ids: Sequence[str],
    kind: BulkKind,
) -> int:
    """
    Add many stickers at once, one unit each.

    "owned" increments or creates entries and clears the matching wishes.
    "wanted" skips stickers the user already owns or already wants.
    Unknown sticker ids are skipped.

    Returns:
        Number of entries created or updated
    """
    if not sticker_ids:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Sticker list cannot be empty",
        )

    touched = 0
    async with store.transaction():
        for sticker_id in dict.fromkeys(sticker_ids):
            sticker = await store.get_sticker(sticker_id)
            if sticker is None:
                logger.debug("Skipping unknown sticker %s in bulk add", sticker_id)
                continue

            owned = await store.get_owned(user_id, sticker_id)
            if kind == "owned":
                if owned is None:
                    owned = OwnedEntry(user_id=user_id, sticker=sticker, quantity=0)
                owned.quantity += 1
                await store.save_owned(owned)
                await store.delete_wanted(user_id, sticker_id)
                touched += 1
            elif owned is None and await store.get_wanted(user_id, sticker_id) is None:
                await store.save_wanted(WantedEntry(user_id=user_id, sticker=sticker))
                touched += 1

    logger.info("Bulk-added %d %s stickers for user %s", touched, kind, user_id)
    return touched
