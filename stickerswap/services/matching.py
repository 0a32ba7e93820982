"""
Trade matching engine.

Finds other users worth trading with, in two independent steps:

1. Who holds, for trade, a sticker the requester wants?  (candidates + can_offer)
2. Does each of them want a sticker the requester holds for trade?  (wants)

Candidates are ranked by `score_match`. Results are advisory: trade creation
re-checks live inventory, so matching reads need no locking.
"""

import logging
from collections.abc import Collection

from stickerswap.config import OFFER_WEIGHT, RECIPROCAL_WEIGHT
from stickerswap.db.protocols import InventoryStore, MarketplaceStore
from stickerswap.models.failure import FailureKind, KnownError, NotFoundError
from stickerswap.models.match import (
    Compatibility,
    CompatibleSticker,
    HoldersResult,
    MatchCandidate,
    MatchFilters,
    MatchResult,
    StickerHolder,
)
from stickerswap.models.sticker import Sticker

logger = logging.getLogger(__name__)

NO_WANTS_MESSAGE = "Your wanted list is empty. Add the stickers you need to find trades!"


def score_match(can_offer: Collection[Sticker], wants: Collection[Sticker]) -> int:
    """
    Rank a candidate.

    Every sticker the candidate can give counts once; every sticker the
    candidate wants back counts double. Strictly increasing in both sets,
    so a candidate offering a superset always outranks.
    """
    return OFFER_WEIGHT * len(can_offer) + RECIPROCAL_WEIGHT * len(wants)


def _ranking_key(candidate: MatchCandidate) -> tuple[int, str, str]:
    # Equal scores fall back to nickname, then id, never to storage order
    return (-candidate.match_score, candidate.user.nickname.casefold(), candidate.user.id)


async def find_offering_candidates(
    store: InventoryStore,
    user_id: str,
    wanted_ids: Collection[str],
    filters: MatchFilters,
) -> dict[str, MatchCandidate]:
    """
    Group other active users' tradable holdings of `wanted_ids` by owner.

    Returns:
        Candidates keyed by user id, with `can_offer` filled in (distinct
        stickers, album order) and no score yet.
    """
    holdings = await store.list_tradable_holders(
        wanted_ids,
        exclude_user_id=user_id,
        city=filters.city,
        state=filters.state,
    )

    candidates: dict[str, MatchCandidate] = {}
    for profile, entry in holdings:
        candidate = candidates.setdefault(profile.id, MatchCandidate(user=profile))
        if all(s.id != entry.sticker_id for s in candidate.can_offer):
            candidate.can_offer.append(entry.sticker)

    for candidate in candidates.values():
        candidate.can_offer.sort(key=lambda s: s.number)
    return candidates


async def load_reciprocal_wants(
    store: InventoryStore, candidate_id: str, tradable_ids: Collection[str]
) -> list[Sticker]:
    """Stickers in `tradable_ids` that the candidate has on their wanted list."""
    wanted = await store.list_wanted(candidate_id, sticker_ids=tradable_ids)
    return sorted((entry.sticker for entry in wanted), key=lambda s: s.number)


async def find_matches(
    store: InventoryStore, user_id: str, filters: MatchFilters | None = None
) -> MatchResult:
    """
    Find the best trade partners for a user.

    Never fails on "no results": an empty wanted list yields an empty
    result with an explanatory message.

    Args:
        store: Inventory access
        user_id: Requesting user
        filters: Album restriction, exact city/state of candidates, result limit

    Returns:
        Candidates with a positive score, best first, at most `filters.limit`
    """
    filters = filters or MatchFilters()
    if filters.limit < 1:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Match limit must be positive",
        )

    wanted = await store.list_wanted(user_id, album_id=filters.album_id)
    tradable = await store.list_owned(user_id, album_id=filters.album_id, for_trade_only=True)
    wanted_ids = {entry.sticker_id for entry in wanted}
    tradable_ids = {entry.sticker_id for entry in tradable if entry.is_tradable()}

    if not wanted_ids:
        return MatchResult(tradable_count=len(tradable_ids), message=NO_WANTS_MESSAGE)

    candidates = await find_offering_candidates(store, user_id, wanted_ids, filters)

    for candidate in candidates.values():
        if tradable_ids:
            candidate.wants = await load_reciprocal_wants(store, candidate.user.id, tradable_ids)
        candidate.match_score = score_match(candidate.can_offer, candidate.wants)

    ranked = sorted(
        (c for c in candidates.values() if c.match_score > 0),
        key=_ranking_key,
    )

    logger.debug(
        "User %s: %d candidates, returning %d", user_id, len(ranked), min(len(ranked), filters.limit)
    )

    return MatchResult(
        matches=ranked[: filters.limit],
        wanted_count=len(wanted_ids),
        tradable_count=len(tradable_ids),
    )


async def find_holders_of_sticker(
    store: MarketplaceStore,
    sticker_id: str,
    filters: MatchFilters | None = None,
    exclude_user_id: str | None = None,
) -> HoldersResult:
    """
    List who has a sticker available for trade.

    Independent of the requester's wanted list. Each holder carries their
    average received rating (0.0 when never rated). Largest quantity first.

    Raises:
        NotFoundError: If the sticker is not in the catalog
    """
    filters = filters or MatchFilters()

    sticker = await store.get_sticker(sticker_id)
    if sticker is None:
        raise NotFoundError("Sticker not found", detail=sticker_id)

    holdings = await store.list_tradable_holders(
        [sticker_id],
        exclude_user_id=exclude_user_id,
        city=filters.city,
        state=filters.state,
    )

    holders = [
        StickerHolder(
            user=profile,
            quantity=entry.quantity,
            for_sale=entry.for_sale,
            price=entry.price,
            rating=await store.average_rating(profile.id),
        )
        for profile, entry in holdings
    ]
    return HoldersResult(sticker=sticker, holders=holders)


async def find_compatible_with(
    store: MarketplaceStore, user_id: str, other_user_id: str
) -> Compatibility:
    """
    What two specific users can exchange.

    `i_can_offer` is my tradable stock that they want; `they_can_offer` is
    their tradable stock that I want.

    Raises:
        KnownError: If both ids are the same user
        NotFoundError: If the other user does not exist
    """
    if user_id == other_user_id:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Choose another user to compare with",
        )
    if await store.get_user(other_user_id) is None:
        raise NotFoundError("User not found", detail=other_user_id)

    return Compatibility(
        i_can_offer=await _tradable_wanted_by(store, owner_id=user_id, wanter_id=other_user_id),
        they_can_offer=await _tradable_wanted_by(store, owner_id=other_user_id, wanter_id=user_id),
    )


async def _tradable_wanted_by(
    store: InventoryStore, owner_id: str, wanter_id: str
) -> list[CompatibleSticker]:
    wanted_ids = {entry.sticker_id for entry in await store.list_wanted(wanter_id)}
    if not wanted_ids:
        return []

    owned = await store.list_owned(owner_id, sticker_ids=wanted_ids, for_trade_only=True)
    return [
        CompatibleSticker(sticker=entry.sticker, quantity=entry.quantity)
        for entry in owned
        if entry.is_tradable()
    ]
