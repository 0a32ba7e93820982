"""
Post-trade ratings.

Either party of a COMPLETED trade may score the other once, from 1 to 5.
The rated user is notified. Averages feed the holder listings of the
matching service.
"""

import logging

from stickerswap.db.protocols import MarketplaceStore
from stickerswap.models.failure import (
    FailureKind,
    KnownError,
    NotFoundError,
    StateConflictError,
)
from stickerswap.models.rating import MAX_SCORE, MIN_SCORE, Rating
from stickerswap.models.trade import TradeStatus
from stickerswap.services import notifications
from stickerswap.services.notifications import NotificationEmitter, notify
from stickerswap.services.trades import TRADE_NOT_FOUND

logger = logging.getLogger(__name__)


async def rate_user(
    store: MarketplaceStore,
    emitter: NotificationEmitter,
    rater_id: str,
    rated_id: str,
    trade_id: str,
    score: int,
    comment: str | None = None,
) -> Rating:
    """
    Score the other party of a completed trade.

    Raises:
        KnownError: Self-rating, a score outside 1..5, or a second rating
            for the same trade
        NotFoundError: Either user is unknown, or the trade is unknown or
            not between the two users
        StateConflictError: The trade is not COMPLETED
    """
    if rater_id == rated_id:
        raise KnownError(
            kind=FailureKind.SELF_RATING,
            message="You cannot rate yourself",
        )
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message=f"Score must be between {MIN_SCORE} and {MAX_SCORE}",
            detail=str(score),
        )

    rater = await store.get_user(rater_id)
    if rater is None or not rater.is_active:
        raise NotFoundError("User not found", detail=rater_id)
    if await store.get_user(rated_id) is None:
        raise NotFoundError("User not found", detail=rated_id)

    trade = await store.get_trade(trade_id)
    if trade is None or not (trade.is_party(rater_id) and trade.is_party(rated_id)):
        raise NotFoundError(TRADE_NOT_FOUND, detail=trade_id)
    if trade.status != TradeStatus.COMPLETED:
        raise StateConflictError("Only completed trades can be rated", detail=trade_id)

    async with store.transaction():
        if await store.get_trade_rating(trade_id, rater_id) is not None:
            raise KnownError(
                kind=FailureKind.ALREADY_RATED,
                message="You already rated this user for this trade",
                detail=trade_id,
            )
        rating = await store.add_rating(
            Rating(
                rater_id=rater_id,
                rated_id=rated_id,
                trade_id=trade_id,
                score=score,
                comment=comment,
            )
        )

    logger.info("User %s rated %s %d for trade %s", rater_id, rated_id, score, trade_id)
    await notify(emitter, notifications.new_rating(rating, rater.nickname))
    return rating
