"""
Trade and rating notifications.

Notifications are fire-and-forget: they are sent after the triggering
operation committed, and a failing emitter is logged, never raised.
"""

import logging
from typing import Protocol

from stickerswap.models.notification import Notification, NotificationType
from stickerswap.models.rating import Rating
from stickerswap.models.trade import Trade

logger = logging.getLogger(__name__)


class NotificationEmitter(Protocol):
    """Contract for delivering a notification to one user."""

    async def emit(self, notification: Notification) -> None: ...


async def notify(emitter: NotificationEmitter, notification: Notification) -> None:
    """Send a notification, logging instead of raising on failure."""
    try:
        await emitter.emit(notification)
    except Exception:
        logger.warning(
            "Failed to deliver %s notification to user %s",
            notification.type.value,
            notification.user_id,
            exc_info=True,
        )


def trade_received(trade: Trade, sender_nickname: str) -> Notification:
    return Notification(
        user_id=trade.receiver_id,
        type=NotificationType.TRADE_RECEIVED,
        title="New trade proposal!",
        message=f"{sender_nickname} wants to trade stickers with you",
        data={"trade_id": trade.id},
    )


def trade_accepted(trade: Trade, receiver_nickname: str) -> Notification:
    return Notification(
        user_id=trade.sender_id,
        type=NotificationType.TRADE_ACCEPTED,
        title="Trade accepted!",
        message=f"{receiver_nickname} accepted your trade proposal",
        data={"trade_id": trade.id},
    )


def trade_rejected(trade: Trade, receiver_nickname: str) -> Notification:
    return Notification(
        user_id=trade.sender_id,
        type=NotificationType.TRADE_REJECTED,
        title="Trade declined",
        message=f"{receiver_nickname} declined your trade proposal",
        data={"trade_id": trade.id},
    )


def trade_completed(trade: Trade, actor_id: str, actor_nickname: str) -> Notification:
    """Tell the party who did not mark the trade complete."""
    return Notification(
        user_id=trade.counterpart_of(actor_id),
        type=NotificationType.TRADE_COMPLETED,
        title="Trade completed!",
        message=(
            f"Your trade with {actor_nickname} was marked as completed. "
            "How about rating them?"
        ),
        data={"trade_id": trade.id},
    )


def new_rating(rating: Rating, rater_nickname: str) -> Notification:
    stars = "star" if rating.score == 1 else "stars"
    return Notification(
        user_id=rating.rated_id,
        type=NotificationType.NEW_RATING,
        title="New rating received",
        message=f"{rater_nickname} rated you {rating.score} {stars}",
        data={"rating_id": rating.id, "trade_id": rating.trade_id},
    )
