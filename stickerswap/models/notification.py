from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Events the trade lifecycle and ratings report to users."""

    TRADE_RECEIVED = "TRADE_RECEIVED"
    TRADE_ACCEPTED = "TRADE_ACCEPTED"
    TRADE_REJECTED = "TRADE_REJECTED"
    TRADE_COMPLETED = "TRADE_COMPLETED"
    NEW_RATING = "NEW_RATING"


@dataclass(frozen=True)
class Notification:
    """A one-way message to a single recipient."""

    user_id: str
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
