"""
Trade proposals and their lifecycle.

    PENDING --accept--> ACCEPTED --complete--> COMPLETED
       |
       +--reject--> REJECTED
       +--cancel--> CANCELLED

REJECTED, CANCELLED and COMPLETED are terminal. EXPIRED is reserved: it is a
valid status value but no transition leads to it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from stickerswap.models.failure import FailureKind, KnownError, StateConflictError


class TradeStatus(str, Enum):
    """Lifecycle status of a trade."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"


ALLOWED_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.PENDING: frozenset(
        {TradeStatus.ACCEPTED, TradeStatus.REJECTED, TradeStatus.CANCELLED}
    ),
    TradeStatus.ACCEPTED: frozenset({TradeStatus.COMPLETED}),
    TradeStatus.REJECTED: frozenset(),
    TradeStatus.CANCELLED: frozenset(),
    TradeStatus.COMPLETED: frozenset(),
    TradeStatus.EXPIRED: frozenset(),
}


def can_transition(current: TradeStatus, target: TradeStatus) -> bool:
    """Check whether a trade in `current` may move to `target` in one step."""
    return target in ALLOWED_TRANSITIONS[current]


def is_terminal(status: TradeStatus) -> bool:
    """Terminal statuses have no outgoing transitions."""
    return not ALLOWED_TRANSITIONS[status]


@dataclass(frozen=True)
class TradeLine:
    """
    One sticker moving in a trade.

    Exactly one of `offered_sticker_id` (leaves the sender) or
    `requested_sticker_id` (leaves the receiver) is set.
    """

    offered_sticker_id: str | None = None
    requested_sticker_id: str | None = None
    quantity: int = 1
    id: str | None = None

    def __post_init__(self) -> None:
        if (self.offered_sticker_id is None) == (self.requested_sticker_id is None):
            raise KnownError(
                kind=FailureKind.INVALID_INPUT,
                message="A trade line must either offer or request a sticker, not both",
            )
        if self.quantity < 1:
            raise KnownError(
                kind=FailureKind.INVALID_INPUT,
                message="Trade line quantity must be positive",
            )

    @property
    def sticker_id(self) -> str:
        return self.offered_sticker_id or self.requested_sticker_id  # type: ignore[return-value]

    @property
    def is_offer(self) -> bool:
        return self.offered_sticker_id is not None


@dataclass
class Trade:
    """
    A proposed exchange between a sender and a receiver.

    Attributes:
        id: Trade identifier (assigned by the store)
        sender_id: User who proposed the trade
        receiver_id: User the proposal is addressed to
        lines: Offered and requested stickers
        status: Current lifecycle status
        message: Free text from the sender
        response_message: Optional text from the receiver on rejection
        created_at: When the proposal was stored
        completed_at: When settlement committed
    """

    sender_id: str
    receiver_id: str
    lines: list[TradeLine] = field(default_factory=list)
    status: TradeStatus = TradeStatus.PENDING
    message: str | None = None
    response_message: str | None = None
    id: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def offered_lines(self) -> list[TradeLine]:
        return [line for line in self.lines if line.is_offer]

    @property
    def requested_lines(self) -> list[TradeLine]:
        return [line for line in self.lines if not line.is_offer]

    def is_party(self, user_id: str) -> bool:
        """True if the user is the sender or the receiver."""
        return user_id in (self.sender_id, self.receiver_id)

    def counterpart_of(self, user_id: str) -> str:
        """The other party of the trade."""
        return self.receiver_id if user_id == self.sender_id else self.sender_id

    def transition_to(self, target: TradeStatus) -> None:
        """
        Move the trade to `target`.

        Raises:
            StateConflictError: If the lifecycle does not allow the move
        """
        if not can_transition(self.status, target):
            raise StateConflictError(
                f"Trade is {self.status.value.lower()} and cannot become "
                f"{target.value.lower()}",
                detail=self.id,
            )
        self.status = target
