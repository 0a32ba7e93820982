"""
Failure classification for marketplace operations.

Every failure a caller can see is one of:
- Validation: malformed input, self-trades, duplicates (400)
- Not found: unknown sticker, user or trade, or a trade the caller has no
  standing on. Both cases share one message so trade existence never leaks (404)
- State conflict: acting on a trade in the wrong status (400)
- Settlement failure: storage error while transferring stickers. Nothing is
  applied and the trade stays ACCEPTED, so the call is safe to retry (500)

Services raise `KnownError` subclasses. The API layer renders them through
`ErrorResponse`; nothing else is allowed to reach the client unexplained.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    SELF_TRADE = "self_trade"
    ALREADY_OWNED = "already_owned"
    ALREADY_WANTED = "already_wanted"

    # Resource failures
    NOT_FOUND = "not_found"

    # Constraint violations
    STATE_CONFLICT = "state_conflict"
    STICKER_UNAVAILABLE = "sticker_unavailable"
    SELF_RATING = "self_rating"
    ALREADY_RATED = "already_rated"

    # Storage failures
    SETTLEMENT_FAILED = "settlement_failed"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    success: bool = False
    failure: FailureDetail


UNKNOWN_FAILURE_MESSAGE = "Something went wrong on our side. Please try again."


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an ErrorResponse."""
        return ErrorResponse(
            failure=FailureDetail(
                kind=self.kind,
                message=self.message,
                detail=self.detail,
                suggestion=self.suggestion,
            )
        )


class NotFoundError(KnownError):
    """An entity is unknown, or the caller has no standing to act on it."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=message,
            detail=detail,
            status_code=404,
        )


class StateConflictError(KnownError):
    """A trade is not in the status the requested transition needs."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.STATE_CONFLICT,
            message=message,
            detail=detail,
            suggestion="Reload the trade to see its current status.",
            status_code=400,
        )


class StickerUnavailableError(KnownError):
    """
    A sticker named in a trade is not available from the expected owner.

    Raised at proposal time and again at settlement time, since inventory
    can change while a trade waits for approval.
    """

    def __init__(self, sticker_id: str, owner_label: str, code: str | None = None):
        self.sticker_id = sticker_id
        label = code or sticker_id
        super().__init__(
            kind=FailureKind.STICKER_UNAVAILABLE,
            message=f"Sticker {label} is not available for trade from {owner_label}",
            detail=sticker_id,
            suggestion="Remove the sticker from the trade and try again.",
            status_code=400,
        )


class SettlementError(KnownError):
    """Storage failure while transferring stickers; nothing was applied."""

    def __init__(self, trade_id: str, detail: str | None = None):
        self.trade_id = trade_id
        super().__init__(
            kind=FailureKind.SETTLEMENT_FAILED,
            message="The trade could not be completed. No stickers were transferred.",
            detail=detail,
            suggestion="The trade is still accepted. Try completing it again.",
            status_code=500,
        )
