"""
User API endpoints.

Rating the other party once a trade is completed.
"""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from stickerswap.api.deps import CurrentUser, Emitter, Store
from stickerswap.models.rating import MAX_SCORE, MIN_SCORE, Rating
from stickerswap.services.ratings import rate_user

router = APIRouter(prefix="/users", tags=["users"])


class RateUserRequest(BaseModel):
    """Request model for rating a trade partner."""

    trade_id: str = Field(..., min_length=1, description="Completed trade with this user")
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    comment: str | None = Field(default=None, max_length=500)


class RatingResponse(BaseModel):
    id: str
    rater_id: str
    rated_id: str
    trade_id: str | None = None
    score: int
    comment: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, rating: Rating) -> "RatingResponse":
        return cls(
            id=rating.id or "",
            rater_id=rating.rater_id,
            rated_id=rating.rated_id,
            trade_id=rating.trade_id,
            score=rating.score,
            comment=rating.comment,
            created_at=rating.created_at,
        )


@router.post(
    "/{user_id}/rate", response_model=RatingResponse, status_code=status.HTTP_201_CREATED
)
async def rate(
    user_id: str,
    request: RateUserRequest,
    caller: CurrentUser,
    store: Store,
    emitter: Emitter,
) -> RatingResponse:
    """
    Rate the other party of a completed trade, once per trade.

    The rated user is notified.
    """
    rating = await rate_user(
        store,
        emitter,
        rater_id=caller,
        rated_id=user_id,
        trade_id=request.trade_id,
        score=request.score,
        comment=request.comment,
    )
    return RatingResponse.from_model(rating)
