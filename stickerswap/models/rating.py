from dataclasses import dataclass
from datetime import datetime

MIN_SCORE = 1
MAX_SCORE = 5


@dataclass(frozen=True)
class Rating:
    """
    A score one party of a completed trade gave the other.

    Attributes:
        rater_id: User giving the score
        rated_id: User receiving it
        trade_id: Completed trade the score is about; one rating per rater and trade
        score: 1 to 5
    """

    rater_id: str
    rated_id: str
    score: int
    trade_id: str | None = None
    comment: str | None = None
    id: str | None = None
    created_at: datetime | None = None
