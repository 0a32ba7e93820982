from dataclasses import dataclass, field
from decimal import Decimal

from stickerswap.models.sticker import Sticker
from stickerswap.models.user import UserProfile


@dataclass(frozen=True)
class MatchFilters:
    """Optional narrowing of a match search."""

    album_id: str | None = None
    city: str | None = None
    state: str | None = None
    limit: int = 20


@dataclass
class MatchCandidate:
    """
    Another user worth trading with.

    Attributes:
        user: Candidate's public profile
        can_offer: Stickers the candidate holds for trade that the requester wants
        wants: Stickers the requester holds for trade that the candidate wants
        match_score: Ranking value, higher is better
    """

    user: UserProfile
    can_offer: list[Sticker] = field(default_factory=list)
    wants: list[Sticker] = field(default_factory=list)
    match_score: int = 0


@dataclass
class MatchResult:
    """Ranked candidates plus counts describing the requester's side."""

    matches: list[MatchCandidate] = field(default_factory=list)
    wanted_count: int = 0
    tradable_count: int = 0
    message: str | None = None


@dataclass(frozen=True)
class StickerHolder:
    """A user holding a given sticker for trade."""

    user: UserProfile
    quantity: int
    for_sale: bool = False
    price: Decimal | None = None
    rating: float = 0.0


@dataclass
class HoldersResult:
    sticker: Sticker
    holders: list[StickerHolder] = field(default_factory=list)


@dataclass(frozen=True)
class CompatibleSticker:
    sticker: Sticker
    quantity: int


@dataclass
class Compatibility:
    """What two specific users can exchange with each other."""

    i_can_offer: list[CompatibleSticker] = field(default_factory=list)
    they_can_offer: list[CompatibleSticker] = field(default_factory=list)
