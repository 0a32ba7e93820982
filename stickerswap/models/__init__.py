from stickerswap.models.failure import (
    ErrorResponse,
    FailureDetail,
    FailureKind,
    KnownError,
    NotFoundError,
    SettlementError,
    StateConflictError,
    StickerUnavailableError,
)
from stickerswap.models.inventory import OwnedEntry, WantedEntry
from stickerswap.models.match import (
    Compatibility,
    CompatibleSticker,
    HoldersResult,
    MatchCandidate,
    MatchFilters,
    MatchResult,
    StickerHolder,
)
from stickerswap.models.notification import Notification, NotificationType
from stickerswap.models.rating import Rating
from stickerswap.models.sticker import Rarity, Section, Sticker
from stickerswap.models.trade import (
    ALLOWED_TRANSITIONS,
    Trade,
    TradeLine,
    TradeStatus,
    can_transition,
    is_terminal,
)
from stickerswap.models.user import UserProfile

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Compatibility",
    "CompatibleSticker",
    "ErrorResponse",
    "FailureDetail",
    "FailureKind",
    "HoldersResult",
    "KnownError",
    "MatchCandidate",
    "MatchFilters",
    "MatchResult",
    "NotFoundError",
    "Notification",
    "NotificationType",
    "OwnedEntry",
    "Rarity",
    "Rating",
    "Section",
    "SettlementError",
    "StateConflictError",
    "Sticker",
    "StickerHolder",
    "StickerUnavailableError",
    "Trade",
    "TradeLine",
    "TradeStatus",
    "UserProfile",
    "WantedEntry",
    "can_transition",
    "is_terminal",
]
