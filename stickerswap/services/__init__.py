"""
StickerSwap services.

Business logic for matching, the trade lifecycle, settlement, inventory and
ratings.
"""

from stickerswap.services.inventory import (
    add_owned_sticker,
    add_wanted_sticker,
    bulk_add,
    list_owned_stickers,
    list_wanted_stickers,
    remove_owned_sticker,
    remove_wanted_sticker,
    update_owned_sticker,
)
from stickerswap.services.matching import (
    find_compatible_with,
    find_holders_of_sticker,
    find_matches,
    find_offering_candidates,
    load_reciprocal_wants,
    score_match,
)
from stickerswap.services.notifications import NotificationEmitter, notify
from stickerswap.services.ratings import rate_user
from stickerswap.services.settlement import (
    SettlementResult,
    Transfer,
    plan_transfers,
    settle_trade,
)
from stickerswap.services.trades import (
    accept_trade,
    cancel_trade,
    complete_trade,
    create_trade,
    get_trade,
    list_trades,
    reject_trade,
)

__all__ = [
    "NotificationEmitter",
    "SettlementResult",
    "Transfer",
    "accept_trade",
    "add_owned_sticker",
    "add_wanted_sticker",
    "bulk_add",
    "cancel_trade",
    "complete_trade",
    "create_trade",
    "find_compatible_with",
    "find_holders_of_sticker",
    "find_matches",
    "find_offering_candidates",
    "get_trade",
    "list_owned_stickers",
    "list_trades",
    "list_wanted_stickers",
    "load_reciprocal_wants",
    "notify",
    "plan_transfers",
    "rate_user",
    "reject_trade",
    "remove_owned_sticker",
    "remove_wanted_sticker",
    "score_match",
    "settle_trade",
    "update_owned_sticker",
]
