from stickerswap.db.database import get_session, get_session_factory, init_db
from stickerswap.db.protocols import (
    InventoryStore,
    MarketplaceStore,
    TradeRole,
    TradeStore,
    UserDirectory,
)
from stickerswap.db.store import SqlMarketplaceStore, SqlNotificationEmitter

__all__ = [
    "InventoryStore",
    "MarketplaceStore",
    "SqlMarketplaceStore",
    "SqlNotificationEmitter",
    "TradeRole",
    "TradeStore",
    "UserDirectory",
    "get_session",
    "get_session_factory",
    "init_db",
]
