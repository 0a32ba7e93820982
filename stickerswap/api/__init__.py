from stickerswap.api.collection import router as collection_router
from stickerswap.api.health import router as health_router
from stickerswap.api.matches import router as matches_router
from stickerswap.api.trades import router as trades_router
from stickerswap.api.users import router as users_router

__all__ = [
    "collection_router",
    "health_router",
    "matches_router",
    "trades_router",
    "users_router",
]
