import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stickerswap.api import (
    collection_router,
    health_router,
    matches_router,
    trades_router,
    users_router,
)
from stickerswap.api.errors import register_error_handlers
from stickerswap.config import settings
from stickerswap.db.database import init_db

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("stickerswap"),
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(collection_router)
app.include_router(health_router)
app.include_router(matches_router)
app.include_router(trades_router)
app.include_router(users_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
