from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "StickerSwap"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+asyncpg://localhost:5432/stickerswap"

    # Matching result size when the caller does not ask for one
    default_match_limit: int = 20
    max_match_limit: int = 100


settings = Settings()


# =============================================================================
# MATCH SCORING
# =============================================================================

# Weight of a sticker the candidate can give the requester
OFFER_WEIGHT = 1

# Weight of a sticker the candidate wants from the requester
RECIPROCAL_WEIGHT = 2
