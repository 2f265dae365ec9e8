from __future__ import annotations
import os
from pydantic import BaseModel, Field
from giveboard.schemas.leaderboard import Period

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "giveboard-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Giveboard")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Upstream ranking service (serves /api/leaderboard)
    leaderboard_api_url: str = os.getenv("LEADERBOARD_API_URL", "http://web:3000")
    leaderboard_page_limit: int = int(os.getenv("LEADERBOARD_PAGE_LIMIT", "50"))
    leaderboard_default_period: Period = Field(
        default=os.getenv("LEADERBOARD_DEFAULT_PERIOD", "all-time"), validate_default=True
    )
    # 1 = only the most recently dispatched fetch may write state.
    # 0 = baseline behavior: the last response to resolve wins, even one from an older request.
    leaderboard_fence_stale: bool = os.getenv("LEADERBOARD_FENCE_STALE", "1") == "1"

settings = Settings()
