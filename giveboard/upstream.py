from __future__ import annotations
from typing import AsyncGenerator
from giveboard.config import settings
from giveboard.services.leaderboard_client import LeaderboardClient

async def get_leaderboard_client() -> AsyncGenerator[LeaderboardClient, None]:
    async with LeaderboardClient(settings.leaderboard_api_url) as client:
        yield client
