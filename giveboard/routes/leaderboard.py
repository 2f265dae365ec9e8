from __future__ import annotations
from fastapi import APIRouter, Depends, Query, Response

from giveboard.upstream import get_leaderboard_client
from giveboard.schemas.leaderboard import Category, LeaderboardOptions, LeaderboardView, Period
from giveboard.services.leaderboard_client import LeaderboardClient, LeaderboardQuery
from giveboard.services.ranking import CATEGORY_TABS, PERIOD_OPTIONS, build_view

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

@router.get("", response_model=LeaderboardView)
async def get_leaderboard(
    response: Response,
    period: Period | None = Query(default=None),
    category: Category = Query(default="top-givers"),
    page: int = Query(default=1),
    limit: int | None = Query(default=None),
    client: LeaderboardClient = Depends(get_leaderboard_client),
):
    query = LeaderboardQuery(
        client,
        period=period,
        page=page,
        limit=limit,
        auto_fetch=False,
    )
    await query.refetch()
    view = build_view(query.state, category)
    if view.kind == "error":
        response.status_code = 502
    return view

@router.get("/options", response_model=LeaderboardOptions)
async def get_leaderboard_options():
    return LeaderboardOptions(periods=PERIOD_OPTIONS, categories=CATEGORY_TABS)
