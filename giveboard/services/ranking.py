from __future__ import annotations
from typing import Callable, NamedTuple, Sequence, get_args
from giveboard.schemas.leaderboard import (
    Category,
    CategoryTab,
    LeaderboardEntry,
    LeaderboardState,
    LeaderboardView,
    Period,
    PeriodOption,
    PresentationRow,
    TierMarker,
)

PERIOD_OPTIONS: list[PeriodOption] = [
    PeriodOption(value="weekly", label="This Week"),
    PeriodOption(value="monthly", label="This Month"),
    PeriodOption(value="all-time", label="All Time"),
]

CATEGORY_TABS: list[CategoryTab] = [
    CategoryTab(id="top-givers", label="Top Givers"),
    CategoryTab(id="giveaways", label="Giveaways"),
    CategoryTab(id="requestors", label="Requestors"),
    CategoryTab(id="requests", label="Requests"),
    CategoryTab(id="trending", label="Trending"),
]

ERROR_TITLE = "Unable to Load Leaderboard"
EMPTY_MESSAGE = "No contributors found for this period."

TIER_MARKERS: dict[int, TierMarker] = {1: "crown", 2: "medal", 3: "award"}


class Metric(NamedTuple):
    label: str
    value: Callable[[LeaderboardEntry], int]


GIVEAWAYS_METRIC = Metric("Giveaways", lambda e: e.post_count)
TOTAL_METRIC = Metric("Total", lambda e: e.total_contributions)

# Every category except top-givers is a different label on the same dataset;
# switching tabs never re-queries.
CATEGORY_METRICS: dict[Category, Metric] = {
    "top-givers": GIVEAWAYS_METRIC,
    "giveaways": TOTAL_METRIC,
    "requestors": TOTAL_METRIC,
    "requests": TOTAL_METRIC,
    "trending": TOTAL_METRIC,
}

_missing = set(get_args(Category)) - set(CATEGORY_METRICS)
if _missing:
    raise RuntimeError(f"categories without a metric: {sorted(_missing)}")
if [t.id for t in CATEGORY_TABS] != list(get_args(Category)):
    raise RuntimeError("CATEGORY_TABS out of sync with Category")
if [o.value for o in PERIOD_OPTIONS] != list(get_args(Period)):
    raise RuntimeError("PERIOD_OPTIONS out of sync with Period")


def tier_marker(rank: int) -> TierMarker | None:
    return TIER_MARKERS.get(rank)

def rank_label(rank: int) -> str:
    return f"#{rank}"

def is_verified(rank: int) -> bool:
    # Cosmetic only, nothing on the entry backs it
    return 1 <= rank <= 3

def handle_for(name: str) -> str:
    # Only the first space is dropped ("Mary Ann Lee" -> "@maryann lee")
    return "@" + name.lower().replace(" ", "", 1)

def metric_for(category: Category) -> Metric:
    try:
        return CATEGORY_METRICS[category]
    except KeyError:
        raise ValueError(f"unknown leaderboard category: {category!r}") from None

def category_label(category: Category) -> str:
    for tab in CATEGORY_TABS:
        if tab.id == category:
            return tab.label
    raise ValueError(f"unknown leaderboard category: {category!r}")


def derive_rows(entries: Sequence[LeaderboardEntry], category: Category) -> list[PresentationRow]:
    """
    Turn server-ordered entries into render-ready rows.

    Rank is the 1-based position in `entries`; the server's order is
    authoritative, so nothing is re-sorted or tie-broken here.
    """
    metric = metric_for(category)
    rows: list[PresentationRow] = []
    for idx, entry in enumerate(entries):
        rank = idx + 1
        rows.append(
            PresentationRow(
                rank=rank,
                tier_marker=tier_marker(rank),
                rank_label=rank_label(rank),
                verified=is_verified(rank),
                id=entry.id,
                name=entry.name,
                handle=handle_for(entry.name),
                avatar_url=entry.avatar_url,
                primary_metric_value=metric.value(entry),
                primary_metric_label=metric.label,
                badge_count=len(entry.badges),
            )
        )
    return rows


def build_view(state: LeaderboardState, category: Category) -> LeaderboardView:
    """
    Pick what the page shows for a lifecycle snapshot.

    Precedence: loading, then error, then empty, then rows. On error the
    previously fetched entries stay in `state` but are not shown; the
    rendering layer offers a retry that calls `refetch()`.
    """
    base = dict(
        category=category,
        heading=category_label(category),
        loading=state.loading,
        error=state.error,
        has_more=state.has_more,
        total_count=state.total_count,
    )
    if state.loading:
        return LeaderboardView(kind="loading", **base)
    if state.error is not None:
        return LeaderboardView(kind="error", message=ERROR_TITLE, **base)
    if not state.entries:
        return LeaderboardView(kind="empty", message=EMPTY_MESSAGE, **base)
    return LeaderboardView(kind="rows", rows=derive_rows(state.entries, category), **base)
