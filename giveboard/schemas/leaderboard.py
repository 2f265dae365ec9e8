from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, computed_field, model_validator
from typing import Literal, List

Period = Literal["weekly", "monthly", "all-time"]
Category = Literal["top-givers", "giveaways", "requestors", "requests", "trending"]
TierMarker = Literal["crown", "medal", "award"]
ViewKind = Literal["loading", "error", "empty", "rows"]

class LeaderboardEntry(BaseModel):
    id: int | str
    name: str = Field(min_length=1)
    avatar_url: str | None = None
    post_count: int = Field(ge=0, description="giveaway posts created")
    total_contributions: int = Field(ge=0, description="all contribution actions")
    badges: List[int | str] = Field(default_factory=list)  # opaque ids, only the count is shown

class LeaderboardData(BaseModel):
    leaderboard: List[LeaderboardEntry]
    total: int = Field(ge=0, description="entries matching the filter, not just this page")

class LeaderboardEnvelope(BaseModel):
    success: bool
    data: LeaderboardData | None = None
    error: str | None = None

    @model_validator(mode="after")
    def data_required_on_success(self):
        if self.success and self.data is None:
            raise ValueError("successful envelope must carry data")
        return self

class LeaderboardFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: Period = "all-time"
    page: int = 1
    limit: int = 50

    def as_params(self) -> dict[str, str]:
        return {"period": self.period, "page": str(self.page), "limit": str(self.limit)}

class LeaderboardState(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: List[LeaderboardEntry] = Field(default_factory=list)
    loading: bool = False
    error: str | None = None
    total_count: int = 0

    @computed_field
    @property
    def has_more(self) -> bool:
        return len(self.entries) < self.total_count

class PresentationRow(BaseModel):
    rank: int
    tier_marker: TierMarker | None = None
    rank_label: str
    verified: bool = False
    id: int | str
    name: str
    handle: str
    avatar_url: str | None = None
    primary_metric_value: int
    primary_metric_label: str
    badge_count: int

class LeaderboardView(BaseModel):
    kind: ViewKind
    category: Category
    heading: str
    rows: List[PresentationRow] = Field(default_factory=list)
    loading: bool = False
    error: str | None = None
    message: str | None = None  # error title or empty-state text
    has_more: bool = False
    total_count: int = 0

class PeriodOption(BaseModel):
    value: Period
    label: str

class CategoryTab(BaseModel):
    id: Category
    label: str

class LeaderboardOptions(BaseModel):
    periods: List[PeriodOption]
    categories: List[CategoryTab]
