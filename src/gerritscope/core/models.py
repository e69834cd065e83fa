"""Data models as dataclasses."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from gerritscope.core.errors import HostError


class ChangeStatus(str, enum.Enum):
    MERGED = "MERGED"
    ABANDONED = "ABANDONED"
    OPEN = "NEW"  # Gerrit's wire name for open changes


class OwnerKind(str, enum.Enum):
    SELF = "self"
    EMAIL = "email"
    USERNAME = "username"


@dataclass(frozen=True)
class OwnerRef:
    kind: OwnerKind
    value: str = "self"

    @classmethod
    def parse(cls, raw: str) -> OwnerRef:
        raw = raw.strip()
        if raw.lower() == "self":
            return cls(OwnerKind.SELF)
        if "@" in raw:
            return cls(OwnerKind.EMAIL, raw)
        return cls(OwnerKind.USERNAME, raw)

    @property
    def is_self(self) -> bool:
        return self.kind is OwnerKind.SELF

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HostSpec:
    alias: str
    base_url: str  # absolute http(s) URL, no trailing slash
    credentials: tuple[str, str] | None = None

    @property
    def display_url(self) -> str:
        return self.base_url.split("://", 1)[1]


@dataclass
class ChangeQuery:
    owner: OwnerRef
    hosts: list[HostSpec]
    after: date | None = None
    include_reviews: bool = True


@dataclass
class ChangeRecord:
    host_alias: str
    project: str
    change_id: str
    status: ChangeStatus
    created_at: datetime
    merged_at: datetime | None = None
    insertions: int = 0
    deletions: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return self.host_alias, self.change_id


@dataclass
class ReviewEvent:
    """One change the owner reviewed, dated by their first message on it."""

    host_alias: str
    project: str
    change_id: str
    timestamp: datetime

    @property
    def key(self) -> tuple[str, str]:
        return self.host_alias, self.change_id


@dataclass
class HostResult:
    alias: str
    records: list[ChangeRecord] = field(default_factory=list)
    reviews: list[ReviewEvent] = field(default_factory=list)
    error: HostError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DailyBucket:
    day: date
    merged_count: int = 0
    insertions_sum: int = 0
    deletions_sum: int = 0
    review_count: int = 0
    host_tags: set[str] = field(default_factory=set)
    family_counts: dict[str, int] = field(default_factory=dict)

    @property
    def dominant_family(self) -> str | None:
        """Family with the most merges; ties go to the alphabetically first name."""
        if not self.family_counts:
            return None
        return min(self.family_counts.items(), key=lambda kv: (-kv[1], kv[0]))[0]


@dataclass
class HeatmapGrid:
    # Week columns, each 7 cells Monday..Sunday; None pads outside the range.
    weeks: list[list[DailyBucket | None]]
    max_count: int = 0

    def week_start(self, col: int) -> date:
        for row, cell in enumerate(self.weeks[col]):
            if cell is not None:
                return cell.day - timedelta(days=row)
        raise ValueError(f"week column {col} has no days")


@dataclass
class StreakInfo:
    current_weeks: int = 0
    longest_weeks: int = 0


@dataclass
class ProjectStat:
    name: str
    host: str = ""
    merged: int = 0
    insertions: int = 0
    deletions: int = 0


@dataclass
class HeatmapReport:
    owner: str
    hosts: list[HostSpec]
    today: date
    buckets: list[DailyBucket]
    streaks: StreakInfo
    total_merged: int
    recent_merged_90d: int
    total_insertions: int
    total_deletions: int
    top_projects: list[ProjectStat]
    total_reviews: int = 0
    recent_reviews_90d: int = 0
    include_reviews: bool = True
    after: date | None = None
    host_results: list[HostResult] = field(default_factory=list)

    @property
    def failed_hosts(self) -> list[HostResult]:
        return [r for r in self.host_results if not r.ok]

    @property
    def max_daily(self) -> int:
        return max((b.merged_count for b in self.buckets), default=0)
