"""Statistical logic: streaks, intensity levels, grid layout, totals."""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta

from gerritscope.core.models import (
    ChangeRecord, DailyBucket, HeatmapGrid, ProjectStat, ReviewEvent, StreakInfo,
)

TOP_PROJECTS_COUNT = 5
RECENT_DAYS = 90
LEVELS = 4  # non-zero intensity levels

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def iso_week_start(d: date) -> date:
    """Monday of the ISO week containing `d`."""
    return d - timedelta(days=d.weekday())


def weekly_totals(buckets: list[DailyBucket]) -> list[tuple[date, int]]:
    """Merged counts per ISO week, oldest first, empty weeks included."""
    if not buckets:
        return []
    totals: dict[date, int] = defaultdict(int)
    for b in buckets:
        totals[iso_week_start(b.day)] += b.merged_count

    first = iso_week_start(buckets[0].day)
    last = iso_week_start(buckets[-1].day)
    n = (last - first).days // 7 + 1
    return [(first + timedelta(weeks=i), totals.get(first + timedelta(weeks=i), 0)) for i in range(n)]


def compute_streaks(buckets: list[DailyBucket]) -> StreakInfo:
    """Current and longest runs of consecutive active weeks.

    The most recent week is left out of the current streak while it has no
    merges yet, so a quiet Monday does not reset it.
    """
    active = [count > 0 for _, count in weekly_totals(buckets)]
    if not active:
        return StreakInfo()

    longest = run = 0
    for is_active in active:
        run = run + 1 if is_active else 0
        longest = max(longest, run)

    tail = active if active[-1] else active[:-1]
    current = 0
    for is_active in reversed(tail):
        if not is_active:
            break
        current += 1

    return StreakInfo(current_weeks=current, longest_weeks=longest)


def intensity_level(count: int, max_count: int) -> int:
    """Quantize a daily count to 0..4 against the observed maximum."""
    if count <= 0 or max_count <= 0:
        return 0
    return max(1, min(LEVELS, math.ceil(LEVELS * count / max_count)))


def build_grid(buckets: list[DailyBucket]) -> HeatmapGrid:
    """Lay daily buckets out as Monday-first week columns."""
    if not buckets:
        return HeatmapGrid(weeks=[])

    cells: list[DailyBucket | None] = [None] * buckets[0].day.weekday()
    cells.extend(buckets)
    cells.extend([None] * (-len(cells) % 7))

    weeks = [cells[i:i + 7] for i in range(0, len(cells), 7)]
    max_count = max(b.merged_count for b in buckets)
    return HeatmapGrid(weeks=weeks, max_count=max_count)


def month_label_positions(week_starts: list[date], min_gap: int = 3) -> list[tuple[int, str]]:
    """Columns where a new month begins, skipping labels that would collide."""
    positions: list[tuple[int, str]] = []
    last_month = None
    last_col = -min_gap
    for col, start in enumerate(week_starts):
        month = start.month
        if month != last_month:
            if col - last_col >= min_gap:
                positions.append((col, MONTH_ABBR[month - 1]))
                last_col = col
            last_month = month
    return positions


def count_recent(records: list[ChangeRecord], today: date, days: int = RECENT_DAYS) -> int:
    cutoff = today - timedelta(days=days)
    return sum(1 for r in records if r.merged_at and r.merged_at.date() > cutoff)


def count_recent_reviews(events: list[ReviewEvent], today: date, days: int = RECENT_DAYS) -> int:
    cutoff = today - timedelta(days=days)
    return sum(1 for e in events if e.timestamp.date() > cutoff)


def compute_top_projects(records: list[ChangeRecord], top_n: int = TOP_PROJECTS_COUNT) -> list[ProjectStat]:
    """Per-project totals, most merges first (ties by name, then host)."""
    by_project: dict[tuple[str, str], ProjectStat] = {}
    for r in records:
        key = (r.host_alias, r.project)
        ps = by_project.get(key)
        if ps is None:
            ps = by_project[key] = ProjectStat(name=r.project, host=r.host_alias)
        ps.merged += 1
        ps.insertions += r.insertions
        ps.deletions += r.deletions

    stats = sorted(by_project.values(), key=lambda p: (-p.merged, p.name, p.host))
    return stats[:top_n]
