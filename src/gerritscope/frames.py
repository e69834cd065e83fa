"""Convert a HeatmapReport to ibis memtables and export them.

report_frames() returns dict[str, ibis.Table] with `summary`, `daily`,
`projects` and `hosts` tables. Tables can be materialized to any backend:

    tables["daily"].to_pandas()
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import ibis

from gerritscope.core.errors import OutputError
from gerritscope.core.models import HeatmapReport

logger = logging.getLogger(__name__)


def _mt(rows: list[dict]) -> ibis.Table | None:
    """Create a memtable from rows, or None if empty."""
    if not rows:
        return None
    return ibis.memtable(rows)


def report_frames(report: HeatmapReport) -> dict[str, ibis.Table]:
    tables: dict[str, ibis.Table] = {}

    tables["summary"] = ibis.memtable([{
        "owner": report.owner,
        "hosts": ",".join(h.alias for h in report.hosts),
        "after": report.after.isoformat() if report.after else "",
        "total_merged": report.total_merged,
        "recent_merged_90d": report.recent_merged_90d,
        "total_insertions": report.total_insertions,
        "total_deletions": report.total_deletions,
        "total_reviews": report.total_reviews,
        "recent_reviews_90d": report.recent_reviews_90d,
        "current_streak_weeks": report.streaks.current_weeks,
        "longest_streak_weeks": report.streaks.longest_weeks,
    }])

    tables["daily"] = ibis.memtable([
        {"date": b.day.isoformat(), "merged": b.merged_count,
         "insertions": b.insertions_sum, "deletions": b.deletions_sum,
         "hosts": ",".join(sorted(b.host_tags)), "reviews": b.review_count}
        for b in report.buckets
    ])

    t = _mt([
        {"project": p.name, "host": p.host, "merged": p.merged,
         "insertions": p.insertions, "deletions": p.deletions}
        for p in report.top_projects
    ])
    if t is not None:
        tables["projects"] = t

    t = _mt([
        {"host": r.alias, "ok": r.ok, "changes": len(r.records), "reviews": len(r.reviews),
         "error": r.error.message if r.error else ""}
        for r in report.host_results
    ])
    if t is not None:
        tables["hosts"] = t

    return tables


def export_tables(tables: dict[str, ibis.Table], fmt: str, out_dir: Path | None = None) -> list[Path]:
    """Write csv sections to stdout, or one parquet file per table into `out_dir`."""
    written: list[Path] = []
    if fmt == "csv":
        for name, table in tables.items():
            sys.stdout.write(f"# {name}\n")
            table.to_pandas().to_csv(sys.stdout, index=False)
            sys.stdout.write("\n")
    elif fmt == "parquet":
        out_dir = out_dir or Path.cwd()
        for name, table in tables.items():
            path = out_dir / f"{name}.parquet"
            try:
                out_dir.mkdir(parents=True, exist_ok=True)
                table.to_pandas().to_parquet(path)
            except OSError as e:
                raise OutputError(path, e) from e
            logger.info("wrote %s", path)
            written.append(path)
    return written
