"""Fetch, aggregate and render the contribution heatmap."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.status import Status

from gerritscope.cli import GerritscopeContext
from gerritscope.core.aggregate import (
    ClientFactory, bucket_by_day, fetch_all, merge_records, merge_reviews, merged_in_range,
    reviews_in_range,
)
from gerritscope.core.analysis import (
    compute_streaks, compute_top_projects, count_recent, count_recent_reviews,
)
from gerritscope.core.errors import OutputError
from gerritscope.core.gerrit import GerritClient
from gerritscope.core.models import ChangeQuery, HeatmapReport, HostResult, HostSpec
from gerritscope.display.json_out import print_json
from gerritscope.display.markdown import render_markdown
from gerritscope.display.svg import render_svg
from gerritscope.display.tables import display_report

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def build_report(
    owner: str,
    hosts: list[HostSpec],
    results: list[HostResult],
    today: date,
    after: date | None = None,
    include_reviews: bool = True,
) -> HeatmapReport:
    """Reduce per-host results into the report every output is rendered from."""
    records = merged_in_range(merge_records(results), after)
    reviews = reviews_in_range(merge_reviews(results), after)
    buckets = bucket_by_day(records, today, after, multi_host=len(hosts) > 1, reviews=reviews)

    return HeatmapReport(
        owner=owner,
        hosts=hosts,
        today=today,
        after=after,
        buckets=buckets,
        streaks=compute_streaks(buckets),
        total_merged=len(records),
        recent_merged_90d=count_recent(records, today),
        total_insertions=sum(r.insertions for r in records),
        total_deletions=sum(r.deletions for r in records),
        top_projects=compute_top_projects(records),
        total_reviews=len(reviews),
        recent_reviews_90d=count_recent_reviews(reviews, today),
        include_reviews=include_reviews,
        host_results=results,
    )


def fetch_heatmap_report(
    ctx: GerritscopeContext,
    client_factory: ClientFactory | None = None,
    today: date | None = None,
) -> HeatmapReport:
    """Fetch every host and compute the heatmap report."""
    if client_factory is None:
        def client_factory(host: HostSpec) -> GerritClient:
            return GerritClient(host, timeout=ctx.timeout)

    query = ChangeQuery(owner=ctx.owner_ref, hosts=ctx.hosts, after=ctx.after,
                        include_reviews=not ctx.skip_reviews)
    results = fetch_all(query, client_factory, ctx.policy)
    today = today or datetime.now(timezone.utc).date()
    return build_report(ctx.owner, ctx.hosts, results, today, ctx.after,
                        include_reviews=not ctx.skip_reviews)


def write_output(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OutputError(path, e) from e
    logger.info("wrote %s", path)


def run_render(ctx: GerritscopeContext) -> HeatmapReport:
    hosts = ", ".join(h.alias for h in ctx.hosts)
    with Status(f"Fetching changes for {ctx.owner} from [{hosts}]...", console=console):
        report = fetch_heatmap_report(ctx)

    if ctx.output_svg:
        write_output(ctx.output_svg, render_svg(report, ctx.theme, ctx.multi_color))
    if ctx.output_md:
        write_output(ctx.output_md, render_markdown(report))

    if ctx.json_output:
        print_json(report)
    elif ctx.fmt in ("csv", "parquet"):
        from gerritscope.frames import export_tables, report_frames
        export_tables(report_frames(report), ctx.fmt)
    else:
        display_report(report)
    return report
