"""Public Python API: reports, rendered cards and ibis tables for programmatic use.

Usage:
    import gerritscope.api as gs

    tables = gs.heatmap("alice@example.com", hosts="chromium,go")
    tables["daily"].to_pandas()
    tables["summary"].to_pandas()

    report = gs.report("alice@example.com", after="2024-01-01")
    svg = gs.svg(report, theme="dracula")
"""

from __future__ import annotations

import ibis

from gerritscope.cli import GerritscopeContext
from gerritscope.core.aggregate import SuccessPolicy
from gerritscope.core.hosts import DEFAULT_HOST, expand_hosts
from gerritscope.core.models import HeatmapReport
from gerritscope.core.queries import parse_after
from gerritscope.display.themes import DEFAULT_THEME


def _ctx(owner: str, *, hosts: str | list[str] = DEFAULT_HOST, after: str | None = None,
         username: str | None = None, password: str | None = None,
         policy: str = "any", timeout: float | None = None,
         skip_reviews: bool = False) -> GerritscopeContext:
    tokens = [hosts] if isinstance(hosts, str) else list(hosts)
    credentials = (username, password) if username and password else None
    return GerritscopeContext(owner, expand_hosts(tokens, credentials), parse_after(after),
                              output_svg=None, output_md=None, theme=DEFAULT_THEME,
                              multi_color=False, policy=SuccessPolicy(policy),
                              timeout=timeout, json_output=False, fmt="rich",
                              verbose=False, skip_reviews=skip_reviews)


def report(owner: str, **kwargs) -> HeatmapReport:
    """Fetch and aggregate merged changes into a HeatmapReport."""
    ctx = _ctx(owner, **kwargs)
    from gerritscope.commands.render import fetch_heatmap_report
    return fetch_heatmap_report(ctx)


def heatmap(owner: str, **kwargs) -> dict[str, ibis.Table]:
    """Summary, daily buckets, top projects and per-host outcomes as tables."""
    from gerritscope.frames import report_frames
    return report_frames(report(owner, **kwargs))


def svg(r: HeatmapReport, theme: str = DEFAULT_THEME, multi_color: bool = False) -> str:
    """Render a report as an SVG card."""
    from gerritscope.display.svg import render_svg
    return render_svg(r, theme, multi_color)


def markdown(r: HeatmapReport) -> str:
    """Render a report as markdown."""
    from gerritscope.display.markdown import render_markdown
    return render_markdown(r)
