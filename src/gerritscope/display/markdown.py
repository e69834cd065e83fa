"""Markdown report: heatmap strip, stats table, top projects."""

from __future__ import annotations

from gerritscope.core.analysis import weekly_totals
from gerritscope.core.models import HeatmapReport
from gerritscope.core.queries import owner_query_url
from gerritscope.display.charts import heatmap_code_block
from gerritscope.display.svg import fmt_count


def _table(headers: list[str], rows: list[list[str]], right: set[int]) -> list[str]:
    widths = [max(len(r[i]) for r in rows + [headers]) for i in range(len(headers))]

    def row_str(cells: list[str]) -> str:
        padded = [c.rjust(w) if i in right else c.ljust(w)
                  for i, (c, w) in enumerate(zip(cells, widths))]
        return "| " + " | ".join(padded) + " |"

    sep = "|" + "|".join(
        ("-" * (w + 1) + ":") if i in right else (":" + "-" * (w + 1))
        for i, w in enumerate(widths)
    ) + "|"
    return [row_str(headers), sep] + [row_str(r) for r in rows]


def _host_links(report: HeatmapReport) -> str:
    if len(report.hosts) == 1:
        host = report.hosts[0]
        return f"[{host.display_url}]({owner_query_url(host.base_url, report.owner)})"
    return " · ".join(f"[{h.alias}]({owner_query_url(h.base_url, report.owner)})"
                      for h in report.hosts)


def render_markdown(report: HeatmapReport) -> str:
    s = report.streaks
    lines = [
        f"## gerritscope · {report.owner}",
        "",
        heatmap_code_block(weekly_totals(report.buckets)),
        "",
    ]

    rows = [
        ["Merged (all time)", f"**{fmt_count(report.total_merged)}**"],
        ["Last 90 days", f"**{fmt_count(report.recent_merged_90d)}**"],
        ["Lines added", f"**+{fmt_count(report.total_insertions)}**"],
        ["Lines removed", f"**-{fmt_count(report.total_deletions)}**"],
        ["Current streak", f"**{s.current_weeks} wk**"],
        ["Longest streak", f"**{s.longest_weeks} wk**"],
    ]
    if report.include_reviews:
        rows[2:2] = [
            ["Reviews (all time)", f"**{fmt_count(report.total_reviews)}**"],
            ["Reviews (90 days)", f"**{fmt_count(report.recent_reviews_90d)}**"],
        ]
    lines += _table(["", ""], rows, right={1})

    if report.top_projects:
        multi_host = len(report.hosts) > 1
        lines += ["", "**Top projects**", ""]
        rows = []
        for p in report.top_projects:
            name = f"{p.host}: {p.name}" if multi_host else p.name
            rows.append([f"`{name}`", fmt_count(p.merged),
                         f"+{fmt_count(p.insertions)}", f"-{fmt_count(p.deletions)}"])
        lines += _table(["Project", "CLs", "+Lines", "-Lines"], rows, right={1, 2, 3})

    if report.failed_hosts:
        lines += ["", "**Unavailable hosts**", ""]
        lines += [f"- `{r.alias}`: {r.error.message}" for r in report.failed_hosts]

    lines += ["", "---", "", f"_{_host_links(report)}_", ""]
    return "\n".join(lines)
