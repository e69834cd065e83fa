"""Rich terminal formatters."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from gerritscope.core.analysis import weekly_totals
from gerritscope.core.hosts import KNOWN_HOSTS
from gerritscope.core.models import HeatmapReport
from gerritscope.display.charts import heatmap_body, heatmap_header
from gerritscope.display.svg import fmt_count
from gerritscope.display.themes import THEMES

console = Console()


def display_report(report: HeatmapReport) -> None:
    hosts = ", ".join(h.alias for h in report.hosts)
    weeks = weekly_totals(report.buckets)
    peak = max((n for _, n in weeks), default=0)

    console.print()
    console.print(Panel(
        f"[bold]{report.owner}[/] — Gerrit contributions",
        subtitle=f"hosts: {hosts}",
    ))

    console.print(f"  [dim]{heatmap_header(weeks)}[/]", highlight=False)
    console.print(f"  [green]{escape('[' + heatmap_body(weeks) + ']')}[/]", highlight=False)
    console.print(f"  [dim]peak: {peak} CLs/week[/]")

    table = Table(title="Merged Changes", show_header=False, border_style="dim")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Merged (all time)", fmt_count(report.total_merged))
    table.add_row("Last 90 days", fmt_count(report.recent_merged_90d))
    table.add_row("Lines changed",
                  f"[green]+{fmt_count(report.total_insertions)}[/] / "
                  f"[red]-{fmt_count(report.total_deletions)}[/]")
    if report.include_reviews:
        table.add_row("Reviews (all time)", fmt_count(report.total_reviews))
        table.add_row("Reviews (90 days)", fmt_count(report.recent_reviews_90d))
    table.add_row("Current streak", f"{report.streaks.current_weeks} wk")
    table.add_row("Longest streak", f"{report.streaks.longest_weeks} wk")
    console.print(table)

    if report.top_projects:
        pt = Table(title="Top Projects", border_style="dim")
        pt.add_column("Project", style="cyan")
        if len(report.hosts) > 1:
            pt.add_column("Host", style="yellow")
        pt.add_column("CLs", justify="right")
        pt.add_column("+Lines", justify="right", style="green")
        pt.add_column("-Lines", justify="right", style="red")
        for p in report.top_projects:
            cells = [p.name]
            if len(report.hosts) > 1:
                cells.append(p.host)
            cells += [fmt_count(p.merged), f"+{fmt_count(p.insertions)}", f"-{fmt_count(p.deletions)}"]
            pt.add_row(*cells)
        console.print(pt)

    for r in report.failed_hosts:
        console.print(f"  [red]✗ {r.alias}[/] [dim]({r.error.kind})[/] {escape(r.error.message)}")

    console.print()


def display_hosts() -> None:
    table = Table(title="Known Gerrit Hosts", border_style="dim")
    table.add_column("Alias", style="cyan")
    table.add_column("URL")
    for alias, url in KNOWN_HOSTS.items():
        table.add_row(alias, url)
    console.print(table)


def display_themes() -> None:
    table = Table(title="SVG Themes", border_style="dim")
    table.add_column("Theme", style="cyan")
    table.add_column("Background")
    table.add_column("Text")
    table.add_column("Scale")
    table.add_column("Dark mode", justify="center")
    for theme in THEMES.values():
        swatches = " ".join(f"[{c}]■[/]" for c in theme.scale)
        table.add_row(theme.name, theme.background, theme.text_color, swatches, "auto" if theme.dark else "")
    console.print(table)
