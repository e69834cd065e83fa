"""SVG heatmap card.

The card is self-contained and meant to be embedded in a profile README.
Colors live in an embedded stylesheet keyed by CSS classes, so the `github`
theme can switch palettes with a `prefers-color-scheme` media query. Output
is byte-stable for identical input: no timestamps, no unordered iteration.
"""

from __future__ import annotations

import svgwrite

from gerritscope.core.analysis import build_grid, intensity_level, month_label_positions
from gerritscope.core.models import DailyBucket, HeatmapGrid, HeatmapReport
from gerritscope.display.themes import FAMILY_PALETTES, Palette, Theme, family_hue, theme_by_name

PAD = 16
DAY_LABEL_W = 28
GRID_LEFT = PAD + DAY_LABEL_W
TITLE_Y = 28
MONTH_Y = 48
GRID_TOP = 56
CELL = 13  # 10px square + 3px gap
SQUARE = 10
MIN_WIDTH = 480

WEEKDAY_LABELS = {0: "Mon", 2: "Wed", 4: "Fri"}
INS_COLOR = "#3fb950"
DEL_COLOR = "#f85149"


def fmt_count(n: int) -> str:
    return f"{n:,}"


def _palette_rules(p: Palette, indent: str = "") -> list[str]:
    rules = [
        f".bg{{fill:{p.bg};stroke:{p.border}}}",
        f".title{{fill:{p.title}}}",
        f".label{{fill:{p.muted}}}",
        f".stat{{fill:{p.text}}}",
        f".divider{{stroke:{p.border}}}",
    ]
    rules += [f".l{i}{{fill:{color}}}" for i, color in enumerate(p.levels)]
    return [indent + r for r in rules]


def _family_rules(hues: list[int], dark: bool, indent: str = "") -> list[str]:
    rules = []
    for hue in hues:
        _, light_levels, dark_levels = FAMILY_PALETTES[hue]
        levels = dark_levels if dark else light_levels
        for li, color in enumerate(levels, start=1):
            rules.append(f"{indent}.f{hue}.l{li}{{fill:{color}}}")
    return rules


def stylesheet(theme: Theme, hues: list[int]) -> str:
    lines = [
        "text{font-family:ui-monospace,SFMono-Regular,Menlo,monospace}",
        ".title{font-size:14px;font-weight:bold}",
        ".label{font-size:10px}",
        ".stat{font-size:11px}",
        f".ins{{fill:{INS_COLOR}}}",
        f".del{{fill:{DEL_COLOR}}}",
    ]
    lines += _palette_rules(theme.light)
    lines += _family_rules(hues, dark=False)
    if theme.dark is not None:
        lines.append("@media (prefers-color-scheme: dark) {")
        lines += _palette_rules(theme.dark, indent="  ")
        lines += _family_rules(hues, dark=True, indent="  ")
        lines.append("}")
    return "\n".join(lines)


def _cell_class(bucket: DailyBucket, level: int, multi_color: bool) -> str:
    family = bucket.dominant_family if multi_color and level > 0 else None
    if family is None:
        return f"day l{level}"
    return f"day f{family_hue(family)} l{level}"


def _tooltip(bucket: DailyBucket) -> str:
    day = bucket.day.isoformat()
    if bucket.merged_count == 0:
        text = f"No merged changes on {day}"
    else:
        plural = "" if bucket.merged_count == 1 else "s"
        hosts = ", ".join(sorted(bucket.host_tags))
        text = f"{bucket.merged_count} merged change{plural} on {day} ({hosts})"
    if bucket.review_count:
        plural = "" if bucket.review_count == 1 else "s"
        text += f", {bucket.review_count} review{plural}"
    return text


def _used_hues(grid: HeatmapGrid) -> list[int]:
    hues = {family_hue(b.dominant_family) for week in grid.weeks for b in week
            if b is not None and b.dominant_family is not None}
    return sorted(hues)


def render_svg(report: HeatmapReport, theme: str = "github", multi_color: bool = False) -> str:
    """Render the heatmap card for `report` and return the SVG document."""
    t = theme_by_name(theme)
    grid = build_grid(report.buckets)
    hues = _used_hues(grid) if multi_color else []

    n_weeks = len(grid.weeks)
    grid_bottom = GRID_TOP + 7 * CELL
    legend_y = grid_bottom + 12
    divider_y = legend_y + 12
    width = max(MIN_WIDTH, GRID_LEFT + n_weeks * CELL + PAD)
    height = divider_y + 48

    dwg = svgwrite.Drawing(size=(width, height), profile="full")
    dwg.viewbox(0, 0, width, height)
    dwg.set_desc(title=f"gerritscope · {report.owner}")
    dwg.defs.add(dwg.style(stylesheet(t, hues)))

    dwg.add(dwg.rect(insert=(0.5, 0.5), size=(width - 1, height - 1), rx=6, class_="bg"))

    hosts = ", ".join(h.alias for h in report.hosts)
    dwg.add(dwg.text(f"gerritscope · {report.owner} · {hosts}", insert=(PAD, TITLE_Y), class_="title"))

    week_starts = [grid.week_start(col) for col in range(n_weeks)]
    for col, abbr in month_label_positions(week_starts):
        dwg.add(dwg.text(abbr, insert=(GRID_LEFT + col * CELL, MONTH_Y), class_="label"))
    for row, name in WEEKDAY_LABELS.items():
        dwg.add(dwg.text(name, insert=(PAD, GRID_TOP + row * CELL + SQUARE - 1), class_="label"))

    cells = dwg.g(class_="heatmap")
    for col, week in enumerate(grid.weeks):
        for row, bucket in enumerate(week):
            if bucket is None:
                continue
            level = intensity_level(bucket.merged_count, grid.max_count)
            rect = dwg.rect(
                insert=(GRID_LEFT + col * CELL, GRID_TOP + row * CELL),
                size=(SQUARE, SQUARE), rx=2,
                class_=_cell_class(bucket, level, multi_color),
            )
            rect.set_desc(title=_tooltip(bucket))
            cells.add(rect)
    dwg.add(cells)

    _legend(dwg, legend_y)

    dwg.add(dwg.line(start=(PAD, divider_y), end=(width - PAD, divider_y), class_="divider"))
    _summary(dwg, report, divider_y)

    return dwg.tostring()


def _legend(dwg: svgwrite.Drawing, y: int) -> None:
    x = GRID_LEFT
    dwg.add(dwg.text("Less", insert=(x, y), class_="label"))
    x += 30
    for level in range(5):
        dwg.add(dwg.rect(insert=(x + level * CELL, y - SQUARE + 1), size=(SQUARE, SQUARE),
                         rx=2, class_=f"legend l{level}"))
    dwg.add(dwg.text("More", insert=(x + 5 * CELL + 4, y), class_="label"))


def _summary(dwg: svgwrite.Drawing, report: HeatmapReport, divider_y: int) -> None:
    line1 = dwg.text("", insert=(PAD, divider_y + 18), class_="stat")
    line1.add(dwg.tspan(
        f"{fmt_count(report.total_merged)} merged · "
        f"{fmt_count(report.recent_merged_90d)} in last 90d · "))
    line1.add(dwg.tspan(f"+{fmt_count(report.total_insertions)}", class_="ins"))
    line1.add(dwg.tspan(" / "))
    line1.add(dwg.tspan(f"-{fmt_count(report.total_deletions)}", class_="del"))
    if report.include_reviews:
        line1.add(dwg.tspan(f" · {fmt_count(report.total_reviews)} reviewed"))
    dwg.add(line1)

    s = report.streaks
    dwg.add(dwg.text(
        f"streak: {s.current_weeks} wk current · {s.longest_weeks} wk longest",
        insert=(PAD, divider_y + 34), class_="stat"))
