"""ASCII weekly heatmap strip for terminals and markdown code blocks."""

from __future__ import annotations

from datetime import date

from gerritscope.core.analysis import intensity_level, month_label_positions

BLOCKS = " ░▒▓█"


def heatmap_header(weeks: list[tuple[date, int]]) -> str:
    """Month abbreviations aligned over the strip, one column per week."""
    row = [" "] * len(weeks)
    for col, abbr in month_label_positions([start for start, _ in weeks], min_gap=4):
        for j, ch in enumerate(abbr):
            if col + j < len(row):
                row[col + j] = ch
    return "".join(row)


def heatmap_body(weeks: list[tuple[date, int]]) -> str:
    """One block glyph per week, scaled against the busiest week."""
    peak = max((n for _, n in weeks), default=0)
    return "".join(BLOCKS[intensity_level(n, peak)] for _, n in weeks)


def heatmap_code_block(weeks: list[tuple[date, int]]) -> str:
    peak = max((n for _, n in weeks), default=0)
    return f"```\n{heatmap_header(weeks)}\n[{heatmap_body(weeks)}]\npeak: {peak}/wk\n```"
