from __future__ import annotations

from datetime import date

import pytest

from gerritscope.commands.render import build_report
from gerritscope.core.errors import NetworkError, OutputError
from gerritscope.core.models import HostResult, HostSpec
from gerritscope.frames import export_tables, report_frames

TODAY = date(2024, 6, 12)
CHROMIUM = HostSpec("chromium", "https://chromium-review.googlesource.com")
GO = HostSpec("go", "https://go-review.googlesource.com")


def _report(host_result, make_change):
    results = [
        host_result("chromium", [
            make_change(1, submitted="2024-06-10 09:00:00.000000000", insertions=4),
            make_change(2, project="v8/v8", submitted="2024-06-11 09:00:00.000000000"),
        ]),
        HostResult(alias="go", error=NetworkError("go", "timed out")),
    ]
    return build_report("alice@example.com", [CHROMIUM, GO], results, TODAY, after=date(2024, 6, 9))


def test_report_frames(host_result, make_change) -> None:
    tables = report_frames(_report(host_result, make_change))
    assert set(tables) == {"summary", "daily", "projects", "hosts"}

    summary = tables["summary"].to_pandas()
    assert summary.loc[0, "total_merged"] == 2
    assert summary.loc[0, "hosts"] == "chromium,go"
    assert summary.loc[0, "after"] == "2024-06-09"

    daily = tables["daily"].to_pandas()
    assert list(daily["date"]) == ["2024-06-09", "2024-06-10", "2024-06-11", "2024-06-12"]
    assert list(daily["merged"]) == [0, 1, 1, 0]
    assert daily.loc[1, "hosts"] == "chromium"

    projects = tables["projects"].to_pandas()
    assert list(projects["project"]) == ["chromium/src", "v8/v8"]

    hosts = tables["hosts"].to_pandas()
    assert list(hosts["ok"]) == [True, False]
    assert list(hosts["reviews"]) == [0, 0]
    assert hosts.loc[1, "error"] == "timed out"


def test_report_frames_without_projects(host_result) -> None:
    report = build_report("alice@example.com", [CHROMIUM], [host_result("chromium", [])], TODAY)
    tables = report_frames(report)
    assert "projects" not in tables
    assert tables["summary"].to_pandas().loc[0, "after"] == ""


def test_export_csv(host_result, make_change, capsys) -> None:
    export_tables(report_frames(_report(host_result, make_change)), "csv")
    out = capsys.readouterr().out
    assert "# daily\n" in out
    assert "date,merged,insertions,deletions,hosts" in out
    assert "2024-06-10,1,4,0,chromium" in out


def test_export_parquet(host_result, make_change, tmp_path) -> None:
    out_dir = tmp_path / "frames"
    written = export_tables(report_frames(_report(host_result, make_change)), "parquet", out_dir)

    assert sorted(p.name for p in written) == [
        "daily.parquet", "hosts.parquet", "projects.parquet", "summary.parquet",
    ]
    assert all(p.parent == out_dir and p.exists() for p in written)


def test_export_parquet_unwritable_dir(host_result, make_change, tmp_path) -> None:
    blocker = tmp_path / "frames"
    blocker.write_text("not a directory")
    with pytest.raises(OutputError):
        export_tables(report_frames(_report(host_result, make_change)), "parquet", blocker)


def test_python_api(monkeypatch, serve_changes, make_change) -> None:
    import httpx

    import gerritscope.api as gs
    from gerritscope.core.gerrit import GerritClient

    transport = serve_changes([make_change(1), make_change(2, project="v8/v8")])
    monkeypatch.setattr("gerritscope.commands.render.GerritClient",
                        lambda host, timeout=None: GerritClient(host, http=httpx.Client(transport=transport)))

    r = gs.report("alice@example.com", hosts="chromium", after="2024-06-01")
    assert r.total_merged == 2
    assert r.after == date(2024, 6, 1)
    assert gs.svg(r, theme="dracula").startswith("<svg")
    assert gs.markdown(r).startswith("## gerritscope")

    tables = gs.heatmap("alice@example.com", hosts=["chromium"])
    assert tables["summary"].to_pandas().loc[0, "total_merged"] == 2
