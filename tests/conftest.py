from __future__ import annotations

import json

import httpx
import pytest

from gerritscope.core.gerrit import MAGIC_PREFIX, GerritClient
from gerritscope.core.models import HostResult, HostSpec
from gerritscope.core.queries import PAGE_SIZE


@pytest.fixture
def make_change():
    """Build a raw ChangeInfo dict as Gerrit serves it."""
    def _make(n: int, project: str = "chromium/src", status: str = "MERGED",
              submitted: str | None = "2024-06-10 12:00:00.000000000",
              insertions: int = 1, deletions: int = 0) -> dict:
        change = {
            "id": f"{project.replace('/', '%2F')}~main~I{n:040x}",
            "project": project,
            "branch": "main",
            "subject": f"Change {n}",
            "status": status,
            "created": "2024-01-01 09:00:00.000000000",
            "updated": "2024-06-10 12:00:00.000000000",
            "insertions": insertions,
            "deletions": deletions,
            "_number": n,
        }
        if submitted is not None:
            change["submitted"] = submitted
        return change
    return _make


@pytest.fixture
def serve_changes():
    """MockTransport paging `changes` by the S offset, as a Gerrit server would.

    Reviewer searches are answered from `reviewed` instead.
    """
    def _serve(changes: list[dict], seen: list[httpx.Request] | None = None,
               reviewed: list[dict] | None = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if seen is not None:
                seen.append(request)
            source = changes
            if request.url.params.get("q", "").startswith("reviewer:"):
                source = reviewed or []
            start = int(request.url.params.get("S", "0"))
            page = [dict(c) for c in source[start:start + PAGE_SIZE]]
            if page and start + PAGE_SIZE < len(source):
                page[-1]["_more_changes"] = True
            return httpx.Response(200, text=MAGIC_PREFIX + json.dumps(page))
        return httpx.MockTransport(handler)
    return _serve


@pytest.fixture
def status_transport():
    def _transport(status: int, text: str = "Unauthorized") -> httpx.MockTransport:
        return httpx.MockTransport(lambda request: httpx.Response(status, text=text))
    return _transport


@pytest.fixture
def client_factory():
    """Factory routing each host alias to its own transport."""
    def _factory(transports: dict[str, httpx.MockTransport]):
        def make(host: HostSpec) -> GerritClient:
            return GerritClient(host, http=httpx.Client(transport=transports[host.alias]))
        return make
    return _factory


@pytest.fixture
def host_result():
    """Successful HostResult built from raw change dicts."""
    from gerritscope.core.gerrit import parse_change

    def _result(alias: str, changes: list[dict]) -> HostResult:
        return HostResult(alias=alias, records=[parse_change(c, alias) for c in changes])
    return _result


@pytest.fixture
def make_review(make_change):
    """Raw ChangeInfo for a change someone else owns, with review messages."""
    def _make(n: int, project: str = "chromium/src", updated: str = "2024-06-11 08:00:00.000000000",
              messages: tuple[tuple[str, str], ...] = ()) -> dict:
        change = make_change(n, project=project, status="NEW", submitted=None)
        change["updated"] = updated
        change["messages"] = [
            {"id": f"m{i}", "author": {"_account_id": i, "email": email}, "date": when,
             "message": "Patch Set 1: Code-Review+1"}
            for i, (email, when) in enumerate(messages)
        ]
        return change
    return _make
