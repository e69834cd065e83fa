from __future__ import annotations

import logging
from datetime import date, timedelta

import httpx
import pytest

from gerritscope.core.aggregate import (
    SuccessPolicy, bucket_by_day, check_preconditions, fetch_all, merge_records, merge_reviews,
    project_family,
)
from gerritscope.core.errors import (
    AggregateFetchError, AuthError, AuthRequired, GerritscopeError, ProtocolError,
)
from gerritscope.core.gerrit import parse_change, parse_review
from gerritscope.core.models import ChangeQuery, HostResult, HostSpec, OwnerRef

TODAY = date(2024, 6, 12)
A = HostSpec("a", "https://a.example.org")
B = HostSpec("b", "https://b.example.org")
OWNER = OwnerRef.parse("alice@example.com")


def test_partial_failure_succeeds_under_any(client_factory, status_transport,
                                            serve_changes, make_change) -> None:
    factory = client_factory({
        "a": status_transport(401),
        "b": serve_changes([make_change(i) for i in range(5)]),
    })
    results = fetch_all(ChangeQuery(OWNER, [A, B]), factory)

    assert [r.alias for r in results] == ["a", "b"]
    assert isinstance(results[0].error, AuthError)
    assert results[1].ok and len(results[1].records) == 5
    assert len(merge_records(results)) == 5


def test_partial_failure_fails_under_all(client_factory, status_transport,
                                         serve_changes, make_change) -> None:
    factory = client_factory({
        "a": status_transport(401),
        "b": serve_changes([make_change(1)]),
    })
    with pytest.raises(AggregateFetchError) as exc_info:
        fetch_all(ChangeQuery(OWNER, [A, B]), factory, SuccessPolicy.ALL)
    assert "1/2 host(s) failed" in str(exc_info.value)


def test_all_hosts_failing_is_aggregate_error(client_factory, status_transport) -> None:
    factory = client_factory({"a": status_transport(500), "b": status_transport(403)})
    with pytest.raises(AggregateFetchError) as exc_info:
        fetch_all(ChangeQuery(OWNER, [A, B]), factory)

    kinds = [r.error.kind for r in exc_info.value.results]
    assert kinds == ["protocol", "auth"]


def test_host_failure_is_logged(client_factory, status_transport, serve_changes, caplog) -> None:
    factory = client_factory({"a": status_transport(401), "b": serve_changes([])})
    with caplog.at_level(logging.ERROR, logger="gerritscope.core.aggregate"):
        fetch_all(ChangeQuery(OWNER, [A, B]), factory)
    assert "a failed" in caplog.text


def test_self_owner_requires_credentials_on_every_host() -> None:
    authed = HostSpec("a", "https://a.example.org", ("alice", "pw"))
    with pytest.raises(AuthRequired) as exc_info:
        check_preconditions(ChangeQuery(OwnerRef.parse("self"), [authed, B]))
    assert exc_info.value.alias == "b"


def test_no_hosts_is_rejected() -> None:
    with pytest.raises(GerritscopeError):
        check_preconditions(ChangeQuery(OWNER, []))


def test_merge_drops_duplicates_with_warning(host_result, make_change, caplog) -> None:
    first = host_result("a", [make_change(1), make_change(2)])
    second = host_result("a", [make_change(2), make_change(3)])
    with caplog.at_level(logging.WARNING, logger="gerritscope.core.aggregate"):
        merged = merge_records([first, second])

    assert len(merged) == 3
    assert "dropping duplicate change" in caplog.text


def test_same_change_id_on_two_hosts_is_not_a_duplicate(host_result, make_change) -> None:
    merged = merge_records([host_result("a", [make_change(1)]), host_result("b", [make_change(1)])])
    assert len(merged) == 2


def test_project_family() -> None:
    record = parse_change({
        "id": "x", "project": "chromium/tools/build", "status": "MERGED",
        "created": "2024-01-01 00:00:00.000000000",
    }, "chromium")
    assert project_family(record, multi_host=False) == "chromium"
    assert project_family(record, multi_host=True) == "chromium"
    assert project_family(parse_change({
        "id": "y", "project": "v8/v8", "status": "MERGED",
        "created": "2024-01-01 00:00:00.000000000",
    }, "chromium"), multi_host=False) == "v8"


# --- bucketing ---------------------------------------------------------------


def _records(make_change, specs):
    return [parse_change(make_change(i, submitted=f"{day} 10:00:00.000000000", insertions=ins), "a")
            for i, (day, ins) in enumerate(specs)]


def test_buckets_are_gapless_and_ascending(make_change) -> None:
    records = _records(make_change, [("2024-06-01", 1), ("2024-06-05", 2), ("2024-06-05", 3)])
    buckets = bucket_by_day(records, TODAY)

    assert buckets[0].day == date(2024, 6, 1)
    assert buckets[-1].day == TODAY
    assert [b.day for b in buckets] == [date(2024, 6, 1) + timedelta(days=i) for i in range(12)]

    by_day = {b.day: b for b in buckets}
    assert by_day[date(2024, 6, 5)].merged_count == 2
    assert by_day[date(2024, 6, 5)].insertions_sum == 5
    assert by_day[date(2024, 6, 3)].merged_count == 0
    assert by_day[date(2024, 6, 5)].host_tags == {"a"}


def test_after_filters_and_starts_range(make_change) -> None:
    records = _records(make_change, [("2024-05-01", 1), ("2024-06-02", 1), ("2024-06-10", 1)])
    buckets = bucket_by_day(records, TODAY, after=date(2024, 6, 1))

    assert buckets[0].day == date(2024, 6, 1)
    assert sum(b.merged_count for b in buckets) == 2


def test_non_merged_changes_are_ignored(make_change) -> None:
    records = [
        parse_change(make_change(1, status="NEW", submitted=None), "a"),
        parse_change(make_change(2, status="ABANDONED", submitted=None), "a"),
        parse_change(make_change(3), "a"),
    ]
    buckets = bucket_by_day(records, TODAY)
    assert sum(b.merged_count for b in buckets) == 1


def test_empty_run_covers_today_only() -> None:
    buckets = bucket_by_day([], TODAY)
    assert [b.day for b in buckets] == [TODAY]
    assert buckets[0].merged_count == 0


def test_family_counts_track_dominant_family(make_change) -> None:
    changes = [
        make_change(1, project="chromium/src"),
        make_change(2, project="v8/v8"),
        make_change(3, project="v8/node"),
    ]
    records = [parse_change(c, "a") for c in changes]
    bucket = next(b for b in bucket_by_day(records, TODAY) if b.merged_count)
    assert bucket.family_counts == {"chromium": 1, "v8": 2}
    assert bucket.dominant_family == "v8"


def test_undecodable_host_does_not_sink_the_others(client_factory, serve_changes, make_change) -> None:
    garbled = httpx.MockTransport(lambda request: httpx.Response(
        200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"))
    factory = client_factory({"a": garbled, "b": serve_changes([make_change(i) for i in range(5)])})

    results = fetch_all(ChangeQuery(OWNER, [A, B]), factory)

    assert isinstance(results[0].error, ProtocolError)
    assert results[0].error.alias == "a"
    assert len(results[1].records) == 5


# --- reviews -----------------------------------------------------------------


def test_reviews_are_fetched_per_host(client_factory, serve_changes, make_change, make_review) -> None:
    factory = client_factory({
        "a": serve_changes([make_change(1)], reviewed=[make_review(10), make_review(11)]),
        "b": serve_changes([], reviewed=[make_review(10)]),
    })
    results = fetch_all(ChangeQuery(OWNER, [A, B]), factory)

    assert [len(r.reviews) for r in results] == [2, 1]
    assert len(merge_reviews(results)) == 3


def test_skipping_reviews_sends_no_reviewer_query(client_factory, serve_changes, make_change) -> None:
    seen: list[httpx.Request] = []
    factory = client_factory({"a": serve_changes([make_change(1)], seen)})
    results = fetch_all(ChangeQuery(OWNER, [A], include_reviews=False), factory)

    assert results[0].reviews == []
    assert all(not r.url.params["q"].startswith("reviewer:") for r in seen)


def test_failed_review_query_fails_the_host(client_factory, make_change) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["q"].startswith("reviewer:"):
            return httpx.Response(500, text="boom")
        return httpx.Response(200, text=")]}'\n[]")

    factory = client_factory({"a": httpx.MockTransport(handler), "b": httpx.MockTransport(handler)})
    with pytest.raises(AggregateFetchError):
        fetch_all(ChangeQuery(OWNER, [A, B]), factory)


def test_merge_reviews_drops_repeats(make_review) -> None:
    event = parse_review(make_review(1), "a", OWNER)
    merged = merge_reviews([HostResult("a", reviews=[event]), HostResult("a", reviews=[event])])
    assert merged == [event]


def test_buckets_count_reviews_and_extend_range(make_change, make_review) -> None:
    records = _records(make_change, [("2024-06-10", 1)])
    reviews = [parse_review(make_review(i, updated=f"2024-06-0{d} 08:00:00.000000000"), "a", OWNER)
               for i, d in enumerate([3, 3, 8])]
    buckets = bucket_by_day(records, TODAY, reviews=reviews)

    assert buckets[0].day == date(2024, 6, 3)
    by_day = {b.day: b for b in buckets}
    assert by_day[date(2024, 6, 3)].review_count == 2
    assert by_day[date(2024, 6, 3)].merged_count == 0
    assert by_day[date(2024, 6, 8)].review_count == 1
    assert sum(b.merged_count for b in buckets) == 1
