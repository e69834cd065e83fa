"""Multi-host fan-out, merge/dedup, and daily bucketing."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

from gerritscope.core.errors import (
    AggregateFetchError, AuthRequired, GerritscopeError, HostError,
)
from gerritscope.core.gerrit import GerritClient
from gerritscope.core.models import (
    ChangeQuery, ChangeRecord, ChangeStatus, DailyBucket, HostResult, HostSpec, ReviewEvent,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[HostSpec], GerritClient]


class SuccessPolicy(str, enum.Enum):
    ANY = "any"  # run succeeds if at least one host succeeds
    ALL = "all"  # any host failure fails the run


def check_preconditions(query: ChangeQuery) -> None:
    """Fail fast, before any request, on configuration that cannot work."""
    if not query.hosts:
        raise GerritscopeError("no Gerrit hosts given")
    if query.owner.is_self:
        for host in query.hosts:
            if not host.credentials:
                raise AuthRequired(host.alias)


def fetch_host(query: ChangeQuery, host: HostSpec, client_factory: ClientFactory) -> HostResult:
    """Fetch one host; host-attributed failures become part of the result."""
    reviews: list[ReviewEvent] = []
    with client_factory(host) as client:
        try:
            records = client.fetch_changes(query.owner, query.after)
            if query.include_reviews:
                reviews = client.fetch_reviews(query.owner, query.after)
        except HostError as e:
            logger.error("%s failed: %s", host.alias, e.message)
            return HostResult(alias=host.alias, error=e)
    return HostResult(alias=host.alias, records=records, reviews=reviews)


def fetch_all(
    query: ChangeQuery,
    client_factory: ClientFactory = GerritClient,
    policy: SuccessPolicy = SuccessPolicy.ANY,
) -> list[HostResult]:
    """Fetch every host concurrently and join; results keep host order."""
    check_preconditions(query)

    with ThreadPoolExecutor(max_workers=len(query.hosts)) as ex:
        futs = [ex.submit(fetch_host, query, host, client_factory) for host in query.hosts]
        results = [f.result() for f in futs]

    apply_policy(results, policy)
    return results


def apply_policy(results: list[HostResult], policy: SuccessPolicy) -> None:
    ok = sum(1 for r in results if r.ok)
    if ok == 0 or (policy is SuccessPolicy.ALL and ok < len(results)):
        raise AggregateFetchError(results)


def merge_records(results: list[HostResult]) -> list[ChangeRecord]:
    """Concatenate successful host results, dropping duplicate (host, change) keys."""
    seen: set[tuple[str, str]] = set()
    merged: list[ChangeRecord] = []
    for result in results:
        for record in result.records:
            if record.key in seen:
                logger.warning("dropping duplicate change %s from %s", record.change_id, record.host_alias)
                continue
            seen.add(record.key)
            merged.append(record)
    return merged


def merge_reviews(results: list[HostResult]) -> list[ReviewEvent]:
    """Concatenate review events, one per (host, change)."""
    seen: set[tuple[str, str]] = set()
    merged: list[ReviewEvent] = []
    for result in results:
        for event in result.reviews:
            if event.key in seen:
                continue
            seen.add(event.key)
            merged.append(event)
    return merged


def reviews_in_range(events: list[ReviewEvent], after: date | None = None) -> list[ReviewEvent]:
    if after is None:
        return list(events)
    return [e for e in events if e.timestamp.date() >= after]


def merged_in_range(records: list[ChangeRecord], after: date | None = None) -> list[ChangeRecord]:
    """Merged changes with a merge timestamp on or after `after`."""
    out = []
    for r in records:
        if r.status is not ChangeStatus.MERGED:
            continue
        if r.merged_at is None:
            logger.debug("skipping merged change %s with no submit time", r.change_id)
            continue
        if after is not None and r.merged_at.date() < after:
            continue
        out.append(r)
    return out


def project_family(record: ChangeRecord, multi_host: bool) -> str:
    """Grouping key for multi-color cells.

    Several hosts: the host alias. One host: the top-level project segment,
    so `chromium/src` and `chromium/tools/build` share a color.
    """
    if multi_host:
        return record.host_alias
    return record.project.split("/", 1)[0]


def bucket_by_day(
    records: list[ChangeRecord],
    today: date,
    after: date | None = None,
    multi_host: bool = False,
    reviews: list[ReviewEvent] | None = None,
) -> list[DailyBucket]:
    """One bucket per UTC day from the range start through today, gaps included.

    Without `after` the range starts at the earliest merge or review.
    """
    merged = merged_in_range(records, after)
    reviewed = reviews_in_range(reviews or [], after)
    days = [r.merged_at.date() for r in merged] + [e.timestamp.date() for e in reviewed]

    start = after or (min(days) if days else today)
    end = max([today, start, *days])

    buckets = {start + timedelta(days=i): DailyBucket(day=start + timedelta(days=i))
               for i in range((end - start).days + 1)}

    for r in merged:
        b = buckets[r.merged_at.date()]
        b.merged_count += 1
        b.insertions_sum += r.insertions
        b.deletions_sum += r.deletions
        b.host_tags.add(r.host_alias)
        family = project_family(r, multi_host)
        b.family_counts[family] = b.family_counts.get(family, 0) + 1

    for e in reviewed:
        buckets[e.timestamp.date()].review_count += 1

    return [buckets[d] for d in sorted(buckets)]
