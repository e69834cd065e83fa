"""Gerrit REST client: magic-prefix decoding + `_more_changes` pagination."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any

import httpx

from gerritscope.core.errors import (
    AuthError, AuthRequired, NetworkError, ProtocolError,
)
from gerritscope.core.models import (
    ChangeRecord, ChangeStatus, HostSpec, OwnerKind, OwnerRef, ReviewEvent,
)
from gerritscope.core.queries import (
    DETAIL_OPTIONS, PAGE_SIZE, REVIEW_OPTIONS, merged_changes_query, reviewed_changes_query,
)

logger = logging.getLogger(__name__)

# Anti-XSSI line Gerrit prepends to every JSON body.
MAGIC_PREFIX = ")]}'\n"

USER_AGENT = "gerritscope/0.1.0"


def strip_magic_prefix(body: str, alias: str) -> str:
    if not body.startswith(MAGIC_PREFIX):
        raise ProtocolError(alias, f"response is missing the Gerrit XSSI prefix; got {body[:12]!r}")
    return body[len(MAGIC_PREFIX):]


def decode_changes(body: str, alias: str) -> list[dict[str, Any]]:
    """Strip the prefix and parse a /changes/ page into raw ChangeInfo dicts."""
    try:
        data = json.loads(strip_magic_prefix(body, alias))
    except json.JSONDecodeError as e:
        raise ProtocolError(alias, f"invalid JSON response: {e}") from e
    if not isinstance(data, list) or not all(isinstance(c, dict) for c in data):
        raise ProtocolError(alias, "expected a JSON array of changes")
    return data


def parse_timestamp(s: str | None) -> datetime | None:
    # Gerrit format: 2024-03-01 14:22:05.000000000 (UTC, nanoseconds)
    if not s:
        return None
    base, _, frac = s.partition(".")
    ts = datetime.strptime(base, "%Y-%m-%d %H:%M:%S")
    micros = int(frac[:6].ljust(6, "0")) if frac else 0
    return ts.replace(microsecond=micros, tzinfo=timezone.utc)


def parse_change(node: dict[str, Any], alias: str) -> ChangeRecord:
    """Convert a ChangeInfo dict to a ChangeRecord."""
    try:
        change_id = node.get("id") or node.get("change_id") or str(node["_number"])
        return ChangeRecord(
            host_alias=alias,
            project=node["project"],
            change_id=change_id,
            status=ChangeStatus(node["status"]),
            created_at=parse_timestamp(node["created"]),
            merged_at=parse_timestamp(node.get("submitted")),
            insertions=int(node.get("insertions", 0)),
            deletions=int(node.get("deletions", 0)),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise ProtocolError(alias, f"malformed change record: {e!r}") from e


def parse_review(node: dict[str, Any], alias: str, owner: OwnerRef) -> ReviewEvent:
    """Convert a reviewed ChangeInfo to a ReviewEvent.

    For an email owner the event is dated by their earliest message on the
    change; otherwise, or when no message matches, by the change's `updated`.
    """
    try:
        change_id = node.get("id") or node.get("change_id") or str(node["_number"])
        timestamp = parse_timestamp(node["updated"])
        if owner.kind is OwnerKind.EMAIL:
            dates = [parse_timestamp(m["date"]) for m in node.get("messages", [])
                     if (m.get("author") or {}).get("email") == owner.value]
            if dates:
                timestamp = min(dates)
        return ReviewEvent(host_alias=alias, project=node["project"],
                           change_id=change_id, timestamp=timestamp)
    except (KeyError, ValueError, TypeError) as e:
        raise ProtocolError(alias, f"malformed review record: {e!r}") from e


class GerritClient:
    """HTTP client bound to one Gerrit host."""

    def __init__(self, host: HostSpec, http: httpx.Client | None = None,
                 timeout: float | None = None):
        self.host = host
        if http is None:
            kwargs: dict[str, Any] = {"headers": {"User-Agent": USER_AGENT}}
            if timeout is not None:
                kwargs["timeout"] = timeout
            http = httpx.Client(**kwargs)
            self._owns_http = True
        else:
            self._owns_http = False
        self.http = http

    def __enter__(self) -> GerritClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    @property
    def alias(self) -> str:
        return self.host.alias

    @property
    def changes_url(self) -> str:
        # Authenticated REST calls live under the /a/ prefix.
        prefix = "/a" if self.host.credentials else ""
        return f"{self.host.base_url}{prefix}/changes/"

    def fetch_page(self, query: str, start: int,
                   options: tuple[str, ...] = DETAIL_OPTIONS) -> list[dict[str, Any]]:
        params: list[tuple[str, str | int]] = [("q", query), ("n", PAGE_SIZE), ("S", start)]
        params.extend(("o", opt) for opt in options)
        auth = httpx.BasicAuth(*self.host.credentials) if self.host.credentials else None

        try:
            if auth is not None:
                response = self.http.get(self.changes_url, params=params, auth=auth)
            else:
                response = self.http.get(self.changes_url, params=params)
        except httpx.DecodingError as e:
            raise ProtocolError(self.alias, f"undecodable response body: {e}") from e
        except httpx.TooManyRedirects as e:
            raise ProtocolError(self.alias, f"too many redirects: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(self.alias, f"GET {self.changes_url} failed: {e!r}") from e

        if response.status_code in (401, 403):
            raise AuthError(self.alias, f"HTTP {response.status_code}: credentials rejected")
        if not response.is_success:
            raise ProtocolError(self.alias, f"HTTP {response.status_code} for {self.changes_url}")
        return decode_changes(response.text, self.alias)

    def _paginate(self, query: str, options: tuple[str, ...]) -> list[dict[str, Any]]:
        """All pages of `query`, following `_more_changes`."""
        nodes: list[dict[str, Any]] = []
        start = 0
        while True:
            page = self.fetch_page(query, start, options)
            nodes.extend(page)
            logger.debug("%s: page at S=%d returned %d change(s)", self.alias, start, len(page))
            if not page or not page[-1].get("_more_changes", False):
                break
            start += len(page)
        return nodes

    def _require_auth_for_self(self, owner: OwnerRef) -> None:
        if owner.is_self and not self.host.credentials:
            raise AuthRequired(self.alias)

    def fetch_changes(self, owner: OwnerRef, after: date | None = None) -> list[ChangeRecord]:
        """Fetch all merged changes for `owner`."""
        self._require_auth_for_self(owner)
        nodes = self._paginate(merged_changes_query(owner, after), DETAIL_OPTIONS)
        records = [parse_change(node, self.alias) for node in nodes]
        logger.info("%s: %d change(s) fetched", self.alias, len(records))
        return records

    def fetch_reviews(self, owner: OwnerRef, after: date | None = None) -> list[ReviewEvent]:
        """Fetch changes `owner` reviewed without authoring them."""
        self._require_auth_for_self(owner)
        nodes = self._paginate(reviewed_changes_query(owner, after), REVIEW_OPTIONS)
        events = [parse_review(node, self.alias, owner) for node in nodes]
        logger.info("%s: %d review(s) fetched", self.alias, len(events))
        return events
