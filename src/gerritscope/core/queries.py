"""Gerrit search-query strings and request parameter constants."""

from __future__ import annotations

from datetime import date, datetime

from gerritscope.core.errors import InvalidDateFormat
from gerritscope.core.models import OwnerRef

PAGE_SIZE = 100

# Detail flags for /changes/: current revision plus its commit message.
DETAIL_OPTIONS = ("CURRENT_REVISION", "CURRENT_COMMIT")

MERGED_STATUS = "status:merged"

# Reviewer search needs the change messages to date the review.
REVIEW_OPTIONS = ("MESSAGES",)


def parse_after(value: str | None) -> date | None:
    if value is None or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidDateFormat(value) from None


def owner_predicate(owner: OwnerRef) -> str:
    if owner.is_self:
        return "owner:self"
    return f"owner:{owner.value}"


def merged_changes_query(owner: OwnerRef, after: date | None = None) -> str:
    """Space-separated predicates, e.g. `owner:a@b.org status:merged after:2024-01-01`."""
    parts = [owner_predicate(owner), MERGED_STATUS]
    if after is not None:
        parts.append(f"after:{after.isoformat()}")
    return " ".join(parts)


def owner_query_url(base_url: str, owner: str) -> str:
    """Web UI link listing the owner's changes on a host."""
    return f"{base_url}/q/owner:{owner}"


def reviewed_changes_query(owner: OwnerRef, after: date | None = None) -> str:
    """Changes the owner reviewed but did not author."""
    who = "self" if owner.is_self else owner.value
    parts = [f"reviewer:{who}", f"-owner:{who}"]
    if after is not None:
        parts.append(f"after:{after.isoformat()}")
    return " ".join(parts)
