"""Exception hierarchy shared by the fetch, aggregate and render stages."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gerritscope.core.models import HostResult


class GerritscopeError(Exception):
    pass


class UnknownHostAlias(GerritscopeError):
    def __init__(self, token: str, known: list[str]):
        self.token = token
        self.known = known
        super().__init__(
            f"unknown host {token!r}; pass a full URL or one of: {', '.join(known)}"
        )


class UnknownTheme(GerritscopeError):
    def __init__(self, name: str, known: list[str]):
        self.name = name
        self.known = known
        super().__init__(f"unknown theme {name!r}; valid names: {', '.join(known)}")


class InvalidDateFormat(GerritscopeError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"--after value {value!r} is not YYYY-MM-DD")


class AuthRequired(GerritscopeError):
    """`owner:self` needs credentials; raised before any request is sent."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"{alias}: owner 'self' requires --username and --password")


class HostError(GerritscopeError):
    """A failure attributed to a single Gerrit host."""

    kind = "error"

    def __init__(self, alias: str, message: str):
        self.alias = alias
        self.message = message
        super().__init__(f"{alias}: {message}")


class AuthError(HostError):
    kind = "auth"


class NetworkError(HostError):
    kind = "network"


class ProtocolError(HostError):
    kind = "protocol"


class AggregateFetchError(GerritscopeError):
    """Raised when the per-host outcomes do not satisfy the success policy."""

    def __init__(self, results: list[HostResult]):
        self.results = results
        failed = [r for r in results if r.error is not None]
        causes = "; ".join(str(r.error) for r in failed)
        super().__init__(f"{len(failed)}/{len(results)} host(s) failed: {causes}")


class OutputError(GerritscopeError):
    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"writing {path}: {cause}")
