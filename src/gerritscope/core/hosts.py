"""Well-known Gerrit host aliases and resolution."""

from __future__ import annotations

from urllib.parse import urlsplit

from gerritscope.core.errors import UnknownHostAlias
from gerritscope.core.models import HostSpec

KNOWN_HOSTS: dict[str, str] = {
    "chromium": "https://chromium-review.googlesource.com",
    "android": "https://android-review.googlesource.com",
    "go": "https://go-review.googlesource.com",
    "fuchsia": "https://fuchsia-review.googlesource.com",
    "skia": "https://skia-review.googlesource.com",
    "gerrit": "https://gerrit-review.googlesource.com",
    "wikimedia": "https://gerrit.wikimedia.org",
    "qt": "https://codereview.qt-project.org",
    "libreoffice": "https://gerrit.libreoffice.org",
    "onap": "https://gerrit.onap.org",
    "webrtc": "https://webrtc-review.googlesource.com",
}

DEFAULT_HOST = "chromium"


def resolve(token: str) -> tuple[str, str]:
    """Resolve an alias or URL to `(alias, base_url)`.

    Tokens containing `://` are explicit URLs: the alias is the known short
    name when the URL is in the table, otherwise the hostname.
    """
    token = token.strip()

    if "://" in token:
        url = token.rstrip("/")
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise UnknownHostAlias(token, sorted(KNOWN_HOSTS))
        for alias, known_url in KNOWN_HOSTS.items():
            if known_url == url:
                return alias, url
        return parts.hostname, url

    url = KNOWN_HOSTS.get(token)
    if url is None:
        raise UnknownHostAlias(token, sorted(KNOWN_HOSTS))
    return token, url


def expand_hosts(
    tokens: list[str] | tuple[str, ...],
    credentials: tuple[str, str] | None = None,
) -> list[HostSpec]:
    """Expand `--hosts` values (each may be a comma list) into HostSpecs.

    Duplicate URLs are dropped, first occurrence wins.
    """
    seen: set[str] = set()
    hosts: list[HostSpec] = []
    for item in tokens:
        for token in item.split(","):
            if not token.strip():
                continue
            alias, url = resolve(token)
            if url in seen:
                continue
            seen.add(url)
            hosts.append(HostSpec(alias=alias, base_url=url, credentials=credentials))
    return hosts
