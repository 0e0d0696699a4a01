"""URL identity, relative resolution, and target matching."""

from typing import Iterable
from urllib.parse import urlsplit

import httpx


def canonicalize(url: httpx.URL | str) -> httpx.URL:
    """
    Canonical form used as dedup-set identity.
    httpx already normalizes scheme/host case, default ports, and percent-encoding;
    on top of that the fragment is dropped and an empty path becomes "/".
    Raises httpx.InvalidURL for malformed input.
    """
    url = httpx.URL(url)
    if url.fragment or str(url).endswith("#"):
        url = url.copy_with(fragment=None)
    if url.host and not urlsplit(str(url)).path:
        url = url.copy_with(path="/")
    return url


def is_absolute_http(url: httpx.URL) -> bool:
    """True for http(s) URLs with a host."""
    return url.scheme in ("http", "https") and bool(url.host)


def raw_path(url: httpx.URL) -> str:
    """Percent-encoded path of url, "/" when empty."""
    return urlsplit(str(url)).path or "/"


def raw_query(url: httpx.URL) -> str:
    """Percent-encoded query string without the leading "?" ("" when absent)."""
    return urlsplit(str(url)).query


def resolve(base: httpx.URL, href: str) -> httpx.URL:
    """Resolve href against the page URL and canonicalize. Raises httpx.InvalidURL."""
    return canonicalize(base.join(href.strip()))


def is_parent_escape(href: str) -> bool:
    """Lexical check for hrefs that climb out of the current directory."""
    return href.strip().startswith("..")


def matches_target(url: httpx.URL, targets: Iterable[httpx.URL]) -> bool:
    """True if url lives on one of the target hosts, under that target's path."""
    path = raw_path(url)
    return any(
        url.host == target.host and path.startswith(raw_path(target))
        for target in targets
    )
