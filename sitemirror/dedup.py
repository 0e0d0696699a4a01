"""Concurrent URL sets for the "checked" and "seeded" bookkeeping."""

import threading
from typing import Iterable

import httpx


class UrlSet:
    """Set of canonical URLs safe to share between worker threads."""

    def __init__(self, urls: Iterable[httpx.URL] = ()) -> None:
        self._urls: set[httpx.URL] = set(urls)
        self._lock = threading.Lock()

    def insert(self, url: httpx.URL) -> bool:
        """Add url. Returns False if it was already present."""
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def update(self, urls: Iterable[httpx.URL]) -> None:
        with self._lock:
            self._urls.update(urls)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)
