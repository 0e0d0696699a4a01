"""Crawl settings shared by every worker."""

from dataclasses import dataclass, field
from pathlib import Path

import httpx

from sitemirror import __version__
from sitemirror.fetcher import CHUNK_TIMEOUT, DEFAULT_TIMEOUT
from sitemirror.termination import DEFAULT_IDLE_WAIT
from sitemirror.urls import canonicalize

APP_USER_AGENT = f"sitemirror/{__version__}"


@dataclass
class Settings:
    """Where to write, what to mirror, and how patient to be."""

    output_path: Path
    targets: list[httpx.URL] = field(default_factory=list)
    chunk_timeout: float = CHUNK_TIMEOUT
    request_timeout: float = DEFAULT_TIMEOUT
    idle_wait: float = DEFAULT_IDLE_WAIT
    # None retries failed jobs forever
    max_retries: int | None = None
    user_agent: str = APP_USER_AGENT

    def __post_init__(self) -> None:
        self.output_path = Path(self.output_path)
        self.targets = [canonicalize(t) for t in self.targets]
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
