from pathlib import Path
from typing import Callable

import httpx

from sitemirror.dedup import UrlSet
from sitemirror.fetcher import Fetcher
from sitemirror.priority_queue import PriorityQueue
from sitemirror.settings import Settings
from sitemirror.status import Reporter, StatusStyle
from sitemirror.worker import CrawlStats, Worker

PLAIN = StatusStyle(enabled=False)


def html(body: str) -> httpx.Response:
    return httpx.Response(200, headers={"content-type": "text/html"}, text=body)


def page(*hrefs: str) -> httpx.Response:
    links = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return html(f"<html><body>{links}</body></html>")


class Site:
    """
    Routes for httpx.MockTransport; records every requested URL.
    A route is a Response (served once) or a callable taking the request.
    """

    def __init__(self, routes: dict[str, Callable[[httpx.Request], httpx.Response] | httpx.Response]) -> None:
        self.routes = routes
        self.requested: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, headers={"content-type": "text/plain"}, text="not found")
        if callable(route):
            return route(request)
        return route

    def fetcher(self, **kwargs) -> Fetcher:
        return Fetcher(user_agent="sitemirror-tests", transport=httpx.MockTransport(self), **kwargs)


def make_worker(site: Site, output: Path, targets: list[str], **settings_kwargs) -> Worker:
    settings = Settings(output_path=output, targets=targets, **settings_kwargs)
    return Worker(
        site.fetcher(),
        PriorityQueue(),
        Reporter(PLAIN, progress=False),
        settings,
        UrlSet(),
        UrlSet(),
        CrawlStats(),
    )


def drain(queue: PriorityQueue) -> list[str]:
    out = []
    while (item := queue.pop()) is not None:
        out.append(str(item))
    return out
