import threading

import httpx
import pytest

from sitemirror.dedup import UrlSet
from sitemirror.errors import MirrorError, WorkerStartError
from sitemirror.fetcher import Fetcher
from sitemirror.pool import insert_files, run_worker_pool
from sitemirror.settings import Settings
from sitemirror.urls import canonicalize

from tests.helpers import PLAIN, Site, page

SITE = {
    "http://example.com/": page("/a.html", "/b/", "http://elsewhere.org/", "mailto:x@example.com"),
    "http://example.com/a.html": page("/", "/b/", "/c.html?x=1/2"),
    "http://example.com/b/": page("../a.html", "deep.html", "/b/deep.html#top"),
    "http://example.com/b/deep.html": page("/"),
    "http://example.com/c.html?x=1/2": httpx.Response(200, headers={"content-type": "text/plain"}, content=b"c"),
}


def crawl(site: Site, tmp_path, threads: int, fetcher: Fetcher | None = None, **settings_kwargs):
    settings = Settings(output_path=tmp_path, targets=["http://example.com/"], idle_wait=0.05, **settings_kwargs)
    return run_worker_pool(settings, threads, fetcher=fetcher or site.fetcher(), style=PLAIN, progress=False)


def routes():
    """Fresh responses for every request so duplicate fetches under concurrency are served too."""
    return {url: (lambda request, r=response: clone(r)) for url, response in SITE.items()}


def clone(response: httpx.Response) -> httpx.Response:
    return httpx.Response(response.status_code, headers=response.headers, content=response.content)


@pytest.mark.parametrize("threads", [1, 4])
def test_mirrors_every_page_in_scope(tmp_path, threads):
    site = Site(routes())
    stats = crawl(site, tmp_path, threads)
    host = tmp_path / "example.com"
    assert (host / "index.html").is_file()
    assert (host / "a.html").is_file()
    assert (host / "b" / "index.html").is_file()
    assert (host / "b" / "deep.html").is_file()
    assert (host / "c.html?x=1∕2").read_bytes() == b"c"
    assert not (tmp_path / "elsewhere.org").exists()
    assert not any("elsewhere.org" in u for u in site.requested)
    assert stats.saved >= 5
    assert stats.failed == 0


def test_failed_page_is_retried_until_it_succeeds(tmp_path):
    attempts = []
    lock = threading.Lock()

    def flaky(request):
        with lock:
            attempts.append(request.url)
            if len(attempts) < 3:
                raise httpx.ConnectError("refused")
        return page()

    site = Site({"http://example.com/": page("/flaky.html"), "http://example.com/flaky.html": flaky})
    stats = crawl(site, tmp_path, 2)
    assert len(attempts) == 3
    assert stats.failed == 2
    assert (tmp_path / "example.com" / "flaky.html").is_file()


def test_retry_cap_ends_the_crawl(tmp_path):
    def refuse(request):
        raise httpx.ConnectError("refused")

    site = Site({"http://example.com/": refuse})
    stats = crawl(site, tmp_path, 2, max_retries=2)
    assert stats.failed == 3
    assert stats.abandoned == 1
    assert stats.saved == 0


def test_overlong_file_name_does_not_abort_the_crawl(tmp_path):
    long_url = "http://example.com/login?continue=" + "https://www.example.com/" * 20
    site = Site({"http://example.com/": lambda request: page(long_url)})
    stats = crawl(site, tmp_path, 2, max_retries=1)
    assert (tmp_path / "example.com" / "index.html").is_file()
    assert stats.saved == 1
    assert stats.failed == 2
    assert stats.abandoned == 1


def test_new_pages_are_fetched_before_known_ones(tmp_path):
    host = tmp_path / "example.com"
    host.mkdir()
    (host / "old.html").write_text("stale")
    site = Site({
        "http://example.com/": page("/old.html", "/new.html"),
        "http://example.com/old.html": page(),
        "http://example.com/new.html": page(),
    })
    crawl(site, tmp_path, 1)
    assert site.requested == [
        "http://example.com/",
        "http://example.com/new.html",
        "http://example.com/old.html",
    ]
    assert (host / "old.html").read_text() != "stale"


def test_insert_files_seeds_from_disk(tmp_path):
    (tmp_path / "example.com" / "b").mkdir(parents=True)
    (tmp_path / "example.com" / "b" / "deep.html").write_text("x")
    urls = UrlSet()
    assert insert_files(tmp_path, canonicalize("http://example.com/"), urls) == 3
    assert canonicalize("http://example.com/b/deep.html") in urls
    assert canonicalize("http://example.com/b/") in urls


class FailingFetcher(Fetcher):
    """Spawns fetchers whose client cannot be built, for the first `failures` spawns."""

    def __init__(self, site: Site, failures: int) -> None:
        super().__init__(user_agent="sitemirror-tests", transport=httpx.MockTransport(site))
        self._site = site
        self._failures = failures
        self._lock = threading.Lock()

    def spawn(self) -> Fetcher:
        with self._lock:
            self._failures -= 1
            fail = self._failures >= 0
        return BrokenFetcher(user_agent="sitemirror-tests") if fail else self._site.fetcher()


class BrokenFetcher(Fetcher):
    def open(self) -> None:
        raise WorkerStartError("Failed to build HTTP client: no sockets")


def test_startup_failure_of_one_worker_does_not_stall_the_crawl(tmp_path, capsys):
    site = Site(routes())
    stats = crawl(site, tmp_path, 3, fetcher=FailingFetcher(site, failures=1))
    assert (tmp_path / "example.com" / "b" / "deep.html").is_file()
    assert stats.failed == 0
    assert "Error starting worker: Failed to build HTTP client: no sockets" in capsys.readouterr().err


def test_no_worker_starting_is_fatal(tmp_path):
    site = Site(routes())
    with pytest.raises(MirrorError, match="No worker could start"):
        crawl(site, tmp_path, 2, fetcher=FailingFetcher(site, failures=2))
    assert site.requested == []
