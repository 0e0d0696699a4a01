"""Crawl worker: pop, fetch, save, extract links, enqueue; stop when the pool agrees there is no work."""

import threading
from pathlib import Path

import httpx

from sitemirror.dedup import UrlSet
from sitemirror.errors import HtmlParseError, MirrorError, ReadFileError
from sitemirror.extractors import find_hrefs
from sitemirror.fetcher import Fetcher, FetchResponse
from sitemirror.priority_queue import Priority, PriorityQueue
from sitemirror.settings import Settings
from sitemirror.status import Reporter
from sitemirror.storage import output_path_for, write_stream
from sitemirror.termination import TerminationDetector
from sitemirror.urls import is_absolute_http, is_parent_escape, matches_target, resolve


class CrawlStats:
    """Counters shared by all workers of one pool."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.saved = 0
        self.failed = 0
        self.abandoned = 0
        self._attempts: dict[httpx.URL, int] = {}

    def record_saved(self) -> None:
        with self._lock:
            self.saved += 1

    def record_failure(self, url: httpx.URL) -> int:
        """Count a failed attempt for url and return how many it has had."""
        with self._lock:
            self.failed += 1
            self._attempts[url] = self._attempts.get(url, 0) + 1
            return self._attempts[url]

    def record_abandoned(self) -> None:
        with self._lock:
            self.abandoned += 1


class Worker:
    """One crawl loop. Shares queue, dedup sets, detector and stats with the other workers."""

    def __init__(
        self,
        fetcher: Fetcher,
        priority_queue: PriorityQueue[httpx.URL],
        reporter: Reporter,
        settings: Settings,
        checked_urls: UrlSet,
        downloaded_urls: UrlSet,
        stats: CrawlStats | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.priority_queue = priority_queue
        self.reporter = reporter
        self.settings = settings
        self.checked_urls = checked_urls
        self.downloaded_urls = downloaded_urls
        self.stats = stats or CrawlStats()

    def run(self, detector: TerminationDetector) -> None:
        """
        Work until the detector agrees the crawl is done.
        Raises WorkerStartError, after retiring from the detector, if the HTTP client cannot be built.
        """
        try:
            self.fetcher.open()
        except MirrorError:
            detector.retire()
            self.reporter.close()
            raise
        try:
            self._loop(detector)
        except Exception:
            # drop out of the baseline so the remaining workers can terminate
            detector.retire()
            raise
        finally:
            self.fetcher.close()
            self.reporter.close()

    def _loop(self, detector: TerminationDetector) -> None:
        self.reporter.set_prefix("Idle")
        while True:
            url = self.priority_queue.pop()
            if url is None:
                self.reporter.set_prefix("Idle")
                if detector.idle_round(self.priority_queue.is_empty):
                    return
                continue
            if url in self.checked_urls:
                continue
            self.dispatch(url)

    def dispatch(self, url: httpx.URL) -> bool:
        """Process one job. On failure the URL is requeued at NORMAL priority. Returns success."""
        self.reporter.set_message(str(url))
        try:
            self.work(url)
        except MirrorError as e:
            self.reporter.error(f"while downloading {url}", e)
            self.reporter.reset()
            self.requeue(url)
            return False
        finally:
            self.reporter.set_prefix("Idle")
            self.reporter.set_message("")
        return True

    def requeue(self, url: httpx.URL) -> None:
        attempts = self.stats.record_failure(url)
        max_retries = self.settings.max_retries
        if max_retries is not None and attempts > max_retries:
            self.reporter.println(f"Giving up on {url} after {attempts} failed attempts")
            self.stats.record_abandoned()
            return
        self.priority_queue.push(url, Priority.NORMAL)

    def work(self, url: httpx.URL) -> None:
        self.download(url)
        self.reporter.saved(url)
        self.stats.record_saved()
        if not self.checked_urls.insert(url):
            # two workers raced on the same URL
            self.reporter.warning(f"Checked {url} twice")

    def download(self, url: httpx.URL) -> None:
        self.reporter.set_prefix("Downloading")
        with self.fetcher.fetch(url) as response:
            path = self.save_response_to_disk(response)
            if not response.is_html:
                return
            try:
                document = path.read_text(encoding="utf-8", errors="replace")
            except (OSError, LookupError) as e:
                raise ReadFileError(f"Failed to read file to string: {e}") from e
            self.parse(response.url, document)

    def save_response_to_disk(self, response: FetchResponse) -> Path:
        content_length = response.content_length
        path = output_path_for(self.settings.output_path, response.url)
        if content_length is None:
            write_stream(path, response.iter_chunks())
            return path
        self.reporter.start_bytes(content_length)
        write_stream(path, response.iter_chunks(), on_chunk=self.reporter.advance)
        self.reporter.reset()
        return path

    def parse(self, base_url: httpx.URL, document: str) -> None:
        """Enqueue every new in-scope link of document. Parse failures only skip extraction."""
        self.reporter.set_prefix("Parsing")
        try:
            hrefs = find_hrefs(document)
        except HtmlParseError as e:
            self.reporter.error(f"parsing {base_url}", e)
            return
        for href in hrefs:
            if is_parent_escape(href):
                continue
            try:
                url = resolve(base_url, href)
            except httpx.InvalidURL as e:
                self.reporter.error(f"parsing relative URL `{href}`", e)
                continue
            if not is_absolute_http(url) or url in self.checked_urls:
                continue
            if not matches_target(url, self.settings.targets):
                continue
            priority = Priority.LOW if url in self.downloaded_urls else Priority.NORMAL
            self.priority_queue.push(url, priority)
