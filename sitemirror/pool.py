"""Worker pool: seed the queue, scan the existing mirror, run N crawl threads to completion."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import httpx

from sitemirror.dedup import UrlSet
from sitemirror.errors import MirrorError, WorkerStartError
from sitemirror.fetcher import Fetcher
from sitemirror.priority_queue import PriorityQueue
from sitemirror.settings import Settings
from sitemirror.status import Reporter, StatusStyle
from sitemirror.storage import scan_existing
from sitemirror.termination import TerminationDetector
from sitemirror.worker import CrawlStats, Worker


def insert_files(output_path: Path, target: httpx.URL, urls: UrlSet) -> int:
    """Add the URL of everything already mirrored under target's host. Returns how many were found."""
    found = list(scan_existing(output_path, target))
    urls.update(found)
    return len(found)


def run_worker_pool(
    settings: Settings,
    threads: int,
    *,
    fetcher: Fetcher | None = None,
    style: StatusStyle | None = None,
    progress: bool = True,
) -> CrawlStats:
    """
    Mirror settings.targets into settings.output_path with `threads` workers.
    Blocks until every worker has stopped. Raises MirrorError if no worker could start.
    """
    threads = max(1, threads)
    fetcher = fetcher or Fetcher(
        user_agent=settings.user_agent,
        timeout=settings.request_timeout,
        chunk_timeout=settings.chunk_timeout,
    )
    style = style or StatusStyle.for_stderr()
    priority_queue: PriorityQueue[httpx.URL] = PriorityQueue()
    checked_urls = UrlSet()
    downloaded_urls = UrlSet()
    detector = TerminationDetector(threads, idle_wait=settings.idle_wait)
    stats = CrawlStats()

    for url in settings.targets:
        priority_queue.push(url)
        insert_files(settings.output_path, url, downloaded_urls)

    def spawn_worker(position: int) -> None:
        reporter = Reporter(style, position=position, progress=progress)
        reporter.set_message("Starting")
        worker = Worker(
            fetcher.spawn(),
            priority_queue,
            reporter,
            settings,
            checked_urls,
            downloaded_urls,
            stats,
        )
        worker.run(detector)

    pool_reporter = Reporter(style, progress=False)
    start_errors: list[WorkerStartError] = []
    with ThreadPoolExecutor(max_workers=threads, thread_name_prefix="sitemirror-worker") as executor:
        futs = [executor.submit(spawn_worker, i) for i in range(threads)]
        for f in as_completed(futs):
            try:
                f.result()
            except WorkerStartError as e:
                pool_reporter.error("starting worker", e)
                start_errors.append(e)
    if len(start_errors) == threads:
        raise MirrorError(f"No worker could start: {start_errors[0]}") from start_errors[0]
    return stats
