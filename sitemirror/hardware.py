"""Light hardware autodetection for the default worker count."""

import os

# Cap workers to stay polite to the mirrored site; scale with CPU otherwise.
MAX_WORKERS = 16
MIN_WORKERS = 1


def default_workers() -> int:
    """Suggested number of crawl threads from CPU count."""
    n = os.cpu_count()
    if n is None or n < 1:
        return MIN_WORKERS
    return max(MIN_WORKERS, min(n, MAX_WORKERS))


def clamp_workers(requested: int | None) -> int:
    """Requested thread count, or the default, clamped to at least one."""
    if requested is None:
        return default_workers()
    return max(MIN_WORKERS, requested)
