"""
Decentralized termination detection for the worker pool.

Every worker starts counted as busy. A worker that finds the queue empty
announces itself idle, waits (bounded) for the busy count to reach zero, and
leaves only if at that point no worker is busy and the queue is empty;
otherwise it announces itself busy again and goes back to polling.
"""

import threading
from typing import Callable

DEFAULT_IDLE_WAIT = 1.0


class TerminationError(RuntimeError):
    """The busy counter was moved outside [0, workers]."""


class TerminationDetector:
    def __init__(self, workers: int, idle_wait: float = DEFAULT_IDLE_WAIT) -> None:
        if workers < 1:
            raise ValueError("at least one worker is required")
        self._workers = workers
        self._busy = workers
        self._idle_wait = idle_wait
        self._cond = threading.Condition()
        # threads that announced idle and have not resumed
        self._idle_threads: set[int] = set()

    @property
    def busy(self) -> int:
        with self._cond:
            return self._busy

    @property
    def workers(self) -> int:
        with self._cond:
            return self._workers

    def is_idle(self) -> bool:
        """True if the calling thread is currently counted idle."""
        with self._cond:
            return threading.get_ident() in self._idle_threads

    def idle(self) -> None:
        """Announce that the calling worker has no work."""
        with self._cond:
            if self._busy <= 0:
                raise TerminationError("Failed to decrement busy counter: already zero")
            self._busy -= 1
            self._idle_threads.add(threading.get_ident())
            self._cond.notify_all()

    def resume(self) -> None:
        """Announce that the calling worker is polling for work again."""
        with self._cond:
            if self._busy >= self._workers:
                raise TerminationError(
                    f"Failed to increment busy counter: already {self._workers}"
                )
            self._busy += 1
            self._idle_threads.discard(threading.get_ident())
            self._cond.notify_all()

    def retire(self) -> None:
        """
        Remove the calling worker from the baseline for good (it failed to start or crashed).
        Its busy slot is released only if it still holds one.
        """
        with self._cond:
            ident = threading.get_ident()
            if ident in self._idle_threads:
                if self._workers <= 0:
                    raise TerminationError("Failed to retire worker: no worker left")
                self._idle_threads.discard(ident)
            else:
                if self._busy <= 0 or self._workers <= 0:
                    raise TerminationError("Failed to retire worker: no busy worker left")
                self._busy -= 1
            self._workers -= 1
            self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no worker is busy or timeout elapses. Returns True if the count hit zero."""
        with self._cond:
            return self._cond.wait_for(
                lambda: self._busy == 0,
                self._idle_wait if timeout is None else timeout,
            )

    def should_exit(self, is_empty: Callable[[], bool]) -> bool:
        """Exit check: busy count is zero and is_empty() holds, observed under one lock."""
        with self._cond:
            return self._busy == 0 and is_empty()

    def idle_round(self, is_empty: Callable[[], bool]) -> bool:
        """
        One round of the protocol for a worker that just saw an empty queue.
        Returns True if the worker must stop, False after it has resumed.
        """
        self.idle()
        self.wait()
        if self.should_exit(is_empty):
            with self._cond:
                self._idle_threads.discard(threading.get_ident())
            return True
        self.resume()
        return False
