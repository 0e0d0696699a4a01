"""Multi-lane FIFO job queue: one unbounded lane per priority, higher lanes drained first."""

import queue
from enum import IntEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class Priority(IntEnum):
    """Service order: lower value is served first."""

    NORMAL = 0
    LOW = 1


DEFAULT_PRIORITY = Priority.NORMAL


class PriorityQueue(Generic[T]):
    """
    Thread-safe priority queue built from one queue.SimpleQueue per Priority.

    push never blocks; pop returns None when every lane is empty. Lanes are
    independent, so pushes and pops on different lanes never contend.
    """

    def __init__(self) -> None:
        self._lanes: dict[Priority, queue.SimpleQueue[T]] = {
            priority: queue.SimpleQueue() for priority in Priority
        }

    def push(self, item: T, priority: Priority | None = None) -> None:
        """Append item to the lane for priority (NORMAL when None)."""
        self._lanes[DEFAULT_PRIORITY if priority is None else priority].put(item)

    def pop_priority(self, priority: Priority) -> T | None:
        try:
            return self._lanes[priority].get_nowait()
        except queue.Empty:
            return None

    def pop(self) -> T | None:
        """Oldest item of the highest-priority non-empty lane, or None."""
        for priority in Priority:
            item = self.pop_priority(priority)
            if item is not None:
                return item
        return None

    def is_empty(self) -> bool:
        """Best-effort snapshot; concurrent pushes may make it stale immediately."""
        return all(lane.empty() for lane in self._lanes.values())

    def __len__(self) -> int:
        return sum(lane.qsize() for lane in self._lanes.values())
