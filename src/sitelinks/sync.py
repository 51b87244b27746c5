"""
Thread-safe state shared by crawl workers: the visited registry, the fetch
gate bounding in-flight requests, and the lifecycle tracker that signals
crawl completion.
"""
from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple


class VisitedRegistry:
    """Canonical URL -> inbound link count. Entries are never removed."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pages: Dict[str, int] = {}

    def record_visit(self, canonical: str) -> bool:
        """Count a discovery of canonical. Return True only for the first one."""
        with self._lock:
            if canonical in self._pages:
                self._pages[canonical] += 1
                return False
            self._pages[canonical] = 1
            return True

    def size(self) -> int:
        with self._lock:
            return len(self._pages)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._pages)


def rank_pages(pages: Dict[str, int]) -> List[Tuple[str, int]]:
    """Pages by inbound count descending, ties by URL ascending."""
    return sorted(pages.items(), key=lambda item: (-item[1], item[0]))


class FetchGate:
    """
    Counting semaphore bounding how many workers fetch at once.

    Also records the peak number of simultaneous holders.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    def acquire(self) -> None:
        self._semaphore.acquire()
        with self._lock:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)

    def release(self) -> None:
        with self._lock:
            if self._in_flight == 0:
                raise ValueError("FetchGate released too many times")
            self._in_flight -= 1
        self._semaphore.release()

    def __enter__(self) -> "FetchGate":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak


class LifecycleTracker:
    """Counter of pending workers; wait() returns once it drains to zero."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0

    def add(self, n: int = 1) -> None:
        with self._cond:
            self._pending += n

    def done(self) -> None:
        with self._cond:
            if self._pending <= 0:
                raise RuntimeError("done() called with no pending workers")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no workers are pending. False if timeout expired first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout=timeout)

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending
