"""
Single-flight guard: at most one minting run per process.

Non-blocking: a second caller is told the run is busy instead of waiting. Does
not coordinate across processes; the unique constraint on mint_records.goal_id
covers that case.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class SingleFlightGuard:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        """Acquire without blocking. False if a run already holds the guard."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def held(self) -> Iterator[bool]:
        """
        Yield True if acquired (released on exit, even on error), else False.

            with guard.held() as acquired:
                if not acquired:
                    return
        """
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
