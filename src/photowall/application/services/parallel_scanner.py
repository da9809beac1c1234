"""Bounded thread pool that runs the per-file pipeline."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def resolve_worker_count(requested: int) -> int:
    """Return *requested*, or the CPU count when it is ``0`` or negative."""

    if requested > 0:
        return requested
    return max(os.cpu_count() or 1, 1)


class ParallelScanner:
    """Run a function over many files with at most ``max_workers`` in flight.

    Results come back in input order, so callers that rely on encounter
    order (stable sorting) see the same sequence as a sequential run.  Files
    share no state; the caller aggregates the returned values.
    """

    def __init__(self, max_workers: int = 1):
        self._max_workers = resolve_worker_count(max_workers)

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def map(self, fn: Callable[[T], R], items: Sequence[T]) -> List[R]:
        """Apply *fn* to every item; the first exception escaping *fn* propagates."""

        if self._max_workers == 1 or len(items) <= 1:
            return [fn(item) for item in items]

        LOGGER.debug("Processing %d files on %d workers", len(items), self._max_workers)
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [executor.submit(fn, item) for item in items]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
