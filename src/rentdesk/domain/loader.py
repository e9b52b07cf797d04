"""Concurrent dashboard loading with a stale-response guard.

A dashboard issues several independent reads. They run in parallel and the
loader waits for all of them. Every load takes a generation number when it
starts; when a newer load starts before an older one finishes, the older
result is rejected with StaleResultError instead of being returned over the
newer one. Generations rise on every call, so a repeated filter key (A, then
B, then A again) still supersedes the earlier load of that key.
"""

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Hashable, Mapping, Optional

from rentdesk.domain.errors import DataSourceError, StaleResultError

logger = logging.getLogger(__name__)


class DashboardLoader:
    """Fan-out / fan-in loader for dashboard reads."""

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers
        self._lock = threading.Lock()
        self._generations = itertools.count(1)
        self._latest_generation = 0
        self._latest_key: Optional[Hashable] = None

    @property
    def latest_key(self) -> Optional[Hashable]:
        with self._lock:
            return self._latest_key

    def is_current(self, key: Hashable) -> bool:
        """Return True if key belongs to the most recently requested load."""
        with self._lock:
            return self._latest_key == key

    def _begin(self, key: Hashable) -> int:
        with self._lock:
            generation = next(self._generations)
            self._latest_generation = generation
            self._latest_key = key
            return generation

    def _is_latest(self, generation: int) -> bool:
        with self._lock:
            return self._latest_generation == generation

    def load(self, key: Hashable, fetches: Mapping[str, Callable[[], Any]]) -> dict[str, Any]:
        """Run every fetch concurrently and return their results by name.

        Args:
            key: Identity of the filter that requested this load
            fetches: Named zero-argument callables reading from the store

        Returns:
            Mapping of fetch name to result

        Raises:
            DataSourceError: If any fetch fails to read the store
            StaleResultError: If a newer load was requested meanwhile
        """
        generation = self._begin(key)

        results = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {name: executor.submit(fetch) for name, fetch in fetches.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except DataSourceError as e:
                    logger.error("Dashboard fetch '%s' failed: %s", name, e)
                    raise DataSourceError(f"{name}: {e}") from e

        if not self._is_latest(generation):
            logger.info("Discarding stale dashboard load #%d for %s", generation, key)
            raise StaleResultError(f"Load #{generation} for {key} was superseded by a newer request")
        return results
