"""
Debounced customer search.

Each call to update() schedules a lookup after a quiet period. A newer
query supersedes any pending or in-flight lookup: the pending one is
cancelled and, if an older lookup still resolves, its result is dropped.
Only the latest query ever publishes results.
"""

import asyncio
import logging
from typing import Optional

from .backends.base import BaseSubscriptionBackend
from .conf import get_setting
from .exceptions import BackendError

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class DebouncedCustomerSearch:
    """Customer lookup that waits for input inactivity before searching."""

    def __init__(
        self,
        backend: BaseSubscriptionBackend,
        delay: Optional[float] = None,
        limit: Optional[int] = None,
        min_length: int = MIN_QUERY_LENGTH,
    ):
        self.backend = backend
        self.delay = delay if delay is not None else float(get_setting("SEARCH_DEBOUNCE_SECONDS"))
        self.limit = limit if limit is not None else int(get_setting("SEARCH_LIMIT"))
        self.min_length = min_length
        self.query = ""
        self.results = []
        self.has_searched = False
        self.loading = False
        self.error: Optional[str] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    def update(self, query: str) -> None:
        """Register a new query; must be called from a running event loop."""
        self._generation += 1
        self.query = query or ""
        self._cancel_pending()

        if self._closed:
            return
        if len(self.query) < self.min_length:
            self.results = []
            self.has_searched = False
            self.error = None
            return

        self._task = asyncio.get_running_loop().create_task(
            self._run(self.query, self._generation)
        )

    async def _run(self, query: str, generation: int) -> None:
        await asyncio.sleep(self.delay)
        if generation != self._generation:
            return

        self.loading = True
        try:
            results = await self.backend.asearch_customers(query, limit=self.limit)
        except BackendError as e:
            if generation == self._generation and not self._closed:
                logger.warning(f"Customer search for '{query}' failed: {e}")
                self.error = "Failed to search customers"
                self.has_searched = True
            return
        finally:
            if generation == self._generation:
                self.loading = False

        # Superseded or closed while in flight
        if generation != self._generation or self._closed:
            logger.debug(f"Dropping stale search results for '{query}'")
            return

        self.results = results
        self.error = None
        self.has_searched = True

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.loading = False
        self._task = None

    async def wait(self) -> None:
        """Wait for the current lookup (if any) to settle."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    def close(self) -> None:
        """Stop searching; late results are ignored."""
        self._closed = True
        self._generation += 1
        self._cancel_pending()
