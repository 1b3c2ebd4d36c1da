"""
Background Tile Persistence

Writes freshly fetched tiles to the store without holding up the response.
Each write runs as its own asyncio task, detached from the request that
scheduled it, so a client disconnect does not cancel it. Failures are handed
to an error sink instead of propagating.
"""

import asyncio
from typing import Callable, Optional, Set

import structlog

from ..monitoring import TileMetrics
from ..storage import TileStore
from .formats import ImageFormat

logger = structlog.get_logger(__name__)

ErrorSink = Callable[[str, BaseException], None]


def log_persistence_error(key: str, error: BaseException) -> None:
    """Default error sink: log and move on."""
    logger.error("Failed to cache tile", key=key, error=str(error))


class TilePersister:
    """Schedules best-effort tile writes as detached tasks."""

    def __init__(
        self,
        store: TileStore,
        error_sink: Optional[ErrorSink] = None,
        metrics: Optional[TileMetrics] = None
    ):
        self.store = store
        self.error_sink = error_sink or log_persistence_error
        self.metrics = metrics
        # Strong references; the event loop only keeps weak ones
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, key: str, data: bytes, image_format: ImageFormat) -> asyncio.Task:
        """Start writing a tile in the background and return the task."""
        task = asyncio.get_running_loop().create_task(
            self._persist(key, data, image_format),
            name=f"persist:{key}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _persist(self, key: str, data: bytes, image_format: ImageFormat) -> None:
        try:
            logger.info("Caching tile", key=key)
            await self.store.write(key, data, image_format.content_type)
        except Exception as e:
            if self.metrics:
                self.metrics.record_cache_write(success=False)
            self._report(key, e)
            return

        if self.metrics:
            self.metrics.record_cache_write(success=True)
        logger.info("Tile cached successfully", key=key)

    def _report(self, key: str, error: BaseException) -> None:
        try:
            self.error_sink(key, error)
        except Exception:
            logger.exception("Persistence error sink raised", key=key)

    async def drain(self) -> None:
        """Wait for every in-flight write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
