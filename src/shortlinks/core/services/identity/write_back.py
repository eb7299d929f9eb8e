import asyncio

from loguru import logger

from src.shortlinks.core.models.session import SessionIdentity
from src.shortlinks.core.services.identity.session_cache import SessionCache


class WriteBackScheduler:
    """Runs session cache write-backs as detached tasks.

    Callers never wait for a write-back and never see its failure; failures are
    logged and counted in ``failed``. References to pending tasks are kept so
    they are not garbage collected mid-flight and can be drained on shutdown.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self.completed = 0
        self.failed = 0

    def schedule(self, cache: SessionCache, identity: SessionIdentity) -> asyncio.Task:
        task = asyncio.create_task(self._write(cache, identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled write-back to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _write(self, cache: SessionCache, identity: SessionIdentity) -> None:
        try:
            await cache.write(identity)
        except Exception:
            self.failed += 1
            logger.opt(exception=True).error(
                "Failed to write user id {} to session", identity
            )
            return
        self.completed += 1
        logger.debug("Cached user id {} in session {}", identity, cache.session.id)
