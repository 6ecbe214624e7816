"""Background eviction of idle sessions."""
import asyncio
import logging
from typing import Optional

from ..core.config import SessionConfig
from .tabs import SessionRegistry

logger = logging.getLogger(__name__)


class SessionReaper:
    """Periodically closes sessions that have been idle too long."""

    def __init__(self, registry: SessionRegistry, config: Optional[SessionConfig] = None) -> None:
        self._registry = registry
        self.config = config or SessionConfig()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> list[str]:
        """Evict every session idle past the timeout.

        A context that fails to close is still evicted; the failure is logged
        and the sweep moves on.

        Returns:
            User ids that were evicted.
        """
        cutoff = self._registry.now() - self.config.idle_timeout_seconds
        expired = [
            user_id
            for user_id, session in self._registry.items()
            if session.last_access < cutoff
        ]
        evicted: list[str] = []
        for user_id in expired:
            session = self._registry.pop(user_id)
            if session is None:
                continue
            evicted.append(user_id)
            try:
                await session.context.close()
            except Exception as e:
                logger.warning(f"Failed to close expired context for user {user_id}: {e}")
            logger.info(f"Session expired for user {user_id}")
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.reap_interval_seconds)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug("Session reaper started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
