"""Fixed-interval polling scheduler."""

import asyncio
from collections.abc import Awaitable, Callable

from .utils.logging import get_logger


logger = get_logger(__name__)


class PollingScheduler:
    """Calls ``on_tick`` right away and then every ``interval`` seconds."""

    def __init__(self, interval: float, on_tick: Callable[[], Awaitable[None]]):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        self.interval = interval
        self.on_tick = on_tick
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking in the background."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop ticking and wait for the loop to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        try:
            while True:
                await self.on_tick()
                next_tick += self.interval
                # Skip ticks missed while on_tick was slow instead of bursting
                while next_tick <= loop.time():
                    next_tick += self.interval
                await asyncio.sleep(next_tick - loop.time())
        except asyncio.CancelledError:
            logger.info("Polling stopped")
            raise
