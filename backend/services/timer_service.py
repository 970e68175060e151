"""
timer_service.py — One-second tick scheduling
A ticker owns at most one recurring callback. The garden engine starts it when
the focus timer enters `running` and cancels it on every transition out of it.
"""

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class ManualTicker:
    """No scheduling at all; the caller invokes `engine.tick()` itself."""

    def __init__(self):
        self.active = False

    def start(self, callback: Callable[[], object]):
        self.active = True

    def stop(self):
        self.active = False


class AsyncioTicker:
    """Runs `callback` once per second on the running event loop until stopped."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], object]):
        # Never two loops for one timer
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._worker(callback))
        logger.debug("Ticker started")

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Ticker stopped")

    async def _worker(self, callback: Callable[[], object]):
        try:
            while True:
                await asyncio.sleep(self.interval)
                callback()
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Ticker callback failed: %s", e)
            raise
