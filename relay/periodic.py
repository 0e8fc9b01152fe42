import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from logging_config import get_logger

logger = get_logger(__name__)


class PeriodicTask(ABC):
    """Runs ``tick()`` every ``interval`` seconds on an asyncio task.

    ``start()`` and ``stop()`` are owned by the application lifespan. Tests
    call ``tick()`` directly instead of waiting on the clock.
    """

    name = "periodic"

    def __init__(self, interval: float):
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @abstractmethod
    def tick(self):
        ...

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info(f"Started {self.name} (every {self.interval}s)")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Stopped {self.name}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error in {self.name} tick: {e}", exc_info=True)
