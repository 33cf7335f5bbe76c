import asyncio
import logging

from .config import Config
from .constants import APP_NAME
from .orchestrator import SyncOrchestrator

logger = logging.getLogger(APP_NAME)


class CycleScheduler:
    """Triggers orchestrator cycles: once on start, then on a fixed period.

    Each trigger starts an independent cycle task, so a trigger that fires while
    a previous cycle is still running is dropped by the orchestrator's
    single-flight guard. Stopping the scheduler only cancels the periodic
    trigger; cycles already in flight run to completion.

    Attributes:
        orchestrator (SyncOrchestrator): The cycle runner.
        config (Config): Supplies `enabled` and `continuous_pull` settings.
    """

    def __init__(self, orchestrator: SyncOrchestrator, config: Config) -> None:
        self.orchestrator = orchestrator
        self.config = config
        self._ticker: asyncio.Task | None = None
        self._cycles: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        """Starts the first cycle and, in continuous mode, the periodic trigger.

        Must be called from within a running event loop.
        """
        if not self.config.enabled:
            logger.info("Auto pull disabled by configuration.")
            return

        self.trigger()

        continuous = self.config.continuous_pull
        if continuous.enabled and not self.running:
            logger.info(f"Continuous pull every {continuous.interval} ms.")
            self._ticker = asyncio.create_task(
                self._tick(continuous.interval / 1000), name="autopull:ticker"
            )

    def trigger(self) -> asyncio.Task:
        """Starts one cycle as a background task."""
        task = asyncio.create_task(self.orchestrator.run_cycle(), name="autopull:cycle")
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        return task

    def stop(self) -> None:
        """Cancels the periodic trigger. In-flight cycles are left running."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def wait_idle(self) -> None:
        """Waits until every cycle started by this scheduler has finished."""
        while self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    async def _tick(self, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            self.trigger()
