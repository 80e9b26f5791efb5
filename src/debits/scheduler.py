"""In-process scheduler for the hourly debit run.

One `DebitScheduler` is built per process (in the app lifespan) and kept on
`app.state`. `start()` arms a single asyncio task that runs the processor
straight away and then once per interval. Each tick is awaited before the
next sleep, so ticks never overlap; the interval is measured from tick
start, and a tick that overruns the interval is followed immediately by
the next one.

`stop()` cancels the timer task between ticks. A run that is already in
flight is shielded from that cancellation; `drain()` waits for it, and for
any run a stop-then-start left behind.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Set

from src.debits.schemas import RunSummary, SchedulerStatus
from src.debits.services import DebitProcessor

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60 * 60


def utc_now():
    return datetime.now(timezone.utc)


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class DebitScheduler:

    def __init__(self, processor: DebitProcessor, interval_seconds: float = DEFAULT_INTERVAL_SECONDS):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.processor = processor
        self.interval_seconds = interval_seconds
        self.state = SchedulerState.STOPPED
        self.last_summary: Optional[RunSummary] = None

        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._next_run_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self.state == SchedulerState.RUNNING

    def start(self):
        """Run once now, then every interval. Must be called from a running event loop."""
        if self.is_running:
            logger.info("Scheduler is already running")
            return

        logger.info("Starting hourly debit scheduler (every %s seconds)", self.interval_seconds)

        self._next_run_at = utc_now()
        self._timer = asyncio.get_running_loop().create_task(
            self._run_forever(), name="debit-scheduler"
        )
        self.state = SchedulerState.RUNNING

        logger.info("Hourly debit scheduler started successfully")

    def stop(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        was_running = self.is_running
        self.state = SchedulerState.STOPPED
        self._next_run_at = None

        if was_running:
            logger.info("Hourly debit scheduler stopped")

    async def drain(self):
        """Wait for every scheduled run still in flight, including any a restart left behind."""
        pending = {run for run in self._in_flight if not run.done()}
        if pending:
            logger.info("Waiting for %d in-flight debit run(s) to finish", len(pending))
            await asyncio.wait(pending)

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            is_running=self.is_running,
            next_run=self._next_run_at if self.is_running else None,
        )

    async def _run_forever(self):
        loop = asyncio.get_running_loop()

        while True:
            started = loop.time()
            self._next_run_at = utc_now() + timedelta(seconds=self.interval_seconds)

            run = asyncio.ensure_future(self._tick())
            self._in_flight.add(run)
            run.add_done_callback(self._in_flight.discard)
            await asyncio.shield(run)

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))

    async def _tick(self):
        # a failed run is logged and the timer keeps going
        try:
            logger.info("Running scheduled debit process at %s", utc_now().isoformat())
            summary = await self.processor.run_once()
            self.last_summary = summary
            logger.info(
                "Scheduled debit process completed: %d successful, %d failed",
                summary.successful, summary.failed
            )
        except Exception:
            logger.exception("Error in scheduled debit process")
