"""Background scheduling of the daily accrual run.

The worker sleeps until the configured UTC hour, runs the accrual engine in a
worker thread and goes back to sleep. It can also run once at startup, which
mirrors running the points update when the server boots.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from rarity_checker.core.errors import RarityCheckerError
from rarity_checker.core.settings import Settings
from rarity_checker.db.time import utcnow
from rarity_checker.services.accrual import AccrualEngine, AccrualReport

logger = logging.getLogger(__name__)


def seconds_until_next_run(now: datetime, hour_utc: int) -> float:
    """Return the delay until the next ``hour_utc:00`` strictly after ``now``."""
    target = now.replace(hour=hour_utc, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class AccrualWorker:
    """Runs the accrual engine on a daily schedule.

    Overlapping runs are prevented by a lock, so an on-demand run and the
    scheduled one never interleave.
    """

    def __init__(
        self,
        engine: AccrualEngine,
        config: Settings,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.engine = engine
        self._config = config
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._run_lock = asyncio.Lock()
        self.last_report: AccrualReport | None = None

    async def start(self) -> None:
        """Start the background scheduling loop."""
        if not self._config.accrual_enabled:
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background scheduling loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def run_once(self) -> AccrualReport:
        """Run one accrual period now."""
        async with self._run_lock:
            report = await asyncio.to_thread(self.engine.run)
        self.last_report = report
        return report

    async def _run_guarded(self) -> None:
        try:
            await self.run_once()
        except RarityCheckerError as e:
            logger.error("Accrual run aborted: %s", e.message)
        except (OSError, ConnectionError, TimeoutError) as e:
            logger.error("Accrual run hit a connection error: %s", e, exc_info=True)

    async def _run(self) -> None:
        if self._config.accrual_run_on_startup:
            await self._run_guarded()

        while not self._stopping.is_set():
            delay = seconds_until_next_run(self._clock(), self._config.accrual_hour_utc)
            logger.debug("Next accrual run in %.0f seconds", delay)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
                return
            except TimeoutError:
                pass
            await self._run_guarded()
