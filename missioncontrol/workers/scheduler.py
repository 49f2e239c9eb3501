"""Refresh scheduler: re-runs the dashboard fetch on a fixed interval."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from missioncontrol.aggregator import DashboardAggregator, aggregator as default_aggregator
from missioncontrol.config import settings

logger = logging.getLogger("missioncontrol.scheduler")


class RefreshScheduler:
    """Asyncio-based polling task running inside the FastAPI event loop.

    Refreshes once on start, then every `interval` seconds until stopped.
    Overlapping ticks are prevented by the aggregator's own guard.
    """

    def __init__(
        self,
        aggregator: DashboardAggregator | None = None,
        interval: float | None = None,
    ) -> None:
        self.aggregator = aggregator or default_aggregator
        self.interval = interval if interval is not None else settings.refresh_interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background refresh loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Scheduler started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Scheduler stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self._tick()
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in tick: {e}")
                await asyncio.sleep(self.interval)

    async def _tick(self) -> None:
        await self.aggregator.refresh()


# Global scheduler instance
scheduler = RefreshScheduler()
