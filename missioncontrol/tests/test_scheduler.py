import asyncio

import pytest

from missioncontrol.aggregator import DashboardAggregator, PageStatus
from missioncontrol.workers.scheduler import RefreshScheduler


class _FlakyAggregator:
    def __init__(self) -> None:
        self.calls = 0

    async def refresh(self) -> bool:
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("boom")
        return True


@pytest.mark.asyncio
async def test_scheduler_refreshes_on_start_and_stops_cleanly(fake_store):
    agg = DashboardAggregator(store=fake_store)
    scheduler = RefreshScheduler(aggregator=agg, interval=3600)

    await scheduler.start()
    assert scheduler.running is True

    for _ in range(100):
        if agg.status == PageStatus.LOADED:
            break
        await asyncio.sleep(0)
    assert agg.status == PageStatus.LOADED

    # Starting twice does not spawn a second loop.
    await scheduler.start()
    assert fake_store.fetch_calls == 5

    await scheduler.stop()
    assert scheduler.running is False
    assert scheduler._task is None


@pytest.mark.asyncio
async def test_scheduler_survives_tick_errors():
    agg = _FlakyAggregator()
    scheduler = RefreshScheduler(aggregator=agg, interval=0.01)

    await scheduler.start()
    for _ in range(50):
        if agg.calls >= 2:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    assert agg.calls >= 2


@pytest.mark.asyncio
async def test_stop_without_start_is_harmless():
    scheduler = RefreshScheduler(aggregator=_FlakyAggregator(), interval=1)
    await scheduler.stop()
    assert scheduler.running is False
