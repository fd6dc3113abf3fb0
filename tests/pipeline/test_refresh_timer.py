import asyncio

import pytest

from stock_tracker.pipeline.refresh_timer import RefreshTimer


@pytest.mark.asyncio
async def test_start_and_stop_toggle_running():
    async def callback():
        pass

    timer = RefreshTimer(callback, interval_seconds=60)
    assert not timer.running

    timer.start()
    timer.start()  # no-op
    assert timer.running

    timer.stop()
    timer.stop()  # no-op
    assert not timer.running


@pytest.mark.asyncio
async def test_callback_fires_on_interval():
    ticks = []

    async def callback():
        ticks.append(asyncio.get_running_loop().time())

    timer = RefreshTimer(callback, interval_seconds=0.1)
    timer.start()
    try:
        await asyncio.sleep(0.65)
    finally:
        timer.stop()

    assert len(ticks) >= 2


@pytest.mark.asyncio
async def test_no_ticks_after_stop():
    ticks = []

    async def callback():
        ticks.append(1)

    timer = RefreshTimer(callback, interval_seconds=0.1)
    timer.start()
    await asyncio.sleep(0.35)
    timer.stop()
    seen = len(ticks)
    await asyncio.sleep(0.35)

    assert len(ticks) == seen


@pytest.mark.asyncio
async def test_slow_tick_is_not_overlapped():
    running = []
    overlaps = []

    async def callback():
        if running:
            overlaps.append(1)
        running.append(1)
        await asyncio.sleep(0.3)
        running.pop()

    timer = RefreshTimer(callback, interval_seconds=0.1)
    timer.start()
    try:
        await asyncio.sleep(0.8)
    finally:
        timer.stop()

    assert overlaps == []
