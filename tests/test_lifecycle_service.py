import asyncio
import logging

import pytest

from services.lifecycle_service import LifecycleScope


@pytest.mark.asyncio
async def test_cancel_stops_pending_work():
    scope = LifecycleScope()
    finished = []

    async def work():
        await asyncio.sleep(10)
        finished.append(True)

    task = scope.launch(work())
    await asyncio.sleep(0)
    scope.cancel()
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert finished == []
    assert scope.active == 0


@pytest.mark.asyncio
async def test_launch_after_cancel_is_dropped():
    scope = LifecycleScope()
    scope.cancel()
    ran = []

    async def work():
        ran.append(True)

    assert scope.launch(work()) is None
    await asyncio.sleep(0)
    assert ran == []


@pytest.mark.asyncio
async def test_failing_task_is_logged(caplog):
    scope = LifecycleScope()

    async def boom():
        raise RuntimeError("decode exploded")

    with caplog.at_level(logging.ERROR):
        task = scope.launch(boom())
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    assert "Lifecycle task failed" in caplog.text
