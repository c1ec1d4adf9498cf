"""
Tests for the pending-action tracker and the serialized action queue.
"""

import asyncio

import pytest

from klondike.engine.queue import ActionQueue, PendingAction, PendingActionTracker
from klondike.errors import PendingActionLeakError


def test_tracker_register_and_release():
    tracker = PendingActionTracker()
    token = tracker.register("draw")
    assert isinstance(token, PendingAction)
    assert tracker.count == 1
    assert tracker.pending == [token]
    tracker.release(token)
    assert tracker.count == 0


def test_double_release_raises():
    tracker = PendingActionTracker()
    token = tracker.register("draw")
    tracker.release(token)
    with pytest.raises(PendingActionLeakError):
        tracker.release(token)


def test_discard_is_idempotent():
    tracker = PendingActionTracker()
    token = tracker.register("draw")
    tracker.discard(token)
    tracker.discard(token)
    assert tracker.count == 0


@pytest.mark.asyncio
async def test_wait_for_idle_when_idle():
    tracker = PendingActionTracker()
    await tracker.wait_for_idle(timeout=0.1)


@pytest.mark.asyncio
async def test_wait_for_idle_times_out():
    tracker = PendingActionTracker()
    tracker.register("stuck")
    with pytest.raises(asyncio.TimeoutError):
        await tracker.wait_for_idle(timeout=0.01)


@pytest.mark.asyncio
async def test_track_releases_on_error():
    tracker = PendingActionTracker()
    with pytest.raises(RuntimeError):
        async with tracker.track("fetch"):
            assert tracker.count == 1
            raise RuntimeError("fetch failed")
    assert tracker.count == 0


@pytest.mark.asyncio
async def test_submit_registers_before_returning():
    queue = ActionQueue()

    task = queue.submit("draw", lambda: "done")

    # Nothing has run yet, but the command already counts as pending
    assert queue.tracker.count == 1
    assert await task == "done"
    assert queue.tracker.count == 0
    assert queue.completed == 1


@pytest.mark.asyncio
async def test_commands_run_one_at_a_time_in_order():
    queue = ActionQueue()
    log = []

    def command(name):
        async def run():
            log.append(f"start {name}")
            await asyncio.sleep(0.01)
            log.append(f"end {name}")
            return name

        return run

    tasks = [queue.submit("move", command(n)) for n in ("a", "b", "c")]
    assert queue.tracker.count == 3

    results = await asyncio.gather(*tasks)

    assert results == ["a", "b", "c"]
    assert log == ["start a", "end a", "start b", "end b", "start c", "end c"]
    assert queue.tracker.count == 0


@pytest.mark.asyncio
async def test_failed_command_releases_its_token():
    queue = ActionQueue()

    def explode():
        raise ValueError("bad command")

    failing = queue.submit("move", explode)
    following = queue.submit("draw", lambda: "ok")

    with pytest.raises(ValueError):
        await failing
    assert await following == "ok"
    assert queue.tracker.count == 0
    assert queue.failed == 1
    assert queue.completed == 1


@pytest.mark.asyncio
async def test_wait_for_idle_waits_for_commands():
    queue = ActionQueue()
    finished = []

    async def slow():
        await asyncio.sleep(0.02)
        finished.append(True)

    queue.submit("draw", slow)
    await queue.tracker.wait_for_idle(timeout=1)
    assert finished == [True]


@pytest.mark.asyncio
async def test_active_command_is_visible():
    queue = ActionQueue()
    seen = []

    def probe():
        seen.append((queue.active.kind, queue.is_locked))

    await queue.submit("undo", probe)

    assert seen == [("undo", True)]
    assert queue.active is None
    assert not queue.is_locked


@pytest.mark.asyncio
async def test_cancelled_before_start_does_not_leak():
    queue = ActionQueue()
    task = queue.submit("draw", lambda: None)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert queue.tracker.count == 0
