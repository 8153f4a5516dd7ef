"""Unit tests for the event-driven, single-flight resync loop."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import contextlib

import pytest

from registryman.config.watch import StoreChange, StoreEvent
from registryman.errors import StoreError
from registryman.operator.resync import SweepResult
from registryman.operator.watch import WatchReconciler
from tests.helpers.femtologging_capture import capture_femto_logs


async def _until(condition: cabc.Callable[[], bool], attempts: int = 200) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0.001)
    msg = "condition not reached"
    raise AssertionError(msg)


@pytest.mark.asyncio
async def test_only_resource_kinds_request_sweeps() -> None:
    """Secrets and other kinds never trigger a resync."""
    calls: list[int] = []

    async def sweep() -> SweepResult:
        calls.append(1)
        return SweepResult()

    reconciler = WatchReconciler(sweep)
    await reconciler.handle(StoreEvent("Secret", "", "creds", StoreChange.ADDED))
    task = asyncio.create_task(reconciler.run())
    await asyncio.sleep(0.01)
    assert calls == []

    await reconciler.handle(StoreEvent("Project", "", "ubuntu", StoreChange.UPDATED))
    await _until(lambda: len(calls) == 1)

    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_requests_during_a_sweep_coalesce() -> None:
    """A burst of requests during a sweep yields exactly one more sweep."""
    release = asyncio.Event()
    calls: list[int] = []

    async def sweep() -> SweepResult:
        calls.append(1)
        if len(calls) == 1:
            await release.wait()
        return SweepResult()

    reconciler = WatchReconciler(sweep)
    task = asyncio.create_task(reconciler.run())
    reconciler.request()
    await _until(lambda: len(calls) == 1)

    for _ in range(5):
        reconciler.request()
    release.set()
    await _until(lambda: len(calls) == 2)
    await asyncio.sleep(0.01)

    assert len(calls) == 2
    assert reconciler.sweeps_started == 2
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_failed_sweep_is_logged_and_absorbed() -> None:
    """Sweep failures are logged; the reconciler keeps serving."""

    async def sweep() -> SweepResult:
        raise StoreError("cannot read manifest directory")

    reconciler = WatchReconciler(sweep)
    with capture_femto_logs("registryman.operator.watch") as logs:
        assert await reconciler.run_once() is None
        record = logs.wait_for_message("failed to synchronize states")
    assert "ERROR" in record.level.upper()


@pytest.mark.asyncio
async def test_programming_errors_propagate() -> None:
    """Errors outside the sweep failure set are not swallowed."""

    async def sweep() -> SweepResult:
        raise KeyError("bug")

    with pytest.raises(KeyError):
        await WatchReconciler(sweep).run_once()
