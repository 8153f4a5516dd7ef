"""Watch-driven reconciler: store events trigger coalesced full resyncs."""

from __future__ import annotations

import asyncio
import typing as typ

import httpx

from registryman.errors import RegistrymanError
from registryman.logging import get_logger, log_debug, log_exception

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from registryman.config.watch import StoreEvent

    from .resync import SweepResult

logger = get_logger(__name__)

WATCHED_KINDS = frozenset({"Registry", "Project", "Scanner"})

# Failures that end one sweep without stopping the reconciler.
SWEEP_FAILURES: tuple[type[BaseException], ...] = (
    RegistrymanError,
    ValueError,
    TimeoutError,
    OSError,
    httpx.HTTPError,
)


class WatchReconciler:
    """Run one full resync per burst of store events.

    At most one sweep runs at a time. Events arriving while a sweep runs
    are folded into a single follow-up sweep, so a burst of changes never
    queues more than one extra pass.
    """

    def __init__(self, sweep: cabc.Callable[[], cabc.Awaitable[SweepResult]]) -> None:
        """Initialise with the coroutine function performing one sweep."""
        self._sweep = sweep
        self._requested = asyncio.Event()
        self.sweeps_started = 0

    def request(self) -> None:
        """Ask for a sweep; repeated requests before it starts coalesce."""
        self._requested.set()

    async def handle(self, event: StoreEvent) -> None:
        """Request a sweep for Registry, Project and Scanner events."""
        if event.kind not in WATCHED_KINDS:
            return
        log_debug(
            logger, "%s %s %s: resync requested", event.kind, event.name, event.change
        )
        self.request()

    async def run_once(self) -> SweepResult | None:
        """Run one sweep, logging and absorbing sweep-level failures."""
        self.sweeps_started += 1
        try:
            return await self._sweep()
        except SWEEP_FAILURES as exc:
            log_exception(logger, "failed to synchronize states", exc)
            return None

    async def run(self) -> None:
        """Serve sweep requests until cancelled."""
        while True:
            await self._requested.wait()
            self._requested.clear()
            await self.run_once()


__all__ = ["SWEEP_FAILURES", "WATCHED_KINDS", "WatchReconciler"]
