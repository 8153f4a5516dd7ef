"""Periodic write-back of each registry's actual status."""

from __future__ import annotations

import asyncio
import typing as typ

from registryman.logging import get_logger, log_debug, log_warning
from registryman.providers.registry import DEFAULT_HTTP_TIMEOUT_S, ProviderContext
from registryman.reconciler.actual import fetch_actual_status
from registryman.reconciler.expected import registry_options

from .watch import SWEEP_FAILURES

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

    from registryman.config.models import Registry
    from registryman.config.status import RegistryStatus
    from registryman.config.store import ApiObjectStore
    from registryman.providers.registry import ProviderRegistry

    type StoreLoader = cabc.Callable[[], cabc.Awaitable[ApiObjectStore]]

logger = get_logger(__name__)

DEFAULT_STATUS_INTERVAL_S = 10.0


class StatusUpdater:
    """Fetch every registry's actual status once per interval.

    Registries are fetched concurrently. Each fetch and its write-back
    are bounded by the interval so a slow registry cannot delay the next
    tick, and a failing registry is logged without affecting the others.
    """

    def __init__(
        self,
        load_store: StoreLoader,
        providers: ProviderRegistry,
        *,
        interval: float = DEFAULT_STATUS_INTERVAL_S,
        http_client: httpx.AsyncClient | None = None,
        http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        """Initialise the updater; ``load_store`` is awaited every tick."""
        self._load_store = load_store
        self._providers = providers
        self.interval = interval
        self._http_client = http_client
        self._http_timeout_s = http_timeout_s

    async def _fetch(self, store: ApiObjectStore, registry: Registry) -> RegistryStatus:
        context = ProviderContext(
            options=registry_options(registry, store.get_options()),
            http_client=self._http_client,
            timeout_s=self._http_timeout_s,
        )
        live = self._providers.new(registry, context)
        try:
            return await fetch_actual_status(
                live, self._providers.capabilities(registry.spec.provider)
            )
        finally:
            await live.aclose()

    async def update_registry(self, store: ApiObjectStore, registry: Registry) -> bool:
        """Fetch and persist the status of ``registry``; return success."""
        try:
            async with asyncio.timeout(self.interval):
                status = await self._fetch(store, registry)
                await store.update_registry_status(registry, status)
        except SWEEP_FAILURES as exc:
            log_warning(
                logger, "%s: status update failed: %s", registry.name, exc
            )
            return False
        log_debug(logger, "%s: status updated", registry.name)
        return True

    async def tick(self) -> dict[str, bool]:
        """Update every registry concurrently; map names to success."""
        try:
            store = await self._load_store()
            registries = await store.get_registries()
        except SWEEP_FAILURES as exc:
            log_warning(logger, "status update skipped: %s", exc)
            return {}
        async with asyncio.TaskGroup() as group:
            tasks = {
                registry.name: group.create_task(
                    self.update_registry(store, registry)
                )
                for registry in registries
            }
        return {name: task.result() for name, task in tasks.items()}

    async def run(self) -> None:
        """Tick once per interval until cancelled."""
        while True:
            await self.tick()
            await asyncio.sleep(self.interval)


__all__ = ["DEFAULT_STATUS_INTERVAL_S", "StatusUpdater"]
