"""Operator entry point: watcher, reconciler and status updater together."""

from __future__ import annotations

import asyncio
import functools
import typing as typ

from registryman.config.filesystem import LocalFileStore
from registryman.config.watch import ManifestDirectoryWatcher
from registryman.logging import get_logger, log_info

from .resync import full_resync
from .status_updater import StatusUpdater
from .watch import WatchReconciler

if typ.TYPE_CHECKING:
    import pathlib

    from registryman.config.store import RegistryOptions
    from registryman.providers.registry import ProviderRegistry
    from registryman.settings import Settings

    from .resync import SweepResult

logger = get_logger(__name__)


async def load_directory_store(
    directory: pathlib.Path, options: RegistryOptions | None = None
) -> LocalFileStore:
    """Read the manifest directory off the event loop.

    Consistency is left to the callers, which validate before acting.
    """
    return await asyncio.to_thread(
        functools.partial(
            LocalFileStore.load, directory, options=options, validate=False
        )
    )


async def run_operator(
    directory: pathlib.Path,
    providers: ProviderRegistry,
    settings: Settings,
    *,
    options: RegistryOptions | None = None,
) -> None:
    """Watch ``directory`` and keep the fleet reconciled until cancelled.

    Every manifest change requests a full resync; the status updater runs
    on its own interval alongside.
    """
    load_store = functools.partial(load_directory_store, directory, options)

    async def sweep() -> SweepResult:
        return await full_resync(
            await load_store(),
            providers,
            dry_run=bool(getattr(options, "dry_run", False)),
            timeout=settings.resync_timeout_s,
            http_timeout_s=settings.http_timeout_s,
        )

    reconciler = WatchReconciler(sweep)
    watcher = ManifestDirectoryWatcher(directory)
    updater = StatusUpdater(
        load_store,
        providers,
        interval=settings.status_interval_s,
        http_timeout_s=settings.http_timeout_s,
    )
    log_info(logger, "operator watching %s", directory)
    async with asyncio.TaskGroup() as group:
        group.create_task(
            watcher.run(reconciler.handle, poll_interval=settings.watch_interval_s)
        )
        group.create_task(reconciler.run())
        group.create_task(updater.run())


__all__ = ["load_directory_store", "run_operator"]
