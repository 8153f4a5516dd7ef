"""Polling watcher that turns manifest directory changes into store events."""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import pathlib
import typing as typ

import msgspec

from registryman.logging import get_logger, log_debug, log_warning

from .filesystem import read_resources
from .loader import ManifestValidationError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

type ResourceKey = tuple[str, str, str]


class StoreChange(enum.StrEnum):
    """What happened to a resource between two polls."""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclasses.dataclass(frozen=True, slots=True)
class StoreEvent:
    """A single resource change observed by the watcher."""

    kind: str
    namespace: str
    name: str
    change: StoreChange


def diff_snapshots(
    previous: cabc.Mapping[ResourceKey, bytes],
    current: cabc.Mapping[ResourceKey, bytes],
) -> list[StoreEvent]:
    """Return the events that turn ``previous`` into ``current``."""
    events: list[StoreEvent] = []
    for key, body in current.items():
        if key not in previous:
            events.append(StoreEvent(*key, change=StoreChange.ADDED))
        elif previous[key] != body:
            events.append(StoreEvent(*key, change=StoreChange.UPDATED))
    events.extend(
        StoreEvent(*key, change=StoreChange.DELETED)
        for key in previous
        if key not in current
    )
    return events


class ManifestDirectoryWatcher:
    """Poll a manifest directory and report Registry/Project/Scanner changes.

    The first poll reports every resource as added, so a consumer that
    reconciles on any event performs an initial sync.
    """

    def __init__(self, directory: pathlib.Path) -> None:
        """Initialise the watcher for ``directory``."""
        self.directory = pathlib.Path(directory)
        self._last_seen: dict[ResourceKey, bytes] = {}

    def tick(self) -> list[StoreEvent]:
        """Read the directory once and return the changes since the last tick.

        A directory that fails to parse yields no events and leaves the
        previous snapshot in place, so the change is reported once fixed.
        """
        try:
            resources = read_resources(self.directory)
        except ManifestValidationError as exc:
            log_warning(logger, "ignoring invalid manifests: %s", exc)
            return []

        current = {
            (r.kind, r.namespace, r.name): msgspec.json.encode(r) for r in resources
        }
        events = diff_snapshots(self._last_seen, current)
        self._last_seen = current
        for event in events:
            log_debug(
                logger,
                "%s %s %s",
                event.kind,
                event.name,
                event.change,
            )
        return events

    async def run(
        self,
        handler: cabc.Callable[[StoreEvent], cabc.Awaitable[None]],
        poll_interval: float = 5.0,
    ) -> None:
        """Poll forever, awaiting ``handler`` for every event."""
        while True:
            for event in await asyncio.to_thread(self.tick):
                await handler(event)
            await asyncio.sleep(poll_interval)


__all__ = [
    "ManifestDirectoryWatcher",
    "StoreChange",
    "StoreEvent",
    "diff_snapshots",
]
