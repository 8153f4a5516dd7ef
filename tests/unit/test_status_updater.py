"""Unit tests for the periodic registry status write-back."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import typing as typ

import pytest

from registryman.config.enums import MemberRole
from registryman.errors import StoreError, UnauthorizedError
from registryman.operator.status_updater import StatusUpdater
from tests.helpers.fakes import FakeLiveRegistry, InMemoryStore, fake_providers
from tests.helpers.fleet_builders import make_hub, make_registry, member_status

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry
    from registryman.config.status import RegistryStatus


@dc.dataclass(slots=True)
class SlowRegistry(FakeLiveRegistry):
    """Registry whose project listing outlives any reasonable interval."""

    async def list_projects(self) -> list:
        await asyncio.sleep(10)
        return []


def _loader(store: InMemoryStore):
    async def load() -> InMemoryStore:
        return store

    return load


@pytest.mark.asyncio
async def test_tick_writes_actual_status() -> None:
    """Every registry's observed state lands in the store."""
    hub = FakeLiveRegistry("global")
    hub.add_project("ubuntu", members=[member_status("alpha", MemberRole.GUEST)])
    store = InMemoryStore(registries=[make_hub()])
    updater = StatusUpdater(_loader(store), fake_providers({"global": hub}))

    assert await updater.tick() == {"global": True}

    status = store.statuses["global"]
    assert [p.name for p in status.projects] == ["ubuntu"]
    assert status.capabilities.can_pull_replicate
    assert hub.closed == 1


@pytest.mark.asyncio
async def test_failing_registry_does_not_block_others() -> None:
    """A failing registry is reported; its neighbours still update."""
    hub = FakeLiveRegistry("global")
    local = FakeLiveRegistry("local", fail_with=UnauthorizedError("local"))
    store = InMemoryStore(registries=[make_hub(), make_registry("local")])
    updater = StatusUpdater(
        _loader(store), fake_providers({"global": hub, "local": local})
    )

    assert await updater.tick() == {"global": True, "local": False}
    assert list(store.statuses) == ["global"]


@pytest.mark.asyncio
async def test_slow_registry_is_bounded_by_the_interval() -> None:
    """A fetch outliving the interval counts as a failure."""
    slow = SlowRegistry("global")
    store = InMemoryStore(registries=[make_hub()])
    updater = StatusUpdater(
        _loader(store), fake_providers({"global": slow}), interval=0.05
    )

    assert await updater.tick() == {"global": False}
    assert slow.closed == 1
    assert store.statuses == {}


@pytest.mark.asyncio
async def test_unreadable_store_skips_the_tick() -> None:
    """A store that cannot be loaded yields no updates."""

    async def load() -> InMemoryStore:
        raise StoreError("manifest directory missing")

    updater = StatusUpdater(load, fake_providers({}))
    assert await updater.tick() == {}


class SlowWriteStore(InMemoryStore):
    """Store whose status write-back outlives the interval."""

    async def update_registry_status(
        self, registry: Registry, status: RegistryStatus
    ) -> None:
        await asyncio.sleep(10)
        await super().update_registry_status(registry, status)


@pytest.mark.asyncio
async def test_slow_status_write_is_bounded_by_the_interval() -> None:
    """The write-back shares the per-registry deadline with the fetch."""
    store = SlowWriteStore(registries=[make_hub()])
    updater = StatusUpdater(
        _loader(store),
        fake_providers({"global": FakeLiveRegistry("global")}),
        interval=0.05,
    )

    assert await updater.tick() == {"global": False}
    assert store.statuses == {}
