"""Unit tests for full resync sweeps over in-memory fleets."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import typing as typ

import pytest

from registryman.config.enums import MemberRole
from registryman.config.models import FORCE_DELETE_ANNOTATION
from registryman.config.store import take_snapshot
from registryman.config.validation import ConsistencyError
from registryman.errors import UnauthorizedError
from registryman.operator.resync import full_resync, reconcile_registry
from tests.helpers.fakes import FakeLiveRegistry, InMemoryStore, fake_providers
from tests.helpers.fleet_builders import (
    make_hub,
    make_member,
    make_project,
    make_registry,
    member_status,
)

if typ.TYPE_CHECKING:
    from registryman.providers.registry import ProviderRegistry


@dc.dataclass(slots=True)
class StalledRegistry(FakeLiveRegistry):
    """Registry that never answers a project listing in time."""

    async def list_projects(self) -> list:
        await asyncio.sleep(10)
        return []


@pytest.mark.asyncio
async def test_sweep_creates_declared_project(
    hub_store: InMemoryStore,
    hub_live: FakeLiveRegistry,
    hub_providers: ProviderRegistry,
) -> None:
    """An empty hub gains the Global project and its member."""
    result = await full_resync(hub_store, hub_providers)

    assert result.ok
    [report] = result.reports
    assert report.performed == [
        "adding project ubuntu",
        "adding member alpha to ubuntu",
    ]
    assert hub_live.project("ubuntu").members == [
        member_status("alpha", MemberRole.MAINTAINER)
    ]
    assert hub_live.closed == 1


@pytest.mark.asyncio
async def test_second_sweep_is_a_no_op(
    hub_store: InMemoryStore, hub_providers: ProviderRegistry
) -> None:
    """Once converged, sweeps plan nothing."""
    await full_resync(hub_store, hub_providers)
    result = await full_resync(hub_store, hub_providers)
    assert result.reports[0].performed == []
    assert result.reports[0].planned == []


@pytest.mark.asyncio
async def test_dry_run_changes_nothing(
    hub_store: InMemoryStore,
    hub_live: FakeLiveRegistry,
    hub_providers: ProviderRegistry,
) -> None:
    """Dry runs only plan."""
    result = await full_resync(hub_store, hub_providers, dry_run=True)
    assert result.dry_run
    assert result.reports[0].planned == [
        "adding project ubuntu",
        "adding member alpha to ubuntu",
    ]
    assert hub_live.projects == []


@pytest.mark.asyncio
async def test_refused_deletion_does_not_stop_the_sweep(
    hub_store: InMemoryStore,
    hub_live: FakeLiveRegistry,
    hub_providers: ProviderRegistry,
) -> None:
    """A non-empty undeclared project survives; the rest converges."""
    hub_live.add_project("old", repositories=["old/app"])

    result = await full_resync(hub_store, hub_providers)

    assert not result.ok
    [report] = result.reports
    [(description, error)] = report.failed
    assert description == "removing project old"
    assert "repositories are present" in error
    assert "adding project ubuntu" in report.performed
    assert [p.name for p in hub_live.projects] == ["old", "ubuntu"]


@pytest.mark.asyncio
async def test_force_delete_annotation_applies_per_registry(
    hub_live: FakeLiveRegistry, hub_providers: ProviderRegistry
) -> None:
    """forceDelete=true on the registry overrides the store options."""
    store = InMemoryStore(
        registries=[make_hub(annotations={FORCE_DELETE_ANNOTATION: "true"})]
    )
    hub_live.add_project("old", repositories=["old/app"])

    result = await full_resync(store, hub_providers)

    assert result.ok
    assert hub_live.projects == []


@pytest.mark.asyncio
async def test_hub_and_local_get_replication_rules() -> None:
    """The hub pushes to the local registry, which pulls from the hub."""
    hub, local = FakeLiveRegistry("global"), FakeLiveRegistry("local")
    store = InMemoryStore(
        registries=[make_hub(), make_registry("local")],
        projects=[make_project("ubuntu", members=[make_member("alpha")])],
    )

    result = await full_resync(store, fake_providers({"global": hub, "local": local}))

    assert result.ok
    [push] = hub.project("ubuntu").rules
    assert (push.remote_registry_name, str(push.direction)) == ("local", "Push")
    [pull] = local.project("ubuntu").rules
    assert (pull.remote_registry_name, str(pull.trigger)) == (
        "global",
        "Cron */10 * * * *",
    )


@pytest.mark.asyncio
async def test_unauthorized_registry_is_skipped() -> None:
    """Authorization failures abandon one registry only."""
    hub = FakeLiveRegistry("global")
    local = FakeLiveRegistry("local", fail_with=UnauthorizedError("local"))
    store = InMemoryStore(
        registries=[make_hub(), make_registry("local")],
        projects=[make_project("ubuntu")],
    )

    result = await full_resync(store, fake_providers({"global": hub, "local": local}))

    assert result.failed == {"local": "local: unauthorized"}
    assert [r.registry_name for r in result.reports] == ["global"]
    assert local.closed == 1


@pytest.mark.asyncio
async def test_unexpected_errors_abort_the_sweep(
    hub_store: InMemoryStore,
    hub_live: FakeLiveRegistry,
    hub_providers: ProviderRegistry,
) -> None:
    """Anything other than recoverable or unauthorized errors propagates."""
    hub_live.fail_with = RuntimeError("connection reset")
    with pytest.raises(RuntimeError, match="connection reset"):
        await full_resync(hub_store, hub_providers)
    assert hub_live.closed == 1


@pytest.mark.asyncio
async def test_inconsistent_fleet_is_not_reconciled(
    hub_live: FakeLiveRegistry, hub_providers: ProviderRegistry
) -> None:
    """Consistency violations stop the sweep before any registry is touched."""
    store = InMemoryStore(registries=[make_hub("global"), make_hub("global2")])
    with pytest.raises(ConsistencyError, match="multiple global registries"):
        await full_resync(store, hub_providers)
    assert hub_live.closed == 0


@pytest.mark.asyncio
async def test_sweep_timeout(hub_store: InMemoryStore) -> None:
    """A sweep outliving its timeout raises TimeoutError."""
    stalled = StalledRegistry("global")
    with pytest.raises(TimeoutError):
        await full_resync(
            hub_store, fake_providers({"global": stalled}), timeout=0.05
        )
    assert stalled.closed == 1


@pytest.mark.asyncio
async def test_reconcile_single_registry(
    hub_store: InMemoryStore,
    hub_live: FakeLiveRegistry,
    hub_providers: ProviderRegistry,
) -> None:
    """One registry can be reconciled against a snapshot directly."""
    snapshot = await take_snapshot(hub_store)
    report = await reconcile_registry(
        snapshot.registries[0], snapshot, hub_providers, store=hub_store
    )
    assert report.registry_name == "global"
    assert report.ok
    assert [p.name for p in hub_live.projects] == ["ubuntu"]
