"""Ports between the reconciliation core and the declarative store."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from .models import Project, Registry, Scanner
    from .status import RegistryStatus


@typ.runtime_checkable
class CanForceDelete(typ.Protocol):
    """Options that may allow deleting projects that still hold repositories."""

    def force_delete_projects(self) -> bool:
        """Return True when non-empty projects may be deleted."""
        ...


# Opaque to the core; checked against CanForceDelete where it matters.
type RegistryOptions = object


@dc.dataclass(frozen=True, slots=True)
class GlobalRegistryOptions:
    """Store-wide options supplied on the command line."""

    force_delete: bool = False
    dry_run: bool = False

    def force_delete_projects(self) -> bool:
        """Return the ``--force-delete`` flag."""
        return self.force_delete


@typ.runtime_checkable
class ApiObjectStore(typ.Protocol):
    """Declarative source of registries, projects and scanners."""

    async def get_registries(self) -> list[Registry]:
        """Return every declared registry in store order."""
        ...

    async def get_projects(self) -> list[Project]:
        """Return every declared project in store order."""
        ...

    async def get_scanners(self) -> list[Scanner]:
        """Return every declared scanner in store order."""
        ...

    async def update_registry_status(
        self, registry: Registry, status: RegistryStatus
    ) -> None:
        """Persist the observed status of ``registry``."""
        ...

    async def write_manifest(
        self, filename: str, manifest: cabc.Mapping[str, typ.Any]
    ) -> None:
        """Persist an auxiliary manifest such as a credential secret."""
        ...

    async def remove_manifest(self, filename: str) -> None:
        """Remove a manifest written by :meth:`write_manifest`."""
        ...

    def get_options(self) -> RegistryOptions:
        """Return the store-wide registry options."""
        ...


@dc.dataclass(frozen=True, slots=True)
class FleetSnapshot:
    """Consistent read of the store taken at the start of a sweep."""

    registries: tuple[Registry, ...] = ()
    projects: tuple[Project, ...] = ()
    scanners: tuple[Scanner, ...] = ()

    def registry(self, name: str) -> Registry | None:
        """Return the declared registry called ``name``."""
        return next((r for r in self.registries if r.name == name), None)

    def scanner(self, name: str) -> Scanner | None:
        """Return the declared scanner called ``name``."""
        return next((s for s in self.scanners if s.name == name), None)

    @property
    def registries_by_name(self) -> dict[str, Registry]:
        """Map registry names to declared registries."""
        return {registry.name: registry for registry in self.registries}


async def take_snapshot(store: ApiObjectStore) -> FleetSnapshot:
    """Read registries, projects and scanners from ``store``."""
    return FleetSnapshot(
        registries=tuple(await store.get_registries()),
        projects=tuple(await store.get_projects()),
        scanners=tuple(await store.get_scanners()),
    )


__all__ = [
    "ApiObjectStore",
    "CanForceDelete",
    "FleetSnapshot",
    "GlobalRegistryOptions",
    "RegistryOptions",
    "take_snapshot",
]
