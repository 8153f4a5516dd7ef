"""Store view that reflects a proposed create, update or delete.

The admission webhook validates the fleet as it would look after the
mutation: objects in ``added`` are prepended to the base snapshot and
objects matching ``removed`` by kind, name and namespace are dropped.
Writes go straight to the base store.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from .models import Project, Registry, Scanner

if typ.TYPE_CHECKING:
    from .models import Resource
    from .status import RegistryStatus
    from .store import ApiObjectStore, RegistryOptions


def _identity(resource: Resource) -> tuple[str, str, str]:
    return (resource.kind, resource.namespace, resource.name)


class OverlayStore:
    """Read-through overlay over another :class:`ApiObjectStore`."""

    def __init__(
        self,
        base: ApiObjectStore,
        *,
        added: cabc.Sequence[Resource] = (),
        removed: cabc.Sequence[Resource] = (),
    ) -> None:
        """Capture the pending mutation on top of ``base``."""
        self._base = base
        self._added = tuple(added)
        self._removed = {_identity(resource) for resource in removed}

    def _apply[R: (Registry, Project, Scanner)](
        self, kind: type[R], base_items: cabc.Iterable[R]
    ) -> list[R]:
        items = [item for item in self._added if isinstance(item, kind)]
        items.extend(
            item for item in base_items if _identity(item) not in self._removed
        )
        return items

    async def get_registries(self) -> list[Registry]:
        """Return the added registries followed by the surviving base ones."""
        return self._apply(Registry, await self._base.get_registries())

    async def get_projects(self) -> list[Project]:
        """Return the added projects followed by the surviving base ones."""
        return self._apply(Project, await self._base.get_projects())

    async def get_scanners(self) -> list[Scanner]:
        """Return the added scanners followed by the surviving base ones."""
        return self._apply(Scanner, await self._base.get_scanners())

    async def update_registry_status(
        self, registry: Registry, status: RegistryStatus
    ) -> None:
        """Delegate to the base store."""
        await self._base.update_registry_status(registry, status)

    async def write_manifest(
        self, filename: str, manifest: cabc.Mapping[str, typ.Any]
    ) -> None:
        """Delegate to the base store."""
        await self._base.write_manifest(filename, manifest)

    async def remove_manifest(self, filename: str) -> None:
        """Delegate to the base store."""
        await self._base.remove_manifest(filename)

    def get_options(self) -> RegistryOptions:
        """Delegate to the base store."""
        return self._base.get_options()


__all__ = ["OverlayStore"]
