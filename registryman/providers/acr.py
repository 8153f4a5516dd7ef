"""Azure Container Registry provider client.

ACR has no projects of its own. The first path segment of each repository
in the ``/v2/_catalog`` listing is treated as the project name, so projects
appear when an image is pushed and disappear with their last repository.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

from registryman.logging import get_logger, log_debug, log_info

from .guard import purge_repositories
from .http import RegistryApiClient, ensure_success
from .registry import ReplicationCapabilities

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry

    from .registry import ProviderContext

logger = get_logger(__name__)

CATALOG_PATH = "/v2/_catalog"
CAPABILITIES = ReplicationCapabilities(can_pull=False, can_push=False)


class Catalog(msgspec.Struct, kw_only=True):
    """Body of ``GET /v2/_catalog``."""

    repositories: list[str] = msgspec.field(default_factory=list)


def project_name_of(repository: str) -> str:
    """Return the project a repository belongs to."""
    return repository.split("/", 1)[0]


def project_names(repositories: typ.Iterable[str]) -> list[str]:
    """Return distinct project names in order of first appearance."""
    return list(dict.fromkeys(project_name_of(repo) for repo in repositories))


@dc.dataclass(slots=True)
class AcrProject:
    """Repositories of an ACR registry sharing a first path segment."""

    api: AcrRegistry = dc.field(repr=False)
    name: str

    async def get_repositories(self) -> list[str]:
        """Return the full catalog names of the project's repositories."""
        return [
            repo
            for repo in await self.api.list_catalog()
            if project_name_of(repo) == self.name
        ]

    async def delete(self) -> None:
        """Delete every repository of the project under force delete."""
        await purge_repositories(
            self.name,
            await self.get_repositories(),
            self.api.options,
            self.api.delete_repository,
        )
        log_info(logger, "%s: project %s deleted", self.api.name, self.name)


class AcrRegistry(RegistryApiClient):
    """Live handle to an Azure Container Registry."""

    provider = "acr"

    async def list_catalog(self) -> list[str]:
        """Return every repository of the registry."""
        catalog = await self.get_json(CATALOG_PATH, Catalog)
        count = len(catalog.repositories)
        log_debug(logger, "%s: %d repositories in catalog", self.name, count)
        return catalog.repositories

    async def list_projects(self) -> list[AcrProject]:
        """Return the projects derived from the repository catalog."""
        return [
            AcrProject(self, name) for name in project_names(await self.list_catalog())
        ]

    async def get_project_by_name(self, name: str) -> AcrProject | None:
        """Return the named project, or a capability template for ``""``."""
        if not name:
            return AcrProject(self, "")
        return next((p for p in await self.list_projects() if p.name == name), None)

    async def delete_repository(self, repository: str) -> None:
        """Delete ``repository`` through the ACR data-plane API."""
        response = await self.request("DELETE", f"/acr/v1/{repository}")
        ensure_success(response, context=f"{self.name}: deleting {repository}")


def new_acr_registry(registry: Registry, context: ProviderContext) -> AcrRegistry:
    """Build an :class:`AcrRegistry` from a declared registry."""
    return AcrRegistry(
        registry,
        options=context.options,
        http_client=context.http_client,
        timeout_s=context.timeout_s,
    )


__all__ = [
    "CAPABILITIES",
    "CATALOG_PATH",
    "AcrProject",
    "AcrRegistry",
    "new_acr_registry",
    "project_names",
]
