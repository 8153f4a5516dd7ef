"""Harbor registry handle: project listing, creation and deletion."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import httpx

from registryman.errors import AlreadyExistsError, RegistrymanError
from registryman.logging import get_logger, log_debug, log_info, log_warning

from ..http import RegistryApiClient, ensure_success, int_id_from_location
from . import members as member_api
from .project import HarborProject
from .wire import HarborProject as HarborProjectEntry
from .wire import ProjectCreateRequest, RepositoryEntry

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry

    from ..registry import ProviderContext

logger = get_logger(__name__)

PROJECTS_PATH = "/api/v2.0/projects"
_PROBE_PROJECT_ID = -1


class HarborRegistry(RegistryApiClient):
    """Live handle to a Harbor v2 registry."""

    provider = "harbor"

    async def list_projects(self) -> list[HarborProject]:
        """Return every project visible to the configured user."""
        log_debug(logger, "%s: listing projects", self.name)
        entries = await self.get_json(PROJECTS_PATH, list[HarborProjectEntry])
        return [
            HarborProject(self, project_id=entry.project_id, name=entry.name)
            for entry in entries
        ]

    async def get_project_by_name(self, name: str) -> HarborProject | None:
        """Return the named project, or a capability template for ``""``."""
        if not name:
            return HarborProject(self, project_id=_PROBE_PROJECT_ID, name="")
        for project in await self.list_projects():
            if project.name == name:
                return project
        return None

    async def create_project(self, name: str) -> HarborProject:
        """Create a private project and drop the implicit admin member.

        Raises
        ------
        AlreadyExistsError
            If Harbor answers HTTP 409.

        """
        response = await self.request(
            "POST", PROJECTS_PATH, json=ProjectCreateRequest(project_name=name)
        )
        if response.status_code == HTTPStatus.CONFLICT:
            raise AlreadyExistsError.conflict(f"project {name}")
        ensure_success(response, context=f"{self.name}: creating project {name}")
        project = HarborProject(
            self,
            project_id=int_id_from_location(response, PROJECTS_PATH),
            name=name,
        )
        log_info(logger, "%s: project %s created", self.name, name)
        await self._remove_implicit_admin(project)
        return project

    async def _remove_implicit_admin(self, project: HarborProject) -> None:
        # Harbor makes the creating user a ProjectAdmin of every new project.
        username = self.registry.spec.username
        try:
            entities = await member_api.list_member_entities(self, project.project_id)
            admin = next((e for e in entities if e.entity_name == username), None)
            if admin is None:
                log_warning(
                    logger,
                    "%s: implicit admin member %s not found in %s",
                    self.name,
                    username,
                    project.name,
                )
                return
            await member_api.delete_member_entity(self, project.project_id, admin.id)
        except (RegistrymanError, httpx.HTTPError) as exc:
            log_warning(
                logger,
                "%s: could not remove implicit admin member %s from %s: %s",
                self.name,
                username,
                project.name,
                exc,
            )

    async def delete_project(self, project_id: int) -> None:
        """Delete the project ``project_id``."""
        response = await self.request("DELETE", f"{PROJECTS_PATH}/{project_id}")
        ensure_success(response, context=f"{self.name}: deleting project")

    async def list_repositories(self, project_name: str) -> list[str]:
        """Return repository names with the ``<project>/`` prefix removed."""
        entries = await self.get_json(
            f"{PROJECTS_PATH}/{project_name}/repositories", list[RepositoryEntry]
        )
        prefix = f"{project_name}/"
        return [entry.name.removeprefix(prefix) for entry in entries]

    async def delete_repository(self, project_name: str, repository: str) -> None:
        """Delete ``repository`` from ``project_name``."""
        response = await self.request(
            "DELETE", f"{PROJECTS_PATH}/{project_name}/repositories/{repository}"
        )
        ensure_success(
            response, context=f"{self.name}: deleting repository {repository}"
        )


def new_harbor_registry(registry: Registry, context: ProviderContext) -> HarborRegistry:
    """Build a :class:`HarborRegistry` from a declared registry."""
    return HarborRegistry(
        registry,
        options=context.options,
        http_client=context.http_client,
        timeout_s=context.timeout_s,
    )


__all__ = ["PROJECTS_PATH", "HarborRegistry", "new_harbor_registry"]
