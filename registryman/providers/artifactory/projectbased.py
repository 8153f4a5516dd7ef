"""Project-based Artifactory: projects of the JFrog Access API.

Access API calls authenticate with the bearer token from the
``accessToken`` annotation. Repository calls keep the registry's basic
credentials. Every project gets a local docker repository named
``<project>-docker`` when it is created.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import httpx
import msgspec

from registryman.config.enums import MemberRole, MemberType
from registryman.config.status import STORAGE_UNKNOWN, MemberStatus
from registryman.errors import RecoverableError
from registryman.logging import get_logger, log_debug, log_info

from ..guard import purge_repositories
from ..http import RegistryApiClient, ensure_success
from ..registry import DEFAULT_HTTP_TIMEOUT_S

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry
    from registryman.config.store import RegistryOptions

logger = get_logger(__name__)

ACCESS_PROJECTS_PATH = "/access/api/v1/projects"
REPOSITORIES_PATH = "/artifactory/api/repositories"
PROJECT_KEY_LENGTH = 3

_ROLES = {
    "Project Admin": MemberRole.PROJECT_ADMIN,
    "Release Manager": MemberRole.MAINTAINER,
    "Developer": MemberRole.DEVELOPER,
    "Viewer": MemberRole.GUEST,
}


class AccessProject(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Project of the JFrog Access API."""

    display_name: str
    project_key: str
    description: str = ""
    storage_quota_bytes: int = 0


class RepositoryConfiguration(msgspec.Struct, kw_only=True, rename="camel"):
    """Body of ``PUT /artifactory/api/repositories/<key>``."""

    project_key: str
    rclass: str = "local"
    package_type: str = "docker"


class RepositoryEntry(msgspec.Struct, kw_only=True, rename="camel"):
    """Entry of ``GET /artifactory/api/repositories``."""

    key: str
    package_type: str = ""
    type: str = ""


class AccessMember(msgspec.Struct, kw_only=True):
    name: str
    roles: list[str] = msgspec.field(default_factory=list)


class AccessMembers(msgspec.Struct, kw_only=True):
    """Body of ``GET /access/api/v1/projects/<key>/users``."""

    members: list[AccessMember] = msgspec.field(default_factory=list)


def role_from_names(names: list[str]) -> MemberRole:
    """Return the member role of the first Access role that maps to one."""
    for name in names:
        if name in _ROLES:
            return _ROLES[name]
    msg = f"unknown project roles {names}"
    raise RecoverableError(msg)


@dc.dataclass(slots=True)
class ProjectBasedProject:
    """A JFrog Access project, addressed by its project key."""

    api: ProjectBasedArtifactory = dc.field(repr=False)
    key: str
    name: str

    async def get_repositories(self) -> list[str]:
        """Return the local docker repositories carrying the project key."""
        return await self.api.list_project_repositories(self.key)

    async def delete(self) -> None:
        """Delete the project, emptying it first under force delete."""
        await purge_repositories(
            self.name,
            await self.get_repositories(),
            self.api.options,
            self.api.delete_repository,
        )
        await self.api.delete_project(self.key)
        log_info(logger, "%s: project %s deleted", self.api.name, self.name)

    async def get_members(self) -> list[MemberStatus]:
        """Return the project's users."""
        body = await self.api.get_json(
            f"{ACCESS_PROJECTS_PATH}/{self.key}/users", AccessMembers
        )
        return [
            MemberStatus(
                name=member.name,
                type=MemberType.USER,
                role=role_from_names(member.roles),
            )
            for member in body.members
        ]

    async def get_used_storage(self) -> int:
        """Return the project's storage quota in bytes, or -1 when unlisted."""
        for project in await self.api.list_access_projects():
            if project.display_name == self.name:
                return project.storage_quota_bytes
        return STORAGE_UNKNOWN


class ProjectBasedArtifactory(RegistryApiClient):
    """Live handle to Artifactory driven through JFrog projects."""

    provider = "artifactory"
    verify_tls = False

    def __init__(
        self,
        registry: Registry,
        access_token: str,
        *,
        options: RegistryOptions = None,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        """Bind the handle to ``registry`` using ``access_token`` for Access."""
        super().__init__(
            registry, options=options, http_client=http_client, timeout_s=timeout_s
        )
        self._access_token = access_token

    def _auth(self, path: str) -> httpx.Auth | None:
        if path.startswith(ACCESS_PROJECTS_PATH):
            return None
        return super()._auth(path)

    def _headers(self, path: str) -> dict[str, str]:
        headers = super()._headers(path)
        if path.startswith(ACCESS_PROJECTS_PATH):
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def list_access_projects(self) -> list[AccessProject]:
        """Return every Access project."""
        return await self.get_json(ACCESS_PROJECTS_PATH, list[AccessProject])

    async def list_projects(self) -> list[ProjectBasedProject]:
        """Return every Access project as a live project."""
        return [
            ProjectBasedProject(self, key=p.project_key, name=p.display_name)
            for p in await self.list_access_projects()
        ]

    async def get_project_by_name(self, name: str) -> ProjectBasedProject | None:
        """Return the named project, or a capability template for ``""``."""
        if not name:
            return ProjectBasedProject(self, key="", name="")
        return next((p for p in await self.list_projects() if p.name == name), None)

    async def create_project(self, name: str) -> ProjectBasedProject:
        """Create the Access project and its ``<name>-docker`` repository."""
        body = AccessProject(display_name=name, project_key=name[:PROJECT_KEY_LENGTH])
        response = await self.request("POST", ACCESS_PROJECTS_PATH, json=body)
        ensure_success(response, context=f"{self.name}: creating project {name}")
        created = self.decode(response, AccessProject)
        project = ProjectBasedProject(self, key=created.project_key, name=name)
        repository = f"{name}-docker"
        response = await self.request(
            "PUT",
            f"{REPOSITORIES_PATH}/{repository}",
            json=RepositoryConfiguration(project_key=project.key),
        )
        ensure_success(response, context=f"{self.name}: creating {repository}")
        log_info(logger, "%s: project %s created", self.name, name)
        return project

    async def delete_project(self, key: str) -> None:
        """Delete the Access project ``key``."""
        response = await self.request("DELETE", f"{ACCESS_PROJECTS_PATH}/{key}")
        ensure_success(response, context=f"{self.name}: deleting project {key}")

    async def list_project_repositories(self, key: str) -> list[str]:
        """Return local docker repositories whose key starts with ``<key>-``."""
        entries = await self.get_json(REPOSITORIES_PATH, list[RepositoryEntry])
        prefix = f"{key}-"
        repositories = [
            entry.key for entry in entries if _is_project_repository(prefix, entry)
        ]
        count = len(repositories)
        log_debug(logger, "%s: project %s has %d repositories", self.name, key, count)
        return repositories

    async def delete_repository(self, repository: str) -> None:
        """Delete the repository ``repository``."""
        response = await self.request("DELETE", f"{REPOSITORIES_PATH}/{repository}")
        ensure_success(response, context=f"{self.name}: deleting {repository}")


def _is_project_repository(prefix: str, entry: RepositoryEntry) -> bool:
    return (
        entry.key.startswith(prefix)
        and entry.package_type == "Docker"
        and entry.type == "LOCAL"
    )


__all__ = [
    "AccessProject",
    "ProjectBasedArtifactory",
    "ProjectBasedProject",
    "role_from_names",
]
