"""Path-based Artifactory: projects are folders of one docker repository.

Every project ``P`` is a top-level folder of the docker repository named by
the ``dockerRegistryName`` annotation, and its members live in the
permission target ``<docker-registry>_<P>``.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from http import HTTPStatus

import msgspec

from registryman.config.enums import MemberRole, MemberType
from registryman.config.status import MemberStatus
from registryman.errors import ProviderNotImplementedError, RecoverableError
from registryman.logging import get_logger, log_info

from ..guard import ensure_deletable
from ..http import RegistryApiClient, ensure_success
from ..registry import DEFAULT_HTTP_TIMEOUT_S

if typ.TYPE_CHECKING:
    import httpx

    from registryman.config.models import Registry
    from registryman.config.store import RegistryOptions

    from ..interface import MemberCredentials

logger = get_logger(__name__)

ARTIFACTORY_PATH = "/artifactory"
PERMISSIONS_PATH = f"{ARTIFACTORY_PATH}/api/security/permissions"
STORAGE_PATH = f"{ARTIFACTORY_PATH}/api/storage"

# Permission-target action lists granted per role, most privileged first.
_ROLE_ACTIONS: tuple[tuple[MemberRole, tuple[str, ...]], ...] = (
    (MemberRole.PROJECT_ADMIN, ("r", "mxm", "d", "w", "m", "n")),
    (MemberRole.MAINTAINER, ("r", "d", "w", "m", "n")),
    (MemberRole.DEVELOPER, ("r", "d", "w", "n")),
    (MemberRole.GUEST, ("r",)),
)


def role_actions(role: MemberRole) -> list[str]:
    """Return the permission actions granting ``role``."""
    for candidate, actions in _ROLE_ACTIONS:
        if candidate is role:
            return list(actions)
    msg = f"role {role} cannot be granted on path-based Artifactory"
    raise RecoverableError(msg)


def role_from_actions(actions: typ.Iterable[str]) -> MemberRole:
    """Return the most privileged role whose actions are all granted."""
    granted = set(actions)
    for role, required in _ROLE_ACTIONS:
        if granted.issuperset(required):
            return role
    msg = f"unknown permission set {sorted(granted)}"
    raise RecoverableError(msg)


class FolderChild(msgspec.Struct, kw_only=True):
    uri: str
    folder: bool = False


class FolderInfo(msgspec.Struct, kw_only=True):
    """Body of ``GET /artifactory/api/storage/<repo>[/<path>]``."""

    children: list[FolderChild] = msgspec.field(default_factory=list)


class Principals(msgspec.Struct, kw_only=True):
    users: dict[str, list[str]] = msgspec.field(default_factory=dict)
    groups: dict[str, list[str]] = msgspec.field(default_factory=dict)


class PermissionTarget(msgspec.Struct, kw_only=True, rename="camel"):
    """Artifactory permission target (security API v1)."""

    name: str
    includes_pattern: str = ""
    excludes_pattern: str = ""
    repositories: list[str] = msgspec.field(default_factory=list)
    principals: Principals = msgspec.field(default_factory=Principals)


@dc.dataclass(slots=True)
class PathBasedProject:
    """A folder of the docker repository treated as a project."""

    api: PathBasedArtifactory = dc.field(repr=False)
    name: str

    async def get_repositories(self) -> list[str]:
        """Return the repository folders below the project folder."""
        return await self.api.list_folders(self.name)

    async def delete(self) -> None:
        """Delete the project folder and its permission target."""
        ensure_deletable(self.name, await self.get_repositories(), self.api.options)
        await self.api.delete_project(self.name)

    async def get_members(self) -> list[MemberStatus]:
        """Return the users, then the groups, of the permission target."""
        target = await self.api.get_permission(self.name)
        users = [
            MemberStatus(
                name=name, type=MemberType.USER, role=role_from_actions(actions)
            )
            for name, actions in target.principals.users.items()
        ]
        groups = [
            MemberStatus(
                name=name, type=MemberType.GROUP, role=role_from_actions(actions)
            )
            for name, actions in target.principals.groups.items()
        ]
        return users + groups

    async def assign_member(self, member: MemberStatus) -> MemberCredentials | None:
        """Grant ``member`` its role in the permission target."""
        target, mapping = await self._principals_for(member)
        mapping[member.name] = role_actions(member.role)
        await self.api.put_permission(self.name, target)
        return None

    async def unassign_member(self, member: MemberStatus) -> None:
        """Drop ``member`` from the permission target."""
        target, mapping = await self._principals_for(member)
        if mapping.pop(member.name, None) is None:
            msg = f"{self.api.name}: member {member.name} not found in {self.name}"
            raise RecoverableError(msg)
        await self.api.put_permission(self.name, target)

    async def _principals_for(
        self, member: MemberStatus
    ) -> tuple[PermissionTarget, dict[str, list[str]]]:
        target = await self.api.get_permission(self.name)
        match member.type:
            case MemberType.USER:
                return target, target.principals.users
            case MemberType.GROUP:
                return target, target.principals.groups
            case _:
                raise ProviderNotImplementedError(
                    self.api.name, f"{member.type} members"
                )


class PathBasedArtifactory(RegistryApiClient):
    """Live handle to an Artifactory docker repository used path-wise."""

    provider = "artifactory"
    verify_tls = False

    def __init__(
        self,
        registry: Registry,
        docker_registry_name: str,
        *,
        options: RegistryOptions = None,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        """Bind the handle to the docker repository ``docker_registry_name``."""
        super().__init__(
            registry, options=options, http_client=http_client, timeout_s=timeout_s
        )
        self.docker_registry_name = docker_registry_name

    def _permission_path(self, project_name: str) -> str:
        return f"{PERMISSIONS_PATH}/{self.docker_registry_name}_{project_name}"

    async def list_folders(self, project_name: str = "") -> list[str]:
        """Return the sub-folders of the repository root or of a project."""
        path = f"{STORAGE_PATH}/{self.docker_registry_name}"
        if project_name:
            path = f"{path}/{project_name}"
        info = await self.get_json(path, FolderInfo)
        return [child.uri.removeprefix("/") for child in info.children if child.folder]

    async def list_projects(self) -> list[PathBasedProject]:
        """Return one project per top-level folder."""
        names = dict.fromkeys(
            folder.split("/", 1)[0] for folder in await self.list_folders()
        )
        return [PathBasedProject(self, name) for name in names]

    async def get_project_by_name(self, name: str) -> PathBasedProject | None:
        """Return the named project, or a capability template for ``""``."""
        if not name:
            return PathBasedProject(self, "")
        return next((p for p in await self.list_projects() if p.name == name), None)

    async def create_project(self, name: str) -> PathBasedProject:
        """Create the project folder and an empty permission target."""
        response = await self.request(
            "PUT", f"{ARTIFACTORY_PATH}/{self.docker_registry_name}/{name}/"
        )
        ensure_success(response, context=f"{self.name}: creating folder {name}")
        await self.put_permission(
            name,
            PermissionTarget(
                name=f"{self.docker_registry_name}_{name}",
                includes_pattern=f"{name}/**",
                repositories=[self.docker_registry_name],
            ),
        )
        log_info(logger, "%s: project %s created", self.name, name)
        return PathBasedProject(self, name)

    async def delete_project(self, name: str) -> None:
        """Delete the project folder, then its permission target."""
        response = await self.request(
            "DELETE", f"{ARTIFACTORY_PATH}/{self.docker_registry_name}/{name}"
        )
        ensure_success(response, context=f"{self.name}: deleting folder {name}")
        response = await self.request("DELETE", self._permission_path(name))
        self._raise_for_missing_permission(response, name)
        ensure_success(response, context=f"{self.name}: deleting permission")
        log_info(logger, "%s: project %s deleted", self.name, name)

    async def get_permission(self, project_name: str) -> PermissionTarget:
        """Return the permission target of ``project_name``."""
        response = await self.request("GET", self._permission_path(project_name))
        self._raise_for_missing_permission(response, project_name)
        ensure_success(response, context=f"{self.name}: reading permission")
        return self.decode(response, PermissionTarget)

    async def put_permission(
        self, project_name: str, target: PermissionTarget
    ) -> None:
        """Create or replace the permission target of ``project_name``."""
        response = await self.request(
            "PUT", self._permission_path(project_name), json=target
        )
        ensure_success(response, context=f"{self.name}: writing permission")

    def _raise_for_missing_permission(
        self, response: httpx.Response, project_name: str
    ) -> None:
        if response.status_code == HTTPStatus.NOT_FOUND:
            name = f"{self.docker_registry_name}_{project_name}"
            msg = f"{self.name}: principal target {name} not exists"
            raise RecoverableError(msg)


__all__ = [
    "PathBasedArtifactory",
    "PathBasedProject",
    "PermissionTarget",
    "role_actions",
    "role_from_actions",
]
