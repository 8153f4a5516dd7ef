"""Contract between the reconciler and the provider clients.

A live registry always lists and looks up projects. Everything else is an
optional trait: the reconciler discovers it with ``isinstance`` checks
against these runtime-checkable protocols and treats a missing trait as
"not supported", never as an error.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from registryman.config.enums import ReplicationDirection
    from registryman.config.models import Registry
    from registryman.config.status import (
        MemberStatus,
        ReplicationTrigger,
        ScannerStatus,
    )


@dc.dataclass(frozen=True, slots=True)
class MemberCredentials:
    """Username and secret generated for a robot member."""

    username: str
    password: str = dc.field(repr=False)


@typ.runtime_checkable
class LiveProject(typ.Protocol):
    """A project as it exists on a live registry."""

    @property
    def name(self) -> str:
        """Return the project name."""
        ...


@typ.runtime_checkable
class LiveRegistry(typ.Protocol):
    """Handle to one live registry."""

    @property
    def name(self) -> str:
        """Return the declared registry name."""
        ...

    @property
    def provider(self) -> str:
        """Return the provider name the handle was built for."""
        ...

    @property
    def api_endpoint(self) -> str:
        """Return the registry API endpoint."""
        ...

    async def list_projects(self) -> list[LiveProject]:
        """Return every project of the registry."""
        ...

    async def get_project_by_name(self, name: str) -> LiveProject | None:
        """Return the named project, or ``None`` when absent.

        The empty name returns a template project whose traits describe what
        the provider supports.
        """
        ...

    async def aclose(self) -> None:
        """Release HTTP resources owned by the handle."""
        ...


@typ.runtime_checkable
class ProjectCreator(typ.Protocol):
    """Registry trait: projects can be created."""

    async def create_project(self, name: str) -> LiveProject:
        """Create the project ``name``."""
        ...


@typ.runtime_checkable
class DestructibleProject(typ.Protocol):
    """Project trait: the project can be deleted."""

    async def delete(self) -> None:
        """Delete the project, honouring the force-delete guard."""
        ...


@typ.runtime_checkable
class ProjectWithRepositories(typ.Protocol):
    """Project trait: repositories can be listed."""

    async def get_repositories(self) -> list[str]:
        """Return the repository names of the project."""
        ...


@typ.runtime_checkable
class ProjectWithMembers(typ.Protocol):
    """Project trait: members can be listed."""

    async def get_members(self) -> list[MemberStatus]:
        """Return the members in provider order."""
        ...


@typ.runtime_checkable
class MemberManipulatorProject(typ.Protocol):
    """Project trait: members can be added and removed."""

    async def assign_member(self, member: MemberStatus) -> MemberCredentials | None:
        """Add ``member``; robots return generated credentials."""
        ...

    async def unassign_member(self, member: MemberStatus) -> None:
        """Remove ``member``."""
        ...


@typ.runtime_checkable
class LiveReplicationRule(typ.Protocol):
    """A replication rule configured on a live registry."""

    @property
    def remote_registry_name(self) -> str:
        """Return the name of the registry on the other side."""
        ...

    @property
    def trigger(self) -> ReplicationTrigger:
        """Return the rule trigger."""
        ...

    @property
    def direction(self) -> ReplicationDirection:
        """Return the rule direction."""
        ...

    async def delete(self) -> None:
        """Delete the rule."""
        ...


@typ.runtime_checkable
class ProjectWithReplication(typ.Protocol):
    """Project trait: replication rules can be listed."""

    async def get_replication_rules(
        self,
        trigger: ReplicationTrigger | None = None,
        direction: ReplicationDirection | None = None,
    ) -> list[LiveReplicationRule]:
        """Return the rules of the project, optionally filtered."""
        ...


@typ.runtime_checkable
class ReplicationRuleManipulatorProject(typ.Protocol):
    """Project trait: replication rules can be created."""

    async def assign_replication_rule(
        self,
        remote: Registry,
        trigger: ReplicationTrigger,
        direction: ReplicationDirection,
    ) -> LiveReplicationRule:
        """Create a rule replicating the project with ``remote``."""
        ...


@typ.runtime_checkable
class ProjectWithScanner(typ.Protocol):
    """Project trait: the bound scanner can be read."""

    async def get_scanner(self) -> ScannerStatus | None:
        """Return the bound scanner, or ``None``."""
        ...


@typ.runtime_checkable
class ScannerManipulatorProject(typ.Protocol):
    """Project trait: scanners can be bound and unbound."""

    async def assign_scanner(self, scanner: ScannerStatus) -> None:
        """Bind ``scanner`` to the project, registering it when needed."""
        ...

    async def unassign_scanner(self, scanner: ScannerStatus) -> None:
        """Unbind ``scanner``, falling back to the registry default."""
        ...


@typ.runtime_checkable
class ProjectWithStorage(typ.Protocol):
    """Project trait: storage usage is reported."""

    async def get_used_storage(self) -> int:
        """Return the bytes used by the project."""
        ...


__all__ = [
    "DestructibleProject",
    "LiveProject",
    "LiveRegistry",
    "LiveReplicationRule",
    "MemberCredentials",
    "MemberManipulatorProject",
    "ProjectCreator",
    "ProjectWithMembers",
    "ProjectWithReplication",
    "ProjectWithRepositories",
    "ProjectWithScanner",
    "ProjectWithStorage",
    "ReplicationRuleManipulatorProject",
    "ScannerManipulatorProject",
]
