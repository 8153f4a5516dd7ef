"""Actual registry status read from a live registry.

Capabilities are discovered by checking the live handle and a template project
against the trait protocols of :mod:`registryman.providers.interface`. The
fetch then reads only what the traits allow; a trait the provider claims but
cannot serve downgrades the matching ``has*`` flag for the whole status.
"""

from __future__ import annotations

import typing as typ

import msgspec

from registryman.config.status import (
    STORAGE_UNKNOWN,
    MemberStatus,
    ProjectStatus,
    RegistryCapabilities,
    RegistryStatus,
    ReplicationRuleStatus,
    ScannerStatus,
)
from registryman.errors import ProviderNotImplementedError
from registryman.logging import get_logger, log_debug
from registryman.providers.interface import (
    DestructibleProject,
    MemberManipulatorProject,
    ProjectCreator,
    ProjectWithMembers,
    ProjectWithReplication,
    ProjectWithScanner,
    ProjectWithStorage,
    ReplicationRuleManipulatorProject,
    ScannerManipulatorProject,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from registryman.providers.interface import LiveProject, LiveRegistry
    from registryman.providers.registry import ReplicationCapabilities

logger = get_logger(__name__)


async def discover_capabilities(
    live: LiveRegistry, replication: ReplicationCapabilities
) -> RegistryCapabilities:
    """Return what ``live`` supports, probing the empty-named project."""
    template = await live.get_project_by_name("")
    return RegistryCapabilities(
        can_create_project=isinstance(live, ProjectCreator),
        can_delete_project=isinstance(template, DestructibleProject),
        can_pull_replicate=replication.can_pull,
        can_push_replicate=replication.can_push,
        can_manipulate_project_members=isinstance(template, MemberManipulatorProject),
        can_manipulate_scanners=isinstance(template, ScannerManipulatorProject),
        can_manipulate_replication_rules=isinstance(
            template, ReplicationRuleManipulatorProject
        ),
        has_project_members=isinstance(template, ProjectWithMembers),
        has_project_scanners=isinstance(template, ProjectWithScanner),
        has_project_replication_rules=isinstance(template, ProjectWithReplication),
        has_project_storage_report=isinstance(template, ProjectWithStorage),
    )


class _ProjectReader:
    """Read project details, recording traits the provider cannot serve."""

    def __init__(self, live: LiveRegistry) -> None:
        self._live = live
        self.unsupported: set[str] = set()

    async def _call[T](
        self,
        flag: str,
        project: LiveProject,
        call: cabc.Callable[[], cabc.Awaitable[T]],
        zero: T,
    ) -> T:
        try:
            return await call()
        except ProviderNotImplementedError as exc:
            log_debug(
                logger,
                "%s: %s not available for project %s: %s",
                self._live.name,
                flag,
                project.name,
                exc,
            )
            self.unsupported.add(flag)
            return zero

    async def members(self, project: LiveProject) -> list[MemberStatus]:
        if not isinstance(project, ProjectWithMembers):
            return []
        return await self._call(
            "has_project_members", project, project.get_members, []
        )

    async def replication_rules(
        self, project: LiveProject
    ) -> list[ReplicationRuleStatus]:
        if not isinstance(project, ProjectWithReplication):
            return []
        rules = await self._call(
            "has_project_replication_rules",
            project,
            project.get_replication_rules,
            [],
        )
        return [
            ReplicationRuleStatus(
                remote_registry_name=rule.remote_registry_name,
                trigger=rule.trigger,
                direction=rule.direction,
            )
            for rule in rules
        ]

    async def scanner(self, project: LiveProject) -> ScannerStatus:
        if not isinstance(project, ProjectWithScanner):
            return ScannerStatus()
        scanner = await self._call(
            "has_project_scanners", project, project.get_scanner, None
        )
        return scanner or ScannerStatus()

    async def storage(self, project: LiveProject) -> int:
        if not isinstance(project, ProjectWithStorage):
            return STORAGE_UNKNOWN
        return await self._call(
            "has_project_storage_report",
            project,
            project.get_used_storage,
            STORAGE_UNKNOWN,
        )

    async def read(self, project: LiveProject) -> ProjectStatus:
        return ProjectStatus(
            name=project.name,
            members=await self.members(project),
            replication_rules=await self.replication_rules(project),
            storage_used=await self.storage(project),
            scanner_status=await self.scanner(project),
        )


async def fetch_actual_status(
    live: LiveRegistry, replication: ReplicationCapabilities
) -> RegistryStatus:
    """Read the capabilities and every project of ``live``.

    Parameters
    ----------
    live : LiveRegistry
        Handle to the registry to read.
    replication : ReplicationCapabilities
        Replication directions of the registry's provider.

    Returns
    -------
    RegistryStatus
        Discovered capabilities, with ``has*`` flags cleared for traits that
        raised :class:`ProviderNotImplementedError`, and the projects in
        provider order.

    """
    capabilities = await discover_capabilities(live, replication)
    reader = _ProjectReader(live)
    projects = [await reader.read(project) for project in await live.list_projects()]
    if reader.unsupported:
        capabilities = msgspec.structs.replace(
            capabilities, **dict.fromkeys(sorted(reader.unsupported), False)
        )
    return RegistryStatus(capabilities=capabilities, projects=projects)


__all__ = ["discover_capabilities", "fetch_actual_status"]
