"""Harbor project exposing every optional project trait."""

from __future__ import annotations

import dataclasses as dc
import functools
import typing as typ

from registryman.errors import RecoverableError
from registryman.logging import get_logger, log_info

from ..guard import purge_repositories
from . import members as member_api
from . import replication as replication_api
from . import scanners as scanner_api
from .wire import ProjectSummary

if typ.TYPE_CHECKING:
    from registryman.config.enums import ReplicationDirection
    from registryman.config.models import Registry
    from registryman.config.status import (
        MemberStatus,
        ReplicationTrigger,
        ScannerStatus,
    )

    from ..interface import MemberCredentials
    from .registry import HarborRegistry
    from .replication import HarborReplicationRule

logger = get_logger(__name__)


@dc.dataclass(slots=True)
class HarborProject:
    """A project of a Harbor registry, addressed by its numeric id."""

    api: HarborRegistry = dc.field(repr=False)
    project_id: int
    name: str

    async def get_repositories(self) -> list[str]:
        """Return repository names relative to the project."""
        return await self.api.list_repositories(self.name)

    async def delete(self) -> None:
        """Delete the project; repositories go first only under force delete.

        Raises
        ------
        RecoverableError
            If repositories are present and force delete is not enabled.

        """
        await purge_repositories(
            self.name,
            await self.get_repositories(),
            self.api.options,
            functools.partial(self.api.delete_repository, self.name),
        )
        await self.api.delete_project(self.project_id)
        log_info(logger, "%s: project %s deleted", self.api.name, self.name)

    async def get_members(self) -> list[MemberStatus]:
        """Return users and LDAP groups, then robots."""
        return await member_api.get_members(self.api, self.project_id, self.name)

    async def assign_member(self, member: MemberStatus) -> MemberCredentials | None:
        """Add ``member``; robots return their generated credentials."""
        return await member_api.assign_member(
            self.api, self.project_id, self.name, member
        )

    async def unassign_member(self, member: MemberStatus) -> None:
        """Remove ``member`` from the project."""
        await member_api.unassign_member(self.api, self.project_id, self.name, member)

    async def get_replication_rules(
        self,
        trigger: ReplicationTrigger | None = None,
        direction: ReplicationDirection | None = None,
    ) -> list[HarborReplicationRule]:
        """Return the project's policies, filtered by trigger and direction."""
        rules = [
            rule
            for rule in await replication_api.list_rules(self.api)
            if rule.project_name == self.name
        ]
        if trigger is not None:
            rules = [rule for rule in rules if rule.trigger == trigger]
        if direction is not None:
            rules = [rule for rule in rules if rule.direction is direction]
        return rules

    async def assign_replication_rule(
        self,
        remote: Registry,
        trigger: ReplicationTrigger,
        direction: ReplicationDirection,
    ) -> HarborReplicationRule:
        """Create a policy replicating the project with ``remote``."""
        return await replication_api.create_rule(
            self.api, self.name, remote, trigger, direction
        )

    async def get_scanner(self) -> ScannerStatus | None:
        """Return the scanner bound to the project."""
        return await scanner_api.get_project_scanner(self.api, self.project_id)

    async def assign_scanner(self, scanner: ScannerStatus) -> None:
        """Bind ``scanner``, registering it on the registry when needed."""
        scanner_id = await scanner_api.scanner_id_by_name_or_create(self.api, scanner)
        await scanner_api.set_project_scanner(self.api, self.project_id, scanner_id)

    async def unassign_scanner(self, scanner: ScannerStatus) -> None:
        """Fall back to the default scanner unless it is ``scanner`` itself.

        Raises
        ------
        RecoverableError
            If the registry has no default scanner.

        """
        fallback = await scanner_api.default_scanner(self.api)
        if fallback is None:
            msg = f"{self.api.name}: no default scanner for project {self.name}"
            raise RecoverableError(msg)
        if fallback.name == scanner.name:
            return
        await self.assign_scanner(fallback)

    async def get_used_storage(self) -> int:
        """Return the bytes counted against the project quota."""
        summary = await self.api.get_json(
            f"/api/v2.0/projects/{self.project_id}/summary", ProjectSummary
        )
        return summary.quota.used.storage


__all__ = ["HarborProject"]
