"""Plan actions: single changes applied to one live registry.

Every action describes itself for dry runs and logs, and performs against a
live handle. An action whose trait the live project lacks succeeds without
doing anything; the planner already suppresses such actions when the
registry's capabilities say so.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from registryman.config.enums import MemberType
from registryman.errors import AlreadyExistsError, RecoverableError
from registryman.logging import get_logger, log_debug, log_info
from registryman.providers.interface import (
    DestructibleProject,
    MemberManipulatorProject,
    ProjectCreator,
    ProjectWithReplication,
    ReplicationRuleManipulatorProject,
    ScannerManipulatorProject,
)

from .side_effects import (
    NO_SIDE_EFFECT,
    PersistMemberCredentials,
    RemoveMemberCredentials,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from registryman.config.models import Registry
    from registryman.config.status import (
        MemberStatus,
        ReplicationRuleStatus,
        ScannerStatus,
    )
    from registryman.providers.interface import LiveProject, LiveRegistry

    from .side_effects import SideEffect

    type Fleet = cabc.Mapping[str, Registry]

logger = get_logger(__name__)


async def _find_project(live: LiveRegistry, name: str) -> LiveProject:
    project = await live.get_project_by_name(name)
    if project is None:
        raise RecoverableError.project_not_found(name)
    return project


def _skip(live: LiveRegistry, action: object, trait: str) -> SideEffect:
    log_debug(logger, "%s: %s skipped, no %s support", live.name, action, trait)
    return NO_SIDE_EFFECT


def _already_exists(live: LiveRegistry, action: object) -> SideEffect:
    log_info(logger, "%s: %s: already exists", live.name, action)
    return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class ProjectAdd:
    """Create a project."""

    project: str

    def describe(self) -> str:
        """Return a one-line description."""
        return f"adding project {self.project}"

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Create the project on ``live``."""
        if not isinstance(live, ProjectCreator):
            return _skip(live, self.describe(), "project creation")
        try:
            await live.create_project(self.project)
        except AlreadyExistsError:
            return _already_exists(live, self.describe())
        return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class ProjectRemove:
    """Delete a project, subject to the force-delete guard."""

    project: str

    def describe(self) -> str:
        """Return a one-line description."""
        return f"removing project {self.project}"

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Delete the project from ``live``."""
        project = await _find_project(live, self.project)
        if not isinstance(project, DestructibleProject):
            return _skip(live, self.describe(), "project deletion")
        await project.delete()
        return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class MemberAdd:
    """Add a member; robots yield credentials to persist."""

    project: str
    member: MemberStatus

    def describe(self) -> str:
        """Return a one-line description."""
        return f"adding member {self.member.name} to {self.project}"

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Assign the member on ``live``."""
        project = await _find_project(live, self.project)
        if not isinstance(project, MemberManipulatorProject):
            return _skip(live, self.describe(), "member manipulation")
        try:
            credentials = await project.assign_member(self.member)
        except AlreadyExistsError:
            return _already_exists(live, self.describe())
        if self.member.type is MemberType.ROBOT and credentials is not None:
            return PersistMemberCredentials(
                registry_name=live.name,
                api_endpoint=live.api_endpoint,
                project_name=self.project,
                member_name=self.member.name,
                credentials=credentials,
            )
        return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class MemberRemove:
    """Remove a member; robots also lose their credentials manifest."""

    project: str
    member: MemberStatus

    def describe(self) -> str:
        """Return a one-line description."""
        return f"removing member {self.member.name} from {self.project}"

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Unassign the member on ``live``."""
        project = await _find_project(live, self.project)
        if not isinstance(project, MemberManipulatorProject):
            return _skip(live, self.describe(), "member manipulation")
        await project.unassign_member(self.member)
        if self.member.type is MemberType.ROBOT:
            return RemoveMemberCredentials(
                registry_name=live.name,
                project_name=self.project,
                member_name=self.member.name,
            )
        return NO_SIDE_EFFECT


def _describe_rule(verb: str, project: str, rule: ReplicationRuleStatus) -> str:
    return (
        f"{verb} replication rule for {project}: "
        f"{rule.remote_registry_name} [{rule.direction}] on {rule.trigger}"
    )


@dc.dataclass(frozen=True, slots=True)
class ReplRuleAdd:
    """Create a replication rule towards a declared remote registry."""

    project: str
    rule: ReplicationRuleStatus

    def describe(self) -> str:
        """Return a one-line description."""
        return _describe_rule("adding", self.project, self.rule)

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Create the rule on ``live``.

        Raises
        ------
        RecoverableError
            If the project is missing or the remote registry is undeclared.

        """
        project = await _find_project(live, self.project)
        if not isinstance(project, ReplicationRuleManipulatorProject):
            return _skip(live, self.describe(), "replication rule manipulation")
        remote = fleet.get(self.rule.remote_registry_name)
        if remote is None:
            raise RecoverableError.registry_not_found(self.rule.remote_registry_name)
        try:
            await project.assign_replication_rule(
                remote, self.rule.trigger, self.rule.direction
            )
        except AlreadyExistsError:
            return _already_exists(live, self.describe())
        return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class ReplRuleRemove:
    """Delete the live rules matching remote, trigger and direction."""

    project: str
    rule: ReplicationRuleStatus

    def describe(self) -> str:
        """Return a one-line description."""
        return _describe_rule("removing", self.project, self.rule)

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Delete every matching rule on ``live``."""
        project = await _find_project(live, self.project)
        if not isinstance(project, ProjectWithReplication):
            return _skip(live, self.describe(), "replication rule listing")
        for rule in await project.get_replication_rules():
            if (
                rule.remote_registry_name == self.rule.remote_registry_name
                and rule.trigger == self.rule.trigger
                and rule.direction == self.rule.direction
            ):
                await rule.delete()
        return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class ScannerAssign:
    """Bind a scanner to a project."""

    project: str
    scanner: ScannerStatus

    def describe(self) -> str:
        """Return a one-line description."""
        return f"assigning scanner {self.scanner.name} to project {self.project}"

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Bind the scanner on ``live``."""
        project = await _find_project(live, self.project)
        if not isinstance(project, ScannerManipulatorProject):
            return _skip(live, self.describe(), "scanner manipulation")
        await project.assign_scanner(self.scanner)
        return NO_SIDE_EFFECT


@dc.dataclass(frozen=True, slots=True)
class ScannerUnassign:
    """Unbind a scanner from a project."""

    project: str
    scanner: ScannerStatus

    def describe(self) -> str:
        """Return a one-line description."""
        return (
            f"unassigning scanner {self.scanner.name} from project {self.project}"
        )

    async def perform(self, live: LiveRegistry, fleet: Fleet) -> SideEffect:
        """Unbind the scanner on ``live``."""
        project = await _find_project(live, self.project)
        if not isinstance(project, ScannerManipulatorProject):
            return _skip(live, self.describe(), "scanner manipulation")
        await project.unassign_scanner(self.scanner)
        return NO_SIDE_EFFECT


type Action = (
    ProjectAdd
    | ProjectRemove
    | MemberAdd
    | MemberRemove
    | ReplRuleAdd
    | ReplRuleRemove
    | ScannerAssign
    | ScannerUnassign
)


__all__ = [
    "Action",
    "MemberAdd",
    "MemberRemove",
    "ProjectAdd",
    "ProjectRemove",
    "ReplRuleAdd",
    "ReplRuleRemove",
    "ScannerAssign",
    "ScannerUnassign",
]
