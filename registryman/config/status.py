"""Registry status snapshots compared by the reconciler.

A :class:`RegistryStatus` is built twice per reconciliation: once from the
declarative store (expected) and once from the live registry (actual). Leaf
values are frozen so that plans can compare and hash them by value.
"""

from __future__ import annotations

import msgspec

from .enums import (
    MemberRole,
    MemberType,
    ReplicationDirection,
    ReplicationTriggerType,
)

DEFAULT_PULL_SCHEDULE = "*/10 * * * *"
STORAGE_UNKNOWN = -1


class ReplicationTrigger(
    msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True
):
    """Trigger of a replication rule.

    Attributes
    ----------
    type : ReplicationTriggerType
        Trigger kind.
    schedule : str
        Cron expression; only meaningful for ``Cron`` triggers.

    """

    type: ReplicationTriggerType
    schedule: str = ""

    def __str__(self) -> str:
        """Render as ``"<type>"`` or ``"<type> <schedule>"``."""
        if self.schedule:
            return f"{self.type} {self.schedule}"
        return str(self.type)

    @classmethod
    def cron(cls, schedule: str) -> ReplicationTrigger:
        """Return a ``Cron`` trigger with ``schedule``."""
        return cls(type=ReplicationTriggerType.CRON, schedule=schedule)


class RegistryCapabilities(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """What a registry can report and what it lets the reconciler change."""

    can_create_project: bool = False
    can_delete_project: bool = False
    can_pull_replicate: bool = False
    can_push_replicate: bool = False
    can_manipulate_project_members: bool = False
    can_manipulate_scanners: bool = False
    can_manipulate_replication_rules: bool = False
    has_project_members: bool = False
    has_project_scanners: bool = False
    has_project_replication_rules: bool = False
    has_project_storage_report: bool = False

    @classmethod
    def unconstrained(
        cls, *, can_pull: bool, can_push: bool
    ) -> RegistryCapabilities:
        """Return capabilities with every project-level flag set."""
        return cls(
            can_create_project=True,
            can_delete_project=True,
            can_pull_replicate=can_pull,
            can_push_replicate=can_push,
            can_manipulate_project_members=True,
            can_manipulate_scanners=True,
            can_manipulate_replication_rules=True,
            has_project_members=True,
            has_project_scanners=True,
            has_project_replication_rules=True,
            has_project_storage_report=True,
        )


class MemberStatus(
    msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True
):
    """A project member; any differing field makes it a different member."""

    name: str
    type: MemberType
    role: MemberRole
    dn: str = ""

    def __str__(self) -> str:
        """Render as ``name:role`` for plan descriptions."""
        return f"{self.name}:{self.role}"


class ReplicationRuleStatus(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """A replication rule as seen from the registry that owns it."""

    remote_registry_name: str
    trigger: ReplicationTrigger
    direction: ReplicationDirection

    def sort_key(self) -> tuple[str, str, str, str]:
        """Return the deterministic plan ordering key."""
        return (
            self.remote_registry_name,
            str(self.direction),
            str(self.trigger.type),
            self.trigger.schedule,
        )


class ScannerStatus(msgspec.Struct, kw_only=True, frozen=True):
    """Scanner bound to a project; an empty name means no scanner."""

    name: str = ""
    url: str = ""


class ProjectStatus(msgspec.Struct, kw_only=True, rename="camel"):
    """Observed or expected state of one project."""

    name: str
    members: list[MemberStatus] = msgspec.field(default_factory=list)
    replication_rules: list[ReplicationRuleStatus] = msgspec.field(
        default_factory=list
    )
    storage_used: int = STORAGE_UNKNOWN
    scanner_status: ScannerStatus = msgspec.field(default_factory=ScannerStatus)


class RegistryStatus(msgspec.Struct, kw_only=True):
    """Capabilities plus the ordered project list of one registry."""

    capabilities: RegistryCapabilities = msgspec.field(
        default_factory=RegistryCapabilities
    )
    projects: list[ProjectStatus] = msgspec.field(default_factory=list)

    def project(self, name: str) -> ProjectStatus | None:
        """Return the project named ``name`` if present."""
        return next((p for p in self.projects if p.name == name), None)


__all__ = [
    "DEFAULT_PULL_SCHEDULE",
    "STORAGE_UNKNOWN",
    "MemberStatus",
    "ProjectStatus",
    "RegistryCapabilities",
    "RegistryStatus",
    "ReplicationRuleStatus",
    "ReplicationTrigger",
    "ScannerStatus",
]
