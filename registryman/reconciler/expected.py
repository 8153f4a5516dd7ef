"""Expected registry status projected from the declarative store.

The projection is pure: it reads a :class:`FleetSnapshot` and the provider
registry's replication capabilities and never touches a live registry.
"""

from __future__ import annotations

import typing as typ

from registryman.config.enums import (
    MemberType,
    ProjectType,
    ReplicationDirection,
    ReplicationTriggerType,
)
from registryman.config.models import FORCE_DELETE_ANNOTATION
from registryman.config.status import (
    DEFAULT_PULL_SCHEDULE,
    MemberStatus,
    ProjectStatus,
    RegistryCapabilities,
    RegistryStatus,
    ReplicationRuleStatus,
    ReplicationTrigger,
    ScannerStatus,
)
from registryman.config.store import GlobalRegistryOptions
from registryman.errors import FleetCorruptionError
from registryman.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from registryman.config.models import Project, Registry
    from registryman.config.store import FleetSnapshot, RegistryOptions
    from registryman.providers.registry import (
        ProviderRegistry,
        ReplicationCapabilities,
    )

logger = get_logger(__name__)

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_VERBATIM_TRIGGERS = frozenset(
    {ReplicationTriggerType.CRON, ReplicationTriggerType.MANUAL}
)


def parse_bool(text: str) -> bool:
    """Parse ``text`` with the spellings accepted for boolean annotations.

    Raises
    ------
    ValueError
        If ``text`` is not a recognised boolean spelling.

    """
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    msg = f"invalid boolean {text!r}"
    raise ValueError(msg)


def registry_options(
    registry: Registry, store_options: RegistryOptions
) -> RegistryOptions:
    """Return the options a live handle for ``registry`` should carry.

    The ``forceDelete`` annotation overrides the store-wide options. An
    unparsable annotation logs a warning and disables force delete.
    """
    raw = registry.annotations.get(FORCE_DELETE_ANNOTATION)
    if raw is None:
        return store_options
    try:
        force_delete = parse_bool(raw)
    except ValueError:
        log_warning(
            logger,
            "%s: invalid %s annotation value %r; force delete disabled",
            registry.name,
            FORCE_DELETE_ANNOTATION,
            raw,
        )
        force_delete = False
    dry_run = getattr(store_options, "dry_run", False)
    return GlobalRegistryOptions(force_delete=force_delete, dry_run=dry_run)


def push_trigger(project: Project) -> ReplicationTrigger:
    """Return the trigger of a push rule created for ``project``."""
    trigger = project.spec.trigger
    if trigger is not None and trigger.type in _VERBATIM_TRIGGERS:
        return trigger
    return ReplicationTrigger(type=ReplicationTriggerType.EVENT_BASED)


def pull_trigger(project: Project) -> ReplicationTrigger:
    """Return the trigger of a pull rule created for ``project``.

    Pull replication cannot react to events, so event-based and missing
    triggers fall back to a ten-minute cron schedule.
    """
    trigger = project.spec.trigger
    if trigger is not None and trigger.type in _VERBATIM_TRIGGERS:
        return trigger
    return ReplicationTrigger.cron(DEFAULT_PULL_SCHEDULE)


def _replication_rules(
    registry: Registry,
    project: Project,
    snapshot: FleetSnapshot,
    replication: ReplicationCapabilities,
) -> list[ReplicationRuleStatus]:
    rules: list[ReplicationRuleStatus] = []
    for remote in snapshot.registries:
        if remote.name == registry.name:
            continue
        if not registry.is_global_hub and not remote.is_global_hub:
            continue
        if registry.is_global_hub and remote.is_global_hub:
            raise FleetCorruptionError.two_global_hubs(registry.name, remote.name)
        if registry.is_global_hub and replication.can_push:
            rules.append(
                ReplicationRuleStatus(
                    remote_registry_name=remote.name,
                    trigger=push_trigger(project),
                    direction=ReplicationDirection.PUSH,
                )
            )
        elif not registry.is_global_hub and replication.can_pull:
            rules.append(
                ReplicationRuleStatus(
                    remote_registry_name=remote.name,
                    trigger=pull_trigger(project),
                    direction=ReplicationDirection.PULL,
                )
            )
    rules.sort(key=ReplicationRuleStatus.sort_key)
    return rules


def _scanner_status(project: Project, snapshot: FleetSnapshot) -> ScannerStatus:
    if not project.spec.scanner:
        return ScannerStatus()
    scanner = snapshot.scanner(project.spec.scanner)
    if scanner is None:
        return ScannerStatus()
    return ScannerStatus(name=scanner.name, url=scanner.spec.url)


def _is_placed_on(registry: Registry, project: Project) -> bool:
    if project.spec.type is ProjectType.GLOBAL:
        return True
    return registry.name in project.spec.local_registries


def project_expected_status(
    registry: Registry, snapshot: FleetSnapshot, providers: ProviderRegistry
) -> RegistryStatus:
    """Project the declared fleet onto ``registry``.

    Parameters
    ----------
    registry : Registry
        Registry whose expected status is built.
    snapshot : FleetSnapshot
        Declared registries, projects and scanners.
    providers : ProviderRegistry
        Source of the registry's replication capabilities.

    Returns
    -------
    RegistryStatus
        Unconstrained capabilities and one project status per placed project,
        in store order.

    Raises
    ------
    UnknownProviderError
        If the registry's provider is not registered.
    FleetCorruptionError
        If two global hubs meet while deriving replication rules.

    """
    replication = providers.capabilities(registry.spec.provider)
    projects: list[ProjectStatus] = []
    for project in snapshot.projects:
        if not _is_placed_on(registry, project):
            continue
        rules = (
            _replication_rules(registry, project, snapshot, replication)
            if project.is_global
            else []
        )
        projects.append(
            ProjectStatus(
                name=project.name,
                members=[
                    MemberStatus(
                        name=member.name,
                        type=member.type,
                        role=member.role,
                        dn=member.dn if member.type is MemberType.GROUP else "",
                    )
                    for member in project.spec.members
                ],
                replication_rules=rules,
                scanner_status=_scanner_status(project, snapshot),
            )
        )
    return RegistryStatus(
        capabilities=RegistryCapabilities.unconstrained(
            can_pull=replication.can_pull, can_push=replication.can_push
        ),
        projects=projects,
    )


__all__ = [
    "parse_bool",
    "project_expected_status",
    "pull_trigger",
    "push_trigger",
    "registry_options",
]
