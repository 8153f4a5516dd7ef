"""Cross-resource consistency rules shared by the CLI, webhook and operator.

The rules run in a fixed order. :func:`check_consistency` reports every
violation; :func:`validate_consistency` raises the first one, which is what
``validate``, ``apply`` and the admission webhook surface to the user.
"""

from __future__ import annotations

import collections
import collections.abc as cabc
import dataclasses
import enum
import typing as typ

from registryman.logging import get_logger, log_debug, log_warning

from .enums import MemberType, ProjectType, ProviderName, ReplicationTriggerType
from .models import ACCESS_TOKEN_ANNOTATION, DOCKER_REGISTRY_NAME_ANNOTATION

if typ.TYPE_CHECKING:
    from .models import Project, Registry, Scanner
    from .store import ApiObjectStore

logger = get_logger(__name__)


class ConsistencyErrorKind(enum.StrEnum):
    """Identifiers of the consistency rules, in evaluation order."""

    MULTIPLE_GLOBAL_HUBS = "MultipleGlobalHubs"
    ARTIFACTORY_ANNOTATIONS = "ArtifactoryAnnotations"
    INVALID_LOCAL_REGISTRY_IN_PROJECT = "InvalidLocalRegistryInProject"
    SCANNER_NAME_REFERENCE = "ScannerNameReference"
    SCANNER_NAME_NOT_UNIQUE = "ScannerNameNotUnique"
    PROJECT_NAME_NOT_UNIQUE = "ProjectNameNotUnique"
    REGISTRY_NAME_NOT_UNIQUE = "RegistryNameNotUnique"
    GROUP_WITHOUT_DN = "GroupWithoutDN"
    SCHEDULE_WITHOUT_CRON = "ScheduleWithoutCron"


_MESSAGES: dict[ConsistencyErrorKind, str] = {
    ConsistencyErrorKind.MULTIPLE_GLOBAL_HUBS: (
        "validation error: multiple global registries found"
    ),
    ConsistencyErrorKind.ARTIFACTORY_ANNOTATIONS: (
        "validation error: artifactory registry must have exactly one of the "
        f"{DOCKER_REGISTRY_NAME_ANNOTATION} and {ACCESS_TOKEN_ANNOTATION} annotations"
    ),
    ConsistencyErrorKind.INVALID_LOCAL_REGISTRY_IN_PROJECT: (
        "validation error: project contains invalid registry name"
    ),
    ConsistencyErrorKind.SCANNER_NAME_REFERENCE: (
        "validation error: project refers to a non-existing scanner"
    ),
    ConsistencyErrorKind.SCANNER_NAME_NOT_UNIQUE: (
        "validation error: multiple scanners present with the same name"
    ),
    ConsistencyErrorKind.PROJECT_NAME_NOT_UNIQUE: (
        "validation error: multiple projects present with the same name"
    ),
    ConsistencyErrorKind.REGISTRY_NAME_NOT_UNIQUE: (
        "validation error: multiple registries present with the same name"
    ),
    ConsistencyErrorKind.GROUP_WITHOUT_DN: (
        "validation error: group member must have a DN"
    ),
    ConsistencyErrorKind.SCHEDULE_WITHOUT_CRON: (
        "validation error: replication schedule is only allowed for Cron triggers"
    ),
}


class ConsistencyError(ValueError):
    """Raised when the declared fleet violates a consistency rule.

    Attributes
    ----------
    kind : ConsistencyErrorKind
        The violated rule.
    subject : str
        Name of the offending resource, or empty for fleet-wide rules.

    """

    def __init__(self, kind: ConsistencyErrorKind, subject: str = "") -> None:
        """Build the message from the rule's canonical text and the subject."""
        self.kind = kind
        self.subject = subject
        message = _MESSAGES[kind]
        if subject:
            message = f"{message} ({subject})"
        super().__init__(message)


@dataclasses.dataclass(slots=True)
class _CheckState:
    registries: cabc.Sequence[Registry]
    projects: cabc.Sequence[Project]
    scanners: cabc.Sequence[Scanner]
    issues: list[ConsistencyError] = dataclasses.field(default_factory=list)

    def add(self, kind: ConsistencyErrorKind, subject: str = "") -> None:
        log_warning(logger, "consistency check %s failed for %r", kind, subject)
        self.issues.append(ConsistencyError(kind, subject))


def check_consistency(
    registries: cabc.Sequence[Registry],
    projects: cabc.Sequence[Project],
    scanners: cabc.Sequence[Scanner],
) -> list[ConsistencyError]:
    """Return every consistency violation, ordered by rule then by resource."""
    log_debug(
        logger,
        "checking consistency of %d registries, %d projects, %d scanners",
        len(registries),
        len(projects),
        len(scanners),
    )
    state = _CheckState(registries, projects, scanners)
    for check in _CHECKS:
        check(state)
    return state.issues


async def validate_consistency(store: ApiObjectStore) -> None:
    """Raise the first consistency violation found in ``store``.

    Raises
    ------
    ConsistencyError
        If any rule is violated.

    """
    issues = check_consistency(
        await store.get_registries(),
        await store.get_projects(),
        await store.get_scanners(),
    )
    if issues:
        raise issues[0]


def _check_global_hub_count(state: _CheckState) -> None:
    hubs = [r.name for r in state.registries if r.is_global_hub]
    if len(hubs) >= 2:
        state.add(ConsistencyErrorKind.MULTIPLE_GLOBAL_HUBS, ", ".join(hubs))


def _check_artifactory_annotations(state: _CheckState) -> None:
    for registry in state.registries:
        if registry.spec.provider is not ProviderName.ARTIFACTORY:
            continue
        has_docker_name = DOCKER_REGISTRY_NAME_ANNOTATION in registry.annotations
        has_token = ACCESS_TOKEN_ANNOTATION in registry.annotations
        if has_docker_name == has_token:
            state.add(ConsistencyErrorKind.ARTIFACTORY_ANNOTATIONS, registry.name)


def _check_local_registry_names(state: _CheckState) -> None:
    local_registries = {r.name for r in state.registries if not r.is_global_hub}
    for project in state.projects:
        if project.spec.type is not ProjectType.LOCAL:
            continue
        if not project.spec.local_registries:
            state.add(
                ConsistencyErrorKind.INVALID_LOCAL_REGISTRY_IN_PROJECT, project.name
            )
            continue
        for name in project.spec.local_registries:
            if name not in local_registries:
                state.add(
                    ConsistencyErrorKind.INVALID_LOCAL_REGISTRY_IN_PROJECT,
                    f"{project.name}: {name}",
                )


def _check_scanner_references(state: _CheckState) -> None:
    scanner_names = {s.name for s in state.scanners}
    for project in state.projects:
        if project.spec.scanner and project.spec.scanner not in scanner_names:
            state.add(
                ConsistencyErrorKind.SCANNER_NAME_REFERENCE,
                f"{project.name}: {project.spec.scanner}",
            )


def _duplicates(names: cabc.Iterable[str]) -> list[str]:
    counts = collections.Counter(names)
    return [name for name, count in counts.items() if count > 1]


def _check_scanner_uniqueness(state: _CheckState) -> None:
    for name in _duplicates(s.name for s in state.scanners):
        state.add(ConsistencyErrorKind.SCANNER_NAME_NOT_UNIQUE, name)


def _check_project_uniqueness(state: _CheckState) -> None:
    for name in _duplicates(p.name for p in state.projects):
        state.add(ConsistencyErrorKind.PROJECT_NAME_NOT_UNIQUE, name)


def _check_registry_uniqueness(state: _CheckState) -> None:
    for name in _duplicates(r.name for r in state.registries):
        state.add(ConsistencyErrorKind.REGISTRY_NAME_NOT_UNIQUE, name)


def _check_group_members(state: _CheckState) -> None:
    for project in state.projects:
        for member in project.spec.members:
            if member.type is MemberType.GROUP and not member.dn.strip():
                state.add(
                    ConsistencyErrorKind.GROUP_WITHOUT_DN,
                    f"{project.name}: {member.name}",
                )


def _check_trigger_schedules(state: _CheckState) -> None:
    for project in state.projects:
        trigger = project.spec.trigger
        if (
            trigger is not None
            and trigger.schedule
            and trigger.type is not ReplicationTriggerType.CRON
        ):
            state.add(ConsistencyErrorKind.SCHEDULE_WITHOUT_CRON, project.name)


_CHECKS: tuple[cabc.Callable[[_CheckState], None], ...] = (
    _check_global_hub_count,
    _check_artifactory_annotations,
    _check_local_registry_names,
    _check_scanner_references,
    _check_scanner_uniqueness,
    _check_project_uniqueness,
    _check_registry_uniqueness,
    _check_group_members,
    _check_trigger_schedules,
)


__all__ = [
    "ConsistencyError",
    "ConsistencyErrorKind",
    "check_consistency",
    "validate_consistency",
]
