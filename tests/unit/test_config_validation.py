"""Unit tests for the cross-resource consistency rules."""

from __future__ import annotations

import pytest

from registryman.config.enums import (
    MemberRole,
    MemberType,
    ProjectType,
    ProviderName,
    ReplicationTriggerType,
)
from registryman.config.models import (
    ACCESS_TOKEN_ANNOTATION,
    DOCKER_REGISTRY_NAME_ANNOTATION,
)
from registryman.config.status import ReplicationTrigger
from registryman.config.validation import (
    ConsistencyError,
    ConsistencyErrorKind,
    check_consistency,
    validate_consistency,
)
from tests.helpers.fakes import InMemoryStore
from tests.helpers.fleet_builders import (
    make_hub,
    make_member,
    make_project,
    make_registry,
    make_scanner,
)


def _kinds(issues: list[ConsistencyError]) -> list[ConsistencyErrorKind]:
    return [issue.kind for issue in issues]


def test_consistent_fleet_has_no_issues() -> None:
    """Hub, local, scanner and both project types pass every rule."""
    issues = check_consistency(
        [make_hub(), make_registry("edge")],
        [
            make_project("ubuntu", scanner="trivy"),
            make_project(
                "sandbox", project_type=ProjectType.LOCAL, local_registries=["edge"]
            ),
        ],
        [make_scanner("trivy")],
    )
    assert issues == []


def test_two_global_hubs() -> None:
    """A second GlobalHub is reported once, naming both hubs."""
    issues = check_consistency([make_hub("global"), make_hub("global2")], [], [])
    assert _kinds(issues) == [ConsistencyErrorKind.MULTIPLE_GLOBAL_HUBS]
    assert "multiple global registries" in str(issues[0])
    assert issues[0].subject == "global, global2"


@pytest.mark.parametrize(
    "annotations",
    [
        {},
        {DOCKER_REGISTRY_NAME_ANNOTATION: "docker", ACCESS_TOKEN_ANNOTATION: "t"},
    ],
    ids=["neither", "both"],
)
def test_artifactory_needs_exactly_one_mode(annotations: dict[str, str]) -> None:
    """Artifactory registries pick path-based or project-based mode."""
    registry = make_registry(
        "jfrog", provider=ProviderName.ARTIFACTORY, annotations=annotations
    )
    issues = check_consistency([registry], [], [])
    assert _kinds(issues) == [ConsistencyErrorKind.ARTIFACTORY_ANNOTATIONS]


@pytest.mark.parametrize(
    "local_registries",
    [[], ["missing"], ["global"]],
    ids=["empty", "unknown", "hub"],
)
def test_local_project_registries(local_registries: list[str]) -> None:
    """Local projects name at least one declared non-hub registry."""
    project = make_project(
        "sandbox",
        project_type=ProjectType.LOCAL,
        local_registries=local_registries,
    )
    issues = check_consistency([make_hub("global")], [project], [])
    assert _kinds(issues) == [ConsistencyErrorKind.INVALID_LOCAL_REGISTRY_IN_PROJECT]


def test_unknown_scanner_reference() -> None:
    """Projects may only reference declared scanners."""
    issues = check_consistency([], [make_project("ubuntu", scanner="clair")], [])
    assert _kinds(issues) == [ConsistencyErrorKind.SCANNER_NAME_REFERENCE]


def test_duplicate_names_per_kind() -> None:
    """Names are unique per kind; rules report in their fixed order."""
    issues = check_consistency(
        [make_registry("edge"), make_registry("edge")],
        [make_project("ubuntu"), make_project("ubuntu")],
        [make_scanner("trivy"), make_scanner("trivy")],
    )
    assert _kinds(issues) == [
        ConsistencyErrorKind.SCANNER_NAME_NOT_UNIQUE,
        ConsistencyErrorKind.PROJECT_NAME_NOT_UNIQUE,
        ConsistencyErrorKind.REGISTRY_NAME_NOT_UNIQUE,
    ]


def test_group_member_without_dn() -> None:
    """LDAP group members carry a DN."""
    project = make_project(
        "ubuntu",
        members=[make_member("admins", MemberRole.GUEST, member_type=MemberType.GROUP)],
    )
    issues = check_consistency([], [project], [])
    assert _kinds(issues) == [ConsistencyErrorKind.GROUP_WITHOUT_DN]


def test_schedule_without_cron() -> None:
    """Only Cron triggers carry a schedule."""
    project = make_project(
        "ubuntu",
        trigger=ReplicationTrigger(
            type=ReplicationTriggerType.MANUAL, schedule="0 * * * *"
        ),
    )
    issues = check_consistency([], [project], [])
    assert _kinds(issues) == [ConsistencyErrorKind.SCHEDULE_WITHOUT_CRON]


@pytest.mark.asyncio
async def test_validate_consistency_raises_first_issue() -> None:
    """The store validator raises the first violation in rule order."""
    store = InMemoryStore(
        registries=[make_hub("a"), make_hub("b")],
        projects=[make_project("ubuntu", scanner="missing")],
    )
    with pytest.raises(ConsistencyError) as excinfo:
        await validate_consistency(store)
    assert excinfo.value.kind is ConsistencyErrorKind.MULTIPLE_GLOBAL_HUBS
