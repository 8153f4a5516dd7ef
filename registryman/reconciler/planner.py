"""Diff an actual registry status against the expected one.

:func:`compare` is pure and deterministic: comparing a status with itself
yields an empty plan, and equal inputs always yield the same action order.
"""

from __future__ import annotations

import typing as typ

from registryman.config.status import ReplicationRuleStatus

from .actions import (
    MemberAdd,
    MemberRemove,
    ProjectAdd,
    ProjectRemove,
    ReplRuleAdd,
    ReplRuleRemove,
    ScannerAssign,
    ScannerUnassign,
)

if typ.TYPE_CHECKING:
    from registryman.config.status import (
        ProjectStatus,
        RegistryCapabilities,
        RegistryStatus,
    )

    from .actions import Action


def _sorted_rules(
    rules: typ.Iterable[ReplicationRuleStatus],
) -> list[ReplicationRuleStatus]:
    return sorted(rules, key=ReplicationRuleStatus.sort_key)


def _member_diff(actual: ProjectStatus, expected: ProjectStatus) -> list[Action]:
    expected_members = set(expected.members)
    actual_members = set(actual.members)
    removed: list[Action] = [
        MemberRemove(actual.name, member)
        for member in actual.members
        if member not in expected_members
    ]
    added: list[Action] = [
        MemberAdd(expected.name, member)
        for member in expected.members
        if member not in actual_members
    ]
    return removed + added


def _rule_diff(actual: ProjectStatus, expected: ProjectStatus) -> list[Action]:
    expected_rules = set(expected.replication_rules)
    actual_rules = set(actual.replication_rules)
    removed: list[Action] = [
        ReplRuleRemove(actual.name, rule)
        for rule in _sorted_rules(actual_rules - expected_rules)
    ]
    added: list[Action] = [
        ReplRuleAdd(expected.name, rule)
        for rule in _sorted_rules(expected_rules - actual_rules)
    ]
    return removed + added


def _scanner_diff(actual: ProjectStatus, expected: ProjectStatus) -> list[Action]:
    current = actual.scanner_status
    wanted = expected.scanner_status
    actions: list[Action] = []
    if current == wanted:
        return actions
    if current.name:
        actions.append(ScannerUnassign(actual.name, current))
    if wanted.name:
        actions.append(ScannerAssign(expected.name, wanted))
    return actions


def _removal(
    project: ProjectStatus, capabilities: RegistryCapabilities
) -> list[Action]:
    actions: list[Action] = []
    if capabilities.can_manipulate_replication_rules:
        actions.extend(
            ReplRuleRemove(project.name, rule)
            for rule in _sorted_rules(project.replication_rules)
        )
    if capabilities.can_delete_project:
        actions.append(ProjectRemove(project.name))
    return actions


def _update(
    actual: ProjectStatus,
    expected: ProjectStatus,
    capabilities: RegistryCapabilities,
) -> list[Action]:
    actions: list[Action] = []
    if capabilities.can_manipulate_project_members:
        actions.extend(_member_diff(actual, expected))
    if capabilities.can_manipulate_replication_rules:
        actions.extend(_rule_diff(actual, expected))
    if capabilities.can_manipulate_scanners:
        actions.extend(_scanner_diff(actual, expected))
    return actions


def _addition(
    project: ProjectStatus, capabilities: RegistryCapabilities
) -> list[Action]:
    actions: list[Action] = []
    if capabilities.can_create_project:
        actions.append(ProjectAdd(project.name))
    if capabilities.can_manipulate_project_members:
        actions.extend(MemberAdd(project.name, member) for member in project.members)
    if capabilities.can_manipulate_replication_rules:
        actions.extend(
            ReplRuleAdd(project.name, rule)
            for rule in _sorted_rules(project.replication_rules)
        )
    if capabilities.can_manipulate_scanners and project.scanner_status.name:
        actions.append(ScannerAssign(project.name, project.scanner_status))
    return actions


def compare(
    actual: RegistryStatus,
    expected: RegistryStatus,
    capabilities: RegistryCapabilities | None = None,
) -> list[Action]:
    """Return the actions turning ``actual`` into ``expected``.

    Parameters
    ----------
    actual : RegistryStatus
        Status read from the live registry.
    expected : RegistryStatus
        Status projected from the declarative store.
    capabilities : RegistryCapabilities | None, optional
        Flags gating each kind of action; defaults to
        ``actual.capabilities``.

    Returns
    -------
    list[Action]
        Removals of undeclared projects first, then updates of shared
        projects in expected order, then additions in expected order.

    """
    caps = capabilities if capabilities is not None else actual.capabilities
    actual_by_name = {project.name: project for project in actual.projects}
    expected_names = {project.name for project in expected.projects}

    plan: list[Action] = []
    for project in actual.projects:
        if project.name not in expected_names:
            plan.extend(_removal(project, caps))
    for project in expected.projects:
        current = actual_by_name.get(project.name)
        if current is not None:
            plan.extend(_update(current, project, caps))
    for project in expected.projects:
        if project.name not in actual_by_name:
            plan.extend(_addition(project, caps))
    return plan


__all__ = ["compare"]
