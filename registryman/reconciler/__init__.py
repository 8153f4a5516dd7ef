"""Reconciliation core: expected and actual status, planning and execution.

Public API
----------
project_expected_status
    Project the declared fleet onto one registry.
fetch_actual_status
    Read capabilities and projects from a live registry.
compare
    Diff two statuses into an ordered plan of actions.
execute_plan
    Perform a plan, then each action's side effect.

"""

from __future__ import annotations

from registryman.reconciler.actions import (
    Action,
    MemberAdd,
    MemberRemove,
    ProjectAdd,
    ProjectRemove,
    ReplRuleAdd,
    ReplRuleRemove,
    ScannerAssign,
    ScannerUnassign,
)
from registryman.reconciler.actual import discover_capabilities, fetch_actual_status
from registryman.reconciler.executor import ExecutionReport, execute_plan
from registryman.reconciler.expected import project_expected_status, registry_options
from registryman.reconciler.planner import compare
from registryman.reconciler.side_effects import (
    NO_SIDE_EFFECT,
    PersistMemberCredentials,
    RemoveMemberCredentials,
    SideEffect,
)

__all__ = [
    "NO_SIDE_EFFECT",
    "Action",
    "ExecutionReport",
    "MemberAdd",
    "MemberRemove",
    "PersistMemberCredentials",
    "ProjectAdd",
    "ProjectRemove",
    "RemoveMemberCredentials",
    "ReplRuleAdd",
    "ReplRuleRemove",
    "ScannerAssign",
    "ScannerUnassign",
    "SideEffect",
    "compare",
    "discover_capabilities",
    "execute_plan",
    "fetch_actual_status",
    "project_expected_status",
    "registry_options",
]
