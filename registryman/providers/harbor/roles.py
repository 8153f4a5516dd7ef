"""Mapping between Harbor numeric roles, robot permissions and member roles."""

from __future__ import annotations

from registryman.config.enums import MemberRole
from registryman.errors import RecoverableError

from .wire import RobotAccess

_ROLE_IDS: dict[MemberRole, int] = {
    MemberRole.PROJECT_ADMIN: 1,
    MemberRole.DEVELOPER: 2,
    MemberRole.GUEST: 3,
    MemberRole.MAINTAINER: 4,
    MemberRole.LIMITED_GUEST: 5,
}
_ROLES_BY_ID = {role_id: role for role, role_id in _ROLE_IDS.items()}

_ROBOT_ACTIONS: dict[MemberRole, tuple[str, ...]] = {
    MemberRole.PUSH_ONLY: ("push",),
    MemberRole.PULL_ONLY: ("pull",),
    MemberRole.PULL_AND_PUSH: ("pull", "push"),
}


def role_id(role: MemberRole) -> int:
    """Return Harbor's ``role_id`` for a user or group role."""
    try:
        return _ROLE_IDS[role]
    except KeyError:
        msg = f"role {role} cannot be granted to Harbor users or groups"
        raise RecoverableError(msg) from None


def role_from_id(value: int) -> MemberRole:
    """Return the member role for Harbor's ``role_id``."""
    try:
        return _ROLES_BY_ID[value]
    except KeyError:
        msg = f"unknown Harbor role id {value}"
        raise RecoverableError(msg) from None


def robot_access(role: MemberRole) -> list[RobotAccess]:
    """Return the repository permissions granting ``role`` to a robot."""
    try:
        actions = _ROBOT_ACTIONS[role]
    except KeyError:
        msg = f"role {role} cannot be granted to Harbor robots"
        raise RecoverableError(msg) from None
    return [RobotAccess(action=action) for action in actions]


def robot_role(access: list[RobotAccess]) -> MemberRole:
    """Return the member role implied by a robot's repository permissions."""
    actions = {a.action for a in access if a.resource == "repository"}
    can_pull = "pull" in actions
    can_push = "push" in actions
    if can_pull and can_push:
        return MemberRole.PULL_AND_PUSH
    if can_pull:
        return MemberRole.PULL_ONLY
    if can_push:
        return MemberRole.PUSH_ONLY
    msg = "robot has neither pull nor push access"
    raise RecoverableError(msg)


__all__ = ["robot_access", "robot_role", "role_from_id", "role_id"]
