"""Wire enumerations for registry roles, members and replication.

Every enumeration is an :class:`enum.StrEnum` whose values are the canonical
strings used in manifests, status documents and logs.
"""

from __future__ import annotations

import enum


class RegistryRole(enum.StrEnum):
    """Role of a registry within the fleet."""

    GLOBAL_HUB = "GlobalHub"
    LOCAL = "Local"


class ProviderName(enum.StrEnum):
    """Registry products with a registered provider client."""

    HARBOR = "harbor"
    ACR = "acr"
    ARTIFACTORY = "artifactory"


class ProjectType(enum.StrEnum):
    """Placement of a project across the fleet."""

    GLOBAL = "Global"
    LOCAL = "Local"


class MemberType(enum.StrEnum):
    """Kind of principal bound to a project."""

    USER = "User"
    GROUP = "Group"
    ROBOT = "Robot"


class MemberRole(enum.StrEnum):
    """Role granted to a project member."""

    LIMITED_GUEST = "LimitedGuest"
    GUEST = "Guest"
    DEVELOPER = "Developer"
    MAINTAINER = "Maintainer"
    PROJECT_ADMIN = "ProjectAdmin"
    PUSH_ONLY = "PushOnly"
    PULL_ONLY = "PullOnly"
    PULL_AND_PUSH = "PullAndPush"


class ReplicationTriggerType(enum.StrEnum):
    """When a replication rule fires."""

    EVENT_BASED = "EventBased"
    CRON = "Cron"
    MANUAL = "Manual"


class ReplicationDirection(enum.StrEnum):
    """Direction of a replication rule relative to the registry owning it."""

    PUSH = "Push"
    PULL = "Pull"


_WIRE_ENUMS: tuple[type[enum.StrEnum], ...] = (
    RegistryRole,
    ProviderName,
    ProjectType,
    MemberType,
    MemberRole,
    ReplicationTriggerType,
    ReplicationDirection,
)


def encode_enum(value: object) -> str:
    """Return the wire string for a member of a registryman enumeration.

    Raises
    ------
    ValueError
        If ``value`` is not a member of one of the wire enumerations.

    """
    if isinstance(value, _WIRE_ENUMS):
        return value.value
    msg = f"cannot encode {value!r}: not a registryman enumeration value"
    raise ValueError(msg)


def decode_enum[E: enum.StrEnum](enum_type: type[E], text: str) -> E:
    """Return the member of ``enum_type`` whose wire string is ``text``.

    Raises
    ------
    ValueError
        If ``text`` names no member of ``enum_type``.

    """
    try:
        return enum_type(text)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        msg = f"invalid {enum_type.__name__} {text!r} (expected one of: {allowed})"
        raise ValueError(msg) from exc


__all__ = [
    "MemberRole",
    "MemberType",
    "ProjectType",
    "ProviderName",
    "RegistryRole",
    "ReplicationDirection",
    "ReplicationTriggerType",
    "decode_enum",
    "encode_enum",
]
