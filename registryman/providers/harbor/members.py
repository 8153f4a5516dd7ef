"""Harbor project members: users, LDAP groups and robot accounts."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from registryman.config.enums import MemberType
from registryman.config.status import MemberStatus
from registryman.errors import AlreadyExistsError, RecoverableError
from registryman.logging import get_logger, log_debug

from ..http import ensure_success, int_id_from_location
from ..interface import MemberCredentials
from . import roles
from .wire import (
    LdapGroup,
    MemberEntity,
    MemberRequest,
    Robot,
    RobotCreated,
    RobotPermission,
    UserEntity,
    UserGroup,
)

if typ.TYPE_CHECKING:
    from .registry import HarborRegistry

logger = get_logger(__name__)

_PROJECTS_PATH = "/api/v2.0/projects"
USERGROUPS_PATH = "/api/v2.0/usergroups"
LDAP_SEARCH_PATH = "/api/v2.0/ldap/groups/search"
ROBOTS_PATH = "/api/v2.0/robots"
ROBOT_DESCRIPTION = "generated robot member"

_ENTITY_TYPES = {"u": MemberType.USER, "g": MemberType.GROUP}


def robot_prefix(project_name: str) -> str:
    """Return the prefix Harbor puts in front of project robot names."""
    return f"robot${project_name}+"


async def list_member_entities(
    api: HarborRegistry, project_id: int
) -> list[MemberEntity]:
    """Return the user and group members of ``project_id``."""
    return await api.get_json(
        f"{_PROJECTS_PATH}/{project_id}/members", list[MemberEntity]
    )


async def delete_member_entity(
    api: HarborRegistry, project_id: int, member_id: int
) -> None:
    """Delete the membership ``member_id``."""
    response = await api.request(
        "DELETE", f"{_PROJECTS_PATH}/{project_id}/members/{member_id}"
    )
    ensure_success(response, context=f"{api.name}: deleting member {member_id}")


async def search_ldap_group_dn(api: HarborRegistry, group_name: str) -> str:
    """Return the DN of the LDAP group ``group_name``; ``""`` when unknown.

    Raises
    ------
    RecoverableError
        If more than one LDAP group carries the name.

    """
    groups = await api.get_json(
        LDAP_SEARCH_PATH, list[LdapGroup], params={"groupname": group_name}
    )
    match groups:
        case []:
            return ""
        case [group]:
            return group.ldap_group_dn
        case _:
            msg = f"multiple LDAP groups found with the name {group_name}"
            raise RecoverableError(msg)


async def list_robots(api: HarborRegistry, project_id: int) -> list[Robot]:
    """Return the robot accounts of ``project_id`` with Harbor's full names."""
    return await api.get_json(f"{_PROJECTS_PATH}/{project_id}/robots", list[Robot])


async def get_members(
    api: HarborRegistry, project_id: int, project_name: str
) -> list[MemberStatus]:
    """Return users and groups followed by robots, in Harbor's order."""
    members: list[MemberStatus] = []
    for entity in await list_member_entities(api, project_id):
        member_type = _ENTITY_TYPES.get(entity.entity_type)
        if member_type is None:
            msg = f"{api.name}: unhandled member entity type {entity.entity_type}"
            raise RecoverableError(msg)
        dn = ""
        if member_type is MemberType.GROUP:
            dn = await search_ldap_group_dn(api, entity.entity_name)
        members.append(
            MemberStatus(
                name=entity.entity_name,
                type=member_type,
                role=roles.role_from_id(entity.role_id),
                dn=dn,
            )
        )
    prefix = robot_prefix(project_name)
    for robot in await list_robots(api, project_id):
        access = [a for permission in robot.permissions for a in permission.access]
        members.append(
            MemberStatus(
                name=robot.name.removeprefix(prefix),
                type=MemberType.ROBOT,
                role=roles.robot_role(access),
            )
        )
    return members


async def _list_user_groups(api: HarborRegistry) -> list[UserGroup]:
    return await api.get_json(USERGROUPS_PATH, list[UserGroup])


async def _create_user_group(api: HarborRegistry, group: UserGroup) -> UserGroup:
    response = await api.request("POST", USERGROUPS_PATH, json=group)
    ensure_success(response, context=f"{api.name}: creating usergroup")
    return UserGroup(
        group_name=group.group_name,
        ldap_group_dn=group.ldap_group_dn,
        group_type=group.group_type,
        id=int_id_from_location(response, USERGROUPS_PATH),
    )


async def _delete_user_group(api: HarborRegistry, group: UserGroup) -> None:
    response = await api.request("DELETE", f"{USERGROUPS_PATH}/{group.id}")
    ensure_success(response, context=f"{api.name}: deleting usergroup")


async def resolve_user_group(api: HarborRegistry, name: str, dn: str) -> UserGroup:
    """Return the LDAP user group ``name`` with its Harbor id.

    A group registered under the same name with another DN is replaced.
    An unknown group is sent without an id and Harbor registers it while
    adding the membership.
    """
    wanted = UserGroup(group_name=name, ldap_group_dn=dn)
    for group in await _list_user_groups(api):
        if group.group_name != name:
            continue
        if group.group_type == wanted.group_type and group.ldap_group_dn == dn:
            log_debug(logger, "%s: usergroup %s has id %d", api.name, name, group.id)
            return group
        log_debug(
            logger,
            "%s: usergroup %s registered with DN %s; recreating",
            api.name,
            name,
            group.ldap_group_dn,
        )
        await _delete_user_group(api, group)
        return await _create_user_group(api, wanted)
    return wanted


async def _create_membership(
    api: HarborRegistry, project_id: int, body: MemberRequest, label: str
) -> None:
    response = await api.request(
        "POST", f"{_PROJECTS_PATH}/{project_id}/members", json=body
    )
    if response.status_code == HTTPStatus.CONFLICT:
        raise AlreadyExistsError.conflict(f"project member {label}")
    if response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR:
        msg = f"{api.name}: internal server error, invalid name or DN? ({label})"
        raise RecoverableError(msg)
    ensure_success(response, context=f"{api.name}: adding member {label}")


async def assign_member(
    api: HarborRegistry, project_id: int, project_name: str, member: MemberStatus
) -> MemberCredentials | None:
    """Add ``member`` to the project; robots return their generated secret."""
    match member.type:
        case MemberType.USER:
            body = MemberRequest(
                role_id=roles.role_id(member.role),
                member_user=UserEntity(username=member.name),
            )
            await _create_membership(api, project_id, body, member.name)
            return None
        case MemberType.GROUP:
            group = await resolve_user_group(api, member.name, member.dn)
            body = MemberRequest(role_id=roles.role_id(member.role), member_group=group)
            await _create_membership(api, project_id, body, member.dn)
            return None
        case MemberType.ROBOT:
            return await _create_robot(api, project_name, member)


async def _create_robot(
    api: HarborRegistry, project_name: str, member: MemberStatus
) -> MemberCredentials:
    robot = Robot(
        name=member.name,
        description=ROBOT_DESCRIPTION,
        permissions=[
            RobotPermission(
                access=roles.robot_access(member.role), namespace=project_name
            )
        ],
    )
    response = await api.request("POST", ROBOTS_PATH, json=robot)
    if response.status_code == HTTPStatus.CONFLICT:
        raise AlreadyExistsError.conflict(f"robot {member.name}")
    ensure_success(response, context=f"{api.name}: creating robot {member.name}")
    created = api.decode(response, RobotCreated)
    return MemberCredentials(username=created.name, password=created.secret)


async def unassign_member(
    api: HarborRegistry, project_id: int, project_name: str, member: MemberStatus
) -> None:
    """Remove ``member`` from the project.

    Raises
    ------
    RecoverableError
        If no membership or robot matches the member name.

    """
    if member.type is MemberType.ROBOT:
        full_name = robot_prefix(project_name) + member.name
        robots = await list_robots(api, project_id)
        robot = next((r for r in robots if r.name == full_name), None)
        if robot is None:
            msg = f"{api.name}: robot member {member.name} not found"
            raise RecoverableError(msg)
        response = await api.request(
            "DELETE", f"{_PROJECTS_PATH}/{project_id}/robots/{robot.id}"
        )
        ensure_success(response, context=f"{api.name}: deleting robot")
        return
    entities = await list_member_entities(api, project_id)
    entity = next((e for e in entities if e.entity_name == member.name), None)
    if entity is None:
        msg = f"{api.name}: member {member.name} not found"
        raise RecoverableError(msg)
    await delete_member_entity(api, project_id, entity.id)


__all__ = [
    "assign_member",
    "delete_member_entity",
    "get_members",
    "list_member_entities",
    "list_robots",
    "resolve_user_group",
    "robot_prefix",
    "search_ldap_group_dn",
    "unassign_member",
]
