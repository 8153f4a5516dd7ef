"""Harbor v2.0 API payloads used by the Harbor client."""

from __future__ import annotations

import msgspec


class HarborProject(msgspec.Struct, kw_only=True):
    """Entry of ``GET /api/v2.0/projects``."""

    project_id: int
    name: str


class ProjectCreateRequest(msgspec.Struct, kw_only=True):
    """Body of ``POST /api/v2.0/projects``."""

    project_name: str
    public: bool = False


class RepositoryEntry(msgspec.Struct, kw_only=True):
    """Entry of ``GET /api/v2.0/projects/{name}/repositories``."""

    name: str


class QuotaUsage(msgspec.Struct, kw_only=True):
    storage: int = 0


class Quota(msgspec.Struct, kw_only=True):
    used: QuotaUsage = msgspec.field(default_factory=QuotaUsage)


class ProjectSummary(msgspec.Struct, kw_only=True):
    """Subset of ``GET /api/v2.0/projects/{id}/summary``."""

    quota: Quota = msgspec.field(default_factory=Quota)


class MemberEntity(msgspec.Struct, kw_only=True):
    """Entry of ``GET /api/v2.0/projects/{id}/members``.

    ``entity_type`` is ``u`` for users and ``g`` for groups.
    """

    id: int
    entity_name: str
    entity_type: str
    role_id: int
    entity_id: int = 0


class UserGroup(msgspec.Struct, kw_only=True):
    """User group; ``group_type`` 1 is an LDAP group."""

    group_name: str
    ldap_group_dn: str = ""
    group_type: int = 1
    id: int = 0


class UserEntity(msgspec.Struct, kw_only=True):
    username: str


class MemberRequest(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Body of ``POST /api/v2.0/projects/{id}/members``; set one member field."""

    role_id: int
    member_user: UserEntity | None = None
    member_group: UserGroup | None = None


class LdapGroup(msgspec.Struct, kw_only=True):
    """Entry of ``GET /api/v2.0/ldap/groups/search``."""

    group_name: str = ""
    ldap_group_dn: str = ""


class RobotAccess(msgspec.Struct, kw_only=True):
    action: str
    resource: str = "repository"


class RobotPermission(msgspec.Struct, kw_only=True):
    access: list[RobotAccess] = msgspec.field(default_factory=list)
    kind: str = "project"
    namespace: str = ""


class Robot(msgspec.Struct, kw_only=True):
    """Robot account (v2 API)."""

    name: str
    id: int = 0
    description: str = ""
    level: str = "project"
    duration: int = -1
    disable: bool = False
    permissions: list[RobotPermission] = msgspec.field(default_factory=list)


class RobotCreated(msgspec.Struct, kw_only=True):
    """Response of ``POST /api/v2.0/robots``."""

    name: str
    secret: str
    id: int = 0


class RegistryCredential(msgspec.Struct, kw_only=True):
    access_key: str = ""
    access_secret: str = ""
    type: str = "basic"


class RemoteRegistry(msgspec.Struct, kw_only=True):
    """Entry of ``/api/v2.0/registries`` and the ends of a policy."""

    name: str
    id: int = 0
    type: str = ""
    url: str = ""
    insecure: bool = False
    description: str = ""
    credential: RegistryCredential | None = None


class ReplicationFilter(msgspec.Struct, kw_only=True):
    type: str
    value: str


class TriggerSettings(msgspec.Struct, kw_only=True):
    cron: str = ""


class PolicyTrigger(msgspec.Struct, kw_only=True):
    """Harbor trigger: ``manual``, ``event_based`` or ``scheduled``."""

    type: str
    trigger_settings: TriggerSettings | None = None


class ReplicationPolicy(msgspec.Struct, kw_only=True):
    """Entry of ``/api/v2.0/replication/policies``."""

    name: str
    id: int = 0
    description: str = ""
    enabled: bool = True
    src_registry: RemoteRegistry | None = None
    dest_registry: RemoteRegistry | None = None
    dest_namespace: str = ""
    filters: list[ReplicationFilter] = msgspec.field(default_factory=list)
    trigger: PolicyTrigger | None = None
    deletion: bool = False
    override: bool = False


class ScannerRegistration(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Entry of ``/api/v2.0/scanners`` and of a project's scanner."""

    name: str = ""
    url: str = ""
    uuid: str = ""
    is_default: bool = False
    disabled: bool = False
    description: str = ""


class ProjectScanner(msgspec.Struct, kw_only=True):
    """Body of ``PUT /api/v2.0/projects/{id}/scanner``."""

    uuid: str
