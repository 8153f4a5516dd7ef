"""Typed declarative resources: Registry, Project and Scanner.

The three resources share the ``registryman.kubermatic.com/v1alpha1`` API
version and are tagged on ``kind`` so a single :func:`msgspec.convert` call
dispatches a parsed YAML document to the right type.
"""

from __future__ import annotations

import msgspec

from .enums import MemberRole, MemberType, ProjectType, ProviderName, RegistryRole
from .status import RegistryStatus, ReplicationTrigger

API_GROUP = "registryman.kubermatic.com"
API_VERSION = f"{API_GROUP}/v1alpha1"

FORCE_DELETE_ANNOTATION = f"{API_GROUP}/forceDelete"
DOCKER_REGISTRY_NAME_ANNOTATION = f"{API_GROUP}/dockerRegistryName"
ACCESS_TOKEN_ANNOTATION = f"{API_GROUP}/accessToken"


class ObjectMeta(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Identity and annotations of a resource.

    Attributes
    ----------
    name : str
        Resource name, unique per kind.
    namespace : str
        Optional namespace; empty for filesystem manifests.
    annotations : dict[str, str]
        Free-form string annotations.

    """

    name: str
    namespace: str = ""
    annotations: dict[str, str] = msgspec.field(default_factory=dict)


class _Resource(
    msgspec.Struct, kw_only=True, rename="camel", tag_field="kind", omit_defaults=True
):
    api_version: str = API_VERSION
    metadata: ObjectMeta

    @property
    def name(self) -> str:
        """Return ``metadata.name``."""
        return self.metadata.name

    @property
    def namespace(self) -> str:
        """Return ``metadata.namespace``."""
        return self.metadata.namespace

    @property
    def annotations(self) -> dict[str, str]:
        """Return ``metadata.annotations``."""
        return self.metadata.annotations

    @property
    def kind(self) -> str:
        """Return the ``kind`` tag of the concrete resource type."""
        return type(self).__name__


class RegistrySpec(msgspec.Struct, kw_only=True, rename="camel"):
    """Desired configuration of a registry."""

    provider: ProviderName
    api_endpoint: str
    username: str
    password: str
    role: RegistryRole = RegistryRole.LOCAL


class Registry(_Resource, tag="Registry"):
    """A container image registry of the fleet."""

    spec: RegistrySpec
    status: RegistryStatus | None = None

    @property
    def is_global_hub(self) -> bool:
        """Return True when the registry is the fleet's global hub."""
        return self.spec.role is RegistryRole.GLOBAL_HUB


class ProjectMember(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Principal bound to a project; ``dn`` is required for groups."""

    type: MemberType = MemberType.USER
    name: str
    role: MemberRole
    dn: str = ""


class ProjectSpec(msgspec.Struct, kw_only=True, rename="camel", omit_defaults=True):
    """Desired configuration of a project."""

    type: ProjectType
    local_registries: list[str] = msgspec.field(default_factory=list)
    members: list[ProjectMember] = msgspec.field(default_factory=list)
    scanner: str = ""
    trigger: ReplicationTrigger | None = None


class Project(_Resource, tag="Project"):
    """A project placed on every registry or on named local registries."""

    spec: ProjectSpec

    @property
    def is_global(self) -> bool:
        """Return True for projects present on every registry."""
        return self.spec.type is ProjectType.GLOBAL


class ScannerSpec(msgspec.Struct, kw_only=True, rename="camel", omit_defaults=True):
    """Desired configuration of a vulnerability scanner."""

    url: str
    access_credential: str = ""


class Scanner(_Resource, tag="Scanner"):
    """External vulnerability scanner that projects may reference."""

    spec: ScannerSpec


type Resource = Registry | Project | Scanner

RESOURCE_TYPES: dict[str, type[Registry | Project | Scanner]] = {
    "Registry": Registry,
    "Project": Project,
    "Scanner": Scanner,
}


__all__ = [
    "ACCESS_TOKEN_ANNOTATION",
    "API_GROUP",
    "API_VERSION",
    "DOCKER_REGISTRY_NAME_ANNOTATION",
    "FORCE_DELETE_ANNOTATION",
    "RESOURCE_TYPES",
    "ObjectMeta",
    "Project",
    "ProjectMember",
    "ProjectSpec",
    "Registry",
    "RegistrySpec",
    "Resource",
    "Scanner",
    "ScannerSpec",
]
