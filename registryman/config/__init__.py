"""Declarative fleet configuration: resources, stores and validation.

Quick examples
--------------

Load and validate a manifest directory::

    >>> from registryman.config import LocalFileStore
    >>> store = LocalFileStore.load("examples/fleet")

Validate a proposed mutation against a live store::

    >>> from registryman.config import OverlayStore, validate_consistency
    >>> await validate_consistency(OverlayStore(store, added=[new_registry]))

"""

from __future__ import annotations

from .enums import (
    MemberRole,
    MemberType,
    ProjectType,
    ProviderName,
    RegistryRole,
    ReplicationDirection,
    ReplicationTriggerType,
    decode_enum,
    encode_enum,
)
from .filesystem import LocalFileStore
from .loader import (
    ManifestValidationError,
    dump_manifest,
    load_manifest_file,
    parse_resource,
)
from .models import (
    API_VERSION,
    ObjectMeta,
    Project,
    ProjectMember,
    ProjectSpec,
    Registry,
    RegistrySpec,
    Resource,
    Scanner,
    ScannerSpec,
)
from .overlay import OverlayStore
from .schema import build_resource_schemas, write_resource_schemas
from .status import (
    MemberStatus,
    ProjectStatus,
    RegistryCapabilities,
    RegistryStatus,
    ReplicationRuleStatus,
    ReplicationTrigger,
    ScannerStatus,
)
from .store import (
    ApiObjectStore,
    CanForceDelete,
    FleetSnapshot,
    GlobalRegistryOptions,
    take_snapshot,
)
from .validation import (
    ConsistencyError,
    ConsistencyErrorKind,
    check_consistency,
    validate_consistency,
)

__all__ = [
    "API_VERSION",
    "ApiObjectStore",
    "CanForceDelete",
    "ConsistencyError",
    "ConsistencyErrorKind",
    "FleetSnapshot",
    "GlobalRegistryOptions",
    "LocalFileStore",
    "ManifestValidationError",
    "MemberRole",
    "MemberStatus",
    "MemberType",
    "ObjectMeta",
    "OverlayStore",
    "Project",
    "ProjectMember",
    "ProjectSpec",
    "ProjectStatus",
    "ProjectType",
    "ProviderName",
    "Registry",
    "RegistryCapabilities",
    "RegistryRole",
    "RegistrySpec",
    "RegistryStatus",
    "ReplicationDirection",
    "ReplicationRuleStatus",
    "ReplicationTrigger",
    "ReplicationTriggerType",
    "Resource",
    "Scanner",
    "ScannerSpec",
    "ScannerStatus",
    "build_resource_schemas",
    "check_consistency",
    "decode_enum",
    "dump_manifest",
    "encode_enum",
    "load_manifest_file",
    "parse_resource",
    "take_snapshot",
    "validate_consistency",
    "write_resource_schemas",
]
