"""Harbor v2.0 provider client.

Public API
----------
HarborRegistry
    Live registry handle; creates projects.
HarborProject
    Project handle implementing every project trait.
HarborReplicationRule
    Replication policy bound to one project.
new_harbor_registry
    Provider constructor registered under ``harbor``.
CAPABILITIES
    Harbor replicates in both directions.

"""

from __future__ import annotations

from registryman.providers.harbor.project import HarborProject
from registryman.providers.harbor.registry import HarborRegistry, new_harbor_registry
from registryman.providers.harbor.replication import HarborReplicationRule
from registryman.providers.registry import ReplicationCapabilities

CAPABILITIES = ReplicationCapabilities(can_pull=True, can_push=True)

__all__ = [
    "CAPABILITIES",
    "HarborProject",
    "HarborRegistry",
    "HarborReplicationRule",
    "new_harbor_registry",
]
