"""Live registry clients and the provider registry.

Public API
----------
ProviderRegistry
    Maps provider names to constructors and replication capabilities.
ProviderContext
    Options and HTTP settings handed to every constructor.
ReplicationCapabilities
    Which replication directions a provider supports.
build_provider_registry
    Registry pre-loaded with the Harbor, ACR and Artifactory clients.

Examples
--------
>>> from registryman.providers import build_provider_registry
>>> providers = build_provider_registry()
>>> providers.capabilities("harbor").can_push
True
>>> providers.capabilities("acr").can_pull
False

"""

from __future__ import annotations

from registryman.config.enums import ProviderName
from registryman.providers import acr, artifactory, harbor
from registryman.providers.registry import (
    ProviderContext,
    ProviderRegistry,
    ReplicationCapabilities,
)


def build_provider_registry() -> ProviderRegistry:
    """Return a registry with every built-in provider registered."""
    providers = ProviderRegistry()
    providers.register(
        ProviderName.HARBOR, harbor.new_harbor_registry, harbor.CAPABILITIES
    )
    providers.register(ProviderName.ACR, acr.new_acr_registry, acr.CAPABILITIES)
    providers.register(
        ProviderName.ARTIFACTORY,
        artifactory.new_artifactory_registry,
        artifactory.CAPABILITIES,
    )
    return providers


__all__ = [
    "ProviderContext",
    "ProviderRegistry",
    "ReplicationCapabilities",
    "build_provider_registry",
]
