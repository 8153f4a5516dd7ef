"""JFrog Artifactory provider clients.

Public API
----------
new_artifactory_registry
    Provider constructor registered under ``artifactory``; picks the
    path-based or the project-based client from the registry annotations.
PathBasedArtifactory
    Projects are folders of one docker repository.
ProjectBasedArtifactory
    Projects are JFrog Access projects.
CAPABILITIES
    Artifactory does not run replication rules.

"""

from __future__ import annotations

import typing as typ

from registryman.config.models import (
    ACCESS_TOKEN_ANNOTATION,
    DOCKER_REGISTRY_NAME_ANNOTATION,
)
from registryman.errors import RecoverableError
from registryman.providers.artifactory.pathbased import PathBasedArtifactory
from registryman.providers.artifactory.projectbased import ProjectBasedArtifactory
from registryman.providers.registry import ReplicationCapabilities

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry
    from registryman.providers.registry import ProviderContext

CAPABILITIES = ReplicationCapabilities(can_pull=False, can_push=False)


def new_artifactory_registry(
    registry: Registry, context: ProviderContext
) -> PathBasedArtifactory | ProjectBasedArtifactory:
    """Build the Artifactory client matching the registry's annotations.

    Raises
    ------
    RecoverableError
        If the registry carries neither or both mode annotations.

    """
    docker_registry = registry.annotations.get(DOCKER_REGISTRY_NAME_ANNOTATION, "")
    access_token = registry.annotations.get(ACCESS_TOKEN_ANNOTATION, "")
    if bool(docker_registry) == bool(access_token):
        msg = (
            f"{registry.name}: exactly one of {DOCKER_REGISTRY_NAME_ANNOTATION} "
            f"and {ACCESS_TOKEN_ANNOTATION} must be set"
        )
        raise RecoverableError(msg)
    if docker_registry:
        return PathBasedArtifactory(
            registry,
            docker_registry,
            options=context.options,
            http_client=context.http_client,
            timeout_s=context.timeout_s,
        )
    return ProjectBasedArtifactory(
        registry,
        access_token,
        options=context.options,
        http_client=context.http_client,
        timeout_s=context.timeout_s,
    )


__all__ = [
    "CAPABILITIES",
    "PathBasedArtifactory",
    "ProjectBasedArtifactory",
    "new_artifactory_registry",
]
