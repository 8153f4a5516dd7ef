"""Store-side consequences of actions that succeeded on a live registry."""

from __future__ import annotations

import base64
import dataclasses as dc
import typing as typ

import msgspec

from registryman.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from registryman.config.store import ApiObjectStore
    from registryman.providers.interface import MemberCredentials

logger = get_logger(__name__)

PROJECT_NAME_ANNOTATION = "globalregistry.org/project-name"
REGISTRY_NAME_ANNOTATION = "globalregistry.org/registry-name"
DOCKER_CONFIG_SECRET_TYPE = "kubernetes.io/dockerconfigjson"


class SideEffect(typ.Protocol):
    """Follow-up performed against the store after an action."""

    async def perform(self, store: ApiObjectStore) -> None:
        """Apply the side effect to ``store``."""
        ...


@dc.dataclass(frozen=True, slots=True)
class NoSideEffect:
    """Side effect of actions that leave the store untouched."""

    async def perform(self, store: ApiObjectStore) -> None:
        """Do nothing."""


NO_SIDE_EFFECT = NoSideEffect()


def credentials_filename(registry_name: str, project_name: str, member: str) -> str:
    """Return the manifest filename holding a robot member's credentials."""
    return f"{registry_name}_{project_name}_{member}_creds.yaml"


def docker_config_json(api_endpoint: str, credentials: MemberCredentials) -> str:
    """Return the compact ``.dockerconfigjson`` document for ``credentials``."""
    token = f"{credentials.username}:{credentials.password}".encode()
    auth = base64.b64encode(token).decode("ascii")
    return msgspec.json.encode({"auths": {api_endpoint: {"auth": auth}}}).decode()


@dc.dataclass(frozen=True, slots=True)
class PersistMemberCredentials:
    """Write the Secret manifest carrying a new robot's credentials."""

    registry_name: str
    api_endpoint: str
    project_name: str
    member_name: str
    credentials: MemberCredentials = dc.field(repr=False)

    @property
    def filename(self) -> str:
        """Return the manifest filename."""
        return credentials_filename(
            self.registry_name, self.project_name, self.member_name
        )

    def manifest(self) -> dict[str, typ.Any]:
        """Return the Secret manifest as a plain mapping."""
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {
                "name": self.member_name,
                "annotations": {
                    PROJECT_NAME_ANNOTATION: self.project_name,
                    REGISTRY_NAME_ANNOTATION: self.registry_name,
                },
            },
            "type": DOCKER_CONFIG_SECRET_TYPE,
            "stringData": {
                ".dockerconfigjson": docker_config_json(
                    self.api_endpoint, self.credentials
                ),
            },
        }

    async def perform(self, store: ApiObjectStore) -> None:
        """Write the manifest to ``store``."""
        await store.write_manifest(self.filename, self.manifest())
        log_info(
            logger, "credentials of %s written to %s", self.member_name, self.filename
        )


@dc.dataclass(frozen=True, slots=True)
class RemoveMemberCredentials:
    """Remove the Secret manifest of a robot that left a project."""

    registry_name: str
    project_name: str
    member_name: str

    @property
    def filename(self) -> str:
        """Return the manifest filename."""
        return credentials_filename(
            self.registry_name, self.project_name, self.member_name
        )

    async def perform(self, store: ApiObjectStore) -> None:
        """Remove the manifest from ``store``."""
        await store.remove_manifest(self.filename)
        log_info(logger, "credentials file %s removed", self.filename)


__all__ = [
    "NO_SIDE_EFFECT",
    "NoSideEffect",
    "PersistMemberCredentials",
    "RemoveMemberCredentials",
    "SideEffect",
    "credentials_filename",
    "docker_config_json",
]
