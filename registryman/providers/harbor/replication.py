"""Harbor replication policies and the remote registries they point at.

Harbor stores every policy of every project in one list. A policy belongs to
the project named by its first name filter (``<project>/**``), and its
direction follows from which end is the built-in ``Local`` registry.
"""

from __future__ import annotations

import dataclasses as dc
import time
import typing as typ

import msgspec

from registryman.config.enums import (
    ProviderName,
    ReplicationDirection,
    ReplicationTriggerType,
)
from registryman.config.models import DOCKER_REGISTRY_NAME_ANNOTATION
from registryman.config.status import ReplicationTrigger
from registryman.errors import RecoverableError
from registryman.logging import get_logger, log_debug, log_info

from ..http import ensure_success, int_id_from_location
from .wire import (
    PolicyTrigger,
    RegistryCredential,
    RemoteRegistry,
    ReplicationFilter,
    ReplicationPolicy,
    TriggerSettings,
)

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry

    from .registry import HarborRegistry

logger = get_logger(__name__)

POLICIES_PATH = "/api/v2.0/replication/policies"
REGISTRIES_PATH = "/api/v2.0/registries"
LOCAL_REGISTRY_NAME = "Local"

_HARBOR_TRIGGER_TYPES = {
    ReplicationTriggerType.MANUAL: "manual",
    ReplicationTriggerType.EVENT_BASED: "event_based",
    ReplicationTriggerType.CRON: "scheduled",
}
_TRIGGER_TYPES = {value: key for key, value in _HARBOR_TRIGGER_TYPES.items()}

_REMOTE_TYPES = {
    ProviderName.HARBOR: "harbor",
    ProviderName.ACR: "azure-acr",
    ProviderName.ARTIFACTORY: "jfrog-artifactory",
}


def trigger_from_policy(trigger: PolicyTrigger | None) -> ReplicationTrigger:
    """Convert a Harbor trigger; the leading seconds field of cron is dropped."""
    if trigger is None:
        return ReplicationTrigger(type=ReplicationTriggerType.MANUAL)
    try:
        trigger_type = _TRIGGER_TYPES[trigger.type]
    except KeyError:
        msg = f"unknown Harbor trigger type: {trigger.type}"
        raise RecoverableError(msg) from None
    if trigger_type is not ReplicationTriggerType.CRON:
        return ReplicationTrigger(type=trigger_type)
    cron = trigger.trigger_settings.cron if trigger.trigger_settings else ""
    _, _, schedule = cron.strip().partition(" ")
    return ReplicationTrigger.cron(schedule.strip() or cron)


def trigger_to_policy(trigger: ReplicationTrigger) -> PolicyTrigger:
    """Convert a trigger to Harbor's form, prefixing cron with ``0`` seconds."""
    harbor_type = _HARBOR_TRIGGER_TYPES[trigger.type]
    if trigger.type is ReplicationTriggerType.CRON:
        return PolicyTrigger(
            type=harbor_type,
            trigger_settings=TriggerSettings(cron=f"0 {trigger.schedule}"),
        )
    return PolicyTrigger(type=harbor_type)


def _is_local(end: RemoteRegistry | None) -> bool:
    return end is None or end.name == LOCAL_REGISTRY_NAME


@dc.dataclass(slots=True)
class HarborReplicationRule:
    """A replication policy as a live replication rule."""

    api: HarborRegistry = dc.field(repr=False)
    policy_id: int
    policy_name: str
    project_name: str
    remote_registry_name: str
    trigger: ReplicationTrigger
    direction: ReplicationDirection

    @classmethod
    def from_policy(
        cls, api: HarborRegistry, policy: ReplicationPolicy
    ) -> HarborReplicationRule | None:
        """Return the rule for ``policy``; ``None`` without a name filter.

        Raises
        ------
        RecoverableError
            If neither end of the policy is the local registry.

        """
        if not policy.filters:
            return None
        if _is_local(policy.src_registry) and policy.dest_registry is not None:
            direction = ReplicationDirection.PUSH
            remote = policy.dest_registry
        elif _is_local(policy.dest_registry) and policy.src_registry is not None:
            direction = ReplicationDirection.PULL
            remote = policy.src_registry
        else:
            msg = f"{api.name}: cannot determine direction of policy {policy.name}"
            raise RecoverableError(msg)
        return cls(
            api=api,
            policy_id=policy.id,
            policy_name=policy.name,
            project_name=policy.filters[0].value.removesuffix("/**"),
            remote_registry_name=remote.name,
            trigger=trigger_from_policy(policy.trigger),
            direction=direction,
        )

    async def delete(self) -> None:
        """Delete the policy."""
        response = await self.api.request(
            "DELETE", f"{POLICIES_PATH}/{self.policy_id}"
        )
        ensure_success(
            response, context=f"{self.api.name}: deleting policy {self.policy_name}"
        )
        log_info(
            logger, "%s: replication policy %s deleted", self.api.name, self.policy_name
        )


async def list_rules(api: HarborRegistry) -> list[HarborReplicationRule]:
    """Return every replication policy of the registry."""
    policies = await api.get_json(POLICIES_PATH, list[ReplicationPolicy])
    log_debug(logger, "%s: %d replication policies fetched", api.name, len(policies))
    rules = (HarborReplicationRule.from_policy(api, policy) for policy in policies)
    return [rule for rule in rules if rule is not None]


def remote_registry_from(registry: Registry) -> RemoteRegistry:
    """Return the Harbor endpoint description of a declared registry."""
    provider = registry.spec.provider
    return RemoteRegistry(
        name=registry.name,
        type=_REMOTE_TYPES[provider],
        url=registry.spec.api_endpoint,
        insecure=provider is ProviderName.ARTIFACTORY,
        description=f"{registry.name} is a remote {provider} registry",
        credential=RegistryCredential(
            access_key=registry.spec.username,
            access_secret=registry.spec.password,
        ),
    )


async def ensure_remote_registry(
    api: HarborRegistry, registry: Registry
) -> RemoteRegistry:
    """Return the endpoint named after ``registry``, creating it when missing."""
    endpoints = await api.get_json(REGISTRIES_PATH, list[RemoteRegistry])
    for endpoint in endpoints:
        if endpoint.name == registry.name:
            return endpoint
    wanted = remote_registry_from(registry)
    response = await api.request("POST", REGISTRIES_PATH, json=wanted)
    ensure_success(response, context=f"{api.name}: creating remote {registry.name}")
    log_info(logger, "%s: remote registry %s created", api.name, registry.name)
    endpoint_id = int_id_from_location(response, REGISTRIES_PATH)
    return msgspec.structs.replace(wanted, id=endpoint_id)


def _dest_namespace(remote: Registry, project_name: str) -> str:
    if remote.spec.provider is not ProviderName.ARTIFACTORY:
        return ""
    docker_registry = remote.annotations.get(DOCKER_REGISTRY_NAME_ANNOTATION)
    if not docker_registry:
        return ""
    return f"{docker_registry}/{project_name}"


async def create_rule(
    api: HarborRegistry,
    project_name: str,
    remote: Registry,
    trigger: ReplicationTrigger,
    direction: ReplicationDirection,
) -> HarborReplicationRule:
    """Create a policy replicating ``project_name`` with ``remote``."""
    policy_trigger = trigger_to_policy(trigger)
    endpoint = await ensure_remote_registry(api, remote)
    local = RemoteRegistry(name=LOCAL_REGISTRY_NAME)
    stamp = int(time.time())
    on = policy_trigger.type
    if direction is ReplicationDirection.PUSH:
        name = f"push-{project_name}-to-{remote.name}-on-{on}-{stamp}"
        description = f"Pushing {project_name} project to {remote.name} on {on}"
        source, destination = local, endpoint
    else:
        name = f"pull-{project_name}-from-{remote.name}-on-{on}-{stamp}"
        description = f"Pulling {project_name} project from {remote.name} on {on}"
        source, destination = endpoint, local
    policy = ReplicationPolicy(
        name=name,
        description=description,
        enabled=True,
        src_registry=source,
        dest_registry=destination,
        dest_namespace=_dest_namespace(remote, project_name),
        filters=[ReplicationFilter(type="name", value=f"{project_name}/**")],
        trigger=policy_trigger,
        deletion=True,
        override=True,
    )
    response = await api.request("POST", POLICIES_PATH, json=policy)
    ensure_success(response, context=f"{api.name}: creating policy {name}")
    log_info(logger, "%s: replication policy %s created", api.name, name)
    return HarborReplicationRule(
        api=api,
        policy_id=int_id_from_location(response, POLICIES_PATH),
        policy_name=name,
        project_name=project_name,
        remote_registry_name=remote.name,
        trigger=trigger,
        direction=direction,
    )


__all__ = [
    "LOCAL_REGISTRY_NAME",
    "POLICIES_PATH",
    "REGISTRIES_PATH",
    "HarborReplicationRule",
    "create_rule",
    "ensure_remote_registry",
    "list_rules",
    "remote_registry_from",
    "trigger_from_policy",
    "trigger_to_policy",
]
