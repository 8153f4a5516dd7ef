"""Registry of provider implementations keyed by provider name."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from registryman.errors import UnknownProviderError
from registryman.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import httpx

    from registryman.config.models import Registry
    from registryman.config.store import RegistryOptions

    from .interface import LiveRegistry

logger = get_logger(__name__)

DEFAULT_HTTP_TIMEOUT_S = 30.0


@dc.dataclass(frozen=True, slots=True)
class ReplicationCapabilities:
    """Replication directions a provider's replication engine supports."""

    can_pull: bool = False
    can_push: bool = False


@dc.dataclass(frozen=True, slots=True)
class ProviderContext:
    """Per-handle inputs shared by every provider constructor.

    Attributes
    ----------
    options
        Registry options; may satisfy ``CanForceDelete``.
    http_client
        Injected HTTP client. When ``None`` each handle owns its own.
    timeout_s
        Request timeout for handles that create their own client.

    """

    options: RegistryOptions = None
    http_client: httpx.AsyncClient | None = None
    timeout_s: float = DEFAULT_HTTP_TIMEOUT_S


class ProviderConstructor(typ.Protocol):
    """Callable building a live registry handle from a declared registry."""

    def __call__(self, registry: Registry, context: ProviderContext) -> LiveRegistry:
        """Return a handle for ``registry``."""
        ...


@dc.dataclass(frozen=True, slots=True)
class ProviderEntry:
    """Constructor and replication capabilities of one provider."""

    constructor: ProviderConstructor
    capabilities: ReplicationCapabilities


class ProviderRegistry:
    """Mapping from provider name to :class:`ProviderEntry`.

    Built once at start-up and read-only afterwards.
    """

    def __init__(self) -> None:
        """Start with no providers registered."""
        self._entries: dict[str, ProviderEntry] = {}

    def register(
        self,
        name: str,
        constructor: ProviderConstructor,
        capabilities: ReplicationCapabilities,
    ) -> None:
        """Register ``name``; an existing registration is replaced."""
        if name in self._entries:
            log_debug(logger, "replacing provider registration for %s", name)
        self._entries[str(name)] = ProviderEntry(constructor, capabilities)

    def _entry(self, name: str) -> ProviderEntry:
        try:
            return self._entries[str(name)]
        except KeyError:
            raise UnknownProviderError(str(name)) from None

    def new(
        self, registry: Registry, context: ProviderContext | None = None
    ) -> LiveRegistry:
        """Build a live handle for ``registry``.

        Raises
        ------
        UnknownProviderError
            If ``registry.spec.provider`` has no registration.

        """
        entry = self._entry(registry.spec.provider)
        return entry.constructor(registry, context or ProviderContext())

    def capabilities(self, name: str) -> ReplicationCapabilities:
        """Return the replication capabilities of provider ``name``.

        Raises
        ------
        UnknownProviderError
            If ``name`` has no registration.

        """
        return self._entry(name).capabilities

    def names(self) -> list[str]:
        """Return the registered provider names in registration order."""
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        """Return True when ``name`` is registered."""
        return str(name) in self._entries


__all__ = [
    "ProviderConstructor",
    "ProviderContext",
    "ProviderEntry",
    "ProviderRegistry",
    "ReplicationCapabilities",
]
