"""Error hierarchy for registry reconciliation.

``RecoverableError`` and its subclasses mark failures that abandon a single
action while the surrounding sweep carries on. ``UnauthorizedError`` abandons
one registry. Everything else derived from ``RegistrymanError`` is fatal for
the sweep that raised it.
"""

from __future__ import annotations


class RegistrymanError(Exception):
    """Base class for errors raised by registryman."""


class RecoverableError(RegistrymanError):
    """Raised when one reconciliation step fails but the sweep may continue."""

    @classmethod
    def project_not_found(cls, project: str) -> RecoverableError:
        """Return an error for an action that targets a missing project."""
        return cls(f"project {project} not found")

    @classmethod
    def registry_not_found(cls, registry: str) -> RecoverableError:
        """Return an error for a remote registry absent from the store."""
        return cls(f"registry {registry} not found in object store")

    @classmethod
    def repositories_present(cls, project: str) -> RecoverableError:
        """Return an error for deleting a non-empty project without force."""
        return cls(
            f"{project}: repositories are present, "
            "please delete them before deleting the project"
        )


class ProviderNotImplementedError(RecoverableError):
    """Raised when a provider does not support the requested operation."""

    def __init__(self, provider: str, operation: str) -> None:
        """Record which provider lacks which operation."""
        self.provider = provider
        self.operation = operation
        super().__init__(f"{provider}: {operation} is not implemented")


class UnauthorizedError(RegistrymanError):
    """Raised when a registry API rejects the configured credentials."""

    def __init__(self, registry: str) -> None:
        """Initialise with the name of the rejecting registry."""
        self.registry = registry
        super().__init__(f"{registry}: unauthorized")


class AlreadyExistsError(RegistrymanError):
    """Raised when a create call hits an object that already exists."""

    @classmethod
    def conflict(cls, what: str) -> AlreadyExistsError:
        """Return an error for an HTTP 409 response."""
        return cls(f"{what} cannot be added: already exists")


class InvalidStatusCodeError(RecoverableError):
    """Raised when a registry API answers with an unexpected status."""

    def __init__(self, status_code: int, *, context: str | None = None) -> None:
        """Initialise with the offending HTTP status code."""
        self.status_code = status_code
        self.context = context
        message = f"invalid status code: {status_code}"
        if context:
            message = f"{context}: {message}"
        super().__init__(message)


class UnknownProviderError(RegistrymanError):
    """Raised when no constructor is registered for a provider name."""

    def __init__(self, provider: str) -> None:
        """Initialise with the unregistered provider name."""
        self.provider = provider
        super().__init__(f"registry type {provider} not known")


class FleetCorruptionError(RegistrymanError):
    """Raised when the expected-state projector sees two global hubs."""

    @classmethod
    def two_global_hubs(cls, first: str, second: str) -> FleetCorruptionError:
        """Return an error naming both hub registries."""
        return cls(f"registries {first} and {second} are both GlobalHub")


class StoreError(RegistrymanError):
    """Raised when the declarative store cannot be read or written."""


__all__ = [
    "AlreadyExistsError",
    "FleetCorruptionError",
    "InvalidStatusCodeError",
    "ProviderNotImplementedError",
    "RecoverableError",
    "RegistrymanError",
    "StoreError",
    "UnauthorizedError",
    "UnknownProviderError",
]
