"""Structured reconciliation events.

Each registry visited by a sweep produces one ``RegistryUpdated`` or
``RegistryUpdateFailed`` event, emitted as a single log line whose
``key=value`` pairs are easy for log aggregators to parse.
"""

from __future__ import annotations

import enum
import typing as typ

from registryman.errors import (
    FleetCorruptionError,
    RecoverableError,
    UnauthorizedError,
    UnknownProviderError,
)
from registryman.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from registryman.reconciler.executor import ExecutionReport

logger = get_logger(__name__)


class ReconcileEventType(enum.StrEnum):
    """Event reasons recorded against a registry."""

    SWEEP_STARTED = "SweepStarted"
    SWEEP_COMPLETED = "SweepCompleted"
    REGISTRY_UPDATED = "RegistryUpdated"
    REGISTRY_UPDATE_FAILED = "RegistryUpdateFailed"


class FailureCategory(enum.StrEnum):
    """How far a failure reaches."""

    RECOVERABLE = "recoverable"
    UNAUTHORIZED = "unauthorized"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_CATEGORY_MAP: tuple[tuple[type[BaseException], FailureCategory], ...] = (
    (UnauthorizedError, FailureCategory.UNAUTHORIZED),
    (RecoverableError, FailureCategory.RECOVERABLE),
    (UnknownProviderError, FailureCategory.CONFIGURATION),
    (FleetCorruptionError, FailureCategory.CONFIGURATION),
    (ValueError, FailureCategory.CONFIGURATION),
)


def categorize_failure(exc: BaseException) -> FailureCategory:
    """Return the category used when reporting ``exc``."""
    for exc_type, category in _CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return FailureCategory.UNKNOWN


class ReconcileEventLogger:
    """Emit reconciliation events through femtologging."""

    def log_sweep_started(self, registries: int, *, dry_run: bool) -> None:
        """Log the start of a full resync."""
        log_info(
            logger,
            "[%s] registries=%d dry_run=%s",
            ReconcileEventType.SWEEP_STARTED,
            registries,
            dry_run,
        )

    def log_sweep_completed(
        self, updated: int, failed: int, duration: dt.timedelta
    ) -> None:
        """Log the end of a full resync."""
        log_info(
            logger,
            "[%s] updated=%d failed=%d duration_seconds=%.3f",
            ReconcileEventType.SWEEP_COMPLETED,
            updated,
            failed,
            duration.total_seconds(),
        )

    def log_registry_updated(
        self, registry: str, report: ExecutionReport, duration: dt.timedelta
    ) -> None:
        """Log a registry whose plan ran; failed actions raise the level."""
        log = log_info if report.ok else log_warning
        log(
            logger,
            "[%s] registry=%s dry_run=%s planned=%d performed=%d "
            "failed=%d duration_seconds=%.3f",
            ReconcileEventType.REGISTRY_UPDATED,
            registry,
            report.dry_run,
            len(report.planned),
            len(report.performed),
            len(report.failed),
            duration.total_seconds(),
        )

    def log_registry_update_failed(
        self, registry: str, error: BaseException, duration: dt.timedelta
    ) -> None:
        """Log a registry whose reconciliation was abandoned."""
        log_error(
            logger,
            "[%s] registry=%s error_type=%s error_category=%s "
            "duration_seconds=%.3f error_message=Error updating registry: %s",
            ReconcileEventType.REGISTRY_UPDATE_FAILED,
            registry,
            type(error).__name__,
            categorize_failure(error),
            duration.total_seconds(),
            error,
        )


__all__ = [
    "FailureCategory",
    "ReconcileEventLogger",
    "ReconcileEventType",
    "categorize_failure",
]
