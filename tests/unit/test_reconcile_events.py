"""Unit tests for structured reconciliation event logging."""

from __future__ import annotations

import datetime as dt

import pytest

from registryman.errors import (
    FleetCorruptionError,
    RecoverableError,
    UnauthorizedError,
    UnknownProviderError,
)
from registryman.operator.events import (
    FailureCategory,
    ReconcileEventLogger,
    categorize_failure,
)
from registryman.reconciler.executor import ExecutionReport
from tests.helpers.femtologging_capture import capture_femto_logs

EVENTS_LOGGER = "registryman.operator.events"


@pytest.mark.parametrize(
    ("error", "category"),
    [
        (UnauthorizedError("global"), FailureCategory.UNAUTHORIZED),
        (RecoverableError.project_not_found("ubuntu"), FailureCategory.RECOVERABLE),
        (UnknownProviderError("quay"), FailureCategory.CONFIGURATION),
        (
            FleetCorruptionError.two_global_hubs("a", "b"),
            FailureCategory.CONFIGURATION,
        ),
        (ValueError("bad cron"), FailureCategory.CONFIGURATION),
        (RuntimeError("boom"), FailureCategory.UNKNOWN),
    ],
    ids=["unauthorized", "recoverable", "provider", "fleet", "value", "other"],
)
def test_categorize_failure(error: Exception, category: FailureCategory) -> None:
    """Failures map onto the reporting categories."""
    assert categorize_failure(error) is category


def test_registry_updated_line() -> None:
    """Successful registries log their action counts."""
    report = ExecutionReport(
        "global", performed=["adding project ubuntu"], planned=[]
    )
    with capture_femto_logs(EVENTS_LOGGER) as logs:
        ReconcileEventLogger().log_registry_updated(
            "global", report, dt.timedelta(seconds=1.5)
        )
        record = logs.wait_for_message("[RegistryUpdated]")
    assert "registry=global" in record.message
    assert "performed=1 failed=0" in record.message
    assert "duration_seconds=1.500" in record.message


def test_partial_failure_is_logged_as_warning() -> None:
    """A report with failed actions raises the log level."""
    report = ExecutionReport(
        "global", failed=[("removing project old", "repositories are present")]
    )
    with capture_femto_logs(EVENTS_LOGGER) as logs:
        ReconcileEventLogger().log_registry_updated(
            "global", report, dt.timedelta()
        )
        record = logs.wait_for_message("[RegistryUpdated]")
    assert "WARN" in record.level.upper()


def test_registry_update_failed_line() -> None:
    """Abandoned registries log the error type, category and message."""
    with capture_femto_logs(EVENTS_LOGGER) as logs:
        ReconcileEventLogger().log_registry_update_failed(
            "local", UnauthorizedError("local"), dt.timedelta(milliseconds=20)
        )
        record = logs.wait_for_message("[RegistryUpdateFailed]")
    assert "registry=local" in record.message
    assert "error_type=UnauthorizedError" in record.message
    assert "error_category=unauthorized" in record.message
    assert record.message.endswith(
        "error_message=Error updating registry: local: unauthorized"
    )


def test_sweep_lines() -> None:
    """Sweeps log their start and totals."""
    events = ReconcileEventLogger()
    with capture_femto_logs(EVENTS_LOGGER) as logs:
        events.log_sweep_started(2, dry_run=True)
        events.log_sweep_completed(1, 1, dt.timedelta(seconds=2))
        started = logs.wait_for_message("[SweepStarted]")
        completed = logs.wait_for_message("[SweepCompleted]")
    assert "registries=2 dry_run=True" in started.message
    assert "updated=1 failed=1" in completed.message
