"""Control loops that keep live registries in line with the declared fleet.

Public API
----------
full_resync
    Reconcile every declared registry once.
WatchReconciler
    Single-flight resync driven by store events.
StatusUpdater
    Periodic write-back of actual registry status.
run_operator
    Run the watcher, the reconciler and the status updater until cancelled.

"""

from __future__ import annotations

from registryman.operator.events import ReconcileEventLogger, ReconcileEventType
from registryman.operator.resync import SweepResult, full_resync, reconcile_registry
from registryman.operator.runner import load_directory_store, run_operator
from registryman.operator.status_updater import StatusUpdater
from registryman.operator.watch import WatchReconciler

__all__ = [
    "ReconcileEventLogger",
    "ReconcileEventType",
    "StatusUpdater",
    "SweepResult",
    "WatchReconciler",
    "full_resync",
    "load_directory_store",
    "reconcile_registry",
    "run_operator",
]
