"""Full resync: reconcile every declared registry once."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import time
import typing as typ

from registryman.config.store import take_snapshot
from registryman.config.validation import check_consistency
from registryman.errors import RecoverableError, UnauthorizedError
from registryman.logging import get_logger, log_debug, log_info
from registryman.providers.registry import DEFAULT_HTTP_TIMEOUT_S, ProviderContext
from registryman.reconciler.actual import fetch_actual_status
from registryman.reconciler.executor import ExecutionReport, execute_plan
from registryman.reconciler.expected import project_expected_status, registry_options
from registryman.reconciler.planner import compare

from .events import ReconcileEventLogger

if typ.TYPE_CHECKING:
    import httpx

    from registryman.config.models import Registry
    from registryman.config.store import ApiObjectStore, FleetSnapshot
    from registryman.providers.registry import ProviderRegistry

logger = get_logger(__name__)

DEFAULT_RESYNC_TIMEOUT_S = 300.0


@dc.dataclass(slots=True)
class SweepResult:
    """Summary of one full resync.

    ``reports`` holds one execution report per registry whose plan ran;
    ``failed`` maps abandoned registries to the error that stopped them.
    """

    dry_run: bool = False
    reports: list[ExecutionReport] = dc.field(default_factory=list)
    failed: dict[str, str] = dc.field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Return True when every registry and every action succeeded."""
        return not self.failed and all(report.ok for report in self.reports)


def _elapsed(started: float) -> dt.timedelta:
    return dt.timedelta(seconds=time.perf_counter() - started)


async def reconcile_registry(  # noqa: PLR0913
    registry: Registry,
    snapshot: FleetSnapshot,
    providers: ProviderRegistry,
    *,
    store: ApiObjectStore,
    dry_run: bool = False,
    http_client: httpx.AsyncClient | None = None,
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
) -> ExecutionReport:
    """Bring one live registry in line with the declared fleet.

    Raises
    ------
    RegistrymanError
        Whatever the projection, the fetch or a non-recoverable action
        raises; recoverable action failures land in the report.

    """
    log_info(logger, "inspecting registry %s", registry.name)
    expected = project_expected_status(registry, snapshot, providers)
    context = ProviderContext(
        options=registry_options(registry, store.get_options()),
        http_client=http_client,
        timeout_s=http_timeout_s,
    )
    live = providers.new(registry, context)
    try:
        actual = await fetch_actual_status(
            live, providers.capabilities(registry.spec.provider)
        )
        plan = compare(actual, expected)
        log_debug(logger, "%s: %d actions planned", registry.name, len(plan))
        return await execute_plan(
            plan,
            live,
            store=store,
            fleet=snapshot.registries_by_name,
            dry_run=dry_run,
        )
    finally:
        await live.aclose()


async def full_resync(  # noqa: PLR0913
    store: ApiObjectStore,
    providers: ProviderRegistry,
    *,
    dry_run: bool = False,
    timeout: float = DEFAULT_RESYNC_TIMEOUT_S,
    http_client: httpx.AsyncClient | None = None,
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
    events: ReconcileEventLogger | None = None,
) -> SweepResult:
    """Reconcile every registry of ``store`` sequentially.

    Parameters
    ----------
    store : ApiObjectStore
        Declarative source of the fleet and sink of side effects.
    providers : ProviderRegistry
        Constructors and replication capabilities per provider.
    dry_run : bool, optional
        Log every plan without performing it.
    timeout : float, optional
        Upper bound in seconds for the whole sweep.
    http_client : httpx.AsyncClient | None, optional
        Client shared by every live handle; each handle owns one otherwise.
    http_timeout_s : float, optional
        Request timeout for handles that own their client.
    events : ReconcileEventLogger | None, optional
        Event sink; a default logger is used when omitted.

    Returns
    -------
    SweepResult
        Per-registry reports and abandoned registries.

    Raises
    ------
    ConsistencyError
        If the fleet is inconsistent; nothing is executed.
    TimeoutError
        If the sweep outlives ``timeout``.
    RegistrymanError
        Any error other than a recoverable or authorization failure, which
        aborts the remaining registries.

    """
    events = events or ReconcileEventLogger()
    result = SweepResult(dry_run=dry_run)
    sweep_started = time.perf_counter()
    async with asyncio.timeout(timeout):
        snapshot = await take_snapshot(store)
        if issues := check_consistency(
            snapshot.registries, snapshot.projects, snapshot.scanners
        ):
            raise issues[0]
        events.log_sweep_started(len(snapshot.registries), dry_run=dry_run)
        for registry in snapshot.registries:
            started = time.perf_counter()
            try:
                report = await reconcile_registry(
                    registry,
                    snapshot,
                    providers,
                    store=store,
                    dry_run=dry_run,
                    http_client=http_client,
                    http_timeout_s=http_timeout_s,
                )
            except (UnauthorizedError, RecoverableError) as exc:
                events.log_registry_update_failed(
                    registry.name, exc, _elapsed(started)
                )
                result.failed[registry.name] = str(exc)
                continue
            except Exception as exc:
                events.log_registry_update_failed(
                    registry.name, exc, _elapsed(started)
                )
                raise
            events.log_registry_updated(registry.name, report, _elapsed(started))
            result.reports.append(report)
    events.log_sweep_completed(
        len(result.reports), len(result.failed), _elapsed(sweep_started)
    )
    return result


__all__ = [
    "DEFAULT_RESYNC_TIMEOUT_S",
    "SweepResult",
    "full_resync",
    "reconcile_registry",
]
