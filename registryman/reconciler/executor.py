"""Plan execution against one live registry."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from registryman.errors import RecoverableError
from registryman.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from registryman.config.models import Registry
    from registryman.config.store import ApiObjectStore
    from registryman.providers.interface import LiveRegistry

    from .actions import Action

logger = get_logger(__name__)


@dc.dataclass(slots=True)
class ExecutionReport:
    """Outcome of executing one plan.

    ``performed`` lists the descriptions of actions that completed with
    their side effects; ``failed`` pairs each abandoned action's
    description with the recoverable error that stopped it. In dry-run
    mode every action lands in ``planned`` instead.
    """

    registry_name: str
    dry_run: bool = False
    planned: list[str] = dc.field(default_factory=list)
    performed: list[str] = dc.field(default_factory=list)
    failed: list[tuple[str, str]] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when no action failed."""
        return not self.failed


async def execute_plan(
    plan: cabc.Sequence[Action],
    live: LiveRegistry,
    *,
    store: ApiObjectStore,
    fleet: cabc.Mapping[str, Registry],
    dry_run: bool = False,
) -> ExecutionReport:
    """Perform ``plan`` on ``live`` in order.

    Parameters
    ----------
    plan : Sequence[Action]
        Actions from :func:`registryman.reconciler.planner.compare`.
    live : LiveRegistry
        Handle the actions perform against.
    store : ApiObjectStore
        Store receiving the side effects.
    fleet : Mapping[str, Registry]
        Declared registries by name, for replication remotes.
    dry_run : bool, optional
        Log the plan without performing it.

    Returns
    -------
    ExecutionReport
        Planned, performed and failed actions.

    Raises
    ------
    RegistrymanError
        Any non-recoverable error from an action or side effect; actions
        after it are not attempted.

    """
    report = ExecutionReport(registry_name=live.name, dry_run=dry_run)
    for action in plan:
        description = action.describe()
        if dry_run:
            log_info(logger, "%s: [dry-run] %s", live.name, description)
            report.planned.append(description)
            continue
        log_info(logger, "%s: %s", live.name, description)
        try:
            side_effect = await action.perform(live, fleet)
            await side_effect.perform(store)
        except RecoverableError as exc:
            log_warning(logger, "%s: %s failed: %s", live.name, description, exc)
            report.failed.append((description, str(exc)))
            continue
        report.performed.append(description)
    return report


__all__ = ["ExecutionReport", "execute_plan"]
