"""Force-delete guard shared by providers whose projects hold repositories."""

from __future__ import annotations

import typing as typ

from registryman.config.store import CanForceDelete
from registryman.errors import RecoverableError
from registryman.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from registryman.config.store import RegistryOptions

logger = get_logger(__name__)


def force_delete_enabled(options: RegistryOptions) -> bool:
    """Return True when ``options`` allow deleting non-empty projects."""
    return isinstance(options, CanForceDelete) and options.force_delete_projects()


def ensure_deletable(
    project_name: str, repositories: cabc.Sequence[str], options: RegistryOptions
) -> None:
    """Refuse to delete a non-empty project unless force delete is enabled.

    Raises
    ------
    RecoverableError
        If ``repositories`` is non-empty and force delete is disabled.

    """
    if repositories and not force_delete_enabled(options):
        raise RecoverableError.repositories_present(project_name)


async def purge_repositories(
    project_name: str,
    repositories: cabc.Sequence[str],
    options: RegistryOptions,
    delete_repository: cabc.Callable[[str], cabc.Awaitable[None]],
) -> None:
    """Empty a project before deletion, or refuse.

    Raises
    ------
    RecoverableError
        If ``repositories`` is non-empty and force delete is disabled.

    """
    ensure_deletable(project_name, repositories, options)
    for repository in repositories:
        log_debug(logger, "%s: deleting repository %s", project_name, repository)
        await delete_repository(repository)


__all__ = ["ensure_deletable", "force_delete_enabled", "purge_repositories"]
