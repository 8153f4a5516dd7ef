"""Declarative store backed by a directory of YAML manifests."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ
from pathlib import Path

from registryman.errors import StoreError
from registryman.logging import get_logger, log_debug, log_info, log_warning

from .loader import ManifestValidationError, dump_manifest, load_manifest_file
from .models import Project, Registry, Scanner
from .store import GlobalRegistryOptions
from .validation import check_consistency

if typ.TYPE_CHECKING:
    from .models import Resource
    from .status import RegistryStatus
    from .store import RegistryOptions

logger = get_logger(__name__)

MANIFEST_SUFFIX = ".yaml"


def iter_manifest_paths(directory: Path) -> list[Path]:
    """Return the regular ``*.yaml`` files of ``directory`` in name order."""
    return sorted(
        entry
        for entry in directory.iterdir()
        if entry.suffix == MANIFEST_SUFFIX and entry.is_file()
    )


def read_resources(directory: Path) -> list[Resource]:
    """Parse every registryman resource in ``directory``.

    Non-registryman YAML files are skipped. Per-object problems from all
    files are aggregated into one error.

    Raises
    ------
    StoreError
        If ``directory`` cannot be listed.
    ManifestValidationError
        If any resource fails to parse or fails its per-object checks.

    """
    try:
        paths = iter_manifest_paths(directory)
    except OSError as exc:
        msg = f"cannot read manifest directory {directory}: {exc}"
        raise StoreError(msg) from exc

    resources: list[Resource] = []
    issues: list[str] = []
    for path in paths:
        try:
            resource = load_manifest_file(path)
        except ManifestValidationError as exc:
            issues.extend(exc.issues)
            continue
        if resource is None:
            log_debug(logger, "skipping %s: not a registryman resource", path)
            continue
        resources.append(resource)

    if issues:
        raise ManifestValidationError(issues)
    return resources


class LocalFileStore:
    """Read-mostly store over a manifest directory.

    Resources are read once by :meth:`load`; credential manifests written
    by side effects go to the same directory. Status write-back is a no-op
    because status lives only in the cluster store.
    """

    def __init__(
        self,
        directory: Path,
        resources: cabc.Iterable[Resource],
        *,
        options: RegistryOptions | None = None,
    ) -> None:
        """Index ``resources`` by kind, preserving file order."""
        self.directory = Path(directory)
        self._options = options if options is not None else GlobalRegistryOptions()
        self._registries: list[Registry] = []
        self._projects: list[Project] = []
        self._scanners: list[Scanner] = []
        for resource in resources:
            match resource:
                case Registry():
                    self._registries.append(resource)
                case Project():
                    self._projects.append(resource)
                case Scanner():
                    self._scanners.append(resource)

    @classmethod
    def load(
        cls,
        directory: Path | str,
        *,
        options: RegistryOptions | None = None,
        validate: bool = True,
    ) -> LocalFileStore:
        """Read ``directory`` and, by default, validate fleet consistency.

        Raises
        ------
        ManifestValidationError
            If a manifest is malformed.
        ConsistencyError
            If ``validate`` is set and the fleet violates a consistency rule.

        """
        path = Path(directory)
        store = cls(path, read_resources(path), options=options)
        if validate and (
            issues := check_consistency(
                store._registries, store._projects, store._scanners
            )
        ):
            raise issues[0]
        log_info(
            logger,
            "loaded %d registries, %d projects, %d scanners from %s",
            len(store._registries),
            len(store._projects),
            len(store._scanners),
            path,
        )
        return store

    async def get_registries(self) -> list[Registry]:
        """Return the registries in file order."""
        return list(self._registries)

    async def get_projects(self) -> list[Project]:
        """Return the projects in file order."""
        return list(self._projects)

    async def get_scanners(self) -> list[Scanner]:
        """Return the scanners in file order."""
        return list(self._scanners)

    async def update_registry_status(
        self, registry: Registry, status: RegistryStatus
    ) -> None:
        """Discard the status; manifests on disk are never rewritten."""
        del status
        log_debug(logger, "not persisting status of %s to files", registry.name)

    async def write_manifest(
        self, filename: str, manifest: cabc.Mapping[str, typ.Any]
    ) -> None:
        """Write ``manifest`` as ``filename`` inside the manifest directory."""
        path = self._manifest_path(filename)
        try:
            await asyncio.to_thread(
                path.write_text, dump_manifest(manifest), encoding="utf-8"
            )
        except OSError as exc:
            msg = f"cannot write manifest {path}: {exc}"
            raise StoreError(msg) from exc
        log_info(logger, "manifest %s written", path)

    async def remove_manifest(self, filename: str) -> None:
        """Delete ``filename``; a missing file only logs a warning."""
        path = self._manifest_path(filename)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            log_warning(logger, "manifest %s already removed", path)
            return
        except OSError as exc:
            msg = f"cannot remove manifest {path}: {exc}"
            raise StoreError(msg) from exc
        log_info(logger, "manifest %s removed", path)

    def get_options(self) -> RegistryOptions:
        """Return the options given at load time."""
        return self._options

    def _manifest_path(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename:
            msg = f"manifest filename {filename!r} must be a bare file name"
            raise StoreError(msg)
        return self.directory / filename


__all__ = ["LocalFileStore", "iter_manifest_paths", "read_resources"]
