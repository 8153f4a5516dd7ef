"""Lazily created handle on the live declarative store.

The webhook validates every admission request against the store as it is
on disk. The handle loads the manifest directory on first use and reloads
it whenever a manifest file is added, removed or modified.
"""

from __future__ import annotations

import asyncio
import functools
import typing as typ
from pathlib import Path

from registryman.config.filesystem import LocalFileStore, iter_manifest_paths
from registryman.errors import StoreError
from registryman.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from registryman.config.store import ApiObjectStore, RegistryOptions

logger = get_logger(__name__)

type Fingerprint = tuple[tuple[str, int, int], ...]


def directory_fingerprint(directory: Path) -> Fingerprint:
    """Return name, size and modification time of every manifest file."""
    entries: list[tuple[str, int, int]] = []
    try:
        for path in iter_manifest_paths(directory):
            stat = path.stat()
            entries.append((path.name, stat.st_size, stat.st_mtime_ns))
    except OSError as exc:
        msg = f"cannot read manifest directory {directory}: {exc}"
        raise StoreError(msg) from exc
    return tuple(entries)


class LiveStoreHandle:
    """Process-wide access point to the manifest directory store."""

    def __init__(
        self, directory: Path | str, *, options: RegistryOptions | None = None
    ) -> None:
        """Remember where the store lives; nothing is read yet."""
        self.directory = Path(directory)
        self._options = options
        self._lock = asyncio.Lock()
        self._store: LocalFileStore | None = None
        self._fingerprint: Fingerprint | None = None

    @property
    def loaded(self) -> bool:
        """Return True once the store has been read."""
        return self._store is not None

    def available(self) -> bool:
        """Return True when the manifest directory exists."""
        return self.directory.is_dir()

    async def get(self) -> ApiObjectStore:
        """Return the store, reading the directory on first use or change.

        Raises
        ------
        ManifestValidationError
            If a manifest in the directory is malformed.
        StoreError
            If the directory cannot be read.

        """
        async with self._lock:
            fingerprint = await asyncio.to_thread(
                directory_fingerprint, self.directory
            )
            if self._store is None or fingerprint != self._fingerprint:
                log_debug(logger, "loading live store from %s", self.directory)
                self._store = await asyncio.to_thread(
                    functools.partial(
                        LocalFileStore.load,
                        self.directory,
                        options=self._options,
                        validate=False,
                    )
                )
                self._fingerprint = fingerprint
            return self._store


__all__ = ["LiveStoreHandle", "directory_fingerprint"]
