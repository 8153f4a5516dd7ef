"""Unit tests for the webhook's live store handle."""

from __future__ import annotations

import typing as typ

import pytest

from registryman.api.store_handle import LiveStoreHandle, directory_fingerprint
from registryman.errors import StoreError
from tests.helpers.fleet_builders import make_registry, write_fleet

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.asyncio
async def test_store_is_loaded_once(example_fleet: Path) -> None:
    """An unchanged directory is not read again."""
    handle = LiveStoreHandle(example_fleet)
    assert not handle.loaded

    first = await handle.get()
    second = await handle.get()

    assert handle.loaded
    assert first is second


@pytest.mark.asyncio
async def test_store_reloads_after_a_change(example_fleet: Path) -> None:
    """Adding a manifest makes the next request see it."""
    handle = LiveStoreHandle(example_fleet)
    first = await handle.get()
    write_fleet(example_fleet, [make_registry("edge")])

    second = await handle.get()

    assert second is not first
    assert "edge" in [r.name for r in await second.get_registries()]


def test_fingerprint_ignores_other_files(tmp_path: Path) -> None:
    """Only manifests contribute to the fingerprint."""
    write_fleet(tmp_path, [make_registry("edge")])
    before = directory_fingerprint(tmp_path)
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    assert directory_fingerprint(tmp_path) == before


@pytest.mark.asyncio
async def test_missing_directory(tmp_path: Path) -> None:
    """An absent directory is unavailable and cannot be loaded."""
    handle = LiveStoreHandle(tmp_path / "missing")
    assert not handle.available()
    with pytest.raises(StoreError, match="cannot read manifest directory"):
        await handle.get()
