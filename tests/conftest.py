"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import shutil
import typing as typ
from pathlib import Path

import pytest

from registryman.config.enums import MemberRole
from tests.helpers.fakes import FakeLiveRegistry, InMemoryStore, fake_providers
from tests.helpers.fleet_builders import make_hub, make_member, make_project

if typ.TYPE_CHECKING:
    from registryman.providers.registry import ProviderRegistry

EXAMPLE_FLEET = Path(__file__).resolve().parent.parent / "examples" / "fleet"


@pytest.fixture
def example_fleet(tmp_path: Path) -> Path:
    """Copy the example manifests into a scratch directory."""
    target = tmp_path / "fleet"
    shutil.copytree(EXAMPLE_FLEET, target)
    return target


@pytest.fixture
def hub_live() -> FakeLiveRegistry:
    """Empty in-memory live registry named ``global``."""
    return FakeLiveRegistry("global")


@pytest.fixture
def hub_store() -> InMemoryStore:
    """Store holding the ``global`` hub and the ``ubuntu`` Global project."""
    return InMemoryStore(
        registries=[make_hub("global")],
        projects=[
            make_project(
                "ubuntu", members=[make_member("alpha", MemberRole.MAINTAINER)]
            )
        ],
    )


@pytest.fixture
def hub_providers(hub_live: FakeLiveRegistry) -> ProviderRegistry:
    """Provider registry resolving ``global`` to :func:`hub_live`."""
    return fake_providers({"global": hub_live})
