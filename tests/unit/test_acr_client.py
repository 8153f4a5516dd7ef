"""Unit tests for the Azure Container Registry provider."""

from __future__ import annotations

import pytest

from registryman.config.enums import ProviderName
from registryman.config.store import GlobalRegistryOptions
from registryman.errors import RecoverableError
from registryman.providers.acr import AcrRegistry, project_names
from registryman.providers.interface import (
    MemberManipulatorProject,
    ProjectCreator,
    ProjectWithMembers,
)
from tests.helpers.fleet_builders import make_registry
from tests.helpers.http_routes import RouteTable

CATALOG = {"repositories": ["team/app", "team/base", "tools/ci", "team/web"]}


def _acr(routes: RouteTable, *, force_delete: bool = False) -> AcrRegistry:
    return AcrRegistry(
        make_registry(
            "acr",
            provider=ProviderName.ACR,
            api_endpoint="https://example.azurecr.io",
        ),
        options=GlobalRegistryOptions(force_delete=force_delete),
        http_client=routes.client(),
    )


def test_project_names_keep_first_appearance() -> None:
    """Projects are distinct first path segments in catalog order."""
    assert project_names(CATALOG["repositories"]) == ["team", "tools"]


@pytest.mark.asyncio
async def test_projects_come_from_the_catalog() -> None:
    """ACR projects are derived from repository names."""
    routes = RouteTable()
    routes.add("GET", "/v2/_catalog", json_body=CATALOG)
    acr = _acr(routes)

    projects = await acr.list_projects()

    assert [p.name for p in projects] == ["team", "tools"]
    assert await projects[0].get_repositories() == [
        "team/app",
        "team/base",
        "team/web",
    ]


@pytest.mark.asyncio
async def test_acr_only_reads_and_deletes() -> None:
    """ACR neither creates projects nor manages members."""
    acr = _acr(RouteTable())
    template = await acr.get_project_by_name("")
    assert not isinstance(acr, ProjectCreator)
    assert not isinstance(template, ProjectWithMembers)
    assert not isinstance(template, MemberManipulatorProject)


@pytest.mark.asyncio
async def test_delete_needs_force() -> None:
    """Deleting a project means deleting repositories, which needs force."""
    routes = RouteTable()
    routes.add("GET", "/v2/_catalog", json_body=CATALOG)
    project = await _acr(routes).get_project_by_name("tools")
    assert project is not None
    with pytest.raises(RecoverableError, match="repositories are present"):
        await project.delete()


@pytest.mark.asyncio
async def test_force_delete_removes_every_repository() -> None:
    """Each repository is deleted through the ACR data-plane API."""
    routes = RouteTable()
    routes.add("GET", "/v2/_catalog", json_body=CATALOG)
    for repository in ("team/app", "team/base", "team/web"):
        routes.add("DELETE", f"/acr/v1/{repository}", status=202)
    project = await _acr(routes, force_delete=True).get_project_by_name("team")
    assert project is not None

    await project.delete()

    assert [r.url.path for r in routes.requests if r.method == "DELETE"] == [
        "/acr/v1/team/app",
        "/acr/v1/team/base",
        "/acr/v1/team/web",
    ]
