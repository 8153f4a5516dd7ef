"""Harbor scanner registrations and per-project scanner bindings."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from registryman.config.status import ScannerStatus
from registryman.errors import RecoverableError
from registryman.logging import get_logger, log_debug, log_info

from ..http import id_from_location
from .wire import ProjectScanner, ScannerRegistration

if typ.TYPE_CHECKING:
    from .registry import HarborRegistry

logger = get_logger(__name__)

SCANNERS_PATH = "/api/v2.0/scanners"
_PROJECTS_PATH = "/api/v2.0/projects"


async def list_scanners(api: HarborRegistry) -> list[ScannerRegistration]:
    """Return every scanner registered on the registry."""
    return await api.get_json(SCANNERS_PATH, list[ScannerRegistration])


async def _create_scanner(api: HarborRegistry, scanner: ScannerStatus) -> str:
    body = ScannerRegistration(name=scanner.name, url=scanner.url)
    response = await api.request("POST", SCANNERS_PATH, json=body)
    if response.status_code != HTTPStatus.CREATED:
        msg = f"{api.name}: scanner creation failed"
        raise RecoverableError(msg)
    log_info(logger, "%s: scanner %s registered", api.name, scanner.name)
    return id_from_location(response, SCANNERS_PATH)


async def _update_scanner(
    api: HarborRegistry, scanner_id: str, scanner: ScannerStatus
) -> None:
    body = ScannerRegistration(name=scanner.name, url=scanner.url)
    response = await api.request("PUT", f"{SCANNERS_PATH}/{scanner_id}", json=body)
    if response.status_code != HTTPStatus.OK:
        msg = f"{api.name}: failed to update scanner {scanner.name}"
        raise RecoverableError(msg)
    log_info(logger, "%s: scanner %s updated", api.name, scanner.name)


async def scanner_id_by_name_or_create(
    api: HarborRegistry, scanner: ScannerStatus
) -> str:
    """Return the uuid of ``scanner``, registering or updating it as needed.

    Names and URLs compare case-insensitively. A registration with the same
    name is reused as is; otherwise one with the same URL is renamed in
    place, and failing both a new registration is created.
    """
    registrations = await list_scanners(api)
    name = scanner.name.casefold()
    url = scanner.url.casefold()
    for registration in registrations:
        if registration.name.casefold() == name:
            return registration.uuid
    for registration in registrations:
        if registration.url.casefold() == url:
            await _update_scanner(api, registration.uuid, scanner)
            return registration.uuid
    return await _create_scanner(api, scanner)


async def get_project_scanner(
    api: HarborRegistry, project_id: int
) -> ScannerStatus | None:
    """Return the scanner bound to ``project_id``, or ``None``."""
    registration = await api.get_json(
        f"{_PROJECTS_PATH}/{project_id}/scanner", ScannerRegistration
    )
    if not registration.name:
        return None
    return ScannerStatus(name=registration.name, url=registration.url)


async def set_project_scanner(
    api: HarborRegistry, project_id: int, scanner_id: str
) -> None:
    """Bind the scanner ``scanner_id`` to ``project_id``."""
    response = await api.request(
        "PUT",
        f"{_PROJECTS_PATH}/{project_id}/scanner",
        json=ProjectScanner(uuid=scanner_id),
    )
    if response.status_code != HTTPStatus.OK:
        msg = f"{api.name}: failed to set scanner for project-id:{project_id}"
        raise RecoverableError(msg)
    log_debug(
        logger, "%s: project %d uses scanner %s", api.name, project_id, scanner_id
    )


async def default_scanner(api: HarborRegistry) -> ScannerStatus | None:
    """Return the registry-wide default scanner, or ``None``."""
    for registration in await list_scanners(api):
        if registration.is_default:
            return ScannerStatus(name=registration.name, url=registration.url)
    return None


__all__ = [
    "SCANNERS_PATH",
    "default_scanner",
    "get_project_scanner",
    "list_scanners",
    "scanner_id_by_name_or_create",
    "set_project_scanner",
]
