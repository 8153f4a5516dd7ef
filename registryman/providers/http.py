"""Shared HTTP plumbing for the provider clients.

Every request is built from a fresh copy of the registry's base URL, so
concurrent calls on one handle never share mutable URL state. HTTP 401 is
always raised as :class:`UnauthorizedError`; other error statuses are logged
and returned to the caller, which decides whether they matter.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import httpx
import msgspec

from registryman.errors import (
    InvalidStatusCodeError,
    RecoverableError,
    UnauthorizedError,
)
from registryman.logging import get_logger, log_debug, log_warning

from .registry import DEFAULT_HTTP_TIMEOUT_S

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from registryman.config.models import Registry
    from registryman.config.store import RegistryOptions

logger = get_logger(__name__)

_BODY_PREVIEW_CHARS = 200


class RegistryApiClient:
    """Base class for the provider clients of one live registry."""

    provider: str = ""
    verify_tls: bool = True

    def __init__(
        self,
        registry: Registry,
        *,
        options: RegistryOptions = None,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        """Bind the client to ``registry``; create an HTTP client if none given."""
        self.registry = registry
        self.options = options
        self._base_url = httpx.URL(registry.spec.api_endpoint)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s, verify=self.verify_tls
        )

    @property
    def name(self) -> str:
        """Return the declared registry name."""
        return self.registry.name

    @property
    def api_endpoint(self) -> str:
        """Return the declared API endpoint."""
        return self.registry.spec.api_endpoint

    async def aclose(self) -> None:
        """Close the HTTP client when this handle created it."""
        if self._owns_client:
            await self._client.aclose()

    def _auth(self, path: str) -> httpx.Auth | None:
        return httpx.BasicAuth(
            self.registry.spec.username, self.registry.spec.password
        )

    def _headers(self, path: str) -> dict[str, str]:
        return {"Accept": "application/json"}

    def url(self, path: str) -> httpx.URL:
        """Return a new URL with ``path`` replacing the endpoint's path."""
        return self._base_url.copy_with(path=path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: object | None = None,
        params: cabc.Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request and return the fully read response.

        Raises
        ------
        UnauthorizedError
            If the registry answers HTTP 401.

        """
        url = self.url(path)
        content = msgspec.json.encode(json) if json is not None else None
        headers = self._headers(path)
        if content is not None:
            headers["Content-Type"] = "application/json"
        log_debug(logger, "%s: %s %s", self.name, method, url)
        response = await self._client.request(
            method,
            url,
            content=content,
            params=params,
            headers=headers,
            auth=self._auth(path),
        )
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            raise UnauthorizedError(self.name)
        if response.is_error:
            log_warning(
                logger,
                "%s: %s %s returned HTTP %d: %s",
                self.name,
                method,
                url,
                response.status_code,
                response.text[:_BODY_PREVIEW_CHARS],
            )
        return response

    async def get_json[T](
        self,
        path: str,
        response_type: type[T],
        *,
        params: cabc.Mapping[str, str] | None = None,
    ) -> T:
        """GET ``path`` and decode a successful JSON body as ``response_type``.

        Raises
        ------
        InvalidStatusCodeError
            If the response is not 2xx.
        RecoverableError
            If the body does not match ``response_type``.

        """
        response = await self.request("GET", path, params=params)
        ensure_success(response, context=f"{self.name}: GET {path}")
        return self.decode(response, response_type)

    def decode[T](self, response: httpx.Response, response_type: type[T]) -> T:
        """Decode ``response`` as ``response_type``."""
        try:
            return msgspec.json.decode(response.content, type=response_type)
        except (msgspec.DecodeError, msgspec.ValidationError) as exc:
            url = response.request.url
            msg = f"{self.name}: unexpected response from {url}: {exc}"
            raise RecoverableError(msg) from exc


def ensure_success(response: httpx.Response, *, context: str | None = None) -> None:
    """Raise :class:`InvalidStatusCodeError` for a non-2xx response."""
    if not response.is_success:
        raise InvalidStatusCodeError(response.status_code, context=context)


def id_from_location(response: httpx.Response, prefix: str) -> str:
    """Return the identifier that follows ``prefix`` in the Location header.

    Raises
    ------
    RecoverableError
        If the header is missing or does not start with ``prefix``.

    """
    location = response.headers.get("Location", "")
    _, found, identifier = location.rpartition(prefix.rstrip("/") + "/")
    if not found or not identifier:
        msg = f"cannot parse identifier from Location header {location!r}"
        raise RecoverableError(msg)
    return identifier


def int_id_from_location(response: httpx.Response, prefix: str) -> int:
    """Return the numeric identifier from the Location header."""
    identifier = id_from_location(response, prefix)
    try:
        return int(identifier)
    except ValueError as exc:
        msg = f"non-numeric identifier {identifier!r} in Location header"
        raise RecoverableError(msg) from exc


__all__ = [
    "RegistryApiClient",
    "ensure_success",
    "id_from_location",
    "int_id_from_location",
]
