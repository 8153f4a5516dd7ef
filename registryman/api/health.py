"""Liveness and readiness checks for the admission webhook.

Usage
-----
Register health endpoints on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(store_handle))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from registryman.api.store_handle import LiveStoreHandle

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness check resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness check resource.

    Reports ``{"status": "ready"}`` while the manifest directory behind the
    live store exists, and HTTP 503 otherwise. Without a store handle the
    webhook is always ready.
    """

    def __init__(self, store_handle: LiveStoreHandle | None = None) -> None:
        """Bind the check to the live store handle, if any."""
        self._store_handle = store_handle

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._store_handle is not None and not self._store_handle.available():
            resp.media = {
                "status": "unavailable",
                "directory": str(self._store_handle.directory),
            }
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
