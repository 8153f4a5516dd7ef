"""Application factory for the admission webhook Falcon ASGI app.

Usage
-----
Create a health-only app (no store)::

    app = create_app()

Create the full webhook::

    from registryman.api.app import AppDependencies, create_app
    from registryman.api.store_handle import LiveStoreHandle

    app = create_app(AppDependencies(store_handle=LiveStoreHandle("fleet")))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from registryman.api.admission import AdmissionResource
from registryman.api.errors import (
    InvalidAdmissionRequestError,
    handle_invalid_admission_request,
)
from registryman.api.health import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from registryman.api.store_handle import LiveStoreHandle

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    store_handle
        Live store the admission endpoint validates against. When ``None``
        only the health checks are registered.

    """

    store_handle: LiveStoreHandle | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health`` and ``/ready`` are always registered; ``POST /`` is added
    when *dependencies* carries a store handle.

    Parameters
    ----------
    dependencies
        Optional application dependencies.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    store_handle = dependencies.store_handle if dependencies is not None else None

    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(store_handle))

    if store_handle is not None:
        app.add_route("/", AdmissionResource(store_handle))

    app.add_error_handler(
        InvalidAdmissionRequestError, handle_invalid_admission_request
    )

    return app
