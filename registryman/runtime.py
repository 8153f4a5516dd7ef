"""Admission webhook runtime served by Granian.

The ASGI application is built by :func:`create_app`, which Granian imports
in each worker as ``registryman.runtime:create_app``. Workers read their
configuration from the environment:

- ``REGISTRYMAN_CONFIG_DIR``: manifest directory validated against; the
  admission endpoint is disabled when unset
- ``REGISTRYMAN_WEBHOOK_HOST``: bind address (default ``0.0.0.0``)
- ``REGISTRYMAN_WEBHOOK_PORT``: listen port (default ``443``)
- ``REGISTRYMAN_WEBHOOK_CERT`` / ``REGISTRYMAN_WEBHOOK_KEY``: TLS material
- ``REGISTRYMAN_LOG_LEVEL``: log level (default ``INFO``)

Run the webhook with ``registryman webhook`` or ``python -m registryman.runtime``.
"""

from __future__ import annotations

import typing as typ

from registryman.api.app import AppDependencies
from registryman.api.app import create_app as _create_api_app
from registryman.api.store_handle import LiveStoreHandle
from registryman.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from registryman.settings import Settings

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

APP_TARGET = "registryman.runtime:create_app"


def create_app() -> falcon.asgi.App:
    """Create the webhook application from environment configuration."""
    settings = Settings.from_env()
    if settings.config_dir is None:
        log_warning(
            logger, "REGISTRYMAN_CONFIG_DIR not set; admission endpoint disabled"
        )
        return _create_api_app()
    handle = LiveStoreHandle(settings.config_dir)
    return _create_api_app(AppDependencies(store_handle=handle))


def serve(settings: Settings) -> None:
    """Serve the webhook with Granian until interrupted.

    TLS is enabled when both a certificate and a key are configured.
    """
    from granian import Granian
    from granian.constants import Interfaces

    tls: dict[str, typ.Any] = {}
    if settings.webhook_cert is not None and settings.webhook_key is not None:
        tls = {"ssl_cert": settings.webhook_cert, "ssl_key": settings.webhook_key}
    else:
        log_warning(logger, "no TLS certificate configured; serving plain HTTP")

    log_info(
        logger,
        "starting validating webhook server on %s:%d (tls=%s)",
        settings.webhook_host,
        settings.webhook_port,
        bool(tls),
    )
    server = Granian(
        APP_TARGET,
        address=settings.webhook_host,
        port=settings.webhook_port,
        interface=Interfaces.ASGI,
        factory=True,
        **tls,
    )
    server.serve()


def main() -> None:
    """Start the webhook from environment configuration."""
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        configure_logging(None)
        log_error(logger, "invalid configuration: %s", exc)
        raise SystemExit(1) from exc
    normalized_level, invalid_level = configure_logging(settings.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid REGISTRYMAN_LOG_LEVEL %r, falling back to %s",
            settings.log_level,
            normalized_level,
        )
    serve(settings)


if __name__ == "__main__":
    main()
