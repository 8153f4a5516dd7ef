"""Process configuration read from ``REGISTRYMAN_*`` environment variables.

Usage
-----
>>> import os
>>> os.environ["REGISTRYMAN_STATUS_INTERVAL_S"] = "30"
>>> Settings.from_env().status_interval_s
30

Command-line options take precedence; the CLI starts from ``from_env()``
and replaces fields with :func:`dataclasses.replace`.
"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

_MIN_PORT = 1
_MAX_PORT = 65535


@dc.dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings shared by the CLI, operator and webhook.

    Attributes
    ----------
    config_dir
        Directory holding the declarative YAML manifests.
    log_level
        Raw femtologging level name.
    resync_timeout_s
        Upper bound for one full resync sweep.
    status_interval_s
        Period of the status updater; also the per-registry fetch timeout.
    watch_interval_s
        Polling period of the manifest directory watcher.
    http_timeout_s
        Timeout applied to every registry API request.
    webhook_host, webhook_port
        Bind address of the admission webhook.
    webhook_cert, webhook_key
        TLS material for the webhook.

    """

    config_dir: Path | None = None
    log_level: str = "INFO"
    resync_timeout_s: int = 300
    status_interval_s: int = 10
    watch_interval_s: int = 5
    http_timeout_s: int = 30
    webhook_host: str = "0.0.0.0"  # noqa: S104 - webhook binds all interfaces
    webhook_port: int = 443
    webhook_cert: Path | None = None
    webhook_key: Path | None = None

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_path(env_var: str) -> Path | None:
        raw = os.environ.get(env_var, "").strip()
        return Path(raw) if raw else None

    @classmethod
    def _parse_port(cls, env_var: str, default: int) -> int:
        port = cls._parse_positive_int(env_var, default)
        if port > _MAX_PORT:
            msg = f"{env_var} must be within {_MIN_PORT}-{_MAX_PORT}, got: {port}"
            raise ValueError(msg)
        return port

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the environment.

        Raises
        ------
        ValueError
            If a numeric variable is not a positive integer or the webhook
            port falls outside the TCP range.

        """
        defaults = cls()
        return cls(
            config_dir=cls._parse_path("REGISTRYMAN_CONFIG_DIR"),
            log_level=os.environ.get("REGISTRYMAN_LOG_LEVEL", defaults.log_level),
            resync_timeout_s=cls._parse_positive_int(
                "REGISTRYMAN_RESYNC_TIMEOUT_S", defaults.resync_timeout_s
            ),
            status_interval_s=cls._parse_positive_int(
                "REGISTRYMAN_STATUS_INTERVAL_S", defaults.status_interval_s
            ),
            watch_interval_s=cls._parse_positive_int(
                "REGISTRYMAN_WATCH_INTERVAL_S", defaults.watch_interval_s
            ),
            http_timeout_s=cls._parse_positive_int(
                "REGISTRYMAN_HTTP_TIMEOUT_S", defaults.http_timeout_s
            ),
            webhook_host=os.environ.get(
                "REGISTRYMAN_WEBHOOK_HOST", defaults.webhook_host
            ),
            webhook_port=cls._parse_port(
                "REGISTRYMAN_WEBHOOK_PORT", defaults.webhook_port
            ),
            webhook_cert=cls._parse_path("REGISTRYMAN_WEBHOOK_CERT"),
            webhook_key=cls._parse_path("REGISTRYMAN_WEBHOOK_KEY"),
        )


__all__ = ["Settings"]
