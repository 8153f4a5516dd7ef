"""Command-line interface for registryman.

Usage:
    registryman validate examples/fleet
    registryman apply examples/fleet --dry-run
    registryman status examples/fleet -r harbor-hub -o yaml
    registryman operator examples/fleet
    registryman webhook --port 8443 --cert tls/tls.crt --key tls/tls.key
    registryman schema schemas/

Environment variables:
    REGISTRYMAN_CONFIG_DIR - Manifest directory used when DIR is omitted
    REGISTRYMAN_LOG_LEVEL  - Log level (default: INFO)
    See :class:`registryman.settings.Settings` for the rest.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import enum
import os
import sys
import typing as typ
from pathlib import Path

import httpx
import msgspec
from cyclopts import App, Parameter

from registryman.config.filesystem import LocalFileStore
from registryman.config.loader import dump_manifest
from registryman.config.schema import write_resource_schemas
from registryman.config.store import GlobalRegistryOptions, take_snapshot
from registryman.errors import RegistrymanError
from registryman.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_exception,
    log_warning,
)
from registryman.operator.resync import full_resync
from registryman.operator.runner import run_operator
from registryman.providers import build_provider_registry
from registryman.providers.registry import ProviderContext
from registryman.reconciler.actual import fetch_actual_status
from registryman.reconciler.expected import registry_options
from registryman.settings import Settings

if typ.TYPE_CHECKING:
    from registryman.config.models import Registry
    from registryman.config.status import RegistryStatus
    from registryman.config.store import ApiObjectStore
    from registryman.providers.registry import ProviderRegistry

logger = get_logger(__name__)

app = App(
    name="registryman",
    help="Reconcile container image registries with a declarative fleet",
    version="0.1.0",
)

STATUS_TIMEOUT_S = 300.0

# Failures reported as a diagnostic and exit status 1.
COMMAND_FAILURES: tuple[type[BaseException], ...] = (
    RegistrymanError,
    ValueError,
    TimeoutError,
    OSError,
    httpx.HTTPError,
)

LogLevelOption = typ.Annotated[
    str | None, Parameter(name="--log-level", env_var="REGISTRYMAN_LOG_LEVEL")
]


class OutputFormat(enum.StrEnum):
    """Formats accepted by ``status --output``."""

    JSON = "json"
    YAML = "yaml"


def _setup(log_level: str | None) -> str:
    normalized, invalid = configure_logging(log_level)
    if invalid and log_level is not None:
        log_warning(
            logger, "Invalid log level %r, falling back to %s", log_level, normalized
        )
    return normalized


def _settings(log_level: str) -> Settings:
    return dc.replace(Settings.from_env(), log_level=log_level)


def _config_dir(directory: Path | None, settings: Settings) -> Path:
    resolved = directory or settings.config_dir
    if resolved is None:
        msg = "no manifest directory given and REGISTRYMAN_CONFIG_DIR is not set"
        raise ValueError(msg)
    return resolved


@app.command
def validate(
    directory: Path,
    *,
    log_level: LogLevelOption = None,
) -> int:
    """Load a manifest directory and check it for consistency.

    Args:
        directory: Directory holding the Registry, Project and Scanner manifests.
        log_level: femtologging level name.

    Returns:
        Exit code (0 when the fleet is valid, 1 otherwise).

    """
    _setup(log_level)
    try:
        snapshot = asyncio.run(take_snapshot(LocalFileStore.load(directory)))
    except COMMAND_FAILURES as exc:
        print(f"validation failed: {exc}", file=sys.stderr)
        return 1
    print(
        f"{directory}: {len(snapshot.registries)} registries, "
        f"{len(snapshot.projects)} projects, {len(snapshot.scanners)} scanners: valid"
    )
    return 0


@app.command
def apply(
    directory: Path | None = None,
    *,
    dry_run: bool = False,
    force_delete: bool = False,
    log_level: LogLevelOption = None,
) -> int:
    """Reconcile every registry of the fleet once.

    Args:
        directory: Manifest directory; defaults to REGISTRYMAN_CONFIG_DIR.
        dry_run: Log the planned actions without performing them.
        force_delete: Delete projects even when they still hold repositories.
        log_level: femtologging level name.

    Returns:
        Exit code (0 when every registry was reconciled, 1 otherwise).

    """
    level = _setup(log_level)
    options = GlobalRegistryOptions(force_delete=force_delete, dry_run=dry_run)
    try:
        settings = _settings(level)
        store = LocalFileStore.load(_config_dir(directory, settings), options=options)
        result = asyncio.run(
            full_resync(
                store,
                build_provider_registry(),
                dry_run=dry_run,
                timeout=settings.resync_timeout_s,
                http_timeout_s=settings.http_timeout_s,
            )
        )
    except COMMAND_FAILURES as exc:
        log_exception(logger, "apply failed", exc)
        return 1
    for report in result.reports:
        for description in report.planned or report.performed:
            print(f"{report.registry_name}: {description}")
        for description, error in report.failed:
            print(f"{report.registry_name}: {description}: {error}", file=sys.stderr)
    for name, error in result.failed.items():
        print(f"{name}: {error}", file=sys.stderr)
    return 0 if result.ok else 1


async def _fetch_status(
    store: ApiObjectStore,
    registry: Registry,
    providers: ProviderRegistry,
    settings: Settings,
) -> RegistryStatus:
    context = ProviderContext(
        options=registry_options(registry, store.get_options()),
        timeout_s=settings.http_timeout_s,
    )
    live = providers.new(registry, context)
    try:
        return await fetch_actual_status(
            live, providers.capabilities(registry.spec.provider)
        )
    finally:
        await live.aclose()


async def _collect_status(
    store: ApiObjectStore, names: list[str], settings: Settings
) -> dict[str, RegistryStatus]:
    providers = build_provider_registry()
    statuses: dict[str, RegistryStatus] = {}
    async with asyncio.timeout(STATUS_TIMEOUT_S):
        for registry in await store.get_registries():
            if names and registry.name not in names:
                continue
            statuses[registry.name] = await _fetch_status(
                store, registry, providers, settings
            )
    return statuses


def render_status(
    statuses: dict[str, RegistryStatus], output: OutputFormat
) -> str:
    """Render registry statuses as indented JSON or YAML."""
    data = msgspec.to_builtins(statuses)
    if output is OutputFormat.YAML:
        return dump_manifest(data)
    return msgspec.json.format(msgspec.json.encode(data), indent=2).decode()


@app.command
def status(
    directory: Path | None = None,
    *,
    registry: typ.Annotated[
        list[str] | None, Parameter(name=["--registry", "-r"])
    ] = None,
    output: typ.Annotated[
        OutputFormat, Parameter(name=["--output", "-o"])
    ] = OutputFormat.JSON,
    log_level: LogLevelOption = None,
) -> int:
    """Print the actual status of the fleet's registries.

    Args:
        directory: Manifest directory; defaults to REGISTRYMAN_CONFIG_DIR.
        registry: Only report the named registries; repeatable.
        output: Output format.
        log_level: femtologging level name.

    Returns:
        Exit code (0 for success, 1 on failure).

    """
    level = _setup(log_level)
    try:
        settings = _settings(level)
        store = LocalFileStore.load(_config_dir(directory, settings))
        statuses = asyncio.run(_collect_status(store, registry or [], settings))
    except COMMAND_FAILURES as exc:
        log_exception(logger, "status failed", exc)
        return 1
    print(render_status(statuses, output))
    return 0


@app.command
def operator(
    directory: Path | None = None,
    *,
    log_level: LogLevelOption = None,
) -> int:
    """Keep the fleet reconciled until interrupted.

    Args:
        directory: Manifest directory; defaults to REGISTRYMAN_CONFIG_DIR.
        log_level: femtologging level name.

    Returns:
        Exit code (0 after SIGINT, 1 on a configuration failure).

    """
    level = _setup(log_level)
    try:
        settings = _settings(level)
        config_dir = _config_dir(directory, settings)
        asyncio.run(run_operator(config_dir, build_provider_registry(), settings))
    except KeyboardInterrupt:
        return 0
    except COMMAND_FAILURES as exc:
        log_exception(logger, "operator stopped", exc)
        return 1
    return 0


@app.command
def webhook(
    *,
    port: typ.Annotated[int, Parameter(name=["--port", "-p"])] = 443,
    cert: typ.Annotated[Path, Parameter(name=["--cert", "-c"])] = Path(
        "tls/tls.crt"
    ),
    key: typ.Annotated[Path, Parameter(name=["--key", "-k"])] = Path("tls/tls.key"),
    directory: typ.Annotated[
        Path | None, Parameter(env_var="REGISTRYMAN_CONFIG_DIR")
    ] = None,
    log_level: LogLevelOption = None,
) -> int:
    """Serve the validating admission webhook.

    Args:
        port: TCP port to listen on.
        cert: TLS certificate file.
        key: TLS key file.
        directory: Manifest directory admission requests are validated against.
        log_level: femtologging level name.

    Returns:
        Exit code (0 after shutdown, 1 on a configuration failure).

    """
    from registryman.runtime import serve

    level = _setup(log_level)
    try:
        base = _settings(level)
        settings = dc.replace(
            base,
            webhook_port=port,
            webhook_cert=cert,
            webhook_key=key,
            config_dir=directory or base.config_dir,
        )
    except COMMAND_FAILURES as exc:
        log_error(logger, "invalid webhook configuration: %s", exc)
        return 1
    # Granian workers rebuild the app from the environment.
    if settings.config_dir is not None:
        os.environ["REGISTRYMAN_CONFIG_DIR"] = str(settings.config_dir)
    os.environ["REGISTRYMAN_LOG_LEVEL"] = settings.log_level
    serve(settings)
    return 0


@app.command
def schema(out_dir: Path, *, log_level: LogLevelOption = None) -> int:
    """Write JSON Schemas for the Registry, Project and Scanner resources.

    Args:
        out_dir: Destination directory, created when missing.
        log_level: femtologging level name.

    Returns:
        Exit code (0 for success, 1 on failure).

    """
    _setup(log_level)
    try:
        written = write_resource_schemas(out_dir)
    except OSError as exc:
        log_exception(logger, "cannot write schemas", exc)
        return 1
    for path in written:
        print(path)
    return 0


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
