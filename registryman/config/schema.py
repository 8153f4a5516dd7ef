"""Per-object checks and JSON Schema generation for registryman resources."""

from __future__ import annotations

import json
import re
import typing as typ
from pathlib import Path  # noqa: TC003

import msgspec

from .models import RESOURCE_TYPES, Project, Registry, Resource, Scanner

SCHEMA_ID_TEMPLATE = "https://registryman.kubermatic.com/schemas/{kind}.json"
URL_PATTERN = re.compile(r"^(https?|ftp)://[^\s/$.?#].[^\s]*$")


def validate_resource(resource: Resource) -> list[str]:
    """Return the issues found on a single resource, in field order.

    Cross-resource rules such as name uniqueness live in
    :mod:`registryman.config.validation`; this only checks what one object
    can decide on its own.
    """
    issues: list[str] = []
    if not resource.name.strip():
        issues.append(f"{resource.kind} is missing metadata.name")

    match resource:
        case Registry(spec=spec):
            if not URL_PATTERN.match(spec.api_endpoint):
                issues.append(
                    f"registry {resource.name}: apiEndpoint {spec.api_endpoint!r} "
                    "is not a valid URL"
                )
        case Scanner(spec=spec):
            if not URL_PATTERN.match(spec.url):
                issues.append(
                    f"scanner {resource.name}: url {spec.url!r} is not a valid URL"
                )
        case Project(spec=spec):
            seen: set[str] = set()
            for member in spec.members:
                if not member.name.strip():
                    issues.append(f"project {resource.name}: member without a name")
                elif member.name in seen:
                    issues.append(
                        f"project {resource.name}: duplicate member {member.name!r}"
                    )
                seen.add(member.name)
    return issues


def build_resource_schemas() -> dict[str, dict[str, typ.Any]]:
    """Build one JSON Schema per resource kind, keyed by kind."""
    schemas: dict[str, dict[str, typ.Any]] = {}
    for kind, resource_type in RESOURCE_TYPES.items():
        schema = msgspec.json.schema(resource_type)
        schema["$id"] = SCHEMA_ID_TEMPLATE.format(kind=kind.lower())
        schemas[kind] = schema
    return schemas


def write_resource_schemas(out_dir: Path) -> list[Path]:
    """Write ``<kind>.json`` schema files into ``out_dir``.

    Parameters
    ----------
    out_dir : Path
        Destination directory, created when missing.

    Returns
    -------
    list[Path]
        The files written, in kind order.

    """
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for kind, schema in build_resource_schemas().items():
        path = out_dir / f"{kind.lower()}.json"
        path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
        written.append(path)
    return written


__all__ = [
    "URL_PATTERN",
    "build_resource_schemas",
    "validate_resource",
    "write_resource_schemas",
]
