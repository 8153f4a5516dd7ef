"""YAML loading and dumping of registryman manifests."""

from __future__ import annotations

import collections.abc as cabc
import io
import typing as typ
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .models import API_VERSION, RESOURCE_TYPES, Resource
from .schema import validate_resource

YAML_VERSION = (1, 2)


class ManifestValidationError(ValueError):
    """Raised when a manifest cannot be parsed or fails per-object checks."""

    def __init__(self, issues: list[str]) -> None:
        """Keep the individual issues next to the aggregated message."""
        super().__init__("\n".join(issues))
        self.issues = issues


def is_resource_document(document: object) -> bool:
    """Return True when ``document`` declares a registryman kind and version."""
    return (
        isinstance(document, cabc.Mapping)
        and document.get("apiVersion") == API_VERSION
        and document.get("kind") in RESOURCE_TYPES
    )


def parse_resource(document: object, *, source: str = "<document>") -> Resource:
    """Convert a parsed YAML or JSON document into a typed resource.

    Raises
    ------
    ManifestValidationError
        If the document is not a registryman resource, does not match the
        resource schema, or fails :func:`validate_resource`.

    """
    if not is_resource_document(document):
        raise ManifestValidationError([f"{source}: not a registryman resource"])

    data = typ.cast("cabc.Mapping[str, typ.Any]", document)
    resource_type = RESOURCE_TYPES[data["kind"]]
    try:
        resource = msgspec.convert(data, type=resource_type)
    except msgspec.ValidationError as exc:
        raise ManifestValidationError(
            [f"{source}: schema validation failed: {exc}"]
        ) from exc

    if issues := validate_resource(resource):
        raise ManifestValidationError([f"{source}: {issue}" for issue in issues])
    return resource


def load_manifest_file(path: Path | str) -> Resource | None:
    """Load one manifest file.

    Returns ``None`` for empty files and for YAML documents that are not
    registryman resources, such as generated credential secrets.
    """
    path_obj = Path(path)
    try:
        loaded = _yaml().load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise ManifestValidationError(
            [f"{path_obj}: failed to parse YAML: {exc}"]
        ) from exc

    if loaded is None or not is_resource_document(loaded):
        return None
    return parse_resource(loaded, source=str(path_obj))


def resource_to_builtins(resource: Resource) -> dict[str, typ.Any]:
    """Return the manifest form of ``resource`` with ``apiVersion`` first."""
    data = msgspec.to_builtins(resource)
    data.pop("apiVersion", None)
    return {"apiVersion": resource.api_version, **data}


def dump_manifest(manifest: Resource | cabc.Mapping[str, typ.Any]) -> str:
    """Serialise a resource or an arbitrary manifest mapping to YAML."""
    data = (
        dict(manifest)
        if isinstance(manifest, cabc.Mapping)
        else resource_to_builtins(manifest)
    )
    buffer = io.StringIO()
    _yaml().dump(data, buffer)
    return buffer.getvalue()


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    yaml.default_flow_style = False
    return yaml


__all__ = [
    "ManifestValidationError",
    "dump_manifest",
    "is_resource_document",
    "load_manifest_file",
    "parse_resource",
    "resource_to_builtins",
]
