"""Unit tests for resource decoding, enums and JSON Schema export."""

from __future__ import annotations

import enum
import json
import typing as typ

import pytest

from registryman.config.enums import (
    MemberRole,
    MemberType,
    ProjectType,
    ReplicationDirection,
    ReplicationTriggerType,
    decode_enum,
    encode_enum,
)
from registryman.config.loader import (
    ManifestValidationError,
    dump_manifest,
    parse_resource,
)
from registryman.config.models import Project, Registry, Scanner
from registryman.config.schema import build_resource_schemas, write_resource_schemas
from registryman.config.status import (
    MemberStatus,
    ReplicationRuleStatus,
    ReplicationTrigger,
)
from tests.helpers.fleet_builders import registry_document

if typ.TYPE_CHECKING:
    from pathlib import Path

_WIRE_ENUMS: tuple[type[enum.StrEnum], ...] = (
    ProjectType,
    MemberType,
    MemberRole,
    ReplicationTriggerType,
    ReplicationDirection,
)


class TestEnums:
    """Wire strings of the registryman enumerations."""

    @pytest.mark.parametrize("enum_type", _WIRE_ENUMS, ids=lambda t: t.__name__)
    def test_every_member_decodes_from_its_encoding(
        self, enum_type: type[enum.StrEnum]
    ) -> None:
        """decode(encode(v)) is v for every member."""
        for member in enum_type:
            assert decode_enum(enum_type, encode_enum(member)) is member

    def test_encode_rejects_foreign_values(self) -> None:
        """Values outside the wire enumerations cannot be encoded."""
        with pytest.raises(ValueError, match="not a registryman enumeration"):
            encode_enum("Developer")

    def test_decode_lists_allowed_values(self) -> None:
        """Unknown strings fail with the allowed spellings."""
        with pytest.raises(ValueError, match="Global, Local"):
            decode_enum(ProjectType, "Regional")


class TestReplicationTrigger:
    """Rendering and identity of triggers."""

    @pytest.mark.parametrize(
        ("trigger", "text"),
        [
            (ReplicationTrigger(type=ReplicationTriggerType.MANUAL), "Manual"),
            (ReplicationTrigger(type=ReplicationTriggerType.EVENT_BASED), "EventBased"),
            (ReplicationTrigger.cron("*/10 * * * *"), "Cron */10 * * * *"),
        ],
    )
    def test_str(self, trigger: ReplicationTrigger, text: str) -> None:
        """str() renders the type followed by any schedule."""
        assert str(trigger) == text

    def test_rules_hash_by_value(self) -> None:
        """Equal rules collapse in a set."""
        rule = ReplicationRuleStatus(
            remote_registry_name="local",
            trigger=ReplicationTrigger.cron("*/10 * * * *"),
            direction=ReplicationDirection.PULL,
        )
        twin = ReplicationRuleStatus(
            remote_registry_name="local",
            trigger=ReplicationTrigger.cron("*/10 * * * *"),
            direction=ReplicationDirection.PULL,
        )
        assert {rule, twin} == {rule}

    def test_member_str_names_role(self) -> None:
        """Members render as name:role in plan descriptions."""
        member = MemberStatus(
            name="alpha", type=MemberType.USER, role=MemberRole.MAINTAINER
        )
        assert str(member) == "alpha:Maintainer"


class TestParseResource:
    """Decoding manifest documents into typed resources."""

    def test_registry_document(self) -> None:
        """Registry manifests decode with camelCase fields."""
        resource = parse_resource(registry_document("hub", role="GlobalHub"))
        assert isinstance(resource, Registry)
        assert resource.is_global_hub
        assert resource.spec.api_endpoint == "https://hub.example.com"

    def test_project_defaults(self) -> None:
        """Members default to users and projects to no scanner."""
        resource = parse_resource(
            {
                "apiVersion": "registryman.kubermatic.com/v1alpha1",
                "kind": "Project",
                "metadata": {"name": "apps"},
                "spec": {
                    "type": "Local",
                    "localRegistries": ["edge"],
                    "members": [{"name": "alpha", "role": "Guest"}],
                },
            }
        )
        assert isinstance(resource, Project)
        assert resource.spec.local_registries == ["edge"]
        assert resource.spec.members[0].type is MemberType.USER
        assert resource.spec.scanner == ""
        assert not resource.is_global

    def test_foreign_documents_are_rejected(self) -> None:
        """Documents of another API version are not registryman resources."""
        document = registry_document("hub")
        document["apiVersion"] = "v1"
        with pytest.raises(ManifestValidationError, match="not a registryman"):
            parse_resource(document)

    def test_schema_mismatch_is_reported_with_source(self) -> None:
        """Missing required fields fail schema validation."""
        document = registry_document("hub")
        del document["spec"]["apiEndpoint"]
        with pytest.raises(ManifestValidationError) as excinfo:
            parse_resource(document, source="hub.yaml")
        assert excinfo.value.issues[0].startswith("hub.yaml: schema validation")

    def test_invalid_endpoint_url(self) -> None:
        """The API endpoint must be an http, https or ftp URL."""
        document = registry_document("hub")
        document["spec"]["apiEndpoint"] = "harbor.example.com"
        with pytest.raises(ManifestValidationError, match="not a valid URL"):
            parse_resource(document)

    def test_duplicate_project_members(self) -> None:
        """A member name may appear once per project."""
        with pytest.raises(ManifestValidationError, match="duplicate member"):
            parse_resource(
                {
                    "apiVersion": "registryman.kubermatic.com/v1alpha1",
                    "kind": "Project",
                    "metadata": {"name": "apps"},
                    "spec": {
                        "type": "Global",
                        "members": [
                            {"name": "alpha", "role": "Guest"},
                            {"name": "alpha", "role": "Developer"},
                        ],
                    },
                }
            )

    def test_dump_and_parse_scanner(self) -> None:
        """A dumped manifest leads with apiVersion and parses back."""
        scanner = parse_resource(
            {
                "apiVersion": "registryman.kubermatic.com/v1alpha1",
                "kind": "Scanner",
                "metadata": {"name": "trivy"},
                "spec": {"url": "http://trivy:8080"},
            }
        )
        text = dump_manifest(scanner)
        assert text.splitlines()[0].startswith("apiVersion:")
        assert isinstance(scanner, Scanner)


class TestSchemas:
    """JSON Schema export of the resource kinds."""

    def test_one_schema_per_kind(self) -> None:
        """Every kind gets a schema with a stable $id."""
        schemas = build_resource_schemas()
        assert set(schemas) == {"Registry", "Project", "Scanner"}
        assert schemas["Scanner"]["$id"].endswith("/scanner.json")

    def test_write_resource_schemas(self, tmp_path: Path) -> None:
        """Schemas are written as <kind>.json files."""
        written = write_resource_schemas(tmp_path / "schemas")
        assert [path.name for path in written] == [
            "registry.json",
            "project.json",
            "scanner.json",
        ]
        assert "$id" in json.loads(written[0].read_text(encoding="utf-8"))
