"""Tests for URL template tokenizing and per-service segment overrides."""

from __future__ import annotations

import pytest

from discoli.hierarchy.overrides import (
    SEGMENT_OVERRIDES,
    apply_service_override,
    compute_override,
    register_override,
    sqladmin_override,
    storage_override,
)
from discoli.hierarchy.segments import is_valid_template, join_path, parent_of, segments


# ---------------------------------------------------------------------------
# segments
# ---------------------------------------------------------------------------


class TestSegments:
    def test_nested_template(self) -> None:
        assert segments(
            "v1/projects/{projectsId}/locations/{locationsId}/clusters", "v1"
        ) == ["projects", "locations"]

    def test_template_without_version(self) -> None:
        assert segments("projects/{projectsId}/datasets", "v2") == ["projects"]

    def test_deeply_nested(self) -> None:
        template = "projects/{projectsId}/datasets/{datasetsId}/tables/{tablesId}/rowAccessPolicies"
        assert segments(template, "v2") == ["projects", "datasets", "tables"]

    def test_other_version_token_dropped(self) -> None:
        assert segments("v1/projects/{projectsId}/datasets", "v2") == ["projects"]

    def test_beta_version_token_dropped(self) -> None:
        assert segments("sql/v1beta4/projects/{project}/instances", "v1beta4") == [
            "sql",
            "projects",
        ]

    def test_trailing_placeholder_is_not_the_last_segment(self) -> None:
        # the resource's own name is the last literal, not the placeholder
        assert segments("v1/projects/{projectsId}/instances/{instancesId}", "v1") == [
            "projects"
        ]

    def test_only_placeholder(self) -> None:
        assert segments("{+name}", "v1") == []

    def test_empty_template(self) -> None:
        assert segments("", "v1") == []

    def test_leading_and_double_slashes_ignored(self) -> None:
        assert segments("/v1//projects/{p}/zones", "v1") == ["projects"]


class TestIsValidTemplate:
    def test_plain_template_is_valid(self) -> None:
        assert is_valid_template("container", "v1/projects/{projectsId}/clusters")

    def test_action_suffix_is_invalid(self) -> None:
        assert not is_valid_template(
            "container", "v1/projects/{p}/clusters/{c}:setResourceLabels"
        )

    def test_compute_aggregated_is_invalid(self) -> None:
        assert not is_valid_template("compute", "projects/{project}/aggregated/disks")

    def test_aggregated_allowed_for_other_services(self) -> None:
        assert is_valid_template("container", "v1/projects/{p}/aggregated/usableSubnetworks")


class TestDottedPaths:
    def test_join_skips_empty(self) -> None:
        assert join_path("bigquery", "", "datasets") == "bigquery.datasets"

    def test_parent_of(self) -> None:
        assert parent_of("sql.instances.get") == "sql.instances"

    def test_parent_of_single_label(self) -> None:
        assert parent_of("bigquery") == ""


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class TestStorageOverride:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("buckets", ["projects"]),
            ("objects", ["projects", "buckets"]),
            ("folders", ["projects", "buckets"]),
            ("managedFolders", ["projects", "buckets"]),
        ],
    )
    def test_fixed_parents(self, name: str, expected: list[str]) -> None:
        assert storage_override(name, ["b"]) == expected

    def test_abbreviations_expanded_under_projects(self) -> None:
        assert storage_override("objectAccessControls", ["b", "o"]) == [
            "projects",
            "buckets",
            "objects",
        ]

    def test_projects_passes_through(self) -> None:
        assert storage_override("projects", []) == []


class TestComputeOverride:
    def test_fixed_parent(self) -> None:
        assert compute_override("zoneOperations", ["projects"]) == ["projects", "zones"]

    def test_global_organization_operations_is_top_level(self) -> None:
        assert compute_override("globalOrganizationOperations", ["locations", "global"]) == []

    def test_region_prefixed_resources(self) -> None:
        assert compute_override("regionBackendServices", ["projects", "global"]) == [
            "projects",
            "regions",
        ]

    def test_regions_itself_is_not_pinned(self) -> None:
        assert compute_override("regions", ["projects"]) == ["projects"]

    def test_url_only_segments_dropped(self) -> None:
        assert compute_override("firewalls", ["projects", "global"]) == ["projects"]


class TestSqladminOverride:
    def test_sql_prefix_dropped(self) -> None:
        assert sqladmin_override("instances", ["sql", "projects"]) == ["projects"]


class TestApplyServiceOverride:
    def test_unknown_service_passes_through(self) -> None:
        original = ["projects", "locations"]
        result = apply_service_override("container", "clusters", original)
        assert result == original
        assert result is not original

    def test_dispatches_to_registered_override(self) -> None:
        assert apply_service_override("storage", "buckets", []) == ["projects"]

    def test_override_applied_to_empty_list(self) -> None:
        assert apply_service_override("compute", "zoneOperations", []) == [
            "projects",
            "zones",
        ]

    def test_register_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "discoli.hierarchy.overrides.SEGMENT_OVERRIDES", dict(SEGMENT_OVERRIDES)
        )
        register_override("pubsub", lambda name, segs: ["projects"] + segs)
        assert apply_service_override("pubsub", "topics", ["x"]) == ["projects", "x"]
