"""Tests for the shared schema helpers."""

import pytest

from avd_provider.exceptions import SchemaValidationError
from avd_provider.schema import (
    WorkspaceConfig,
    describe_schema,
    expand_tags,
    flatten_tags,
    is_force_new,
    load_config,
    normalize_location,
    requires_replacement,
)

BASE = {"name": "acctws123", "location": "westus2", "resource_group_name": "acctestRG-123"}


class TestTags:
    def test_flatten_empty(self):
        assert flatten_tags(None) == {}
        assert flatten_tags({}) == {}

    def test_flatten_none_values(self):
        assert flatten_tags({"env": "test", "owner": None}) == {"env": "test", "owner": ""}

    def test_expand(self):
        assert expand_tags(None) == {}
        assert expand_tags({"env": "test"}) == {"env": "test"}

    def test_too_many_tags(self):
        tags = {f"key{i}": "value" for i in range(51)}
        with pytest.raises(SchemaValidationError) as exc_info:
            load_config(WorkspaceConfig, {**BASE, "tags": tags}, "azurerm_virtual_desktop_workspace")
        assert any("maximum of 50 tags" in e for e in exc_info.value.validation_errors)

    def test_tag_value_too_long(self):
        with pytest.raises(SchemaValidationError):
            load_config(
                WorkspaceConfig,
                {**BASE, "tags": {"env": "x" * 257}},
                "azurerm_virtual_desktop_workspace",
            )


class TestResourceConfig:
    def test_location_normalized(self):
        assert normalize_location("West US 2") == "westus2"
        config = load_config(
            WorkspaceConfig, {**BASE, "location": "West US 2"}, "workspace"
        )
        assert config.location == "westus2"

    def test_tags_default_to_empty(self):
        config = load_config(WorkspaceConfig, BASE, "workspace")
        assert config.tags == {}

    @pytest.mark.parametrize("name", ["-leading", "trailing-", "double--hyphen", "under_score"])
    def test_invalid_names(self, name):
        with pytest.raises(SchemaValidationError) as exc_info:
            load_config(WorkspaceConfig, {**BASE, "name": name}, "workspace")
        assert exc_info.value.validation_errors[0].startswith("name:")

    @pytest.mark.parametrize("group", ["", "ends.", "bad/group", "x" * 91])
    def test_invalid_resource_group_names(self, group):
        with pytest.raises(SchemaValidationError):
            load_config(WorkspaceConfig, {**BASE, "resource_group_name": group}, "workspace")

    def test_unknown_field_rejected(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            load_config(WorkspaceConfig, {**BASE, "colour": "blue"}, "workspace")
        assert "colour" in exc_info.value.validation_errors[0]

    def test_missing_required_fields(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            load_config(WorkspaceConfig, {}, "azurerm_virtual_desktop_workspace")
        fields = {e.split(":")[0] for e in exc_info.value.validation_errors}
        assert fields == {"name", "location", "resource_group_name"}
        assert exc_info.value.context["resource_type"] == "azurerm_virtual_desktop_workspace"


class TestSchemaDescription:
    def test_force_new_fields(self):
        assert is_force_new(WorkspaceConfig, "name")
        assert is_force_new(WorkspaceConfig, "location")
        assert is_force_new(WorkspaceConfig, "resource_group_name")
        assert not is_force_new(WorkspaceConfig, "tags")
        assert not is_force_new(WorkspaceConfig, "friendly_name")

    def test_describe_schema(self):
        fields = {f["name"]: f for f in describe_schema(WorkspaceConfig)}
        assert set(fields) == {
            "name",
            "location",
            "resource_group_name",
            "tags",
            "friendly_name",
            "description",
        }
        assert fields["name"]["required"] is True
        assert fields["name"]["type"] == "string"
        assert fields["tags"]["type"] == "map"
        assert fields["tags"]["required"] is False
        assert fields["friendly_name"]["type"] == "string"
        assert fields["friendly_name"]["force_new"] is False

    def test_requires_replacement(self):
        desired = load_config(WorkspaceConfig, {**BASE, "location": "eastus"}, "workspace")
        current = {**BASE, "tags": {}}
        assert requires_replacement(WorkspaceConfig, current, desired) == ["location"]

    def test_in_place_change_does_not_require_replacement(self):
        desired = load_config(
            WorkspaceConfig, {**BASE, "friendly_name": "Desk"}, "workspace"
        )
        assert requires_replacement(WorkspaceConfig, dict(BASE), desired) == []
