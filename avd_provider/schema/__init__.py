"""Strongly typed configuration models per resource kind."""

from .application_group import APPLICATION_GROUP_TYPES, ApplicationGroupConfig
from .common import (
    ResourceConfig,
    describe_schema,
    expand_tags,
    flatten_tags,
    is_force_new,
    load_config,
    normalize_location,
    requires_replacement,
)
from .workspace import WorkspaceConfig

__all__ = [
    "APPLICATION_GROUP_TYPES",
    "ApplicationGroupConfig",
    "ResourceConfig",
    "WorkspaceConfig",
    "describe_schema",
    "expand_tags",
    "flatten_tags",
    "is_force_new",
    "load_config",
    "normalize_location",
    "requires_replacement",
]
