"""
Shared schema building blocks for resource configuration models.

Resource kinds declare their configuration as pydantic models. Field
metadata (``json_schema_extra``) marks immutable fields with
``force_new``: changing such a field requires replacing the resource
rather than updating it in place.
"""

import logging
import re
import typing
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import SchemaValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

FORCE_NEW = {"force_new": True}

MAX_TAG_COUNT = 50
MAX_TAG_KEY_LENGTH = 512
MAX_TAG_VALUE_LENGTH = 256

_RESOURCE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9](-?[a-zA-Z0-9])*$")
_RESOURCE_GROUP_PATTERN = re.compile(r"^[-\w._()]+$")


def normalize_location(location: str) -> str:
    """Normalize an Azure location ("West US 2" -> "westus2")."""
    return location.replace(" ", "").lower()


def validate_resource_group_name(value: str) -> str:
    if not value:
        raise ValueError("resource_group_name cannot be blank")
    if len(value) > 90:
        raise ValueError("resource_group_name may not exceed 90 characters in length")
    if value.endswith("."):
        raise ValueError("resource_group_name cannot end with a period")
    if not _RESOURCE_GROUP_PATTERN.match(value):
        raise ValueError(
            "resource_group_name can only contain alphanumeric characters, "
            "periods, underscores, hyphens and parenthesis"
        )
    return value


def validate_tags(tags: Mapping[str, str]) -> Dict[str, str]:
    if len(tags) > MAX_TAG_COUNT:
        raise ValueError(
            f"a maximum of {MAX_TAG_COUNT} tags can be applied to each resource"
        )
    for key, value in tags.items():
        if len(key) > MAX_TAG_KEY_LENGTH:
            raise ValueError(
                f"the maximum length for a tag key is {MAX_TAG_KEY_LENGTH} characters: "
                f"{key!r} is {len(key)} characters"
            )
        if len(value) > MAX_TAG_VALUE_LENGTH:
            raise ValueError(
                f"the maximum length for a tag value is {MAX_TAG_VALUE_LENGTH} "
                f"characters: the value for {key!r} is {len(value)} characters"
            )
    return dict(tags)


def expand_tags(tags: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Declarative tags -> API payload tags."""
    return dict(tags or {})


def flatten_tags(tags: Optional[Mapping[str, Optional[str]]]) -> Dict[str, str]:
    """API response tags -> declarative tags (``None`` becomes empty)."""
    if not tags:
        return {}
    return {key: value if value is not None else "" for key, value in tags.items()}


class ResourceConfig(BaseModel):
    """Fields shared by every resource group scoped resource kind."""

    name: str = Field(
        description="Name of the resource",
        json_schema_extra=FORCE_NEW,
    )
    location: str = Field(
        description="Azure region the resource lives in",
        json_schema_extra=FORCE_NEW,
    )
    resource_group_name: str = Field(
        description="Resource group containing the resource",
        json_schema_extra=FORCE_NEW,
    )
    tags: Dict[str, str] = Field(
        default_factory=dict,
        description="Tags assigned to the resource",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _RESOURCE_NAME_PATTERN.match(v):
            raise ValueError(
                "name can only include alphanumeric characters and hyphens, "
                "and must start and end with an alphanumeric character"
            )
        return v

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        normalized = normalize_location(v)
        if not normalized:
            raise ValueError("location cannot be blank")
        return normalized

    @field_validator("resource_group_name")
    @classmethod
    def validate_resource_group(cls, v: str) -> str:
        return validate_resource_group_name(v)

    @field_validator("tags")
    @classmethod
    def validate_tag_limits(cls, v: Dict[str, str]) -> Dict[str, str]:
        return validate_tags(v)


def load_config(model: Type[M], data: Mapping[str, Any], resource_type: str) -> M:
    """Validate raw configuration against a resource kind's model.

    Raises:
        SchemaValidationError: If the configuration is invalid
    """
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise SchemaValidationError(
            f"Invalid configuration for {resource_type}",
            resource_type=resource_type,
            validation_errors=errors,
            cause=e,
        ) from e


def _type_label(annotation: Any) -> str:
    origin = typing.get_origin(annotation)
    if origin is typing.Union:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return _type_label(args[0]) if len(args) == 1 else "any"
    if origin is typing.Annotated:
        return _type_label(typing.get_args(annotation)[0])
    if origin is typing.Literal:
        return "string"
    if origin in (dict, typing.Dict) or annotation is dict:
        return "map"
    if origin in (list, typing.List) or annotation is list:
        return "list"
    if annotation is str:
        return "string"
    if annotation is bool:
        return "bool"
    if annotation in (int, float):
        return "number"
    return "any"


def is_force_new(model: Type[BaseModel], field_name: str) -> bool:
    extra = model.model_fields[field_name].json_schema_extra
    return isinstance(extra, dict) and bool(extra.get("force_new"))


def describe_schema(model: Type[BaseModel]) -> List[Dict[str, Any]]:
    """Describe each field of a configuration model.

    Returns:
        List of dicts with name, type, required, force_new, description
    """
    fields = []
    for field_name, field_info in model.model_fields.items():
        metadata = list(field_info.metadata)
        fields.append(
            {
                "name": field_name,
                "type": _type_label(field_info.annotation),
                "required": field_info.is_required(),
                "force_new": is_force_new(model, field_name),
                "description": field_info.description or "",
                "constraints": [repr(m) for m in metadata],
            }
        )
    return fields


def requires_replacement(
    model: Type[BaseModel], current: Mapping[str, Any], desired: BaseModel
) -> List[str]:
    """Return the force-new fields whose desired value differs from current state."""
    changed = []
    for field_name in model.model_fields:
        if not is_force_new(model, field_name):
            continue
        if current.get(field_name) != getattr(desired, field_name):
            changed.append(field_name)
    return changed
