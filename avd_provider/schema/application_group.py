"""Configuration model for azurerm_virtual_desktop_application_group."""

from typing import Annotated, Literal, Optional

from pydantic import Field, field_validator

from ..exceptions import MalformedIdError
from ..parse import HostPoolId
from .common import FORCE_NEW, ResourceConfig

APPLICATION_GROUP_TYPES = ("Desktop", "RemoteApp")


class ApplicationGroupConfig(ResourceConfig):
    """Declarative configuration of a Virtual Desktop Application Group."""

    type: Literal["Desktop", "RemoteApp"] = Field(
        description="Application group type: Desktop or RemoteApp",
        json_schema_extra=FORCE_NEW,
    )
    host_pool_id: str = Field(
        description="Resource ID of the host pool the group belongs to",
    )
    friendly_name: Optional[Annotated[str, Field(min_length=1, max_length=64)]] = (
        Field(default=None, description="Friendly name shown to end users")
    )
    description: Optional[Annotated[str, Field(min_length=1, max_length=512)]] = (
        Field(default=None, description="Description of the application group")
    )

    @field_validator("host_pool_id")
    @classmethod
    def validate_host_pool_id(cls, v: str) -> str:
        try:
            HostPoolId.parse(v)
        except MalformedIdError as e:
            raise ValueError(f"host_pool_id is not a valid host pool ID: {e.message}") from e
        return v
