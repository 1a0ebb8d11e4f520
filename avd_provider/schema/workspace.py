"""Configuration model for azurerm_virtual_desktop_workspace."""

from typing import Annotated, Optional

from pydantic import Field

from .common import ResourceConfig


class WorkspaceConfig(ResourceConfig):
    """Declarative configuration of a Virtual Desktop Workspace."""

    friendly_name: Optional[Annotated[str, Field(min_length=1, max_length=64)]] = (
        Field(default=None, description="Friendly name shown to end users")
    )
    description: Optional[Annotated[str, Field(min_length=1, max_length=512)]] = (
        Field(default=None, description="Description of the workspace")
    )
