"""Virtual Desktop Workspace lifecycle handler.

Handles: Microsoft.DesktopVirtualization/workspaces
Manages: azurerm_virtual_desktop_workspace
"""

from typing import Any, ClassVar, Set, Type

from azure.mgmt.desktopvirtualization.models import Workspace

from ..clients import DesktopVirtualizationClients
from ..parse import WorkspaceId
from ..schema import WorkspaceConfig, expand_tags
from ..state import ResourceData
from . import handler
from .base_handler import ResourceHandler


@handler
class WorkspaceHandler(ResourceHandler):
    """Handler for Azure Virtual Desktop workspaces."""

    TERRAFORM_TYPE: ClassVar[str] = "azurerm_virtual_desktop_workspace"
    HANDLED_TYPES: ClassVar[Set[str]] = {
        "Microsoft.DesktopVirtualization/workspaces",
    }
    DISPLAY_NAME: ClassVar[str] = "Virtual Desktop Workspace"
    ID_TYPE: ClassVar[Type[WorkspaceId]] = WorkspaceId
    CONFIG_MODEL: ClassVar[Type[WorkspaceConfig]] = WorkspaceConfig

    def operations(self, clients: DesktopVirtualizationClients) -> Any:
        return clients.workspaces

    def build_payload(self, config: WorkspaceConfig) -> Workspace:
        return Workspace(
            location=config.location,
            tags=expand_tags(config.tags),
            friendly_name=config.friendly_name,
            description=config.description,
        )

    def flatten(self, remote: Any, data: ResourceData) -> None:
        data.set("friendly_name", getattr(remote, "friendly_name", None))
        data.set("description", getattr(remote, "description", None))
