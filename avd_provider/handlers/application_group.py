"""Virtual Desktop Application Group lifecycle handler.

Handles: Microsoft.DesktopVirtualization/applicationGroups
Manages: azurerm_virtual_desktop_application_group
"""

from typing import Any, ClassVar, Set, Type

from azure.mgmt.desktopvirtualization.models import ApplicationGroup

from ..clients import DesktopVirtualizationClients
from ..parse import ApplicationGroupId
from ..schema import ApplicationGroupConfig, expand_tags
from ..state import ResourceData
from . import handler
from .base_handler import ResourceHandler


@handler
class ApplicationGroupHandler(ResourceHandler):
    """Handler for Azure Virtual Desktop application groups.

    An application group is either a full ``Desktop`` or a set of
    ``RemoteApp`` applications published from one host pool.
    """

    TERRAFORM_TYPE: ClassVar[str] = "azurerm_virtual_desktop_application_group"
    HANDLED_TYPES: ClassVar[Set[str]] = {
        "Microsoft.DesktopVirtualization/applicationGroups",
    }
    DISPLAY_NAME: ClassVar[str] = "Virtual Desktop Application Group"
    ID_TYPE: ClassVar[Type[ApplicationGroupId]] = ApplicationGroupId
    CONFIG_MODEL: ClassVar[Type[ApplicationGroupConfig]] = ApplicationGroupConfig

    def operations(self, clients: DesktopVirtualizationClients) -> Any:
        return clients.application_groups

    def build_payload(self, config: ApplicationGroupConfig) -> ApplicationGroup:
        return ApplicationGroup(
            location=config.location,
            tags=expand_tags(config.tags),
            application_group_type=config.type,
            host_pool_arm_path=config.host_pool_id,
            friendly_name=config.friendly_name,
            description=config.description,
        )

    def flatten(self, remote: Any, data: ResourceData) -> None:
        group_type = getattr(remote, "application_group_type", None)
        # The SDK may hand back either the enum member or its string value
        data.set("type", getattr(group_type, "value", group_type))
        data.set("host_pool_id", getattr(remote, "host_pool_arm_path", None))
        data.set("friendly_name", getattr(remote, "friendly_name", None))
        data.set("description", getattr(remote, "description", None))
