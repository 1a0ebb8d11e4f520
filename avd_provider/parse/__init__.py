"""Resource ID parsing and formatting."""

from .desktop_virtualization import (
    PROVIDER_NAMESPACE,
    ApplicationGroupId,
    DesktopVirtualizationId,
    HostPoolId,
    WorkspaceId,
)
from .resource_id import AzureResourceId, build_resource_group_id

__all__ = [
    "PROVIDER_NAMESPACE",
    "ApplicationGroupId",
    "AzureResourceId",
    "DesktopVirtualizationId",
    "HostPoolId",
    "WorkspaceId",
    "build_resource_group_id",
]
