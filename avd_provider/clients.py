"""
Azure management API clients.

``DesktopVirtualizationClients`` is the handle passed explicitly into every
lifecycle handler call. It owns the service principal credential and lazily
builds the generated SDK clients.
"""

import logging
from typing import Any, Optional

from azure.identity import ClientSecretCredential
from azure.mgmt.desktopvirtualization import DesktopVirtualizationMgmtClient
from azure.mgmt.resource import ResourceManagementClient

from .config_manager import AzureCredentialsConfig

logger = logging.getLogger(__name__)


class DesktopVirtualizationClients:
    """Holds the management clients used by the lifecycle handlers.

    Attributes:
        subscription_id: Subscription every client is scoped to
        credential: Azure credential shared by all clients
    """

    def __init__(
        self,
        subscription_id: str,
        credential: Any,
        desktop_virtualization_client: Optional[Any] = None,
        resource_client: Optional[Any] = None,
    ) -> None:
        """
        Args:
            subscription_id: Target subscription ID
            credential: Azure credential (e.g. ClientSecretCredential)
            desktop_virtualization_client: Pre-built client, mainly for tests
            resource_client: Pre-built ResourceManagementClient, mainly for tests
        """
        self.subscription_id = subscription_id
        self.credential = credential
        self._desktop_virtualization_client = desktop_virtualization_client
        self._resource_client = resource_client

    @classmethod
    def from_config(cls, config: AzureCredentialsConfig) -> "DesktopVirtualizationClients":
        """Build clients from service principal credentials."""
        config.validate()
        masked_tenant = (
            config.tenant_id[:8] + "..." if len(config.tenant_id) > 8 else config.tenant_id
        )
        logger.debug(f"Creating ClientSecretCredential for tenant {masked_tenant}")
        credential = ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )
        return cls(subscription_id=config.subscription_id, credential=credential)

    @property
    def desktop_virtualization(self) -> Any:
        """Get or create the DesktopVirtualizationMgmtClient."""
        if self._desktop_virtualization_client is None:
            self._desktop_virtualization_client = DesktopVirtualizationMgmtClient(
                credential=self.credential, subscription_id=self.subscription_id
            )
        return self._desktop_virtualization_client

    @property
    def resource(self) -> Any:
        """Get or create the ResourceManagementClient."""
        if self._resource_client is None:
            self._resource_client = ResourceManagementClient(
                credential=self.credential, subscription_id=self.subscription_id
            )
        return self._resource_client

    @property
    def workspaces(self) -> Any:
        return self.desktop_virtualization.workspaces

    @property
    def application_groups(self) -> Any:
        return self.desktop_virtualization.application_groups

    @property
    def resource_groups(self) -> Any:
        return self.resource.resource_groups

    def close(self) -> None:
        for client in (self._desktop_virtualization_client, self._resource_client):
            if client is not None and hasattr(client, "close"):
                client.close()
