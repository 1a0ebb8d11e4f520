"""Tests for the management client holder."""

from unittest.mock import MagicMock, patch

import pytest

from avd_provider.clients import DesktopVirtualizationClients
from avd_provider.config_manager import AzureCredentialsConfig
from avd_provider.exceptions import MissingConfigurationError


class TestDesktopVirtualizationClients:
    def test_operation_groups_come_from_injected_clients(
        self, clients, fake_dv_client, fake_resource_client
    ):
        assert clients.workspaces is fake_dv_client.workspaces
        assert clients.application_groups is fake_dv_client.application_groups
        assert clients.resource_groups is fake_resource_client.resource_groups

    def test_from_config_builds_credential(self):
        config = AzureCredentialsConfig(
            client_id="client", client_secret="secret", tenant_id="tenant", subscription_id="sub"
        )
        with patch("avd_provider.clients.ClientSecretCredential") as mock_credential:
            clients = DesktopVirtualizationClients.from_config(config)

        mock_credential.assert_called_once_with(
            tenant_id="tenant", client_id="client", client_secret="secret"
        )
        assert clients.subscription_id == "sub"
        assert clients.credential is mock_credential.return_value

    def test_from_config_requires_credentials(self):
        config = AzureCredentialsConfig(
            client_id="", client_secret="", tenant_id="", subscription_id=""
        )
        with pytest.raises(MissingConfigurationError):
            DesktopVirtualizationClients.from_config(config)

    def test_desktop_virtualization_client_is_lazy(self):
        credential = MagicMock()
        clients = DesktopVirtualizationClients("sub", credential)
        with patch("avd_provider.clients.DesktopVirtualizationMgmtClient") as mock_client:
            first = clients.desktop_virtualization
            second = clients.desktop_virtualization

        mock_client.assert_called_once_with(credential=credential, subscription_id="sub")
        assert first is second

    def test_close(self):
        dv_client = MagicMock()
        clients = DesktopVirtualizationClients("sub", MagicMock(), desktop_virtualization_client=dv_client)
        clients.close()
        dv_client.close.assert_called_once()
