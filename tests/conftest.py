from types import SimpleNamespace
from typing import Any, Dict, List, Tuple
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ResourceNotFoundError

from avd_provider.clients import DesktopVirtualizationClients
from avd_provider.config_manager import (
    AzureCredentialsConfig,
    LoggingConfig,
    PollingConfig,
    ProviderConfig,
)
from avd_provider.handlers import HandlerRegistry
from avd_provider.provider import Provider
from avd_provider.timeout_config import Deadline

SUBSCRIPTION_ID = "12345678-1234-9876-4563-123456789012"


def pytest_addoption(parser):
    """Add custom pytest options for acceptance tests."""
    parser.addoption(
        "--run-acceptance",
        action="store_true",
        default=False,
        help="Run acceptance tests against a real subscription (same as ARM_ACC=1)",
    )


# ============================================================================
# In-memory management API
# ============================================================================


class FakeOperations:
    """In-memory stand-in for an SDK operation group (get/create_or_update/delete).

    Raises the real azure-core exceptions so handlers see the same errors the
    generated clients produce.
    """

    def __init__(self, type_segment: str, subscription_id: str = SUBSCRIPTION_ID):
        self.type_segment = type_segment
        self.subscription_id = subscription_id
        self.items: Dict[Tuple[str, str], SimpleNamespace] = {}
        self.calls: List[Tuple[str, str, str, Dict[str, Any]]] = []
        # method name -> exception raised by that method
        self.failures: Dict[str, Exception] = {}
        self.delete_result: Any = None

    @staticmethod
    def _key(resource_group_name: str, name: str) -> Tuple[str, str]:
        return resource_group_name.lower(), name.lower()

    def resource_id(self, resource_group_name: str, name: str) -> str:
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/{resource_group_name}"
            f"/providers/Microsoft.DesktopVirtualization/{self.type_segment}/{name}"
        )

    def seed(self, resource_group_name: str, name: str, **attributes: Any):
        """Put a resource in place as if it was created outside the provider."""
        item = SimpleNamespace(
            id=self.resource_id(resource_group_name, name), name=name, **attributes
        )
        self.items[self._key(resource_group_name, name)] = item
        return item

    def get(self, resource_group_name: str, name: str, **kwargs: Any):
        self.calls.append(("get", resource_group_name, name, kwargs))
        if "get" in self.failures:
            raise self.failures["get"]
        try:
            return self.items[self._key(resource_group_name, name)]
        except KeyError:
            raise ResourceNotFoundError(
                f"The Resource '{self.type_segment}/{name}' under resource group "
                f"'{resource_group_name}' was not found."
            ) from None

    def create_or_update(
        self, resource_group_name: str, name: str, body: Any, **kwargs: Any
    ):
        self.calls.append(("create_or_update", resource_group_name, name, kwargs))
        if "create_or_update" in self.failures:
            raise self.failures["create_or_update"]
        attributes = {k: v for k, v in vars(body).items() if not k.startswith("_")}
        attributes.pop("id", None)
        attributes.pop("name", None)
        return self.seed(resource_group_name, name, **attributes)

    def delete(self, resource_group_name: str, name: str, **kwargs: Any):
        self.calls.append(("delete", resource_group_name, name, kwargs))
        if "delete" in self.failures:
            raise self.failures["delete"]
        key = self._key(resource_group_name, name)
        if key not in self.items:
            raise ResourceNotFoundError(f"{self.type_segment}/{name} was not found")
        del self.items[key]
        return self.delete_result

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeResourceGroups:
    def __init__(self, subscription_id: str = SUBSCRIPTION_ID):
        self.subscription_id = subscription_id
        self.groups: Dict[str, SimpleNamespace] = {}

    def create_or_update(self, name: str, parameters: Dict[str, Any], **kwargs: Any):
        group = SimpleNamespace(
            id=f"/subscriptions/{self.subscription_id}/resourceGroups/{name}",
            name=name,
            location=parameters["location"],
        )
        self.groups[name] = group
        return group

    def begin_delete(self, name: str, **kwargs: Any):
        self.groups.pop(name, None)
        return None


class FakePoller:
    """Minimal LROPoller look-alike driven by a scripted list of statuses."""

    def __init__(self, statuses: List[str], result: Any = None, error: Exception = None):
        self._statuses = list(statuses)
        self._result = result
        self._error = error
        self.wait_timeouts: List[float] = []

    def status(self) -> str:
        return self._statuses[0]

    def done(self) -> bool:
        return self._statuses[0].lower() in ("succeeded", "failed", "canceled")

    def wait(self, timeout: float = None) -> None:
        self.wait_timeouts.append(timeout)
        if self._error is not None:
            raise self._error
        if len(self._statuses) > 1:
            self._statuses.pop(0)

    def result(self) -> Any:
        return self._result


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_handler_registry():
    """Start every test from a freshly populated handler registry."""
    HandlerRegistry.clear()
    yield
    HandlerRegistry.clear()


@pytest.fixture
def make_poller():
    """Factory for scripted long-running operation pollers."""
    return FakePoller


@pytest.fixture
def fake_dv_client():
    return SimpleNamespace(
        workspaces=FakeOperations("workspaces"),
        application_groups=FakeOperations("applicationGroups"),
        host_pools=FakeOperations("hostPools"),
    )


@pytest.fixture
def fake_resource_client():
    return SimpleNamespace(resource_groups=FakeResourceGroups())


@pytest.fixture
def clients(fake_dv_client, fake_resource_client):
    return DesktopVirtualizationClients(
        subscription_id=SUBSCRIPTION_ID,
        credential=MagicMock(),
        desktop_virtualization_client=fake_dv_client,
        resource_client=fake_resource_client,
    )


@pytest.fixture
def deadline():
    return Deadline(300, operation="test")


@pytest.fixture
def provider_config():
    return ProviderConfig(
        credentials=AzureCredentialsConfig(
            client_id="client-id",
            client_secret="client-secret",
            tenant_id="tenant-id",
            subscription_id=SUBSCRIPTION_ID,
        ),
        logging=LoggingConfig(level="INFO", file_output=None, json_output=False),
        polling=PollingConfig(poll_interval=0.01),
    )


@pytest.fixture
def provider(provider_config, clients):
    return Provider(provider_config, clients=clients)


@pytest.fixture
def host_pool_id():
    return (
        f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/acctestRG-123"
        "/providers/Microsoft.DesktopVirtualization/hostPools/acctesthp123"
    )


@pytest.fixture
def workspace_config() -> Dict[str, Any]:
    return {
        "name": "acctws123",
        "location": "westus2",
        "resource_group_name": "acctestRG-123",
    }


@pytest.fixture
def application_group_config(host_pool_id) -> Dict[str, Any]:
    return {
        "name": "acctag123",
        "location": "West US 2",
        "resource_group_name": "acctestRG-123",
        "type": "Desktop",
        "host_pool_id": host_pool_id,
    }
