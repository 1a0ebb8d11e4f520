"""Tests for the Virtual Desktop Workspace lifecycle handler.

Test coverage:
- Create with existence probe, upsert and re-fetch
- Import collision on fresh creation
- Read with not-found clearing the state
- Update in place
- Delete (including deleting an already-deleted workspace)
- Exists and import
- Remote failures surfacing as RemoteError
"""

import pytest
from azure.core.exceptions import HttpResponseError, ServiceRequestError

from avd_provider.exceptions import (
    ImportNotFoundError,
    MalformedIdError,
    OperationTimeoutError,
    RemoteError,
    ResourceAlreadyExistsError,
    SchemaValidationError,
)
from avd_provider.handlers.workspace import WorkspaceHandler
from avd_provider.parse import WorkspaceId
from avd_provider.state import ResourceData
from avd_provider.timeout_config import Deadline

WORKSPACE = "azurerm_virtual_desktop_workspace"


@pytest.fixture
def handler():
    return WorkspaceHandler(poll_interval=0.01)


@pytest.fixture
def workspaces(fake_dv_client):
    return fake_dv_client.workspaces


def _server_error(status_code: int, message: str = "server error") -> HttpResponseError:
    error = HttpResponseError(message)
    error.status_code = status_code
    return error


class TestWorkspaceCreate:
    def test_create_basic(self, handler, clients, deadline, workspace_config, workspaces):
        data = ResourceData(WORKSPACE, attributes=workspace_config)

        handler.create_update(data, clients, deadline)

        assert data.id == workspaces.resource_id("acctestRG-123", "acctws123")
        assert data.get("name") == "acctws123"
        assert data.get("resource_group_name") == "acctestRG-123"
        assert data.get("location") == "westus2"
        assert data.get("tags") == {}
        assert len(data.get("tags")) == 0
        assert data.get("friendly_name") is None
        assert workspaces.call_names() == ["get", "create_or_update", "get", "get"]

    def test_create_complete(self, handler, clients, deadline, workspace_config):
        data = ResourceData(
            WORKSPACE,
            attributes={
                **workspace_config,
                "location": "West US 2",
                "friendly_name": "acceptance test",
                "description": "acceptance test by creating acctws123",
                "tags": {"env": "test"},
            },
        )

        handler.create_update(data, clients, deadline)

        assert data.get("location") == "westus2"
        assert data.get("friendly_name") == "acceptance test"
        assert data.get("description") == "acceptance test by creating acctws123"
        assert data.get("tags") == {"env": "test"}

    def test_calls_receive_remaining_budget(
        self, handler, clients, workspace_config, workspaces
    ):
        deadline = Deadline(120, operation="create")
        handler.create_update(ResourceData(WORKSPACE, attributes=workspace_config), clients, deadline)

        for _, _, _, kwargs in workspaces.calls:
            assert 0 < kwargs["timeout"] <= 120

    def test_create_collides_with_existing(
        self, handler, clients, deadline, workspace_config, workspaces
    ):
        handler.create_update(
            ResourceData(WORKSPACE, attributes=workspace_config), clients, deadline
        )
        second = ResourceData(WORKSPACE, attributes=workspace_config)

        with pytest.raises(ResourceAlreadyExistsError) as exc_info:
            handler.create_update(second, clients, deadline)

        existing_id = workspaces.resource_id("acctestRG-123", "acctws123")
        assert exc_info.value.resource_id == existing_id
        assert existing_id in str(exc_info.value)
        assert WORKSPACE in str(exc_info.value)
        assert "needs to be imported into the State" in str(exc_info.value)
        assert second.is_new_resource()
        assert workspaces.call_names().count("create_or_update") == 1

    def test_probe_failure_is_remote_error(
        self, handler, clients, deadline, workspace_config, workspaces
    ):
        workspaces.failures["get"] = _server_error(500)
        with pytest.raises(RemoteError, match="Error checking for presence of existing"):
            handler.create_update(
                ResourceData(WORKSPACE, attributes=workspace_config), clients, deadline
            )
        assert "create_or_update" not in workspaces.call_names()

    def test_upsert_failure_is_remote_error(
        self, handler, clients, deadline, workspace_config, workspaces
    ):
        workspaces.failures["create_or_update"] = _server_error(400, "LocationNotAvailable")
        data = ResourceData(WORKSPACE, attributes=workspace_config)

        with pytest.raises(RemoteError) as exc_info:
            handler.create_update(data, clients, deadline)

        assert "Error creating Virtual Desktop Workspace 'acctws123'" in str(exc_info.value)
        assert exc_info.value.context["resource_group"] == "acctestRG-123"
        assert data.is_new_resource()

    def test_missing_id_after_create(
        self, handler, clients, deadline, workspace_config, workspaces
    ):
        original = workspaces.create_or_update

        def create_without_id(resource_group_name, name, body, **kwargs):
            item = original(resource_group_name, name, body, **kwargs)
            item.id = None
            return item

        workspaces.create_or_update = create_without_id

        with pytest.raises(RemoteError, match="Cannot read Virtual Desktop Workspace"):
            handler.create_update(
                ResourceData(WORKSPACE, attributes=workspace_config), clients, deadline
            )

    def test_invalid_configuration(self, handler, clients, deadline, workspaces):
        data = ResourceData(WORKSPACE, attributes={"name": "acctws123"})
        with pytest.raises(SchemaValidationError):
            handler.create_update(data, clients, deadline)
        assert workspaces.calls == []

    def test_expired_deadline(self, handler, clients, workspace_config, workspaces):
        now = [0.0]
        deadline = Deadline(1, clock=lambda: now[0])
        now[0] = 5.0
        with pytest.raises(OperationTimeoutError):
            handler.create_update(
                ResourceData(WORKSPACE, attributes=workspace_config), clients, deadline
            )
        assert workspaces.calls == []


class TestWorkspaceUpdate:
    def test_update_in_place_skips_probe(
        self, handler, clients, deadline, workspace_config, workspaces
    ):
        data = ResourceData(WORKSPACE, attributes=workspace_config)
        handler.create_update(data, clients, deadline)
        workspaces.calls.clear()

        data.set("friendly_name", "Renamed")
        data.set("tags", {"owner": "ops"})
        handler.create_update(data, clients, deadline)

        assert workspaces.call_names() == ["create_or_update", "get", "get"]
        assert data.get("friendly_name") == "Renamed"
        assert data.get("tags") == {"owner": "ops"}


class TestWorkspaceRead:
    def test_read_refreshes_remote_changes(
        self, handler, clients, deadline, workspaces
    ):
        workspaces.seed(
            "acctestRG-123",
            "acctws123",
            location="West US 2",
            tags={"env": None},
            friendly_name="Remote",
            description=None,
        )
        data = ResourceData(
            WORKSPACE, resource_id=workspaces.resource_id("acctestRG-123", "acctws123")
        )

        handler.read(data, clients, deadline)

        assert data.get("name") == "acctws123"
        assert data.get("location") == "westus2"
        assert data.get("tags") == {"env": ""}
        assert data.get("friendly_name") == "Remote"

    def test_read_missing_clears_state(self, handler, clients, deadline, workspaces):
        data = ResourceData(
            WORKSPACE,
            attributes={"name": "acctws123"},
            resource_id=workspaces.resource_id("acctestRG-123", "acctws123"),
        )

        result = handler.read(data, clients, deadline)

        assert result is data
        assert data.is_new_resource()
        assert data.attributes == {}

    def test_read_missing_via_http_404(self, handler, clients, deadline, workspaces):
        workspaces.failures["get"] = _server_error(404)
        data = ResourceData(
            WORKSPACE, resource_id=workspaces.resource_id("acctestRG-123", "acctws123")
        )
        handler.read(data, clients, deadline)
        assert data.is_new_resource()

    def test_read_failure_is_remote_error(self, handler, clients, deadline, workspaces):
        workspaces.failures["get"] = ServiceRequestError("connection reset")
        data = ResourceData(
            WORKSPACE, resource_id=workspaces.resource_id("acctestRG-123", "acctws123")
        )
        with pytest.raises(RemoteError, match="Error making Read request on") as exc_info:
            handler.read(data, clients, deadline)
        assert exc_info.value.error_code == "AZURE_REQUEST_FAILED"
        assert not data.is_new_resource()

    def test_read_malformed_id(self, handler, clients, deadline):
        data = ResourceData(WORKSPACE, resource_id="/subscriptions/sub-1/resourceGroups")
        with pytest.raises(MalformedIdError):
            handler.read(data, clients, deadline)


class TestWorkspaceDelete:
    def test_delete(self, handler, clients, deadline, workspace_config, workspaces):
        data = ResourceData(WORKSPACE, attributes=workspace_config)
        handler.create_update(data, clients, deadline)

        handler.delete(data, clients, deadline)

        assert data.is_new_resource()
        assert workspaces.items == {}

    def test_delete_twice_succeeds(self, handler, clients, deadline, workspace_config):
        data = ResourceData(WORKSPACE, attributes=workspace_config)
        handler.create_update(data, clients, deadline)
        resource_id = data.id

        handler.delete(data, clients, deadline)
        again = ResourceData(WORKSPACE, resource_id=resource_id)
        handler.delete(again, clients, deadline)

        assert again.is_new_resource()

    def test_delete_waits_for_long_running_operation(
        self, handler, clients, deadline, workspace_config, workspaces, make_poller
    ):
        data = ResourceData(WORKSPACE, attributes=workspace_config)
        handler.create_update(data, clients, deadline)
        poller = make_poller(["Deleting", "Succeeded"])
        workspaces.delete_result = poller

        handler.delete(data, clients, deadline)

        assert len(poller.wait_timeouts) == 1
        assert data.is_new_resource()

    def test_failed_delete_operation_surfaces(
        self, handler, clients, deadline, workspace_config, workspaces, make_poller
    ):
        data = ResourceData(WORKSPACE, attributes=workspace_config)
        handler.create_update(data, clients, deadline)
        workspaces.delete_result = make_poller(["Deleting", "Failed"])

        with pytest.raises(RemoteError, match="Error waiting for deletion of"):
            handler.delete(data, clients, deadline)
        assert not data.is_new_resource()

    def test_delete_request_failure(
        self, handler, clients, deadline, workspace_config, workspaces
    ):
        data = ResourceData(WORKSPACE, attributes=workspace_config)
        handler.create_update(data, clients, deadline)
        workspaces.failures["delete"] = _server_error(409, "Conflict")

        with pytest.raises(RemoteError, match="Error deleting Virtual Desktop Workspace"):
            handler.delete(data, clients, deadline)


class TestWorkspaceExistsAndImport:
    def test_exists(self, handler, clients, deadline, workspaces):
        workspaces.seed("acctestRG-123", "acctws123", location="westus2")
        assert handler.exists(
            WorkspaceId("sub", "acctestRG-123", "acctws123"), clients, deadline
        )
        assert not handler.exists(
            workspaces.resource_id("acctestRG-123", "other"), clients, deadline
        )

    def test_exists_failure(self, handler, clients, deadline, workspaces):
        workspaces.failures["get"] = _server_error(403, "Forbidden")
        with pytest.raises(RemoteError):
            handler.exists(
                workspaces.resource_id("acctestRG-123", "acctws123"), clients, deadline
            )

    def test_import(self, handler, clients, deadline, workspaces):
        workspaces.seed(
            "acctestRG-123", "acctws123", location="westus2", tags={}, friendly_name="Imported"
        )
        resource_id = workspaces.resource_id("acctestRG-123", "acctws123")

        data = handler.import_state(resource_id, clients, deadline)

        assert data.id == resource_id
        assert data.resource_type == WORKSPACE
        assert data.get("friendly_name") == "Imported"

    def test_import_missing(self, handler, clients, deadline, workspaces):
        with pytest.raises(ImportNotFoundError):
            handler.import_state(
                workspaces.resource_id("acctestRG-123", "acctws123"), clients, deadline
            )

    def test_import_validates_id_before_fetching(self, handler, clients, deadline, workspaces):
        host_pool = (
            "/subscriptions/sub/resourceGroups/rg/providers/"
            "Microsoft.DesktopVirtualization/hostPools/pool1"
        )
        with pytest.raises(MalformedIdError):
            handler.import_state(host_pool, clients, deadline)
        assert workspaces.calls == []
