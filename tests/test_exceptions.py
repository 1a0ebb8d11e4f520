"""Tests for the provider exception hierarchy."""

import re

from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
)

from avd_provider.exceptions import (
    AvdProviderError,
    ImportNotFoundError,
    MalformedIdError,
    RemoteError,
    RemoteNotFoundError,
    ResourceAlreadyExistsError,
    is_not_found,
    wrap_azure_exception,
)

WORKSPACE_ID = (
    "/subscriptions/12345678-1234-9876-4563-123456789012/resourceGroups/acctestRG-123"
    "/providers/Microsoft.DesktopVirtualization/workspaces/acctws123"
)


class TestAvdProviderError:
    def test_str_includes_code_context_and_suggestion(self):
        error = AvdProviderError(
            "Something failed",
            error_code="E1",
            context={"name": "acctws123"},
            recovery_suggestion="Try again",
        )
        text = str(error)
        assert text.startswith("[E1] Something failed")
        assert "name=acctws123" in text
        assert "(suggestion: Try again)" in text

    def test_to_dict(self):
        cause = ValueError("boom")
        error = AvdProviderError("Wrapped", cause=cause)
        data = error.to_dict()
        assert data["error_type"] == "AvdProviderError"
        assert data["message"] == "Wrapped"
        assert data["cause"] == "boom"


class TestResourceErrors:
    def test_malformed_id_carries_id(self):
        error = MalformedIdError("ID was empty", resource_id="")
        assert error.error_code == "MALFORMED_ID"
        assert error.context["resource_id"] == ""

    def test_already_exists_message_matches_import_convention(self):
        error = ResourceAlreadyExistsError(
            WORKSPACE_ID, "azurerm_virtual_desktop_workspace"
        )
        assert re.search(
            "to be managed via Terraform this resource needs to be imported into the State",
            str(error),
        )
        assert WORKSPACE_ID in error.message
        assert "azurerm_virtual_desktop_workspace" in error.message
        assert error.resource_id == WORKSPACE_ID

    def test_import_not_found_is_not_found(self):
        error = ImportNotFoundError(WORKSPACE_ID, "azurerm_virtual_desktop_workspace")
        assert isinstance(error, RemoteNotFoundError)
        assert "Cannot import non-existent remote object" in error.message

    def test_remote_error_context(self):
        error = RemoteError(
            "Error creating",
            resource_kind="Virtual Desktop Workspace",
            name="acctws123",
            resource_group="acctestRG-123",
        )
        assert error.context == {
            "resource_kind": "Virtual Desktop Workspace",
            "name": "acctws123",
            "resource_group": "acctestRG-123",
        }


class TestAzureErrorHelpers:
    def test_is_not_found(self):
        assert is_not_found(ResourceNotFoundError("gone"))

        response_error = HttpResponseError("not here")
        response_error.status_code = 404
        assert is_not_found(response_error)

        conflict = HttpResponseError("conflict")
        conflict.status_code = 409
        assert not is_not_found(conflict)
        assert not is_not_found(ValueError("nope"))

    def test_wrap_not_found(self):
        wrapped = wrap_azure_exception(ResourceNotFoundError("gone"), "Error reading")
        assert isinstance(wrapped, RemoteNotFoundError)
        assert wrapped.error_code == "NOT_FOUND"

    def test_wrap_authentication_error(self):
        wrapped = wrap_azure_exception(
            ClientAuthenticationError("denied"), "Error reading", name="acctws123"
        )
        assert type(wrapped) is RemoteError
        assert wrapped.error_code == "AZURE_AUTH_FAILED"
        assert "ARM_CLIENT_ID" in wrapped.recovery_suggestion

    def test_wrap_request_error(self):
        cause = ServiceRequestError("connection reset")
        wrapped = wrap_azure_exception(cause, "Error creating")
        assert wrapped.error_code == "AZURE_REQUEST_FAILED"
        assert wrapped.cause is cause
