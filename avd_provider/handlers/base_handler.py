"""Base handler interface for resource lifecycle handlers.

This module defines the abstract base class that all resource handlers
implement. Each handler owns one resource kind and translates declarative
state into management API calls and back:

- create_update: existence probe (fresh creations only), upsert, re-fetch
- read: refresh state from the API, clearing it when the resource is gone
- delete: delete and block until the long-running operation completes
- exists: presence check by identifier
- import_state: validate an ID and adopt the existing resource into state

Handlers are stateless between invocations: the API clients and the
deadline are passed into every call.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Set, Type, Union

import structlog
from azure.core.exceptions import AzureError

from ..clients import DesktopVirtualizationClients
from ..exceptions import (
    ImportNotFoundError,
    RemoteError,
    ResourceAlreadyExistsError,
    is_not_found,
    wrap_azure_exception,
)
from ..parse import DesktopVirtualizationId
from ..polling import await_completion
from ..schema import ResourceConfig, flatten_tags, load_config, normalize_location
from ..state import ResourceData
from ..timeout_config import Deadline, ResourceTimeouts

logger = structlog.get_logger(__name__)


class ResourceHandler(ABC):
    """Abstract base class for resource lifecycle handlers.

    Usage:
        @handler
        class WorkspaceHandler(ResourceHandler):
            TERRAFORM_TYPE = "azurerm_virtual_desktop_workspace"
            HANDLED_TYPES = {"Microsoft.DesktopVirtualization/workspaces"}
            ...
    """

    # Orchestrator type name, e.g. "azurerm_virtual_desktop_workspace"
    TERRAFORM_TYPE: ClassVar[str] = ""

    # Azure resource types handled; subclasses MUST override this
    HANDLED_TYPES: ClassVar[Set[str]] = set()

    # Human readable kind used in messages
    DISPLAY_NAME: ClassVar[str] = ""

    ID_TYPE: ClassVar[Type[DesktopVirtualizationId]] = DesktopVirtualizationId
    CONFIG_MODEL: ClassVar[Type[ResourceConfig]] = ResourceConfig
    TIMEOUTS: ClassVar[ResourceTimeouts] = ResourceTimeouts()

    def __init__(self, poll_interval: float = 10.0) -> None:
        self.poll_interval = poll_interval
        self.log = logger.bind(resource_type=self.TERRAFORM_TYPE)

    @classmethod
    def can_handle(cls, type_name: str) -> bool:
        """Check if this handler owns the given orchestrator or Azure type."""
        type_lower = type_name.lower()
        if type_lower == cls.TERRAFORM_TYPE.lower():
            return True
        return any(t.lower() == type_lower for t in cls.HANDLED_TYPES)

    @abstractmethod
    def operations(self, clients: DesktopVirtualizationClients) -> Any:
        """Return the SDK operation group for this kind (get/create_or_update/delete)."""
        raise NotImplementedError

    @abstractmethod
    def build_payload(self, config: Any) -> Any:
        """Build the API request model from a validated configuration."""
        raise NotImplementedError

    @abstractmethod
    def flatten(self, remote: Any, data: ResourceData) -> None:
        """Copy kind-specific attributes of a remote resource into state."""
        raise NotImplementedError

    def load_config(self, data: ResourceData) -> Any:
        return load_config(self.CONFIG_MODEL, data.attributes, self.TERRAFORM_TYPE)

    def _describe(self, name: str, resource_group: str) -> str:
        return f"{self.DISPLAY_NAME} {name!r} (Resource Group {resource_group!r})"

    def _remote_error(
        self, exc: Exception, message: str, name: str, resource_group: str
    ) -> RemoteError:
        return wrap_azure_exception(
            exc,
            message,
            resource_kind=self.DISPLAY_NAME,
            name=name,
            resource_group=resource_group,
        )

    def create_update(
        self,
        data: ResourceData,
        clients: DesktopVirtualizationClients,
        deadline: Deadline,
    ) -> ResourceData:
        """Create the resource, or update it in place if it is already tracked.

        Raises:
            SchemaValidationError: If the configuration is invalid
            ResourceAlreadyExistsError: If a fresh creation finds an existing resource
            RemoteError: If the upsert or the follow-up fetch fails
        """
        config = self.load_config(data)
        name = config.name
        resource_group = config.resource_group_name
        ops = self.operations(clients)
        log = self.log.bind(name=name, resource_group=resource_group)

        log.info("preparing arguments for creation")

        if data.is_new_resource():
            try:
                existing = ops.get(
                    resource_group, name, timeout=deadline.check("existence probe")
                )
            except AzureError as e:
                if not is_not_found(e):
                    raise self._remote_error(
                        e,
                        f"Error checking for presence of existing "
                        f"{self._describe(name, resource_group)}",
                        name,
                        resource_group,
                    ) from e
                existing = None

            if existing is not None and getattr(existing, "id", None):
                log.warning("resource already exists", resource_id=existing.id)
                raise ResourceAlreadyExistsError(existing.id, self.TERRAFORM_TYPE)

        payload = self.build_payload(config)

        try:
            ops.create_or_update(
                resource_group,
                name,
                payload,
                timeout=deadline.check("create_or_update"),
            )
        except AzureError as e:
            raise self._remote_error(
                e,
                f"Error creating {self._describe(name, resource_group)}",
                name,
                resource_group,
            ) from e

        try:
            result = ops.get(resource_group, name, timeout=deadline.check("re-fetch"))
        except AzureError as e:
            raise self._remote_error(
                e,
                f"Error retrieving {self._describe(name, resource_group)}",
                name,
                resource_group,
            ) from e

        resource_id = getattr(result, "id", None)
        if not resource_id:
            raise RemoteError(
                f"Cannot read {self._describe(name, resource_group)} ID",
                resource_kind=self.DISPLAY_NAME,
                name=name,
                resource_group=resource_group,
            )
        data.set_id(resource_id)
        log.info("resource created or updated", resource_id=resource_id)

        return self.read(data, clients, deadline)

    def read(
        self,
        data: ResourceData,
        clients: DesktopVirtualizationClients,
        deadline: Deadline,
    ) -> ResourceData:
        """Refresh state from the API.

        A resource that no longer exists clears the state and is not an error.

        Raises:
            MalformedIdError: If the stored ID cannot be parsed
            RemoteError: On any failure other than not-found
        """
        resource_id = self.ID_TYPE.parse(data.id)
        name, resource_group = resource_id.name, resource_id.resource_group

        try:
            remote = self.operations(clients).get(
                resource_group, name, timeout=deadline.check("read")
            )
        except AzureError as e:
            if is_not_found(e):
                self.log.info(
                    "resource was not found - removing from state",
                    name=name,
                    resource_group=resource_group,
                )
                data.clear()
                return data
            raise self._remote_error(
                e,
                f"Error making Read request on {self._describe(name, resource_group)}",
                name,
                resource_group,
            ) from e

        data.set("name", name)
        data.set("resource_group_name", resource_group)
        location = getattr(remote, "location", None)
        if location:
            data.set("location", normalize_location(location))
        data.set("tags", flatten_tags(getattr(remote, "tags", None)))
        self.flatten(remote, data)
        return data

    def delete(
        self,
        data: ResourceData,
        clients: DesktopVirtualizationClients,
        deadline: Deadline,
    ) -> ResourceData:
        """Delete the resource and wait for the deletion to finish.

        Deleting a resource that is already gone succeeds.

        Raises:
            MalformedIdError: If the stored ID cannot be parsed
            RemoteError: If the delete call fails or the operation ends unsuccessfully
            OperationTimeoutError: If the deadline expires while waiting
        """
        resource_id = self.ID_TYPE.parse(data.id)
        name, resource_group = resource_id.name, resource_id.resource_group
        log = self.log.bind(name=name, resource_group=resource_group)

        try:
            operation = self.operations(clients).delete(
                resource_group, name, timeout=deadline.check("delete")
            )
        except AzureError as e:
            if is_not_found(e):
                log.info("resource already deleted")
                data.clear()
                return data
            raise self._remote_error(
                e,
                f"Error deleting {self._describe(name, resource_group)}",
                name,
                resource_group,
            ) from e

        outcome = await_completion(operation, deadline, self.poll_interval)
        if not outcome.succeeded:
            raise RemoteError(
                f"Error waiting for deletion of {self._describe(name, resource_group)}: "
                f"operation {outcome.status.value}",
                resource_kind=self.DISPLAY_NAME,
                name=name,
                resource_group=resource_group,
                cause=outcome.error,
            )

        log.info("resource deleted")
        data.clear()
        return data

    def exists(
        self,
        resource_id: Union[DesktopVirtualizationId, str],
        clients: DesktopVirtualizationClients,
        deadline: Deadline,
    ) -> bool:
        """Check whether the resource exists remotely.

        Raises:
            MalformedIdError: If a string ID cannot be parsed
            RemoteError: On any failure other than not-found
        """
        if isinstance(resource_id, str):
            resource_id = self.ID_TYPE.parse(resource_id)
        name, resource_group = resource_id.name, resource_id.resource_group

        try:
            self.operations(clients).get(
                resource_group, name, timeout=deadline.check("exists")
            )
        except AzureError as e:
            if is_not_found(e):
                return False
            raise self._remote_error(
                e,
                f"Error checking existence of {self._describe(name, resource_group)}",
                name,
                resource_group,
            ) from e
        return True

    def import_state(
        self,
        resource_id: str,
        clients: DesktopVirtualizationClients,
        deadline: Deadline,
    ) -> ResourceData:
        """Adopt an existing remote resource into state.

        The ID is validated before anything is fetched.

        Raises:
            MalformedIdError: If the ID is not an ID of this kind
            ImportNotFoundError: If nothing exists at the ID
        """
        self.ID_TYPE.parse(resource_id)
        data = ResourceData(self.TERRAFORM_TYPE, resource_id=resource_id)
        self.read(data, clients, deadline)
        if data.is_new_resource():
            raise ImportNotFoundError(resource_id, self.TERRAFORM_TYPE)
        self.log.info("resource imported", resource_id=resource_id)
        return data
