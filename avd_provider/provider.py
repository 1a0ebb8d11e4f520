"""
Provider: the orchestrator-facing surface of the lifecycle handlers.

The provider validates configurations against each kind's schema, plans a
change by comparing desired configuration with tracked state (using the
force-new field metadata), and runs handlers under a fresh deadline per
operation while advancing the resource lifecycle status.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .clients import DesktopVirtualizationClients
from .config_manager import ProviderConfig
from .exceptions import ConfigurationError
from .handlers import HandlerRegistry, ResourceHandler
from .parse import DesktopVirtualizationId
from .schema import requires_replacement
from .state import ResourceData, ResourceStatus
from .timeout_config import Deadline

logger = logging.getLogger(__name__)


class PlanAction(str, Enum):
    """What applying a configuration will do to one resource instance."""

    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    NOOP = "no-op"


@dataclass
class PlannedChange:
    resource_type: str
    action: PlanAction
    replace_fields: List[str] = field(default_factory=list)
    changed_fields: List[str] = field(default_factory=list)


class Provider:
    """Runs lifecycle operations for every supported resource kind."""

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        clients: Optional[DesktopVirtualizationClients] = None,
    ) -> None:
        """
        Args:
            config: Provider configuration (defaults to environment)
            clients: Pre-built API clients; built from config credentials if omitted
        """
        self.config = config or ProviderConfig()
        self._clients = clients

    @property
    def clients(self) -> DesktopVirtualizationClients:
        if self._clients is None:
            self._clients = DesktopVirtualizationClients.from_config(
                self.config.credentials
            )
        return self._clients

    @staticmethod
    def supported_types() -> List[str]:
        return HandlerRegistry.get_all_supported_types()

    def handler_for(self, resource_type: str) -> ResourceHandler:
        """Resolve the handler of a resource type.

        Raises:
            ConfigurationError: If the type is not supported
        """
        handler = HandlerRegistry.get_handler(
            resource_type, poll_interval=self.config.polling.poll_interval
        )
        if handler is None:
            raise ConfigurationError(
                f"Unsupported resource type {resource_type!r}",
                context={"supported": ", ".join(self.supported_types())},
            )
        return handler

    def _deadline(self, handler: ResourceHandler, operation: str) -> Deadline:
        return Deadline(
            handler.TIMEOUTS.for_operation(operation),
            operation=f"{handler.TERRAFORM_TYPE}.{operation}",
        )

    def validate(self, resource_type: str, desired: Mapping[str, Any]) -> Any:
        """Validate a configuration; raises SchemaValidationError on failure."""
        return self.handler_for(resource_type).load_config(
            ResourceData(resource_type, attributes=desired)
        )

    def plan(
        self,
        resource_type: str,
        desired: Mapping[str, Any],
        state: Optional[ResourceData] = None,
    ) -> PlannedChange:
        """Decide how to converge state towards the desired configuration."""
        handler = self.handler_for(resource_type)
        config = self.validate(resource_type, desired)
        return self._plan(handler, config, state)

    def _plan(
        self,
        handler: ResourceHandler,
        config: Any,
        state: Optional[ResourceData],
    ) -> PlannedChange:
        resource_type = handler.TERRAFORM_TYPE
        if state is None or state.is_new_resource():
            return PlannedChange(resource_type, PlanAction.CREATE)

        current = state.attributes
        replace_fields = requires_replacement(handler.CONFIG_MODEL, current, config)
        if replace_fields:
            return PlannedChange(
                resource_type, PlanAction.REPLACE, replace_fields=replace_fields
            )

        desired_values = config.model_dump()
        changed = [k for k, v in desired_values.items() if current.get(k) != v]
        # An unconfirmed instance is converged again even when nothing differs
        if changed or state.status is ResourceStatus.UNKNOWN:
            return PlannedChange(resource_type, PlanAction.UPDATE, changed_fields=changed)
        return PlannedChange(resource_type, PlanAction.NOOP)

    def apply(
        self,
        resource_type: str,
        desired: Mapping[str, Any],
        state: Optional[ResourceData] = None,
    ) -> ResourceData:
        """Converge one resource instance on the desired configuration.

        Returns:
            The (mutated or newly created) state of the instance
        """
        handler = self.handler_for(resource_type)
        config = self.validate(resource_type, desired)
        change = self._plan(handler, config, state)
        desired_values = config.model_dump()
        logger.info(f"{resource_type}: {change.action.value}")

        if change.action is PlanAction.NOOP:
            return state

        if change.action is PlanAction.REPLACE:
            logger.info(
                f"{resource_type} must be replaced: "
                f"{', '.join(change.replace_fields)} changed"
            )
            state = self.destroy(state)

        previous_status = state.status if state is not None else ResourceStatus.UNKNOWN
        snapshot = state.snapshot() if state is not None else None

        if change.action is PlanAction.UPDATE:
            state.update(desired_values)
            state.transition(ResourceStatus.UPDATING)
            operation = "update"
        else:
            if state is None:
                state = ResourceData(resource_type)
            state.update(desired_values)
            state.transition(ResourceStatus.CREATING)
            operation = "create"

        try:
            handler.create_update(state, self.clients, self._deadline(handler, operation))
        except Exception:
            if operation == "update":
                state.restore(snapshot)
                state.transition(previous_status)
            else:
                state.transition(ResourceStatus.UNKNOWN)
            raise

        state.transition(
            ResourceStatus.ABSENT if state.is_new_resource() else ResourceStatus.PRESENT
        )
        return state

    def refresh(self, state: ResourceData) -> ResourceData:
        """Re-read remote state; a vanished resource becomes ABSENT."""
        handler = self.handler_for(state.resource_type)
        if state.is_new_resource():
            state.status = ResourceStatus.ABSENT
            return state

        handler.read(state, self.clients, self._deadline(handler, "read"))
        state.transition(
            ResourceStatus.ABSENT if state.is_new_resource() else ResourceStatus.PRESENT
        )
        return state

    def destroy(self, state: ResourceData) -> ResourceData:
        """Delete the remote resource and clear its state."""
        handler = self.handler_for(state.resource_type)
        if state.is_new_resource():
            state.status = ResourceStatus.ABSENT
            return state

        previous_status = state.status
        state.transition(ResourceStatus.DELETING)
        try:
            handler.delete(state, self.clients, self._deadline(handler, "delete"))
        except Exception:
            state.transition(
                ResourceStatus.UNKNOWN
                if previous_status is ResourceStatus.UNKNOWN
                else ResourceStatus.PRESENT
            )
            raise
        state.transition(ResourceStatus.ABSENT)
        return state

    def import_resource(self, resource_type: str, resource_id: str) -> ResourceData:
        """Adopt an existing remote resource into tracked state."""
        handler = self.handler_for(resource_type)
        state = handler.import_state(
            resource_id, self.clients, self._deadline(handler, "read")
        )
        state.transition(ResourceStatus.PRESENT)
        return state

    def exists(
        self, resource_type: str, resource_id: Union[DesktopVirtualizationId, str]
    ) -> bool:
        handler = self.handler_for(resource_type)
        return handler.exists(resource_id, self.clients, self._deadline(handler, "read"))

    def describe(self) -> Dict[str, Any]:
        return {
            "supported_types": self.supported_types(),
            "config": self.config.to_dict(),
        }
