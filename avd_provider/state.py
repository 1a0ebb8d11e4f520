"""
Declarative state for a single managed resource instance.

``ResourceData`` is what the orchestrator hands to a lifecycle handler: the
desired configuration plus any observed fields written back after a read.
Handlers mutate it in place to report remote state, or clear it to mark the
resource absent.
"""

import copy
import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .exceptions import LifecycleError

logger = logging.getLogger(__name__)


class ResourceStatus(str, Enum):
    """Lifecycle status of a tracked resource instance."""

    UNKNOWN = "unknown"
    CREATING = "creating"
    PRESENT = "present"
    UPDATING = "updating"
    DELETING = "deleting"
    ABSENT = "absent"


_TRANSITIONS: Dict[ResourceStatus, FrozenSet[ResourceStatus]] = {
    # UNKNOWN -> PRESENT covers import; CREATING -> UNKNOWN covers a failed create.
    # An UNKNOWN instance with an ID may still be updated or deleted.
    ResourceStatus.UNKNOWN: frozenset(
        {
            ResourceStatus.CREATING,
            ResourceStatus.PRESENT,
            ResourceStatus.UPDATING,
            ResourceStatus.DELETING,
            ResourceStatus.ABSENT,
        }
    ),
    ResourceStatus.CREATING: frozenset(
        {ResourceStatus.PRESENT, ResourceStatus.UNKNOWN, ResourceStatus.ABSENT}
    ),
    ResourceStatus.PRESENT: frozenset(
        {
            ResourceStatus.PRESENT,
            ResourceStatus.UPDATING,
            ResourceStatus.DELETING,
            ResourceStatus.ABSENT,
        }
    ),
    ResourceStatus.UPDATING: frozenset(
        {ResourceStatus.PRESENT, ResourceStatus.ABSENT, ResourceStatus.UNKNOWN}
    ),
    ResourceStatus.DELETING: frozenset(
        {ResourceStatus.ABSENT, ResourceStatus.PRESENT, ResourceStatus.UNKNOWN}
    ),
    ResourceStatus.ABSENT: frozenset({ResourceStatus.CREATING, ResourceStatus.PRESENT}),
}


def can_transition(current: ResourceStatus, target: ResourceStatus) -> bool:
    return target in _TRANSITIONS[current]


class ResourceData:
    """Mutable declarative state of one resource instance.

    Attributes:
        resource_type: Orchestrator type name (e.g. "azurerm_virtual_desktop_workspace")
        status: Current lifecycle status
    """

    def __init__(
        self,
        resource_type: str,
        attributes: Optional[Mapping[str, Any]] = None,
        resource_id: str = "",
        status: ResourceStatus = ResourceStatus.UNKNOWN,
    ) -> None:
        self.resource_type = resource_type
        self._attributes: Dict[str, Any] = copy.deepcopy(dict(attributes or {}))
        self._id = resource_id
        self.status = status

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, resource_id: str) -> None:
        """Record the canonical remote ID. An empty ID clears the state."""
        if not resource_id:
            self.clear()
            return
        self._id = resource_id

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    @property
    def attributes(self) -> Dict[str, Any]:
        """A copy of the current attribute values."""
        return copy.deepcopy(self._attributes)

    def is_new_resource(self) -> bool:
        """True while the instance has no remote counterpart recorded yet."""
        return not self._id

    def clear(self) -> None:
        """Drop every field; the orchestrator stops tracking the resource."""
        logger.debug(f"Clearing state for {self.resource_type} {self._id or '<new>'}")
        self._id = ""
        self._attributes = {}

    def snapshot(self) -> Tuple[str, Dict[str, Any]]:
        """Capture the ID and attributes so a failed change can be rolled back."""
        return self._id, self.attributes

    def restore(self, snapshot: Tuple[str, Dict[str, Any]]) -> None:
        """Put back the ID and attributes captured by snapshot(); status is unchanged."""
        resource_id, attributes = snapshot
        self._id = resource_id
        self._attributes = copy.deepcopy(attributes)

    def transition(self, target: ResourceStatus) -> None:
        """Advance the lifecycle status.

        Raises:
            LifecycleError: If the move is not allowed from the current status
        """
        if not can_transition(self.status, target):
            raise LifecycleError(
                f"Cannot move {self.resource_type} from {self.status.value} "
                f"to {target.value}",
                context={"resource_id": self._id or None},
            )
        self.status = target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.resource_type,
            "id": self._id,
            "status": self.status.value,
            "attributes": self.attributes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResourceData":
        return cls(
            resource_type=data["type"],
            attributes=data.get("attributes") or {},
            resource_id=data.get("id", ""),
            status=ResourceStatus(data.get("status", ResourceStatus.UNKNOWN.value)),
        )

    def __repr__(self) -> str:
        return (
            f"ResourceData(type={self.resource_type!r}, id={self._id!r}, "
            f"status={self.status.value!r})"
        )
