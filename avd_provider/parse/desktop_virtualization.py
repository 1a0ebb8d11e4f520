"""Identifiers for Microsoft.DesktopVirtualization resources.

Each identifier holds the subscription, resource group and resource name of
one resource kind and round-trips through its canonical string form:

    WorkspaceId.parse(workspace_id.id) == workspace_id
"""

from dataclasses import dataclass
from typing import ClassVar, Type, TypeVar

from ..exceptions import MalformedIdError
from .resource_id import AzureResourceId

PROVIDER_NAMESPACE = "Microsoft.DesktopVirtualization"

T = TypeVar("T", bound="DesktopVirtualizationId")


@dataclass(frozen=True)
class DesktopVirtualizationId:
    """Base identifier for a resource-group-scoped desktop virtualization resource."""

    TYPE_SEGMENT: ClassVar[str] = ""
    KIND: ClassVar[str] = "Desktop Virtualization resource"

    subscription_id: str
    resource_group: str
    name: str

    def __post_init__(self) -> None:
        for field_name in ("subscription_id", "resource_group", "name"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                raise MalformedIdError(f"{self.KIND} ID requires a non-empty {field_name}")
            if "/" in value:
                raise MalformedIdError(
                    f"{self.KIND} ID {field_name} may not contain '/': {value!r}"
                )

    @classmethod
    def parse(cls: Type[T], resource_id: str) -> T:
        """Parse a resource ID string into this identifier type.

        Raises:
            MalformedIdError: If the ID is not a well-formed ID of this kind
        """
        parsed = AzureResourceId.parse(resource_id)

        if (parsed.provider or "").lower() != PROVIDER_NAMESPACE.lower():
            raise MalformedIdError(
                f"{cls.KIND} ID must use the {PROVIDER_NAMESPACE} provider",
                resource_id=resource_id,
            )
        if len(parsed.path) != 1:
            raise MalformedIdError(
                f"{cls.KIND} ID must contain exactly one {cls.TYPE_SEGMENT!r} segment",
                resource_id=resource_id,
            )
        name = parsed.segment(cls.TYPE_SEGMENT)
        if name is None:
            raise MalformedIdError(
                f"{cls.KIND} ID is missing the {cls.TYPE_SEGMENT!r} segment",
                resource_id=resource_id,
            )

        return cls(
            subscription_id=parsed.subscription_id,
            resource_group=parsed.resource_group,
            name=name,
        )

    def format(self) -> str:
        return AzureResourceId(
            subscription_id=self.subscription_id,
            resource_group=self.resource_group,
            provider=PROVIDER_NAMESPACE,
            path=((self.TYPE_SEGMENT, self.name),),
        ).format()

    @property
    def id(self) -> str:
        return self.format()

    def __str__(self) -> str:
        return self.format()


@dataclass(frozen=True)
class WorkspaceId(DesktopVirtualizationId):
    TYPE_SEGMENT: ClassVar[str] = "workspaces"
    KIND: ClassVar[str] = "Virtual Desktop Workspace"


@dataclass(frozen=True)
class ApplicationGroupId(DesktopVirtualizationId):
    TYPE_SEGMENT: ClassVar[str] = "applicationGroups"
    KIND: ClassVar[str] = "Virtual Desktop Application Group"


@dataclass(frozen=True)
class HostPoolId(DesktopVirtualizationId):
    TYPE_SEGMENT: ClassVar[str] = "hostPools"
    KIND: ClassVar[str] = "Virtual Desktop Host Pool"
