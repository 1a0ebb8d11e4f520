"""Azure Resource Manager ID parsing.

Resource Manager IDs are slash-separated key/value pairs:

    /subscriptions/{sub}/resourceGroups/{rg}/providers/{namespace}/{type}/{name}[/{childType}/{childName}]

This module parses that grammar into an immutable ``AzureResourceId``.
Kind-specific identifiers (see ``desktop_virtualization``) are built on top.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..exceptions import MalformedIdError

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_KEY = "subscriptions"
RESOURCE_GROUPS_KEY = "resourceGroups"
PROVIDERS_KEY = "providers"


@dataclass(frozen=True)
class AzureResourceId:
    """A parsed resource-group-scoped Resource Manager ID.

    Attributes:
        subscription_id: Subscription segment value
        resource_group: Resource group segment value
        provider: Provider namespace (e.g. "Microsoft.DesktopVirtualization"), if any
        path: Ordered (type, name) pairs following the provider namespace
    """

    subscription_id: str
    resource_group: str
    provider: Optional[str] = None
    path: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, resource_id: str) -> "AzureResourceId":
        """Parse a Resource Manager ID.

        Raises:
            MalformedIdError: If the ID is structurally invalid
        """
        if not isinstance(resource_id, str) or not resource_id:
            raise MalformedIdError("ID was empty", resource_id=resource_id)
        if not resource_id.startswith("/"):
            raise MalformedIdError(
                "ID should start with a '/'", resource_id=resource_id
            )

        trimmed = resource_id[1:]
        if trimmed.endswith("/"):
            trimmed = trimmed[:-1]
        components = trimmed.split("/")

        if len(components) % 2 != 0:
            raise MalformedIdError(
                "The number of path segments is not divisible by 2",
                resource_id=resource_id,
            )

        pairs = []
        for i in range(0, len(components), 2):
            key, value = components[i], components[i + 1]
            if not key:
                raise MalformedIdError(
                    f"Key segment {i // 2} is empty", resource_id=resource_id
                )
            if not value:
                raise MalformedIdError(
                    f"Value for key {key!r} is empty", resource_id=resource_id
                )
            pairs.append((key, value))

        if pairs[0][0].lower() != SUBSCRIPTIONS_KEY.lower():
            raise MalformedIdError(
                "ID must start with a subscription segment", resource_id=resource_id
            )
        subscription_id = pairs[0][1]

        if len(pairs) < 2 or pairs[1][0].lower() != RESOURCE_GROUPS_KEY.lower():
            raise MalformedIdError(
                "No resource group name found", resource_id=resource_id
            )
        resource_group = pairs[1][1]

        provider: Optional[str] = None
        path: Tuple[Tuple[str, str], ...] = ()
        if len(pairs) > 2:
            if pairs[2][0].lower() != PROVIDERS_KEY:
                raise MalformedIdError(
                    f"Expected a providers segment, got {pairs[2][0]!r}",
                    resource_id=resource_id,
                )
            provider = pairs[2][1]
            path = tuple(pairs[3:])

        return cls(
            subscription_id=subscription_id,
            resource_group=resource_group,
            provider=provider,
            path=path,
        )

    def format(self) -> str:
        """Render the canonical ID string."""
        parts = [
            "",
            SUBSCRIPTIONS_KEY,
            self.subscription_id,
            RESOURCE_GROUPS_KEY,
            self.resource_group,
        ]
        if self.provider:
            parts += [PROVIDERS_KEY, self.provider]
            for segment_type, segment_name in self.path:
                parts += [segment_type, segment_name]
        return "/".join(parts)

    def segment(self, key: str) -> Optional[str]:
        """Return the value of a path segment, matching the key case-insensitively."""
        for segment_type, segment_name in self.path:
            if segment_type.lower() == key.lower():
                return segment_name
        return None


def build_resource_group_id(subscription_id: str, resource_group: str) -> str:
    """Build the ID of a resource group.

    Format: /subscriptions/{sub}/resourceGroups/{rg}
    """
    return AzureResourceId(subscription_id, resource_group).format()
