"""State file for tracked resource instances.

The CLI persists the state of every managed instance between runs in a
JSON file keyed by resource address (``<type>.<label>``). Writes go to a
temporary file that replaces the state file, so an interrupted run never
leaves a truncated state behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .exceptions import StateFileError
from .state import ResourceData

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1
DEFAULT_STATE_FILE = "avd.state.json"


def split_address(address: str) -> Tuple[str, str]:
    """Split ``azurerm_virtual_desktop_workspace.test`` into type and label."""
    resource_type, sep, label = address.partition(".")
    if not sep or not resource_type or not label:
        raise ValueError(
            f"Invalid resource address {address!r}: expected <type>.<label>"
        )
    return resource_type, label


class StateStore:
    """Loads and saves resource state keyed by address."""

    def __init__(self, path: Union[str, Path] = DEFAULT_STATE_FILE) -> None:
        """Initialize the state store.

        Args:
            path: Location of the state file (created on first save)
        """
        self.path = Path(path)
        self._resources: Dict[str, ResourceData] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateFileError(
                f"Failed to load state file: {e}", path=str(self.path), cause=e
            ) from e

        version = raw.get("version")
        if version != STATE_FORMAT_VERSION:
            raise StateFileError(
                f"Unsupported state file version {version!r}", path=str(self.path)
            )

        for address, entry in raw.get("resources", {}).items():
            self._resources[address] = ResourceData.from_dict(entry)
        logger.debug(f"Loaded {len(self._resources)} resources from {self.path}")

    def save(self) -> None:
        """Write the state file atomically."""
        payload = {
            "version": STATE_FORMAT_VERSION,
            "resources": {
                address: data.to_dict() for address, data in sorted(self._resources.items())
            },
        }
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(directory)
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StateFileError(
                f"Failed to write state file: {e}", path=str(self.path), cause=e
            ) from e
        logger.debug(f"Saved {len(self._resources)} resources to {self.path}")

    def get(self, address: str) -> Optional[ResourceData]:
        return self._resources.get(address)

    def put(self, address: str, data: ResourceData) -> None:
        """Track an instance; a cleared instance is dropped instead."""
        if data.is_new_resource():
            self.remove(address)
            return
        self._resources[address] = data

    def remove(self, address: str) -> None:
        self._resources.pop(address, None)

    def addresses(self) -> List[str]:
        return sorted(self._resources)

    def items(self) -> Iterator[Tuple[str, ResourceData]]:
        for address in self.addresses():
            yield address, self._resources[address]

    def __contains__(self, address: object) -> bool:
        return address in self._resources

    def __len__(self) -> int:
        return len(self._resources)
