"""
Blocking completion of long-running management operations.

Deletions (and, depending on API version, other writes) may return an
``azure.core.polling.LROPoller`` instead of completing synchronously.
``await_completion`` blocks until the operation reaches a terminal state and
reports it as a typed ``OperationStatus``; no background completion is ever
exposed to the caller.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from azure.core.exceptions import AzureError
from azure.core.polling import LROPoller

from .timeout_config import Deadline

logger = logging.getLogger(__name__)


class OperationStatus(str, Enum):
    """Terminal status of a long-running operation."""

    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELED = "Canceled"


@dataclass
class OperationResult:
    """Outcome of awaiting a long-running operation."""

    status: OperationStatus
    result: Any = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OperationStatus.SUCCEEDED


def _terminal_status(raw_status: str) -> OperationStatus:
    normalized = (raw_status or "").lower()
    if normalized == "succeeded":
        return OperationStatus.SUCCEEDED
    if normalized in ("canceled", "cancelled"):
        return OperationStatus.CANCELED
    return OperationStatus.FAILED


def _is_poller(operation: Any) -> bool:
    return isinstance(operation, LROPoller) or (
        hasattr(operation, "done") and hasattr(operation, "wait")
    )


def await_completion(
    operation: Union[LROPoller, Any, None],
    deadline: Deadline,
    poll_interval: float = 10.0,
) -> OperationResult:
    """Block until a long-running operation reaches a terminal state.

    Args:
        operation: An LROPoller, or the synchronous response of an API call
            that completed immediately (``None`` for empty responses)
        deadline: Deadline bounding the wait
        poll_interval: Upper bound (seconds) on a single wait slice

    Returns:
        OperationResult with the terminal status

    Raises:
        OperationTimeoutError: If the deadline expires before completion
    """
    if not _is_poller(operation):
        return OperationResult(status=OperationStatus.SUCCEEDED, result=operation)

    while True:
        remaining = deadline.check("waiting for long-running operation")
        try:
            operation.wait(timeout=min(poll_interval, remaining))
        except AzureError as e:
            logger.debug(f"Long-running operation failed: {e}")
            return OperationResult(status=OperationStatus.FAILED, error=e)
        if operation.done():
            break
        logger.debug(
            f"Long-running operation still {operation.status()}, "
            f"{deadline.remaining():.0f}s left"
        )

    status = _terminal_status(operation.status())
    if status is not OperationStatus.SUCCEEDED:
        return OperationResult(status=status)
    try:
        return OperationResult(status=status, result=operation.result())
    except AzureError as e:
        return OperationResult(status=OperationStatus.FAILED, error=e)
