"""
Centralized timeout configuration for resource lifecycle operations.

Each lifecycle operation runs under a caller-supplied deadline. Defaults
match the resource timeouts of the provider (create/update/delete: 60
minutes, read: 5 minutes) and can be overridden via environment variables.

Usage:
    from avd_provider.timeout_config import Deadline, Timeouts

    deadline = Deadline.after(Timeouts.READ, operation="read")
    client.workspaces.get(rg, name, timeout=deadline.remaining())

Environment Variables:
    - AVD_TIMEOUT_CREATE: Create operations (default: 3600s)
    - AVD_TIMEOUT_READ: Read operations (default: 300s)
    - AVD_TIMEOUT_UPDATE: Update operations (default: 3600s)
    - AVD_TIMEOUT_DELETE: Delete operations (default: 3600s)
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Final, Optional

from .exceptions import OperationTimeoutError

logger = logging.getLogger(__name__)


def _get_timeout(env_var: str, default: int) -> int:
    """Get timeout value from environment variable or use default.

    Args:
        env_var: Environment variable name
        default: Default timeout in seconds

    Returns:
        Timeout value in seconds
    """
    value = os.environ.get(env_var)
    if value is not None:
        try:
            timeout = int(value)
            if timeout <= 0:
                logger.warning(
                    f"Invalid timeout value for {env_var}: {value}. "
                    f"Must be positive. Using default: {default}s"
                )
                return default
            return timeout
        except ValueError:
            logger.warning(
                f"Invalid timeout value for {env_var}: {value}. "
                f"Must be integer. Using default: {default}s"
            )
            return default
    return default


class Timeouts:
    """Default timeouts (seconds) for lifecycle operations."""

    CREATE: Final[int] = _get_timeout("AVD_TIMEOUT_CREATE", 60 * 60)
    READ: Final[int] = _get_timeout("AVD_TIMEOUT_READ", 5 * 60)
    UPDATE: Final[int] = _get_timeout("AVD_TIMEOUT_UPDATE", 60 * 60)
    DELETE: Final[int] = _get_timeout("AVD_TIMEOUT_DELETE", 60 * 60)


@dataclass(frozen=True)
class ResourceTimeouts:
    """Per-resource-kind operation timeouts."""

    create: int = Timeouts.CREATE
    read: int = Timeouts.READ
    update: int = Timeouts.UPDATE
    delete: int = Timeouts.DELETE

    def for_operation(self, operation: str) -> int:
        if operation not in ("create", "read", "update", "delete"):
            raise ValueError(f"Unknown operation: {operation}")
        return int(getattr(self, operation))


class Deadline:
    """Absolute bound on the execution of one handler invocation.

    The deadline is shared by every remote call a handler makes; each call
    receives the remaining budget as its timeout, so expiry aborts the
    in-flight request.
    """

    def __init__(
        self,
        timeout: float,
        operation: str = "operation",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError("Deadline timeout must be positive")
        self.timeout = timeout
        self.operation = operation
        self._clock = clock
        self._expires_at = clock() + timeout

    @classmethod
    def after(cls, seconds: float, operation: str = "operation") -> "Deadline":
        return cls(seconds, operation=operation)

    def remaining(self) -> float:
        """Seconds left before expiry (never negative)."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, step: Optional[str] = None) -> float:
        """Raise if the deadline has passed, otherwise return the remaining budget."""
        remaining = self.remaining()
        if remaining <= 0:
            log_timeout_event(self.operation, self.timeout, step)
            label = f"{self.operation} ({step})" if step else self.operation
            raise OperationTimeoutError(
                f"Operation '{label}' exceeded its deadline",
                operation=self.operation,
                timeout_value=self.timeout,
            )
        return remaining

    def __repr__(self) -> str:
        return (
            f"Deadline(operation={self.operation!r}, timeout={self.timeout}, "
            f"remaining={self.remaining():.1f})"
        )


def log_timeout_event(
    operation: str,
    timeout_value: float,
    step: Optional[str] = None,
    level: str = "warning",
) -> None:
    """Log a timeout event with consistent formatting.

    Args:
        operation: Name of the operation that timed out
        timeout_value: Timeout value that was exceeded
        step: Optional step within the operation
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level, logger.warning)
    step_str = f" during {step}" if step else ""
    log_func(
        f"Operation '{operation}' timed out after {timeout_value:g} seconds{step_str}"
    )
