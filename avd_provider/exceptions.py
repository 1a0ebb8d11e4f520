"""
Custom Exception Hierarchy for the Azure Virtual Desktop provider

This module provides the exception hierarchy shared by the ID codec, the
schema layer and the lifecycle handlers. Every error carries structured
context (resource kind, name, resource group) so the orchestrator can
surface a descriptive message.
"""

from typing import Any, Dict, Optional

from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
)


class AvdProviderError(Exception):
    """
    Base exception class for all provider errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


def _resource_context(
    kwargs: Dict[str, Any],
    resource_kind: Optional[str],
    name: Optional[str],
    resource_group: Optional[str],
) -> Dict[str, Any]:
    context = kwargs.get("context", {})
    if resource_kind:
        context["resource_kind"] = resource_kind
    if name:
        context["name"] = name
    if resource_group:
        context["resource_group"] = resource_group
    return context


class MalformedIdError(AvdProviderError):
    """Raised when a resource ID string cannot be parsed."""

    def __init__(
        self, message: str, resource_id: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if resource_id is not None:
            context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "MALFORMED_ID")
        super().__init__(message, **kwargs)
        self.resource_id = resource_id


class ResourceAlreadyExistsError(AvdProviderError):
    """Raised when a fresh creation collides with an existing remote resource."""

    def __init__(
        self, resource_id: str, resource_type: str, **kwargs: Any
    ) -> None:
        message = (
            f"A resource with the ID {resource_id!r} already exists - to be managed "
            f"via Terraform this resource needs to be imported into the State. "
            f"Please see the resource documentation for {resource_type!r} for more "
            f"information."
        )
        context = kwargs.get("context", {})
        context["resource_id"] = resource_id
        context["resource_type"] = resource_type
        kwargs["context"] = context
        kwargs.setdefault("error_code", "ALREADY_EXISTS")
        kwargs.setdefault(
            "recovery_suggestion", f"Import the existing {resource_type} instead"
        )
        super().__init__(message, **kwargs)
        self.resource_id = resource_id
        self.resource_type = resource_type


class RemoteError(AvdProviderError):
    """Raised when a call against the management API fails."""

    def __init__(
        self,
        message: str,
        resource_kind: Optional[str] = None,
        name: Optional[str] = None,
        resource_group: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs["context"] = _resource_context(
            kwargs, resource_kind, name, resource_group
        )
        kwargs.setdefault("error_code", "REMOTE_ERROR")
        super().__init__(message, **kwargs)


class RemoteNotFoundError(RemoteError):
    """Raised when a resource expected to exist is missing remotely."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "NOT_FOUND")
        super().__init__(message, **kwargs)


class ImportNotFoundError(RemoteNotFoundError):
    """Raised when importing an ID that does not exist remotely."""

    def __init__(self, resource_id: str, resource_type: str, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "IMPORT_NOT_FOUND")
        super().__init__(
            f"Cannot import non-existent remote object {resource_id!r} "
            f"as {resource_type!r}",
            **kwargs,
        )


class OperationTimeoutError(AvdProviderError):
    """Raised when an operation runs past its deadline."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        timeout_value: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if operation:
            context["operation"] = operation
        if timeout_value is not None:
            context["timeout"] = f"{timeout_value:g}s"
        kwargs["context"] = context
        kwargs.setdefault("error_code", "TIMEOUT")
        super().__init__(message, **kwargs)
        self.operation = operation
        self.timeout_value = timeout_value


# Configuration-related exceptions
class ConfigurationError(AvdProviderError):
    """Base class for configuration-related errors."""

    pass


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(
        self, message: str, missing_keys: Optional[list[str]] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if missing_keys:
            context["missing_keys"] = missing_keys
        kwargs["context"] = context
        kwargs.setdefault("error_code", "MISSING_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion",
            f"Set required configuration: {', '.join(missing_keys)}"
            if missing_keys
            else "Set required configuration",
        )
        super().__init__(message, **kwargs)
        self.missing_keys = missing_keys or []


class SchemaValidationError(ConfigurationError):
    """Raised when a resource configuration fails schema validation."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        validation_errors: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if resource_type:
            context["resource_type"] = resource_type
        if validation_errors:
            context["validation_errors"] = validation_errors
        kwargs["context"] = context
        kwargs.setdefault("error_code", "SCHEMA_VALIDATION_FAILED")
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors or []


class LifecycleError(AvdProviderError):
    """Raised on an illegal resource lifecycle transition."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "ILLEGAL_TRANSITION")
        super().__init__(message, **kwargs)


class StateFileError(AvdProviderError):
    """Raised when the local state file cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        kwargs.setdefault("error_code", "STATE_FILE_ERROR")
        kwargs.setdefault(
            "recovery_suggestion",
            "Restore the state file from backup or re-import the resources",
        )
        super().__init__(message, context=context, **kwargs)


def is_not_found(exc: Exception) -> bool:
    """Return True when an Azure SDK exception represents HTTP 404."""
    if isinstance(exc, ResourceNotFoundError):
        return True
    return isinstance(exc, HttpResponseError) and exc.status_code == 404


def wrap_azure_exception(
    exc: Exception,
    message: str,
    resource_kind: Optional[str] = None,
    name: Optional[str] = None,
    resource_group: Optional[str] = None,
) -> RemoteError:
    """
    Wrap an Azure SDK exception in the provider's exception hierarchy.

    Args:
        exc: The original exception
        message: Operation-specific message
        resource_kind: Display name of the resource kind
        name: Resource name
        resource_group: Resource group name

    Returns:
        RemoteError: Wrapped exception with enhanced context
    """
    error_cls = RemoteNotFoundError if is_not_found(exc) else RemoteError
    kwargs: Dict[str, Any] = {}
    if isinstance(exc, ClientAuthenticationError):
        kwargs["error_code"] = "AZURE_AUTH_FAILED"
        kwargs["recovery_suggestion"] = (
            "Check ARM_CLIENT_ID, ARM_CLIENT_SECRET and ARM_TENANT_ID"
        )
    elif isinstance(exc, ServiceRequestError):
        kwargs["error_code"] = "AZURE_REQUEST_FAILED"
    return error_cls(
        message,
        resource_kind=resource_kind,
        name=name,
        resource_group=resource_group,
        cause=exc,
        **kwargs,
    )
