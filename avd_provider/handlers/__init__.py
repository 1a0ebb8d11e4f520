"""Handler registry for resource type dispatch.

This module provides the HandlerRegistry class that manages registration
and lookup of lifecycle handlers by orchestrator type name
(``azurerm_virtual_desktop_workspace``) or Azure resource type
(``Microsoft.DesktopVirtualization/workspaces``).
"""

import logging
from typing import Dict, List, Optional, Type

from .base_handler import ResourceHandler

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Registry for lifecycle handlers with type-based dispatch.

    Usage:
        @handler
        class WorkspaceHandler(ResourceHandler):
            TERRAFORM_TYPE = "azurerm_virtual_desktop_workspace"
            ...

        # Later:
        handler = HandlerRegistry.get_handler("azurerm_virtual_desktop_workspace")
    """

    _handlers: List[Type[ResourceHandler]] = []
    _type_cache: Dict[str, Type[ResourceHandler]] = {}

    @classmethod
    def register(cls, handler_class: Type[ResourceHandler]) -> Type[ResourceHandler]:
        """Register a handler class.

        Args:
            handler_class: Handler class to register

        Returns:
            The handler class (unchanged)
        """
        if handler_class not in cls._handlers:
            cls._handlers.append(handler_class)

            for type_name in {handler_class.TERRAFORM_TYPE, *handler_class.HANDLED_TYPES}:
                cls._type_cache[type_name.lower()] = handler_class
                logger.debug(
                    f"Registered handler {handler_class.__name__} for {type_name}"
                )

        return handler_class

    @classmethod
    def get_handler_class(cls, type_name: str) -> Optional[Type[ResourceHandler]]:
        """Get the handler class for an orchestrator or Azure type."""
        ensure_handlers_registered()
        type_lower = type_name.lower()

        if type_lower in cls._type_cache:
            return cls._type_cache[type_lower]

        for handler_class in cls._handlers:
            if handler_class.can_handle(type_name):
                cls._type_cache[type_lower] = handler_class
                return handler_class

        return None

    @classmethod
    def get_handler(
        cls, type_name: str, poll_interval: float = 10.0
    ) -> Optional[ResourceHandler]:
        """Get a handler instance for an orchestrator or Azure type.

        Returns:
            Handler instance or None if no handler registered
        """
        handler_class = cls.get_handler_class(type_name)
        if handler_class is None:
            return None
        return handler_class(poll_interval=poll_interval)

    @classmethod
    def get_all_supported_types(cls) -> List[str]:
        """Get all orchestrator type names supported by registered handlers."""
        ensure_handlers_registered()
        return sorted(h.TERRAFORM_TYPE for h in cls._handlers)

    @classmethod
    def get_all_handlers(cls) -> List[Type[ResourceHandler]]:
        """Get all registered handler classes (copy)."""
        ensure_handlers_registered()
        return cls._handlers.copy()

    @classmethod
    def clear(cls) -> None:
        """Clear all registered handlers.

        Primarily for testing.
        """
        global _handlers_registered
        cls._handlers = []
        cls._type_cache = {}
        _handlers_registered = False


def handler(cls: Type[ResourceHandler]) -> Type[ResourceHandler]:
    """Decorator to register a handler class."""
    return HandlerRegistry.register(cls)


def _register_all_handlers() -> None:
    """Import all handler modules to trigger registration."""
    from .application_group import ApplicationGroupHandler
    from .workspace import WorkspaceHandler

    # Decorators only run on first import; re-register after a clear()
    for handler_class in (ApplicationGroupHandler, WorkspaceHandler):
        HandlerRegistry.register(handler_class)

    logger.debug(f"Registered {len(HandlerRegistry._handlers)} handlers")


_handlers_registered = False


def ensure_handlers_registered() -> None:
    """Ensure all handlers are registered.

    Called lazily on first handler lookup.
    """
    global _handlers_registered
    if not _handlers_registered:
        _handlers_registered = True
        _register_all_handlers()


__all__ = [
    "HandlerRegistry",
    "ResourceHandler",
    "ensure_handlers_registered",
    "handler",
]
