"""
Azure Virtual Desktop resource provider

Lifecycle handlers (create, read, update, delete, import, existence check)
for Azure Virtual Desktop workspaces and application groups, driven by a
declarative infrastructure-as-code orchestrator.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
