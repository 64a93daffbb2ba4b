"""
Storefront Shared Kernel
========================

Infrastructure shared by every client module.

Architecture:
- core: action dispatcher, interaction events, configuration, service registry
- infrastructure: technical adapters (in-memory DOM, snapshot storage)
"""

__version__ = "1.0.0"

__all__ = []
