"""
==============================================================================
API v1 Endpoints
==============================================================================

Routers:
--------
- health: Health check endpoints
- scanner: Camera and upload control

==============================================================================
"""

from . import health, scanner

__all__ = ["health", "scanner"]
