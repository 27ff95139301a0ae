"""
==============================================================================
API Package
==============================================================================

REST control surface of the kiosk (``/api/v1``).

==============================================================================
"""

from .router import api_router

__all__ = ["api_router"]
