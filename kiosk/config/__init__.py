"""
==============================================================================
Configuration Package
==============================================================================

Centralized kiosk configuration using Pydantic Settings.

Usage:
------
    from kiosk.config import get_settings

    settings = get_settings()
    print(settings.endpoint_url)

==============================================================================
"""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
