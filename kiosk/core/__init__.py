"""
==============================================================================
Core Package
==============================================================================

Error handling shared by the scanner, the dispatcher and the control API.

Usage:
------
    from kiosk.core import ScanException
    from kiosk.core import exceptions

    raise exceptions.upload_decode_exhausted(attempts=5)

==============================================================================
"""

from .exceptions import (
    ScanException,
    register_exception_handlers,
)

__all__ = [
    "ScanException",
    "register_exception_handlers",
]
