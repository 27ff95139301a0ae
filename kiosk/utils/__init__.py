"""
==============================================================================
Utilities Package
==============================================================================

Modules:
--------
- status: Status line and diagnostic log surface

==============================================================================
"""

from .status import StatusBoard

__all__ = [
    "StatusBoard",
]
