"""
==============================================================================
Dispatch Package - Detection Reporting
==============================================================================

Classes:
--------
- DetectionEvent: Confirmed detection from either pipeline
- DetectionDispatcher: Lookup + POST of confirmed detections
- DispatchResult: Outcome of one report

==============================================================================
"""

from .models import DetectionEvent, DetectionSource, DispatchResult
from .dispatcher import DetectionDispatcher

__all__ = [
    "DetectionEvent",
    "DetectionSource",
    "DetectionDispatcher",
    "DispatchResult",
]
