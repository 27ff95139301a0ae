"""
==============================================================================
Scanner Package - Live and Upload Decoding
==============================================================================

Classes:
--------
- LiveScanLoop: Periodic, debounced decoding of the camera stream
- UploadDecodePipeline: Multi-candidate decoding of still images
- ScanOrchestrator: Owner of all scanner state for one kiosk

==============================================================================
"""

from .models import DebounceWindow, LoopState
from .live import LiveScanLoop
from .upload import UploadDecodePipeline
from .orchestrator import ScanOrchestrator

__all__ = [
    "DebounceWindow",
    "LoopState",
    "LiveScanLoop",
    "UploadDecodePipeline",
    "ScanOrchestrator",
]
