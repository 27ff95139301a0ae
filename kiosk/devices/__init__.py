"""
==============================================================================
Devices Package - Camera Selection and Capture
==============================================================================

Classes:
--------
- DeviceCatalog: Enumeration and preferred/next device selection
- CaptureSession: Single owner of the active camera stream
- SysfsDeviceSource, OpenCVStreamOpener: Linux/OpenCV platform adapters

==============================================================================
"""

from .catalog import DeviceCatalog, DeviceSource, SysfsDeviceSource
from .models import CameraDevice, FacingHint, FrameSample, SessionState
from .session import (
    CaptureSession,
    OpenCVStreamOpener,
    OpenCVVideoStream,
    StreamOpener,
    VideoStream,
)

__all__ = [
    "DeviceCatalog",
    "DeviceSource",
    "SysfsDeviceSource",
    "CameraDevice",
    "FacingHint",
    "FrameSample",
    "SessionState",
    "CaptureSession",
    "OpenCVStreamOpener",
    "OpenCVVideoStream",
    "StreamOpener",
    "VideoStream",
]
