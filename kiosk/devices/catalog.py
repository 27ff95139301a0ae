"""
==============================================================================
Device Catalog Module
==============================================================================

Enumerates camera devices and selects a preferred one.

Selection Heuristic:
-------------------
1. First device whose label mentions back/rear/environment
2. Otherwise the last enumerated device (rear cameras tend to be listed last)

The heuristic is best-effort; labels may be empty or misleading.

==============================================================================
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from .models import CameraDevice, FacingHint


# Module logger
logger = logging.getLogger(__name__)


class DeviceSource:
    """Platform device enumeration; raises when enumeration is unsupported."""

    def list_devices(self) -> List[CameraDevice]:
        raise NotImplementedError


class SysfsDeviceSource(DeviceSource):
    """
    Linux V4L2 enumeration through sysfs.

    Reads ``<root>/videoN/name`` for every capture node (``index`` 0;
    metadata nodes of the same camera are skipped) and reports
    ``/dev/videoN`` ids in index order.
    """

    _NODE = re.compile(r"^video(\d+)$")

    def __init__(self, root: Path = Path("/sys/class/video4linux")) -> None:
        self._root = root

    def list_devices(self) -> List[CameraDevice]:
        nodes = []
        for entry in self._root.iterdir():
            match = self._NODE.match(entry.name)
            if not match:
                continue
            if self._read(entry / "index", "0") != "0":
                continue
            nodes.append((int(match.group(1)), entry))

        return [
            CameraDevice.from_label(f"/dev/{entry.name}", self._read(entry / "name", ""))
            for _, entry in sorted(nodes)
        ]

    @staticmethod
    def _read(path: Path, default: str) -> str:
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError:
            return default


class DeviceCatalog:
    """
    Current list of camera devices with selection helpers.

    Attributes:
        devices: Devices in enumeration order

    Example:
        >>> catalog = DeviceCatalog(source)
        >>> catalog.refresh()
        >>> catalog.pick_preferred()
        '/dev/video2'
    """

    def __init__(self, source: DeviceSource) -> None:
        self._source = source
        self._devices: List[CameraDevice] = []

    @property
    def devices(self) -> List[CameraDevice]:
        return list(self._devices)

    def refresh(self) -> List[CameraDevice]:
        """
        Re-enumerate video-input devices.

        Never raises: unsupported or blocked enumeration yields an empty
        list and a logged warning.

        Returns:
            Devices in platform order
        """
        try:
            self._devices = list(self._source.list_devices())
        except Exception as e:
            logger.warning(f"⚠️ Device enumeration failed: {e}")
            self._devices = []
            return []

        logger.info(f"📷 Video devices: {[d.display_name for d in self._devices]}")
        return self.devices

    def find(self, device_id: Optional[str]) -> Optional[CameraDevice]:
        for device in self._devices:
            if device.id == device_id:
                return device
        return None

    def pick_preferred(self) -> Optional[str]:
        """
        Pick the device most likely to face away from the operator.

        Returns:
            Device id, or None when no devices are known
        """
        if not self._devices:
            return None

        for device in self._devices:
            if device.facing_hint == FacingHint.ENVIRONMENT:
                return device.id

        return self._devices[-1].id

    def next(self, current_id: Optional[str]) -> Optional[str]:
        """
        Id of the device following ``current_id``, wrapping around.

        An unknown ``current_id`` starts from the first device.
        """
        if not self._devices:
            return None

        ids = [d.id for d in self._devices]
        index = ids.index(current_id) if current_id in ids else -1
        return ids[(index + 1) % len(ids)]
