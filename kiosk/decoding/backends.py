"""
==============================================================================
Decode Backends Module
==============================================================================

Interchangeable decoding strategies wrapping third-party engines.

Backends (default priority order):
---------------------------------
- opencv-barcode: OpenCV's built-in 1D barcode detector (fast, native)
- opencv-qr: OpenCV's built-in QR detector (native)
- zxing: zxing-cpp multi-format reader (software fallback)
- pyzbar: ZBar via pyzbar (software fallback)

Each backend loads its engine lazily. Any failure while loading it marks the
backend unavailable; the chain then skips it exactly as if it had found
nothing.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import cv2
import numpy as np

from .transforms import to_gray


# Module logger
logger = logging.getLogger(__name__)


class DecodeBackend:
    """
    Base class for one decoding strategy.

    Subclasses implement ``_load`` (return the engine, raise when the
    capability is missing) and ``_decode`` (return a code or None).
    ``decode`` may raise on malformed input; the chain reduces that to a
    transient error.
    """

    name = "base"

    def __init__(self) -> None:
        self._engine: Any = None
        self._available: Optional[bool] = None

    def is_available(self) -> bool:
        """Load the engine once; False when the capability is missing."""
        if self._available is None:
            try:
                self._engine = self._load()
                self._available = True
            except Exception as e:
                logger.warning(f"⚠️ Decode backend '{self.name}' unavailable: {e}")
                self._available = False
        return self._available

    def decode(self, pixels: np.ndarray) -> Optional[str]:
        """
        Attempt to extract a code from ``pixels``.

        Returns:
            Decoded text, or None when nothing was found
        """
        if not self.is_available():
            return None
        return self._decode(pixels)

    def _load(self) -> Any:
        raise NotImplementedError

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class OpenCVBarcodeBackend(DecodeBackend):
    """Native 1D barcode detector shipped with OpenCV (4.8+ main modules)."""

    name = "opencv-barcode"

    def _load(self) -> Any:
        return cv2.barcode.BarcodeDetector()

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        detector = self._engine
        if hasattr(detector, "detectAndDecodeMulti"):
            ok, decoded_info, *_ = detector.detectAndDecodeMulti(pixels)
        else:
            ok, decoded_info, *_ = detector.detectAndDecode(pixels)

        if not ok or decoded_info is None:
            return None
        for text in decoded_info:
            if text:
                return text
        return None


class OpenCVQRBackend(DecodeBackend):
    """Native QR detector shipped with OpenCV."""

    name = "opencv-qr"

    def _load(self) -> Any:
        return cv2.QRCodeDetector()

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        text, _points, _straight = self._engine.detectAndDecode(pixels)
        return text or None


class ZXingBackend(DecodeBackend):
    """Multi-format software reader (zxing-cpp)."""

    name = "zxing"

    def _load(self) -> Any:
        import zxingcpp

        return zxingcpp

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        for result in self._engine.read_barcodes(to_gray(pixels)):
            if result.text:
                return result.text
        return None


class PyzbarBackend(DecodeBackend):
    """ZBar reader via pyzbar; needs the zbar shared library."""

    name = "pyzbar"

    def _load(self) -> Any:
        from pyzbar import pyzbar

        return pyzbar

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        for barcode in self._engine.decode(to_gray(pixels)):
            text = barcode.data.decode("utf-8", errors="replace")
            if text:
                return text
        return None


# =============================================================================
# BACKEND REGISTRY
# =============================================================================

BACKENDS: Dict[str, Callable[[], DecodeBackend]] = {
    OpenCVBarcodeBackend.name: OpenCVBarcodeBackend,
    OpenCVQRBackend.name: OpenCVQRBackend,
    ZXingBackend.name: ZXingBackend,
    PyzbarBackend.name: PyzbarBackend,
}


def build_backends(names: List[str]) -> List[DecodeBackend]:
    """
    Instantiate backends in the given priority order.

    Unknown names are logged and skipped.
    """
    backends = []
    for name in names:
        factory = BACKENDS.get(name)
        if factory is None:
            logger.warning(f"Unknown decode backend '{name}', skipping")
            continue
        backends.append(factory())
    return backends
