"""
==============================================================================
Capture Session Module
==============================================================================

Owns the single active camera stream.

Lifecycle:
---------
    IDLE ──start()──▶ REQUESTING ──ok──▶ LIVE ──stop()──▶ STOPPED
                          │
                          └──failure──▶ STOPPED (last_error set)

Starting while LIVE releases the current stream first, so two streams are
never open at once. A stream is only released once no worker thread is
reading from it. Failures are never retried automatically.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from kiosk.core import ScanException
from kiosk.core import exceptions

from .models import FrameSample, SessionState


# Module logger
logger = logging.getLogger(__name__)


class VideoStream:
    """An open camera stream."""

    def read(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    def dimensions(self) -> Optional[Tuple[int, int]]:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class StreamOpener:
    """Acquires streams; raises ScanException when the device cannot be opened."""

    def open(self, device_id: Optional[str], width: int, height: int) -> VideoStream:
        raise NotImplementedError


class OpenCVVideoStream(VideoStream):
    """VideoStream backed by ``cv2.VideoCapture``."""

    def __init__(self, capture: cv2.VideoCapture) -> None:
        self._capture = capture

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self._capture.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def dimensions(self) -> Optional[Tuple[int, int]]:
        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if width <= 0 or height <= 0:
            return None
        return width, height

    def release(self) -> None:
        self._capture.release()


class OpenCVStreamOpener(StreamOpener):
    """
    Opens cameras with OpenCV.

    ``/dev/videoN`` ids open through V4L2, numeric ids by index, and no id
    opens the platform default camera.
    """

    def open(self, device_id: Optional[str], width: int, height: int) -> VideoStream:
        if device_id is None:
            capture = cv2.VideoCapture(0)
        elif device_id.isdigit():
            capture = cv2.VideoCapture(int(device_id))
        else:
            capture = cv2.VideoCapture(device_id, cv2.CAP_V4L2)

        if not capture.isOpened():
            capture.release()
            raise exceptions.capture_failed("device could not be opened", device_id)

        # Ideal resolution; the driver picks the closest supported mode
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        return OpenCVVideoStream(capture)


class CaptureSession:
    """
    Lifecycle of the one camera stream the kiosk reads from.

    No other component touches the stream: frames are read through
    ``read_frame`` and sizes through ``dimensions``.

    Attributes:
        state: Current SessionState
        device_id: Device of the current/last stream (None = default camera)
        last_error: Failure of the most recent start, if any

    Example:
        >>> session = CaptureSession(OpenCVStreamOpener())
        >>> await session.start("/dev/video0")
        True
        >>> frame = await session.read_frame()
        >>> await session.stop()
    """

    def __init__(self, opener: StreamOpener, width: int = 1280, height: int = 720) -> None:
        self._opener = opener
        self._width = width
        self._height = height
        self._stream: Optional[VideoStream] = None
        self._lock = asyncio.Lock()
        self._pending_read: Optional[asyncio.Future] = None
        self.state = SessionState.IDLE
        self.device_id: Optional[str] = None
        self.last_error: Optional[ScanException] = None

    @property
    def is_live(self) -> bool:
        return self.state == SessionState.LIVE and self._stream is not None

    async def start(self, device_id: Optional[str] = None) -> bool:
        """
        Open a stream on ``device_id`` (or the default camera).

        Any live stream is released first.

        Returns:
            True when the session went live
        """
        async with self._lock:
            await self._release()
            self.state = SessionState.REQUESTING
            self.device_id = device_id
            self.last_error = None
            logger.info(f"📷 Requesting camera {device_id or '(default)'}")

            try:
                stream = await asyncio.to_thread(
                    self._opener.open, device_id, self._width, self._height
                )
            except ScanException as e:
                return self._fail(e)
            except Exception as e:
                return self._fail(exceptions.capture_failed(str(e), device_id))

            self._stream = stream
            self.state = SessionState.LIVE
            logger.info(f"✅ Camera live: {device_id or '(default)'} {self.dimensions()}")
            return True

    def _fail(self, error: ScanException) -> bool:
        self.last_error = error
        self.state = SessionState.STOPPED
        logger.error(f"❌ Camera start failed: {error.details.get('reason', error.message)}")
        return False

    async def stop(self) -> None:
        """Release the stream; safe from any state, idempotent."""
        async with self._lock:
            was_open = self._stream is not None
            await self._release()
            if self.state != SessionState.IDLE or was_open:
                self.state = SessionState.STOPPED
            if was_open:
                logger.info("🛑 Camera stopped")

    async def _release(self) -> None:
        # Detached first so no new read starts on it
        stream, self._stream = self._stream, None

        # A worker thread may still be inside stream.read()
        pending = self._pending_read
        if pending is not None and not pending.done():
            await asyncio.wait([pending])

        if stream is not None:
            try:
                stream.release()
            except Exception as e:
                logger.warning(f"Stream release error: {e}")

    def dimensions(self) -> Optional[Tuple[int, int]]:
        """Current frame (width, height), or None when not live."""
        if self._stream is None:
            return None
        return self._stream.dimensions()

    async def read_frame(self) -> Optional[FrameSample]:
        """
        Read the current frame.

        Concurrent callers share one outstanding read, so the stream is
        never read from two threads at once.

        Returns:
            FrameSample, or None when not live or no frame is ready
        """
        stream = self._stream
        if stream is None or self.state != SessionState.LIVE:
            return None

        pending = self._pending_read
        if pending is None or pending.done():
            pending = asyncio.ensure_future(asyncio.to_thread(stream.read))
            self._pending_read = pending

        # Shielded so a cancelled caller leaves the read tracked until it ends
        pixels = await asyncio.shield(pending)

        # Stream stopped or switched while reading
        if pixels is None or stream is not self._stream:
            return None
        return FrameSample.from_pixels(pixels)
