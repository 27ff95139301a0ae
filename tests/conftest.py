"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides fake camera platforms, fake decode backends, a controllable clock
and a recording reporting endpoint.

==============================================================================
"""

import json
import time
from typing import Dict, List, Optional, Tuple

import httpx
import numpy as np
import pytest

from kiosk.catalog import ProductCatalog
from kiosk.config import Settings
from kiosk.core import exceptions
from kiosk.decoding import BackendChain, DecodeBackend
from kiosk.devices import (
    CameraDevice,
    CaptureSession,
    DeviceCatalog,
    DeviceSource,
    StreamOpener,
    VideoStream,
)
from kiosk.dispatch import DetectionDispatcher
from kiosk.scanner import ScanOrchestrator
from kiosk.utils import StatusBoard


ENDPOINT = "http://pi.test/add_item"


# ============================================================================
# FAKE PLATFORM
# ============================================================================

class FakeDeviceSource(DeviceSource):
    """Device source returning a fixed list, or failing like a blocked platform."""

    def __init__(self, devices: Optional[List[CameraDevice]] = None, error: Optional[Exception] = None):
        self.devices = devices or []
        self.error = error

    def list_devices(self) -> List[CameraDevice]:
        if self.error is not None:
            raise self.error
        return list(self.devices)


class FakeStream(VideoStream):
    """
    Stream yielding the same frame until released.

    Reads block the worker thread for ``read_delay`` seconds, like a camera
    waiting for its next frame.
    """

    def __init__(self, opener: "FakeOpener", device_id: Optional[str], frame: np.ndarray, read_delay: float = 0.0):
        self.opener = opener
        self.device_id = device_id
        self.frame = frame
        self.read_delay = read_delay
        self.released = False
        self.reading = False
        self.reads = 0

    def read(self) -> Optional[np.ndarray]:
        if self.released:
            return None
        self.reading = True
        try:
            self.reads += 1
            if self.read_delay:
                time.sleep(self.read_delay)
            return self.frame
        finally:
            self.reading = False

    def dimensions(self) -> Optional[Tuple[int, int]]:
        height, width = self.frame.shape[:2]
        return width, height

    def release(self) -> None:
        if self.reading:
            self.opener.released_during_read = True
        if not self.released:
            self.released = True
            self.opener.active -= 1


class FakeOpener(StreamOpener):
    """
    Records every open; ``fail_ids`` simulate permission/hardware failures.

    ``max_active`` is the highest number of simultaneously open streams;
    ``released_during_read`` flags a stream released under a reading thread.
    """

    def __init__(
        self,
        frame: Optional[np.ndarray] = None,
        fail_ids: Optional[set] = None,
        read_delay: float = 0.0
    ):
        self.frame = frame if frame is not None else np.zeros((48, 64, 3), dtype=np.uint8)
        self.fail_ids = fail_ids or set()
        self.opened: List[Optional[str]] = []
        self.streams: List[FakeStream] = []
        self.active = 0
        self.max_active = 0
        self.read_delay = read_delay
        self.released_during_read = False

    def open(self, device_id: Optional[str], width: int, height: int) -> VideoStream:
        self.opened.append(device_id)
        if device_id in self.fail_ids:
            raise exceptions.capture_failed("permission denied", device_id)

        stream = FakeStream(self, device_id, self.frame, self.read_delay)
        self.streams.append(stream)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        return stream


# ============================================================================
# FAKE BACKENDS
# ============================================================================

class StaticBackend(DecodeBackend):
    """Returns ``code`` for every frame (None = nothing found)."""

    def __init__(self, name: str = "static", code: Optional[str] = None, available: bool = True):
        super().__init__()
        self.name = name
        self.code = code
        self._capable = available
        self.calls = 0

    def _load(self):
        if not self._capable:
            raise ImportError(f"{self.name} engine missing")
        return object()

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        self.calls += 1
        return self.code


class FailingBackend(StaticBackend):
    """Raises like an engine choking on a malformed frame."""

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        self.calls += 1
        raise ValueError("malformed frame")


class MarkerBackend(StaticBackend):
    """
    Decodes only when the top-right quadrant is bright and the top-left
    quadrant is dark, i.e. after a 90 degree clockwise rotation of an image
    whose bright block sits top-left.
    """

    def _decode(self, pixels: np.ndarray) -> Optional[str]:
        self.calls += 1
        height, width = pixels.shape[:2]
        top_left = pixels[: height // 2, : width // 2].mean()
        top_right = pixels[: height // 2, width // 2:].mean()
        if top_right > 150 and top_left < 100:
            return self.code
        return None


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# REPORTING ENDPOINT
# ============================================================================

class RecordingEndpoint:
    """httpx transport handler recording JSON bodies."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.bodies: List[Dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def front_back_devices() -> List[CameraDevice]:
    return [
        CameraDevice.from_label("a", "Front Camera"),
        CameraDevice.from_label("b", "Back Camera"),
    ]


@pytest.fixture
def device_source(front_back_devices) -> FakeDeviceSource:
    return FakeDeviceSource(front_back_devices)


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def backend() -> StaticBackend:
    return StaticBackend()


@pytest.fixture
def chain(backend) -> BackendChain:
    return BackendChain([backend], transient_log_every=1)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> ProductCatalog:
    return ProductCatalog.from_mapping({
        "8901030875614": {"name": "Biscuits", "price": 45},
        "8901063010031": {"name": "Marie Gold", "price": 30},
    })


@pytest.fixture
def endpoint() -> RecordingEndpoint:
    return RecordingEndpoint()


@pytest.fixture
def status() -> StatusBoard:
    return StatusBoard()


@pytest.fixture
def dispatcher(catalog, endpoint, status) -> DetectionDispatcher:
    return DetectionDispatcher(catalog, ENDPOINT, status=status, transport=endpoint.transport)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        autostart=False,
        endpoint_url=ENDPOINT,
        products_file=str(tmp_path / "products.json"),
        scan_interval_ms=20,
        debounce_seconds=2.0,
        upload_min_long_side=120,
    )


@pytest.fixture
def orchestrator(settings, device_source, opener, backend, catalog, endpoint, clock) -> ScanOrchestrator:
    return ScanOrchestrator.from_settings(
        settings,
        device_source=device_source,
        opener=opener,
        backends=[backend],
        catalog=catalog,
        transport=endpoint.transport,
        clock=clock,
    )


@pytest.fixture
def session(opener) -> CaptureSession:
    return CaptureSession(opener, width=640, height=480)


@pytest.fixture
def device_catalog(device_source) -> DeviceCatalog:
    return DeviceCatalog(device_source)
