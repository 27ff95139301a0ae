"""
==============================================================================
Scan Orchestrator Module
==============================================================================

Owns every piece of scanner state for one kiosk: the device catalog, the
capture session, the backend chain, the live loop, the upload pipeline, the
dispatcher and the status board.

Control Operations:
------------------
- init / retry: enumerate, pick preferred camera, go live, start sampling
- switch_camera: end sampling, move to the next camera, reset debounce,
  start sampling again
- upload: decode a still image and report it
- snapshot_decode: decode the current live frame like an upload and report it
- stop / shutdown: end sampling and release the camera (and HTTP client)

Control operations are serialised with an asyncio.Lock so a retry and a
switch cannot interleave their camera requests.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from kiosk.catalog import ProductCatalog
from kiosk.config import Settings
from kiosk.core import ScanException
from kiosk.core import exceptions
from kiosk.decoding import BackendChain, DecodeBackend, build_backends
from kiosk.devices import (
    CaptureSession,
    DeviceCatalog,
    DeviceSource,
    OpenCVStreamOpener,
    StreamOpener,
    SysfsDeviceSource,
)
from kiosk.dispatch import DetectionDispatcher, DetectionEvent, DetectionSource, DispatchResult
from kiosk.utils import StatusBoard

from .live import LiveScanLoop
from .upload import UploadDecodePipeline


# Module logger
logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """
    One scan session's worth of components, wired together.

    Attributes:
        devices: DeviceCatalog
        session: CaptureSession
        chain: BackendChain shared by both pipelines
        live: LiveScanLoop
        upload_pipeline: UploadDecodePipeline
        dispatcher: DetectionDispatcher
        status: StatusBoard
        last_dispatch: Result of the most recent report

    Example:
        >>> orchestrator = ScanOrchestrator.from_settings(get_settings())
        >>> await orchestrator.init()
        True
        >>> await orchestrator.switch_camera()
        '/dev/video2'
        >>> await orchestrator.shutdown()
    """

    def __init__(
        self,
        devices: DeviceCatalog,
        session: CaptureSession,
        chain: BackendChain,
        dispatcher: DetectionDispatcher,
        status: Optional[StatusBoard] = None,
        interval: float = 0.3,
        debounce_seconds: float = 2.5,
        crop_fraction: float = 0.8,
        upload_min_long_side: int = 1600,
        upload_contrast_pass: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.devices = devices
        self.session = session
        self.chain = chain
        self.dispatcher = dispatcher
        self.status = status or StatusBoard()

        self.live = LiveScanLoop(
            session,
            chain,
            self._handle_detection,
            interval=interval,
            debounce_seconds=debounce_seconds,
            crop_fraction=crop_fraction,
            clock=clock,
        )
        self.upload_pipeline = UploadDecodePipeline(
            chain,
            min_long_side=upload_min_long_side,
            contrast_pass=upload_contrast_pass,
        )

        self.last_dispatch: Optional[DispatchResult] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        device_source: Optional[DeviceSource] = None,
        opener: Optional[StreamOpener] = None,
        backends: Optional[List[DecodeBackend]] = None,
        catalog: Optional[ProductCatalog] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "ScanOrchestrator":
        """
        Build an orchestrator from settings; any platform adapter may be
        replaced (tests, other platforms).
        """
        status = StatusBoard(max_lines=settings.status_log_lines)

        if catalog is None:
            catalog = ProductCatalog(settings.products_path)
        if backends is None:
            backends = build_backends(settings.decode_backend_list)

        return cls(
            devices=DeviceCatalog(device_source or SysfsDeviceSource(settings.device_root_path)),
            session=CaptureSession(
                opener or OpenCVStreamOpener(),
                width=settings.capture_width,
                height=settings.capture_height,
            ),
            chain=BackendChain(backends, transient_log_every=settings.transient_log_every),
            dispatcher=DetectionDispatcher(
                catalog,
                settings.endpoint_url,
                timeout=settings.dispatch_timeout_seconds,
                status=status,
                transport=transport,
            ),
            status=status,
            interval=settings.scan_interval,
            debounce_seconds=settings.debounce_seconds,
            crop_fraction=settings.live_crop_fraction,
            upload_min_long_side=settings.upload_min_long_side,
            upload_contrast_pass=settings.upload_contrast_pass,
            clock=clock,
        )

    # =========================================================================
    # DETECTION HANDLING
    # =========================================================================

    async def _handle_detection(self, event: DetectionEvent) -> DispatchResult:
        result = await self.dispatcher.dispatch(event)
        self.last_dispatch = result
        return result

    # =========================================================================
    # CONTROL OPERATIONS
    # =========================================================================

    async def init(self) -> bool:
        """
        Enumerate cameras, start the preferred one and begin sampling.

        Returns:
            True when the camera went live
        """
        async with self._lock:
            self.status.set("initialising…")
            self.status.log("init")

            await self.live.stop()
            self.devices.refresh()
            preferred = self.devices.pick_preferred()
            return await self._go_live(preferred)

    async def retry(self) -> bool:
        """Explicit user retry after a capture failure."""
        return await self.init()

    async def switch_camera(self) -> str:
        """
        Move to the next camera in catalog order.

        Returns:
            Id of the camera now live

        Raises:
            ScanException: NO_DEVICES when nothing can be switched to,
                CAPTURE_ERROR when the next camera fails to start
        """
        async with self._lock:
            if not self.devices.devices:
                self.devices.refresh()

            next_id = self.devices.next(self.session.device_id)
            if next_id is None:
                self.status.log("no video devices to switch")
                raise exceptions.no_devices()

            await self.live.stop()
            self.live.reset_debounce()

            if not await self._go_live(next_id):
                raise self.session.last_error or exceptions.capture_failed("unknown", next_id)
            return next_id

    async def _go_live(self, device_id: Optional[str]) -> bool:
        self.status.set("requesting camera...")

        if not await self.session.start(device_id):
            error = self.session.last_error
            self.status.log("startCamera failed", error.details if error else {})
            self.status.set("camera error — check permission")
            return False

        self.status.log("camera started", device_id or "(default)")
        self.live.reset_debounce()
        self.live.begin()
        self.status.set("scanning...")
        return True

    async def upload(self, data: bytes) -> Tuple[DetectionEvent, DispatchResult]:
        """
        Decode an uploaded image and report the code.

        Raises:
            ScanException: IMAGE_UNREADABLE or UPLOAD_DECODE_EXHAUSTED
        """
        self.status.set("decoding upload…")
        try:
            event = await self.upload_pipeline.run(data)
        except ScanException as e:
            self.status.log("upload decode failed", e.code)
            self.status.set("decode failed — supply a new image")
            raise

        result = await self._handle_detection(event)
        return event, result

    async def snapshot_decode(self) -> Tuple[DetectionEvent, DispatchResult]:
        """
        Grab the current live frame and decode it like an upload.

        The live loop keeps sampling; the report bypasses its debounce
        window, since a snapshot is an explicit user request.

        Raises:
            ScanException: CAPTURE_ERROR when the camera is not live,
                UPLOAD_DECODE_EXHAUSTED when the frame does not decode
        """
        frame = await self.session.read_frame()
        if frame is None:
            self.status.log("snapshot: camera not ready")
            raise exceptions.capture_failed("camera not live", self.session.device_id)

        self.status.set("decoding snapshot…")
        try:
            event = await self.upload_pipeline.run_frame(frame.pixels, DetectionSource.SNAPSHOT)
        except ScanException as e:
            self.status.log("snapshot decode failed", e.code)
            self.status.set("decode failed — try another snapshot")
            raise

        result = await self._handle_detection(event)
        return event, result

    async def stop(self) -> None:
        """End sampling and release the camera."""
        async with self._lock:
            await self.live.stop()
            await self.session.stop()
            self.status.set("stopped")

    async def shutdown(self) -> None:
        await self.stop()
        await self.dispatcher.aclose()

    # =========================================================================
    # STATUS
    # =========================================================================

    def snapshot(self, log_tail: int = 50) -> Dict[str, Any]:
        """Observable state for the status surface."""
        error = self.session.last_error
        dimensions = self.session.dimensions()
        device = self.devices.find(self.session.device_id)

        return {
            **self.status.snapshot(tail=log_tail),
            "session": {
                "state": self.session.state.value,
                "device_id": self.session.device_id,
                "device_label": device.display_name if device else None,
                "dimensions": list(dimensions) if dimensions else None,
                "error": error.to_dict()["error"] if error else None,
            },
            "loop": {
                "state": self.live.state.value,
                "skipped_ticks": self.live.skipped_ticks,
            },
            "backends": self.chain.available_backends(),
            "endpoint_url": self.dispatcher.endpoint_url,
            "last_dispatch": self.last_dispatch.model_dump() if self.last_dispatch else None,
        }
