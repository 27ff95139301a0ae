"""
==============================================================================
Live Scan Loop Module
==============================================================================

Periodic sampling of the capture session with single in-flight decoding
and debounced detection.

Tick Flow:
---------
1. Previous tick still decoding -> skip (samples are dropped, not queued)
2. No frame available -> skip
3. Crop the centered region, decode with the identity candidate
4. Code seen inside the debounce window -> discard
5. Otherwise arm the window and hand a DetectionEvent to the sink

``end()`` cancels the timer and bumps a generation token; a decode that
completes afterwards is discarded. ``stop()`` also waits for that decode
and its dispatch to finish, so the stream and HTTP client can be released
safely.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from kiosk.decoding import BackendChain, DecodeAttempt, IDENTITY, Region
from kiosk.devices import CaptureSession
from kiosk.dispatch import DetectionEvent, DetectionSource

from .models import DebounceWindow, LoopState


# Module logger
logger = logging.getLogger(__name__)


DetectionSink = Callable[[DetectionEvent], Awaitable[Any]]


class LiveScanLoop:
    """
    Timer-driven decode loop over the live camera stream.

    Attributes:
        state: LoopState (stopped or sampling)
        skipped_ticks: Ticks dropped because a decode was still in flight

    Example:
        >>> loop = LiveScanLoop(session, chain, dispatcher.dispatch)
        >>> loop.begin()
        >>> # ... codes held in front of the camera are reported once ...
        >>> loop.end()
    """

    def __init__(
        self,
        session: CaptureSession,
        chain: BackendChain,
        on_detection: DetectionSink,
        interval: float = 0.3,
        debounce_seconds: float = 2.5,
        crop_fraction: float = 0.8,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the loop.

        Args:
            session: Capture session frames are read from
            chain: Backend chain used for each sample
            on_detection: Async sink receiving each confirmed detection
            interval: Seconds between ticks
            debounce_seconds: Window suppressing repeats of one code
            crop_fraction: Centered share of the frame that is decoded
            clock: Monotonic clock (seconds)
        """
        self._session = session
        self._chain = chain
        self._on_detection = on_detection
        self._interval = interval
        self._debounce = debounce_seconds
        self._crop_fraction = crop_fraction
        self._clock = clock

        self._window = DebounceWindow()
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._generation = 0

        self.state = LoopState.STOPPED
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def window(self) -> DebounceWindow:
        return self._window

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def begin(self) -> None:
        """Start the periodic timer; no-op when already sampling."""
        if self.is_running:
            return

        self._generation += 1
        self.state = LoopState.SAMPLING
        self._timer = asyncio.create_task(self._run(self._generation))
        logger.info(f"🔄 Live scanning started ({self._interval * 1000:.0f} ms interval)")

    def end(self) -> None:
        """Cancel the timer; idempotent and safe while a decode is in flight."""
        timer, self._timer = self._timer, None
        self._generation += 1

        if timer is not None and not timer.done():
            timer.cancel()
            logger.info("🛑 Live scanning stopped")

        self.state = LoopState.STOPPED

    async def stop(self) -> None:
        """
        End sampling and wait for the in-flight tick, including its
        dispatch, to finish.
        """
        self.end()
        pending, self._in_flight = self._in_flight, None
        if pending is not None and not pending.done():
            await asyncio.wait([pending])

    def reset_debounce(self) -> None:
        """Forget the last detected code."""
        self._window.clear()

    async def _run(self, generation: int) -> None:
        while True:
            try:
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break

            if self._in_flight is not None and not self._in_flight.done():
                self.skipped_ticks += 1
                continue

            self._in_flight = asyncio.create_task(self.tick(generation))

    # =========================================================================
    # TICK
    # =========================================================================

    async def tick(self, generation: Optional[int] = None) -> Optional[DetectionEvent]:
        """
        Sample and decode one frame.

        Args:
            generation: Loop generation that scheduled this tick
                (defaults to the current one)

        Returns:
            The emitted DetectionEvent, or None
        """
        if generation is None:
            generation = self._generation

        try:
            frame = await self._session.read_frame()
            if frame is None or generation != self._generation:
                return None

            region = Region.centered(frame.width, frame.height, self._crop_fraction)
            attempt = await self._chain.first_success(frame.pixels, region, (IDENTITY,))

            if generation != self._generation:
                logger.debug("Discarding decode that finished after the loop ended")
                return None

            if attempt is None:
                return None

            return await self._handle_code(attempt)

        except Exception as e:
            logger.error(f"Live loop error: {e}")
            return None

    async def _handle_code(self, attempt: DecodeAttempt) -> Optional[DetectionEvent]:
        code = attempt.code
        now = self._clock()

        if self._window.suppresses(code, now):
            return None

        self._window.arm(code, now, self._debounce)
        event = DetectionEvent(code=code, source=DetectionSource.LIVE, backend=attempt.backend)
        logger.info(f"🔍 Detected {code} via {attempt.backend}")

        await self._on_detection(event)
        return event
