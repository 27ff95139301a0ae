"""
==============================================================================
Upload Decode Pipeline Module
==============================================================================

Multi-pass decoding of a single still image.

The candidate list is finite and tried exactly once, in order (see
kiosk.decoding.transforms.upload_candidates). The first success emits one
DetectionEvent; exhausting the list raises UPLOAD_DECODE_EXHAUSTED and the
user must supply a new image.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

import cv2
import numpy as np

from kiosk.core import exceptions
from kiosk.decoding import BackendChain, Region, upload_candidates
from kiosk.dispatch import DetectionEvent, DetectionSource


# Module logger
logger = logging.getLogger(__name__)


class UploadDecodePipeline:
    """
    Decodes uploaded photographs through a bounded candidate list.

    Example:
        >>> pipeline = UploadDecodePipeline(chain, dispatcher.dispatch)
        >>> event = await pipeline.run(Path("photo.jpg").read_bytes())
        >>> event.source
        <DetectionSource.UPLOAD: 'upload'>
    """

    def __init__(
        self,
        chain: BackendChain,
        on_detection: Optional[Callable[[DetectionEvent], Awaitable[Any]]] = None,
        min_long_side: int = 1600,
        contrast_pass: bool = True,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            chain: Backend chain used for every candidate
            on_detection: Async sink receiving the detection
            min_long_side: Upscale target for the image's longer side
            contrast_pass: Include the grayscale contrast-stretch candidate
        """
        self._chain = chain
        self._on_detection = on_detection
        self._min_long_side = min_long_side
        self._contrast_pass = contrast_pass

    @staticmethod
    def load_image(data: bytes) -> np.ndarray:
        """
        Decode raw file bytes with OpenCV's image loader.

        Raises:
            ScanException: IMAGE_UNREADABLE for empty or undecodable data
        """
        if not data:
            raise exceptions.image_unreadable()

        pixels = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
        if pixels is None or pixels.size == 0:
            raise exceptions.image_unreadable()
        return pixels

    async def run(self, data: bytes) -> DetectionEvent:
        """Decode an uploaded image file (raw bytes)."""
        return await self.run_frame(self.load_image(data))

    async def run_frame(
        self,
        pixels: np.ndarray,
        source: DetectionSource = DetectionSource.UPLOAD
    ) -> DetectionEvent:
        """
        Try every candidate transform once until one decodes.

        Args:
            pixels: Still image
            source: Source recorded on the emitted event

        Returns:
            The emitted DetectionEvent

        Raises:
            ScanException: UPLOAD_DECODE_EXHAUSTED when all candidates fail
        """
        height, width = pixels.shape[:2]
        candidates = upload_candidates(width, height, self._min_long_side, self._contrast_pass)
        logger.info(
            f"🖼️ Decoding {source.value} {width}x{height} with {len(candidates)} candidates: "
            f"{[c.describe() for c in candidates]}"
        )

        attempt = await self._chain.first_success(pixels, Region.full(width, height), candidates)
        if attempt is None:
            logger.warning(f"{source.value.capitalize()} decode failed after {len(candidates)} candidates")
            raise exceptions.upload_decode_exhausted(len(candidates))

        event = DetectionEvent(code=attempt.code, source=source, backend=attempt.backend)
        logger.info(f"🔍 {source.value.capitalize()} decoded {event.code} via {attempt.backend} ({attempt.transform.describe()})")

        if self._on_detection is not None:
            await self._on_detection(event)
        return event
