"""
==============================================================================
Upload Decode Pipeline Tests
==============================================================================

Tests for still-image decoding through the bounded candidate list.

==============================================================================
"""

import cv2
import numpy as np
import pytest

from kiosk.core import ScanException
from kiosk.decoding import BackendChain
from kiosk.dispatch import DetectionSource
from kiosk.scanner import UploadDecodePipeline

from conftest import MarkerBackend, StaticBackend


def marker_png() -> bytes:
    pixels = np.zeros((40, 60, 3), dtype=np.uint8)
    pixels[0:20, 0:30] = 255
    ok, encoded = cv2.imencode(".png", pixels)
    assert ok
    return encoded.tobytes()


class TestUploadPipeline:
    """Tests for the upload pipeline."""

    @pytest.mark.asyncio
    async def test_rotation_only_image_decodes(self):
        """Test an image readable only after rotation yields one event."""
        events = []

        async def sink(event):
            events.append(event)

        chain = BackendChain([MarkerBackend("marker", code="ROTATED-1")])
        pipeline = UploadDecodePipeline(chain, sink, min_long_side=120)

        event = await pipeline.run(marker_png())

        assert event.code == "ROTATED-1"
        assert event.source == DetectionSource.UPLOAD
        assert events == [event]

    @pytest.mark.asyncio
    async def test_exhausted_candidates(self):
        """Test failure after every candidate and no event emitted."""
        events = []

        async def sink(event):
            events.append(event)

        backend = StaticBackend("none")
        pipeline = UploadDecodePipeline(BackendChain([backend]), sink, min_long_side=120)

        with pytest.raises(ScanException) as exc_info:
            await pipeline.run(marker_png())

        assert exc_info.value.code == "UPLOAD_DECODE_EXHAUSTED"
        assert exc_info.value.details["attempts"] == 5
        assert backend.calls == 5
        assert events == []

    @pytest.mark.asyncio
    async def test_contrast_pass_optional(self):
        """Test disabling the contrast pass shortens the candidate list."""
        backend = StaticBackend("none")
        pipeline = UploadDecodePipeline(BackendChain([backend]), min_long_side=120, contrast_pass=False)

        with pytest.raises(ScanException):
            await pipeline.run(marker_png())

        assert backend.calls == 4

    @pytest.mark.asyncio
    async def test_identity_first(self):
        """Test a directly readable image decodes on the first candidate."""
        backend = StaticBackend("plain", code="PLAIN")
        pipeline = UploadDecodePipeline(BackendChain([backend]), min_long_side=120)

        event = await pipeline.run(marker_png())

        assert event.code == "PLAIN"
        assert backend.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [b"", b"definitely not an image"])
    async def test_unreadable_image(self, data):
        """Test undecodable files are rejected before any decode."""
        backend = StaticBackend("plain", code="PLAIN")
        pipeline = UploadDecodePipeline(BackendChain([backend]))

        with pytest.raises(ScanException) as exc_info:
            await pipeline.run(data)

        assert exc_info.value.code == "IMAGE_UNREADABLE"
        assert backend.calls == 0
