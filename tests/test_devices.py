"""
==============================================================================
Device Catalog and Capture Session Tests
==============================================================================

Tests for camera enumeration, preferred/next selection and the single
active stream.

==============================================================================
"""

import asyncio

import pytest

from kiosk.devices import (
    CameraDevice,
    CaptureSession,
    DeviceCatalog,
    FacingHint,
    SessionState,
    SysfsDeviceSource,
)

from conftest import FakeDeviceSource, FakeOpener


class TestFacingHint:
    """Tests for label-based orientation guessing."""

    @pytest.mark.parametrize("label,expected", [
        ("Back Camera", FacingHint.ENVIRONMENT),
        ("camera2 0, facing REAR", FacingHint.ENVIRONMENT),
        ("Front Camera", FacingHint.USER),
        ("HD Webcam", FacingHint.UNKNOWN),
        ("", FacingHint.UNKNOWN),
    ])
    def test_from_label(self, label, expected):
        """Test hint inferred case-insensitively from the label."""
        assert CameraDevice.from_label("x", label).facing_hint == expected

    def test_display_name_falls_back_to_id(self):
        """Test unlabeled devices display their id."""
        assert CameraDevice.from_label("/dev/video0").display_name == "/dev/video0"


class TestDeviceCatalog:
    """Tests for device selection."""

    def test_prefers_back_camera(self, device_catalog):
        """Test Front/Back pair selects the back camera."""
        device_catalog.refresh()
        assert device_catalog.pick_preferred() == "b"

    def test_falls_back_to_last_device(self):
        """Test last device chosen when no label hints at the environment."""
        catalog = DeviceCatalog(FakeDeviceSource([
            CameraDevice.from_label("a", "Integrated Webcam"),
            CameraDevice.from_label("b", "USB Camera"),
        ]))
        catalog.refresh()
        assert catalog.pick_preferred() == "b"

    def test_first_environment_device_wins(self):
        """Test the first matching device is chosen over later ones."""
        catalog = DeviceCatalog(FakeDeviceSource([
            CameraDevice.from_label("a", "Rear wide"),
            CameraDevice.from_label("b", "Back tele"),
            CameraDevice.from_label("c", "Front"),
        ]))
        catalog.refresh()
        assert catalog.pick_preferred() == "a"

    def test_empty_catalog(self):
        """Test selection helpers return None without devices."""
        catalog = DeviceCatalog(FakeDeviceSource([]))
        assert catalog.refresh() == []
        assert catalog.pick_preferred() is None
        assert catalog.next("a") is None

    def test_next_cycles(self, device_catalog):
        """Test next() wraps around in enumeration order."""
        device_catalog.refresh()
        assert device_catalog.next("a") == "b"
        assert device_catalog.next("b") == "a"

    def test_next_cycle_length(self):
        """Test n applications of next() return to the start."""
        ids = ["v0", "v1", "v2"]
        catalog = DeviceCatalog(FakeDeviceSource([CameraDevice.from_label(i) for i in ids]))
        catalog.refresh()

        current = "v1"
        for _ in range(len(ids)):
            current = catalog.next(current)
        assert current == "v1"

    def test_next_unknown_id_starts_at_first(self, device_catalog):
        """Test an unknown or missing current id yields the first device."""
        device_catalog.refresh()
        assert device_catalog.next(None) == "a"
        assert device_catalog.next("gone") == "a"

    def test_refresh_failure_yields_empty(self):
        """Test unsupported enumeration is reported as no devices."""
        catalog = DeviceCatalog(FakeDeviceSource(error=PermissionError("blocked")))
        assert catalog.refresh() == []
        assert catalog.devices == []

    def test_find(self, device_catalog):
        """Test lookup by id."""
        device_catalog.refresh()
        assert device_catalog.find("b").label == "Back Camera"
        assert device_catalog.find("z") is None


class TestSysfsDeviceSource:
    """Tests for Linux sysfs enumeration."""

    def _node(self, root, name, label, index="0"):
        node = root / name
        node.mkdir()
        (node / "name").write_text(f"{label}\n")
        (node / "index").write_text(f"{index}\n")

    def test_lists_capture_nodes_in_order(self, tmp_path):
        """Test capture nodes listed by number, metadata nodes skipped."""
        self._node(tmp_path, "video10", "Back Camera")
        self._node(tmp_path, "video2", "Front Camera")
        self._node(tmp_path, "video3", "Front Camera", index="1")
        (tmp_path / "v4l-subdev0").mkdir()

        devices = SysfsDeviceSource(tmp_path).list_devices()

        assert [d.id for d in devices] == ["/dev/video2", "/dev/video10"]
        assert devices[1].facing_hint == FacingHint.ENVIRONMENT

    def test_missing_root_fails_refresh_gracefully(self, tmp_path):
        """Test a missing sysfs directory results in an empty catalog."""
        catalog = DeviceCatalog(SysfsDeviceSource(tmp_path / "missing"))
        assert catalog.refresh() == []


class TestCaptureSession:
    """Tests for the capture session lifecycle."""

    @pytest.mark.asyncio
    async def test_start_goes_live(self, session: CaptureSession, opener: FakeOpener):
        """Test successful start reaches LIVE with dimensions."""
        assert session.state == SessionState.IDLE

        assert await session.start("b") is True

        assert session.state == SessionState.LIVE
        assert session.device_id == "b"
        assert session.dimensions() == (64, 48)
        assert opener.opened == ["b"]

    @pytest.mark.asyncio
    async def test_start_releases_previous_stream_first(self, session, opener):
        """Test at most one stream is ever open."""
        await session.start("a")
        first = opener.streams[0]

        await session.start("b")

        assert first.released is True
        assert opener.max_active == 1
        assert opener.active == 1

    @pytest.mark.asyncio
    async def test_start_failure(self):
        """Test failure stops the session with an error and no retry."""
        opener = FakeOpener(fail_ids={"b"})
        session = CaptureSession(opener)

        assert await session.start("b") is False

        assert session.state == SessionState.STOPPED
        assert session.last_error.code == "CAPTURE_ERROR"
        assert session.last_error.details["device_id"] == "b"
        assert opener.opened == ["b"]
        assert await session.read_frame() is None

    @pytest.mark.asyncio
    async def test_start_with_unexpected_error(self):
        """Test platform exceptions are reduced to a capture error."""

        class BrokenOpener(FakeOpener):
            def open(self, device_id, width, height):
                raise RuntimeError("driver crashed")

        session = CaptureSession(BrokenOpener())
        assert await session.start(None) is False
        assert session.last_error.details["reason"] == "driver crashed"

    @pytest.mark.asyncio
    async def test_read_frame(self, session):
        """Test frames are wrapped with their dimensions."""
        await session.start("a")
        frame = await session.read_frame()
        assert (frame.width, frame.height) == (64, 48)

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, session, opener):
        """Test stop releases the stream and may be repeated."""
        await session.start("a")

        await session.stop()
        await session.stop()

        assert session.state == SessionState.STOPPED
        assert opener.active == 0
        assert session.dimensions() is None
        assert await session.read_frame() is None

    @pytest.mark.asyncio
    async def test_stop_before_start(self, session):
        """Test stopping an idle session changes nothing."""
        await session.stop()
        assert session.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_stop_waits_for_pending_read(self):
        """Test a stream is not released while a worker thread reads it."""
        opener = FakeOpener(read_delay=0.2)
        session = CaptureSession(opener)
        await session.start("a")

        reader = asyncio.create_task(session.read_frame())
        await asyncio.sleep(0.05)
        await session.stop()

        assert opener.released_during_read is False
        assert opener.streams[0].released is True
        assert await reader is None

    @pytest.mark.asyncio
    async def test_restart_waits_for_pending_read(self):
        """Test starting another camera lets the old stream finish its read."""
        opener = FakeOpener(read_delay=0.2)
        session = CaptureSession(opener)
        await session.start("a")

        reader = asyncio.create_task(session.read_frame())
        await asyncio.sleep(0.05)
        assert await session.start("b") is True

        assert opener.released_during_read is False
        assert opener.max_active == 1
        assert await reader is None
        assert session.device_id == "b"

    @pytest.mark.asyncio
    async def test_concurrent_reads_share_one_read(self):
        """Test overlapping callers wait on the same outstanding read."""
        opener = FakeOpener(read_delay=0.05)
        session = CaptureSession(opener)
        await session.start("a")

        first, second = await asyncio.gather(session.read_frame(), session.read_frame())

        assert opener.streams[0].reads == 1
        assert first.width == second.width == 64
        await session.stop()
