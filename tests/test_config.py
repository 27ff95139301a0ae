"""
==============================================================================
Settings and Status Board Tests
==============================================================================
"""

import pytest
from pydantic import ValidationError

from kiosk.config import Settings
from kiosk.utils import StatusBoard


class TestSettings:
    """Tests for kiosk settings."""

    def test_defaults(self):
        """Test default scanning parameters."""
        settings = Settings(_env_file=None)
        assert settings.scan_interval == 0.3
        assert settings.debounce_seconds == 2.5
        assert settings.capture_width == 1280
        assert settings.capture_height == 720
        assert settings.decode_backend_list == ["opencv-barcode", "opencv-qr", "zxing", "pyzbar"]

    def test_env_override(self, monkeypatch):
        """Test KIOSK_ environment variables override defaults."""
        monkeypatch.setenv("KIOSK_ENDPOINT_URL", "http://10.0.0.5:5000/add_item")
        monkeypatch.setenv("KIOSK_SCAN_INTERVAL_MS", "500")

        settings = Settings(_env_file=None)

        assert settings.endpoint_url == "http://10.0.0.5:5000/add_item"
        assert settings.scan_interval == 0.5

    def test_endpoint_must_be_http(self):
        """Test non-HTTP endpoints are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, endpoint_url="pi.local:5000/add_item")

    def test_invalid_backend_list_falls_back(self):
        """Test malformed backend JSON yields the default order."""
        settings = Settings(_env_file=None, decode_backends="opencv-qr")
        assert settings.decode_backend_list[0] == "opencv-barcode"

    def test_custom_backend_order(self):
        """Test backend order is configurable."""
        settings = Settings(_env_file=None, decode_backends='["pyzbar", "zxing"]')
        assert settings.decode_backend_list == ["pyzbar", "zxing"]


class TestStatusBoard:
    """Tests for the status surface."""

    def test_set_and_log(self):
        """Test status replacement and timestamped log lines."""
        board = StatusBoard()
        board.set("scanning...")
        board.log("posted", {"name": "Biscuits", "price": 45})

        assert board.status == "scanning..."
        assert board.lines[-1].endswith('posted {"name": "Biscuits", "price": 45}')

    def test_log_is_bounded(self):
        """Test old lines are dropped."""
        board = StatusBoard(max_lines=3)
        for i in range(5):
            board.log("line", i)

        assert [line.split(" ", 1)[1] for line in board.lines] == ["line 2", "line 3", "line 4"]

    def test_snapshot_tail(self):
        """Test snapshot returns the requested tail."""
        board = StatusBoard()
        for i in range(5):
            board.log(i)

        assert len(board.snapshot(tail=2)["log"]) == 2
        assert board.snapshot(tail=0)["log"] == []
