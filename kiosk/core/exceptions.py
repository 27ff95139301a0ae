"""
Kiosk Exception Handling

Single ScanException class for session-level, dispatch-level and upload
failures, with FastAPI integration for the control API.

Decode misses are not exceptions: a single decode attempt always reduces to
a NotFound or TransientError outcome value (see kiosk.decoding.models).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ScanException(Exception):
    """
    Unified exception for failures surfaced to the kiosk status line.

    Usage:
        raise ScanException("Camera busy", "CAPTURE_ERROR", 503)
        raise ScanException("No code found", "UPLOAD_DECODE_EXHAUSTED", 422, {"attempts": 5})

    Error Codes:
        Capture:
            - CAPTURE_ERROR (503)
            - NO_DEVICES (503)

        Dispatch:
            - DISPATCH_ERROR (502)

        Upload:
            - IMAGE_UNREADABLE (400)
            - UPLOAD_DECODE_EXHAUSTED (422)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize scan exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "CAPTURE_ERROR")
            status_code: HTTP status code used by the control API
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def scan_exception_handler(request: Request, exc: ScanException) -> JSONResponse:
    """Convert ScanException to the JSON error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ScanException, scan_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def capture_failed(reason: str, device_id: Optional[str] = None) -> ScanException:
    """Create camera acquisition failure (permission, busy, hardware)."""
    details = {"reason": reason}
    if device_id:
        details["device_id"] = device_id
    return ScanException(
        "Camera error, check permission and connection",
        "CAPTURE_ERROR",
        503,
        details
    )


def no_devices() -> ScanException:
    """Create no-camera-available exception."""
    return ScanException("No video devices available", "NO_DEVICES", 503)


def dispatch_failed(reason: str, status: Optional[int] = None) -> ScanException:
    """Create reporting endpoint failure exception."""
    details: Dict[str, Any] = {"reason": reason}
    if status is not None:
        details["status"] = status
    return ScanException("Report failed, check endpoint", "DISPATCH_ERROR", 502, details)


def image_unreadable() -> ScanException:
    """Create unreadable upload exception."""
    return ScanException("Uploaded file is not a readable image", "IMAGE_UNREADABLE", 400)


def upload_decode_exhausted(attempts: int) -> ScanException:
    """Create exception for an upload where every candidate transform failed."""
    return ScanException(
        "Decode failed, supply a new image",
        "UPLOAD_DECODE_EXHAUSTED",
        422,
        {"attempts": attempts}
    )
