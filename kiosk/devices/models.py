"""
==============================================================================
Device Models Module
==============================================================================

Camera descriptors, capture-session states and frame samples.

==============================================================================
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# Case-insensitive label terms used to guess which way a camera faces
ENVIRONMENT_TERMS = ("back", "rear", "environment")
USER_TERMS = ("front", "user", "face")


class FacingHint(str, enum.Enum):
    """Best-effort guess of camera orientation from its label."""
    ENVIRONMENT = "environment"
    USER = "user"
    UNKNOWN = "unknown"

    @classmethod
    def from_label(cls, label: str) -> "FacingHint":
        lowered = (label or "").lower()
        if any(term in lowered for term in ENVIRONMENT_TERMS):
            return cls.ENVIRONMENT
        if any(term in lowered for term in USER_TERMS):
            return cls.USER
        return cls.UNKNOWN


class CameraDevice(BaseModel):
    """
    Video-input device as enumerated by the platform.

    Attributes:
        id: Opaque platform id (e.g. ``/dev/video0``)
        label: Human-readable name (may be empty)
        facing_hint: Orientation guessed from the label
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str = ""
    facing_hint: FacingHint = FacingHint.UNKNOWN

    @classmethod
    def from_label(cls, device_id: str, label: str = "") -> "CameraDevice":
        """Create a device, inferring the facing hint from its label."""
        return cls(id=device_id, label=label, facing_hint=FacingHint.from_label(label))

    @property
    def display_name(self) -> str:
        return self.label or self.id


class SessionState(str, enum.Enum):
    """Capture session lifecycle states."""
    IDLE = "idle"
    REQUESTING = "requesting"
    LIVE = "live"
    STOPPED = "stopped"


class FrameSample(BaseModel):
    """
    Ephemeral pixel buffer drawn from the stream or a still image.

    Attributes:
        pixels: numpy image (height x width[, channels])
        width: Frame width in pixels
        height: Frame height in pixels
        captured_at: Capture timestamp
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pixels: Any
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    captured_at: datetime

    @classmethod
    def from_pixels(cls, pixels: Any) -> "FrameSample":
        height, width = pixels.shape[:2]
        return cls(pixels=pixels, width=width, height=height, captured_at=datetime.now())
