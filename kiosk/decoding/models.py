"""
==============================================================================
Decode Models Module
==============================================================================

Immutable value objects describing a single decode attempt.

A decode attempt never raises to its caller: its outcome is one of

- CODE: a code string was extracted
- NOT_FOUND: nothing decodable (the expected, high-frequency case)
- TRANSIENT_ERROR: a backend failed on this input; treated as NOT_FOUND

==============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OutcomeKind(str, Enum):
    """Result category of a decode attempt."""
    CODE = "code"
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"


class DecodeOutcome(BaseModel):
    """Outcome of one backend call."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    code: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, code: str) -> "DecodeOutcome":
        return cls(kind=OutcomeKind.CODE, code=code)

    @classmethod
    def not_found(cls) -> "DecodeOutcome":
        return cls(kind=OutcomeKind.NOT_FOUND)

    @classmethod
    def transient(cls, error: str) -> "DecodeOutcome":
        return cls(kind=OutcomeKind.TRANSIENT_ERROR, error=error)

    @property
    def is_code(self) -> bool:
        return self.kind == OutcomeKind.CODE


class Region(BaseModel):
    """
    Pixel rectangle of a frame submitted for decoding.

    Attributes:
        x: Left edge
        y: Top edge
        w: Width
        h: Height
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    w: int = Field(ge=1)
    h: int = Field(ge=1)

    @classmethod
    def full(cls, width: int, height: int) -> "Region":
        """Region covering the whole frame."""
        return cls(x=0, y=0, w=width, h=height)

    @classmethod
    def centered(cls, width: int, height: int, fraction: float) -> "Region":
        """
        Region of ``fraction`` of each side, centered in the frame.

        Args:
            width: Frame width
            height: Frame height
            fraction: Share of width/height kept, in (0, 1]

        Returns:
            Centered Region, never smaller than 1x1
        """
        fraction = min(max(fraction, 0.0), 1.0)
        w = max(1, int(round(width * fraction)))
        h = max(1, int(round(height * fraction)))
        return cls(x=(width - w) // 2, y=(height - h) // 2, w=w, h=h)


class Transform(BaseModel):
    """
    Geometric/contrast modification applied before decoding.

    Attributes:
        rotation: Clockwise rotation in degrees (0, 90, 180, 270)
        scale: Resize factor (>= 1 upscales)
        contrast: Convert to grayscale and stretch to the full 0-255 range
    """

    model_config = ConfigDict(frozen=True)

    rotation: int = Field(default=0)
    scale: float = Field(default=1.0, gt=0)
    contrast: bool = Field(default=False)

    @property
    def is_identity(self) -> bool:
        return self.rotation % 360 == 0 and self.scale == 1.0 and not self.contrast

    def describe(self) -> str:
        """Short label for logs (e.g. ``rot90 x2.50 contrast``)."""
        parts = []
        if self.rotation % 360:
            parts.append(f"rot{self.rotation % 360}")
        if self.scale != 1.0:
            parts.append(f"x{self.scale:.2f}")
        if self.contrast:
            parts.append("contrast")
        return " ".join(parts) or "identity"


IDENTITY = Transform()


class DecodeAttempt(BaseModel):
    """
    One backend call on one region/transform; never mutated after creation.

    Attributes:
        backend: Name of the backend that produced the outcome
        region: Region of the source pixels
        transform: Transform applied to the region
        outcome: Decode outcome
    """

    model_config = ConfigDict(frozen=True)

    backend: str
    region: Region
    transform: Transform = IDENTITY
    outcome: DecodeOutcome

    @property
    def found(self) -> bool:
        return self.outcome.is_code

    @property
    def code(self) -> Optional[str]:
        return self.outcome.code
