"""
==============================================================================
Detection Event Models
==============================================================================

The unit both scanning pipelines hand to the dispatcher, and the outcome of
reporting it.

==============================================================================
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DetectionSource(str, enum.Enum):
    """Pipeline that produced a detection."""
    LIVE = "live"
    UPLOAD = "upload"
    SNAPSHOT = "snapshot"


class DetectionEvent(BaseModel):
    """
    Confirmed detection handed to the dispatcher.

    Attributes:
        code: Decoded code string
        source: Live loop, upload or snapshot
        timestamp: Time of detection
        backend: Backend that decoded the code
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1)
    source: DetectionSource
    timestamp: datetime = Field(default_factory=datetime.now)
    backend: Optional[str] = None


class DispatchResult(BaseModel):
    """
    Outcome of one report.

    Attributes:
        ok: True when the endpoint answered 2xx
        code: Detected code
        name: Reported name
        price: Reported price
        status_code: HTTP status, when a response arrived
        error: Failure description, when not ok
    """

    ok: bool
    code: str
    name: str
    price: int
    status_code: Optional[int] = None
    error: Optional[str] = None
