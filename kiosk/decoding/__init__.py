"""
==============================================================================
Decoding Package - Backends and Transforms
==============================================================================

Multi-backend code extraction with OpenCV, zxing-cpp and pyzbar.

Classes:
--------
- DecodeBackend: Base class for one decoding strategy
- BackendChain: Priority-ordered fallback plus candidate combinator
- Region, Transform, DecodeAttempt, DecodeOutcome: Value objects

==============================================================================
"""

from .backends import (
    BACKENDS,
    DecodeBackend,
    OpenCVBarcodeBackend,
    OpenCVQRBackend,
    PyzbarBackend,
    ZXingBackend,
    build_backends,
)
from .chain import BackendChain
from .models import (
    IDENTITY,
    DecodeAttempt,
    DecodeOutcome,
    OutcomeKind,
    Region,
    Transform,
)
from .transforms import apply_transform, crop, upload_candidates, upscale_factor

__all__ = [
    "BACKENDS",
    "DecodeBackend",
    "OpenCVBarcodeBackend",
    "OpenCVQRBackend",
    "PyzbarBackend",
    "ZXingBackend",
    "build_backends",
    "BackendChain",
    "IDENTITY",
    "DecodeAttempt",
    "DecodeOutcome",
    "OutcomeKind",
    "Region",
    "Transform",
    "apply_transform",
    "crop",
    "upload_candidates",
    "upscale_factor",
]
