"""
==============================================================================
Image Transform Module
==============================================================================

Region cropping, candidate transforms and the upload candidate list.

Upload Candidate Order:
----------------------
1. identity
2. upscale only (when the long side is below the minimum target)
3. rotate 90 (clockwise) + upscale
4. rotate 270 + upscale
5. grayscale contrast stretch + upscale (optional)

==============================================================================
"""

from __future__ import annotations

from typing import List

import cv2
import numpy as np

from .models import IDENTITY, Region, Transform


_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def crop(pixels: np.ndarray, region: Region) -> np.ndarray:
    """Return the region of ``pixels``, clipped to the frame bounds."""
    height, width = pixels.shape[:2]
    x0 = min(region.x, width)
    y0 = min(region.y, height)
    x1 = min(region.x + region.w, width)
    y1 = min(region.y + region.h, height)
    return pixels[y0:y1, x0:x1]


def to_gray(pixels: np.ndarray) -> np.ndarray:
    if pixels.ndim == 3:
        if pixels.shape[2] == 4:
            return cv2.cvtColor(pixels, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY)
    return pixels


def apply_transform(pixels: np.ndarray, transform: Transform) -> np.ndarray:
    """
    Apply rotation, scale and contrast stretch, in that order.

    Args:
        pixels: Source image (BGR, BGRA or grayscale)
        transform: Transform to apply

    Returns:
        New image; the source is never modified in place
    """
    if transform.is_identity:
        return pixels

    result = pixels
    rotation = transform.rotation % 360
    if rotation:
        if rotation not in _ROTATIONS:
            raise ValueError(f"Unsupported rotation: {transform.rotation}")
        result = cv2.rotate(result, _ROTATIONS[rotation])

    if transform.scale != 1.0:
        height, width = result.shape[:2]
        size = (max(1, int(round(width * transform.scale))),
                max(1, int(round(height * transform.scale))))
        interpolation = cv2.INTER_CUBIC if transform.scale > 1.0 else cv2.INTER_AREA
        result = cv2.resize(result, size, interpolation=interpolation)

    if transform.contrast:
        gray = to_gray(result)
        result = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)

    return result


def upscale_factor(width: int, height: int, min_long_side: int) -> float:
    """Factor bringing the longer side up to ``min_long_side`` (never shrinks)."""
    long_side = max(width, height, 1)
    return max(1.0, min_long_side / long_side)


def upload_candidates(
    width: int,
    height: int,
    min_long_side: int,
    contrast_pass: bool = True
) -> List[Transform]:
    """
    Build the bounded, ordered candidate list for a still image.

    Args:
        width: Image width
        height: Image height
        min_long_side: Target size of the longer side
        contrast_pass: Append the grayscale contrast-stretch candidate

    Returns:
        Candidate transforms, identity first
    """
    scale = upscale_factor(width, height, min_long_side)

    candidates = [IDENTITY]
    if scale > 1.0:
        candidates.append(Transform(scale=scale))
    candidates.append(Transform(rotation=90, scale=scale))
    candidates.append(Transform(rotation=270, scale=scale))
    if contrast_pass:
        candidates.append(Transform(scale=scale, contrast=True))

    return candidates
