"""
==============================================================================
Backend Chain Module
==============================================================================

Ordered fallback over decode backends plus the shared
"candidate transforms -> try decode -> first success wins" combinator used by
both the live loop (identity only) and the upload pipeline.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional, Sequence

import numpy as np

from .backends import DecodeBackend
from .models import DecodeAttempt, DecodeOutcome, IDENTITY, Region, Transform
from .transforms import apply_transform, crop


# Module logger
logger = logging.getLogger(__name__)


class BackendChain:
    """
    Tries backends in priority order until one returns a code.

    Failures never escape: unavailable backends count as not found and
    exceptions become transient-error outcomes, sampled into the log.

    Attributes:
        backends: Backends in priority order
        transient_errors: Number of transient errors seen so far

    Example:
        >>> chain = BackendChain(build_backends(["opencv-barcode", "pyzbar"]))
        >>> attempt = chain.attempt(frame, Region.full(640, 480))
        >>> attempt.found
        False
    """

    def __init__(self, backends: Sequence[DecodeBackend], transient_log_every: int = 100) -> None:
        self._backends: List[DecodeBackend] = list(backends)
        self._transient_log_every = max(1, transient_log_every)
        self._transient_errors = 0
        self._lock = threading.Lock()

    @property
    def backends(self) -> List[DecodeBackend]:
        return list(self._backends)

    @property
    def transient_errors(self) -> int:
        return self._transient_errors

    def available_backends(self) -> List[str]:
        """Names of backends whose engine loaded on this platform."""
        return [b.name for b in self._backends if b.is_available()]

    # =========================================================================
    # SINGLE ATTEMPT
    # =========================================================================

    def attempt(
        self,
        pixels: np.ndarray,
        region: Region,
        transform: Transform = IDENTITY
    ) -> DecodeAttempt:
        """
        Decode one region/transform against every backend in order.

        Args:
            pixels: Source frame
            region: Region of the frame to decode
            transform: Transform applied to the cropped region

        Returns:
            First attempt with a code, otherwise a NotFound or
            TransientError attempt
        """
        # Engines are not thread-safe; live and upload decodes share them
        with self._lock:
            return self._attempt(pixels, region, transform)

    def _attempt(
        self,
        pixels: np.ndarray,
        region: Region,
        transform: Transform
    ) -> DecodeAttempt:
        try:
            prepared = apply_transform(crop(pixels, region), transform)
        except Exception as e:
            return self._transient("transform", region, transform, e)

        if prepared.size == 0:
            return DecodeAttempt(
                backend="none", region=region, transform=transform,
                outcome=DecodeOutcome.not_found()
            )

        last: Optional[DecodeAttempt] = None
        for backend in self._backends:
            if not backend.is_available():
                continue
            try:
                code = backend.decode(prepared)
            except Exception as e:
                last = self._transient(backend.name, region, transform, e)
                continue

            if code:
                return DecodeAttempt(
                    backend=backend.name, region=region, transform=transform,
                    outcome=DecodeOutcome.found(code)
                )
            if last is None:
                last = DecodeAttempt(
                    backend=backend.name, region=region, transform=transform,
                    outcome=DecodeOutcome.not_found()
                )

        return last or DecodeAttempt(
            backend="none", region=region, transform=transform,
            outcome=DecodeOutcome.not_found()
        )

    def _transient(
        self,
        source: str,
        region: Region,
        transform: Transform,
        error: Exception
    ) -> DecodeAttempt:
        self._transient_errors += 1
        if (self._transient_errors - 1) % self._transient_log_every == 0:
            logger.debug(
                f"Transient decode error #{self._transient_errors} "
                f"({source}, {transform.describe()}): {error}"
            )
        return DecodeAttempt(
            backend=source, region=region, transform=transform,
            outcome=DecodeOutcome.transient(str(error))
        )

    # =========================================================================
    # CANDIDATE COMBINATOR
    # =========================================================================

    async def first_success(
        self,
        pixels: np.ndarray,
        region: Region,
        candidates: Sequence[Transform] = (IDENTITY,)
    ) -> Optional[DecodeAttempt]:
        """
        Try each candidate transform once, in order; first code wins.

        Each attempt runs in a worker thread so the event loop keeps
        servicing timers and requests while an engine is busy.

        Returns:
            Winning attempt, or None when every candidate failed
        """
        for transform in candidates:
            attempt = await asyncio.to_thread(self.attempt, pixels, region, transform)
            if attempt.found:
                logger.debug(
                    f"Decoded {attempt.code!r} via {attempt.backend} "
                    f"({transform.describe()})"
                )
                return attempt
        return None
