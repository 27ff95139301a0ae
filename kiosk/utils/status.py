"""
==============================================================================
Status Board Module
==============================================================================

Passive status surface: one current status line plus an append-only,
bounded diagnostic log. Readers observe it; nothing reads it to make
decisions.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List


# Module logger
logger = logging.getLogger("kiosk.status")


class StatusBoard:
    """
    Status line and diagnostic log for the kiosk.

    Attributes:
        status: Current pipeline status text
        lines: Diagnostic log lines, oldest first

    Example:
        >>> board = StatusBoard()
        >>> board.set("scanning...")
        >>> board.log("detected", "8901030875614")
        >>> board.lines[-1].endswith("detected 8901030875614")
        True
    """

    def __init__(self, max_lines: int = 200) -> None:
        self._status = "idle"
        self._lines: Deque[str] = deque(maxlen=max_lines)

    @property
    def status(self) -> str:
        return self._status

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def set(self, text: str) -> None:
        """Replace the status line."""
        self._status = text
        logger.info(f"status: {text}")

    def log(self, *parts: Any) -> None:
        """Append one diagnostic line built from ``parts``."""
        text = " ".join(self._format(p) for p in parts)
        stamp = datetime.now().strftime("%H:%M:%S")
        self._lines.append(f"{stamp} {text}")
        logger.debug(text)

    @staticmethod
    def _format(part: Any) -> str:
        if isinstance(part, (dict, list)):
            return json.dumps(part, default=str)
        return str(part)

    def snapshot(self, tail: int = 50) -> Dict[str, Any]:
        return {"status": self._status, "log": self.lines[-tail:] if tail else []}
