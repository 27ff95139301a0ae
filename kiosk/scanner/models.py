"""
==============================================================================
Scanner Models Module
==============================================================================

Live-loop state and the debounce window.

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Optional


class LoopState(str, enum.Enum):
    """Live scan loop states."""
    STOPPED = "stopped"
    SAMPLING = "sampling"


class DebounceWindow:
    """
    Suppresses re-dispatch of the same code until the window expires.

    The window is fixed from the first detection; seeing the code again
    inside it does not extend it. A different code always re-arms it.

    Attributes:
        last_code: Code of the active window, None when cleared
        expires_at: Clock value at which the window ends
    """

    def __init__(self) -> None:
        self.last_code: Optional[str] = None
        self.expires_at: float = 0.0

    def suppresses(self, code: str, now: float) -> bool:
        """True when ``code`` was already handled in the active window."""
        if self.last_code is None:
            return False
        if now >= self.expires_at:
            self.clear()
            return False
        return code == self.last_code

    def arm(self, code: str, now: float, duration: float) -> None:
        self.last_code = code
        self.expires_at = now + duration

    def clear(self) -> None:
        self.last_code = None
        self.expires_at = 0.0
