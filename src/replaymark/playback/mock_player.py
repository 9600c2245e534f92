"""In-memory replay player used by tests and headless runs."""

from __future__ import annotations

import logging
from threading import Lock
from typing import List, Optional, Tuple


logger = logging.getLogger(__name__)


class MockPlayer:
    """Stand-in replay player with a manually driven clock.

    Time only moves through :meth:`advance`, which keeps tests deterministic.
    Every command is appended to :attr:`calls` for assertions.
    """

    def __init__(self, duration_ms: Optional[int] = None, *, ready: bool = True) -> None:
        self.duration_ms = duration_ms
        self.ready = ready
        self.calls: List[Tuple[str, Optional[int]]] = []
        self._position_ms: float = 0.0
        self._playing = False
        self._lock = Lock()

    def is_ready(self) -> bool:
        return self.ready

    def goto_time(self, time_ms: int) -> None:
        with self._lock:
            self._position_ms = self._clamp(float(time_ms))
            self.calls.append(("goto", int(time_ms)))
        logger.debug("[MOCK] goto %s ms", time_ms)

    def play(self) -> None:
        with self._lock:
            self._playing = True
            self.calls.append(("play", None))
        logger.debug("[MOCK] play at %.0f ms", self._position_ms)

    def pause(self) -> None:
        with self._lock:
            self._playing = False
            self.calls.append(("pause", None))
        logger.debug("[MOCK] pause at %.0f ms", self._position_ms)

    def is_playing(self) -> bool:
        return self._playing

    def current_time(self) -> float:
        return self._position_ms

    def advance(self, delta_ms: float) -> float:
        """Move the clock forward while playing; stops at the end of the recording."""
        with self._lock:
            if self._playing:
                self._position_ms = self._clamp(self._position_ms + delta_ms)
                if self.duration_ms is not None and self._position_ms >= self.duration_ms:
                    self._playing = False
            return self._position_ms

    def set_position(self, time_ms: float) -> None:
        """Jump the clock without recording a command, like a scrub inside the player UI."""
        with self._lock:
            self._position_ms = self._clamp(time_ms)

    def _clamp(self, time_ms: float) -> float:
        time_ms = max(0.0, time_ms)
        if self.duration_ms is not None:
            time_ms = min(time_ms, float(self.duration_ms))
        return time_ms
