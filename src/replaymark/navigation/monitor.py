"""Playback monitor thread.

The replay player does not emit reliable time-update events, so the current
position is sampled at a fixed interval and pushed into the navigation
engine, which decides whether an annotation should fire.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from replaymark.navigation.engine import NavigationEngine
from replaymark.playback.types import Player, player_is_ready


logger = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL_MS = 100


def _direct_call(func: Callable[..., Any], *args: Any) -> None:
    func(*args)


class PlaybackMonitor:
    """Samples ``player.current_time()`` every ``interval_seconds``.

    ``call_after`` lets a GUI host marshal each sample onto its own event loop
    (for example ``wx.CallAfter``); by default samples are applied on the
    monitor thread and serialized by the engine lock.
    """

    def __init__(
        self,
        engine: NavigationEngine,
        player: Optional[Player],
        *,
        interval_seconds: float = DEFAULT_POLLING_INTERVAL_MS / 1000.0,
        call_after: Callable[..., Any] | None = None,
    ) -> None:
        self._engine = engine
        self._player = player
        self._interval = max(0.001, float(interval_seconds))
        self._call_after = call_after or _direct_call
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self.is_running():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._runner, daemon=True, name="replaymark-monitor")
        self._thread.start()
        logger.debug("Playback monitor started interval=%.3fs", self._interval)

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.debug("Playback monitor stopped")

    def tick(self) -> None:
        """Take one sample; the thread calls this, tests may call it directly."""
        if self._stop.is_set() or not player_is_ready(self._player):
            return
        try:
            time_ms = float(self._player.current_time())  # type: ignore[union-attr]
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Failed to read playback time: %s", exc)
            return
        self._call_after(self._apply_sample, time_ms)

    def _apply_sample(self, time_ms: float) -> None:
        # a host loop may run this after stop(), when the engine is already gone
        if self._stop.is_set():
            logger.debug("Dropping sample %.0f ms queued before stop", time_ms)
            return
        self._engine.sample(time_ms)

    def _runner(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.tick()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Playback monitor tick failed")


__all__ = ["DEFAULT_POLLING_INTERVAL_MS", "PlaybackMonitor"]
