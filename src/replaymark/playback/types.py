"""Replay player handle contract.

The replay engine itself lives outside this package; navigation only needs
the handful of calls below.  Times are integer milliseconds from the start
of the recording.
"""

from __future__ import annotations

from typing import Optional, Protocol


class Player(Protocol):
    def goto_time(self, time_ms: int) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def is_playing(self) -> bool: ...

    def current_time(self) -> float: ...


def player_is_ready(player: Optional[Player]) -> bool:
    """Return True when ``player`` exists and reports a rendered surface.

    Handles without an ``is_ready`` hook are treated as ready once they exist.
    """

    if player is None:
        return False
    attr = getattr(player, "is_ready", None)
    if attr is None:
        return True
    try:
        return bool(attr()) if callable(attr) else bool(attr)
    except Exception:  # pylint: disable=broad-except
        return False
