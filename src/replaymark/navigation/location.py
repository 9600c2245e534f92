"""Shareable location identifier (the ``#fragment`` of the current address)."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional
from urllib.parse import unquote, urlsplit


logger = logging.getLogger(__name__)

HashListener = Callable[[str, bool], None]


class LocationHash:
    """Holds the current fragment and notifies listeners about changes.

    Listeners receive ``(fragment, programmatic)``; ``programmatic`` is True
    when the change came from :meth:`set` (the engine writing the id of the
    annotation it navigated to) rather than from the user.
    """

    def __init__(self, fragment: str = "") -> None:
        self._fragment = _normalize(fragment)
        self._listeners: List[HashListener] = []

    @classmethod
    def from_url(cls, url: str) -> "LocationHash":
        return cls(urlsplit(url).fragment)

    def get(self) -> str:
        return self._fragment

    def set(self, fragment: str) -> None:
        self._update(fragment, programmatic=True)

    def user_change(self, fragment: str) -> None:
        """Apply a change made outside the engine (edited address, followed link, history)."""
        self._update(fragment, programmatic=False)

    def subscribe(self, listener: HashListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: HashListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _update(self, fragment: str, *, programmatic: bool) -> None:
        value = _normalize(fragment)
        if value == self._fragment:
            return
        self._fragment = value
        logger.debug("Location hash -> %r (programmatic=%s)", value, programmatic)
        for listener in list(self._listeners):
            try:
                listener(value, programmatic)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Location hash listener failed")


def _normalize(fragment: Optional[str]) -> str:
    if not fragment:
        return ""
    return unquote(fragment.lstrip("#"))


__all__ = ["HashListener", "LocationHash"]
