"""Keyboard shortcut dispatch for annotation navigation."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping

from replaymark.core.annotations import find_next_annotation, find_previous_annotation
from replaymark.core.navigation_policy import NavigationSource
from replaymark.core.shortcuts import normalize_key
from replaymark.navigation.engine import NavigationEngine


logger = logging.getLogger(__name__)


class KeyboardNavigator:
    """Maps configured keys to engine commands.

    ``shortcuts`` maps action names (``next_annotation``, ``previous_annotation``,
    ``toggle_play_pause``, ``dismiss_overlay``) to key names.
    """

    def __init__(self, engine: NavigationEngine, shortcuts: Mapping[str, str]) -> None:
        self._engine = engine
        handlers: Dict[str, Callable[[], None]] = {
            "next_annotation": self.next_annotation,
            "previous_annotation": self.previous_annotation,
            "toggle_play_pause": engine.toggle_play_pause,
            "dismiss_overlay": engine.dismiss_overlay,
        }
        self._bindings: Dict[str, Callable[[], None]] = {}
        for action, key in shortcuts.items():
            handler = handlers.get(action)
            if handler is None or not key:
                continue
            self._bindings[normalize_key(key)] = handler

    def handle_key(self, key: str) -> bool:
        """Run the command bound to ``key``; returns False when the key is not ours."""
        handler = self._bindings.get(normalize_key(key))
        if handler is None:
            return False
        handler()
        return True

    def next_annotation(self) -> None:
        target = find_next_annotation(self._engine.annotations, self._engine.current_time)
        if target is None:
            logger.debug("No annotation after %.0f ms", self._engine.current_time)
            return
        self._engine.navigate_to_annotation(target, NavigationSource.KEYBOARD)

    def previous_annotation(self) -> None:
        target = find_previous_annotation(
            self._engine.annotations,
            self._engine.current_time,
            self._engine.trigger_threshold_ms,
        )
        if target is None:
            logger.debug("No annotation before %.0f ms", self._engine.current_time)
            return
        self._engine.navigate_to_annotation(target, NavigationSource.KEYBOARD)


__all__ = ["KeyboardNavigator"]
