"""One annotated replay: a parsed document bound to a player.

Loading a new document throws away the previous engine and monitor entirely,
so nothing (triggered annotations, open overlay, polling) leaks between
documents.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from replaymark.core.annotations import AnnotationFile
from replaymark.core.config import SettingsManager
from replaymark.core.parser import parse_annotations
from replaymark.navigation.engine import NavigationEngine
from replaymark.navigation.hash_sync import HashNavigator
from replaymark.navigation.keyboard import KeyboardNavigator
from replaymark.navigation.location import LocationHash
from replaymark.navigation.monitor import PlaybackMonitor
from replaymark.playback.types import Player


logger = logging.getLogger(__name__)


class AnnotatedReplaySession:
    """Owns the navigation objects for the currently loaded annotation document."""

    def __init__(
        self,
        player: Optional[Player],
        settings: SettingsManager,
        *,
        location: Optional[LocationHash] = None,
        call_after: Callable[..., Any] | None = None,
        autostart_monitor: bool = True,
    ) -> None:
        self._player = player
        self._settings = settings
        self._location = location if location is not None else LocationHash()
        self._call_after = call_after
        self._autostart_monitor = autostart_monitor
        self._document: Optional[AnnotationFile] = None
        self._engine: Optional[NavigationEngine] = None
        self._monitor: Optional[PlaybackMonitor] = None
        self._hash_navigator: Optional[HashNavigator] = None
        self._keyboard: Optional[KeyboardNavigator] = None

    @property
    def document(self) -> Optional[AnnotationFile]:
        return self._document

    @property
    def engine(self) -> Optional[NavigationEngine]:
        return self._engine

    @property
    def monitor(self) -> Optional[PlaybackMonitor]:
        return self._monitor

    @property
    def location(self) -> LocationHash:
        return self._location

    def load_path(self, path: Path | str) -> AnnotationFile:
        text = Path(path).read_text(encoding="utf-8")
        logger.info("Loaded annotation document %s", path)
        return self.load_document(text)

    def load_document(self, text: str) -> AnnotationFile:
        self._teardown()
        document = parse_annotations(text)
        engine = NavigationEngine(
            self._player,
            document.annotations,
            location=self._location,
            trigger_threshold_ms=self._settings.get_trigger_threshold_ms(),
            backward_seek_threshold_ms=self._settings.get_backward_seek_threshold_ms(),
            default_autopause=self._settings.get_default_autopause(),
        )
        self._document = document
        self._engine = engine
        self._keyboard = KeyboardNavigator(engine, self._settings.get_navigation_shortcuts())
        self._hash_navigator = HashNavigator(engine, document.annotations, self._location)
        self._hash_navigator.attach()
        self._monitor = PlaybackMonitor(
            engine,
            self._player,
            interval_seconds=self._settings.get_polling_interval_ms() / 1000.0,
            call_after=self._call_after,
        )
        if self._autostart_monitor:
            self._monitor.start()
        self._hash_navigator.navigate_initial()
        logger.debug(
            "Session ready title=%r annotations=%d",
            document.title,
            len(document.annotations),
        )
        return document

    def player_ready(self) -> None:
        """Call once the player surface exists; retries a deep link that arrived too early."""
        if self._hash_navigator is not None:
            self._hash_navigator.navigate_initial()

    def handle_key(self, key: str) -> bool:
        if self._keyboard is None:
            return False
        return self._keyboard.handle_key(key)

    def close(self) -> None:
        self._teardown()
        self._document = None

    def _teardown(self) -> None:
        if self._monitor is not None:
            self._monitor.stop()
        if self._hash_navigator is not None:
            self._hash_navigator.detach()
        if self._engine is not None:
            self._engine.close()
        self._monitor = None
        self._hash_navigator = None
        self._keyboard = None
        self._engine = None

    def __enter__(self) -> "AnnotatedReplaySession":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()


__all__ = ["AnnotatedReplaySession"]
