"""Navigation engine keeping annotations in sync with replay playback.

The engine is the only object that talks to the replay player.  Keyboard
shortcuts, deep links, table-of-contents clicks, progress bar markers, raw
scrubbing and the playback monitor all go through it, which keeps the
player, the overlay and the location hash consistent with each other.

Annotation firing during autonomous playback is tracked with a *triggered
set*: an annotation fires once per forward pass and is re-armed only by a
backward seek (or by an explicit navigation that resets the set).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, FrozenSet, Iterable, List, Optional

from replaymark.core.annotations import DEFAULT_AUTOPAUSE, Annotation, find_active_annotation
from replaymark.core.navigation_policy import (
    NAVIGATION_POLICIES,
    NavigationSource,
    PauseRule,
    TriggeredSetEffect,
)
from replaymark.navigation.location import LocationHash
from replaymark.playback.types import Player, player_is_ready


logger = logging.getLogger(__name__)

# must stay above the polling interval, otherwise annotations can fall between two samples
DEFAULT_TRIGGER_THRESHOLD_MS = 500
DEFAULT_BACKWARD_SEEK_THRESHOLD_MS = 1000


@dataclass(frozen=True)
class NavigationEvent:
    annotation: Annotation
    source: NavigationSource
    paused: bool
    overlay: Optional[Annotation]


NavigationListener = Callable[[NavigationEvent], None]
OverlayListener = Callable[[Optional[Annotation]], None]


class NavigationEngine:
    """Owns navigation state for one loaded annotation document."""

    def __init__(
        self,
        player: Optional[Player],
        annotations: Iterable[Annotation],
        *,
        location: Optional[LocationHash] = None,
        trigger_threshold_ms: float = DEFAULT_TRIGGER_THRESHOLD_MS,
        backward_seek_threshold_ms: float = DEFAULT_BACKWARD_SEEK_THRESHOLD_MS,
        default_autopause: bool = DEFAULT_AUTOPAUSE,
    ) -> None:
        self._player = player
        self._annotations: List[Annotation] = sorted(annotations, key=lambda annotation: annotation.timestamp)
        self._location = location
        self._trigger_threshold_ms = float(trigger_threshold_ms)
        self._backward_seek_threshold_ms = float(backward_seek_threshold_ms)
        self._default_autopause = bool(default_autopause)
        self._lock = RLock()
        self._listeners: List[NavigationListener] = []
        self._overlay_listeners: List[OverlayListener] = []
        self._closed = False

        self._current_time: float = 0.0
        self._is_playing = False
        self._active_annotation: Optional[Annotation] = None
        self._triggered: set[str] = set()
        self._last_sampled_time: float = 0.0

    # ---- read-only state ----
    @property
    def annotations(self) -> List[Annotation]:
        return list(self._annotations)

    @property
    def player(self) -> Optional[Player]:
        return self._player

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def active_annotation(self) -> Optional[Annotation]:
        return self._active_annotation

    @property
    def triggered_ids(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._triggered)

    @property
    def current_annotation(self) -> Optional[Annotation]:
        """Annotation the playhead is in, for highlighting the table of contents."""
        return find_active_annotation(self._annotations, self._current_time)

    @property
    def last_sampled_time(self) -> float:
        return self._last_sampled_time

    @property
    def trigger_threshold_ms(self) -> float:
        return self._trigger_threshold_ms

    @property
    def closed(self) -> bool:
        return self._closed

    def is_ready(self) -> bool:
        return not self._closed and player_is_ready(self._player)

    def add_listener(self, listener: NavigationListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: NavigationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_overlay_listener(self, listener: OverlayListener) -> None:
        """``listener`` receives the new overlay annotation, or None when it closes."""
        if listener not in self._overlay_listeners:
            self._overlay_listeners.append(listener)

    def remove_overlay_listener(self, listener: OverlayListener) -> None:
        if listener in self._overlay_listeners:
            self._overlay_listeners.remove(listener)

    def close(self) -> None:
        """Detach from the player and location; later calls, queued samples included, do nothing."""
        with self._lock:
            if self._closed:
                return
            overlay = self._active_annotation
            self._closed = True
            self._player = None
            self._location = None
            self._active_annotation = None
            self._triggered.clear()
        self._notify_overlay(overlay)
        self._listeners.clear()
        self._overlay_listeners.clear()
        logger.debug("Navigation engine closed")

    # ---- commands ----
    def navigate_to_annotation(
        self,
        annotation: Annotation,
        source: NavigationSource | str,
        should_pause: bool = False,
    ) -> None:
        """Jump to ``annotation`` applying the rules of ``source``."""

        resolved = NavigationSource.coerce(source)
        with self._lock:
            overlay = self._active_annotation
            event = self._navigate_locked(annotation, resolved, should_pause)
        if event is not None:
            self._notify([event])
        self._notify_overlay(overlay)

    def seek_to(self, time_ms: float) -> None:
        """Scrub to ``time_ms`` (progress bar drag).

        Closes the overlay and re-arms every annotation after the target;
        annotations at or before it keep their current state.
        """

        with self._lock:
            if not self.is_ready():
                return
            overlay = self._active_annotation
            self._call_player("goto_time", int(time_ms))
            self._current_time = float(time_ms)
            self._active_annotation = None
            rearmed = [
                annotation.id
                for annotation in self._annotations
                if annotation.timestamp > time_ms and annotation.id in self._triggered
            ]
            self._triggered.difference_update(rearmed)
            logger.debug("Seek to %s ms, re-armed %d annotation(s)", time_ms, len(rearmed))
        self._notify_overlay(overlay)

    def sample(self, time_ms: float) -> None:
        """Record a playback time sample from the monitor and evaluate triggers."""

        with self._lock:
            if self._closed:
                return
            self._current_time = float(time_ms)
        self.check_annotation_triggers(time_ms)

    def check_annotation_triggers(self, time_ms: float) -> None:
        events: List[NavigationEvent] = []
        with self._lock:
            if not self.is_ready():
                return
            overlay = self._active_annotation
            playing = self._player_is_playing()
            self._is_playing = playing
            if not playing:
                self._last_sampled_time = float(time_ms)
                return

            if time_ms < self._last_sampled_time - self._backward_seek_threshold_ms:
                logger.debug(
                    "Backward seek detected (%.0f -> %.0f ms), clearing %d triggered annotation(s)",
                    self._last_sampled_time,
                    time_ms,
                    len(self._triggered),
                )
                self._triggered.clear()
            self._last_sampled_time = float(time_ms)

            for annotation in self._annotations:
                active = self._active_annotation
                if active is not None and active.id == annotation.id:
                    continue
                if abs(time_ms - annotation.timestamp) >= self._trigger_threshold_ms:
                    continue
                if annotation.id in self._triggered:
                    continue
                event = self._navigate_locked(annotation, NavigationSource.PLAYBACK, False)
                if event is not None:
                    events.append(event)
        self._notify(events)
        self._notify_overlay(overlay)

    def dismiss_overlay(self) -> None:
        with self._lock:
            overlay = self._active_annotation
            self._active_annotation = None
        self._notify_overlay(overlay)

    def play(self) -> None:
        with self._lock:
            if not self.is_ready():
                return
            overlay = self._active_annotation
            self._call_player("play")
            self._is_playing = True
            self._active_annotation = None
        self._notify_overlay(overlay)

    def pause(self) -> None:
        with self._lock:
            if not self.is_ready():
                return
            self._call_player("pause")
            self._is_playing = False

    def toggle_play_pause(self) -> None:
        # the player's own flag is authoritative, it may have changed out of band
        with self._lock:
            if not self.is_ready():
                return
            playing = self._player_is_playing()
        if playing:
            self.pause()
        else:
            self.play()

    # ---- internals ----
    def _navigate_locked(
        self,
        annotation: Annotation,
        source: NavigationSource,
        should_pause: bool,
    ) -> Optional[NavigationEvent]:
        if not self.is_ready():
            return None
        policy = NAVIGATION_POLICIES[source]

        if policy.triggered is TriggeredSetEffect.RESET_TO_TARGET:
            self._triggered.clear()
            self._triggered.add(annotation.id)
        elif policy.triggered is TriggeredSetEffect.MARK_UP_TO_TARGET:
            self._triggered.update(
                candidate.id for candidate in self._annotations if candidate.timestamp <= annotation.timestamp
            )
        elif policy.triggered is TriggeredSetEffect.ADD_TARGET:
            self._triggered.add(annotation.id)

        self._call_player("goto_time", annotation.timestamp)
        self._current_time = float(annotation.timestamp)
        # keeps the backward-seek detector from reacting to this jump
        self._last_sampled_time = float(annotation.timestamp)

        if policy.updates_hash and self._location is not None:
            self._location.set(annotation.id)

        if policy.allows_overlay and annotation.has_highlight:
            self._active_annotation = annotation
        else:
            self._active_annotation = None

        pause = should_pause or policy.pause is PauseRule.ALWAYS
        if policy.pause is PauseRule.AUTOPAUSE and annotation.resolved_autopause(self._default_autopause):
            pause = True
        if pause:
            self._call_player("pause")
            self._is_playing = False

        logger.debug(
            "Navigated to annotation %r at %d ms source=%s paused=%s overlay=%s",
            annotation.id,
            annotation.timestamp,
            source.value,
            pause,
            self._active_annotation is not None,
        )
        return NavigationEvent(
            annotation=annotation,
            source=source,
            paused=pause,
            overlay=self._active_annotation,
        )

    def _player_is_playing(self) -> bool:
        try:
            return bool(self._player.is_playing())  # type: ignore[union-attr]
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Failed to read player state: %s", exc)
            return False

    def _call_player(self, method: str, *args) -> bool:
        try:
            getattr(self._player, method)(*args)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Player %s%r failed: %s", method, args, exc)
            return False
        return True

    def _notify(self, events: List[NavigationEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:  # pylint: disable=broad-except
                    logger.exception("Navigation listener failed for %r", event.annotation.id)

    def _notify_overlay(self, previous: Optional[Annotation]) -> None:
        current = self._active_annotation
        if current is previous:
            return
        for listener in list(self._overlay_listeners):
            try:
                listener(current)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Overlay listener failed")


__all__ = [
    "DEFAULT_BACKWARD_SEEK_THRESHOLD_MS",
    "DEFAULT_TRIGGER_THRESHOLD_MS",
    "NavigationEngine",
    "NavigationEvent",
    "NavigationListener",
    "OverlayListener",
]
