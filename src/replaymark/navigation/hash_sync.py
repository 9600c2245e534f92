"""Deep-link navigation driven by the location hash."""

from __future__ import annotations

import logging
from typing import Sequence

from replaymark.core.annotations import Annotation, find_annotation
from replaymark.core.navigation_policy import NavigationSource
from replaymark.navigation.engine import NavigationEngine
from replaymark.navigation.location import LocationHash


logger = logging.getLogger(__name__)


class HashNavigator:
    """Navigates to the annotation named by the hash, once on load and on every user change."""

    def __init__(
        self,
        engine: NavigationEngine,
        annotations: Sequence[Annotation],
        location: LocationHash,
    ) -> None:
        self._engine = engine
        self._annotations = list(annotations)
        self._location = location
        self._initial_done = False
        self._attached = False

    @property
    def initial_done(self) -> bool:
        return self._initial_done

    def attach(self) -> None:
        if not self._attached:
            self._location.subscribe(self._on_hash_change)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self._location.unsubscribe(self._on_hash_change)
            self._attached = False

    def navigate_initial(self) -> bool:
        """Apply the hash present at load time; only the first successful call navigates."""
        if self._initial_done:
            return False
        navigated = self._navigate(self._location.get())
        if navigated:
            self._initial_done = True
        return navigated

    def _on_hash_change(self, fragment: str, programmatic: bool) -> None:
        if programmatic:
            return
        self._navigate(fragment)

    def _navigate(self, fragment: str) -> bool:
        if not fragment or not self._annotations or not self._engine.is_ready():
            return False
        annotation = find_annotation(self._annotations, fragment)
        if annotation is None:
            logger.debug("Hash %r does not match any annotation", fragment)
            return False
        self._engine.navigate_to_annotation(annotation, NavigationSource.HASH)
        return True


__all__ = ["HashNavigator"]
