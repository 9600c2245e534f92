"""Per-source navigation rules.

Every way of landing on an annotation (arrow keys, a deep link, autonomous
playback, a table-of-contents click, a progress bar marker or a raw scrub)
behaves slightly differently.  The differences live in this table so the
engine only has to read them.

| source       | triggered set          | hash  | pauses         | overlay      |
|--------------|------------------------|-------|----------------|--------------|
| keyboard     | reset to this id       | yes   | always         | if highlight |
| toc          | reset to this id       | yes   | if requested   | if highlight |
| marker       | reset to this id       | yes   | if requested   | if highlight |
| hash         | mark all up to this    | no    | if requested   | if highlight |
| playback     | add this id            | yes   | if autopause   | if highlight |
| progressBar  | untouched              | no    | always         | never        |
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class NavigationSource(Enum):
    KEYBOARD = "keyboard"
    HASH = "hash"
    PLAYBACK = "playback"
    TOC = "toc"
    MARKER = "marker"
    PROGRESS_BAR = "progressBar"

    @classmethod
    def coerce(cls, value: "NavigationSource | str") -> "NavigationSource":
        """Accept enum members or their string values; anything else is a caller bug."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown navigation source: {value!r}") from None


class TriggeredSetEffect(Enum):
    RESET_TO_TARGET = "reset_to_target"
    MARK_UP_TO_TARGET = "mark_up_to_target"
    ADD_TARGET = "add_target"
    NONE = "none"


class PauseRule(Enum):
    ALWAYS = "always"
    ON_REQUEST = "on_request"
    AUTOPAUSE = "autopause"


@dataclass(frozen=True)
class SourcePolicy:
    triggered: TriggeredSetEffect
    updates_hash: bool
    pause: PauseRule
    allows_overlay: bool


NAVIGATION_POLICIES: Dict[NavigationSource, SourcePolicy] = {
    NavigationSource.KEYBOARD: SourcePolicy(
        triggered=TriggeredSetEffect.RESET_TO_TARGET,
        updates_hash=True,
        pause=PauseRule.ALWAYS,
        allows_overlay=True,
    ),
    NavigationSource.TOC: SourcePolicy(
        triggered=TriggeredSetEffect.RESET_TO_TARGET,
        updates_hash=True,
        pause=PauseRule.ON_REQUEST,
        allows_overlay=True,
    ),
    NavigationSource.MARKER: SourcePolicy(
        triggered=TriggeredSetEffect.RESET_TO_TARGET,
        updates_hash=True,
        pause=PauseRule.ON_REQUEST,
        allows_overlay=True,
    ),
    NavigationSource.HASH: SourcePolicy(
        triggered=TriggeredSetEffect.MARK_UP_TO_TARGET,
        updates_hash=False,
        pause=PauseRule.ON_REQUEST,
        allows_overlay=True,
    ),
    NavigationSource.PLAYBACK: SourcePolicy(
        triggered=TriggeredSetEffect.ADD_TARGET,
        updates_hash=True,
        pause=PauseRule.AUTOPAUSE,
        allows_overlay=True,
    ),
    NavigationSource.PROGRESS_BAR: SourcePolicy(
        triggered=TriggeredSetEffect.NONE,
        updates_hash=False,
        pause=PauseRule.ALWAYS,
        allows_overlay=False,
    ),
}


def policy_for(source: NavigationSource | str) -> SourcePolicy:
    return NAVIGATION_POLICIES[NavigationSource.coerce(source)]


__all__ = [
    "NAVIGATION_POLICIES",
    "NavigationSource",
    "PauseRule",
    "SourcePolicy",
    "TriggeredSetEffect",
    "policy_for",
]
