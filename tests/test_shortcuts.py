"""Tests covering the shortcut registry and key normalization."""

from __future__ import annotations

from replaymark.core.shortcuts import (
    NAVIGATION_SCOPE,
    get_shortcut,
    iter_shortcuts,
    normalize_key,
)


def test_normalize_key_handles_browser_names_and_aliases() -> None:
    assert normalize_key("ArrowRight") == "RIGHT"
    assert normalize_key(" ") == "SPACE"
    assert normalize_key("Spacebar") == "SPACE"
    assert normalize_key(" esc ") == "ESCAPE"
    assert normalize_key("left") == "LEFT"


def test_navigation_shortcuts_are_registered() -> None:
    descriptor = get_shortcut(NAVIGATION_SCOPE, "previous_annotation")
    assert descriptor is not None
    assert descriptor.default == "LEFT"
    assert descriptor.label == "Previous annotation"
    assert get_shortcut(NAVIGATION_SCOPE, "rewind") is None

    actions = {item.action for item in iter_shortcuts() if item.scope == NAVIGATION_SCOPE}
    assert actions == {"next_annotation", "previous_annotation", "toggle_play_pause", "dismiss_overlay"}
