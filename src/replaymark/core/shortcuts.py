"""Shortcut registry for annotation navigation commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List


NAVIGATION_SCOPE = "navigation"

_KEY_ALIASES = {
    " ": "SPACE",
    "ARROWRIGHT": "RIGHT",
    "ARROWLEFT": "LEFT",
    "ARROWUP": "UP",
    "ARROWDOWN": "DOWN",
    "SPACEBAR": "SPACE",
    "ESC": "ESCAPE",
}


def _key(scope: str, action: str) -> str:
    return f"{scope}:{action}"


@dataclass
class ShortcutDescriptor:
    scope: str
    action: str
    label: str
    default: str

    @property
    def registry_key(self) -> str:
        return _key(self.scope, self.action)


_SHORTCUTS: Dict[str, ShortcutDescriptor] = {}


def register_shortcut(scope: str, action: str, *, label: str, default: str) -> None:
    descriptor = ShortcutDescriptor(scope=scope, action=action, label=label, default=default)
    _SHORTCUTS[descriptor.registry_key] = descriptor


def get_shortcut(scope: str, action: str) -> ShortcutDescriptor | None:
    return _SHORTCUTS.get(_key(scope, action))


def iter_shortcuts() -> List[ShortcutDescriptor]:
    return list(_SHORTCUTS.values())


def ensure_defaults(default_registry: Dict[str, Dict[str, str]]) -> None:
    for descriptor in _SHORTCUTS.values():
        default_registry.setdefault(descriptor.scope, {})[descriptor.action] = descriptor.default


def normalize_key(value: str) -> str:
    """Normalize a key name (``"ArrowRight"``, ``" "``, ``"right"``) to registry form."""
    if value == " ":
        return "SPACE"
    text = str(value).strip().upper()
    return _KEY_ALIASES.get(text, text)


def _register_defaults() -> None:
    register_shortcut(NAVIGATION_SCOPE, "next_annotation", label="Next annotation", default="RIGHT")
    register_shortcut(NAVIGATION_SCOPE, "previous_annotation", label="Previous annotation", default="LEFT")
    register_shortcut(NAVIGATION_SCOPE, "toggle_play_pause", label="Play / pause", default="SPACE")
    register_shortcut(NAVIGATION_SCOPE, "dismiss_overlay", label="Close highlight overlay", default="ESCAPE")


_register_defaults()
