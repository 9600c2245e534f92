"""Application configuration management module."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from .defaults import DEFAULT_CONFIG
from replaymark.core.env import resolve_config_path
from replaymark.core.shortcuts import NAVIGATION_SCOPE, normalize_key


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _apply_user_values(defaults: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay user YAML on ``defaults``; empty keys (``key:`` with no value) keep the default."""
    merged: Dict[str, Any] = copy.deepcopy(defaults)
    for key, value in user.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict):
            # a scalar where a section belongs is ignored
            if isinstance(value, dict):
                merged[key] = _apply_user_values(current, value)
            continue
        merged[key] = value
    return merged


@dataclass
class SettingsManager:
    """YAML configuration with defaults for every missing key."""

    config_path: Path = Path("config/settings.yaml")

    def __post_init__(self) -> None:
        self.config_path = resolve_config_path(self.config_path)
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if self.config_path.exists():
            with self.config_path.open("r", encoding="utf-8") as file:
                user_config = yaml.safe_load(file) or {}
            if not isinstance(user_config, dict):
                user_config = {}
            self._data = _apply_user_values(DEFAULT_CONFIG, user_config)
        else:
            self._data = copy.deepcopy(DEFAULT_CONFIG)

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as file:
            yaml.safe_dump(self._data, file, allow_unicode=False, sort_keys=True)

    def get_raw(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    # ---- navigation ----
    def _get_positive_ms(self, key: str) -> int:
        navigation = self._data.get("navigation", {})
        default = DEFAULT_CONFIG["navigation"][key]
        value = navigation.get(key, default) if isinstance(navigation, dict) else default
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return default
        return parsed if parsed > 0 else default

    def _set_positive_ms(self, key: str, value: int) -> None:
        parsed = int(value)
        if parsed <= 0:
            raise ValueError(f"{key} must be positive")
        navigation = self._data.setdefault("navigation", {})
        navigation[key] = parsed

    def get_polling_interval_ms(self) -> int:
        return self._get_positive_ms("polling_interval_ms")

    def set_polling_interval_ms(self, value: int) -> None:
        self._set_positive_ms("polling_interval_ms", value)

    def get_trigger_threshold_ms(self) -> int:
        return self._get_positive_ms("trigger_threshold_ms")

    def set_trigger_threshold_ms(self, value: int) -> None:
        self._set_positive_ms("trigger_threshold_ms", value)

    def get_backward_seek_threshold_ms(self) -> int:
        return self._get_positive_ms("backward_seek_threshold_ms")

    def set_backward_seek_threshold_ms(self, value: int) -> None:
        self._set_positive_ms("backward_seek_threshold_ms", value)

    # ---- annotations ----
    def get_default_autopause(self) -> bool:
        annotations = self._data.get("annotations", {})
        value = annotations.get("default_autopause") if isinstance(annotations, dict) else None
        if isinstance(value, bool):
            return value
        return DEFAULT_CONFIG["annotations"]["default_autopause"]

    def set_default_autopause(self, enabled: bool) -> None:
        annotations = self._data.setdefault("annotations", {})
        annotations["default_autopause"] = bool(enabled)

    def get_default_color(self) -> str:
        annotations = self._data.get("annotations", {})
        value = annotations.get("default_color") if isinstance(annotations, dict) else None
        if isinstance(value, str) and value.strip():
            return value.strip()
        return DEFAULT_CONFIG["annotations"]["default_color"]

    # ---- shortcuts ----
    def get_scope_shortcuts(self, scope: str) -> Dict[str, str]:
        defaults = DEFAULT_CONFIG["shortcuts"].get(scope, {}).copy()
        user_values = self._data.get("shortcuts", {}).get(scope, {})
        if not isinstance(user_values, dict):
            return defaults
        normalized = {
            key: normalize_key(str(value))
            for key, value in user_values.items()
            if isinstance(value, (str, int))
        }
        defaults.update(normalized)
        return defaults

    def get_navigation_shortcuts(self) -> Dict[str, str]:
        return self.get_scope_shortcuts(NAVIGATION_SCOPE)

    def set_shortcut(self, scope: str, action: str, value: str) -> None:
        scope_dict = self._data.setdefault("shortcuts", {}).setdefault(scope, {})
        scope_dict[action] = normalize_key(value)

    # ---- diagnostics ----
    def get_diagnostics_log_level(self) -> str:
        diagnostics = self._data.get("diagnostics", {})
        value = diagnostics.get("log_level") if isinstance(diagnostics, dict) else None
        level = str(value or "").upper()
        return level if level in _LOG_LEVELS else DEFAULT_CONFIG["diagnostics"]["log_level"]

    def set_diagnostics_log_level(self, level: str) -> None:
        normalized = str(level or "").upper()
        if normalized not in _LOG_LEVELS:
            normalized = DEFAULT_CONFIG["diagnostics"]["log_level"]
        diagnostics = self._data.setdefault("diagnostics", {})
        diagnostics["log_level"] = normalized
