"""Default configuration values."""

from __future__ import annotations

from typing import Any, Dict

from replaymark.core.annotations import DEFAULT_AUTOPAUSE, DEFAULT_MARKER_COLOR
from replaymark.core.shortcuts import ensure_defaults
from replaymark.navigation.engine import DEFAULT_BACKWARD_SEEK_THRESHOLD_MS, DEFAULT_TRIGGER_THRESHOLD_MS
from replaymark.navigation.monitor import DEFAULT_POLLING_INTERVAL_MS

DEFAULT_CONFIG: Dict[str, Any] = {
    "navigation": {
        "polling_interval_ms": DEFAULT_POLLING_INTERVAL_MS,
        "trigger_threshold_ms": DEFAULT_TRIGGER_THRESHOLD_MS,
        "backward_seek_threshold_ms": DEFAULT_BACKWARD_SEEK_THRESHOLD_MS,
    },
    "annotations": {
        "default_autopause": DEFAULT_AUTOPAUSE,
        "default_color": DEFAULT_MARKER_COLOR,
    },
    "shortcuts": {},
    "diagnostics": {
        "log_level": "WARNING",
    },
}

ensure_defaults(DEFAULT_CONFIG["shortcuts"])
