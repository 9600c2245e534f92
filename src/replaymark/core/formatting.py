"""Small formatting helpers shared by the parser and the outline printer."""

from __future__ import annotations

import re


_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Return the id derived from a section or annotation title.

    >>> slugify('Click "Submit" Button!')
    'click-submit-button'
    """

    return _NON_ALNUM.sub("-", title.lower()).strip("-")


def format_time(ms: int | float) -> str:
    """Format milliseconds as ``M:SS`` (minutes are not wrapped into hours)."""

    total_seconds = max(0, int(ms // 1000))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


__all__ = ["format_time", "slugify"]
