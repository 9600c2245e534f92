"""Annotation data models and time-based lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


DEFAULT_SECTION_ID = "_default"
DEFAULT_SECTION_TITLE = "Annotations"
DEFAULT_DOCUMENT_TITLE = "Annotations"
DEFAULT_DOCUMENT_VERSION = 1
DEFAULT_AUTOPAUSE = True
DEFAULT_MARKER_COLOR = "#2196F3"


@dataclass(eq=False)
class Annotation:
    """Point of interest in the recording, addressed by ``id``."""

    id: str
    title: str
    timestamp: int = 0
    color: Optional[str] = None
    autopause: Optional[bool] = None
    description: Optional[str] = None
    driver_js_code: Optional[str] = None
    section_id: str = DEFAULT_SECTION_ID

    @property
    def has_highlight(self) -> bool:
        return bool(self.driver_js_code)

    def resolved_autopause(self, default: bool = DEFAULT_AUTOPAUSE) -> bool:
        return default if self.autopause is None else self.autopause

    def display_color(self, default: str = DEFAULT_MARKER_COLOR) -> str:
        return self.color or default


@dataclass
class TocSection:
    id: str
    title: str
    # declaration order, not time order
    annotations: List[Annotation] = field(default_factory=list)


@dataclass
class AnnotationFile:
    version: int = DEFAULT_DOCUMENT_VERSION
    title: str = DEFAULT_DOCUMENT_TITLE
    sections: List[TocSection] = field(default_factory=list)
    annotations: List[Annotation] = field(default_factory=list)

    def find_annotation(self, annotation_id: str) -> Optional[Annotation]:
        """Return the annotation with ``annotation_id``; on id collisions the latest in time order wins."""
        return find_annotation(self.annotations, annotation_id)


def find_annotation(annotations: Sequence[Annotation], annotation_id: str) -> Optional[Annotation]:
    match = None
    for annotation in annotations:
        if annotation.id == annotation_id:
            match = annotation
    return match


def find_active_annotation(annotations: Sequence[Annotation], time_ms: float) -> Optional[Annotation]:
    """Return the most recent annotation at or before ``time_ms``.

    ``annotations`` must be sorted by timestamp, the scan stops at the first
    annotation past ``time_ms``.
    """

    active = None
    for annotation in annotations:
        if annotation.timestamp <= time_ms:
            active = annotation
        else:
            break
    return active


def find_next_annotation(annotations: Sequence[Annotation], time_ms: float) -> Optional[Annotation]:
    return next((annotation for annotation in annotations if annotation.timestamp > time_ms), None)


def find_previous_annotation(
    annotations: Sequence[Annotation],
    time_ms: float,
    threshold_ms: float = 0.0,
) -> Optional[Annotation]:
    """Return the last annotation clearly behind ``time_ms``.

    Annotations within ``threshold_ms`` of the current time count as "here",
    so pressing back while parked on one moves to the one before it.
    """

    previous = None
    for annotation in annotations:
        if annotation.timestamp < time_ms - threshold_ms:
            previous = annotation
        else:
            break
    return previous


__all__ = [
    "Annotation",
    "AnnotationFile",
    "DEFAULT_AUTOPAUSE",
    "DEFAULT_DOCUMENT_TITLE",
    "DEFAULT_DOCUMENT_VERSION",
    "DEFAULT_MARKER_COLOR",
    "DEFAULT_SECTION_ID",
    "DEFAULT_SECTION_TITLE",
    "TocSection",
    "find_active_annotation",
    "find_annotation",
    "find_next_annotation",
    "find_previous_annotation",
]
