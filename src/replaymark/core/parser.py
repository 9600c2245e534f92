"""Parser for the markdown annotation documents shipped next to recordings.

Document layout::

    ---
    version: 1
    title: "Recording title"
    ---

    ## Section: Introduction {#intro}

    ### Annotation: Welcome {#welcome}
    ---
    timestamp: 0
    color: `#2196F3`
    autopause: true
    ---
    Free text description.

    ```driverjs
    driver.highlight({ element: '.welcome' });
    ```

The parser is deliberately forgiving: hand-written documents with missing or
broken blocks still produce a usable :class:`AnnotationFile`, nothing raises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from replaymark.core.annotations import (
    DEFAULT_DOCUMENT_TITLE,
    DEFAULT_DOCUMENT_VERSION,
    DEFAULT_SECTION_ID,
    DEFAULT_SECTION_TITLE,
    Annotation,
    AnnotationFile,
    TocSection,
)
from replaymark.core.formatting import slugify


logger = logging.getLogger(__name__)

HIGHLIGHT_FENCE_TAG = "driverjs"

_DELIMITER = "---"
_FENCE = "```"
_SECTION_HEADER = re.compile(r"^##\s+Section:\s*(.*?)\s*$")
_ANNOTATION_HEADER = re.compile(r"^###\s+Annotation:\s*(.*?)\s*$")
_ANCHOR = re.compile(r"^(.*?)\s*\{#([^}]*)\}$")
_LEADING_INT = re.compile(r"^[+-]?\d+")
_HIGHLIGHT_FENCE = re.compile(r"^```\s*" + HIGHLIGHT_FENCE_TAG + r"\s*$")


@dataclass
class _PendingAnnotation:
    title: str
    id: str
    section_id: str
    body: List[str] = field(default_factory=list)


def parse_annotations(text: str) -> AnnotationFile:
    """Parse an annotation document into sections and time-sorted annotations."""

    result = AnnotationFile()
    if not text or not text.strip():
        return result

    lines = text.splitlines()
    index = _parse_frontmatter(lines, result)

    sections: List[TocSection] = []
    declared: List[Annotation] = []
    current_section: Optional[TocSection] = None
    default_section: Optional[TocSection] = None
    pending: Optional[_PendingAnnotation] = None
    in_fence = False

    def flush_pending() -> None:
        nonlocal pending
        if pending is None:
            return
        annotation = _build_annotation(pending)
        declared.append(annotation)
        owner = current_section if current_section is not None else default_section
        if owner is not None:
            owner.annotations.append(annotation)
        pending = None

    for raw_line in lines[index:]:
        stripped = raw_line.strip()
        if in_fence:
            if pending is not None:
                pending.body.append(raw_line)
            if stripped == _FENCE:
                in_fence = False
            continue

        section_match = _SECTION_HEADER.match(stripped)
        if section_match:
            flush_pending()
            title, section_id = _split_anchor(section_match.group(1))
            current_section = TocSection(id=section_id, title=title)
            sections.append(current_section)
            continue

        annotation_match = _ANNOTATION_HEADER.match(stripped)
        if annotation_match:
            flush_pending()
            if current_section is None and default_section is None:
                default_section = TocSection(id=DEFAULT_SECTION_ID, title=DEFAULT_SECTION_TITLE)
                sections.append(default_section)
            owner = current_section if current_section is not None else default_section
            title, annotation_id = _split_anchor(annotation_match.group(1))
            pending = _PendingAnnotation(title=title, id=annotation_id, section_id=owner.id)
            continue

        if pending is None:
            continue
        pending.body.append(raw_line)
        if stripped.startswith(_FENCE):
            in_fence = True

    flush_pending()

    result.sections = sections
    # sorted() is stable: equal timestamps keep declaration order
    result.annotations = sorted(declared, key=lambda annotation: annotation.timestamp)
    logger.debug(
        "Parsed annotation document title=%r version=%s sections=%d annotations=%d",
        result.title,
        result.version,
        len(result.sections),
        len(result.annotations),
    )
    return result


def _parse_frontmatter(lines: Sequence[str], result: AnnotationFile) -> int:
    """Apply the leading frontmatter block to ``result`` and return the next line index."""

    start = _skip_blank(lines, 0)
    if start >= len(lines) or lines[start].strip() != _DELIMITER:
        return 0
    end = _find_delimiter(lines, start + 1)
    if end is None:
        logger.debug("Frontmatter block is not closed, ignoring it")
        return start + 1

    values = _parse_key_values(lines[start + 1:end])
    result.version = _parse_int(values.get("version"), DEFAULT_DOCUMENT_VERSION)
    title = _unquote(values.get("title", ""), "\"'")
    result.title = title or DEFAULT_DOCUMENT_TITLE
    return end + 1


def _build_annotation(pending: _PendingAnnotation) -> Annotation:
    body = pending.body
    start = _skip_blank(body, 0)
    metadata: Dict[str, str] = {}
    if start < len(body) and body[start].strip() == _DELIMITER:
        end = _find_delimiter(body, start + 1)
        if end is None:
            logger.debug("Metadata block of annotation %r is not closed", pending.id)
            metadata = _parse_key_values(body[start + 1:])
            body = []
        else:
            metadata = _parse_key_values(body[start + 1:end])
            body = body[end + 1:]

    description, driver_js_code = _split_body(body)
    timestamp = max(0, _parse_int(metadata.get("timestamp"), 0))
    color = _unquote(metadata.get("color", ""), "`\"'") or None

    return Annotation(
        id=pending.id,
        title=pending.title,
        timestamp=timestamp,
        color=color,
        autopause=_parse_bool(metadata.get("autopause")),
        description=description,
        driver_js_code=driver_js_code,
        section_id=pending.section_id,
    )


def _split_body(body: Sequence[str]) -> tuple[Optional[str], Optional[str]]:
    fence_index = next(
        (idx for idx, line in enumerate(body) if _HIGHLIGHT_FENCE.match(line.strip())),
        None,
    )
    if fence_index is None:
        return _non_empty("\n".join(body).strip()), None

    description = _non_empty("\n".join(body[:fence_index]).strip())
    code_lines: List[str] = []
    for line in body[fence_index + 1:]:
        if line.strip() == _FENCE:
            break
        code_lines.append(line)
    code = "\n".join(code_lines)
    return description, code if code.strip() else None


def _split_anchor(raw_title: str) -> tuple[str, str]:
    match = _ANCHOR.match(raw_title)
    if match and match.group(2).strip():
        return match.group(1).strip(), match.group(2).strip()
    title = raw_title.strip()
    return title, slugify(title)


def _parse_key_values(lines: Sequence[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        values[key] = value.strip()
    return values


def _find_delimiter(lines: Sequence[str], start: int) -> Optional[int]:
    for idx in range(start, len(lines)):
        if lines[idx].strip() == _DELIMITER:
            return idx
    return None


def _skip_blank(lines: Sequence[str], start: int) -> int:
    idx = start
    while idx < len(lines) and not lines[idx].strip():
        idx += 1
    return idx


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    match = _LEADING_INT.match(value.strip())
    if not match:
        return default
    return int(match.group(0))


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _unquote(value: str, quotes: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in quotes:
        return value[1:-1].strip()
    return value


def _non_empty(value: str) -> Optional[str]:
    return value or None


__all__ = ["HIGHLIGHT_FENCE_TAG", "parse_annotations"]
