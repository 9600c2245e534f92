"""Command-line entry point: print the outline of an annotation document."""

from __future__ import annotations

import argparse
import logging
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from replaymark.core.annotations import DEFAULT_AUTOPAUSE, DEFAULT_MARKER_COLOR, AnnotationFile
from replaymark.core.config import SettingsManager
from replaymark.core.env import resolve_log_level
from replaymark.core.formatting import format_time
from replaymark.core.parser import parse_annotations


def _configure_logging(level_override: Optional[str] = None) -> Optional[Path]:
    level_name = (resolve_log_level(level_override) or "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)

    primary_dir = Path.cwd() / "logs"
    fallback_dir = Path(tempfile.gettempdir()) / "replaymark_logs"
    logs_dir = primary_dir
    log_path: Path | None = None

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logs_dir = fallback_dir
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            logging.basicConfig(level=level)
            return None

    try:
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        log_path = logs_dir / f"replaymark-{timestamp}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        file_handler.setFormatter(formatter)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logging.basicConfig(level=level, handlers=[file_handler, stream_handler])
    except OSError:
        log_path = None
        logging.basicConfig(level=level)
    if log_path:
        logging.getLogger(__name__).info("Writing log to %s", log_path)
        if logs_dir is fallback_dir:
            logging.getLogger(__name__).warning("Using fallback log directory %s", logs_dir)
    return log_path


def format_outline(
    document: AnnotationFile,
    *,
    default_autopause: bool = DEFAULT_AUTOPAUSE,
    default_color: str = DEFAULT_MARKER_COLOR,
) -> List[str]:
    """Render the table of contents as plain text lines."""

    lines = [f"{document.title} (v{document.version})"]
    for section in document.sections:
        lines.append(f"  {section.title} [{section.id}]")
        for annotation in section.annotations:
            badges = []
            if annotation.resolved_autopause(default_autopause):
                badges.append("pause")
            if annotation.has_highlight:
                badges.append("highlight")
            suffix = f" ({', '.join(badges)})" if badges else ""
            color = annotation.display_color(default_color)
            lines.append(
                f"    {format_time(annotation.timestamp):>6}  {color}  {annotation.title} #{annotation.id}{suffix}"
            )
    return lines


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="replaymark", description=__doc__)
    parser.add_argument("document", type=Path, help="annotation markdown file")
    parser.add_argument("--log-level", default=None, help="override diagnostics.log_level")
    return parser


def run(argv: Optional[List[str]] = None, *, out: TextIO | None = None) -> int:
    args = _build_parser().parse_args(argv)
    out = out or sys.stdout
    settings = SettingsManager()
    _configure_logging(args.log_level or settings.get_diagnostics_log_level())
    logger = logging.getLogger(__name__)

    try:
        text = args.document.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.document, exc)
        return 2

    document = parse_annotations(text)
    outline = format_outline(
        document,
        default_autopause=settings.get_default_autopause(),
        default_color=settings.get_default_color(),
    )
    for line in outline:
        print(line, file=out)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
