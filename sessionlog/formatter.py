"""formatter.py - Console and JSON-line renderings of a sessionlog record.

Two ``logging.Formatter`` subclasses live here:

    ConsoleFormatter  Human-readable single line for terminals::

                          [15/01/2024 12:34:56] Build done in 2s {
                            "target": "wheel"
                          }

                      The message is painted in its level color and may use
                      inline emphasis: ``*bold*`` and ``_italic_``.

    JsonFormatter     One JSON object per line for the file sink, carrying
                      every field of the record and no markup processing.

Both read the extra attributes ContextLogger attaches to each LogRecord
(``level_name``, ``data``, ``session``, ``tags``, ``meta``) and fall back to
plain stdlib attributes for records produced elsewhere.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from .levels import BOLD, GRAY, ITALIC, Level, find_level, level_for_levelno, style

_BOLD_RE = re.compile(r"\*(.*?)\*")
_ITALIC_RE = re.compile(r"_(.*?)_")


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ``DD/MM/YYYY HH:MM:SS``.

    Example:
        >>> format_timestamp(datetime(2024, 1, 5, 9, 3, 7))
        '05/01/2024 09:03:07'
    """
    return (
        f"{moment.day:02d}/{moment.month:02d}/{moment.year:04d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )


def apply_emphasis(text: str, colorize: bool = True) -> str:
    """Replace ``*bold*`` and ``_italic_`` spans with ANSI styles.

    Matching is non-greedy and left to right. Bold spans are resolved first,
    then italic ones. A delimiter without a partner is left untouched. With
    ``colorize=False`` the delimiters are still stripped but no escape codes
    are emitted.

    Example:
        >>> apply_emphasis("Build *done* in _2s_", colorize=False)
        'Build done in 2s'
    """
    if colorize:
        text = _BOLD_RE.sub(lambda m: style(m.group(1), BOLD), text)
        return _ITALIC_RE.sub(lambda m: style(m.group(1), ITALIC), text)
    text = _BOLD_RE.sub(r"\1", text)
    return _ITALIC_RE.sub(r"\1", text)


def record_level(record: logging.LogRecord) -> Optional[Level]:
    """Return the level table row for ``record``, or None if it has none."""
    level = find_level(getattr(record, "level_name", None) or "")
    if level is not None:
        return level
    return level_for_levelno(record.levelno)


def record_level_name(record: logging.LogRecord) -> str:
    level = record_level(record)
    if level is not None:
        return level.name
    return record.levelname.lower()


class ConsoleFormatter(logging.Formatter):
    """Render records as colored, human-readable console lines.

    Attributes:
        colorize (bool): Emit ANSI codes. When False, output is plain text
            with emphasis delimiters stripped.
    """

    def __init__(self, colorize: bool = True) -> None:
        super().__init__()
        self.colorize = colorize

    def format(self, record: logging.LogRecord) -> str:
        stamp = f"[{format_timestamp(datetime.fromtimestamp(record.created))}]"
        message = apply_emphasis(record.getMessage(), self.colorize)

        if self.colorize:
            stamp = style(stamp, GRAY)
            level = record_level(record)
            # Records from foreign levels have no color and stay unstyled.
            if level is not None:
                message = style(message, level.color)

        parts = [f"{stamp} {message}"]

        data = getattr(record, "data", None)
        if data is not None:
            parts.append(json.dumps(data, indent=2, ensure_ascii=False, default=str))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects.

    Output shape::

        {"level": "info", "message": "...", "data": {...}, "session": {...},
         "tags": [...], "meta": {...}, "timestamp": "2024-01-15T12:34:56.789Z"}

    ``data``, ``session``, ``tags`` and ``meta`` are omitted when absent.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record_level_name(record),
            "message": record.getMessage(),
        }
        for key in ("data", "session", "tags", "meta"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload["timestamp"] = self.format_iso(record)
        return json.dumps(payload, ensure_ascii=False, default=str)

    @staticmethod
    def format_iso(record: logging.LogRecord) -> str:
        """Return the record creation time as ISO-8601 UTC with milliseconds."""
        moment = datetime.fromtimestamp(record.created, timezone.utc)
        return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{int(record.msecs):03d}Z"
