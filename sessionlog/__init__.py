"""sessionlog/__init__.py - Public API for the sessionlog package.

sessionlog is a small structured-logging layer on top of the standard
``logging`` module. A ContextLogger writes every record to two sinks:

    Console:  colored, human-readable lines with ``*bold*`` / ``_italic_``
              markup and pretty-printed data.
    File:     one JSON object per line in ``<directory>/<YYYY-MM-DD>.log``,
              rotated by date and size.

and stamps each record with the logger's session data and tags.

Quick start:
    from sessionlog import ContextLogger

    log = ContextLogger("./logs")

    # 1. Level methods return the logger, so calls chain
    log.info("Server *started*", {"port": 8080}).divider()

    # 2. Derive a per-request logger; the parent is not modified
    req = log.with_session({"request_id": "a1b2"}).with_tags("http")
    req.warn("Slow query", {"ms": 812})

    # 3. Or mutate in place and undo later
    undo = log.add_session({"job": "reindex"})
    log.success("Job done")
    undo()

    # 4. Coarse durations
    timer = log.timer("reindex")
    timer.finish()                   # "reindex: *1.5s*"

Exported names:
    ContextLogger:   The facade described above.
    SessionUndo:     Undo handle returned by ``add_session()``.
    TagUndo:         Undo handle returned by ``add_tag()``.
    Timer:           Handle returned by ``timer()``.
    FileSinkConfig:  Date pattern, size, retention and encoding options.
    Serializer:      Base class for custom data/session serializers.
    RichSerializer:  Default serializer (dates, sets, decimals, cycles...).
    LEVELS:          The fixed level table.
"""

from .config import FileSinkConfig
from .levels import LEVELS, SUCCESS, Level, get_level
from .logger import ContextLogger, SessionUndo, TagUndo, Timer
from .serializer import RichSerializer, SerializedValue, Serializer
from .transports import (
    ConsoleHandler,
    DailyRotatingFileHandler,
    console_transport,
    file_transport,
)
from .formatter import ConsoleFormatter, JsonFormatter

__all__ = [
    "ContextLogger",
    "SessionUndo",
    "TagUndo",
    "Timer",
    "FileSinkConfig",
    "Serializer",
    "RichSerializer",
    "SerializedValue",
    "LEVELS",
    "SUCCESS",
    "Level",
    "get_level",
    "ConsoleHandler",
    "DailyRotatingFileHandler",
    "console_transport",
    "file_transport",
    "ConsoleFormatter",
    "JsonFormatter",
]
