"""transports.py - The two sinks every ContextLogger writes to.

    ConsoleHandler            Human-readable lines on stdout (errors on
                              stderr), rendered by ConsoleFormatter.
    DailyRotatingFileHandler  JSON lines in ``<directory>/<date>.log``,
                              rendered by JsonFormatter, rotated by date and
                              size with optional retention.

Both are ordinary ``logging.Handler`` subclasses, so they inherit the stdlib
locking and error reporting: a failing write is routed to
``Handler.handleError`` and never raises into the caller.

Typical usage::

    import logging
    from sessionlog.transports import console_transport, file_transport

    logger = logging.getLogger("app")
    logger.addHandler(console_transport())
    logger.addHandler(file_transport("./logs", max_size="5m"))
"""

import logging
import logging.handlers
import os
import re
import sys
from datetime import datetime
from typing import Optional

from .config import FileSinkConfig
from .formatter import ConsoleFormatter, JsonFormatter

_internal = logging.getLogger("sessionlog.internal")
_internal.addHandler(logging.NullHandler())

_BACKUP_RE = re.compile(r"^(?P<stem>.+)\.log\.(?P<index>\d+)$")


def _supports_color(stream) -> bool:
    if "NO_COLOR" in os.environ:
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class ConsoleHandler(logging.StreamHandler):
    """A StreamHandler that picks its stream per record.

    With no explicit stream, ``error`` records go to ``sys.stderr`` and all
    other levels to ``sys.stdout``. Both are looked up at emit time so that
    redirected standard streams are honoured. An explicit ``stream`` receives
    every record.
    """

    def __init__(self, stream=None) -> None:
        super().__init__(stream)
        self._explicit_stream = stream

    def stream_for(self, record: logging.LogRecord):
        """Return the stream ``record`` should be written to."""
        if self._explicit_stream is not None:
            return self._explicit_stream
        if record.levelno >= logging.ERROR:
            return sys.stderr
        return sys.stdout

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            stream = self.stream_for(record)
            stream.write(msg + self.terminator)
            stream.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


class DailyRotatingFileHandler(logging.handlers.BaseRotatingHandler):
    """Write records to one file per day, splitting files that grow too large.

    File layout inside ``directory``::

        2024-01-14.log      previous day
        2024-01-15.log.1    first part of today, moved aside at max_size
        2024-01-15.log      current file

    The directory is created and the file opened on the first emit, so
    constructing the handler never touches the disk.

    Attributes:
        directory (str): Absolute path of the target directory.
        config (FileSinkConfig): Naming, size, retention and encoding options.
    """

    def __init__(self, directory: str, config: Optional[FileSinkConfig] = None) -> None:
        self.directory = os.path.abspath(directory)
        self.config = config or FileSinkConfig()
        self.max_bytes = self.config.max_bytes
        super().__init__(
            self.dated_filename(), "a", encoding=self.config.encoding, delay=True
        )

    def now(self) -> datetime:
        """Current local time, used to name files."""
        return datetime.now()

    def dated_filename(self) -> str:
        """Return the path of the file that should receive records right now."""
        name = self.now().strftime(self.config.date_pattern) + ".log"
        return os.path.join(self.directory, name)

    # ---------------------------------------------------------------------- #
    # BaseRotatingHandler hooks
    # ---------------------------------------------------------------------- #

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        if self.dated_filename() != self.baseFilename:
            return True
        if self.max_bytes > 0:
            if self.stream is None:
                self.stream = self._open()
            msg = "%s\n" % self.format(record)
            self.stream.seek(0, 2)
            pos = self.stream.tell()
            # An empty file is never split, however large the record.
            if pos and pos + len(msg) >= self.max_bytes:
                return True
        return False

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        dated = self.dated_filename()
        if dated != self.baseFilename:
            _internal.debug("date changed, switching %s -> %s", self.baseFilename, dated)
            self.baseFilename = dated
            return

        if os.path.exists(self.baseFilename):
            backup = self._next_backup_name()
            os.replace(self.baseFilename, backup)
            _internal.debug("size limit reached, moved %s -> %s", self.baseFilename, backup)

    def _open(self):
        os.makedirs(os.path.dirname(self.baseFilename), exist_ok=True)
        stream = super()._open()
        if self.config.max_files:
            self._purge_old_files()
        return stream

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _next_backup_name(self) -> str:
        index = 1
        while os.path.exists(f"{self.baseFilename}.{index}"):
            index += 1
        return f"{self.baseFilename}.{index}"

    def _file_date(self, filename: str) -> Optional[datetime]:
        """Parse the date out of a log file name, or None if it is not ours."""
        if filename.endswith(".log"):
            stem = filename[: -len(".log")]
        else:
            match = _BACKUP_RE.match(filename)
            if match is None:
                return None
            stem = match.group("stem")
        try:
            return datetime.strptime(stem, self.config.date_pattern)
        except ValueError:
            return None

    def _purge_old_files(self) -> None:
        """Delete files whose date falls outside the newest ``max_files`` dates."""
        dated = {}
        for filename in os.listdir(self.directory):
            moment = self._file_date(filename)
            if moment is not None:
                dated.setdefault(moment, []).append(filename)

        keep = sorted(dated, reverse=True)[: self.config.max_files]
        for moment, filenames in dated.items():
            if moment in keep:
                continue
            for filename in filenames:
                path = os.path.join(self.directory, filename)
                try:
                    os.remove(path)
                    _internal.debug("retention purge removed %s", path)
                except FileNotFoundError:
                    pass  # Removed concurrently, nothing left to do.


def console_transport(stream=None, colorize: Optional[bool] = None) -> ConsoleHandler:
    """Build the console sink.

    Args:
        stream: Optional stream receiving every record. By default records
            are split between stdout and stderr.
        colorize: Force ANSI styling on or off. None enables it when the
            target stream is a terminal and ``NO_COLOR`` is unset.
    """
    handler = ConsoleHandler(stream)
    if colorize is None:
        colorize = _supports_color(stream or sys.stdout)
    handler.setFormatter(ConsoleFormatter(colorize=colorize))
    handler.setLevel(logging.DEBUG)
    return handler


def file_transport(
    path: str, config: Optional[FileSinkConfig] = None, **overrides
) -> DailyRotatingFileHandler:
    """Build the rotating file sink writing JSON lines under ``path``.

    Args:
        path: Target directory. An empty string means the working directory.
        config: Base options. Defaults to ``FileSinkConfig()``.
        **overrides: Individual FileSinkConfig fields, e.g. ``max_size="5m"``.
    """
    config = config or FileSinkConfig()
    if overrides:
        config = config.replace(**overrides)
    handler = DailyRotatingFileHandler(path, config)
    handler.setFormatter(JsonFormatter())
    handler.setLevel(logging.DEBUG)
    return handler
