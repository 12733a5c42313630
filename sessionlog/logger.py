"""logger.py - ContextLogger, the session-aware facade over stdlib logging.

A ContextLogger owns two pieces of per-instance context and merges them into
every record it emits:

    Session:  A dict of key/value metadata (request id, user, job name...).
    Tags:     An ordered list of free-form labels.

Records are handed to an underlying ``logging.Logger`` carrying two sinks (see
``transports.py``). Context can be changed two ways:

    Derive:   ``with_session()`` / ``with_tags()`` return a new ContextLogger
              with its own copy of the context and the *same* sinks. Use this
              to give each request, task or thread its own context.
    Mutate:   ``add_session()`` / ``add_tag()`` change this instance in place
              and return an undo object that reverts exactly that change.

Typical usage::

    from sessionlog import ContextLogger

    log = ContextLogger("./logs")
    request_log = log.with_session({"request_id": "a1b2"}).with_tags("api")
    request_log.info("Served *GET /users* in _12ms_", {"status": 200})

    with log.timer("rebuild index"):
        rebuild()
"""

import logging
import math
import sys
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import FileSinkConfig
from .levels import get_level
from .serializer import RichSerializer, Serializer
from .transports import console_transport, file_transport

DIVIDER = "-" * 80


class SessionUndo:
    """Reverts one ``add_session()`` call by deleting the keys it added.

    Only the captured keys are removed; keys added later by other calls are
    left alone. Undoing after ``clear_session()`` is a no-op. The object can
    be called directly or used as a context manager.

    Attributes:
        owner (ContextLogger): The logger whose session is reverted.
        keys (tuple): The keys this undo is responsible for.
    """

    __slots__ = ("owner", "keys")

    def __init__(self, owner: "ContextLogger", keys: Iterable[str]) -> None:
        self.owner = owner
        self.keys = tuple(keys)

    def undo(self) -> None:
        self.owner._drop_session_keys(self.keys)

    def __call__(self) -> None:
        self.undo()

    def __enter__(self) -> "SessionUndo":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.undo()


class TagUndo:
    """Reverts one ``add_tag()`` call by removing every occurrence of its tags.

    Attributes:
        owner (ContextLogger): The logger whose tags are reverted.
        values (tuple): The tag values this undo is responsible for.
    """

    __slots__ = ("owner", "values")

    def __init__(self, owner: "ContextLogger", values: Iterable[str]) -> None:
        self.owner = owner
        self.values = tuple(values)

    def undo(self) -> None:
        self.owner._drop_tags(self.values)

    def __call__(self) -> None:
        self.undo()

    def __enter__(self) -> "TagUndo":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.undo()


class Timer:
    """Coarse elapsed-time measurement reported through its owner logger.

    Elapsed time is counted in whole 0.25 s ticks, so a timer finished after
    1.6 s reports ``1.5s``. No thread or scheduled callback is involved: the
    monotonic clock is read at start and at ``finish()``.
    """

    TICK = 0.25

    def __init__(
        self,
        owner: "ContextLogger",
        name: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.owner = owner
        self.name = name
        self._clock = clock
        self._started = clock()
        self._stopped: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds elapsed so far, rounded down to a whole tick."""
        end = self._stopped if self._stopped is not None else self._clock()
        return math.floor((end - self._started) / self.TICK) * self.TICK

    def finish(self) -> float:
        """Stop the timer and log ``"<name>: *<seconds>s*"`` at info level.

        Calling ``finish()`` again logs the same, frozen duration.

        Returns:
            The reported number of seconds.
        """
        if self._stopped is None:
            self._stopped = self._clock()
        seconds = self.elapsed
        # Half-up, so 1.25 s reads "1.3s" rather than the half-even "1.2s".
        shown = Decimal(str(seconds)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        self.owner.info(f"{self.name}: *{shown}s*")
        return seconds

    def __enter__(self) -> "Timer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()


class ContextLogger:
    """Structured logger that stamps session data and tags on every record.

    Args:
        path: Directory for the rotating file sink. ``""`` means the working
            directory. Nothing is written there until the first record.
        logger: Existing ``logging.Logger`` to dispatch to. When omitted, a
            private non-propagating logger is created with both sinks.
        session: Initial session mapping (copied).
        tags: Initial tags (copied).
        console_handler: Console sink to use instead of building one.
        file_handler: File sink to use instead of building one.
        file_config: Options for the file sink when it is built here.
        serializer: Converter applied to ``data`` and ``session``. Defaults
            to ``RichSerializer``.
        name: Name of the private logger created when ``logger`` is omitted.
        handle_exceptions: Install a ``sys.excepthook`` that logs uncaught
            exceptions at error level before chaining to the previous hook.
            ``close()`` restores the previous hook.

    Example:
        >>> log = ContextLogger("/tmp/app-logs", session={"job": "nightly"})
        >>> log.info("started") is log
        True
    """

    def __init__(
        self,
        path: str,
        *,
        logger: Optional[logging.Logger] = None,
        session: Optional[Dict[str, Any]] = None,
        tags: Optional[Iterable[str]] = None,
        console_handler: Optional[logging.Handler] = None,
        file_handler: Optional[logging.Handler] = None,
        file_config: Optional[FileSinkConfig] = None,
        serializer: Optional[Serializer] = None,
        name: str = "sessionlog",
        handle_exceptions: bool = False,
    ) -> None:
        self._path = path
        self._console = console_handler if console_handler is not None else console_transport()
        self._file = file_handler if file_handler is not None else file_transport(path, file_config)

        if logger is None:
            logger = logging.Logger(name, logging.DEBUG)
            logger.propagate = False
            logger.addHandler(self._console)
            logger.addHandler(self._file)
        self._logger = logger

        self._session: Optional[Dict[str, Any]] = dict(session) if session is not None else None
        self._tags: Optional[List[str]] = list(tags) if tags is not None else None
        self._serializer = serializer or RichSerializer()

        self._previous_hook = None
        if handle_exceptions:
            self._previous_hook = sys.excepthook
            sys.excepthook = self._log_uncaught

    def __repr__(self) -> str:  # pragma: no cover
        return f"ContextLogger(path={self._path!r}, session={self._session!r}, tags={self._tags!r})"

    # ---------------------------------------------------------------------- #
    # Read-only views
    # ---------------------------------------------------------------------- #

    @property
    def path(self) -> str:
        return self._path

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def console_handler(self) -> logging.Handler:
        return self._console

    @property
    def file_handler(self) -> logging.Handler:
        return self._file

    @property
    def session(self) -> Optional[Dict[str, Any]]:
        """A copy of the current session, or None when absent."""
        return dict(self._session) if self._session is not None else None

    @property
    def tags(self) -> Optional[List[str]]:
        """A copy of the current tags, or None when absent."""
        return list(self._tags) if self._tags is not None else None

    # ---------------------------------------------------------------------- #
    # Context: derive
    # ---------------------------------------------------------------------- #

    def _extend(self, session, tags) -> "ContextLogger":
        return ContextLogger(
            self._path,
            logger=self._logger,
            session=session,
            tags=tags,
            console_handler=self._console,
            file_handler=self._file,
            serializer=self._serializer,
        )

    def with_session(self, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        """Return a logger sharing these sinks, with ``data`` merged over the session."""
        return self._extend({**(self._session or {}), **(data or {})}, self._tags)

    def with_tags(self, *tags: str) -> "ContextLogger":
        """Return a logger sharing these sinks, with ``tags`` appended."""
        return self._extend(self._session, [*(self._tags or []), *tags])

    # ---------------------------------------------------------------------- #
    # Context: mutate
    # ---------------------------------------------------------------------- #

    def add_session(self, data: Optional[Dict[str, Any]] = None) -> SessionUndo:
        """Merge ``data`` into this logger's session.

        Returns:
            A SessionUndo that deletes exactly the keys of ``data``.
        """
        self._session = {**(self._session or {}), **(data or {})}
        return SessionUndo(self, data or ())

    def add_tag(self, *tags: str) -> TagUndo:
        """Append ``tags`` to this logger's tags.

        Returns:
            A TagUndo that removes every occurrence of these tag values.
        """
        self._tags = [*(self._tags or []), *tags]
        return TagUndo(self, tags)

    def clear_session(self) -> None:
        self._session = None

    def clear_tags(self) -> None:
        self._tags = None

    def _drop_session_keys(self, keys) -> None:
        if self._session is None:
            return
        for key in keys:
            self._session.pop(key, None)

    def _drop_tags(self, values) -> None:
        if self._tags is None:
            return
        self._tags = [tag for tag in self._tags if tag not in values]

    # ---------------------------------------------------------------------- #
    # Emitting
    # ---------------------------------------------------------------------- #

    def log(self, level: str, message: str, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        """Emit ``message`` at the named level and return self.

        ``data`` and the current session are passed through the serializer;
        any type annotations it produces travel in the record's ``meta``.

        Raises:
            ValueError: If ``level`` is not a known level name.
        """
        entry = get_level(level)
        self._logger.log(entry.levelno, message, extra=self._extra(entry, data))
        return self

    def _extra(self, entry, data) -> Dict[str, Any]:
        """Build the record attributes carrying level name, data and context."""
        meta = {}
        extra = {"level_name": entry.name, "data": None, "session": None, "tags": None, "meta": None}

        if data is not None:
            serialized = self._serializer.serialize(data)
            extra["data"] = serialized.json
            if serialized.meta:
                meta["data"] = serialized.meta

        if self._session is not None:
            serialized = self._serializer.serialize(self._session)
            extra["session"] = serialized.json
            if serialized.meta:
                meta["session"] = serialized.meta

        if self._tags is not None:
            extra["tags"] = list(self._tags)
        if meta:
            extra["meta"] = meta
        return extra

    def _log_uncaught(self, exc_type, exc, tb) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            entry = get_level("error")
            self._logger.log(
                entry.levelno,
                f"uncaught exception: {exc_type.__name__}: {exc}",
                exc_info=(exc_type, exc, tb),
                extra=self._extra(entry, None),
            )
        previous = self._previous_hook or sys.__excepthook__
        previous(exc_type, exc, tb)

    def info(self, message: str, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        return self.log("info", message, data)

    def warn(self, message: str, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        return self.log("warn", message, data)

    def error(self, message: str, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        return self.log("error", message, data)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        return self.log("success", message, data)

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None) -> "ContextLogger":
        return self.log("debug", message, data)

    def divider(self) -> "ContextLogger":
        """Emit a debug line of 80 dashes."""
        return self.debug(DIVIDER)

    def timer(self, name: str) -> Timer:
        """Start a Timer that logs ``"<name>: *<seconds>s*"`` when finished."""
        return Timer(self, name)

    # ---------------------------------------------------------------------- #
    # Sinks
    # ---------------------------------------------------------------------- #

    def disable_file(self) -> "ContextLogger":
        """Detach the file sink. Affects every logger sharing the same sinks."""
        self._logger.removeHandler(self._file)
        return self

    def enable_file(self) -> "ContextLogger":
        """Re-attach the file sink. Attaching twice has no further effect."""
        self._logger.addHandler(self._file)
        return self

    def close(self) -> None:
        """Flush and close both sinks, and restore any replaced excepthook."""
        if self._previous_hook is not None:
            if sys.excepthook == self._log_uncaught:
                sys.excepthook = self._previous_hook
            self._previous_hook = None
        self._console.close()
        self._file.close()
