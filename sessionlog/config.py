"""config.py - File sink options and their environment overrides.

The console sink has no knobs beyond its stream. The file sink accepts:

    date_pattern  ``strftime`` pattern naming each file (``%Y-%m-%d`` gives
                  ``2024-01-15.log``). A new file starts whenever the
                  rendered pattern changes.
    max_size      Size limit per file: an int in bytes, or a string with a
                  ``k``/``m``/``g`` suffix (``"20m"``). None or 0 disables it.
    max_files     Number of dated log files to keep. None keeps all of them.
    encoding      Text encoding for the log files.

``FileSinkConfig.from_env()`` layers ``SESSIONLOG_*`` variables (e.g.
``SESSIONLOG_MAX_SIZE=5m``) over a base config. The environment is read only
when the caller invokes it; ContextLogger and file_transport use the config
they are given.
"""

import dataclasses
import os
import re
from typing import Mapping, Optional, Union

ENV_PREFIX = "SESSIONLOG_"

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([kmg]?)b?\s*$", re.IGNORECASE)
_UNITS = {"": 1, "k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}


def parse_size(value: Union[int, str, None]) -> int:
    """Convert a size setting to bytes. None means no limit and returns 0.

    Raises:
        ValueError: If ``value`` is negative or not a recognised size string.

    Example:
        >>> parse_size("20m")
        20971520
        >>> parse_size(512)
        512
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"invalid size {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"size must be >= 0, got {value}")
        return value
    match = _SIZE_RE.match(str(value))
    if match is None:
        raise ValueError(f"invalid size {value!r}, expected e.g. 1024, '500k' or '20m'")
    number, unit = match.groups()
    return int(number) * _UNITS[unit.lower()]


@dataclasses.dataclass(frozen=True)
class FileSinkConfig:
    """Options for the daily rotating file sink.

    Raises:
        ValueError: On construction, if ``max_size`` cannot be parsed, if
            ``max_files`` is below 1, or if ``date_pattern`` is empty.
    """

    date_pattern: str = "%Y-%m-%d"
    max_size: Union[int, str, None] = "20m"
    max_files: Optional[int] = None
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if not self.date_pattern:
            raise ValueError("date_pattern must not be empty")
        parse_size(self.max_size)
        if self.max_files is not None and self.max_files < 1:
            raise ValueError(f"max_files must be >= 1, got {self.max_files}")

    @property
    def max_bytes(self) -> int:
        return parse_size(self.max_size)

    def replace(self, **overrides) -> "FileSinkConfig":
        """Return a copy with ``overrides`` applied. Unknown keys raise TypeError."""
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional["FileSinkConfig"] = None,
    ) -> "FileSinkConfig":
        """Build a config from ``SESSIONLOG_*`` variables layered over ``base``.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            base: Config supplying values for unset variables. Defaults to
                ``FileSinkConfig()``.
        """
        env = os.environ if environ is None else environ
        config = base or cls()
        overrides = {}

        pattern = env.get(ENV_PREFIX + "DATE_PATTERN")
        if pattern:
            overrides["date_pattern"] = pattern

        size = env.get(ENV_PREFIX + "MAX_SIZE")
        if size:
            overrides["max_size"] = size

        files = env.get(ENV_PREFIX + "MAX_FILES")
        if files:
            try:
                overrides["max_files"] = int(files)
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}MAX_FILES must be an integer, got {files!r}"
                ) from None

        encoding = env.get(ENV_PREFIX + "ENCODING")
        if encoding:
            overrides["encoding"] = encoding

        return config.replace(**overrides)
