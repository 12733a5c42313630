"""levels.py - The fixed severity table shared by every sessionlog sink.

Five levels exist, ordered from most to least severe::

    error (0) < warn (1) < info (2) < success (3) < debug (4)

Each level is bound to a standard library ``logging`` level number so that
records travel through ordinary ``logging.Logger`` / ``logging.Handler``
objects, and to an ANSI color used only by the console formatter.

``success`` has no stdlib counterpart. It is registered as ``SUCCESS`` (15),
between DEBUG and INFO, so the numeric ordering of stdlib levels matches the
priority order above.
"""

import logging
from typing import Dict, Optional, Tuple

SUCCESS = 15
logging.addLevelName(SUCCESS, "SUCCESS")

# ANSI escape sequences. Each style pairs an opening code with the code that
# closes only that attribute, so styles can nest inside a level color.
RESET = "\033[0m"
BOLD = ("\033[1m", "\033[22m")
ITALIC = ("\033[3m", "\033[23m")
RED = ("\033[31m", "\033[39m")
YELLOW = ("\033[33m", "\033[39m")
CYAN = ("\033[36m", "\033[39m")
GREEN = ("\033[32m", "\033[39m")
GRAY = ("\033[90m", "\033[39m")


class Level:
    """One row of the level table.

    Attributes:
        name (str): Public level name, e.g. ``"warn"``.
        priority (int): 0 for the most severe level, 4 for the least.
        levelno (int): The stdlib ``logging`` level number used for dispatch.
        color (tuple): ``(open, close)`` ANSI pair applied to console messages.
    """

    __slots__ = ("name", "priority", "levelno", "color")

    def __init__(self, name: str, priority: int, levelno: int, color: Tuple[str, str]) -> None:
        self.name = name
        self.priority = priority
        self.levelno = levelno
        self.color = color

    def __repr__(self) -> str:  # pragma: no cover
        return f"Level({self.name!r}, priority={self.priority})"


LEVELS: Tuple[Level, ...] = (
    Level("error", 0, logging.ERROR, RED),
    Level("warn", 1, logging.WARNING, YELLOW),
    Level("info", 2, logging.INFO, CYAN),
    Level("success", 3, SUCCESS, GREEN),
    Level("debug", 4, logging.DEBUG, GRAY),
)

_BY_NAME: Dict[str, Level] = {level.name: level for level in LEVELS}
_BY_LEVELNO: Dict[int, Level] = {level.levelno: level for level in LEVELS}


def get_level(name: str) -> Level:
    """Return the Level registered under ``name``.

    Raises:
        ValueError: If ``name`` is not one of the five known levels.
    """
    try:
        return _BY_NAME[name]
    except KeyError:
        raise ValueError(
            f"unknown log level {name!r}, expected one of {', '.join(_BY_NAME)}"
        ) from None


def find_level(name: str) -> Optional[Level]:
    """Return the Level registered under ``name``, or None."""
    return _BY_NAME.get(name)


def level_for_levelno(levelno: int) -> Optional[Level]:
    """Map a stdlib level number back to a Level, or None if it has no row."""
    return _BY_LEVELNO.get(levelno)


def style(text: str, pair: Tuple[str, str]) -> str:
    """Wrap ``text`` in an ANSI ``(open, close)`` pair."""
    return f"{pair[0]}{text}{pair[1]}"
