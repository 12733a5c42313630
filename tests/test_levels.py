"""test_levels.py - Unit tests for the level table.

Covers:
    - Priority order error < warn < info < success < debug
    - Stdlib level numbers follow the same order
    - SUCCESS is registered with the logging module
    - get_level() raises ValueError for unknown names
    - level_for_levelno() / find_level() lookups
"""

import logging

import pytest

from sessionlog.levels import (
    LEVELS,
    SUCCESS,
    find_level,
    get_level,
    level_for_levelno,
    style,
)


class TestLevelTable:
    def test_levels_are_ordered_by_priority(self):
        """The table lists levels from most to least severe."""
        assert [level.name for level in LEVELS] == ["error", "warn", "info", "success", "debug"]
        assert [level.priority for level in LEVELS] == [0, 1, 2, 3, 4]

    def test_stdlib_levelnos_descend_with_priority(self):
        """Less severe levels map to lower stdlib numbers."""
        levelnos = [level.levelno for level in LEVELS]
        assert levelnos == sorted(levelnos, reverse=True)

    def test_success_level_is_registered(self):
        """SUCCESS sits between DEBUG and INFO and has a stdlib name."""
        assert logging.DEBUG < SUCCESS < logging.INFO
        assert logging.getLevelName(SUCCESS) == "SUCCESS"

    def test_every_level_has_a_color(self):
        """Each level carries an (open, close) ANSI pair."""
        for level in LEVELS:
            opening, closing = level.color
            assert opening.startswith("\033[")
            assert closing.startswith("\033[")


class TestLookups:
    def test_get_level_returns_matching_row(self):
        """get_level() finds a level by name."""
        assert get_level("warn").levelno == logging.WARNING

    def test_get_level_unknown_name_raises_value_error(self):
        """Unknown level names are a programming error."""
        with pytest.raises(ValueError, match="unknown log level 'fatal'"):
            get_level("fatal")

    def test_find_level_unknown_name_returns_none(self):
        """find_level() is the non-raising variant."""
        assert find_level("fatal") is None
        assert find_level("debug").priority == 4

    def test_level_for_levelno_maps_back(self):
        """Stdlib numbers map back to the table rows."""
        assert level_for_levelno(logging.ERROR).name == "error"
        assert level_for_levelno(SUCCESS).name == "success"
        assert level_for_levelno(logging.CRITICAL) is None

    def test_style_wraps_text(self):
        """style() surrounds text with the opening and closing codes."""
        assert style("hi", ("<", ">")) == "<hi>"
