"""Tests for the console maze renderings."""
from __future__ import annotations

import numpy as np

from reindeer_maze.core.generation import Grid
from reindeer_maze.core.rendering import LINE_ART_OFF, LINE_ART_ON, render_line_art, render_plain


def _grid() -> Grid:
    # //1.- Column x=0 is solid wall, the rest of a 3x2 grid is open.
    walls = np.zeros((3, 2), dtype=bool)
    walls[0, :] = True
    return Grid.from_walls(walls)


def test_render_plain_prints_north_row_first() -> None:
    """Plain rendering lists the northern row first and marks the goal."""

    text = render_plain(_grid(), goal=(2, 1))

    assert text.splitlines() == ["██  PP", "██    "]
    assert text.endswith("\n")


def test_render_line_art_wraps_in_dec_graphics() -> None:
    """Line art is wrapped in the DEC graphics shift sequences."""

    text = render_line_art(_grid(), goal=(2, 1), players=[(1, 0)])

    assert text.startswith(LINE_ART_ON)
    assert text.endswith(LINE_ART_OFF)
    rows = text[len(LINE_ART_ON):-len(LINE_ART_OFF)].splitlines()
    # //1.- A wall column along the west edge draws as a vertical run.
    assert rows == ["nu  ``", "nuaa  "]


def test_render_line_art_isolated_wall_keeps_two_column_glyph() -> None:
    """A wall with no wall neighbours still occupies two columns."""

    walls = np.zeros((3, 3), dtype=bool)
    walls[1, 1] = True
    text = render_line_art(Grid.from_walls(walls), goal=(0, 0))
    rows = text[len(LINE_ART_ON):-len(LINE_ART_OFF)].splitlines()

    assert rows[1] == "  ~~  "
    assert rows[2] == "``    "
