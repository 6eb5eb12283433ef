"""
ASCII rendering for generated dungeons.

Tiles are written row by row; consecutive tiles sharing a colour are grouped
into one coloured run, so the output carries one escape sequence per run
rather than per tile.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

import simple_chalk as chalk  # type: ignore[import-untyped]

from dungeon import TileBuffer
from dungeon_types import Colour, Point, Tile

logger = logging.getLogger(__name__)

Colorizer = Callable[[str], str]


def _plain(text: str) -> str:
    return text


COLOUR_STYLES: dict[Colour, Colorizer] = {
    Colour.DEFAULT: _plain,
    Colour.GROUND: chalk.green,
    Colour.WALL: chalk.yellow,
    Colour.DOOR: chalk.yellow,
    Colour.CORRIDOR: chalk.blackBright,  # Dark grey
    Colour.MONSTER: chalk.red,
    Colour.STAIRS: chalk.white,
}


def colour_runs(row: Iterable[Tile]) -> list[tuple[Colour, str]]:
    """Split a row of tiles into (colour, glyphs) runs of equal colour."""
    runs: list[tuple[Colour, str]] = []
    current = Colour.DEFAULT
    glyphs: list[str] = []

    for tile in row:
        if glyphs and tile.colour is not current:
            runs.append((current, "".join(glyphs)))
            glyphs = []
        current = tile.colour
        glyphs.append(tile.glyph)

    if glyphs:
        runs.append((current, "".join(glyphs)))
    return runs


def render(
    buffer: TileBuffer,
    color: bool = True,
    highlight: set[Point] | None = None,
    styles: dict[Colour, Colorizer] | None = None,
) -> str:
    """
    Render a tile buffer to a string.

    Args:
        buffer: The tiles to draw
        color: Emit ANSI colours; False gives the bare glyphs
        highlight: Positions drawn inverted (black on white), e.g. the last change
        styles: Override of the colour -> colorizer mapping

    Returns:
        One line per buffer row, joined with newlines
    """
    if not color:
        return render_plain(buffer)

    palette = COLOUR_STYLES if styles is None else {**COLOUR_STYLES, **styles}
    lines: list[str] = []
    logger.debug(
        "render: %dx%d buffer, %d highlighted",
        buffer.width,
        buffer.height,
        len(highlight) if highlight else 0,
    )

    for y, row in enumerate(buffer.rows()):
        if highlight and any(py == y for _, py in highlight):
            parts = []
            for x, tile in enumerate(row):
                if (x, y) in highlight:
                    parts.append(chalk.bgWhite.black(tile.glyph))
                else:
                    parts.append(palette.get(tile.colour, _plain)(tile.glyph))
            lines.append("".join(parts))
            continue

        lines.append(
            "".join(palette.get(colour, _plain)(glyphs) for colour, glyphs in colour_runs(row))
        )

    return "\n".join(lines)


def render_plain(buffer: TileBuffer) -> str:
    """Render glyphs only, without any escape sequences."""
    return buffer.to_text()


def render_legend(color: bool = True) -> str:
    """One-line key of the glyphs used on the map."""
    entries = [
        ("·", "floor", Colour.GROUND),
        ("╬", "door", Colour.DOOR),
        ("▒", "corridor", Colour.CORRIDOR),
        ("M P Z", "monsters", Colour.MONSTER),
        ("U", "stairs up", Colour.STAIRS),
        ("D", "stairs down", Colour.STAIRS),
    ]
    parts = []
    for glyph, label, colour in entries:
        colorize = COLOUR_STYLES[colour] if color else _plain
        parts.append(f"{colorize(glyph)} {label}")
    return "   ".join(parts)
