"""
Shared type definitions for the Rogue dungeon generator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

Point = tuple[int, int]


class Direction(Enum):
    """Cardinal direction on the map and in the cell grid."""

    UP = "U"  # Decreasing y
    DOWN = "D"  # Increasing y
    LEFT = "L"  # Decreasing x
    RIGHT = "R"  # Increasing x

    @property
    def delta(self) -> Point:
        return _DELTAS[self]

    @property
    def dx(self) -> int:
        return _DELTAS[self][0]

    @property
    def dy(self) -> int:
        return _DELTAS[self][1]

    def opposite(self) -> Direction:
        return _OPPOSITES[self]


_DELTAS: dict[Direction, Point] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


# =============================================================================
# Tiles
# =============================================================================


class Colour(Enum):
    """Display attribute of a tile. Purely cosmetic."""

    DEFAULT = "default"
    GROUND = "ground"
    WALL = "wall"
    DOOR = "door"
    CORRIDOR = "corridor"
    MONSTER = "monster"
    STAIRS = "stairs"


class TileKind(Enum):
    """What occupies a map position. The value is the glyph drawn for it."""

    EMPTY = " "
    GROUND = "·"
    WALL_HORIZONTAL = "═"
    WALL_VERTICAL = "║"
    WALL_TOP_LEFT = "╔"
    WALL_TOP_RIGHT = "╗"
    WALL_BOTTOM_LEFT = "╚"
    WALL_BOTTOM_RIGHT = "╝"
    DOOR = "╬"
    CORRIDOR = "▒"
    MONSTER_MEDUSA = "M"
    MONSTER_PHANTOM = "P"
    MONSTER_ZOMBIE = "Z"
    STAIRS_UP = "U"
    STAIRS_DOWN = "D"

    @property
    def glyph(self) -> str:
        return self.value

    @property
    def is_wall(self) -> bool:
        return self in WALL_KINDS

    @property
    def is_monster(self) -> bool:
        return self in MONSTER_KINDS


WALL_KINDS = frozenset(
    {
        TileKind.WALL_HORIZONTAL,
        TileKind.WALL_VERTICAL,
        TileKind.WALL_TOP_LEFT,
        TileKind.WALL_TOP_RIGHT,
        TileKind.WALL_BOTTOM_LEFT,
        TileKind.WALL_BOTTOM_RIGHT,
    }
)

MONSTER_KINDS = frozenset(
    {TileKind.MONSTER_MEDUSA, TileKind.MONSTER_PHANTOM, TileKind.MONSTER_ZOMBIE}
)


@dataclass(frozen=True)
class Tile:
    """A single buffer cell: a tile kind plus its display colour."""

    kind: TileKind
    colour: Colour = Colour.DEFAULT

    @property
    def glyph(self) -> str:
        return self.kind.glyph


EMPTY_TILE = Tile(TileKind.EMPTY)
GROUND_TILE = Tile(TileKind.GROUND, Colour.GROUND)
DOOR_TILE = Tile(TileKind.DOOR, Colour.DOOR)
CORRIDOR_TILE = Tile(TileKind.CORRIDOR, Colour.CORRIDOR)
STAIRS_UP_TILE = Tile(TileKind.STAIRS_UP, Colour.STAIRS)
STAIRS_DOWN_TILE = Tile(TileKind.STAIRS_DOWN, Colour.STAIRS)


def wall_tile(kind: TileKind) -> Tile:
    """Tile for one of the six wall segment kinds."""
    if kind not in WALL_KINDS:
        raise ValueError(f"Not a wall segment: {kind}")
    return Tile(kind, Colour.WALL)


# =============================================================================
# Monsters
# =============================================================================


class MonsterKind(Enum):
    """The closed set of monsters the population pass can place."""

    MEDUSA = "medusa"
    PHANTOM = "phantom"
    ZOMBIE = "zombie"


_MONSTER_TILE_KINDS: dict[MonsterKind, TileKind] = {
    MonsterKind.MEDUSA: TileKind.MONSTER_MEDUSA,
    MonsterKind.PHANTOM: TileKind.MONSTER_PHANTOM,
    MonsterKind.ZOMBIE: TileKind.MONSTER_ZOMBIE,
}


def monster_tile(kind: MonsterKind) -> Tile:
    """Map a monster variant to the tile that marks it on the map."""
    return Tile(_MONSTER_TILE_KINDS[kind], Colour.MONSTER)


@dataclass(frozen=True)
class Monster:
    """A placed monster marker."""

    kind: MonsterKind
    x: int
    y: int

    @property
    def position(self) -> Point:
        return (self.x, self.y)


# =============================================================================
# Rooms and Paths
# =============================================================================


@dataclass(frozen=True)
class PathMove:
    """One straight corridor leg: a direction and a step count."""

    direction: Direction
    distance: int

    def __post_init__(self) -> None:
        if self.distance < 0:
            raise ValueError(f"PathMove distance must be non-negative, got {self.distance}")


@dataclass
class Room:
    """
    The room living in one cell of the cell grid.

    The rectangle is only meaningful once the layout phase has run. A gone room
    keeps a rectangle too, but only its centre is used, as a corridor waypoint.
    Connections hold flat cell indices of the target rooms; the parallel
    connection_directions list holds the direction of each edge.
    """

    ix: int
    iy: int
    index: int
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    is_gone: bool = False
    connections: list[int] = field(default_factory=list)
    connection_directions: list[Direction] = field(default_factory=list)

    def add_connection(self, target: int, direction: Direction) -> None:
        self.connections.append(target)
        self.connection_directions.append(direction)

    def is_connected_to(self, target: int) -> bool:
        return target in self.connections

    @property
    def center(self) -> Point:
        # round() is half-to-even, matching the rounding the algorithm was tuned with
        return (self.x + round(self.width / 2), self.y + round(self.height / 2))

    @property
    def right(self) -> int:
        """First column past the floor (the right wall column)."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """First row past the floor (the bottom wall row)."""
        return self.y + self.height

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom

    def interior(self) -> Iterator[Point]:
        for x in range(self.x, self.right):
            for y in range(self.y, self.bottom):
                yield (x, y)
