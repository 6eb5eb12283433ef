"""
Rogue-style dungeon generation.

A dungeon is a fixed grid of cells, one room per cell. A generation run is a
strictly ordered sequence of phases, each mutating the shared room grid and
tile buffer before the next one starts:

    init rooms -> connect neighbours -> connect leftovers -> lay out rooms
    -> dig corridors -> place monsters -> place stairs

Up to three rooms are "gone": they get no floor or walls and only serve as
corridor waypoints. The connection graph is not guaranteed to be connected;
some rooms can end up unreachable from the entry room.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterator

from dungeon_rng import DungeonRandom
from dungeon_types import (
    CORRIDOR_TILE,
    DOOR_TILE,
    EMPTY_TILE,
    GROUND_TILE,
    STAIRS_DOWN_TILE,
    STAIRS_UP_TILE,
    Direction,
    Monster,
    MonsterKind,
    PathMove,
    Point,
    Room,
    Tile,
    TileKind,
    monster_tile,
    wall_tile,
)

logger = logging.getLogger(__name__)

MIN_ROOM_WIDTH = 5
MIN_ROOM_HEIGHT = 2
MAX_GONE_ROOMS = 3
ROOM_GAP = 3
EDGE_MARGIN = 2
DEFAULT_MONSTER_CHANCE = 20

# Order the direction list starts from on every run; it is reshuffled in place.
DIRECTION_ORDER = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)

StepHook = Callable[[], object]


def _no_step() -> None:
    pass


class ConfigurationError(ValueError):
    """Raised when dungeon parameters cannot fit every room inside the dungeon."""


# =============================================================================
# Configuration
# =============================================================================


def _first_overflowing_cell(cell: int, min_size: int, max_size: int, count: int, total: int) -> int | None:
    """
    Walk one axis of the cell grid with every room at its largest possible extent.

    Each room starts at its cell origin (but at least EDGE_MARGIN), pushed
    ROOM_GAP past the previous room's far edge. The layout can shrink a room
    down to min_size with no offset, but never moves its start.

    Args:
        cell: Cell size along the axis
        min_size: Smallest room size along the axis
        max_size: Exclusive upper bound of the room size draw
        count: Number of cells along the axis
        total: Dungeon size along the axis

    Returns:
        Index of the first cell whose room may not fit even at min_size, or
        None if every cell always fits
    """
    sizes = range(min_size, max_size) if max_size > min_size else [min_size]
    reach = max(round(max(cell - size - 1, 0) * 0.5) + size for size in sizes)

    previous_end: int | None = None
    for i in range(count):
        start = max(cell * i, EDGE_MARGIN)
        if previous_end is not None:
            start = max(start, previous_end + ROOM_GAP)
        if start + min_size >= total - 1:
            return i
        previous_end = start + reach
    return None


@dataclass(frozen=True)
class DungeonConfig:
    """Construction parameters of a dungeon generator."""

    width: int = 80
    height: int = 25
    horizontal_rooms: int = 3
    vertical_rooms: int = 3
    seed: int | None = None
    monster_chance: int = DEFAULT_MONSTER_CHANCE  # Percent per non-gone room

    @property
    def cell_width(self) -> int:
        return self.width // self.horizontal_rooms

    @property
    def cell_height(self) -> int:
        return self.height // self.vertical_rooms

    @property
    def max_room_width(self) -> int:
        return self.cell_width - 4

    @property
    def max_room_height(self) -> int:
        return self.cell_height - 2

    def validate(self) -> None:
        """
        Reject parameters that would make the layout degenerate.

        Raises:
            ConfigurationError: if the grid is empty, a cell is too small to
                hold a minimum-size room, or rooms pushed apart by the gap
                can run past the dungeon edge.
        """
        if self.horizontal_rooms < 1 or self.vertical_rooms < 1:
            raise ConfigurationError(
                f"Cell grid must have at least one cell in each direction\n"
                f"  horizontal_rooms: {self.horizontal_rooms}\n"
                f"  vertical_rooms: {self.vertical_rooms}"
            )
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Dungeon dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.max_room_width < MIN_ROOM_WIDTH or self.max_room_height < MIN_ROOM_HEIGHT:
            raise ConfigurationError(
                f"Cells are too small for the minimum room size\n"
                f"  Dungeon: {self.width}x{self.height}, "
                f"grid: {self.horizontal_rooms}x{self.vertical_rooms}\n"
                f"  Cell size: {self.cell_width}x{self.cell_height}\n"
                f"  Max room size: {self.max_room_width}x{self.max_room_height} "
                f"(minimum is {MIN_ROOM_WIDTH}x{MIN_ROOM_HEIGHT})\n"
                f"  Need width >= horizontal_rooms * {MIN_ROOM_WIDTH + 4} "
                f"and height >= vertical_rooms * {MIN_ROOM_HEIGHT + 2}"
            )
        column = _first_overflowing_cell(
            self.cell_width, MIN_ROOM_WIDTH, self.max_room_width, self.horizontal_rooms, self.width
        )
        row = _first_overflowing_cell(
            self.cell_height, MIN_ROOM_HEIGHT, self.max_room_height, self.vertical_rooms, self.height
        )
        if column is not None or row is not None:
            raise ConfigurationError(
                f"Rooms pushed apart by the {ROOM_GAP}-tile gap do not fit in the dungeon\n"
                f"  Dungeon: {self.width}x{self.height}, "
                f"grid: {self.horizontal_rooms}x{self.vertical_rooms}\n"
                f"  First column that can overflow: {column}\n"
                f"  First row that can overflow: {row}"
            )
        if not 0 <= self.monster_chance <= 100:
            raise ConfigurationError(
                f"monster_chance is a percentage, got {self.monster_chance}"
            )


# =============================================================================
# Tile Buffer
# =============================================================================


class TileBuffer:
    """
    The width x height output grid of tiles, indexed (x, y) from the top-left.

    Writes overwrite whatever was there. Writes outside the buffer are dropped.
    """

    def __init__(self, width: int, height: int, fill: Tile = EMPTY_TILE) -> None:
        self.width = width
        self.height = height
        self._rows: list[list[Tile]] = [[fill] * width for _ in range(height)]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Tile:
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) is outside the {self.width}x{self.height} buffer")
        return self._rows[y][x]

    def set(self, x: int, y: int, tile: Tile) -> None:
        if self.in_bounds(x, y):
            self._rows[y][x] = tile

    def kind_at(self, x: int, y: int) -> TileKind:
        return self.get(x, y).kind

    def glyph_at(self, x: int, y: int) -> str:
        return self.get(x, y).glyph

    def fill(self, tile: Tile) -> None:
        for row in self._rows:
            row[:] = [tile] * self.width

    def rows(self) -> Iterator[tuple[Tile, ...]]:
        for row in self._rows:
            yield tuple(row)

    def positions_of(self, kind: TileKind) -> list[Point]:
        return [
            (x, y)
            for y, row in enumerate(self._rows)
            for x, tile in enumerate(row)
            if tile.kind is kind
        ]

    def to_text(self) -> str:
        """Glyphs only, one line per row."""
        return "\n".join("".join(tile.glyph for tile in row) for row in self._rows)

    def copy(self) -> TileBuffer:
        clone = TileBuffer(self.width, self.height)
        clone._rows = [row[:] for row in self._rows]
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileBuffer):
            return NotImplemented
        return (self.width, self.height, self._rows) == (other.width, other.height, other._rows)


# =============================================================================
# Corridor Planning
# =============================================================================


def plan_path(start: Point, end: Point, split: float) -> list[PathMove]:
    """
    Plan a three-leg orthogonal corridor from start to end.

    The dominant axis is walked in two parts around a single cross-axis leg:
    ceil(dist * split) before it and floor(dist * (1 - split)) after it.

    Args:
        start: Corridor start tile
        end: Corridor end tile
        split: Fraction in [0, 1) deciding where the bend falls

    Returns:
        The three legs, in walking order (some may have distance 0)
    """
    x_offset = end[0] - start[0]
    y_offset = end[1] - start[1]
    x_abs = abs(x_offset)
    y_abs = abs(y_offset)

    x_dir = Direction.LEFT if x_offset < 0 else Direction.RIGHT
    y_dir = Direction.DOWN if y_offset > 0 else Direction.UP

    if x_abs < y_abs:
        return [
            PathMove(y_dir, math.ceil(y_abs * split)),
            PathMove(x_dir, x_abs),
            PathMove(y_dir, math.floor(y_abs * (1 - split))),
        ]
    return [
        PathMove(x_dir, math.ceil(x_abs * split)),
        PathMove(y_dir, y_abs),
        PathMove(x_dir, math.floor(x_abs * (1 - split))),
    ]


# =============================================================================
# Generator
# =============================================================================


class DungeonGenerator:
    """
    Generates Rogue-style dungeons into a TileBuffer.

    Usage:
        generator = DungeonGenerator(80, 25, 3, 3, seed=42)
        tiles = generator.generate()
        print(tiles.to_text())

    The random stream continues across generate() calls, so repeated calls give
    different dungeons; reseed() restarts it.
    """

    def __init__(
        self,
        width: int,
        height: int,
        horizontal_rooms: int,
        vertical_rooms: int,
        seed: int | None = None,
        monster_chance: int = DEFAULT_MONSTER_CHANCE,
        step_hook: StepHook | None = None,
    ) -> None:
        self.config = DungeonConfig(width, height, horizontal_rooms, vertical_rooms, seed, monster_chance)
        self.config.validate()

        self.step_hook: StepHook = step_hook or _no_step
        self._rng = DungeonRandom(seed)
        self._step_by_step = False
        self._active_hook: StepHook = _no_step
        self._directions: list[Direction] = list(DIRECTION_ORDER)

        self.rooms: list[Room] = []
        self.tiles = TileBuffer(width, height)
        self.monsters: list[Monster] = []
        self.doors: list[Point] = []
        self.corridors: list[list[Point]] = []
        self.up_stairs: Point | None = None
        self.down_stairs: Point | None = None
        self._entry_index = 0
        self._exit_index = 0

    @classmethod
    def from_config(cls, config: DungeonConfig, step_hook: StepHook | None = None) -> DungeonGenerator:
        return cls(
            config.width,
            config.height,
            config.horizontal_rooms,
            config.vertical_rooms,
            seed=config.seed,
            monster_chance=config.monster_chance,
            step_hook=step_hook,
        )

    # -------------------------------------------------------------------------
    # Derived dimensions
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def horizontal_rooms(self) -> int:
        return self.config.horizontal_rooms

    @property
    def vertical_rooms(self) -> int:
        return self.config.vertical_rooms

    @property
    def cell_width(self) -> int:
        return self.config.cell_width

    @property
    def cell_height(self) -> int:
        return self.config.cell_height

    @property
    def max_room_width(self) -> int:
        return self.config.max_room_width

    @property
    def max_room_height(self) -> int:
        return self.config.max_room_height

    @property
    def seed(self) -> int | None:
        return self._rng.seed

    def reseed(self, seed: int | None) -> None:
        """Restart the random stream; the next generate() is reproducible from seed."""
        self._rng = DungeonRandom(seed)

    # -------------------------------------------------------------------------
    # Grid access
    # -------------------------------------------------------------------------

    def cell_index(self, ix: int, iy: int) -> int:
        # Column-major, so the flat room list is already in grid order
        return ix * self.vertical_rooms + iy

    def room_at(self, ix: int, iy: int) -> Room:
        return self.rooms[self.cell_index(ix, iy)]

    def neighbour(self, room: Room, direction: Direction) -> Room | None:
        """The room next to room in the cell grid, or None past the grid edge."""
        nx = room.ix + direction.dx
        ny = room.iy + direction.dy
        if nx < 0 or nx >= self.horizontal_rooms or ny < 0 or ny >= self.vertical_rooms:
            return None
        return self.room_at(nx, ny)

    def edges(self) -> Iterator[tuple[Room, Room, Direction]]:
        """Every connection as (source, target, direction), in room-then-edge order."""
        for room in self.rooms:
            for target, direction in zip(room.connections, room.connection_directions):
                yield room, self.rooms[target], direction

    @property
    def entry_room(self) -> Room:
        return self.rooms[self._entry_index]

    @property
    def exit_room(self) -> Room:
        return self.rooms[self._exit_index]

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def generate(self, step_by_step: bool = False, step_hook: StepHook | None = None) -> TileBuffer:
        """
        Run the full pipeline once, replacing any previous dungeon.

        Args:
            step_by_step: Invoke the step hook after every visible change
            step_hook: Hook for this run; defaults to self.step_hook

        Returns:
            The finished tile buffer (also available as self.tiles)
        """
        self._step_by_step = step_by_step
        self._active_hook = step_hook or self.step_hook
        self._directions = list(DIRECTION_ORDER)

        self.init_rooms()
        self.connect_neighbouring_rooms()
        self.connect_unconnected_rooms()
        self.create_rooms()
        self.create_corridors()
        self.place_monsters()
        self.place_stairs()

        logger.info(
            "Generated %dx%d dungeon (seed=%s): %d gone rooms, %d connections, %d monsters",
            self.width,
            self.height,
            self.seed,
            sum(1 for room in self.rooms if room.is_gone),
            len(self.corridors),
            len(self.monsters),
        )
        return self.tiles

    def _step(self) -> None:
        if self._step_by_step:
            self._active_hook()

    # -------------------------------------------------------------------------
    # Phase 1: Cell grid
    # -------------------------------------------------------------------------

    def init_rooms(self) -> None:
        """Create the empty room grid and tile buffer, then mark up to three rooms gone."""
        self.rooms = [
            Room(ix, iy, self.cell_index(ix, iy))
            for ix in range(self.horizontal_rooms)
            for iy in range(self.vertical_rooms)
        ]
        self.tiles = TileBuffer(self.width, self.height)
        self.monsters = []
        self.doors = []
        self.corridors = []
        self.up_stairs = None
        self.down_stairs = None
        self._entry_index = 0
        self._exit_index = 0

        # Capped so grids with fewer cells than the draw still terminate
        gone_count = min(self._rng.below(MAX_GONE_ROOMS + 1), len(self.rooms))
        for _ in range(gone_count):
            while True:
                room = self.room_at(
                    self._rng.below(self.horizontal_rooms),
                    self._rng.below(self.vertical_rooms),
                )
                if not room.is_gone:
                    break
            room.is_gone = True

        logger.debug(
            "init_rooms: %d cells of %dx%d, gone=%s",
            len(self.rooms),
            self.cell_width,
            self.cell_height,
            [(room.ix, room.iy) for room in self.rooms if room.is_gone],
        )

    # -------------------------------------------------------------------------
    # Phase 2: Connectivity
    # -------------------------------------------------------------------------

    def connect_neighbouring_rooms(self) -> None:
        """
        Give each room, in shuffled order, an edge to its first still-isolated neighbour.

        The first and last non-gone rooms of the shuffled order become the
        entry and exit rooms.
        """
        order = list(self.rooms)
        self._rng.shuffle(order)

        present = [room for room in order if not room.is_gone]
        self._entry_index = present[0].index if present else self.cell_index(0, 0)
        self._exit_index = present[-1].index if present else self.cell_index(0, 0)

        for room in order:
            self._rng.shuffle(self._directions)
            for direction in self._directions:
                neighbour = self.neighbour(room, direction)
                if neighbour is None or neighbour.connections:
                    continue
                if room.is_connected_to(neighbour.index):
                    break
                room.add_connection(neighbour.index, direction)
                break

        logger.debug(
            "connect_neighbouring_rooms: entry=%s exit=%s edges=%d",
            (self.entry_room.ix, self.entry_room.iy),
            (self.exit_room.ix, self.exit_room.iy),
            sum(len(room.connections) for room in self.rooms),
        )

    def connect_unconnected_rooms(self) -> None:
        """
        Give leftover rooms one more edge, in grid order.

        Non-gone rooms with an edge are done. Gone rooms are junctions and are
        only done once they have two edges.
        """
        for room in self.rooms:
            if not room.is_gone and room.connections:
                continue
            if room.is_gone and len(room.connections) > 1:
                continue

            self._rng.shuffle(self._directions)
            for direction in self._directions:
                neighbour = self.neighbour(room, direction)
                if neighbour is None or neighbour.is_connected_to(room.index):
                    continue
                if room.is_gone and room.is_connected_to(neighbour.index):
                    continue
                room.add_connection(neighbour.index, direction)
                break

        logger.debug(
            "connect_unconnected_rooms: edges=%d",
            sum(len(room.connections) for room in self.rooms),
        )

    # -------------------------------------------------------------------------
    # Phase 3: Room layout
    # -------------------------------------------------------------------------

    def create_rooms(self) -> None:
        """
        Size and place every room inside its cell, then draw floors and walls.

        Cells are visited column by column; each room is pushed right of its
        left neighbour and below its upper neighbour by at least ROOM_GAP.
        """
        for ix in range(self.horizontal_rooms):
            for iy in range(self.vertical_rooms):
                room = self.room_at(ix, iy)
                self._place_room(room)

                if not room.is_gone:
                    for x, y in room.interior():
                        self.tiles.set(x, y, GROUND_TILE)

                self._step()

        self.create_room_walls()

    def _place_room(self, room: Room) -> None:
        start_x = max(self.cell_width * room.ix, EDGE_MARGIN)
        start_y = max(self.cell_height * room.iy, EDGE_MARGIN)

        room_width = self._rng.between(MIN_ROOM_WIDTH, self.max_room_width)
        room_height = self._rng.between(MIN_ROOM_HEIGHT, self.max_room_height)

        if room.iy > 0:
            above = self.room_at(room.ix, room.iy - 1)
            start_y = max(start_y, above.bottom + ROOM_GAP)
        if room.ix > 0:
            left = self.room_at(room.ix - 1, room.iy)
            start_x = max(start_x, left.right + ROOM_GAP)

        offset_x = round(self._rng.below(self.cell_width - room_width) * 0.5)
        offset_y = round(self._rng.below(self.cell_height - room_height) * 0.5)

        while start_x + offset_x + room_width >= self.width - 1:
            if offset_x > 0:
                offset_x -= 1
            elif room_width > MIN_ROOM_WIDTH:
                room_width -= 1
            else:
                logger.warning("Room %s does not fit horizontally", (room.ix, room.iy))
                break

        while start_y + offset_y + room_height >= self.height - 1:
            if offset_y > 0:
                offset_y -= 1
            elif room_height > MIN_ROOM_HEIGHT:
                room_height -= 1
            else:
                logger.warning("Room %s does not fit vertically", (room.ix, room.iy))
                break

        room.x = start_x + offset_x
        room.y = start_y + offset_y
        room.width = room_width
        room.height = room_height

    def create_room_walls(self) -> None:
        """Draw the wall ring around every non-gone room."""
        for room in self.rooms:
            if room.is_gone:
                continue

            for x in range(room.x - 1, room.right + 1):
                self.tiles.set(x, room.y - 1, wall_tile(TileKind.WALL_HORIZONTAL))
                self.tiles.set(x, room.bottom, wall_tile(TileKind.WALL_HORIZONTAL))

            for y in range(room.y, room.bottom):
                self.tiles.set(room.x - 1, y, wall_tile(TileKind.WALL_VERTICAL))
                self.tiles.set(room.right, y, wall_tile(TileKind.WALL_VERTICAL))

            self.tiles.set(room.x - 1, room.y - 1, wall_tile(TileKind.WALL_TOP_LEFT))
            self.tiles.set(room.x - 1, room.bottom, wall_tile(TileKind.WALL_BOTTOM_LEFT))
            self.tiles.set(room.right, room.y - 1, wall_tile(TileKind.WALL_TOP_RIGHT))
            self.tiles.set(room.right, room.bottom, wall_tile(TileKind.WALL_BOTTOM_RIGHT))

            self._step()

    # -------------------------------------------------------------------------
    # Phase 4: Corridors
    # -------------------------------------------------------------------------

    def create_corridors(self) -> None:
        """Realise every connection as doors plus one dug corridor."""
        for room, target, direction in self.edges():
            start = room.center if room.is_gone else self.create_door_in_wall(room, direction)
            end = target.center if target.is_gone else self.create_door_in_wall(target, direction.opposite())

            self.corridors.append(self.dig_path(start, end))
            self._step()

        logger.debug("create_corridors: %d corridors, %d doors", len(self.corridors), len(self.doors))

    def create_door_in_wall(self, room: Room, direction: Direction) -> Point:
        """
        Carve a door into the wall of room facing direction.

        The door is never placed on a corner; the first floor row/column is
        skipped as well.

        Returns:
            The tile just outside the door, where the corridor starts
        """
        match direction:
            case Direction.LEFT:
                y = self._rng.between(room.y + 1, room.bottom)
                x = room.x - 1
            case Direction.RIGHT:
                y = self._rng.between(room.y + 1, room.bottom)
                x = room.right
            case Direction.DOWN:
                x = self._rng.between(room.x + 1, room.right)
                y = room.bottom
            case Direction.UP:
                x = self._rng.between(room.x + 1, room.right)
                y = room.y - 1
            case _:
                raise ValueError(f"Unknown direction: {direction}")

        self.tiles.set(x, y, DOOR_TILE)
        self.doors.append((x, y))
        self._step()
        return (x + direction.dx, y + direction.dy)

    def dig_path(self, start: Point, end: Point) -> list[Point]:
        """
        Dig a bent corridor from start to end, overwriting whatever is there.

        Returns:
            The dug tiles in walking order, start first
        """
        moves = plan_path(start, end, self._rng.fraction())

        x, y = start
        self.tiles.set(x, y, CORRIDOR_TILE)
        dug = [(x, y)]

        for move in moves:
            for _ in range(move.distance):
                x += move.direction.dx
                y += move.direction.dy
                self.tiles.set(x, y, CORRIDOR_TILE)
                dug.append((x, y))

        return dug

    # -------------------------------------------------------------------------
    # Phase 5: Population
    # -------------------------------------------------------------------------

    def place_monsters(self) -> None:
        """Give each non-gone room a monster_chance percent chance of one monster."""
        kinds = list(MonsterKind)
        for room in self.rooms:
            if room.is_gone:
                continue
            if self._rng.below(100) >= self.config.monster_chance:
                continue

            x = self._rng.between(room.x, room.right)
            y = self._rng.between(room.y, room.bottom)
            monster = Monster(self._rng.choice(kinds), x, y)

            self.monsters.append(monster)
            self.tiles.set(*monster.position, monster_tile(monster.kind))
            self._step()

    def place_stairs(self) -> None:
        """Put the up staircase in the entry room and the down staircase in the exit room."""
        entry = self.entry_room
        exit_room = self.exit_room

        up_x = self._rng.between(entry.x, entry.right)
        up_y = self._rng.between(entry.y, entry.bottom)
        down_x = self._rng.between(exit_room.x, exit_room.right)
        down_y = self._rng.between(exit_room.y, exit_room.bottom)

        self.up_stairs = (up_x, up_y)
        self.down_stairs = (down_x, down_y)
        self.tiles.set(up_x, up_y, STAIRS_UP_TILE)
        self.tiles.set(down_x, down_y, STAIRS_DOWN_TILE)
