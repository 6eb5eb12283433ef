"""
Print one or more generated dungeons to the terminal.

Usage:
    python demo.py [--seed N] [--width W] [--height H] [--hrooms N] [--vrooms N]
                   [--count N] [--plain] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import random
import sys

from ascii_render import render, render_legend
from dungeon import ConfigurationError, DungeonConfig, DungeonGenerator

logger = logging.getLogger(__name__)


def describe(generator: DungeonGenerator) -> str:
    """Short text summary of the rooms and connections of the last dungeon."""
    lines = []
    for room in generator.rooms:
        kind = "gone" if room.is_gone else f"{room.width}x{room.height} at ({room.x}, {room.y})"
        links = ", ".join(
            f"{direction.name.lower()}->{generator.rooms[target].ix},{generator.rooms[target].iy}"
            for target, direction in zip(room.connections, room.connection_directions)
        )
        markers = []
        if room.index == generator.entry_room.index:
            markers.append("entry")
        if room.index == generator.exit_room.index:
            markers.append("exit")
        suffix = f" [{', '.join(markers)}]" if markers else ""
        lines.append(f"  room {room.ix},{room.iy}: {kind}; links: {links or '-'}{suffix}")

    lines.append(
        f"  {len(generator.corridors)} corridors, {len(generator.doors)} doors, "
        f"{len(generator.monsters)} monsters"
    )
    return "\n".join(lines)


def dungeon_seeds(seed: int | None, count: int) -> list[int]:
    """
    Seeds for count dungeons: seed, seed + 1, ... or fresh random seeds.

    Each one regenerates its dungeon alone via --seed.
    """
    if seed is None:
        source = random.Random()
        return [source.randrange(2**31) for _ in range(count)]
    return [seed + n for n in range(count)]


def build_parser() -> argparse.ArgumentParser:
    defaults = DungeonConfig()
    parser = argparse.ArgumentParser(description="Generate Rogue-style dungeons")
    parser.add_argument("--seed", type=int, default=None, help="Seed of the first dungeon; later ones use seed + 1, seed + 2, ...")
    parser.add_argument("--width", type=int, default=defaults.width, help="Dungeon width in tiles")
    parser.add_argument("--height", type=int, default=defaults.height, help="Dungeon height in tiles")
    parser.add_argument("--hrooms", type=int, default=defaults.horizontal_rooms, help="Rooms per row")
    parser.add_argument("--vrooms", type=int, default=defaults.vertical_rooms, help="Rooms per column")
    parser.add_argument("--count", type=int, default=1, help="Number of dungeons to print")
    parser.add_argument("--plain", action="store_true", help="Disable ANSI colours")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    config = DungeonConfig(
        width=args.width,
        height=args.height,
        horizontal_rooms=args.hrooms,
        vertical_rooms=args.vrooms,
        seed=args.seed,
    )
    try:
        generator = DungeonGenerator.from_config(config)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 2

    color = not args.plain
    for n, seed in enumerate(dungeon_seeds(args.seed, args.count)):
        # Reseed per dungeon so every printed label reproduces its dungeon
        generator.reseed(seed)
        generator.generate()
        print(f"=== Dungeon {n + 1} (seed {seed}) ===")
        print(render(generator.tiles, color=color))
        print()
        print(describe(generator))
        print()

    print(render_legend(color=color))
    return 0


if __name__ == "__main__":
    sys.exit(main())
