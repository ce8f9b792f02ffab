"""Command line: generate a dungeon and print it as text."""

from __future__ import annotations

import argparse
import random
import sys
from typing import Optional, Sequence

from cryptcrawl.dungeon import DungeonGenerator, render_map


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cryptcrawl", description="Generate a dungeon map.")
    parser.add_argument("--width", type=int, default=100, help="map width in cells")
    parser.add_argument("--height", type=int, default=100, help="map height in cells")
    parser.add_argument("--min-room", type=int, default=6, help="smallest room side")
    parser.add_argument("--max-room", type=int, default=18, help="largest room side")
    parser.add_argument("--depth", type=int, default=5, help="maximum partition depth")
    parser.add_argument("--difficulty", type=float, default=1, help="difficulty level")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate a map from the command-line options and write it to stdout."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.width <= 0 or args.height <= 0:
        parser.error("width and height must be positive")
    generator = DungeonGenerator(rng=random.Random(args.seed), difficulty=args.difficulty)
    grid = generator.generate(
        (args.width, args.height),
        args.depth,
        (args.min_room, args.min_room),
        (args.max_room, args.max_room),
    )
    sys.stdout.write(render_map(grid))
    print(f"Rooms: {len(generator.rooms)}", file=sys.stderr)
    print(f"Spawn points: {len(generator.spawn_points)}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())