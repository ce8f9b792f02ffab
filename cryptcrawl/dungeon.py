"""Dungeon maps built by binary space partitioning, with rooms, corridors and spawns."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

log = logging.getLogger(__name__)

Cell = tuple[int, int]


class TileType(Enum):
    NONE = auto()
    FLOOR = auto()
    WALL = auto()


Grid = list[list[TileType]]

_SPLIT_CHANCE_THRESHOLD = 25
_DIMENSION_PROPORTION = 1.25
_ROOM_MARGIN = 2
_MIN_OBSTACLE_ROOM_AREA = 35
_SINGLE_WALL_DIVIDER = 8
_MIN_WALL_LINE_LENGTH = 4
_MONSTER_TILE_FACTOR = 0.05
_MONSTER_DIFFICULTY_FACTOR = 1.2
_MIN_MONSTERS = 2
_TILE_CHARS = {TileType.NONE: " ", TileType.FLOOR: ".", TileType.WALL: "#"}


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle of grid cells: top-left corner and size."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Room:
    """A rectangular room carved out of the map."""

    rect: Rect

    def center(self) -> Cell:
        return (self.rect.x + self.rect.width // 2, self.rect.y + self.rect.height // 2)

    def area(self) -> int:
        return self.rect.width * self.rect.height

    def cells(self) -> list[Cell]:
        r = self.rect
        return [(x, y) for y in range(r.y, r.y + r.height) for x in range(r.x, r.x + r.width)]


@dataclass
class _Node:
    area: Rect
    first: Optional["_Node"] = None
    second: Optional["_Node"] = None

    @property
    def is_leaf(self) -> bool:
        return self.first is None and self.second is None


def monster_count_in_room(walkable_tiles: int, difficulty: float) -> int:
    """Number of monsters for a room with ``walkable_tiles`` floor cells."""
    max_monsters = walkable_tiles - 1
    count = int(
        _MONSTER_TILE_FACTOR * walkable_tiles
        + _MONSTER_DIFFICULTY_FACTOR * difficulty
        + _MIN_MONSTERS
    )
    if count > max_monsters:
        return max_monsters
    if count < _MIN_MONSTERS:
        return _MIN_MONSTERS
    return count


def add_walls(grid: Grid) -> None:
    """Turn every empty cell touching a floor cell (8 neighbours) into a wall, in place."""
    if not grid:
        return
    height, width = len(grid), len(grid[0])

    def near_floor(x: int, y: int) -> bool:
        return any(
            grid[ny][nx] is TileType.FLOOR
            for ny in range(max(0, y - 1), min(height, y + 2))
            for nx in range(max(0, x - 1), min(width, x + 2))
        )

    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            if tile is TileType.NONE and near_floor(x, y):
                row[x] = TileType.WALL


def render_map(grid: Grid) -> str:
    """Render the grid as text: ' ' empty, '.' floor, '#' wall, one line per row."""
    return "".join(
        "".join(_TILE_CHARS.get(tile, "?") for tile in row) + "\n" for row in grid
    )


@dataclass
class DungeonGenerator:
    """Generates dungeons of rectangular rooms joined by L-shaped corridors."""

    rng: random.Random = field(default_factory=random.Random)
    difficulty: float = 1
    rooms: list[Room] = field(default_factory=list, init=False)
    spawn_points: list[Cell] = field(default_factory=list, init=False)

    def generate(
        self,
        size: Cell,
        max_depth: int,
        min_room_size: Cell,
        max_room_size: Cell,
    ) -> Grid:
        """Build a map of ``size`` (width, height); index the result as grid[y][x]."""
        width, height = size
        if width <= 0 or height <= 0:
            raise ValueError(f"map size must be positive, got {size}")
        grid: Grid = [[TileType.NONE] * width for _ in range(height)]
        self.rooms = []
        self.spawn_points = []

        root = _Node(Rect(0, 0, width, height))
        self._split(root, min_room_size, max_room_size)
        self._create_rooms(list(self._leaves(root)), min_room_size)
        self._place_rooms(grid)
        self._generate_obstacles(grid)
        self._connect_rooms(grid)
        add_walls(grid)
        self.rooms.sort(key=lambda room: (room.rect.y, room.rect.x))
        self._populate_spawn_points(grid)
        return grid

    # -- partitioning -------------------------------------------------------

    def _split(self, node: _Node, min_size: Cell, max_size: Cell) -> None:
        if not node.is_leaf:
            return
        if (
            node.area.width > max_size[0]
            or node.area.height > max_size[1]
            or self.rng.randint(1, 100) > _SPLIT_CHANCE_THRESHOLD
        ):
            if self._divide(node, min_size):
                assert node.first is not None and node.second is not None
                self._split(node.first, min_size, max_size)
                self._split(node.second, min_size, max_size)

    def _divide(self, node: _Node, min_size: Cell) -> bool:
        area = node.area
        if area.width / area.height >= _DIMENSION_PROPORTION:
            vertical = True
        elif area.height / area.width >= _DIMENSION_PROPORTION:
            vertical = False
        else:
            vertical = self.rng.randint(1, 10) > 5

        if vertical and area.width < min_size[0] * 2:
            return False
        if not vertical and area.height < min_size[1] * 2:
            return False

        if vertical:
            split = self.rng.randint(min_size[0], area.width - min_size[0])
            node.first = _Node(Rect(area.x, area.y, split, area.height))
            node.second = _Node(Rect(area.x + split, area.y, area.width - split, area.height))
        else:
            split = self.rng.randint(min_size[1], area.height - min_size[1])
            node.first = _Node(Rect(area.x, area.y, area.width, split))
            node.second = _Node(Rect(area.x, area.y + split, area.width, area.height - split))
        return True

    def _leaves(self, node: _Node):
        if node.is_leaf:
            yield node
            return
        assert node.first is not None and node.second is not None
        yield from self._leaves(node.first)
        yield from self._leaves(node.second)

    # -- rooms --------------------------------------------------------------

    def _create_rooms(self, leaves: list[_Node], min_size: Cell) -> None:
        for leaf in leaves:
            area = leaf.area
            max_width = area.width - _ROOM_MARGIN
            max_height = area.height - _ROOM_MARGIN
            if min_size[0] > max_width or min_size[1] > max_height:
                continue
            room_width = self.rng.randint(min_size[0], max_width)
            room_height = self.rng.randint(min_size[1], max_height)
            room_x = self.rng.randint(1, max(0, area.width - room_width - 1)) + area.x
            room_y = self.rng.randint(1, max(0, area.height - room_height - 1)) + area.y
            self.rooms.append(Room(Rect(room_x, room_y, room_width, room_height)))
        log.debug("created %d rooms", len(self.rooms))

    def _place_rooms(self, grid: Grid) -> None:
        for room in self.rooms:
            for x, y in room.cells():
                grid[y][x] = TileType.FLOOR

    # -- corridors ----------------------------------------------------------

    def _connect_rooms(self, grid: Grid) -> None:
        if not self.rooms:
            return
        count = len(self.rooms)
        edges = sorted(
            (
                (i, j, math.dist(self.rooms[i].center(), self.rooms[j].center()))
                for i in range(count)
                for j in range(i + 1, count)
            ),
            key=lambda edge: edge[2],
        )
        connected = {0}
        while len(connected) < count:
            for position, (a, b, _) in enumerate(edges):
                if (a in connected) == (b in connected):
                    continue
                source, target = (a, b) if a in connected else (b, a)
                connected.add(target)
                self._carve_corridor(grid, self.rooms[source], self.rooms[target])
                del edges[position]
                break

    def _carve_corridor(self, grid: Grid, room_a: Room, room_b: Room) -> None:
        ax, ay = room_a.center()
        bx, by = room_b.center()
        xs = range(min(ax, bx), max(ax, bx) + 1)
        ys = range(min(ay, by), max(ay, by) + 1)
        if self.rng.randint(0, 1):
            for x in xs:
                grid[ay][x] = TileType.FLOOR
            for y in ys:
                grid[y][bx] = TileType.FLOOR
        else:
            for y in ys:
                grid[y][ax] = TileType.FLOOR
            for x in xs:
                grid[by][x] = TileType.FLOOR

    # -- obstacles ----------------------------------------------------------

    def _generate_obstacles(self, grid: Grid) -> None:
        # Corridors are carved afterwards between room centres, so they may cut
        # through obstacles and rooms always stay connected.
        for room in self.rooms:
            if room.area() >= _MIN_OBSTACLE_ROOM_AREA:
                self._place_obstacle_pattern(grid, room)

    def _place_obstacle_pattern(self, grid: Grid, room: Room) -> None:
        patterns: list[tuple[Callable[[Grid, Room], None], int]] = [
            (self._place_line_of_walls, 60),
            (self._place_random_single_walls, 40),
        ]
        roll = self.rng.randint(0, sum(weight for _, weight in patterns) - 1)
        for place, weight in patterns:
            if roll < weight:
                place(grid, room)
                return
            roll -= weight

    def _place_random_single_walls(self, grid: Grid, room: Room) -> None:
        # Candidates sit on a chessboard pattern so no two walls touch directly.
        count = self.rng.randint(1, room.area() // _SINGLE_WALL_DIVIDER)
        r = room.rect
        candidates = [
            (x, y)
            for y in range(r.y + 1, r.y + r.height - 1)
            for x in range(r.x + 1, r.x + r.width - 1)
            if (x + y) % 2 == 0 and grid[y][x] is TileType.FLOOR
        ]
        self.rng.shuffle(candidates)
        for x, y in candidates[:count]:
            grid[y][x] = TileType.WALL

    def _place_line_of_walls(self, grid: Grid, room: Room) -> None:
        vertical = self.rng.randint(1, 10) > 5
        r = room.rect
        span = r.height if vertical else r.width
        max_length = span - 1
        if _MIN_WALL_LINE_LENGTH >= max_length:
            return
        length = self.rng.randint(_MIN_WALL_LINE_LENGTH, max_length)
        slack = span - length
        if vertical:
            x = self.rng.randint(r.x, r.x + r.width - 1)
            start = self.rng.randint(r.y, r.y + slack - 1)
            cells = [(x, y) for y in range(start, start + length)]
        else:
            y = self.rng.randint(r.y, r.y + r.height - 1)
            start = self.rng.randint(r.x, r.x + slack - 1)
            cells = [(x, y) for x in range(start, start + length)]
        for x, y in cells:
            if grid[y][x] is TileType.FLOOR:
                grid[y][x] = TileType.WALL

    # -- spawning -----------------------------------------------------------

    def _populate_spawn_points(self, grid: Grid) -> None:
        for room in self.rooms[1:]:
            walkable = [(x, y) for x, y in room.cells() if grid[y][x] is TileType.FLOOR]
            amount = monster_count_in_room(len(walkable), self.difficulty)
            self.rng.shuffle(walkable)
            self.spawn_points.extend(walkable[: max(0, amount)])