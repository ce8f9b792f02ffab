from collections import deque

import random

import pytest

from cryptcrawl.dungeon import (
    DungeonGenerator,
    Rect,
    Room,
    TileType,
    add_walls,
    monster_count_in_room,
    render_map,
)

N, F, W = TileType.NONE, TileType.FLOOR, TileType.WALL


def _generate(seed, size=(60, 50), min_room=(6, 6), max_room=(18, 18)):
    gen = DungeonGenerator(rng=random.Random(seed))
    grid = gen.generate(size, 5, min_room, max_room)
    return gen, grid


def _reachable(grid, start):
    seen = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nx, ny = x + dx, y + dy
            if (nx, ny) not in seen and 0 <= ny < len(grid) and 0 <= nx < len(grid[0]):
                if grid[ny][nx] is F:
                    seen.add((nx, ny))
                    queue.append((nx, ny))
    return seen


def test_room_center_and_area():
    room = Room(Rect(2, 3, 5, 4))
    assert room.center() == (4, 5)
    assert room.area() == 20
    assert len(room.cells()) == room.area()


def test_render_map_characters():
    assert render_map([[N, F, W], [W, W, N]]) == " .#\n## \n"


def test_render_map_empty():
    assert render_map([]) == ""


def test_add_walls_surrounds_single_floor():
    grid = [[N] * 5 for _ in range(5)]
    grid[2][2] = F
    add_walls(grid)
    for y in range(5):
        for x in range(5):
            if (x, y) == (2, 2):
                assert grid[y][x] is F
            elif abs(x - 2) <= 1 and abs(y - 2) <= 1:
                assert grid[y][x] is W
            else:
                assert grid[y][x] is N


def test_add_walls_keeps_existing_walls():
    grid = [[W, N, N], [N, N, N], [N, N, N]]
    add_walls(grid)
    assert grid == [[W, N, N], [N, N, N], [N, N, N]]


def test_monster_count_clamped_to_walkable_minus_one():
    walkable = 3
    assert monster_count_in_room(walkable, 5) == walkable - 1


def test_monster_count_at_least_minimum_for_large_rooms():
    assert all(monster_count_in_room(500, d) >= 2 for d in range(0, 5))


def test_monster_count_grows_with_difficulty():
    counts = [monster_count_in_room(1000, d) for d in range(10)]
    assert counts == sorted(counts)
    assert counts[-1] > counts[0]


def test_generate_rejects_empty_size():
    with pytest.raises(ValueError):
        DungeonGenerator().generate((0, 10), 5, (6, 6), (18, 18))


def test_generate_dimensions():
    _, grid = _generate(1)
    assert len(grid) == 50
    assert all(len(row) == 60 for row in grid)


def test_generate_is_deterministic_for_seed():
    gen_a, grid_a = _generate(42)
    gen_b, grid_b = _generate(42)
    assert grid_a == grid_b
    assert gen_a.spawn_points == gen_b.spawn_points
    assert gen_a.rooms == gen_b.rooms


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_border_has_no_floor(seed):
    _, grid = _generate(seed)
    border = (
        list(grid[0])
        + list(grid[-1])
        + [row[0] for row in grid]
        + [row[-1] for row in grid]
    )
    assert len(border) == 2 * 60 + 2 * 50
    assert F not in border


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_empty_cells_never_touch_floor(seed):
    _, grid = _generate(seed)
    h, w = len(grid), len(grid[0])
    for y in range(h):
        for x in range(w):
            if grid[y][x] is N:
                neighbours = [
                    grid[ny][nx]
                    for ny in range(max(0, y - 1), min(h, y + 2))
                    for nx in range(max(0, x - 1), min(w, x + 2))
                ]
                assert F not in neighbours


@pytest.mark.parametrize("seed", [0, 5, 9, 13])
def test_room_centres_are_connected(seed):
    gen, grid = _generate(seed)
    assert gen.rooms
    reached = _reachable(grid, gen.rooms[0].center())
    assert all(room.center() in reached for room in gen.rooms)


@pytest.mark.parametrize("seed", [0, 7, 8])
def test_rooms_are_sorted_and_within_limits(seed):
    gen, grid = _generate(seed)
    keys = [(room.rect.y, room.rect.x) for room in gen.rooms]
    assert keys == sorted(keys)
    for room in gen.rooms:
        assert room.rect.width >= 6 and room.rect.height >= 6
        assert room.rect.x + room.rect.width <= 60
        assert room.rect.y + room.rect.height <= 50


@pytest.mark.parametrize("seed", [0, 3, 11])
def test_spawn_points_on_floor_outside_first_room(seed):
    gen, grid = _generate(seed)
    first = set(gen.rooms[0].cells())
    assert len(set(gen.spawn_points)) == len(gen.spawn_points)
    for x, y in gen.spawn_points:
        assert grid[y][x] is F
        assert (x, y) not in first


def test_spawn_points_reset_between_runs():
    gen = DungeonGenerator(rng=random.Random(3))
    gen.generate((60, 50), 5, (6, 6), (18, 18))
    first_count = len(gen.spawn_points)
    gen.rng = random.Random(3)
    gen.generate((60, 50), 5, (6, 6), (18, 18))
    assert len(gen.spawn_points) == first_count


def test_tiny_map_has_no_rooms():
    gen = DungeonGenerator(rng=random.Random(0))
    grid = gen.generate((4, 4), 5, (6, 6), (18, 18))
    assert gen.rooms == []
    assert gen.spawn_points == []
    assert all(tile is N for row in grid for tile in row)