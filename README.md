# cryptcrawl

This package holds the game logic for a grid-based dungeon crawler. It has four parts:

- a small entity-component core;
- a typed event bus;
- AI behaviours built from queued tasks;
- a dungeon generator that uses binary space partitioning.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Generating a dungeon from the command line

```
cryptcrawl --seed 42
```

This prints the map to standard output:

- `.` is floor.
- `#` is wall.
- A blank is empty space.

The number of rooms and the number of spawn points go to standard error.

| Option | Default | Meaning |
| --- | --- | --- |
| `--width` | 100 | Map width in cells. |
| `--height` | 100 | Map height in cells. |
| `--min-room` | 6 | Smallest room side. |
| `--max-room` | 18 | Largest room side. |
| `--depth` | 5 | Passed to the generator, which does not use it. Partitioning is not limited by depth. |
| `--difficulty` | 1 | Raises the number of monsters per room. |
| `--seed` | none | Random seed, for maps you can reproduce. |

Width and height must be positive.

## Using the library

### Events (`cryptcrawl.events`)

`EventManager.register(event_type, callback)` returns an `EventHandle`.

`notify(event)` calls every callback registered for the exact type of `event`. It calls them in the order they were registered.

`unregister(handle)` removes one callback. A handle it does not know is ignored.

The module also defines the event dataclasses the systems exchange. Some examples are `StartAttackingEvent`, `MoveRequestedEvent`, `EntityDiedEvent` and `SpawnEntityEvent`.

```python
from cryptcrawl.events import EventManager, EntityDiedEvent

bus = EventManager()
handle = bus.register(EntityDiedEvent, lambda ev: print("died:", ev.entity))
bus.unregister(handle)
```

### Entities and components

`cryptcrawl.entity.Entity` holds at most one component of each type.

- `add_component(component)` returns the component now stored. If a component of that type is already there, it keeps that one.
- `get_component(type)` raises `KeyError` when the component is missing.
- `has_component(type)` and `remove_component(type)` work as their names say.

`cryptcrawl.entity.EntityManager` manages entities.

- `create_entity()` hands out ids 0, 1, 2 and so on.
- `get_entity(id)` returns the entity or `None`.
- `remove_entity(id)` removes it.
- `entities_with_components(*types)` returns the entities that have all the given types.
- `get_player()` returns the entity that has a `PlayerComponent`. It raises `PlayerNotFoundError` when there is none.

`cryptcrawl.components` defines several things:

- the enums `Direction`, `AnimationId`, `EntityType`, `EntityState` and `AIState`;
- the component dataclasses, such as `SpriteComponent`, `CombatStatsComponent` and `ChaseAIComponent`;
- `AnimationFrame` and `AttackData`;
- the helpers `entity_cell(entity, cell_size)` and `is_idle(entity)`.

### Systems

Every system subclasses `cryptcrawl.system.System`. It is built from a `SystemContext(event_manager, entity_manager)`.

Call `update(delta_ms)` on each system once per frame. Drawing systems also have `render(target)`.

| System | Module | What it does |
| --- | --- | --- |
| `AnimationSystem` | `cryptcrawl.animation_system` | Plays walk, attack and entity-specific animations frame by frame. |
| `AttackSystem` | `cryptcrawl.combat` | Starts queued attacks once the entity is idle. When an attack animation finishes, it sends a `HitByAttackEvent` with the opposing entities hit. |
| `EntityDeathSystem` | `cryptcrawl.combat` | Frees the tiles of dead entities and removes those entities. |
| `BarRenderSystem` | `cryptcrawl.combat` | Shows a health bar for 1.7 s after a `HealthBarUpdateEvent`. `render` calls `target.draw((position, size))` for each bar. |
| `ChaseAISystem` | `cryptcrawl.ai_systems` | Walks chasing entities along their path and requests new paths. |
| `BehaviorAIUpdateSystem` | `cryptcrawl.ai_systems` | Runs the behaviour of each visible non-player entity. |
| `CollisionSystem` | `cryptcrawl.ai_systems` | Allows a requested move when the target cell is walkable. |
| `EntityRenderSystem` | `cryptcrawl.ai_systems` | Draws the entities that stand on visible floor tiles. |
| `CameraSystem` | `cryptcrawl.ai_systems` | Keeps a `View` centred on the player. A key-state callable zooms with "O" and "L". |
| `EntitySpawnerSystem` | `cryptcrawl.spawner` | Creates the player and skeleton monsters on `SpawnEntityEvent`. |

`cryptcrawl.ai_systems.step_direction` turns a one-cell step into a `Direction`.

`player_attack_data()` and `basic_melee_attack_data()` in `cryptcrawl.spawner` return the attack tables.

### AI behaviour

`cryptcrawl.behavior.BasicMeleeBehavior` is built from a `BehaviorContext`. The context has these fields:

- `event_manager`
- `entity_manager`
- `tile_map`
- `cell_size`
- `rng`

The behaviour runs queued tasks one at a time. The task classes are `DelayTask`, `AttackTask` and `ChaseTask` from `cryptcrawl.tasks`. When its queue is empty, the behaviour decides whether to patrol, chase or attack the player.

### Animations

`cryptcrawl.animations.AnimationHolder` stores frame lists under keys. A key is either a `GenericAnimationKey(id, direction)` or an `EntityAnimationKey(id, direction, entity_type)`.

- `load_nodes(nodes, key_for_id)` fills the holder from `AnimationNode` trees.
- `load_animations(parse, root)` reads the three animation files below `root`. It turns each one into nodes with the `parse` callable you give it.
- `get(key)` returns the frames stored for `key`. A hurt animation has only one frame list, so for it the direction does not matter.

`make_frame(data)` and `read_file_content(path)` are exposed as well.

### Dungeons

```python
import random
from cryptcrawl.dungeon import DungeonGenerator, render_map

gen = DungeonGenerator(rng=random.Random(1), difficulty=1)
grid = gen.generate((100, 100), 5, (6, 6), (18, 18))   # grid[y][x] of TileType
print(render_map(grid))
print(gen.rooms, gen.spawn_points)
```

The generator works in these steps:

1. It splits the map by binary space partitioning.
2. It places one room in each leaf that is large enough.
3. It adds a wall line or scattered single walls inside rooms of area 35 or more.
4. It joins the rooms with L-shaped corridors along a minimum spanning tree of the room centres.
5. It surrounds the floor with walls.
6. It sorts the rooms by position.
7. It records monster spawn points for every room except the first.

`monster_count_in_room` and `add_walls` can be used on their own.

## What the package does not do

The package has no window, no graphics, no sound, no input handling and no game loop.

It contains no tile map and no pathfinder. The systems and behaviours expect you to pass in a `tile_map` object. Depending on the system, that object must provide some of these methods:

- `is_tile_walkable(x, y)`
- `entities_on_tile(x, y)`
- `visible_entities()`
- `is_line_of_sight_clear(a, b)`
- `does_path_exist(entity, target)`

Nothing in the package answers a `RequestPathEvent`.

It has no parser for animation description files. You supply one to `AnimationHolder.load_animations`.

The only command is `cryptcrawl`, which generates and prints a map.