from dataclasses import dataclass, field
from typing import Any

import pytest

from cryptcrawl.ai_systems import (
    BehaviorAIUpdateSystem,
    CameraSystem,
    ChaseAISystem,
    CollisionSystem,
    EntityRenderSystem,
    View,
    step_direction,
)
from cryptcrawl.components import (
    AIState,
    BehaviorComponent,
    ChaseAIComponent,
    Direction,
    DirectionComponent,
    EntityAIStateComponent,
    EntityState,
    EntityStateComponent,
    PathComponent,
    PlayerComponent,
    SpriteComponent,
)
from cryptcrawl.entity import EntityManager
from cryptcrawl.events import (
    EventManager,
    MonsterDisappearedEvent,
    MoveAllowedEvent,
    MoveRequestedEvent,
    PlayerMoveFinishedEvent,
    RequestPathEvent,
    StartChasingEvent,
    UpdateEntityRenderTilesEvent,
)
from cryptcrawl.system import SystemContext

CELL = (64.0, 64.0)


class FakeTileMap:
    def __init__(self, walkable=(), visible=()):
        self.walkable = set(walkable)
        self.visible = list(visible)

    def is_tile_walkable(self, x, y):
        return (x, y) in self.walkable

    def visible_entities(self):
        return self.visible


@dataclass
class FakeTile:
    tile_type: Any
    visible: bool = True
    reserved_entity: Any = None
    occupying_entities: list = field(default_factory=list)


class FloorKind:
    name = "FLOOR"


class WallKind:
    name = "WALL"


class Recorder:
    def __init__(self):
        self.items = []

    def draw(self, item):
        self.items.append(item)

    def __call__(self, event):
        self.items.append(event)


def make_context():
    return SystemContext(EventManager(), EntityManager())


def make_mover(context, cell=(2, 2)):
    entity = context.entity_manager.create_entity()
    entity.add_component(SpriteComponent(position=(cell[0] * CELL[0], cell[1] * CELL[1])))
    entity.add_component(EntityStateComponent())
    entity.add_component(DirectionComponent())
    entity.add_component(EntityAIStateComponent())
    entity.add_component(ChaseAIComponent())
    entity.add_component(PathComponent())
    return entity


@pytest.mark.parametrize(
    "target, expected",
    [
        ((1, 2), Direction.LEFT),
        ((3, 2), Direction.RIGHT),
        ((2, 1), Direction.UP),
        ((2, 3), Direction.BOTTOM),
        ((3, 3), Direction.RIGHT),
        ((2, 2), None),
        ((4, 2), None),
        ((2, 0), None),
    ],
)
def test_step_direction(target, expected):
    assert step_direction((2, 2), target) is expected


def test_start_chasing_tracks_entity_once():
    context = make_context()
    system = ChaseAISystem(context, FakeTileMap(), CELL)
    entity = make_mover(context)
    target = make_mover(context, (5, 5))
    entity.get_component(PathComponent).cells.append((9, 9))

    context.event_manager.notify(StartChasingEvent(entity, target))
    context.event_manager.notify(StartChasingEvent(entity, target))

    assert system.tracked_entities == [entity]
    assert entity.get_component(EntityAIStateComponent).state is AIState.CHASING
    assert entity.get_component(ChaseAIComponent).target is target
    assert len(entity.get_component(PathComponent).cells) == 0


def test_empty_path_requests_recalculation():
    context = make_context()
    system = ChaseAISystem(context, FakeTileMap(), CELL)
    requests = Recorder()
    context.event_manager.register(RequestPathEvent, requests)
    entity = make_mover(context)
    context.event_manager.notify(StartChasingEvent(entity, make_mover(context)))

    system.update(16)

    assert [e.entity for e in requests.items] == [entity]


def test_step_along_path_requests_move_and_pops():
    context = make_context()
    system = ChaseAISystem(context, FakeTileMap(), CELL)
    moves = Recorder()
    context.event_manager.register(MoveRequestedEvent, moves)
    entity = make_mover(context)
    context.event_manager.notify(StartChasingEvent(entity, make_mover(context)))
    path = entity.get_component(PathComponent).cells
    path.extend([(2, 1), (2, 0)])

    system.update(16)

    assert [(e.entity, e.direction) for e in moves.items] == [(entity, Direction.UP)]
    assert list(path) == [(2, 0)]


def test_busy_entity_does_not_step():
    context = make_context()
    system = ChaseAISystem(context, FakeTileMap(), CELL)
    moves = Recorder()
    context.event_manager.register(MoveRequestedEvent, moves)
    entity = make_mover(context)
    context.event_manager.notify(StartChasingEvent(entity, make_mover(context)))
    entity.get_component(EntityStateComponent).state = EntityState.MOVING
    entity.get_component(PathComponent).cells.append((3, 2))

    system.update(16)

    assert moves.items == []
    assert list(entity.get_component(PathComponent).cells) == [(3, 2)]


def test_recalculation_due_after_cooldown():
    context = make_context()
    system = ChaseAISystem(context, FakeTileMap(), CELL, recalculation_cooldown=100.0)
    requests = Recorder()
    context.event_manager.register(RequestPathEvent, requests)
    entity = make_mover(context)
    context.event_manager.notify(StartChasingEvent(entity, make_mover(context)))
    entity.get_component(PathComponent).cells.extend([(3, 2), (4, 2)])

    system.update(50)
    assert requests.items == []
    system.update(60)
    assert [e.entity for e in requests.items] == [entity]


def test_entities_that_stop_chasing_are_dropped():
    context = make_context()
    system = ChaseAISystem(context, FakeTileMap(), CELL)
    entity = make_mover(context)
    context.event_manager.notify(StartChasingEvent(entity, make_mover(context)))
    entity.get_component(EntityAIStateComponent).state = AIState.PATROLLING

    system.update(16)

    assert system.tracked_entities == []


def test_player_move_requests_paths_for_chasers():
    context = make_context()
    ChaseAISystem(context, FakeTileMap(), CELL)
    requests = Recorder()
    context.event_manager.register(RequestPathEvent, requests)
    first, second = make_mover(context), make_mover(context, (4, 4))
    target = make_mover(context, (7, 7))
    context.event_manager.notify(StartChasingEvent(first, target))
    context.event_manager.notify(StartChasingEvent(second, target))

    context.event_manager.notify(PlayerMoveFinishedEvent((0.0, 0.0)))

    assert [e.entity for e in requests.items] == [first, second]


class FakeBehavior:
    def __init__(self):
        self.calls = []

    def update(self, entity, delta_ms):
        self.calls.append((entity, delta_ms))


def test_behavior_update_skips_player():
    context = make_context()
    player = context.entity_manager.create_entity()
    player.add_component(PlayerComponent())
    player_behavior = FakeBehavior()
    player.add_component(BehaviorComponent(player_behavior))
    monster = context.entity_manager.create_entity()
    behavior = FakeBehavior()
    monster.add_component(BehaviorComponent(behavior))
    idle_monster = context.entity_manager.create_entity()
    idle_monster.add_component(BehaviorComponent())

    system = BehaviorAIUpdateSystem(context, FakeTileMap(visible=[player, monster, idle_monster]))
    system.update(16)

    assert behavior.calls == [(monster, 16)]
    assert player_behavior.calls == []


def test_monster_disappearing_resets_ai_state():
    context = make_context()
    BehaviorAIUpdateSystem(context, FakeTileMap())
    monster = make_mover(context)
    monster.get_component(EntityAIStateComponent).state = AIState.CHASING

    context.event_manager.notify(MonsterDisappearedEvent(monster))

    assert monster.get_component(EntityAIStateComponent).state is AIState.NONE


@pytest.mark.parametrize(
    "direction, step",
    [
        (Direction.UP, (0, -1)),
        (Direction.BOTTOM, (0, 1)),
        (Direction.LEFT, (-1, 0)),
        (Direction.RIGHT, (1, 0)),
    ],
)
def test_next_tile_position(direction, step):
    context = make_context()
    system = CollisionSystem(context, FakeTileMap(), CELL)
    entity = make_mover(context)
    entity.get_component(DirectionComponent).next = direction
    x, y = entity.get_component(SpriteComponent).position

    assert system.next_tile_position(entity) == (x + step[0] * CELL[0], y + step[1] * CELL[1])


def test_collision_allows_move_onto_walkable_tile():
    context = make_context()
    system = CollisionSystem(context, FakeTileMap(walkable={(3, 2)}), CELL)
    allowed = Recorder()
    context.event_manager.register(MoveAllowedEvent, allowed)
    entity = make_mover(context)

    context.event_manager.notify(MoveRequestedEvent(entity, Direction.RIGHT))
    assert entity.get_component(DirectionComponent).next is Direction.RIGHT
    system.update(16)

    assert [(e.entity, e.position) for e in allowed.items] == [
        (entity, (3 * CELL[0], 2 * CELL[1]))
    ]
    assert system.tracked_entities == []


def test_collision_blocks_walls_and_busy_entities():
    context = make_context()
    system = CollisionSystem(context, FakeTileMap(walkable={(3, 2)}), CELL)
    allowed = Recorder()
    context.event_manager.register(MoveAllowedEvent, allowed)
    blocked = make_mover(context)
    busy = make_mover(context)
    busy.get_component(EntityStateComponent).state = EntityState.ATTACKING

    context.event_manager.notify(MoveRequestedEvent(blocked, Direction.LEFT))
    context.event_manager.notify(MoveRequestedEvent(busy, Direction.RIGHT))
    system.update(16)

    assert allowed.items == []
    assert system.tracked_entities == []


def test_render_system_draws_entities_on_visible_floor():
    context = make_context()
    system = EntityRenderSystem(context)
    a, b, c, d = (make_mover(context, (i, 0)) for i in range(4))
    tiles = [
        FakeTile(FloorKind(), occupying_entities=[a]),
        FakeTile(FloorKind(), reserved_entity=b, occupying_entities=[a]),
        FakeTile(WallKind(), occupying_entities=[c]),
        FakeTile(FloorKind(), visible=False, occupying_entities=[d]),
    ]
    system.frames_since_recalculation = 7

    context.event_manager.notify(UpdateEntityRenderTilesEvent(tiles))
    target = Recorder()
    system.render(target)

    assert system.frames_since_recalculation == 0
    assert len(target.items) == 2
    assert any(s is a.get_component(SpriteComponent) for s in target.items)
    assert any(s is b.get_component(SpriteComponent) for s in target.items)


def make_player(context, position):
    player = context.entity_manager.create_entity()
    player.add_component(PlayerComponent())
    player.add_component(SpriteComponent(position=position))
    player.add_component(EntityStateComponent())
    return player


def test_camera_follows_player_with_truncated_position():
    context = make_context()
    make_player(context, (100.7, 50.2))
    view = View(size=(800.0, 600.0))
    CameraSystem(context, view).update(16)

    assert view.center == (100.0, 50.0)
    assert view.size == (800.0, 600.0)


def test_camera_does_not_follow_attacking_player():
    context = make_context()
    player = make_player(context, (300.0, 300.0))
    player.get_component(EntityStateComponent).state = EntityState.ATTACKING
    view = View(center=(1.0, 2.0))
    CameraSystem(context, view).update(16)

    assert view.center == (1.0, 2.0)


@pytest.mark.parametrize("key, factor", [("O", 0.9), ("L", 1.1)])
def test_camera_zoom_keys(key, factor):
    context = make_context()
    make_player(context, (0.0, 0.0))
    view = View(size=(800.0, 600.0))
    CameraSystem(context, view, lambda pressed: pressed == key).update(16)

    assert view.size == pytest.approx((800.0 * factor, 600.0 * factor))


def test_view_move_shifts_center():
    view = View(center=(10.0, 20.0))
    view.move(5.0, -5.0)
    assert view.center == (15.0, 15.0)