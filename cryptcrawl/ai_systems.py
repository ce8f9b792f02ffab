"""Systems for chasing, AI updates, collision, entity rendering and the camera."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

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
    entity_cell,
    is_idle,
)
from cryptcrawl.entity import Entity
from cryptcrawl.events import (
    MonsterDisappearedEvent,
    MoveAllowedEvent,
    MoveRequestedEvent,
    PlayerMoveFinishedEvent,
    RequestPathEvent,
    StartChasingEvent,
    UpdateEntityRenderTilesEvent,
)
from cryptcrawl.system import System, SystemContext

Vec2 = tuple[float, float]
Cell = tuple[int, int]

_DEFAULT_CELL_SIZE: Vec2 = (64.0, 64.0)
_PATH_RECALCULATION_COOLDOWN = 4000.0
_ZOOM_IN_FACTOR = 0.9
_ZOOM_OUT_FACTOR = 1.1


def step_direction(from_cell: Cell, to_cell: Cell) -> Optional[Direction]:
    """Return the direction of a one-cell step, or None if the cells are not adjacent."""
    dx = to_cell[0] - from_cell[0]
    dy = to_cell[1] - from_cell[1]
    if abs(dx) > 1 or abs(dy) > 1:
        return None
    if dx == -1:
        return Direction.LEFT
    if dx == 1:
        return Direction.RIGHT
    if dy == -1:
        return Direction.UP
    if dy == 1:
        return Direction.BOTTOM
    return None


class ChaseAISystem(System):
    """Walks chasing entities along their path and asks for new paths when needed."""

    def __init__(
        self,
        context: SystemContext,
        tile_map: Any,
        cell_size: Vec2 = _DEFAULT_CELL_SIZE,
        recalculation_cooldown: float = _PATH_RECALCULATION_COOLDOWN,
    ) -> None:
        super().__init__(context)
        self.tile_map = tile_map
        self.cell_size = cell_size
        self.recalculation_cooldown = recalculation_cooldown
        context.event_manager.register(StartChasingEvent, self._on_start_chasing)
        context.event_manager.register(PlayerMoveFinishedEvent, self._on_player_moved)

    def update(self, delta_ms: float) -> None:
        self.tracked_entities[:] = [
            e
            for e in self.tracked_entities
            if e.get_component(EntityAIStateComponent).state is AIState.CHASING
        ]
        for entity in list(self.tracked_entities):
            chase = entity.get_component(ChaseAIComponent)
            path = entity.get_component(PathComponent)
            chase.time_since_recalculation += delta_ms

            if not path.cells:
                self._ask_for_path(entity)
                continue
            self._do_step(entity, path, path.cells[0])

            if chase.time_since_recalculation >= self.recalculation_cooldown:
                self._ask_for_path(entity)

    def _do_step(self, entity: Entity, path: PathComponent, step: Cell) -> None:
        if not is_idle(entity):
            return
        direction = step_direction(entity_cell(entity, self.cell_size), tuple(step))
        if direction is None:
            return
        self.context.event_manager.notify(MoveRequestedEvent(entity, direction))
        path.cells.popleft()

    def _ask_for_path(self, entity: Entity) -> None:
        self.context.event_manager.notify(RequestPathEvent(entity))

    def _on_start_chasing(self, event: StartChasingEvent) -> None:
        state = event.entity.get_component(EntityAIStateComponent)
        if state.state is AIState.CHASING:
            return
        state.state = AIState.CHASING
        chase = event.entity.get_component(ChaseAIComponent)
        chase.target = event.target
        chase.time_since_recalculation = 0.0
        event.entity.get_component(PathComponent).cells.clear()
        self.tracked_entities.append(event.entity)

    def _on_player_moved(self, event: PlayerMoveFinishedEvent) -> None:
        for entity in list(self.tracked_entities):
            self._ask_for_path(entity)


class BehaviorAIUpdateSystem(System):
    """Runs the behaviour of every visible non-player entity.

    ``tile_map`` must offer ``visible_entities()`` returning the entities in view.
    """

    def __init__(self, context: SystemContext, tile_map: Any) -> None:
        super().__init__(context)
        self.tile_map = tile_map
        context.event_manager.register(MonsterDisappearedEvent, self._on_disappeared)

    def update(self, delta_ms: float) -> None:
        for entity in list(self.tile_map.visible_entities()):
            if entity.has_component(PlayerComponent):
                continue
            behavior = entity.get_component(BehaviorComponent).behavior
            if behavior is not None:
                behavior.update(entity, delta_ms)

    def _on_disappeared(self, event: MonsterDisappearedEvent) -> None:
        if event.entity.has_component(EntityAIStateComponent):
            event.entity.get_component(EntityAIStateComponent).state = AIState.NONE


class CollisionSystem(System):
    """Allows requested moves of idle entities onto walkable tiles.

    ``tile_map`` must offer ``is_tile_walkable(x, y)`` for grid cells.
    """

    def __init__(
        self,
        context: SystemContext,
        tile_map: Any,
        cell_size: Vec2 = _DEFAULT_CELL_SIZE,
    ) -> None:
        super().__init__(context)
        self.tile_map = tile_map
        self.cell_size = cell_size
        context.event_manager.register(MoveRequestedEvent, self._on_move_requested)

    def update(self, delta_ms: float) -> None:
        for entity in list(self.tracked_entities):
            if entity.get_component(EntityStateComponent).state is not EntityState.IDLE:
                continue
            position = self.next_tile_position(entity)
            width, height = self.cell_size
            if self.tile_map.is_tile_walkable(
                int(position[0] // width), int(position[1] // height)
            ):
                self.context.event_manager.notify(MoveAllowedEvent(entity, position))
        self.tracked_entities.clear()

    def next_tile_position(self, entity: Entity) -> Vec2:
        """Return the sprite position one cell away in the entity's next direction."""
        x, y = entity.get_component(SpriteComponent).position
        width, height = self.cell_size
        direction = entity.get_component(DirectionComponent).next
        dx, dy = {
            Direction.UP: (0.0, -height),
            Direction.BOTTOM: (0.0, height),
            Direction.LEFT: (-width, 0.0),
            Direction.RIGHT: (width, 0.0),
        }.get(direction, (0.0, 0.0))
        return (x + dx, y + dy)

    def _on_move_requested(self, event: MoveRequestedEvent) -> None:
        event.entity.get_component(DirectionComponent).next = event.direction
        self.tracked_entities.append(event.entity)


def _is_floor(tile_type: Any) -> bool:
    return getattr(tile_type, "name", tile_type) == "FLOOR"


class EntityRenderSystem(System):
    """Draws only the entities standing on visible floor tiles.

    Tiles carry ``tile_type``, ``visible``, ``reserved_entity`` and
    ``occupying_entities``; ``render`` calls ``target.draw(sprite)``.
    """

    def __init__(self, context: SystemContext) -> None:
        super().__init__(context)
        self.frames_since_recalculation = 0
        context.event_manager.register(UpdateEntityRenderTilesEvent, self._on_update_tiles)

    def update(self, delta_ms: float) -> None:
        """Nothing to advance; the rendered set changes only on tile updates."""

    def render(self, target: Any) -> None:
        for entity in self.tracked_entities:
            target.draw(entity.get_component(SpriteComponent))

    def _on_update_tiles(self, event: UpdateEntityRenderTilesEvent) -> None:
        seen: dict[int, Entity] = {}
        for tile in event.tiles:
            if not _is_floor(tile.tile_type) or not tile.visible:
                continue
            if tile.reserved_entity is not None:
                seen.setdefault(id(tile.reserved_entity), tile.reserved_entity)
            for entity in tile.occupying_entities:
                seen.setdefault(id(entity), entity)
        self.tracked_entities[:] = list(seen.values())
        self.frames_since_recalculation = 0


@dataclass
class View:
    """A 2D camera: a centre and the size of the area it shows."""

    center: Vec2 = (0.0, 0.0)
    size: Vec2 = (0.0, 0.0)

    def zoom(self, factor: float) -> None:
        self.size = (self.size[0] * factor, self.size[1] * factor)

    def move(self, dx: float, dy: float) -> None:
        self.center = (self.center[0] + dx, self.center[1] + dy)


class CameraSystem(System):
    """Zooms on key presses and keeps the view centred on the player.

    ``is_key_pressed`` takes a key name ("O" zooms in, "L" zooms out).
    """

    def __init__(
        self,
        context: SystemContext,
        view: View,
        is_key_pressed: Optional[Callable[[str], bool]] = None,
    ) -> None:
        super().__init__(context)
        self.view = view
        self.is_key_pressed = is_key_pressed or (lambda key: False)

    def update(self, delta_ms: float) -> None:
        if self.is_key_pressed("O"):
            self.view.zoom(_ZOOM_IN_FACTOR)
        elif self.is_key_pressed("L"):
            self.view.zoom(_ZOOM_OUT_FACTOR)
        self._follow(self.context.entity_manager.get_player())

    def _follow(self, entity: Entity) -> None:
        if entity.get_component(EntityStateComponent).state is EntityState.ATTACKING:
            return
        x, y = entity.get_component(SpriteComponent).position
        self.view.center = (float(int(x)), float(int(y)))