"""System that creates the player and monsters with their components."""

from __future__ import annotations

import copy
import random
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from cryptcrawl.behavior import BasicMeleeBehavior, BehaviorContext
from cryptcrawl.components import (
    AITimersComponent,
    AnimationComponent,
    AnimationId,
    AttackComponent,
    AttackData,
    BehaviorComponent,
    ChaseAIComponent,
    CombatStatsComponent,
    Direction,
    DirectionComponent,
    EnemyComponent,
    EntityAIStateComponent,
    EntityStateComponent,
    EntityType,
    EntityTypeComponent,
    FieldOfViewComponent,
    HealthBarComponent,
    MovementComponent,
    PathComponent,
    PatrolAIComponent,
    PlayerComponent,
    SpriteComponent,
    TagComponent,
)
from cryptcrawl.entity import Entity
from cryptcrawl.events import SpawnEntityEvent, TileOccupiedEvent
from cryptcrawl.system import System, SystemContext

Vec2 = tuple[float, float]
Cell = tuple[int, int]
AttackDataMap = dict[AnimationId, AttackData]

_SPRITE_RECT = (0, 0, 64, 64)
_PATROL_DELAY_RANGE = (1600, 3200)


def basic_melee_attack_data() -> AttackDataMap:
    """Attack table of a simple melee monster: one hit on the facing cell."""
    return {
        AnimationId.ATTACK1: AttackData(
            damage_multiplier=1.0,
            speed_multiplier=1.0,
            hit_offsets={
                Direction.UP: [(0, -1)],
                Direction.LEFT: [(-1, 0)],
                Direction.BOTTOM: [(0, 1)],
                Direction.RIGHT: [(1, 0)],
            },
        )
    }


def player_attack_data() -> AttackDataMap:
    """Attack table of the player's three attacks."""
    return {
        AnimationId.ATTACK1: AttackData(
            damage_multiplier=1.0,
            speed_multiplier=1.0,
            hit_offsets={
                Direction.UP: [(-1, 0), (0, -1)],
                Direction.LEFT: [(-1, 0), (0, -1)],
                Direction.BOTTOM: [(1, 0), (0, 1)],
                Direction.RIGHT: [(1, 0), (0, 1)],
            },
        ),
        AnimationId.ATTACK2: AttackData(
            damage_multiplier=1.0,
            speed_multiplier=1.0,
            hit_offsets={
                Direction.UP: [(1, 0), (0, -1)],
                Direction.LEFT: [(-1, 0), (0, 1)],
                Direction.BOTTOM: [(-1, 0), (0, 1)],
                Direction.RIGHT: [(1, 0), (0, -1)],
            },
        ),
        AnimationId.ATTACK3: AttackData(
            damage_multiplier=1.35,
            speed_multiplier=1.1,
            hit_offsets={
                Direction.UP: [(0, -1)],
                Direction.LEFT: [(-1, 0)],
                Direction.BOTTOM: [(0, 1)],
                Direction.RIGHT: [(1, 0)],
            },
        ),
    }


@dataclass
class _BaseEntityData:
    tag: str
    move_speed: float = 130.0
    fov_range: int = 1
    combat_stats: CombatStatsComponent = field(default_factory=CombatStatsComponent)
    attack_data: AttackDataMap = field(default_factory=dict)


def _entity_templates() -> dict[EntityType, _BaseEntityData]:
    return {
        EntityType.PLAYER: _BaseEntityData(
            tag="Player_Default",
            move_speed=165.0,
            fov_range=5,
            combat_stats=CombatStatsComponent(
                attack_damage=19,
                attack_range=1,
                attack_speed=1.3,
                defence=8,
                health=188,
                max_health=188,
            ),
            attack_data=player_attack_data(),
        ),
        EntityType.SKLETORUS: _BaseEntityData(
            tag="Skletorus",
            move_speed=115.0,
            fov_range=3,
            combat_stats=CombatStatsComponent(
                attack_damage=7,
                attack_range=1,
                attack_speed=1.1,
                defence=2,
                health=57,
                max_health=57,
            ),
            attack_data=basic_melee_attack_data(),
        ),
    }


class EntitySpawnerSystem(System):
    """Spawns entities on request, each with its own copy of its type's data.

    ``textures`` maps an EntityType to the texture its sprite uses.
    """

    def __init__(
        self,
        context: SystemContext,
        textures: Mapping[EntityType, Any],
        behavior_context: BehaviorContext,
        cell_size: Vec2 = (64.0, 64.0),
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(context)
        self.textures = textures
        self.behavior_context = behavior_context
        self.cell_size = cell_size
        self.rng = rng or random.Random()
        self._templates = _entity_templates()
        context.event_manager.register(SpawnEntityEvent, self._on_spawn)

    def update(self, delta_ms: float) -> None:
        """Spawning happens on events only."""

    def spawn_entity(self, cell: Cell, entity_type: EntityType) -> Optional[Entity]:
        """Create an entity of ``entity_type`` on ``cell``; unknown types spawn nothing."""
        if entity_type is EntityType.PLAYER:
            return self._spawn_player(cell)
        if entity_type is EntityType.SKLETORUS:
            return self._spawn_skletorus(cell)
        return None

    def _on_spawn(self, event: SpawnEntityEvent) -> None:
        self.spawn_entity(event.cell, event.entity_type)

    def _spawn_player(self, cell: Cell) -> Entity:
        entity = self.context.entity_manager.create_entity()
        self._add_common_components(entity, EntityType.PLAYER)
        self._add_sprite(entity, EntityType.PLAYER, cell)
        entity.add_component(PlayerComponent())
        self._notify_tile_occupied(entity)
        return entity

    def _spawn_skletorus(self, cell: Cell) -> Entity:
        entity = self.context.entity_manager.create_entity()
        self._add_sprite(entity, EntityType.SKLETORUS, cell)
        self._add_common_components(entity, EntityType.SKLETORUS)
        self._add_ai_components(entity)
        entity.add_component(BehaviorComponent(BasicMeleeBehavior(self.behavior_context)))
        self._notify_tile_occupied(entity)
        return entity

    def _add_common_components(self, entity: Entity, entity_type: EntityType) -> None:
        data = self._templates[entity_type]
        entity.add_component(DirectionComponent())
        entity.add_component(EntityStateComponent())
        entity.add_component(AnimationComponent())
        entity.add_component(EntityTypeComponent(entity_type))
        entity.add_component(HealthBarComponent())
        entity.add_component(TagComponent(data.tag))
        entity.add_component(MovementComponent(data.move_speed))
        entity.add_component(FieldOfViewComponent(data.fov_range))
        entity.add_component(replace(data.combat_stats))
        entity.add_component(AttackComponent(attack_data=copy.deepcopy(data.attack_data)))

    def _add_sprite(self, entity: Entity, entity_type: EntityType, cell: Cell) -> None:
        entity.add_component(
            SpriteComponent(
                texture=self.textures[entity_type],
                position=self._cell_to_position(cell),
                texture_rect=_SPRITE_RECT,
            )
        )

    def _add_ai_components(self, entity: Entity) -> None:
        entity.add_component(EnemyComponent())
        entity.add_component(EntityAIStateComponent())
        entity.add_component(PatrolAIComponent(float(self.rng.randint(*_PATROL_DELAY_RANGE))))
        entity.add_component(ChaseAIComponent())
        entity.add_component(PathComponent())
        entity.add_component(CombatStatsComponent())
        entity.add_component(AITimersComponent())

    def _notify_tile_occupied(self, entity: Entity) -> None:
        position = entity.get_component(SpriteComponent).position
        self.context.event_manager.notify(TileOccupiedEvent(entity, position))

    def _cell_to_position(self, cell: Cell) -> Vec2:
        return (cell[0] * self.cell_size[0], cell[1] * self.cell_size[1])