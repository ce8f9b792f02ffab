"""Enumerations and component records attached to entities."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional


class Direction(Enum):
    UP = auto()
    LEFT = auto()
    BOTTOM = auto()
    RIGHT = auto()


class AnimationId(Enum):
    GENERIC_SPELL_CAST = auto()
    GENERIC_THRUST_UNARMED = auto()
    GENERIC_WALK = auto()
    GENERIC_SLASH_UNARMED = auto()
    GENERIC_SHOOT = auto()
    GENERIC_HURT = auto()
    ATTACK1 = auto()
    ATTACK2 = auto()
    ATTACK3 = auto()


class EntityType(Enum):
    PLAYER = auto()
    SKLETORUS = auto()


class EntityState(Enum):
    IDLE = auto()
    MOVING = auto()
    ATTACKING = auto()


class AIState(Enum):
    NONE = auto()
    PATROLLING = auto()
    CHASING = auto()
    ATTACKING = auto()


Vec2 = tuple[float, float]
Cell = tuple[int, int]
Rect = tuple[int, int, int, int]


@dataclass
class AnimationFrame:
    """One frame of an animation: texture rectangle (left, top, width, height) and offset."""

    frame_rect: Rect = (0, 0, 0, 0)
    offset: Vec2 = (0.0, 0.0)


@dataclass
class AttackData:
    damage_multiplier: float = 1.0
    speed_multiplier: float = 1.0
    hit_offsets: dict[Direction, list[Cell]] = field(default_factory=dict)


@dataclass
class SpriteComponent:
    texture: Any = None
    position: Vec2 = (0.0, 0.0)
    texture_rect: Rect = (0, 0, 0, 0)


@dataclass
class DirectionComponent:
    current: Direction = Direction.BOTTOM
    next: Direction = Direction.BOTTOM


@dataclass
class AnimationComponent:
    current_index: int = 0
    timer: float = 0.0
    frame_duration: float = 0.0
    frames: Optional[list[AnimationFrame]] = None
    current_id: AnimationId = AnimationId.GENERIC_WALK
    default_id: AnimationId = AnimationId.GENERIC_WALK
    start_position: Vec2 = (0.0, 0.0)
    apply_offset: bool = False


@dataclass
class EntityStateComponent:
    state: EntityState = EntityState.IDLE


@dataclass
class EntityTypeComponent:
    entity_type: EntityType


@dataclass
class AttackComponent:
    attack_data: dict[AnimationId, AttackData] = field(default_factory=dict)
    next_attack_id: AnimationId = AnimationId.ATTACK1
    last_attack_id: AnimationId = AnimationId.ATTACK1
    last_attack_data: Optional[AttackData] = None
    cooldown_timer: float = 0.0


@dataclass
class CombatStatsComponent:
    attack_damage: int = 0
    attack_range: int = 1
    attack_speed: float = 1.0
    defence: int = 0
    health: int = 100
    max_health: int = 100


@dataclass
class HealthBarComponent:
    visible_timer: int = 0
    visible: bool = False
    background_size: Vec2 = (0.0, 0.0)
    foreground_size: Vec2 = (0.0, 0.0)
    background_position: Vec2 = (0.0, 0.0)
    foreground_position: Vec2 = (0.0, 0.0)


@dataclass
class MovementComponent:
    move_speed: float = 130.0


@dataclass
class FieldOfViewComponent:
    range: int = 1


@dataclass
class TagComponent:
    tag: str = ""


@dataclass
class PlayerComponent:
    pass


@dataclass
class EnemyComponent:
    pass


@dataclass
class EntityAIStateComponent:
    state: AIState = AIState.NONE


@dataclass
class PatrolAIComponent:
    delay: float = 0.0
    timer: float = 0.0


@dataclass
class ChaseAIComponent:
    target: Any = None
    time_since_recalculation: float = 0.0
    unreachable_retries: int = 0


@dataclass
class PathComponent:
    cells: deque = field(default_factory=deque)


@dataclass
class AITimersComponent:
    since_los_check: float = 0.0


@dataclass
class BehaviorComponent:
    behavior: Any = None


def entity_cell(entity: Any, cell_size: Vec2) -> Cell:
    """Return the grid cell that holds the entity's sprite position."""
    x, y = entity.get_component(SpriteComponent).position
    width, height = cell_size
    return int(x // width), int(y // height)


def is_idle(entity: Any) -> bool:
    """Return True when the entity is in the idle state."""
    return entity.get_component(EntityStateComponent).state is EntityState.IDLE