"""AI behaviours that queue tasks and decide what an enemy does next."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from cryptcrawl.components import (
    AIState,
    AITimersComponent,
    AnimationId,
    ChaseAIComponent,
    CombatStatsComponent,
    Direction,
    DirectionComponent,
    EntityAIStateComponent,
    EntityState,
    EntityStateComponent,
    FieldOfViewComponent,
    entity_cell,
    is_idle,
)
from cryptcrawl.entity import EntityManager
from cryptcrawl.events import EventManager
from cryptcrawl.tasks import AttackTask, ChaseTask, DelayTask, Task

Cell = tuple[int, int]

_NEIGHBOUR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))
_LOS_CHECK_COOLDOWN = 200.0
_MAX_UNREACHABLE_RETRIES = 5


@dataclass
class BehaviorContext:
    """What a behaviour needs to see the world and talk to the systems."""

    event_manager: EventManager
    entity_manager: EntityManager
    tile_map: Any
    cell_size: tuple[float, float] = (64.0, 64.0)
    rng: random.Random = field(default_factory=random.Random)


@dataclass
class StartPatrollingEvent:
    entity: Any


class _WaitUntilIdleTask(Task):
    """Completes as soon as the entity is idle."""

    def update(self, entity: Any, event_manager: EventManager, delta_ms: float) -> None:
        if is_idle(entity):
            self.complete()


class _PatrolTask(Task):
    """Asks for the entity to start patrolling, then completes."""

    def update(self, entity: Any, event_manager: EventManager, delta_ms: float) -> None:
        if self.is_complete:
            return
        event_manager.notify(StartPatrollingEvent(entity))
        self.complete()


class Behavior(ABC):
    """Base for behaviours: a queue of tasks run front first."""

    def __init__(self, context: BehaviorContext) -> None:
        self.context = context
        self.tasks: deque[Task] = deque()

    @abstractmethod
    def update(self, entity: Any, delta_ms: float) -> None:
        """Advance the behaviour for ``entity`` by ``delta_ms`` milliseconds."""

    def push_task(self, task: Task) -> None:
        self.tasks.append(task)

    def update_front_task(self, entity: Any, delta_ms: float) -> None:
        self.tasks[0].update(entity, self.context.event_manager, delta_ms)

    def pop_completed_tasks(self) -> None:
        while self.tasks and self.tasks[0].is_complete:
            self.tasks.popleft()

    def has_tasks(self) -> bool:
        return bool(self.tasks)

    def is_cell_reachable(self, cell: Cell) -> bool:
        """True when at least one of the four neighbours of ``cell`` is walkable."""
        x, y = cell
        return any(
            self.context.tile_map.is_tile_walkable(x + dx, y + dy)
            for dx, dy in _NEIGHBOUR_OFFSETS
        )

    def is_entity_reachable(self, entity: Any) -> bool:
        return self.is_cell_reachable(self._cell_of(entity))

    def push_delay_task(self, interval: int) -> None:
        self.push_task(DelayTask(interval))

    def random_delay(self, min_interval: int) -> int:
        """Return a random delay in [min_interval, min_interval * 1.3]."""
        max_interval = min_interval + int(min_interval * 0.3)
        return self.context.rng.randint(min_interval, max_interval)

    def _cell_of(self, entity: Any) -> Cell:
        return entity_cell(entity, self.context.cell_size)


class BasicMeleeBehavior(Behavior):
    """Patrols, chases the player when seen, and attacks when adjacent."""

    def update(self, entity: Any, delta_ms: float) -> None:
        entity.get_component(AITimersComponent).since_los_check += delta_ms
        if self.has_tasks():
            self.update_front_task(entity, delta_ms)
            self.pop_completed_tasks()
            return
        self._determine_next_task(entity)

    def _determine_next_task(self, entity: Any) -> None:
        state = entity.get_component(EntityAIStateComponent).state
        player = self.context.entity_manager.get_player()

        if state is not AIState.ATTACKING and self._can_attack(entity, player):
            self._swap_to_attacking(entity, player)
            return

        if state is AIState.NONE:
            self._swap_to_patrol()
        elif state is AIState.PATROLLING:
            self._handle_patrolling(entity, player)
        elif state is AIState.CHASING:
            self._handle_chasing(entity, player)
        elif state is AIState.ATTACKING:
            self._handle_attacking(entity, player)
        self.push_delay_task(self.random_delay(90))

    # -- perception ---------------------------------------------------------

    def _within_fov(self, entity: Any, target: Any) -> bool:
        ex, ey = self._cell_of(entity)
        tx, ty = self._cell_of(target)
        fov = entity.get_component(FieldOfViewComponent).range
        return max(abs(tx - ex), abs(ty - ey)) <= fov

    def _can_attack(self, entity: Any, target: Any) -> bool:
        ex, ey = self._cell_of(entity)
        tx, ty = self._cell_of(target)
        attack_range = entity.get_component(CombatStatsComponent).attack_range
        return abs(tx - ex) + abs(ty - ey) <= attack_range

    def _can_chase(self, entity: Any, target: Any) -> bool:
        if not self._within_fov(entity, target):
            return False
        entity.get_component(AITimersComponent).since_los_check = 0.0
        return self.context.tile_map.is_line_of_sight_clear(
            self._cell_of(entity), self._cell_of(target)
        )

    @staticmethod
    def _can_cast_los(entity: Any) -> bool:
        return entity.get_component(AITimersComponent).since_los_check >= _LOS_CHECK_COOLDOWN

    def _direction_to(self, entity: Any, target: Any) -> Direction:
        ex, ey = self._cell_of(entity)
        tx, ty = self._cell_of(target)
        dx, dy = tx - ex, ty - ey
        if abs(dx) >= abs(dy) and dx != 0:
            return Direction.RIGHT if dx > 0 else Direction.LEFT
        return Direction.BOTTOM if dy > 0 else Direction.UP

    # -- state changes ------------------------------------------------------

    def _swap_to_patrol(self) -> None:
        self.push_task(_WaitUntilIdleTask())
        self.push_task(_PatrolTask())
        self.push_delay_task(self.random_delay(250))

    def _swap_to_chase(self, target: Any) -> None:
        self.push_task(_WaitUntilIdleTask())
        self.push_task(ChaseTask(target))
        self.push_delay_task(self.random_delay(250))

    def _swap_to_attacking(self, entity: Any, target: Any) -> None:
        entity.get_component(DirectionComponent).current = self._direction_to(entity, target)
        self.push_task(_WaitUntilIdleTask())
        self.push_task(AttackTask(AnimationId.ATTACK1))
        self.push_delay_task(self.random_delay(250))

    # -- per-state logic ----------------------------------------------------

    def _handle_patrolling(self, entity: Any, player: Any) -> None:
        if not self._can_cast_los(entity):
            self.push_delay_task(self.random_delay(200))
            return
        if not self.is_entity_reachable(player):
            self.push_delay_task(self.random_delay(150))
            return
        if self._can_chase(entity, player) and self.context.tile_map.does_path_exist(
            entity, player
        ):
            self._swap_to_chase(player)

    def _handle_chasing(self, entity: Any, player: Any) -> None:
        if self._can_attack(entity, player):
            self._swap_to_attacking(entity, player)
            return

        chase = entity.get_component(ChaseAIComponent)
        if chase.target is None:
            self._swap_to_patrol()
            return

        reachable = self.is_entity_reachable(chase.target)
        path_exists = self.context.tile_map.does_path_exist(entity, chase.target)
        if reachable and path_exists:
            chase.unreachable_retries = 0
        else:
            chase.unreachable_retries += 1
            if chase.unreachable_retries <= _MAX_UNREACHABLE_RETRIES:
                self.push_delay_task(self.random_delay(150))
            else:
                self._swap_to_patrol()
            return

        if not self._within_fov(chase.target, player):
            self._swap_to_patrol()

    def _handle_attacking(self, entity: Any, player: Any) -> None:
        if self._can_attack(entity, player):
            if entity.get_component(EntityStateComponent).state is EntityState.IDLE:
                self._swap_to_attacking(entity, player)
        else:
            self._swap_to_chase(player)