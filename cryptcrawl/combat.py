"""Systems for starting attacks, resolving hits, entity death and health bars."""

from __future__ import annotations

from typing import Any

from cryptcrawl.components import (
    AIState,
    AttackComponent,
    AttackData,
    CombatStatsComponent,
    DirectionComponent,
    EnemyComponent,
    EntityAIStateComponent,
    EntityState,
    EntityStateComponent,
    HealthBarComponent,
    PlayerComponent,
    SpriteComponent,
    entity_cell,
    is_idle,
)
from cryptcrawl.entity import Entity
from cryptcrawl.events import (
    AttackAnimationFinishedEvent,
    EntityDiedEvent,
    HealthBarUpdateEvent,
    HitByAttackEvent,
    PlayAttackAnimationEvent,
    RemoveEntityFromSystemEvent,
    ReserveTileEvent,
    StartAttackingEvent,
    TileVacatedEvent,
)
from cryptcrawl.system import System, SystemContext

Vec2 = tuple[float, float]

_MAX_BAR_VISIBLE_MS = 1700
_BAR_OFFSET = (7.0, 2.0)
_FOREGROUND_INSET = (1.0, 1.0)


class AttackSystem(System):
    """Starts queued attacks once entities are idle and resolves what they hit.

    ``tile_map`` must offer ``entities_on_tile(x, y)`` returning the entities on a cell.
    """

    def __init__(
        self,
        context: SystemContext,
        tile_map: Any,
        cell_size: Vec2 = (64.0, 64.0),
    ) -> None:
        super().__init__(context)
        self.tile_map = tile_map
        self.cell_size = cell_size
        self._finished: list[Entity] = []
        context.event_manager.register(StartAttackingEvent, self._on_start_attacking)
        context.event_manager.register(AttackAnimationFinishedEvent, self._on_attack_finished)

    def update(self, delta_ms: float) -> None:
        for entity in list(self.tracked_entities):
            if is_idle(entity):
                self._start_attack(entity)
        finished = self._finished
        self.tracked_entities[:] = [
            e for e in self.tracked_entities if not any(e is f for f in finished)
        ]
        self._finished = []

    def hit_entities(self, entity: Entity, data: AttackData) -> list[Entity]:
        """Return the opposing entities on the cells the attack covers."""
        direction = entity.get_component(DirectionComponent).current
        offsets = data.hit_offsets.get(direction)
        if offsets is None:
            return []
        attacker_is_player = entity.has_component(PlayerComponent)
        victim_type = EnemyComponent if attacker_is_player else PlayerComponent
        x, y = entity_cell(entity, self.cell_size)
        return [
            target
            for dx, dy in offsets
            for target in self.tile_map.entities_on_tile(x + dx, y + dy)
            if target.has_component(victim_type)
        ]

    def _start_attack(self, entity: Entity) -> None:
        entity.get_component(EntityStateComponent).state = EntityState.ATTACKING
        if entity.has_component(EntityAIStateComponent):
            entity.get_component(EntityAIStateComponent).state = AIState.ATTACKING
        anim_id = entity.get_component(AttackComponent).next_attack_id
        self.context.event_manager.notify(PlayAttackAnimationEvent(entity, anim_id))
        self._finished.append(entity)

    def _on_start_attacking(self, event: StartAttackingEvent) -> None:
        if self.is_tracked(event.entity) or not is_idle(event.entity):
            return
        event.entity.get_component(AttackComponent).next_attack_id = event.anim_id
        self.tracked_entities.append(event.entity)

    def _on_attack_finished(self, event: AttackAnimationFinishedEvent) -> None:
        if event.last_attack_data is None:
            return
        hits = self.hit_entities(event.entity, event.last_attack_data)
        if hits:
            self.context.event_manager.notify(HitByAttackEvent(event.entity, hits))


class EntityDeathSystem(System):
    """Frees the tiles of dead entities and removes them from the game."""

    def __init__(self, context: SystemContext) -> None:
        super().__init__(context)
        self._dead: list[Entity] = []
        context.event_manager.register(EntityDiedEvent, self._on_entity_died)

    def update(self, delta_ms: float) -> None:
        dead, self._dead = self._dead, []
        finished_ids = []
        for entity in dead:
            self._mark_dead(entity)
            finished_ids.append(entity.entity_id)
        for entity_id in finished_ids:
            self.context.entity_manager.remove_entity(entity_id)

    def _on_entity_died(self, event: EntityDiedEvent) -> None:
        self._dead.append(event.entity)

    def _mark_dead(self, entity: Entity) -> None:
        position = entity.get_component(SpriteComponent).position
        events = self.context.event_manager
        events.notify(TileVacatedEvent(entity, position))
        events.notify(ReserveTileEvent(None, position))
        events.notify(RemoveEntityFromSystemEvent(entity))


class BarRenderSystem(System):
    """Shows an entity's health bar for a short while after its health changes.

    ``render`` calls ``target.draw((position, size))`` for the background, then the
    foreground of every visible bar.
    """

    def __init__(
        self,
        context: SystemContext,
        cell_size: Vec2 = (64.0, 64.0),
        player_bar_size: Vec2 = (50.0, 8.0),
        enemy_bar_size: Vec2 = (50.0, 6.0),
        boss_bar_size: Vec2 = (200.0, 12.0),
    ) -> None:
        super().__init__(context)
        self.cell_size = cell_size
        self.player_bar_size = player_bar_size
        self.enemy_bar_size = enemy_bar_size
        self.boss_bar_size = boss_bar_size
        context.event_manager.register(HealthBarUpdateEvent, self._on_health_update)

    def update(self, delta_ms: float) -> None:
        for entity in self.tracked_entities:
            bar = entity.get_component(HealthBarComponent)
            bar.visible_timer += delta_ms
            if bar.visible_timer >= _MAX_BAR_VISIBLE_MS:
                bar.visible = False
                continue
            self._update_bar_position(entity)
        self.tracked_entities[:] = [
            e for e in self.tracked_entities if e.get_component(HealthBarComponent).visible
        ]

    def render(self, target: Any) -> None:
        for entity in self.tracked_entities:
            bar = entity.get_component(HealthBarComponent)
            if bar.visible:
                target.draw((bar.background_position, bar.background_size))
                target.draw((bar.foreground_position, bar.foreground_size))

    def _bar_size_for(self, entity: Entity) -> Vec2:
        if entity.has_component(PlayerComponent):
            return self.player_bar_size
        if entity.has_component(EnemyComponent):
            return self.enemy_bar_size
        return self.boss_bar_size

    @staticmethod
    def _scaled_size(entity: Entity, original: Vec2) -> Vec2:
        stats = entity.get_component(CombatStatsComponent)
        ratio = stats.health / stats.max_health if stats.max_health > 0 else 0.0
        ratio = min(max(ratio, 0.0), 1.0)
        return (original[0] * ratio, original[1])

    def _on_health_update(self, event: HealthBarUpdateEvent) -> None:
        entity = event.entity
        bar = entity.get_component(HealthBarComponent)
        bar.visible_timer = 0
        bar.visible = True
        original = self._bar_size_for(entity)
        bar.background_size = original
        bar.foreground_size = self._scaled_size(entity, original)
        if not self.is_tracked(entity):
            self.tracked_entities.append(entity)

    def _update_bar_position(self, entity: Entity) -> None:
        bar = entity.get_component(HealthBarComponent)
        cx, cy = entity_cell(entity, self.cell_size)
        x = cx * self.cell_size[0] + _BAR_OFFSET[0]
        y = cy * self.cell_size[1] + _BAR_OFFSET[1]
        bar.background_position = (x, y)
        bar.foreground_position = (x + _FOREGROUND_INSET[0], y + _FOREGROUND_INSET[1])