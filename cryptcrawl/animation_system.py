"""System that plays walk, attack and entity-specific animations frame by frame."""

from __future__ import annotations

from typing import Any

from cryptcrawl.animations import AnimationHolder, EntityAnimationKey, GenericAnimationKey
from cryptcrawl.components import (
    AnimationComponent,
    AnimationId,
    AttackComponent,
    AttackData,
    CombatStatsComponent,
    DirectionComponent,
    EntityState,
    EntityStateComponent,
    EntityTypeComponent,
    MovementComponent,
    SpriteComponent,
)
from cryptcrawl.entity import Entity
from cryptcrawl.events import (
    AttackAnimationFinishedEvent,
    FinalizeAnimationEvent,
    PlayAttackAnimationEvent,
    PlayEntitySpecificAnimationEvent,
    PlayGenericWalkEvent,
)
from cryptcrawl.system import System, SystemContext

_ATTACK_ANIMATIONS = frozenset({AnimationId.ATTACK1, AnimationId.ATTACK2, AnimationId.ATTACK3})
_OFFSET_CORRECTION = (53.0, 30.0)
_ENTITY_SPECIFIC_FRAME_DURATION = 50.0
_WALK_DISTANCE_TRIM = 3.5
_BASE_ANIMATION_SPEED = 1.0


def is_attack_animation(anim_id: AnimationId) -> bool:
    """Return True for the three attack animations."""
    return anim_id in _ATTACK_ANIMATIONS


class AnimationSystem(System):
    """Advances the frames of tracked entities and finalizes finished animations."""

    def __init__(
        self,
        context: SystemContext,
        animation_holder: AnimationHolder,
        cell_size: tuple[float, float] = (64.0, 64.0),
    ) -> None:
        super().__init__(context)
        self.animation_holder = animation_holder
        self.cell_size = cell_size
        self._finished: list[Entity] = []
        events = context.event_manager
        events.register(PlayGenericWalkEvent, self._on_play_walk)
        events.register(FinalizeAnimationEvent, self._on_finalize)
        events.register(PlayEntitySpecificAnimationEvent, self._on_entity_specific)
        events.register(PlayAttackAnimationEvent, self._on_play_attack)

    def update(self, delta_ms: float) -> None:
        for entity in list(self.tracked_entities):
            anim = entity.get_component(AnimationComponent)
            anim.timer += delta_ms
            if anim.timer >= anim.frame_duration:
                anim.timer = 0.0
                self._advance_frame(entity, anim)
        self._remove_finished()

    # -- frame handling -----------------------------------------------------

    def _apply_current_frame(self, entity: Entity, anim: AnimationComponent) -> None:
        if anim.frames is None or not 0 <= anim.current_index < len(anim.frames):
            raise IndexError("animation has no frame at the current index")
        sprite = entity.get_component(SpriteComponent)
        frame = anim.frames[anim.current_index]
        sprite.texture_rect = frame.frame_rect
        if anim.apply_offset:
            sx, sy = anim.start_position
            ox, oy = frame.offset
            cx, cy = _OFFSET_CORRECTION
            sprite.position = (sx - ox + cx, sy - oy + cy)

    def _advance_frame(self, entity: Entity, anim: AnimationComponent) -> None:
        anim.current_index += 1
        if anim.frames is None or anim.current_index >= len(anim.frames):
            self._finalize(entity, anim)
            return
        self._apply_current_frame(entity, anim)

    def _finalize(self, entity: Entity, anim: AnimationComponent) -> None:
        anim.current_index = 0
        anim.timer = 0.0
        anim.frames = None
        if anim.apply_offset:
            entity.get_component(SpriteComponent).position = anim.start_position
        self._apply_default_frame(entity, anim)
        self._notify_finished(entity, anim)
        entity.get_component(EntityStateComponent).state = EntityState.IDLE
        self._finished.append(entity)

    def _apply_default_frame(self, entity: Entity, anim: AnimationComponent) -> None:
        direction = entity.get_component(DirectionComponent).current
        frame = self.animation_holder.get(GenericAnimationKey(anim.default_id, direction))[0]
        entity.get_component(SpriteComponent).texture_rect = frame.frame_rect

    def _notify_finished(self, entity: Entity, anim: AnimationComponent) -> None:
        if not is_attack_animation(anim.current_id):
            return
        attack = entity.get_component(AttackComponent)
        attack.last_attack_id = attack.next_attack_id
        self.context.event_manager.notify(
            AttackAnimationFinishedEvent(entity, attack.last_attack_data)
        )

    def _remove_finished(self) -> None:
        finished = self._finished
        self.tracked_entities[:] = [
            e for e in self.tracked_entities if not any(e is f for f in finished)
        ]
        self._finished = []

    # -- event handlers -----------------------------------------------------

    def _on_play_walk(self, event: PlayGenericWalkEvent) -> None:
        entity = event.entity
        anim = entity.get_component(AnimationComponent)
        move = entity.get_component(MovementComponent)
        key = GenericAnimationKey(
            AnimationId.GENERIC_WALK, entity.get_component(DirectionComponent).current
        )
        anim.current_index = 0
        anim.timer = 0.0
        anim.current_id = key.id
        anim.frames = self.animation_holder.get(key)
        anim.start_position = entity.get_component(SpriteComponent).position
        anim.frame_duration = (
            (self.cell_size[0] - _WALK_DISTANCE_TRIM) / move.move_speed / len(anim.frames)
        ) * 1000.0
        anim.apply_offset = False
        self._apply_current_frame(entity, anim)
        self.tracked_entities.append(entity)

    def _on_finalize(self, event: FinalizeAnimationEvent) -> None:
        self._finalize(event.entity, event.entity.get_component(AnimationComponent))

    def _on_entity_specific(self, event: PlayEntitySpecificAnimationEvent) -> None:
        entity = event.entity
        anim = entity.get_component(AnimationComponent)
        if anim.frames:
            return
        entity.get_component(EntityStateComponent).state = EntityState.ATTACKING
        anim.current_index = 0
        anim.timer = 0.0
        anim.frame_duration = _ENTITY_SPECIFIC_FRAME_DURATION
        anim.frames = self.animation_holder.get(event.key)
        anim.start_position = entity.get_component(SpriteComponent).position
        anim.apply_offset = True
        self._apply_current_frame(entity, anim)
        self.tracked_entities.append(entity)

    def _on_play_attack(self, event: PlayAttackAnimationEvent) -> None:
        entity: Any = event.entity
        if self.is_tracked(entity) or not is_attack_animation(event.anim_id):
            return

        key = EntityAnimationKey(
            event.anim_id,
            entity.get_component(DirectionComponent).current,
            entity.get_component(EntityTypeComponent).entity_type,
        )
        anim = entity.get_component(AnimationComponent)
        anim.apply_offset = True
        anim.current_index = 0
        anim.start_position = entity.get_component(SpriteComponent).position
        anim.timer = 0.0
        anim.frames = self.animation_holder.get(key)
        anim.current_id = event.anim_id

        attack = entity.get_component(AttackComponent)
        attack.last_attack_data = attack.attack_data.setdefault(event.anim_id, AttackData())
        attack.last_attack_id = event.anim_id

        stats = entity.get_component(CombatStatsComponent)
        full_time = _BASE_ANIMATION_SPEED / (
            stats.attack_speed * attack.last_attack_data.speed_multiplier
        )
        full_time *= 1000.0
        attack.cooldown_timer = full_time
        anim.frame_duration = full_time / float(len(anim.frames))

        self.tracked_entities.append(entity)