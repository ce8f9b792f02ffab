"""Typed game events and a dispatcher that routes them to registered callbacks."""

from __future__ import annotations

import itertools
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

Callback = Callable[[Any], None]


@dataclass(frozen=True)
class EventHandle:
    """Identifies one registered callback so it can be unregistered later."""

    event_type: type
    index: int


class EventManager:
    """Dispatches events to callbacks registered for their exact type."""

    def __init__(self) -> None:
        self._callbacks: dict[type, list[tuple[int, Callback]]] = defaultdict(list)
        self._ids = itertools.count(1)

    def register(self, event_type: type, callback: Callback) -> EventHandle:
        """Register ``callback`` for events of ``event_type``; return its handle."""
        index = next(self._ids)
        self._callbacks[event_type].append((index, callback))
        return EventHandle(event_type, index)

    def notify(self, event: Any) -> None:
        """Call every callback registered for the type of ``event``, in order."""
        for _, callback in list(self._callbacks.get(type(event), ())):
            callback(event)

    def unregister(self, handle: EventHandle) -> None:
        """Remove the callback identified by ``handle``; unknown handles are ignored."""
        callbacks = self._callbacks.get(handle.event_type)
        if callbacks is None:
            return
        callbacks[:] = [pair for pair in callbacks if pair[0] != handle.index]


@dataclass
class StartAttackingEvent:
    entity: Any
    anim_id: Any


@dataclass
class StartChasingEvent:
    entity: Any
    target: Any


@dataclass
class PlayAttackAnimationEvent:
    entity: Any
    anim_id: Any


@dataclass
class AttackAnimationFinishedEvent:
    entity: Any
    last_attack_data: Any = None


@dataclass
class HitByAttackEvent:
    attacker: Any
    hit_entities: list = field(default_factory=list)


@dataclass
class PlayGenericWalkEvent:
    entity: Any


@dataclass
class FinalizeAnimationEvent:
    entity: Any


@dataclass
class PlayEntitySpecificAnimationEvent:
    entity: Any
    key: Any


@dataclass
class MoveRequestedEvent:
    entity: Any
    direction: Any


@dataclass
class MoveAllowedEvent:
    entity: Any
    position: tuple[float, float]


@dataclass
class RequestPathEvent:
    entity: Any


@dataclass
class PlayerMoveFinishedEvent:
    position: tuple[float, float]


@dataclass
class MonsterAppearedEvent:
    entity: Any


@dataclass
class MonsterDisappearedEvent:
    entity: Any


@dataclass
class EntityDiedEvent:
    entity: Any


@dataclass
class TileVacatedEvent:
    entity: Any
    position: tuple[float, float]


@dataclass
class TileOccupiedEvent:
    entity: Any
    position: tuple[float, float]


@dataclass
class ReserveTileEvent:
    entity: Optional[Any]
    position: tuple[float, float]


@dataclass
class RemoveEntityFromSystemEvent:
    entity: Any


@dataclass
class SpawnEntityEvent:
    cell: tuple[int, int]
    entity_type: Any


@dataclass
class HealthBarUpdateEvent:
    entity: Any


@dataclass
class UpdateEntityRenderTilesEvent:
    tiles: list = field(default_factory=list)