"""Base class for game systems and the context they share."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from cryptcrawl.entity import Entity, EntityManager
from cryptcrawl.events import EventManager, RemoveEntityFromSystemEvent


@dataclass
class SystemContext:
    event_manager: EventManager
    entity_manager: EntityManager


class System(ABC):
    """A system that tracks entities and is updated once per frame."""

    def __init__(self, context: SystemContext) -> None:
        self.context = context
        self.tracked_entities: list[Entity] = []
        context.event_manager.register(
            RemoveEntityFromSystemEvent, self._on_remove_entity
        )

    def process_event(self, event: Any) -> None:
        """Handle an input event; the default does nothing."""

    @abstractmethod
    def update(self, delta_ms: float) -> None:
        """Advance the system by ``delta_ms`` milliseconds."""

    def render(self, target: Any) -> None:
        """Draw onto ``target``; the default draws nothing."""

    def is_tracked(self, entity: Entity) -> bool:
        return any(e.entity_id == entity.entity_id for e in self.tracked_entities)

    def _on_remove_entity(self, event: RemoveEntityFromSystemEvent) -> None:
        self.tracked_entities[:] = [
            e for e in self.tracked_entities if e is not event.entity
        ]