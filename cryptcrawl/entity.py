"""Entities as bags of components, and the manager that owns them."""

from __future__ import annotations

import itertools
from typing import Iterator, Optional, TypeVar

from cryptcrawl.components import PlayerComponent

C = TypeVar("C")


class PlayerNotFoundError(LookupError):
    """Raised when no entity carries a PlayerComponent."""


class Entity:
    """A game object identified by an id and holding at most one component per type."""

    def __init__(self, entity_id: int) -> None:
        self._id = entity_id
        self._components: dict[type, object] = {}

    @property
    def entity_id(self) -> int:
        return self._id

    def add_component(self, component: C) -> C:
        """Attach ``component``; if one of its type exists, keep and return that one."""
        return self._components.setdefault(type(component), component)  # type: ignore[return-value]

    def get_component(self, component_type: type[C]) -> C:
        try:
            return self._components[component_type]  # type: ignore[return-value]
        except KeyError:
            raise KeyError(
                f"entity {self._id} has no {component_type.__name__}"
            ) from None

    def has_component(self, component_type: type) -> bool:
        return component_type in self._components

    def remove_component(self, component_type: type) -> None:
        self._components.pop(component_type, None)

    def __repr__(self) -> str:
        return f"Entity({self._id})"


class EntityManager:
    """Creates, looks up and removes entities."""

    def __init__(self) -> None:
        self._entities: list[Entity] = []
        self._ids = itertools.count(0)

    def create_entity(self) -> Entity:
        entity = Entity(next(self._ids))
        self._entities.append(entity)
        return entity

    def get_entity(self, entity_id: int) -> Optional[Entity]:
        return next((e for e in self._entities if e.entity_id == entity_id), None)

    def remove_entity(self, entity_id: int) -> None:
        self._entities = [e for e in self._entities if e.entity_id != entity_id]

    def entities_with_components(self, *args: type) -> list[Entity]:
        """Return entities that carry every one of the given component types."""
        return [e for e in self._entities if all(e.has_component(t) for t in args)]

    def get_player(self) -> Entity:
        for entity in self._entities:
            if entity.has_component(PlayerComponent):
                return entity
        raise PlayerNotFoundError("Player does not exist.")

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities))