import pytest

from cryptcrawl.components import (
    EnemyComponent,
    MovementComponent,
    PlayerComponent,
    TagComponent,
)
from cryptcrawl.entity import Entity, EntityManager, PlayerNotFoundError


def test_add_component_returns_stored_component():
    entity = Entity(7)
    comp = entity.add_component(TagComponent("hero"))
    assert entity.get_component(TagComponent) is comp


def test_add_component_twice_keeps_first():
    entity = Entity(1)
    first = entity.add_component(MovementComponent(10.0))
    again = entity.add_component(MovementComponent(99.0))
    assert again is first
    assert entity.get_component(MovementComponent).move_speed == 10.0


def test_has_and_remove_component():
    entity = Entity(1)
    entity.add_component(EnemyComponent())
    assert entity.has_component(EnemyComponent)
    entity.remove_component(EnemyComponent)
    assert not entity.has_component(EnemyComponent)
    entity.remove_component(EnemyComponent)
    assert not entity.has_component(EnemyComponent)


def test_get_missing_component_raises():
    with pytest.raises(KeyError):
        Entity(1).get_component(PlayerComponent)


def test_entity_id_kept():
    assert Entity(42).entity_id == 42


def test_manager_ids_start_at_zero_and_increase():
    manager = EntityManager()
    ids = [manager.create_entity().entity_id for _ in range(3)]
    assert ids == [0, 1, 2]


def test_get_entity_and_remove():
    manager = EntityManager()
    entity = manager.create_entity()
    assert manager.get_entity(entity.entity_id) is entity
    manager.remove_entity(entity.entity_id)
    assert manager.get_entity(entity.entity_id) is None
    assert len(manager) == 0


def test_ids_not_reused_after_removal():
    manager = EntityManager()
    first = manager.create_entity()
    manager.remove_entity(first.entity_id)
    second = manager.create_entity()
    assert second.entity_id > first.entity_id


def test_entities_with_components():
    manager = EntityManager()
    a = manager.create_entity()
    a.add_component(EnemyComponent())
    a.add_component(TagComponent("a"))
    b = manager.create_entity()
    b.add_component(EnemyComponent())
    manager.create_entity()
    assert manager.entities_with_components(EnemyComponent) == [a, b]
    assert manager.entities_with_components(EnemyComponent, TagComponent) == [a]
    assert len(manager.entities_with_components()) == 3


def test_get_player():
    manager = EntityManager()
    manager.create_entity()
    player = manager.create_entity()
    player.add_component(PlayerComponent())
    assert manager.get_player() is player


def test_get_player_missing_raises():
    manager = EntityManager()
    manager.create_entity()
    with pytest.raises(PlayerNotFoundError):
        manager.get_player()