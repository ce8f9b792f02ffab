import pytest

from cryptcrawl.events import (
    EntityDiedEvent,
    EventHandle,
    EventManager,
    HitByAttackEvent,
    RequestPathEvent,
)


@pytest.fixture
def manager():
    return EventManager()


def test_notify_calls_registered_callback(manager):
    received = []
    manager.register(EntityDiedEvent, received.append)
    event = EntityDiedEvent("goblin")
    manager.notify(event)
    assert received == [event]


def test_notify_ignores_other_event_types(manager):
    received = []
    manager.register(EntityDiedEvent, received.append)
    manager.notify(RequestPathEvent("goblin"))
    assert received == []


def test_first_handle_index_is_one_and_indices_increase(manager):
    first = manager.register(EntityDiedEvent, lambda e: None)
    second = manager.register(RequestPathEvent, lambda e: None)
    assert first == EventHandle(EntityDiedEvent, 1)
    assert second.index > first.index


def test_callbacks_run_in_registration_order(manager):
    order = []
    manager.register(EntityDiedEvent, lambda e: order.append("a"))
    manager.register(EntityDiedEvent, lambda e: order.append("b"))
    manager.notify(EntityDiedEvent(None))
    assert order == ["a", "b"]


def test_unregister_removes_only_that_callback(manager):
    order = []
    handle = manager.register(EntityDiedEvent, lambda e: order.append("a"))
    manager.register(EntityDiedEvent, lambda e: order.append("b"))
    manager.unregister(handle)
    manager.notify(EntityDiedEvent(None))
    assert order == ["b"]


def test_unregister_unknown_type_leaves_others(manager):
    received = []
    manager.register(EntityDiedEvent, received.append)
    manager.unregister(EventHandle(RequestPathEvent, 99))
    manager.notify(EntityDiedEvent(None))
    assert len(received) == 1


def test_callback_registered_during_notify_not_called_same_round(manager):
    received = []
    late_handles = []

    def late(event):
        received.append("late")

    def first(event):
        received.append("first")
        if not late_handles:
            late_handles.append(manager.register(EntityDiedEvent, late))

    first_handle = manager.register(EntityDiedEvent, first)
    manager.notify(EntityDiedEvent(None))
    assert first_handle == EventHandle(EntityDiedEvent, 1)
    assert late_handles == [EventHandle(EntityDiedEvent, 2)]
    assert received == ["first"]

    manager.notify(EntityDiedEvent(None))
    assert received == ["first", "first", "late"]


def test_hit_event_default_list_is_independent():
    a = HitByAttackEvent("x")
    b = HitByAttackEvent("y")
    a.hit_entities.append(1)
    assert b.hit_entities == []