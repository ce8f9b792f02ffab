"""Small AI tasks queued by behaviours and run one at a time."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from cryptcrawl.events import EventManager, StartAttackingEvent, StartChasingEvent


class Task(ABC):
    """A unit of AI work that marks itself complete when done."""

    def __init__(self) -> None:
        self._complete = False

    @property
    def is_complete(self) -> bool:
        return self._complete

    def complete(self) -> None:
        self._complete = True

    @abstractmethod
    def update(self, entity: Any, event_manager: EventManager, delta_ms: float) -> None:
        """Advance the task by ``delta_ms`` milliseconds."""


class DelayTask(Task):
    """Waits for ``interval`` milliseconds."""

    def __init__(self, interval: int) -> None:
        super().__init__()
        self.remaining = int(interval)

    def update(self, entity: Any, event_manager: EventManager, delta_ms: float) -> None:
        self.remaining -= int(delta_ms)
        if self.remaining <= 0:
            self.complete()


class AttackTask(Task):
    """Asks for one attack with the given animation, then completes."""

    def __init__(self, anim_id: Any) -> None:
        super().__init__()
        self.anim_id = anim_id

    def update(self, entity: Any, event_manager: EventManager, delta_ms: float) -> None:
        if self.is_complete:
            return
        event_manager.notify(StartAttackingEvent(entity, self.anim_id))
        self.complete()


class ChaseTask(Task):
    """Asks for the entity to start chasing ``target``, then completes."""

    def __init__(self, target: Any) -> None:
        super().__init__()
        self.target = target

    def update(self, entity: Any, event_manager: EventManager, delta_ms: float) -> None:
        if self.is_complete:
            return
        event_manager.notify(StartChasingEvent(entity, self.target))
        self.complete()