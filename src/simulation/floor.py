from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List

from .person import Person


@dataclass
class Floor:
    """A floor with its resident population and a FIFO waiting queue."""

    level: int
    current_population: int = 0
    priority: float = 0.0
    waiting_queue: Deque[Person] = field(default_factory=deque)

    def has_waiting(self) -> bool:
        return bool(self.waiting_queue)

    def spawn(self, destination: int, count: int, time_step: int) -> List[Person]:
        """Move ``count`` residents into the waiting queue.

        The spawn is all-or-nothing: if the floor does not hold enough
        people nothing changes and an empty list is returned.
        """

        if count < 0 or self.current_population < count:
            return []
        spawned = [Person(source_floor=self.level, dest_floor=destination, spawn_time=time_step) for _ in range(count)]
        self.current_population -= count
        self.waiting_queue.extend(spawned)
        return spawned

    def pop_waiting(self) -> Person:
        return self.waiting_queue.popleft()

    def receive(self, count: int = 1) -> None:
        self.current_population += count

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "currentPopulation": self.current_population,
            "priority": self.priority,
            "waitingQueue": [p.to_dict() for p in self.waiting_queue],
        }
