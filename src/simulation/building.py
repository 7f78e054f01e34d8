from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List, Optional

from .config import SimulationConfig
from .elevator import Elevator
from .floor import Floor


@dataclass
class Building:
    """Container for the floors and elevators of a single simulation."""

    config: SimulationConfig
    floors: List[Floor] = field(init=False)
    elevators: List[Elevator] = field(init=False)

    def __post_init__(self) -> None:
        self.floors = [
            Floor(
                level=level,
                current_population=self.config.initial_people.get(level, 0),
                priority=self.config.floor_priorities.get(level, 0.0),
            )
            for level in range(self.config.floors)
        ]
        self.elevators = [Elevator(id=i, capacity=self.config.max_capacity) for i in range(self.config.elevators)]

    def get_floor(self, level: int) -> Optional[Floor]:
        if 0 <= level < len(self.floors):
            return self.floors[level]
        return None

    def onboard_count(self) -> int:
        return sum(len(elevator.passengers) for elevator in self.elevators)

    def waiting_count(self) -> int:
        return sum(len(floor.waiting_queue) for floor in self.floors)

    def resident_count(self) -> int:
        return sum(floor.current_population for floor in self.floors)

    def is_idle(self) -> bool:
        return all(e.is_free() for e in self.elevators) and not any(f.has_waiting() for f in self.floors)

    def snapshot(self) -> dict:
        return {
            "floors": copy.deepcopy(self.floors),
            "elevators": copy.deepcopy(self.elevators),
        }
