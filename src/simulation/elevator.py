from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .person import Person


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    IDLE = "IDLE"


class ElevatorState(str, Enum):
    IDLE = "IDLE"
    MOVING = "MOVING"
    DOORS_OPEN = "DOORS_OPEN"
    BOARDING = "BOARDING"


@dataclass
class ElevatorStats:
    total_delivered: int = 0
    active_ticks: int = 0


@dataclass
class Elevator:
    """A car in the fleet.

    The engine owns every field except ``target_floors``, which dispatch
    policies are allowed to rewrite once per tick.
    """

    id: int
    capacity: int
    current_floor: int = 0
    direction: Direction = Direction.IDLE
    state: ElevatorState = ElevatorState.IDLE
    passengers: List[Person] = field(default_factory=list)
    target_floors: List[int] = field(default_factory=list)
    stats: ElevatorStats = field(default_factory=ElevatorStats)

    def has_capacity(self) -> bool:
        return len(self.passengers) < self.capacity

    def is_free(self) -> bool:
        return self.state == ElevatorState.IDLE and not self.target_floors and not self.passengers

    def next_target(self) -> Optional[int]:
        return self.target_floors[0] if self.target_floors else None

    def assign_target(self, floor: int) -> bool:
        if floor in self.target_floors:
            return False
        self.target_floors.append(floor)
        return True

    def clear_target(self, floor: int) -> None:
        if floor in self.target_floors:
            self.target_floors = [f for f in self.target_floors if f != floor]

    def unload(self) -> List[Person]:
        """Remove and return the passengers whose destination is the current floor."""
        leaving = [p for p in self.passengers if p.dest_floor == self.current_floor]
        if leaving:
            self.passengers = [p for p in self.passengers if p.dest_floor != self.current_floor]
        return leaving

    def board(self, person: Person) -> None:
        self.passengers.append(person)
        self.assign_target(person.dest_floor)
        self.state = ElevatorState.BOARDING

    def move(self) -> None:
        """Advance one floor toward the first target, or open doors if already there."""
        target = self.next_target()
        if target is None:
            self.state = ElevatorState.IDLE
            self.direction = Direction.IDLE
            return
        self.state = ElevatorState.MOVING
        if target > self.current_floor:
            self.current_floor += 1
            self.direction = Direction.UP
        elif target < self.current_floor:
            self.current_floor -= 1
            self.direction = Direction.DOWN
        else:
            self.state = ElevatorState.DOORS_OPEN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "currentFloor": self.current_floor,
            "direction": self.direction.value,
            "state": self.state.value,
            "passengers": [p.to_dict() for p in self.passengers],
            "targetFloors": list(self.target_floors),
            "stats": {
                "totalDelivered": self.stats.total_delivered,
                "activeTicks": self.stats.active_ticks,
            },
        }
