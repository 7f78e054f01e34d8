from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from simulation.elevator import Elevator
from simulation.floor import Floor

# Deficits closer than this are treated as equal and resolved by distance.
DEFICIT_TIE_EPSILON = 0.01

# Extra deficit credited to the floor an idle elevator already stands on.
STICKINESS_BONUS = 1.2


def distance(elevator: Elevator, level: int) -> int:
    return abs(elevator.current_floor - level)


def is_heading_towards(elevator: Elevator, level: int) -> bool:
    """True when ``level`` lies ahead of the elevator on the heading set by its first target.

    A car without targets counts as heading down.
    """

    target = elevator.next_target()
    going_up = target is not None and target > elevator.current_floor
    if going_up:
        return elevator.current_floor < level
    return elevator.current_floor > level


def effective_distribution(elevators: Iterable[Elevator], floors: Iterable[Floor]) -> Dict[int, int]:
    """Count elevators per floor, placing an empty car with one pending target at that target."""

    distribution = {floor.level: 0 for floor in floors}
    for elevator in elevators:
        location = elevator.current_floor
        if not elevator.passengers and len(elevator.target_floors) == 1:
            location = elevator.target_floors[0]
        distribution[location] = distribution.get(location, 0) + 1
    return distribution


def pick_largest_deficit(
    elevator: Elevator,
    ideal_shares: List[Tuple[int, float]],
    distribution: Dict[int, int],
) -> Optional[int]:
    """Return the floor whose ideal elevator share is least satisfied.

    ``ideal_shares`` holds ``(level, ideal_count)`` pairs. The elevator's own
    floor receives :data:`STICKINESS_BONUS`; near-equal deficits go to the
    floor closer to the elevator.
    """

    best_floor: Optional[int] = None
    max_deficit = float("-inf")
    for level, ideal in ideal_shares:
        deficit = ideal - distribution.get(level, 0)
        if elevator.current_floor == level:
            deficit += STICKINESS_BONUS
        if deficit > max_deficit:
            max_deficit = deficit
            best_floor = level
        elif abs(deficit - max_deficit) < DEFICIT_TIE_EPSILON:
            if distance(elevator, level) < distance(elevator, best_floor):
                best_floor = level
    return best_floor


def nearest(elevators: Iterable[Elevator], level: int) -> Optional[Elevator]:
    best: Optional[Elevator] = None
    for elevator in elevators:
        if best is None or distance(elevator, level) < distance(best, level):
            best = elevator
    return best

