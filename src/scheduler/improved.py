from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from simulation.config import SimulationConfig
from simulation.elevator import Elevator, ElevatorState
from simulation.floor import Floor

from .utils import distance, effective_distribution, is_heading_towards, nearest, pick_largest_deficit

LOBBY = 0
HIGH_PRIORITY_THRESHOLD = 1


class ImprovedPolicy:
    """Capacity-aware request coverage plus proportional idle parking.

    Each tick runs two phases. Waiting floors whose queue exceeds the
    capacity already heading there get the nearest suitable car (an
    in-bound moving car or an idle one). Cars left with nothing to do are
    then spread over the building in proportion to floor priority or
    population.
    """

    def update(self, elevators: List[Elevator], floors: List[Floor], config: SimulationConfig) -> None:
        self._reconcile_targets(elevators)
        self._cover_requests(elevators, floors, config.max_capacity)
        self._park_idle(elevators, floors)

    def _reconcile_targets(self, elevators: List[Elevator]) -> None:
        for elevator in elevators:
            elevator.clear_target(elevator.current_floor)
            for person in elevator.passengers:
                elevator.assign_target(person.dest_floor)

    def _cover_requests(self, elevators: List[Elevator], floors: List[Floor], capacity: int) -> None:
        for floor in floors:
            if not floor.has_waiting():
                continue
            incoming = [e for e in elevators if floor.level in e.target_floors]
            if len(incoming) * capacity >= len(floor.waiting_queue):
                continue

            moving = self._nearest_moving(elevators, floor.level, capacity)
            idle = nearest((e for e in elevators if e.state == ElevatorState.IDLE and not e.target_floors), floor.level)
            if moving is not None and idle is not None:
                chosen = moving if distance(moving, floor.level) <= distance(idle, floor.level) else idle
            else:
                chosen = moving or idle

            if chosen is not None and chosen.assign_target(floor.level):
                chosen.target_floors.sort()

    def _nearest_moving(self, elevators: List[Elevator], level: int, capacity: int) -> Optional[Elevator]:
        candidates = (
            e
            for e in elevators
            if e.state == ElevatorState.MOVING and len(e.passengers) < capacity and is_heading_towards(e, level)
        )
        return nearest(candidates, level)

    def _park_idle(self, elevators: List[Elevator], floors: List[Floor]) -> None:
        free = [e for e in elevators if e.is_free()]
        if not free:
            return

        priority_floors = [f for f in floors if f.priority > HIGH_PRIORITY_THRESHOLD]
        populated_floors = [f for f in floors if f.current_population > 0]
        distribution = effective_distribution(elevators, floors)
        fleet_size = len(elevators)

        shares: Optional[List[Tuple[int, float]]] = None
        if priority_floors:
            shares = self._hierarchical_shares(priority_floors, fleet_size)
        elif populated_floors:
            shares = self._population_shares(populated_floors, fleet_size)

        for elevator in free:
            if shares is None:
                best: Optional[int] = LOBBY
            else:
                best = pick_largest_deficit(elevator, shares, distribution)

            if best is not None and best != elevator.current_floor:
                elevator.target_floors.append(best)
                distribution[best] = distribution.get(best, 0) + 1

    def _hierarchical_shares(self, priority_floors: List[Floor], fleet_size: int) -> List[Tuple[int, float]]:
        """Split the fleet across priority groups, then across each group's floors by population."""

        total_priority = sum(f.priority for f in priority_floors)
        if total_priority == 0:
            return []

        groups: Dict[float, List[Floor]] = defaultdict(list)
        for floor in priority_floors:
            groups[floor.priority].append(floor)

        shares: List[Tuple[int, float]] = []
        for floor in priority_floors:
            group = groups[floor.priority]
            group_share = sum(f.priority for f in group) / total_priority * fleet_size
            group_population = sum(f.current_population for f in group)
            if group_population > 0:
                floor_share = floor.current_population / group_population * group_share
            else:
                floor_share = group_share / len(group)
            shares.append((floor.level, floor_share))
        return shares

    def _population_shares(self, populated_floors: List[Floor], fleet_size: int) -> List[Tuple[int, float]]:
        total_population = sum(f.current_population for f in populated_floors)
        if total_population == 0:
            return []
        return [(f.level, f.current_population / total_population * fleet_size) for f in populated_floors]
