from __future__ import annotations

from typing import List

from simulation.config import SimulationConfig
from simulation.elevator import Elevator
from simulation.floor import Floor


class NaivePolicy:
    """Sends each uncommitted elevator to the lowest unclaimed floor with riders waiting.

    An elevator that already has targets is never re-routed, so under
    contention upper floors starve while the fleet shuttles between the
    lowest busy floors.
    """

    def update(self, elevators: List[Elevator], floors: List[Floor], config: SimulationConfig) -> None:
        for elevator in elevators:
            if elevator.target_floors:
                continue
            for floor in floors:
                if not floor.has_waiting():
                    continue
                if any(floor.level in other.target_floors for other in elevators):
                    continue
                elevator.target_floors.append(floor.level)
                break
