from __future__ import annotations

from typing import List, Protocol

from simulation.config import SimulationConfig
from simulation.elevator import Elevator
from simulation.floor import Floor


class DispatchPolicy(Protocol):
    """Strategy interface for assigning target floors to elevators."""

    def update(self, elevators: List[Elevator], floors: List[Floor], config: SimulationConfig) -> None:
        """
        Rewrite ``target_floors`` on any elevator.

        Called once per tick, after boarding and before movement.
        Implementations must not move elevators, board or offload
        passengers, or touch floor queues, and must keep no history
        beyond what the elevator and floor records already hold.
        """
        ...
