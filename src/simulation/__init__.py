"""Simulation primitives for the elevator dispatch duel."""

from .building import Building
from .config import ConfigError, SimulationConfig, TrafficEvent
from .elevator import Direction, Elevator, ElevatorState, ElevatorStats
from .floor import Floor
from .person import Person
from .simulation import Simulation, SimulationStats, WorldState

__all__ = [
    "Building",
    "ConfigError",
    "Direction",
    "Elevator",
    "ElevatorState",
    "ElevatorStats",
    "Floor",
    "Person",
    "Simulation",
    "SimulationConfig",
    "SimulationStats",
    "TrafficEvent",
    "WorldState",
]
