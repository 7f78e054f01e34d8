from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List

from .building import Building
from .config import SimulationConfig, TrafficEvent
from .elevator import Elevator, ElevatorState
from .floor import Floor

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from scheduler import DispatchPolicy

logger = logging.getLogger(__name__)


@dataclass
class SimulationStats:
    algorithm_name: str
    total_delivered: int
    avg_waiting_time: float
    avg_transit_time: float
    elevator_utilization: float

    def to_dict(self) -> dict:
        return {
            "algorithmName": self.algorithm_name,
            "totalDelivered": self.total_delivered,
            "avgWaitingTime": self.avg_waiting_time,
            "avgTransitTime": self.avg_transit_time,
            "elevatorUtilization": self.elevator_utilization,
        }


@dataclass
class WorldState:
    """Point-in-time copy of a simulation; mutating it never touches the engine."""

    tick: int
    elevators: List[Elevator]
    floors: List[Floor]
    stats: SimulationStats

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "elevators": [e.to_dict() for e in self.elevators],
            "floors": [f.to_dict() for f in self.floors],
            "stats": self.stats.to_dict(),
        }


class StatsTracker:
    def __init__(self) -> None:
        self.total_wait_time: int = 0
        self.total_transit_time: int = 0
        self.delivered: int = 0
        self.spawned: int = 0

    def record_boarding(self, wait_time: int) -> None:
        self.total_wait_time += wait_time

    def record_delivery(self, transit_time: int) -> None:
        self.total_transit_time += transit_time
        self.delivered += 1

    def average_wait(self, onboard: int) -> float:
        boarded = self.delivered + onboard
        if boarded == 0:
            return 0.0
        return self.total_wait_time / boarded

    def average_transit(self) -> float:
        if self.delivered == 0:
            return 0.0
        return self.total_transit_time / self.delivered


class Simulation:
    """Discrete-tick elevator simulation driven by a pluggable dispatch policy."""

    def __init__(self, config: SimulationConfig, policy: "DispatchPolicy", label: str) -> None:
        config.validate()
        self.config = config.copy()
        self.policy = policy
        self.label = label
        self.building = Building(self.config)
        self.current_tick: int = 0
        self.stats = StatsTracker()
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}

    @property
    def floors(self) -> List[Floor]:
        return self.building.floors

    @property
    def elevators(self) -> List[Elevator]:
        return self.building.elevators

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def set_floor_priority(self, level: int, priority: float) -> None:
        floor = self.building.get_floor(level)
        if floor is None:
            return
        floor.priority = priority
        self.config.floor_priorities[level] = priority

    def inject_events(self, events: Iterable[TrafficEvent]) -> int:
        spawned_total = 0
        for event in events:
            spawned_total += self._spawn(event)
        return spawned_total

    def run(self, duration: int) -> None:
        for _ in range(duration):
            self.step()

    def step(self) -> None:
        self.current_tick += 1
        self._handle_offloading()
        for elevator in self.elevators:
            if elevator.state != ElevatorState.IDLE:
                elevator.stats.active_ticks += 1
        self._handle_onloading()
        self.policy.update(self.elevators, self.floors, self.config)
        for elevator in self.elevators:
            if elevator.state != ElevatorState.BOARDING:
                elevator.move()

    def is_idle(self) -> bool:
        return self.building.is_idle()

    def population_map(self) -> Dict[int, int]:
        return {f.level: f.current_population for f in self.floors if f.current_population > 0}

    def summary(self) -> SimulationStats:
        ticks = max(self.current_tick, 1)
        utilization = sum(e.stats.active_ticks / ticks for e in self.elevators) / len(self.elevators)
        return SimulationStats(
            algorithm_name=self.label,
            total_delivered=self.stats.delivered,
            avg_waiting_time=self.stats.average_wait(self.building.onboard_count()),
            avg_transit_time=self.stats.average_transit(),
            elevator_utilization=utilization,
        )

    def get_world_state(self) -> WorldState:
        snapshot = self.building.snapshot()
        return WorldState(
            tick=self.current_tick,
            elevators=snapshot["elevators"],
            floors=snapshot["floors"],
            stats=self.summary(),
        )

    def _spawn(self, event: TrafficEvent) -> int:
        floor = self.building.get_floor(event.source)
        if floor is None or self.building.get_floor(event.destination) is None:
            logger.debug(
                "%s: dropping event %s->%s outside the building", self.label, event.source, event.destination
            )
            self._emit("dropped", {"event": event, "time": self.current_tick})
            return 0
        spawned = floor.spawn(event.destination, event.count, self.current_tick)
        if len(spawned) != event.count:
            logger.debug(
                "%s: dropping event of %s at floor %s (population %s)",
                self.label,
                event.count,
                event.source,
                floor.current_population,
            )
            self._emit("dropped", {"event": event, "time": self.current_tick})
            return 0
        self.stats.spawned += len(spawned)
        if spawned:
            self._emit("arrival", {"time": self.current_tick, "floor": event.source, "count": len(spawned)})
        return len(spawned)

    def _handle_offloading(self) -> None:
        for elevator in self.elevators:
            leaving = elevator.unload()
            if leaving:
                floor = self.floors[elevator.current_floor]
                for person in leaving:
                    self.stats.record_delivery(self.current_tick - person.spawn_time)
                    floor.receive()
                    elevator.stats.total_delivered += 1
                self._emit(
                    "delivery",
                    {"time": self.current_tick, "elevator_id": elevator.id, "floor": floor.level, "count": len(leaving)},
                )
            elevator.clear_target(elevator.current_floor)

    def _handle_onloading(self) -> None:
        for elevator in self.elevators:
            floor = self.floors[elevator.current_floor]
            if elevator.has_capacity() and floor.has_waiting():
                person = floor.pop_waiting()
                self.stats.record_boarding(self.current_tick - person.spawn_time)
                elevator.board(person)
            elif elevator.state == ElevatorState.BOARDING:
                elevator.state = ElevatorState.DOORS_OPEN

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)
