from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from scheduler import POLICY_LABELS, get_policy

from .config import SimulationConfig, TrafficEvent
from .simulation import Simulation, SimulationStats
from .traffic import LOBBY, TrafficGenerator

logger = logging.getLogger(__name__)

FULL_DAY = "FULL_DAY_CYCLE"
PHASE_START_DELAY = 10
HIGH_PRIORITY = 10.0


@dataclass(frozen=True)
class Phase:
    name: str
    scenario: str
    event_limit: int = 100


FULL_DAY_PHASES = (
    Phase("Phase 1: Morning Rush", "MORNING_RUSH"),
    Phase("Phase 2: Stress Test #1", "STRESS_TEST"),
    Phase("Phase 3: Lunch Time", "LUNCH_RUSH"),
    Phase("Phase 4: Lunch Return", "LUNCH_RETURN"),
    Phase("Phase 5: Stress Test #2", "STRESS_TEST"),
    Phase("Phase 6: End of Day", "END_OF_DAY"),
)


@dataclass
class HistoryPoint:
    tick: int
    naive_delivered: int
    improved_delivered: int
    naive_wait: float
    improved_wait: float
    naive_trip: float
    improved_trip: float

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "naiveDelivered": self.naive_delivered,
            "improvedDelivered": self.improved_delivered,
            "naiveWait": self.naive_wait,
            "improvedWait": self.improved_wait,
            "naiveTrip": self.naive_trip,
            "improvedTrip": self.improved_trip,
        }


@dataclass
class PhaseResult:
    delivered: int
    avg_wait: float
    avg_trip: float
    avg_util: float

    @classmethod
    def from_stats(cls, stats: SimulationStats) -> "PhaseResult":
        return cls(
            delivered=stats.total_delivered,
            avg_wait=stats.avg_waiting_time,
            avg_trip=stats.avg_transit_time,
            avg_util=stats.elevator_utilization,
        )

    def to_dict(self) -> dict:
        return {
            "delivered": self.delivered,
            "avgWait": self.avg_wait,
            "avgTrip": self.avg_trip,
            "avgUtil": self.avg_util,
        }


@dataclass
class PhaseSnapshot:
    phase_name: str
    duration: int
    naive: PhaseResult
    improved: PhaseResult

    def to_dict(self) -> dict:
        return {
            "phaseName": self.phase_name,
            "duration": self.duration,
            "naive": self.naive.to_dict(),
            "improved": self.improved.to_dict(),
        }


@dataclass
class CumulativeStats:
    """Totals carried over from completed phases of a full-day cycle."""

    delivered: int = 0
    wait_sum: float = 0.0
    trip_sum: float = 0.0

    def add(self, stats: SimulationStats) -> None:
        self.delivered += stats.total_delivered
        self.wait_sum += stats.avg_waiting_time * stats.total_delivered
        self.trip_sum += stats.avg_transit_time * stats.total_delivered

    def combined(self, stats: SimulationStats) -> "CumulativeStats":
        merged = CumulativeStats(**asdict(self))
        merged.add(stats)
        return merged

    @property
    def average_wait(self) -> float:
        return self.wait_sum / self.delivered if self.delivered else 0.0

    @property
    def average_trip(self) -> float:
        return self.trip_sum / self.delivered if self.delivered else 0.0


def phase_priority(scenario: str, level: int, top_floor: int) -> float:
    """Priority a floor carries while ``scenario`` is the active phase."""

    edge = level in (LOBBY, top_floor)
    if scenario == "MORNING_RUSH":
        return HIGH_PRIORITY if level == LOBBY else 0.0
    if scenario == "LUNCH_RUSH":
        return 0.0 if edge else HIGH_PRIORITY
    if scenario == "LUNCH_RETURN":
        return HIGH_PRIORITY if edge else 0.0
    if scenario == "END_OF_DAY":
        return 0.0 if level == LOBBY else HIGH_PRIORITY
    return 0.0


def is_phase_starved(simulation: Simulation, scenario: str) -> bool:
    """True when no floor the scenario draws riders from has anyone left."""

    floors = simulation.floors
    top_floor = len(floors) - 1
    if scenario == "MORNING_RUSH":
        return floors[LOBBY].current_population == 0
    if scenario == "LUNCH_RUSH":
        return not any(f.current_population > 0 for f in floors if f.level not in (LOBBY, top_floor))
    if scenario == "LUNCH_RETURN":
        return floors[LOBBY].current_population == 0 and floors[top_floor].current_population == 0
    if scenario == "END_OF_DAY":
        return not any(f.current_population > 0 for f in floors if f.level != LOBBY)
    return False


class ComparisonSession:
    """Runs a naive and an improved simulation side by side on identical traffic.

    The session is the driver context: it owns both simulations, the
    traffic generator, the pause flag, per-tick history and, for the
    full-day cycle, the phase bookkeeping.
    """

    def __init__(self, config: SimulationConfig, seed: Optional[int] = None) -> None:
        config.validate()
        self.config = config.copy()
        self.random = random.Random(seed)
        self.traffic = TrafficGenerator(self.config.floors, self.random)
        self.current_tick: int = 0
        self.paused: bool = False
        self.finished: bool = False
        self.history: List[HistoryPoint] = []
        self.phase_history: List[PhaseSnapshot] = []
        self.full_day = self.config.scenario == FULL_DAY
        self.phase_index: int = 0
        self.events_in_phase: int = 0
        self.phase_start_tick: int = 0
        self.cumulative: Dict[str, CumulativeStats] = {"naive": CumulativeStats(), "improved": CumulativeStats()}

        if self.full_day:
            self._start_phase(None)
        else:
            self.naive = self._build("naive", self.config)
            self.improved = self._build("improved", self.config)
        logger.info(
            "Session started: scenario=%s floors=%s elevators=%s capacity=%s",
            self.config.scenario or "CUSTOM_FLOW",
            self.config.floors,
            self.config.elevators,
            self.config.max_capacity,
        )

    @property
    def phase(self) -> Optional[Phase]:
        if not self.full_day:
            return None
        return FULL_DAY_PHASES[self.phase_index]

    @property
    def active_scenario(self) -> str:
        if self.phase is not None:
            return self.phase.name
        return self.config.scenario or "CUSTOM_FLOW"

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def run(self, duration: int) -> None:
        for _ in range(duration):
            if self.finished:
                break
            self.tick()

    def tick(self) -> bool:
        """Advance both simulations by one tick; returns False when nothing ran."""

        if self.paused or self.finished:
            return False
        self.current_tick += 1

        if self.full_day and self.naive.is_idle() and self.improved.is_idle() and self._phase_done():
            self._complete_phase(self.current_tick - self.phase_start_tick)
            if self.phase_index == len(FULL_DAY_PHASES) - 1:
                logger.info("Full day simulation complete after %s ticks", self.current_tick)
                self.finished = True
                return False
            population = self.naive.population_map()
            self.phase_index += 1
            self.events_in_phase = 0
            self.phase_start_tick = self.current_tick
            self._start_phase(population)

        events = self._scripted_events() + self._generate_events()
        for simulation in (self.naive, self.improved):
            simulation.inject_events(events)
            simulation.step()
        self.history.append(self._history_point())
        return True

    def state(self) -> dict:
        return {
            "tick": self.current_tick,
            "activeScenario": self.active_scenario,
            "naiveWorld": self.naive.get_world_state().to_dict(),
            "improvedWorld": self.improved.get_world_state().to_dict(),
            "isPaused": self.paused,
            "finished": self.finished,
            "history": [point.to_dict() for point in self.history],
            "phaseHistory": [snapshot.to_dict() for snapshot in self.phase_history],
        }

    def _build(self, policy_name: str, config: SimulationConfig) -> Simulation:
        return Simulation(config, get_policy(policy_name), POLICY_LABELS[policy_name])

    def _start_phase(self, population: Optional[Dict[int, int]]) -> None:
        phase = FULL_DAY_PHASES[self.phase_index]
        phase_config = self.config.with_overrides(
            scenario=phase.scenario,
            initial_people=population if population is not None else self.config.initial_people,
            floor_priorities={},
        )
        self.naive = self._build("naive", phase_config)
        self.improved = self._build("improved", phase_config)
        top_floor = phase_config.floors - 1
        for simulation in (self.naive, self.improved):
            for level in range(phase_config.floors):
                simulation.set_floor_priority(level, phase_priority(phase.scenario, level, top_floor))
        logger.debug("Starting %s at tick %s", phase.name, self.current_tick)

    def _phase_done(self) -> bool:
        phase = FULL_DAY_PHASES[self.phase_index]
        return self.events_in_phase >= phase.event_limit or is_phase_starved(self.naive, phase.scenario)

    def _complete_phase(self, duration: int) -> None:
        phase = FULL_DAY_PHASES[self.phase_index]
        naive_stats = self.naive.summary()
        improved_stats = self.improved.summary()
        self.phase_history.append(
            PhaseSnapshot(
                phase_name=phase.name,
                duration=duration,
                naive=PhaseResult.from_stats(naive_stats),
                improved=PhaseResult.from_stats(improved_stats),
            )
        )
        self.cumulative["naive"].add(naive_stats)
        self.cumulative["improved"].add(improved_stats)
        logger.info(
            "%s complete after %s ticks (naive delivered %s, improved delivered %s)",
            phase.name,
            duration,
            naive_stats.total_delivered,
            improved_stats.total_delivered,
        )

    def _scripted_events(self) -> List[TrafficEvent]:
        return [event for event in self.config.timeline if event.time_step == self.current_tick]

    def _generate_events(self) -> List[TrafficEvent]:
        if self.full_day:
            if self.phase_index > 0 and self.current_tick < self.phase_start_tick + PHASE_START_DELAY:
                return []
            if self.events_in_phase >= FULL_DAY_PHASES[self.phase_index].event_limit:
                return []
            scenario = FULL_DAY_PHASES[self.phase_index].scenario
        else:
            scenario = self.config.scenario

        events = self.traffic.generate(scenario, self.current_tick, self.naive.floors, self.improved.floors)
        if self.full_day and events:
            self.events_in_phase += 1
        return events

    def _history_point(self) -> HistoryPoint:
        naive = self.cumulative["naive"].combined(self.naive.summary())
        improved = self.cumulative["improved"].combined(self.improved.summary())
        return HistoryPoint(
            tick=self.current_tick,
            naive_delivered=naive.delivered,
            improved_delivered=improved.delivered,
            naive_wait=naive.average_wait,
            improved_wait=improved.average_wait,
            naive_trip=naive.average_trip,
            improved_trip=improved.average_trip,
        )
