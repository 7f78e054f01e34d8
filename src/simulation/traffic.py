from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import TrafficEvent
from .floor import Floor

LOBBY = 0


@dataclass(frozen=True)
class ScenarioProfile:
    """Per-tick probability of a new arrival and which floors may originate it."""

    arrival_chance: float
    exclude_lobby: bool = False
    exclude_top: bool = False


SCENARIO_PROFILES = {
    "MORNING_RUSH": ScenarioProfile(arrival_chance=0.4),
    "LUNCH_RUSH": ScenarioProfile(arrival_chance=0.5, exclude_lobby=True, exclude_top=True),
    "LUNCH_RETURN": ScenarioProfile(arrival_chance=0.5),
    "END_OF_DAY": ScenarioProfile(arrival_chance=0.5, exclude_lobby=True),
    "STRESS_TEST": ScenarioProfile(arrival_chance=0.6),
}


class TrafficGenerator:
    """Synthesizes one-person arrival events shaped by a scenario tag.

    Sources are drawn from floors that still hold people in *both*
    simulations under comparison, so an event generated here can be
    injected into either of them.
    """

    def __init__(self, num_floors: int, rng: Optional[random.Random] = None) -> None:
        self.num_floors = num_floors
        self.random = rng or random.Random()

    @property
    def top_floor(self) -> int:
        return self.num_floors - 1

    def generate(
        self,
        scenario: Optional[str],
        tick: int,
        floors_a: Sequence[Floor],
        floors_b: Sequence[Floor],
    ) -> List[TrafficEvent]:
        profile = SCENARIO_PROFILES.get(scenario or "")
        if profile is None:
            return []
        if self.random.random() >= profile.arrival_chance:
            return []

        excluded = []
        if profile.exclude_lobby:
            excluded.append(LOBBY)
        if profile.exclude_top:
            excluded.append(self.top_floor)
        source = self.weighted_source(floors_a, floors_b, excluded)
        if source is None:
            return []

        destination = self._choose_destination(scenario, source)
        if destination is None:
            return []
        return [TrafficEvent(source=source, destination=destination, count=1, time_step=tick)]

    def weighted_source(
        self,
        floors_a: Sequence[Floor],
        floors_b: Sequence[Floor],
        excluded: Sequence[int] = (),
    ) -> Optional[int]:
        """Pick a source floor weighted by shared population and priority.

        When any floor has priority above 1 only those floors are
        eligible. Otherwise a floor without priority counts with weight 1.
        """

        high_priority = any(f.priority > 1 for f in floors_a)
        candidates = []
        total_weight = 0.0
        for floor_a, floor_b in zip(floors_a, floors_b):
            if floor_a.level in excluded:
                continue
            if high_priority and floor_a.priority <= 1:
                continue
            if floor_a.current_population <= 0 or floor_b.current_population <= 0:
                continue
            factor = floor_a.priority
            if factor == 0 and not high_priority:
                factor = 1
            weight = min(floor_a.current_population, floor_b.current_population) * factor
            if weight > 0:
                total_weight += weight
                candidates.append((floor_a.level, weight))

        if not candidates:
            return None
        pointer = self.random.random() * total_weight
        for level, weight in candidates:
            if pointer < weight:
                return level
            pointer -= weight
        return candidates[-1][0]

    def _choose_destination(self, scenario: Optional[str], source: int) -> Optional[int]:
        if scenario == "LUNCH_RUSH":
            return LOBBY if self.random.random() > 0.5 else self.top_floor
        if scenario == "LUNCH_RETURN":
            if self.num_floors <= 2:
                return None
            return self.random.randint(LOBBY + 1, self.top_floor - 1)
        if scenario == "END_OF_DAY":
            return LOBBY
        if self.num_floors < 2:
            return None
        choices = [level for level in range(self.num_floors) if level != source]
        return self.random.choice(choices)
