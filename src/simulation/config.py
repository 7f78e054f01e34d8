from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

SCENARIOS = (
    "MORNING_RUSH",
    "LUNCH_RUSH",
    "LUNCH_RETURN",
    "END_OF_DAY",
    "STRESS_TEST",
    "FULL_DAY_CYCLE",
    "CUSTOM_FLOW",
)


class ConfigError(ValueError):
    """Raised when a building configuration cannot be simulated."""


@dataclass(frozen=True)
class TrafficEvent:
    """``count`` people at ``source`` asking to travel to ``destination``."""

    source: int
    destination: int
    count: int = 1
    time_step: int = 0

    @classmethod
    def from_dict(cls, data: Mapping) -> "TrafficEvent":
        return cls(
            source=int(data["source"]),
            destination=int(data["destination"]),
            count=int(data.get("count", 1)),
            time_step=int(data.get("timeStep", data.get("time_step", 0))),
        )

    def to_dict(self) -> dict:
        return {
            "timeStep": self.time_step,
            "source": self.source,
            "destination": self.destination,
            "count": self.count,
        }


@dataclass
class SimulationConfig:
    """Building layout and traffic shape for one simulation run."""

    floors: int
    elevators: int
    max_capacity: int
    initial_people: Dict[int, int] = field(default_factory=dict)
    floor_priorities: Dict[int, float] = field(default_factory=dict)
    scenario: Optional[str] = None
    mode: str = "PREBUILT_SCENARIO"
    timeline: List[TrafficEvent] = field(default_factory=list)

    def validate(self) -> None:
        if self.floors < 1:
            raise ConfigError(f"floors must be at least 1, got {self.floors}")
        if self.elevators < 1:
            raise ConfigError(f"elevators must be at least 1, got {self.elevators}")
        if self.max_capacity < 1:
            raise ConfigError(f"max_capacity must be at least 1, got {self.max_capacity}")
        if self.scenario is not None and self.scenario not in SCENARIOS:
            raise ConfigError(f"Unknown scenario '{self.scenario}'. Available: {', '.join(SCENARIOS)}")
        for event in self.timeline:
            if not (0 <= event.source < self.floors and 0 <= event.destination < self.floors):
                raise ConfigError(
                    f"Timeline event {event.source}->{event.destination} lies outside floors 0..{self.floors - 1}"
                )
            if event.count < 0:
                raise ConfigError(f"Timeline event count must not be negative, got {event.count}")

    def copy(self) -> "SimulationConfig":
        return copy.deepcopy(self)

    def with_overrides(self, **changes) -> "SimulationConfig":
        clone = self.copy()
        for key, value in changes.items():
            setattr(clone, key, copy.deepcopy(value))
        return clone

    @classmethod
    def from_dict(cls, data: Mapping) -> "SimulationConfig":
        """Build a config from JSON-style data.

        Accepts both snake_case keys and the camelCase keys sent by the
        browser client; floor maps may be keyed by strings.
        """

        try:
            config = cls(
                floors=int(data["floors"]),
                elevators=int(data["elevators"]),
                max_capacity=int(_pick(data, "max_capacity", "maxCapacity")),
                initial_people=_int_keys(_pick(data, "initial_people", "initialPeople", default={}), int),
                floor_priorities=_int_keys(_pick(data, "floor_priorities", "floorPriorities", default={}), float),
                scenario=data.get("scenario"),
                mode=data.get("mode", "PREBUILT_SCENARIO"),
                timeline=[TrafficEvent.from_dict(e) for e in data.get("timeline") or []],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"Malformed simulation config: {exc}") from exc
        config.validate()
        return config

    def to_dict(self) -> dict:
        return {
            "floors": self.floors,
            "elevators": self.elevators,
            "maxCapacity": self.max_capacity,
            "initialPeople": dict(self.initial_people),
            "floorPriorities": dict(self.floor_priorities),
            "scenario": self.scenario,
            "mode": self.mode,
            "timeline": [e.to_dict() for e in self.timeline],
        }


def _pick(data: Mapping, *keys: str, default=None):
    for key in keys:
        if key in data:
            return data[key]
    if default is None:
        raise KeyError(keys[0])
    return default


def _int_keys(mapping: Optional[Mapping], cast) -> dict:
    return {int(k): cast(v) for k, v in (mapping or {}).items()}
