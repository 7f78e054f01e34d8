from __future__ import annotations

from typing import Callable

import pytest

from simulation import SimulationConfig


@pytest.fixture
def make_config() -> Callable[..., SimulationConfig]:
    def _make(**overrides) -> SimulationConfig:
        values = dict(floors=10, elevators=1, max_capacity=5, initial_people={}, floor_priorities={})
        values.update(overrides)
        return SimulationConfig(**values)

    return _make
