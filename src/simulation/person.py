from __future__ import annotations

import uuid
from dataclasses import dataclass, field


def _new_person_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Person:
    """A rider travelling from one floor to another."""

    source_floor: int
    dest_floor: int
    spawn_time: int
    id: str = field(default_factory=_new_person_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sourceFloor": self.source_floor,
            "destFloor": self.dest_floor,
            "spawnTime": self.spawn_time,
        }
