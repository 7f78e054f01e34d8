from __future__ import annotations

from typing import Dict, Type

from .improved import ImprovedPolicy
from .interface import DispatchPolicy
from .naive import NaivePolicy

__all__ = [
    "DispatchPolicy",
    "ImprovedPolicy",
    "NaivePolicy",
    "POLICY_LABELS",
    "get_policy",
]


POLICY_REGISTRY: Dict[str, Type[DispatchPolicy]] = {
    "naive": NaivePolicy,
    "improved": ImprovedPolicy,
}

POLICY_LABELS: Dict[str, str] = {
    "naive": "Naive",
    "improved": "Improved",
}


def get_policy(name: str, **kwargs) -> DispatchPolicy:
    cls = POLICY_REGISTRY.get(name.lower())
    if cls is None:
        raise ValueError(f"Unknown policy '{name}'. Available: {', '.join(POLICY_REGISTRY)}")
    return cls(**kwargs)
