from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
import math


ExhaustionPolicy = Literal["fallback", "raise"]

_POLICIES = ("fallback", "raise")


@dataclass(frozen=True)
class SamplingConfig:
    """
    Library-wide defaults for tolerances and rejection-sampling budgets.
    Composites read their defaults from here unless given explicit keywords.
    """
    epsilon: float = 1e-9
    lut_resolution: int = 200
    union_max_attempts: int = 100
    intersection_max_attempts: int = 1000
    difference_max_attempts: int = 1000
    cone_max_attempts: int = 2000
    union_on_exhausted: ExhaustionPolicy = "fallback"
    difference_on_exhausted: ExhaustionPolicy = "raise"

    def __post_init__(self):
        if not (math.isfinite(self.epsilon) and self.epsilon >= 0.0):
            raise ValueError("epsilon must be a finite non-negative number")
        if self.lut_resolution < 1:
            raise ValueError("lut_resolution must be >= 1")
        for name in (
            "union_max_attempts",
            "intersection_max_attempts",
            "difference_max_attempts",
            "cone_max_attempts",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        for name in ("union_on_exhausted", "difference_on_exhausted"):
            if getattr(self, name) not in _POLICIES:
                raise ValueError(f"{name} must be one of {_POLICIES}")


DEFAULT_CONFIG = SamplingConfig()
DEFAULT_EPSILON = DEFAULT_CONFIG.epsilon


def check_policy(policy: str) -> ExhaustionPolicy:
    if policy not in _POLICIES:
        raise ValueError(f"on_exhausted must be one of {_POLICIES}, got {policy!r}")
    return policy  # type: ignore[return-value]
