"""Wheel animation planning for an already decided draw.

The wheel draws one equal slice per population entry, starting at angle 0
and going clockwise; the pointer sits at the top (3π/2). The planner picks a
rotation that brings the pre-computed landing slice under the pointer, and
``landing_index_for_rotation`` maps any rotation back to the slice, so
clients can verify the animation did not change the outcome.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core import SpinDefaults
from core.exceptions import ValidationError

TWO_PI = 2 * math.pi
POINTER_ANGLE = 3 * math.pi / 2


@dataclass(slots=True)
class SpinPlan:
    population_size: int
    landing_index: int
    start_rotation: float
    total_rotation: float
    duration_ms: int

    @property
    def final_rotation(self) -> float:
        return self.start_rotation + self.total_rotation

    @property
    def slice_angle(self) -> float:
        return TWO_PI / self.population_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "population_size": self.population_size,
            "landing_index": self.landing_index,
            "start_rotation": self.start_rotation,
            "total_rotation": self.total_rotation,
            "final_rotation": self.final_rotation,
            "duration_ms": self.duration_ms,
        }


def landing_index_for_rotation(rotation: float, population_size: int) -> int:
    """Slice under the pointer once the wheel has rotated by ``rotation``."""
    slice_angle = TWO_PI / population_size
    pointer = (POINTER_ANGLE - rotation % TWO_PI + TWO_PI) % TWO_PI
    return int(pointer // slice_angle) % population_size


def plan_spin(
    population_size: int,
    landing_index: int,
    rng: Optional[random.Random] = None,
    start_rotation: float = 0.0,
) -> SpinPlan:
    """Plan a 5-10 turn spin that stops on ``landing_index``."""
    if population_size < 1:
        raise ValidationError("Cannot spin an empty wheel")
    if not 0 <= landing_index < population_size:
        raise ValidationError(
            f"Landing index {landing_index} outside population of {population_size}"
        )

    rng = rng or random.SystemRandom()
    slice_angle = TWO_PI / population_size
    offset = rng.uniform(SpinDefaults.SLICE_MARGIN, 1 - SpinDefaults.SLICE_MARGIN)
    pointer = (landing_index + offset) * slice_angle

    target = (POINTER_ANGLE - pointer) % TWO_PI
    delta = (target - start_rotation % TWO_PI) % TWO_PI
    turns = rng.randint(SpinDefaults.MIN_TURNS, SpinDefaults.MAX_TURNS - 1)

    return SpinPlan(
        population_size=population_size,
        landing_index=landing_index,
        start_rotation=start_rotation,
        total_rotation=turns * TWO_PI + delta,
        duration_ms=SpinDefaults.DURATION_MS,
    )
