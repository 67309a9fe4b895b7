#!/usr/bin/env python3
"""
Interactive receiver state.
The receiver distance and window size are the only mutable state of a
caustics session; they live here and are handed to the engine by value.
"""

import logging

from dataclasses import dataclass
from typing import Tuple

from defaults import BIG_STEP, SMALL_STEP, WINDOW_SIZE
from exceptions import InputError
from ray_tracer import validate_distance

logger = logging.getLogger(__name__)


@dataclass
class ReceiverSession:
    """Receiver-plane distance plus the step sizes used to move it."""
    distance: float
    small_step: float = SMALL_STEP
    big_step: float = BIG_STEP
    window_size: Tuple[int, int] = WINDOW_SIZE

    def __post_init__(self):
        self.distance = validate_distance(self.distance)
        self.small_step = validate_distance(self.small_step)
        self.big_step = validate_distance(self.big_step)
        self.resize(*self.window_size)

    def step(self, delta: float) -> float:
        """Move the receiver by delta and return the new distance."""
        self.distance = validate_distance(self.distance + delta)
        logger.debug("Receiver distance -> %g", self.distance)
        return self.distance

    def nudge(self, direction: int, big: bool = False) -> float:
        """Move one small (or big) step; direction is +1 or -1."""
        if direction not in (-1, 1):
            raise InputError(f"direction must be +1 or -1, got {direction!r}")
        return self.step(direction * (self.big_step if big else self.small_step))

    def resize(self, width: int, height: int) -> Tuple[int, int]:
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise InputError(f"window size must be positive, got {width}x{height}")
        self.window_size = (width, height)
        return self.window_size
