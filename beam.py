#!/usr/bin/env python3
"""
Incident beam description for caustic simulations.

The beam is collimated: every surface sample sees the same incident
direction. By default it travels along the negative propagation axis, so for
the default z axis light moves toward -z and the receiver plane is
{z = distance}. Surface normals must face the incoming light
(dot(normal, direction) < 0); a normal on the other side is reported as
back-facing rather than flipped.
"""

import math

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from defaults import ETA, PROPAGATION_AXIS
from exceptions import BeamConfigurationError
from math_utils import EPS

AXES = {"x": 0, "y": 1, "z": 2}
AXIS_NAMES = "xyz"


def axis_index(axis: Union[str, int]) -> int:
    """Map 'x'/'y'/'z' (or 0/1/2) to an array column index."""
    if isinstance(axis, str):
        key = axis.strip().lower()
        if key not in AXES:
            raise BeamConfigurationError(f"unknown propagation axis {axis!r}; expected one of x, y, z")
        return AXES[key]
    if isinstance(axis, (int, np.integer)) and not isinstance(axis, bool) and 0 <= int(axis) <= 2:
        return int(axis)
    raise BeamConfigurationError(f"unknown propagation axis {axis!r}; expected one of x, y, z")


@dataclass(frozen=True)
class CollimatedBeam:
    """
    A collimated beam crossing one refracting interface.

    Parameters:
    - eta: relative refractive index n_incident / n_transmitted
    - axis: propagation axis the receiver plane is perpendicular to
    - direction: unit direction of travel; defaults to the negative axis
    """
    eta: float = ETA
    axis: Union[str, int] = PROPAGATION_AXIS
    direction: Optional[Tuple[float, float, float]] = None
    _direction: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            eta = float(self.eta)
        except (TypeError, ValueError):
            raise BeamConfigurationError(f"eta must be a number, got {self.eta!r}") from None
        if not math.isfinite(eta) or eta <= 0.0:
            raise BeamConfigurationError(f"eta must be a positive finite number, got {self.eta!r}")
        object.__setattr__(self, "eta", eta)

        k = axis_index(self.axis)
        object.__setattr__(self, "axis", AXIS_NAMES[k])

        if self.direction is None:
            d = np.zeros(3)
            d[k] = -1.0
        else:
            d = np.asarray(self.direction, dtype=np.float64).reshape(-1)
            if d.shape != (3,) or not np.all(np.isfinite(d)):
                raise BeamConfigurationError(f"beam direction must be a finite 3-vector, got {self.direction!r}")
            n = float(np.linalg.norm(d))
            if n < EPS:
                raise BeamConfigurationError("beam direction has zero length")
            d = d / n
        d.flags.writeable = False
        object.__setattr__(self, "_direction", d)

    @property
    def axis_index(self) -> int:
        return AXES[self.axis]

    @property
    def incident_direction(self) -> np.ndarray:
        """Unit direction of travel of the incoming light."""
        return self._direction

    def critical_cosine(self) -> float:
        """
        Cosine of the critical angle of incidence, or 0.0 when eta <= 1
        (no total internal reflection possible).
        """
        if self.eta <= 1.0:
            return 0.0
        return math.sqrt(1.0 - 1.0 / (self.eta * self.eta))
