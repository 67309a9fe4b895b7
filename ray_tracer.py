#!/usr/bin/env python3
"""
Refraction and projection engine for caustic simulations.
Refracts a collimated beam through every surface sample once, then projects
the refracted rays onto a receiver plane as often as its distance changes.
"""

import logging
import math
import numbers

import numpy as np
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from beam import CollimatedBeam
from exceptions import InputError, InvalidDistanceError
from geometry import LensSurface
from math_utils import (
    OK, STATUS_NAMES, refract_batch_nb, project_batch_nb,
)

logger = logging.getLogger(__name__)


def _status_counts(status: np.ndarray) -> Dict[str, int]:
    codes, counts = np.unique(status, return_counts=True)
    return {STATUS_NAMES.get(int(c), str(int(c))): int(n) for c, n in zip(codes, counts)}


@dataclass(frozen=True, eq=False)
class RefractedRays:
    """Refracted directions, one per surface sample, with per-element status."""
    directions: np.ndarray
    status: np.ndarray

    def __len__(self) -> int:
        return int(self.status.shape[0])

    @property
    def valid(self) -> np.ndarray:
        return self.status == OK

    def counts(self) -> Dict[str, int]:
        return _status_counts(self.status)


@dataclass(frozen=True, eq=False)
class Intersections:
    """
    Receiver-plane hits, one per surface sample.
    Invalid entries have NaN coordinates; use `valid` to tell them apart.
    """
    points: np.ndarray
    status: np.ndarray
    distance: float

    def __len__(self) -> int:
        return int(self.status.shape[0])

    def __iter__(self) -> Iterator[Tuple[bool, np.ndarray]]:
        """Yield (valid, point) pairs in vertex order."""
        valid = self.valid
        for i in range(len(self)):
            yield bool(valid[i]), self.points[i]

    @property
    def valid(self) -> np.ndarray:
        return self.status == OK

    def valid_points(self) -> np.ndarray:
        return self.points[self.valid]

    def counts(self) -> Dict[str, int]:
        return _status_counts(self.status)


def validate_distance(distance) -> float:
    """Return distance as a float, or raise InvalidDistanceError."""
    if isinstance(distance, bool):
        raise InvalidDistanceError(f"receiver distance must be a number, got {distance!r}")
    if isinstance(distance, str):
        try:
            distance = float(distance)
        except ValueError:
            raise InvalidDistanceError(f"receiver distance must be a number, got {distance!r}") from None
    elif not isinstance(distance, numbers.Real):
        raise InvalidDistanceError(f"receiver distance must be a number, got {distance!r}")
    distance = float(distance)
    if not math.isfinite(distance):
        raise InvalidDistanceError(f"receiver distance must be finite, got {distance!r}")
    return distance


def refract_normals(normals: np.ndarray, beam: CollimatedBeam) -> RefractedRays:
    """
    Refract the beam through every normal with the vector form of Snell's law.

    Parameters:
    - normals: (N, 3) normals facing the incoming beam
    - beam: incident direction and relative refractive index

    Returns RefractedRays with unit directions where status == OK and zero
    vectors elsewhere (total internal reflection, degenerate or back-facing
    normals). Never raises for per-element problems.
    """
    N = np.ascontiguousarray(normals, dtype=np.float64)
    if N.ndim != 2 or N.shape[1] != 3:
        raise InputError(f"normals must have shape (N, 3), got {N.shape}")
    d = np.ascontiguousarray(beam.incident_direction, dtype=np.float64)

    dirs = np.zeros_like(N)
    status = np.zeros(N.shape[0], dtype=np.int8)
    refract_batch_nb(N, d, beam.eta, dirs, status)

    dirs.flags.writeable = False
    status.flags.writeable = False
    return RefractedRays(directions=dirs, status=status)


def project_to_plane(vertices: np.ndarray, rays: RefractedRays, distance, axis: int = 2) -> Intersections:
    """
    Intersect each refracted ray with the receiver plane {p[axis] = distance}.

    Parameters:
    - vertices: (N, 3) ray origins, same order as rays
    - rays: output of refract_normals
    - distance: plane position along the propagation axis
    - axis: propagation axis column (0, 1 or 2)

    Only forward hits count: t = (distance - v[axis]) / d[axis] must be >= 0.
    Points are given in the two remaining axes, in cyclic order
    ((axis+1) % 3, (axis+2) % 3), i.e. (x, y) for the z axis, in mesh units.
    """
    D = validate_distance(distance)
    V = np.ascontiguousarray(vertices, dtype=np.float64)
    if V.ndim != 2 or V.shape[1] != 3:
        raise InputError(f"vertices must have shape (N, 3), got {V.shape}")
    if V.shape[0] != len(rays):
        raise InputError(f"vertex/ray count mismatch: {V.shape[0]} vertices, {len(rays)} rays")
    if axis not in (0, 1, 2):
        raise InputError(f"axis must be 0, 1 or 2, got {axis!r}")

    dirs = np.ascontiguousarray(rays.directions, dtype=np.float64)
    ray_status = np.ascontiguousarray(rays.status, dtype=np.int8)
    pts = np.empty((V.shape[0], 2), dtype=np.float64)
    status = np.zeros(V.shape[0], dtype=np.int8)
    project_batch_nb(V, dirs, ray_status, D, int(axis), pts, status)

    pts.flags.writeable = False
    status.flags.writeable = False
    return Intersections(points=pts, status=status, distance=D)


class CausticEngine:
    """
    Couples a lens surface with a beam.
    Refracted rays are computed once; recompute() projects them for any
    receiver distance.
    """

    def __init__(self, surface: LensSurface, beam: Optional[CollimatedBeam] = None):
        self.surface = surface
        self.beam = beam if beam is not None else CollimatedBeam()
        self._rays: Optional[RefractedRays] = None

    @property
    def rays(self) -> RefractedRays:
        """Refracted rays, computed on first access."""
        if self._rays is None:
            self._rays = refract_normals(self.surface.normals, self.beam)
            logger.info("Refracted %d rays (eta=%g): %s",
                        len(self._rays), self.beam.eta, self._rays.counts())
        return self._rays

    def recompute(self, distance) -> Intersections:
        """Project every refracted ray onto the receiver plane at distance."""
        hits = project_to_plane(self.surface.vertices, self.rays, distance,
                                axis=self.beam.axis_index)
        logger.debug("Receiver at %s=%g: %s", self.beam.axis, hits.distance, hits.counts())
        return hits
