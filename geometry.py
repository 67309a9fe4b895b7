#!/usr/bin/env python3
"""
Lens surfaces for caustic projection.
A surface is a point sample of the refracting face: parallel arrays of
vertex positions and unit normals with shared indices.
"""

import logging

import numpy as np
from dataclasses import dataclass
from typing import Tuple

from exceptions import InputError
from math_utils import normalize_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LensSurface:
    """Vertex positions and unit normals of a refracting surface, index aligned."""
    vertices: np.ndarray
    normals: np.ndarray
    name: str = "surface"

    def __len__(self) -> int:
        return int(self.vertices.shape[0])

    @staticmethod
    def from_arrays(vertices, normals, name: str = "surface") -> "LensSurface":
        """
        Validate and freeze vertex/normal arrays.

        Both arrays must have shape (N, 3) with the same N and finite values.
        Normals are stored as given; zero-length normals are kept so that
        indices stay aligned and the refraction solver flags them.
        """
        V = np.array(vertices, dtype=np.float64, copy=True)
        N = np.array(normals, dtype=np.float64, copy=True)
        if V.ndim != 2 or V.shape[1] != 3:
            raise InputError(f"vertices must have shape (N, 3), got {V.shape}")
        if N.ndim != 2 or N.shape[1] != 3:
            raise InputError(f"normals must have shape (N, 3), got {N.shape}")
        if V.shape[0] != N.shape[0]:
            raise InputError(
                f"vertex/normal count mismatch: {V.shape[0]} vertices, {N.shape[0]} normals"
            )
        if V.shape[0] == 0:
            raise InputError("surface has no vertices")
        if not np.all(np.isfinite(V)):
            raise InputError("vertices contain non-finite values")
        V.flags.writeable = False
        N.flags.writeable = False
        return LensSurface(vertices=V, normals=N, name=name)

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounding box (min corner, max corner)."""
        return self.vertices.min(axis=0), self.vertices.max(axis=0)


def plano_convex_surface(
    aperture_radius: float,
    R: float,
    center_thickness: float,
    radial_segments: int = 48,
    azimuth_segments: int = 180,
    center=(0.0, 0.0, 0.0),
) -> LensSurface:
    """
    Sample the curved face of a plano-convex/concave lens.

    Parameters:
    - aperture_radius: lens radius
    - R: radius of curvature (R > 0 = convex toward +Z, R < 0 = concave)
    - center_thickness: thickness at center
    - radial_segments: number of rings outside the apex
    - azimuth_segments: samples per ring
    - center: lens center position

    The flat face sits at z = cz - center_thickness/2 and the apex at
    z = cz + center_thickness/2. Normals are the analytic sphere normals,
    pointing out of the glass toward +Z (toward a beam travelling along -Z).
    """
    if radial_segments < 1 or azimuth_segments < 3:
        raise InputError("radial_segments >= 1 and azimuth_segments >= 3 are required.")

    cx, cy, cz = center
    z_plane = cz - center_thickness * 0.5
    z_vertex = cz + center_thickness * 0.5

    a = float(aperture_radius)
    if a <= 0:
        raise InputError("aperture_radius must be > 0.")

    Rabs = abs(R)
    if a >= Rabs:
        raise InputError("aperture_radius must be < |R| for a valid spherical surface.")

    # Sphere center location relative to the vertex
    zc = z_vertex - R

    def z_sphere(r: np.ndarray) -> np.ndarray:
        """Calculate z-coordinate on spherical surface."""
        root = np.sqrt(Rabs*Rabs - r*r)
        return zc + root if R >= 0 else zc - root

    edge_z = float(z_sphere(np.array([a]))[0])
    if edge_z <= z_plane:
        raise InputError(
            f"Invalid geometry: spherical edge z={edge_z:.6g} <= plane z={z_plane:.6g}. "
            "Decrease aperture, increase |R|, or increase center_thickness."
        )

    # Apex once, then rings of azimuth_segments samples
    rs = np.linspace(0.0, a, radial_segments + 1)[1:]
    thetas = np.linspace(0.0, 2.0*np.pi, azimuth_segments, endpoint=False)
    rr, tt = np.meshgrid(rs, thetas, indexing="ij")
    x = np.concatenate(([cx], (cx + rr*np.cos(tt)).ravel()))
    y = np.concatenate(([cy], (cy + rr*np.sin(tt)).ravel()))
    r = np.hypot(x - cx, y - cy)
    z = z_sphere(r)
    V = np.stack([x, y, z], axis=-1)

    # (p - c) / R faces +Z for both signs of R
    sphere_center = np.array([cx, cy, zc])
    N = normalize_rows((V - sphere_center) / R)

    logger.debug("Sampled %d points on lens face (R=%g, aperture=%g)", V.shape[0], R, a)
    return LensSurface.from_arrays(V, N, name="plano_convex")


def flat_surface(
    half_width: float,
    samples: int = 16,
    z: float = 0.0,
    center=(0.0, 0.0),
) -> LensSurface:
    """Square grid of samples on the plane z = const with normals along +Z."""
    if samples < 1:
        raise InputError("samples must be >= 1.")
    cx, cy = center
    u = np.linspace(-half_width, half_width, samples)
    xx, yy = np.meshgrid(cx + u, cy + u, indexing="ij")
    V = np.stack([xx.ravel(), yy.ravel(), np.full(xx.size, float(z))], axis=-1)
    N = np.tile(np.array([0.0, 0.0, 1.0]), (V.shape[0], 1))
    return LensSurface.from_arrays(V, N, name="flat")
