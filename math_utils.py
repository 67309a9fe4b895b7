#!/usr/bin/env python3
"""
Mathematical utilities for caustic projection.
Includes vector normalization, the vector form of Snell's law and the
ray/receiver-plane intersection kernels.
"""

import numpy as np
import numba as nb
from typing import Optional, Tuple

EPS = 1e-7

# Per-element status codes shared by the solver and the projector
OK = 0
TIR = 1                 # total internal reflection
DEGENERATE_NORMAL = 2   # zero-length or non-finite normal
BACK_FACING = 3         # normal does not face the incoming beam
NO_REFRACTION = 4       # projector input ray was already invalid
PARALLEL = 5            # ray parallel to the receiver plane
BEHIND = 6              # receiver plane lies behind the vertex
OVERFLOW = 7            # hit exists but its coordinates are not representable

STATUS_NAMES = {
    OK: "ok",
    TIR: "total_internal_reflection",
    DEGENERATE_NORMAL: "degenerate_normal",
    BACK_FACING: "back_facing",
    NO_REFRACTION: "no_refraction",
    PARALLEL: "parallel",
    BEHIND: "behind",
    OVERFLOW: "overflow",
}

# =========================
# Numba-accelerated functions
# =========================

@nb.njit(cache=True)
def refract_batch_nb(normals, d, eta, out_dirs, out_status):
    """
    Numba-accelerated Snell's law refraction over a batch of normals.
    d is the unit incident direction, normals point toward the incoming beam.
    Fills out_dirs (N,3) and out_status (N,) in place.
    """
    for i in range(normals.shape[0]):
        out_dirs[i, 0] = 0.0
        out_dirs[i, 1] = 0.0
        out_dirs[i, 2] = 0.0

        nx = normals[i, 0]
        ny = normals[i, 1]
        nz = normals[i, 2]
        nn = np.sqrt(nx*nx + ny*ny + nz*nz)
        if not np.isfinite(nn) or nn < EPS:
            out_status[i] = DEGENERATE_NORMAL
            continue
        nx /= nn
        ny /= nn
        nz /= nn

        cosi = -(nx*d[0] + ny*d[1] + nz*d[2])
        if cosi < 0.0:
            out_status[i] = BACK_FACING
            continue
        if cosi > 1.0:
            cosi = 1.0

        sin2t = eta*eta*(1.0 - cosi*cosi)
        if sin2t > 1.0:
            out_status[i] = TIR
            continue
        k = 1.0 - sin2t
        if k < 0.0:
            k = 0.0
        elif k > 1.0:
            k = 1.0
        cost = np.sqrt(k)

        c = eta*cosi - cost
        t0 = eta*d[0] + c*nx
        t1 = eta*d[1] + c*ny
        t2 = eta*d[2] + c*nz
        tn = np.sqrt(t0*t0 + t1*t1 + t2*t2)
        if tn < EPS:
            out_status[i] = DEGENERATE_NORMAL
            continue
        out_dirs[i, 0] = t0 / tn
        out_dirs[i, 1] = t1 / tn
        out_dirs[i, 2] = t2 / tn
        out_status[i] = OK


@nb.njit(cache=True)
def project_batch_nb(vertices, directions, ray_status, distance, axis, out_points, out_status):
    """
    Numba-accelerated ray/plane intersection with the plane {p[axis] = distance}.
    Only forward hits (t >= 0) count. Fills out_points (N,2) and out_status (N,).
    """
    a = (axis + 1) % 3
    b = (axis + 2) % 3
    for i in range(vertices.shape[0]):
        out_points[i, 0] = np.nan
        out_points[i, 1] = np.nan
        if ray_status[i] != OK:
            out_status[i] = NO_REFRACTION
            continue
        dk = directions[i, axis]
        if dk == 0.0:
            out_status[i] = PARALLEL
            continue
        t = (distance - vertices[i, axis]) / dk
        if not np.isfinite(t):
            out_status[i] = OVERFLOW
            continue
        if t < 0.0:
            out_status[i] = BEHIND
            continue
        u = vertices[i, a] + t*directions[i, a]
        v = vertices[i, b] + t*directions[i, b]
        if not (np.isfinite(u) and np.isfinite(v)):
            out_status[i] = OVERFLOW
            continue
        out_points[i, 0] = u
        out_points[i, 1] = v
        out_status[i] = OK

# =========================
# Standard Python functions
# =========================

def normalize(v: np.ndarray) -> np.ndarray:
    """Normalize a vector to unit length."""
    n = np.linalg.norm(v)
    return v / n if n > 0 else v

def normalize_rows(v: np.ndarray) -> np.ndarray:
    """Normalize each row of an (N,3) array; zero rows stay zero."""
    n = np.linalg.norm(v, axis=1, keepdims=True)
    return np.divide(v, n, out=np.zeros_like(v), where=n > 0)

def refract_one_sided(I: np.ndarray, N_toward_source: np.ndarray, eta: float) -> Tuple[Optional[np.ndarray], int]:
    """
    Snell refraction for a single normal, N_toward_source facing the incoming beam.
    eta = n_incident / n_transmitted.
    Returns (refracted_direction or None, status code).
    """
    I = normalize(np.asarray(I, dtype=float))
    nn = np.linalg.norm(N_toward_source)
    if not np.isfinite(nn) or nn < EPS:
        return None, DEGENERATE_NORMAL
    N = np.asarray(N_toward_source, dtype=float) / nn
    cosi = -float(np.dot(I, N))
    if cosi < 0.0:
        return None, BACK_FACING
    cosi = min(cosi, 1.0)
    sin2t = eta*eta*(1.0 - cosi*cosi)
    if sin2t > 1.0:
        return None, TIR
    cost = np.sqrt(np.clip(1.0 - sin2t, 0.0, 1.0))
    T = eta*I + (eta*cosi - cost)*N
    return normalize(T), OK
