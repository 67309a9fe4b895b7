#!/usr/bin/env python3
"""
3D visualization utilities using PyVista for caustic projection.
Shows the lens samples, the refracted ray segments and the receiver hits.
"""

import numpy as np
import pyvista as pv
from typing import Optional, Tuple

from geometry import LensSurface
from ray_tracer import Intersections

def surface_to_polydata(surface: LensSurface) -> pv.PolyData:
    """Point cloud of the lens samples with normals attached as point data."""
    cloud = pv.PolyData(np.asarray(surface.vertices, dtype=float))
    cloud.point_data['normals'] = np.asarray(surface.normals, dtype=float)
    return cloud

def receiver_points_3d(hits: Intersections, axis: int = 2) -> np.ndarray:
    """Lift valid 2D receiver points back into 3D on the plane {p[axis] = distance}."""
    xy = hits.valid_points()
    pts = np.empty((xy.shape[0], 3), dtype=float)
    pts[:, axis] = hits.distance
    pts[:, (axis + 1) % 3] = xy[:, 0]
    pts[:, (axis + 2) % 3] = xy[:, 1]
    return pts

def ray_segments_polydata(surface: LensSurface, hits: Intersections, axis: int = 2,
                          max_rays: Optional[int] = None) -> pv.PolyData:
    """
    Line segments from each lens sample to its receiver hit.
    Only samples with a valid hit get a segment; max_rays thins them evenly.
    """
    idx = np.flatnonzero(hits.valid)
    if max_rays is not None and idx.size > max_rays > 0:
        idx = idx[np.linspace(0, idx.size - 1, max_rays).astype(np.int64)]
    if idx.size == 0:
        return pv.PolyData()

    starts = np.asarray(surface.vertices, dtype=float)[idx]
    ends = np.empty_like(starts)
    ends[:, axis] = hits.distance
    ends[:, (axis + 1) % 3] = hits.points[idx, 0]
    ends[:, (axis + 2) % 3] = hits.points[idx, 1]

    pts = np.empty((2 * idx.size, 3), dtype=float)
    pts[0::2] = starts
    pts[1::2] = ends
    # VTK lines format: [2, i, j, 2, i, j, ...]
    n = idx.size
    lines = np.column_stack([np.full(n, 2), np.arange(0, 2*n, 2), np.arange(1, 2*n, 2)]).ravel()
    return pv.PolyData(pts, lines=lines.astype(np.int64))

def receiver_plane_mesh(hits: Intersections, axis: int = 2, margin: float = 1.2) -> pv.PolyData:
    """Square patch of the receiver plane covering all valid hits."""
    pts = receiver_points_3d(hits, axis=axis)
    center = np.zeros(3)
    center[axis] = hits.distance
    size = 1.0
    if pts.shape[0] > 0:
        center = 0.5 * (pts.min(axis=0) + pts.max(axis=0))
        span = float(np.max(pts.max(axis=0) - pts.min(axis=0)))
        size = margin * span if span > 0 else 1.0
    direction = np.zeros(3)
    direction[axis] = 1.0
    return pv.Plane(center=center, direction=direction, i_size=size, j_size=size)

def create_caustic_scene(surface: LensSurface,
                         hits: Intersections,
                         axis: int = 2,
                         title: str = "Caustic projection",
                         max_rays: Optional[int] = 400,
                         window_size: Tuple[int, int] = (900, 700),
                         off_screen: bool = False) -> pv.Plotter:
    """
    Create complete 3D scene: lens samples, ray segments, receiver patch and hits.

    Returns configured PyVista plotter.
    """
    p = pv.Plotter(window_size=window_size, off_screen=off_screen)
    p.add_title(title, font_size=12)

    p.add_mesh(surface_to_polydata(surface), color="lightblue", point_size=3,
               render_points_as_spheres=True)

    segments = ray_segments_polydata(surface, hits, axis=axis, max_rays=max_rays)
    if segments.n_points > 0:
        p.add_mesh(segments, color="crimson", line_width=1.0, opacity=0.6)

    p.add_mesh(receiver_plane_mesh(hits, axis=axis), color="white", opacity=0.15)
    pts = receiver_points_3d(hits, axis=axis)
    if pts.shape[0] > 0:
        p.add_mesh(pv.PolyData(pts), color="gold", point_size=2)

    p.add_axes(interactive=True)
    p.enable_parallel_projection()
    p.show_grid()
    return p
