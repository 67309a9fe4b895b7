#!/usr/bin/env python3
"""
Analysis and export utilities for receiver-plane patterns.
Includes pattern statistics, display-space mapping, rasterization, PPM
export and matplotlib plots.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, Iterable, Optional, Tuple

from defaults import DISPLAY_SIZE
from exceptions import ExportError
from ray_tracer import CausticEngine, Intersections

logger = logging.getLogger(__name__)


def pattern_statistics(hits: Intersections) -> Dict:
    """
    Second-moment description of the valid receiver points.
    Returns parameters: counts, mu, Sigma, principal radii, rotation angle.
    """
    xy = hits.valid_points()
    stats = {'n_total': len(hits), 'n_hits': int(xy.shape[0]), 'distance': hits.distance}
    if xy.shape[0] == 0:
        return stats

    mu = xy.mean(axis=0)
    X = xy - mu
    # Sample covariance matrix
    Sigma = (X.T @ X) / max(1, xy.shape[0]-1)

    # Eigendecomposition for principal axes
    evals, evecs = np.linalg.eigh(Sigma)
    idx = np.argsort(evals)[::-1]
    evals = evals[idx]
    evecs = evecs[:, idx]

    sigmas = np.sqrt(np.maximum(evals, 0.0))
    w = np.sqrt(2.0) * sigmas

    # Rotation angle of major axis
    angle = np.degrees(np.arctan2(evecs[1, 0], evecs[0, 0]))

    stats.update({
        'mu': mu,
        'Sigma': Sigma,
        'sigmas': sigmas,
        'w': w,
        'rms_radius': float(np.sqrt(np.mean(np.sum(X*X, axis=1)))),
        'angle_deg': float(angle),
    })
    return stats

def ellipse_points(mu, axes_w, angle_deg, n=200):
    """Generate points for the 1/e^2-style spread ellipse."""
    t = np.linspace(0, 2*np.pi, n)
    ca, sa = np.cos(np.radians(angle_deg)), np.sin(np.radians(angle_deg))
    R = np.array([[ca, -sa], [sa, ca]])
    pts = (R @ (np.vstack((axes_w[0]*np.cos(t), axes_w[1]*np.sin(t)))))
    return pts.T + mu

def analyze_distance_sweep(engine: CausticEngine, distances: Iterable[float]) -> Dict:
    """
    Recompute the pattern at several receiver distances.
    Returns arrays of distance, hit count, centroid and RMS radius.
    """
    results = {'distance': [], 'n_hits': [], 'mu_x': [], 'mu_y': [], 'rms_radius': []}
    for D in distances:
        stats = pattern_statistics(engine.recompute(D))
        results['distance'].append(stats['distance'])
        results['n_hits'].append(stats['n_hits'])
        if stats['n_hits'] > 0:
            results['mu_x'].append(stats['mu'][0])
            results['mu_y'].append(stats['mu'][1])
            results['rms_radius'].append(stats['rms_radius'])
        else:
            results['mu_x'].append(np.nan)
            results['mu_y'].append(np.nan)
            results['rms_radius'].append(np.nan)

    for key in results:
        results[key] = np.asarray(results[key])
    return results

def tightest_distance(results: Dict) -> Optional[float]:
    """Distance with the smallest RMS radius in a sweep, or None if nothing hit."""
    r = results['rms_radius']
    if r.size == 0 or np.all(np.isnan(r)):
        return None
    return float(results['distance'][int(np.nanargmin(r))])

# =========================
# Display space
# =========================

def to_window_coords(points: np.ndarray, window_size: Tuple[int, int],
                     nominal: int = DISPLAY_SIZE) -> np.ndarray:
    """Scale points from the nominal square display space to a window."""
    scale = np.array([window_size[0] / float(nominal), window_size[1] / float(nominal)])
    return np.asarray(points, dtype=float) * scale

def point_colors(points: np.ndarray, nominal: int = DISPLAY_SIZE) -> np.ndarray:
    """
    Per-point RGB colors in [0, 255]: red from x, green from y and blue
    from the point's position in the sequence.
    """
    P = np.asarray(points, dtype=float)
    n = P.shape[0]
    colors = np.zeros((n, 3), dtype=float)
    if n == 0:
        return colors.astype(np.uint8)
    colors[:, 0] = P[:, 0] / nominal * 255.0
    colors[:, 1] = P[:, 1] / nominal * 255.0
    colors[:, 2] = np.arange(n) / float(n) * 255.0
    colors = np.nan_to_num(colors, nan=0.0)
    return np.clip(colors, 0.0, 255.0).astype(np.uint8)

def rasterize(hits: Intersections, size: int = DISPLAY_SIZE) -> np.ndarray:
    """
    Binary (size, size, 3) uint8 image: white wherever a valid point falls
    into the grid after truncation toward zero, black elsewhere.
    Row index is y, column index is x.
    """
    img = np.zeros((size, size, 3), dtype=np.uint8)
    xy = hits.valid_points()
    if xy.shape[0] == 0:
        return img
    ij = np.trunc(xy)
    inside = np.all((ij >= 0) & (ij < size), axis=1)
    ij = ij[inside].astype(np.int64)
    img[ij[:, 1], ij[:, 0]] = 255
    return img

def save_caustics_ppm(path: str, hits: Intersections, size: int = DISPLAY_SIZE) -> str:
    """Write the rasterized pattern as a binary PPM (P6) file."""
    img = rasterize(hits, size=size)
    try:
        with open(path, "wb") as fh:
            fh.write(f"P6\n{size} {size}\n255\n".encode("ascii"))
            fh.write(img.tobytes())
    except OSError as exc:
        raise ExportError(f"failed to open {path} for writing: {exc}") from exc
    logger.info("Saved %s (%d of %d points)", path, int(hits.valid.sum()), len(hits))
    return path

# =========================
# Plots
# =========================

def plot_caustic(hits: Intersections, fit: bool = True, bins: int = 0,
                 title_prefix: str = "", ax=None, show: bool = False):
    """
    Scatter plot of the receiver pattern.

    Parameters:
    - hits: output of CausticEngine.recompute
    - fit: draw the spread ellipse and centroid
    - bins: number of histogram bins for background (0 = no histogram)
    - title_prefix: prefix for plot title
    - ax: axes to draw into; a new figure is created when None
    - show: call plt.show() before returning

    Returns (fig, ax).
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(6.5, 5.5))
    else:
        fig = ax.figure

    xy = hits.valid_points()
    if xy.shape[0] == 0:
        ax.set_title(f"{title_prefix} D={hits.distance:.4g} - no intersections")
    else:
        if bins and bins > 0:
            H, xedges, yedges = np.histogram2d(xy[:,0], xy[:,1], bins=bins)
            ax.imshow(H.T, origin='lower',
                      extent=[xedges[0], xedges[-1], yedges[0], yedges[-1]],
                      cmap='Greys', alpha=0.35, aspect='equal', interpolation='nearest')

        ax.scatter(xy[:,0], xy[:,1], s=4, alpha=0.7, color='blue')

        txt = ""
        if fit:
            pars = pattern_statistics(hits)
            ell = ellipse_points(pars['mu'], pars['w'], pars['angle_deg'])
            ax.plot(ell[:,0], ell[:,1], 'r-', lw=2, label='spread ellipse')
            ax.legend()
            txt = (f"μ=({pars['mu'][0]:.3g},{pars['mu'][1]:.3g})  "
                   f"rms={pars['rms_radius']:.3g}")
        ax.set_title(f"{title_prefix} D={hits.distance:.4g}  {len(xy)}/{len(hits)} hits  {txt}")

    ax.set_xlabel('u')
    ax.set_ylabel('v')
    ax.set_aspect('equal', adjustable='box')
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    if show:
        plt.show()
    return fig, ax

def plot_distance_sweep(results: Dict, title: str = "Receiver sweep", show: bool = False):
    """Plot hit count and pattern size against receiver distance."""
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8))

    D = results['distance']

    ax1.plot(D, results['rms_radius'], 'b-', label='rms radius', linewidth=2)
    ax1.set_xlabel('receiver distance')
    ax1.set_ylabel('rms radius')
    ax1.set_title(f'{title} - Pattern Size')
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    ax2.plot(D, results['n_hits'], 'r-', label='hits', linewidth=2)
    ax2.set_xlabel('receiver distance')
    ax2.set_ylabel('points on receiver')
    ax2.set_title(f'{title} - Hit Count')
    ax2.grid(True, alpha=0.3)
    ax2.legend()

    fig.tight_layout()
    if show:
        plt.show()
    return fig, (ax1, ax2)
