#!/usr/bin/env python3
"""
Command line entry point for the caustics simulation.
Loads a lens surface, refracts a collimated beam through it once and shows
(or exports) the pattern on a receiver plane at an adjustable distance.
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from analysis import (
    analyze_distance_sweep, pattern_statistics, plot_distance_sweep,
    save_caustics_ppm, tightest_distance,
)
from beam import CollimatedBeam
from defaults import DEMO_ETA, DISPLAY_SIZE, ETA, PPM_FILENAME, PROPAGATION_AXIS
from exceptions import CausticsError, InputError, InvalidDistanceError
from geometry import LensSurface, plano_convex_surface
from logging_config import setup_logging
from mesh_io import load_obj, save_obj
from ray_tracer import CausticEngine, validate_distance
from session import ReceiverSession

logger = logging.getLogger("demo")

DEMO_MESH = "demo"


def create_demo_lens(aperture_radius: float = 100.0,
                     R: float = 160.0,
                     center_thickness: float = 50.0) -> LensSurface:
    """Plano-convex lens face centred in the nominal display space."""
    c = DISPLAY_SIZE / 2.0
    return plano_convex_surface(
        aperture_radius=aperture_radius,
        R=R,
        center_thickness=center_thickness,
        radial_segments=64,
        azimuth_segments=256,
        center=(c, c, 0.0),
    )

def resolve_eta(mesh: str, eta: Optional[float]) -> float:
    """
    Explicit --eta wins. The built-in lens is entered from the air side, so it
    defaults to 1/ETA; OBJ meshes default to ETA (light leaving the glass).
    """
    if eta is not None:
        return eta
    return DEMO_ETA if mesh == DEMO_MESH else ETA

def sweep_distances(start, stop, count) -> np.ndarray:
    """Evenly spaced receiver distances for --sweep, or InvalidDistanceError."""
    start = validate_distance(start)
    stop = validate_distance(stop)
    count = validate_distance(count)
    if count < 1:
        raise InvalidDistanceError(f"sweep count must be at least 1, got {count:g}")
    return np.linspace(start, stop, int(count))

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caustics",
        description="Project the caustic of a refracting surface onto a receiver plane",
    )
    parser.add_argument("mesh", help=f"path to an OBJ file with vertex normals, or '{DEMO_MESH}'")
    parser.add_argument("distance", help="receiver plane position along the propagation axis")
    parser.add_argument("--eta", type=float, default=None,
                        help=f"relative refractive index n_incident / n_transmitted "
                             f"(default {ETA:g}, light leaving the glass; "
                             f"{DEMO_ETA:.4g} for the '{DEMO_MESH}' lens, light entering it)")
    parser.add_argument("--axis", default=PROPAGATION_AXIS, choices=["x", "y", "z"],
                        help="propagation axis; the beam travels toward its negative end")
    parser.add_argument("--export", metavar="PPM", default=None,
                        help="write the initial pattern to a PPM image")
    parser.add_argument("--save-mesh", metavar="OBJ", default=None,
                        help="write the loaded surface as an OBJ file")
    parser.add_argument("--sweep", type=float, nargs=3, metavar=("START", "STOP", "COUNT"),
                        default=None, help="analyze the pattern over a range of distances")
    parser.add_argument("--scene", action="store_true", default=False,
                        help="show a 3D PyVista scene of lens, rays and receiver")
    parser.add_argument("--no-window", action="store_true", default=False,
                        help="do not open the interactive viewer")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="also write the log to this file")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        distance = validate_distance(args.distance)
        sweep = sweep_distances(*args.sweep) if args.sweep else None
        beam = CollimatedBeam(eta=resolve_eta(args.mesh, args.eta), axis=args.axis)
        surface = create_demo_lens() if args.mesh == DEMO_MESH else load_obj(args.mesh)
    except InputError as exc:
        logger.error("%s", exc)
        return 1

    engine = CausticEngine(surface, beam)
    session = ReceiverSession(distance)
    hits = engine.recompute(session.distance)
    stats = pattern_statistics(hits)
    logger.info("Receiver at %s=%g: %d of %d rays hit",
                beam.axis, hits.distance, stats['n_hits'], stats['n_total'])
    if stats['n_hits'] > 0:
        logger.info("Pattern centroid (%.4g, %.4g), rms radius %.4g",
                    stats['mu'][0], stats['mu'][1], stats['rms_radius'])

    try:
        if args.save_mesh:
            save_obj(args.save_mesh, surface)
        if args.export:
            save_caustics_ppm(args.export, hits)
    except CausticsError as exc:
        logger.error("%s", exc)
        return 1

    if sweep is not None:
        results = analyze_distance_sweep(engine, sweep)
        best = tightest_distance(results)
        if best is None:
            logger.info("No ray reaches the receiver over the sweep")
        else:
            logger.info("Tightest pattern at %s=%g", beam.axis, best)
        if not args.no_window:
            plot_distance_sweep(results, show=True)

    if args.scene:
        from visualization import create_caustic_scene
        create_caustic_scene(surface, hits, axis=beam.axis_index,
                             title=f"{surface.name} (eta={beam.eta:g})").show()

    if not args.no_window:
        from viewer import CausticViewer
        CausticViewer(engine, session, export_path=args.export or PPM_FILENAME).show()

    return 0

if __name__ == "__main__":
    sys.exit(main())
