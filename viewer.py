#!/usr/bin/env python3
"""
Interactive matplotlib viewer for the receiver-plane pattern.

Keys:
- w / s: move the receiver by +/- one small step
- e / d: move the receiver by +/- one big step
- q: log the current receiver distance
- p: export the pattern as a PPM image
- escape: close the window
"""

import logging

import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, Optional, Tuple

from analysis import point_colors, save_caustics_ppm, to_window_coords
from defaults import DISPLAY_SIZE, PPM_FILENAME
from exceptions import ExportError
from ray_tracer import CausticEngine, Intersections
from session import ReceiverSession

logger = logging.getLogger(__name__)

# key -> (direction, big step)
STEP_KEYS: Dict[str, Tuple[int, bool]] = {
    'w': (+1, False),
    's': (-1, False),
    'e': (+1, True),
    'd': (-1, True),
}
VIEWER_KEYS = tuple(STEP_KEYS) + ('q', 'p', 'escape')


def release_default_keymaps(keys=VIEWER_KEYS) -> None:
    """Remove the viewer's keys from matplotlib's built-in shortcuts."""
    for name in list(plt.rcParams.keys()):
        if name.startswith('keymap.'):
            plt.rcParams[name] = [k for k in plt.rcParams[name] if k not in keys]


class CausticViewer:
    """Black window with one colored dot per receiver hit, redrawn on every distance change."""

    def __init__(self, engine: CausticEngine, session: ReceiverSession,
                 export_path: str = PPM_FILENAME, nominal: int = DISPLAY_SIZE):
        self.engine = engine
        self.session = session
        self.export_path = export_path
        self.nominal = nominal
        self.hits: Optional[Intersections] = None

        release_default_keymaps()
        w, h = session.window_size
        dpi = 100.0
        self.fig = plt.figure(figsize=(w / dpi, h / dpi), dpi=dpi, facecolor='black')
        self.ax = self.fig.add_axes([0.0, 0.0, 1.0, 1.0])
        self.ax.set_facecolor('black')
        self.ax.set_axis_off()
        self.scatter = self.ax.scatter([], [], s=1.0, marker='s', linewidths=0)

        self.fig.canvas.mpl_connect('key_press_event', self.on_key)
        self.fig.canvas.mpl_connect('resize_event', self.on_resize)
        self.recompute()

    def recompute(self) -> Intersections:
        self.hits = self.engine.recompute(self.session.distance)
        self.draw()
        return self.hits

    def draw(self) -> None:
        """Draw the current hits scaled from display space into the window."""
        w, h = self.session.window_size
        valid = self.hits.valid
        colors = point_colors(self.hits.points, nominal=self.nominal)[valid]
        xy = to_window_coords(self.hits.points[valid], (w, h), nominal=self.nominal)

        self.scatter.set_offsets(xy if xy.size else np.empty((0, 2)))
        self.scatter.set_facecolors(colors / 255.0 if colors.size else np.empty((0, 4)))
        # Screen convention: origin top-left, y down
        self.ax.set_xlim(0, w)
        self.ax.set_ylim(h, 0)
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title(
                f"Caustics Simulation - distance: {self.session.distance:.4g}")
        self.fig.canvas.draw_idle()

    def on_key(self, event) -> None:
        key = getattr(event, 'key', None)
        if key in STEP_KEYS:
            direction, big = STEP_KEYS[key]
            self.session.nudge(direction, big=big)
            self.recompute()
        elif key == 'q':
            logger.info("Current distance between lens and receiver plane: %g",
                        self.session.distance)
        elif key == 'p':
            try:
                save_caustics_ppm(self.export_path, self.hits, size=self.nominal)
            except ExportError as exc:
                logger.error("%s", exc)
        elif key == 'escape':
            plt.close(self.fig)

    def on_resize(self, event) -> None:
        width = getattr(event, 'width', 0)
        height = getattr(event, 'height', 0)
        if width > 0 and height > 0:
            self.session.resize(width, height)
            self.draw()

    def show(self) -> None:
        plt.show()
