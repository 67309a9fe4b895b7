import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from beam import CollimatedBeam
from geometry import LensSurface


def hemisphere_normals(n: int, seed: int = 0, min_cos: float = 0.05) -> np.ndarray:
    """Random unit normals with a +z component of at least min_cos."""
    rng = np.random.default_rng(seed)
    v = rng.normal(size=(4 * n, 3))
    v /= np.linalg.norm(v, axis=1, keepdims=True)
    v[:, 2] = np.abs(v[:, 2])
    v = v[v[:, 2] >= min_cos]
    return v[:n]


@pytest.fixture
def beam():
    return CollimatedBeam(eta=1.457)


@pytest.fixture
def on_axis_surface():
    z = np.array([0.0, -0.25, -0.5, 0.5, 1.0])
    V = np.stack([np.zeros_like(z), np.zeros_like(z), z], axis=-1)
    N = np.tile([0.0, 0.0, 1.0], (z.size, 1))
    return LensSurface.from_arrays(V, N, name="on_axis")


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so they don't outlive a test."""
    import logging
    from logging_config import LOGGER_NAMES

    yield
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
