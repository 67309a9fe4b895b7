import matplotlib.pyplot as plt
import numpy as np
import pytest

from analysis import (
    analyze_distance_sweep, pattern_statistics, plot_caustic, plot_distance_sweep,
    point_colors, rasterize, save_caustics_ppm, tightest_distance, to_window_coords,
)
from exceptions import ExportError
from math_utils import BEHIND, OK
from ray_tracer import CausticEngine, Intersections


def _hits(points, status=None, distance=-1.0):
    points = np.asarray(points, dtype=float)
    if status is None:
        status = np.full(points.shape[0], OK, dtype=np.int8)
    return Intersections(points=points, status=np.asarray(status, dtype=np.int8), distance=distance)


def test_pattern_statistics_ignores_invalid_points():
    hits = _hits([[1.0, 1.0], [3.0, 1.0], [np.nan, np.nan], [2.0, 4.0]],
                 status=[OK, OK, BEHIND, OK])
    stats = pattern_statistics(hits)
    assert stats["n_total"] == 4
    assert stats["n_hits"] == 3
    np.testing.assert_allclose(stats["mu"], [2.0, 2.0])
    assert stats["rms_radius"] == pytest.approx(np.sqrt((2.0 + 2.0 + 4.0) / 3.0))


def test_pattern_statistics_without_hits():
    stats = pattern_statistics(_hits([[np.nan, np.nan]], status=[BEHIND]))
    assert stats["n_hits"] == 0
    assert "mu" not in stats


def test_rasterize_truncates_and_clips():
    hits = _hits([[0.2, 0.9], [10.7, 3.2], [255.9, 255.9], [256.0, 1.0], [-1.5, 2.0], [5.0, 5.0]],
                 status=[OK, OK, OK, OK, OK, BEHIND])
    img = rasterize(hits)
    assert img.shape == (256, 256, 3)
    assert img[0, 0].tolist() == [255, 255, 255]
    assert img[3, 10].tolist() == [255, 255, 255]
    assert img[255, 255].tolist() == [255, 255, 255]
    assert img[5, 5].tolist() == [0, 0, 0]
    assert int(img[..., 0].astype(bool).sum()) == 3


def test_ppm_export(tmp_path):
    hits = _hits([[1.0, 2.0]])
    path = save_caustics_ppm(str(tmp_path / "out.ppm"), hits, size=4)
    data = open(path, "rb").read()
    header = b"P6\n4 4\n255\n"
    assert data.startswith(header)
    body = np.frombuffer(data[len(header):], dtype=np.uint8).reshape(4, 4, 3)
    assert body[2, 1].tolist() == [255, 255, 255]
    assert int(body.sum()) == 3 * 255


def test_ppm_export_failure(tmp_path):
    with pytest.raises(ExportError):
        save_caustics_ppm(str(tmp_path / "no" / "such" / "dir.ppm"), _hits([[1.0, 1.0]]))


def test_window_scaling_and_colors():
    pts = np.array([[128.0, 64.0], [300.0, -5.0]])
    np.testing.assert_allclose(to_window_coords(pts, (512, 128)), [[256.0, 32.0], [600.0, -2.5]])
    colors = point_colors(pts)
    assert colors.dtype == np.uint8
    assert colors[0].tolist() == [127, 63, 0]
    assert colors[1].tolist() == [255, 0, 127]


def test_sweep_over_distances(beam, on_axis_surface):
    engine = CausticEngine(on_axis_surface, beam)
    results = analyze_distance_sweep(engine, [5.0, -2.0, -3.0])
    assert results["n_hits"].tolist() == [0, 5, 5]
    assert np.isnan(results["rms_radius"][0])
    assert tightest_distance(results) == -2.0
    none_hit = analyze_distance_sweep(engine, [5.0])
    assert tightest_distance(none_hit) is None


def test_plots_build_figures(beam, on_axis_surface):
    engine = CausticEngine(on_axis_surface, beam)
    fig, ax = plot_caustic(engine.recompute(-2.0), bins=8, title_prefix="on axis")
    assert "5/5 hits" in ax.get_title()
    plt.close(fig)
    fig, ax = plot_caustic(engine.recompute(5.0))
    assert "no intersections" in ax.get_title()
    plt.close(fig)
    fig, _ = plot_distance_sweep(analyze_distance_sweep(engine, [-1.0, -2.0]))
    plt.close(fig)
