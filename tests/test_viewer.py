from types import SimpleNamespace

import matplotlib.pyplot as plt
import pytest

from ray_tracer import CausticEngine
from session import ReceiverSession
from viewer import CausticViewer, VIEWER_KEYS


@pytest.fixture
def viewer(beam, on_axis_surface, tmp_path):
    v = CausticViewer(CausticEngine(on_axis_surface, beam), ReceiverSession(-2.0),
                      export_path=str(tmp_path / "caustics.ppm"))
    yield v
    plt.close(v.fig)


def _key(key):
    return SimpleNamespace(key=key)


def test_step_keys_move_the_receiver(viewer):
    viewer.on_key(_key("w"))
    assert viewer.session.distance == pytest.approx(-1.9)
    assert viewer.hits.distance == pytest.approx(-1.9)
    viewer.on_key(_key("d"))
    assert viewer.session.distance == pytest.approx(-2.9)
    viewer.on_key(_key("e"))
    viewer.on_key(_key("s"))
    assert viewer.hits.distance == pytest.approx(-2.0)


def test_moving_past_the_lens_clears_the_pattern(viewer):
    for _ in range(4):
        viewer.on_key(_key("e"))
    assert viewer.session.distance == pytest.approx(2.0)
    assert int(viewer.hits.valid.sum()) == 0
    assert viewer.scatter.get_offsets().shape[0] == 0


def test_export_and_report_keys(viewer, tmp_path, caplog):
    viewer.on_key(_key("p"))
    assert (tmp_path / "caustics.ppm").exists()
    with caplog.at_level("INFO", logger="viewer"):
        viewer.on_key(_key("q"))
    assert "-2" in caplog.text
    viewer.on_key(_key("x"))
    assert viewer.session.distance == -2.0


def test_resize_rescales_points(viewer):
    viewer.on_resize(SimpleNamespace(width=512, height=128))
    assert viewer.session.window_size == (512, 128)
    assert viewer.ax.get_xlim() == (0.0, 512.0)
    assert viewer.ax.get_ylim() == (128.0, 0.0)


def test_viewer_keys_do_not_trigger_matplotlib_shortcuts(viewer):
    for name, keys in plt.rcParams.items():
        if name.startswith("keymap."):
            assert not set(keys) & set(VIEWER_KEYS)


def test_escape_closes_the_window(viewer):
    viewer.on_key(_key("escape"))
    assert not plt.fignum_exists(viewer.fig.number)
