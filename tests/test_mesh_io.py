import numpy as np
import pytest

from exceptions import InputError, MeshIOError, MeshParseError
from geometry import plano_convex_surface
from math_utils import DEGENERATE_NORMAL, OK
from mesh_io import load_obj, parse_obj, save_obj
from ray_tracer import refract_normals
from beam import CollimatedBeam

PAIRED = """\
# two vertices with normals in order
v 0 0 0
v 1 0 0.5
vn 0 0 2
vn 0 0.6 0.8
"""

FACES = """\
v 0 0 0
v 1 0 0
v 0 1 0
vn 0 0 1
vn 1 0 0
vt 0 0
f 1//1 2/1/2 3//2
f 1//2 2//2 3//1
"""


def test_paired_records_in_order():
    surface = parse_obj(PAIRED.splitlines(), name="paired")
    assert surface.name == "paired"
    np.testing.assert_allclose(surface.vertices, [[0, 0, 0], [1, 0, 0.5]])
    # Normals are unit length after loading
    np.testing.assert_allclose(surface.normals, [[0, 0, 1], [0, 0.6, 0.8]])


def test_face_references_pair_vertices_with_first_normal():
    surface = parse_obj(FACES.splitlines())
    np.testing.assert_allclose(surface.normals, [[0, 0, 1], [1, 0, 0], [1, 0, 0]])


def test_negative_face_indices():
    text = "v 0 0 0\nv 1 1 1\nvn 0 0 1\nvn 0 1 0\nf -2//-1 -1//-2 -2//-2\n"
    surface = parse_obj(text.splitlines())
    np.testing.assert_allclose(surface.normals, [[0, 1, 0], [0, 0, 1]])


def test_vertex_without_face_normal():
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nv 5 5 5\nvn 0 0 1\nf 1//1 2//1 3//1\n"
    with pytest.raises(MeshParseError) as info:
        parse_obj(text.splitlines())
    assert info.value.line_number == 4


def test_bad_number_reports_line():
    text = "v 0 0 0\nv 1 zero 0\nvn 0 0 1\nvn 0 0 1\n"
    with pytest.raises(MeshParseError) as info:
        parse_obj(text.splitlines())
    assert info.value.line_number == 2
    assert "line 2" in str(info.value)
    assert isinstance(info.value, InputError)


@pytest.mark.parametrize("text", [
    "",
    "# nothing\n",
    "v 0 0 0\n",
    "v 0 0 0\nv 1 1 1\nvn 0 0 1\n",
    "v 0 0\nvn 0 0 1\n",
    "v 0 0 0\nvn 0 0 1\nf 1//1 2//1 1//1\n",
    "v 0 0 0\nvn 0 0 1\nf 1//1 1//1\n",
    "v 0 0 nan\nvn 0 0 1\n",
])
def test_malformed_meshes(text):
    with pytest.raises(MeshParseError):
        parse_obj(text.splitlines())


def test_zero_normal_is_kept_and_flagged_by_the_solver():
    text = "v 0 0 0\nv 1 0 0\nvn 0 0 0\nvn 0 0 1\n"
    surface = parse_obj(text.splitlines())
    assert len(surface) == 2
    rays = refract_normals(surface.normals, CollimatedBeam())
    assert rays.status.tolist() == [DEGENERATE_NORMAL, OK]


def test_missing_file(tmp_path):
    with pytest.raises(MeshIOError):
        load_obj(str(tmp_path / "missing.obj"))


def test_saved_surface_loads_back(tmp_path):
    surface = plano_convex_surface(5.0, 20.0, 2.0, radial_segments=3, azimuth_segments=8)
    path = tmp_path / "lens.obj"
    save_obj(str(path), surface)
    loaded = load_obj(str(path))
    assert loaded.name == "lens"
    np.testing.assert_array_equal(loaded.vertices, surface.vertices)
    np.testing.assert_allclose(loaded.normals, surface.normals, atol=1e-15)
