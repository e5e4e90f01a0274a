import math

import numpy as np
import pytest

from impactviz.view.body_preview import BODY_TILT_DEG, body_orientation, build_body_mesh


@pytest.mark.parametrize("radius", [0.15, 1.35, 2.5])
def test_body_mesh_radius(radius):
    mesh = build_body_mesh(radius)
    assert mesh.n_points > 0
    assert np.linalg.norm(mesh.points, axis=1) == pytest.approx(radius, rel=1e-5)


def test_body_orientation_spins_about_y():
    assert body_orientation(0.0, 3.0) == (0.0, 0.0, BODY_TILT_DEG)
    x, y, z = body_orientation(1.0, math.pi / 2)
    assert (x, z) == (0.0, BODY_TILT_DEG)
    assert y == pytest.approx(90.0)


def test_body_orientation_wraps():
    _, y, _ = body_orientation(3.0, math.pi / 2)
    assert y == pytest.approx(270.0)
    _, y, _ = body_orientation(5.0, math.pi / 2)
    assert y == pytest.approx(90.0)
