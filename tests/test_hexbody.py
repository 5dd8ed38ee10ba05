from __future__ import annotations

import math

import pytest

from threadforge.mesh import analyze_mesh
from threadforge.modeling import make_hex_body, make_ngon_prism
from threadforge.modeling.hexbody import across_flats
from threadforge.validation import ConfigError


def test_across_flats() -> None:
    assert across_flats(10.0) == pytest.approx(10.0 * math.sqrt(3.0) / 2.0)


def test_plain_hex_prism_dimensions() -> None:
    body = make_hex_body(10.0, 5.0, bevel=False)
    xmin, xmax, ymin, ymax, zmin, zmax = body.bounds
    assert (zmin, zmax) == pytest.approx((0.0, 5.0))
    assert (xmin, xmax) == pytest.approx((-5.0, 5.0))
    assert ymax == pytest.approx(across_flats(10.0) / 2.0)
    assert body.volume == pytest.approx(3.0 * math.sqrt(3.0) / 2.0 * 25.0 * 5.0)


def test_bevel_cuts_corners_at_the_faces() -> None:
    body = make_hex_body(10.0, 5.0)
    analysis = analyze_mesh(body)
    assert analysis.is_watertight
    assert body.bounds[4:] == pytest.approx((0.0, 5.0), abs=1e-5)
    # Corners survive at mid height.
    assert body.bounds[1] == pytest.approx(5.0, abs=1e-4)
    plain = make_hex_body(10.0, 5.0, bevel=False)
    assert body.volume < plain.volume

    # On the bottom face nothing reaches beyond the across-flats circle.
    bottom = body.vertices[body.vertices[:, 2] < 1e-5]
    radii = (bottom[:, 0] ** 2 + bottom[:, 1] ** 2) ** 0.5
    assert radii.max() <= across_flats(10.0) / 2.0 + 1e-4


def test_rounded_body_keeps_outer_height() -> None:
    body = make_hex_body(10.0, 5.0, rounding=0.5, rounding_segments=16)
    assert analyze_mesh(body).is_watertight
    assert body.bounds[4:] == pytest.approx((0.0, 5.0), abs=1e-3)
    assert 4.5 < body.bounds[1] <= 5.0 + 1e-4
    assert body.metadata["rounding"] == pytest.approx(0.5)
    assert body.metadata["across_flats"] == pytest.approx(across_flats(10.0))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"span": 0.0, "height": 5.0},
        {"span": 10.0, "height": -1.0},
        {"span": 10.0, "height": 5.0, "rounding": -0.1},
        {"span": 10.0, "height": 5.0, "rounding": 2.5},
    ],
)
def test_invalid_hex_body(kwargs) -> None:
    with pytest.raises(ConfigError):
        make_hex_body(**kwargs)


def test_hex_prism_first_corner_on_x_axis() -> None:
    prism = make_ngon_prism(6, radius=2.0, height=1.0)
    assert prism.bounds[1] == pytest.approx(2.0)
