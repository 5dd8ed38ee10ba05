"""Hex nut and bolt-head bodies: hex prism cut by a chamfer double cone, optionally rounded."""

from __future__ import annotations

import math

from threadforge.mesh import Mesh
from threadforge.modeling.csg import BooleanBackend, boolean_intersection, minkowski_sphere
from threadforge.modeling.primitives import make_cone, make_ngon_prism
from threadforge.validation import ConfigError

CHAMFER_ANGLE = 30.0


def across_flats(span: float) -> float:
    """Width across flats of a regular hexagon with corner-to-corner ``span``."""

    return span * math.cos(math.radians(30.0))


def make_hex_body(
    span: float,
    height: float,
    *,
    bevel: bool = True,
    rounding: float = 0.0,
    resolution: int = 64,
    rounding_segments: int = 16,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    """Hex body standing on z=0 with corner-to-corner width ``span``.

    With ``bevel`` the top and bottom edges are chamfered at 30 degrees starting
    at the across-flats circle. A positive ``rounding`` shrinks the body by that
    radius and grows it back with a sphere, keeping the outer size unchanged.
    """

    if span <= 0 or height <= 0:
        raise ConfigError("span and height must be positive.")
    if rounding < 0:
        raise ConfigError("rounding must be non-negative.")
    flats = across_flats(span)
    if 2.0 * rounding >= min(height, flats):
        raise ConfigError("rounding consumes the whole hex body.")

    inner_flats = flats - 2.0 * rounding
    inner_height = height - 2.0 * rounding
    inner_radius = inner_flats / (2.0 * math.cos(math.radians(30.0)))
    center = (0.0, 0.0, height / 2.0)

    body = make_ngon_prism(6, radius=inner_radius, height=inner_height, center=center)
    if bevel:
        spread = inner_flats + 2.0 * inner_height / math.tan(math.radians(CHAMFER_ANGLE))
        lower = make_cone(inner_flats, spread, inner_height, center=center, resolution=resolution)
        upper = make_cone(spread, inner_flats, inner_height, center=center, resolution=resolution)
        body = boolean_intersection([body, lower, upper], backend=backend)
    if rounding > 0:
        body = minkowski_sphere(body, rounding, segments=rounding_segments)
    body.metadata.update({"span": span, "height": height, "across_flats": flats, "rounding": rounding})
    return body


__all__ = ["CHAMFER_ANGLE", "across_flats", "make_hex_body"]
