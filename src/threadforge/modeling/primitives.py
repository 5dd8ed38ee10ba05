from __future__ import annotations

from typing import Sequence

import numpy as np

from threadforge.mesh import Mesh, Polyhedron
from threadforge.modeling.threading import stack_faces
from threadforge.validation import ConfigError


def make_cylinder(
    radius: float = 0.5,
    height: float = 1.0,
    center: Sequence[float] = (0.0, 0.0, 0.0),
    resolution: int = 64,
) -> Mesh:
    """Right circular cylinder along +Z, centred on ``center``."""

    return make_cone(2.0 * radius, 2.0 * radius, height, center=center, resolution=resolution)


def make_ngon_prism(
    sides: int = 6,
    radius: float = 1.0,
    height: float = 1.0,
    center: Sequence[float] = (0.0, 0.0, 0.0),
) -> Mesh:
    """Regular prism with ``sides`` corners on a circle of ``radius`` (first corner on +X)."""

    return make_cone(2.0 * radius, 2.0 * radius, height, center=center, resolution=sides)


def make_cone(
    bottom_diameter: float = 1.0,
    top_diameter: float = 0.0,
    height: float = 1.0,
    center: Sequence[float] = (0.0, 0.0, 0.0),
    resolution: int = 64,
) -> Mesh:
    """Circular frustum. Set top_diameter=0 for a classic cone."""

    if resolution < 3:
        raise ConfigError("resolution must be at least 3.")
    if height <= 0:
        raise ConfigError("height must be positive.")
    bottom_radius = bottom_diameter / 2.0
    top_radius = top_diameter / 2.0
    if bottom_radius < 0 or top_radius < 0 or (bottom_radius == 0 and top_radius == 0):
        raise ConfigError("At least one of bottom_diameter or top_diameter must be > 0 and neither negative.")

    z_bottom = -height / 2.0
    z_top = height / 2.0
    if bottom_radius > 0 and top_radius > 0:
        rings = np.vstack([_ring(bottom_radius, z_bottom, resolution), _ring(top_radius, z_top, resolution)])
        mesh = Polyhedron(vertices=rings, faces=stack_faces(2, resolution)).to_mesh()
    elif bottom_radius > 0:
        mesh = _cone_with_apex(_ring(bottom_radius, z_bottom, resolution), (0.0, 0.0, z_top), upward=True)
    else:
        mesh = _cone_with_apex(_ring(top_radius, z_top, resolution), (0.0, 0.0, z_bottom), upward=False)
    return mesh.translate(center)


def make_sphere(
    radius: float = 0.5,
    center: Sequence[float] = (0.0, 0.0, 0.0),
    theta_resolution: int = 32,
    phi_resolution: int = 16,
) -> Mesh:
    """UV sphere with one vertex at each pole."""

    if radius <= 0:
        raise ConfigError("radius must be positive.")
    if theta_resolution < 3 or phi_resolution < 2:
        raise ConfigError("sphere needs theta_resolution >= 3 and phi_resolution >= 2.")

    rings = []
    for k in range(1, phi_resolution):
        phi = np.pi * k / phi_resolution
        rings.append(_ring(radius * np.sin(phi), -radius * np.cos(phi), theta_resolution))
    body = np.vstack(rings)
    south = body.shape[0]
    north = south + 1
    vertices = np.vstack([body, [[0.0, 0.0, -radius], [0.0, 0.0, radius]]])

    n = theta_resolution
    faces = stack_faces(len(rings), n)[2:]
    last = (len(rings) - 1) * n
    for i in range(n):
        j = (i + 1) % n
        faces.append((south, j, i))
        faces.append((north, last + i, last + j))
    mesh = Polyhedron(vertices=vertices, faces=faces).to_mesh()
    return mesh.translate(center)


def _ring(radius: float, z: float, count: int) -> np.ndarray:
    angles = np.linspace(0.0, 2.0 * np.pi, count, endpoint=False)
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles), np.full(count, float(z))])


def _cone_with_apex(ring: np.ndarray, apex: Sequence[float], *, upward: bool) -> Mesh:
    count = ring.shape[0]
    apex_idx = count
    vertices = np.vstack([ring, np.asarray(apex, dtype=float).reshape(1, 3)])
    faces: list[tuple[int, ...]] = []
    for i in range(count):
        j = (i + 1) % count
        faces.append((i, j, apex_idx) if upward else (j, i, apex_idx))
    cap = tuple(reversed(range(count))) if upward else tuple(range(count))
    faces.append(cap)
    return Polyhedron(vertices=vertices, faces=faces).to_mesh()


__all__ = ["make_cone", "make_cylinder", "make_ngon_prism", "make_sphere"]
