from __future__ import annotations

import logging
from typing import Iterable, Literal, Sequence

import numpy as np

from threadforge.mesh import Mesh, mesh_to_pyvista, pyvista_to_mesh
from threadforge.validation import BooleanError, ConfigError

logger = logging.getLogger(__name__)

BooleanBackend = Literal["manifold", "vtk"]


def boolean_union(
    meshes: Iterable[Mesh],
    tolerance: float = 1e-4,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    sources = list(meshes)
    if not sources:
        raise ValueError("boolean_union requires at least one mesh.")
    return _reduce("union", sources, tolerance, backend)


def boolean_difference(
    base: Mesh,
    cutters: Iterable[Mesh],
    tolerance: float = 1e-4,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    return _reduce("difference", [base, *cutters], tolerance, backend)


def boolean_intersection(
    meshes: Iterable[Mesh],
    tolerance: float = 1e-4,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    sources = list(meshes)
    if not sources:
        raise ValueError("boolean_intersection requires at least one mesh.")
    return _reduce("intersection", sources, tolerance, backend)


def hull(meshes: Iterable[Mesh]) -> Mesh:
    """Convex hull of one or more meshes."""

    from manifold3d import Manifold

    manifolds = [_manifold_from_mesh(mesh) for mesh in meshes]
    if not manifolds:
        raise ValueError("hull requires at least one mesh.")
    if len(manifolds) == 1:
        return _mesh_from_manifold(manifolds[0].hull())
    return _mesh_from_manifold(Manifold.batch_hull(manifolds))


def minkowski_sphere(mesh: Mesh, radius: float, segments: int = 24) -> Mesh:
    """Minkowski sum of a convex mesh with a sphere, i.e. the mesh rounded outward by ``radius``.

    For a convex body this is the hull of spheres centred on its vertices.
    """

    if radius <= 0:
        raise ConfigError("radius must be positive.")
    from manifold3d import Manifold

    vertices = np.unique(np.round(mesh.vertices, 9), axis=0)
    spheres = [Manifold.sphere(radius, segments).translate(tuple(float(c) for c in vertex)) for vertex in vertices]
    rounded = _mesh_from_manifold(Manifold.batch_hull(spheres))
    rounded.color = mesh.color
    return rounded


def _reduce(mode: str, sources: Sequence[Mesh], tolerance: float, backend: BooleanBackend) -> Mesh:
    if backend == "manifold":
        result = _manifold_from_mesh(sources[0])
        for mesh in sources[1:]:
            other = _manifold_from_mesh(mesh)
            if mode == "union":
                result = result + other
            elif mode == "difference":
                result = result - other
            else:
                result = result ^ other
        combined = _mesh_from_manifold(result)
    elif backend == "vtk":
        result = _check_polydata(sources[0])
        for mesh in sources[1:]:
            other = _check_polydata(mesh)
            if mode == "union":
                result = result.boolean_union(other, tolerance=tolerance)
            elif mode == "difference":
                result = result.boolean_difference(other, tolerance=tolerance)
            else:
                result = result.boolean_intersection(other, tolerance=tolerance)
            result = result.triangulate().clean(tolerance=tolerance, inplace=False)
        combined = pyvista_to_mesh(result)
    else:
        raise ValueError(f"Unsupported backend '{backend}'. Use 'manifold' or 'vtk'.")

    combined.color = sources[0].color
    logger.debug("boolean %s of %d meshes -> %d faces", mode, len(sources), combined.n_faces)
    return combined


def _check_polydata(mesh: Mesh):
    poly = mesh_to_pyvista(mesh).clean(inplace=False)
    if poly.n_cells > 0:
        poly = poly.compute_normals(
            cell_normals=True,
            point_normals=False,
            auto_orient_normals=True,
            consistent_normals=True,
            inplace=False,
        )
    return poly


def _manifold_from_mesh(mesh: Mesh):
    from manifold3d import Manifold, Mesh as ManifoldMesh

    vertices = np.asarray(mesh.vertices, dtype=np.float32)
    faces = np.asarray(mesh.faces, dtype=np.uint32)
    try:
        manifold_mesh = ManifoldMesh(vert_properties=vertices, tri_verts=faces)
    except TypeError:
        manifold_mesh = ManifoldMesh(vertices, faces)
    manifold = Manifold(manifold_mesh)
    status = manifold.status()
    name = getattr(status, "name", str(status))
    if not name.endswith("NoError"):
        raise BooleanError(f"Mesh rejected by manifold3d: {name}.")
    return manifold


def _mesh_from_manifold(manifold) -> Mesh:
    mesh = manifold.to_mesh()
    props = np.asarray(mesh.vert_properties, dtype=float)
    if props.size == 0:
        return Mesh(np.zeros((0, 3)), np.zeros((0, 3), dtype=int))
    vertices = props[:, :3]
    faces = np.asarray(mesh.tri_verts, dtype=int)
    return Mesh(vertices, faces)


__all__ = [
    "BooleanBackend",
    "boolean_difference",
    "boolean_intersection",
    "boolean_union",
    "hull",
    "minkowski_sphere",
]
