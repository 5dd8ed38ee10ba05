from __future__ import annotations

import numpy as np
import pyvista as pv

from threadforge.cli import _scene_factory_from_module, collect_meshes
from threadforge.mesh import Mesh, combine_meshes, mesh_to_pyvista


def as_polydata(mesh: Mesh | pv.DataSet) -> pv.DataSet:
    return mesh_to_pyvista(mesh) if isinstance(mesh, Mesh) else mesh


def is_watertight(mesh: Mesh | pv.DataSet) -> tuple[bool, int]:
    """Cross-check watertightness with VTK's own edge extraction."""
    edges = as_polydata(mesh).extract_feature_edges(
        boundary_edges=True, feature_edges=False, non_manifold_edges=True, manifold_edges=False
    )
    open_edges = edges.n_cells
    return open_edges == 0, open_edges


def disc_stack(mesh: Mesh | np.ndarray, fn: int) -> np.ndarray:
    """Vertices of a thread build reshaped to (discs, fn, 3)."""
    vertices = mesh.vertices if hasattr(mesh, "vertices") else np.asarray(mesh)
    return np.asarray(vertices, dtype=float).reshape(-1, fn, 3)


def disc_radii(mesh: Mesh | np.ndarray, fn: int) -> np.ndarray:
    stack = disc_stack(mesh, fn)
    return np.hypot(stack[:, :, 0], stack[:, :, 1])


def load_scene_meshes(model_path):
    """Load a model module and return its meshes."""
    scene_factory = _scene_factory_from_module(model_path)
    return collect_meshes(scene_factory())


def load_scene_mesh(model_path):
    """Load a model module and combine its meshes into a single PolyData."""
    return mesh_to_pyvista(combine_meshes(load_scene_meshes(model_path)))
