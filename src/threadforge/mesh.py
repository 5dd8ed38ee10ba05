from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np


@dataclass
class MeshAnalysis:
    n_vertices: int
    n_faces: int
    degenerate_faces: int
    boundary_edges: int
    nonmanifold_edges: int
    misoriented_edges: int
    invalid_vertices: int
    orphan_vertices: int

    @property
    def is_manifold(self) -> bool:
        return self.nonmanifold_edges == 0

    @property
    def is_watertight(self) -> bool:
        return self.boundary_edges == 0 and self.is_manifold

    @property
    def is_consistently_wound(self) -> bool:
        return self.misoriented_edges == 0

    @property
    def has_degenerate_faces(self) -> bool:
        return self.degenerate_faces > 0

    @property
    def has_invalid_vertices(self) -> bool:
        return self.invalid_vertices > 0

    def issues(self) -> list[str]:
        issues: list[str] = []
        if self.has_invalid_vertices:
            issues.append(f"{self.invalid_vertices} invalid vertices (NaN/inf)")
        if self.orphan_vertices > 0:
            issues.append(f"{self.orphan_vertices} vertices not used by any face")
        if self.has_degenerate_faces:
            issues.append(f"{self.degenerate_faces} degenerate faces")
        if self.boundary_edges > 0:
            issues.append(f"{self.boundary_edges} boundary edges (not watertight)")
        if self.nonmanifold_edges > 0:
            issues.append(f"{self.nonmanifold_edges} non-manifold edges")
        if self.misoriented_edges > 0:
            issues.append(f"{self.misoriented_edges} edges shared by faces with opposite winding")
        return issues


@dataclass
class Mesh:
    """Triangle mesh; faces are wound counter-clockwise seen from outside."""

    vertices: np.ndarray
    faces: np.ndarray
    color: tuple[float, float, float, float] | None = None
    metadata: dict[str, object] = field(default_factory=dict)
    analysis: MeshAnalysis | None = None

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3).copy()
        self.faces = np.asarray(self.faces, dtype=int).reshape(-1, 3).copy()
        if self.color is not None and len(self.color) == 3:
            self.color = (self.color[0], self.color[1], self.color[2], 1.0)

    def copy(self) -> "Mesh":
        return Mesh(
            vertices=self.vertices.copy(),
            faces=self.faces.copy(),
            color=self.color,
            metadata=dict(self.metadata),
            analysis=self.analysis,
        )

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.faces.shape[0])

    @property
    def bounds(self) -> tuple[float, float, float, float, float, float]:
        if self.n_vertices == 0:
            return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        mins = self.vertices.min(axis=0)
        maxs = self.vertices.max(axis=0)
        return (float(mins[0]), float(maxs[0]), float(mins[1]), float(maxs[1]), float(mins[2]), float(maxs[2]))

    @property
    def volume(self) -> float:
        """Signed enclosed volume; positive when faces point outward."""

        if self.n_faces == 0:
            return 0.0
        v0 = self.vertices[self.faces[:, 0]]
        v1 = self.vertices[self.faces[:, 1]]
        v2 = self.vertices[self.faces[:, 2]]
        return float(np.einsum("ij,ij->i", v0, np.cross(v1, v2)).sum() / 6.0)

    def translate(self, offset: Sequence[float], inplace: bool = True) -> "Mesh":
        vec = np.asarray(offset, dtype=float).reshape(3)
        if inplace:
            self.vertices = self.vertices + vec
            return self
        mesh = self.copy()
        mesh.vertices = mesh.vertices + vec
        return mesh


@dataclass
class Polyhedron:
    """Polygon-faced solid as emitted by the thread synthesizer.

    Faces are index tuples wound counter-clockwise seen from outside. Side quads
    are planar only to floating-point tolerance; use :meth:`to_mesh` before
    handing the solid to a boolean kernel.
    """

    vertices: np.ndarray
    faces: list[tuple[int, ...]]
    metadata: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3)
        self.faces = [tuple(int(idx) for idx in face) for face in self.faces]

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    def reversed(self) -> "Polyhedron":
        """Same solid with every face listed clockwise from outside (OpenSCAD order)."""

        return Polyhedron(
            vertices=self.vertices.copy(),
            faces=[tuple(reversed(face)) for face in self.faces],
            metadata=dict(self.metadata),
        )

    def used_vertices(self) -> np.ndarray:
        used = np.zeros(self.n_vertices, dtype=bool)
        for face in self.faces:
            used[list(face)] = True
        return used

    def signed_volume(self) -> float:
        return self.to_mesh(cap_method="fan").volume

    def to_mesh(self, cap_method: str = "earcut") -> Mesh:
        """Triangulate into a :class:`Mesh` without adding vertices.

        Quads split along their first diagonal. Larger faces (the caps) are
        triangulated with ``mapbox_earcut`` because a thread cap is star-shaped
        but not convex; ``cap_method="fan"`` fans from the first corner instead,
        which only preserves area sums and is meant for volume computations.
        """

        quads = [face for face in self.faces if len(face) <= 4]
        polygons = [face for face in self.faces if len(face) > 4]
        triangles = triangulate_faces(quads)
        extra: list[np.ndarray] = []
        for face in polygons:
            if cap_method == "fan":
                extra.append(triangulate_faces([face]))
            elif cap_method == "earcut":
                extra.append(_earcut_polygon(self.vertices, face))
            else:
                raise ValueError("cap_method must be 'earcut' or 'fan'.")
        faces = np.vstack([triangles, *extra]) if extra else triangles
        return Mesh(vertices=self.vertices, faces=faces, metadata=dict(self.metadata))


def _earcut_polygon(vertices: np.ndarray, face: Sequence[int]) -> np.ndarray:
    import mapbox_earcut as earcut

    indices = np.asarray(face, dtype=int)
    pts = vertices[indices]
    normal = _newell_normal(pts)
    drop = int(np.argmax(np.abs(normal)))
    keep = [axis for axis in range(3) if axis != drop]
    planar = pts[:, keep].astype(np.float64)
    rings = np.asarray([len(indices)], dtype=np.uint32)
    local = np.asarray(earcut.triangulate_float64(planar, rings), dtype=np.int64).reshape(-1, 3)
    tris = indices[local]

    # earcut does not promise an output winding; match the polygon's own.
    for row in range(tris.shape[0]):
        a, b, c = vertices[tris[row]]
        if np.dot(np.cross(b - a, c - a), normal) < 0:
            tris[row] = tris[row, ::-1]
    return tris


def _newell_normal(points: np.ndarray) -> np.ndarray:
    nxt = np.roll(points, -1, axis=0)
    return np.array(
        [
            np.sum((points[:, 1] - nxt[:, 1]) * (points[:, 2] + nxt[:, 2])),
            np.sum((points[:, 2] - nxt[:, 2]) * (points[:, 0] + nxt[:, 0])),
            np.sum((points[:, 0] - nxt[:, 0]) * (points[:, 1] + nxt[:, 1])),
        ],
        dtype=float,
    )


def triangulate_faces(face_list: Iterable[Sequence[int]]) -> np.ndarray:
    triangles: list[list[int]] = []
    for face in face_list:
        if len(face) < 3:
            continue
        v0 = face[0]
        for i in range(1, len(face) - 1):
            triangles.append([v0, face[i], face[i + 1]])
    if not triangles:
        return np.zeros((0, 3), dtype=int)
    return np.asarray(triangles, dtype=int)


def combine_meshes(meshes: Iterable[Mesh]) -> Mesh:
    meshes_list = list(meshes)
    if not meshes_list:
        raise ValueError("combine_meshes requires at least one mesh.")

    vertices = []
    faces = []
    color = None
    offset = 0
    for mesh in meshes_list:
        vertices.append(mesh.vertices)
        faces.append(mesh.faces + offset)
        offset += mesh.n_vertices
        if color is None and mesh.color is not None:
            color = mesh.color

    return Mesh(vertices=np.vstack(vertices), faces=np.vstack(faces), color=color)


def analyze_mesh(mesh: Mesh, area_epsilon: float = 1e-12) -> MeshAnalysis:
    verts = mesh.vertices
    faces = mesh.faces
    invalid_vertices = int(np.count_nonzero(~np.isfinite(verts)))

    degenerate_faces = 0
    boundary_edges = 0
    nonmanifold_edges = 0
    misoriented_edges = 0
    if faces.size > 0:
        v0 = verts[faces[:, 0]]
        v1 = verts[faces[:, 1]]
        v2 = verts[faces[:, 2]]
        cross = np.cross(v1 - v0, v2 - v0)
        areas = np.linalg.norm(cross, axis=1) * 0.5
        degenerate_faces = int(np.count_nonzero(areas <= area_epsilon))

        directed = np.vstack([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]])
        undirected = np.sort(directed, axis=1)
        _, counts = np.unique(undirected, axis=0, return_counts=True)
        boundary_edges = int(np.count_nonzero(counts == 1))
        nonmanifold_edges = int(np.count_nonzero(counts > 2))
        # A consistently wound closed surface uses each directed edge once.
        _, directed_counts = np.unique(directed, axis=0, return_counts=True)
        misoriented_edges = int(np.count_nonzero(directed_counts > 1))

    used = np.zeros(mesh.n_vertices, dtype=bool)
    used[faces.reshape(-1)] = True
    orphan_vertices = int(np.count_nonzero(~used))

    analysis = MeshAnalysis(
        n_vertices=mesh.n_vertices,
        n_faces=mesh.n_faces,
        degenerate_faces=degenerate_faces,
        boundary_edges=boundary_edges,
        nonmanifold_edges=nonmanifold_edges,
        misoriented_edges=misoriented_edges,
        invalid_vertices=invalid_vertices,
        orphan_vertices=orphan_vertices,
    )
    mesh.analysis = analysis
    return analysis


def mesh_to_pyvista(mesh: Mesh):
    import pyvista as pv

    if mesh.n_faces == 0:
        return pv.PolyData(mesh.vertices, deep=True)
    faces = np.hstack([np.full((mesh.n_faces, 1), 3, dtype=np.int64), mesh.faces.astype(np.int64)]).ravel()
    return pv.PolyData(mesh.vertices, faces, deep=True)


def pyvista_to_mesh(poly) -> Mesh:
    tri = poly.triangulate().clean()
    faces = np.asarray(tri.faces, dtype=int).reshape(-1, 4)[:, 1:] if tri.n_cells else np.zeros((0, 3), dtype=int)
    return Mesh(vertices=np.asarray(tri.points, dtype=float), faces=faces)
