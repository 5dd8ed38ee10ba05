"""threadforge – helical thread meshes for printable nuts and bolts."""

from __future__ import annotations

from .mesh import Mesh, Polyhedron
from .quality import MeshQuality
from .validation import (
    BooleanError,
    ConfigError,
    DegenerateGeometryError,
    MeshBudgetExceeded,
    ThreadforgeError,
)

__all__ = [
    "BooleanError",
    "ConfigError",
    "DegenerateGeometryError",
    "Mesh",
    "MeshBudgetExceeded",
    "MeshQuality",
    "Polyhedron",
    "ThreadforgeError",
    "__version__",
]

__version__ = "0.1.0"
