from __future__ import annotations

from .scad import polyhedron_to_scad, write_scad
from .stl import write_stl

__all__ = ["polyhedron_to_scad", "write_scad", "write_stl"]
