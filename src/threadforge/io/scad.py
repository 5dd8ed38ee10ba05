"""OpenSCAD export: a polyhedron() statement for use with OpenSCAD's own CSG."""

from __future__ import annotations

from pathlib import Path

from threadforge.mesh import Polyhedron


def _format_point(point) -> str:
    return "[" + ", ".join(f"{float(c):.10f}" for c in point) + "]"


def polyhedron_to_scad(polyhedron: Polyhedron, convexity: int = 10) -> str:
    """Render ``polyhedron`` as OpenSCAD source.

    OpenSCAD expects faces clockwise when seen from outside, so every face is
    emitted in reverse of the counter-clockwise order threadforge uses.
    """

    flipped = polyhedron.reversed()
    points = ", ".join(_format_point(p) for p in flipped.vertices)
    faces = ", ".join("[" + ", ".join(str(i) for i in face) + "]" for face in flipped.faces)
    return f"polyhedron(points = [{points}], faces = [{faces}], convexity = {convexity});\n"


def write_scad(polyhedron: Polyhedron, path: Path, convexity: int = 10, header: str = "") -> None:
    path = Path(path)
    body = polyhedron_to_scad(polyhedron, convexity=convexity)
    path.write_text((header.rstrip("\n") + "\n\n" if header else "") + body)
