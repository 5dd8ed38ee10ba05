from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

MeshLOD = Literal["preview", "final"]


@dataclass(frozen=True)
class MeshQuality:
    """Controls disc resolution and runtime cost.

    ``fn`` overrides the vertices per disc and ``fnstep`` the ring-index rotation
    per layer; None keeps the values of the thread parameters.
    """

    fn: int | None = None
    fnstep: int | None = None
    max_triangles: int | None = 400_000
    adaptive_budget: bool = False
    lod: MeshLOD = "final"


def apply_lod(fn: int, fnstep: int, lod: MeshLOD) -> tuple[int, int]:
    """Halve the disc resolution for previews while keeping fn divisible by fnstep."""

    if lod == "final":
        return fn, fnstep
    if lod != "preview":
        raise ValueError("lod must be 'preview' or 'final'.")
    return _shrink(fn, fnstep, 0.5)


def downshift_fn(fn: int, fnstep: int, predicted_triangles: int, max_triangles: int | None) -> tuple[int, int]:
    """Reduce fn so the predicted triangle count fits ``max_triangles``."""

    if max_triangles is None or predicted_triangles <= 0:
        return fn, fnstep
    # Triangle count grows with fn * (layers per pitch), i.e. fn**2 / fnstep.
    scale = max((max_triangles / predicted_triangles) ** 0.5, 0.1)
    return _shrink(fn, fnstep, scale)


def _shrink(fn: int, fnstep: int, scale: float) -> tuple[int, int]:
    target = max(3, int(fn * scale))
    step = fnstep if fnstep <= target else 1
    candidate = step * (target // step)
    while candidate < 3:
        candidate += step
    return candidate, step


__all__ = ["MeshLOD", "MeshQuality", "apply_lod", "downshift_fn"]
