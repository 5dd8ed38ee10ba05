from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Literal, Sequence

import numpy as np

from threadforge.cache import LRUCache
from threadforge.mesh import Mesh, Polyhedron, analyze_mesh
from threadforge.modeling import iso
from threadforge.modeling.profiles import ThreadProfile, profile_triangular
from threadforge.printability import warn_length_rounded, warn_min_feature
from threadforge.quality import MeshQuality, apply_lod, downshift_fn
from threadforge.validation import (
    ConfigError,
    DegenerateGeometryError,
    MeshBudgetExceeded,
)

logger = logging.getLogger(__name__)

ThreadKind = Literal["external", "internal"]

LENGTH_TOLERANCE = 1e-6
_TAPER_EPSILON = 1e-9

_THREAD_MESH_CACHE: LRUCache[tuple, Mesh] = LRUCache(max_size=64)


@dataclass(frozen=True)
class ThreadParameters:
    """Everything the thread synthesizer needs, in millimeters and degrees.

    ``pitch=0`` selects the ISO coarse pitch for ``dia`` and ``thread_depth=None``
    the ISO depth for the flank half-angle ``angle``. ``fn`` vertices make up one
    disc and every layer rotates the profile sampling by ``fnstep`` ring indices,
    so a full pitch spans ``fn // fnstep`` layers. ``taper_arc`` is the fraction of
    a turn over which the thread fades out at the top of the rod.
    """

    dia: float
    length: float
    pitch: float = 0.0
    thread_depth: float | None = None
    rshift: float = 0.0
    fn: int = 64
    fnstep: int = 4
    taper_arc: float = 0.0
    profile: ThreadProfile = field(default_factory=profile_triangular)
    angle: float = iso.STANDARD_ANGLE
    nozzle_diameter: float = 0.0
    strict_length: bool = False


@dataclass(frozen=True)
class ThreadLayout:
    """Resolved layer structure of a thread build."""

    pitch: float
    thread_depth: float
    layers_per_pitch: int
    layer_height: float
    ncircles: int
    tapercircles: int

    @property
    def disc_count(self) -> int:
        return self.ncircles + 1

    @property
    def built_length(self) -> float:
        return self.ncircles * self.layer_height


@dataclass(frozen=True)
class ThreadMeshEstimate:
    """Predicted mesh size for planning and budget enforcement."""

    predicted_vertices: int
    predicted_faces: int
    predicted_triangles: int
    ncircles: int
    tapercircles: int
    layer_height: float


def wrap_index(value: int, count: int) -> int:
    """``value`` modulo ``count`` in [0, count), also for negative ``value``."""

    return ((value % count) + count) % count


def vertex_index(layer: int, ring_index: int, fn: int) -> int:
    """Position of ring vertex ``ring_index`` of disc ``layer`` in the flattened vertex array."""

    return layer * fn + wrap_index(ring_index, fn)


def make_disc(
    profile: ThreadProfile,
    thread_depth: float,
    rotation: int,
    z: float,
    dia: float,
    rshift: float,
    fn: int,
) -> np.ndarray:
    """One ring of ``fn`` vertices at height ``z``.

    Vertex ``i`` always sits at angle ``360*i/fn``; only its radius depends on
    ``rotation``, through the profile sample ``(i - rotation) mod fn``. Advancing
    the rotation layer by layer is what turns the stack of rings into a helix.
    """

    mean_radius = dia / 2.0 - thread_depth / 2.0 + rshift
    amplitude = thread_depth / 2.0
    ring = np.arange(fn)
    samples = np.array([wrap_index(int(i) - rotation, fn) for i in ring], dtype=float)
    radii = mean_radius + amplitude * np.asarray(profile(samples / fn), dtype=float)
    angles = 2.0 * np.pi * ring / fn
    return np.column_stack([radii * np.cos(angles), radii * np.sin(angles), np.full(fn, float(z))])


def _resolve_layout(params: ThreadParameters) -> ThreadLayout:
    if int(params.fn) != params.fn or params.fn < 3:
        raise ConfigError("fn must be an integer >= 3.")
    if int(params.fnstep) != params.fnstep or params.fnstep <= 0:
        raise ConfigError("fnstep must be a positive integer.")
    if params.fn % params.fnstep != 0:
        raise ConfigError(
            f"fn not divisible by required layer granularity: fn={params.fn} is not a multiple of fnstep={params.fnstep}."
        )
    for name in ("dia", "length", "pitch", "rshift", "thread_depth", "taper_arc", "angle"):
        value = getattr(params, name)
        if value is not None and not math.isfinite(value):
            raise ConfigError(f"{name} must be finite, got {value}.")
    if not 0.0 <= params.taper_arc <= 1.0:
        raise ConfigError("taper_arc must be in [0, 1].")
    if not params.dia > 0:
        raise ConfigError("dia must be positive.")
    if not params.length > 0:
        raise ConfigError("length must be positive.")
    if not isinstance(params.profile, ThreadProfile):
        raise ConfigError("profile must be a ThreadProfile.")

    pitch = iso.effective_pitch(params.dia, params.pitch)
    if params.thread_depth is None:
        depth = iso.thread_depth(params.dia, pitch, params.angle)
    else:
        depth = float(params.thread_depth)
    if not depth > 0:
        raise DegenerateGeometryError(f"thread_depth must be positive, got {depth:.6g}.")

    fn = int(params.fn)
    layers_per_pitch = fn // int(params.fnstep)
    layer_height = pitch / layers_per_pitch
    ncircles = int(math.floor(params.length / layer_height + 0.5))
    tapercircles = int(math.floor(layers_per_pitch * params.taper_arc + _TAPER_EPSILON))
    if ncircles < 1:
        raise ConfigError(
            f"length {params.length:g}mm is shorter than half a layer ({layer_height:.4g}mm)."
        )
    if tapercircles > ncircles:
        raise ConfigError(
            f"taper needs {tapercircles} layers but the rod only has {ncircles}."
        )
    if params.strict_length and abs(ncircles * layer_height - params.length) > LENGTH_TOLERANCE:
        raise ConfigError(
            f"length {params.length:g}mm is not a whole number of {layer_height:.6g}mm layers."
        )

    samples = params.profile.sample(fn)
    min_radius = params.dia / 2.0 - depth / 2.0 + params.rshift + depth / 2.0 * float(samples.min())
    if not min_radius > 0:
        raise DegenerateGeometryError(
            f"rshift {params.rshift:g} drives the sampled radius to {min_radius:.6g}; radius must stay positive."
        )
    root_radius = params.dia / 2.0 - depth + params.rshift
    if tapercircles > 0 and not root_radius > 0:
        raise DegenerateGeometryError(
            f"taper closes toward root radius {root_radius:.6g}; radius must stay positive."
        )

    return ThreadLayout(
        pitch=pitch,
        thread_depth=depth,
        layers_per_pitch=layers_per_pitch,
        layer_height=layer_height,
        ncircles=ncircles,
        tapercircles=tapercircles,
    )


def _warn_printability(params: ThreadParameters, layout: ThreadLayout, stacklevel: int) -> None:
    if abs(layout.built_length - params.length) > LENGTH_TOLERANCE:
        warn_length_rounded(params.length, layout.built_length, layout.layer_height, stacklevel=stacklevel + 1)
    warn_min_feature("thread depth", layout.thread_depth, params.nozzle_diameter, stacklevel=stacklevel + 1)
    warn_min_feature("thread pitch", layout.pitch, params.nozzle_diameter, stacklevel=stacklevel + 1)


def validate_parameters(params: ThreadParameters, *, stacklevel: int = 1) -> ThreadLayout:
    """Check a parameter set and resolve its layer layout before any geometry is built.

    Errors raise; printability advisories are emitted as ``RuntimeWarning``
    attributed ``stacklevel`` frames above this call (1 is the direct caller).
    """

    layout = _resolve_layout(params)
    _warn_printability(params, layout, stacklevel + 1)
    return layout


def _estimate(params: ThreadParameters, layout: ThreadLayout) -> ThreadMeshEstimate:
    fn = int(params.fn)
    return ThreadMeshEstimate(
        predicted_vertices=layout.disc_count * fn,
        predicted_faces=2 + layout.ncircles * fn,
        predicted_triangles=2 * layout.ncircles * fn + 2 * (fn - 2),
        ncircles=layout.ncircles,
        tapercircles=layout.tapercircles,
        layer_height=layout.layer_height,
    )


def estimate_thread(params: ThreadParameters) -> ThreadMeshEstimate:
    """Predict mesh cost before generation."""

    return _estimate(params, validate_parameters(params, stacklevel=2))


def build_thread(params: ThreadParameters) -> Polyhedron:
    """Stack discs into one closed threaded-rod polyhedron.

    The rod starts at z=0 and runs up ``ncircles`` layers. When ``taper_arc`` is
    set, the last ``tapercircles`` layers shrink the thread depth linearly to
    zero while holding the root radius, closing the top on the minor diameter.
    """

    return _assemble(params, validate_parameters(params, stacklevel=2))


def _assemble(params: ThreadParameters, layout: ThreadLayout) -> Polyhedron:
    fn = int(params.fn)
    fnstep = int(params.fnstep)
    depth = layout.thread_depth
    steady = layout.ncircles - layout.tapercircles

    discs: list[np.ndarray] = []
    layer_depths: list[float] = []
    for i in range(steady + 1):
        discs.append(
            make_disc(params.profile, depth, (fnstep * i) % fn, i * layout.layer_height, params.dia, params.rshift, fn)
        )
        layer_depths.append(depth)

    for n in range(1, layout.tapercircles + 1):
        i = steady + n
        tapered = depth * (layout.tapercircles - n) / layout.tapercircles
        shift = params.rshift - depth + tapered
        discs.append(
            make_disc(params.profile, tapered, (fnstep * i) % fn, i * layout.layer_height, params.dia, shift, fn)
        )
        layer_depths.append(tapered)

    vertices = np.vstack(discs)
    faces = stack_faces(len(discs), fn)
    logger.debug(
        "Built thread dia=%.3f pitch=%.3f: %d discs x %d vertices, %d taper layers",
        params.dia,
        layout.pitch,
        len(discs),
        fn,
        layout.tapercircles,
    )
    return Polyhedron(
        vertices=vertices,
        faces=faces,
        metadata={
            "pitch": layout.pitch,
            "thread_depth": depth,
            "layer_height": layout.layer_height,
            "ncircles": layout.ncircles,
            "tapercircles": layout.tapercircles,
            "fn": fn,
            "fnstep": fnstep,
            "layer_depths": tuple(layer_depths),
        },
    )


def stack_faces(disc_count: int, fn: int) -> list[tuple[int, ...]]:
    """Caps plus side quads for ``disc_count`` stacked rings, counter-clockwise from outside."""

    last = disc_count - 1
    faces: list[tuple[int, ...]] = [
        tuple(vertex_index(0, i, fn) for i in reversed(range(fn))),
        tuple(vertex_index(last, i, fn) for i in range(fn)),
    ]
    for h in range(last):
        for i in range(fn):
            faces.append(
                (
                    vertex_index(h, i, fn),
                    vertex_index(h, i + 1, fn),
                    vertex_index(h + 1, i + 1, fn),
                    vertex_index(h + 1, i, fn),
                )
            )
    return faces


def thread_parameters_for(
    dia: float,
    length: float,
    *,
    pitch: float = 0.0,
    kind: ThreadKind = "external",
    angle: float = iso.STANDARD_ANGLE,
    clearance: float = 0.0,
    profile: ThreadProfile | None = None,
    fn: int = 64,
    fnstep: int = 4,
    taper_arc: float = 0.0,
    nozzle_diameter: float = 0.0,
) -> ThreadParameters:
    """ISO-derived parameters for an external (bolt) or internal (nut cutter) thread.

    External threads keep the 30 degree minor diameter and take ``rshift`` from
    :func:`iso.thread_rshift`, reduced by ``clearance``. Internal threads keep
    the major diameter (rshift 0) and grow by ``clearance``.
    """

    if clearance < 0:
        raise ConfigError("clearance must be non-negative.")
    if kind == "external":
        rshift = iso.thread_rshift(dia, pitch, angle) - clearance
    elif kind == "internal":
        rshift = clearance
    else:
        raise ConfigError("kind must be 'external' or 'internal'.")
    return ThreadParameters(
        dia=dia,
        length=length,
        pitch=pitch,
        thread_depth=iso.thread_depth(dia, pitch, angle),
        rshift=rshift,
        fn=fn,
        fnstep=fnstep,
        taper_arc=taper_arc,
        profile=profile if profile is not None else profile_triangular(),
        angle=angle,
        nozzle_diameter=nozzle_diameter,
    )


def make_threaded_rod(
    params: ThreadParameters,
    *,
    quality: MeshQuality | None = None,
    color: Sequence[float] | None = None,
) -> Mesh:
    """Generate a triangulated, watertight threaded rod."""

    params, layout = _resolve_quality(params, quality or MeshQuality())
    _warn_printability(params, layout, stacklevel=2)
    cache_key = (params, tuple(color) if color is not None else None)
    cached = _THREAD_MESH_CACHE.get(cache_key)
    if cached is not None:
        return cached.copy()

    mesh = _assemble(params, layout).to_mesh()
    if color is not None:
        rgba = tuple(float(c) for c in color)
        mesh.color = rgba if len(rgba) == 4 else (*rgba, 1.0)
    analysis = analyze_mesh(mesh)
    if analysis.issues():
        logger.debug("Thread mesh issues: %s", "; ".join(analysis.issues()))
    _THREAD_MESH_CACHE.set(cache_key, mesh.copy())
    return mesh


def clear_thread_cache() -> None:
    """Clear cached thread meshes."""

    _THREAD_MESH_CACHE.clear()


def _resolve_quality(params: ThreadParameters, quality: MeshQuality) -> tuple[ThreadParameters, ThreadLayout]:
    fn = quality.fn if quality.fn is not None else params.fn
    fnstep = quality.fnstep if quality.fnstep is not None else params.fnstep
    fn, fnstep = apply_lod(fn, fnstep, quality.lod)
    resolved = replace(params, fn=fn, fnstep=fnstep)

    layout = _resolve_layout(resolved)
    estimate = _estimate(resolved, layout)
    if quality.max_triangles is None or estimate.predicted_triangles <= quality.max_triangles:
        return resolved, layout
    if not quality.adaptive_budget:
        raise MeshBudgetExceeded(
            f"Predicted triangle count {estimate.predicted_triangles} exceeds budget {quality.max_triangles}."
        )
    while estimate.predicted_triangles > quality.max_triangles:
        smaller_fn, smaller_step = downshift_fn(fn, fnstep, estimate.predicted_triangles, quality.max_triangles)
        if smaller_fn >= fn:
            raise MeshBudgetExceeded(
                f"Cannot fit thread into {quality.max_triangles} triangles; fn={fn} is already minimal."
            )
        fn, fnstep = smaller_fn, smaller_step
        logger.debug("Thread budget exceeded; reducing fn to %d (fnstep %d)", fn, fnstep)
        resolved = replace(resolved, fn=fn, fnstep=fnstep)
        layout = _resolve_layout(resolved)
        estimate = _estimate(resolved, layout)
    return resolved, layout


__all__ = [
    "LENGTH_TOLERANCE",
    "ThreadKind",
    "ThreadLayout",
    "ThreadMeshEstimate",
    "ThreadParameters",
    "build_thread",
    "clear_thread_cache",
    "estimate_thread",
    "make_disc",
    "make_threaded_rod",
    "stack_faces",
    "thread_parameters_for",
    "validate_parameters",
    "vertex_index",
    "wrap_index",
]
