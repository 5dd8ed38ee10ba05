"""Modeling utilities: thread synthesis, ISO tables, profiles, primitives and CSG helpers."""

from __future__ import annotations

from .profiles import (
    ThreadProfile,
    custom_profile,
    get_profile,
    profile_circle,
    profile_double_sine,
    profile_iso,
    profile_sine,
    profile_triangular,
)
from .threading import (
    ThreadLayout,
    ThreadMeshEstimate,
    ThreadParameters,
    build_thread,
    clear_thread_cache,
    estimate_thread,
    make_disc,
    make_threaded_rod,
    thread_parameters_for,
    validate_parameters,
)
from .primitives import make_cone, make_cylinder, make_ngon_prism, make_sphere
from .csg import boolean_difference, boolean_intersection, boolean_union, hull, minkowski_sphere
from .hexbody import make_hex_body
from .fasteners import make_hex_bolt, make_hex_nut

__all__ = [
    "ThreadLayout",
    "ThreadMeshEstimate",
    "ThreadParameters",
    "ThreadProfile",
    "boolean_difference",
    "boolean_intersection",
    "boolean_union",
    "build_thread",
    "clear_thread_cache",
    "custom_profile",
    "estimate_thread",
    "get_profile",
    "hull",
    "make_cone",
    "make_cylinder",
    "make_disc",
    "make_hex_body",
    "make_hex_bolt",
    "make_hex_nut",
    "make_ngon_prism",
    "make_sphere",
    "make_threaded_rod",
    "minkowski_sphere",
    "profile_circle",
    "profile_double_sine",
    "profile_iso",
    "profile_sine",
    "profile_triangular",
    "thread_parameters_for",
    "validate_parameters",
]
