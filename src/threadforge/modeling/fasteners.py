from __future__ import annotations

import math

from threadforge.mesh import Mesh
from threadforge.modeling import iso
from threadforge.modeling.csg import BooleanBackend, boolean_difference, boolean_union
from threadforge.modeling.hexbody import make_hex_body
from threadforge.modeling.profiles import ThreadProfile
from threadforge.modeling.threading import make_threaded_rod, thread_parameters_for
from threadforge.quality import MeshQuality
from threadforge.validation import ConfigError


def _layer_height(dia: float, pitch: float, fn: int, fnstep: int) -> float:
    if fnstep <= 0 or fn % fnstep:
        raise ConfigError(f"fn not divisible by required layer granularity: fn={fn}, fnstep={fnstep}.")
    return iso.effective_pitch(dia, pitch) / (fn // fnstep)


def _whole_layers(length: float, layer_height: float) -> float:
    return math.ceil(length / layer_height - 1e-9) * layer_height


def make_hex_nut(
    dia: float,
    *,
    pitch: float = 0.0,
    height: float | None = None,
    span: float | None = None,
    clearance: float = 0.2,
    profile: ThreadProfile | None = None,
    fn: int = 64,
    fnstep: int = 4,
    bevel: bool = True,
    rounding: float = 0.0,
    quality: MeshQuality | None = None,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    """Hex nut: ISO-sized hex body minus an internal thread cutter.

    The cutter keeps the nominal major diameter (rshift 0) widened by
    ``clearance`` and overshoots both faces by one pitch.
    """

    height = iso.hex_nut_height(dia) if height is None else height
    span = iso.hex_span(dia) if span is None else span
    if span <= dia:
        raise ConfigError("hex span must exceed the thread diameter.")

    dz = _layer_height(dia, pitch, fn, fnstep)
    overshoot = iso.effective_pitch(dia, pitch)
    cutter_params = thread_parameters_for(
        dia,
        _whole_layers(height + 2.0 * overshoot, dz),
        pitch=pitch,
        kind="internal",
        clearance=clearance,
        profile=profile,
        fn=fn,
        fnstep=fnstep,
    )
    cutter = make_threaded_rod(cutter_params, quality=quality).translate((0.0, 0.0, -overshoot))
    body = make_hex_body(span, height, bevel=bevel, rounding=rounding, backend=backend)
    nut = boolean_difference(body, [cutter], backend=backend)
    nut.metadata.update({"kind": "hex_nut", "dia": dia, "height": height, "span": span})
    return nut


def make_hex_bolt(
    dia: float,
    length: float,
    *,
    pitch: float = 0.0,
    head_height: float | None = None,
    span: float | None = None,
    clearance: float = 0.0,
    taper_arc: float = 0.25,
    profile: ThreadProfile | None = None,
    fn: int = 64,
    fnstep: int = 4,
    bevel: bool = True,
    rounding: float = 0.0,
    quality: MeshQuality | None = None,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    """Hex bolt: ISO hex head on z in [0, head_height] with the threaded shank above it.

    The shank ends in a tapered lead-in over ``taper_arc`` of a turn and
    reaches one layer into the head so the union has overlapping volume.
    """

    if length <= 0:
        raise ConfigError("length must be positive.")
    head_height = iso.hex_bolt_head_height(dia) if head_height is None else head_height
    span = iso.hex_span(dia) if span is None else span
    if span <= dia:
        raise ConfigError("hex span must exceed the thread diameter.")

    dz = _layer_height(dia, pitch, fn, fnstep)
    shank_params = thread_parameters_for(
        dia,
        _whole_layers(length, dz) + dz,
        pitch=pitch,
        kind="external",
        clearance=clearance,
        profile=profile,
        fn=fn,
        fnstep=fnstep,
        taper_arc=taper_arc,
    )
    shank = make_threaded_rod(shank_params, quality=quality).translate((0.0, 0.0, head_height - dz))
    head = make_hex_body(span, head_height, bevel=bevel, rounding=rounding, backend=backend)
    bolt = boolean_union([head, shank], backend=backend)
    bolt.metadata.update({"kind": "hex_bolt", "dia": dia, "length": length, "head_height": head_height, "span": span})
    return bolt


__all__ = ["make_hex_bolt", "make_hex_nut"]
