from __future__ import annotations

import math

import pytest

from threadforge.mesh import analyze_mesh
from threadforge.modeling import make_hex_body, make_hex_bolt, make_hex_nut
from threadforge.modeling import iso
from threadforge.validation import ConfigError

FAST = dict(fn=16, fnstep=2)


def test_hex_nut_is_body_minus_thread() -> None:
    nut = make_hex_nut(6.0, **FAST)
    height = iso.hex_nut_height(6.0)
    analysis = analyze_mesh(nut)
    assert analysis.is_watertight
    assert nut.bounds[4:] == pytest.approx((0.0, height), abs=1e-4)
    assert nut.metadata["kind"] == "hex_nut"
    assert nut.metadata["span"] == pytest.approx(iso.hex_span(6.0))

    body = make_hex_body(iso.hex_span(6.0), height)
    minor = 3.0 - iso.thread_depth(6.0)
    hole = math.pi * minor**2 * height
    assert nut.volume < body.volume - hole
    assert nut.volume > body.volume - math.pi * 3.2**2 * height


def test_nut_clearance_removes_more_material() -> None:
    loose = make_hex_nut(6.0, clearance=0.4, **FAST)
    snug = make_hex_nut(6.0, clearance=0.0, **FAST)
    assert loose.volume < snug.volume


def test_hex_bolt_layout() -> None:
    bolt = make_hex_bolt(6.0, 8.0, **FAST)
    head = iso.hex_bolt_head_height(6.0)
    assert analyze_mesh(bolt).is_watertight
    xmin, xmax, ymin, ymax, zmin, zmax = bolt.bounds
    assert zmin == pytest.approx(0.0, abs=1e-5)
    assert zmax == pytest.approx(head + 8.0, abs=1e-4)
    assert xmax == pytest.approx(iso.hex_span(6.0) / 2.0, abs=1e-3)
    assert bolt.metadata["kind"] == "hex_bolt"
    assert bolt.metadata["head_height"] == pytest.approx(head)


def test_custom_bolt_dimensions_and_errors() -> None:
    bolt = make_hex_bolt(6.0, 5.0, pitch=0.5, head_height=3.0, span=12.0, taper_arc=0.0, **FAST)
    assert bolt.bounds[5] == pytest.approx(8.0, abs=1e-4)
    with pytest.raises(ConfigError):
        make_hex_bolt(6.0, 0.0, **FAST)
    with pytest.raises(ConfigError):
        make_hex_bolt(6.0, 5.0, span=5.0, **FAST)
    with pytest.raises(ConfigError):
        make_hex_nut(6.0, span=6.0, **FAST)
    with pytest.raises(ConfigError, match="fn not divisible"):
        make_hex_nut(6.0, fn=15, fnstep=2)
    with pytest.raises(ConfigError, match="ISO range"):
        make_hex_nut(48.0, **FAST)
