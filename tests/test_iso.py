from __future__ import annotations

import math

import pytest

from threadforge.modeling import iso
from threadforge.validation import ConfigError


def test_coarse_pitch_table_values() -> None:
    assert iso.coarse_pitch(4.0) == pytest.approx(0.7)
    assert iso.coarse_pitch(6.0) == pytest.approx(1.0)
    assert iso.coarse_pitch(36.0) == pytest.approx(4.0)


def test_lookup_interpolates_between_rows() -> None:
    assert iso.coarse_pitch(4.5) == pytest.approx(0.75)
    assert iso.hex_nut_height(7.0) == pytest.approx(6.0)


def test_hex_dimensions() -> None:
    assert iso.hex_span(6.0) == pytest.approx(11.05)
    assert iso.hex_nut_height(8.0) == pytest.approx(6.8)
    assert iso.hex_bolt_head_height(10.0) == pytest.approx(6.4)


@pytest.mark.parametrize("dia", [1.0, 40.0, float("nan")])
def test_lookup_outside_table_raises(dia: float) -> None:
    with pytest.raises(ConfigError, match="diameter outside supported ISO range"):
        iso.coarse_pitch(dia)


def test_effective_pitch_uses_sentinel() -> None:
    assert iso.effective_pitch(6.0) == pytest.approx(1.0)
    assert iso.effective_pitch(6.0, 0.5) == pytest.approx(0.5)
    # Explicit pitch never touches the table.
    assert iso.effective_pitch(100.0, 2.0) == pytest.approx(2.0)
    with pytest.raises(ConfigError):
        iso.effective_pitch(6.0, -1.0)


def test_thread_depth_for_m4() -> None:
    expected = 5.0 / 8.0 * 0.7 / (2.0 * math.tan(math.radians(30.0)))
    assert iso.thread_depth(4.0) == pytest.approx(expected)
    assert iso.thread_depth(4.0) == pytest.approx(0.3789, abs=1e-4)


def test_rshift_vanishes_at_standard_angle() -> None:
    assert iso.thread_rshift(6.0) == pytest.approx(0.0)
    assert iso.thread_rshift(6.0, angle=25.0) > 0.0
    assert iso.thread_rshift(6.0, angle=40.0) < 0.0


@pytest.mark.parametrize("angle", [0.0, 90.0, -10.0])
def test_thread_depth_rejects_bad_angle(angle: float) -> None:
    with pytest.raises(ConfigError):
        iso.thread_depth(6.0, angle=angle)
