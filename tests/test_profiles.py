from __future__ import annotations

import numpy as np
import pytest

from threadforge.modeling import (
    custom_profile,
    get_profile,
    profile_circle,
    profile_double_sine,
    profile_iso,
    profile_sine,
    profile_triangular,
)
from threadforge.validation import ConfigError


@pytest.mark.parametrize(
    "profile",
    [
        profile_sine(),
        profile_double_sine(),
        profile_triangular(),
        profile_iso(),
        profile_circle(4.0, 6.0),
        profile_circle(10.0, 4.0, fn=16),
    ],
    ids=lambda profile: profile.name,
)
def test_library_profiles_are_periodic(profile) -> None:
    assert abs(profile(0.0) - profile(1.0)) <= 1e-9
    assert profile.min_depth >= -1.0
    assert profile.max_depth <= 1.0


def test_profile_evaluation_wraps_outside_one_period() -> None:
    profile = profile_iso()
    assert profile(1.25) == pytest.approx(profile(0.25))
    assert profile(-0.25) == pytest.approx(profile(0.75))


def test_triangular_profile_has_root_at_seam_and_crest_mid_pitch() -> None:
    profile = profile_triangular()
    assert profile(0.0) == pytest.approx(-1.0)
    assert profile(0.5) == pytest.approx(1.0)
    assert profile(0.25) == pytest.approx(0.0)


def test_iso_profile_flats() -> None:
    profile = profile_iso()
    assert profile(1.0 / 16.0) == pytest.approx(-1.0)
    assert profile(0.5) == pytest.approx(1.0)
    assert profile(15.0 / 16.0) == pytest.approx(-1.0)


def test_double_sine_has_two_crests_per_pitch() -> None:
    samples = profile_double_sine(fn=64).sample(64)
    assert samples[0] == pytest.approx(1.0)
    assert samples[32] == pytest.approx(1.0)
    assert samples[16] == pytest.approx(-1.0, abs=1e-9)


def test_sample_returns_fn_values_and_accepts_arrays() -> None:
    profile = profile_sine(fn=32)
    samples = profile.sample(32)
    assert samples.shape == (32,)
    assert np.allclose(samples, np.cos(2.0 * np.pi * np.arange(32) / 32))
    assert isinstance(profile(0.3), float)


def test_circle_profile_differs_from_sine_for_large_radius() -> None:
    circle = profile_circle(10.0, 4.0, fn=32).sample(32)
    sine = profile_sine(fn=32).sample(32)
    assert np.max(np.abs(circle - sine)) > 0.1
    # Offset 8, radius 10: at a quarter turn the distance is 6, i.e. -0.5 normalised.
    assert circle[8] == pytest.approx(-0.5, abs=1e-9)


def test_circle_profile_approaches_cosine_near_half_diameter() -> None:
    circle = profile_circle(2.0001, 4.0, fn=32).sample(32)
    assert np.allclose(circle, np.cos(2.0 * np.pi * np.arange(32) / 32), atol=1e-3)


def test_circle_profile_rejects_radius_not_above_half_diameter() -> None:
    with pytest.raises(ConfigError):
        profile_circle(2.0, 4.0)
    with pytest.raises(ConfigError):
        profile_circle(1.0, 4.0)


def test_profile_points_are_read_only() -> None:
    profile = profile_triangular()
    with pytest.raises(ValueError):
        profile.points[0, 1] = 0.0


def test_profiles_hash_by_value() -> None:
    assert profile_triangular() == profile_triangular()
    assert hash(profile_sine(fn=16)) == hash(profile_sine(fn=16))
    assert profile_sine(fn=16) != profile_sine(fn=32)


@pytest.mark.parametrize(
    "points",
    [
        [(0.0, -1.0), (0.5, 1.0), (1.0, 0.5)],
        [(0.1, -1.0), (0.5, 1.0), (1.0, -1.0)],
        [(0.0, -1.0), (0.5, 1.0), (0.9, -1.0)],
        [(0.0, -1.0), (0.6, 1.0), (0.4, 0.0), (1.0, -1.0)],
        [(0.0, -1.0), (0.5, 1.5), (1.0, -1.0)],
        [(0.0, 0.2), (0.5, 0.2), (1.0, 0.2)],
        [(0.0, -1.0)],
        [(0.0, float("nan")), (1.0, 0.0)],
    ],
)
def test_custom_profile_rejects_invalid_points(points) -> None:
    with pytest.raises(ConfigError):
        custom_profile(points)


def test_custom_profile_accepts_asymmetric_buttress() -> None:
    profile = custom_profile([(0.0, -1.0), (0.2, 1.0), (0.3, 1.0), (1.0, -1.0)], name="buttress")
    assert profile.name == "buttress"
    assert profile(0.2) == pytest.approx(1.0)


def test_get_profile_by_name() -> None:
    assert get_profile("Triangular") == profile_triangular()
    assert get_profile("double-sine", fn=16) == profile_double_sine(fn=16)
    assert get_profile("circle", r=4.0, dia=6.0).name == "circle"
    with pytest.raises(ConfigError, match="Unknown profile"):
        get_profile("acme")
