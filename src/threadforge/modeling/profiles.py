"""Periodic thread profiles: one pitch of cross-section as (pitch fraction, depth) points."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from threadforge.validation import ConfigError, validate_periodic_profile


@dataclass(frozen=True)
class ThreadProfile:
    """One closed period of a thread cross-section.

    ``points`` holds (pitch_fraction, depth) rows from fraction 0 to 1 with depth
    in [-1, 1]; -1 is the thread root and +1 the crest. Evaluation wraps the
    fraction modulo one period and interpolates linearly between rows.
    """

    name: str
    points: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", validate_periodic_profile(self.points))
        self.points.setflags(write=False)

    def __call__(self, fraction: float | np.ndarray) -> float | np.ndarray:
        wrapped = np.mod(fraction, 1.0)
        values = np.interp(wrapped, self.points[:, 0], self.points[:, 1])
        if np.ndim(values) == 0:
            return float(values)
        return values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThreadProfile):
            return NotImplemented
        return self.name == other.name and np.array_equal(self.points, other.points)

    def __hash__(self) -> int:
        return hash((self.name, self.points.tobytes()))

    def sample(self, fn: int) -> np.ndarray:
        """Depths at fractions k/fn for k = 0..fn-1."""

        return np.asarray(self(np.arange(fn, dtype=float) / fn), dtype=float)

    @property
    def min_depth(self) -> float:
        return float(self.points[:, 1].min())

    @property
    def max_depth(self) -> float:
        return float(self.points[:, 1].max())


def _cosine_points(fn: int, periods: int) -> np.ndarray:
    if fn < 2:
        raise ConfigError("fn must be at least 2 for sampled profiles.")
    fractions = np.arange(fn + 1, dtype=float) / fn
    depths = np.cos(2.0 * np.pi * periods * fractions)
    # cos(2*pi*n) is not bit-exact; pin the closing sample to the opening one.
    depths[-1] = depths[0]
    return np.column_stack([fractions, depths])


def profile_sine(fn: int = 32) -> ThreadProfile:
    """Rounded thread: one cosine period sampled at fn + 1 points."""

    return ThreadProfile("sine", _cosine_points(fn, 1))


def profile_double_sine(fn: int = 32) -> ThreadProfile:
    """Two cosine periods per pitch, i.e. a double-bump rounded form."""

    return ThreadProfile("double_sine", _cosine_points(fn, 2))


def profile_triangular() -> ThreadProfile:
    """Sharp V thread."""

    return ThreadProfile("triangular", np.array([(0.0, -1.0), (0.5, 1.0), (1.0, -1.0)]))


def profile_iso() -> ThreadProfile:
    """ISO 68-1 style trapezoid: root flat P/4 (split across the seam), crest flat P/8."""

    points = np.array(
        [
            (0.0, -1.0),
            (1.0 / 8.0, -1.0),
            (7.0 / 16.0, 1.0),
            (9.0 / 16.0, 1.0),
            (7.0 / 8.0, -1.0),
            (1.0, -1.0),
        ]
    )
    return ThreadProfile("iso", points)


def profile_circle(r: float, dia: float, fn: int = 32) -> ThreadProfile:
    """Profile traced by a circle of radius ``r`` whose centre is ``r - dia/2`` off the axis.

    Rotating the offset circle while stacking it makes a round-crested thread.
    The radial distance is normalised so the far side of the circle is +1 and
    the near side -1. Close to ``r == dia/2`` this approaches a cosine, but it
    is a different curve and the gap grows with ``r``.
    """

    if dia <= 0:
        raise ConfigError("dia must be positive.")
    if r <= dia / 2.0:
        raise ConfigError("Circle profile radius must exceed dia/2.")
    if fn < 3:
        raise ConfigError("fn must be at least 3 for the circle profile.")

    offset = r - dia / 2.0
    fractions = np.arange(fn + 1, dtype=float) / fn
    theta = 2.0 * np.pi * fractions
    rho = offset * np.cos(theta) + np.sqrt(r * r - (offset * np.sin(theta)) ** 2)
    depths = np.clip((rho - r) / offset, -1.0, 1.0)
    depths[-1] = depths[0]
    return ThreadProfile("circle", np.column_stack([fractions, depths]))


def custom_profile(points: Sequence[Sequence[float]], name: str = "custom") -> ThreadProfile:
    return ThreadProfile(name, np.asarray(points, dtype=float))


PROFILE_FACTORIES: dict[str, Callable[..., ThreadProfile]] = {
    "sine": profile_sine,
    "double_sine": profile_double_sine,
    "triangular": profile_triangular,
    "iso": profile_iso,
    "circle": profile_circle,
}


def get_profile(name: str, **kwargs) -> ThreadProfile:
    """Resolve a library profile by name, forwarding keyword arguments to its factory."""

    key = name.strip().lower().replace("-", "_")
    factory = PROFILE_FACTORIES.get(key)
    if factory is None:
        raise ConfigError(f"Unknown profile '{name}'. Known profiles: {', '.join(sorted(PROFILE_FACTORIES))}")
    return factory(**kwargs)


__all__ = [
    "PROFILE_FACTORIES",
    "ThreadProfile",
    "custom_profile",
    "get_profile",
    "profile_circle",
    "profile_double_sine",
    "profile_iso",
    "profile_sine",
    "profile_triangular",
]
