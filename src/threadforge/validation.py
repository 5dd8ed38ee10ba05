from __future__ import annotations

from typing import Sequence

import numpy as np

PERIODIC_TOLERANCE = 1e-9


class ThreadforgeError(ValueError):
    """Base error for thread and fastener generation failures."""


class ConfigError(ThreadforgeError):
    """Raised when a parameter combination cannot describe a thread."""


class DegenerateGeometryError(ThreadforgeError):
    """Raised when valid-looking parameters would produce a self-intersecting mesh."""


class MeshBudgetExceeded(ThreadforgeError):
    """Raised when generated mesh exceeds the configured budget."""


class BooleanError(ThreadforgeError):
    """Raised when the boolean backend rejects its inputs."""


def validate_periodic_profile(points: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Check one period of a thread profile and return it as an (N, 2) array.

    Pitch fractions must start at 0, end at 1 and never decrease; depths live in
    [-1, 1] and the depth at 0 must equal the depth at 1.
    """

    arr = np.asarray(points, dtype=float)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ConfigError("Profile points must be Nx2 points.")
    if arr.shape[0] < 2:
        raise ConfigError("Profile needs at least 2 points.")
    if np.any(~np.isfinite(arr)):
        raise ConfigError("Profile points contain invalid values.")

    fractions = arr[:, 0]
    depths = arr[:, 1]
    if np.any(fractions < 0.0) or np.any(fractions > 1.0):
        raise ConfigError("Profile pitch fractions must be in [0, 1].")
    if np.any(depths < -1.0 - PERIODIC_TOLERANCE) or np.any(depths > 1.0 + PERIODIC_TOLERANCE):
        raise ConfigError("Profile depths must be in [-1, 1].")
    if np.any(np.diff(fractions) < 0.0):
        raise ConfigError("Profile pitch fractions must be monotonic.")
    if fractions[0] != 0.0 or fractions[-1] != 1.0:
        raise ConfigError("Profile must start at pitch fraction 0 and end at 1.")
    if abs(depths[0] - depths[-1]) > PERIODIC_TOLERANCE:
        raise ConfigError(
            f"Profile is not periodic: depth {depths[0]:.6g} at 0 but {depths[-1]:.6g} at 1."
        )
    if np.isclose(depths.max(), depths.min(), atol=1e-12):
        raise ConfigError("Profile must vary between root and crest.")
    return arr.copy()
