"""ISO metric fastener dimensions (ISO 261 / ISO 4032 / ISO 4014) in millimeters."""

from __future__ import annotations

import math

import numpy as np

from threadforge.validation import ConfigError

# (nominal diameter, value) rows, ascending diameter.
COARSE_PITCH: tuple[tuple[float, float], ...] = (
    (1.6, 0.35),
    (2.0, 0.40),
    (2.5, 0.45),
    (3.0, 0.50),
    (4.0, 0.70),
    (5.0, 0.80),
    (6.0, 1.00),
    (8.0, 1.25),
    (10.0, 1.50),
    (12.0, 1.75),
    (14.0, 2.00),
    (16.0, 2.00),
    (20.0, 2.50),
    (24.0, 3.00),
    (30.0, 3.50),
    (36.0, 4.00),
)

# Width across corners (e).
HEX_SPAN: tuple[tuple[float, float], ...] = (
    (1.6, 3.41),
    (2.0, 4.32),
    (2.5, 5.45),
    (3.0, 6.01),
    (4.0, 7.66),
    (5.0, 8.79),
    (6.0, 11.05),
    (8.0, 14.38),
    (10.0, 17.77),
    (12.0, 20.03),
    (14.0, 23.36),
    (16.0, 26.75),
    (20.0, 33.53),
    (24.0, 39.98),
    (30.0, 50.85),
    (36.0, 60.79),
)

# Nut height (m).
HEX_NUT_HEIGHT: tuple[tuple[float, float], ...] = (
    (1.6, 1.3),
    (2.0, 1.6),
    (2.5, 2.0),
    (3.0, 2.4),
    (4.0, 3.2),
    (5.0, 4.7),
    (6.0, 5.2),
    (8.0, 6.8),
    (10.0, 8.4),
    (12.0, 10.8),
    (14.0, 12.8),
    (16.0, 14.8),
    (20.0, 18.0),
    (24.0, 21.5),
    (30.0, 25.6),
    (36.0, 31.0),
)

# Head height (k).
HEX_BOLT_HEAD_HEIGHT: tuple[tuple[float, float], ...] = (
    (1.6, 1.1),
    (2.0, 1.4),
    (2.5, 1.7),
    (3.0, 2.0),
    (4.0, 2.8),
    (5.0, 3.5),
    (6.0, 4.0),
    (8.0, 5.3),
    (10.0, 6.4),
    (12.0, 7.5),
    (14.0, 8.8),
    (16.0, 10.0),
    (20.0, 12.5),
    (24.0, 15.0),
    (30.0, 18.7),
    (36.0, 22.5),
)

STANDARD_ANGLE = 30.0


def _lookup(table: tuple[tuple[float, float], ...], dia: float, label: str) -> float:
    diameters = np.array([row[0] for row in table], dtype=float)
    values = np.array([row[1] for row in table], dtype=float)
    if not np.isfinite(dia) or dia < diameters[0] or dia > diameters[-1]:
        raise ConfigError(
            f"diameter outside supported ISO range: {label} is tabulated for "
            f"M{diameters[0]:g} to M{diameters[-1]:g}, got {dia:g}."
        )
    return float(np.interp(dia, diameters, values))


def coarse_pitch(dia: float) -> float:
    return _lookup(COARSE_PITCH, dia, "coarse pitch")


def hex_span(dia: float) -> float:
    """Corner-to-corner width of the hex for a nominal diameter."""

    return _lookup(HEX_SPAN, dia, "hex span")


def hex_nut_height(dia: float) -> float:
    return _lookup(HEX_NUT_HEIGHT, dia, "hex nut height")


def hex_bolt_head_height(dia: float) -> float:
    return _lookup(HEX_BOLT_HEAD_HEIGHT, dia, "hex bolt head height")


def effective_pitch(dia: float, pitch: float = 0.0) -> float:
    """Return ``pitch`` or, for the 0 sentinel, the coarse pitch of ``dia``."""

    if pitch < 0:
        raise ConfigError("pitch must be non-negative (0 selects the ISO coarse pitch).")
    if pitch == 0:
        return coarse_pitch(dia)
    return float(pitch)


def thread_depth(dia: float, pitch: float = 0.0, angle: float = STANDARD_ANGLE) -> float:
    """Radial thread depth, 5/8 of the fundamental triangle height for flank half-angle ``angle``."""

    if not 0.0 < angle < 90.0:
        raise ConfigError("angle must be strictly between 0 and 90 degrees.")
    p = effective_pitch(dia, pitch)
    return 5.0 / 8.0 * p / (2.0 * math.tan(math.radians(angle)))


def thread_rshift(dia: float, pitch: float = 0.0, angle: float = STANDARD_ANGLE) -> float:
    """Outer radius correction for a non-standard flank angle, relative to the 30 degree form."""

    return thread_depth(dia, pitch, angle) - thread_depth(dia, pitch, STANDARD_ANGLE)


__all__ = [
    "COARSE_PITCH",
    "HEX_BOLT_HEAD_HEIGHT",
    "HEX_NUT_HEIGHT",
    "HEX_SPAN",
    "STANDARD_ANGLE",
    "coarse_pitch",
    "effective_pitch",
    "hex_bolt_head_height",
    "hex_nut_height",
    "hex_span",
    "thread_depth",
    "thread_rshift",
]
