from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

CONFIG_DIR_ENV = "THREADFORGE_CONFIG_DIR"
CONFIG_NAME = "threadforge.cfg"
DEFAULT_CONFIG = {
    "_comment": "Valid units: millimeters (default), meters, inches. fn must be a multiple of fnstep.",
    "units": "millimeters",
    "fn": 64,
    "fnstep": 4,
    "taper_arc": 0.25,
}
_UNIT_INFO: Dict[str, Dict[str, Any]] = {
    "millimeters": {"label": "mm", "scale_to_mm": 1.0},
    "meters": {"label": "m", "scale_to_mm": 1000.0},
    "inches": {"label": "in", "scale_to_mm": 25.4},
}
_UNIT_ALIASES = {
    "millimeter": "millimeters",
    "millimeters": "millimeters",
    "mm": "millimeters",
    "meter": "meters",
    "meters": "meters",
    "m": "meters",
    "inch": "inches",
    "inches": "inches",
    "in": "inches",
}


@dataclass(frozen=True)
class UnitSettings:
    """Resolved units from threadforge.cfg."""

    name: str
    label: str
    scale_to_mm: float


@dataclass(frozen=True)
class BuildDefaults:
    """Disc resolution and taper used when the caller does not pass them."""

    fn: int
    fnstep: int
    taper_arc: float


def config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    return Path(override) if override else Path.home() / ".threadforge"


def config_file() -> Path:
    return config_dir() / CONFIG_NAME


def ensure_user_config() -> None:
    """Ensure the config file exists with sane defaults."""

    try:
        config_dir().mkdir(parents=True, exist_ok=True)
    except OSError:
        return

    path = config_file()
    if path.exists():
        return

    try:
        path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n")
    except OSError:
        return


def _load_user_config() -> Dict[str, Any]:
    ensure_user_config()
    try:
        loaded = json.loads(config_file().read_text())
    except (OSError, json.JSONDecodeError):
        return DEFAULT_CONFIG.copy()
    if not isinstance(loaded, dict):
        return DEFAULT_CONFIG.copy()
    return loaded


def _normalize_units(value: str) -> str | None:
    key = value.strip().lower()
    if key in _UNIT_INFO:
        return key
    return _UNIT_ALIASES.get(key)


def get_unit_settings() -> UnitSettings:
    """Return the configured units and the conversion to millimeters."""

    raw_config = _load_user_config()
    raw_units = str(raw_config.get("units", DEFAULT_CONFIG["units"]))
    normalized = _normalize_units(raw_units)
    if normalized is None:
        normalized = DEFAULT_CONFIG["units"]

    info = _UNIT_INFO[normalized]
    return UnitSettings(name=normalized, label=info["label"], scale_to_mm=info["scale_to_mm"])


def get_build_defaults() -> BuildDefaults:
    """Return fn/fnstep/taper defaults, falling back per field on invalid values."""

    raw_config = _load_user_config()
    fn = _as_int(raw_config.get("fn"), DEFAULT_CONFIG["fn"], minimum=3)
    fnstep = _as_int(raw_config.get("fnstep"), DEFAULT_CONFIG["fnstep"], minimum=1)
    if fn % fnstep:
        fn, fnstep = DEFAULT_CONFIG["fn"], DEFAULT_CONFIG["fnstep"]
    try:
        taper_arc = float(raw_config.get("taper_arc", DEFAULT_CONFIG["taper_arc"]))
    except (TypeError, ValueError):
        taper_arc = DEFAULT_CONFIG["taper_arc"]
    if not 0.0 <= taper_arc <= 1.0:
        taper_arc = DEFAULT_CONFIG["taper_arc"]
    return BuildDefaults(fn=fn, fnstep=fnstep, taper_arc=taper_arc)


def _as_int(value: Any, default: int, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if int(value) != value or value < minimum:
        return default
    return int(value)
