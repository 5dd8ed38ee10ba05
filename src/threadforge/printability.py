from __future__ import annotations

import warnings


def warn_min_feature(name: str, value: float, nozzle_diameter: float, stacklevel: int = 2) -> None:
    if nozzle_diameter <= 0:
        return
    if value < nozzle_diameter:
        warnings.warn(
            f"{name} {value:.3f}mm is below nozzle diameter {nozzle_diameter:.3f}mm.",
            RuntimeWarning,
            stacklevel=stacklevel + 1,
        )


def warn_length_rounded(requested: float, realised: float, layer_height: float, stacklevel: int = 2) -> None:
    warnings.warn(
        f"length {requested:.4f}mm is not a whole number of {layer_height:.4f}mm layers; "
        f"building {realised:.4f}mm instead.",
        RuntimeWarning,
        stacklevel=stacklevel + 1,
    )
