"""Angle unit conversion.

Exports label angle channels inconsistently. A channel whose largest
magnitude is small is assumed to be in radians; the rule is kept as a named
converter so a data source with known units can swap it out.
"""

from dataclasses import dataclass

import numpy as np

from swing_scorer.pipeline.protocols import UnitConverter

RAD_TO_DEG: float = 57.29577951308232


@dataclass(frozen=True)
class RadiansHeuristic:
    threshold: float = 8.0

    def convert(self, values: np.ndarray) -> tuple[np.ndarray, bool]:
        if values.size == 0:
            return values, False
        peak = float(np.nanmax(np.abs(values)))
        if 0 < peak < self.threshold:
            return values * RAD_TO_DEG, True
        return values, False


@dataclass(frozen=True)
class DegreesPassthrough:
    def convert(self, values: np.ndarray) -> tuple[np.ndarray, bool]:
        return values, False


@dataclass(frozen=True)
class RadiansToDegrees:
    def convert(self, values: np.ndarray) -> tuple[np.ndarray, bool]:
        return values * RAD_TO_DEG, values.size > 0


def converter_for(angle_units: str, threshold: float = 8.0) -> UnitConverter:
    match angle_units:
        case "auto":
            return RadiansHeuristic(threshold)
        case "degrees":
            return DegreesPassthrough()
        case "radians":
            return RadiansToDegrees()
        case _:
            raise ValueError(f"Unknown angle_units '{angle_units}'")
