import math
import statistics
from collections.abc import Sequence

import numpy as np


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_score(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def nearest_rank_percentile(values: np.ndarray, pct: float) -> float:
    """Nearest-rank percentile: ``sorted[min(floor(n * pct / 100), n - 1)]``."""
    if values.size == 0:
        return 0.0
    ordered = np.sort(values)
    idx = min(int(math.floor(ordered.size * pct / 100)), ordered.size - 1)
    return float(ordered[idx])


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation over the absolute mean, as a percentage."""
    if len(values) < 2:
        return 0.0
    mean = statistics.mean(values)
    if mean == 0:
        return 0.0
    return statistics.pstdev(values) / abs(mean) * 100


def angular_velocity(angles: np.ndarray, time: np.ndarray) -> np.ndarray:
    """First difference over elapsed time; zero where time does not advance.

    Element ``i`` of the result is the velocity arriving at frame ``i + 1``.
    """
    if angles.size < 2:
        return np.zeros(0)
    d_angle = np.diff(angles)
    dt = np.diff(time)
    out = np.zeros_like(d_angle, dtype=float)
    moving = dt > 0
    out[moving] = d_angle[moving] / dt[moving]
    return out


def magnitude(*components: np.ndarray) -> np.ndarray:
    stacked = np.vstack(components)
    return np.sqrt(np.sum(stacked**2, axis=0))
