"""Athlete-model calibration.

Fits the linear readiness model ``bat_speed ~ beta_0 + sum(beta_i * B_i)``
to a player's own swings with ordinary least squares.
"""

import logging
from collections.abc import Sequence

import numpy as np
from sklearn.linear_model import LinearRegression

from swing_scorer.domain.errors import CalibrationError
from swing_scorer.domain.readiness import AthleteModel, CalibrationResult, CalibrationSample
from swing_scorer.domain.result import Err, Ok, Result
from swing_scorer.pipeline._numeric import clamp

logger = logging.getLogger(__name__)

DEFAULT_MIN_SAMPLES = 5


def fit_athlete_model(
    samples: Sequence[CalibrationSample],
    *,
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> Result[CalibrationResult, CalibrationError]:
    """Fit per-player bucket coefficients from observed bat speeds.

    Returns ``Err`` when there are fewer than ``min_samples`` samples. The
    reported r-squared is clamped to [0, 1].
    """
    if len(samples) < min_samples:
        return Err(
            CalibrationError(
                message=f"Need at least {min_samples} swings to calibrate, got {len(samples)}",
                sample_count=len(samples),
            )
        )

    X = np.array([[s.b1, s.b2, s.b3, s.b4] for s in samples], dtype=float)
    y = np.array([s.bat_speed_mph for s in samples], dtype=float)
    regression = LinearRegression()
    regression.fit(X, y)

    r_squared = float(regression.score(X, y)) if np.ptp(y) > 0 else 0.0
    b1, b2, b3, b4 = (float(c) for c in regression.coef_)
    model = AthleteModel(
        beta_0=float(regression.intercept_),
        beta_1=b1,
        beta_2=b2,
        beta_3=b3,
        beta_4=b4,
    )
    logger.debug("Calibrated athlete model on %d swings (r2=%.3f)", len(samples), r_squared)
    return Ok(CalibrationResult(model=model, r_squared=clamp(r_squared, 0.0, 1.0), sample_count=len(samples)))
