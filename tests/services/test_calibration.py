from collections.abc import Callable

import pytest

from swing_scorer.domain.readiness import CalibrationSample
from swing_scorer.domain.result import Err, Ok
from swing_scorer.services import fit_athlete_model

BUCKETS = [
    (10, 20, 30, 40),
    (50, 10, 20, 70),
    (30, 60, 10, 20),
    (70, 40, 50, 10),
    (20, 80, 60, 30),
    (60, 30, 80, 50),
    (40, 50, 70, 90),
    (80, 70, 40, 60),
]


def _samples(speed: Callable[..., float]) -> list[CalibrationSample]:
    return [CalibrationSample(b1, b2, b3, b4, speed(b1, b2, b3, b4)) for b1, b2, b3, b4 in BUCKETS]


class TestFitAthleteModel:
    def test_recovers_exact_linear_model(self) -> None:
        samples = _samples(lambda b1, b2, b3, b4: 40 + 0.2 * b1 + 0.3 * b2 + 0.1 * b3 + 0.4 * b4)
        match fit_athlete_model(samples):
            case Ok(result):
                assert result.sample_count == 8
                assert result.r_squared == pytest.approx(1.0)
                assert result.model.beta_0 == pytest.approx(40.0, abs=1e-6)
                assert result.model.beta_1 == pytest.approx(0.2, abs=1e-6)
                assert result.model.beta_2 == pytest.approx(0.3, abs=1e-6)
                assert result.model.beta_3 == pytest.approx(0.1, abs=1e-6)
                assert result.model.beta_4 == pytest.approx(0.4, abs=1e-6)
            case Err(e):
                pytest.fail(e.message)

    def test_too_few_samples(self) -> None:
        samples = _samples(lambda *_: 60.0)[:4]
        result = fit_athlete_model(samples)
        assert isinstance(result, Err)
        assert result.error.sample_count == 4
        assert "at least 5" in result.error.message

    def test_custom_minimum(self) -> None:
        samples = _samples(lambda b1, *_: 50 + 0.1 * b1)[:6]
        assert isinstance(fit_athlete_model(samples, min_samples=7), Err)

    def test_constant_speed_has_zero_fit(self) -> None:
        result = fit_athlete_model(_samples(lambda *_: 60.0))
        assert isinstance(result, Ok)
        assert result.value.r_squared == 0.0
        assert result.value.model.beta_0 == pytest.approx(60.0)
