import math

import pytest

from swing_scorer.domain.leak import LeakResult, LeakType
from swing_scorer.domain.score import PlayerLevel
from swing_scorer.domain.scoring_config import ProjectionConfig
from swing_scorer.domain.session import Capabilities, SessionMetrics
from swing_scorer.pipeline.projection import compute_projection, delivered_energy, exit_speed, minimum_gap

CONFIG = ProjectionConfig()
CLEAN = LeakResult(LeakType.CLEAN_TRANSFER, "", "")
NO_BAT = LeakResult(LeakType.NO_BAT_DELIVERY, "", "")


def _metrics(means: dict[str, float], *, bat_ke: bool = True, energy: bool = True) -> SessionMetrics:
    return SessionMetrics(
        swing_count=5,
        capabilities=Capabilities(has_energy=energy, has_bat_ke=bat_ke),
        means=means,
    )


class TestDeliveredEnergy:
    def test_bat_channel(self) -> None:
        delivered, efficiency, method = delivered_energy(_metrics({"bat_ke": 300.0, "total_ke": 600.0}), CONFIG)
        assert delivered == 300.0
        assert efficiency == pytest.approx(50.0)
        assert method == "bat_ke"

    def test_transfer_proxy(self) -> None:
        metrics = _metrics({"arms_ke": 200.0, "torso_to_arms": 80.0, "total_ke": 450.0}, bat_ke=False)
        delivered, efficiency, method = delivered_energy(metrics, CONFIG)
        assert delivered == pytest.approx(160.0)
        assert efficiency == pytest.approx(160 / 450 * 100)
        assert method == "transfer_proxy"

    def test_proxy_efficiency_without_total_is_capped(self) -> None:
        metrics = _metrics({"arms_ke": 200.0, "torso_to_arms": 150.0}, bat_ke=False)
        _, efficiency, _ = delivered_energy(metrics, CONFIG)
        assert efficiency == 60.0


class TestMinimumGap:
    @pytest.mark.parametrize(
        ("leak", "efficiency", "expected"),
        [
            (NO_BAT, 50.0, 10.0),
            (CLEAN, 20.0, 10.0),
            (CLEAN, 40.0, 6.0),
            (CLEAN, 50.0, 0.0),
        ],
    )
    def test_tiers(self, leak: LeakResult, efficiency: float, expected: float) -> None:
        assert minimum_gap(leak, efficiency, CONFIG) == expected


class TestComputeProjection:
    def test_leak_forces_headroom(self) -> None:
        metrics = _metrics({"bat_ke": 300.0, "total_ke": 600.0})
        projection = compute_projection(metrics, NO_BAT, PlayerLevel.HIGH_SCHOOL, CONFIG)
        assert projection is not None
        assert projection.current_bat_speed == pytest.approx(73.6)
        assert projection.ceiling_bat_speed == pytest.approx(83.6)
        assert projection.minimum_gap == 10.0
        assert projection.headroom == pytest.approx(10.0)
        assert projection.current_exit_speed == 97
        assert projection.ceiling_exit_speed >= projection.current_exit_speed

    def test_efficient_session_has_no_forced_gap(self) -> None:
        metrics = _metrics({"bat_ke": 350.0, "total_ke": 600.0})
        projection = compute_projection(metrics, CLEAN, PlayerLevel.HIGH_SCHOOL, CONFIG)
        assert projection is not None
        expected = round(4.25 * math.sqrt(350), 1)
        assert projection.current_bat_speed == pytest.approx(expected)
        assert projection.ceiling_bat_speed == pytest.approx(expected)
        assert projection.minimum_gap == 0.0

    def test_clamped_to_level_floor(self) -> None:
        metrics = _metrics({"bat_ke": 50.0, "total_ke": 100.0})
        projection = compute_projection(metrics, CLEAN, PlayerLevel.HIGH_SCHOOL, CONFIG)
        assert projection is not None
        assert projection.current_bat_speed == 55.0

    def test_ceiling_never_exceeds_level_max(self) -> None:
        metrics = _metrics({"bat_ke": 900.0, "total_ke": 950.0})
        projection = compute_projection(metrics, NO_BAT, PlayerLevel.YOUTH, CONFIG)
        assert projection is not None
        assert projection.current_bat_speed == 75.0
        assert projection.ceiling_bat_speed == 85.0

    def test_speed_constant_override(self) -> None:
        metrics = _metrics({"bat_ke": 350.0, "total_ke": 600.0})
        projection = compute_projection(metrics, CLEAN, PlayerLevel.PRO, CONFIG, speed_constant=4.5)
        assert projection is not None
        assert projection.current_bat_speed == pytest.approx(round(4.5 * math.sqrt(350), 1))

    def test_no_energy(self) -> None:
        metrics = _metrics({}, energy=False, bat_ke=False)
        assert compute_projection(metrics, CLEAN, PlayerLevel.PRO, CONFIG) is None


def test_exit_speed() -> None:
    assert exit_speed(80.0, CONFIG) == 105
