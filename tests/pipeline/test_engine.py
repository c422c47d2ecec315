import math
import random

import pandas as pd
import pytest

from swing_scorer.domain.frames import ParsePolicy
from swing_scorer.domain.leak import LeakType
from swing_scorer.domain.readiness import AthleteModel
from swing_scorer.domain.score import CompositeWeights, Dimension, FourBScore
from swing_scorer.domain.scoring_config import PlayerCalibration, ScoringConfig
from swing_scorer.domain.session import SessionQuality
from swing_scorer.pipeline.composite import PROXY_WARNING
from swing_scorer.pipeline.engine import (
    NO_ENERGY_WARNING,
    NO_KINEMATICS_WARNING,
    NO_SWINGS_WARNING,
    ScoringEngine,
    session_quality,
)
from swing_scorer.services import to_json

from tests.helpers import energy_rows, kinematic_rows, session_rows

ENGINE = ScoringEngine()


def _session(count: int, **energy: object) -> FourBScore:
    return ENGINE.score_rows(
        session_rows(kinematic_rows, count),
        session_rows(energy_rows, count, **energy),
    )


class TestScoringEngine:
    def test_deterministic(self) -> None:
        assert to_json(_session(4)) == to_json(_session(4))

    def test_scores_stay_on_scouting_scale(self) -> None:
        score = _session(5)
        for dim in Dimension:
            assert 20 <= score.dimension(dim) <= 80
        assert 20 <= score.composite <= 80
        for flow in (score.flows.ground_flow, score.flows.core_flow, score.flows.upper_flow):
            assert 20 <= flow <= 80

    def test_composite_is_weighted_sum(self) -> None:
        score = _session(5)
        expected = math.floor(0.35 * score.body + 0.30 * score.bat + 0.20 * score.brain + 0.15 * score.ball + 0.5)
        assert score.composite == expected

    def test_consistency_gated_below_three_swings(self) -> None:
        two = _session(2)
        assert set(two.data_quality.gated_scores) == {"brain", "ball"}
        assert two.brain == 50 and two.ball == 50
        assert not two.data_quality.consistency_scores_valid
        assert "Need 3+ swings for consistency scores" in two.data_quality.warnings

        three = _session(3)
        assert three.data_quality.gated_scores == ()
        assert three.data_quality.consistency_scores_valid

    def test_more_leg_energy_never_lowers_body(self) -> None:
        bodies = [_session(3, legs=legs).body for legs in (150.0, 300.0, 450.0)]
        assert bodies == sorted(bodies)

    def test_clean_transfer(self) -> None:
        kinematics = session_rows(kinematic_rows, 9) + kinematic_rows("s10", pelvis_frame=60, torso_frame=52)
        score = ENGINE.score_rows(kinematics, session_rows(energy_rows, 10))
        assert score.raw_metrics["proper_sequence_pct"] == 90.0
        assert score.leak.leak_type is LeakType.CLEAN_TRANSFER
        assert score.data_quality.quality is SessionQuality.GOOD

    def test_core_disconnect(self) -> None:
        kinematics = kinematic_rows("s1") + session_rows(kinematic_rows, 4, pelvis_frame=60, torso_frame=52)
        # session_rows numbers from s1, so rename the four out-of-sequence swings
        for row in kinematics[len(kinematic_rows()) :]:
            row["org_movement_id"] = "x" + row["org_movement_id"]
        score = ENGINE.score_rows(kinematics, None)
        assert score.raw_metrics["proper_sequence_pct"] == 20.0
        assert score.leak.leak_type is LeakType.CORE_DISCONNECT

    def test_no_swings_is_neutral(self) -> None:
        score = ENGINE.score_rows([], None)
        assert score.composite == 50
        assert all(score.dimension(dim) == 50 for dim in Dimension)
        assert score.leak.is_unknown
        assert score.data_quality.warnings[0] == NO_SWINGS_WARNING
        assert score.data_quality.contact_confidence == "none"
        assert score.projections is None
        assert score.readiness is None

    def test_kinematics_only(self) -> None:
        score = ENGINE.score_rows(session_rows(kinematic_rows, 3), None)
        assert NO_ENERGY_WARNING in score.data_quality.warnings
        assert score.projections is None
        assert score.readiness is not None

    def test_energy_only(self) -> None:
        score = ENGINE.score_rows(None, session_rows(energy_rows, 3))
        assert NO_KINEMATICS_WARNING in score.data_quality.warnings
        assert score.projections is not None
        assert score.projections.method == "bat_ke"
        assert score.readiness is None
        assert score.data_quality.contact_confidence == "high"

    def test_transfer_proxy_without_bat_channel(self) -> None:
        score = ENGINE.score_rows(None, session_rows(energy_rows, 3, bat=None))
        assert PROXY_WARNING in score.data_quality.warnings
        assert "transfer_proxy" in [c.metric for c in score.components["upper_flow"]]
        assert score.leak.leak_type is LeakType.NO_BAT_DELIVERY
        assert score.projections is not None
        assert score.projections.method == "transfer_proxy"

    def test_dataframe_input(self) -> None:
        rows = session_rows(energy_rows, 3)
        assert to_json(ENGINE.score_rows(None, pd.DataFrame(rows))) == to_json(ENGINE.score_rows(None, rows))

    def test_parse_warnings(self) -> None:
        rows = session_rows(energy_rows, 3)
        rows[10]["legs_kinetic_energy"] = "bad"
        rows[11]["torso_kinetic_energy"] = ""
        coerced = ENGINE.score_rows(None, rows)
        assert coerced.data_quality.coerced_cells == 2
        assert "2 unparsable cells coerced to 0" in coerced.data_quality.warnings

        dropped = ENGINE.score_rows(None, rows, policy=ParsePolicy.DROP)
        assert dropped.data_quality.dropped_rows == 2
        assert "2 rows dropped with unparsable values" in dropped.data_quality.warnings

    def test_discarded_swings_are_reported(self) -> None:
        kinematics = session_rows(kinematic_rows, 3) + kinematic_rows("short", frames=4)
        score = ENGINE.score_rows(kinematics, None)
        assert score.data_quality.discarded_swings == 1
        assert score.data_quality.swing_count == 3

    def test_player_calibration(self) -> None:
        weights = CompositeWeights(body=0.25, bat=0.25, brain=0.25, ball=0.25)
        calibration = PlayerCalibration(weights=weights, athlete_model=AthleteModel(beta_0=30.0))
        score = ENGINE.score_rows(
            session_rows(kinematic_rows, 3),
            session_rows(energy_rows, 3),
            calibration=calibration,
        )
        assert score.weights == weights
        assert score.readiness is not None and score.readiness.calibrated

    def test_config_version_is_reported(self) -> None:
        engine = ScoringEngine(ScoringConfig(version="test-1"))
        assert engine.score_rows(None, session_rows(energy_rows, 3)).config_version == "test-1"

    def test_joined_swings_count_one_contact_method_each(self) -> None:
        score = _session(3)
        assert score.data_quality.contact_methods == {"hand_decel": 3}
        assert score.data_quality.contact_confidence == "high"


class TestPlayerCalibration:
    @pytest.mark.parametrize(
        "weights",
        [
            CompositeWeights(body=1.0, bat=1.0, brain=1.0, ball=1.0),
            CompositeWeights(body=0.5, bat=0.5, brain=0.2, ball=-0.2),
        ],
    )
    def test_rejects_invalid_weights(self, weights: CompositeWeights) -> None:
        with pytest.raises(ValueError, match="Calibration weights"):
            PlayerCalibration(weights=weights)

    def test_rejects_non_positive_speed_constant(self) -> None:
        with pytest.raises(ValueError, match="speed_constant"):
            PlayerCalibration(speed_constant=0.0)

    @pytest.mark.parametrize("seed", range(8))
    def test_scores_stay_on_scouting_scale_with_custom_weights(self, seed: int) -> None:
        rng = random.Random(seed)
        raw = [rng.random() + 0.01 for _ in range(4)]
        total = sum(raw)
        weights = CompositeWeights(*(w / total for w in raw))
        count = rng.randint(2, 6)
        kinematics: list[dict[str, object]] = []
        energy: list[dict[str, object]] = []
        for n in range(count):
            kinematics += kinematic_rows(
                f"s{n}", pelvis_frame=rng.randint(40, 60), torso_frame=rng.randint(45, 65)
            )
            energy += energy_rows(
                f"s{n}",
                legs=rng.uniform(20, 900),
                torso=rng.uniform(20, 900),
                arms=rng.uniform(10, 500),
                bat=rng.uniform(0, 700),
                total=rng.uniform(100, 1000),
            )
        score = ENGINE.score_rows(kinematics, energy, calibration=PlayerCalibration(weights=weights))
        for dim in Dimension:
            assert 20 <= score.dimension(dim) <= 80
        assert 20 <= score.composite <= 80


@pytest.mark.parametrize(
    ("count", "expected"),
    [(1, SessionQuality.LIMITED), (3, SessionQuality.FAIR), (5, SessionQuality.GOOD)],
)
def test_session_quality(count: int, expected: SessionQuality) -> None:
    assert session_quality(count) is expected
