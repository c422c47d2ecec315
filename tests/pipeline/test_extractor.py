import pytest

from swing_scorer.domain.features import SwingFeatures
from swing_scorer.domain.frames import Handedness
from swing_scorer.domain.scoring_config import ExtractionConfig
from swing_scorer.pipeline.extractor import extract_features, lead_side, rear_side
from swing_scorer.pipeline.units import RAD_TO_DEG

from tests.helpers import energy_rows, kinematic_rows, segment_rows

CONFIG = ExtractionConfig()
TWENTY_FRAMES_MS = 20 / 240 * 1000


def _features(kinematics: list | None = None, energy: list | None = None) -> SwingFeatures:
    (swing,) = segment_rows(kinematics, energy)
    features = extract_features(swing, CONFIG, Handedness.RIGHT)
    assert features is not None
    return features


class TestSides:
    def test_right_handed(self) -> None:
        assert lead_side(Handedness.RIGHT) == "left"
        assert rear_side(Handedness.RIGHT) == "right"

    def test_left_handed(self) -> None:
        assert lead_side(Handedness.LEFT) == "right"
        assert rear_side(Handedness.LEFT) == "left"


class TestKinematicFeatures:
    def test_sequence_and_timing(self) -> None:
        kin = _features(kinematic_rows()).kinematics
        assert kin is not None
        assert kin.proper_sequence is True
        assert kin.pelvis_timing_ms == pytest.approx(TWENTY_FRAMES_MS)
        assert kin.pelvis_peak_ms == pytest.approx(-TWENTY_FRAMES_MS)
        assert kin.torso_peak_ms == pytest.approx(-12 / 240 * 1000)

    def test_torso_first_is_out_of_sequence(self) -> None:
        kin = _features(kinematic_rows(pelvis_frame=60, torso_frame=52)).kinematics
        assert kin is not None
        assert kin.proper_sequence is False

    def test_velocities_are_degrees_per_second(self) -> None:
        kin = _features(kinematic_rows()).kinematics
        assert kin is not None
        assert kin.pelvis_velocity is not None and 600 < kin.pelvis_velocity < 750
        assert kin.torso_velocity is not None and kin.torso_velocity > kin.pelvis_velocity
        assert kin.rear_elbow_ext_rate is not None and kin.rear_elbow_ext_rate > 0
        assert kin.x_factor_max is not None and kin.x_factor_max > 0

    def test_radian_exports_are_converted(self) -> None:
        angle_columns = {"pelvis_rot", "torso_rot", "left_knee", "right_elbow", "left_elbow"}
        rows = [
            {k: (v / RAD_TO_DEG if k in angle_columns else v) for k, v in row.items()} for row in kinematic_rows()
        ]
        degrees = _features(kinematic_rows()).kinematics
        radians = _features(rows).kinematics
        assert degrees is not None and radians is not None
        assert radians.angles_converted
        assert not degrees.angles_converted
        assert radians.pelvis_velocity == pytest.approx(degrees.pelvis_velocity)

    def test_no_angle_channels(self) -> None:
        rows = [{"org_movement_id": "s1", "time": i / 240, "hand_vel_x": 1.0} for i in range(20)]
        (swing,) = segment_rows(rows)
        assert extract_features(swing, CONFIG) is None


class TestEnergyFeatures:
    def test_efficiency_and_transfer(self) -> None:
        energy = _features(energy=energy_rows(bat=200.0, total=450.0, arms=200.0, torso=250.0)).energy
        assert energy is not None
        assert energy.has_bat_ke
        assert energy.bat_efficiency == pytest.approx(200 / 450 * 100)
        assert energy.torso_to_arms == pytest.approx(80.0)

    def test_peak_offsets_from_contact(self) -> None:
        energy = _features(energy=energy_rows()).energy
        assert energy is not None
        assert energy.legs_peak_ms == pytest.approx(-TWENTY_FRAMES_MS)
        assert energy.arms_peak_ms == pytest.approx(-6 / 240 * 1000)

    def test_peak_after_contact_is_observed(self) -> None:
        energy = _features(energy=energy_rows(legs_frame=80)).energy
        assert energy is not None
        assert energy.legs_peak_ms == pytest.approx(10 / 240 * 1000)

    def test_missing_bat_channel(self) -> None:
        energy = _features(energy=energy_rows(bat=None)).energy
        assert energy is not None
        assert not energy.has_bat_ke
        assert energy.bat_ke is None
        assert energy.bat_efficiency is None

    def test_bat_above_total_is_invalid(self) -> None:
        energy = _features(energy=energy_rows(bat=500.0, total=450.0)).energy
        assert energy is not None
        assert not energy.has_bat_ke

    def test_arm_energy_falls_back_to_split_arms(self) -> None:
        rows = []
        for row in energy_rows():
            half = row["arms_kinetic_energy"] / 2
            rows.append({**row, "arms_kinetic_energy": 0.0, "larm_kinetic_energy": half, "rarm_kinetic_energy": half})
        energy = _features(energy=rows).energy
        assert energy is not None
        assert energy.torso_to_arms == pytest.approx(80.0)

    def test_both_exports(self) -> None:
        features = _features(kinematic_rows(), energy_rows())
        assert features.kinematics is not None
        assert features.energy is not None
        assert "bat_efficiency" in features.values()
        assert "proper_sequence" not in features.values()
