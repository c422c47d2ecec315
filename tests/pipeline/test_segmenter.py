from swing_scorer.domain.frames import TableKind
from swing_scorer.domain.scoring_config import SegmentationConfig
from swing_scorer.domain.swing import ContactConfidence, ContactMethod
from swing_scorer.pipeline.normalizer import normalize_frames
from swing_scorer.pipeline.segmenter import segment_session

from tests.helpers import energy_rows, kinematic_rows, segment_rows


def _with_markers(rows: list[dict[str, object]], **markers: object) -> list[dict[str, object]]:
    return [{**row, **markers} for row in rows]


class TestSegmentSession:
    def test_joins_exports_by_swing_id(self) -> None:
        energy = energy_rows("s1") + energy_rows("s2")
        kinematics = kinematic_rows("s2") + kinematic_rows("s3")
        swings = segment_rows(kinematics, energy)
        assert [s.swing_id for s in swings] == ["s1", "s2", "s3"]
        assert swings[0].kinematics is None and swings[0].energy is not None
        assert swings[1].kinematics is not None and swings[1].energy is not None
        assert swings[2].energy is None

    def test_short_swings_are_discarded(self) -> None:
        kinematics = kinematic_rows("short", frames=5) + kinematic_rows("s1")
        table = normalize_frames(kinematics, TableKind.KINEMATICS)
        result = segment_session(table, None, SegmentationConfig())
        assert [s.swing_id for s in result.swings] == ["s1"]
        assert len(result.discarded) == 1
        assert result.discarded[0].swing_id == "short"
        assert "only 5 frames" in result.discarded[0].reason

    def test_energy_needs_fewer_frames(self) -> None:
        swings = segment_rows(energy=energy_rows("s1", frames=6, contact=4))
        assert len(swings) == 1

    def test_no_tables(self) -> None:
        result = segment_session(None, None, SegmentationConfig())
        assert result.swings == ()

    def test_default_stride_is_fraction_of_frames(self) -> None:
        (swing,) = segment_rows(kinematic_rows())
        assert swing.kinematics is not None
        assert swing.kinematics.stride_frame == 20

    def test_stride_marker(self) -> None:
        (swing,) = segment_rows(_with_markers(kinematic_rows(), stride_frame=30))
        assert swing.kinematics is not None
        assert swing.kinematics.stride_frame == 30

    def test_contact_before_stride_moves_to_last_frame(self) -> None:
        (swing,) = segment_rows(_with_markers(kinematic_rows(), stride_frame=30, contact_frame=10))
        assert swing.kinematics is not None
        assert swing.kinematics.contact_frame == 99

    def test_window_runs_from_stride_to_contact(self) -> None:
        (swing,) = segment_rows(kinematic_rows())
        trace = swing.kinematics
        assert trace is not None
        assert trace.contact.method is ContactMethod.HAND_DECEL
        assert trace.window[0] == 20
        assert trace.window[-1] == 70

    def test_time_to_contact_trims_window(self) -> None:
        rows = [
            {**row, "contact_frame": 80, "time_to_contact": (i - 60) / 240.0}
            for i, row in enumerate(kinematic_rows())
        ]
        (swing,) = segment_rows(rows)
        trace = swing.kinematics
        assert trace is not None
        assert trace.contact_frame == 80
        assert trace.window[0] == 20
        assert trace.window[-1] == 62

    def test_joined_swing_shares_energy_contact(self) -> None:
        (swing,) = segment_rows(kinematic_rows(hand_velocity=False), energy_rows(contact=72))
        assert swing.kinematics is not None and swing.energy is not None
        assert swing.energy.contact.method is ContactMethod.BAT_KE_PEAK
        assert swing.kinematics.contact == swing.energy.contact
        assert swing.kinematics.contact_frame == 72
        assert swing.kinematics.window[-1] == 72

    def test_joined_swing_shares_kinematic_contact(self) -> None:
        (swing,) = segment_rows(kinematic_rows(), energy_rows(contact=80))
        assert swing.kinematics is not None and swing.energy is not None
        assert swing.energy.contact.method is ContactMethod.HAND_DECEL
        assert swing.energy.contact_frame == 70
        assert swing.kinematics.contact_frame == 70
        assert swing.contact_confidence is ContactConfidence.HIGH

    def test_marker_in_one_export_applies_to_both(self) -> None:
        kinematics = _with_markers(kinematic_rows(), contact_frame=76)
        (swing,) = segment_rows(kinematics, energy_rows())
        assert swing.kinematics is not None and swing.energy is not None
        assert swing.energy.contact.method is ContactMethod.EXPLICIT_FRAME
        assert swing.energy.contact_frame == 76
        assert swing.kinematics.contact_frame == 76

    def test_exports_with_different_frame_rates_are_mapped_by_time(self) -> None:
        # 120 Hz energy export; its bat peak at frame 36 is 0.3 s, frame 72 of the 240 Hz kinematics.
        energy = [{**row, "time": i / 120.0} for i, row in enumerate(energy_rows(frames=50, contact=36))]
        (swing,) = segment_rows(kinematic_rows(hand_velocity=False), energy)
        assert swing.kinematics is not None and swing.energy is not None
        assert swing.energy.contact.method is ContactMethod.BAT_KE_PEAK
        assert swing.energy.contact_frame == 36
        assert swing.kinematics.contact_frame == 72
        assert swing.kinematics.contact.method is ContactMethod.BAT_KE_PEAK

    def test_each_trace_keeps_its_own_stride(self) -> None:
        kinematics = _with_markers(kinematic_rows(), stride_frame=50)
        (swing,) = segment_rows(kinematics, energy_rows(contact=45))
        assert swing.kinematics is not None and swing.energy is not None
        assert swing.kinematics.stride_frame == 50
        assert swing.energy.stride_frame == 20
