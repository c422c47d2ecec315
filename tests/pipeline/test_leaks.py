from swing_scorer.domain.leak import LeakType
from swing_scorer.domain.scoring_config import LeakConfig
from swing_scorer.domain.session import Capabilities, SessionMetrics
from swing_scorer.pipeline.leaks import UNMATCHED_MESSAGE, LeakRule, classify_leak, first_match

CONFIG = LeakConfig()


def _metrics(
    *,
    kinematics: bool = False,
    energy: bool = True,
    coverage: float = 1.0,
    efficiency: float | None = 40.0,
    transfer: float | None = 90.0,
    sequence_rate: float | None = None,
    late_legs: float | None = None,
    early_arms: float | None = None,
    ground_timing: float | None = 100.0,
) -> SessionMetrics:
    means: dict[str, float] = {}
    if efficiency is not None:
        means["bat_efficiency"] = efficiency
    if transfer is not None:
        means["torso_to_arms"] = transfer
    return SessionMetrics(
        swing_count=5,
        capabilities=Capabilities(has_kinematics=kinematics, has_energy=energy, has_bat_ke=coverage >= 0.5),
        means=means,
        proper_sequence_rate=sequence_rate,
        late_legs_fraction=late_legs,
        early_arms_fraction=early_arms,
        bat_ke_coverage=coverage,
        ground_timing_ms=ground_timing,
    )


def _leak(metrics: SessionMetrics) -> LeakType:
    return classify_leak(metrics, CONFIG).leak_type


class TestClassifyLeak:
    def test_missing_bat_channel(self) -> None:
        assert _leak(_metrics(coverage=0.2)) is LeakType.NO_BAT_DELIVERY

    def test_low_efficiency(self) -> None:
        assert _leak(_metrics(efficiency=15.0)) is LeakType.NO_BAT_DELIVERY

    def test_no_energy_skips_bat_rule(self) -> None:
        assert _leak(_metrics(energy=False, coverage=0.0, efficiency=None)) is LeakType.UNKNOWN

    def test_late_engine(self) -> None:
        assert _leak(_metrics(late_legs=0.6)) is LeakType.LATE_ENGINE

    def test_late_engine_needs_majority(self) -> None:
        assert _leak(_metrics(late_legs=0.5)) is LeakType.CLEAN_TRANSFER

    def test_core_disconnect_from_sequence(self) -> None:
        assert _leak(_metrics(kinematics=True, sequence_rate=0.2)) is LeakType.CORE_DISCONNECT

    def test_core_disconnect_from_transfer(self) -> None:
        assert _leak(_metrics(transfer=50.0)) is LeakType.CORE_DISCONNECT

    def test_sequence_takes_precedence_over_transfer(self) -> None:
        assert _leak(_metrics(kinematics=True, sequence_rate=0.9, transfer=50.0)) is LeakType.CLEAN_TRANSFER

    def test_early_back_leg_release(self) -> None:
        assert _leak(_metrics(early_arms=0.75)) is LeakType.EARLY_BACK_LEG_RELEASE

    def test_late_lead_leg_acceptance(self) -> None:
        assert _leak(_metrics(ground_timing=20.0)) is LeakType.LATE_LEAD_LEG_ACCEPTANCE

    def test_glide(self) -> None:
        assert _leak(_metrics(ground_timing=250.0)) is LeakType.GLIDE_WITHOUT_CAPTURE

    def test_clean_transfer(self) -> None:
        result = classify_leak(_metrics(kinematics=True, sequence_rate=0.8), CONFIG)
        assert result.leak_type is LeakType.CLEAN_TRANSFER
        assert result.matched_rule == "clean_transfer"
        assert result.caption == "Energy transferred cleanly."

    def test_rule_order(self) -> None:
        metrics = _metrics(efficiency=10.0, late_legs=1.0, early_arms=1.0, ground_timing=10.0)
        assert _leak(metrics) is LeakType.NO_BAT_DELIVERY

    def test_unmatched(self) -> None:
        result = classify_leak(_metrics(kinematics=True, sequence_rate=0.5), CONFIG)
        assert result.is_unknown
        assert result.matched_rule is None
        assert result.message == UNMATCHED_MESSAGE

    def test_custom_rules(self) -> None:
        rules = (LeakRule("always", lambda m: True, LeakType.VERTICAL_PUSH),)
        result = classify_leak(_metrics(), CONFIG, rules=rules)
        assert result.leak_type is LeakType.VERTICAL_PUSH
        assert result.matched_rule == "always"


class TestFirstMatch:
    def test_returns_first_accepted(self) -> None:
        rules = [(lambda x: x > 10, "big"), (lambda x: x > 0, "positive"), (lambda x: True, "any")]
        assert first_match(rules, 5) == "positive"
        assert first_match(rules, 50) == "big"

    def test_none_when_nothing_matches(self) -> None:
        assert first_match([(lambda x: False, "never")], 1) is None
