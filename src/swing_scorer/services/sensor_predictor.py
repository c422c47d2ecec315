"""Confidence-tiered predictions from bat-sensor swings.

Measured facts come straight from the sensor. Everything downstream is an
inference whose confidence drops the further it reaches from the bat:
release (HIGH) is computed from measured speeds, timing (MEDIUM) from the
variance of those measurements, and upstream body mechanics (LOW) are a
guess that always lists the footage needed to confirm it.
"""

import logging
import statistics
from collections.abc import Sequence

from swing_scorer.domain.score import PlayerLevel
from swing_scorer.domain.scoring_config import SensorConfig
from swing_scorer.domain.sensor import (
    Adjustability,
    ConfidenceLevel,
    KineticPotential,
    PercentileBand,
    PopulationBaseline,
    ReleasePrediction,
    ReleaseQuality,
    SensorFacts,
    SensorPrediction,
    SensorSwing,
    SwingValidation,
    Tempo,
    TimingPrediction,
    UnlockShare,
    UpstreamPrediction,
)
from swing_scorer.pipeline._numeric import clamp, round_half_up, round_score

logger = logging.getLogger(__name__)

HAND_SPEED_LOW = "hand_speed_low"


# -- Validation ---------------------------------------------------------------


def validate_swing(swing: SensorSwing, config: SensorConfig) -> SwingValidation:
    limits = config.validation
    bat = swing.bat_speed_mph
    if bat is None:
        return SwingValidation(is_valid=False, reason="missing bat speed")
    if bat < limits.min_bat_speed_mph:
        return SwingValidation(is_valid=False, reason=f"bat speed {bat:.1f} mph looks like a waggle")
    if bat > limits.max_bat_speed_mph:
        return SwingValidation(is_valid=False, reason=f"bat speed {bat:.1f} mph is implausible")

    timing = swing.trigger_to_impact_ms
    if timing is not None and not (limits.min_time_to_contact_ms <= timing <= limits.max_time_to_contact_ms):
        return SwingValidation(is_valid=False, reason=f"trigger to impact {timing:.0f} ms out of range")

    warnings: list[str] = []
    hand = swing.hand_speed_mph
    if hand is not None and hand / bat < limits.low_hand_speed_ratio:
        warnings.append(HAND_SPEED_LOW)
    return SwingValidation(is_valid=True, warnings=tuple(warnings))


# -- Facts --------------------------------------------------------------------


def _present(values: Sequence[float | None]) -> list[float]:
    return [v for v in values if v is not None]


def _mean(values: Sequence[float]) -> float:
    return statistics.mean(values) if values else 0.0


def _std(values: Sequence[float]) -> float:
    return statistics.pstdev(values) if len(values) >= 2 else 0.0


def extract_sensor_facts(swings: Sequence[SensorSwing]) -> SensorFacts:
    """Aggregate measured values across already-validated swings."""
    if not swings:
        return SensorFacts()

    bat = _present([s.bat_speed_mph for s in swings])
    hand = _present([s.hand_speed_mph for s in swings])
    timing = _present([s.trigger_to_impact_ms for s in swings])
    angle = _present([s.attack_angle_deg for s in swings])
    direction = _present([s.attack_direction_deg for s in swings])
    ratios = _present([s.hand_to_bat_ratio for s in swings])
    accel = _present([s.max_acceleration for s in swings])

    bat_mean, hand_mean = _mean(bat), _mean(hand)
    timing_mean, timing_std = _mean(timing), _std(timing)
    if ratios:
        ratio = _mean(ratios)
    else:
        ratio = bat_mean / hand_mean if hand_mean > 0 else 0.0

    return SensorFacts(
        swing_count=len(swings),
        bat_speed_max=round_half_up(max(bat, default=0.0), 1),
        bat_speed_mean=round_half_up(bat_mean, 1),
        bat_speed_std=round_half_up(_std(bat), 2),
        hand_speed_max=round_half_up(max(hand, default=0.0), 1),
        hand_speed_mean=round_half_up(hand_mean, 1),
        hand_speed_std=round_half_up(_std(hand), 2),
        time_to_contact_mean=round_half_up(timing_mean, 0),
        time_to_contact_std=round_half_up(timing_std, 1),
        timing_cv=round_half_up(timing_std / timing_mean, 3) if timing_mean > 0 else 0.0,
        attack_angle_mean=round_half_up(_mean(angle), 1),
        attack_angle_std=round_half_up(_std(angle), 2),
        attack_direction_mean=round_half_up(_mean(direction), 1),
        attack_direction_std=round_half_up(_std(direction), 2),
        hand_to_bat_ratio=round_half_up(ratio, 3),
        rotational_acceleration_mean=round_half_up(_mean(accel), 0) if accel else None,
    )


def calculate_percentile(value: float, band: PercentileBand) -> float:
    """Piecewise-linear percentile through p10/p50/p90, capped at 99."""
    if value <= band.p10:
        return max(0.0, value / band.p10 * 10) if band.p10 else 0.0
    if value <= band.p50:
        return 10 + (value - band.p10) / (band.p50 - band.p10) * 40
    if value <= band.p90:
        return 50 + (value - band.p50) / (band.p90 - band.p50) * 40
    return min(99.0, 90 + (value - band.p90) / (band.p90 - band.p50) * 9)


def data_quality_label(swing_count: int) -> str:
    if swing_count >= 30:
        return "excellent"
    if swing_count >= 15:
        return "good"
    return "limited"


# -- Predictions --------------------------------------------------------------


def predict_release(facts: SensorFacts, baseline: PopulationBaseline, config: SensorConfig) -> ReleasePrediction:
    ratio = facts.hand_to_bat_ratio
    if ratio >= config.excellent_ratio:
        quality = ReleaseQuality.EXCELLENT
    elif ratio >= config.good_ratio:
        quality = ReleaseQuality.GOOD
    elif ratio >= config.average_ratio:
        quality = ReleaseQuality.AVERAGE
    else:
        quality = ReleaseQuality.NEEDS_WORK

    percentile = calculate_percentile(ratio, baseline.hand_to_bat_ratio)
    unlock = 0.0
    if ratio < config.target_ratio:
        unlock = max(0.0, facts.hand_speed_mean * config.target_ratio - facts.bat_speed_mean)
    unlock = round_half_up(unlock, 1)

    outlook = (
        f"Could unlock +{unlock:.1f} mph with improved release."
        if unlock > 0
        else "Release is already optimized."
    )
    return ReleasePrediction(
        hand_to_bat_ratio=ratio,
        quality=quality,
        percentile=round_score(percentile),
        potential_unlock=unlock,
        reasoning=(
            f"Hand-to-bat ratio of {ratio:.2f} measured directly by the sensor. "
            f"{percentile:.0f}th percentile for {baseline.age_group}. {outlook}"
        ),
    )


def predict_timing(facts: SensorFacts, config: SensorConfig) -> TimingPrediction:
    cv = facts.timing_cv
    mean_ms = facts.time_to_contact_mean
    consistency = clamp(100 - (cv - config.timing_cv_floor) * config.timing_cv_slope, 0.0, 100.0)

    if mean_ms < config.quick_tempo_ms:
        tempo = Tempo.QUICK
    elif mean_ms < config.moderate_tempo_ms:
        tempo = Tempo.MODERATE
    else:
        tempo = Tempo.DELIBERATE

    spread = facts.attack_direction_std
    if spread < config.rigid_direction_std:
        adjustability = Adjustability.RIGID
    elif spread < config.adaptable_direction_std:
        adjustability = Adjustability.ADAPTABLE
    else:
        adjustability = Adjustability.FLUID

    unlock = 0.0
    if cv > config.timing_unlock_cv:
        unlock = min(config.timing_unlock_cap, (cv - config.timing_unlock_offset) * config.timing_unlock_slope)
    unlock = round_half_up(unlock, 1)

    steadiness = "consistent" if cv < 0.06 else "variable"
    outlook = f"Tighter timing could unlock +{unlock:.1f} mph." if unlock > 0 else "Timing is already consistent."
    return TimingPrediction(
        consistency_score=round_score(consistency),
        tempo=tempo,
        adjustability=adjustability,
        timing_window_ms=round_score(facts.time_to_contact_std * 2),
        potential_unlock=unlock,
        reasoning=(
            f"Timing CV of {cv * 100:.1f}% indicates {steadiness} timing. "
            f"{tempo.value.capitalize()} tempo at {mean_ms:.0f}ms average. {outlook}"
        ),
    )


def predict_upstream(facts: SensorFacts, baseline: PopulationBaseline, config: SensorConfig) -> UpstreamPrediction:
    breaks: list[str] = []
    needs_video: list[str] = []

    hip = clamp(calculate_percentile(facts.hand_to_bat_ratio, baseline.hand_to_bat_ratio), 20.0, 100.0)
    if facts.rotational_acceleration_mean is not None:
        torso = min(100.0, facts.rotational_acceleration_mean / config.torso_acceleration_divisor)
    else:
        torso = 50.0
        needs_video.append("Torso rotation speed and timing")

    if facts.hand_to_bat_ratio < config.average_ratio:
        breaks.append("Early wrist release")
        needs_video.append("Wrist/bat connection through zone")
    if facts.timing_cv > config.break_timing_cv:
        breaks.append("Inconsistent load timing")
        needs_video.append("Load-to-launch sequence")
    if facts.attack_angle_std > config.break_attack_angle_std:
        breaks.append("Variable bat path")
        needs_video.append("Hip-shoulder separation at toe touch")
    needs_video.extend(["Ground force utilization", "Full kinetic chain sequencing"])

    unlock = round_half_up(len(breaks) * config.unlock_per_break, 1)
    contribution = "good" if hip > 60 else "moderate"
    findings = f"Possible breaks: {', '.join(breaks)}." if breaks else "No clear leak indicators from sensor data alone."
    return UpstreamPrediction(
        estimated_hip_contribution=round_score(hip),
        estimated_torso_contribution=round_score(torso),
        likely_breaks=tuple(breaks),
        potential_unlock=unlock,
        reasoning=(
            "Without video, upstream energy assessment is speculative. "
            f"Hand-to-bat ratio suggests {contribution} lower-body contribution. {findings}"
        ),
        needs_video_for=tuple(needs_video),
    )


def overall_confidence(release: float, timing: float, upstream: float) -> ConfidenceLevel:
    """Tier contributing the largest unlock; ties resolve to the lower tier."""
    if release + timing + upstream <= 0:
        return ConfidenceLevel.MEDIUM
    best, best_value = ConfidenceLevel.LOW, upstream
    for level, value in ((ConfidenceLevel.MEDIUM, timing), (ConfidenceLevel.HIGH, release)):
        if value > best_value:
            best, best_value = level, value
    return best


def kinetic_potential(
    facts: SensorFacts,
    release: ReleasePrediction,
    timing: TimingPrediction,
    upstream: UpstreamPrediction,
) -> KineticPotential:
    total = release.potential_unlock + timing.potential_unlock + upstream.potential_unlock
    needs: list[str] = []
    if upstream.potential_unlock > 0:
        needs.extend(upstream.needs_video_for)
    if timing.potential_unlock > 1:
        needs.append("Pitch-type timing breakdown")
    return KineticPotential(
        current_bat_speed=round_half_up(facts.bat_speed_max, 1),
        projected_potential=round_half_up(facts.bat_speed_max + total, 1),
        total_unlock=round_half_up(total, 1),
        release=UnlockShare(release.potential_unlock, release.confidence, release.reasoning),
        timing=UnlockShare(timing.potential_unlock, timing.confidence, timing.reasoning),
        upstream=UnlockShare(upstream.potential_unlock, upstream.confidence, upstream.reasoning),
        overall_confidence=overall_confidence(
            release.potential_unlock, timing.potential_unlock, upstream.potential_unlock
        ),
        validation_needs=tuple(needs),
    )


def resolve_age_group(config: SensorConfig, age_group: str | None, level: PlayerLevel | None) -> str:
    if age_group:
        key = age_group.strip().lower()
        if key not in config.baselines:
            raise ValueError(f"Unknown age group '{age_group}'")
        return key
    return config.level_age_groups[level or PlayerLevel.HIGH_SCHOOL]


def predict_from_sensor(
    swings: Sequence[SensorSwing],
    config: SensorConfig,
    *,
    age_group: str | None = None,
    level: PlayerLevel | None = None,
) -> SensorPrediction:
    """Run the full tiered prediction for one sensor session.

    Args:
        swings: Raw sensor swings; invalid ones are counted and skipped.
        config: Ratio tiers, validation limits and population baselines.
        age_group: Baseline to compare against (``"10u"`` .. ``"pro"``).
        level: Used to pick the baseline when ``age_group`` is not given.

    Returns:
        A :class:`SensorPrediction`. A session with no valid swings still
        returns predictions built from empty facts, with a warning.

    Raises:
        ValueError: If ``age_group`` names no known baseline.
    """
    group = resolve_age_group(config, age_group, level)
    baseline = config.baselines[group]

    valid: list[SensorSwing] = []
    warnings: list[str] = []
    for swing in swings:
        check = validate_swing(swing, config)
        if check.is_valid:
            valid.append(swing)
            warnings.extend(f"{swing.swing_id or 'swing'}: {w}" for w in check.warnings)
        else:
            logger.debug("Skipping sensor swing %s: %s", swing.swing_id or "?", check.reason)
    invalid = len(swings) - len(valid)
    if not valid:
        warnings.insert(0, "No valid sensor swings found")

    facts = extract_sensor_facts(valid)
    release = predict_release(facts, baseline, config)
    timing = predict_timing(facts, config)
    upstream = predict_upstream(facts, baseline, config)
    potential = kinetic_potential(facts, release, timing, upstream)

    logger.info(
        "Sensor session: %d valid swings (%d invalid), +%.1f mph potential (%s)",
        len(valid),
        invalid,
        potential.total_unlock,
        potential.overall_confidence,
    )
    return SensorPrediction(
        age_group=group,
        facts=facts,
        release=release,
        timing=timing,
        upstream=upstream,
        kinetic_potential=potential,
        data_quality=data_quality_label(len(valid)),
        invalid_swings=invalid,
        warnings=tuple(warnings),
    )
