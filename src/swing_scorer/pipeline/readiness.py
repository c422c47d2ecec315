"""Kinetic readiness buckets and the expected-versus-measured bat speed gap.

Four buckets on 0-100 describe how ready the body is to produce speed:

* B1 rotational foundation (pelvis, torso, pelvis side bend)
* B2 ball-side hip load (hip flexion, adduction, rotation)
* B3 ground connection (ball-side knee and ankle)
* B4 temporal sync (spread of segment angular-momentum peaks)

Expected bat speed is a linear athlete model over the buckets. Whatever the
measured speed falls short of that expectation is mechanical loss,
attributed to the bucket with the largest shortfall against ideal.
"""

import logging
import math
import statistics
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from swing_scorer.domain.frames import Handedness
from swing_scorer.domain.readiness import (
    AthleteModel,
    Bucket,
    BucketScores,
    MeasuredBatSpeed,
    ReadinessReport,
    SpeedSource,
)
from swing_scorer.domain.scoring_config import ReadinessConfig
from swing_scorer.domain.swing import Swing, SwingTrace
from swing_scorer.pipeline._numeric import clamp, round_half_up
from swing_scorer.pipeline.extractor import rear_side
from swing_scorer.pipeline.protocols import UnitConverter

logger = logging.getLogger(__name__)

MPS_TO_MPH = 2.236936
_NEUTRAL = 50.0

_SOURCE_RANK = {
    SpeedSource.BAT_KE: 3,
    SpeedSource.MOMENTUM_OVER_MASS: 2,
    SpeedSource.VELOCITY_GUESS: 1,
    SpeedSource.MISSING: 0,
}
_SOURCE_CONFIDENCE = {
    SpeedSource.BAT_KE: "high",
    SpeedSource.MOMENTUM_OVER_MASS: "medium",
    SpeedSource.VELOCITY_GUESS: "low",
    SpeedSource.MISSING: "low",
}

BUCKET_DETAILS: dict[Bucket, tuple[str, str]] = {
    Bucket.B1: (
        "Rotational Foundation",
        "Pelvis and torso timing aren't lining up. Start the turn earlier and cleaner.",
    ),
    Bucket.B2: (
        "Hip Load Transfer",
        "The back hip isn't delivering on time, so energy leaks before launch. Drive it sooner.",
    ),
    Bucket.B3: (
        "Ground Connection",
        "Knee and ankle aren't supporting the move. Post up through contact with more stability.",
    ),
    Bucket.B4: (
        "Temporal Synchronization",
        "Segments are firing out of order. Slow it down and sync the chain from the ground up to the barrel.",
    ),
}


def _clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


@dataclass(frozen=True)
class _Phase:
    start: int
    end: int
    stride: int
    contact: int

    @property
    def span(self) -> int:
        return max(1, self.contact - self.stride)

    def target(self, offset: float) -> int:
        return max(0, int(round_half_up(self.contact + offset * self.span)))

    def timing_error(self, peak: int, offset: float) -> float:
        return abs(peak - self.target(offset)) / self.span


def _phase(trace: SwingTrace) -> _Phase:
    n = trace.frame_count
    start = int(clamp(trace.stride_frame, 0, n - 1))
    end = int(min(max(start + 1, min(n - 1, trace.contact_frame)), n - 1))
    return _Phase(start=start, end=end, stride=trace.stride_frame, contact=trace.contact_frame)


def _peak(values: np.ndarray, phase: _Phase) -> tuple[float, int]:
    span = np.abs(values[phase.start : phase.end + 1])
    idx = int(np.argmax(span))
    return float(span[idx]), phase.start + idx


def _channel(trace: SwingTrace, name: str, converter: UnitConverter) -> np.ndarray | None:
    values = trace.channel(name)
    if values is None:
        return None
    converted, _ = converter.convert(values)
    return converted


# -- Buckets -------------------------------------------------------------------


def rotational_foundation(trace: SwingTrace, converter: UnitConverter, config: ReadinessConfig) -> float:
    pelvis = _channel(trace, "pelvis_rot", converter)
    torso = _channel(trace, "torso_rot", converter)
    if pelvis is None or torso is None:
        return _NEUTRAL
    side = _channel(trace, "pelvis_side", converter)
    caps, offsets = config.magnitude_caps, config.phase_offsets
    phase = _phase(trace)

    pelvis_peak, pelvis_frame = _peak(pelvis, phase)
    torso_peak, torso_frame = _peak(torso, phase)
    side_peak = _peak(side, phase)[0] if side is not None else 0.0

    raw = (
        0.5 * _clamp01(pelvis_peak / caps["pelvis"])
        + 0.3 * _clamp01(torso_peak / caps["torso"])
        + 0.2 * _clamp01(side_peak / caps["side"])
    ) - 0.3 * (
        phase.timing_error(pelvis_frame, offsets["pelvis"]) + phase.timing_error(torso_frame, offsets["torso"])
    )
    return _clamp01(raw) * 100


def hip_load(
    trace: SwingTrace,
    handedness: Handedness,
    converter: UnitConverter,
    config: ReadinessConfig,
) -> float:
    side = rear_side(handedness)
    flex = _channel(trace, f"{side}_hip_flex", converter)
    add = _channel(trace, f"{side}_hip_add", converter)
    rot = _channel(trace, f"{side}_hip_rot", converter)
    if flex is None or add is None or rot is None:
        return _NEUTRAL
    caps = config.magnitude_caps
    phase = _phase(trace)

    flex_peak, flex_frame = _peak(flex, phase)
    raw = (
        0.4 * _clamp01(flex_peak / caps["hip_flex"])
        + 0.35 * _clamp01(_peak(add, phase)[0] / caps["hip_add"])
        + 0.25 * _clamp01(_peak(rot, phase)[0] / caps["hip_rot"])
    ) - 0.25 * phase.timing_error(flex_frame, config.phase_offsets["hip"])
    return _clamp01(raw) * 100


def ground_connection(
    trace: SwingTrace,
    handedness: Handedness,
    converter: UnitConverter,
    config: ReadinessConfig,
) -> float:
    side = rear_side(handedness)
    knee = _channel(trace, f"{side}_knee", converter)
    ankle_inv = _channel(trace, f"{side}_ankle_inv", converter)
    ankle_flex = _channel(trace, f"{side}_ankle_flex", converter)
    if knee is None or ankle_inv is None or ankle_flex is None:
        return _NEUTRAL
    caps, offsets = config.magnitude_caps, config.phase_offsets
    phase = _phase(trace)

    knee_peak, knee_frame = _peak(knee, phase)
    flex_peak, flex_frame = _peak(ankle_flex, phase)
    raw = (
        0.4 * _clamp01(knee_peak / caps["knee"])
        + 0.35 * _clamp01(_peak(ankle_inv, phase)[0] / caps["ankle_inv"])
        + 0.25 * _clamp01(flex_peak / caps["ankle_flex"])
    ) - 0.2 * (phase.timing_error(knee_frame, offsets["knee"]) + phase.timing_error(flex_frame, offsets["ankle"]))
    return _clamp01(raw) * 100


def temporal_sync(trace: SwingTrace | None, config: ReadinessConfig) -> float:
    if trace is None:
        return _NEUTRAL
    n = max(1, trace.frame_count)
    peaks = [
        int(np.argmax(np.abs(values))) / n
        for name in ("pelvis_ang_mom", "torso_ang_mom", "arms_ang_mom", "bat_ang_mom")
        if (values := trace.channel(name)) is not None and values.size
    ]
    if len(peaks) < 2:
        return _NEUTRAL
    return _clamp01(1 - statistics.pstdev(peaks) / config.max_expected_scatter) * 100


def swing_buckets(
    swing: Swing,
    handedness: Handedness,
    converter: UnitConverter,
    config: ReadinessConfig,
) -> BucketScores | None:
    trace = swing.kinematics
    if trace is None:
        return None
    return BucketScores(
        b1=rotational_foundation(trace, converter, config),
        b2=hip_load(trace, handedness, converter, config),
        b3=ground_connection(trace, handedness, converter, config),
        b4=temporal_sync(swing.energy, config),
    )


# -- Bat speed -----------------------------------------------------------------


def measured_bat_speed(trace: SwingTrace | None, config: ReadinessConfig) -> tuple[float, SpeedSource]:
    """Bat speed at contact from the energy export, best available source first."""
    if trace is None:
        return 0.0, SpeedSource.MISSING
    frame = trace.contact_frame

    bat_ke = trace.channel("bat_ke")
    if bat_ke is not None:
        ke = float(bat_ke[frame])
        if math.isfinite(ke) and ke > 0.01:
            mps = math.sqrt(2 * ke / max(1e-6, config.bat_mass_kg))
            return clamp(mps * MPS_TO_MPH, 0.0, config.max_measured_mph), SpeedSource.BAT_KE

    axes = [trace.channel(f"bat_mom_{axis}") for axis in ("x", "y", "z")]
    if all(a is not None for a in axes):
        p = math.sqrt(sum(float(a[frame]) ** 2 for a in axes))  # type: ignore[index]
        if math.isfinite(p) and p > 0:
            if p < config.velocity_guess_ceiling:
                return clamp(p * MPS_TO_MPH, 0.0, config.max_measured_mph), SpeedSource.VELOCITY_GUESS
            mps = p / max(1e-6, config.bat_mass_kg)
            return clamp(mps * MPS_TO_MPH, 0.0, config.max_measured_mph), SpeedSource.MOMENTUM_OVER_MASS

    return 0.0, SpeedSource.MISSING


def session_bat_speed(swings: Sequence[Swing], config: ReadinessConfig) -> MeasuredBatSpeed:
    """Mean over swings that produced a reading, labelled with the weakest source used."""
    readings = [measured_bat_speed(s.energy, config) for s in swings]
    usable = [(mph, source) for mph, source in readings if source is not SpeedSource.MISSING]
    if not usable:
        return MeasuredBatSpeed(mph=0.0, source=SpeedSource.MISSING, confidence="low")
    source = min((source for _, source in usable), key=_SOURCE_RANK.__getitem__)
    return MeasuredBatSpeed(
        mph=round_half_up(statistics.mean(mph for mph, _ in usable), 1),
        source=source,
        confidence=_SOURCE_CONFIDENCE[source],
    )


def expected_bat_speed(buckets: BucketScores, model: AthleteModel) -> float:
    return model.beta_0 + sum(model.coefficient(b) * buckets.get(b) for b in Bucket)


def attribute_loss(buckets: BucketScores, model: AthleteModel) -> tuple[dict[str, float], Bucket]:
    """Per-bucket shortfall against an ideal bucket of 100, and the largest one."""
    breakdown = {b: max(0.0, model.coefficient(b) * (100 - buckets.get(b))) for b in Bucket}
    primary = max(Bucket, key=lambda b: breakdown[b])
    return {b.value: round_half_up(v, 1) for b, v in breakdown.items()}, primary


def _average_buckets(scores: Sequence[BucketScores]) -> BucketScores:
    return BucketScores(
        b1=round_half_up(statistics.mean(s.b1 for s in scores), 1),
        b2=round_half_up(statistics.mean(s.b2 for s in scores), 1),
        b3=round_half_up(statistics.mean(s.b3 for s in scores), 1),
        b4=round_half_up(statistics.mean(s.b4 for s in scores), 1),
    )


def assess_readiness(
    swings: Sequence[Swing],
    handedness: Handedness,
    converter: UnitConverter,
    config: ReadinessConfig,
    *,
    athlete_model: AthleteModel | None = None,
) -> ReadinessReport | None:
    """Kinetic readiness for a session, or ``None`` when no swing has kinematics."""
    per_swing = [
        scores
        for swing in swings
        if (scores := swing_buckets(swing, handedness, converter, config)) is not None
    ]
    if not per_swing:
        return None

    model = athlete_model or config.athlete_model
    buckets = _average_buckets(per_swing)
    expected = round_half_up(expected_bat_speed(buckets, model), 1)
    measured = session_bat_speed(swings, config)
    loss = None
    if measured.source is not SpeedSource.MISSING:
        loss = round_half_up(max(0.0, expected - measured.mph), 1)

    breakdown, primary = attribute_loss(buckets, model)
    title, description = BUCKET_DETAILS[primary]
    logger.debug(
        "Readiness B1=%.1f B2=%.1f B3=%.1f B4=%.1f expected %.1f measured %.1f (%s)",
        buckets.b1,
        buckets.b2,
        buckets.b3,
        buckets.b4,
        expected,
        measured.mph,
        measured.source,
    )
    return ReadinessReport(
        buckets=buckets,
        expected_bat_speed=expected,
        measured=measured,
        mechanical_loss=loss,
        loss_breakdown=breakdown,
        primary_bucket=primary,
        primary_title=title,
        primary_description=description,
        calibrated=athlete_model is not None,
    )
