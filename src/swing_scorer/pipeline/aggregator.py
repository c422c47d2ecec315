import logging
import statistics
from collections.abc import Sequence

from swing_scorer.domain.features import SwingFeatures
from swing_scorer.domain.session import Capabilities, SessionMetrics
from swing_scorer.pipeline._numeric import coefficient_of_variation

logger = logging.getLogger(__name__)


def _fraction(flags: Sequence[bool]) -> float | None:
    if not flags:
        return None
    return sum(1 for f in flags if f) / len(flags)


def bat_ke_coverage(features: Sequence[SwingFeatures]) -> float:
    """Fraction of all swings whose energy export carried a usable bat channel."""
    if not features:
        return 0.0
    return sum(1 for f in features if f.energy is not None and f.energy.has_bat_ke) / len(features)


def detect_capabilities(
    features: Sequence[SwingFeatures],
    *,
    min_swings_for_cv: int,
    bat_ke_min_coverage: float,
) -> Capabilities:
    """Which optional data sources carry enough signal to drive scoring."""
    has_kinematics = any(f.kinematics is not None for f in features)
    has_energy = any(f.energy is not None for f in features)
    return Capabilities(
        has_kinematics=has_kinematics,
        has_energy=has_energy,
        has_bat_ke=has_energy and bat_ke_coverage(features) >= bat_ke_min_coverage,
        consistency_ready=len(features) >= min_swings_for_cv,
    )


def aggregate_session(
    features: Sequence[SwingFeatures],
    *,
    min_swings_for_cv: int = 3,
    bat_ke_min_coverage: float = 0.5,
) -> SessionMetrics:
    """Average every feature across swings, with CVs once the sample is large enough.

    A feature's mean only uses swings where that feature exists. Bat
    efficiency CVs only use positive efficiencies.
    """
    capabilities = detect_capabilities(
        features, min_swings_for_cv=min_swings_for_cv, bat_ke_min_coverage=bat_ke_min_coverage
    )

    samples: dict[str, list[float]] = {}
    for f in features:
        for name, value in f.values().items():
            samples.setdefault(name, []).append(value)

    means = {name: statistics.mean(values) for name, values in samples.items()}
    cvs: dict[str, float] = {}
    if capabilities.consistency_ready:
        for name, values in samples.items():
            if name == "bat_efficiency":
                values = [v for v in values if v > 0]
            if len(values) >= 2:
                cvs[name] = coefficient_of_variation(values)

    sequence_flags = [
        f.kinematics.proper_sequence
        for f in features
        if f.kinematics is not None and f.kinematics.proper_sequence is not None
    ]
    legs_offsets = [f.energy.legs_peak_ms for f in features if f.energy and f.energy.legs_peak_ms is not None]
    early_arms = [
        f.energy.arms_peak_ms < f.energy.legs_peak_ms
        for f in features
        if f.energy and f.energy.arms_peak_ms is not None and f.energy.legs_peak_ms is not None
    ]

    # Only pelvis peaks before contact count; with none the lead time is 0.
    pelvis_leads = [v for v in samples.get("pelvis_timing_ms", []) if v > 0]
    ground_timing = None
    if "pelvis_timing_ms" in samples:
        ground_timing = statistics.mean(pelvis_leads) if pelvis_leads else 0.0
    elif legs_offsets:
        ground_timing = -statistics.mean(legs_offsets)

    metrics = SessionMetrics(
        swing_count=len(features),
        capabilities=capabilities,
        means=means,
        cvs=cvs,
        proper_sequence_rate=_fraction(sequence_flags),
        late_legs_fraction=_fraction([offset > 0 for offset in legs_offsets]),
        early_arms_fraction=_fraction(early_arms),
        bat_ke_coverage=bat_ke_coverage(features),
        ground_timing_ms=ground_timing,
    )
    logger.debug(
        "Aggregated %d swings (kinematics=%s, energy=%s, bat_ke=%s, cv=%s)",
        metrics.swing_count,
        capabilities.has_kinematics,
        capabilities.has_energy,
        capabilities.has_bat_ke,
        capabilities.consistency_ready,
    )
    return metrics
