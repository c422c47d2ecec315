"""Session scoring engine.

Wires the pipeline stages together: normalize, segment, extract, aggregate,
score, classify, project. The engine never raises on bad data; a session
with nothing usable yields the neutral score with a warning attached.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias

import pandas as pd

from swing_scorer.domain.features import SwingFeatures
from swing_scorer.domain.frames import FrameTable, Handedness, ParsePolicy, TableKind
from swing_scorer.domain.score import DimensionGrades, FlowComponents, FourBScore, PlayerLevel
from swing_scorer.domain.scoring_config import LOWEST_GRADE, PlayerCalibration, ScoringConfig
from swing_scorer.domain.session import DataQualityReport, SessionMetrics, SessionQuality
from swing_scorer.domain.swing import ContactMethod, Segmentation
from swing_scorer.pipeline._numeric import round_half_up
from swing_scorer.pipeline.aggregator import aggregate_session
from swing_scorer.pipeline.composite import CompositeResult, score_dimensions
from swing_scorer.pipeline.extractor import extract_features
from swing_scorer.pipeline.leaks import classify_leak, unknown_leak
from swing_scorer.pipeline.normalizer import normalize_frames
from swing_scorer.pipeline.projection import compute_projection
from swing_scorer.pipeline.readiness import assess_readiness
from swing_scorer.pipeline.segmenter import segment_session
from swing_scorer.pipeline.thresholds import NEUTRAL_SCORE, grade_for
from swing_scorer.pipeline.units import converter_for

logger = logging.getLogger(__name__)

NO_SWINGS_WARNING = "No valid swings found"
NO_KINEMATICS_WARNING = "IK data not available - using ME-only scoring"
NO_ENERGY_WARNING = "ME data not available - using IK-only scoring"

RawRows: TypeAlias = pd.DataFrame | Iterable[Mapping[str, object]]


def session_quality(swing_count: int) -> SessionQuality:
    if swing_count >= 5:
        return SessionQuality.GOOD
    if swing_count >= 3:
        return SessionQuality.FAIR
    return SessionQuality.LIMITED


def _usable(table: FrameTable | None) -> FrameTable | None:
    if table is None or table.is_empty:
        return None
    return table


def _parse_warnings(tables: Sequence[FrameTable]) -> list[str]:
    warnings: list[str] = []
    coerced = sum(t.coerced_cells for t in tables)
    dropped = sum(t.dropped_rows for t in tables)
    if coerced:
        warnings.append(f"{coerced} unparsable cells coerced to 0")
    if dropped:
        warnings.append(f"{dropped} rows dropped with unparsable values")
    return warnings


@dataclass(frozen=True)
class ScoringEngine:
    config: ScoringConfig = field(default_factory=ScoringConfig)

    def score_rows(
        self,
        kinematics: RawRows | None,
        energy: RawRows | None,
        *,
        policy: ParsePolicy = ParsePolicy.COERCE,
        handedness: Handedness = Handedness.RIGHT,
        level: PlayerLevel = PlayerLevel.HIGH_SCHOOL,
        calibration: PlayerCalibration | None = None,
    ) -> FourBScore:
        """Normalize raw export rows, then score them."""
        rate = self.config.segmentation.default_frame_rate_hz
        kin_table = (
            normalize_frames(kinematics, TableKind.KINEMATICS, policy=policy, frame_rate_hz=rate)
            if kinematics is not None
            else None
        )
        energy_table = (
            normalize_frames(energy, TableKind.ENERGY, policy=policy, frame_rate_hz=rate)
            if energy is not None
            else None
        )
        return self.score(
            kin_table,
            energy_table,
            handedness=handedness,
            level=level,
            calibration=calibration,
        )

    def score(
        self,
        kinematics: FrameTable | None,
        energy: FrameTable | None,
        *,
        handedness: Handedness = Handedness.RIGHT,
        level: PlayerLevel = PlayerLevel.HIGH_SCHOOL,
        calibration: PlayerCalibration | None = None,
    ) -> FourBScore:
        """Score one session from its normalized exports.

        Args:
            kinematics: Joint-angle frames, or ``None`` when not exported.
            energy: Segment energy and momentum frames, or ``None``.
            handedness: Batting side; picks lead and rear joints.
            level: Playing level whose bat-speed bounds clamp projections.
            calibration: Per-player overrides for weights, the projection
                speed constant and the readiness athlete model.

        Returns:
            The full :class:`FourBScore`. Same inputs always produce the
            same object.
        """
        config = self.config
        calibration = calibration or PlayerCalibration()
        tables = [t for t in (kinematics, energy) if t is not None]
        kinematics, energy = _usable(kinematics), _usable(energy)

        segmentation = segment_session(kinematics, energy, config.segmentation)
        features: list[SwingFeatures] = []
        for swing in segmentation.swings:
            extracted = extract_features(swing, config.extraction, handedness)
            if extracted is not None:
                features.append(extracted)

        if not features:
            logger.info("No valid swings found; returning neutral score")
            return self._neutral(segmentation, tables)

        metrics = aggregate_session(
            features,
            min_swings_for_cv=config.min_swings_for_cv,
            bat_ke_min_coverage=config.bat_ke_min_coverage,
        )
        result = score_dimensions(metrics, config, calibration.weights)
        leak = classify_leak(metrics, config.leak, min_bat_coverage=config.bat_ke_min_coverage)
        projections = compute_projection(
            metrics,
            leak,
            level,
            config.projection,
            speed_constant=calibration.speed_constant,
        )
        readiness = assess_readiness(
            segmentation.swings,
            handedness,
            converter_for(config.extraction.angle_units, config.extraction.radians_threshold),
            config.readiness,
            athlete_model=calibration.athlete_model,
        )
        quality = self._quality_report(segmentation, features, metrics, result, tables)

        logger.info(
            "Scored %d swings: composite %d (%s), leak %s",
            metrics.swing_count,
            result.composite,
            result.grades.overall,
            leak.leak_type,
        )
        return FourBScore(
            brain=result.brain,
            body=result.body,
            bat=result.bat,
            ball=result.ball,
            composite=result.composite,
            grades=result.grades,
            flows=result.flows,
            leak=leak,
            data_quality=quality,
            weights=calibration.weights or config.weights,
            config_version=config.version,
            components=result.components,
            raw_metrics=raw_metrics(metrics),
            consistency_grades=result.consistency_grades,
            projections=projections,
            readiness=readiness,
        )

    def _quality_report(
        self,
        segmentation: Segmentation,
        features: Sequence[SwingFeatures],
        metrics: SessionMetrics,
        result: CompositeResult,
        tables: Sequence[FrameTable],
    ) -> DataQualityReport:
        caps = metrics.capabilities
        warnings: list[str] = []
        if not caps.consistency_ready:
            warnings.append(f"Need {self.config.min_swings_for_cv}+ swings for consistency scores")
        warnings.extend(result.warnings)
        if not caps.has_kinematics:
            warnings.append(NO_KINEMATICS_WARNING)
        if not caps.has_energy:
            warnings.append(NO_ENERGY_WARNING)
        if segmentation.discarded:
            warnings.append(f"{len(segmentation.discarded)} swing exports discarded with too few frames")
        warnings.extend(_parse_warnings(tables))

        methods = _contact_methods(segmentation)
        converted = sum(1 for f in features if f.kinematics is not None and f.kinematics.angles_converted)
        return DataQualityReport(
            swing_count=metrics.swing_count,
            quality=session_quality(metrics.swing_count),
            has_kinematics=caps.has_kinematics,
            has_energy=caps.has_energy,
            has_bat_ke=caps.has_bat_ke,
            bat_ke_coverage=round_half_up(metrics.bat_ke_coverage, 2),
            contact_detected=any(method != ContactMethod.FRAME_RATIO for method in methods),
            contact_confidence=min(f.contact_confidence for f in features).label,
            contact_methods=methods,
            consistency_scores_valid=caps.consistency_ready,
            gated_scores=result.gated,
            discarded_swings=len(segmentation.discarded),
            converted_angle_swings=converted,
            coerced_cells=sum(t.coerced_cells for t in tables),
            dropped_rows=sum(t.dropped_rows for t in tables),
            warnings=tuple(warnings),
        )

    def _neutral(self, segmentation: Segmentation, tables: Sequence[FrameTable]) -> FourBScore:
        config = self.config
        average = grade_for(NEUTRAL_SCORE, config.grade_bands, LOWEST_GRADE)
        quality = DataQualityReport(
            swing_count=0,
            quality=SessionQuality.LIMITED,
            has_kinematics=False,
            has_energy=False,
            has_bat_ke=False,
            bat_ke_coverage=0.0,
            contact_detected=False,
            contact_confidence="none",
            gated_scores=("brain", "body", "bat", "ball"),
            discarded_swings=len(segmentation.discarded),
            coerced_cells=sum(t.coerced_cells for t in tables),
            dropped_rows=sum(t.dropped_rows for t in tables),
            warnings=(NO_SWINGS_WARNING, *_parse_warnings(tables)),
        )
        return FourBScore(
            brain=NEUTRAL_SCORE,
            body=NEUTRAL_SCORE,
            bat=NEUTRAL_SCORE,
            ball=NEUTRAL_SCORE,
            composite=NEUTRAL_SCORE,
            grades=DimensionGrades(brain=average, body=average, bat=average, ball=average, overall=average),
            flows=FlowComponents(),
            leak=unknown_leak(config.leak, NO_SWINGS_WARNING),
            data_quality=quality,
            weights=config.weights,
            config_version=config.version,
        )


def _contact_methods(segmentation: Segmentation) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for swing in segmentation.swings:
        trace = swing.energy or swing.kinematics
        if trace is not None:
            counts[trace.contact.method.value] += 1
    return dict(sorted(counts.items()))


def raw_metrics(metrics: SessionMetrics) -> dict[str, float]:
    """Session means and CVs rounded to one decimal for display."""
    out: dict[str, float] = {f"avg_{name}": round_half_up(v, 1) for name, v in metrics.means.items()}
    out |= {f"cv_{name}": round_half_up(v, 1) for name, v in metrics.cvs.items()}
    if metrics.proper_sequence_rate is not None:
        out["proper_sequence_pct"] = round_half_up(metrics.proper_sequence_rate * 100, 1)
    return dict(sorted(out.items()))
