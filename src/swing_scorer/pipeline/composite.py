"""Composite scorer.

Each flow averages the component scores whose metrics the session actually
carries; which components exist is decided by the session's capability
flags rather than by separate code paths per data source.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from swing_scorer.domain.score import (
    CompositeWeights,
    Dimension,
    DimensionGrades,
    FlowComponents,
    ScoreComponent,
)
from swing_scorer.domain.scoring_config import LOWEST_CONSISTENCY_GRADE, LOWEST_GRADE, ScoringConfig
from swing_scorer.domain.session import SessionMetrics
from swing_scorer.pipeline._numeric import round_score
from swing_scorer.pipeline.thresholds import NEUTRAL_SCORE, consistency_grade_for, grade_for, score_component

logger = logging.getLogger(__name__)

PROXY_WARNING = "Bat KE not available - using transfer proxy"


@dataclass(frozen=True)
class CompositeResult:
    brain: int
    body: int
    bat: int
    ball: int
    composite: int
    flows: FlowComponents
    grades: DimensionGrades
    components: dict[str, tuple[ScoreComponent, ...]]
    gated: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    consistency_grades: dict[str, str] = field(default_factory=dict)


def _component(
    config: ScoringConfig,
    band_name: str,
    value: float | None,
    metric: str | None = None,
) -> list[ScoreComponent]:
    if value is None:
        return []
    return [score_component(metric or band_name, value, config.band(band_name))]


def _average(components: Sequence[ScoreComponent]) -> int:
    if not components:
        return NEUTRAL_SCORE
    return round_score(sum(c.score for c in components) / len(components))


# -- Flows -------------------------------------------------------------------


def ground_components(metrics: SessionMetrics, config: ScoringConfig) -> list[ScoreComponent]:
    caps = metrics.capabilities
    out: list[ScoreComponent] = []
    if caps.has_energy:
        out += _component(config, "legs_ke", metrics.mean("legs_ke"))
    if caps.has_kinematics:
        out += _component(config, "pelvis_velocity", metrics.mean("pelvis_velocity"))
    return out


def core_components(metrics: SessionMetrics, config: ScoringConfig) -> list[ScoreComponent]:
    caps = metrics.capabilities
    out: list[ScoreComponent] = []
    if caps.has_energy:
        out += _component(config, "torso_ke", metrics.mean("torso_ke"))
        out += _component(config, "torso_to_arms", metrics.mean("torso_to_arms"))
    if caps.has_kinematics:
        out += _component(config, "torso_velocity", metrics.mean("torso_velocity"))
        out += _component(config, "x_factor_max", metrics.mean("x_factor_max"))
        out += _component(config, "x_factor_stretch_rate", metrics.mean("x_factor_stretch_rate"))
    return out


def transfer_proxy_efficiency(metrics: SessionMetrics, fallback: float) -> float | None:
    """Estimated delivery efficiency when the bat channel is unusable.

    Arm energy scaled by the torso-to-arms transfer, relative to total energy.
    With no total energy the transfer percentage itself is scaled by
    ``fallback``.
    """
    transfer = metrics.mean("torso_to_arms")
    if transfer is None:
        return None
    arms = metrics.mean("arms_ke") or 0.0
    total = metrics.mean("total_ke") or 0.0
    if total > 0:
        return arms * transfer / 100 / total * 100
    return transfer * fallback


def upper_components(metrics: SessionMetrics, config: ScoringConfig) -> tuple[list[ScoreComponent], bool]:
    """Upper-flow components, plus whether the transfer proxy stood in for bat KE."""
    caps = metrics.capabilities
    out: list[ScoreComponent] = []
    used_proxy = False
    if caps.has_bat_ke:
        out += _component(config, "bat_ke", metrics.mean("bat_ke"))
        out += _component(config, "arms_ke", metrics.mean("arms_ke"))
        out += _component(config, "bat_efficiency", metrics.mean("bat_efficiency"))
    elif caps.has_energy:
        out += _component(config, "arms_ke", metrics.mean("arms_ke"))
        proxy = transfer_proxy_efficiency(metrics, config.transfer_proxy_fallback)
        out += _component(config, "delivery_efficiency", proxy, metric="transfer_proxy")
        used_proxy = True
    if caps.has_kinematics:
        out += _component(config, "rear_elbow_ext_rate", metrics.mean("rear_elbow_ext_rate"))
    return out, used_proxy


# -- Consistency -------------------------------------------------------------


def brain_components(metrics: SessionMetrics, config: ScoringConfig) -> list[ScoreComponent]:
    caps = metrics.capabilities
    if not caps.consistency_ready:
        return []
    out: list[ScoreComponent] = []
    if caps.has_energy:
        out += _component(config, "cv_legs_ke", metrics.cv("legs_ke"))
        out += _component(config, "cv_torso_ke", metrics.cv("torso_ke"))
        output = metrics.cv("bat_ke") if caps.has_bat_ke else metrics.cv("arms_ke")
        out += _component(config, "cv_output", output)
    if caps.has_kinematics:
        out += _component(config, "cv_pelvis_velocity", metrics.cv("pelvis_velocity"))
        out += _component(config, "cv_torso_velocity", metrics.cv("torso_velocity"))
        if metrics.proper_sequence_rate is not None:
            out += _component(config, "proper_sequence_pct", metrics.proper_sequence_rate * 100)
    return out


def ball_components(metrics: SessionMetrics, config: ScoringConfig) -> list[ScoreComponent]:
    caps = metrics.capabilities
    if not caps.consistency_ready:
        return []
    out: list[ScoreComponent] = []
    if caps.has_energy:
        out += _component(config, "cv_total_ke", metrics.cv("total_ke"))
        out += _component(config, "cv_bat_efficiency", metrics.cv("bat_efficiency"))
    if caps.has_kinematics:
        out += _component(config, "cv_pelvis_timing_ms", metrics.cv("pelvis_timing_ms"))
    return out


def consistency_grades(metrics: SessionMetrics, config: ScoringConfig) -> dict[str, str]:
    return {
        name: consistency_grade_for(cv, config.consistency_bands, LOWEST_CONSISTENCY_GRADE)
        for name, cv in sorted(metrics.cvs.items())
    }


# -- Composite ---------------------------------------------------------------


def weighted_composite(scores: dict[Dimension, int], weights: CompositeWeights) -> int:
    return round_score(
        scores[Dimension.BODY] * weights.body
        + scores[Dimension.BAT] * weights.bat
        + scores[Dimension.BRAIN] * weights.brain
        + scores[Dimension.BALL] * weights.ball
    )


def score_dimensions(
    metrics: SessionMetrics,
    config: ScoringConfig,
    weights: CompositeWeights | None = None,
) -> CompositeResult:
    """Score the four dimensions and the weighted composite for one session.

    Args:
        metrics: Aggregated session metrics.
        config: Threshold bands, grade bands and default weights.
        weights: Per-player weighting that replaces ``config.weights``.

    Returns:
        A :class:`CompositeResult`. Dimensions with no scorable component
        are held at 50 and listed in ``gated``.
    """
    weights = weights or config.weights

    ground = ground_components(metrics, config)
    core = core_components(metrics, config)
    upper, used_proxy = upper_components(metrics, config)
    brain = brain_components(metrics, config)
    ball = ball_components(metrics, config)

    flows = FlowComponents(
        ground_flow=_average(ground),
        core_flow=_average(core),
        upper_flow=_average(upper),
    )
    scores = {
        Dimension.BODY: round_score((flows.ground_flow + flows.core_flow) / 2),
        Dimension.BAT: flows.upper_flow,
        Dimension.BRAIN: _average(brain),
        Dimension.BALL: _average(ball),
    }
    gated = tuple(
        dim.value
        for dim, parts in (
            (Dimension.BRAIN, brain),
            (Dimension.BODY, ground + core),
            (Dimension.BAT, upper),
            (Dimension.BALL, ball),
        )
        if not parts
    )
    composite = weighted_composite(scores, weights)

    def grade(score: int) -> str:
        return grade_for(score, config.grade_bands, LOWEST_GRADE)

    grades = DimensionGrades(
        brain=grade(scores[Dimension.BRAIN]),
        body=grade(scores[Dimension.BODY]),
        bat=grade(scores[Dimension.BAT]),
        ball=grade(scores[Dimension.BALL]),
        overall=grade(composite),
    )
    logger.debug("Dimension scores %s, composite %d, gated %s", dict(scores), composite, gated)
    return CompositeResult(
        brain=scores[Dimension.BRAIN],
        body=scores[Dimension.BODY],
        bat=scores[Dimension.BAT],
        ball=scores[Dimension.BALL],
        composite=composite,
        flows=flows,
        grades=grades,
        components={
            "ground_flow": tuple(ground),
            "core_flow": tuple(core),
            "upper_flow": tuple(upper),
            "brain": tuple(brain),
            "ball": tuple(ball),
        },
        gated=gated,
        warnings=(PROXY_WARNING,) if used_proxy else (),
        consistency_grades=consistency_grades(metrics, config),
    )
