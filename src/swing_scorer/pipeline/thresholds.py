from collections.abc import Sequence

from swing_scorer.domain.score import ScoreComponent, ThresholdBand
from swing_scorer.pipeline._numeric import clamp, round_score

NEUTRAL_SCORE = 50


def normalize(value: float, band: ThresholdBand) -> float:
    """Position of ``value`` inside ``band`` on [0, 1], inverted if the band says so."""
    if band.max == band.min:
        return 0.5
    position = clamp((value - band.min) / (band.max - band.min), 0.0, 1.0)
    return 1.0 - position if band.invert else position


def to_scouting_scale(value: float, band: ThresholdBand) -> int:
    """Map a raw metric onto the 20-80 scale. A degenerate band scores 50."""
    if band.max == band.min:
        return NEUTRAL_SCORE
    return round_score(20 + normalize(value, band) * 60)


def score_component(metric: str, value: float, band: ThresholdBand) -> ScoreComponent:
    position = normalize(value, band)
    return ScoreComponent(
        metric=metric,
        raw=value,
        band=band,
        normalized=round(position * 100, 1),
        score=to_scouting_scale(value, band),
    )


def grade_for(score: float, bands: Sequence[tuple[int, str]], lowest: str) -> str:
    """First band whose floor the score reaches; bands are ordered high to low."""
    for floor, label in bands:
        if score >= floor:
            return label
    return lowest


def consistency_grade_for(cv: float, bands: Sequence[tuple[float, str]], lowest: str) -> str:
    """First band whose ceiling the CV stays under; bands are ordered low to high."""
    for ceiling, label in bands:
        if cv < ceiling:
            return label
    return lowest
