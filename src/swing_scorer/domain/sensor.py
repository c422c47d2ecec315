from dataclasses import dataclass, field
from enum import StrEnum


class ConfidenceLevel(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ReleaseQuality(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    NEEDS_WORK = "needs_work"


class Tempo(StrEnum):
    QUICK = "quick"
    MODERATE = "moderate"
    DELIBERATE = "deliberate"


class Adjustability(StrEnum):
    RIGID = "rigid"
    ADAPTABLE = "adaptable"
    FLUID = "fluid"


@dataclass(frozen=True)
class SensorSwing:
    bat_speed_mph: float | None
    hand_speed_mph: float | None = None
    trigger_to_impact_ms: float | None = None
    attack_angle_deg: float | None = None
    attack_direction_deg: float | None = None
    hand_to_bat_ratio: float | None = None
    max_acceleration: float | None = None
    swing_id: str = ""


@dataclass(frozen=True)
class SwingValidation:
    is_valid: bool
    reason: str | None = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class PercentileBand:
    p10: float
    p50: float
    p90: float


@dataclass(frozen=True)
class PopulationBaseline:
    age_group: str
    bat_speed: PercentileBand
    hand_speed: PercentileBand
    hand_to_bat_ratio: PercentileBand
    timing_cv: PercentileBand


@dataclass(frozen=True)
class SensorFacts:
    swing_count: int = 0
    bat_speed_max: float = 0.0
    bat_speed_mean: float = 0.0
    bat_speed_std: float = 0.0
    hand_speed_max: float = 0.0
    hand_speed_mean: float = 0.0
    hand_speed_std: float = 0.0
    time_to_contact_mean: float = 0.0
    time_to_contact_std: float = 0.0
    timing_cv: float = 0.0
    attack_angle_mean: float = 0.0
    attack_angle_std: float = 0.0
    attack_direction_mean: float = 0.0
    attack_direction_std: float = 0.0
    hand_to_bat_ratio: float = 0.0
    rotational_acceleration_mean: float | None = None


@dataclass(frozen=True)
class ReleasePrediction:
    hand_to_bat_ratio: float
    quality: ReleaseQuality
    percentile: int
    potential_unlock: float
    reasoning: str
    confidence: ConfidenceLevel = ConfidenceLevel.HIGH


@dataclass(frozen=True)
class TimingPrediction:
    consistency_score: int
    tempo: Tempo
    adjustability: Adjustability
    timing_window_ms: int
    potential_unlock: float
    reasoning: str
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM


@dataclass(frozen=True)
class UpstreamPrediction:
    estimated_hip_contribution: int
    estimated_torso_contribution: int
    likely_breaks: tuple[str, ...]
    potential_unlock: float
    reasoning: str
    needs_video_for: tuple[str, ...]
    confidence: ConfidenceLevel = ConfidenceLevel.LOW


@dataclass(frozen=True)
class UnlockShare:
    value: float
    confidence: ConfidenceLevel
    reasoning: str


@dataclass(frozen=True)
class KineticPotential:
    current_bat_speed: float
    projected_potential: float
    total_unlock: float
    release: UnlockShare
    timing: UnlockShare
    upstream: UnlockShare
    overall_confidence: ConfidenceLevel
    validation_needs: tuple[str, ...] = ()


@dataclass(frozen=True)
class SensorPrediction:
    age_group: str
    facts: SensorFacts
    release: ReleasePrediction
    timing: TimingPrediction
    upstream: UpstreamPrediction
    kinetic_potential: KineticPotential
    data_quality: str
    invalid_swings: int = 0
    warnings: tuple[str, ...] = field(default_factory=tuple)
