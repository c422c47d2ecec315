from dataclasses import dataclass, field
from enum import StrEnum

from swing_scorer.domain.leak import LeakResult
from swing_scorer.domain.readiness import ReadinessReport
from swing_scorer.domain.session import DataQualityReport


class Dimension(StrEnum):
    BRAIN = "brain"
    BODY = "body"
    BAT = "bat"
    BALL = "ball"


class PlayerLevel(StrEnum):
    YOUTH = "youth"
    HIGH_SCHOOL = "high_school"
    COLLEGE = "college"
    PRO = "pro"


@dataclass(frozen=True)
class ThresholdBand:
    min: float
    max: float
    invert: bool = False


@dataclass(frozen=True)
class ScoreComponent:
    metric: str
    raw: float
    band: ThresholdBand
    normalized: float
    score: int


@dataclass(frozen=True)
class FlowComponents:
    ground_flow: int = 50
    core_flow: int = 50
    upper_flow: int = 50


@dataclass(frozen=True)
class DimensionGrades:
    brain: str
    body: str
    bat: str
    ball: str
    overall: str


@dataclass(frozen=True)
class CompositeWeights:
    body: float = 0.35
    bat: float = 0.30
    brain: float = 0.20
    ball: float = 0.15

    def total(self) -> float:
        return self.body + self.bat + self.brain + self.ball


@dataclass(frozen=True)
class Projections:
    level: PlayerLevel
    method: str
    delivered_energy: float
    delivery_efficiency_pct: float
    current_bat_speed: float
    ceiling_bat_speed: float
    current_exit_speed: int
    ceiling_exit_speed: int
    minimum_gap: float = 0.0

    @property
    def headroom(self) -> float:
        return round(self.ceiling_bat_speed - self.current_bat_speed, 1)


@dataclass(frozen=True)
class FourBScore:
    brain: int
    body: int
    bat: int
    ball: int
    composite: int
    grades: DimensionGrades
    flows: FlowComponents
    leak: LeakResult
    data_quality: DataQualityReport
    weights: CompositeWeights
    config_version: str
    components: dict[str, tuple[ScoreComponent, ...]] = field(default_factory=dict)
    raw_metrics: dict[str, float] = field(default_factory=dict)
    consistency_grades: dict[str, str] = field(default_factory=dict)
    projections: Projections | None = None
    readiness: ReadinessReport | None = None

    def dimension(self, dim: Dimension) -> int:
        return int(getattr(self, dim.value))
