from dataclasses import dataclass, field
from enum import StrEnum


class Bucket(StrEnum):
    B1 = "B1"
    B2 = "B2"
    B3 = "B3"
    B4 = "B4"


class SpeedSource(StrEnum):
    BAT_KE = "bat_ke"
    MOMENTUM_OVER_MASS = "momentum_over_mass"
    VELOCITY_GUESS = "velocity_guess"
    MISSING = "missing"


@dataclass(frozen=True)
class AthleteModel:
    beta_0: float = 50.0
    beta_1: float = 0.3
    beta_2: float = 0.3
    beta_3: float = 0.25
    beta_4: float = 0.15

    def coefficient(self, bucket: Bucket) -> float:
        return {
            Bucket.B1: self.beta_1,
            Bucket.B2: self.beta_2,
            Bucket.B3: self.beta_3,
            Bucket.B4: self.beta_4,
        }[bucket]


@dataclass(frozen=True)
class BucketScores:
    b1: float = 50.0
    b2: float = 50.0
    b3: float = 50.0
    b4: float = 50.0

    def get(self, bucket: Bucket) -> float:
        return float(getattr(self, bucket.value.lower()))


@dataclass(frozen=True)
class MeasuredBatSpeed:
    mph: float
    source: SpeedSource
    confidence: str


@dataclass(frozen=True)
class ReadinessReport:
    buckets: BucketScores
    expected_bat_speed: float
    measured: MeasuredBatSpeed
    mechanical_loss: float | None
    loss_breakdown: dict[str, float] = field(default_factory=dict)
    primary_bucket: Bucket | None = None
    primary_title: str = ""
    primary_description: str = ""
    calibrated: bool = False


@dataclass(frozen=True)
class CalibrationSample:
    b1: float
    b2: float
    b3: float
    b4: float
    bat_speed_mph: float


@dataclass(frozen=True)
class CalibrationResult:
    model: AthleteModel
    r_squared: float
    sample_count: int
