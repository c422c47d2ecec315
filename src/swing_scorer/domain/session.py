from dataclasses import dataclass, field
from enum import StrEnum


class SessionQuality(StrEnum):
    GOOD = "good"
    FAIR = "fair"
    LIMITED = "limited"


@dataclass(frozen=True)
class Capabilities:
    has_kinematics: bool = False
    has_energy: bool = False
    has_bat_ke: bool = False
    consistency_ready: bool = False


@dataclass(frozen=True)
class SessionMetrics:
    swing_count: int
    capabilities: Capabilities
    means: dict[str, float] = field(default_factory=dict)
    cvs: dict[str, float] = field(default_factory=dict)
    proper_sequence_rate: float | None = None
    late_legs_fraction: float | None = None
    early_arms_fraction: float | None = None
    bat_ke_coverage: float = 0.0
    ground_timing_ms: float | None = None

    def mean(self, name: str) -> float | None:
        return self.means.get(name)

    def cv(self, name: str) -> float | None:
        return self.cvs.get(name)


@dataclass(frozen=True)
class DataQualityReport:
    swing_count: int
    quality: SessionQuality
    has_kinematics: bool
    has_energy: bool
    has_bat_ke: bool
    bat_ke_coverage: float
    contact_detected: bool
    contact_confidence: str
    contact_methods: dict[str, int] = field(default_factory=dict)
    consistency_scores_valid: bool = False
    gated_scores: tuple[str, ...] = ()
    discarded_swings: int = 0
    converted_angle_swings: int = 0
    coerced_cells: int = 0
    dropped_rows: int = 0
    warnings: tuple[str, ...] = ()
