"""Versioned configuration for the scoring engine.

Default values replicate current behaviour exactly; a ``ScoringConfig()``
built with no arguments is the production configuration.
"""

from dataclasses import dataclass, field

from swing_scorer.domain.leak import LeakPattern, LeakType
from swing_scorer.domain.readiness import AthleteModel
from swing_scorer.domain.score import CompositeWeights, PlayerLevel, ThresholdBand
from swing_scorer.domain.sensor import PercentileBand, PopulationBaseline

DEFAULT_CONFIG_VERSION = "4b-2025.1"

# ---------------------------------------------------------------------------
# Threshold bands (min, max, invert)
# ---------------------------------------------------------------------------

DEFAULT_THRESHOLDS: dict[str, ThresholdBand] = {
    "legs_ke": ThresholdBand(100, 500),
    "torso_ke": ThresholdBand(150, 600),
    "torso_to_arms": ThresholdBand(50, 150),
    "arms_ke": ThresholdBand(80, 250),
    "bat_ke": ThresholdBand(100, 600),
    "bat_efficiency": ThresholdBand(25, 65),
    "delivery_efficiency": ThresholdBand(30, 60),
    "pelvis_velocity": ThresholdBand(400, 900),
    "torso_velocity": ThresholdBand(400, 900),
    "x_factor_max": ThresholdBand(10, 45),
    "x_factor_stretch_rate": ThresholdBand(400, 1200),
    "rear_elbow_ext_rate": ThresholdBand(200, 600),
    "proper_sequence_pct": ThresholdBand(40, 100),
    "cv_legs_ke": ThresholdBand(5, 40, invert=True),
    "cv_torso_ke": ThresholdBand(5, 40, invert=True),
    "cv_output": ThresholdBand(10, 150, invert=True),
    "cv_total_ke": ThresholdBand(5, 30, invert=True),
    "cv_bat_efficiency": ThresholdBand(10, 50, invert=True),
    "cv_pelvis_velocity": ThresholdBand(5, 30, invert=True),
    "cv_torso_velocity": ThresholdBand(5, 30, invert=True),
    "cv_pelvis_timing_ms": ThresholdBand(10, 60, invert=True),
}

DEFAULT_GRADE_BANDS: tuple[tuple[int, str], ...] = (
    (70, "Plus-Plus"),
    (60, "Plus"),
    (55, "Above Avg"),
    (45, "Average"),
    (40, "Below Avg"),
    (30, "Fringe"),
)
LOWEST_GRADE = "Poor"

DEFAULT_CONSISTENCY_BANDS: tuple[tuple[float, str], ...] = (
    (6, "Elite"),
    (10, "Plus"),
    (15, "Average"),
    (20, "Below Avg"),
)
LOWEST_CONSISTENCY_GRADE = "Poor"

# ---------------------------------------------------------------------------
# Leak catalog
# ---------------------------------------------------------------------------

DEFAULT_LEAK_CATALOG: dict[LeakType, LeakPattern] = {
    pattern.leak_type: pattern
    for pattern in (
        LeakPattern(
            LeakType.CLEAN_TRANSFER,
            "Energy transferred cleanly.",
            "Keep doing what you're doing.",
        ),
        LeakPattern(
            LeakType.EARLY_BACK_LEG_RELEASE,
            "You left the ground too early.",
            "Stay connected to the ground longer.",
        ),
        LeakPattern(
            LeakType.LATE_LEAD_LEG_ACCEPTANCE,
            "You didn't catch force on the front side.",
            "Learn to accept force earlier.",
        ),
        LeakPattern(
            LeakType.VERTICAL_PUSH,
            "You pushed up instead of into the ground.",
            "Redirect force into the ground.",
        ),
        LeakPattern(
            LeakType.GLIDE_WITHOUT_CAPTURE,
            "You moved without stopping.",
            "Learn when to stop and transfer.",
        ),
        LeakPattern(
            LeakType.LATE_ENGINE,
            "Your legs produced power, it just showed up late.",
            "Stay connected to the ground longer.",
        ),
        LeakPattern(
            LeakType.CORE_DISCONNECT,
            "Your upper body fired before your lower body.",
            "Let the hips lead the hands.",
        ),
        LeakPattern(
            LeakType.NO_BAT_DELIVERY,
            "Energy isn't reaching the barrel.",
            "Focus on connection through the core.",
        ),
        LeakPattern(LeakType.UNKNOWN, "", ""),
    )
}


@dataclass(frozen=True)
class LeakThresholds:
    min_bat_efficiency: float = 20.0
    majority: float = 0.5
    min_sequence_rate: float = 0.4
    late_front_leg_ms: float = 30.0
    glide_ms: float = 200.0
    min_torso_to_arms: float = 60.0
    clean_sequence_rate: float = 0.7
    clean_efficiency: float = 35.0


@dataclass(frozen=True)
class LeakConfig:
    thresholds: LeakThresholds = field(default_factory=LeakThresholds)
    catalog: dict[LeakType, LeakPattern] = field(default_factory=lambda: dict(DEFAULT_LEAK_CATALOG))


# ---------------------------------------------------------------------------
# Segmentation and extraction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SegmentationConfig:
    min_kinematic_frames: int = 10
    min_energy_frames: int = 5
    stride_fraction: float = 0.2
    fallback_contact_fraction: float = 0.8
    plausibility_fraction: float = 0.4
    torso_nudge: float = 1.05
    hand_decel_fraction: float = 0.88
    hand_decel_lookahead: int = 40
    time_to_contact_tolerance_s: float = 0.01
    fallback_window_frames: int = 100
    default_frame_rate_hz: float = 240.0


@dataclass(frozen=True)
class ExtractionConfig:
    energy_percentile: float = 95.0
    max_bat_ke: float = 1000.0
    bat_ke_presence: float = 1.0
    angle_units: str = "auto"
    radians_threshold: float = 8.0


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LevelBounds:
    min_speed: float
    max_speed: float


DEFAULT_LEVEL_BOUNDS: dict[PlayerLevel, LevelBounds] = {
    PlayerLevel.YOUTH: LevelBounds(45, 85),
    PlayerLevel.HIGH_SCHOOL: LevelBounds(55, 95),
    PlayerLevel.COLLEGE: LevelBounds(60, 105),
    PlayerLevel.PRO: LevelBounds(65, 110),
}

LEVEL_ALIASES: dict[str, PlayerLevel] = {
    "hs": PlayerLevel.HIGH_SCHOOL,
    "highschool": PlayerLevel.HIGH_SCHOOL,
    "mlb": PlayerLevel.PRO,
    "milb": PlayerLevel.PRO,
}


@dataclass(frozen=True)
class ProjectionConfig:
    speed_constant: float = 4.25
    target_efficiency: float = 0.55
    severe_gap: float = 10.0
    moderate_gap: float = 6.0
    severe_efficiency: float = 30.0
    moderate_efficiency: float = 45.0
    proxy_efficiency_factor: float = 0.5
    proxy_efficiency_cap: float = 60.0
    exit_slope: float = 1.25
    exit_intercept: float = 5.0
    exit_min: float = 55.0
    exit_max: float = 115.0
    ceiling_exit_max: float = 120.0
    levels: dict[PlayerLevel, LevelBounds] = field(default_factory=lambda: dict(DEFAULT_LEVEL_BOUNDS))


# ---------------------------------------------------------------------------
# Kinetic readiness buckets
# ---------------------------------------------------------------------------

DEFAULT_PHASE_OFFSETS: dict[str, float] = {
    "pelvis": -0.20,
    "torso": -0.10,
    "hip": -0.08,
    "knee": -0.05,
    "ankle": -0.02,
}

DEFAULT_MAGNITUDE_CAPS: dict[str, float] = {
    "pelvis": 60.0,
    "torso": 80.0,
    "side": 30.0,
    "hip_flex": 50.0,
    "hip_add": 40.0,
    "hip_rot": 45.0,
    "knee": 70.0,
    "ankle_inv": 30.0,
    "ankle_flex": 40.0,
}


@dataclass(frozen=True)
class ReadinessConfig:
    phase_offsets: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PHASE_OFFSETS))
    magnitude_caps: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_MAGNITUDE_CAPS))
    athlete_model: AthleteModel = field(default_factory=AthleteModel)
    bat_mass_kg: float = 0.88
    max_expected_scatter: float = 0.3
    velocity_guess_ceiling: float = 6.0
    max_measured_mph: float = 120.0
    min_calibration_swings: int = 5


# ---------------------------------------------------------------------------
# Sensor-only prediction
# ---------------------------------------------------------------------------


def _baseline(
    age_group: str,
    bat: tuple[float, float, float],
    hand: tuple[float, float, float],
    ratio: tuple[float, float, float],
    timing_cv: tuple[float, float, float],
) -> PopulationBaseline:
    return PopulationBaseline(
        age_group=age_group,
        bat_speed=PercentileBand(*bat),
        hand_speed=PercentileBand(*hand),
        hand_to_bat_ratio=PercentileBand(*ratio),
        timing_cv=PercentileBand(*timing_cv),
    )


DEFAULT_BASELINES: dict[str, PopulationBaseline] = {
    b.age_group: b
    for b in (
        _baseline("10u", (30, 38, 46), (12, 15, 18), (1.12, 1.18, 1.25), (0.08, 0.14, 0.22)),
        _baseline("11u", (33, 42, 50), (13, 16, 20), (1.13, 1.20, 1.27), (0.07, 0.12, 0.20)),
        _baseline("12u", (38, 48, 58), (15, 19, 23), (1.15, 1.22, 1.30), (0.06, 0.11, 0.18)),
        _baseline("13u", (45, 55, 65), (17, 21, 26), (1.16, 1.23, 1.31), (0.05, 0.10, 0.16)),
        _baseline("14u", (50, 60, 70), (19, 23, 28), (1.17, 1.24, 1.32), (0.045, 0.09, 0.15)),
        _baseline("15u", (53, 63, 73), (20, 24, 29), (1.18, 1.25, 1.32), (0.04, 0.085, 0.14)),
        _baseline("16u", (56, 66, 76), (21, 25, 30), (1.18, 1.26, 1.33), (0.038, 0.08, 0.13)),
        _baseline("17u", (58, 68, 78), (22, 26, 31), (1.19, 1.26, 1.33), (0.035, 0.075, 0.12)),
        _baseline("18u", (60, 70, 80), (23, 27, 32), (1.20, 1.27, 1.34), (0.032, 0.07, 0.11)),
        _baseline("college", (65, 74, 83), (24, 28, 33), (1.22, 1.29, 1.36), (0.03, 0.065, 0.10)),
        _baseline("pro", (68, 76, 85), (25, 29, 34), (1.24, 1.31, 1.38), (0.025, 0.055, 0.09)),
    )
}

DEFAULT_LEVEL_AGE_GROUPS: dict[PlayerLevel, str] = {
    PlayerLevel.YOUTH: "12u",
    PlayerLevel.HIGH_SCHOOL: "16u",
    PlayerLevel.COLLEGE: "college",
    PlayerLevel.PRO: "pro",
}


@dataclass(frozen=True)
class SensorValidation:
    min_bat_speed_mph: float = 20.0
    max_bat_speed_mph: float = 110.0
    min_time_to_contact_ms: float = 100.0
    max_time_to_contact_ms: float = 600.0
    low_hand_speed_ratio: float = 0.2


@dataclass(frozen=True)
class SensorConfig:
    excellent_ratio: float = 1.30
    good_ratio: float = 1.25
    average_ratio: float = 1.20
    target_ratio: float = 1.28
    timing_cv_floor: float = 0.02
    timing_cv_slope: float = 700.0
    quick_tempo_ms: float = 350.0
    moderate_tempo_ms: float = 450.0
    rigid_direction_std: float = 5.0
    adaptable_direction_std: float = 12.0
    timing_unlock_cv: float = 0.08
    timing_unlock_offset: float = 0.05
    timing_unlock_slope: float = 50.0
    timing_unlock_cap: float = 4.0
    break_timing_cv: float = 0.10
    break_attack_angle_std: float = 8.0
    unlock_per_break: float = 1.5
    torso_acceleration_divisor: float = 200.0
    validation: SensorValidation = field(default_factory=SensorValidation)
    baselines: dict[str, PopulationBaseline] = field(default_factory=lambda: dict(DEFAULT_BASELINES))
    level_age_groups: dict[PlayerLevel, str] = field(default_factory=lambda: dict(DEFAULT_LEVEL_AGE_GROUPS))


# ---------------------------------------------------------------------------
# Top-level configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoringConfig:
    """Bundles every tunable coaching parameter the engine reads."""

    version: str = DEFAULT_CONFIG_VERSION
    thresholds: dict[str, ThresholdBand] = field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    weights: CompositeWeights = field(default_factory=CompositeWeights)
    grade_bands: tuple[tuple[int, str], ...] = DEFAULT_GRADE_BANDS
    consistency_bands: tuple[tuple[float, str], ...] = DEFAULT_CONSISTENCY_BANDS
    min_swings_for_cv: int = 3
    bat_ke_min_coverage: float = 0.5
    transfer_proxy_fallback: float = 0.4
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    leak: LeakConfig = field(default_factory=LeakConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    sensor: SensorConfig = field(default_factory=SensorConfig)

    def band(self, metric: str) -> ThresholdBand:
        return self.thresholds[metric]


def parse_level(raw: str) -> PlayerLevel:
    key = raw.strip().lower().replace("-", "_")
    if key in LEVEL_ALIASES:
        return LEVEL_ALIASES[key]
    try:
        return PlayerLevel(key)
    except ValueError:
        raise ValueError(f"Unknown player level '{raw}'") from None


@dataclass(frozen=True)
class PlayerCalibration:
    """Per-player overrides supplied by an upstream calibration store."""

    weights: CompositeWeights | None = None
    speed_constant: float | None = None
    athlete_model: AthleteModel | None = None

    def __post_init__(self) -> None:
        w = self.weights
        if w is not None:
            if min(w.body, w.bat, w.brain, w.ball) < 0:
                raise ValueError("Calibration weights must not be negative")
            if abs(w.total() - 1.0) > 1e-6:
                raise ValueError(f"Calibration weights must sum to 1, got {w.total():.6f}")
        if self.speed_constant is not None and self.speed_constant <= 0:
            raise ValueError(f"Calibration speed_constant must be positive, got {self.speed_constant}")
