import tomllib
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, TypeVar

from swing_scorer.domain.score import CompositeWeights, ThresholdBand
from swing_scorer.domain.scoring_config import LeakConfig, LevelBounds, ScoringConfig, parse_level

_TOP_LEVEL_KEYS = frozenset({"version", "min_swings_for_cv", "bat_ke_min_coverage", "transfer_proxy_fallback"})
_SECTIONS = frozenset({"weights", "thresholds", "levels", "projection", "segmentation", "extraction", "leak"})
_ANGLE_UNITS = frozenset({"auto", "degrees", "radians"})


class ScoringConfigError(Exception):
    """Raised when a scoring configuration file is invalid or missing."""


# -- Validation --------------------------------------------------------------


def _check_fraction(value: float, name: str) -> None:
    if not 0 < value < 1:
        raise ScoringConfigError(f"{name} must be between 0 and 1 (exclusive), got {value}")


def validate_scoring_config(config: ScoringConfig) -> None:
    weights = config.weights
    if abs(weights.total() - 1.0) > 1e-6:
        raise ScoringConfigError(f"weights must sum to 1, got {weights.total():.6f}")
    if min(weights.body, weights.bat, weights.brain, weights.ball) < 0:
        raise ScoringConfigError("weights must not be negative")

    for metric, band in config.thresholds.items():
        if band.min > band.max:
            raise ScoringConfigError(f"Threshold '{metric}': min {band.min} is greater than max {band.max}")

    projection = config.projection
    for level, bounds in projection.levels.items():
        if bounds.min_speed >= bounds.max_speed:
            raise ScoringConfigError(f"Level '{level}': min_speed must be below max_speed")
        if bounds.max_speed - bounds.min_speed < projection.severe_gap:
            raise ScoringConfigError(f"Level '{level}': range is narrower than severe_gap {projection.severe_gap}")

    seg = config.segmentation
    _check_fraction(seg.stride_fraction, "segmentation.stride_fraction")
    _check_fraction(seg.fallback_contact_fraction, "segmentation.fallback_contact_fraction")
    _check_fraction(seg.plausibility_fraction, "segmentation.plausibility_fraction")
    _check_fraction(seg.hand_decel_fraction, "segmentation.hand_decel_fraction")
    _check_fraction(projection.target_efficiency, "projection.target_efficiency")
    _check_fraction(config.bat_ke_min_coverage, "bat_ke_min_coverage")
    _check_fraction(config.leak.thresholds.majority, "leak.majority")

    if config.min_swings_for_cv < 2:
        raise ScoringConfigError(f"min_swings_for_cv must be >= 2, got {config.min_swings_for_cv}")
    if config.extraction.angle_units not in _ANGLE_UNITS:
        raise ScoringConfigError(f"extraction.angle_units must be one of {sorted(_ANGLE_UNITS)}")


# -- Parsing -----------------------------------------------------------------


def _require_field(raw: dict[str, Any], field: str, context: str) -> Any:
    if field not in raw:
        raise ScoringConfigError(f"{context}: missing required field '{field}'")
    return raw[field]


def _require_table(raw: Any, context: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ScoringConfigError(f"{context}: expected a table")
    return raw


def _coerce(value: Any, expected: Any, context: str) -> Any:
    if expected is bool:
        if not isinstance(value, bool):
            raise ScoringConfigError(f"{context}: expected a boolean, got {value!r}")
        return value
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ScoringConfigError(f"{context}: expected an integer, got {value!r}")
        return value
    if expected is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ScoringConfigError(f"{context}: expected a number, got {value!r}")
        return float(value)
    if expected is str:
        if not isinstance(value, str):
            raise ScoringConfigError(f"{context}: expected a string, got {value!r}")
        return value
    raise ScoringConfigError(f"{context}: cannot be set from a config file")


T = TypeVar("T")


def _apply_section(base: T, raw: dict[str, Any], context: str) -> T:
    """Override scalar fields of a config dataclass, rejecting unknown keys."""
    known = {f.name: f.type for f in fields(base)}  # type: ignore[arg-type]
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ScoringConfigError(f"{context}: unknown keys {unknown}")
    changes = {key: _coerce(value, known[key], f"{context}.{key}") for key, value in raw.items()}
    return replace(base, **changes)  # type: ignore[type-var]


def parse_band(metric: str, raw: dict[str, Any], current: ThresholdBand | None) -> ThresholdBand:
    context = f"Threshold '{metric}'"
    if current is None:
        current = ThresholdBand(
            min=_coerce(_require_field(raw, "min", context), float, f"{context}.min"),
            max=_coerce(_require_field(raw, "max", context), float, f"{context}.max"),
        )
    return _apply_section(current, raw, context)


def parse_levels(raw: dict[str, Any], current: dict) -> dict:
    levels = dict(current)
    for name, table in raw.items():
        context = f"Level '{name}'"
        try:
            level = parse_level(name)
        except ValueError as e:
            raise ScoringConfigError(str(e)) from None
        base = levels.get(level, LevelBounds(0.0, 0.0))
        levels[level] = _apply_section(base, _require_table(table, context), context)
    return levels


def parse_scoring_config(raw: dict[str, Any]) -> ScoringConfig:
    unknown = sorted(set(raw) - _TOP_LEVEL_KEYS - _SECTIONS)
    if unknown:
        raise ScoringConfigError(f"Unknown sections or keys: {unknown}")

    config = ScoringConfig()
    top = {key: raw[key] for key in _TOP_LEVEL_KEYS if key in raw}
    config = _apply_section(config, top, "scoring")

    if "weights" in raw:
        weights = _apply_section(CompositeWeights(), _require_table(raw["weights"], "weights"), "weights")
        config = replace(config, weights=weights)

    if "thresholds" in raw:
        thresholds = dict(config.thresholds)
        for metric, table in _require_table(raw["thresholds"], "thresholds").items():
            band_raw = _require_table(table, f"Threshold '{metric}'")
            thresholds[metric] = parse_band(metric, band_raw, thresholds.get(metric))
        config = replace(config, thresholds=thresholds)

    projection = config.projection
    if "projection" in raw:
        projection = _apply_section(projection, _require_table(raw["projection"], "projection"), "projection")
    if "levels" in raw:
        levels = parse_levels(_require_table(raw["levels"], "levels"), projection.levels)
        projection = replace(projection, levels=levels)
    config = replace(config, projection=projection)

    if "segmentation" in raw:
        segmentation = _apply_section(
            config.segmentation, _require_table(raw["segmentation"], "segmentation"), "segmentation"
        )
        config = replace(config, segmentation=segmentation)
    if "extraction" in raw:
        extraction = _apply_section(config.extraction, _require_table(raw["extraction"], "extraction"), "extraction")
        config = replace(config, extraction=extraction)
    if "leak" in raw:
        leak_thresholds = _apply_section(config.leak.thresholds, _require_table(raw["leak"], "leak"), "leak")
        config = replace(config, leak=LeakConfig(thresholds=leak_thresholds, catalog=config.leak.catalog))

    validate_scoring_config(config)
    return config


# -- TOML loading ------------------------------------------------------------


def load_scoring_config(path: Path) -> ScoringConfig:
    if not path.exists():
        raise ScoringConfigError(f"Scoring config {path} not found")
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ScoringConfigError(f"Invalid TOML in {path}: {e}") from None
    return parse_scoring_config(data)
