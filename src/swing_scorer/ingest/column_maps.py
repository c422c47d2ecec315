import logging
import math
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from swing_scorer.domain.readiness import CalibrationSample
from swing_scorer.domain.sensor import SensorSwing
from swing_scorer.ingest._csv_helpers import header_key

logger = logging.getLogger(__name__)

SENSOR_ALIASES: dict[str, tuple[str, ...]] = {
    "bat_speed_mph": ("speedbarrelmax", "batspeed", "batspeedmph", "maxbatspeed"),
    "hand_speed_mph": ("speedhandsmax", "handspeed", "handspeedmph", "maxhandspeed"),
    "trigger_to_impact_ms": (
        "quicknesstriggerimpact",
        "triggertoimpact",
        "triggertoimpactms",
        "timetocontact",
        "timetocontactms",
    ),
    "attack_angle_deg": ("swingplanesteepnessangle", "attackangle", "attackangledeg"),
    "attack_direction_deg": ("swingplaneheadingangle", "attackdirection", "attackdirectiondeg"),
    "max_acceleration": ("maxacceleration", "rotationalacceleration", "peakacceleration"),
    "swing_id": ("swingid", "id", "swing"),
}

CALIBRATION_ALIASES: dict[str, tuple[str, ...]] = {
    "b1": ("b1", "rotationalfoundation"),
    "b2": ("b2", "hipload"),
    "b3": ("b3", "groundconnection"),
    "b4": ("b4", "temporalsync"),
    "bat_speed_mph": ("batspeedmph", "batspeed", "measuredbatspeed"),
}


def _to_optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _to_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    if s == "":
        return None
    return s


def _field_lookup(row: dict[str, Any], aliases: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    keyed = {header_key(k): v for k, v in row.items()}
    found: dict[str, Any] = {}
    for name, candidates in aliases.items():
        for candidate in candidates:
            if candidate in keyed:
                found[name] = keyed[candidate]
                break
    return found


def sensor_swing_mapper(row: dict[str, Any]) -> SensorSwing:
    fields = _field_lookup(row, SENSOR_ALIASES)
    bat = _to_optional_float(fields.get("bat_speed_mph"))
    hand = _to_optional_float(fields.get("hand_speed_mph"))
    timing = _to_optional_float(fields.get("trigger_to_impact_ms"))
    # Bat speed per unit of hand speed; the release tiers sit around 1.2-1.3.
    ratio = round(bat / hand, 3) if bat is not None and hand is not None and hand > 0 else None
    return SensorSwing(
        bat_speed_mph=bat,
        hand_speed_mph=hand,
        trigger_to_impact_ms=float(round(timing)) if timing is not None else None,
        attack_angle_deg=_to_optional_float(fields.get("attack_angle_deg")),
        attack_direction_deg=_to_optional_float(fields.get("attack_direction_deg")),
        hand_to_bat_ratio=ratio,
        max_acceleration=_to_optional_float(fields.get("max_acceleration")),
        swing_id=_to_optional_str(fields.get("swing_id")) or "",
    )


def calibration_sample_mapper(row: dict[str, Any]) -> CalibrationSample | None:
    fields = _field_lookup(row, CALIBRATION_ALIASES)
    values = {name: _to_optional_float(fields.get(name)) for name in CALIBRATION_ALIASES}
    if any(v is None for v in values.values()):
        return None
    return CalibrationSample(**values)  # type: ignore[arg-type]


T = TypeVar("T")


def map_rows(rows: Iterable[dict[str, Any]], mapper: Callable[[dict[str, Any]], T | None]) -> list[T]:
    """Apply a row mapper, skipping rows it rejects."""
    mapped: list[T] = []
    skipped = 0
    for row in rows:
        item = mapper(row)
        if item is None:
            skipped += 1
            continue
        mapped.append(item)
    if skipped:
        logger.warning("Skipped %d rows with missing or unparsable values", skipped)
    return mapped
