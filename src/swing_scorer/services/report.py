"""Report serialization.

Converts score and prediction dataclasses into plain JSON-ready structures.
Enums become their values, tuples become lists and mappings keep string
keys; ``to_json`` sorts keys so the same report always renders the same.
"""

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, TypeAlias

from swing_scorer.domain.score import FourBScore
from swing_scorer.domain.sensor import SensorPrediction

Report: TypeAlias = FourBScore | SensorPrediction


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(_plain(k)): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_dict(report: Report) -> dict[str, Any]:
    return _plain(report)


def to_json(report: Report, *, indent: int | None = 2) -> str:
    return json.dumps(to_dict(report), indent=indent, sort_keys=True)
