from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from config import ConfigurationSet, config_from_dict, config_from_env, config_from_yaml

from swing_scorer.domain.frames import Handedness, ParsePolicy
from swing_scorer.domain.score import PlayerLevel
from swing_scorer.domain.scoring_config import parse_level


class AppConfig(Protocol):
    def __getitem__(self, key: str) -> object: ...


_DEFAULTS: dict[str, object] = {
    "player": {
        "level": "high_school",
        "handedness": "R",
    },
    "ingest": {
        "parse_policy": "coerce",
    },
    "scoring": {
        "config_path": "",
    },
    "sensor": {
        "age_group": "",
    },
}


@dataclass(frozen=True)
class RunSettings:
    level: PlayerLevel = PlayerLevel.HIGH_SCHOOL
    handedness: Handedness = Handedness.RIGHT
    parse_policy: ParsePolicy = ParsePolicy.COERCE
    scoring_config_path: Path | None = None
    age_group: str | None = None


def create_config(
    yaml_path: str = "swing.yaml",
    env_prefix: str = "SWING",
    defaults: dict[str, object] | None = None,
    *,
    level: str | None = None,
    handedness: str | None = None,
    parse_policy: str | None = None,
    scoring_config_path: str | None = None,
    age_group: str | None = None,
) -> ConfigurationSet:
    """Create a layered configuration.

    Priority (highest to lowest): explicit overrides > env vars > YAML file > defaults dict.

    Args:
        yaml_path: Path to the YAML config file.
        env_prefix: Prefix for environment variables (``SWING__PLAYER__LEVEL``).
        defaults: Default configuration values.
        level: Override the player level.
        handedness: Override the batting side.
        parse_policy: Override the ingest parse policy.
        scoring_config_path: Override the scoring TOML path.
        age_group: Override the sensor baseline age group.
    """
    if defaults is None:
        defaults = _DEFAULTS

    layers = [
        config_from_env(env_prefix, separator="__", lowercase_keys=True),
        config_from_yaml(yaml_path, read_from_file=True, ignore_missing_paths=True),
        config_from_dict(defaults),
    ]

    overrides = _build_overrides(
        level=level,
        handedness=handedness,
        parse_policy=parse_policy,
        scoring_config_path=scoring_config_path,
        age_group=age_group,
    )
    if overrides:
        layers.insert(0, config_from_dict(overrides))

    return ConfigurationSet(*layers)


def _build_overrides(
    *,
    level: str | None,
    handedness: str | None,
    parse_policy: str | None,
    scoring_config_path: str | None,
    age_group: str | None,
) -> dict[str, object]:
    """Build override dict from explicit parameters."""
    sections: dict[str, dict[str, object]] = {
        "player": {"level": level, "handedness": handedness},
        "ingest": {"parse_policy": parse_policy},
        "scoring": {"config_path": scoring_config_path},
        "sensor": {"age_group": age_group},
    }
    overrides: dict[str, object] = {}
    for section, values in sections.items():
        present = {key: value for key, value in values.items() if value is not None}
        if present:
            overrides[section] = present
    return overrides


def _parse_handedness(raw: str) -> Handedness:
    key = raw.strip().upper()
    aliases = {"R": Handedness.RIGHT, "RIGHT": Handedness.RIGHT, "L": Handedness.LEFT, "LEFT": Handedness.LEFT}
    if key not in aliases:
        raise ValueError(f"Unknown handedness '{raw}'. Expected one of: R, L")
    return aliases[key]


def _parse_policy(raw: str) -> ParsePolicy:
    try:
        return ParsePolicy(raw.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in ParsePolicy)
        raise ValueError(f"Unknown parse policy '{raw}'. Expected one of: {valid}") from None


def load_run_settings(cfg: AppConfig | None = None) -> RunSettings:
    if cfg is None:
        cfg = create_config()
    config_path = str(cfg["scoring.config_path"]).strip()
    age_group = str(cfg["sensor.age_group"]).strip().lower()
    return RunSettings(
        level=parse_level(str(cfg["player.level"])),
        handedness=_parse_handedness(str(cfg["player.handedness"])),
        parse_policy=_parse_policy(str(cfg["ingest.parse_policy"])),
        scoring_config_path=Path(config_path).expanduser() if config_path else None,
        age_group=age_group or None,
    )
