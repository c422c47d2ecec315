"""Frame table normalizer.

Turns raw export rows into a :class:`FrameTable` whose columns carry
canonical channel names and float values.
"""

import logging
from collections.abc import Iterable, Mapping

import numpy as np
import pandas as pd

from swing_scorer.domain.frames import SWING_ID, TIME, FrameTable, ParsePolicy, TableKind

logger = logging.getLogger(__name__)

_SIDES = ("left", "right")

_SWING_ID_ALIASES: tuple[str, ...] = ("org_movement_id", "movement_id", "swing_id", "swing")
_TIME_ALIASES: tuple[str, ...] = ("time", "time_s", "timestamp")
_INVALID_IDS = frozenset({"", "n/a", "na", "nan", "none", "null"})

# Marker columns are never zero-filled; a blank marker means "no marker".
MARKER_ALIASES: dict[str, tuple[str, ...]] = {
    "contact_frame": ("contact_frame", "contactframe"),
    "stride_frame": ("stride_frame", "strideframe"),
    "time_to_contact": ("time_from_max_hand", "time_to_contact"),
}


def _side_aliases(joint: str, *suffixes: str) -> dict[str, tuple[str, ...]]:
    out: dict[str, tuple[str, ...]] = {}
    for side in _SIDES:
        compact = joint.replace("_", "")
        names = [f"{side}{compact}", f"{side}_{joint}"]
        names.extend(f"{side}_{joint}_{suffix}" for suffix in suffixes)
        out[f"{side}_{joint}"] = tuple(names)
    return out


def _build_channel_aliases() -> dict[str, tuple[str, ...]]:
    aliases: dict[str, tuple[str, ...]] = {
        "pelvis_rot": ("pelvisrot", "pelvis_rot", "pelvis_rotation"),
        "torso_rot": ("torsorot", "torso_rot", "torso_rotation"),
        "pelvis_side": ("pelvisside", "pelvis_side", "pelvis_lateral"),
    }
    aliases |= _side_aliases("hip_flex", "flexion")
    aliases |= _side_aliases("hip_add", "adduction")
    aliases |= _side_aliases("hip_rot", "rotation")
    aliases |= _side_aliases("knee", "flex")
    aliases |= _side_aliases("ankle_inv", "inversion")
    aliases |= _side_aliases("ankle_flex", "flexion")
    aliases |= _side_aliases("elbow", "flex")
    for axis in ("x", "y", "z"):
        aliases[f"hand_vel_{axis}"] = (f"hand_vel_{axis}", f"hand_v{axis}", f"dom_hand_vel_{axis}")
        aliases[f"bat_mom_{axis}"] = (f"bat_linear_momentum_{axis}", f"bat_mom_{axis}")
    for segment in ("legs", "torso", "arms", "bat", "total"):
        aliases[f"{segment}_ke"] = (f"{segment}_kinetic_energy", f"{segment}_ke")
    aliases["larm_ke"] = ("larm_kinetic_energy", "larm_ke", "left_arm_kinetic_energy")
    aliases["rarm_ke"] = ("rarm_kinetic_energy", "rarm_ke", "right_arm_kinetic_energy")
    for segment in ("pelvis", "torso", "arms", "bat"):
        aliases[f"{segment}_ang_mom"] = (f"{segment}_angular_momentum_mag", f"{segment}_ang_mom")
    return aliases


CHANNEL_ALIASES: dict[str, tuple[str, ...]] = _build_channel_aliases()


def clean_header(name: object) -> str:
    return str(name).replace("\ufeff", "").strip().lower()


def resolve_columns(columns: Iterable[str], aliases: Mapping[str, tuple[str, ...]]) -> dict[str, str]:
    """Map canonical names to the first matching source column."""
    present = list(columns)
    resolved: dict[str, str] = {}
    for canonical, names in aliases.items():
        for name in names:
            if name in present:
                resolved[canonical] = name
                break
    return resolved


def _first_alias(columns: Iterable[str], names: tuple[str, ...]) -> str | None:
    present = set(columns)
    for name in names:
        if name in present:
            return name
    return None


def _empty_table(kind: TableKind, source_rows: int = 0) -> FrameTable:
    return FrameTable(
        kind=kind,
        frames=pd.DataFrame({SWING_ID: pd.Series(dtype=str), TIME: pd.Series(dtype=float)}),
        channels=frozenset(),
        source_rows=source_rows,
    )


def normalize_frames(
    rows: pd.DataFrame | Iterable[Mapping[str, object]],
    kind: TableKind,
    *,
    policy: ParsePolicy = ParsePolicy.COERCE,
    frame_rate_hz: float = 240.0,
) -> FrameTable:
    """Parse raw rows into canonical numeric channels.

    Unrecognized columns are reported, never fatal. Under
    ``ParsePolicy.COERCE`` an unparsable channel cell becomes ``0.0``;
    under ``ParsePolicy.DROP`` the whole row is removed instead.
    """
    raw = rows.copy() if isinstance(rows, pd.DataFrame) else pd.DataFrame.from_records(list(rows))
    source_rows = len(raw)
    if raw.empty:
        return _empty_table(kind, source_rows)

    raw.columns = [clean_header(c) for c in raw.columns]
    raw = raw.loc[:, ~raw.columns.duplicated()].reset_index(drop=True)

    id_col = _first_alias(raw.columns, _SWING_ID_ALIASES)
    time_col = _first_alias(raw.columns, _TIME_ALIASES)
    channel_cols = resolve_columns(raw.columns, CHANNEL_ALIASES)
    marker_cols = resolve_columns(raw.columns, MARKER_ALIASES)

    used = {id_col, time_col, *channel_cols.values(), *marker_cols.values()}
    unrecognized = tuple(c for c in raw.columns if c not in used)

    out = pd.DataFrame(index=raw.index)
    if id_col is not None:
        ids = raw[id_col].astype("string").str.strip()
        valid = (ids.notna() & ~ids.str.lower().isin(_INVALID_IDS)).fillna(False).astype(bool)
        out[SWING_ID] = ids.fillna("").astype(str)
    else:
        valid = pd.Series(True, index=raw.index)
        out[SWING_ID] = "session"

    numeric_sources = dict(channel_cols)
    if time_col is not None:
        numeric_sources[TIME] = time_col
    parsed = {name: pd.to_numeric(raw[src], errors="coerce").astype(float) for name, src in numeric_sources.items()}
    bad = pd.DataFrame({name: ~np.isfinite(values) for name, values in parsed.items()})

    coerced = 0
    dropped = 0
    keep = valid.astype(bool)
    if not bad.empty:
        if policy is ParsePolicy.DROP:
            bad_rows = bad.any(axis=1) & valid
            dropped = int(bad_rows.sum())
            keep &= ~bad_rows
        else:
            coerced = int(bad[valid].to_numpy().sum())

    for name, values in parsed.items():
        out[name] = values.where(np.isfinite(values), np.nan).fillna(0.0).astype(float)
    for name, src in marker_cols.items():
        out[name] = pd.to_numeric(raw[src], errors="coerce").astype(float)

    skipped_ids = int((~valid).sum())
    out = out[keep].reset_index(drop=True)

    synthesized = time_col is None
    if synthesized:
        out[TIME] = out.groupby(SWING_ID, sort=False).cumcount().astype(float) / frame_rate_hz

    if dropped:
        logger.warning("Dropped %d %s rows with unparsable values", dropped, kind)
    logger.debug(
        "Normalized %d %s rows into %d frames (%d channels, %d unrecognized columns)",
        source_rows,
        kind,
        len(out),
        len(channel_cols),
        len(unrecognized),
    )

    return FrameTable(
        kind=kind,
        frames=out,
        channels=frozenset(channel_cols) | frozenset(marker_cols),
        unrecognized_columns=unrecognized,
        coerced_cells=coerced,
        dropped_rows=dropped,
        synthesized_time=synthesized,
        source_rows=source_rows,
        skipped_ids=skipped_ids,
    )
