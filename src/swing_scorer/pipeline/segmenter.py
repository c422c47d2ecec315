import logging
import math
from dataclasses import replace

import numpy as np
import pandas as pd

from swing_scorer.domain.frames import SWING_ID, TIME, FrameTable, TableKind
from swing_scorer.domain.scoring_config import SegmentationConfig
from swing_scorer.domain.swing import (
    ContactDetection,
    DiscardedSwing,
    Segmentation,
    Swing,
    SwingFrames,
    SwingTrace,
)
from swing_scorer.pipeline.contact import detect_contact, first_finite
from swing_scorer.pipeline.normalizer import MARKER_ALIASES

logger = logging.getLogger(__name__)


def _group_swings(table: FrameTable | None) -> dict[str, pd.DataFrame]:
    if table is None or table.is_empty:
        return {}
    groups: dict[str, pd.DataFrame] = {}
    for swing_id, group in table.frames.groupby(SWING_ID, sort=False):
        groups[str(swing_id)] = group.sort_values(TIME, kind="mergesort").reset_index(drop=True)
    return groups


def stride_frame(markers: dict[str, np.ndarray], n: int, config: SegmentationConfig) -> int:
    value = first_finite(markers.get("stride_frame"))
    if value is not None and 0 <= int(value) < n:
        return int(value)
    return int(math.floor(config.stride_fraction * n))


def swing_window(
    time_to_contact: np.ndarray | None,
    stride: int,
    contact: int,
    n: int,
    config: SegmentationConfig,
) -> np.ndarray:
    """Frame indices from stride to contact, inclusive.

    When a per-frame time-to-contact marker exists, frames after contact
    (by that marker) are removed as well.
    """
    window = np.arange(stride, contact + 1)
    if time_to_contact is not None and np.isfinite(time_to_contact).any():
        marker = time_to_contact[window]
        window = window[np.isfinite(marker) & (marker <= config.time_to_contact_tolerance_s)]
    if window.size == 0:
        window = np.arange(min(config.fallback_window_frames, n))
    return window


def read_frames(group: pd.DataFrame, table: FrameTable, config: SegmentationConfig) -> SwingFrames:
    channels = {
        name: group[name].to_numpy(dtype=float) for name in sorted(table.channels) if name not in MARKER_ALIASES
    }
    markers = {name: group[name].to_numpy(dtype=float) for name in sorted(table.channels) if name in MARKER_ALIASES}
    time = group[TIME].to_numpy(dtype=float)
    return SwingFrames(
        channels=channels,
        time=time,
        markers=markers,
        stride_frame=stride_frame(markers, len(time), config),
    )


def map_frame(frame: int, source: SwingFrames, target: SwingFrames) -> int:
    """The target frame nearest in time to ``frame`` of the source export."""
    if source.n == target.n:
        return min(max(frame, 0), target.n - 1)
    return int(np.argmin(np.abs(target.time - source.time[frame])))


def _align(other: SwingFrames, base: SwingFrames) -> tuple[dict[str, np.ndarray], dict[str, np.ndarray]]:
    if other.n == base.n:
        return dict(other.channels), dict(other.markers)
    channels = {name: np.interp(base.time, other.time, values) for name, values in other.channels.items()}
    markers: dict[str, np.ndarray] = {}
    for name, values in other.markers.items():
        if name == "time_to_contact":
            markers[name] = np.interp(base.time, other.time, values)
            continue
        frame = first_finite(values)
        if frame is None or not 0 <= int(frame) < other.n:
            continue
        mapped = np.full(base.n, np.nan)
        mapped[0] = map_frame(int(frame), other, base)
        markers[name] = mapped
    return channels, markers


def _has_values(values: np.ndarray | None) -> bool:
    return values is not None and bool(np.isfinite(values).any())


def joint_frames(parts: list[SwingFrames], config: SegmentationConfig) -> SwingFrames:
    """Both exports of one swing on the first export's frame axis.

    Channels and markers the first export lacks are filled in from the
    others, resampled by timestamp when the frame counts differ.
    """
    base = parts[0]
    channels = dict(base.channels)
    markers = dict(base.markers)
    for other in parts[1:]:
        other_channels, other_markers = _align(other, base)
        for name, values in other_channels.items():
            channels.setdefault(name, values)
        for name, values in other_markers.items():
            if not _has_values(markers.get(name)):
                markers[name] = values
    return SwingFrames(
        channels=channels,
        time=base.time,
        markers=markers,
        stride_frame=stride_frame(markers, base.n, config),
    )


def build_trace(frames: SwingFrames, contact: ContactDetection, config: SegmentationConfig) -> SwingTrace:
    if contact.frame < frames.stride_frame:
        contact = replace(contact, frame=frames.n - 1)
    window = swing_window(frames.markers.get("time_to_contact"), frames.stride_frame, contact.frame, frames.n, config)
    return SwingTrace(
        channels=dict(frames.channels),
        time=frames.time,
        stride_frame=frames.stride_frame,
        contact=contact,
        window=window,
    )


def _min_frames(kind: TableKind, config: SegmentationConfig) -> int:
    return config.min_kinematic_frames if kind is TableKind.KINEMATICS else config.min_energy_frames


def segment_session(
    kinematics: FrameTable | None,
    energy: FrameTable | None,
    config: SegmentationConfig,
) -> Segmentation:
    """Group both exports into swings joined by swing identifier.

    Swings appear in the order their identifier is first seen, energy
    export first. Contact is detected once per swing over both exports and
    shared by its traces.
    """
    parts: dict[str, dict[TableKind, SwingFrames]] = {}
    discarded: list[DiscardedSwing] = []

    for table in (energy, kinematics):
        if table is None:
            continue
        minimum = _min_frames(table.kind, config)
        for swing_id, group in _group_swings(table).items():
            if len(group) < minimum:
                discarded.append(
                    DiscardedSwing(swing_id, table.kind, f"only {len(group)} frames (need {minimum})")
                )
                continue
            parts.setdefault(swing_id, {})[table.kind] = read_frames(group, table, config)

    swings: list[Swing] = []
    for swing_id, by_kind in parts.items():
        ordered = [by_kind[kind] for kind in (TableKind.ENERGY, TableKind.KINEMATICS) if kind in by_kind]
        joint = joint_frames(ordered, config)
        contact = detect_contact(joint, config)
        traces = {
            kind: build_trace(frames, replace(contact, frame=map_frame(contact.frame, joint, frames)), config)
            for kind, frames in by_kind.items()
        }
        logger.debug(
            "Swing %s (%s): contact %d via %s",
            swing_id,
            ", ".join(sorted(kind.value for kind in by_kind)),
            contact.frame,
            contact.method,
        )
        swings.append(
            Swing(
                swing_id=swing_id,
                kinematics=traces.get(TableKind.KINEMATICS),
                energy=traces.get(TableKind.ENERGY),
            )
        )
    logger.debug("Segmented %d swings, discarded %d", len(swings), len(discarded))
    return Segmentation(swings=tuple(swings), discarded=tuple(discarded))
