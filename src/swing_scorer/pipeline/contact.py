"""Contact-frame detection cascade.

Detectors are tried in order. A candidate that lands in the first part of
the sequence (before ``plausibility_fraction * n``) is rejected and the next
detector is tried; explicit markers are trusted as long as they are in
bounds. The frame-ratio detector always answers.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from swing_scorer.domain.scoring_config import SegmentationConfig
from swing_scorer.domain.swing import ContactConfidence, ContactDetection, ContactMethod, SwingFrames
from swing_scorer.pipeline._numeric import magnitude, round_score
from swing_scorer.pipeline.protocols import ContactDetector

logger = logging.getLogger(__name__)


def first_finite(values: np.ndarray | None) -> float | None:
    if values is None:
        return None
    finite = values[np.isfinite(values)]
    return float(finite[0]) if finite.size else None


@dataclass(frozen=True)
class ExplicitFrameDetector:
    method: ContactMethod = ContactMethod.EXPLICIT_FRAME
    confidence: ContactConfidence = ContactConfidence.EXPLICIT
    check_plausibility: bool = False

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        value = first_finite(frames.markers.get("contact_frame"))
        if value is None:
            return None
        frame = int(value)
        return frame if 0 < frame < frames.n else None


@dataclass(frozen=True)
class TimeToContactDetector:
    method: ContactMethod = ContactMethod.TIME_TO_CONTACT
    confidence: ContactConfidence = ContactConfidence.EXPLICIT
    check_plausibility: bool = False

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        ttc = frames.markers.get("time_to_contact")
        if ttc is None or not np.isfinite(ttc).any():
            return None
        distance = np.where(np.isfinite(ttc), np.abs(ttc), np.inf)
        return int(np.argmin(distance))


@dataclass(frozen=True)
class HandDecelDetector:
    method: ContactMethod = ContactMethod.HAND_DECEL
    confidence: ContactConfidence = ContactConfidence.HIGH
    check_plausibility: bool = True

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        axes = [frames.channels.get(f"hand_vel_{axis}") for axis in ("x", "y", "z")]
        if any(a is None for a in axes):
            return None
        speed = magnitude(*axes)  # type: ignore[arg-type]
        start = min(max(frames.stride_frame, 0), frames.n - 1)
        peak = start + int(np.argmax(speed[start:]))
        peak_speed = float(speed[peak])
        if peak_speed <= 0:
            return None
        threshold = config.hand_decel_fraction * peak_speed
        stop = min(frames.n, peak + config.hand_decel_lookahead + 1)
        for i in range(peak + 1, stop):
            if speed[i] <= threshold:
                return i
        return peak


@dataclass(frozen=True)
class ChannelPeakDetector:
    channel: str
    method: ContactMethod
    confidence: ContactConfidence = ContactConfidence.HIGH
    check_plausibility: bool = True

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        values = frames.channels.get(self.channel)
        if values is None or values.size == 0 or float(np.max(values)) <= 0:
            return None
        return int(np.argmax(values))


@dataclass(frozen=True)
class MomentumPeakDetector:
    method: ContactMethod = ContactMethod.BAT_MOMENTUM_PEAK
    confidence: ContactConfidence = ContactConfidence.MEDIUM
    check_plausibility: bool = True

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        axes = [frames.channels.get(f"bat_mom_{axis}") for axis in ("x", "y", "z")]
        if any(a is None for a in axes):
            return None
        mag = magnitude(*axes)  # type: ignore[arg-type]
        if mag.size == 0 or float(np.max(mag)) <= 0:
            return None
        return int(np.argmax(mag))


@dataclass(frozen=True)
class TorsoPeakDetector:
    method: ContactMethod = ContactMethod.TORSO_PEAK
    confidence: ContactConfidence = ContactConfidence.LOW
    check_plausibility: bool = True

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        torso = frames.channels.get("torso_rot")
        if torso is None:
            return None
        rotation = np.abs(np.nan_to_num(torso))
        if rotation.size == 0 or float(np.max(rotation)) <= 0:
            return None
        peak_frame = int(np.argmax(rotation))
        return min(frames.n - 1, round_score(peak_frame * config.torso_nudge))


@dataclass(frozen=True)
class FrameRatioDetector:
    method: ContactMethod = ContactMethod.FRAME_RATIO
    confidence: ContactConfidence = ContactConfidence.LOWEST
    check_plausibility: bool = False

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None:
        return min(frames.n - 1, int(math.floor(config.fallback_contact_fraction * frames.n)))


DEFAULT_CASCADE: tuple[ContactDetector, ...] = (
    ExplicitFrameDetector(),
    TimeToContactDetector(),
    HandDecelDetector(),
    ChannelPeakDetector("bat_ke", ContactMethod.BAT_KE_PEAK),
    ChannelPeakDetector("total_ke", ContactMethod.TOTAL_KE_PEAK),
    MomentumPeakDetector(),
    TorsoPeakDetector(),
    FrameRatioDetector(),
)


def detect_contact(
    frames: SwingFrames,
    config: SegmentationConfig,
    cascade: Sequence[ContactDetector] = DEFAULT_CASCADE,
) -> ContactDetection:
    """Run the cascade and return the first plausible contact frame."""
    floor = config.plausibility_fraction * frames.n
    rejected: list[ContactMethod] = []
    for detector in cascade:
        candidate = detector.detect(frames, config)
        if candidate is None:
            continue
        if detector.check_plausibility and candidate < floor:
            logger.debug("Rejected %s contact at frame %d (before frame %.1f)", detector.method, candidate, floor)
            rejected.append(detector.method)
            continue
        return ContactDetection(
            frame=candidate,
            method=detector.method,
            confidence=detector.confidence,
            rejected=tuple(rejected),
        )
    fallback = FrameRatioDetector()
    return ContactDetection(
        frame=fallback.detect(frames, config) or 0,
        method=fallback.method,
        confidence=fallback.confidence,
        rejected=tuple(rejected),
    )
