from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum, StrEnum

import numpy as np


class ContactMethod(StrEnum):
    EXPLICIT_FRAME = "explicit_frame"
    TIME_TO_CONTACT = "time_to_contact"
    HAND_DECEL = "hand_decel"
    BAT_KE_PEAK = "bat_ke_peak"
    TOTAL_KE_PEAK = "total_ke_peak"
    BAT_MOMENTUM_PEAK = "bat_momentum_peak"
    TORSO_PEAK = "torso_peak"
    FRAME_RATIO = "frame_ratio"


class ContactConfidence(IntEnum):
    """Ordered so that a larger value is more trustworthy."""

    LOWEST = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    EXPLICIT = 5

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class ContactDetection:
    frame: int
    method: ContactMethod
    confidence: ContactConfidence
    rejected: tuple[ContactMethod, ...] = ()


@dataclass(frozen=True, eq=False)
class SwingTrace:
    """One swing as seen by one export, with its detected bounds.

    ``window`` holds the frame indices of the swing-phase window in
    ascending order.
    """

    channels: dict[str, np.ndarray]
    time: np.ndarray
    stride_frame: int
    contact: ContactDetection
    window: np.ndarray

    @property
    def frame_count(self) -> int:
        return len(self.time)

    @property
    def contact_frame(self) -> int:
        return self.contact.frame

    def channel(self, name: str) -> np.ndarray | None:
        return self.channels.get(name)


@dataclass(frozen=True, eq=False)
class Swing:
    swing_id: str
    kinematics: SwingTrace | None = None
    energy: SwingTrace | None = None

    @property
    def contact_confidence(self) -> ContactConfidence:
        traces = [t for t in (self.kinematics, self.energy) if t is not None]
        return min(t.contact.confidence for t in traces)


@dataclass(frozen=True)
class DiscardedSwing:
    swing_id: str
    kind: str
    reason: str


@dataclass(frozen=True)
class Segmentation:
    swings: tuple[Swing, ...]
    discarded: tuple[DiscardedSwing, ...] = ()


@dataclass(frozen=True, eq=False)
class SwingFrames:
    """The raw, time-ordered frames of one swing in one export."""

    channels: Mapping[str, np.ndarray]
    time: np.ndarray
    markers: Mapping[str, np.ndarray]
    stride_frame: int

    @property
    def n(self) -> int:
        return len(self.time)
