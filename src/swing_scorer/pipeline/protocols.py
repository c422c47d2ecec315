from typing import Protocol

import numpy as np

from swing_scorer.domain.scoring_config import SegmentationConfig
from swing_scorer.domain.session import SessionMetrics
from swing_scorer.domain.swing import ContactConfidence, ContactMethod, SwingFrames


class UnitConverter(Protocol):
    def convert(self, values: np.ndarray) -> tuple[np.ndarray, bool]: ...


class ContactDetector(Protocol):
    @property
    def method(self) -> ContactMethod: ...

    @property
    def confidence(self) -> ContactConfidence: ...

    @property
    def check_plausibility(self) -> bool: ...

    def detect(self, frames: SwingFrames, config: SegmentationConfig) -> int | None: ...


class LeakPredicate(Protocol):
    def __call__(self, metrics: SessionMetrics) -> bool: ...
