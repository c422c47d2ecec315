from dataclasses import dataclass
from enum import StrEnum

import pandas as pd


class TableKind(StrEnum):
    KINEMATICS = "kinematics"
    ENERGY = "energy"


class ParsePolicy(StrEnum):
    COERCE = "coerce"
    DROP = "drop"


class Handedness(StrEnum):
    RIGHT = "R"
    LEFT = "L"


SWING_ID = "swing_id"
TIME = "time"


@dataclass(frozen=True, eq=False)
class FrameTable:
    """Typed numeric frames for one export.

    ``frames`` always carries a string ``swing_id`` column and a float
    ``time`` column; every other column is a canonical channel name.
    """

    kind: TableKind
    frames: pd.DataFrame
    channels: frozenset[str]
    unrecognized_columns: tuple[str, ...] = ()
    coerced_cells: int = 0
    dropped_rows: int = 0
    synthesized_time: bool = False
    source_rows: int = 0
    skipped_ids: int = 0

    @property
    def is_empty(self) -> bool:
        return self.frames.empty

    def has(self, channel: str) -> bool:
        return channel in self.channels
