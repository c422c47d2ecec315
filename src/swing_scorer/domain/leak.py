from dataclasses import dataclass
from enum import StrEnum


class LeakType(StrEnum):
    CLEAN_TRANSFER = "clean_transfer"
    EARLY_BACK_LEG_RELEASE = "early_back_leg_release"
    LATE_LEAD_LEG_ACCEPTANCE = "late_lead_leg_acceptance"
    VERTICAL_PUSH = "vertical_push"
    GLIDE_WITHOUT_CAPTURE = "glide_without_capture"
    LATE_ENGINE = "late_engine"
    CORE_DISCONNECT = "core_disconnect"
    NO_BAT_DELIVERY = "no_bat_delivery"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LeakPattern:
    leak_type: LeakType
    caption: str
    training_focus: str


@dataclass(frozen=True)
class LeakResult:
    leak_type: LeakType
    caption: str
    training_focus: str
    matched_rule: str | None = None
    message: str = ""

    @property
    def is_unknown(self) -> bool:
        return self.leak_type is LeakType.UNKNOWN
