"""Synthetic session builders.

Energy channels are Gaussian bumps and rotation channels are smoothed
steps, so every peak lands on a known frame. Frames are 240 Hz, so twenty
frames is 83.3 ms.
"""

import math
from typing import Any

from swing_scorer.domain.frames import TableKind
from swing_scorer.domain.scoring_config import SegmentationConfig
from swing_scorer.domain.sensor import SensorSwing
from swing_scorer.domain.swing import Swing
from swing_scorer.pipeline.normalizer import normalize_frames
from swing_scorer.pipeline.segmenter import segment_session

FRAME_RATE = 240.0
FRAMES = 100
CONTACT = 70
WIDTH = 8.0


def bump(i: int, center: float, peak: float, width: float = WIDTH) -> float:
    return peak * math.exp(-(((i - center) / width) ** 2))


def step(i: int, center: float, amplitude: float, base: float = 0.0, width: float = WIDTH) -> float:
    """Smoothed step whose per-frame change is largest arriving at ``center``."""
    return base + amplitude * (1 + math.erf((i - center + 0.5) / width)) / 2


def energy_rows(
    swing_id: str = "s1",
    *,
    frames: int = FRAMES,
    contact: int = CONTACT,
    legs_frame: int = 50,
    torso_frame: int = 58,
    arms_frame: int = 64,
    legs: float = 300.0,
    torso: float = 250.0,
    arms: float = 200.0,
    bat: float | None = 200.0,
    total: float = 450.0,
) -> list[dict[str, Any]]:
    """One swing of momentum-energy export rows.

    Bat and total energy share one shape peaking at ``contact``, so bat
    efficiency is exactly ``bat / total * 100``.
    """
    rows: list[dict[str, Any]] = []
    for i in range(frames):
        row: dict[str, Any] = {
            "org_movement_id": swing_id,
            "time": i / FRAME_RATE,
            "legs_kinetic_energy": bump(i, legs_frame, legs),
            "torso_kinetic_energy": bump(i, torso_frame, torso),
            "arms_kinetic_energy": bump(i, arms_frame, arms),
            "total_kinetic_energy": bump(i, contact, total),
        }
        if bat is not None:
            row["bat_kinetic_energy"] = bump(i, contact, bat)
        rows.append(row)
    return rows


def kinematic_rows(
    swing_id: str = "s1",
    *,
    frames: int = FRAMES,
    contact: int = CONTACT,
    pelvis_frame: int = 50,
    torso_frame: int = 58,
    pelvis_amplitude: float = 40.0,
    torso_amplitude: float = 50.0,
    hand_velocity: bool = True,
) -> list[dict[str, Any]]:
    """One swing of inverse-kinematics export rows for a right-handed hitter.

    The hand-speed bump peaks three frames before ``contact`` and falls
    below 88% of its peak exactly at ``contact``.
    """
    rows: list[dict[str, Any]] = []
    for i in range(frames):
        row: dict[str, Any] = {
            "org_movement_id": swing_id,
            "time": i / FRAME_RATE,
            "pelvis_rot": step(i, pelvis_frame, pelvis_amplitude),
            "torso_rot": step(i, torso_frame, torso_amplitude),
            "pelvis_side": bump(i, 45, 20.0),
            "left_knee": 40 - step(i, 60, 25.0),
            "right_knee": bump(i, 62, 55.0, width=12),
            "left_elbow": bump(i, 60, 70.0, width=12),
            "right_elbow": step(i, 66, 60.0, base=90.0),
            "right_hip_flex": bump(i, 60, 45.0, width=12),
            "right_hip_add": bump(i, 58, 30.0, width=12),
            "right_hip_rot": bump(i, 56, 40.0, width=12),
            "right_ankle_inv": bump(i, 64, 25.0, width=12),
            "right_ankle_flex": bump(i, 66, 35.0, width=12),
        }
        if hand_velocity:
            row["hand_vel_x"] = bump(i, contact - 3, 20.0)
            row["hand_vel_y"] = 0.0
            row["hand_vel_z"] = 0.0
        rows.append(row)
    return rows


def session_rows(builder: Any, count: int, **overrides: Any) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for n in range(count):
        rows.extend(builder(f"s{n + 1}", **overrides))
    return rows


def segment_rows(
    kinematics: list[dict[str, Any]] | None = None,
    energy: list[dict[str, Any]] | None = None,
    config: SegmentationConfig | None = None,
) -> tuple[Swing, ...]:
    config = config or SegmentationConfig()
    kin = normalize_frames(kinematics, TableKind.KINEMATICS) if kinematics is not None else None
    eng = normalize_frames(energy, TableKind.ENERGY) if energy is not None else None
    return segment_session(kin, eng, config).swings


def sensor_swings(
    count: int,
    *,
    bat: float = 65.0,
    hand: float = 26.0,
    timing: float = 150.0,
    spread: float = 0.0,
) -> list[SensorSwing]:
    """Sensor swings alternating around the given values by ``spread``."""
    swings: list[SensorSwing] = []
    for n in range(count):
        sign = 1 if n % 2 == 0 else -1
        b = bat + sign * spread
        swings.append(
            SensorSwing(
                bat_speed_mph=b,
                hand_speed_mph=hand,
                trigger_to_impact_ms=timing + sign * spread * 2,
                attack_angle_deg=10.0 + sign * spread,
                attack_direction_deg=sign * spread,
                hand_to_bat_ratio=round(b / hand, 3),
                swing_id=f"s{n + 1}",
            )
        )
    return swings

