import logging

import numpy as np

from swing_scorer.domain.features import EnergyFeatures, KinematicFeatures, SwingFeatures
from swing_scorer.domain.frames import Handedness
from swing_scorer.domain.scoring_config import ExtractionConfig
from swing_scorer.domain.swing import Swing, SwingTrace
from swing_scorer.pipeline._numeric import angular_velocity, nearest_rank_percentile
from swing_scorer.pipeline.protocols import UnitConverter
from swing_scorer.pipeline.units import converter_for

logger = logging.getLogger(__name__)

_KINEMATIC_CHANNELS = ("pelvis_rot", "torso_rot", "left_knee", "right_knee", "left_elbow", "right_elbow")
_ENERGY_CHANNELS = ("legs_ke", "torso_ke", "arms_ke", "larm_ke", "rarm_ke", "bat_ke", "total_ke")


def lead_side(handedness: Handedness) -> str:
    return "left" if handedness is Handedness.RIGHT else "right"


def rear_side(handedness: Handedness) -> str:
    return "right" if handedness is Handedness.RIGHT else "left"


def _elapsed_ms(trace: SwingTrace, frame: int) -> float:
    return float((trace.time[frame] - trace.time[trace.contact_frame]) * 1000.0)


def _angle(trace: SwingTrace, name: str, converter: UnitConverter) -> tuple[np.ndarray | None, bool]:
    values = trace.channel(name)
    if values is None:
        return None, False
    return converter.convert(values)


def _velocity_peak(angles: np.ndarray, trace: SwingTrace) -> tuple[float, int | None]:
    """Peak |velocity| inside the window and the frame it arrives at."""
    window = trace.window
    velocity = angular_velocity(angles[window], trace.time[window])
    if velocity.size == 0:
        return 0.0, None
    idx = int(np.argmax(np.abs(velocity)))
    return float(abs(velocity[idx])), int(window[idx + 1])


def _at_contact(values: np.ndarray, trace: SwingTrace) -> float:
    window = trace.window
    frame = int(np.clip(trace.contact_frame, window[0], window[-1]))
    return float(values[frame])


def extract_kinematics(
    trace: SwingTrace,
    handedness: Handedness,
    converter: UnitConverter,
) -> KinematicFeatures | None:
    if not any(trace.channel(name) is not None for name in _KINEMATIC_CHANNELS):
        return None

    converted = False
    pelvis, flag = _angle(trace, "pelvis_rot", converter)
    converted |= flag
    torso, flag = _angle(trace, "torso_rot", converter)
    converted |= flag
    lead_knee, flag = _angle(trace, f"{lead_side(handedness)}_knee", converter)
    converted |= flag
    lead_elbow, flag = _angle(trace, f"{lead_side(handedness)}_elbow", converter)
    converted |= flag
    rear_elbow, flag = _angle(trace, f"{rear_side(handedness)}_elbow", converter)
    converted |= flag

    contact_time = trace.time[trace.contact_frame]
    pelvis_velocity = pelvis_frame = torso_velocity = torso_frame = None
    if pelvis is not None:
        pelvis_velocity, pelvis_frame = _velocity_peak(pelvis, trace)
    if torso is not None:
        torso_velocity, torso_frame = _velocity_peak(torso, trace)

    x_factor_max = x_factor_rate = None
    if pelvis is not None and torso is not None:
        window = trace.window
        separation = np.abs(torso[window] - pelvis[window])
        x_factor_max = float(np.max(separation))
        rate = angular_velocity(separation, trace.time[window])
        x_factor_rate = float(np.max(np.abs(rate))) if rate.size else 0.0

    rear_elbow_rate = None
    if rear_elbow is not None:
        window = trace.window
        rate = angular_velocity(rear_elbow[window], trace.time[window])
        rear_elbow_rate = max(0.0, float(np.max(rate))) if rate.size else 0.0

    proper_sequence = None
    if pelvis_frame is not None and torso_frame is not None:
        proper_sequence = pelvis_frame < torso_frame

    return KinematicFeatures(
        pelvis_velocity=pelvis_velocity,
        torso_velocity=torso_velocity,
        x_factor_max=x_factor_max,
        x_factor_stretch_rate=x_factor_rate,
        lead_knee_at_contact=_at_contact(lead_knee, trace) if lead_knee is not None else None,
        lead_elbow_at_contact=_at_contact(lead_elbow, trace) if lead_elbow is not None else None,
        rear_elbow_ext_rate=rear_elbow_rate,
        proper_sequence=proper_sequence,
        pelvis_peak_ms=_elapsed_ms(trace, pelvis_frame) if pelvis_frame is not None else None,
        torso_peak_ms=_elapsed_ms(trace, torso_frame) if torso_frame is not None else None,
        pelvis_timing_ms=(
            float((contact_time - trace.time[pelvis_frame]) * 1000.0) if pelvis_frame is not None else None
        ),
        angles_converted=converted,
    )


def _peak_offset_ms(values: np.ndarray, trace: SwingTrace) -> float | None:
    """Offset of the channel peak from contact, searched from stride to the end."""
    span = values[trace.stride_frame :]
    if span.size == 0 or float(np.max(span)) <= 0:
        return None
    return _elapsed_ms(trace, trace.stride_frame + int(np.argmax(span)))


def _arms_series(trace: SwingTrace) -> np.ndarray | None:
    arms = trace.channel("arms_ke")
    larm = trace.channel("larm_ke")
    rarm = trace.channel("rarm_ke")
    split = larm + rarm if larm is not None and rarm is not None else None
    if arms is None:
        return split
    if split is None:
        return arms
    return np.where(arms == 0, split, arms)


def extract_energy(trace: SwingTrace, config: ExtractionConfig) -> EnergyFeatures | None:
    if not any(trace.channel(name) is not None for name in _ENERGY_CHANNELS):
        return None

    window = trace.window
    pct = config.energy_percentile

    def p(values: np.ndarray | None) -> float | None:
        return None if values is None else nearest_rank_percentile(values[window], pct)

    legs = trace.channel("legs_ke")
    torso = trace.channel("torso_ke")
    total = trace.channel("total_ke")
    arms = _arms_series(trace)

    legs95, torso95, arms95, total95 = p(legs), p(torso), p(arms), p(total)

    bat95 = None
    has_bat = False
    bat = trace.channel("bat_ke")
    if bat is not None:
        bat_w = bat[window]
        valid = (bat_w >= 0) & (bat_w < config.max_bat_ke)
        if total is not None:
            valid &= bat_w <= total[window]
        usable = bat_w[valid]
        has_bat = usable.size > 0 and float(np.max(usable)) > config.bat_ke_presence
        if has_bat:
            bat95 = nearest_rank_percentile(usable, pct)

    bat_efficiency = None
    if bat95 is not None and total95:
        bat_efficiency = bat95 / total95 * 100
    torso_to_arms = None
    if arms95 is not None and torso95:
        torso_to_arms = arms95 / torso95 * 100

    return EnergyFeatures(
        legs_ke=legs95,
        torso_ke=torso95,
        arms_ke=arms95,
        bat_ke=bat95,
        total_ke=total95,
        bat_efficiency=bat_efficiency,
        torso_to_arms=torso_to_arms,
        legs_peak_ms=_peak_offset_ms(legs, trace) if legs is not None else None,
        arms_peak_ms=_peak_offset_ms(arms, trace) if arms is not None else None,
        has_bat_ke=has_bat,
    )


def extract_features(
    swing: Swing,
    config: ExtractionConfig,
    handedness: Handedness = Handedness.RIGHT,
) -> SwingFeatures | None:
    """Compute the per-swing feature set, or ``None`` when nothing is usable."""
    converter = converter_for(config.angle_units, config.radians_threshold)
    kinematics = extract_kinematics(swing.kinematics, handedness, converter) if swing.kinematics else None
    energy = extract_energy(swing.energy, config) if swing.energy else None
    if kinematics is None and energy is None:
        logger.debug("Swing %s has no usable channels", swing.swing_id)
        return None
    return SwingFeatures(
        swing_id=swing.swing_id,
        contact_confidence=swing.contact_confidence,
        kinematics=kinematics,
        energy=energy,
    )
