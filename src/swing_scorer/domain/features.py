from dataclasses import dataclass, fields

from swing_scorer.domain.swing import ContactConfidence


@dataclass(frozen=True)
class KinematicFeatures:
    pelvis_velocity: float | None = None
    torso_velocity: float | None = None
    x_factor_max: float | None = None
    x_factor_stretch_rate: float | None = None
    lead_knee_at_contact: float | None = None
    lead_elbow_at_contact: float | None = None
    rear_elbow_ext_rate: float | None = None
    proper_sequence: bool | None = None
    pelvis_peak_ms: float | None = None
    torso_peak_ms: float | None = None
    pelvis_timing_ms: float | None = None
    angles_converted: bool = False


@dataclass(frozen=True)
class EnergyFeatures:
    legs_ke: float | None = None
    torso_ke: float | None = None
    arms_ke: float | None = None
    bat_ke: float | None = None
    total_ke: float | None = None
    bat_efficiency: float | None = None
    torso_to_arms: float | None = None
    legs_peak_ms: float | None = None
    arms_peak_ms: float | None = None
    has_bat_ke: bool = False


@dataclass(frozen=True)
class SwingFeatures:
    swing_id: str
    contact_confidence: ContactConfidence
    kinematics: KinematicFeatures | None = None
    energy: EnergyFeatures | None = None

    def values(self) -> dict[str, float]:
        """Flatten every available numeric feature into one mapping."""
        out: dict[str, float] = {}
        for block in (self.kinematics, self.energy):
            if block is None:
                continue
            for f in fields(block):
                value = getattr(block, f.name)
                if isinstance(value, bool) or value is None:
                    continue
                out[f.name] = float(value)
        return out
