"""Services built on top of the scoring pipeline."""

from swing_scorer.services.calibration import fit_athlete_model
from swing_scorer.services.report import to_dict, to_json
from swing_scorer.services.sensor_predictor import predict_from_sensor

__all__ = [
    "fit_athlete_model",
    "predict_from_sensor",
    "to_dict",
    "to_json",
]
