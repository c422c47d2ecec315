import numpy as np
import pytest

from swing_scorer.pipeline.units import (
    RAD_TO_DEG,
    DegreesPassthrough,
    RadiansHeuristic,
    RadiansToDegrees,
    converter_for,
)


class TestRadiansHeuristic:
    def test_small_values_are_converted(self) -> None:
        values, converted = RadiansHeuristic().convert(np.array([0.0, 1.5, -3.0]))
        assert converted
        assert values.tolist() == pytest.approx([0.0, 1.5 * RAD_TO_DEG, -3.0 * RAD_TO_DEG])

    def test_degree_values_pass_through(self) -> None:
        values, converted = RadiansHeuristic().convert(np.array([10.0, 45.0]))
        assert not converted
        assert values.tolist() == [10.0, 45.0]

    def test_all_zero_is_not_converted(self) -> None:
        _, converted = RadiansHeuristic().convert(np.zeros(5))
        assert not converted

    def test_threshold_is_configurable(self) -> None:
        _, converted = RadiansHeuristic(threshold=20.0).convert(np.array([10.0]))
        assert converted


class TestConverterFor:
    def test_known_units(self) -> None:
        assert isinstance(converter_for("auto"), RadiansHeuristic)
        assert isinstance(converter_for("degrees"), DegreesPassthrough)
        assert isinstance(converter_for("radians"), RadiansToDegrees)

    def test_forced_radians(self) -> None:
        values, converted = converter_for("radians").convert(np.array([90.0]))
        assert converted
        assert values[0] == pytest.approx(90.0 * RAD_TO_DEG)

    def test_unknown_units(self) -> None:
        with pytest.raises(ValueError, match="angle_units"):
            converter_for("gradians")
