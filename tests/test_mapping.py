import numpy as np
import pytest

from mandelview import CoordinateMapper, DegenerateRangeError, rescale


def test_rescale_endpoints_and_midpoint():
    assert rescale(0, 0, 800, -2.5, 1.0) == -2.5
    assert rescale(800, 0, 800, -2.5, 1.0) == 1.0
    assert rescale(400, 0, 800, -2.5, 1.0) == pytest.approx(-0.75)


def test_rescale_extrapolates_outside_source_range():
    assert rescale(-400, 0, 800, 0.0, 1.0) == pytest.approx(-0.5)
    assert rescale(1200, 0, 800, 0.0, 1.0) == pytest.approx(1.5)


def test_rescale_supports_reversed_destination():
    assert rescale(0.25, 0.0, 1.0, 10.0, 0.0) == pytest.approx(7.5)


def test_rescale_rejects_empty_source_range():
    with pytest.raises(DegenerateRangeError):
        rescale(1.0, 3.0, 3.0, 0.0, 1.0)


def test_degenerate_range_is_a_value_error():
    with pytest.raises(ValueError):
        rescale(1.0, 0.0, 0.0, 0.0, 1.0)


@pytest.mark.parametrize("value", [-7.3, 0.0, 0.1, 123.456, 1e6])
def test_rescale_round_trip(value):
    forward = rescale(value, -1.0, 3.0, -2.5, 1.0)
    assert rescale(forward, -2.5, 1.0, -1.0, 3.0) == pytest.approx(value, rel=1e-12, abs=1e-9)


def test_rescale_array_matches_scalar():
    values = np.arange(17, dtype=np.float64)
    mapped = rescale(values, 0.0, 17.0, -2.5, 1.0)
    assert [rescale(float(v), 0.0, 17.0, -2.5, 1.0) for v in values] == list(mapped)


def test_coordinate_mapper_inverse():
    mapper = CoordinateMapper(0, 640, -2.0, 2.0)
    assert mapper(320) == pytest.approx(0.0)
    assert mapper.inverse()(mapper(123.0)) == pytest.approx(123.0)


def test_coordinate_mapper_validates_ranges():
    with pytest.raises(DegenerateRangeError):
        CoordinateMapper(5, 5, 0, 1)
    with pytest.raises(DegenerateRangeError):
        CoordinateMapper(0, 1, 2, 2).inverse()
