"""
Reference Feature Tests
=======================
"""

import pytest
import numpy as np

from taskservo.exceptions import NumericError
from taskservo.features import FeaturePoint, GenericFeature, FEATURE_ALL, selected_rows


def test_selected_rows():
    assert selected_rows(FEATURE_ALL, 3) == [0, 1, 2]
    assert selected_rows(0b101, 3) == [0, 2]
    assert selected_rows(0b1000, 3) == []


def test_point_interaction_matrix():
    """Interaction matrix of an image point at the principal point."""
    p = FeaturePoint(0.0, 0.0, 2.0)
    L = p.interaction()
    expected = np.array([
        [-0.5, 0.0, 0.0, 0.0, -1.0, 0.0],
        [0.0, -0.5, 0.0, 1.0, 0.0, 0.0],
    ])
    np.testing.assert_allclose(L, expected)

    Ly = p.interaction(FeaturePoint.SELECT_Y)
    assert Ly.shape == (1, 6)
    np.testing.assert_allclose(Ly[0], expected[1])


def test_point_off_axis():
    p = FeaturePoint(0.1, -0.2, 1.0)
    L = p.interaction()
    np.testing.assert_allclose(L[0], [-1.0, 0.0, 0.1, -0.02, -1.01, -0.2])
    np.testing.assert_allclose(L[1], [0.0, -1.0, -0.2, 1.04, 0.02, -0.1])


def test_point_requires_positive_depth():
    with pytest.raises(NumericError):
        FeaturePoint(0.0, 0.0, 0.0).interaction()


def test_point_error_and_selection():
    p = FeaturePoint(0.5, 0.25, 1.0)
    pd = FeaturePoint(0.1, 0.05, 1.0)
    np.testing.assert_allclose(p.error(pd), [0.4, 0.2])
    np.testing.assert_allclose(p.error(pd, FeaturePoint.SELECT_X), [0.4])
    assert p.dimension(FeaturePoint.SELECT_X) == 1


def test_duplicate_is_independent_copy():
    p = FeaturePoint(0.5, 0.25, 3.0)
    twin = p.duplicate()
    assert type(twin) is FeaturePoint
    assert twin is not p
    twin.init()
    np.testing.assert_array_equal(p.get_s(), [0.5, 0.25])
    np.testing.assert_array_equal(twin.get_s(), [0.0, 0.0])


def test_generic_feature_error_override():
    f = GenericFeature(2)
    f.set_s([1.0, 2.0])
    f.set_interaction(np.eye(2, 6))
    fd = f.duplicate()
    fd.init()
    np.testing.assert_allclose(f.error(fd), [1.0, 2.0])

    # e.g. angular error wrapped by the caller
    f.set_error([0.1, -0.1])
    np.testing.assert_allclose(f.error(fd, 0b10), [-0.1])


def test_generic_feature_validation():
    f = GenericFeature(2)
    with pytest.raises(ValueError):
        f.interaction()
    with pytest.raises(ValueError):
        f.set_s([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        f.set_interaction(np.eye(2, 5))


def test_describe_lists_selected_components():
    p = FeaturePoint(0.5, 0.25, 1.0)
    text = p.describe(FeaturePoint.SELECT_Y)
    assert "FeaturePoint" in text
    assert "s[1]=0.25" in text
    assert "s[0]" not in text
