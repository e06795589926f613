"""
Secondary Task Tests
====================
Null-space injection of a lower-priority objective.
"""

import pytest
import numpy as np

from taskservo import Servo, ServoMode, InversionType
from taskservo.exceptions import NoDegreesOfFreedomError, NumericError
from tests.helpers import make_feature


def _redundant_task(gain=1.0):
    """Task constraining 3 of the 6 camera DOF."""
    rng = np.random.default_rng(5)
    L = rng.standard_normal((3, 6))
    task = Servo(ServoMode.EYEINHAND_CAMERA, gain=gain)
    task.add_feature(make_feature(rng.standard_normal(3), L), make_feature(np.zeros(3), L))
    return task


def test_secondary_before_primary_fails():
    task = _redundant_task()
    with pytest.raises(NoDegreesOfFreedomError):
        task.secondary_task(np.ones(6))
    task.teardown()


def test_secondary_velocity_is_in_null_space():
    task = _redundant_task()
    task.compute_control_law()

    de2dt = np.array([0.3, -0.1, 0.2, 0.05, 0.0, -0.4])
    sec = task.secondary_task(de2dt)
    # does not disturb the primary task
    np.testing.assert_allclose(task.state.J1 @ sec, np.zeros(3), atol=1e-10)
    np.testing.assert_allclose(sec, task.null_space_projector @ de2dt)
    task.teardown()


def test_regulated_secondary_task():
    task = _redundant_task(gain=0.8)
    task.compute_control_law()

    e2 = np.array([1.0, 0.0, -1.0, 0.5, 0.5, 0.0])
    de2dt = np.array([0.0, 0.1, 0.0, 0.0, -0.2, 0.0])
    sec = task.secondary_task(de2dt, e2=e2)

    N = task.null_space_projector
    np.testing.assert_allclose(sec, -0.8 * N @ e2 + N @ de2dt)
    np.testing.assert_allclose(task.state.J1 @ sec, np.zeros(3), atol=1e-10)

    # projector complements W
    np.testing.assert_allclose(N + task.projector, np.eye(6), atol=1e-12)
    task.teardown()


def test_full_rank_leaves_no_degree_of_freedom():
    L = np.eye(6)
    with Servo(ServoMode.EYEINHAND_CAMERA) as task:
        task.add_feature(make_feature(np.ones(6), L))
        task.compute_control_law()
        with pytest.raises(NoDegreesOfFreedomError):
            task.secondary_task(np.ones(6))


def test_transpose_mode_has_no_projector():
    with Servo(ServoMode.EYEINHAND_CAMERA, inversion_type=InversionType.TRANSPOSE) as task:
        task.add_feature(make_feature([1.0, 1.0]))
        task.compute_control_law()
        with pytest.raises(NoDegreesOfFreedomError):
            task.secondary_task(np.ones(6))


def test_secondary_dimension_mismatch():
    task = _redundant_task()
    task.compute_control_law()
    with pytest.raises(NumericError):
        task.secondary_task(np.ones(7))
    with pytest.raises(NumericError):
        task.secondary_task(np.ones(6), e2=np.ones(5))
    task.teardown()


def test_combined_command_keeps_primary_error_dynamics():
    """Adding the secondary term leaves J1 @ v unchanged."""
    task = _redundant_task()
    v = task.compute_control_law()
    sec = task.secondary_task(np.arange(6.0))

    J1 = task.state.J1
    np.testing.assert_allclose(J1 @ (v + sec), J1 @ v, atol=1e-10)
    task.teardown()
