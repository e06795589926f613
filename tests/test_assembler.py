"""
Stacked Vector/Matrix Assembler Tests
=====================================
"""

import pytest
import numpy as np

from taskservo.assembler import GrowableStack, stack_blocks
from taskservo.exceptions import NoFeatureError, NumericError


def test_doubling_growth_and_shrink():
    """Capacity doubles on overflow and is trimmed to the cursor."""
    stack = GrowableStack()
    assert stack.capacity == 1

    stack.append([1.0, 2.0])
    assert stack.capacity == 2
    stack.append([3.0, 4.0])
    assert stack.capacity == 4
    stack.append([5.0, 6.0])
    assert stack.capacity == 8
    assert stack.reallocations == 3

    out = stack.finalize()
    np.testing.assert_array_equal(out, [1, 2, 3, 4, 5, 6])
    assert stack.capacity == 6


def test_large_block_grows_in_one_reallocation():
    stack = GrowableStack()
    stack.append(np.arange(5.0))
    assert stack.capacity == 8
    assert stack.reallocations == 1
    assert stack.finalize().shape == (5,)


def test_capacity_hint_avoids_reallocation():
    """Rebuilding a container of unchanged size does not reallocate."""
    stack = GrowableStack(cols=6, capacity=4)
    stack.append(np.ones((2, 6)))
    stack.append(np.zeros((2, 6)))
    assert stack.reallocations == 0
    out = stack.finalize()
    assert out.shape == (4, 6)
    np.testing.assert_array_equal(out[:2], np.ones((2, 6)))


def test_matrix_blocks_must_have_six_columns():
    stack = GrowableStack(cols=6)
    with pytest.raises(NumericError):
        stack.append(np.ones((2, 5)))


def test_stack_blocks_preserves_order():
    items = [np.array([1.0]), np.array([2.0, 3.0]), np.array([4.0])]
    out = stack_blocks(items, lambda x: x)
    np.testing.assert_array_equal(out, [1, 2, 3, 4])


def test_stack_blocks_empty_list():
    with pytest.raises(NoFeatureError):
        stack_blocks([], lambda x: x, what="Ls")
