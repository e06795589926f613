"""
Stacked Vector/Matrix Assembler
===============================
Concatenates per-feature blocks of variable row count into one container.

The final row count is not known before the loop, so storage grows on the
fly: capacity starts at the caller's hint (the previous size, or 1 row)
and doubles whenever the next block would overflow. That costs
O(log n) reallocations and O(n) total copying. After the pass the
container is shrunk to the exact cursor length.
"""

import numpy as np
from typing import Callable, Optional, Sequence

from .exceptions import NoFeatureError, NumericError


class GrowableStack:
    """
    Row-stacking buffer with amortized doubling growth.

    Stores a 1-D vector when ``cols`` is None, otherwise a (rows, cols) matrix.
    """

    def __init__(self, cols: Optional[int] = None, capacity: int = 1):
        """
        Args:
            cols: Column count for matrix blocks, None for vector blocks
            capacity: Initial row capacity (values below 1 are raised to 1)
        """
        self.cols = cols
        self.capacity = max(int(capacity), 1)
        self.cursor = 0
        self.reallocations = 0
        self._buffer = self._allocate(self.capacity)

    def _allocate(self, rows: int) -> np.ndarray:
        if self.cols is None:
            return np.zeros(rows)
        return np.zeros((rows, self.cols))

    def _grow(self, needed: int):
        new_capacity = self.capacity
        while needed > new_capacity:
            new_capacity *= 2
        buffer = self._allocate(new_capacity)
        buffer[:self.cursor] = self._buffer[:self.cursor]
        self._buffer = buffer
        self.capacity = new_capacity
        self.reallocations += 1

    def append(self, block: np.ndarray):
        """Copy ``block`` after the rows already stored."""
        block = np.asarray(block, dtype=float)
        if self.cols is None:
            block = block.reshape(-1)
        elif block.ndim != 2 or block.shape[1] != self.cols:
            raise NumericError(
                f"block shape {block.shape} does not have {self.cols} columns"
            )

        rows = block.shape[0]
        if self.cursor + rows > self.capacity:
            self._grow(self.cursor + rows)

        self._buffer[self.cursor:self.cursor + rows] = block
        self.cursor += rows

    def finalize(self) -> np.ndarray:
        """Shrink to the stored rows and return the container."""
        if self.capacity != self.cursor:
            self._buffer = self._buffer[:self.cursor].copy()
            self.capacity = self.cursor
        return self._buffer


def stack_blocks(items: Sequence,
                 extract: Callable[..., np.ndarray],
                 cols: Optional[int] = None,
                 capacity_hint: int = 0,
                 what: str = "stack") -> np.ndarray:
    """
    Stack ``extract(item)`` for every item, preserving order.

    Args:
        items: Ordered items (feature bindings)
        extract: Returns the block for one item
        cols: Column count for matrix blocks, None for vectors
        capacity_hint: Row count of the previous build, 0 if none
        what: Name used in error messages

    Returns:
        Stacked vector (rows,) or matrix (rows, cols)

    Raises:
        NoFeatureError: If ``items`` is empty
    """
    if len(items) == 0:
        raise NoFeatureError(f"feature list empty, cannot compute {what}")

    stack = GrowableStack(cols=cols, capacity=capacity_hint or 1)
    for item in items:
        stack.append(extract(item))
    return stack.finalize()
