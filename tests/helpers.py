"""
Shared Test Doubles
===================
"""

import numpy as np

from taskservo.features import GenericFeature


class TrackedFeature(GenericFeature):
    """Generic feature that counts how many times its owner released it."""

    def __init__(self, dim_s: int):
        super().__init__(dim_s)
        self.release_count = 0

    def release(self) -> None:
        super().release()
        self.release_count += 1


def make_feature(values, L=None, cls=GenericFeature):
    """Generic feature with value ``values`` and interaction matrix ``L``."""
    values = np.asarray(values, dtype=float)
    feature = cls(values.shape[0])
    feature.set_s(values)
    if L is None:
        L = np.eye(values.shape[0], 6)
    feature.set_interaction(L)
    return feature
