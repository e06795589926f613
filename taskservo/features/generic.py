"""
Generic Feature
===============
Feature whose value, interaction matrix and (optionally) error are set
directly by the caller. Used for quantities that have no dedicated type.
"""

import numpy as np
from typing import Optional

from .base import BasicFeature, FEATURE_ALL, selected_rows


class GenericFeature(BasicFeature):
    """Caller-filled feature of arbitrary dimension."""

    def __init__(self, dim_s: int):
        super().__init__(dim_s)
        self.L: Optional[np.ndarray] = None
        self.err: Optional[np.ndarray] = None

    def set_s(self, values) -> None:
        values = np.asarray(values, dtype=float).reshape(-1)
        if values.shape != (self.dim_s,):
            raise ValueError(f"s must have {self.dim_s} components, got {values.shape[0]}")
        self.s = values

    def set_interaction(self, L) -> None:
        L = np.asarray(L, dtype=float)
        if L.shape != (self.dim_s, 6):
            raise ValueError(f"interaction matrix must be ({self.dim_s}, 6), got {L.shape}")
        self.L = L

    def set_error(self, err) -> None:
        """Override s - s* with a caller-computed error (all components)."""
        err = np.asarray(err, dtype=float).reshape(-1)
        if err.shape != (self.dim_s,):
            raise ValueError(f"error must have {self.dim_s} components, got {err.shape[0]}")
        self.err = err

    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        if self.L is None:
            raise ValueError("GenericFeature interaction matrix not set")
        return self.L[selected_rows(select, self.dim_s)]

    def error(self, desired: BasicFeature, select: int = FEATURE_ALL) -> np.ndarray:
        if self.err is not None:
            return self.err[selected_rows(select, self.dim_s)]
        return super().error(desired, select)

    def init(self) -> None:
        super().init()
        self.err = None
