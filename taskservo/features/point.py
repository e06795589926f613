"""
2D Image Point Feature
======================
Normalized image coordinates (x, y) of a point at depth Z.

For a camera velocity v = [vx, vy, vz, wx, wy, wz]:
    [x_dot]   [ -1/Z   0    x/Z   x*y   -(1+x^2)   y ]
    [y_dot] = [  0   -1/Z   y/Z  1+y^2   -x*y     -x ] v
"""

import numpy as np

from .base import BasicFeature, FEATURE_ALL, selected_rows
from ..exceptions import NumericError


class FeaturePoint(BasicFeature):
    """Image point feature, s = (x, y)."""

    SELECT_X = 1 << 0
    SELECT_Y = 1 << 1

    def __init__(self, x: float = 0.0, y: float = 0.0, Z: float = 1.0):
        super().__init__(2)
        self.s = np.array([x, y], dtype=float)
        self.Z = Z

    def build_from(self, x: float, y: float, Z: float) -> None:
        self.s = np.array([x, y], dtype=float)
        self.Z = Z

    def init(self) -> None:
        super().init()
        self.Z = 1.0

    @property
    def x(self) -> float:
        return float(self.s[0])

    @property
    def y(self) -> float:
        return float(self.s[1])

    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        if self.Z <= 0.0:
            raise NumericError(f"point depth must be positive, got Z={self.Z}")

        x, y, Z = self.x, self.y, self.Z
        L = np.array([
            [-1.0 / Z, 0.0, x / Z, x * y, -(1.0 + x * x), y],
            [0.0, -1.0 / Z, y / Z, 1.0 + y * y, -x * y, -x],
        ])
        return L[selected_rows(select, self.dim_s)]

    def describe(self, select: int = FEATURE_ALL) -> str:
        return f"{super().describe(select)} Z={self.Z:.6g}"
