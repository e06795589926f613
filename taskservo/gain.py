"""
Control Gain Laws
=================
The control law scales its command by lambda(e), evaluated on the vector
being regulated.

Adaptive gain:
    lambda(x) = a * exp(-b * x) + c,   x = ||e||_inf
with
    a = lambda(0) - lambda(inf)
    b = lambda'(0) / a
    c = lambda(inf)

The gain is high near convergence (fast final approach) and low for large
errors (avoids velocity saturation at start-up).
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Union


@dataclass
class ConstantGain:
    """Gain independent of the error."""
    value: float = 1.0

    def __post_init__(self):
        if self.value < 0.0:
            raise ValueError(f"gain must be non-negative, got {self.value}")

    def __call__(self, e: np.ndarray = None) -> float:
        return self.value

    def to_dict(self) -> dict:
        return {'value': self.value}


@dataclass
class AdaptiveGain:
    """Exponentially decreasing gain as a function of the error magnitude."""
    gain_at_zero: float = 4.0
    gain_at_infinity: float = 0.4
    slope_at_zero: float = 30.0

    def __post_init__(self):
        if self.gain_at_zero < 0.0 or self.gain_at_infinity < 0.0 or self.slope_at_zero < 0.0:
            raise ValueError("adaptive gain parameters must be non-negative")
        if self.gain_at_zero < self.gain_at_infinity:
            raise ValueError(
                f"gain_at_zero ({self.gain_at_zero}) must be >= "
                f"gain_at_infinity ({self.gain_at_infinity})"
            )

        self.a = self.gain_at_zero - self.gain_at_infinity
        self.b = self.slope_at_zero / self.a if self.a > 0.0 else 0.0
        self.c = self.gain_at_infinity

    def value(self, x: float) -> float:
        """Gain for an error of infinity norm ``x``."""
        return self.a * np.exp(-self.b * x) + self.c

    def __call__(self, e: np.ndarray = None) -> float:
        if e is None or np.size(e) == 0:
            return self.gain_at_zero
        return float(self.value(np.max(np.abs(e))))

    def to_dict(self) -> dict:
        return {
            'gain_at_zero': self.gain_at_zero,
            'gain_at_infinity': self.gain_at_infinity,
            'slope_at_zero': self.slope_at_zero,
        }


GainLike = Union[float, int, Callable[[np.ndarray], float]]


def as_gain(gain: GainLike) -> Callable[[np.ndarray], float]:
    """Wrap a scalar into a ConstantGain; callables pass through."""
    if isinstance(gain, (int, float, np.floating, np.integer)):
        return ConstantGain(float(gain))
    if callable(gain):
        return gain
    raise ValueError(f"gain must be a number or a callable, got {type(gain).__name__}")
