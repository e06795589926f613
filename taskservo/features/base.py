"""
Feature Capability Contract
===========================
Every feature handed to the servo MUST implement this interface.

A feature stores a value vector ``s`` of ``dim_s`` components. Callers pick
the components that take part in the task with a bitmask: bit ``i`` of
``select`` keeps component ``i``.
"""

import copy
import numpy as np
from abc import ABC, abstractmethod
from typing import List


FEATURE_ALL = 0xFFFF


def selected_rows(select: int, dim_s: int) -> List[int]:
    """Indices of the components of a ``dim_s`` feature kept by ``select``."""
    return [i for i in range(dim_s) if (select >> i) & 1]


class BasicFeature(ABC):
    """
    Abstract base class for task features.

    Subclasses provide the interaction matrix; value storage, selection,
    error, duplication and release are shared.
    """

    def __init__(self, dim_s: int):
        self.dim_s = dim_s
        self.s = np.zeros(dim_s)
        self.released = False

    def dimension(self, select: int = FEATURE_ALL) -> int:
        """Number of components kept by ``select``."""
        return len(selected_rows(select, self.dim_s))

    def get_s(self) -> np.ndarray:
        """Raw feature value (all components)."""
        return self.s.copy()

    def init(self) -> None:
        """Reset the feature value to zero."""
        self.s = np.zeros(self.dim_s)

    @abstractmethod
    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        """
        Interaction matrix of the selected components.

        Returns:
            Matrix (dimension(select), 6)
        """
        raise NotImplementedError

    def error(self, desired: "BasicFeature", select: int = FEATURE_ALL) -> np.ndarray:
        """
        Error s - s* on the selected components.

        Args:
            desired: Desired counterpart of this feature
            select: Component selection mask

        Returns:
            Error vector (dimension(select),)
        """
        rows = selected_rows(select, self.dim_s)
        return self.s[rows] - desired.s[rows]

    def duplicate(self) -> "BasicFeature":
        """Deep copy with the same dynamic type."""
        twin = copy.deepcopy(self)
        twin.released = False
        return twin

    def release(self) -> None:
        """Called once by the owner that created this feature."""
        self.released = True

    def describe(self, select: int = FEATURE_ALL) -> str:
        """One-line description of the selected components."""
        rows = selected_rows(select, self.dim_s)
        values = " ".join(f"s[{i}]={self.s[i]:.6g}" for i in rows)
        return f"{type(self).__name__}: {values}"
