"""
Feature Registry
================
Ordered (current, desired, selection) bindings of a servo task.

Rule: the registry releases only the features it created itself. A desired
feature synthesised by ``add_feature(current)`` lives in the registry arena
and is released by ``teardown()``; features supplied by the caller are held
by reference and never released here.
"""

from dataclasses import dataclass
from typing import List, Optional

from .exceptions import LifecycleError
from .features.base import BasicFeature, FEATURE_ALL


@dataclass
class FeatureBinding:
    """One entry of the task: current feature, its target, and the selection."""
    current: BasicFeature
    desired: BasicFeature
    select: int = FEATURE_ALL
    owns_desired: bool = False

    def dimension(self) -> int:
        return self.current.dimension(self.select)


class FeatureRegistry:
    """
    Registry of task features.

    Bindings keep insertion order; that order is the row order of every
    stacked vector and matrix built from the registry.
    """

    def __init__(self):
        self.bindings: List[FeatureBinding] = []
        self._arena: List[BasicFeature] = []
        self._dim_task = 0
        self.torn_down = False

    def _check_alive(self):
        if self.torn_down:
            raise LifecycleError("feature registry used after teardown")

    def add_feature(self, current: BasicFeature,
                    desired: Optional[BasicFeature] = None,
                    select: int = FEATURE_ALL) -> FeatureBinding:
        """
        Append a binding.

        Args:
            current: Current feature (caller owned)
            desired: Desired feature (caller owned); if None a zero-valued
                duplicate of ``current`` is created and owned by the registry
            select: Component selection mask

        Returns:
            The new binding
        """
        self._check_alive()

        owns_desired = False
        if desired is None:
            desired = current.duplicate()
            desired.init()
            self._arena.append(desired)
            owns_desired = True

        binding = FeatureBinding(current=current, desired=desired,
                                 select=select, owns_desired=owns_desired)
        self.bindings.append(binding)
        return binding

    def dimension(self) -> int:
        """Sum of the selected dimensions of the current features."""
        self._check_alive()
        self._dim_task = sum(b.dimension() for b in self.bindings)
        return self._dim_task

    @property
    def current_features(self) -> List[BasicFeature]:
        return [b.current for b in self.bindings]

    @property
    def desired_features(self) -> List[BasicFeature]:
        return [b.desired for b in self.bindings]

    def owned_features(self) -> List[BasicFeature]:
        """Features the registry will release on teardown."""
        return list(self._arena)

    def teardown(self) -> None:
        """
        Release every registry-owned feature exactly once and enter the
        terminal state. Calling it again does nothing.
        """
        if self.torn_down:
            return

        for binding in self.bindings:
            if binding.owns_desired:
                binding.desired.release()

        self.bindings.clear()
        self._arena.clear()
        self._dim_task = 0
        self.torn_down = True

    def __len__(self) -> int:
        return len(self.bindings)

    def __iter__(self):
        self._check_alive()
        return iter(self.bindings)
