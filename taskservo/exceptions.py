"""
Servo Error Taxonomy
====================
Every fault raised by the control law is a ServoError. None of them are
retried or swallowed inside the engine; the current cycle is aborted.
"""


class ServoError(RuntimeError):
    """Base class for control law faults."""


class NoFeatureError(ServoError):
    """Feature list empty where at least one feature is required."""


class ServoConfigurationError(ServoError):
    """Servo mode unset, or a mandatory twist/Jacobian was never supplied."""


class NoDegreesOfFreedomError(ServoError):
    """Secondary task requested while no null-space projector is available."""


class NumericError(ServoError):
    """Linear-algebra failure (singular decomposition, dimension mismatch)."""


class LifecycleError(ServoError):
    """Task used after teardown, or discarded without teardown."""


class StaleInputWarning(UserWarning):
    """A twist or Jacobian that must be refreshed every cycle was reused."""
