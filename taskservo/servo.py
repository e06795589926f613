"""
Visual Servoing Control Law
===========================
Computes, once per control cycle, the velocity command that drives the
current features s towards the desired features s*.

Control Law:
    J1 = sign * L * cVa * aJe
    e1 = W * J1^+ * (s - s*)        (W = I when rank J1 = 6)
    e  = -lambda(e1) * e1

W projects onto the row space of J1. When the primary task leaves degrees
of freedom unconstrained, ``secondary_task`` injects a lower-priority
motion through the complementary projector I - W.

Call order per cycle:
    1. set the twists/Jacobians the mode consumes (set_cVe, set_eJe, ...)
    2. compute_control_law()
    3. optionally secondary_task(...) and add it to the command

Every task MUST be torn down explicitly (``teardown()`` or a ``with`` block).
"""

import sys
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TextIO

from .assembler import stack_blocks
from .audit.trace_logger import ServoTraceLogger
from .exceptions import (
    LifecycleError,
    NoDegreesOfFreedomError,
    NumericError,
    ServoConfigurationError,
    ServoError,
)
from .features.base import BasicFeature, FEATURE_ALL
from .frames import FrameConfiguration, ServoMode
from .gain import GainLike, as_gain
from .linalg import pseudo_inverse
from .registry import FeatureBinding, FeatureRegistry


class InteractionMatrixType(Enum):
    """Features the interaction matrix is built from."""
    CURRENT = "current"
    DESIRED = "desired"
    MEAN = "mean"


class InversionType(Enum):
    """How the task Jacobian is inverted."""
    PSEUDO_INVERSE = "pseudo_inverse"
    TRANSPOSE = "transpose"


class PrintLevel(Enum):
    ALL = "all"
    MINIMUM = "minimum"


@dataclass
class TaskState:
    """Per-cycle quantities, recomputed by the control law."""
    L: np.ndarray = field(default_factory=lambda: np.zeros((0, 6)))
    error: np.ndarray = field(default_factory=lambda: np.zeros(0))
    s: np.ndarray = field(default_factory=lambda: np.zeros(0))
    s_star: np.ndarray = field(default_factory=lambda: np.zeros(0))
    J1: Optional[np.ndarray] = None
    J1p: Optional[np.ndarray] = None
    rank: Optional[int] = None
    singular_values: Optional[np.ndarray] = None
    im_J1: Optional[np.ndarray] = None
    im_J1t: Optional[np.ndarray] = None
    W: Optional[np.ndarray] = None           # row-space projector of J1
    I_WpW: Optional[np.ndarray] = None       # null-space projector I - W
    e1: Optional[np.ndarray] = None
    e: Optional[np.ndarray] = None
    dim_task: int = 0
    interaction_computed: bool = False
    error_computed: bool = False
    cycle: int = 0


class Servo:
    """
    Visual servoing task.

    Owns the feature registry, the frame/Jacobian configuration and the
    cached task state. Not thread-safe: one call per control tick.
    """

    def __init__(
        self,
        mode: ServoMode = ServoMode.UNINITIALIZED,
        gain: GainLike = 1.0,
        interaction_matrix_type: InteractionMatrixType = InteractionMatrixType.DESIRED,
        inversion_type: InversionType = InversionType.PSEUDO_INVERSE,
        rank_threshold: float = 1e-6,
        verbose: bool = False,
        trace_logger: Optional[ServoTraceLogger] = None,
        trace_path: Optional[str] = None,
    ):
        """
        Initialize servo task.

        Args:
            mode: Servo configuration
            gain: Constant gain or callable lambda(e)
            interaction_matrix_type: CURRENT, DESIRED or MEAN
            inversion_type: PSEUDO_INVERSE or TRANSPOSE
            rank_threshold: Relative singular value cutoff for the rank of J1
            verbose: Print [SERVO] trace lines
            trace_logger: External cycle logger (not closed by teardown)
            trace_path: Open a cycle logger at this path (closed by teardown)
        """
        self.registry = FeatureRegistry()
        self.verbose = verbose
        self.frames = FrameConfiguration(mode, verbose=verbose)
        self.gain = as_gain(gain)
        self.interaction_matrix_type = interaction_matrix_type
        self.inversion_type = inversion_type
        self.rank_threshold = rank_threshold
        self.state = TaskState()

        # First-cycle validation gate, per task
        self._configuration_checked = False

        self._owns_trace_logger = trace_logger is None and trace_path is not None
        self.trace_logger = ServoTraceLogger(trace_path) if self._owns_trace_logger else trace_logger

        # Teardown is only enforced on tasks handed back to the caller
        self._constructed = True

    def _trace(self, message: str):
        if self.verbose:
            print(f"[SERVO] {message}")

    def _check_alive(self):
        if self.registry.torn_down:
            raise LifecycleError("servo task used after teardown")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def teardown(self) -> None:
        """Release registry-owned features. Safe to call more than once."""
        if self.registry.torn_down:
            return
        self.registry.teardown()
        if self._owns_trace_logger and self.trace_logger is not None:
            self.trace_logger.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.teardown()

    def __del__(self):
        if not getattr(self, "_constructed", False):
            return
        if not self.registry.torn_down:
            print("[SERVO] --- You should explicitly call Servo.teardown() ---")
            raise LifecycleError("Task was not torn down properly")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def mode(self) -> ServoMode:
        return self.frames.mode

    def set_servo(self, mode: ServoMode) -> None:
        self._check_alive()
        self.frames.set_servo(mode)

    def set_lambda(self, gain: GainLike) -> None:
        self.gain = as_gain(gain)

    def set_interaction_matrix_type(self, interaction_matrix_type: InteractionMatrixType,
                                    inversion_type: Optional[InversionType] = None) -> None:
        self.interaction_matrix_type = interaction_matrix_type
        if inversion_type is not None:
            self.inversion_type = inversion_type

    def set_cVe(self, cVe) -> None:
        self.frames.set_slot("cVe", cVe)

    def set_cVf(self, cVf) -> None:
        self.frames.set_slot("cVf", cVf)

    def set_fVe(self, fVe) -> None:
        self.frames.set_slot("fVe", fVe)

    def set_eJe(self, eJe) -> None:
        self.frames.set_slot("eJe", eJe)

    def set_fJe(self, fJe) -> None:
        self.frames.set_slot("fJe", fJe)

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def add_feature(self, current: BasicFeature,
                    desired: Optional[BasicFeature] = None,
                    select: int = FEATURE_ALL) -> FeatureBinding:
        """
        Add a feature to the task.

        Without ``desired`` the task creates a zero-valued duplicate of
        ``current`` and releases it on teardown.
        """
        return self.registry.add_feature(current, desired, select)

    def get_dimension(self) -> int:
        """Task dimension: sum of the selected feature dimensions."""
        self.state.dim_task = self.registry.dimension()
        return self.state.dim_task

    # ------------------------------------------------------------------
    # Interaction matrix and error
    # ------------------------------------------------------------------

    def _stack_interaction(self, desired: bool) -> np.ndarray:
        def extract(b: FeatureBinding) -> np.ndarray:
            feature = b.desired if desired else b.current
            return feature.interaction(b.select)

        return stack_blocks(self.registry.bindings, extract, cols=6,
                            capacity_hint=self.state.L.shape[0], what="Ls")

    def compute_interaction_matrix(self) -> np.ndarray:
        """
        Build the interaction matrix L (dim_task, 6) of the feature set.

        Raises:
            NoFeatureError: If no feature was added
        """
        self._check_alive()

        if self.interaction_matrix_type == InteractionMatrixType.CURRENT:
            L = self._stack_interaction(desired=False)
        elif self.interaction_matrix_type == InteractionMatrixType.DESIRED:
            L = self._stack_interaction(desired=True)
        else:
            L_current = self._stack_interaction(desired=False)
            L_desired = self._stack_interaction(desired=True)
            if L_current.shape != L_desired.shape:
                raise NumericError(
                    f"current Ls {L_current.shape} and desired Ls {L_desired.shape} differ"
                )
            L = (L_current + L_desired) / 2.0

        self.state.L = L
        self.state.dim_task = L.shape[0]
        self.state.interaction_computed = True
        return L.copy()

    def compute_error(self) -> np.ndarray:
        """
        Build the error vector s - s* and the raw values s and s*.

        Raises:
            NoFeatureError: If no feature was added
        """
        self._check_alive()
        bindings = self.registry.bindings
        state = self.state

        state.s = stack_blocks(bindings, lambda b: b.current.get_s(),
                               capacity_hint=state.s.shape[0], what="s")
        state.s_star = stack_blocks(bindings, lambda b: b.desired.get_s(),
                                    capacity_hint=state.s_star.shape[0], what="s*")
        state.error = stack_blocks(bindings, lambda b: b.current.error(b.desired, b.select),
                                   capacity_hint=state.error.shape[0], what="error")

        state.dim_task = state.error.shape[0]
        state.error_computed = True
        return state.error.copy()

    # ------------------------------------------------------------------
    # Control law
    # ------------------------------------------------------------------

    def compute_control_law(self) -> np.ndarray:
        """
        Compute the velocity command e = -lambda(e1) * e1.

        Returns:
            Command (n,), n = columns of the Jacobian consumed by the mode

        Raises:
            ServoConfigurationError: Mode unset or mandatory input never set
            NoFeatureError: No feature in the task
            NumericError: Inconsistent dimensions or failed decomposition
        """
        self._check_alive()
        state = self.state
        state.W = None
        state.I_WpW = None

        try:
            if not self._configuration_checked and not self.frames.test_initialization():
                self._trace("All the matrices are not correctly initialized")
                raise ServoConfigurationError(
                    "Cannot compute control law: all the matrices are not correctly initialized"
                )
            if not self.frames.test_updated(state.cycle + 1):
                self._trace("All the matrices are not correctly updated")

            cVa, aJe = self.frames.consume()

            L = self.compute_interaction_matrix()
            error = self.compute_error()
            if error.shape[0] != L.shape[0]:
                raise NumericError(
                    f"error has {error.shape[0]} rows but Ls has {L.shape[0]}"
                )

            try:
                J1 = self.frames.sign * (L @ cVa @ aJe)
            except ValueError as e:
                raise NumericError(f"cannot form task Jacobian: {e}") from e
            state.J1 = J1

            if self.inversion_type == InversionType.PSEUDO_INVERSE:
                result = pseudo_inverse(J1, self.rank_threshold)
                state.J1p = result.pinv
                state.rank = result.rank
                state.singular_values = result.singular_values
                state.im_J1 = result.im_A
                state.im_J1t = result.im_At
            else:
                state.J1p = J1.T
                state.rank = None
                state.singular_values = None
                state.im_J1 = None
                state.im_J1t = None

            if state.rank is None or state.rank == L.shape[1]:
                # No degree of freedom left (or not computed): W = I
                e1 = state.J1p @ error
            else:
                state.W = state.im_J1t @ state.im_J1t.T
                state.I_WpW = np.eye(J1.shape[1]) - state.W
                e1 = state.W @ state.J1p @ error
        except ServoError as e:
            self._trace(f"Error caught: {e}")
            raise

        lam = self.gain(e1)
        state.e1 = e1
        state.e = -lam * e1
        state.cycle += 1
        self._configuration_checked = True

        if self.trace_logger is not None:
            self.trace_logger.log(state.cycle, {
                'mode': self.mode.value,
                'dim_task': state.dim_task,
                'rank': state.rank,
                'error_norm': float(np.linalg.norm(state.error)),
                'gain': float(lam),
                'command': state.e,
            })

        return state.e.copy()

    def secondary_task(self, de2dt, e2=None) -> np.ndarray:
        """
        Project a secondary objective into the null space of the primary task.

        Requires ``compute_control_law`` earlier in the same cycle.

        Args:
            de2dt: Secondary task derivative (n,), always fed forward
            e2: Secondary error (n,); if given it is regulated to zero

        Returns:
            (I - W) de2dt, or -lambda(e2) (I - W) e2 + (I - W) de2dt

        Raises:
            NoDegreesOfFreedomError: If no projector is available
        """
        self._check_alive()
        N = self.state.I_WpW
        if N is None:
            self._trace("no degree of freedom is free, cannot use secondary task")
            raise NoDegreesOfFreedomError(
                "no degree of freedom is free, cannot use secondary task"
            )

        de2dt = np.asarray(de2dt, dtype=float).reshape(-1)
        if de2dt.shape[0] != N.shape[0]:
            raise NumericError(f"de2dt has {de2dt.shape[0]} components, expected {N.shape[0]}")
        sec = N @ de2dt

        if e2 is not None:
            e2 = np.asarray(e2, dtype=float).reshape(-1)
            if e2.shape[0] != N.shape[0]:
                raise NumericError(f"e2 has {e2.shape[0]} components, expected {N.shape[0]}")
            sec = -self.gain(e2) * (N @ e2) + sec

        return sec

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def projector(self) -> Optional[np.ndarray]:
        """Row-space projector W of the last cycle, None if not needed."""
        return self.state.W

    @property
    def null_space_projector(self) -> Optional[np.ndarray]:
        return self.state.I_WpW

    def _format_error(self) -> str:
        if self.state.error_computed:
            return np.array2string(self.state.error, precision=6)
        return "not yet computed"

    def describe(self, level: PrintLevel = PrintLevel.ALL) -> str:
        """Text dump of the task."""
        if level == PrintLevel.MINIMUM:
            return f"Err (s-s*): {self._format_error()}"

        lines = ["Visual servoing task:", "Type of control law", self.frames.describe()]

        lines.append("List of visual features : s")
        for b in self.registry.bindings:
            lines.append(b.current.describe(b.select))

        lines.append("List of desired visual features : s*")
        for b in self.registry.bindings:
            lines.append(b.desired.describe(b.select))

        lines.append("Interaction Matrix Ls")
        if self.state.interaction_computed:
            lines.append(np.array2string(self.state.L, precision=6))
        else:
            lines.append("not yet computed")

        lines.append("Error vector (s-s*)")
        lines.append(self._format_error())

        lines.append(f"Gain : {self.gain}")
        return "\n".join(lines)

    def print_task(self, level: PrintLevel = PrintLevel.ALL, stream: TextIO = None) -> None:
        stream = stream or sys.stdout
        stream.write(self.describe(level) + "\n")
