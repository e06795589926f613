"""
Frame/Jacobian Configuration
============================
Servo mode state machine and the twist/Jacobian slots each mode consumes.

Slots:
    cVe: camera <- end-effector twist (6, 6)
    cVf: camera <- fixed frame twist (6, 6)
    fVe: fixed frame <- end-effector twist (6, 6)
    eJe: robot Jacobian in the end-effector frame (6, n)
    fJe: robot Jacobian in the fixed frame (6, n)

Each slot carries two flags: "initialized" (set at least once) and
"fresh" (set since it was last consumed by the control law).
"""

import warnings
import numpy as np
from enum import Enum
from typing import Dict, Optional, Tuple

from .exceptions import NumericError, ServoConfigurationError, StaleInputWarning


class ServoMode(Enum):
    """Visual servoing configuration."""
    UNINITIALIZED = "uninitialized"
    EYEINHAND_CAMERA = "eye_in_hand_camera"
    EYEINHAND_L_cVe_eJe = "eye_in_hand_articular"
    EYETOHAND_L_cVe_eJe = "eye_to_hand_articular"
    EYETOHAND_L_cVf_fVe_eJe = "eye_to_hand_frame_velocity"
    EYETOHAND_L_cVf_fJe = "eye_to_hand_frame_jacobian"


TWIST_SLOTS = ("cVe", "cVf", "fVe")
JACOBIAN_SLOTS = ("eJe", "fJe")

# Slots that must have been set before the first control law cycle
REQUIRED_SLOTS: Dict[ServoMode, Tuple[str, ...]] = {
    ServoMode.EYEINHAND_CAMERA: (),
    ServoMode.EYEINHAND_L_cVe_eJe: ("cVe", "eJe"),
    ServoMode.EYETOHAND_L_cVe_eJe: ("cVe", "eJe"),
    ServoMode.EYETOHAND_L_cVf_fVe_eJe: ("cVf", "fVe", "eJe"),
    ServoMode.EYETOHAND_L_cVf_fJe: ("cVf", "fJe"),
}

# Slots that must be set again before every cycle
FRESH_SLOTS: Dict[ServoMode, Tuple[str, ...]] = {
    ServoMode.EYEINHAND_CAMERA: (),
    ServoMode.EYEINHAND_L_cVe_eJe: ("eJe",),
    ServoMode.EYETOHAND_L_cVe_eJe: ("cVe", "eJe"),
    ServoMode.EYETOHAND_L_cVf_fVe_eJe: ("fVe", "eJe"),
    ServoMode.EYETOHAND_L_cVf_fJe: ("fJe",),
}

MODE_DESCRIPTIONS: Dict[ServoMode, str] = {
    ServoMode.UNINITIALIZED: "Type of task have not been chosen yet !",
    ServoMode.EYEINHAND_CAMERA: "Eye-in-hand configuration\nControl in the camera frame",
    ServoMode.EYEINHAND_L_cVe_eJe: "Eye-in-hand configuration\nControl in the articular frame",
    ServoMode.EYETOHAND_L_cVe_eJe: "Eye-to-hand configuration\ns_dot = -L cVe eJe q_dot",
    ServoMode.EYETOHAND_L_cVf_fVe_eJe: "Eye-to-hand configuration\ns_dot = -L cVf fVe eJe q_dot",
    ServoMode.EYETOHAND_L_cVf_fJe: "Eye-to-hand configuration\ns_dot = -L cVf fJe q_dot",
}


def is_eye_in_hand(mode: ServoMode) -> bool:
    return mode in (ServoMode.EYEINHAND_CAMERA, ServoMode.EYEINHAND_L_cVe_eJe)


class FrameConfiguration:
    """
    Holds the twist/Jacobian inputs and the active servo mode.

    The interaction matrix sign is +1 for eye-in-hand and -1 for eye-to-hand:
    the feature motion is then observed through the inverted kinematic chain.
    """

    def __init__(self, mode: ServoMode = ServoMode.UNINITIALIZED, verbose: bool = False):
        self.verbose = verbose
        self.slots: Dict[str, Optional[np.ndarray]] = {
            name: None for name in TWIST_SLOTS + JACOBIAN_SLOTS
        }
        self.initialized = {name: False for name in self.slots}
        self.fresh = {name: False for name in self.slots}
        self.mode = ServoMode.UNINITIALIZED
        self.sign = 1
        self.set_servo(mode)

    def _trace(self, message: str):
        if self.verbose:
            print(f"[SERVO] {message}")

    def set_servo(self, mode: ServoMode) -> None:
        """Switch the servo mode, updating the sign and automatic slots."""
        self.mode = mode
        if mode == ServoMode.UNINITIALIZED or is_eye_in_hand(mode):
            self.sign = 1
        else:
            self.sign = -1

        # Control computed directly in the camera frame needs no kinematics
        if mode == ServoMode.EYEINHAND_CAMERA:
            self.set_slot("cVe", np.eye(6))
            self.set_slot("eJe", np.eye(6))

    def set_slot(self, name: str, value) -> None:
        """
        Store a twist or Jacobian and mark it initialized and fresh.

        Raises:
            NumericError: If the shape does not fit the slot
        """
        if name not in self.slots:
            raise ValueError(f"Unknown slot: {name}")

        value = np.array(value, dtype=float)
        if name in TWIST_SLOTS and value.shape != (6, 6):
            raise NumericError(f"{name} must be a (6, 6) twist matrix, got {value.shape}")
        if name in JACOBIAN_SLOTS and (value.ndim != 2 or value.shape[0] != 6):
            raise NumericError(f"{name} must be a (6, n) Jacobian, got {value.shape}")

        self.slots[name] = value
        self.initialized[name] = True
        self.fresh[name] = True

    def _require_mode(self):
        if self.mode == ServoMode.UNINITIALIZED:
            self._trace("No control law have been yet defined")
            raise ServoConfigurationError("No control law have been yet defined")

    def test_initialization(self) -> bool:
        """
        Check that every slot the mode needs has been set at least once.

        Raises:
            ServoConfigurationError: If no mode has been chosen
        """
        self._require_mode()
        ok = True
        for name in REQUIRED_SLOTS[self.mode]:
            if not self.initialized[name]:
                self._trace(f"{name} not initialized")
                ok = False
        return ok

    def test_updated(self, cycle: int = 0) -> bool:
        """
        Check that every slot the mode consumes each cycle was refreshed.

        Stale slots only produce a StaleInputWarning. The message carries
        the cycle index and the configuration id so that the default
        warning filter reports every stale cycle, not only the first one.

        Args:
            cycle: Index of the control law cycle being checked

        Raises:
            ServoConfigurationError: If no mode has been chosen
        """
        self._require_mode()
        ok = True
        for name in FRESH_SLOTS[self.mode]:
            if not self.fresh[name]:
                self._trace(f"{name} not updated")
                warnings.warn(f"{name} not updated before cycle {cycle} "
                              f"(task {id(self):#x})",
                              StaleInputWarning, stacklevel=3)
                ok = False
        return ok

    def consume(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Select the twist cVa and Jacobian aJe used by the current mode and
        clear the fresh flag of the slots read.

        Returns:
            (cVa, aJe)
        """
        self._require_mode()

        if self.mode == ServoMode.EYETOHAND_L_cVf_fVe_eJe:
            used = ("cVf", "fVe", "eJe")
        elif self.mode == ServoMode.EYETOHAND_L_cVf_fJe:
            used = ("cVf", "fJe")
        else:
            used = ("cVe", "eJe")

        missing = [name for name in used if self.slots[name] is None]
        if missing:
            self._trace(f"{', '.join(missing)} not initialized")
            raise ServoConfigurationError(
                f"Cannot compute control law: {', '.join(missing)} never set"
            )

        if self.mode == ServoMode.EYETOHAND_L_cVf_fVe_eJe:
            cVa = self.slots["cVf"] @ self.slots["fVe"]
        else:
            cVa = self.slots[used[0]]
        aJe = self.slots[used[-1]]

        for name in used:
            self.fresh[name] = False
        return cVa, aJe

    def describe(self) -> str:
        return MODE_DESCRIPTIONS[self.mode]
