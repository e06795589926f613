"""
taskservo: Visual/Task Servoing Control Law
===========================================

Computes, once per control cycle, the velocity command that nulls the
error between current and desired task features:
- Feature registry with explicit ownership of synthesised desired features
- Growable stacking of per-feature errors and interaction matrices
- Eye-in-hand / eye-to-hand frame and Jacobian configuration
- Pseudo-inverse or transpose control law with null-space secondary task
- Constant or adaptive gain
- YAML/JSON configuration and JSONL cycle traces

Quick Start:
    from taskservo import Servo, ServoMode, FeaturePoint

    with Servo(ServoMode.EYEINHAND_CAMERA, gain=0.5) as task:
        p, pd = FeaturePoint(0.1, 0.2, 1.0), FeaturePoint(0.0, 0.0, 1.0)
        task.add_feature(p, pd)
        for _ in range(100):
            v = task.compute_control_law()   # camera velocity (6,)
            ...                              # send v, update p
"""

from .exceptions import (
    ServoError,
    NoFeatureError,
    ServoConfigurationError,
    NoDegreesOfFreedomError,
    NumericError,
    LifecycleError,
    StaleInputWarning,
)

from .features import (
    BasicFeature,
    GenericFeature,
    FeaturePoint,
    FEATURE_ALL,
)

from .assembler import GrowableStack, stack_blocks
from .registry import FeatureBinding, FeatureRegistry
from .frames import ServoMode, FrameConfiguration, REQUIRED_SLOTS, FRESH_SLOTS
from .gain import ConstantGain, AdaptiveGain
from .linalg import pseudo_inverse, velocity_twist_matrix

from .servo import (
    Servo,
    TaskState,
    InteractionMatrixType,
    InversionType,
    PrintLevel,
)

from .config import (
    ServoConfig,
    parse_servo_config,
    load_servo_config,
    save_servo_config,
    create_servo,
    normalize_servo_mode,
    get_preset_config,
    PRESET_CONFIGS,
)

from .audit import ServoTraceLogger, read_trace

__version__ = "0.1.0"
__all__ = [
    # Control law
    "Servo",
    "TaskState",
    "InteractionMatrixType",
    "InversionType",
    "PrintLevel",

    # Features
    "BasicFeature",
    "GenericFeature",
    "FeaturePoint",
    "FEATURE_ALL",
    "FeatureBinding",
    "FeatureRegistry",

    # Assembly
    "GrowableStack",
    "stack_blocks",

    # Frames
    "ServoMode",
    "FrameConfiguration",
    "REQUIRED_SLOTS",
    "FRESH_SLOTS",
    "velocity_twist_matrix",
    "pseudo_inverse",

    # Gains
    "ConstantGain",
    "AdaptiveGain",

    # Configuration
    "ServoConfig",
    "parse_servo_config",
    "load_servo_config",
    "save_servo_config",
    "create_servo",
    "normalize_servo_mode",
    "get_preset_config",
    "PRESET_CONFIGS",

    # Tracing
    "ServoTraceLogger",
    "read_trace",

    # Errors
    "ServoError",
    "NoFeatureError",
    "ServoConfigurationError",
    "NoDegreesOfFreedomError",
    "NumericError",
    "LifecycleError",
    "StaleInputWarning",
]
