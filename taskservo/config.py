"""
Servo Configuration: YAML/JSON Task Settings
============================================
Declarative configuration of a servo task: mode, interaction matrix and
inversion policies, gain law, rank threshold and tracing.

Mode and policy names accepted from configuration are normalized in one
place, so that e.g. ``eye_in_hand`` and ``EYEINHAND_CAMERA`` resolve to the
same mode.
"""

import json
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from .frames import ServoMode
from .gain import AdaptiveGain, ConstantGain
from .servo import InteractionMatrixType, InversionType, Servo


# Aliases for servo modes. Keys are lower-cased; canonical values and enum
# member names resolve implicitly.
MODE_ALIASES: Dict[str, ServoMode] = {
    "none": ServoMode.UNINITIALIZED,
    "eye_in_hand": ServoMode.EYEINHAND_CAMERA,
    "camera": ServoMode.EYEINHAND_CAMERA,
    "eye_in_hand_l_cve_eje": ServoMode.EYEINHAND_L_cVe_eJe,
    "eye_to_hand_l_cve_eje": ServoMode.EYETOHAND_L_cVe_eJe,
    "eye_to_hand_l_cvf_fve_eje": ServoMode.EYETOHAND_L_cVf_fVe_eJe,
    "eye_to_hand_l_cvf_fje": ServoMode.EYETOHAND_L_cVf_fJe,
}

INTERACTION_ALIASES: Dict[str, InteractionMatrixType] = {
    "mean_of_both": InteractionMatrixType.MEAN,
    "average": InteractionMatrixType.MEAN,
}

INVERSION_ALIASES: Dict[str, InversionType] = {
    "pinv": InversionType.PSEUDO_INVERSE,
    "pseudoinverse": InversionType.PSEUDO_INVERSE,
    "transposed": InversionType.TRANSPOSE,
}


def _normalize(value, enum_cls, aliases: dict, what: str):
    if value is None:
        raise ValueError(f"{what} is None")
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip()
    for member in enum_cls:
        if key == member.name or key.lower() == member.value or key.lower() == member.name.lower():
            return member
    if key.lower() in aliases:
        return aliases[key.lower()]
    raise ValueError(f"Unknown {what}: {value}")


def normalize_servo_mode(mode: Union[str, ServoMode]) -> ServoMode:
    """
    Normalize a servo mode name.

    Raises:
        ValueError: If the mode is unknown
    """
    return _normalize(mode, ServoMode, MODE_ALIASES, "servo mode")


def normalize_interaction_matrix_type(value) -> InteractionMatrixType:
    return _normalize(value, InteractionMatrixType, INTERACTION_ALIASES, "interaction matrix type")


def normalize_inversion_type(value) -> InversionType:
    return _normalize(value, InversionType, INVERSION_ALIASES, "inversion type")


@dataclass
class ServoConfig:
    """Configuration for a servo task."""
    mode: ServoMode = ServoMode.UNINITIALIZED
    interaction_matrix_type: InteractionMatrixType = InteractionMatrixType.DESIRED
    inversion_type: InversionType = InversionType.PSEUDO_INVERSE

    # Constant gain (float) or adaptive gain parameters
    # {gain_at_zero, gain_at_infinity, slope_at_zero}
    gain: Union[float, Dict[str, float]] = 1.0

    rank_threshold: float = 1e-6
    verbose: bool = False
    trace_path: Optional[str] = None

    def __post_init__(self):
        self.mode = normalize_servo_mode(self.mode)
        self.interaction_matrix_type = normalize_interaction_matrix_type(self.interaction_matrix_type)
        self.inversion_type = normalize_inversion_type(self.inversion_type)
        if self.rank_threshold <= 0.0:
            raise ValueError(f"rank_threshold must be positive, got {self.rank_threshold}")
        # Fail early on bad gain parameters
        self.build_gain()

    def build_gain(self):
        if isinstance(self.gain, dict):
            return AdaptiveGain(**self.gain)
        return ConstantGain(float(self.gain))

    def to_dict(self) -> dict:
        return {
            'mode': self.mode.value,
            'interaction_matrix_type': self.interaction_matrix_type.value,
            'inversion_type': self.inversion_type.value,
            'gain': dict(self.gain) if isinstance(self.gain, dict) else float(self.gain),
            'rank_threshold': self.rank_threshold,
            'verbose': self.verbose,
            'trace_path': self.trace_path,
        }


def parse_servo_config(data: dict) -> ServoConfig:
    """Parse servo configuration from dictionary."""
    return ServoConfig(
        mode=data.get('mode', ServoMode.UNINITIALIZED),
        interaction_matrix_type=data.get('interaction_matrix_type', InteractionMatrixType.DESIRED),
        inversion_type=data.get('inversion_type', InversionType.PSEUDO_INVERSE),
        gain=data.get('gain', 1.0),
        rank_threshold=data.get('rank_threshold', 1e-6),
        verbose=data.get('verbose', False),
        trace_path=data.get('trace_path'),
    )


def load_servo_config(path: Union[str, Path]) -> ServoConfig:
    """
    Load servo configuration from YAML or JSON file.

    Args:
        path: Path to config file

    Returns:
        Parsed ServoConfig
    """
    path = Path(path)

    with open(path, 'r') as f:
        if path.suffix in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    return parse_servo_config(data or {})


def save_servo_config(config: ServoConfig, path: Union[str, Path]):
    """Save servo configuration to YAML (or JSON by extension)."""
    path = Path(path)

    with open(path, 'w') as f:
        if path.suffix == '.json':
            json.dump(config.to_dict(), f, indent=2)
        else:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def create_servo(config: ServoConfig) -> Servo:
    """Build a servo task from a configuration."""
    return Servo(
        mode=config.mode,
        gain=config.build_gain(),
        interaction_matrix_type=config.interaction_matrix_type,
        inversion_type=config.inversion_type,
        rank_threshold=config.rank_threshold,
        verbose=config.verbose,
        trace_path=config.trace_path,
    )


# Preset configurations
PRESET_CONFIGS = {
    'eye_in_hand_camera': ServoConfig(
        mode=ServoMode.EYEINHAND_CAMERA,
        interaction_matrix_type=InteractionMatrixType.DESIRED,
        gain=0.5,
    ),

    'eye_in_hand_adaptive': ServoConfig(
        mode=ServoMode.EYEINHAND_CAMERA,
        interaction_matrix_type=InteractionMatrixType.MEAN,
        gain={'gain_at_zero': 4.0, 'gain_at_infinity': 0.4, 'slope_at_zero': 30.0},
    ),

    'eye_in_hand_articular': ServoConfig(
        mode=ServoMode.EYEINHAND_L_cVe_eJe,
        interaction_matrix_type=InteractionMatrixType.CURRENT,
        gain=0.5,
    ),

    'eye_to_hand_articular': ServoConfig(
        mode=ServoMode.EYETOHAND_L_cVe_eJe,
        interaction_matrix_type=InteractionMatrixType.CURRENT,
        gain=0.3,
    ),

    'eye_to_hand_frame_jacobian': ServoConfig(
        mode=ServoMode.EYETOHAND_L_cVf_fJe,
        interaction_matrix_type=InteractionMatrixType.CURRENT,
        gain=0.3,
    ),
}


def get_preset_config(name: str) -> ServoConfig:
    """Get a preset servo configuration (a fresh copy)."""
    if name not in PRESET_CONFIGS:
        raise ValueError(f"Unknown preset: {name}. Available: {list(PRESET_CONFIGS.keys())}")
    return parse_servo_config(PRESET_CONFIGS[name].to_dict())
