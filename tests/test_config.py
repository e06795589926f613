"""
Configuration Tests
===================
Name normalization, YAML/JSON round trips and presets.
"""

import pytest

from taskservo import (
    ServoConfig,
    ServoMode,
    InteractionMatrixType,
    InversionType,
    AdaptiveGain,
    ConstantGain,
    create_servo,
    get_preset_config,
    load_servo_config,
    save_servo_config,
    parse_servo_config,
    normalize_servo_mode,
    PRESET_CONFIGS,
)
from taskservo.config import normalize_interaction_matrix_type, normalize_inversion_type


def test_mode_normalization():
    assert normalize_servo_mode("eye_in_hand") == ServoMode.EYEINHAND_CAMERA
    assert normalize_servo_mode("EYEINHAND_CAMERA") == ServoMode.EYEINHAND_CAMERA
    assert normalize_servo_mode("eye_to_hand_frame_jacobian") == ServoMode.EYETOHAND_L_cVf_fJe
    assert normalize_servo_mode("EYETOHAND_L_cVf_fVe_eJe") == ServoMode.EYETOHAND_L_cVf_fVe_eJe
    assert normalize_servo_mode(ServoMode.EYEINHAND_L_cVe_eJe) is ServoMode.EYEINHAND_L_cVe_eJe
    with pytest.raises(ValueError):
        normalize_servo_mode("hand_in_eye")


def test_policy_normalization():
    assert normalize_interaction_matrix_type("average") == InteractionMatrixType.MEAN
    assert normalize_interaction_matrix_type("CURRENT") == InteractionMatrixType.CURRENT
    assert normalize_inversion_type("pinv") == InversionType.PSEUDO_INVERSE
    assert normalize_inversion_type("transpose") == InversionType.TRANSPOSE
    with pytest.raises(ValueError):
        normalize_inversion_type("cholesky")


def test_config_validation():
    with pytest.raises(ValueError):
        ServoConfig(rank_threshold=0.0)
    with pytest.raises(ValueError):
        ServoConfig(gain={'gain_at_zero': 0.1, 'gain_at_infinity': 1.0, 'slope_at_zero': 1.0})


def test_yaml_round_trip(tmp_path):
    config = ServoConfig(
        mode="eye_to_hand_l_cve_eje",
        interaction_matrix_type="mean",
        gain={'gain_at_zero': 2.0, 'gain_at_infinity': 0.2, 'slope_at_zero': 10.0},
        rank_threshold=1e-8,
    )
    path = tmp_path / "servo.yaml"
    save_servo_config(config, path)
    loaded = load_servo_config(path)

    assert loaded.mode == ServoMode.EYETOHAND_L_cVe_eJe
    assert loaded.interaction_matrix_type == InteractionMatrixType.MEAN
    assert loaded.rank_threshold == pytest.approx(1e-8)
    assert loaded.to_dict() == config.to_dict()


def test_json_round_trip(tmp_path):
    config = ServoConfig(mode=ServoMode.EYEINHAND_CAMERA, inversion_type="transpose", gain=0.25)
    path = tmp_path / "servo.json"
    save_servo_config(config, path)
    loaded = load_servo_config(path)
    assert loaded.inversion_type == InversionType.TRANSPOSE
    assert loaded.gain == pytest.approx(0.25)


def test_parse_defaults():
    config = parse_servo_config({})
    assert config.mode == ServoMode.UNINITIALIZED
    assert config.interaction_matrix_type == InteractionMatrixType.DESIRED
    assert config.inversion_type == InversionType.PSEUDO_INVERSE
    assert isinstance(config.build_gain(), ConstantGain)


def test_presets():
    for name in PRESET_CONFIGS:
        config = get_preset_config(name)
        assert config.mode != ServoMode.UNINITIALIZED

    # presets are handed out as copies
    config = get_preset_config('eye_in_hand_camera')
    config.gain = 3.0
    assert get_preset_config('eye_in_hand_camera').gain == pytest.approx(0.5)

    with pytest.raises(ValueError):
        get_preset_config('does_not_exist')


def test_create_servo_from_preset():
    task = create_servo(get_preset_config('eye_in_hand_adaptive'))
    assert task.mode == ServoMode.EYEINHAND_CAMERA
    assert isinstance(task.gain, AdaptiveGain)
    assert task.interaction_matrix_type == InteractionMatrixType.MEAN
    task.teardown()
