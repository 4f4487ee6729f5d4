import json
import logging

import pytest

from posture_monitor.core import config_loader
from posture_monitor.core.config_loader import (
    DictConfig,
    apply_env_overrides,
    get_config,
    get_posture_constants,
    load_config,
)
from posture_monitor.core.constants import Constants
from posture_monitor.core.logger import setup_logger


def write_config(tmp_path, data):
    path = tmp_path / "system_config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_partial_config_is_filled_with_defaults(tmp_path):
    path = write_config(tmp_path, {"posture": {"lean_tolerance": 25}, "logging": {"level": "DEBUG"}})
    config = load_config(path)

    assert config.posture.lean_tolerance == 25
    assert config.posture.slouch_tolerance == Constants.SLOUCH_TOLERANCE
    assert config.calibration.max_attempts == Constants.CALIBRATION_MAX_ATTEMPTS
    assert config.logging.level == "DEBUG"
    assert config.logging.enable_file is False
    assert config.resolve_path("logs") == tmp_path / "logs"


def test_missing_explicit_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


def test_malformed_json_raises(tmp_path):
    path = tmp_path / "system_config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_non_object_root_raises(tmp_path):
    path = write_config(tmp_path, [1, 2, 3])
    with pytest.raises(ValueError):
        load_config(path)


def test_env_config_path(tmp_path, monkeypatch):
    path = write_config(tmp_path, {"calibration": {"required_samples": 5}})
    monkeypatch.setenv("POSTURE_CONFIG", str(path))
    assert load_config().calibration.required_samples == 5


def test_env_overrides(tmp_path, monkeypatch):
    config = load_config(write_config(tmp_path, {}))
    monkeypatch.setenv("POSTURE_LOG_LEVEL", "warning")
    monkeypatch.setenv("POSTURE_CALIBRATION_DELAY", "0.05")
    apply_env_overrides(config)
    assert config.logging.level == "WARNING"
    assert config.calibration.retry_delay == 0.05

    monkeypatch.setenv("POSTURE_CALIBRATION_DELAY", "soon")
    apply_env_overrides(config)
    assert config.calibration.retry_delay == 0.05


def test_get_config_is_a_singleton(tmp_path, monkeypatch):
    monkeypatch.setattr(config_loader, "_config_instance", None)
    path = write_config(tmp_path, {"posture": {"min_score": 0.4}})
    first = get_config(path)
    assert get_config() is first
    assert get_config(path, reload=True) is not first


def test_posture_constants(tmp_path):
    config = load_config(write_config(tmp_path, {"posture": {"angle_tolerance": 12}}))
    constants = get_posture_constants(config)
    assert constants["ANGLE_TOLERANCE"] == 12.0
    assert constants["MIN_SCORE"] == Constants.MIN_SCORE
    assert constants["CALIBRATION_REQUIRED_SAMPLES"] == 3


def test_dict_config_access():
    cfg = DictConfig(a={"b": 1}, items=[{"c": 2}])
    assert cfg.a.b == 1
    assert cfg["a"].get("b") == 1
    assert cfg.get("missing", "x") == "x"
    assert cfg.items[0].c == 2


def test_file_logging(tmp_path):
    log = setup_logger(name="posture_test_file", level=logging.INFO, log_dir=str(tmp_path),
                       enable_console=False, enable_file=True)
    try:
        log.info("hello")
        for handler in log.handlers:
            handler.flush()
        files = list(tmp_path.glob("posture_test_file*.log"))
        assert len(files) == 1
        assert "hello" in files[0].read_text(encoding="utf-8")
    finally:
        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)


def test_file_logging_dir_is_relative_to_config(tmp_path, monkeypatch):
    path = write_config(tmp_path, {"paths": {"logs_dir": "session_logs"}})
    monkeypatch.setattr(config_loader, "_config_instance", load_config(path))
    log = setup_logger(name="posture_test_cfgdir", enable_console=False, enable_file=True)
    try:
        log.warning("relative")
        for handler in log.handlers:
            handler.flush()
        files = list((tmp_path / "session_logs").glob("posture_test_cfgdir*.log"))
        assert len(files) == 1
    finally:
        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)
