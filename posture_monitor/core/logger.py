"""
Logging setup - reads its parameters from system_config.json
"""
import logging
import os
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _load_config():
    try:
        from .config_loader import get_config
        return get_config()
    except Exception as e:
        print(f"Warning: could not load system_config.json, using default logging: {e}")
        return None


def _logging_setting(config, key: str, default: Any) -> Any:
    section = getattr(config, 'logging', None) if config else None
    return getattr(section, key, default) if section is not None else default


def _resolve_level(config) -> int:
    level_str = os.getenv("POSTURE_LOG_LEVEL") or _logging_setting(config, 'level', 'INFO')
    return getattr(logging, str(level_str).upper(), logging.INFO)


def _resolve_log_dir(config) -> Path:
    if config and hasattr(config, 'paths'):
        # relative logs_dir is taken relative to the config file
        return config.resolve_path(getattr(config.paths, 'logs_dir', 'logs')) or Path('logs')
    return Path('logs')


def _file_handler(log_path: Path, name: str, rotation: str, max_size_mb: int) -> logging.Handler:
    log_path.mkdir(parents=True, exist_ok=True)
    if rotation == 'daily':
        return logging.FileHandler(log_path / f'{name}_{datetime.now():%Y%m%d}.log', encoding='utf-8')
    return RotatingFileHandler(
        log_path / f'{name}.log',
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )


def setup_logger(
    name: str = 'PostureMonitor',
    level: Optional[int] = None,
    log_dir: Optional[str] = None,
    enable_console: Optional[bool] = None,
    enable_file: Optional[bool] = None,
    max_size_mb: Optional[int] = None,
    file_rotation: Optional[str] = None
) -> logging.Logger:
    """
    Configure a logger

    Every argument left as None is taken from system_config.json; the level
    additionally honours POSTURE_LOG_LEVEL, which beats the config file.

    Args:
        name: logger name
        level: log level
        log_dir: log directory
        enable_console: console output
        enable_file: file output
        max_size_mb: max file size (MB) for size rotation
        file_rotation: 'daily' or 'size'

    Returns:
        logger: the configured logger
    """
    config = _load_config()

    level = _resolve_level(config) if level is None else level
    if enable_console is None:
        enable_console = _logging_setting(config, 'enable_console', True)
    if enable_file is None:
        enable_file = _logging_setting(config, 'enable_file', False)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # already configured
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []

    if enable_console:
        handlers.append(logging.StreamHandler())

    if enable_file:
        log_path = Path(log_dir) if log_dir is not None else _resolve_log_dir(config)
        handlers.append(_file_handler(
            log_path,
            name,
            file_rotation or _logging_setting(config, 'file_rotation', 'daily'),
            max_size_mb or _logging_setting(config, 'max_size_mb', 100),
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


logger = setup_logger()
