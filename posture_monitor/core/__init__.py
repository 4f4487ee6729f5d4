"""
Core module for common utilities and constants
"""
from .constants import Constants
from .logger import setup_logger, logger

__all__ = [
    'Constants',
    'setup_logger',
    'logger',
]
