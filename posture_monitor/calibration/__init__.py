"""
Calibration module
"""
from .session import (
    CalibrationSession,
    CalibrationState,
    FailedState,
    FailureReason,
    SamplingState,
    SuccessState,
    fold_sample,
)

__all__ = [
    'CalibrationSession',
    'CalibrationState',
    'FailedState',
    'FailureReason',
    'SamplingState',
    'SuccessState',
    'fold_sample',
]
