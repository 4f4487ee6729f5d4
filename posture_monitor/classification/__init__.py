"""
Posture classification module
"""
from .classifier import (
    STATUS_DISPLAY,
    ClassificationResult,
    ClassifierThresholds,
    PostureClassifier,
    PostureLabel,
    classify_posture,
    compute_deltas,
    status_display,
)

__all__ = [
    'STATUS_DISPLAY',
    'ClassificationResult',
    'ClassifierThresholds',
    'PostureClassifier',
    'PostureLabel',
    'classify_posture',
    'compute_deltas',
    'status_display',
]
