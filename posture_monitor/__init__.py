"""
posture_monitor - real-time sitting posture classification from 2D keypoints
"""

__version__ = "0.1.0"

from .calibration import CalibrationSession, FailureReason
from .classification import ClassificationResult, PostureClassifier, PostureLabel
from .engines import PostureEngine
from .pose import (
    CenterPoint,
    Keypoint,
    PostureMetrics,
    PostureMetricsExtractor,
    ReferencePosture,
    compute_center,
    extract_metrics,
)

__all__ = [
    "CalibrationSession",
    "FailureReason",
    "ClassificationResult",
    "PostureClassifier",
    "PostureLabel",
    "PostureEngine",
    "CenterPoint",
    "Keypoint",
    "PostureMetrics",
    "PostureMetricsExtractor",
    "ReferencePosture",
    "compute_center",
    "extract_metrics",
    "__version__",
]
