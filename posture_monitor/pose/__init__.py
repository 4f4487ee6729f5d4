"""
Pose Metrics Module

Features:
- Named 2D keypoints and COCO detection-result adapter
- Confidence-aware shoulder / hip centers
- Per-frame posture metrics with an aggregate confidence score
"""
from .keypoints import (
    COCO_KEYPOINT_INDICES,
    KEYPOINT_NAMES,
    Keypoint,
    keypoints_from_detection,
    select_primary_detection,
)
from .aggregator import CenterPoint, compute_center
from .metrics import (
    METRIC_FIELDS,
    PostureMetrics,
    PostureMetricsExtractor,
    ReferencePosture,
    extract_metrics,
)

__all__ = [
    "COCO_KEYPOINT_INDICES",
    "KEYPOINT_NAMES",
    "Keypoint",
    "keypoints_from_detection",
    "select_primary_detection",
    "CenterPoint",
    "compute_center",
    "METRIC_FIELDS",
    "PostureMetrics",
    "PostureMetricsExtractor",
    "ReferencePosture",
    "extract_metrics",
]
