"""
Posture metrics extraction

Derives a fixed set of 2D geometric features from one keypoint frame:

- shoulder line angle (right-minus-left shoulder vector)
- shoulder-center vs hip-center offsets and torso angle from vertical
- nose position relative to the shoulder center

Image coordinates: x grows to the right, y grows downward.
"""
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Iterable, Optional

import numpy as np

from ..core.constants import Constants
from ..core.logger import logger
from .aggregator import CenterPoint, compute_center
from .keypoints import Keypoint, index_keypoints


@dataclass(frozen=True)
class ReferencePosture:
    """Calibrated baseline; all zeros means not calibrated"""
    shoulder_hip_x_diff: float = 0.0
    shoulder_hip_y_diff: float = 0.0
    shoulder_angle: float = 0.0
    upper_body_angle: float = 0.0
    nose_shoulder_dist_x: float = 0.0
    nose_shoulder_dist_y: float = 0.0
    nose_shoulder_dist: float = 0.0
    nose_to_center_y: float = 0.0

    @classmethod
    def from_metrics(cls, metrics: "PostureMetrics") -> "ReferencePosture":
        return cls(**{name: getattr(metrics, name) for name in METRIC_FIELDS})

    @classmethod
    def from_dict(cls, values: Dict[str, float]) -> "ReferencePosture":
        return cls(**{name: float(values.get(name, 0.0)) for name in METRIC_FIELDS})

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @property
    def is_zero(self) -> bool:
        return all(getattr(self, name) == 0.0 for name in METRIC_FIELDS)


@dataclass(frozen=True)
class PostureMetrics:
    """
    Per-frame posture features

    Attributes:
        shoulder_hip_x_diff: shoulder center x minus hip center x (px)
        shoulder_hip_y_diff: hip center y minus shoulder center y (px, positive = shoulders above hips)
        shoulder_angle: shoulder line angle (deg)
        upper_body_angle: torso angle from vertical (deg)
        nose_shoulder_dist_x: nose x minus shoulder center x (px)
        nose_shoulder_dist_y: nose y minus shoulder center y (px)
        nose_shoulder_dist: euclidean nose to shoulder center distance (px)
        nose_to_center_y: same value as nose_shoulder_dist_y, read by the head-down rule
        confidence: weighted feature-group coverage in [0, 1]
    """
    shoulder_hip_x_diff: float = 0.0
    shoulder_hip_y_diff: float = 0.0
    shoulder_angle: float = 0.0
    upper_body_angle: float = 0.0
    nose_shoulder_dist_x: float = 0.0
    nose_shoulder_dist_y: float = 0.0
    nose_shoulder_dist: float = 0.0
    nose_to_center_y: float = 0.0
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


METRIC_FIELDS = tuple(f.name for f in fields(ReferencePosture))


class PostureMetricsExtractor:
    """
    Posture metrics extractor

    Each feature group is computed independently; a group whose keypoints are
    missing or under-confident keeps its fields at 0 and adds nothing to the
    confidence numerator or denominator.

    Usage:
        extractor = PostureMetricsExtractor()
        metrics = extractor.extract(keypoints)
        metadata = extractor.get_metadata()
    """

    def __init__(self, min_score: float = Constants.MIN_SCORE):
        self.min_score = float(min_score)
        self.calculation_metadata: Dict[str, Any] = {}

    def extract(self, keypoints: Iterable[Keypoint]) -> PostureMetrics:
        """
        Extract metrics from one frame

        Args:
            keypoints: the frame's keypoints (any order, missing allowed)

        Returns:
            PostureMetrics
        """
        kp = index_keypoints(keypoints)
        values: Dict[str, float] = {}
        numerator = 0.0
        denominator = 0.0

        self.calculation_metadata = {
            "visible_keypoints": sorted(n for n, p in kp.items() if p.score > self.min_score),
            "groups": [],
        }

        left_shoulder = kp.get("left_shoulder")
        right_shoulder = kp.get("right_shoulder")
        shoulder_center = compute_center([left_shoulder, right_shoulder], self.min_score)
        hip_center = compute_center([kp.get("left_hip"), kp.get("right_hip")], self.min_score)

        # 1) shoulder line
        if self._visible(left_shoulder) and self._visible(right_shoulder):
            dx = right_shoulder.x - left_shoulder.x
            dy = right_shoulder.y - left_shoulder.y
            values["shoulder_angle"] = float(np.degrees(np.arctan2(dy, dx)))
            numerator += Constants.SHOULDER_ANGLE_WEIGHT
            denominator += Constants.SHOULDER_ANGLE_WEIGHT
            self.calculation_metadata["groups"].append("shoulder_line")

        # 2) torso (shoulder center vs hip center)
        if shoulder_center is not None and hip_center is not None:
            values.update(self._torso_features(shoulder_center, hip_center))
            coverage = (shoulder_center.confidence + hip_center.confidence) / 2.0
            numerator += Constants.TORSO_WEIGHT * coverage
            denominator += Constants.TORSO_WEIGHT
            self.calculation_metadata["groups"].append("torso")

        # 3) head (nose vs shoulder center)
        nose = kp.get("nose")
        if self._visible(nose) and shoulder_center is not None:
            values.update(self._head_features(nose, shoulder_center))
            numerator += Constants.NOSE_WEIGHT
            denominator += Constants.NOSE_WEIGHT
            self.calculation_metadata["groups"].append("head")

        confidence = numerator / denominator if denominator > 0 else 0.0
        self.calculation_metadata["confidence_numerator"] = numerator
        self.calculation_metadata["confidence_denominator"] = denominator

        if denominator == 0:
            logger.debug("No feature group available in this frame")

        return PostureMetrics(confidence=float(confidence), **values)

    def get_metadata(self) -> Dict[str, Any]:
        """Debug metadata of the last extraction (copy)"""
        return dict(self.calculation_metadata)

    def _visible(self, point: Optional[Keypoint]) -> bool:
        return point is not None and point.score > self.min_score

    @staticmethod
    def _torso_features(shoulder_center: CenterPoint, hip_center: CenterPoint) -> Dict[str, float]:
        dx = shoulder_center.x - hip_center.x
        dy = shoulder_center.y - hip_center.y
        return {
            "shoulder_hip_x_diff": float(dx),
            "shoulder_hip_y_diff": float(hip_center.y - shoulder_center.y),
            # 0 deg = shoulders straight above hips
            "upper_body_angle": float(np.degrees(np.arctan2(dx, -dy))),
        }

    @staticmethod
    def _head_features(nose: Keypoint, shoulder_center: CenterPoint) -> Dict[str, float]:
        dx = nose.x - shoulder_center.x
        dy = nose.y - shoulder_center.y
        return {
            "nose_shoulder_dist_x": float(dx),
            "nose_shoulder_dist_y": float(dy),
            "nose_shoulder_dist": float(np.hypot(dx, dy)),
            "nose_to_center_y": float(dy),
        }


def extract_metrics(keypoints: Iterable[Keypoint], min_score: float = Constants.MIN_SCORE) -> PostureMetrics:
    """Functional shortcut for PostureMetricsExtractor(min_score).extract(keypoints)"""
    return PostureMetricsExtractor(min_score).extract(keypoints)
