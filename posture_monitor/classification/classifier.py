"""
Posture classification
=====================

Compares live metrics with the calibrated reference and applies an ordered
rule cascade; the first matching rule decides the label.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..core.constants import Constants
from ..core.telemetry import format_floats
from ..pose.metrics import PostureMetrics, ReferencePosture


class PostureLabel(Enum):
    GOOD_POSTURE = "good_posture"
    SLOUCHING_HEAD_DOWN = "slouching_head_down"
    SLOUCHING_SHOULDERS_DOWN = "slouching_shoulders_down"
    LEANING_LEFT = "leaning_left"
    LEANING_RIGHT = "leaning_right"
    TORSO_LEANING_LEFT = "torso_leaning_left"
    TORSO_LEANING_RIGHT = "torso_leaning_right"
    FORWARD_HEAD_POSTURE = "forward_head_posture"
    LOW_CONFIDENCE = "low_confidence"


# status text and BGR color for the presentation layer
STATUS_DISPLAY: Dict[PostureLabel, Tuple[str, Tuple[int, int, int]]] = {
    PostureLabel.GOOD_POSTURE: ("Good posture", (0, 200, 0)),
    PostureLabel.SLOUCHING_HEAD_DOWN: ("Slouching: head down", (0, 0, 255)),
    PostureLabel.SLOUCHING_SHOULDERS_DOWN: ("Slouching: shoulders dropped", (0, 0, 255)),
    PostureLabel.LEANING_LEFT: ("Leaning left", (0, 165, 255)),
    PostureLabel.LEANING_RIGHT: ("Leaning right", (0, 165, 255)),
    PostureLabel.TORSO_LEANING_LEFT: ("Torso leaning left", (0, 165, 255)),
    PostureLabel.TORSO_LEANING_RIGHT: ("Torso leaning right", (0, 165, 255)),
    PostureLabel.FORWARD_HEAD_POSTURE: ("Forward head posture", (0, 0, 255)),
    PostureLabel.LOW_CONFIDENCE: ("Low confidence - adjust position", (128, 128, 128)),
}


def status_display(label: PostureLabel) -> Tuple[str, Tuple[int, int, int]]:
    """Status text and BGR color for a label"""
    return STATUS_DISPLAY[label]


@dataclass(frozen=True)
class ClassifierThresholds:
    """Rule cascade thresholds (px unless noted)"""
    min_confidence: float = Constants.CLASSIFY_MIN_CONFIDENCE
    nose_slouch_tolerance: float = Constants.NOSE_SLOUCH_TOLERANCE
    slouch_tolerance: float = Constants.SLOUCH_TOLERANCE
    lean_tolerance: float = Constants.LEAN_TOLERANCE
    angle_tolerance: float = Constants.ANGLE_TOLERANCE  # degrees
    forward_head_tolerance: float = Constants.FORWARD_HEAD_TOLERANCE

    @classmethod
    def from_constants(cls, constants: Dict[str, Any]) -> "ClassifierThresholds":
        """Build from a get_posture_constants() dict"""
        return cls(
            min_confidence=constants.get("CLASSIFY_MIN_CONFIDENCE", Constants.CLASSIFY_MIN_CONFIDENCE),
            nose_slouch_tolerance=constants.get("NOSE_SLOUCH_TOLERANCE", Constants.NOSE_SLOUCH_TOLERANCE),
            slouch_tolerance=constants.get("SLOUCH_TOLERANCE", Constants.SLOUCH_TOLERANCE),
            lean_tolerance=constants.get("LEAN_TOLERANCE", Constants.LEAN_TOLERANCE),
            angle_tolerance=constants.get("ANGLE_TOLERANCE", Constants.ANGLE_TOLERANCE),
            forward_head_tolerance=constants.get("FORWARD_HEAD_TOLERANCE", Constants.FORWARD_HEAD_TOLERANCE),
        )


@dataclass
class ClassificationResult:
    """
    Classification result

    Attributes:
        status: posture label
        confidence: the metrics' own confidence (not recomputed)
        debug_info: deltas, raw metrics and raw reference; observability only
    """
    status: PostureLabel
    confidence: float
    debug_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def status_text(self) -> str:
        return STATUS_DISPLAY[self.status][0]

    @property
    def status_color(self) -> Tuple[int, int, int]:
        return STATUS_DISPLAY[self.status][1]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly readout with floats rounded to 3 places"""
        return format_floats({
            "status": self.status.value,
            "status_text": self.status_text,
            "confidence": self.confidence,
            "debug": self.debug_info,
        })


class PostureClassifier:
    """
    Rule-cascade posture classifier

    Rules, first match wins:
        1. nose_y_diff > nose_slouch_tolerance      -> SLOUCHING_HEAD_DOWN
        2. y_diff < -slouch_tolerance               -> SLOUCHING_SHOULDERS_DOWN
        3. |x_diff| > lean_tolerance                -> LEANING_LEFT / LEANING_RIGHT
        4. |angle_diff| > angle_tolerance           -> TORSO_LEANING_LEFT / TORSO_LEANING_RIGHT
        5. nose_x_diff > forward_head_tolerance     -> FORWARD_HEAD_POSTURE
        6. otherwise                                -> GOOD_POSTURE

    The default nose tolerance is negative (-70 px), so rule 1 fires unless the
    nose sits well above its calibrated height; it is kept as is.
    """

    def __init__(self, thresholds: Optional[ClassifierThresholds] = None):
        self.thresholds = thresholds or ClassifierThresholds()

    def classify(self, metrics: PostureMetrics, reference: ReferencePosture) -> ClassificationResult:
        """
        Classify one frame

        Args:
            metrics: live metrics
            reference: calibrated baseline (all zeros when uncalibrated)

        Returns:
            ClassificationResult
        """
        t = self.thresholds

        if metrics.confidence < t.min_confidence:
            return ClassificationResult(
                status=PostureLabel.LOW_CONFIDENCE,
                confidence=metrics.confidence,
                debug_info={
                    "reason": "confidence_below_threshold",
                    "metrics": metrics.to_dict(),
                    "reference": reference.to_dict(),
                },
            )

        deltas = compute_deltas(metrics, reference)
        status = self._apply_rules(deltas)

        return ClassificationResult(
            status=status,
            confidence=metrics.confidence,
            debug_info={
                "deltas": deltas,
                "metrics": metrics.to_dict(),
                "reference": reference.to_dict(),
            },
        )

    def _apply_rules(self, deltas: Dict[str, float]) -> PostureLabel:
        t = self.thresholds
        x_diff = deltas["x_diff"]
        angle_diff = deltas["angle_diff"]

        if deltas["nose_y_diff"] > t.nose_slouch_tolerance:
            return PostureLabel.SLOUCHING_HEAD_DOWN
        if deltas["y_diff"] < -t.slouch_tolerance:
            return PostureLabel.SLOUCHING_SHOULDERS_DOWN
        if abs(x_diff) > t.lean_tolerance:
            return PostureLabel.LEANING_LEFT if x_diff > 0 else PostureLabel.LEANING_RIGHT
        if abs(angle_diff) > t.angle_tolerance:
            return PostureLabel.TORSO_LEANING_LEFT if angle_diff > 0 else PostureLabel.TORSO_LEANING_RIGHT
        if deltas["nose_x_diff"] > t.forward_head_tolerance:
            return PostureLabel.FORWARD_HEAD_POSTURE
        return PostureLabel.GOOD_POSTURE


def compute_deltas(metrics: PostureMetrics, reference: ReferencePosture) -> Dict[str, float]:
    """Live-minus-reference deltas read by the rule cascade"""
    return {
        "x_diff": metrics.shoulder_hip_x_diff - reference.shoulder_hip_x_diff,
        "y_diff": metrics.shoulder_hip_y_diff - reference.shoulder_hip_y_diff,
        "angle_diff": metrics.upper_body_angle - reference.upper_body_angle,
        "nose_x_diff": metrics.nose_shoulder_dist_x - reference.nose_shoulder_dist_x,
        "nose_y_diff": metrics.nose_to_center_y - reference.nose_to_center_y,
    }


def classify_posture(
    metrics: PostureMetrics,
    reference: ReferencePosture,
    thresholds: Optional[ClassifierThresholds] = None
) -> ClassificationResult:
    """Functional shortcut for PostureClassifier(thresholds).classify(...)"""
    return PostureClassifier(thresholds).classify(metrics, reference)
