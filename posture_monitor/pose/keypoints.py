"""
2D keypoint records and detector-result adapter

The pose model is an external collaborator. It is expected to deliver either
named ``Keypoint`` records directly, or a detection result in the index-based
COCO format:

    {
        'detections': [
            {
                'bbox': [x1, y1, x2, y2],
                'confidence': float,
                'keypoints': [
                    {'index': int, 'x': float, 'y': float, 'confidence': float},
                    ...
                ]
            },
            ...
        ]
    }
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.logger import logger


# COCO 17-keypoint indices
# Reference: https://docs.ultralytics.com/tasks/pose/
COCO_KEYPOINT_INDICES = {
    "nose": 0,
    "left_eye": 1,
    "right_eye": 2,
    "left_ear": 3,
    "right_ear": 4,
    "left_shoulder": 5,
    "right_shoulder": 6,
    "left_elbow": 7,
    "right_elbow": 8,
    "left_wrist": 9,
    "right_wrist": 10,
    "left_hip": 11,
    "right_hip": 12,
    "left_knee": 13,
    "right_knee": 14,
    "left_ankle": 15,
    "right_ankle": 16,
}

KEYPOINT_NAMES = tuple(COCO_KEYPOINT_INDICES)

_INDEX_TO_NAME = {index: name for name, index in COCO_KEYPOINT_INDICES.items()}


@dataclass(frozen=True)
class Keypoint:
    """A named anatomical landmark in frame pixel coordinates"""
    name: str
    x: float
    y: float
    score: float

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Keypoint score must lie in [0, 1], got {self.score} for {self.name!r}")


def index_keypoints(keypoints) -> Dict[str, Keypoint]:
    """
    Map keypoints by name

    Unknown names are skipped; when a name repeats, the last one wins.
    """
    by_name: Dict[str, Keypoint] = {}
    for kp in keypoints or ():
        if kp is None:
            continue
        if kp.name not in COCO_KEYPOINT_INDICES:
            logger.debug(f"Ignoring unknown keypoint name: {kp.name!r}")
            continue
        by_name[kp.name] = kp
    return by_name


def select_primary_detection(detection_result: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Select the single person to analyse from a multi-detection result

    Strategy:
    1. Highest detection confidence
    2. Fallback: largest bounding box (when confidence is missing)

    Returns:
        The chosen detection dict, or None when nothing was detected
    """
    if not detection_result:
        return None

    detections = detection_result.get("detections") or []
    if not detections:
        return None

    has_confidence = any(
        d.get("confidence") is not None and d.get("confidence") > 0
        for d in detections
    )

    if has_confidence:
        return max(detections, key=lambda d: d.get("confidence") or 0.0)

    logger.warning("Detection confidence unavailable, using bounding box area as fallback")
    return max(detections, key=_bbox_area)


def _bbox_area(detection: Dict[str, Any]) -> float:
    bbox = detection.get("bbox")
    if bbox is None:
        return 0.0
    if isinstance(bbox, dict):
        x1, y1, x2, y2 = bbox.get("x1", 0), bbox.get("y1", 0), bbox.get("x2", 0), bbox.get("y2", 0)
    elif len(bbox) >= 4:
        x1, y1, x2, y2 = bbox[:4]
    else:
        return 0.0
    return abs(x2 - x1) * abs(y2 - y1)


def keypoints_from_detection(detection: Optional[Dict[str, Any]]) -> List[Keypoint]:
    """
    Convert one index-based detection into named keypoints

    Keypoints without a confidence field are taken at face value (score 1.0);
    out-of-range confidences are clipped to [0, 1].

    Args:
        detection: a single detection dict with a 'keypoints' list

    Returns:
        List of Keypoint, empty when the detection is missing
    """
    if not detection:
        return []

    keypoints: List[Keypoint] = []
    for kp in detection.get("keypoints") or []:
        name = _INDEX_TO_NAME.get(kp.get("index"))
        if name is None:
            continue
        confidence = kp.get("confidence")
        score = 1.0 if confidence is None else float(max(0.0, min(1.0, confidence)))
        keypoints.append(Keypoint(name=name, x=float(kp["x"]), y=float(kp["y"]), score=score))
    return keypoints
