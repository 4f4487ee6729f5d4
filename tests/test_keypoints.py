from posture_monitor.pose import (
    COCO_KEYPOINT_INDICES,
    KEYPOINT_NAMES,
    keypoints_from_detection,
    select_primary_detection,
)


def detection(confidence, bbox=(0, 0, 10, 10), keypoints=None):
    return {"bbox": bbox if isinstance(bbox, dict) else list(bbox), "confidence": confidence, "keypoints": keypoints or []}


def test_vocabulary_is_coco_17():
    assert len(KEYPOINT_NAMES) == 17
    assert KEYPOINT_NAMES[0] == "nose"
    assert COCO_KEYPOINT_INDICES["right_ankle"] == 16


def test_keypoints_from_detection_maps_indices():
    det = detection(0.9, keypoints=[
        {"index": 0, "x": 10, "y": 20, "confidence": 0.8},
        {"index": 5, "x": 30, "y": 40, "confidence": 1.3},
        {"index": 6, "x": 50, "y": 60},
        {"index": 42, "x": 0, "y": 0, "confidence": 0.9},
    ])
    kps = keypoints_from_detection(det)

    assert [k.name for k in kps] == ["nose", "left_shoulder", "right_shoulder"]
    assert kps[0].x == 10.0 and kps[0].score == 0.8
    assert kps[1].score == 1.0  # clipped
    assert kps[2].score == 1.0  # missing confidence


def test_keypoints_from_missing_detection():
    assert keypoints_from_detection(None) == []
    assert keypoints_from_detection({}) == []


def test_select_primary_by_confidence():
    low, high = detection(0.4), detection(0.8)
    assert select_primary_detection({"detections": [low, high]}) is high


def test_select_primary_by_area_without_confidence():
    small = detection(None, bbox=(0, 0, 10, 10))
    large = detection(None, bbox={"x1": 0, "y1": 0, "x2": 50, "y2": 40})
    assert select_primary_detection({"detections": [small, large]}) is large


def test_select_primary_nothing_detected():
    assert select_primary_detection(None) is None
    assert select_primary_detection({"detections": []}) is None
