import pytest

from posture_monitor.pose import Keypoint


# upright sitter, frame coordinates (y grows downward)
UPRIGHT = {
    "nose": (250.0, 120.0),
    "left_shoulder": (200.0, 200.0),
    "right_shoulder": (300.0, 200.0),
    "left_hip": (210.0, 400.0),
    "right_hip": (290.0, 400.0),
}


def _build(points, score=0.9, scores=None):
    scores = scores or {}
    return [
        Keypoint(name=name, x=xy[0], y=xy[1], score=scores.get(name, score))
        for name, xy in points.items()
    ]


@pytest.fixture
def make_keypoints():
    """Factory: make_keypoints(overrides=None, score=0.9, scores=None, drop=())"""
    def factory(overrides=None, score=0.9, scores=None, drop=()):
        points = dict(UPRIGHT)
        points.update(overrides or {})
        for name in drop:
            points.pop(name, None)
        return _build(points, score=score, scores=scores)
    return factory


@pytest.fixture
def upright_keypoints(make_keypoints):
    return make_keypoints()
