"""
Bilateral keypoint aggregation (shoulder / hip centers)
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.constants import Constants
from .keypoints import Keypoint


@dataclass(frozen=True)
class CenterPoint:
    """
    Centroid of a keypoint group

    Attributes:
        x, y: mean position of the visible points
        confidence: coverage ratio (visible points / requested points)
    """
    x: float
    y: float
    confidence: float


def compute_center(
    points: Sequence[Optional[Keypoint]],
    min_score: float = Constants.MIN_SCORE
) -> Optional[CenterPoint]:
    """
    Average the visible points of a group

    Args:
        points: keypoints, any of which may be None (not detected)
        min_score: strict lower bound on a point's score

    Returns:
        CenterPoint, or None when no point is visible
    """
    total = len(points)
    visible = [p for p in points if p is not None and p.score > min_score]
    if not visible:
        return None

    xs = np.array([p.x for p in visible], dtype=float)
    ys = np.array([p.y for p in visible], dtype=float)
    return CenterPoint(
        x=float(np.mean(xs)),
        y=float(np.mean(ys)),
        confidence=len(visible) / total,
    )
