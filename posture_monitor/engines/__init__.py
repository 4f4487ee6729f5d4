"""
Engine module
=============

Ties pose metrics, calibration and classification into one session object.
"""
from .posture_engine import PostureEngine

__all__ = [
    'PostureEngine',
]
