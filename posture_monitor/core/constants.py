"""
System constants
"""

class Constants:
    """System constants"""
    # Keypoint gating
    MIN_SCORE = 0.3  # minimum per-keypoint score to count as visible

    # Confidence weights per feature group
    SHOULDER_ANGLE_WEIGHT = 2.0
    TORSO_WEIGHT = 2.0
    NOSE_WEIGHT = 1.0

    # Calibration
    CALIBRATION_MAX_ATTEMPTS = 10
    CALIBRATION_REQUIRED_SAMPLES = 3
    CALIBRATION_MIN_CONFIDENCE = 0.5  # strict: sample must exceed this
    CALIBRATION_RETRY_DELAY = 0.3  # seconds between attempts

    # Classification
    CLASSIFY_MIN_CONFIDENCE = 0.3
    NOSE_SLOUCH_TOLERANCE = -70.0  # px, nose y relative to shoulder center
    SLOUCH_TOLERANCE = 15.0  # px, shoulder-hip vertical distance
    LEAN_TOLERANCE = 15.0  # px, shoulder-hip horizontal offset
    ANGLE_TOLERANCE = 10.0  # degrees, torso angle from vertical
    FORWARD_HEAD_TOLERANCE = 15.0  # px, nose x relative to shoulder center
