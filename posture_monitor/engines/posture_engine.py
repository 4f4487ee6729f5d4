"""
Posture engine
==============

Owns the per-user reference posture and wires the pose, calibration and
classification modules together:
- pull-based per-frame entry point (process_frame)
- single in-flight calibration session (start_calibration)
- atomic replacement of the reference posture
- status text side channel for the presentation layer
"""

import inspect
import os
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Union

from ..calibration import CalibrationSession, CalibrationState
from ..classification import ClassificationResult, ClassifierThresholds, PostureClassifier, PostureLabel
from ..core.constants import Constants
from ..core.logger import logger
from ..pose import (
    Keypoint,
    PostureMetrics,
    PostureMetricsExtractor,
    ReferencePosture,
    keypoints_from_detection,
    select_primary_detection,
)


PoseSource = Callable[[], Union[Optional[Iterable[Keypoint]], Awaitable[Optional[Iterable[Keypoint]]]]]


class PostureEngine:
    """
    Posture engine

    Responsibilities:
    - Extract metrics from each frame and classify them against the reference
    - Run calibration sessions and publish their result
    - Keep the latest status text for display

    Usage:
        engine = PostureEngine.from_config()

        # host loop (UI timer, game loop, test harness)
        result = engine.process_frame(keypoints)
        label, text = result.status, engine.status_text

        # "start calibration" event
        await engine.start_calibration(pose_source)
    """

    def __init__(
        self,
        extractor: Optional[PostureMetricsExtractor] = None,
        classifier: Optional[PostureClassifier] = None,
        max_attempts: int = Constants.CALIBRATION_MAX_ATTEMPTS,
        required_samples: int = Constants.CALIBRATION_REQUIRED_SAMPLES,
        min_confidence: float = Constants.CALIBRATION_MIN_CONFIDENCE,
        retry_delay: float = Constants.CALIBRATION_RETRY_DELAY,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            extractor: metrics extractor (default MIN_SCORE gate)
            classifier: rule-cascade classifier (default thresholds)
            max_attempts: calibration attempt cap
            required_samples: good samples per calibration
            min_confidence: calibration sample gate (strict)
            retry_delay: seconds between calibration attempts
            on_status: optional listener for status text changes
        """
        self.extractor = extractor or PostureMetricsExtractor()
        self.classifier = classifier or PostureClassifier()
        self.max_attempts = max_attempts
        self.required_samples = required_samples
        self.min_confidence = min_confidence
        self.retry_delay = retry_delay
        self.on_status = on_status

        self._reference = ReferencePosture()
        self._session: Optional[CalibrationSession] = None
        self._last_calibration: Optional[CalibrationState] = None
        self._status_text = "Not calibrated"
        self._last_result: Optional[ClassificationResult] = None
        self._frame_count = 0

        self._log_interval_seconds = max(0.1, float(os.getenv("POSTURE_LOG_INTERVAL", "1.0")))
        self._last_log_time = 0.0

        logger.info(
            f"PostureEngine initialized (min_score={self.extractor.min_score}, "
            f"calibration={required_samples}/{max_attempts} @ {retry_delay}s)"
        )

    @classmethod
    def from_config(cls, config=None, **kwargs) -> "PostureEngine":
        """
        Build an engine from system_config.json values

        Keyword arguments override the configured values.
        """
        from ..core.config_loader import get_posture_constants

        constants = get_posture_constants(config)
        configured = dict(
            extractor=PostureMetricsExtractor(min_score=constants["MIN_SCORE"]),
            classifier=PostureClassifier(ClassifierThresholds.from_constants(constants)),
            max_attempts=constants["CALIBRATION_MAX_ATTEMPTS"],
            required_samples=constants["CALIBRATION_REQUIRED_SAMPLES"],
            min_confidence=constants["CALIBRATION_MIN_CONFIDENCE"],
            retry_delay=constants["CALIBRATION_RETRY_DELAY"],
        )
        return cls(**{**configured, **kwargs})

    # ---------- state ----------
    @property
    def reference(self) -> ReferencePosture:
        return self._reference

    @property
    def is_calibrated(self) -> bool:
        return not self._reference.is_zero

    @property
    def is_calibrating(self) -> bool:
        return self._session is not None

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def last_calibration(self) -> Optional[CalibrationState]:
        return self._last_calibration

    @property
    def last_result(self) -> Optional[ClassificationResult]:
        return self._last_result

    # ---------- per-frame ----------
    def extract(self, keypoints: Optional[Iterable[Keypoint]]) -> PostureMetrics:
        return self.extractor.extract(keypoints or ())

    def process_frame(self, keypoints: Optional[Iterable[Keypoint]]) -> ClassificationResult:
        """
        Classify one frame against the current reference

        Args:
            keypoints: the frame's keypoints; None or empty when nobody is visible

        Returns:
            ClassificationResult
        """
        self._frame_count += 1
        metrics = self.extract(keypoints)
        result = self.classifier.classify(metrics, self._reference)
        result.debug_info["calibrated"] = self.is_calibrated
        result.debug_info["frame"] = self._frame_count

        previous = self._last_result.status if self._last_result else None
        self._last_result = result

        if result.status != previous:
            logger.debug(f"Posture changed: {previous.value if previous else None} -> {result.status.value}")

        # calibration messages stay up until the session ends
        if not self.is_calibrating:
            self._set_status(result.status_text)

        self._maybe_log(result)
        return result

    def process_detection(self, detection_result: Optional[Dict[str, Any]]) -> ClassificationResult:
        """process_frame() for a raw multi-detection result (primary person only)"""
        detection = select_primary_detection(detection_result)
        return self.process_frame(keypoints_from_detection(detection))

    # ---------- calibration ----------
    async def start_calibration(self, pose_source: PoseSource) -> Optional[ReferencePosture]:
        """
        Run one calibration session

        Args:
            pose_source: returns the current keypoints, or None when no person
                is detected; may be a coroutine function

        Returns:
            The new reference, or None when the session failed or another
            session is already running
        """
        if self._session is not None:
            logger.warning("Calibration already in progress, ignoring request")
            return None

        async def sample_source() -> Optional[PostureMetrics]:
            keypoints = pose_source()
            if inspect.isawaitable(keypoints):
                keypoints = await keypoints
            if not keypoints:
                return None
            return self.extract(keypoints)

        session = CalibrationSession(
            sample_source=sample_source,
            on_complete=self._publish_reference,
            on_status=self._set_status,
            max_attempts=self.max_attempts,
            required_samples=self.required_samples,
            min_confidence=self.min_confidence,
            retry_delay=self.retry_delay,
        )
        self._session = session
        try:
            return await session.run()
        finally:
            self._last_calibration = session.state
            self._session = None

    def _publish_reference(self, reference: ReferencePosture) -> None:
        # single assignment; readers see the old or the new reference, never a mix
        self._reference = reference

    # ---------- helpers ----------
    def _set_status(self, text: str) -> None:
        if text == self._status_text:
            return
        self._status_text = text
        if self.on_status is not None:
            self.on_status(text)

    def _maybe_log(self, result: ClassificationResult) -> None:
        now = time.monotonic()
        if now - self._last_log_time < self._log_interval_seconds:
            return
        self._last_log_time = now
        if result.status is PostureLabel.LOW_CONFIDENCE:
            logger.debug(f"[frame {self._frame_count}] low confidence ({result.confidence:.2f})")
        else:
            deltas = result.debug_info.get("deltas", {})
            logger.debug(
                f"[frame {self._frame_count}] {result.status.value} "
                f"conf={result.confidence:.2f} "
                + " ".join(f"{k}={v:.1f}" for k, v in deltas.items())
            )
