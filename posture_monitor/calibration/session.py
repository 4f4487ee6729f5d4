"""
Calibration session
==================

Collects a few confident posture samples and averages them into a new
reference posture.

States:
    SamplingState(attempt, success_count, accumulator)
        -> SuccessState(reference)   after `required_samples` good samples
        -> FailedState(reason)       after `max_attempts` attempts

The machine is advanced one attempt at a time by ``step()``; ``run()`` is the
asyncio driver that pulls samples and suspends between attempts. The reference
is published once, through ``on_complete``, when the session succeeds.
"""
import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Union

from ..core.constants import Constants
from ..core.logger import logger
from ..pose.metrics import METRIC_FIELDS, PostureMetrics, ReferencePosture


SampleSource = Callable[[], Union[Optional[PostureMetrics], Awaitable[Optional[PostureMetrics]]]]


class FailureReason(Enum):
    NO_PERSON_DETECTED = "no_person_detected"
    LOW_CONFIDENCE = "low_confidence"
    INSUFFICIENT_SAMPLES = "insufficient_samples"  # attempts ran out, none rejected


FAILURE_TEXT = {
    FailureReason.NO_PERSON_DETECTED: "no person detected",
    FailureReason.LOW_CONFIDENCE: "pose confidence too low",
    FailureReason.INSUFFICIENT_SAMPLES: "not enough samples",
}


def _zero_accumulator() -> Dict[str, float]:
    return {name: 0.0 for name in METRIC_FIELDS}


@dataclass(frozen=True)
class SamplingState:
    attempt: int = 0
    success_count: int = 0
    accumulator: Dict[str, float] = field(default_factory=_zero_accumulator)
    last_failure: Optional[FailureReason] = None


@dataclass(frozen=True)
class SuccessState:
    reference: ReferencePosture
    attempts: int


@dataclass(frozen=True)
class FailedState:
    reason: FailureReason
    attempts: int


CalibrationState = Union[SamplingState, SuccessState, FailedState]


def fold_sample(accumulator: Dict[str, float], sample: PostureMetrics, n: int) -> Dict[str, float]:
    """
    Incremental mean over metric fields

    acc[f] = (acc[f] * (n - 1) + sample[f]) / n, n = samples including this one.
    Confidence is not averaged.
    """
    return {
        name: (accumulator[name] * (n - 1) + getattr(sample, name)) / n
        for name in METRIC_FIELDS
    }


class CalibrationSession:
    """
    Bounded, retrying multi-sample calibration

    Usage:
        session = CalibrationSession(
            sample_source=lambda: extractor.extract(provider()),
            on_complete=engine_set_reference,
            on_status=print,
        )
        reference = await session.run()   # None on failure
    """

    def __init__(
        self,
        sample_source: Optional[SampleSource] = None,
        on_complete: Optional[Callable[[ReferencePosture], None]] = None,
        on_status: Optional[Callable[[str], None]] = None,
        max_attempts: int = Constants.CALIBRATION_MAX_ATTEMPTS,
        required_samples: int = Constants.CALIBRATION_REQUIRED_SAMPLES,
        min_confidence: float = Constants.CALIBRATION_MIN_CONFIDENCE,
        retry_delay: float = Constants.CALIBRATION_RETRY_DELAY,
    ):
        """
        Args:
            sample_source: returns the current metrics, or None when no person
                is detected; may be a coroutine function
            on_complete: receives the averaged reference on success
            on_status: receives human-readable progress text
            max_attempts: total attempts before giving up
            required_samples: good samples needed
            min_confidence: a sample counts only when its confidence is strictly above this
            retry_delay: seconds to suspend between attempts
        """
        self.sample_source = sample_source
        self.on_complete = on_complete
        self.on_status = on_status
        self.max_attempts = int(max_attempts)
        self.required_samples = int(required_samples)
        self.min_confidence = float(min_confidence)
        self.retry_delay = float(retry_delay)

        self._state: CalibrationState = SamplingState()

    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def done(self) -> bool:
        return not isinstance(self._state, SamplingState)

    def step(self, sample: Optional[PostureMetrics]) -> CalibrationState:
        """
        Feed one attempt's sample into the state machine

        Args:
            sample: metrics of this attempt, None when no person was detected

        Returns:
            The new state. Calling step() on a finished session is a no-op.
        """
        state = self._state
        if not isinstance(state, SamplingState):
            return state

        attempt = state.attempt + 1

        if sample is None or sample.confidence <= self.min_confidence:
            reason = FailureReason.NO_PERSON_DETECTED if sample is None else FailureReason.LOW_CONFIDENCE
            logger.debug(f"Calibration attempt {attempt}/{self.max_attempts} rejected: {reason.value}")
            if attempt >= self.max_attempts:
                return self._fail(reason, attempt)
            self._state = SamplingState(attempt, state.success_count, state.accumulator, reason)
            self._emit(f"Calibrating... {FAILURE_TEXT[reason]}, retrying "
                       f"({state.success_count}/{self.required_samples})")
            return self._state

        n = state.success_count + 1
        accumulator = fold_sample(state.accumulator, sample, n)
        logger.debug(f"Calibration attempt {attempt}/{self.max_attempts} accepted "
                     f"(sample {n}/{self.required_samples}, confidence={sample.confidence:.2f})")

        if n >= self.required_samples:
            return self._succeed(ReferencePosture.from_dict(accumulator), attempt)

        if attempt >= self.max_attempts:
            return self._fail(state.last_failure or FailureReason.INSUFFICIENT_SAMPLES, attempt)

        self._state = SamplingState(attempt, n, accumulator, state.last_failure)
        self._emit(f"Calibrating... {n}/{self.required_samples}")
        return self._state

    async def run(self) -> Optional[ReferencePosture]:
        """
        Drive the session to completion

        Returns:
            The new reference on success, None when attempts ran out
        """
        if self.sample_source is None:
            raise RuntimeError("CalibrationSession.run() needs a sample_source")

        logger.info(
            f"Calibration started (samples={self.required_samples}, "
            f"max_attempts={self.max_attempts}, delay={self.retry_delay}s)"
        )
        self._emit("Calibrating... hold a good posture")

        while not self.done:
            sample = await self._acquire()
            self.step(sample)
            if not self.done:
                await asyncio.sleep(self.retry_delay)

        state = self._state
        return state.reference if isinstance(state, SuccessState) else None

    async def _acquire(self) -> Optional[PostureMetrics]:
        try:
            sample = self.sample_source()
            if inspect.isawaitable(sample):
                sample = await sample
            return sample
        except Exception as e:
            logger.error(f"Calibration sample acquisition failed: {e}")
            return None

    def _succeed(self, reference: ReferencePosture, attempts: int) -> SuccessState:
        self._state = SuccessState(reference=reference, attempts=attempts)
        logger.info(f"Calibration complete after {attempts} attempts: {reference}")
        if self.on_complete is not None:
            self.on_complete(reference)
        self._emit("Calibration complete")
        return self._state

    def _fail(self, reason: FailureReason, attempts: int) -> FailedState:
        self._state = FailedState(reason=reason, attempts=attempts)
        logger.warning(f"Calibration failed after {attempts} attempts: {reason.value}")
        self._emit(f"Calibration failed: {FAILURE_TEXT[reason]}")
        return self._state

    def _emit(self, text: str) -> None:
        if self.on_status is not None:
            self.on_status(text)
