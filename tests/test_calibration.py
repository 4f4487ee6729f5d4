import asyncio

import pytest

from posture_monitor.calibration import (
    CalibrationSession,
    FailedState,
    FailureReason,
    SamplingState,
    SuccessState,
    fold_sample,
)
from posture_monitor.pose import METRIC_FIELDS, PostureMetrics, ReferencePosture


def sample(value=10.0, confidence=0.9):
    return PostureMetrics(confidence=confidence, **{name: value for name in METRIC_FIELDS})


def scripted(samples):
    """Sample source replaying a list; None entries mean no person"""
    it = iter(samples)
    calls = []

    def source():
        calls.append(1)
        return next(it)

    source.calls = calls
    return source


def run(session):
    return asyncio.run(session.run())


def test_running_mean_sequence():
    session = CalibrationSession()
    means = []
    for value in (10.0, 20.0, 30.0):
        state = session.step(sample(value))
        acc = state.accumulator if isinstance(state, SamplingState) else state.reference.to_dict()
        means.append(acc["shoulder_hip_x_diff"])
    assert means == [10.0, 15.0, 20.0]
    assert isinstance(session.state, SuccessState)


def test_equal_samples_average_to_the_same_value():
    acc = {name: 0.0 for name in METRIC_FIELDS}
    for n in (1, 2, 3):
        acc = fold_sample(acc, sample(42.0), n)
    assert all(v == 42.0 for v in acc.values())


def test_confidence_exactly_at_gate_never_counts():
    published = []
    session = CalibrationSession(on_complete=published.append)
    for _ in range(10):
        state = session.step(sample(confidence=0.5))
    assert state == FailedState(reason=FailureReason.LOW_CONFIDENCE, attempts=10)
    assert published == []


def test_succeeds_on_third_good_sample():
    published = []
    source = scripted([sample(confidence=0.51)] * 10)
    session = CalibrationSession(source, on_complete=published.append, retry_delay=0)

    reference = run(session)

    assert len(source.calls) == 3
    assert isinstance(session.state, SuccessState)
    assert session.state.attempts == 3
    assert published == [reference]
    assert reference == ReferencePosture(**{name: 10.0 for name in METRIC_FIELDS})


def test_retries_between_failures():
    source = scripted([None, sample(confidence=0.2), sample(), None, sample(), sample()])
    session = CalibrationSession(source, retry_delay=0)

    reference = run(session)

    assert reference is not None
    assert len(source.calls) == 6
    assert session.state.attempts == 6


def test_exhausted_without_person():
    published = []
    source = scripted([None] * 10)
    session = CalibrationSession(source, on_complete=published.append, retry_delay=0)

    assert run(session) is None
    assert session.state == FailedState(reason=FailureReason.NO_PERSON_DETECTED, attempts=10)
    assert len(source.calls) == 10
    assert published == []


def test_failure_reason_is_the_last_one_seen():
    source = scripted([None] * 9 + [sample(confidence=0.1)])
    session = CalibrationSession(source, retry_delay=0)
    run(session)
    assert session.state.reason is FailureReason.LOW_CONFIDENCE


def test_two_good_samples_are_not_enough():
    source = scripted([sample(), sample()] + [None] * 8)
    session = CalibrationSession(source, retry_delay=0)
    assert run(session) is None
    assert session.state.reason is FailureReason.NO_PERSON_DETECTED


def test_attempts_exhausted_without_any_rejection():
    messages = []
    session = CalibrationSession(on_status=messages.append, max_attempts=2)
    session.step(sample())
    state = session.step(sample())

    assert state == FailedState(reason=FailureReason.INSUFFICIENT_SAMPLES, attempts=2)
    assert messages[-1] == "Calibration failed: not enough samples"


def test_async_source_and_status_messages():
    messages = []

    async def source():
        await asyncio.sleep(0)
        return sample(5.0)

    session = CalibrationSession(source, on_status=messages.append, retry_delay=0)
    reference = run(session)

    assert reference.nose_shoulder_dist == 5.0
    assert messages[0].startswith("Calibrating")
    assert "Calibrating... 1/3" in messages
    assert messages[-1] == "Calibration complete"


def test_source_errors_count_as_missing_person():
    def broken():
        raise RuntimeError("camera gone")

    session = CalibrationSession(broken, max_attempts=2, retry_delay=0)
    assert run(session) is None
    assert session.state.reason is FailureReason.NO_PERSON_DETECTED


def test_suspends_between_attempts(monkeypatch):
    delays = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    session = CalibrationSession(scripted([None, sample(), sample(), sample()]))
    run(session)

    assert delays == [0.3, 0.3, 0.3]


def test_step_after_completion_is_noop():
    session = CalibrationSession(max_attempts=1)
    final = session.step(None)
    assert session.done
    assert session.step(sample()) is final


def test_run_requires_a_source():
    with pytest.raises(RuntimeError):
        run(CalibrationSession())
