import pytest

from fleetprep.core.errors import ExecutionError
from fleetprep.core.retry import with_retry


class _RecordingLog:
    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def __getattr__(self, level: str):
        return lambda message: self.lines.append((level, message))


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_with_retry_invokes_always_failing_action_max_attempts_times() -> None:
    clock = _FakeClock()
    calls: list[int] = []

    def action() -> int:
        calls.append(1)
        raise RuntimeError(f"boom {len(calls)}")

    result = with_retry(action, 4, 2.5, sleep=clock.sleep, log=_RecordingLog())

    assert len(calls) == 4
    assert not result.succeeded
    assert result.attempts == 4
    assert str(result.error) == "boom 4"
    assert clock.sleeps == [2.5, 2.5, 2.5]
    assert clock.now >= (4 - 1) * 2.5


def test_with_retry_returns_last_failed_value() -> None:
    clock = _FakeClock()
    codes = iter([3, 4, 5])

    result = with_retry(
        lambda: next(codes),
        3,
        1,
        is_failure=lambda code: code != 0,
        sleep=clock.sleep,
        log=_RecordingLog(),
    )

    assert not result.succeeded
    assert result.value == 5
    assert result.error is None
    assert len(clock.sleeps) == 2


def test_with_retry_stops_at_first_success() -> None:
    clock = _FakeClock()
    codes = iter([1, 1, 0, 0])
    calls: list[int] = []

    def action() -> int:
        code = next(codes)
        calls.append(code)
        return code

    result = with_retry(
        action,
        5,
        10,
        is_failure=lambda code: code != 0,
        sleep=clock.sleep,
        log=_RecordingLog(),
    )

    assert result.succeeded
    assert result.attempts == 3
    assert result.value == 0
    assert calls == [1, 1, 0]
    assert clock.sleeps == [10, 10]


def test_with_retry_single_attempt_never_sleeps() -> None:
    clock = _FakeClock()

    result = with_retry(
        lambda: 9, 1, 30, is_failure=lambda code: code != 0, sleep=clock.sleep,
        log=_RecordingLog(),
    )

    assert not result.succeeded
    assert clock.sleeps == []


def test_with_retry_reraises_fatal_exceptions_immediately() -> None:
    clock = _FakeClock()
    calls: list[int] = []

    def action() -> int:
        calls.append(1)
        raise ExecutionError("winget missing", ["winget"])

    with pytest.raises(ExecutionError):
        with_retry(
            action, 3, 1, fatal=(ExecutionError,), sleep=clock.sleep,
            log=_RecordingLog(),
        )

    assert calls == [1]
    assert clock.sleeps == []


def test_with_retry_logs_each_failed_attempt() -> None:
    log = _RecordingLog()

    with_retry(
        lambda: 1, 2, 0, is_failure=bool, description="Foo.Id",
        sleep=lambda _: None, log=log,
    )

    warnings = [message for level, message in log.lines if level == "warning"]
    assert warnings == [
        "Attempt 1/2 for Foo.Id failed",
        "Attempt 2/2 for Foo.Id failed",
    ]


def test_with_retry_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        with_retry(lambda: None, 0, 1)
