import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from logly import _LoggerProxy, logger

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryResult(Generic[T]):
    """Result of `with_retry`.

    Attributes:
        succeeded: True if some attempt did not fail.
        attempts: Number of times the action was invoked.
        value: Return value of the last attempt, if it returned.
        error: Exception raised by the last attempt, if it raised.
    """

    succeeded: bool
    attempts: int
    value: T | None = None
    error: Exception | None = None


def with_retry(
    action: Callable[[], T],
    max_attempts: int,
    delay_sec: float,
    *,
    is_failure: Callable[[T], bool] = lambda _: False,
    fatal: tuple[type[BaseException], ...] = (),
    description: str = "action",
    sleep: Callable[[float], None] = time.sleep,
    log: _LoggerProxy = logger,
) -> RetryResult[T]:
    """Runs `action` until it does not fail, at most `max_attempts` times.

    An attempt fails if it raises an exception or if `is_failure` returns True for
    its return value. The delay is fixed and is not applied after the final attempt.

    Args:
        action: Zero-argument unit of work.
        max_attempts: Upper bound on invocations; must be at least 1.
        delay_sec: Seconds to wait between attempts.
        is_failure: Predicate marking a returned value as a failure.
        fatal: Exception types that are re-raised immediately instead of retried.
        description: Label used in log lines.
        sleep: Sleep function, replaceable in tests.
        log: Logger receiving per-attempt lines.

    Returns:
        A `RetryResult` describing the first successful attempt, or the last failed
        one when every attempt failed.

    Raises:
        ValueError: If `max_attempts` is less than 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    value: T | None = None
    error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        value, error = None, None
        try:
            value = action()
        except fatal:
            raise
        except Exception as e:
            error = e
            log.warning(f"Attempt {attempt}/{max_attempts} for {description} raised: {e}")
        else:
            if not is_failure(value):
                return RetryResult(succeeded=True, attempts=attempt, value=value)
            log.warning(f"Attempt {attempt}/{max_attempts} for {description} failed")

        if attempt < max_attempts:
            log.info(f"Retrying {description} in {delay_sec} seconds...")
            sleep(delay_sec)

    return RetryResult(
        succeeded=False, attempts=max_attempts, value=value, error=error
    )
