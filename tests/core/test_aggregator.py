import pytest

from fleetprep.core.aggregator import ResultAggregator
from fleetprep.core.winget_types import BatchSummary, Outcome, OutcomeKind


def test_finalize_without_records_is_success() -> None:
    assert ResultAggregator().finalize() == BatchSummary(
        succeeded=0, failed=0, failed_names=(), exit_code=0
    )


def test_finalize_counts_success_equivalents_and_keeps_failure_order() -> None:
    aggregator = ResultAggregator()

    aggregator.record("Gamma", Outcome.failure(5))
    aggregator.record("Alpha", Outcome.success())
    aggregator.record("Beta", Outcome(OutcomeKind.ALREADY_SATISFIED, -1978335189))
    aggregator.record("Delta", Outcome.failure())
    aggregator.record("Eps", Outcome(OutcomeKind.UPDATE_AVAILABLE, -1978335135))

    assert aggregator.finalize() == BatchSummary(
        succeeded=3,
        failed=2,
        failed_names=("Gamma", "Delta"),
        exit_code=1,
    )


def test_running_counts_are_visible_before_finalize() -> None:
    aggregator = ResultAggregator()
    aggregator.record("Alpha", Outcome.success())
    aggregator.record("Beta", Outcome.failure(1))

    assert (aggregator.succeeded, aggregator.failed) == (1, 1)


def test_record_after_finalize_raises() -> None:
    aggregator = ResultAggregator()
    aggregator.record("Alpha", Outcome.success())
    first = aggregator.finalize()

    with pytest.raises(RuntimeError):
        aggregator.record("Beta", Outcome.failure(1))

    assert aggregator.finalize() is first
