from dataclasses import FrozenInstanceError

import pytest

from fleetprep.core.winget_types import (
    BatchSummary,
    InvocationResult,
    Outcome,
    OutcomeKind,
    UpdateRecord,
    UpgradeReport,
)


def test_update_record_default_versions_are_empty_strings() -> None:
    record = UpdateRecord(name="Foo App", id="Foo.Id")

    assert record.current_version == ""
    assert record.available_version == ""


def test_upgrade_report_defaults_to_no_table() -> None:
    report = UpgradeReport()

    assert report.records == ()
    assert report.rejected == ()
    assert report.has_table is False


def test_upgrade_report_fields_are_immutable() -> None:
    report = UpgradeReport(records=(UpdateRecord(name="a", id="b"),))

    with pytest.raises(AttributeError):
        report.records.append(UpdateRecord(name="c", id="d"))  # type: ignore[attr-defined]


def test_outcome_helpers() -> None:
    assert Outcome.success() == Outcome(OutcomeKind.SUCCESS, 0)
    assert Outcome.failure(7).is_failure
    assert Outcome.failure().code is None
    assert not Outcome(OutcomeKind.ALREADY_SATISFIED).is_failure


def test_batch_summary_defaults() -> None:
    summary = BatchSummary(succeeded=2, failed=0)

    assert summary.failed_names == ()
    assert summary.exit_code == 0


def test_winget_types_are_frozen_dataclasses() -> None:
    result = InvocationResult(exit_code=0)

    with pytest.raises(FrozenInstanceError):
        result.exit_code = 1  # type: ignore[misc]
