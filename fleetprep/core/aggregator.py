from .winget_types import BatchSummary, Outcome


class ResultAggregator:
    """Tallies per-update outcomes for one batch.

    Outcomes are expected to be final (retries already exhausted). The tally is
    frozen by `finalize`; recording afterwards is an error.
    """

    def __init__(self) -> None:
        self._succeeded = 0
        self._failed_names: list[str] = []
        self._summary: BatchSummary | None = None

    @property
    def succeeded(self) -> int:
        return self._succeeded

    @property
    def failed(self) -> int:
        return len(self._failed_names)

    def record(self, name: str, outcome: Outcome) -> None:
        """Adds one update's outcome to the tally.

        Raises:
            RuntimeError: If the batch was already finalized.
        """
        if self._summary is not None:
            raise RuntimeError("batch already finalized")

        if outcome.is_failure:
            self._failed_names.append(name)
        else:
            self._succeeded += 1

    def finalize(self) -> BatchSummary:
        """Freezes the tally and derives the overall exit code (0 iff no failures)."""
        if self._summary is None:
            self._summary = BatchSummary(
                succeeded=self._succeeded,
                failed=self.failed,
                failed_names=tuple(self._failed_names),
                exit_code=0 if not self._failed_names else 1,
            )
        return self._summary
