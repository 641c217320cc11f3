import time
from enum import Enum
from typing import Callable

from logly import _LoggerProxy, logger

from fleetprep.core.aggregator import ResultAggregator
from fleetprep.core.errors import ExecutionError, FatalInitError
from fleetprep.core.exit_codes import (
    NOTHING_TO_UPGRADE_CODES,
    classify,
    describe_exit_code,
)
from fleetprep.core.retry import with_retry
from fleetprep.core.winget_types import (
    BatchSummary,
    InvocationResult,
    Outcome,
    OutcomeKind,
    UpdateRecord,
)
from fleetprep.core.winget_upgrade_parser import parse_upgrade_report
from fleetprep.infra.command_runner import run_command
from fleetprep.infra.completion_marker import CompletionReporter
from fleetprep.infra.settings import Settings
from fleetprep.infra.winget import (
    build_apply_upgrade_args,
    build_list_upgrades_args,
    find_winget_executable,
)

Runner = Callable[..., InvocationResult]


class BatchState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    INSTALLING = "installing"
    AGGREGATING = "aggregating"
    DONE_NOOP = "done_noop"
    DONE_SUCCESS = "done_success"
    DONE_PARTIAL_FAILURE = "done_partial_failure"


class UpdateOrchestrator:
    """Scans for pending winget upgrades and applies them one at a time.

    Updates run strictly in sequence; each one finishes all of its attempts before
    the next starts. Per-update failures are recorded and never stop the batch.
    Only an unavailable package manager aborts the run.
    """

    def __init__(
        self,
        settings: Settings,
        reporter: CompletionReporter,
        *,
        runner: Runner = run_command,
        locate: Callable[[], str | None] = find_winget_executable,
        sleep: Callable[[float], None] = time.sleep,
        log: _LoggerProxy = logger,
    ):
        """Initializes the orchestrator.

        Args:
            settings: Validated run settings.
            reporter: Receives the completion marker on full success.
            runner: Command runner, `run_command` compatible.
            locate: Returns the winget path, or None when it is not installed.
            sleep: Sleep used between retry attempts.
            log: Logger shared by every phase.
        """
        self._settings = settings
        self._reporter = reporter
        self._runner = runner
        self._locate = locate
        self._sleep = sleep
        self._log = log
        self._state = BatchState.IDLE
        self._excluded = {pid.lower() for pid in settings.exclude_ids}

    @property
    def state(self) -> BatchState:
        return self._state

    def resolve_winget(self) -> str:
        """Returns the winget executable to use.

        Raises:
            FatalInitError: If no winget executable can be found.
        """
        exe = self._settings.winget_path or self._locate()
        if not exe:
            raise FatalInitError("winget (Windows Package Manager) is not installed")
        self._log.info(f"Using winget at {exe}")
        return exe

    def _invoke(self, exe: str, args: list[str]) -> InvocationResult:
        return self._runner(
            exe, args, timeout_sec=self._settings.timeout_sec, log=self._log
        )

    def scan(self, exe: str) -> list[UpdateRecord]:
        """Lists pending upgrades, minus excluded package ids.

        Raises:
            ExecutionError: If winget cannot be started.
            FatalInitError: If the listing failed without printing a table.
        """
        self._state = BatchState.SCANNING
        self._log.info("Scanning for available upgrades")

        result = self._invoke(
            exe, build_list_upgrades_args(self._settings.include_unknown)
        )
        report = parse_upgrade_report(result.stdout)
        if result.exit_code not in NOTHING_TO_UPGRADE_CODES:
            described = describe_exit_code(result.exit_code)
            if not report.has_table:
                raise FatalInitError(f"winget upgrade listing failed: {described}")
            self._log.warning(f"winget upgrade listing exited with {described}")

        if report.rejected:
            self._log.warning(
                f"Skipped {len(report.rejected)} unparsable row(s) in the upgrade report"
            )
            for row in report.rejected:
                self._log.debug(f"Rejected row: {row!r}")

        records: list[UpdateRecord] = []
        for record in report.records:
            if record.id.lower() in self._excluded:
                self._log.info(f"Excluded by configuration: {record.name} ({record.id})")
                continue
            records.append(record)

        self._log.info(f"Found {len(records)} upgrade(s)")
        for record in records:
            self._log.info(
                f"  {record.name} ({record.id}) "
                f"{record.current_version} -> {record.available_version}"
            )
        return records

    def apply_update(self, exe: str, record: UpdateRecord) -> Outcome:
        """Applies one upgrade with the configured retry policy.

        Returns:
            The classified outcome of the last attempt.

        Raises:
            ExecutionError: If winget cannot be started.
        """
        self._log.info(
            f"Upgrading {record.name} ({record.id}) to {record.available_version}"
        )
        retry = with_retry(
            lambda: self._invoke(exe, build_apply_upgrade_args(record.id)),
            self._settings.max_attempts,
            self._settings.retry_delay_sec,
            is_failure=lambda r: classify(r.exit_code).is_failure,
            fatal=(ExecutionError,),
            description=record.id,
            sleep=self._sleep,
            log=self._log,
        )

        if retry.value is not None:
            outcome = classify(retry.value.exit_code)
        else:
            outcome = Outcome.failure()

        if outcome.is_failure:
            reason = (
                describe_exit_code(outcome.code)
                if outcome.code is not None
                else f"error: {retry.error}"
            )
            self._log.error(
                f"Failed to upgrade {record.name} after {retry.attempts} attempt(s): "
                f"{reason}"
            )
        elif outcome.kind is OutcomeKind.SUCCESS:
            self._log.success(f"Upgraded {record.name}")
        else:
            self._log.success(
                f"{record.name} needs no action: {describe_exit_code(outcome.code or 0)}"
            )
        return outcome

    def list_pending(self) -> list[UpdateRecord]:
        """Scans without applying anything."""
        return self.scan(self.resolve_winget())

    def run(self) -> BatchSummary:
        """Runs one full batch.

        Returns:
            The batch summary; `exit_code` is the process exit status to use.

        Raises:
            FatalInitError: If winget is not installed or the listing failed.
            ExecutionError: If winget cannot be started during scan or install.
        """
        exe = self.resolve_winget()
        records = self.scan(exe)

        if not records:
            self._state = BatchState.DONE_NOOP
            self._log.success("No upgrades available")
            summary = ResultAggregator().finalize()
            self._report_completion()
            return summary

        self._state = BatchState.INSTALLING
        aggregator = ResultAggregator()
        for index, record in enumerate(records, start=1):
            self._log.info(f"[{index}/{len(records)}] {record.id}")
            aggregator.record(record.name, self.apply_update(exe, record))

        self._state = BatchState.AGGREGATING
        summary = aggregator.finalize()
        self._log.warning(f"{summary.succeeded} succeeded, {summary.failed} failed")

        if summary.exit_code == 0:
            self._state = BatchState.DONE_SUCCESS
            self._report_completion()
        else:
            self._state = BatchState.DONE_PARTIAL_FAILURE
            self._log.error(f"Failed upgrades: {', '.join(summary.failed_names)}")
        return summary

    def _report_completion(self) -> None:
        self._reporter.report_success(
            self._settings.marker_label, self._settings.marker_version
        )
