from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class UpdateRecord:
    """Represents one row of a `winget upgrade` report.

    Attributes:
        name: Display name (free text, may contain spaces).
        id: Package identifier, unique within one report.
        current_version: Installed version string.
        available_version: Version string the upgrade would install.
    """

    name: str
    id: str
    current_version: str = ""
    available_version: str = ""


@dataclass(frozen=True, slots=True)
class UpgradeReport:
    """Parsed `winget upgrade` report.

    Attributes:
        records: Parsed rows in source order.
        rejected: Rows that could not be parsed.
        has_table: True if the header separator was seen. False means winget
            printed no table at all, which is different from a table with no rows.
    """

    records: tuple[UpdateRecord, ...] = ()
    rejected: tuple[str, ...] = ()
    has_table: bool = False


@dataclass(frozen=True, slots=True)
class InvocationResult:
    """Outcome of one package-manager invocation.

    Attributes:
        exit_code: Process exit code.
        stdout: Combined stdout and stderr text.
    """

    exit_code: int
    stdout: str = ""


class OutcomeKind(Enum):
    SUCCESS = "success"
    ALREADY_SATISFIED = "already_satisfied"
    UPDATE_AVAILABLE = "update_available"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class Outcome:
    """Classified result of applying one update.

    `code` is set for failures that came from a process exit code. It is None when
    the failure was an exception raised before an exit code existed.
    """

    kind: OutcomeKind
    code: int | None = None

    @classmethod
    def success(cls) -> "Outcome":
        return cls(OutcomeKind.SUCCESS, 0)

    @classmethod
    def failure(cls, code: int | None = None) -> "Outcome":
        return cls(OutcomeKind.FAILURE, code)

    @property
    def is_failure(self) -> bool:
        return self.kind is OutcomeKind.FAILURE


@dataclass(frozen=True, slots=True)
class BatchSummary:
    """Final tally of one batch.

    Attributes:
        succeeded: Number of updates with a success-equivalent outcome.
        failed: Number of updates that failed after all retries.
        failed_names: Display names of failed updates, in the order recorded.
        exit_code: 0 when nothing failed, otherwise 1.
    """

    succeeded: int
    failed: int
    failed_names: tuple[str, ...] = ()
    exit_code: int = 0
