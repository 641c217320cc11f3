"""Exit-code taxonomy for the Windows Package Manager (winget).

winget reports HRESULT-style errors as negative 32-bit process exit codes. The
values below come from the App Installer CLI error table
(`APPINSTALLER_CLI_ERROR_*`, facility 0x8A15) published with winget-cli 1.x.
Only the codes in `WingetExitCode` influence classification; the descriptive
names in `_KNOWN_FAILURES` are used for log output only.
"""

from enum import IntEnum
from typing import Final

from .winget_types import Outcome, OutcomeKind


class WingetExitCode(IntEnum):
    SUCCESS = 0
    # 0x8A15002B APPINSTALLER_CLI_ERROR_UPDATE_NOT_APPLICABLE:
    # no applicable update found, the installed version is current.
    ALREADY_SATISFIED = -1978335189
    # 0x8A150061 APPINSTALLER_CLI_ERROR_PACKAGE_ALREADY_INSTALLED:
    # the package is installed and a newer version is offered as an upgrade.
    UPDATE_AVAILABLE = -1978335135


_OUTCOME_BY_CODE: Final[dict[int, OutcomeKind]] = {
    WingetExitCode.SUCCESS: OutcomeKind.SUCCESS,
    WingetExitCode.ALREADY_SATISFIED: OutcomeKind.ALREADY_SATISFIED,
    WingetExitCode.UPDATE_AVAILABLE: OutcomeKind.UPDATE_AVAILABLE,
}

# Listing exit codes that mean "nothing to upgrade" even when no table is printed.
# 0x8A150014 APPINSTALLER_CLI_ERROR_NO_APPLICATIONS_FOUND: no installed package
# matches, printed as "No installed package found matching input criteria."
NOTHING_TO_UPGRADE_CODES: Final[frozenset[int]] = frozenset(
    {WingetExitCode.SUCCESS, -1978335212}
)

_KNOWN_FAILURES: Final[dict[int, str]] = {
    -1978335231: "internal error",
    -1978335230: "invalid command line arguments",
    -1978335226: "installer failed",
    -1978335212: "no packages found",
    -1978335216: "no applicable installer",
    -1978334975: "application is currently running",
    -1978334974: "another installation is already in progress",
    -1978334973: "one or more files are in use",
    -1978334972: "missing dependency",
    -1978334971: "disk full",
    -1978334970: "insufficient memory",
    -1978334969: "no network connection",
    -1978334967: "reboot required to finish installation",
    -1978334966: "reboot required to install",
    -1978334964: "cancelled by user",
    124: "timed out",
}


def classify(exit_code: int) -> Outcome:
    """Maps a winget exit code to an outcome.

    Args:
        exit_code: Process exit code from `winget upgrade --id ...`.

    Returns:
        Success or one of the success-equivalent sentinels for known codes,
        otherwise `Failure(exit_code)`.
    """
    kind = _OUTCOME_BY_CODE.get(exit_code)
    if kind is None:
        return Outcome.failure(exit_code)
    return Outcome(kind, exit_code)


def describe_exit_code(exit_code: int) -> str:
    """Formats an exit code for logs, e.g. `-1978335189 (0x8A15002B, ...)`."""
    hex_code = f"0x{exit_code & 0xFFFFFFFF:08X}"
    name = _KNOWN_FAILURES.get(exit_code)
    if name is None and exit_code in _OUTCOME_BY_CODE:
        name = WingetExitCode(exit_code).name.lower().replace("_", " ")
    if name:
        return f"{exit_code} ({hex_code}, {name})"
    return f"{exit_code} ({hex_code})"
