import os
import subprocess
from typing import Final

from logly import _LoggerProxy, logger

from fleetprep.core.errors import ExecutionError
from fleetprep.core.winget_types import InvocationResult

_CREATE_NO_WINDOW: Final[int] = 0x08000000
_TIMEOUT_EXIT_CODE: Final[int] = 124


def _decode(data: bytes | None) -> str:
    """Decodes process output bytes with a small encoding fallback list.

    Args:
        data: Raw bytes to decode.

    Returns:
        Decoded text.
    """
    if not data:
        return ""
    for enc in ("utf-8", "cp1252"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def run_command(
    executable: str,
    args: list[str],
    timeout_sec: float | None = None,
    log: _LoggerProxy = logger,
) -> InvocationResult:
    """Runs an executable and returns its exit code and combined output.

    Arguments are passed as an argv list, never through a shell. stderr is merged
    into stdout. Non-zero exit codes are returned, not raised.

    Args:
        executable: Executable path or name resolvable via PATH.
        args: Argument vector, excluding the executable.
        timeout_sec: Optional wall-clock limit. None waits indefinitely.
        log: Logger receiving start/finish lines.

    Returns:
        An `InvocationResult`. A timeout yields exit code 124 and the output
        captured so far.

    Raises:
        ExecutionError: If the executable cannot be found or started.
    """
    argv = [executable, *args]
    kwargs: dict = {
        "stdout": subprocess.PIPE,
        "stderr": subprocess.STDOUT,
        "stdin": subprocess.DEVNULL,
        "timeout": timeout_sec,
    }

    if os.name == "nt":
        kwargs["creationflags"] = _CREATE_NO_WINDOW

    log.info(f"Starting subprocess timeout={timeout_sec}s argv={' '.join(argv)}")
    try:
        result = subprocess.run(argv, **kwargs)
    except subprocess.TimeoutExpired as e:
        log.warning(f"Subprocess timed out after {timeout_sec}s")
        output = _decode(e.output if isinstance(e.output, bytes) else None)
        return InvocationResult(
            exit_code=_TIMEOUT_EXIT_CODE,
            stdout=output + "\ntimeout: command exceeded limit",
        )
    except OSError as e:
        raise ExecutionError(f"cannot start {executable}: {e}", argv) from e

    log.info(f"Subprocess finished returncode={result.returncode}")
    return InvocationResult(exit_code=result.returncode, stdout=_decode(result.stdout))
