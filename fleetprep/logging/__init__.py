from pathlib import Path
from typing import Final

from logly import _LoggerProxy, logger

LOG_DIR_PATH: Final[Path] = Path(__file__).parent.parent / "logs"


def init_logger(
    log_dir: Path | None = None, level: str = "INFO", console: bool = True
) -> _LoggerProxy:
    """Initialize the logger.

    Configures console output and a size-rotated file sink. Unattended runs read
    the file sink after the fact, so it is always added.

    Args:
        log_dir: Directory for `fleetprep.log`. Defaults to `LOG_DIR_PATH`.
        level: Minimum level name (e.g. "INFO", "DEBUG").
        console: Whether to also log to the console.

    Returns:
        The configured logger proxy, to be passed into components.
    """
    directory = log_dir or LOG_DIR_PATH
    directory.mkdir(parents=True, exist_ok=True)

    logger.configure(
        level=level.upper(),
        color=console,
        console=console,
        auto_sink=console,
    )

    logger.add(f"{directory}/fleetprep.log", size_limit="10MB", retention=3)

    logger.success("logger initialized!")

    return logger
