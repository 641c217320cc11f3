class OrchestratorError(Exception):
    """Base class for errors that abort an update run."""


class ExecutionError(OrchestratorError):
    """The package-manager executable could not be located or spawned.

    Attributes:
        argv: The argument vector that failed to start.
    """

    def __init__(self, message: str, argv: list[str] | None = None):
        super().__init__(message)
        self.argv = list(argv or [])


class FatalInitError(OrchestratorError):
    """The package manager is unavailable before any update is attempted."""


class ConfigError(OrchestratorError):
    """A configuration value is missing or invalid."""
