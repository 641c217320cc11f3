"""INI configuration for update runs.

Example file::

    [updates]
    winget_path = C:\\Program Files\\WindowsApps\\...\\winget.exe
    include_unknown = true
    max_attempts = 3
    retry_delay_sec = 10
    timeout_sec = 1800
    exclude_ids = Microsoft.Teams, Mozilla.Firefox

    [marker]
    kind = registry
    label = WingetUpdates
    registry_key = HKLM\\SOFTWARE\\Fleet\\Maintenance

    [logging]
    log_dir = C:\\ProgramData\\Fleet\\Logs
    level = INFO
"""

import configparser
import dataclasses
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Final

from fleetprep.core.errors import ConfigError
from fleetprep.infra.completion_marker import split_registry_key

MARKER_KINDS: Final[tuple[str, ...]] = ("registry", "file", "none")
DEFAULT_REGISTRY_KEY: Final[str] = r"HKLM\SOFTWARE\Fleetprep\Maintenance"


def default_marker_version() -> str:
    return date.today().strftime("%Y.%m.%d")


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved settings for one run.

    Attributes:
        winget_path: Explicit winget executable; None means auto-detect.
        include_unknown: List packages whose installed version is unknown.
        max_attempts: Attempts per update, at least 1.
        retry_delay_sec: Fixed delay between attempts.
        timeout_sec: Per-invocation limit; None waits indefinitely.
        exclude_ids: Package ids never upgraded (compared case-insensitively).
        marker_kind: One of `MARKER_KINDS`.
        marker_label: Name of the completion marker value.
        marker_registry_key: Key used when `marker_kind` is "registry".
        marker_path: File used when `marker_kind` is "file".
        marker_version: Version stamp written into the marker.
        log_dir: Log directory; None uses the package default.
        log_level: Minimum log level name.
    """

    winget_path: str | None = None
    include_unknown: bool = True
    max_attempts: int = 3
    retry_delay_sec: float = 10.0
    timeout_sec: float | None = None
    exclude_ids: tuple[str, ...] = ()
    marker_kind: str = "registry"
    marker_label: str = "WingetUpdates"
    marker_registry_key: str = DEFAULT_REGISTRY_KEY
    marker_path: Path | None = None
    marker_version: str = dataclasses.field(default_factory=default_marker_version)
    log_dir: Path | None = None
    log_level: str = "INFO"

    def validate(self) -> "Settings":
        """Checks value ranges and cross-field requirements.

        Returns:
            self, for chaining.

        Raises:
            ConfigError: If a value is out of range or a required field is missing.
        """
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.retry_delay_sec < 0:
            raise ConfigError(
                f"retry_delay_sec must be >= 0, got {self.retry_delay_sec}"
            )
        if self.timeout_sec is not None and self.timeout_sec <= 0:
            raise ConfigError(f"timeout_sec must be > 0, got {self.timeout_sec}")
        if self.marker_kind not in MARKER_KINDS:
            raise ConfigError(
                f"marker kind must be one of {', '.join(MARKER_KINDS)}, "
                f"got {self.marker_kind!r}"
            )
        if self.marker_kind == "file" and self.marker_path is None:
            raise ConfigError("marker kind 'file' requires a marker path")
        if self.marker_kind == "registry":
            try:
                split_registry_key(self.marker_registry_key)
            except ValueError as e:
                raise ConfigError(str(e)) from e
        if not self.marker_label:
            raise ConfigError("marker label must not be empty")
        return self

    def merged(self, **overrides: Any) -> "Settings":
        """Returns a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


def _split_ids(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _optional_float(section: configparser.SectionProxy, key: str) -> float | None:
    raw = section.get(key, "").strip()
    if not raw or raw.lower() == "none":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"[{section.name}] {key}: not a number: {raw!r}") from e


def load_settings(path: Path | None) -> Settings:
    """Loads settings from an INI file.

    Missing sections and keys keep their defaults. A None path returns defaults.

    Args:
        path: INI file path.

    Returns:
        Settings (not yet validated; callers validate after applying overrides).

    Raises:
        ConfigError: If the file is missing, unreadable, or has malformed values.
    """
    if path is None:
        return Settings()
    if not path.is_file():
        raise ConfigError(f"config file not found: {path}")

    parser = configparser.ConfigParser()
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e

    values: dict[str, Any] = {}
    try:
        if parser.has_section("updates"):
            updates = parser["updates"]
            if updates.get("winget_path", "").strip():
                values["winget_path"] = updates["winget_path"].strip()
            if "include_unknown" in updates:
                values["include_unknown"] = updates.getboolean("include_unknown")
            if "max_attempts" in updates:
                values["max_attempts"] = updates.getint("max_attempts")
            if "retry_delay_sec" in updates:
                values["retry_delay_sec"] = updates.getfloat("retry_delay_sec")
            if "timeout_sec" in updates:
                values["timeout_sec"] = _optional_float(updates, "timeout_sec")
            if "exclude_ids" in updates:
                values["exclude_ids"] = _split_ids(updates["exclude_ids"])

        if parser.has_section("marker"):
            marker = parser["marker"]
            for key in ("kind", "label", "registry_key", "version"):
                if marker.get(key, "").strip():
                    values[f"marker_{key}"] = marker[key].strip()
            if marker.get("path", "").strip():
                values["marker_path"] = Path(marker["path"].strip())

        if parser.has_section("logging"):
            logging_section = parser["logging"]
            if logging_section.get("log_dir", "").strip():
                values["log_dir"] = Path(logging_section["log_dir"].strip())
            if logging_section.get("level", "").strip():
                values["log_level"] = logging_section["level"].strip().upper()
    except ValueError as e:
        raise ConfigError(f"invalid value in {path}: {e}") from e

    if "marker_kind" in values:
        values["marker_kind"] = values["marker_kind"].lower()

    return Settings(**values)
