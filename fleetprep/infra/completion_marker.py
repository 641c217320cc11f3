"""Completion markers read by the device-management agent.

A marker is written once per successful batch and keyed by a label. Writing the
same label again overwrites the previous marker.
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from logly import _LoggerProxy, logger

_REGISTRY_ROOTS = {
    "HKLM": "HKEY_LOCAL_MACHINE",
    "HKEY_LOCAL_MACHINE": "HKEY_LOCAL_MACHINE",
    "HKCU": "HKEY_CURRENT_USER",
    "HKEY_CURRENT_USER": "HKEY_CURRENT_USER",
}


def split_registry_key(key_path: str) -> tuple[str, str]:
    """Splits `HKLM\\SOFTWARE\\...` into a `winreg` root attribute name and a subkey.

    Raises:
        ValueError: If the root is not HKLM/HKCU or the subkey is missing.
    """
    root, sep, subkey = key_path.partition("\\")
    if root.upper() not in _REGISTRY_ROOTS or not sep or not subkey:
        raise ValueError(f"Unsupported registry key: {key_path}")
    return _REGISTRY_ROOTS[root.upper()], subkey


class CompletionReporter(Protocol):
    def report_success(self, label: str, version: str) -> None: ...


class NullCompletionReporter:
    """Reporter used when markers are disabled."""

    def report_success(self, label: str, version: str) -> None:
        return None


class FileCompletionReporter:
    """Writes a JSON marker file, replacing it atomically."""

    def __init__(self, path: Path, log: _LoggerProxy = logger):
        self._path = Path(path)
        self._log = log

    @property
    def path(self) -> Path:
        return self._path

    def report_success(self, label: str, version: str) -> None:
        payload = {
            "label": label,
            "version": version,
            "completed_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self._log.success(f"Completion marker written: {self._path} {label}={version}")


class RegistryCompletionReporter:
    """Writes `<label> = <version>` as a REG_SZ value under a registry key.

    Args:
        key_path: Full key path, e.g. `HKLM\\SOFTWARE\\Fleet\\Maintenance`.
        registry: Module providing the `winreg` API. Defaults to `winreg`, which
            only exists on Windows.
    """

    def __init__(self, key_path: str, registry: Any = None, log: _LoggerProxy = logger):
        self._root_name, self._subkey = split_registry_key(key_path)
        self._key_path = key_path
        self._registry = registry
        self._log = log

    def _winreg(self) -> Any:
        if self._registry is None:
            try:
                import winreg
            except ModuleNotFoundError as e:
                raise OSError("registry markers are only available on Windows") from e

            self._registry = winreg
        return self._registry

    def report_success(self, label: str, version: str) -> None:
        reg = self._winreg()
        root = getattr(reg, self._root_name)
        key = reg.CreateKeyEx(root, self._subkey, 0, reg.KEY_WRITE)
        try:
            reg.SetValueEx(key, label, 0, reg.REG_SZ, version)
        finally:
            reg.CloseKey(key)
        self._log.success(
            f"Completion marker written: {self._key_path}\\{label} = {version}"
        )
