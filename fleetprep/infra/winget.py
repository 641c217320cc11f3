import glob
import os
import shutil

from packaging.version import InvalidVersion, Version

_APP_INSTALLER_GLOB = "Microsoft.DesktopAppInstaller_*__8wekyb3d8bbwe"


def _app_installer_version(exe_path: str) -> str:
    """Extracts "1.21.3482.0" from `...\\Microsoft.DesktopAppInstaller_1.21.3482.0_x64__...`."""
    package_dir = os.path.basename(os.path.dirname(exe_path))
    parts = package_dir.split("_")
    return parts[1] if len(parts) > 1 else ""


def _newest_first(paths: list[str]) -> list[str]:
    try:
        return sorted(
            paths, key=lambda p: Version(_app_installer_version(p)), reverse=True
        )
    except InvalidVersion:
        return sorted(paths, reverse=True)


def find_winget_executable(program_files: str | None = None) -> str | None:
    """Finds a usable winget executable.

    Prefers `winget` on PATH. When running as SYSTEM the per-user alias is not
    available, so the App Installer package directory under WindowsApps is searched
    next, newest version first.

    Args:
        program_files: Override for `%ProgramFiles%`.

    Returns:
        The executable path, or None if winget is not installed.
    """
    found = shutil.which("winget")
    if found:
        return found

    root = program_files or os.environ.get("ProgramFiles", r"C:\Program Files")
    pattern = os.path.join(root, "WindowsApps", _APP_INSTALLER_GLOB, "winget.exe")
    candidates = _newest_first(glob.glob(pattern))
    return candidates[0] if candidates else None


def build_list_upgrades_args(include_unknown: bool = True) -> list[str]:
    """Builds the argument vector that lists pending upgrades.

    Returns:
        Arguments for `winget` (executable excluded).
    """
    args = ["upgrade"]
    if include_unknown:
        args.append("--include-unknown")
    return args


def build_apply_upgrade_args(package_id: str) -> list[str]:
    """Builds the argument vector that silently upgrades one package.

    Args:
        package_id: winget package identifier.

    Returns:
        Arguments for `winget` (executable excluded).
    """
    return [
        "upgrade",
        "--id",
        package_id,
        "--silent",
        "--accept-package-agreements",
        "--accept-source-agreements",
    ]
