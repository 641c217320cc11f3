from pathlib import Path

import pytest

from fleetprep.core.errors import ConfigError
from fleetprep.infra.settings import Settings, load_settings


def test_load_settings_without_path_returns_defaults() -> None:
    settings = load_settings(None)

    assert settings.max_attempts == 3
    assert settings.retry_delay_sec == 10.0
    assert settings.timeout_sec is None
    assert settings.include_unknown is True
    assert settings.marker_kind == "registry"


def test_load_settings_reads_all_sections(tmp_path) -> None:
    path = tmp_path / "fleetprep.ini"
    path.write_text(
        "[updates]\n"
        "winget_path = C:\\tools\\winget.exe\n"
        "include_unknown = no\n"
        "max_attempts = 5\n"
        "retry_delay_sec = 2.5\n"
        "timeout_sec = 900\n"
        "exclude_ids = Microsoft.Teams, Mozilla.Firefox ,\n"
        "\n"
        "[marker]\n"
        "kind = FILE\n"
        "label = Patch\n"
        "path = C:\\ProgramData\\Fleet\\marker.json\n"
        "version = 42\n"
        "\n"
        "[logging]\n"
        "log_dir = C:\\ProgramData\\Fleet\\Logs\n"
        "level = debug\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.winget_path == "C:\\tools\\winget.exe"
    assert settings.include_unknown is False
    assert settings.max_attempts == 5
    assert settings.retry_delay_sec == 2.5
    assert settings.timeout_sec == 900.0
    assert settings.exclude_ids == ("Microsoft.Teams", "Mozilla.Firefox")
    assert settings.marker_kind == "file"
    assert settings.marker_label == "Patch"
    assert settings.marker_path == Path("C:\\ProgramData\\Fleet\\marker.json")
    assert settings.marker_version == "42"
    assert settings.log_dir == Path("C:\\ProgramData\\Fleet\\Logs")
    assert settings.log_level == "DEBUG"
    assert settings.validate() is settings


def test_load_settings_missing_file_raises(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.ini")


def test_load_settings_malformed_number_raises(tmp_path) -> None:
    path = tmp_path / "bad.ini"
    path.write_text("[updates]\nmax_attempts = many\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(path)


def test_merged_ignores_none_overrides() -> None:
    settings = Settings(max_attempts=4).merged(max_attempts=None, retry_delay_sec=1.0)

    assert settings.max_attempts == 4
    assert settings.retry_delay_sec == 1.0


@pytest.mark.parametrize(
    "settings",
    [
        Settings(max_attempts=0),
        Settings(retry_delay_sec=-1),
        Settings(timeout_sec=0),
        Settings(marker_kind="eventlog"),
        Settings(marker_kind="file"),
        Settings(marker_label=""),
        Settings(marker_registry_key=r"HKCR\Software"),
        Settings(marker_registry_key="HKLM"),
    ],
)
def test_validate_rejects_invalid_values(settings: Settings) -> None:
    with pytest.raises(ConfigError):
        settings.validate()


def test_validate_ignores_registry_key_for_other_marker_kinds() -> None:
    settings = Settings(marker_kind="none", marker_registry_key="not a key")

    assert settings.validate() is settings
