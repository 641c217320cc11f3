import argparse
import sys
from pathlib import Path

from fleetprep.application.update_orchestrator import UpdateOrchestrator
from fleetprep.core.errors import ConfigError, OrchestratorError
from fleetprep.infra.completion_marker import (
    CompletionReporter,
    FileCompletionReporter,
    NullCompletionReporter,
    RegistryCompletionReporter,
)
from fleetprep.infra.settings import MARKER_KINDS, Settings, load_settings
from fleetprep.logging import init_logger


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fleetprep-updates",
        description="Apply pending winget upgrades unattended and report the result.",
    )
    p.add_argument("--config", type=Path, default=None, help="INI settings file")
    p.add_argument("--winget", dest="winget_path", default=None)
    p.add_argument("--max-attempts", type=int, default=None)
    p.add_argument("--retry-delay", dest="retry_delay_sec", type=float, default=None)
    p.add_argument(
        "--timeout",
        dest="timeout_sec",
        type=float,
        default=None,
        help="per-invocation limit in seconds (default: no limit)",
    )
    p.add_argument(
        "--exclude",
        dest="exclude_ids",
        action="append",
        default=None,
        metavar="PACKAGE_ID",
        help="package id to skip; repeatable",
    )
    p.add_argument("--marker", dest="marker_kind", choices=MARKER_KINDS, default=None)
    p.add_argument("--marker-label", default=None)
    p.add_argument("--marker-key", dest="marker_registry_key", default=None)
    p.add_argument("--marker-path", type=Path, default=None)
    p.add_argument("--marker-version", default=None)
    p.add_argument("--log-dir", type=Path, default=None)
    p.add_argument("--log-level", default=None)
    p.add_argument(
        "--list-only",
        action="store_true",
        help="print pending upgrades and exit without applying them",
    )
    return p


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Combines defaults, the INI file and command-line overrides."""
    settings = load_settings(args.config).merged(
        winget_path=args.winget_path,
        max_attempts=args.max_attempts,
        retry_delay_sec=args.retry_delay_sec,
        timeout_sec=args.timeout_sec,
        exclude_ids=tuple(args.exclude_ids) if args.exclude_ids else None,
        marker_kind=args.marker_kind,
        marker_label=args.marker_label,
        marker_registry_key=args.marker_registry_key,
        marker_path=args.marker_path,
        marker_version=args.marker_version,
        log_dir=args.log_dir,
        log_level=args.log_level.upper() if args.log_level else None,
    )
    return settings.validate()


def build_reporter(settings: Settings) -> CompletionReporter:
    """Creates the completion reporter selected by `settings.marker_kind`.

    Raises:
        ConfigError: If the file marker has no path.
    """
    if settings.marker_kind == "file":
        if settings.marker_path is None:
            raise ConfigError("marker kind 'file' requires a marker path")
        return FileCompletionReporter(settings.marker_path)
    if settings.marker_kind == "registry":
        return RegistryCompletionReporter(settings.marker_registry_key)
    return NullCompletionReporter()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args)
    except OrchestratorError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        log = init_logger(settings.log_dir, settings.log_level)
    except OSError as e:
        print(f"error: cannot initialize logging: {e}", file=sys.stderr)
        return 1

    try:
        orchestrator = UpdateOrchestrator(settings, build_reporter(settings), log=log)
        if args.list_only:
            for record in orchestrator.list_pending():
                print(
                    f"{record.id}\t{record.name}\t"
                    f"{record.current_version}\t{record.available_version}"
                )
            return 0

        summary = orchestrator.run()
    except OrchestratorError as e:
        log.error(f"Update run aborted: {e}")
        return 1
    except OSError:
        log.exception("Failed to write the completion marker")
        return 1

    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
