import re

from .winget_types import UpdateRecord, UpgradeReport

# winget prints through the console host, which can include ANSI sequences.
_ANSI_OSC_RE = re.compile(r"\x1b\][^\x07]*(?:\x07|\x1b\\)")
_ANSI_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_ANSI_2CHAR_RE = re.compile(r"\x1b[@-Z\\-_]")

# A lone spinner frame ("-", "\", "|", "/") left behind once `\r` is split out.
_SPINNER_RE = re.compile(r"^\s*[-\\|/]\s*$")
_SEPARATOR_RE = re.compile(r"^\s*-{3,}[\s-]*$")
_SUMMARY_RE = re.compile(r"^\s*\d+\s+upgrades?\s+available\b", re.IGNORECASE)
_COLUMN_SPLIT_RE = re.compile(r"\s{2,}")

_MIN_FIELDS = 4


def _sanitize(text: str) -> str:
    """Normalizes newlines and strips ANSI escape sequences and spinner frames."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_OSC_RE.sub("", text)
    text = _ANSI_CSI_RE.sub("", text)
    text = _ANSI_2CHAR_RE.sub("", text)
    return "\n".join(
        line for line in text.split("\n") if not _SPINNER_RE.match(line)
    )


def _parse_row(line: str) -> UpdateRecord | None:
    """Splits one data row into a record, or returns None if it is unusable."""
    parts = [p.strip() for p in _COLUMN_SPLIT_RE.split(line.strip())]
    if len(parts) < _MIN_FIELDS:
        return None

    name, package_id, current, available = parts[:_MIN_FIELDS]
    if not package_id:
        return None

    return UpdateRecord(
        name=name,
        id=package_id,
        current_version=current,
        available_version=available,
    )


def parse_upgrade_report(text: str) -> UpgradeReport:
    """Parses `winget upgrade` output into records and rejected rows.

    Everything before the dashed header separator is ignored, as is everything from
    the "<N> upgrades available" summary onwards. Data rows are split on runs of two
    or more whitespace characters, so single spaces inside a name are kept.

    Args:
        text: Combined `winget upgrade` output.

    Returns:
        An `UpgradeReport` with records in source order. Rows with fewer than four
        columns or an empty id are listed in `rejected`. `has_table` is False when
        no separator line was found.
    """
    records: list[UpdateRecord] = []
    rejected: list[str] = []
    in_table = False

    for line in _sanitize(text).splitlines():
        if not in_table:
            if _SEPARATOR_RE.match(line):
                in_table = True
            continue

        if _SUMMARY_RE.match(line):
            break

        if not line.strip():
            continue

        record = _parse_row(line)
        if record is None:
            rejected.append(line.strip())
            continue
        records.append(record)

    return UpgradeReport(
        records=tuple(records), rejected=tuple(rejected), has_table=in_table
    )


def parse_winget_upgrade(text: str) -> list[UpdateRecord]:
    """Parses `winget upgrade` output into update records.

    Args:
        text: Combined `winget upgrade` output.

    Returns:
        Records in source order. An empty list means no updates are pending.
    """
    return list(parse_upgrade_report(text).records)
