"""Resolution and validation of capture input paths and report paths."""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

_EXTENSIONS = ("pcap", "pcapng")
_LISTED_MATCHES = 3


class CliError(Exception):
    """A user-facing error with an optional hint."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        return self.message


def is_glob_pattern(text: str) -> bool:
    """Whether ``text`` holds a wildcard character."""
    return any(char in text for char in "*?[")


def resolve_input_path(input_path: PathLike) -> Path:
    """Expand a glob pattern to exactly one file; plain paths pass through."""
    pattern = str(input_path)
    if not is_glob_pattern(pattern):
        return Path(input_path)

    matches = [Path(p) for p in sorted(glob.glob(pattern)) if Path(p).is_file()]
    if not matches:
        raise CliError(
            f"no files match pattern '{pattern}'",
            "check the path or quote the pattern; expected .pcap or .pcapng",
        )
    if len(matches) > 1:
        listed = ", ".join(str(p) for p in matches[:_LISTED_MATCHES])
        message = (
            f"multiple files match pattern '{pattern}' ({len(matches)} matches)"
            f"; matches: {listed}"
        )
        if len(matches) > _LISTED_MATCHES:
            message += ", ..."
        raise CliError(message, "pass a single capture file, or run once per file")
    return matches[0]


def validate_input_file(path: PathLike) -> None:
    """Raise CliError unless ``path`` exists and has a .pcap or .pcapng extension."""
    path = Path(path)
    if not path.exists():
        raise CliError(f"input file not found: {path}", "use a .pcap or .pcapng file")
    extension = path.suffix[1:].lower()
    if extension not in _EXTENSIONS:
        raise CliError(
            f"unsupported input format '{path}'", "expected a .pcap or .pcapng file"
        )


def check_report_differs(input_path: PathLike, report_path: PathLike) -> None:
    """Raise CliError when the report would overwrite the input capture."""
    input_path = Path(input_path)
    report_path = Path(report_path)
    try:
        input_abs = input_path.resolve(strict=True)
    except OSError as exc:
        raise CliError(f"Failed to resolve input path: {input_path}") from exc

    if report_path.parent == report_path:
        return
    try:
        report_dir = report_path.parent.resolve(strict=True)
    except OSError as exc:
        raise CliError(f"Failed to resolve output path: {report_path}") from exc
    if not report_path.name:
        raise CliError("Invalid report path")
    if report_dir / report_path.name == input_abs:
        raise CliError(
            f"report path must differ from input: {report_path}",
            "choose a different output path",
        )