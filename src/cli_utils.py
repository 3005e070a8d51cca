"""CLI utilities for improved UX: verbosity, progress and exit policy."""
from typing import Any, Dict, Iterable, List, Optional, TextIO

from src.detection.core.models import FileResult, Severity


class VerboseLogger:
    """Simple logger that respects verbose mode."""

    def __init__(self, verbose: bool = False, stream: Optional[TextIO] = None):
        self.verbose = verbose
        # None prints to the current sys.stdout
        self.stream = stream

    def debug(self, msg: str):
        if self.verbose:
            print(f"[DEBUG] {msg}", file=self.stream)

    def info(self, msg: str):
        print(f"[INFO] {msg}", file=self.stream)

    def warning(self, msg: str):
        print(f"[WARNING] {msg}", file=self.stream)

    def error(self, msg: str):
        print(f"[ERROR] {msg}", file=self.stream)


def progress_printer(logger: VerboseLogger):
    """Build a ``progress_callback`` that forwards engine events to the logger."""

    def _callback(payload: Dict[str, Any]) -> None:
        status = payload.get("status")
        file_path = payload.get("file", "unknown")
        if status == "failed":
            pattern = payload.get("pattern")
            where = f"{file_path} ({pattern})" if pattern else file_path
            logger.warning(f"Analysis failed for {where}: {payload.get('error')}")
        elif status == "completed":
            logger.debug(f"Analyzed {file_path}: {payload.get('issues', 0)} issue(s)")

    return _callback


def parse_patterns(raw: Iterable[str]) -> List[str]:
    """Split comma separated CLI arguments into individual path patterns."""
    patterns: List[str] = []
    for value in raw:
        patterns.extend(part.strip() for part in value.split(",") if part.strip())
    return patterns


def meets_fail_threshold(results: Iterable[FileResult], fail_on: Optional[str]) -> bool:
    """True when any issue is at least as severe as ``fail_on``."""
    if not fail_on:
        return False
    limit = Severity(fail_on.upper()).weight
    return any(issue.severity.weight >= limit for result in results for issue in result.issues)
