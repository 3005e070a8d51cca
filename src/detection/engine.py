"""Per-file analysis orchestration and parallel batch analysis."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from src.detection.core.models import PARSE_ERROR, FileResult, Issue, Location, Severity, sort_issues
from src.detection.core.thresholds import ThresholdSet, resolve_thresholds
from src.detection.parser import ParsedComponent, SfcParseError, parse_source
from src.detector_registry import DetectorEntry, select_detectors


ProgressCallback = Callable[[Dict[str, Any]], None]
ThresholdOverrides = Union[ThresholdSet, Mapping[str, Any], None]
FileInput = Union[Mapping[str, Any], Sequence[str]]


def _progress(progress_callback, payload: Dict[str, Any]):
    if progress_callback:
        progress_callback(payload)


def parse_failure(file_path: str, reason: str) -> FileResult:
    """Result for a file whose source could not be parsed."""
    return FileResult(
        file_path,
        [
            Issue(
                PARSE_ERROR,
                Severity.CRITICAL,
                f"Failed to parse Vue SFC: {reason}",
                Location(1, 1),
            )
        ],
    )


def _run_detectors(
    component: ParsedComponent,
    file_path: str,
    thresholds: ThresholdSet,
    detectors: Iterable[DetectorEntry],
    progress_callback: Optional[ProgressCallback],
) -> FileResult:
    issues: List[Issue] = []
    errors: List[str] = []
    for entry in detectors:
        try:
            issues.extend(entry.run(component, file_path, thresholds))
        except Exception as exc:  # one faulty detector must not hide the others
            errors.append(f"{entry.pattern_id.value}: {exc}")
            _progress(
                progress_callback,
                {
                    "stage": "detector",
                    "file": file_path,
                    "pattern": entry.pattern_id.value,
                    "status": "failed",
                    "error": str(exc),
                },
            )
    return FileResult(file_path, sort_issues(issues), errors)


def analyze_component(
    component: ParsedComponent,
    file_path: str,
    thresholds: ThresholdOverrides = None,
    categories: Optional[Iterable[str]] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> FileResult:
    """Run the registry against an already parsed component."""
    resolved = resolve_thresholds(thresholds)
    detectors = select_detectors(categories)
    return _run_detectors(component, file_path, resolved, detectors, progress_callback)


def analyze(
    file_path: str,
    source_text: str,
    thresholds: ThresholdOverrides = None,
    categories: Optional[Iterable[str]] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> FileResult:
    """Analyze one component file.

    Args:
        file_path: Path used for reporting and for path-based heuristics
        source_text: Full file contents
        thresholds: A ``ThresholdSet`` or a partial override mapping
        categories: Optional detector categories to restrict the run to
        progress_callback: Optional callback for progress updates

    Returns:
        FileResult with issues sorted by descending severity. Unparseable
        source yields a single PARSE_ERROR issue.

    Raises:
        ValueError: invalid threshold overrides or unknown categories
    """
    resolved = resolve_thresholds(thresholds)
    detectors = select_detectors(categories)
    _progress(progress_callback, {"stage": "parse", "file": file_path, "status": "started"})
    try:
        component = parse_source(file_path, source_text)
    except SfcParseError as exc:
        _progress(
            progress_callback,
            {"stage": "parse", "file": file_path, "status": "failed", "error": str(exc)},
        )
        return parse_failure(file_path, str(exc))
    return _run_detectors(component, file_path, resolved, detectors, progress_callback)


def _normalize_file(item: FileInput) -> Tuple[str, str]:
    if isinstance(item, Mapping):
        path = item.get("path", item.get("file_path"))
        content = item.get("content")
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        path, content = item
    else:
        raise ValueError(f"Invalid file entry: {item!r}")
    if not isinstance(path, str) or not isinstance(content, str):
        raise ValueError(f"File entries need string 'path' and 'content': {item!r}")
    return path, content


def analyze_many(
    files: Iterable[FileInput],
    thresholds: ThresholdOverrides = None,
    max_workers: Optional[int] = None,
    categories: Optional[Iterable[str]] = None,
    timeout_per_file: Optional[float] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> List[FileResult]:
    """
    Analyze many files in parallel, one task per file.

    Args:
        files: ``{"path", "content"}`` mappings or ``(path, content)`` pairs
        thresholds: Shared overrides, resolved once before any task starts
        max_workers: Maximum number of parallel workers (default: executor default)
        categories: Optional detector categories to restrict the run to
        timeout_per_file: Seconds to wait for each file's result (None for no timeout)
        progress_callback: Optional callback for progress updates

    Returns:
        One FileResult per input, in input order

    Example:
        results = analyze_many([{"path": "App.vue", "content": source}])
    """
    normalized = [_normalize_file(item) for item in files]
    resolved = resolve_thresholds(thresholds)
    selected = tuple(categories) if categories else None
    select_detectors(selected)
    if not normalized:
        return []

    def run_single_file(path: str, content: str) -> FileResult:
        _progress(progress_callback, {"file": path, "status": "started"})
        result = analyze(path, content, resolved, selected, progress_callback)
        _progress(
            progress_callback,
            {"file": path, "status": "completed", "issues": len(result.issues)},
        )
        return result

    results: List[FileResult] = []
    executor = ThreadPoolExecutor(max_workers=max_workers)
    try:
        futures = [executor.submit(run_single_file, path, content) for path, content in normalized]
        for (path, _), future in zip(normalized, futures):
            try:
                results.append(future.result(timeout=timeout_per_file))
            except FutureTimeoutError:
                _progress(progress_callback, {"file": path, "status": "failed", "error": "timed out"})
                results.append(FileResult(path, [], ["Analysis timed out"]))
            except Exception as exc:
                _progress(progress_callback, {"file": path, "status": "failed", "error": str(exc)})
                results.append(FileResult(path, [], [str(exc)]))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return results
