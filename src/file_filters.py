"""Shared file filtering utilities for component discovery."""
from __future__ import annotations

import glob
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Sequence, Set, Tuple

from src.detection.parser import SCRIPT_EXTENSIONS


DEFAULT_SKIP_FRAGMENTS: Set[str] = {
    ".git",
    "__pycache__",
    "node_modules",
    ".venv",
    "dist",
    "build",
    "coverage",
    ".nuxt",
    ".output",
}

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".vue",)
# Anything the parser can read; a glob names its own file types.
ANALYZABLE_EXTENSIONS = frozenset({".vue"}) | SCRIPT_EXTENSIONS

_GLOB_CHARS = set("*?[")


def should_skip_path(path: Path, additional_skip_fragments: Iterable[str] | None = None) -> bool:
    """Return True if a path should be skipped during scanning."""
    fragments = set(DEFAULT_SKIP_FRAGMENTS)
    if additional_skip_fragments:
        fragments.update(additional_skip_fragments)

    for part in path.parts:
        if part.lower() in fragments:
            return True
        if part.startswith(".") and part not in (".", ".."):
            return True
    return False


def _is_glob(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


def _glob_root(pattern: str) -> Path:
    """Longest leading directory of a glob pattern without wildcards."""
    parts: List[str] = []
    for part in Path(pattern).parts:
        if _is_glob(part):
            break
        parts.append(part)
    return Path(*parts) if parts else Path(".")


def is_excluded(path: Path, root: Path, exclude: Sequence[str]) -> bool:
    """Match ``path`` against exclude globs, relative to ``root`` or absolute.

    A leading ``**/`` also matches files directly under the root.
    """
    candidates = {path.as_posix(), path.resolve().as_posix()}
    try:
        candidates.add(path.resolve().relative_to(root.resolve()).as_posix())
    except ValueError:
        pass
    for pattern in exclude:
        variants = {pattern}
        if pattern.startswith("**/"):
            variants.add(pattern[3:])
        for candidate in candidates:
            if any(fnmatch(candidate, variant) for variant in variants):
                return True
    return False


def _expand(pattern: str, extensions: Sequence[str]) -> Tuple[Path, List[Path]]:
    path = Path(pattern)
    if _is_glob(pattern):
        root = _glob_root(pattern)
        return root, [Path(match) for match in glob.glob(pattern, recursive=True)]
    if path.is_file():
        return path.parent, [path]
    # Directories, and bare paths that do not exist yet, search for components below them
    matches: List[Path] = []
    if path.is_dir():
        for extension in extensions:
            matches.extend(path.rglob(f"*{extension}"))
    return path, matches


def collect_component_files(
    patterns: Iterable[str],
    exclude: Sequence[str] = (),
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> List[str]:
    """Resolve CLI path patterns into a sorted, deduplicated list of files.

    Explicitly named files are kept whatever their extension. Directory
    expansion only yields ``extensions``; glob matches keep any file the
    parser understands (``.vue`` and script modules).
    """
    found: Set[str] = set()
    for raw in patterns:
        pattern = raw.strip()
        if not pattern:
            continue
        root, matches = _expand(pattern, extensions)
        is_glob = _is_glob(pattern)
        explicit = not is_glob and Path(pattern).is_file()
        allowed = set(extensions) | ANALYZABLE_EXTENSIONS if is_glob else set(extensions)
        for match in matches:
            if not match.is_file():
                continue
            if not explicit and match.suffix.lower() not in allowed:
                continue
            try:
                relative = match.relative_to(root)
            except ValueError:
                relative = match
            if should_skip_path(relative) or is_excluded(match, root, exclude):
                continue
            found.add(match.as_posix())
    return sorted(found)
