"""Core data model for component analysis.

This subpackage contains:
- models: Severity, PatternId, Location, Issue, FileResult
- tree: the markup tree (NodeKind, TreeNode, Binding) and its accessors
- thresholds: the immutable ThresholdSet and override resolution
- scanner: bracket-aware scanning over unparsed script text
"""
from __future__ import annotations

from src.detection.core.models import (
    PARSE_ERROR,
    SEVERITY_WEIGHTS,
    FileResult,
    Issue,
    Location,
    PatternId,
    Severity,
    sort_issues,
)

from src.detection.core.thresholds import (
    DEFAULT_THRESHOLDS,
    ThresholdSet,
    TierLimits,
    list_threshold_names,
    resolve_thresholds,
    thresholds_to_config,
)

from src.detection.core.tree import (
    Binding,
    NodeKind,
    TreeNode,
    elements,
    max_depth,
    traverse,
    walk,
)


__all__ = [
    "PARSE_ERROR",
    "SEVERITY_WEIGHTS",
    "FileResult",
    "Issue",
    "Location",
    "PatternId",
    "Severity",
    "sort_issues",
    "DEFAULT_THRESHOLDS",
    "ThresholdSet",
    "TierLimits",
    "list_threshold_names",
    "resolve_thresholds",
    "thresholds_to_config",
    "Binding",
    "NodeKind",
    "TreeNode",
    "elements",
    "max_depth",
    "traverse",
    "walk",
]
