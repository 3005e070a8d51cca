"""Vue single-file component analysis.

- core/: data model, markup tree, thresholds and the text scanner
- parser: splits component source into a markup tree and logic text
- extractors: reusable heuristics over logic text
- detectors/: one function per cataloged anti-pattern
- engine: per-file orchestration and batch analysis

The engine is imported from ``src.detection.engine`` directly; it depends on
``src.detector_registry``, which in turn imports the detectors from here.
"""
from __future__ import annotations

from src.detection.core import (
    FileResult,
    Issue,
    Location,
    PatternId,
    Severity,
    ThresholdSet,
    resolve_thresholds,
)
from src.detection.parser import ParsedComponent, SfcParseError, parse_sfc, parse_source
