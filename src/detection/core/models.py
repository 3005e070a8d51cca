"""Issue, severity and catalog types shared by every detector."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    """Ordered severity levels. Higher weight sorts first in a report."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self]


SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class PatternId(str, Enum):
    """Closed catalog of anti-pattern identifiers."""

    # Template / markup
    VIF_WITH_VFOR = "VIF_WITH_VFOR"
    VFOR_WITHOUT_KEY = "VFOR_WITHOUT_KEY"
    VFOR_INDEX_AS_KEY = "VFOR_INDEX_AS_KEY"
    COMPLEX_TEMPLATE_EXPRESSION = "COMPLEX_TEMPLATE_EXPRESSION"
    VHTML_XSS_RISK = "VHTML_XSS_RISK"
    DEEP_TEMPLATE_NESTING = "DEEP_TEMPLATE_NESTING"

    # Component architecture
    GOD_COMPONENT = "GOD_COMPONENT"
    SINGLE_WORD_COMPONENT_NAME = "SINGLE_WORD_COMPONENT_NAME"
    PROP_DRILLING = "PROP_DRILLING"
    TIGHT_COUPLING = "TIGHT_COUPLING"

    # Reactivity
    REF_REACTIVE_CONFUSION = "REF_REACTIVE_CONFUSION"
    DESTRUCTURING_REACTIVITY_LOSS = "DESTRUCTURING_REACTIVITY_LOSS"
    COMPUTED_SIDE_EFFECTS = "COMPUTED_SIDE_EFFECTS"
    DEEP_WATCHER_OVERUSE = "DEEP_WATCHER_OVERUSE"
    WATCHER_SHOULD_BE_COMPUTED = "WATCHER_SHOULD_BE_COMPUTED"

    # State management
    VUEX_ASYNC_IN_MUTATION = "VUEX_ASYNC_IN_MUTATION"
    VUEX_GOD_STORE = "VUEX_GOD_STORE"
    PINIA_CIRCULAR_DEPENDENCY = "PINIA_CIRCULAR_DEPENDENCY"
    PINIA_USESTORE_AFTER_AWAIT = "PINIA_USESTORE_AFTER_AWAIT"
    STATE_LOCALIZATION_ANTIPATTERN = "STATE_LOCALIZATION_ANTIPATTERN"
    UNTYPED_PROVIDE_INJECT = "UNTYPED_PROVIDE_INJECT"

    # Routing
    INFINITE_NAVIGATION_LOOP = "INFINITE_NAVIGATION_LOOP"
    MISSING_LAZY_LOADING = "MISSING_LAZY_LOADING"
    GOD_GUARD_ANTIPATTERN = "GOD_GUARD_ANTIPATTERN"

    # Performance
    LARGE_LIST_NO_VIRTUALIZATION = "LARGE_LIST_NO_VIRTUALIZATION"
    MISSING_SHALLOW_REACTIVITY = "MISSING_SHALLOW_REACTIVITY"
    EVENT_LISTENER_MEMORY_LEAK = "EVENT_LISTENER_MEMORY_LEAK"
    FULL_LIBRARY_IMPORT = "FULL_LIBRARY_IMPORT"

    # Type safety
    UNTYPED_PROPS = "UNTYPED_PROPS"
    UNTYPED_EMITS = "UNTYPED_EMITS"
    REF_TYPE_INFERENCE_ISSUES = "REF_TYPE_INFERENCE_ISSUES"

    # Testing
    IMPLEMENTATION_TESTING = "IMPLEMENTATION_TESTING"
    PINIA_STATE_LEAK = "PINIA_STATE_LEAK"
    SNAPSHOT_OVERUSE = "SNAPSHOT_OVERUSE"


# Reserved for files that could not be parsed; never emitted by a detector.
PARSE_ERROR = "PARSE_ERROR"


@dataclass(frozen=True)
class Location:
    line: int = 1
    column: int = 1

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class Issue:
    """A single finding reported for one file."""

    pattern: str
    severity: Severity
    message: str
    location: Location = field(default_factory=Location)
    refactoring: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the wire schema consumed by reporters and the API."""
        data: Dict[str, Any] = {
            "pattern": str(getattr(self.pattern, "value", self.pattern)),
            "severity": self.severity.value,
            "message": self.message,
            "location": self.location.to_dict(),
        }
        if self.refactoring:
            data["refactoring"] = self.refactoring
        return data


@dataclass
class FileResult:
    """All issues found for one file, sorted by descending severity."""

    file_path: str
    issues: List[Issue] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "filePath": self.file_path,
            "issues": [issue.to_dict() for issue in self.issues],
        }
        if self.errors:
            data["errors"] = list(self.errors)
        return data


def sort_issues(issues: List[Issue]) -> List[Issue]:
    """Stable sort by severity weight, highest first."""
    return sorted(issues, key=lambda issue: issue.severity.weight, reverse=True)
