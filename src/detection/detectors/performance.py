"""Runtime performance detectors: list rendering, reactivity cost, leaks, bundle size."""
from __future__ import annotations

import re
from typing import Dict, List, NamedTuple

from src.detection.core.models import Issue, PatternId, Severity
from src.detection.core.scanner import function_body, iter_calls, split_top_level
from src.detection.core.thresholds import ThresholdSet
from src.detection.core.tree import elements, get_binding
from src.detection.extractors import (
    detect_cleanup_hooks,
    estimate_data_size,
    estimate_list_size,
    find_listeners,
    has_matching_removal,
    has_virtualization_library,
    parse_for_expression,
    static_default_imports,
)
from src.detection.parser import ParsedComponent


def detect_large_list_no_virtualization(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    """``v-for`` over a list estimated from source literals to be large.

    Sizes come from literal arrays, ``Array.from({ length })`` and list-like
    variable names; the real runtime length is unknowable here.
    """
    if component.markup is None:
        return []
    script = component.script or ""
    if has_virtualization_library(script):
        return []
    issues: List[Issue] = []
    for node in elements(component.template_root):
        directive = get_binding(node, "for")
        if directive is None:
            continue
        parsed = parse_for_expression(directive.expression)
        if parsed is None:
            continue
        size = estimate_list_size(parsed.source, script)
        if size < thresholds.large_list_minimum:
            continue
        message = f"Large list ({size} items) without virtualization"
        if size >= thresholds.large_list_critical:
            severity = Severity.CRITICAL
        elif size >= thresholds.large_list_high:
            severity = Severity.HIGH
            message += " - must virtualize for performance"
        elif size >= thresholds.virtualization_threshold:
            severity = Severity.MEDIUM
            message += " - should consider virtualization"
        else:
            severity = Severity.LOW
            message += " - consider virtualization for better performance"
        issues.append(
            Issue(
                PatternId.LARGE_LIST_NO_VIRTUALIZATION,
                severity,
                message,
                node.location,
                "Use vue-virtual-scroller or similar library: npm install vue-virtual-scroller",
            )
        )
    return issues


def detect_missing_shallow_reactivity(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for call in iter_calls(script, "ref|reactive|computed", allow_generic=True):
        args = split_top_level(call.args.body)
        if not args:
            continue
        expression = args[0]
        if call.name == "computed":
            getter = function_body(expression)
            if getter is None or getter.start != -1:
                continue
            expression = getter.body
            if expression.startswith("(") and expression.endswith(")"):
                expression = expression[1:-1]
        size = estimate_data_size(expression, script)
        if size <= thresholds.shallow_reactivity_minimum:
            continue
        message = f"Large reactive data structure ({size} items/properties) should use shallow reactivity"
        if size > thresholds.shallow_reactivity_threshold:
            severity = Severity.HIGH
            message += " - critical for performance"
        else:
            severity = Severity.MEDIUM
        issues.append(
            Issue(
                PatternId.MISSING_SHALLOW_REACTIVITY,
                severity,
                message,
                component.script_location(call.start),
                "Use shallowRef() or shallowReactive() for large datasets: const data = shallowRef(largeObject)",
            )
        )
    return issues


def detect_event_listener_memory_leak(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    listeners = find_listeners(script)
    if not listeners:
        return []
    hooks = detect_cleanup_hooks(script)
    issues: List[Issue] = []
    for listener in listeners:
        if has_matching_removal(listener, hooks):
            continue
        issues.append(
            Issue(
                PatternId.EVENT_LISTENER_MEMORY_LEAK,
                Severity.CRITICAL,
                f"Event listener for '{listener.event}' added but not removed - causes memory leak",
                component.script_location(listener.index),
                "Add removeEventListener in onUnmounted (Composition API) or beforeDestroy (Options API)",
            )
        )
    return issues


class LargeLibrary(NamedTuple):
    size: str
    severity: Severity
    recommended: str
    exports: str


LARGE_LIBRARIES: Dict[str, LargeLibrary] = {
    "lodash": LargeLibrary("~70KB", Severity.CRITICAL, "lodash-es", "map, filter, find, cloneDeep"),
    "underscore": LargeLibrary(
        "~20KB", Severity.HIGH, "lodash-es or native methods", "map, filter, find, clone"
    ),
    "moment": LargeLibrary("~200KB", Severity.CRITICAL, "dayjs or date-fns", "format, add, subtract, isValid"),
    "jquery": LargeLibrary("~30KB", Severity.HIGH, "native DOM APIs", "ajax, get, post, on"),
    "axios": LargeLibrary("~15KB", Severity.MEDIUM, "fetch API", "get, post, put, delete"),
}

COMMONJS_LIBRARIES = frozenset(
    {
        "lodash", "underscore", "jquery", "bluebird", "q", "async", "request",
        "express", "chalk", "colors", "commander",
    }
)

_NAMED_IMPORT = re.compile(r"""(?<![\w$.])import\s*\{[^}]*\}\s*from\s+['"]([^'"]+)['"]""")
_WILDCARD_IMPORT = re.compile(r"""(?<![\w$.])import\s*\*\s*as\s+[\w$]+\s+from\s+['"]([^'"]+)['"]""")


def detect_full_library_import(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    for module, index in static_default_imports(script).values():
        library = LARGE_LIBRARIES.get(module)
        if library is None:
            continue
        issues.append(
            Issue(
                PatternId.FULL_LIBRARY_IMPORT,
                library.severity,
                f"Full import of '{module}' ({library.size}) prevents tree-shaking",
                component.script_location(index),
                f"Import specific functions: import {{ {library.exports} }} from '{library.recommended}'",
            )
        )

    for match in _NAMED_IMPORT.finditer(script):
        module = match.group(1)
        if module not in COMMONJS_LIBRARIES:
            continue
        issues.append(
            Issue(
                PatternId.FULL_LIBRARY_IMPORT,
                Severity.HIGH,
                f"Import from CommonJS library '{module}' cannot be tree-shaken",
                component.script_location(match.start()),
                "Use ES module version or import from specific sub-paths",
            )
        )

    for match in _WILDCARD_IMPORT.finditer(script):
        module = match.group(1)
        library = LARGE_LIBRARIES.get(module)
        if library is None:
            continue
        issues.append(
            Issue(
                PatternId.FULL_LIBRARY_IMPORT,
                library.severity,
                f"Wildcard import of '{module}' ({library.size}) prevents tree-shaking",
                component.script_location(match.start()),
                f"Import specific exports: import {{ {library.exports} }} from '{module}'",
            )
        )
    return issues
