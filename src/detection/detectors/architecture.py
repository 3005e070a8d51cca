"""Component architecture detectors: size, naming and coupling."""
from __future__ import annotations

import re
from typing import List

from src.detection.core.models import Issue, Location, PatternId, Severity
from src.detection.core.scanner import line_count
from src.detection.core.thresholds import ThresholdSet
from src.detection.core.tree import elements, max_depth
from src.detection.extractors import (
    count_computed,
    count_methods,
    detect_prop_mutations,
    extract_component_name,
    extract_declared_props,
    extract_prop_usage,
    is_identifier,
    mask_prop_declarations,
)
from src.detection.parser import ParsedComponent


HTML_ELEMENT_NAMES = frozenset(
    {
        "div", "span", "input", "button", "form", "table", "tr", "td", "th", "ul", "li",
        "ol", "p", "h1", "h2", "h3", "h4", "h5", "h6", "a", "img", "select", "option",
        "textarea", "label", "section", "article", "header", "footer", "nav", "aside", "main",
    }
)


def detect_god_component(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    """Count size metrics against their limits; more violations, higher severity."""
    script = component.script
    if script is None:
        return []

    metrics = [
        ("Script LOC", line_count(script), thresholds.component_script_length),
        ("Methods", count_methods(script), thresholds.component_method_count),
        ("Props", len(extract_declared_props(script)), thresholds.component_props_count),
        ("Computed", count_computed(script), thresholds.component_computed_count),
        ("Template depth", max_depth(component.template_root), thresholds.component_template_depth),
    ]
    violations = [f"{label}: {value}" for label, value, limit in metrics if value > limit]
    if not violations:
        return []

    if len(violations) > 3:
        severity = Severity.CRITICAL
    elif len(violations) > 2:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM
    return [
        Issue(
            PatternId.GOD_COMPONENT,
            severity,
            f"God component detected: {', '.join(violations)}",
            Location(1, 1),
            "Split component into smaller, focused components",
        )
    ]


def detect_single_word_component_name(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    name = extract_component_name(component.script, file_path)
    if not name or name == "App":
        return []
    if name != name.lower() or "-" in name or "_" in name:
        return []
    if name not in HTML_ELEMENT_NAMES:
        return []
    return [
        Issue(
            PatternId.SINGLE_WORD_COMPONENT_NAME,
            Severity.CRITICAL,
            f"Component name '{name}' conflicts with HTML element",
            Location(1, 1),
            f"Rename to '{name}Component' or use PascalCase",
        )
    ]


def _template_pass_through(component: ParsedComponent) -> List[str]:
    """Identifiers handed straight to a child via ``:prop="name"``."""
    passed = {}
    for node in elements(component.template_root):
        for binding in node.bindings:
            if binding.is_static or binding.name != "bind" or not binding.arg:
                continue
            if is_identifier(binding.expression):
                passed.setdefault(binding.expression.strip(), None)
    return list(passed)


def detect_prop_drilling(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    script = component.script
    if not script:
        return []
    props = extract_declared_props(script)
    if not props:
        return []

    used = set(extract_prop_usage(mask_prop_declarations(script), props))
    forwarded = set(_template_pass_through(component))
    pass_through = [prop for prop in props if prop not in used and prop in forwarded]
    if len(pass_through) < thresholds.prop_drilling_minimum:
        return []

    severity = Severity.HIGH if len(pass_through) >= thresholds.prop_drilling_high else Severity.MEDIUM
    return [
        Issue(
            PatternId.PROP_DRILLING,
            severity,
            f"Potential prop drilling: {len(pass_through)} props passed through without local usage "
            f"({', '.join(pass_through)})",
            Location(1, 1),
            "Consider using provide/inject or state management instead of prop drilling",
        )
    ]


_INSTANCE_COUPLING = [
    (re.compile(r"(?<![\w$])this\.\$root\b"), "Accessing $root creates tight coupling"),
    (re.compile(r"(?<![\w$])this\.\$parent\.[\w$]+"), "Accessing parent properties directly"),
    (re.compile(r"(?<![\w$])this\.\$children\[\d+\]"), "Accessing specific child by index"),
]


def detect_tight_coupling(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    parent = script.find("$parent")
    if parent != -1:
        issues.append(
            Issue(
                PatternId.TIGHT_COUPLING,
                Severity.CRITICAL,
                "Direct access to $parent violates component isolation",
                component.script_location(parent),
                "Use props for parent-child communication or emit events",
            )
        )
    children = script.find("$children")
    if children != -1:
        issues.append(
            Issue(
                PatternId.TIGHT_COUPLING,
                Severity.CRITICAL,
                "Direct access to $children violates component isolation",
                component.script_location(children),
                "Use $refs for specific child access or redesign component structure",
            )
        )

    for mutation in detect_prop_mutations(script):
        issues.append(
            Issue(
                PatternId.TIGHT_COUPLING,
                Severity.CRITICAL,
                f"Direct prop mutation: '{mutation.site}' on prop '{mutation.prop}' violates one-way data flow",
                component.script_location(mutation.index),
                "Use local data property and emit events to parent",
            )
        )

    for pattern, message in _INSTANCE_COUPLING:
        match = pattern.search(script)
        if match:
            issues.append(
                Issue(
                    PatternId.TIGHT_COUPLING,
                    Severity.HIGH,
                    message,
                    component.script_location(match.start()),
                    "Refactor to use proper Vue.js patterns (props/events for parent-child communication)",
                )
            )
    return issues
