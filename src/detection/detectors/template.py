"""Markup detectors: iteration, interpolation and nesting defects."""
from __future__ import annotations

import re
from typing import List, Optional

from src.detection.core.models import Issue, Location, PatternId, Severity
from src.detection.core.thresholds import ThresholdSet
from src.detection.core.tree import (
    NodeKind,
    elements,
    get_binding,
    get_bound_attribute,
    has_binding,
    has_key,
    max_depth,
    walk,
)
from src.detection.extractors import parse_for_expression
from src.detection.parser import ParsedComponent


def detect_vif_with_vfor(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    issues: List[Issue] = []
    for node in elements(component.template_root):
        if has_binding(node, "for") and has_binding(node, "if"):
            issues.append(
                Issue(
                    PatternId.VIF_WITH_VFOR,
                    Severity.CRITICAL,
                    "Using v-if and v-for on the same element creates undefined behavior",
                    node.location,
                    '<li v-for="user in users" v-if="user.isActive"> → <li v-for="user in activeUsers"> '
                    "where activeUsers = computed(() => users.filter(u => u.isActive))",
                )
            )
    return issues


def _escalate_missing_key(file_path: str, marker: Optional[str]) -> bool:
    if not marker:
        return False
    return marker.lower() in file_path.replace("\\", "/").lower()


def detect_vfor_without_key(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    issues: List[Issue] = []
    severity = (
        Severity.CRITICAL
        if _escalate_missing_key(file_path, thresholds.missing_key_escalation_marker)
        else Severity.HIGH
    )
    for node in elements(component.template_root):
        if has_binding(node, "for") and not has_key(node):
            issues.append(
                Issue(
                    PatternId.VFOR_WITHOUT_KEY,
                    severity,
                    "Missing :key attribute in v-for iteration",
                    node.location,
                    'Add :key="uniqueId" to the iterated element',
                )
            )
    return issues


_CONVENTIONAL_INDEX_NAMES = frozenset({"index", "idx"})


def detect_vfor_index_as_key(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    issues: List[Issue] = []
    for node in elements(component.template_root):
        directive = get_binding(node, "for")
        key = get_bound_attribute(node, "key")
        if directive is None or key is None or not key.expression:
            continue
        parsed = parse_for_expression(directive.expression)
        if parsed is None:
            continue
        if parsed.index_alias is not None:
            index_names = {parsed.index_alias}
        else:
            # Single-alias loops: an outer ``index`` is still a positional key.
            index_names = _CONVENTIONAL_INDEX_NAMES
        if key.expression.strip() in index_names:
            issues.append(
                Issue(
                    PatternId.VFOR_INDEX_AS_KEY,
                    Severity.HIGH,
                    "Using array index as v-for key causes incorrect component reuse",
                    node.location,
                    "Use unique identifier instead of array index for :key",
                )
            )
    return issues


def _expression_severity(expression: str, thresholds: ThresholdSet) -> Optional[Severity]:
    length = len(expression)
    has_call = "(" in expression and ")" in expression
    chain_segments = len(expression.split(".")) if "." in expression else 1
    has_conditional = "?" in expression or "&&" in expression or "||" in expression

    if length > thresholds.template_expression_length or has_call:
        return Severity.CRITICAL
    if (
        length > thresholds.template_expression_length_high
        or chain_segments > thresholds.template_member_chain_depth
    ):
        return Severity.HIGH
    if length > thresholds.template_expression_length_medium or has_conditional:
        return Severity.MEDIUM
    return None


def detect_complex_template_expression(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    issues: List[Issue] = []
    for node in walk(component.template_root):
        if node.kind is not NodeKind.INTERPOLATION:
            continue
        expression = node.content or ""
        severity = _expression_severity(expression, thresholds)
        if severity is None:
            continue
        issues.append(
            Issue(
                PatternId.COMPLEX_TEMPLATE_EXPRESSION,
                severity,
                f"Complex template expression ({len(expression)} chars) violates separation of concerns",
                node.location,
                "Move complex logic to computed property or method",
            )
        )
    return issues


_STATIC_STRING = re.compile(r"""^\s*(?:'[^'\\]*'|"[^"\\]*"|`[^`$\\]*`)\s*$""")
_DYNAMIC_MARKERS = re.compile(r"\{\{|\$|\(|\[|[\w$)\]]\s*\??\.\s*[A-Za-z_$]")


def _html_severity(expression: Optional[str]) -> Optional[Severity]:
    if not expression or _STATIC_STRING.match(expression):
        return None
    if _DYNAMIC_MARKERS.search(expression):
        return Severity.CRITICAL
    return Severity.HIGH


def detect_vhtml_xss_risk(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    """Flag ``v-html`` bound to anything other than a static string literal."""
    issues: List[Issue] = []
    for node in elements(component.template_root):
        directive = get_binding(node, "html")
        if directive is None:
            continue
        severity = _html_severity(directive.expression)
        if severity is None:
            continue
        issues.append(
            Issue(
                PatternId.VHTML_XSS_RISK,
                severity,
                "Using v-html with dynamic content creates XSS vulnerability",
                node.location,
                "Use text interpolation or sanitize content before using v-html",
            )
        )
    return issues


def detect_deep_template_nesting(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    if component.markup is None:
        return []
    depth = max_depth(component.markup.root)
    if depth <= thresholds.template_depth:
        return []
    if depth > thresholds.deep_template_depth:
        severity = Severity.CRITICAL
    elif depth > thresholds.template_depth_high:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM
    return [
        Issue(
            PatternId.DEEP_TEMPLATE_NESTING,
            severity,
            f"Template nesting depth of {depth} exceeds recommended limit",
            Location(1, 1),
            "Extract nested content into separate components",
        )
    ]
