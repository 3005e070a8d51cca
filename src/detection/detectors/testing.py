"""Detectors for component test suites (``*.spec.*``, ``*.test.*``, ``__tests__``).

Every detector here returns nothing for files that are not test files.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from src.detection.core.models import Issue, PatternId, Severity
from src.detection.core.scanner import function_body, iter_calls, split_top_level
from src.detection.core.thresholds import ThresholdSet
from src.detection.extractors import is_test_file
from src.detection.parser import ParsedComponent


@dataclass(frozen=True)
class SuiteCase:
    name: str
    body: str
    index: int


_TEST_CALLS = r"(?:it|test)(?:\.only|\.skip|\.concurrent)?"
_TEST_NAME = re.compile(r"""^(['"`])(.*)\1$""", re.DOTALL)


def extract_test_cases(text: str) -> List[SuiteCase]:
    """``it('name', () => { ... })`` and ``test(...)`` blocks with a literal name."""
    cases: List[SuiteCase] = []
    for call in iter_calls(text, _TEST_CALLS):
        args = split_top_level(call.args.body)
        if len(args) < 2:
            continue
        name = _TEST_NAME.match(args[0])
        span = function_body(args[1])
        if name is None or span is None or span.start == -1:
            continue
        cases.append(SuiteCase(name.group(2), span.body, call.start))
    return cases


def _count_tests(text: str) -> int:
    return sum(1 for _ in iter_calls(text, _TEST_CALLS))


_INTERNAL_ACCESS = [
    re.compile(r"(?<![\w$.])wrapper\.vm\.[\w$]+"),
    re.compile(r"(?<![\w$])setData\s*\("),
    re.compile(r"(?<![\w$.])wrapper\.setProps\s*\("),
    re.compile(r"(?<![\w$.])expect\([^\n]*?\.computed\.[\w$]+"),
    re.compile(r"(?<![\w$.])expect\([^\n]*?\.data\.[\w$]+"),
]
_INTERNAL_IN_TEST = re.compile(r"wrapper\.vm\b|setData\b|\.data\.|\.computed\.")
_INTERACTIONS = re.compile(r"\b(?:trigger|click|type|fill|select|check|uncheck)\b", re.I)
_EVENT_ASSERTIONS = re.compile(r"emitted|emit", re.I)
_OUTPUT_ASSERTIONS = re.compile(r"\.(?:text|html|classes|attributes|find\w*)\s*\(")


def detect_implementation_testing(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script or not is_test_file(file_path):
        return []
    issues: List[Issue] = []

    for pattern in _INTERNAL_ACCESS:
        for match in pattern.finditer(script):
            issues.append(
                Issue(
                    PatternId.IMPLEMENTATION_TESTING,
                    Severity.MEDIUM,
                    f"Test accesses internal implementation: {match.group(0)}",
                    component.script_location(match.start()),
                    "Test behavior (rendered output, events) instead of internal state",
                )
            )

    for case in extract_test_cases(script):
        if not _INTERNAL_IN_TEST.search(case.body):
            continue
        behavior = (
            _INTERACTIONS.search(case.body)
            or _EVENT_ASSERTIONS.search(case.body)
            or _OUTPUT_ASSERTIONS.search(case.body)
        )
        if behavior:
            continue
        issues.append(
            Issue(
                PatternId.IMPLEMENTATION_TESTING,
                Severity.HIGH,
                f'Test "{case.name}" only tests internal implementation without behavior verification',
                component.script_location(case.index),
                'Add behavior assertions: expect(wrapper.text()).toContain("expected") '
                'or expect(wrapper.emitted()).toHaveProperty("event")',
            )
        )
    return issues


_USES_PINIA = re.compile(r"(?<![\w$.])(?:useStore|use[A-Z][\w$]*Store|defineStore|createPinia)(?![\w$])")
_STORE_CALL = re.compile(r"(?<![\w$.])(?:useStore|use[A-Z][\w$]*Store)\s*\(")
_ISOLATION = re.compile(
    r"setActivePinia\s*\(\s*createPinia\s*\(\s*\)\s*\)|(?<![\w$.])createTestingPinia\s*\("
)
_BEFORE_EACH = re.compile(r"(?<![\w$.])beforeEach\s*\(")


def detect_pinia_state_leak(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    script = component.script
    if not script or not is_test_file(file_path):
        return []
    if not _USES_PINIA.search(script) or _ISOLATION.search(script):
        return []
    issues: List[Issue] = []
    store_calls = list(_STORE_CALL.finditer(script))
    before_each = _BEFORE_EACH.search(script)

    if before_each:
        issues.append(
            Issue(
                PatternId.PINIA_STATE_LEAK,
                Severity.CRITICAL,
                "Test file uses Pinia stores without proper isolation - state pollution between tests",
                component.script_location(before_each.start()),
                "Add to beforeEach: setActivePinia(createPinia()) or use createTestingPinia()",
            )
        )
    elif store_calls:
        issues.append(
            Issue(
                PatternId.PINIA_STATE_LEAK,
                Severity.HIGH,
                "Pinia store used in tests without proper setup - may cause shared state between tests",
                component.script_location(store_calls[0].start()),
                "Add beforeEach(() => { setActivePinia(createPinia()) }) or use createTestingPinia()",
            )
        )

    if len(store_calls) > 1:
        issues.append(
            Issue(
                PatternId.PINIA_STATE_LEAK,
                Severity.MEDIUM,
                "Multiple Pinia stores used without test isolation setup",
                component.script_location(store_calls[0].start()),
                "Isolate store instances: beforeEach(() => setActivePinia(createPinia()))",
            )
        )
    return issues


_SNAPSHOT = re.compile(r"\.toMatch(?:Inline)?Snapshot\s*\(")
_FILE_SNAPSHOT = re.compile(r"\s*\.toMatchSnapshot\s*\(")
_RENDERED_SUBJECT = re.compile(r"wrapper\.|component\.|(?<![\w$.])(?:shallowMount|mount)\s*\(")


def detect_snapshot_overuse(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    script = component.script
    if not script or not is_test_file(file_path):
        return []
    issues: List[Issue] = []
    snapshots = len(_SNAPSHOT.findall(script))
    tests = _count_tests(script)
    ratio = snapshots / tests if tests else 0.0

    if ratio > thresholds.snapshot_test_ratio:
        severity = Severity.HIGH if ratio > thresholds.snapshot_test_ratio_high else Severity.MEDIUM
        issues.append(
            Issue(
                PatternId.SNAPSHOT_OVERUSE,
                severity,
                f"{int(ratio * 100 + 0.5)}% of tests use snapshots ({snapshots}/{tests}) - "
                "reduces test effectiveness",
                component.script_location(0),
                'Replace snapshots with specific assertions: expect(element).toHaveTextContent("expected") '
                "or expect(result).toEqual(expectedValue)",
            )
        )

    if tests and snapshots == tests:
        issues.append(
            Issue(
                PatternId.SNAPSHOT_OVERUSE,
                Severity.HIGH,
                "Test file contains only snapshot tests - provides no behavioral verification",
                component.script_location(0),
                "Add behavioral assertions alongside snapshots or replace with specific expectations",
            )
        )

    for call in iter_calls(script, "expect"):
        if not _FILE_SNAPSHOT.match(script, call.args.end + 1):
            continue
        if _RENDERED_SUBJECT.search(call.args.body):
            issues.append(
                Issue(
                    PatternId.SNAPSHOT_OVERUSE,
                    Severity.LOW,
                    "Snapshot testing component output - consider specific assertions for better test clarity",
                    component.script_location(call.start),
                    'Test specific behaviors: expect(wrapper.text()).toBe("expected") instead of snapshot',
                )
            )

    for case in extract_test_cases(script):
        count = len(_FILE_SNAPSHOT.findall(case.body))
        if count > 1:
            issues.append(
                Issue(
                    PatternId.SNAPSHOT_OVERUSE,
                    Severity.MEDIUM,
                    f'Test "{case.name}" uses {count} snapshots - test multiple behaviors separately',
                    component.script_location(case.index),
                    "Split into separate tests or use specific assertions for each behavior",
                )
            )
    return issues
