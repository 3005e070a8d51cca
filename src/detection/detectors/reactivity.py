"""Reactivity detectors for ``ref``/``reactive``, computed and watchers."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.detection.core.models import Issue, PatternId, Severity
from src.detection.core.scanner import (
    blank_comments,
    function_body,
    iter_calls,
    object_entries,
    span_at,
    split_top_level,
)
from src.detection.core.thresholds import ThresholdSet
from src.detection.extractors import (
    SideEffect,
    analyze_side_effects,
    estimate_watched_size,
    extract_computed_bodies,
)
from src.detection.parser import ParsedComponent


@dataclass(frozen=True)
class _Destructuring:
    index: int
    names: Tuple[str, ...]
    aliases: Tuple[str, ...]
    callee: str
    statement_end: int


_DECLARATION = re.compile(r"(?<![\w$.])(?:const|let|var)\s*(?=\{)")
_INITIALIZER = re.compile(
    r"\s*(?::[^=]+)?=\s*(?:await\s+)?(?P<callee>[\w$.]+)\s*(?:<(?:[^()<>]|<[^()<>]*>)*>\s*)?\("
)


def _destructurings(text: str) -> List[_Destructuring]:
    """``const { a, b } = callee(...)`` declarations."""
    found: List[_Destructuring] = []
    for match in _DECLARATION.finditer(text):
        pattern = span_at(text, match.end())
        if pattern is None:
            continue
        init = _INITIALIZER.match(text, pattern.end + 1)
        if not init:
            continue
        entries = [entry for entry in object_entries(pattern.body) if entry.key]
        statement_end = text.find(";", init.end())
        if statement_end == -1:
            statement_end = len(text)
        found.append(
            _Destructuring(
                match.start(),
                tuple(entry.key for entry in entries),
                tuple(entry.value for entry in entries),
                init.group("callee"),
                statement_end,
            )
        )
    return found


_REACTIVE_PRIMITIVE = re.compile(
    r"(?<![\w$.])reactive\s*\(\s*(['\"`]?)(true|false|null|undefined|\d+|\d*\.\d+)\1\s*\)"
)
_REACTIVE_STRING = re.compile(r"(?<![\w$.])reactive\s*\(\s*(['\"`][^'\"`]*['\"`])\s*\)")
_OBJECT_ASSIGNMENT = re.compile(r"(?<![\w$.])([\w$]+)\s*=\s*(?=\{)")


def detect_ref_reactive_confusion(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    primitive_sites = set()
    for match in _REACTIVE_PRIMITIVE.finditer(script):
        primitive_sites.add(match.start())
        issues.append(
            Issue(
                PatternId.REF_REACTIVE_CONFUSION,
                Severity.HIGH,
                "Using reactive() with primitive value - use ref() instead",
                component.script_location(match.start()),
                f"reactive({match.group(2)}) → ref({match.group(2)})",
            )
        )

    for match in _REACTIVE_STRING.finditer(script):
        if match.start() in primitive_sites:
            continue
        issues.append(
            Issue(
                PatternId.REF_REACTIVE_CONFUSION,
                Severity.MEDIUM,
                "Using reactive() with string literal - consider if ref() is more appropriate",
                component.script_location(match.start()),
                f"reactive({match.group(1)}) → ref({match.group(1)})",
            )
        )

    previous_end = 0
    for item in _destructurings(script):
        if item.callee == "reactive":
            preceding = script[previous_end : item.index]
            if "toRefs(" not in preceding:
                issues.append(
                    Issue(
                        PatternId.REF_REACTIVE_CONFUSION,
                        Severity.CRITICAL,
                        "Destructuring reactive object without toRefs() breaks reactivity",
                        component.script_location(item.index),
                        "const { prop } = reactive({...}) → const { prop } = toRefs(reactive({...}))",
                    )
                )
        previous_end = item.index + 1

    for match in _OBJECT_ASSIGNMENT.finditer(script):
        name = match.group(1)
        if name in ("const", "let", "var"):
            continue
        declared = re.search(
            rf"(?<![\w$.])(?:const|let|var)\s+{re.escape(name)}\s*(?::[^=]+)?=\s*reactive\b", script
        )
        line_start = script.rfind("\n", 0, match.start()) + 1
        is_declaration = re.search(r"(?:const|let|var)\s+$", script[line_start : match.start()])
        if declared and not is_declaration:
            issues.append(
                Issue(
                    PatternId.REF_REACTIVE_CONFUSION,
                    Severity.HIGH,
                    f"Replacing entire reactive object '{name}' loses reactivity connections",
                    component.script_location(match.start()),
                    "Update individual properties instead of replacing the entire object",
                )
            )
    return issues


def detect_destructuring_reactivity_loss(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    for item in _destructurings(script):
        location = component.script_location(item.index)
        names = ", ".join(item.names)
        if item.callee == "reactive":
            nearby = script[: item.statement_end + 100]
            if "toRefs(" not in nearby:
                issues.append(
                    Issue(
                        PatternId.DESTRUCTURING_REACTIVITY_LOSS,
                        Severity.CRITICAL,
                        f"Destructuring reactive object breaks reactivity for properties: {names}",
                        location,
                        "const { prop } = reactive({...}) → const { prop } = toRefs(reactive({...}))",
                    )
                )
        elif item.callee == "ref" and item.names == ("value",):
            alias = item.aliases[0]
            issues.append(
                Issue(
                    PatternId.DESTRUCTURING_REACTIVITY_LOSS,
                    Severity.CRITICAL,
                    "Destructuring ref's .value property breaks reactivity",
                    location,
                    f"const {{value: {alias}}} = ref(...) → const {alias} = ref(...)",
                )
            )
        elif item.callee in ("defineProps", "withDefaults"):
            if "toRefs(" not in script:
                issues.append(
                    Issue(
                        PatternId.DESTRUCTURING_REACTIVITY_LOSS,
                        Severity.HIGH,
                        f"Destructuring props breaks reactivity for: {names}",
                        location,
                        "const { prop } = defineProps(...) → const props = defineProps(...); "
                        "const { prop } = toRefs(props)",
                    )
                )
        elif item.callee == "computed":
            issues.append(
                Issue(
                    PatternId.DESTRUCTURING_REACTIVITY_LOSS,
                    Severity.MEDIUM,
                    "Destructuring computed object may break reactivity",
                    location,
                    "const { prop } = computed({...}) → const obj = computed({...}); "
                    "const { prop } = toRefs(obj)",
                )
            )
    return issues


def detect_computed_side_effects(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for computed in extract_computed_bodies(script):
        effects = analyze_side_effects(computed.body)
        if not effects:
            continue
        severity = (
            Severity.CRITICAL
            if SideEffect.MUTATION in effects or SideEffect.ASYNC in effects
            else Severity.HIGH
        )
        label = f" '{computed.name}'" if computed.name else ""
        issues.append(
            Issue(
                PatternId.COMPUTED_SIDE_EFFECTS,
                severity,
                f"Impure computed property{label}: {', '.join(effect.description for effect in effects)}",
                component.script_location(computed.index),
                "Move side effects to methods, watchers, or make computed pure",
            )
        )
    return issues


_DEEP_OPTION = re.compile(r"\bdeep\s*:\s*true\b")
_IMMEDIATE_OPTION = re.compile(r"\bimmediate\s*:\s*true\b")
_WATCHABLE_SOURCE = re.compile(r"^[A-Za-z_$][\w$]*$")


def detect_deep_watcher_overuse(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for call in iter_calls(script, "watch"):
        args = split_top_level(call.args.body)
        if len(args) < 3 or not args[2].startswith("{"):
            continue
        source, options = args[0], args[2]
        location = component.script_location(call.start)

        if _DEEP_OPTION.search(options):
            size = estimate_watched_size(source, script)
            if size > thresholds.deep_watcher_high:
                severity = Severity.HIGH
                message = f"Deep watcher on large object ({size} properties) creates significant overhead"
            elif size > thresholds.deep_watcher_medium:
                severity = Severity.MEDIUM
                message = f"Deep watcher on moderately large object ({size} properties)"
            else:
                severity = Severity.LOW
                message = "Using deep watcher may be expensive"
            issues.append(
                Issue(
                    PatternId.DEEP_WATCHER_OVERUSE,
                    severity,
                    message,
                    location,
                    "Consider shallow watching or restructuring data to avoid deep watching",
                )
            )
            continue

        if _IMMEDIATE_OPTION.search(options):
            continue
        if source.startswith("[") or source.startswith("{") or _WATCHABLE_SOURCE.match(source):
            issues.append(
                Issue(
                    PatternId.DEEP_WATCHER_OVERUSE,
                    Severity.LOW,
                    "Potential implicit deep watching - consider if immediate: true is needed",
                    location,
                    "Add immediate: true if you need initial execution, or ensure shallow watching",
                )
            )
    return issues


_WATCHER_SIDE_EFFECTS = re.compile(
    r"\b(?:console\.|fetch\(|setTimeout\(|setInterval\(|clearTimeout\(|clearInterval\(|"
    r"document\.|window\.|localStorage\.|sessionStorage\.)"
)
_WATCHER_ASYNC = re.compile(r"\b(?:async|await|Promise\.|then\(|catch\(|finally\()")
_MEMBER_ASSIGNMENT = re.compile(r"^[\w$]+(?:\.[\w$]+)+\s*=(?![=>])")
_ANY_ASSIGNMENT = re.compile(r"^[\w$.\[\]'\"]+\s*(?:[+\-*/]?=)(?![=>])")
_DECLARATION_KEYWORD = re.compile(r"^(?:const|let|var)\s")


@dataclass(frozen=True)
class _WatcherBody:
    pure: bool
    only_assignments: bool
    reactive_assignments: int


def _analyze_watcher_body(body: str) -> _WatcherBody:
    clean = blank_comments(body).strip()
    statements: List[str] = []
    for piece in split_top_level(clean, ";"):
        statements.extend(split_top_level(piece, "\n"))
    assignments = [
        statement
        for statement in statements
        if _ANY_ASSIGNMENT.match(statement) and not _DECLARATION_KEYWORD.match(statement)
    ]
    reactive = [statement for statement in assignments if _MEMBER_ASSIGNMENT.match(statement)]
    return _WatcherBody(
        pure=not _WATCHER_SIDE_EFFECTS.search(clean) and not _WATCHER_ASYNC.search(clean),
        only_assignments=bool(statements) and len(assignments) == len(statements),
        reactive_assignments=len(reactive),
    )


def _watcher_callback(name: str, args: List[str]) -> Optional[str]:
    callback = args[0] if name == "watchEffect" else (args[1] if len(args) > 1 else None)
    if callback is None:
        return None
    span = function_body(callback)
    if span is None or span.start == -1:
        return None
    return span.body


def detect_watcher_should_be_computed(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for call in iter_calls(script, "watch|watchEffect"):
        args = split_top_level(call.args.body)
        if not args:
            continue
        body = _watcher_callback(call.name, args)
        if body is None:
            continue
        analysis = _analyze_watcher_body(body)
        if not (analysis.pure and analysis.only_assignments and analysis.reactive_assignments):
            continue
        if analysis.reactive_assignments > 1:
            severity = Severity.HIGH
            message = "Watcher performs multiple reactive assignments - should be computed properties"
        else:
            severity = Severity.MEDIUM
            message = "Watcher only assigns to reactive state - should be computed property"
        issues.append(
            Issue(
                PatternId.WATCHER_SHOULD_BE_COMPUTED,
                severity,
                message,
                component.script_location(call.start),
                "Replace watcher with computed property: const computedValue = computed(() => { /* logic */ })",
            )
        )
    return issues
