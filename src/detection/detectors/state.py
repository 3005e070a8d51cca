"""State-management detectors: Vuex stores, Pinia stores and provide/inject."""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from src.detection.core.models import Issue, PatternId, Severity
from src.detection.core.scanner import (
    Span,
    function_body,
    iter_calls,
    line_count,
    object_entries,
    span_at,
    split_top_level,
)
from src.detection.core.thresholds import ThresholdSet, TierLimits
from src.detection.extractors import (
    ASYNC_MARKERS,
    extract_handlers,
    extract_mutation_blocks,
    extract_store_definitions,
    extract_vuex_store_blocks,
    references_store,
    store_section,
)
from src.detection.parser import ParsedComponent


def detect_vuex_async_in_mutation(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for block in extract_mutation_blocks(script):
        for handler in extract_handlers(block):
            if not ASYNC_MARKERS.search(handler.body):
                continue
            issues.append(
                Issue(
                    PatternId.VUEX_ASYNC_IN_MUTATION,
                    Severity.CRITICAL,
                    f"Vuex mutation '{handler.name}' contains async operations - mutations must be synchronous",
                    component.script_location(handler.index),
                    "Move async operations to actions: "
                    "actions: { asyncAction({ commit }) { commit('syncMutation') } }",
                )
            )
    return issues


def _section_size(block: Span, key: str) -> int:
    section = store_section(block, key)
    if section is None:
        return 0
    return len([entry for entry in object_entries(section) if entry.key])


def detect_vuex_god_store(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    """Grade each store dimension against its own tier table.

    One issue is emitted per dimension that crosses its lowest tier, so a
    store that is both long and has too many mutations reports twice.
    """
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for block in extract_vuex_store_blocks(script):
        location = component.script_location(block.start)
        state = _section_size(block, "state")
        mutations = _section_size(block, "mutations")
        actions = _section_size(block, "actions")
        getters = _section_size(block, "getters")
        lines = line_count(script[block.start : block.end + 1])

        checks: List[Tuple[TierLimits, int, str, str]] = [
            (
                thresholds.vuex_state_tiers,
                state,
                f"Vuex store has {state} state properties",
                "Split store into domain-specific modules using Vuex modules",
            ),
            (
                thresholds.vuex_mutation_tiers,
                mutations,
                f"Vuex store has {mutations} mutations",
                "Decompose mutations into domain-specific modules",
            ),
            (
                thresholds.vuex_action_tiers,
                actions,
                f"Vuex store has {actions} actions",
                "Split async logic into feature-specific action modules",
            ),
            (
                thresholds.vuex_getter_tiers,
                getters,
                f"Vuex store has {getters} getters",
                "Extract computed properties into separate getter modules",
            ),
            (
                thresholds.vuex_store_line_tiers,
                lines,
                f"Vuex store module is {lines} lines",
                "Refactor into multiple domain-driven store modules",
            ),
        ]
        for tiers, value, message, refactoring in checks:
            severity = tiers.classify(value)
            if severity is None:
                continue
            issues.append(
                Issue(
                    PatternId.VUEX_GOD_STORE,
                    severity,
                    f"{message} ({severity.value} threshold exceeded)",
                    location,
                    refactoring,
                )
            )
    return issues


_USE_STORE_BY_NAME = re.compile(r"""(?<![\w$.])useStore\s*\(\s*['"`]([^'"`]+)['"`]\s*\)""")


def detect_pinia_circular_dependency(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    """Pinia stores defined in the same file that read each other.

    Only co-defined stores can be compared; cycles that span files are out
    of reach for a single-file scan.
    """
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    stores = extract_store_definitions(script)
    for i, store in enumerate(stores):
        for other in stores[i + 1 :]:
            if other.store_id == store.store_id:
                continue
            if references_store(store.body, other) and references_store(other.body, store):
                issues.append(
                    Issue(
                        PatternId.PINIA_CIRCULAR_DEPENDENCY,
                        Severity.CRITICAL,
                        f"Circular dependency between Pinia stores '{store.store_id}' and '{other.store_id}'",
                        component.script_location(store.index),
                        "Move cross-store reads to actions or getters for lazy evaluation",
                    )
                )

    names: Dict[str, int] = {}
    for match in _USE_STORE_BY_NAME.finditer(script):
        names.setdefault(match.group(1), match.start())
    if len(names) > 1:
        issues.append(
            Issue(
                PatternId.PINIA_CIRCULAR_DEPENDENCY,
                Severity.MEDIUM,
                f"Multiple Pinia stores used together - monitor for circular dependencies: {', '.join(names)}",
                component.script_location(min(names.values())),
                "Ensure stores don't read each other's state during initialization",
            )
        )
    return issues


_ASYNC_FUNCTION = re.compile(r"(?<![\w$.])async\s+")
_ASYNC_METHOD_NAME = re.compile(r"(?!function\b)[A-Za-z_$][\w$]*\s*(?=\()")
_SETUP_FUNCTION = re.compile(r"(?<![\w$.])setup\s*(?::\s*)?(?=[(\w])")
_STORE_CALL = re.compile(r"(?<![\w$.])(?:useStore|use[A-Z][\w$]*Store)\s*\(")
_AWAIT = re.compile(r"(?<![\w$.])await(?![\w$])")
_THEN_CALL = re.compile(r"\.then\s*\(")


def _async_bodies(text: str) -> List[Tuple[int, str]]:
    """``(start, body)`` of async functions and ``setup`` functions."""
    bodies: Dict[int, Tuple[int, str]] = {}
    candidates: List[Tuple[int, int]] = []
    for match in _ASYNC_FUNCTION.finditer(text):
        method = _ASYNC_METHOD_NAME.match(text, match.end())
        candidates.append((match.start(), method.end() if method else match.start()))
    for match in _SETUP_FUNCTION.finditer(text):
        candidates.append((match.start(), match.end()))

    for start, cursor in candidates:
        span = function_body(text[cursor:])
        if span is None or span.start == -1:
            continue
        body_start = cursor + span.start
        bodies.setdefault(body_start, (start, span.body))
    return sorted(bodies.values())


def detect_pinia_usestore_after_await(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    for start, body in _async_bodies(script):
        first_await = _AWAIT.search(body)
        if first_await is None:
            continue
        if _STORE_CALL.search(body, first_await.end()):
            issues.append(
                Issue(
                    PatternId.PINIA_USESTORE_AFTER_AWAIT,
                    Severity.CRITICAL,
                    "useStore() called after await - may use wrong Pinia instance in SSR",
                    component.script_location(start),
                    "Move useStore() calls before any await statements or use store instance from parameter",
                )
            )

    for match in _THEN_CALL.finditer(script):
        args = span_at(script, match.end() - 1)
        if args is None:
            continue
        parts = split_top_level(args.body)
        if not parts:
            continue
        callback = function_body(parts[0])
        if callback is not None and _STORE_CALL.search(callback.body):
            issues.append(
                Issue(
                    PatternId.PINIA_USESTORE_AFTER_AWAIT,
                    Severity.HIGH,
                    "useStore() in promise chain - may cause SSR context issues",
                    component.script_location(match.start()),
                    "Capture store instance before async operations",
                )
            )
    return issues


GLOBAL_STATE_NAMES: List[Tuple[str, frozenset]] = [
    (
        "authentication",
        frozenset({"isAuthenticated", "isLoggedIn", "user", "currentUser", "authToken", "session"}),
    ),
    (
        "preferences",
        frozenset({"theme", "darkMode", "lightMode", "colorScheme", "language", "locale", "preferences"}),
    ),
    (
        "app state",
        frozenset({"isLoading", "loading", "globalLoading", "appState", "sidebarOpen", "menuOpen"}),
    ),
    ("settings", frozenset({"settings", "config", "configuration", "userSettings", "appConfig"})),
    ("cache", frozenset({"cache", "cachedData", "apiCache", "dataCache"})),
]

_LOCAL_STATE_FUNCTION = re.compile(r"(?<![\w$.])(?:data|setup)\s*(?::\s*)?(?=[(\w])")
_RETURN_OBJECT = re.compile(r"(?<![\w$])return\s*(?=\{)")
_LOCAL_REF = re.compile(
    r"(?<![\w$.])(?:const|let)\s+([A-Za-z_$][\w$]*)\s*=\s*(?:ref|reactive)\s*(?:<[^()]*>)?\s*\("
)


def _global_category(name: str) -> Optional[str]:
    for category, names in GLOBAL_STATE_NAMES:
        if name in names:
            return category
    return None


def _returned_keys(span: Span) -> List[str]:
    body = span.body
    if span.start == -1:
        # data: () => ({ ... })
        body = body.strip()
        if body.startswith("(") and body.endswith(")"):
            body = body[1:-1].strip()
        literal = span_at(body, 0) if body.startswith("{") else None
        return [entry.key for entry in object_entries(literal.body) if entry.key] if literal else []
    keys: List[str] = []
    for match in _RETURN_OBJECT.finditer(body):
        literal = span_at(body, match.end())
        if literal is None:
            continue
        keys.extend(entry.key for entry in object_entries(literal.body) if entry.key)
    return keys


def detect_state_localization_antipattern(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    """Component-local state whose name marks it as application-wide.

    The names are a fixed vocabulary (``user``, ``theme``, ``settings``...),
    so a component that genuinely owns a local ``loading`` flag is reported
    too.
    """
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    provides = "provide(" in script or "provide," in script

    if not provides:
        for match in _LOCAL_STATE_FUNCTION.finditer(script):
            span = function_body(script[match.end() :])
            if span is None:
                continue
            reported = set()
            for key in _returned_keys(span):
                category = _global_category(key)
                if category is None or category in reported:
                    continue
                reported.add(category)
                issues.append(
                    Issue(
                        PatternId.STATE_LOCALIZATION_ANTIPATTERN,
                        Severity.HIGH,
                        f"{category} state '{key}' should be in global store, not local component state",
                        component.script_location(match.start()),
                        "Move to Pinia/Vuex store: defineStore() or createStore() for shared state management",
                    )
                )

    in_store = "defineStore" in script or "createStore" in script
    if in_store or "provide" in script:
        return issues
    for match in _LOCAL_REF.finditer(script):
        name = match.group(1)
        category = _global_category(name)
        if category is None:
            continue
        issues.append(
            Issue(
                PatternId.STATE_LOCALIZATION_ANTIPATTERN,
                Severity.MEDIUM,
                f"Variable '{name}' appears to be global {category} - should use Pinia/Vuex store",
                component.script_location(match.start()),
                "Extract to store: const useStore = defineStore('name', () => { ... })",
            )
        )
    return issues


_STRING_KEY = re.compile(r"""^(?:'[^']*'|"[^"]*"|`[^`]*`)$""")
_INJECTION_KEY = re.compile(r"(?<![\w$])InjectionKey(?![\w$])")


def detect_untyped_provide_inject(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    first_call: Optional[int] = None

    for call in iter_calls(script, r"(?:[\w$]+\.)*(?:provide|inject)"):
        if first_call is None:
            first_call = call.start
        args = split_top_level(call.args.body)
        if not args or not _STRING_KEY.match(args[0]):
            continue
        location = component.script_location(call.start)
        if call.name.endswith("provide"):
            issues.append(
                Issue(
                    PatternId.UNTYPED_PROVIDE_INJECT,
                    Severity.HIGH,
                    "provide() uses string key without InjectionKey - lacks type safety",
                    location,
                    "Use InjectionKey: const key = Symbol() as InjectionKey<Type>; provide(key, value)",
                )
            )
        elif len(args) < 2:
            issues.append(
                Issue(
                    PatternId.UNTYPED_PROVIDE_INJECT,
                    Severity.HIGH,
                    "inject() uses string key without default value - may cause runtime errors",
                    location,
                    "Provide default value: inject(key, defaultValue) or use InjectionKey for type safety",
                )
            )

    if first_call is not None and not _INJECTION_KEY.search(script):
        issues.append(
            Issue(
                PatternId.UNTYPED_PROVIDE_INJECT,
                Severity.MEDIUM,
                "Component uses provide/inject without InjectionKey for type safety",
                component.script_location(first_call),
                "Import InjectionKey: import type { InjectionKey } from 'vue'; "
                "const key = Symbol() as InjectionKey<Type>",
            )
        )
    return issues
