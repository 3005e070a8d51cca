"""Vue Router detectors: navigation guards and route component loading."""
from __future__ import annotations

import re
from typing import List, Optional

from src.detection.core.models import Issue, PatternId, Severity
from src.detection.core.scanner import line_count
from src.detection.core.thresholds import ThresholdSet
from src.detection.extractors import GuardBody, extract_guard_bodies, static_default_imports
from src.detection.parser import ParsedComponent


_REDIRECTING_GUARDS = frozenset(
    {"beforeEach", "beforeResolve", "beforeEnter", "beforeRouteEnter", "beforeRouteUpdate"}
)
_NEXT_REDIRECT = re.compile(r"""(?<![\w$.])next\s*\(\s*(['"`])([^'"`]+)\1\s*\)""")
_RETURN_REDIRECT = re.compile(r"""(?<![\w$])return\s+(['"`])([^'"`]+)\1""")
_ANY_CONDITION = re.compile(r"\bif\s*\(|\?|\||&|\.path\b|\.name\b|\.meta\b")


def _body_start(script: str, guard: GuardBody) -> int:
    start = script.find(guard.body, guard.index)
    return guard.index if start == -1 else start


def _checks_route(preceding: str, path: str) -> bool:
    """Whether code before a ``next(path)`` call guards against re-entering ``path``."""
    candidates = {re.escape(path), re.escape("/" + path.lstrip("/"))}
    for target in candidates:
        if re.search(rf"""to\.(?:path|name)\s*!==?\s*['"`]{target}['"`]""", preceding):
            return True
        if re.search(rf"""from\.path\s*===?\s*['"`]{target}['"`]""", preceding):
            return True
    return bool(re.search(r"to\.meta\.requiresAuth|isAuthenticated|\bif\s*\(", preceding))


def detect_infinite_navigation_loop(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    for guard in extract_guard_bodies(script):
        if guard.name not in _REDIRECTING_GUARDS:
            continue
        offset = _body_start(script, guard)
        body = guard.body

        for match in _NEXT_REDIRECT.finditer(body):
            path = match.group(2)
            if _checks_route(body[: match.start()], path):
                continue
            issues.append(
                Issue(
                    PatternId.INFINITE_NAVIGATION_LOOP,
                    Severity.CRITICAL,
                    f"Navigation guard redirects to '{path}' without checking current route - causes infinite loop",
                    component.script_location(offset + match.start()),
                    "Add route check: if (to.path !== '/target') next('/target') or use route meta fields",
                )
            )

        for match in _RETURN_REDIRECT.finditer(body):
            if _ANY_CONDITION.search(body[: match.start()]):
                continue
            path = match.group(2)
            issues.append(
                Issue(
                    PatternId.INFINITE_NAVIGATION_LOOP,
                    Severity.CRITICAL,
                    f"Unconditional redirect to '{path}' will cause infinite loop",
                    component.script_location(offset + match.start()),
                    "Add condition: if (!isAuthenticated) return '/login' or check to.path first",
                )
            )
    return issues


_ROUTE_COMPONENT = re.compile(r"(?<![\w$.])component\s*:\s*([A-Za-z_$][\w$]*)\s*(?=[,}\n]|$)")


def detect_missing_lazy_loading(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    """Route records whose ``component`` is a statically imported binding."""
    script = component.script
    if not script:
        return []
    imports = static_default_imports(script)
    if not imports:
        return []
    issues: List[Issue] = []
    routed = {}
    for match in _ROUTE_COMPONENT.finditer(script):
        name = match.group(1)
        if name not in imports:
            continue
        routed.setdefault(name, None)
        issues.append(
            Issue(
                PatternId.MISSING_LAZY_LOADING,
                Severity.HIGH,
                f"Route component '{name}' is eagerly loaded - increases initial bundle size",
                component.script_location(match.start()),
                "Use lazy loading: component: () => import('./Component.vue')",
            )
        )

    for name in routed:
        module, index = imports[name]
        if not module.endswith(".vue"):
            continue
        issues.append(
            Issue(
                PatternId.MISSING_LAZY_LOADING,
                Severity.MEDIUM,
                f"Component '{name}' imported statically but used in routes",
                component.script_location(index),
                f"Remove static import and use: component: () => import('{module}')",
            )
        )
    return issues


GUARD_RESPONSIBILITIES = [
    ("authentication", re.compile(r"\b(?:isAuthenticated|isLoggedIn|checkAuth|token|auth)\b", re.I)),
    ("permissions", re.compile(r"\b(?:hasPermission|checkPermission|canAccess|role|roles)\b", re.I)),
    ("redirection", re.compile(r"""\bnext\s*\(\s*['"`]|\breturn\s+['"`]""")),
    ("data-fetching", re.compile(r"\b(?:fetch|axios|api|loadData|getData)\b", re.I)),
    ("analytics", re.compile(r"\b(?:analytics|track|log|gtag|segment)\b|\bconsole\.", re.I)),
    ("meta-validation", re.compile(r"\bto\.meta\b", re.I)),
    ("loading-states", re.compile(r"\b(?:loading|isLoading|setLoading)\b", re.I)),
    ("document-manipulation", re.compile(r"\bdocument\.|\btitle\s*=(?!=)", re.I)),
    ("state-management", re.compile(r"\b(?:store|commit|dispatch|useStore)\b", re.I)),
    ("error-handling", re.compile(r"\b(?:catch|error|try|throw)\b", re.I)),
]


def guard_responsibilities(body: str) -> List[str]:
    return [name for name, pattern in GUARD_RESPONSIBILITIES if pattern.search(body)]


def _stronger(first: Optional[Severity], second: Optional[Severity]) -> Optional[Severity]:
    if first is None:
        return second
    if second is None:
        return first
    return first if first.weight >= second.weight else second


def detect_god_guard_antipattern(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []
    responsibility_tiers = thresholds.guard_responsibility_tiers
    line_tiers = thresholds.guard_line_tiers
    for guard in extract_guard_bodies(script):
        found = guard_responsibilities(guard.body)
        lines = line_count(guard.body)
        if len(found) <= responsibility_tiers.medium and lines <= line_tiers.medium:
            continue
        severity = _stronger(responsibility_tiers.classify(len(found)), line_tiers.classify(lines))
        if severity is None:
            continue
        suffix = "..." if len(found) > 3 else ""
        issues.append(
            Issue(
                PatternId.GOD_GUARD_ANTIPATTERN,
                severity,
                f"Navigation guard has {len(found)} responsibilities ({lines} lines) - "
                "violates single responsibility principle",
                component.script_location(guard.index),
                f"Split into separate guards: {', '.join(found[:3])}{suffix}",
            )
        )
    return issues
