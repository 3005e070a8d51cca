"""TypeScript typing detectors for props, emits and refs."""
from __future__ import annotations

import re
from typing import List, Optional

from src.detection.core.models import Issue, PatternId, Severity
from src.detection.core.scanner import object_entries, skip_whitespace, span_at
from src.detection.core.thresholds import ThresholdSet
from src.detection.core.tree import elements, get_attribute
from src.detection.extractors import find_prop_declarations
from src.detection.parser import ParsedComponent


_DEFINE_PROPS_CALL = re.compile(r"(?<![\w$.])defineProps\s*")
_DEFINE_EMITS_CALL = re.compile(r"(?<![\w$.])defineEmits\s*")


def _macro_arguments(text: str, end: int) -> Optional[str]:
    """Argument text of a compiler macro call, or None when no call follows."""
    cursor = skip_whitespace(text, end)
    if cursor >= len(text) or text[cursor] != "(":
        return None
    args = span_at(text, cursor)
    if args is None:
        return None
    return args.body.strip()


def _is_generic(text: str, end: int) -> bool:
    return text.startswith("<", skip_whitespace(text, end))


def _untyped_runtime_props(arguments: str) -> bool:
    return "PropType" not in arguments


def detect_untyped_props(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    for match in _DEFINE_PROPS_CALL.finditer(script):
        if _is_generic(script, match.end()):
            continue
        arguments = _macro_arguments(script, match.end())
        if arguments is None or not _untyped_runtime_props(arguments):
            continue
        issues.append(
            Issue(
                PatternId.UNTYPED_PROPS,
                Severity.HIGH,
                "defineProps() called without TypeScript types - eliminates compile-time validation",
                component.script_location(match.start()),
                "Use typed props: defineProps<{ propName: string; count: number }>() "
                "or withDefaults(defineProps<{...}>(), {...})",
            )
        )

    for declaration in find_prop_declarations(script):
        if not script.startswith("props", declaration.start):
            continue
        if declaration.kind == "array":
            issues.append(
                Issue(
                    PatternId.UNTYPED_PROPS,
                    Severity.MEDIUM,
                    "Props declared as an array lack type definitions",
                    component.script_location(declaration.start),
                    "Use object syntax: props: { name: { type: String, required: true } }",
                )
            )
            continue
        body_start = script.index("{", declaration.start) + 1
        for entry in object_entries(declaration.body):
            if entry.key is None or entry.kind != "property":
                continue
            if entry.value.startswith("{") and "type:" not in entry.value.replace(" ", ""):
                issues.append(
                    Issue(
                        PatternId.UNTYPED_PROPS,
                        Severity.MEDIUM,
                        f"Prop '{entry.key}' lacks type definition",
                        component.script_location(body_start + entry.offset),
                        f"Add type: {entry.key}: {{ type: String, required: true }} "
                        "or use Composition API with TypeScript",
                    )
                )

    for match in re.finditer(r"(?<![\w$])type\s*:\s*any(?![\w$])", script):
        issues.append(
            Issue(
                PatternId.UNTYPED_PROPS,
                Severity.HIGH,
                "Prop uses 'any' type - defeats type safety purpose",
                component.script_location(match.start()),
                "Use specific types: String, Number, Boolean, Array, Object, or custom constructor functions",
            )
        )
    return issues


_OPTIONS_EMITS = re.compile(r"(?<![\w$.])emits\s*:\s*(?=[\[{])")
_EMIT_CALL = re.compile(r"""(?<![\w$])\$?emit\s*\(\s*['"]([^'"]+)['"]""")
_TYPED_EMITS = re.compile(r"(?<![\w$.])defineEmits\s*<")


def detect_untyped_emits(component: ParsedComponent, file_path: str, thresholds: ThresholdSet) -> List[Issue]:
    """Emits declared without payload types, and ``emit`` calls with no typed declaration.

    Options-API object emits (validator functions) count as typed; any
    runtime ``defineEmits(...)`` call does not.
    """
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    untyped_macro = False
    for match in _DEFINE_EMITS_CALL.finditer(script):
        if _is_generic(script, match.end()):
            continue
        if _macro_arguments(script, match.end()) is None:
            continue
        untyped_macro = True
        issues.append(
            Issue(
                PatternId.UNTYPED_EMITS,
                Severity.HIGH,
                "defineEmits() called without TypeScript types - no payload type safety",
                component.script_location(match.start()),
                "Use typed emits: defineEmits<{ change: [id: number]; update: [value: string] }>()",
            )
        )

    typed_options = False
    for match in _OPTIONS_EMITS.finditer(script):
        if script[match.end()] == "{":
            typed_options = True
            continue
        issues.append(
            Issue(
                PatternId.UNTYPED_EMITS,
                Severity.MEDIUM,
                "Options API emits array lacks payload type definitions",
                component.script_location(match.start()),
                "Use object syntax: emits: { eventName: (payload) => boolean } "
                "or switch to Composition API with TypeScript",
            )
        )

    if untyped_macro or typed_options or _TYPED_EMITS.search(script):
        return issues
    for match in _EMIT_CALL.finditer(script):
        issues.append(
            Issue(
                PatternId.UNTYPED_EMITS,
                Severity.MEDIUM,
                f"emit('{match.group(1)}') call lacks type safety",
                component.script_location(match.start()),
                "Use typed defineEmits with proper payload types",
            )
        )
    return issues


_REF_NULL = re.compile(r"(?<![\w$.])ref\s*\(\s*null\s*\)")
_REF_UNDEFINED = re.compile(r"(?<![\w$.])ref\s*\(\s*undefined\s*\)")
_REF_GENERIC_EMPTY = re.compile(r"(?<![\w$.])ref\s*<((?:[^<>()]|<[^<>()]*>)+)>\s*\(\s*\)")
_ELEMENT_TYPE = re.compile(r"HTML\w*Element|SVG\w*Element|InstanceType\s*<|ComponentPublicInstance")
_COMPOSITION_SETUP = re.compile(r"(?<![\w$.])setup\s*(?::\s*)?(?=[(\w])")

DEFAULT_VALUES = {
    "string": "''",
    "number": "0",
    "boolean": "false",
    "object": "{}",
    "Array": "[]",
    "Object": "{}",
}


def suggest_default_value(type_name: str) -> str:
    """Initial value matching a TypeScript type, used in refactoring hints."""
    type_name = type_name.strip()
    if type_name.endswith("[]"):
        return "[]"
    return DEFAULT_VALUES.get(type_name.split("|")[0].strip(), "null")


def _typed_template_ref(script: str, name: str) -> bool:
    escaped = re.escape(name)
    declared = re.search(
        rf"(?<![\w$.])(?:const|let)\s+{escaped}\s*=\s*(?:ref|shallowRef)\s*<((?:[^<>]|<[^<>]*>)+)>", script
    )
    if declared:
        type_text = declared.group(1)
        return bool(_ELEMENT_TYPE.search(type_text)) and "null" in type_text
    return bool(re.search(rf"""useTemplateRef\s*<[^>]+>\s*\(\s*['"]{escaped}['"]""", script))


def _uses_composition_api(component: ParsedComponent) -> bool:
    if component.logic is None:
        return False
    if any(segment.setup for segment in component.logic.segments):
        return True
    return bool(_COMPOSITION_SETUP.search(component.logic.text))


def detect_ref_type_inference_issues(
    component: ParsedComponent, file_path: str, thresholds: ThresholdSet
) -> List[Issue]:
    script = component.script
    if not script:
        return []
    issues: List[Issue] = []

    for match in _REF_NULL.finditer(script):
        issues.append(
            Issue(
                PatternId.REF_TYPE_INFERENCE_ISSUES,
                Severity.MEDIUM,
                "ref(null) without explicit type leads to incorrect null handling",
                component.script_location(match.start()),
                "Add explicit type: ref<string | null>(null) or ref<string>(undefined)",
            )
        )

    for match in _REF_GENERIC_EMPTY.finditer(script):
        type_name = match.group(1).strip()
        if "undefined" in type_name:
            continue
        issues.append(
            Issue(
                PatternId.REF_TYPE_INFERENCE_ISSUES,
                Severity.LOW,
                f"ref<{type_name}>() without initial value results in {type_name} | undefined",
                component.script_location(match.start()),
                f"Provide initial value: ref<{type_name}>({suggest_default_value(type_name)}) "
                f"or type as ref<{type_name} | undefined>()",
            )
        )

    if _uses_composition_api(component):
        for node in elements(component.template_root):
            attribute = get_attribute(node, "ref")
            if attribute is None or not attribute.expression:
                continue
            name = attribute.expression.strip()
            if _typed_template_ref(script, name):
                continue
            issues.append(
                Issue(
                    PatternId.REF_TYPE_INFERENCE_ISSUES,
                    Severity.MEDIUM,
                    f"Template ref '{name}' lacks HTMLElement | null typing",
                    attribute.location,
                    f"Declare with type: const {name} = ref<HTMLElement | null>(null)",
                )
            )

    for match in _REF_UNDEFINED.finditer(script):
        issues.append(
            Issue(
                PatternId.REF_TYPE_INFERENCE_ISSUES,
                Severity.LOW,
                "ref(undefined) may indicate incorrect type inference",
                component.script_location(match.start()),
                "Use ref<T | undefined>() or provide proper initial value",
            )
        )
    return issues
