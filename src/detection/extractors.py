"""Text heuristics over the unparsed logic block.

These helpers approximate facts about component script code (declared
props, cleanup hooks, side effects, store definitions, ...) without a
JavaScript parser. They accept ``None`` and never raise on malformed input;
results are ordered lists so analysis output is deterministic.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from src.detection.core.scanner import (
    IDENTIFIER,
    Entry,
    Span,
    blank_spans,
    function_body,
    iter_calls,
    object_entries,
    skip_whitespace,
    span_at,
    split_top_level,
    word,
)


# -- props -----------------------------------------------------------------

_PROPS_OPTION = re.compile(r"(?<![\w$.])props\s*:\s*(?=[\[{])")
_DEFINE_PROPS = re.compile(r"(?<![\w$.])defineProps\s*")
_TYPE_MEMBER = re.compile(
    rf"""(?:^|[;,\n{{])\s*(?:readonly\s+)?(?:(?P<name>{IDENTIFIER})|'(?P<single>[^']+)'|"(?P<double>[^"]+)")\s*\??\s*:"""
)
_QUOTED = re.compile(r"""^['"`](.*)['"`]$""", re.DOTALL)


@dataclass(frozen=True)
class PropDeclaration:
    kind: str  # array | object | type
    start: int
    end: int
    body: str


def _top_level_text(body: str) -> str:
    """Blank everything nested inside brackets so only depth-0 text remains."""
    spans: List[Tuple[int, int]] = []
    i = 0
    while i < len(body):
        if body[i] in "([{":
            inner = span_at(body, i)
            if inner is None:
                break
            spans.append((inner.start + 1, inner.end))
            i = inner.end + 1
            continue
        i += 1
    return blank_spans(body, spans)


def _generic_type_body(text: str, index: int) -> Tuple[Optional[str], int]:
    """Resolve ``<...>`` after ``defineProps`` to the type literal body.

    Returns the body (or None) and the index just past the closing ``>``.
    """
    i = skip_whitespace(text, index)
    if i >= len(text) or text[i] != "<":
        return None, index
    depth = 0
    j = i
    while j < len(text):
        ch = text[j]
        if ch in "({[":
            inner = span_at(text, j)
            if inner is None:
                return None, index
            j = inner.end + 1
            continue
        if ch == "<":
            depth += 1
        elif ch == ">" and text[j - 1] != "=":
            depth -= 1
            if depth == 0:
                break
        j += 1
    else:
        return None, index
    generic = text[i + 1 : j].strip()
    if generic.startswith("{"):
        literal = span_at(generic, 0)
        return (literal.body if literal else None), j + 1
    name_match = re.match(IDENTIFIER, generic)
    if name_match:
        return _named_type_body(text, name_match.group(0)), j + 1
    return None, j + 1


def _named_type_body(text: str, name: str) -> Optional[str]:
    pattern = re.compile(
        rf"(?:interface\s+{re.escape(name)}\b[^{{]*|type\s+{re.escape(name)}\s*=\s*)(?=\{{)"
    )
    match = pattern.search(text)
    if not match:
        return None
    literal = span_at(text, match.end())
    return literal.body if literal else None


def find_prop_declarations(text: Optional[str]) -> List[PropDeclaration]:
    """Locate every props declaration (options, runtime and typed macro forms)."""
    if not text:
        return []
    found: List[PropDeclaration] = []
    for match in _PROPS_OPTION.finditer(text):
        block = span_at(text, match.end())
        if block is None:
            continue
        kind = "array" if text[block.start] == "[" else "object"
        found.append(PropDeclaration(kind, match.start(), block.end + 1, block.body))

    for match in _DEFINE_PROPS.finditer(text):
        type_body, cursor = _generic_type_body(text, match.end())
        paren = skip_whitespace(text, cursor)
        if paren >= len(text) or text[paren] != "(":
            continue
        args = span_at(text, paren)
        if args is None:
            continue
        if type_body is not None:
            found.append(PropDeclaration("type", match.start(), args.end + 1, type_body))
            continue
        first = skip_whitespace(args.body, 0)
        if first < len(args.body) and args.body[first] in "[{":
            inner = span_at(args.body, first)
            if inner is not None:
                kind = "array" if args.body[first] == "[" else "object"
                found.append(PropDeclaration(kind, match.start(), args.end + 1, inner.body))
    found.sort(key=lambda decl: decl.start)
    return found


def _prop_names(declaration: PropDeclaration) -> List[str]:
    if declaration.kind == "array":
        names = []
        for item in split_top_level(declaration.body):
            quoted = _QUOTED.match(item)
            if quoted:
                names.append(quoted.group(1))
        return names
    if declaration.kind == "object":
        return [entry.key for entry in object_entries(declaration.body) if entry.key]
    flat = _top_level_text(declaration.body)
    names = []
    for match in _TYPE_MEMBER.finditer(flat):
        names.append(match.group("name") or match.group("single") or match.group("double"))
    return names


def extract_declared_props(text: Optional[str]) -> List[str]:
    """Names of every declared prop, in declaration order, without duplicates."""
    names: Dict[str, None] = {}
    for declaration in find_prop_declarations(text):
        for name in _prop_names(declaration):
            names.setdefault(name, None)
    return list(names)


def extract_prop_usage(text: Optional[str], props: Iterable[str]) -> List[str]:
    """Subset of ``props`` referenced by name anywhere in ``text``."""
    if not text:
        return []
    return [prop for prop in props if re.search(word(prop), text)]


def mask_prop_declarations(text: Optional[str]) -> str:
    """Return ``text`` with prop declarations blanked so they do not count as usage."""
    if not text:
        return ""
    spans = [(decl.start, decl.end) for decl in find_prop_declarations(text)]
    return blank_spans(text, spans)


@dataclass(frozen=True)
class PropMutation:
    prop: str
    site: str
    index: int


_MUTATION_OPERATOR = r"(?:=(?![=>])|\+\+|--|\+=|-=|\*=|/=)"


def detect_prop_mutations(text: Optional[str]) -> List[PropMutation]:
    """Assignments to declared props through ``this.<prop>`` or ``props.<prop>``."""
    if not text:
        return []
    props = extract_declared_props(text)
    mutations: List[PropMutation] = []
    for prop in props:
        pattern = re.compile(
            rf"(?<![\w$.])(?:this|props)\.{re.escape(prop)}\s*{_MUTATION_OPERATOR}"
        )
        for match in pattern.finditer(text):
            mutations.append(PropMutation(prop, match.group(0).strip(), match.start()))
    mutations.sort(key=lambda mutation: mutation.index)
    return mutations


# -- option blocks and component shape ---------------------------------------


def extract_option_block(text: Optional[str], key: str) -> Optional[Span]:
    """Body of an options-API block such as ``computed: { ... }``."""
    if not text:
        return None
    match = re.search(rf"(?<![\w$.]){re.escape(key)}\s*:\s*(?=\{{)", text)
    if not match:
        return None
    return span_at(text, match.end())


_COMPONENT_OPTIONS = re.compile(
    r"(?:export\s+default\s*(?=\{)|(?<![\w$.])(?:defineComponent|defineOptions)\s*\(\s*(?=\{))"
)


def component_options(text: Optional[str]) -> List[Entry]:
    """Top-level entries of the component options object, when there is one."""
    if not text:
        return []
    match = _COMPONENT_OPTIONS.search(text)
    if not match:
        return []
    block = span_at(text, match.end())
    if block is None:
        return []
    return object_entries(block.body)


_NON_METHOD_KEYWORDS = frozenset(
    {"if", "for", "while", "switch", "catch", "function", "return", "with", "super"}
)
_SHORTHAND_METHOD = re.compile(rf"(?<![\w$.])(?:async\s+)?({IDENTIFIER})\s*\([^()]*\)\s*\{{")
_FUNCTION_DECLARATION = re.compile(rf"(?<![\w$.])function\s*\*?\s*({IDENTIFIER})\s*\(")
_FUNCTION_KEYWORD_BEFORE = re.compile(r"(?<![\w$.])function\s*\*?\s*$")
_ARROW_DECLARATION = re.compile(
    rf"(?<![\w$.])(?:const|let|var)\s+({IDENTIFIER})\s*(?::[^=]+)?=\s*(?:async\s+)?(?:\([^()]*\)|{IDENTIFIER})\s*(?::[^=]+)?=>"
)


def count_methods(text: Optional[str]) -> int:
    """Approximate number of functions and methods defined in ``text``."""
    if not text:
        return 0
    names = 0
    for match in _SHORTHAND_METHOD.finditer(text):
        if match.group(1) in _NON_METHOD_KEYWORDS:
            continue
        # ``function name() {`` is counted once, as a declaration
        if _FUNCTION_KEYWORD_BEFORE.search(text, max(0, match.start() - 32), match.start()):
            continue
        names += 1
    names += len(_FUNCTION_DECLARATION.findall(text))
    names += len(_ARROW_DECLARATION.findall(text))
    return names


def count_computed(text: Optional[str]) -> int:
    """Computed properties from both the options block and ``computed()`` calls."""
    if not text:
        return 0
    total = 0
    block = extract_option_block(text, "computed")
    if block is not None:
        total += len([entry for entry in object_entries(block.body) if entry.key])
    total += sum(1 for _ in iter_calls(text, "computed", allow_generic=True))
    return total


@dataclass(frozen=True)
class ComputedBody:
    name: Optional[str]
    body: str
    index: int


def extract_computed_bodies(text: Optional[str]) -> List[ComputedBody]:
    """Getter bodies of computed properties.

    Options-API entries with ``get``/``set`` pairs contribute only their
    getter; setters are allowed to mutate state.
    """
    if not text:
        return []
    bodies: List[ComputedBody] = []
    block = extract_option_block(text, "computed")
    if block is not None:
        for entry in object_entries(block.body):
            if entry.kind == "spread" or entry.key is None:
                continue
            index = block.start + 1 + entry.offset
            value = entry.value
            if entry.kind == "property" and value.startswith("{"):
                literal = span_at(value, 0)
                getter = None
                if literal is not None:
                    getter = next(
                        (item for item in object_entries(literal.body) if item.key == "get"),
                        None,
                    )
                if getter is None:
                    continue
                value = getter.value
            span = function_body(value)
            if span is not None:
                bodies.append(ComputedBody(entry.key, span.body, index))

    for call in iter_calls(text, "computed", allow_generic=True):
        args = split_top_level(call.args.body)
        if not args:
            continue
        getter_source = args[0]
        if getter_source.startswith("{"):
            literal = span_at(getter_source, 0)
            getter = None
            if literal is not None:
                getter = next(
                    (item for item in object_entries(literal.body) if item.key == "get"), None
                )
            if getter is None:
                continue
            getter_source = getter.value
        span = function_body(getter_source)
        if span is not None:
            bodies.append(ComputedBody(None, span.body, call.start))
    bodies.sort(key=lambda item: item.index)
    return bodies


_NAME_OPTION = re.compile(r"""^['"]([^'"]+)['"]$""")


def extract_component_name(text: Optional[str], file_path: str) -> Optional[str]:
    """Declared ``name`` option, falling back to the PascalCased file name."""
    for entry in component_options(text):
        if entry.key == "name" and entry.kind == "property":
            match = _NAME_OPTION.match(entry.value)
            if match:
                return match.group(1)
    stem = Path(file_path.replace("\\", "/")).name
    if stem.endswith(".vue"):
        stem = stem[: -len(".vue")]
    if not stem:
        return None
    return "".join(part[:1].upper() + part[1:] for part in stem.split("-"))


# -- cleanup hooks and listeners --------------------------------------------


@dataclass(frozen=True)
class HookBody:
    name: str
    body: str
    index: int


@dataclass
class CleanupHooks:
    composition: List[HookBody] = field(default_factory=list)
    options: List[HookBody] = field(default_factory=list)

    def bodies(self) -> List[str]:
        return [hook.body for hook in self.composition + self.options]


_OPTIONS_CLEANUP = re.compile(
    r"(?<![\w$.])(beforeDestroy|destroyed|beforeUnmount|unmounted)\s*(?::\s*)?(?=[(\w])"
)


def detect_cleanup_hooks(text: Optional[str]) -> CleanupHooks:
    hooks = CleanupHooks()
    if not text:
        return hooks
    for call in iter_calls(text, "onUnmounted|onBeforeUnmount"):
        args = split_top_level(call.args.body)
        if not args:
            continue
        span = function_body(args[0])
        if span is not None:
            hooks.composition.append(HookBody(call.name, span.body, call.start))

    for match in _OPTIONS_CLEANUP.finditer(text):
        span = function_body(text[match.end() :])
        if span is None or span.start == -1:
            continue
        hooks.options.append(HookBody(match.group(1), span.body, match.start()))
    return hooks


@dataclass(frozen=True)
class Listener:
    target: str
    event: str
    handler: str
    index: int


def find_listeners(text: Optional[str]) -> List[Listener]:
    """``addEventListener('event', handler)`` calls with a literal event name."""
    if not text:
        return []
    listeners: List[Listener] = []
    for match in re.finditer(rf"(?<![\w$])((?:[\w$]+\.)*)addEventListener\s*\(", text):
        args = span_at(text, match.end() - 1)
        if args is None:
            continue
        parts = split_top_level(args.body)
        if len(parts) < 2:
            continue
        event = _QUOTED.match(parts[0])
        if not event:
            continue
        target = match.group(1).rstrip(".") or "this"
        listeners.append(Listener(target, event.group(1), parts[1], match.start()))
    return listeners


def has_matching_removal(listener: Listener, hooks: CleanupHooks) -> bool:
    pattern = re.compile(
        rf"removeEventListener\s*\(\s*['\"`]{re.escape(listener.event)}['\"`]\s*,\s*{re.escape(listener.handler)}"
    )
    return any(pattern.search(body) for body in hooks.bodies())


# -- side effects ------------------------------------------------------------


class SideEffect(str, Enum):
    MUTATION = "mutation"
    ASYNC = "async"
    DOM = "dom"
    METHOD_CALL = "method_call"

    @property
    def description(self) -> str:
        return _SIDE_EFFECT_DESCRIPTIONS[self]


_SIDE_EFFECT_DESCRIPTIONS = {
    SideEffect.MUTATION: "state mutation",
    SideEffect.ASYNC: "async operation",
    SideEffect.DOM: "DOM manipulation",
    SideEffect.METHOD_CALL: "method call with potential side effects",
}

_SIDE_EFFECT_PATTERNS: List[Tuple[SideEffect, List[re.Pattern]]] = [
    (
        SideEffect.MUTATION,
        [
            re.compile(rf"(?<![\w$.])this\.[\w$]+\s*{_MUTATION_OPERATOR}"),
            re.compile(rf"(?<![\w$.])[\w$]+\.value\s*{_MUTATION_OPERATOR}"),
        ],
    ),
    (
        SideEffect.ASYNC,
        [
            re.compile(word(name))
            for name in ("async", "await", "Promise", "setTimeout", "setInterval", "fetch", "axios", "XMLHttpRequest")
        ]
        + [re.compile(r"\$\.ajax\b")],
    ),
    (
        SideEffect.DOM,
        [
            re.compile(r"\bdocument\."),
            re.compile(r"\bwindow\."),
            re.compile(r"\bgetElementById\b"),
            re.compile(r"\bquerySelector"),
            re.compile(r"\baddEventListener\b"),
            re.compile(r"\bremoveEventListener\b"),
            re.compile(r"\binnerHTML\b"),
            re.compile(r"\bstyle\."),
            re.compile(r"\bclassList\."),
        ],
    ),
    (
        SideEffect.METHOD_CALL,
        [
            re.compile(r"(?<![\w$.])this\.[\w$]+\("),
            re.compile(r"\bconsole\."),
            re.compile(r"\blocalStorage\."),
            re.compile(r"\bsessionStorage\."),
        ],
    ),
]


def analyze_side_effects(body: Optional[str]) -> List[SideEffect]:
    """Side-effect categories present in a function body, in fixed order."""
    if not body:
        return []
    return [
        effect
        for effect, patterns in _SIDE_EFFECT_PATTERNS
        if any(pattern.search(body) for pattern in patterns)
    ]


ASYNC_MARKERS = re.compile(
    r"(?<![\w$])(?:async|await|Promise|setTimeout|setInterval|fetch|axios|XMLHttpRequest|then|catch|finally)(?![\w$])|\$\.ajax\b"
)


# -- vuex ----------------------------------------------------------------------


@dataclass(frozen=True)
class Handler:
    name: str
    body: str
    index: int


_MUTATIONS_BLOCK = re.compile(
    r"(?:(?<![\w$.])mutations\s*:\s*|(?<![\w$.])(?:const|let|var)\s+mutations\s*(?::[^=]+)?=\s*)(?=\{)"
)


def extract_mutation_blocks(text: Optional[str]) -> List[Span]:
    """Every ``mutations`` object literal, deduplicated by position."""
    if not text:
        return []
    seen = set()
    blocks: List[Span] = []
    for match in _MUTATIONS_BLOCK.finditer(text):
        if match.end() in seen:
            continue
        block = span_at(text, match.end())
        if block is not None:
            seen.add(match.end())
            blocks.append(block)
    return blocks


def extract_handlers(block: Span) -> List[Handler]:
    """Function-valued entries of an object literal body (``name(state) {}``)."""
    handlers: List[Handler] = []
    for entry in object_entries(block.body):
        if entry.key is None or entry.kind == "shorthand":
            continue
        span = function_body(entry.value)
        if span is None:
            continue
        handlers.append(Handler(entry.key, span.body, block.start + 1 + entry.offset))
    return handlers


_STORE_BLOCK = re.compile(
    r"(?:(?<![\w$.])createStore\s*\(\s*|(?<![\w$])new\s+Vuex\.Store\s*\(\s*|(?<![\w$.])(?:const|let|var)\s+store\s*=\s*|export\s+default\s*)(?=\{)"
)
_STORE_KEYS = frozenset({"state", "mutations", "actions", "getters"})


def extract_vuex_store_blocks(text: Optional[str]) -> List[Span]:
    """Object literals that define a Vuex store or store module."""
    if not text:
        return []
    blocks: List[Span] = []
    for match in _STORE_BLOCK.finditer(text):
        block = span_at(text, match.end())
        if block is None:
            continue
        keys = {entry.key for entry in object_entries(block.body)}
        explicit = not match.group(0).startswith("export")
        if explicit or ("state" in keys and keys & {"mutations", "actions"}):
            blocks.append(block)
    return blocks


def store_section(block: Span, key: str) -> Optional[str]:
    """Body of a store section, unwrapping ``state: () => ({...})`` forms."""
    for entry in object_entries(block.body):
        if entry.key != key:
            continue
        value = entry.value
        if entry.kind == "property" and value.startswith("{"):
            literal = span_at(value, 0)
            return literal.body if literal else None
        span = function_body(value)
        if span is None:
            return None
        body = span.body
        if span.start == -1:
            body = body.strip()
            if body.startswith("(") and body.endswith(")"):
                body = body[1:-1].strip()
            literal = span_at(body, 0) if body.startswith("{") else None
            return literal.body if literal else None
        returned = re.search(r"(?<![\w$])return\s*(?=\{)", body)
        if returned:
            literal = span_at(body, returned.end())
            return literal.body if literal else None
        return None
    return None


# -- pinia -------------------------------------------------------------------


@dataclass(frozen=True)
class StoreDefinition:
    store_id: str
    accessor: Optional[str]
    body: str
    index: int


_STORE_ACCESSOR = re.compile(rf"(?:const|let|var)\s+({IDENTIFIER})\s*=\s*$")


def extract_store_definitions(text: Optional[str]) -> List[StoreDefinition]:
    """Pinia ``defineStore`` calls with their id and accessor name."""
    if not text:
        return []
    stores: List[StoreDefinition] = []
    for call in iter_calls(text, "defineStore"):
        args = split_top_level(call.args.body)
        if not args:
            continue
        store_id = None
        quoted = _QUOTED.match(args[0])
        if quoted:
            store_id = quoted.group(1)
        elif args[0].startswith("{"):
            literal = span_at(args[0], 0)
            for entry in object_entries(literal.body if literal else ""):
                if entry.key == "id":
                    id_match = _QUOTED.match(entry.value)
                    store_id = id_match.group(1) if id_match else None
        if not store_id:
            continue
        line_start = text.rfind("\n", 0, call.start) + 1
        prefix = text[line_start : call.start].replace("export ", "")
        accessor = _STORE_ACCESSOR.search(prefix)
        stores.append(
            StoreDefinition(
                store_id,
                accessor.group(1) if accessor else None,
                call.args.body,
                call.start,
            )
        )
    return stores


def references_store(body: str, store: StoreDefinition) -> bool:
    if store.accessor and re.search(rf"{word(store.accessor)}\s*\(", body):
        return True
    if re.match(IDENTIFIER + "$", store.store_id):
        return re.search(rf"{word(store.store_id)}\.[\w$]", body) is not None
    return False


# -- router guards -----------------------------------------------------------


@dataclass(frozen=True)
class GuardBody:
    name: str
    body: str
    index: int


_GUARD_DECLARATIONS = re.compile(
    r"(?<![\w$.])(?:async\s+)?function\s+(beforeEach|beforeResolve|afterEach|beforeEnter)\s*(?=\()"
    r"|(?<![\w$.])(?:const|let|var)\s+(beforeEach|beforeResolve|afterEach|beforeEnter)\s*=\s*"
    r"|(?<![\w$.])(beforeEnter|beforeRouteEnter|beforeRouteUpdate|beforeRouteLeave)\s*(?::\s*|(?=\())"
)


def extract_guard_bodies(text: Optional[str]) -> List[GuardBody]:
    """Navigation guard callbacks registered on a router or declared inline."""
    if not text:
        return []
    guards: List[GuardBody] = []
    for call in iter_calls(text, r"(?:[\w$]+\.)+(?:beforeEach|beforeResolve|afterEach)"):
        args = split_top_level(call.args.body)
        if not args:
            continue
        span = function_body(args[0])
        if span is None or span.start == -1:
            continue
        name = call.name.rsplit(".", 1)[-1]
        guards.append(GuardBody(name, span.body, call.start))

    for match in _GUARD_DECLARATIONS.finditer(text):
        name = match.group(1) or match.group(2) or match.group(3)
        span = function_body(text[match.end() :])
        if span is None or span.start == -1:
            continue
        guards.append(GuardBody(name, span.body, match.start()))
    guards.sort(key=lambda guard: guard.index)
    return guards


# -- template helpers --------------------------------------------------------

_FOR_EXPRESSION = re.compile(r"^\s*(?P<alias>.+?)\s+(?:in|of)\s+(?P<source>.+?)\s*$", re.DOTALL)


@dataclass(frozen=True)
class ForExpression:
    aliases: Tuple[str, ...]
    source: str

    @property
    def index_alias(self) -> Optional[str]:
        if len(self.aliases) < 2:
            return None
        return self.aliases[-1]


def parse_for_expression(expression: Optional[str]) -> Optional[ForExpression]:
    """Split ``(item, index) in items`` into its aliases and source."""
    if not expression:
        return None
    match = _FOR_EXPRESSION.match(expression)
    if not match:
        return None
    alias = match.group("alias").strip()
    if alias.startswith("(") and alias.endswith(")"):
        alias = alias[1:-1]
    aliases = tuple(split_top_level(alias))
    return ForExpression(aliases, match.group("source").strip())


_PLAIN_IDENTIFIER = re.compile(rf"^{IDENTIFIER}$")


def is_identifier(expression: Optional[str]) -> bool:
    return bool(expression and _PLAIN_IDENTIFIER.match(expression.strip()))


# -- size estimates ----------------------------------------------------------

_ARRAY_FROM_LENGTH = re.compile(r"Array\.from\(\s*\{\s*length\s*:\s*(\d+)")
_NEW_ARRAY = re.compile(r"new\s+Array\(\s*(\d+)")
_LARGE_LIST_NAMES = ("items", "data", "list", "collection", "array", "records", "rows")
_LARGE_DATA_NAMES = frozenset(
    {"data", "items", "list", "collection", "records", "rows", "dataset", "tabledata"}
)


def _literal_size(expression: str) -> Optional[int]:
    expression = expression.strip()
    if expression and expression[0] in "[{":
        literal = span_at(expression, 0)
        if literal is not None and literal.end == len(expression) - 1:
            return len(split_top_level(literal.body))
    match = _ARRAY_FROM_LENGTH.search(expression)
    if match:
        return int(match.group(1))
    match = _NEW_ARRAY.search(expression)
    if match:
        return int(match.group(1))
    return None


def _unwrap_reactive(expression: str) -> str:
    match = re.match(
        r"^(?:ref|reactive|shallowRef|shallowReactive|readonly)\s*(?:<[^()]*>)?\s*\((.*)\)\s*;?$",
        expression.strip(),
        re.DOTALL,
    )
    return match.group(1).strip() if match else expression


def _declared_value(name: str, text: str) -> Optional[str]:
    match = re.search(
        rf"(?<![\w$.])(?:const|let|var)\s+{re.escape(name)}\s*(?::[^=]+)?=\s*", text
    )
    if not match:
        return None
    start = match.end()
    end = start
    while end < len(text) and text[end] not in ";\n":
        if text[end] in "([{":
            inner = span_at(text, end)
            if inner is None:
                break
            end = inner.end + 1
            continue
        end += 1
    return text[start:end].strip()


def estimate_list_size(source: str, text: Optional[str]) -> int:
    """Estimate how many items a ``v-for`` source iterates over."""
    source = source.strip()
    if re.fullmatch(r"\d+", source):
        return int(source)
    size = _literal_size(source)
    if size is not None:
        return size
    if text and is_identifier(source):
        declared = _declared_value(source, text)
        if declared:
            size = _literal_size(_unwrap_reactive(declared))
            if size is not None:
                return size
    lowered = source.lower()
    if any(name in lowered for name in _LARGE_LIST_NAMES):
        return 200
    return 0


def estimate_data_size(expression: str, text: Optional[str]) -> int:
    """Estimate how many entries a value passed to ``ref``/``reactive`` holds."""
    expression = expression.strip()
    size = _literal_size(expression)
    if size is not None:
        return size
    if is_identifier(expression):
        if text:
            declared = _declared_value(expression, text)
            if declared:
                size = _literal_size(_unwrap_reactive(declared))
                if size is not None:
                    return size
        if expression.lower() in _LARGE_DATA_NAMES:
            return 1000
    return 0


def estimate_watched_size(source: str, text: Optional[str]) -> int:
    """Rough size of a watched source, used to judge deep watchers."""
    source = source.strip()
    size = _literal_size(source)
    if size is not None:
        return size
    if is_identifier(source):
        if text:
            declared = _declared_value(source, text)
            if declared:
                size = _literal_size(_unwrap_reactive(declared))
                if size is not None:
                    return size
        return 25
    return 10


# -- imports and files -------------------------------------------------------

VIRTUALIZATION_LIBRARIES = (
    "vue-virtual-scroller",
    "vue-virtual-scroll-list",
    "virtual-list",
    "@tanstack/vue-virtual",
    "vue3-virtual-scroll-list",
)


def has_virtualization_library(text: Optional[str]) -> bool:
    if not text:
        return False
    for library in VIRTUALIZATION_LIBRARIES:
        escaped = re.escape(library)
        if re.search(rf"""(?:from\s*|require\(\s*)['"]{escaped}['"]""", text):
            return True
    return False


_STATIC_IMPORT = re.compile(
    rf"""(?<![\w$.])import\s+({IDENTIFIER})\s+from\s+['"]([^'"]+)['"]"""
)


def static_default_imports(text: Optional[str]) -> Dict[str, Tuple[str, int]]:
    """Map of default-import name to (module, index)."""
    if not text:
        return {}
    return {match.group(1): (match.group(2), match.start()) for match in _STATIC_IMPORT.finditer(text)}


_TEST_PATH_MARKERS = (".spec.", ".test.", "__tests__", "/tests/")


def is_test_file(file_path: str) -> bool:
    normalized = file_path.replace("\\", "/")
    return any(marker in normalized for marker in _TEST_PATH_MARKERS)
