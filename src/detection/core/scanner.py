"""Bracket-aware scanning over unparsed script text.

Regular expressions cannot follow nested ``{ ... }`` bodies, so every place a
detector needs "the body of this call" or "the entries of this object literal"
goes through the helpers here. String literals, template literals and
comments are skipped so brackets inside them are never counted.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple


OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}

IDENTIFIER = r"[A-Za-z_$][\w$]*"


@dataclass(frozen=True)
class Span:
    """A bracketed region: ``start``/``end`` index the brackets themselves."""

    start: int
    end: int
    body: str


@dataclass(frozen=True)
class CallSite:
    name: str
    start: int
    args: Span


@dataclass(frozen=True)
class Entry:
    """One top-level member of an object literal body."""

    key: Optional[str]
    value: str
    offset: int
    kind: str  # property | method | shorthand | spread


def _skip_literal(text: str, index: int) -> int:
    """Return the index just past a string or comment starting at ``index``.

    Returns ``index`` unchanged when no literal starts there.
    """
    n = len(text)
    ch = text[index]
    if ch in "'\"":
        j = index + 1
        while j < n:
            c = text[j]
            if c == "\\":
                j += 2
                continue
            if c == ch:
                return j + 1
            if c == "\n":
                return j
            j += 1
        return n
    if ch == "`":
        j = index + 1
        while j < n:
            c = text[j]
            if c == "\\":
                j += 2
                continue
            if c == "`":
                return j + 1
            if c == "$" and text.startswith("${", j):
                close = find_matching(text, j + 1)
                if close == -1:
                    return n
                j = close + 1
                continue
            j += 1
        return n
    if ch == "/" and index + 1 < n:
        nxt = text[index + 1]
        if nxt == "/":
            newline = text.find("\n", index)
            return n if newline == -1 else newline
        if nxt == "*":
            close = text.find("*/", index + 2)
            return n if close == -1 else close + 2
    return index


def find_matching(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at ``open_index``, or -1."""
    if open_index < 0 or open_index >= len(text) or text[open_index] not in OPENERS:
        raise ValueError(f"No opening bracket at index {open_index}")
    stack: List[str] = []
    i = open_index
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            i = skipped
            continue
        ch = text[i]
        if ch in OPENERS:
            stack.append(OPENERS[ch])
        elif ch in CLOSERS:
            if not stack or stack[-1] != ch:
                return -1
            stack.pop()
            if not stack:
                return i
        i += 1
    return -1


def span_at(text: str, open_index: int) -> Optional[Span]:
    close = find_matching(text, open_index)
    if close == -1:
        return None
    return Span(open_index, close, text[open_index + 1 : close])


def block_after(text: str, index: int, opener: str = "{") -> Optional[Span]:
    """First balanced block opened by ``opener`` at or after ``index``."""
    i = index
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            i = skipped
            continue
        if text[i] == opener:
            return span_at(text, i)
        i += 1
    return None


def block_at(text: str, index: int, opener: str = "{") -> Optional[Span]:
    """Balanced block that opens at ``index`` once whitespace is skipped."""
    i = skip_whitespace(text, index)
    if i < len(text) and text[i] == opener:
        return span_at(text, i)
    return None


def skip_whitespace(text: str, index: int) -> int:
    n = len(text)
    while index < n and text[index].isspace():
        index += 1
    return index


def iter_calls(text: str, names: str, allow_generic: bool = False) -> Iterator[CallSite]:
    """Yield call sites of any callee matching the regex alternative ``names``.

    ``names`` is a regex such as ``"ref|reactive"``. Member calls
    (``obj.ref(``) are excluded unless the pattern itself contains a dot.
    """
    generic = r"(?:<(?:[^()<>]|<[^()<>]*>)*>\s*)?" if allow_generic else ""
    pattern = re.compile(rf"(?<![\w$.])(?P<name>{names})\s*{generic}\(")
    for match in pattern.finditer(text):
        paren = match.end() - 1
        span = span_at(text, paren)
        if span is None:
            continue
        yield CallSite(match.group("name"), match.start(), span)


def split_top_level_spans(text: str, separator: str = ",") -> List[Tuple[int, str]]:
    """Split on ``separator`` outside brackets and literals.

    Returns ``(offset, piece)`` pairs where ``piece`` is stripped and
    ``offset`` is where the stripped piece starts inside ``text``.
    """
    pieces: List[Tuple[int, str]] = []
    depth = 0
    start = 0
    i = 0
    n = len(text)

    def _emit(begin: int, end: int) -> None:
        raw = text[begin:end]
        stripped = raw.strip()
        if stripped:
            pieces.append((begin + len(raw) - len(raw.lstrip()), stripped))

    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            i = skipped
            continue
        ch = text[i]
        if ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth = max(0, depth - 1)
        elif depth == 0 and text.startswith(separator, i):
            _emit(start, i)
            i += len(separator)
            start = i
            continue
        i += 1
    _emit(start, n)
    return pieces


def split_top_level(text: str, separator: str = ",") -> List[str]:
    return [piece for _, piece in split_top_level_spans(text, separator)]


_ENTRY_KEY = re.compile(
    rf"""^(?:async\s+|get\s+(?=[\w$'"\[])|set\s+(?=[\w$'"\[])|\*\s*)?
        (?:(?P<name>{IDENTIFIER})|'(?P<single>[^']*)'|"(?P<double>[^"]*)"|\[(?P<computed>[^\]]+)\])
        \s*(?P<sep>[:(]|$)""",
    re.VERBOSE,
)


def object_entries(body: str) -> List[Entry]:
    """Top-level entries of an object literal body (text between braces)."""
    entries: List[Entry] = []
    for offset, piece in split_top_level_spans(body, ","):
        if piece.startswith("..."):
            entries.append(Entry(None, piece[3:].strip(), offset, "spread"))
            continue
        match = _ENTRY_KEY.match(piece)
        if not match:
            continue
        key = match.group("name") or match.group("single") or match.group("double")
        if key is None:
            key = match.group("computed").strip()
        sep = match.group("sep")
        if sep == ":":
            entries.append(Entry(key, piece[match.end():].strip(), offset, "property"))
        elif sep == "(":
            entries.append(Entry(key, piece[match.end() - 1 :], offset, "method"))
        else:
            entries.append(Entry(key, key, offset, "shorthand"))
    return entries


_FUNCTION_PREFIX = re.compile(rf"(?:async\s+)?(?:function\b\s*\*?\s*(?:{IDENTIFIER})?\s*)?")
_ARROW_PARAM = re.compile(rf"(?:async\s+)?{IDENTIFIER}\s*=>")


def _expression_end(text: str, index: int) -> int:
    """End of an expression starting at ``index``: a top-level ``,``/``;`` or unmatched closer."""
    i = index
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            i = skipped
            continue
        ch = text[i]
        if ch in OPENERS:
            close = find_matching(text, i)
            if close == -1:
                return n
            i = close + 1
            continue
        if ch in CLOSERS or ch in ",;":
            return i
        i += 1
    return n


def function_body(value: str) -> Optional[Span]:
    """Body block of a function-valued expression starting at ``value[0]``.

    Handles ``function (...) {}``, ``async (...) => {}``, ``x => {}`` and
    method shorthand ``(...) {}``. Expression-bodied arrows yield a span whose
    body is the expression itself with ``start``/``end`` of -1. Anything else
    returns None.
    """
    i = skip_whitespace(value, 0)
    arrow_param = _ARROW_PARAM.match(value, i)
    if arrow_param:
        i = arrow_param.end()
    else:
        i = skip_whitespace(value, _FUNCTION_PREFIX.match(value, i).end())
        if i >= len(value) or value[i] != "(":
            return None
        params = span_at(value, i)
        if params is None:
            return None
        i = skip_whitespace(value, params.end + 1)
        if value.startswith(":", i):
            brace = block_after(value, i, "{")
            arrow = value.find("=>", i)
            if arrow == -1 or (brace is not None and brace.start < arrow):
                return brace
            i = arrow
        if value.startswith("{", i):
            return span_at(value, i)
        if not value.startswith("=>", i):
            return None
        i += 2
    target = skip_whitespace(value, i)
    if target < len(value) and value[target] == "{":
        return span_at(value, target)
    expression = value[target:_expression_end(value, target)].strip()
    return Span(-1, -1, expression)


def line_column(text: str, index: int) -> Tuple[int, int]:
    """1-based line and column of ``index`` within ``text``."""
    index = max(0, min(index, len(text)))
    line = text.count("\n", 0, index) + 1
    last_newline = text.rfind("\n", 0, index)
    return line, index - last_newline


def line_count(text: str) -> int:
    return len(text.split("\n"))


def blank_spans(text: str, spans: List[Tuple[int, int]]) -> str:
    """Replace each ``[start, end)`` range with spaces, keeping line breaks."""
    chars = list(text)
    for start, end in spans:
        for i in range(max(0, start), min(len(chars), end)):
            if chars[i] != "\n":
                chars[i] = " "
    return "".join(chars)


def blank_comments(text: str) -> str:
    """Blank out comments so keyword searches ignore commented-out code."""
    spans: List[Tuple[int, int]] = []
    i = 0
    n = len(text)
    while i < n:
        skipped = _skip_literal(text, i)
        if skipped != i:
            if text.startswith("//", i) or text.startswith("/*", i):
                spans.append((i, skipped))
            i = skipped
            continue
        i += 1
    return blank_spans(text, spans)


def word(name: str) -> str:
    """Regex matching ``name`` as a whole JavaScript identifier."""
    return rf"(?<![\w$]){re.escape(name)}(?![\w$])"
