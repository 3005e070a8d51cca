"""Single-file component parser.

Splits a ``.vue`` source into its markup tree and raw logic text. The markup
tree is built with the standard library ``html.parser`` tokenizer; directives
and interpolations are normalized into ``Binding`` records and
``INTERPOLATION`` nodes so detectors never deal with raw attribute syntax.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from pathlib import Path
from typing import List, Optional, Tuple

from src.detection.core.models import Location
from src.detection.core.scanner import line_column
from src.detection.core.tree import Binding, NodeKind, TreeNode


VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

SCRIPT_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".mts", ".cts"})

_TAG_NAME = re.compile(r"<\s*([^\s/>]+)")
_ATTRIBUTE = re.compile(
    r"""(?P<name>[^\s"'>/=]+)(?:\s*=\s*(?:"(?P<double>[^"]*)"|'(?P<single>[^']*)'|(?P<bare>[^\s"'=<>`]+)))?"""
)
_INTERPOLATION_OPEN = "{{"
_INTERPOLATION_CLOSE = "}}"
_INTERPOLATION_SPAN = re.compile(r"\{\{.*?\}\}", re.DOTALL)
_BLOCK_END = re.compile(r"</(?:template|script|style)\b", re.IGNORECASE)
# Stands in for "<" inside interpolations while the tag tokenizer runs.
_LT_MASK = "\ue000"


class SfcParseError(Exception):
    """Raised when component source cannot be split into well-formed blocks."""

    def __init__(self, message: str, location: Optional[Location] = None):
        self.location = location or Location()
        super().__init__(message)


@dataclass(frozen=True)
class MarkupBlock:
    root: TreeNode
    content: str
    location: Location = field(default_factory=Location)


@dataclass(frozen=True)
class LogicSegment:
    """One ``<script>`` block inside the combined logic text."""

    offset: int
    line: int
    column: int
    setup: bool = False
    lang: Optional[str] = None


@dataclass(frozen=True)
class LogicBlock:
    text: str
    segments: Tuple[LogicSegment, ...] = (LogicSegment(0, 1, 1),)

    @property
    def lang(self) -> Optional[str]:
        for segment in self.segments:
            if segment.lang:
                return segment.lang
        return None

    def location_at(self, index: int) -> Location:
        """Map an offset in ``text`` back to a file line and column."""
        segment = self.segments[0]
        for candidate in self.segments:
            if candidate.offset <= index:
                segment = candidate
        line, column = line_column(self.text[segment.offset :], index - segment.offset)
        if line == 1:
            column = segment.column + column - 1
        return Location(segment.line + line - 1, column)


@dataclass(frozen=True)
class ParsedComponent:
    markup: Optional[MarkupBlock] = None
    logic: Optional[LogicBlock] = None

    @property
    def template_root(self) -> Optional[TreeNode]:
        return self.markup.root if self.markup else None

    @property
    def script(self) -> Optional[str]:
        return self.logic.text if self.logic else None

    def script_location(self, index: int) -> Location:
        if self.logic is None:
            return Location()
        return self.logic.location_at(index)


def _make_binding(raw_name: str, value: Optional[str], location: Location) -> Binding:
    if value is not None:
        value = html.unescape(value).replace(_LT_MASK, "<")

    if raw_name.startswith("v-"):
        directive, _, arg = raw_name[2:].partition(":")
        name = directive.split(".", 1)[0]
        return Binding(name, _strip_modifiers(arg) or None, value, False, raw_name, location)
    if raw_name.startswith(":") or raw_name.startswith("."):
        return Binding("bind", _strip_modifiers(raw_name[1:]), value, False, raw_name, location)
    if raw_name.startswith("@"):
        return Binding("on", _strip_modifiers(raw_name[1:]), value, False, raw_name, location)
    if raw_name.startswith("#"):
        return Binding("slot", raw_name[1:] or "default", value, False, raw_name, location)
    return Binding(raw_name, None, value, True, raw_name, location)


def _strip_modifiers(arg: str) -> str:
    if arg.startswith("["):
        close = arg.find("]")
        return arg[: close + 1] if close != -1 else arg
    return arg.split(".", 1)[0]


@dataclass
class _Frame:
    tag: str
    bindings: Tuple[Binding, ...]
    location: Location
    children: List[TreeNode] = field(default_factory=list)

    def build(self) -> TreeNode:
        return TreeNode(
            NodeKind.ELEMENT,
            tag=self.tag,
            children=tuple(self.children),
            bindings=self.bindings,
            location=self.location,
        )


class _SfcBuilder(HTMLParser):
    def __init__(self, source: str):
        super().__init__(convert_charrefs=True)
        self.source = source
        self._line_starts = [0]
        for match in re.finditer("\n", source):
            self._line_starts.append(match.end())

        self.markup: Optional[MarkupBlock] = None
        self.segments: List[LogicSegment] = []
        self.logic_parts: List[str] = []

        self._block: Optional[str] = None
        self._block_depth = 0
        self._block_start = 0
        self._block_location = Location()
        self._block_attrs: dict = {}
        self._root_children: List[TreeNode] = []
        self._stack: List[_Frame] = []
        self._text: List[str] = []
        self._text_location = Location()
        self._scripts_seen = {"plain": False, "setup": False}

    # -- positions -------------------------------------------------------

    def _location(self) -> Location:
        line, offset = self.getpos()
        return Location(line, offset + 1)

    def _index(self) -> int:
        line, offset = self.getpos()
        return self._line_starts[line - 1] + offset

    def _offset_location(self, start: Location, text: str, index: int) -> Location:
        line, column = line_column(text, index)
        if line == 1:
            return Location(start.line, start.column + column - 1)
        return Location(start.line + line - 1, column)

    # -- tag helpers -----------------------------------------------------

    def _raw_tag(self, fallback: str) -> Tuple[str, List[Binding]]:
        raw = self.get_starttag_text() or ""
        start = self._location()
        name_match = _TAG_NAME.match(raw)
        tag = name_match.group(1) if name_match else fallback
        bindings: List[Binding] = []
        body_start = name_match.end() if name_match else 0
        body = raw[body_start:].rstrip(">").rstrip("/")
        for match in _ATTRIBUTE.finditer(body):
            value = match.group("double")
            if value is None:
                value = match.group("single")
            if value is None:
                value = match.group("bare")
            location = self._offset_location(start, raw, body_start + match.start())
            bindings.append(_make_binding(match.group("name"), value, location))
        return tag, bindings

    def _append(self, node: TreeNode) -> None:
        if self._stack:
            self._stack[-1].children.append(node)
        else:
            self._root_children.append(node)

    def _flush_text(self) -> None:
        if not self._text:
            return
        data = "".join(self._text).replace(_LT_MASK, "<")
        start = self._text_location
        self._text = []
        cursor = 0
        while cursor < len(data):
            open_at = data.find(_INTERPOLATION_OPEN, cursor)
            if open_at == -1:
                self._emit_text(data[cursor:], self._offset_location(start, data, cursor))
                break
            if open_at > cursor:
                self._emit_text(data[cursor:open_at], self._offset_location(start, data, cursor))
            close_at = data.find(_INTERPOLATION_CLOSE, open_at + 2)
            location = self._offset_location(start, data, open_at)
            if close_at == -1:
                raise SfcParseError("Interpolation end sign was not found.", location)
            expression = data[open_at + 2 : close_at].strip()
            self._append(TreeNode(NodeKind.INTERPOLATION, content=expression, location=location))
            cursor = close_at + 2

    def _emit_text(self, text: str, location: Location) -> None:
        if text.strip():
            self._append(TreeNode(NodeKind.TEXT, content=text, location=location))

    # -- HTMLParser callbacks -------------------------------------------

    def handle_starttag(self, tag, attrs):
        if self._block is None:
            self._open_block(tag, attrs)
            return
        if self._block != "template":
            if tag == self._block:
                self._block_depth += 1
            return
        self._flush_text()
        raw_tag, bindings = self._raw_tag(tag)
        frame = _Frame(raw_tag, tuple(bindings), self._location())
        if tag in VOID_ELEMENTS:
            self._append(frame.build())
        else:
            self._stack.append(frame)

    def handle_startendtag(self, tag, attrs):
        if self._block != "template":
            # Self-closed top-level blocks carry no content.
            return
        self._flush_text()
        raw_tag, bindings = self._raw_tag(tag)
        self._append(_Frame(raw_tag, tuple(bindings), self._location()).build())

    def handle_endtag(self, tag):
        if self._block is None:
            return
        if self._block != "template":
            if tag == self._block:
                if self._block_depth:
                    self._block_depth -= 1
                    return
                self._close_block()
            return

        self._flush_text()
        if not self._stack:
            if tag == "template":
                self._close_block()
                return
            if tag in VOID_ELEMENTS:
                return
            raise SfcParseError(f"Invalid end tag: </{tag}>", self._location())

        top = self._stack[-1]
        if top.tag.lower() == tag:
            self._stack.pop()
            self._append(top.build())
            return
        if tag in VOID_ELEMENTS:
            return
        if any(frame.tag.lower() == tag for frame in self._stack):
            raise SfcParseError(f"Element is missing end tag: <{top.tag}>", top.location)
        raise SfcParseError(f"Invalid end tag: </{tag}>", self._location())

    def handle_data(self, data):
        if self._block != "template":
            return
        if not self._text:
            self._text_location = self._location()
        self._text.append(data)

    def handle_comment(self, data):
        if self._block != "template":
            return
        self._flush_text()
        self._append(
            TreeNode(NodeKind.COMMENT, content=data.replace(_LT_MASK, "<"), location=self._location())
        )

    # -- top-level blocks ----------------------------------------------

    def _open_block(self, tag, attrs) -> None:
        raw = self.get_starttag_text() or ""
        self._block = tag
        self._block_depth = 0
        self._block_location = self._location()
        self._block_start = self._index() + len(raw)
        self._block_attrs = {name: value for name, value in attrs}
        if tag == "template":
            if self.markup is not None:
                raise SfcParseError(
                    "Single file component can contain only one <template> element",
                    self._block_location,
                )
            self._root_children = []
            self._stack = []
        elif tag == "script":
            kind = "setup" if "setup" in self._block_attrs else "plain"
            if self._scripts_seen[kind]:
                raise SfcParseError(
                    f"Single file component can contain only one <script{' setup' if kind == 'setup' else ''}> element",
                    self._block_location,
                )
            self._scripts_seen[kind] = True

    def _close_block(self) -> None:
        end = self._index()
        content = self.source[self._block_start : end]
        if self._block == "template":
            root = TreeNode(NodeKind.ROOT, children=tuple(self._root_children))
            self.markup = MarkupBlock(root, content, self._block_location)
        elif self._block == "script":
            line, column = line_column(self.source, self._block_start)
            offset = sum(len(part) + 1 for part in self.logic_parts)
            self.segments.append(
                LogicSegment(
                    offset,
                    line,
                    column,
                    setup="setup" in self._block_attrs,
                    lang=self._block_attrs.get("lang"),
                )
            )
            self.logic_parts.append(content)
        self._block = None

    def finish(self) -> ParsedComponent:
        self.close()
        if self._block == "template":
            self._flush_text()
            if self._stack:
                top = self._stack[-1]
                raise SfcParseError(f"Element is missing end tag: <{top.tag}>", top.location)
            raise SfcParseError("Element is missing end tag: <template>", self._block_location)
        if self._block == "script":
            raise SfcParseError("Element is missing end tag: <script>", self._block_location)

        logic = None
        if self.segments:
            logic = LogicBlock("\n".join(self.logic_parts), tuple(self.segments))
        return ParsedComponent(markup=self.markup, logic=logic)


def _mask_interpolations(source_text: str) -> str:
    """Hide ``<`` inside ``{{ ... }}`` so comparisons are not read as tags.

    The mask keeps every offset intact. Spans that run into a block end tag
    are left alone so an unterminated interpolation still fails to parse.
    """

    def _mask(match: re.Match) -> str:
        span = match.group(0)
        if _BLOCK_END.search(span):
            return span
        return span.replace("<", _LT_MASK)

    return _INTERPOLATION_SPAN.sub(_mask, source_text)


def parse_sfc(source_text: str) -> ParsedComponent:
    """Parse ``.vue`` source into a markup tree and logic text.

    Raises:
        SfcParseError: when the markup is malformed (unclosed or mismatched
            elements, unterminated interpolation, duplicate blocks).
    """
    builder = _SfcBuilder(source_text)
    builder.feed(_mask_interpolations(source_text))
    return builder.finish()


def parse_script(source_text: str, lang: Optional[str] = None) -> ParsedComponent:
    """Wrap a plain script module (e.g. a unit test file) as a logic-only component."""
    return ParsedComponent(logic=LogicBlock(source_text, (LogicSegment(0, 1, 1, lang=lang),)))


def parse_source(file_path: str, source_text: str) -> ParsedComponent:
    suffix = Path(file_path).suffix.lower()
    if suffix in SCRIPT_EXTENSIONS:
        lang = "ts" if "ts" in suffix else "js"
        return parse_script(source_text, lang=lang)
    return parse_sfc(source_text)
