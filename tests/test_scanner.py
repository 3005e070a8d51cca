"""Tests for the bracket-aware script scanner."""
import pytest

from src.detection.core.scanner import (
    blank_comments,
    block_after,
    find_matching,
    function_body,
    iter_calls,
    line_column,
    line_count,
    object_entries,
    split_top_level,
)


class TestFindMatching:
    def test_nested(self):
        text = "f(a, { b: [1, 2] }, c)"
        assert find_matching(text, 1) == len(text) - 1

    def test_ignores_brackets_in_strings_and_comments(self):
        text = "{ a: '}', b: `${x}}`, /* } */ c: 1 // }\n}"
        assert find_matching(text, 0) == len(text) - 1

    def test_unbalanced(self):
        assert find_matching("{ a: (1 }", 0) == -1
        assert find_matching("{ open", 0) == -1

    def test_requires_opener(self):
        with pytest.raises(ValueError):
            find_matching("abc", 0)

    def test_block_after_skips_literals(self):
        span = block_after("x = '{' + { y: 1 }", 0)
        assert span.body.strip() == "y: 1"


class TestIterCalls:
    def test_finds_plain_calls_only(self):
        text = "ref(1); obj.ref(2); myref(3); ref (4)"
        calls = list(iter_calls(text, "ref"))
        assert [call.args.body for call in calls] == ["1", "4"]

    def test_generic_calls(self):
        text = "const a = ref<Map<string, number>>(new Map())"
        assert list(iter_calls(text, "ref")) == []
        calls = list(iter_calls(text, "ref", allow_generic=True))
        assert calls[0].args.body == "new Map()"

    def test_member_pattern(self):
        calls = list(iter_calls("router.beforeEach((to) => {})", r"(?:[\w$]+\.)+beforeEach"))
        assert calls[0].name == "router.beforeEach"


class TestSplitAndEntries:
    def test_split_top_level(self):
        assert split_top_level("a, f(b, c), { d: 1, e: 2 }, 'x,y'") == ["a", "f(b, c)", "{ d: 1, e: 2 }", "'x,y'"]

    def test_object_entries_kinds(self):
        body = """
          name: 'x',
          'quoted-key': 1,
          async load(id) { return id },
          get total() { return 1 },
          shorthand,
          ...spread,
          [computedKey]: 2
        """
        entries = object_entries(body)
        assert [(entry.key, entry.kind) for entry in entries] == [
            ("name", "property"),
            ("quoted-key", "property"),
            ("load", "method"),
            ("total", "method"),
            ("shorthand", "shorthand"),
            (None, "spread"),
            ("computedKey", "property"),
        ]
        assert entries[0].value == "'x'"


class TestFunctionBody:
    @pytest.mark.parametrize(
        "value, body",
        [
            ("function () { return 1 }", " return 1 "),
            ("async function load(a) { await a }", " await a "),
            ("(a, b) => { a + b }", " a + b "),
            ("async x => { x }", " x "),
            ("(state) { state.a = 1 }", " state.a = 1 "),
            ("(): number => { return 1 }", " return 1 "),
        ],
    )
    def test_block_bodies(self, value, body):
        span = function_body(value)
        assert span.body == body
        assert span.start != -1

    def test_expression_body(self):
        span = function_body("() => items.value.length, other")
        assert span.start == -1
        assert span.body == "items.value.length"

    def test_not_a_function(self):
        assert function_body("'literal'") is None
        assert function_body("someValue") is None


class TestTextHelpers:
    def test_line_column(self):
        assert line_column("ab\ncd", 0) == (1, 1)
        assert line_column("ab\ncd", 4) == (2, 2)

    def test_line_count(self):
        assert line_count("a\nb\nc") == 3
        assert line_count("") == 1

    def test_blank_comments_keeps_layout(self):
        text = "a // note\n/* b\n c */ d 'x // y'"
        blanked = blank_comments(text)
        assert len(blanked) == len(text)
        assert "note" not in blanked and " c " not in blanked
        assert "'x // y'" in blanked
        assert blanked.count("\n") == text.count("\n")
