"""Tests for the ref/reactive, computed and watcher detectors."""
import pytest

from src.detection.core.models import PatternId, Severity
from src.detection.detectors import (
    detect_computed_side_effects,
    detect_deep_watcher_overuse,
    detect_destructuring_reactivity_loss,
    detect_ref_reactive_confusion,
    detect_watcher_should_be_computed,
)


def _setup(body: str) -> str:
    return f"<script setup>\n{body}\n</script>\n"


def _severities(issues):
    return [issue.severity for issue in issues]


class TestRefReactiveConfusion:
    def test_primitive(self, run_detector):
        issues = run_detector(detect_ref_reactive_confusion, _setup("const count = reactive(0)"))
        assert _severities(issues) == [Severity.HIGH]
        assert issues[0].refactoring == "reactive(0) → ref(0)"

    def test_quoted_primitive_reported_once(self, run_detector):
        issues = run_detector(detect_ref_reactive_confusion, _setup("const flag = reactive('true')"))
        assert _severities(issues) == [Severity.HIGH]

    def test_string_literal(self, run_detector):
        issues = run_detector(detect_ref_reactive_confusion, _setup("const label = reactive('hello')"))
        assert _severities(issues) == [Severity.MEDIUM]

    def test_destructuring_without_to_refs(self, run_detector):
        issues = run_detector(
            detect_ref_reactive_confusion, _setup("const { a, b } = reactive({ a: 1, b: 2 })")
        )
        assert _severities(issues) == [Severity.CRITICAL]

    def test_replacing_reactive_object(self, run_detector):
        source = _setup("const state = reactive({ a: 1 })\nfunction reset() { state = { a: 0 } }")
        issues = run_detector(detect_ref_reactive_confusion, source)
        assert _severities(issues) == [Severity.HIGH]
        assert "'state'" in issues[0].message
        assert issues[0].location.line == 3

    def test_clean_usage(self, run_detector):
        source = _setup("const count = ref(0)\nconst form = reactive({ name: '' })\nform.name = 'x'")
        assert run_detector(detect_ref_reactive_confusion, source) == []


class TestDestructuringReactivityLoss:
    @pytest.mark.parametrize(
        "statement, severity",
        [
            ("const { a } = reactive({ a: 1 })", Severity.CRITICAL),
            ("const { value: count } = ref(0)", Severity.CRITICAL),
            ("const { title } = defineProps<{ title: string }>()", Severity.HIGH),
            ("const { size } = withDefaults(defineProps<Props>(), { size: 1 })", Severity.HIGH),
            ("const { first } = computed(() => ({ first: 1 }))", Severity.MEDIUM),
        ],
    )
    def test_sources(self, run_detector, statement, severity):
        issues = run_detector(detect_destructuring_reactivity_loss, _setup(statement))
        assert _severities(issues) == [severity]
        assert issues[0].pattern == PatternId.DESTRUCTURING_REACTIVITY_LOSS

    def test_ref_value_refactoring_keeps_alias(self, run_detector):
        issues = run_detector(detect_destructuring_reactivity_loss, _setup("const { value: count } = ref(0)"))
        assert "const count = ref(...)" in issues[0].refactoring

    @pytest.mark.parametrize(
        "statement",
        [
            "const { a, b } = toRefs(reactive({ a: 1, b: 2 }))",
            "const props = defineProps(['title'])\nconst { title } = toRefs(props)",
            "const { data } = useFetch(url)",
        ],
    )
    def test_safe_destructuring(self, run_detector, statement):
        assert run_detector(detect_destructuring_reactivity_loss, _setup(statement)) == []


class TestComputedSideEffects:
    def test_mutation_is_critical(self, run_detector):
        source = "<script>\nexport default {\n  computed: { total() { this.count = 2; return 1 } }\n}\n</script>"
        issues = run_detector(detect_computed_side_effects, source)
        assert _severities(issues) == [Severity.CRITICAL]
        assert "'total'" in issues[0].message
        assert "state mutation" in issues[0].message

    def test_async_is_critical(self, run_detector):
        issues = run_detector(
            detect_computed_side_effects, _setup("const user = computed(() => fetch('/api/user'))")
        )
        assert _severities(issues) == [Severity.CRITICAL]

    def test_dom_access_is_high(self, run_detector):
        issues = run_detector(detect_computed_side_effects, _setup("const title = computed(() => document.title)"))
        assert _severities(issues) == [Severity.HIGH]

    def test_pure_computed(self, run_detector):
        source = _setup("const count = ref(1)\nconst doubled = computed(() => count.value * 2)")
        assert run_detector(detect_computed_side_effects, source) == []


class TestDeepWatcherOveruse:
    def test_small_declared_object(self, run_detector):
        source = _setup("const state = reactive({ a: 1, b: 2 })\nwatch(state, () => {}, { deep: true })")
        issues = run_detector(detect_deep_watcher_overuse, source)
        assert _severities(issues) == [Severity.LOW]

    def test_unknown_identifier_is_medium(self, run_detector):
        issues = run_detector(detect_deep_watcher_overuse, _setup("watch(settings, () => {}, { deep: true })"))
        assert _severities(issues) == [Severity.MEDIUM]

    def test_large_array_is_high(self, run_detector):
        source = _setup("const rows = reactive(new Array(60))\nwatch(rows, () => {}, { deep: true })")
        issues = run_detector(detect_deep_watcher_overuse, source)
        assert _severities(issues) == [Severity.HIGH]
        assert "60 properties" in issues[0].message

    def test_implicit_deep_watch(self, run_detector):
        issues = run_detector(detect_deep_watcher_overuse, _setup("watch(user, (v) => save(v), { flush: 'post' })"))
        assert _severities(issues) == [Severity.LOW]
        assert "implicit" in issues[0].message

    @pytest.mark.parametrize(
        "statement",
        [
            "watch(user, (v) => save(v), { immediate: true })",
            "watch(user, (v) => save(v))",
            "watch(() => user.id, (v) => save(v), { flush: 'post' })",
        ],
    )
    def test_not_reported(self, run_detector, statement):
        assert run_detector(detect_deep_watcher_overuse, _setup(statement)) == []


class TestWatcherShouldBeComputed:
    def test_single_assignment(self, run_detector):
        source = _setup("watch(first, (v) => { full.value = v + ' ' + last.value })")
        issues = run_detector(detect_watcher_should_be_computed, source)
        assert _severities(issues) == [Severity.MEDIUM]

    def test_multiple_assignments(self, run_detector):
        source = _setup("watchEffect(() => {\n  total.value = a.value + b.value\n  average.value = total.value / 2\n})")
        issues = run_detector(detect_watcher_should_be_computed, source)
        assert _severities(issues) == [Severity.HIGH]

    @pytest.mark.parametrize(
        "statement",
        [
            "watch(query, async (q) => { results.value = await search(q) })",
            "watch(query, (q) => { console.log(q); last.value = q })",
            "watch(query, (q) => { localCount = q })",
            "watch(query, (q) => { save(q) })",
        ],
    )
    def test_watchers_with_effects(self, run_detector, statement):
        assert run_detector(detect_watcher_should_be_computed, _setup(statement)) == []
