"""Tests for detectors that inspect component test suites."""
from src.detection.core.models import PatternId, Severity
from src.detection.detectors import (
    detect_implementation_testing,
    detect_pinia_state_leak,
    detect_snapshot_overuse,
)
from src.detection.detectors.testing import extract_test_cases

SPEC_PATH = "tests/unit/Counter.spec.js"


def _severities(issues):
    return [issue.severity for issue in issues]


INTERNAL_SUITE = """
import { mount } from '@vue/test-utils'

it('sets count', () => {
  const wrapper = mount(Counter)
  wrapper.setData({ count: 2 })
  expect(wrapper.vm.count).toBe(2)
})
"""

BEHAVIOR_SUITE = """
it('increments', async () => {
  const wrapper = mount(Counter)
  await wrapper.find('button').trigger('click')
  expect(wrapper.text()).toContain('1')
})
"""


def test_extract_test_cases():
    cases = extract_test_cases("it('a', () => { x() })\ntest.only(\"b\", async () => { y() })\nit(name, fn)")
    assert [case.name for case in cases] == ["a", "b"]
    assert cases[1].body.strip() == "y()"


class TestImplementationTesting:
    def test_internal_state_only(self, run_detector):
        issues = run_detector(detect_implementation_testing, INTERNAL_SUITE, file_path=SPEC_PATH)
        assert _severities(issues) == [Severity.MEDIUM, Severity.MEDIUM, Severity.HIGH]
        assert issues[0].message.endswith("wrapper.vm.count")
        assert issues[2].message.startswith('Test "sets count"')

    def test_behavior_assertions(self, run_detector):
        assert run_detector(detect_implementation_testing, BEHAVIOR_SUITE, file_path=SPEC_PATH) == []

    def test_non_test_files_are_ignored(self, run_detector):
        assert run_detector(detect_implementation_testing, INTERNAL_SUITE, file_path="src/Counter.js") == []


class TestPiniaStateLeak:
    def test_before_each_without_isolation(self, run_detector):
        source = """
        beforeEach(() => { wrapper = mount(Cart) })
        it('adds', () => { const store = useCartStore(); store.add(1) })
        """
        issues = run_detector(detect_pinia_state_leak, source, file_path=SPEC_PATH)
        assert _severities(issues) == [Severity.CRITICAL]
        assert issues[0].location.line == 2

    def test_several_stores_without_setup(self, run_detector):
        source = """
        it('adds', () => { const cart = useCartStore(); const user = useUserStore() })
        """
        issues = run_detector(detect_pinia_state_leak, source, file_path=SPEC_PATH)
        assert _severities(issues) == [Severity.HIGH, Severity.MEDIUM]
        assert all(issue.pattern == PatternId.PINIA_STATE_LEAK for issue in issues)

    def test_isolated_suites(self, run_detector):
        fresh = "beforeEach(() => { setActivePinia(createPinia()) })\nit('a', () => { useCartStore() })"
        testing = "mount(Cart, { global: { plugins: [createTestingPinia()] } })\nit('a', () => { useCartStore() })"
        assert run_detector(detect_pinia_state_leak, fresh, file_path=SPEC_PATH) == []
        assert run_detector(detect_pinia_state_leak, testing, file_path=SPEC_PATH) == []

    def test_suite_without_pinia(self, run_detector):
        assert run_detector(detect_pinia_state_leak, BEHAVIOR_SUITE, file_path=SPEC_PATH) == []


class TestSnapshotOveruse:
    def test_only_snapshots(self, run_detector):
        source = """
        it('renders', () => { expect(wrapper.html()).toMatchSnapshot() })
        it('renders empty', () => { expect(mount(List).html()).toMatchSnapshot() })
        """
        issues = run_detector(detect_snapshot_overuse, source, file_path=SPEC_PATH)
        assert _severities(issues) == [Severity.HIGH, Severity.HIGH, Severity.LOW, Severity.LOW]
        assert issues[0].message.startswith("100% of tests use snapshots (2/2)")

    def test_several_snapshots_in_one_test(self, run_detector):
        source = """
        it('formats', () => {
          expect(format(a)).toMatchSnapshot()
          expect(format(b)).toMatchSnapshot()
        })
        it('adds', () => { expect(sum(1, 2)).toBe(3) })
        it('subtracts', () => { expect(sub(3, 2)).toBe(1) })
        """
        issues = run_detector(detect_snapshot_overuse, source, file_path=SPEC_PATH)
        assert _severities(issues) == [Severity.MEDIUM, Severity.MEDIUM]
        assert issues[0].message.startswith("67% of tests use snapshots (2/3)")
        assert issues[1].message.startswith('Test "formats" uses 2 snapshots')

    def test_assertion_suite(self, run_detector):
        assert run_detector(detect_snapshot_overuse, BEHAVIOR_SUITE, file_path=SPEC_PATH) == []
