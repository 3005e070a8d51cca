"""Tests for Vuex, Pinia and provide/inject detectors."""
import pytest

from src.detection.core.models import PatternId, Severity
from src.detection.detectors import (
    detect_pinia_circular_dependency,
    detect_pinia_usestore_after_await,
    detect_state_localization_antipattern,
    detect_untyped_provide_inject,
    detect_vuex_async_in_mutation,
    detect_vuex_god_store,
)

STORE_PATH = "src/store/index.js"


def _severities(issues):
    return [issue.severity for issue in issues]


def _store(state=1, mutations=1, actions=1, getters=0):
    def entries(prefix, count, template):
        return ", ".join(template.format(name=f"{prefix}{i}") for i in range(count))

    return (
        "import { createStore } from 'vuex'\n"
        "export default createStore({\n"
        f"  state: () => ({{ {entries('s', state, '{name}: 0')} }}),\n"
        f"  mutations: {{ {entries('m', mutations, '{name}(state) {{ state.s0++ }}')} }},\n"
        f"  actions: {{ {entries('a', actions, '{name}({{ commit }}) {{ commit(1) }}')} }},\n"
        f"  getters: {{ {entries('g', getters, '{name}: (state) => state.s0')} }}\n"
        "})\n"
    )


class TestVuexAsyncInMutation:
    def test_async_mutation(self, run_detector):
        source = """
        const store = createStore({
          mutations: {
            load(state) { setTimeout(() => { state.ready = true }, 10) },
            set(state, value) { state.value = value }
          }
        })
        """
        issues = run_detector(detect_vuex_async_in_mutation, source, file_path=STORE_PATH)
        assert _severities(issues) == [Severity.CRITICAL]
        assert "'load'" in issues[0].message
        assert issues[0].location.line == 4

    def test_promise_in_mutation(self, run_detector):
        source = "const store = createStore({ mutations: { save(state) { api.post(state).then(done) } } })"
        issues = run_detector(detect_vuex_async_in_mutation, source, file_path=STORE_PATH)
        assert len(issues) == 1

    def test_sync_mutations(self, run_detector):
        assert run_detector(detect_vuex_async_in_mutation, _store(mutations=3), file_path=STORE_PATH) == []


class TestVuexGodStore:
    def test_small_store(self, run_detector):
        assert run_detector(detect_vuex_god_store, _store(), file_path=STORE_PATH) == []

    @pytest.mark.parametrize(
        "state, severity",
        [(11, Severity.LOW), (21, Severity.MEDIUM), (41, Severity.HIGH), (51, Severity.CRITICAL)],
    )
    def test_state_tiers(self, run_detector, state, severity):
        issues = run_detector(detect_vuex_god_store, _store(state=state), file_path=STORE_PATH)
        assert _severities(issues) == [severity]
        assert f"{state} state properties" in issues[0].message

    def test_one_issue_per_dimension(self, run_detector):
        issues = run_detector(
            detect_vuex_god_store, _store(state=12, mutations=22, actions=9, getters=11), file_path=STORE_PATH
        )
        assert _severities(issues) == [Severity.LOW, Severity.MEDIUM, Severity.LOW, Severity.LOW]
        assert all(issue.pattern == PatternId.VUEX_GOD_STORE for issue in issues)


class TestPiniaCircularDependency:
    def test_stores_reading_each_other(self, run_detector):
        source = """
        export const useCart = defineStore('cart', () => { const user = useUser(); return {} })
        export const useUser = defineStore('user', () => { const cart = useCart(); return {} })
        """
        issues = run_detector(detect_pinia_circular_dependency, source, file_path="src/stores/index.js")
        assert _severities(issues) == [Severity.CRITICAL]
        assert "'cart' and 'user'" in issues[0].message

    def test_one_way_reference(self, run_detector):
        source = """
        export const useCart = defineStore('cart', () => { const user = useUser(); return {} })
        export const useUser = defineStore('user', () => ({}))
        """
        assert run_detector(detect_pinia_circular_dependency, source, file_path="src/stores/index.js") == []

    def test_several_named_stores(self, run_detector):
        source = "<script setup>\nconst cart = useStore('cart')\nconst user = useStore('user')\n</script>"
        issues = run_detector(detect_pinia_circular_dependency, source)
        assert _severities(issues) == [Severity.MEDIUM]
        assert issues[0].message.endswith("cart, user")


class TestPiniaUseStoreAfterAwait:
    def test_store_after_await(self, run_detector):
        source = """
        <script setup>
        async function load() {
          await fetchData()
          const store = useCartStore()
        }
        </script>
        """
        issues = run_detector(detect_pinia_usestore_after_await, source)
        assert _severities(issues) == [Severity.CRITICAL]

    def test_store_before_await(self, run_detector):
        source = """
        <script setup>
        async function load() {
          const store = useCartStore()
          await store.fetch()
        }
        </script>
        """
        assert run_detector(detect_pinia_usestore_after_await, source) == []

    def test_async_setup_reported_once(self, run_detector):
        source = """
        <script>
        export default {
          async setup() {
            await init()
            const store = useStore()
          }
        }
        </script>
        """
        assert len(run_detector(detect_pinia_usestore_after_await, source)) == 1

    def test_promise_chain(self, run_detector):
        source = "<script setup>\nfetchUser().then(() => { const store = useUserStore() })\n</script>"
        issues = run_detector(detect_pinia_usestore_after_await, source)
        assert _severities(issues) == [Severity.HIGH]


class TestStateLocalization:
    def test_options_data(self, run_detector):
        source = """
        <script>
        export default {
          data() {
            return { user: null, session: null, theme: 'dark', loading: false, count: 0 }
          }
        }
        </script>
        """
        issues = run_detector(detect_state_localization_antipattern, source)
        assert _severities(issues) == [Severity.HIGH] * 3
        assert [issue.message.split(" state")[0] for issue in issues] == [
            "authentication",
            "preferences",
            "app",
        ]

    def test_setup_refs(self, run_detector):
        source = "<script setup>\nconst currentUser = ref(null)\nconst count = ref(0)\n</script>"
        issues = run_detector(detect_state_localization_antipattern, source)
        assert _severities(issues) == [Severity.MEDIUM]
        assert "'currentUser'" in issues[0].message

    @pytest.mark.parametrize(
        "body",
        [
            "const theme = ref('dark')\nprovide('theme', theme)",
            "export const useUi = defineStore('ui', () => { const theme = ref('dark'); return { theme } })",
        ],
    )
    def test_shared_state_is_not_local(self, run_detector, body):
        assert run_detector(detect_state_localization_antipattern, f"<script setup>\n{body}\n</script>") == []


class TestUntypedProvideInject:
    def test_string_provide(self, run_detector):
        issues = run_detector(detect_untyped_provide_inject, "<script setup>\nprovide('theme', theme)\n</script>")
        assert _severities(issues) == [Severity.HIGH, Severity.MEDIUM]

    def test_inject_without_default(self, run_detector):
        issues = run_detector(detect_untyped_provide_inject, "<script setup>\nconst t = inject('theme')\n</script>")
        assert _severities(issues) == [Severity.HIGH, Severity.MEDIUM]
        assert "default value" in issues[0].message

    def test_inject_with_default(self, run_detector):
        source = "<script setup>\nconst t = inject('theme', 'light')\n</script>"
        assert _severities(run_detector(detect_untyped_provide_inject, source)) == [Severity.MEDIUM]

    def test_injection_key(self, run_detector):
        source = (
            '<script setup lang="ts">\n'
            "const key: InjectionKey<string> = Symbol()\n"
            "provide(key, 'dark')\n"
            "</script>"
        )
        assert run_detector(detect_untyped_provide_inject, source) == []
